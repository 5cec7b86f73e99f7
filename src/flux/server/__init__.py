"""Server-side plumbing — sending responses over ASGI."""
