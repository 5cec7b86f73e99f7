"""Built-in chain handlers.

    allow_all_cors -- permissive CORS (``Engine.allow_all_cors()`` installs it)
    request_logger -- one log line per request with status and duration
"""

from flux.middleware.cors import allow_all_cors
from flux.middleware.access_log import request_logger

__all__ = ["allow_all_cors", "request_logger"]
