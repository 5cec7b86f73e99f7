"""Test utilities for flux servers.

    from flux.testing import TestClient
"""

from flux.testing.client import TestClient

__all__ = ["TestClient"]
