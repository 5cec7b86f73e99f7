"""Shared type aliases used across flux modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Chain handler: middleware or terminal handler, called with the Context.
# May be sync or async and may return ``Flow.CONTINUE``.
HandlerFunc: TypeAlias = Callable[[Any], Any]

# Auth hook: called with the Context before the chain starts
AuthFunc: TypeAlias = Callable[[Any], Any]
