"""Calling user callables that may be sync or async.

Handlers and auth hooks are accepted in either form; the dispatcher and
``Context.next()`` go through ``invoke()`` so the check lives in one place.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler*, awaiting its result when it returns an awaitable.

    Both of these are valid chain handlers::

        def require_json(ctx):
            if ctx.header("content-type") != "application/json":
                ctx.abort_with_status(415)
                return None
            return Flow.CONTINUE

        async def timing(ctx):
            await ctx.next()
            log.info("took %.3fs", ctx.elapsed())
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
