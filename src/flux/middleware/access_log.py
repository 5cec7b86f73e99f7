"""Request logging handler."""

import logging

from flux.context import Context

logger = logging.getLogger("flux.request")


async def request_logger(ctx: Context) -> None:
    """Log ``METHOD path status duration`` after the rest of the chain runs.

    Install it first so the timing covers every other handler::

        engine.use(request_logger)
    """
    await ctx.next()
    logger.info(
        "%s %s %d %.1fms",
        ctx.request.method,
        ctx.full_path,
        ctx.writer.status or ctx.status_code,
        ctx.elapsed() * 1000,
    )
