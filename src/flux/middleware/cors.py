"""Permissive CORS handler.

Every response is marked ``Access-Control-Allow-Origin: *``. ``OPTIONS``
requests are answered here with 200 and the chain goes no further.
"""

from flux.context import Context


async def allow_all_cors(ctx: Context) -> None:
    ctx.writer.set_header("Access-Control-Allow-Origin", "*")

    if ctx.request.method == "OPTIONS":
        # Browsers only honour the preflight when these are present too
        methods, found = ctx.get("flux.allowed_methods")
        if found:
            ctx.writer.set_header("Access-Control-Allow-Methods", ", ".join(sorted(methods)))
        requested = ctx.header("access-control-request-headers")
        ctx.writer.set_header("Access-Control-Allow-Headers", requested or "*")
        ctx.status(200)
        return

    await ctx.next()
