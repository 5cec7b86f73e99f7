"""Request body binding — JSON decoding plus declarative validation.

Usage::

    from dataclasses import dataclass
    from flux.binding import binding

    @dataclass
    class Signup:
        email: str = binding("required,email")
        password: str = binding("required")

    async def signup(ctx):
        form = ctx.should_bind_json(Signup)
"""

from flux.binding.decode import bind_json, check_target
from flux.binding.rules import Rule, email, is_zero, register_rule, required
from flux.binding.schema import FieldRules, Schema, binding

__all__ = [
    "FieldRules",
    "Rule",
    "Schema",
    "bind_json",
    "binding",
    "check_target",
    "email",
    "is_zero",
    "register_rule",
    "required",
]
