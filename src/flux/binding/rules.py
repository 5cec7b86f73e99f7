"""Built-in field validation rules.

Each rule is a callable with the signature::

    def rule(field: str, value: Any) -> str | None:
        '''Return an error message, or None if valid.'''

Rules are looked up by name when a schema is evaluated, so new rules
can be added with ``register_rule()`` without touching the core::

    def lowercase(field: str, value: Any) -> str | None:
        if isinstance(value, str) and value != value.lower():
            return f"{field} must be lowercase"
        return None

    register_rule("lowercase", lowercase)
"""

import re
import threading
from collections.abc import Callable
from typing import Any, TypeAlias

Rule: TypeAlias = Callable[[str, Any], str | None]


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------

_EMPTY_TYPES = (str, bytes, int, float, bool, list, tuple, dict, set, frozenset)


def is_zero(value: Any) -> bool:
    """True for ``None`` and the zero value of scalars and collections."""
    if value is None:
        return True
    if isinstance(value, _EMPTY_TYPES):
        return not value
    return False


def required(field: str, value: Any) -> str | None:
    """Field must hold a non-zero, non-empty value."""
    if is_zero(value):
        return f"{field} is required"
    return None


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_valid_email(value: str) -> bool:
    """Basic structural email check; says nothing about deliverability."""
    return _EMAIL_RE.match(value) is not None


def email(field: str, value: Any) -> str | None:
    """Value must be a string shaped like an email address."""
    if not isinstance(value, str) or not is_valid_email(value):
        return f"{field}: invalid email format"
    return None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_rules: dict[str, Rule] = {
    "required": required,
    "email": email,
}
_rules_lock = threading.Lock()


def register_rule(name: str, rule: Rule) -> None:
    """Make *rule* available under *name* in ``binding()`` declarations."""
    with _rules_lock:
        _rules[name] = rule


def get_rule(name: str) -> Rule | None:
    """Return the rule registered under *name*; unknown names give None."""
    return _rules.get(name)
