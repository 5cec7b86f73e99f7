"""Declarative validation schemas.

A schema is an ordered list of ``(field, accessor, rules)`` entries.
For dataclasses it is derived once from field metadata declared with
``binding()`` and cached per type, so validating a bound object never
walks the class again::

    @dataclass
    class Signup:
        email: str = binding("required,email")
        name: str = binding("required")
        referrer: str = ""

    Schema.for_type(Signup).validate(Signup(email="a@b.io", name="x"))
"""

import dataclasses
import operator
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from flux.binding.rules import get_rule
from flux.errors import ValidationError

BINDING_KEY = "binding"
ALIAS_KEY = "json"


def binding(rules: str = "", *, json: str | None = None, **kwargs: Any) -> Any:
    """Declare validation rules (and an optional JSON key) on a dataclass field.

    *rules* is a comma-separated list of rule names. Unknown names are
    ignored at validation time. Remaining keyword arguments go to
    ``dataclasses.field()``; when no default is given the field defaults
    to ``dataclasses.MISSING`` like any other field.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[BINDING_KEY] = rules
    if json is not None:
        metadata[ALIAS_KEY] = json
    return dataclasses.field(metadata=metadata, **kwargs)


def parse_rules(rules: str) -> tuple[str, ...]:
    """Split ``"required,email"`` into ``("required", "email")``."""
    return tuple(part.strip() for part in rules.split(",") if part.strip())


@dataclass(frozen=True, slots=True)
class FieldRules:
    """Rules attached to one field, with the accessor that reads it."""

    name: str
    accessor: Callable[[Any], Any]
    rules: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class Schema:
    """An ordered, immutable set of field rules."""

    fields: tuple[FieldRules, ...] = ()

    @classmethod
    def of(cls, **declarations: str) -> "Schema":
        """Build a schema for mapping targets, keyed by item name.

        ``Schema.of(email="required,email")`` validates ``data["email"]``.
        """
        return cls(
            tuple(
                FieldRules(name, _item_getter(name), parse_rules(rules))
                for name, rules in declarations.items()
            )
        )

    @classmethod
    def for_type(cls, datacls: type) -> "Schema":
        """Return the cached schema declared on a dataclass type."""
        schema = _cache.get(datacls)
        if schema is not None:
            return schema
        entries = []
        for f in dataclasses.fields(datacls):
            rules = parse_rules(f.metadata.get(BINDING_KEY, ""))
            if rules:
                entries.append(FieldRules(f.name, operator.attrgetter(f.name), rules))
        schema = cls(tuple(entries))
        with _cache_lock:
            _cache.setdefault(datacls, schema)
        return schema

    def validate(self, obj: Any) -> None:
        """Evaluate every rule in declaration order.

        Raises:
            ValidationError: For the first failing rule.
        """
        for entry in self.fields:
            value = entry.accessor(obj)
            for name in entry.rules:
                rule = get_rule(name)
                if rule is None:
                    continue
                message = rule(entry.name, value)
                if message is not None:
                    raise ValidationError(entry.name, name, message)


_cache: dict[type, Schema] = {}
_cache_lock = threading.Lock()


def _item_getter(name: str) -> Callable[[Any], Any]:
    def get(obj: Any) -> Any:
        return obj.get(name)

    return get
