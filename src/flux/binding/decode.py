"""JSON binding into dataclasses and dicts.

The counterpart of request-body parsing: turns cached body bytes into a
typed object. Field values are checked against ``str``, ``int``,
``float``, ``bool``, ``list``, ``dict`` and nested dataclass
annotations; anything else is taken as decoded.
"""

from __future__ import annotations

import dataclasses
import json
import types
import typing
from typing import Any, get_type_hints

from flux.binding.schema import ALIAS_KEY
from flux.errors import DeserializationError

_ZERO: dict[Any, Any] = {str: "", int: 0, float: 0.0, bool: False}


def check_target(target: Any) -> None:
    """Reject targets that cannot receive decoded data.

    Raises:
        TypeError: Unless *target* is a dataclass type, a mutable
            dataclass instance, or a dict.
    """
    if isinstance(target, dict):
        return
    if isinstance(target, type) and dataclasses.is_dataclass(target):
        return
    if dataclasses.is_dataclass(target) and not isinstance(target, type):
        if type(target).__dataclass_params__.frozen:  # type: ignore[attr-defined]
            msg = f"cannot bind into frozen {type(target).__name__} instance"
            raise TypeError(msg)
        return
    msg = (
        "bind target must be a dataclass type, a mutable dataclass instance, "
        f"or a dict, not {type(target).__name__}"
    )
    raise TypeError(msg)


def bind_json(raw: bytes | None, target: Any) -> Any:
    """Decode *raw* JSON into *target* and return the bound object.

    Raises:
        TypeError: If *target* is not a bindable reference.
        DeserializationError: If *raw* is not valid JSON for *target*.
    """
    check_target(target)
    try:
        payload = json.loads(raw or b"")
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"invalid JSON body: {exc}"
        raise DeserializationError(msg) from exc

    if isinstance(target, dict):
        if not isinstance(payload, dict):
            msg = f"cannot bind JSON {_json_kind(payload)} into a dict"
            raise DeserializationError(msg)
        target.update(payload)
        return target

    if isinstance(target, type):
        return _build(target, payload)

    values = _decode_fields(type(target), payload)
    for name, value in values.items():
        setattr(target, name, value)
    return target


def _build(datacls: type, payload: Any) -> Any:
    values = _decode_fields(datacls, payload)
    hints = get_type_hints(datacls)
    for f in dataclasses.fields(datacls):
        if not f.init or f.name in values:
            continue
        if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            values[f.name] = _zero(hints.get(f.name))
    return datacls(**values)


def _decode_fields(datacls: type, payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        msg = f"cannot bind JSON {_json_kind(payload)} into {datacls.__name__}"
        raise DeserializationError(msg)

    folded = {key.casefold(): key for key in payload if isinstance(key, str)}
    hints = get_type_hints(datacls)
    values: dict[str, Any] = {}
    for f in dataclasses.fields(datacls):
        if not f.init:
            continue
        key = f.metadata.get(ALIAS_KEY, f.name)
        if key not in payload:
            key = folded.get(key.casefold())
            if key is None:
                continue
        values[f.name] = _convert(f.name, payload[key], hints.get(f.name, Any))
    return values


def _convert(name: str, value: Any, hint: Any) -> Any:
    """Check *value* against *hint*, recursing into nested dataclasses."""
    hint, optional = _unwrap_optional(hint)
    if value is None:
        # JSON null leaves the zero value, like an absent key
        return None if optional else _zero(hint)

    origin = typing.get_origin(hint) or hint
    if origin is Any:
        return value
    if origin is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif origin is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
    elif origin is bool:
        if isinstance(value, bool):
            return value
    elif origin is str:
        if isinstance(value, str):
            return value
    elif origin in (list, tuple, set, frozenset):
        if isinstance(value, list):
            return origin(value) if origin is not list else value
    elif origin is dict:
        if isinstance(value, dict):
            return value
    elif isinstance(origin, type) and dataclasses.is_dataclass(origin):
        return _build(origin, value)
    else:
        return value

    expected = getattr(origin, "__name__", str(origin))
    msg = f"field {name!r}: cannot bind JSON {_json_kind(value)} into {expected}"
    raise DeserializationError(msg)


def _unwrap_optional(hint: Any) -> tuple[Any, bool]:
    """Extract ``X`` from ``X | None``; report whether None was allowed."""
    if isinstance(hint, types.UnionType) or typing.get_origin(hint) is typing.Union:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        optional = len(args) != len(typing.get_args(hint))
        if len(args) == 1:
            return args[0], optional
        return Any, optional
    return hint, False


def _zero(hint: Any) -> Any:
    hint, optional = _unwrap_optional(hint)
    if optional:
        return None
    origin = typing.get_origin(hint) or hint
    if origin in _ZERO:
        return _ZERO[origin]
    if origin in (list, tuple, set, frozenset, dict):
        return origin()
    return None


def _json_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    if isinstance(value, bool):
        return "boolean"
    if value is None:
        return "null"
    return "number"
