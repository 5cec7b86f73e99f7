"""Tests for flux.binding — JSON binding and declarative validation."""

import json
from dataclasses import asdict, dataclass, field

import pytest

from flux.binding import Schema, binding, is_zero, register_rule
from flux.errors import DeserializationError, ValidationError

from conftest import make_request


@dataclass
class Signup:
    email: str = binding("required,email")
    name: str = binding("required")
    referrer: str = ""


@dataclass
class Order:
    sku: str
    quantity: int
    price: float
    gift: bool = False
    tags: list[str] = field(default_factory=list)
    note: str | None = None


@dataclass
class Address:
    city: str = binding("required")


@dataclass
class Customer:
    name: str
    address: Address | None = None


@dataclass(frozen=True)
class Frozen:
    name: str = ""


async def _context(make_context, body: bytes):
    ctx = make_context(request=make_request("POST", "/", body=body, headers={"Content-Type": "application/json"}))
    await ctx.parse_body()
    return ctx


class TestBindJSON:
    async def test_binds_dataclass_type(self, make_context) -> None:
        ctx = await _context(make_context, b'{"sku": "A1", "quantity": 2, "price": 9.5, "tags": ["x"]}')
        order = ctx.bind_json(Order)
        assert order == Order(sku="A1", quantity=2, price=9.5, tags=["x"])

    async def test_round_trips(self, make_context) -> None:
        payload = {"sku": "B2", "quantity": 3, "price": 1.25, "gift": True, "tags": ["a", "b"], "note": "hi"}
        ctx = await _context(make_context, json.dumps(payload).encode())
        assert asdict(ctx.bind_json(Order)) == payload

    async def test_missing_keys_take_zero_values(self, make_context) -> None:
        ctx = await _context(make_context, b"{}")
        order = ctx.bind_json(Order)
        assert order == Order(sku="", quantity=0, price=0.0)

    async def test_int_accepted_for_float(self, make_context) -> None:
        ctx = await _context(make_context, b'{"price": 3}')
        order = ctx.bind_json(Order)
        assert order.price == 3.0
        assert isinstance(order.price, float)

    async def test_unknown_keys_ignored(self, make_context) -> None:
        ctx = await _context(make_context, b'{"sku": "A", "extra": 1}')
        assert ctx.bind_json(Order).sku == "A"

    async def test_keys_match_case_insensitively(self, make_context) -> None:
        ctx = await _context(make_context, b'{"SKU": "A"}')
        assert ctx.bind_json(Order).sku == "A"

    async def test_json_alias(self, make_context) -> None:
        @dataclass
        class Aliased:
            user_email: str = binding("required", json="userEmail", default="")

        ctx = await _context(make_context, b'{"userEmail": "a@b.io"}')
        assert ctx.bind_json(Aliased).user_email == "a@b.io"

    async def test_nested_dataclass(self, make_context) -> None:
        ctx = await _context(make_context, b'{"name": "n", "address": {"city": "Oslo"}}')
        assert ctx.bind_json(Customer) == Customer(name="n", address=Address(city="Oslo"))

    async def test_updates_instance_in_place(self, make_context) -> None:
        ctx = await _context(make_context, b'{"quantity": 5}')
        order = Order(sku="keep", quantity=1, price=2.0)
        result = ctx.bind_json(order)
        assert result is order
        assert order.quantity == 5
        assert order.sku == "keep"

    async def test_updates_dict(self, make_context) -> None:
        ctx = await _context(make_context, b'{"q": 1}')
        target: dict[str, object] = {"existing": True}
        assert ctx.bind_json(target) == {"existing": True, "q": 1}

    async def test_invalid_json(self, make_context) -> None:
        ctx = await _context(make_context, b"{not json")
        with pytest.raises(DeserializationError, match="invalid JSON"):
            ctx.bind_json(Order)

    async def test_empty_body(self, make_context) -> None:
        ctx = await _context(make_context, b"")
        with pytest.raises(DeserializationError):
            ctx.bind_json(Order)

    async def test_array_into_dataclass(self, make_context) -> None:
        ctx = await _context(make_context, b"[1, 2]")
        with pytest.raises(DeserializationError, match="array"):
            ctx.bind_json(Order)

    async def test_type_mismatch(self, make_context) -> None:
        ctx = await _context(make_context, b'{"quantity": "two"}')
        with pytest.raises(DeserializationError, match="quantity"):
            ctx.bind_json(Order)

    async def test_bool_is_not_an_int(self, make_context) -> None:
        ctx = await _context(make_context, b'{"quantity": true}')
        with pytest.raises(DeserializationError):
            ctx.bind_json(Order)

    async def test_rejects_unbindable_target(self, make_context) -> None:
        ctx = await _context(make_context, b"{}")
        with pytest.raises(TypeError):
            ctx.bind_json("not a target")

    async def test_rejects_frozen_instance(self, make_context) -> None:
        ctx = await _context(make_context, b'{"name": "x"}')
        with pytest.raises(TypeError, match="frozen"):
            ctx.bind_json(Frozen())


class TestShouldBindJSON:
    async def test_valid(self, make_context) -> None:
        ctx = await _context(make_context, b'{"email": "ada@example.com", "name": "Ada"}')
        signup = ctx.should_bind_json(Signup)
        assert signup == Signup(email="ada@example.com", name="Ada")

    async def test_required_field_at_zero_value(self, make_context) -> None:
        ctx = await _context(make_context, b'{"email": "ada@example.com"}')
        with pytest.raises(ValidationError) as exc_info:
            ctx.should_bind_json(Signup)
        assert exc_info.value.field == "name"
        assert exc_info.value.rule == "required"
        assert str(exc_info.value) == "name is required"

    async def test_bad_email(self, make_context) -> None:
        ctx = await _context(make_context, b'{"email": "not-an-email", "name": "Ada"}')
        with pytest.raises(ValidationError, match="invalid email format") as exc_info:
            ctx.should_bind_json(Signup)
        assert exc_info.value.field == "email"
        assert exc_info.value.rule == "email"

    async def test_first_failure_in_declaration_order(self, make_context) -> None:
        ctx = await _context(make_context, b"{}")
        with pytest.raises(ValidationError) as exc_info:
            ctx.should_bind_json(Signup)
        assert exc_info.value.field == "email"
        assert exc_info.value.rule == "required"

    async def test_rejects_unbindable_target_before_reading(self, make_context) -> None:
        ctx = await _context(make_context, b"{not json")
        with pytest.raises(TypeError):
            ctx.should_bind_json(42)

    async def test_deserialization_error_propagates(self, make_context) -> None:
        ctx = await _context(make_context, b"{not json")
        with pytest.raises(DeserializationError):
            ctx.should_bind_json(Signup)

    async def test_dict_with_explicit_schema(self, make_context) -> None:
        ctx = await _context(make_context, b'{"email": "bad"}')
        with pytest.raises(ValidationError, match="invalid email format"):
            ctx.should_bind_json({}, schema=Schema.of(email="required,email"))

    async def test_dict_without_schema_is_not_validated(self, make_context) -> None:
        ctx = await _context(make_context, b'{"email": "bad"}')
        assert ctx.should_bind_json({}) == {"email": "bad"}


class TestSchema:
    def test_built_from_field_metadata(self) -> None:
        schema = Schema.for_type(Signup)
        assert [(f.name, f.rules) for f in schema.fields] == [
            ("email", ("required", "email")),
            ("name", ("required",)),
        ]

    def test_cached_per_type(self) -> None:
        assert Schema.for_type(Signup) is Schema.for_type(Signup)

    def test_unknown_rules_ignored(self) -> None:
        @dataclass
        class Loose:
            name: str = binding("required, nonsense", default="x")

        Schema.for_type(Loose).validate(Loose())

    def test_custom_rule(self) -> None:
        def lowercase(field: str, value: object) -> str | None:
            if isinstance(value, str) and value != value.lower():
                return f"{field} must be lowercase"
            return None

        register_rule("lowercase", lowercase)

        @dataclass
        class Handle:
            handle: str = binding("required,lowercase", default="")

        with pytest.raises(ValidationError, match="must be lowercase"):
            Schema.for_type(Handle).validate(Handle(handle="Ada"))
        Schema.for_type(Handle).validate(Handle(handle="ada"))

    def test_non_string_email_fails(self) -> None:
        with pytest.raises(ValidationError, match="invalid email format"):
            Schema.of(email="email").validate({"email": 42})


class TestIsZero:
    @pytest.mark.parametrize("value", ["", 0, 0.0, False, None, [], {}, ()])
    def test_zero(self, value: object) -> None:
        assert is_zero(value)

    @pytest.mark.parametrize("value", ["x", 1, -0.5, True, [0], {"a": 1}, object()])
    def test_non_zero(self, value: object) -> None:
        assert not is_zero(value)
