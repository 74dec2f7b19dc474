"""
Invoice form schemas.

One canonical field table describes an invoice as submitted by the dashboard
forms. The create, update and delete shapes are projections of that table,
so every rule and message lives in exactly one place.
"""
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Mapping, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, create_model
from pydantic_core import PydanticCustomError

from dashboard.exceptions import InvoiceValidationError
from dashboard.models import InvoiceStatus

NAN_MESSAGE = "Expected number, received nan"

# Largest amount whose cents fit a signed 64-bit integer column
MAX_CENTS = 2 ** 63 - 1
MAX_AMOUNT = Decimal(MAX_CENTS) / 100

# Every violated rule is reported, in this order
AMOUNT_RULES = (
    (lambda v: v > 0, "Number must be greater than 0"),
    (lambda v: v >= 1, "Number must be greater than or equal to 1"),
    (lambda v: v <= MAX_AMOUNT, f"Number must be less than or equal to {MAX_AMOUNT}"),
)

# Hex, binary and octal integer literals, e.g. "0x10"
_PREFIXED_INTEGER = re.compile(r"0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+")


def coerce_amount(value: Any) -> Decimal:
    """Coerce submitted amount text to a Decimal; blank and missing become 0."""
    if value is None:
        return Decimal(0)
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, (int, float)):
        value = str(value)
    text = str(value).strip()
    if not text:
        return Decimal(0)
    if _PREFIXED_INTEGER.fullmatch(text):
        return Decimal(int(text, 0))
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise PydanticCustomError("number_type", NAN_MESSAGE)
    if not number.is_finite():
        raise PydanticCustomError("number_type", NAN_MESSAGE)
    return number


def check_amount(value: Decimal) -> Decimal:
    violations = [message for rule, message in AMOUNT_RULES if not rule(value)]
    if violations:
        raise PydanticCustomError("amount_range", violations[0], {"violations": violations})
    return value


Amount = Annotated[Decimal, BeforeValidator(coerce_amount), AfterValidator(check_amount)]

# Canonical invoice shape: python name -> (annotation, Field kwargs)
INVOICE_FIELDS: dict[str, tuple[Any, dict[str, Any]]] = {
    "id": (str, {"min_length": 1}),
    "customer_id": (str, {"alias": "customerId", "min_length": 1}),
    "amount": (Amount, {}),
    "status": (InvoiceStatus, {}),
    "date": (str, {"min_length": 1}),
}

# Per-field message overrides keyed by pydantic error type; "*" covers the rest
FIELD_MESSAGES: dict[str, dict[str, str]] = {
    "customerId": {
        "missing": "Customer ID is required",
        "string_too_short": "Customer ID is required",
        "*": "Customer ID expected.",
    },
    "status": {
        "missing": "Status is required",
        "*": "Please select an invoice status.",
    },
}

_SCHEMA_CONFIG = ConfigDict(populate_by_name=True, frozen=True)


def project(name: str, *, omit: tuple[str, ...] = (), pick: Optional[tuple[str, ...]] = None) -> type[BaseModel]:
    """Build a validation model from a subset of the canonical invoice fields."""
    unknown = (set(omit) | set(pick or ())) - INVOICE_FIELDS.keys()
    if unknown:
        raise ValueError(f"Unknown invoice fields: {sorted(unknown)}")

    fields = {}
    for field_name, (annotation, options) in INVOICE_FIELDS.items():
        if field_name in omit or (pick is not None and field_name not in pick):
            continue
        fields[field_name] = (annotation, Field(**options))
    return create_model(name, __config__=_SCHEMA_CONFIG, **fields)


InvoiceSchema = project("InvoiceSchema")
CreateInvoiceSchema = project("CreateInvoiceSchema", omit=("id", "date"))
UpdateInvoiceSchema = project("UpdateInvoiceSchema", omit=("date",))
DeleteInvoiceSchema = project("DeleteInvoiceSchema", pick=("id",))


def _message_for(field_name: str, error: dict[str, Any]) -> str:
    overrides = FIELD_MESSAGES.get(field_name, {})
    return overrides.get(error["type"], overrides.get("*", error["msg"]))


def field_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Flatten a pydantic ValidationError into field -> ordered messages."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field_name = str(error["loc"][0]) if error["loc"] else "form"
        messages = errors.setdefault(field_name, [])
        violations = (error.get("ctx") or {}).get("violations")
        if violations:
            messages.extend(violations)
        else:
            messages.append(_message_for(field_name, error))
    return errors


@dataclass
class ParseResult:
    success: bool
    data: Optional[BaseModel] = None
    errors: dict[str, list[str]] = field(default_factory=dict)


def safe_parse(schema: type[BaseModel], payload: Mapping[str, Any]) -> ParseResult:
    """Validate without raising; malformed input comes back as errors."""
    try:
        return ParseResult(success=True, data=schema.model_validate(dict(payload)))
    except ValidationError as exc:
        return ParseResult(success=False, errors=field_errors(exc))


def parse(schema: type[BaseModel], payload: Mapping[str, Any]) -> BaseModel:
    """Validate, raising InvoiceValidationError on malformed input."""
    result = safe_parse(schema, payload)
    if not result.success:
        raise InvoiceValidationError(result.errors)
    return result.data


class FormState(BaseModel):
    """Errors and summary message handed to the next form render."""
    errors: dict[str, list[str]] = Field(default_factory=dict)
    message: Optional[str] = None


class CustomerField(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class InvoiceForm(BaseModel):
    id: str
    customer_id: str
    amount: int  # cents
    status: InvoiceStatus

    model_config = ConfigDict(from_attributes=True)


class InvoiceRow(BaseModel):
    id: str
    customer_id: str
    name: str
    email: str
    amount: int  # cents
    status: InvoiceStatus
    date: str
