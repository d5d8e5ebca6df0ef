from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .services.pricing_service import to_money

# Numeric(10, 2) holds at most 99,999,999.99
MAX_PRICE = Decimal("99999999.99")

# Largest signed 64-bit INTEGER primary key
MAX_ROW_ID = 2**63 - 1


class ValidationError(ValueError):
    """400-level input problem, reported to the client as {message, field}."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.field is not None:
            body["field"] = self.field
        return body


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - fields: JSON key -> model column key, for every field clients may set
      (security boundary)
    - required_on_create: JSON keys required for POST
    """
    fields: dict[str, str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any, name: str):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        # String input - must be plain digits (with optional leading minus)
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{name} must be an integer", name)
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)", name)
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{name} must be an integer (no decimals)", name)
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{name} must be an integer", name)
        # Floats are accepted only when integral (JSON clients send 5.0)
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise ValidationError(f"{name} must be an integer", name)

    # Money: fixed two decimal places
    if isinstance(coltype, Numeric):
        try:
            amount = to_money(value)
        except ValueError:
            raise ValidationError(f"{name} must be a number", name)
        if amount.as_tuple().exponent < -(coltype.scale or 0):
            raise ValidationError(f"{name} must have at most {coltype.scale} decimal places", name)
        return amount

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{name} must be true or false", name)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{name} must be a string", name)
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by model column names.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        for name in sorted(policy.required_on_create):
            if payload.get(name) is None:
                raise ValidationError(f"{name} is required", name)

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for name in payload.keys():
        if name not in policy.fields:
            raise ValidationError(f"Field not allowed: {name}", name)

    patch: dict = {}

    for name, raw in payload.items():
        key = policy.fields[name]
        col = cols[key]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{name} cannot be null", name)
            patch[key] = None
            continue

        val = _coerce_value(col, raw, name)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and isinstance(val, str) and val == "":
            if not col.nullable:
                raise ValidationError(f"{name} cannot be blank", name)
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{name} exceeds max length {col.type.length}", name)

        patch[key] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keys are model column names; messages use the JSON field names.
    """
    for key, name in (("purchase_price", "purchasePrice"), ("selling_price", "sellingPrice")):
        price = patch.get(key)
        if price is None:
            continue
        if price < 0:
            raise ValidationError(f"{name} must be >= 0", name)
        if price > MAX_PRICE:
            raise ValidationError(f"{name} cannot exceed {MAX_PRICE}", name)

    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0", "stock")

    gst_rate = patch.get("gst_rate")
    if gst_rate is not None and not 0 <= gst_rate <= 100:
        raise ValidationError("gstRate must be between 0 and 100", "gstRate")

    max_discount = patch.get("max_discount")
    if max_discount is not None and not 0 <= max_discount <= 100:
        raise ValidationError("maxDiscount must be between 0 and 100", "maxDiscount")


def require_positive_int(value: Any, name: str) -> int:
    """Quantities and ids in request bodies."""
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be a positive integer", name)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer", name)
    if value > MAX_ROW_ID:
        raise ValidationError(f"{name} is too large", name)
    return value
