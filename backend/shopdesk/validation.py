from __future__ import annotations
from datetime import datetime
from shopdesk.time_utils import parse_iso_datetime

from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError
from .models.auth import VALID_ROLES
from .models.invoices import INVOICE_STATUSES, ITEM_HISTORY_ACTIONS, PAYMENT_METHODS, SALES_CHANNELS


# Maximum amount: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_AMOUNT_CENTS = 999_999_999


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


# shop_id is never writable: write paths stamp the caller's credential shop.
CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address", "notes"},
    required_on_create={"name"},
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sku", "description", "price_cents", "cost_price_cents",
        "stock", "category_id", "brand_id",
    },
    required_on_create={"name", "price_cents"},
)

INVOICE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_id", "customer_name", "subtotal_cents", "tax_cents",
        "discount_cents", "paid_amount_cents", "status", "date", "due_date",
        "payment_method", "sales_channel", "notes",
    },
)

INVOICE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "status", "paid_amount_cents", "notes", "customer_name",
        "discount_cents", "tax_cents", "subtotal_cents", "due_date",
        "payment_method", "sales_channel", "version_id",
    },
)

INVOICE_ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_id", "product_name", "quantity", "unit_price_cents",
        "original_price_cents", "discount_cents", "total_cents",
    },
    required_on_create={"quantity", "unit_price_cents"},
)

INVOICE_PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={"amount_cents", "payment_method", "payment_date", "notes", "reference"},
    required_on_create={"amount_cents"},
)

INVOICE_REMINDER_POLICY = ModelValidationPolicy(
    writable_fields={"type", "channel", "message", "customer_name", "customer_phone"},
)

INVOICE_ITEM_HISTORY_POLICY = ModelValidationPolicy(
    writable_fields={
        "action", "product_id", "product_name", "old_quantity", "new_quantity",
        "unit_price_cents", "amount_change_cents", "changed_by_name", "reason", "notes",
    },
    required_on_create={"action", "product_name", "unit_price_cents", "amount_change_cents"},
)

SHOP_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sub_name", "tagline", "description", "logo", "email",
        "phone", "address", "website", "business_reg_no", "tax_id",
        "currency", "tax_rate_bps",
    },
    required_on_create={"name"},
)

USER_POLICY = ModelValidationPolicy(
    writable_fields={"email", "name", "role", "is_active"},
    required_on_create={"email", "name"},
)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
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
                raise ValidationError(f"{col.key} must be an integer")
            # Reject scientific notation (e.g., "1e15", "1E10")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            # Reject decimal points (e.g., "12.5")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # Reject floats explicitly
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{col.key} must be a boolean")

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

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
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_amount(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        value = patch[field]
        if value < 0:
            raise ValidationError(f"{field} must be >= 0")
        if value > MAX_AMOUNT_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT_CENTS}")


def _check_choice(patch: dict, field: str, choices) -> None:
    if field in patch and patch[field] is not None:
        value = str(patch[field]).upper()
        if value not in choices:
            raise ValidationError(f"{field} must be one of: {', '.join(choices)}")
        patch[field] = value


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    _check_amount(patch, "price_cents")
    _check_amount(patch, "cost_price_cents")
    if "stock" in patch and patch["stock"] is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")


def enforce_rules_customer(patch: dict) -> None:
    email = patch.get("email")
    if email and "@" not in email:
        raise ValidationError("email must be a valid email address")


def enforce_rules_invoice(patch: dict) -> None:
    for field in ("subtotal_cents", "tax_cents", "discount_cents", "paid_amount_cents"):
        _check_amount(patch, field)
    _check_choice(patch, "status", INVOICE_STATUSES)
    _check_choice(patch, "payment_method", PAYMENT_METHODS)
    _check_choice(patch, "sales_channel", SALES_CHANNELS)


def enforce_rules_invoice_item(patch: dict) -> None:
    if patch.get("quantity") is None or patch["quantity"] < 1:
        raise ValidationError("quantity must be >= 1")
    for field in ("unit_price_cents", "original_price_cents", "discount_cents", "total_cents"):
        _check_amount(patch, field)


def enforce_rules_payment(patch: dict) -> None:
    amount = patch.get("amount_cents")
    if amount is None or amount <= 0:
        raise ValidationError("amount_cents must be > 0")
    if amount > MAX_AMOUNT_CENTS:
        raise ValidationError(f"amount_cents cannot exceed {MAX_AMOUNT_CENTS}")
    _check_choice(patch, "payment_method", PAYMENT_METHODS)


def enforce_rules_item_history(patch: dict) -> None:
    _check_choice(patch, "action", ITEM_HISTORY_ACTIONS)
    for field in ("old_quantity", "new_quantity"):
        if patch.get(field) is not None and patch[field] < 0:
            raise ValidationError(f"{field} must be >= 0")
    _check_amount(patch, "unit_price_cents")
    change = patch.get("amount_change_cents")
    if change is not None and abs(change) > MAX_AMOUNT_CENTS:
        raise ValidationError(f"amount_change_cents cannot exceed {MAX_AMOUNT_CENTS}")


def enforce_rules_shop(patch: dict) -> None:
    if "tax_rate_bps" in patch and patch["tax_rate_bps"] is not None:
        if not 0 <= patch["tax_rate_bps"] <= 10_000:
            raise ValidationError("tax_rate_bps must be between 0 and 10000")
    if patch.get("currency"):
        patch["currency"] = patch["currency"].upper()


def enforce_rules_user(patch: dict) -> None:
    if "email" in patch and patch["email"] is not None:
        email = patch["email"].lower()
        if "@" not in email:
            raise ValidationError("email must be a valid email address")
        patch["email"] = email
    _check_choice(patch, "role", VALID_ROLES)


LIKE_ESCAPE = "\\"


def contains_pattern(search: str) -> str:
    """Lower-cased ``%term%`` for LIKE with the wildcards in ``search`` escaped."""
    term = search.strip().lower()
    for ch in (LIKE_ESCAPE, "%", "_"):
        term = term.replace(ch, LIKE_ESCAPE + ch)
    return f"%{term}%"
