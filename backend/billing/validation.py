from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from .errors import ValidationError
from .money import to_decimal
from billing.time_utils import parse_iso_datetime


# Maximum amount: 9,999,999,999.99 (fits Numeric(12, 2))
MAX_AMOUNT = Decimal("9999999999.99")


@dataclass(frozen=True)
class LineItemRequest:
    """One submitted invoice line: product, quantity and optional flat discount."""
    product_id: int
    quantity: int
    discount: Decimal = Decimal("0")


def coerce_int(value: Any, field: str, *, minimum: int | None = None) -> int:
    """Strict integer coercion; rejects floats, decimals and scientific notation."""
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{field} must be an integer")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def coerce_decimal(
    value: Any,
    field: str,
    *,
    minimum: Decimal | int | None = None,
    positive: bool = False,
) -> Decimal:
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    try:
        result = to_decimal(value)
    except TypeError:
        raise ValidationError(f"{field} must be a number")
    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if positive and result <= 0:
        raise ValidationError(f"{field} must be positive")
    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    if abs(result) > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")
    return result


def coerce_datetime(value: Any, field: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 datetime")
        return dt
    raise ValidationError(f"{field} must be a datetime")


def clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def require_fields(payload: dict, fields: Iterable[str]) -> None:
    missing = [f for f in fields if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _line_value(raw: dict, camel: str, snake: str) -> Any:
    if camel in raw:
        return raw[camel]
    return raw.get(snake)


def parse_line_items(items: Any) -> list[LineItemRequest]:
    """
    Normalize submitted line items.

    Accepts LineItemRequest instances or boundary dicts shaped
    {"productId", "quantity", "discount"?} (snake_case keys also accepted).
    """
    if not items:
        raise ValidationError("At least one line item is required")
    if not isinstance(items, (list, tuple)):
        raise ValidationError("lineItems must be a list")

    parsed: list[LineItemRequest] = []
    for index, raw in enumerate(items):
        if isinstance(raw, LineItemRequest):
            item = raw
        elif isinstance(raw, dict):
            discount = _line_value(raw, "discount", "discount")
            item = LineItemRequest(
                product_id=coerce_int(_line_value(raw, "productId", "product_id"), f"lineItems[{index}].productId"),
                quantity=coerce_int(raw.get("quantity"), f"lineItems[{index}].quantity"),
                discount=Decimal("0") if discount in (None, "") else coerce_decimal(discount, f"lineItems[{index}].discount"),
            )
        else:
            raise ValidationError(f"lineItems[{index}] must be an object")

        if item.quantity <= 0:
            raise ValidationError(f"lineItems[{index}].quantity must be positive")
        if item.discount < 0:
            raise ValidationError(f"lineItems[{index}].discount must be >= 0")
        parsed.append(item)

    return parsed
