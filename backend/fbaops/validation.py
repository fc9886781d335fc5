from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .exceptions import ValidationError


# Maximum money value: $9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

# Largest quantity accepted on a purchase order line or as a carton count
MAX_QUANTITY = 1_000_000

# Primary keys are signed 64-bit integers
MAX_ROW_ID = 2**63 - 1


def coerce_int(value: Any, default: int | None = None) -> int | None:
    """
    Lenient integer parse for form-style input.

    Accepts ints and numeric strings ("3", " 3 ", "3.0").
    Anything unparsable returns default. bool is not an integer here.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return default
        try:
            return int(stripped)
        except ValueError:
            # "3.7" truncates to 3
            try:
                parsed = Decimal(stripped)
            except InvalidOperation:
                return default
            return int(parsed) if parsed.is_finite() else default
    return default


def coerce_id(value: Any) -> int | None:
    """Row id from client input; None unless it is a positive id the database can hold."""
    parsed = coerce_int(value)
    if parsed is None or not 0 < parsed <= MAX_ROW_ID:
        return None
    return parsed


def coerce_float(value: Any, default: float | None = None) -> float | None:
    """Lenient float parse. NaN and infinities count as unparsable."""
    if value is None or isinstance(value, bool):
        return default
    if not isinstance(value, (int, float, str)):
        return default
    try:
        parsed = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return default
    return parsed if math.isfinite(parsed) else default


def dollars_to_cents(value: Any, default: int | None = None) -> int | None:
    """
    Convert a decimal money amount ("10.00", 10, 10.5) to integer cents,
    rounding half-up. Unparsable input returns default.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        return default
    if not amount.is_finite():
        return default
    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if abs(cents) > MAX_PRICE_CENTS:
        raise ValidationError("Amount is too large")
    return cents


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_cost_cents(raw: dict, cents_key: str, dollars_key: str) -> int | None:
    """
    Read a money field given either in cents (cents_key) or as a decimal
    amount (dollars_key).

    Missing/blank -> None (caller decides the default).
    Present but unparsable -> 0.
    """
    if not _is_blank(raw.get(cents_key)):
        return coerce_int(raw.get(cents_key), default=0)
    if not _is_blank(raw.get(dollars_key)):
        return dollars_to_cents(raw.get(dollars_key), default=0)
    return None


def parse_purchase_order_items(raw_items: Any) -> list[dict]:
    """
    Shape client-supplied purchase order lines for the service layer.

    Each line may give "sku_id", "quantity" and either "unit_cost_cents" or
    "unit_cost" (decimal). An unparsable quantity becomes 1 and an
    unparsable cost becomes 0; filtering of empty or non-positive lines is
    left to purchase_order_service.normalize_items.
    """
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("each item must be an object")
        items.append({
            "sku_id": coerce_id(raw.get("sku_id")),
            "quantity": coerce_int(raw.get("quantity"), default=1),
            "unit_cost_cents": parse_cost_cents(raw, "unit_cost_cents", "unit_cost"),
        })
    return items


def require_fields(data: dict, *names: str) -> None:
    missing = [name for name in names if _is_blank(data.get(name))]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")
