"""
Shop Money Primitive: Currency Arithmetic
===========================================
Engine: Core Primitives
Used by: Pricing Engine, Job Costing Engine, Order Engine, Insights.

RULES (NON-NEGOTIABLE):
- Every money value is a Decimal (floats are converted via str())
- Currency rounding is half-away-from-zero to 2 decimal places
- Rounding happens where a figure becomes a stored money field,
  never in between unless the rule says so
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")
SIXTY = Decimal("60")


def to_decimal(value: Any) -> Decimal:
    """
    Convert int/float/str/Decimal to Decimal.

    Floats go through str() so that 0.9 stays 0.9 instead of
    0.90000000000000002220446...
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise TypeError(f"Cannot convert {value!r} to Decimal.")
    if isinstance(value, (int, float, str)):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise TypeError(f"Cannot convert {value!r} to Decimal.") from None
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal.")


def to_decimal_or_none(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return to_decimal(value)


def round_currency(value: Any) -> Decimal:
    """Round to cents, half away from zero (2.345 → 2.35, -2.345 → -2.35)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_percent(amount: Any, percent: Any) -> Decimal:
    """amount × percent / 100 (unrounded)."""
    return to_decimal(amount) * to_decimal(percent) / HUNDRED


def apply_markup(amount: Any, percent: Any) -> Decimal:
    """amount × (1 + percent / 100) (unrounded)."""
    return to_decimal(amount) * (1 + to_decimal(percent) / HUNDRED)


def sum_currency(values: Iterable[Any]) -> Decimal:
    """Sum then round once."""
    return round_currency(sum((to_decimal(v) for v in values), ZERO))


def coerce_money_fields(instance: Any, *names: str, optional: bool = False) -> None:
    """
    Normalise numeric fields of a frozen dataclass to Decimal in place.

    Called from __post_init__; optional fields keep None.
    """
    for name in names:
        value = getattr(instance, name)
        if value is None:
            if optional:
                continue
            raise ValueError(f"{name} must not be None.")
        try:
            object.__setattr__(instance, name, to_decimal(value))
        except TypeError as exc:
            raise ValueError(f"{name}: {exc}") from exc
