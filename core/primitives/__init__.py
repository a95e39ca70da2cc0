"""
Shop Core Primitives: Reusable Business Records
==================================================
Primitives are the shared, engine-agnostic records that all shop
engines consume. They are:

- Pure Python (no framework dependency)
- Immutable (frozen dataclasses)
- Deterministic (same input, same output)
- Decimal for money, half-away-from-zero cent rounding

Primitives:
    money    : Currency arithmetic and rounding
    part     : Catalog part with inventory position
    orders   : Sales / work / purchase orders, lines, receiving entries
    returns  : Vendor returns and warranty claims
    jobs     : Plasma, press-brake and weld job lines
"""

from core.primitives.jobs import (
    FabJobLine,
    FabOperation,
    LineOverrides,
    PlasmaJobLine,
    WeldProcess,
)
from core.primitives.money import (
    CENT,
    ZERO,
    apply_markup,
    apply_percent,
    round_currency,
    sum_currency,
    to_decimal,
    to_decimal_or_none,
)
from core.primitives.orders import (
    LaborLine,
    Order,
    OrderKind,
    OrderLine,
    OrderSnapshot,
    OrderStatus,
    ReceivingEntry,
    TERMINAL_STATUSES,
)
from core.primitives.part import Part
from core.primitives.returns import (
    ReturnLine,
    ReturnRecord,
    WarrantyClaimLine,
    WarrantyClaimRecord,
)

__all__ = [
    "CENT",
    "ZERO",
    "apply_markup",
    "apply_percent",
    "round_currency",
    "sum_currency",
    "to_decimal",
    "to_decimal_or_none",
    "Part",
    "Order",
    "OrderKind",
    "OrderLine",
    "OrderSnapshot",
    "OrderStatus",
    "LaborLine",
    "ReceivingEntry",
    "TERMINAL_STATUSES",
    "ReturnRecord",
    "ReturnLine",
    "WarrantyClaimRecord",
    "WarrantyClaimLine",
    "PlasmaJobLine",
    "LineOverrides",
    "FabJobLine",
    "FabOperation",
    "WeldProcess",
]
