"""
Shop Part Primitive: Catalog Part / Inventory Position
========================================================
Engine: Core Primitives
Used by: Pricing Engine, Order Engine, Insights reporting.

RULES (NON-NEGOTIABLE):
- Parts are immutable snapshots; changes produce a new Part
- quantity_on_hand is a signed integer (negative = backorder)
- cost, last_cost and avg_cost may each be absent or stale
- Parts are never deleted, only deactivated (is_active=False)

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.primitives.money import ZERO, coerce_money_fields


@dataclass(frozen=True)
class Part:
    """
    Catalog part with its current inventory position.

    Fields:
        id:                 Repository identity.
        part_number:        Human part number.
        cost:               Static catalog cost (nullable).
        last_cost:          Unit cost of the most recent receipt (nullable).
        avg_cost:           Weighted average receipt cost (nullable).
        selling_price:      List price snapshotted onto order lines.
        quantity_on_hand:   Signed on-hand count.
        core_required:      Part ships with a refundable core charge.
        core_charge_amount: Core charge per unit.
    """

    id: str
    part_number: str = ""
    description: Optional[str] = None
    vendor_id: Optional[str] = None
    cost: Optional[Decimal] = None
    last_cost: Optional[Decimal] = None
    avg_cost: Optional[Decimal] = None
    selling_price: Decimal = ZERO
    quantity_on_hand: int = 0
    core_required: bool = False
    core_charge_amount: Decimal = ZERO
    is_active: bool = True
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("id must be a non-empty string.")
        if not isinstance(self.quantity_on_hand, int) or isinstance(self.quantity_on_hand, bool):
            raise ValueError("quantity_on_hand must be an integer.")
        coerce_money_fields(self, "cost", "last_cost", "avg_cost", optional=True)
        coerce_money_fields(self, "selling_price", "core_charge_amount")

    @property
    def is_backordered(self) -> bool:
        return self.quantity_on_hand < 0

    def adjust_on_hand(self, delta: int, at: Optional[datetime] = None) -> Part:
        """Return a copy with on-hand moved by `delta` (may go negative)."""
        return replace(
            self,
            quantity_on_hand=self.quantity_on_hand + delta,
            updated_at=at or self.updated_at,
        )

    def deactivate(self, at: Optional[datetime] = None) -> Part:
        return replace(self, is_active=False, updated_at=at or self.updated_at)
