"""
Shop Order Primitive: Sales / Work / Purchase Orders
======================================================
Engine: Core Primitives
Used by: Order Engine, Purchasing status, reporting.

RULES (NON-NEGOTIABLE):
- Orders and lines are immutable snapshots
- Quantities are non-negative integers
- received_quantity <= ordered quantity, always
- Order totals are derived from lines, never hand-edited
- A terminal order (INVOICED / CLOSED) is locked for line changes

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from core.primitives.money import ZERO, coerce_money_fields
from core.primitives.part import Part


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class OrderKind(Enum):
    SALES = "SALES"          # Counter sale, parts only
    WORK = "WORK"            # Shop work order, parts + labor
    PURCHASE = "PURCHASE"    # Vendor purchase order, received into stock


class OrderStatus(Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"  # Work orders only
    INVOICED = "INVOICED"        # Terminal for sales / work orders
    CLOSED = "CLOSED"            # Terminal for purchase orders


TERMINAL_STATUSES = frozenset({OrderStatus.INVOICED, OrderStatus.CLOSED})

TERMINAL_STATUS_BY_KIND: Dict[OrderKind, OrderStatus] = {
    OrderKind.SALES: OrderStatus.INVOICED,
    OrderKind.WORK: OrderStatus.INVOICED,
    OrderKind.PURCHASE: OrderStatus.CLOSED,
}


# ══════════════════════════════════════════════════════════════
# ORDER HEADER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Order:
    """
    Order header with derived money fields.

    Fields:
        kind:               SALES | WORK | PURCHASE.
        status:             OrderStatus.
        tax_rate_percent:   Tax applied on subtotal (8.25 means 8.25 %).
        parts_subtotal:     Sum of part line extended amounts.
        labor_subtotal:     Sum of labor line extended amounts (work orders).
        subtotal:           parts_subtotal + labor_subtotal.
        core_charges_total: Outstanding core charges.
        tax_amount:         subtotal × tax rate, rounded.
        total:              subtotal + core charges + tax.
    """

    id: str
    kind: OrderKind
    order_number: str = ""
    customer_id: Optional[str] = None
    vendor_id: Optional[str] = None
    status: OrderStatus = OrderStatus.OPEN
    notes: Optional[str] = None
    tax_rate_percent: Decimal = ZERO
    parts_subtotal: Decimal = ZERO
    labor_subtotal: Decimal = ZERO
    subtotal: Decimal = ZERO
    core_charges_total: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    invoiced_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise ValueError("id must be a non-empty string.")
        if not isinstance(self.kind, OrderKind):
            raise ValueError("kind must be OrderKind enum.")
        if not isinstance(self.status, OrderStatus):
            raise ValueError("status must be OrderStatus enum.")
        if self.status == OrderStatus.IN_PROGRESS and self.kind != OrderKind.WORK:
            raise ValueError("IN_PROGRESS is only valid for work orders.")
        coerce_money_fields(
            self, "tax_rate_percent", "parts_subtotal", "labor_subtotal",
            "subtotal", "core_charges_total", "tax_amount", "total",
        )

    @property
    def is_locked(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_purchase(self) -> bool:
        return self.kind == OrderKind.PURCHASE

    @property
    def terminal_status(self) -> OrderStatus:
        return TERMINAL_STATUS_BY_KIND[self.kind]


# ══════════════════════════════════════════════════════════════
# LINES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderLine:
    """
    Part line on a sales, work or purchase order.

    On purchase orders `quantity` is the ordered quantity and
    `received_quantity` tracks receipts against it.
    unit_price / unit_cost are snapshots taken when the line was added.
    """

    id: str
    order_id: str
    part_id: str
    quantity: int
    received_quantity: int = 0
    unit_price: Decimal = ZERO
    unit_cost: Decimal = ZERO
    is_warranty: bool = False
    core_charge: Decimal = ZERO
    core_returned: bool = False
    is_active: bool = True
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not self.order_id:
            raise ValueError("order_id must be non-empty.")
        if not self.part_id:
            raise ValueError("part_id must be non-empty.")
        for name in ("quantity", "received_quantity"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer.")
        if self.received_quantity > self.quantity:
            raise ValueError(
                f"received_quantity ({self.received_quantity}) cannot exceed "
                f"ordered quantity ({self.quantity})."
            )
        coerce_money_fields(self, "unit_price", "unit_cost", "core_charge")

    @property
    def ordered_quantity(self) -> int:
        return self.quantity

    @property
    def outstanding_quantity(self) -> int:
        return self.quantity - self.received_quantity


@dataclass(frozen=True)
class LaborLine:
    """Labor line on a work order. `rate` is snapshotted at add time."""

    id: str
    order_id: str
    description: str
    hours: Decimal
    rate: Decimal
    is_warranty: bool = False
    technician_id: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not self.order_id:
            raise ValueError("order_id must be non-empty.")
        coerce_money_fields(self, "hours", "rate")
        if self.hours < 0:
            raise ValueError("hours cannot be negative.")


@dataclass(frozen=True)
class ReceivingEntry:
    """Audit record of one receipt against a purchase order line."""

    id: str
    vendor_id: Optional[str]
    order_id: str
    line_id: str
    part_id: str
    quantity: int
    unit_cost: Decimal
    received_at: datetime
    notes: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError("quantity must be positive integer.")
        coerce_money_fields(self, "unit_cost")


# ══════════════════════════════════════════════════════════════
# ORDER SNAPSHOT (unit of input / output for mutations)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OrderSnapshot:
    """
    Everything one order operation reads and writes.

    The caller loads it from the repository, hands it to the engine
    and persists the snapshot that comes back. `parts` only needs the
    parts the operation may touch. The engine never mutates a snapshot;
    every change produces a new one.
    """

    order: Order
    lines: Tuple[OrderLine, ...] = ()
    labor_lines: Tuple[LaborLine, ...] = ()
    parts: Mapping[str, Part] = field(default_factory=dict)
    receiving: Tuple[ReceivingEntry, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "labor_lines", tuple(self.labor_lines))
        object.__setattr__(self, "receiving", tuple(self.receiving))
        object.__setattr__(self, "parts", dict(self.parts))
        for line in self.lines:
            if line.order_id != self.order.id:
                raise ValueError(
                    f"Line '{line.id}' belongs to order '{line.order_id}', "
                    f"not '{self.order.id}'."
                )

    @property
    def active_lines(self) -> Tuple[OrderLine, ...]:
        return tuple(line for line in self.lines if line.is_active)

    @property
    def active_labor_lines(self) -> Tuple[LaborLine, ...]:
        return tuple(line for line in self.labor_lines if line.is_active)

    def find_line(self, line_id: str) -> Optional[OrderLine]:
        for line in self.lines:
            if line.id == line_id and line.is_active:
                return line
        return None

    def find_labor_line(self, line_id: str) -> Optional[LaborLine]:
        for line in self.labor_lines:
            if line.id == line_id and line.is_active:
                return line
        return None

    def get_part(self, part_id: str) -> Optional[Part]:
        return self.parts.get(part_id)

    def with_line(self, line: OrderLine) -> OrderSnapshot:
        """Replace the line with the same id, or append it."""
        replaced = False
        lines = []
        for existing in self.lines:
            if existing.id == line.id:
                lines.append(line)
                replaced = True
            else:
                lines.append(existing)
        if not replaced:
            lines.append(line)
        return replace(self, lines=tuple(lines))

    def without_line(self, line_id: str) -> OrderSnapshot:
        return replace(
            self, lines=tuple(l for l in self.lines if l.id != line_id),
        )

    def with_labor_line(self, line: LaborLine) -> OrderSnapshot:
        if not any(l.id == line.id for l in self.labor_lines):
            return replace(self, labor_lines=self.labor_lines + (line,))
        return replace(
            self,
            labor_lines=tuple(line if l.id == line.id else l for l in self.labor_lines),
        )

    def without_labor_line(self, line_id: str) -> OrderSnapshot:
        return replace(
            self, labor_lines=tuple(l for l in self.labor_lines if l.id != line_id),
        )

    def with_part(self, part: Part) -> OrderSnapshot:
        parts = dict(self.parts)
        parts[part.id] = part
        return replace(self, parts=parts)
