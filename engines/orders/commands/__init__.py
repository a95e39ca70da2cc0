"""
Shop Order Engine: Request Commands
=====================================
Typed requests for order mutations.

Requests carry caller input as given. They are NOT validated here:
value checks (quantities, hours, lookups) belong to the policies so
that a bad request comes back as a rejection, never as an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional


# ══════════════════════════════════════════════════════════════
# COMMAND TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

ORDER_LINE_ADD = "orders.line.add"
ORDER_LINE_UPDATE_QUANTITY = "orders.line.update_quantity"
ORDER_LINE_REMOVE = "orders.line.remove"
ORDER_LINE_TOGGLE_WARRANTY = "orders.line.toggle_warranty"
ORDER_LINE_TOGGLE_CORE_RETURNED = "orders.line.toggle_core_returned"
ORDER_LINE_RECEIVE = "orders.line.receive"
ORDER_LABOR_ADD = "orders.labor.add"
ORDER_LABOR_UPDATE = "orders.labor.update"
ORDER_LABOR_REMOVE = "orders.labor.remove"
ORDER_LABOR_TOGGLE_WARRANTY = "orders.labor.toggle_warranty"
ORDER_INVOICE = "orders.invoice"
ORDER_CLOSE = "orders.close"
ORDER_START_WORK = "orders.start_work"
ORDER_UPDATE_NOTES = "orders.update_notes"


# ══════════════════════════════════════════════════════════════
# REQUEST COMMANDS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AddLineRequest:
    """
    Add a part to an order.

    unit_cost is only read on purchase orders; when omitted the part's
    catalog cost is used.
    """
    part_id: str
    quantity: Any
    unit_cost: Optional[Decimal] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class ReceiveRequest:
    """Receive stock against a purchase order line."""
    line_id: str
    quantity: Any
    unit_cost: Optional[Decimal] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class AddLaborLineRequest:
    description: str
    hours: Any
    technician_id: Optional[str] = None


@dataclass(frozen=True)
class UpdateLaborLineRequest:
    """Fields left as None keep their current value."""
    line_id: str
    description: Optional[str] = None
    hours: Any = None
    technician_id: Optional[str] = None
