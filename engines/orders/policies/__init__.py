"""
Shop Order Engine: Policies
=============================
Validation policies for order mutations.

Each policy returns None when satisfied, or a RejectionReason.
Policies never modify anything. The service evaluates them in order
and stops at the first rejection, before any change is applied.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Iterable, Optional

from core.commands.rejection import ErrorKind, ReasonCode, RejectionReason
from core.primitives.money import to_decimal
from core.primitives.orders import (
    LaborLine,
    Order,
    OrderKind,
    OrderLine,
    OrderSnapshot,
    OrderStatus,
)

Policy = Callable[[], Optional[RejectionReason]]


def first_rejection(policies: Iterable[Policy]) -> Optional[RejectionReason]:
    """Evaluate policies lazily; return the first rejection."""
    for policy in policies:
        reason = policy()
        if reason is not None:
            return reason
    return None


def is_whole_quantity(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_number(value: Any) -> Optional[Decimal]:
    """Decimal for hours or unit costs, or None when the value is not a number."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        return to_decimal(value)
    except TypeError:
        return None


# ══════════════════════════════════════════════════════════════
# ORDER-LEVEL POLICIES
# ══════════════════════════════════════════════════════════════

def order_not_locked_policy(order: Order) -> Optional[RejectionReason]:
    """Terminal orders (INVOICED / CLOSED) refuse every line change."""
    if order.is_locked:
        return RejectionReason(
            code=ReasonCode.ORDER_LOCKED,
            message=(
                f"Order '{order.order_number or order.id}' is "
                f"{order.status.value}. Cannot modify a {order.status.value.lower()} order."
            ),
            policy_name="order_not_locked_policy",
            kind=ErrorKind.INVARIANT_VIOLATION,
        )
    return None


def order_kind_policy(order: Order, *kinds: OrderKind, action: str) -> Optional[RejectionReason]:
    if order.kind not in kinds:
        allowed = ", ".join(k.value.lower() for k in kinds)
        return RejectionReason(
            code=ReasonCode.INVALID_ORDER_KIND,
            message=f"Cannot {action} on a {order.kind.value.lower()} order (only {allowed}).",
            policy_name="order_kind_policy",
        )
    return None


def status_transition_policy(
    order: Order, expected: OrderStatus, target: OrderStatus,
) -> Optional[RejectionReason]:
    if order.status != expected:
        return RejectionReason(
            code=ReasonCode.INVALID_STATUS_TRANSITION,
            message=(
                f"Cannot move order from {order.status.value} to {target.value}; "
                f"order must be {expected.value}."
            ),
            policy_name="status_transition_policy",
        )
    return None


# ══════════════════════════════════════════════════════════════
# PART LINE POLICIES
# ══════════════════════════════════════════════════════════════

def positive_quantity_policy(quantity: Any) -> Optional[RejectionReason]:
    if not is_whole_quantity(quantity) or quantity <= 0:
        return RejectionReason(
            code=ReasonCode.INVALID_QUANTITY,
            message=f"Quantity must be a positive whole number (got {quantity!r}).",
            policy_name="positive_quantity_policy",
        )
    return None


def non_negative_quantity_policy(quantity: Any) -> Optional[RejectionReason]:
    if not is_whole_quantity(quantity) or quantity < 0:
        return RejectionReason(
            code=ReasonCode.INVALID_QUANTITY,
            message=f"Quantity cannot be negative (got {quantity!r}).",
            policy_name="non_negative_quantity_policy",
        )
    return None


def part_must_be_active_policy(
    snapshot: OrderSnapshot, part_id: str,
) -> Optional[RejectionReason]:
    part = snapshot.get_part(part_id) if part_id else None
    if part is None:
        return RejectionReason(
            code=ReasonCode.PART_NOT_FOUND,
            message=f"Part '{part_id}' not found.",
            policy_name="part_must_be_active_policy",
        )
    if not part.is_active:
        return RejectionReason(
            code=ReasonCode.PART_INACTIVE,
            message=f"Part '{part.part_number or part.id}' is inactive.",
            policy_name="part_must_be_active_policy",
        )
    return None


def part_must_exist_policy(
    snapshot: OrderSnapshot, part_id: str,
) -> Optional[RejectionReason]:
    """Inventory moves need the part, active or not."""
    if snapshot.get_part(part_id) is None:
        return RejectionReason(
            code=ReasonCode.PART_NOT_FOUND,
            message=f"Part '{part_id}' not found.",
            policy_name="part_must_exist_policy",
        )
    return None


def unit_cost_policy(unit_cost: Any) -> Optional[RejectionReason]:
    """An omitted unit cost is fine; a given one must be a number >= 0."""
    if unit_cost is None:
        return None
    parsed = parse_number(unit_cost)
    if parsed is None or not parsed.is_finite() or parsed < 0:
        return RejectionReason(
            code=ReasonCode.INVALID_UNIT_COST,
            message=f"Unit cost must be a non-negative number (got {unit_cost!r}).",
            policy_name="unit_cost_policy",
        )
    return None


def line_must_exist_policy(
    line: Optional[OrderLine], line_id: str,
) -> Optional[RejectionReason]:
    if line is None:
        return RejectionReason(
            code=ReasonCode.LINE_NOT_FOUND,
            message=f"Line '{line_id}' not found.",
            policy_name="line_must_exist_policy",
        )
    return None


def not_below_received_policy(line: OrderLine, new_quantity: int) -> Optional[RejectionReason]:
    if new_quantity < line.received_quantity:
        return RejectionReason(
            code=ReasonCode.BELOW_RECEIVED_QUANTITY,
            message=(
                f"Cannot order {new_quantity}; {line.received_quantity} "
                f"already received on line '{line.id}'."
            ),
            policy_name="not_below_received_policy",
            kind=ErrorKind.INVARIANT_VIOLATION,
        )
    return None


def received_line_removal_policy(line: OrderLine) -> Optional[RejectionReason]:
    if line.received_quantity > 0:
        return RejectionReason(
            code=ReasonCode.LINE_ALREADY_RECEIVED,
            message=(
                f"Line '{line.id}' has {line.received_quantity} received; "
                f"received lines cannot be removed."
            ),
            policy_name="received_line_removal_policy",
            kind=ErrorKind.INVARIANT_VIOLATION,
        )
    return None


def receipt_within_ordered_policy(line: OrderLine, quantity: int) -> Optional[RejectionReason]:
    if line.received_quantity + quantity > line.ordered_quantity:
        return RejectionReason(
            code=ReasonCode.OVER_RECEIPT,
            message=(
                f"Cannot receive {quantity}: only {line.outstanding_quantity} "
                f"of {line.ordered_quantity} outstanding on line '{line.id}'."
            ),
            policy_name="receipt_within_ordered_policy",
            kind=ErrorKind.INVARIANT_VIOLATION,
        )
    return None


# ══════════════════════════════════════════════════════════════
# LABOR LINE POLICIES
# ══════════════════════════════════════════════════════════════

def labor_line_must_exist_policy(
    line: Optional[LaborLine], line_id: str,
) -> Optional[RejectionReason]:
    if line is None:
        return RejectionReason(
            code=ReasonCode.LINE_NOT_FOUND,
            message=f"Labor line '{line_id}' not found.",
            policy_name="labor_line_must_exist_policy",
        )
    return None


def positive_hours_policy(hours: Any) -> Optional[RejectionReason]:
    parsed = parse_number(hours)
    if parsed is None or not parsed.is_finite() or parsed <= 0:
        return RejectionReason(
            code=ReasonCode.INVALID_HOURS,
            message=f"Hours must be greater than zero (got {hours!r}).",
            policy_name="positive_hours_policy",
        )
    return None


def description_required_policy(description: Optional[str]) -> Optional[RejectionReason]:
    if not description or not description.strip():
        return RejectionReason(
            code=ReasonCode.MISSING_FIELD,
            message="Description is required.",
            policy_name="description_required_policy",
        )
    return None
