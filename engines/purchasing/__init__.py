"""
Shop Purchasing Engine: Derived Purchase Order Status
=======================================================
Effective receiving status of a purchase order, computed from its lines.

RULES (NON-NEGOTIABLE):
- Pure and idempotent: same order + lines, same status
- Monotonic: receiving more never lowers the status rank
- An explicitly CLOSED order is RECEIVED whatever its lines say
- Inactive (soft-deleted) lines do not count
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from core.primitives.orders import Order, OrderLine, OrderStatus


class DerivedPOStatus(Enum):
    OPEN = "OPEN"
    PARTIALLY_RECEIVED = "PARTIALLY_RECEIVED"
    RECEIVED = "RECEIVED"


_RANK = {
    DerivedPOStatus.OPEN: 0,
    DerivedPOStatus.PARTIALLY_RECEIVED: 1,
    DerivedPOStatus.RECEIVED: 2,
}


def status_rank(status: DerivedPOStatus) -> int:
    """OPEN < PARTIALLY_RECEIVED < RECEIVED."""
    return _RANK[status]


@dataclass(frozen=True)
class ReceivingProgress:
    ordered: int
    received: int

    @property
    def outstanding(self) -> int:
        return self.ordered - self.received

    @property
    def is_complete(self) -> bool:
        return self.ordered > 0 and self.received >= self.ordered


def receiving_progress(lines: Iterable[OrderLine]) -> ReceivingProgress:
    ordered = 0
    received = 0
    for line in lines:
        if not line.is_active:
            continue
        ordered += line.ordered_quantity
        received += line.received_quantity
    return ReceivingProgress(ordered=ordered, received=received)


def derived_status(order: Order, lines: Sequence[OrderLine] = ()) -> DerivedPOStatus:
    if order.status == OrderStatus.CLOSED:
        return DerivedPOStatus.RECEIVED

    progress = receiving_progress(lines)
    if progress.ordered == 0 or progress.received == 0:
        return DerivedPOStatus.OPEN
    if progress.received < progress.ordered:
        return DerivedPOStatus.PARTIALLY_RECEIVED
    return DerivedPOStatus.RECEIVED


__all__ = [
    "DerivedPOStatus",
    "ReceivingProgress",
    "derived_status",
    "receiving_progress",
    "status_rank",
]
