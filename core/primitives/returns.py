"""
Shop Returns Primitive: Vendor Returns and Warranty Claims
===========================================================
Engine: Core Primitives
Used by: Insights scoring, returns/warranty reporting.

Both record types reference a vendor and zero or more parts through
their lines. Insight scoring and reporting treat them as read-only.
Soft-deleted records and lines carry is_active=False.

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.primitives.money import coerce_money_fields


@dataclass(frozen=True)
class ReturnRecord:
    """Parts returned to a vendor."""

    id: str
    vendor_id: str
    status: str
    created_at: Optional[datetime] = None
    approved_amount: Optional[Decimal] = None
    credit_amount: Optional[Decimal] = None
    credit_memo_amount: Optional[Decimal] = None
    reimbursed_amount: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        coerce_money_fields(
            self, "approved_amount", "credit_amount", "credit_memo_amount",
            "reimbursed_amount", optional=True,
        )


@dataclass(frozen=True)
class ReturnLine:
    id: str
    return_id: str
    part_id: str
    quantity: int = 1
    unit_cost: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        coerce_money_fields(self, "unit_cost", optional=True)

    @property
    def parent_id(self) -> str:
        return self.return_id


@dataclass(frozen=True)
class WarrantyClaimRecord:
    """Warranty claim filed with a vendor."""

    id: str
    vendor_id: str
    status: str
    created_at: Optional[datetime] = None
    amount_requested: Optional[Decimal] = None
    approved_amount: Optional[Decimal] = None
    credit_memo_amount: Optional[Decimal] = None
    reimbursed_amount: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        coerce_money_fields(
            self, "amount_requested", "approved_amount", "credit_memo_amount",
            "reimbursed_amount", optional=True,
        )


@dataclass(frozen=True)
class WarrantyClaimLine:
    id: str
    claim_id: str
    part_id: Optional[str] = None  # labor-only claim lines have no part
    quantity: Optional[int] = None
    amount: Optional[Decimal] = None
    is_active: bool = True

    def __post_init__(self):
        coerce_money_fields(self, "amount", optional=True)

    @property
    def parent_id(self) -> str:
        return self.claim_id
