"""
Shop Insights Engine: Returns / Warranty Report
=================================================
Aggregate counts, aging buckets, money totals and top offenders over
returns and warranty claims.

Only active records count. Range and vendor filters apply to records;
lines follow their record.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from core.primitives.money import ZERO
from core.primitives.part import Part
from core.primitives.returns import (
    ReturnLine,
    ReturnRecord,
    WarrantyClaimLine,
    WarrantyClaimRecord,
)
from core.time.temporal import age_in_days, is_within_trailing_days

RANGE_DAYS = {"30": 30, "90": 90, "365": 365, "all": None}

AGING_BUCKETS: Tuple[Tuple[str, Optional[int]], ...] = (
    ("0-7", 7),
    ("8-14", 14),
    ("15-30", 30),
    ("31-60", 60),
    ("60+", None),
)

RETURN_CLOSED_STATUSES = frozenset({"CLOSED", "CANCELLED"})
CLAIM_NOT_OPEN_STATUSES = frozenset({"CLOSED", "CANCELLED", "DENIED", "PAID"})
CLAIM_CLOSED_STATUSES = frozenset({"CLOSED", "PAID"})

TOP_N = 5


# ══════════════════════════════════════════════════════════════
# INPUT / OUTPUT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReportInput:
    returns: Sequence[ReturnRecord] = ()
    return_lines: Sequence[ReturnLine] = ()
    claims: Sequence[WarrantyClaimRecord] = ()
    claim_lines: Sequence[WarrantyClaimLine] = ()
    vendor_names: Mapping[str, str] = field(default_factory=dict)
    parts: Sequence[Part] = ()
    range: str = "all"
    vendor_id: Optional[str] = None

    def __post_init__(self):
        if self.range not in RANGE_DAYS:
            raise ValueError(
                f"range '{self.range}' not valid. Must be one of: {sorted(RANGE_DAYS)}"
            )


@dataclass(frozen=True)
class ReturnTotals:
    total: int = 0
    open: int = 0
    closed: int = 0


@dataclass(frozen=True)
class ClaimTotals:
    total: int = 0
    open: int = 0
    approved: int = 0
    denied: int = 0
    closed: int = 0


@dataclass(frozen=True)
class FinancialTotals:
    requested: Decimal = ZERO
    approved: Decimal = ZERO
    credit: Decimal = ZERO
    reimbursed: Decimal = ZERO


@dataclass(frozen=True)
class VendorRanking:
    vendor_id: str
    name: str
    count: int
    amount: Decimal


@dataclass(frozen=True)
class PartRanking:
    part_id: str
    part_number: str
    count: int
    amount: Decimal


@dataclass(frozen=True)
class ReportResult:
    return_totals: ReturnTotals
    claim_totals: ClaimTotals
    return_aging: Dict[str, int]
    claim_aging: Dict[str, int]
    financial: FinancialTotals
    top_vendors: Tuple[VendorRanking, ...]
    top_parts: Tuple[PartRanking, ...]


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def aging_bucket(created_at: Optional[datetime], now: datetime) -> str:
    days = age_in_days(created_at, now)
    for label, upper in AGING_BUCKETS:
        if upper is None or days <= upper:
            return label
    return AGING_BUCKETS[-1][0]


def _empty_buckets() -> Dict[str, int]:
    return OrderedDict((label, 0) for label, _ in AGING_BUCKETS)


def _amount(*values: Optional[Decimal]) -> Decimal:
    return sum((v for v in values if v is not None), ZERO)


def _ranked(tallies: Dict[str, List]) -> List[Tuple[str, int, Decimal]]:
    rows = [(key, count, amount) for key, (count, amount) in tallies.items()]
    # Highest amount first, then highest count.
    rows.sort(key=lambda row: (-row[2], -row[1]))
    return rows[:TOP_N]


# ══════════════════════════════════════════════════════════════
# REPORT
# ══════════════════════════════════════════════════════════════

def returns_warranty_report(data: ReportInput, now: datetime) -> ReportResult:
    days = RANGE_DAYS[data.range]

    def _selected(record) -> bool:
        if not record.is_active:
            return False
        if data.vendor_id and record.vendor_id != data.vendor_id:
            return False
        if days is None:
            return True
        return is_within_trailing_days(record.created_at, now, days)

    returns = [r for r in data.returns if _selected(r)]
    claims = [c for c in data.claims if _selected(c)]

    # ── Status totals ─────────────────────────────────────────
    return_totals = ReturnTotals(
        total=len(returns),
        open=sum(1 for r in returns if r.status not in RETURN_CLOSED_STATUSES),
        closed=sum(1 for r in returns if r.status in RETURN_CLOSED_STATUSES),
    )
    claim_totals = ClaimTotals(
        total=len(claims),
        open=sum(1 for c in claims if c.status not in CLAIM_NOT_OPEN_STATUSES),
        approved=sum(1 for c in claims if c.status == "APPROVED"),
        denied=sum(1 for c in claims if c.status == "DENIED"),
        closed=sum(1 for c in claims if c.status in CLAIM_CLOSED_STATUSES),
    )

    # ── Aging ─────────────────────────────────────────────────
    return_aging = _empty_buckets()
    for r in returns:
        return_aging[aging_bucket(r.created_at, now)] += 1
    claim_aging = _empty_buckets()
    for c in claims:
        claim_aging[aging_bucket(c.created_at, now)] += 1

    # ── Money ─────────────────────────────────────────────────
    financial = FinancialTotals(
        requested=_amount(*(c.amount_requested for c in claims)),
        approved=(
            _amount(*(r.approved_amount for r in returns))
            + _amount(*(c.approved_amount for c in claims))
        ),
        credit=(
            _amount(*(r.credit_amount for r in returns))
            + _amount(*(r.credit_memo_amount for r in returns))
            + _amount(*(c.credit_memo_amount for c in claims))
        ),
        reimbursed=(
            _amount(*(r.reimbursed_amount for r in returns))
            + _amount(*(c.reimbursed_amount for c in claims))
        ),
    )

    # ── Top vendors ───────────────────────────────────────────
    vendors: Dict[str, List] = {}
    for r in returns:
        tally = vendors.setdefault(r.vendor_id, [0, ZERO])
        tally[0] += 1
        tally[1] += _amount(r.approved_amount, r.credit_amount, r.credit_memo_amount)
    for c in claims:
        tally = vendors.setdefault(c.vendor_id, [0, ZERO])
        tally[0] += 1
        tally[1] += _amount(c.approved_amount, c.credit_memo_amount, c.reimbursed_amount)

    top_vendors = tuple(
        VendorRanking(
            vendor_id=vendor_id,
            name=data.vendor_names.get(vendor_id) or vendor_id,
            count=count,
            amount=amount,
        )
        for vendor_id, count, amount in _ranked(vendors)
    )

    # ── Top parts ─────────────────────────────────────────────
    return_ids = {r.id for r in returns}
    claim_ids = {c.id for c in claims}
    parts: Dict[str, List] = {}
    for line in data.return_lines:
        if not line.is_active or line.return_id not in return_ids or not line.part_id:
            continue
        tally = parts.setdefault(line.part_id, [0, ZERO])
        tally[0] += line.quantity
        tally[1] += (line.unit_cost or ZERO) * line.quantity
    for line in data.claim_lines:
        if not line.is_active or line.claim_id not in claim_ids or not line.part_id:
            continue
        tally = parts.setdefault(line.part_id, [0, ZERO])
        tally[0] += line.quantity or 0
        tally[1] += line.amount or ZERO

    part_numbers = {p.id: p.part_number for p in data.parts}
    top_parts = tuple(
        PartRanking(
            part_id=part_id,
            part_number=part_numbers.get(part_id) or part_id,
            count=count,
            amount=amount,
        )
        for part_id, count, amount in _ranked(parts)
    )

    return ReportResult(
        return_totals=return_totals,
        claim_totals=claim_totals,
        return_aging=dict(return_aging),
        claim_aging=dict(claim_aging),
        financial=financial,
        top_vendors=top_vendors,
        top_parts=top_parts,
    )
