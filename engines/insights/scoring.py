"""
Shop Insights Engine: Return / Warranty Claim Scoring
=======================================================
Flags returns and warranty claims for aging and repeat failures.

RULES (NON-NEGOTIABLE):
- Read-only: records and lines are never mutated
- `now` is injected through the context, never read from the system
- Aging flags are mutually exclusive; the most severe one wins
- Repeat detection only looks at active records and active lines
- Identical timestamps are not tie-broken

Flags:
    WARRANTY_ELIGIBLE  approved amount present or approved/credited/paid status
    AGING_60 / AGING_30 / AGING_14 / AGING_7
    HIGH_RISK_REPEAT   same vendor, overlapping part, within 90 days
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Sequence, Set, Tuple, Union

from core.primitives.returns import (
    ReturnLine,
    ReturnRecord,
    WarrantyClaimLine,
    WarrantyClaimRecord,
)
from core.time.temporal import age_in_days, is_within_trailing_days

logger = logging.getLogger("shop.insights")

REPEAT_WINDOW_DAYS = 90

AnyRecord = Union[ReturnRecord, WarrantyClaimRecord]
AnyLine = Union[ReturnLine, WarrantyClaimLine]


class RecordKind(Enum):
    RETURN = "RETURN"
    WARRANTY_CLAIM = "WARRANTY_CLAIM"


ELIGIBLE_STATUSES = {
    RecordKind.RETURN: frozenset({"APPROVED", "CREDITED"}),
    RecordKind.WARRANTY_CLAIM: frozenset({"APPROVED", "PAID"}),
}


class InsightFlag:
    WARRANTY_ELIGIBLE = "WARRANTY_ELIGIBLE"
    AGING_60 = "AGING_60"
    AGING_30 = "AGING_30"
    AGING_14 = "AGING_14"
    AGING_7 = "AGING_7"
    HIGH_RISK_REPEAT = "HIGH_RISK_REPEAT"


# Most severe first.
AGING_THRESHOLDS: Tuple[Tuple[int, str], ...] = (
    (60, InsightFlag.AGING_60),
    (30, InsightFlag.AGING_30),
    (14, InsightFlag.AGING_14),
    (7, InsightFlag.AGING_7),
)


class Severity:
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class InsightContext:
    """
    Comparison set for repeat detection.

    records: other records of the same kind (may include the scored one).
    lines:   lines of all those records.
    """
    now: datetime
    records: Sequence[AnyRecord] = ()
    lines: Sequence[AnyLine] = ()

    def __post_init__(self):
        object.__setattr__(self, "records", tuple(self.records))
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class InsightResult:
    flags: Tuple[str, ...]
    severity: str
    summary: str
    age_days: int = 0

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags


# ══════════════════════════════════════════════════════════════
# RULES
# ══════════════════════════════════════════════════════════════

def aging_flag(age_days: int):
    for threshold, flag in AGING_THRESHOLDS:
        if age_days >= threshold:
            return flag
    return None


def is_warranty_eligible(record: AnyRecord, kind: RecordKind) -> bool:
    return (
        record.approved_amount is not None
        or record.status in ELIGIBLE_STATUSES[kind]
    )


def active_part_ids(record_id: str, lines: Iterable[AnyLine]) -> FrozenSet[str]:
    return frozenset(
        line.part_id for line in lines
        if line.parent_id == record_id and line.is_active and line.part_id
    )


def has_repeat_failure(record: AnyRecord, context: InsightContext) -> bool:
    part_ids: Set[str] = set(active_part_ids(record.id, context.lines))
    if not part_ids:
        return False

    for other in context.records:
        if (
            other.id == record.id
            or not other.is_active
            or other.vendor_id != record.vendor_id
            or not is_within_trailing_days(other.created_at, context.now, REPEAT_WINDOW_DAYS)
        ):
            continue
        if part_ids & active_part_ids(other.id, context.lines):
            return True
    return False


def pick_severity(flags: Sequence[str], age_days: int) -> str:
    if InsightFlag.HIGH_RISK_REPEAT in flags or age_days >= 60:
        return Severity.DANGER
    if age_days >= 30 or InsightFlag.WARRANTY_ELIGIBLE in flags:
        return Severity.WARNING
    return Severity.INFO


# ══════════════════════════════════════════════════════════════
# SCORING
# ══════════════════════════════════════════════════════════════

def score(record: AnyRecord, context: InsightContext, kind: RecordKind) -> InsightResult:
    flags = []
    age_days = age_in_days(record.created_at, context.now)

    if is_warranty_eligible(record, kind):
        flags.append(InsightFlag.WARRANTY_ELIGIBLE)

    aging = aging_flag(age_days)
    if aging is not None:
        flags.append(aging)

    if has_repeat_failure(record, context):
        flags.append(InsightFlag.HIGH_RISK_REPEAT)
        logger.debug(
            f"{kind.value} {record.id}: repeat failure with vendor {record.vendor_id}"
        )

    return InsightResult(
        flags=tuple(flags),
        severity=pick_severity(flags, age_days),
        summary=", ".join(flags) if flags else "Healthy",
        age_days=age_days,
    )


def score_return(record: ReturnRecord, context: InsightContext) -> InsightResult:
    return score(record, context, RecordKind.RETURN)


def score_warranty_claim(record: WarrantyClaimRecord, context: InsightContext) -> InsightResult:
    return score(record, context, RecordKind.WARRANTY_CLAIM)
