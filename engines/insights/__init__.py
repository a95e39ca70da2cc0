"""
Shop Insights Engine
======================
Risk / aging scoring and aggregate reporting for vendor returns and
warranty claims. Read-only over immutable snapshots.
"""

from engines.insights.reporting import (
    AGING_BUCKETS,
    ClaimTotals,
    FinancialTotals,
    PartRanking,
    ReportInput,
    ReportResult,
    ReturnTotals,
    VendorRanking,
    aging_bucket,
    returns_warranty_report,
)
from engines.insights.scoring import (
    InsightContext,
    InsightFlag,
    InsightResult,
    RecordKind,
    Severity,
    score,
    score_return,
    score_warranty_claim,
)

__all__ = [
    "AGING_BUCKETS",
    "ClaimTotals",
    "FinancialTotals",
    "InsightContext",
    "InsightFlag",
    "InsightResult",
    "PartRanking",
    "RecordKind",
    "ReportInput",
    "ReportResult",
    "ReturnTotals",
    "Severity",
    "VendorRanking",
    "aging_bucket",
    "returns_warranty_report",
    "score",
    "score_return",
    "score_warranty_claim",
]
