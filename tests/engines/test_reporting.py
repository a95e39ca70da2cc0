"""
Shop Insights Engine — Returns / Warranty Report Tests
========================================================
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.primitives import (
    Part,
    ReturnLine,
    ReturnRecord,
    WarrantyClaimLine,
    WarrantyClaimRecord,
)
from engines.insights import ReportInput, aging_bucket, returns_warranty_report

NOW = datetime(2026, 2, 20, 12, 0, 0, tzinfo=timezone.utc)


def _ago(days):
    return NOW - timedelta(days=days)


RETURNS = [
    ReturnRecord(
        id="r-1", vendor_id="v-1", status="REQUESTED", created_at=_ago(3),
        approved_amount=Decimal("50"), credit_amount=Decimal("10"),
    ),
    ReturnRecord(
        id="r-2", vendor_id="v-2", status="CLOSED", created_at=_ago(20),
        credit_memo_amount=Decimal("5"),
    ),
    ReturnRecord(
        id="r-3", vendor_id="v-1", status="REQUESTED", created_at=_ago(1),
        approved_amount=Decimal("999"), is_active=False,
    ),
]

RETURN_LINES = [
    ReturnLine(id="rl-1", return_id="r-1", part_id="p-1", quantity=2, unit_cost=Decimal("20")),
    ReturnLine(id="rl-2", return_id="r-2", part_id="p-2", quantity=1, unit_cost=Decimal("100")),
    ReturnLine(id="rl-3", return_id="r-3", part_id="p-9", quantity=9, unit_cost=Decimal("999")),
]

CLAIMS = [
    WarrantyClaimRecord(
        id="c-1", vendor_id="v-1", status="APPROVED", created_at=_ago(45),
        amount_requested=Decimal("200"), approved_amount=Decimal("150"),
    ),
    WarrantyClaimRecord(
        id="c-2", vendor_id="v-3", status="DENIED", created_at=_ago(100),
        amount_requested=Decimal("80"),
    ),
    WarrantyClaimRecord(
        id="c-3", vendor_id="v-2", status="PAID", created_at=_ago(10),
        amount_requested=Decimal("30"), reimbursed_amount=Decimal("30"),
    ),
]

CLAIM_LINES = [
    WarrantyClaimLine(id="cl-1", claim_id="c-1", part_id="p-1", quantity=1, amount=Decimal("150")),
    WarrantyClaimLine(id="cl-2", claim_id="c-2", part_id="p-3", quantity=1),
    WarrantyClaimLine(id="cl-3", claim_id="c-3", amount=Decimal("30")),
]


def _input(**kwargs) -> ReportInput:
    return ReportInput(
        returns=RETURNS,
        return_lines=RETURN_LINES,
        claims=CLAIMS,
        claim_lines=CLAIM_LINES,
        vendor_names={"v-1": "Acme Parts"},
        parts=[Part(id="p-1", part_number="FLT-100")],
        **kwargs,
    )


class TestAgingBucket:
    @pytest.mark.parametrize("days, label", [
        (0, "0-7"), (7, "0-7"), (8, "8-14"), (14, "8-14"),
        (15, "15-30"), (30, "15-30"), (31, "31-60"), (60, "31-60"), (61, "60+"),
    ])
    def test_boundaries(self, days, label):
        assert aging_bucket(_ago(days), NOW) == label

    def test_missing_timestamp(self):
        assert aging_bucket(None, NOW) == "0-7"


class TestReportTotals:
    def test_status_counts(self):
        report = returns_warranty_report(_input(), NOW)
        assert (report.return_totals.total, report.return_totals.open, report.return_totals.closed) == (2, 1, 1)
        claims = report.claim_totals
        assert claims.total == 3
        assert claims.open == 1
        assert claims.approved == 1
        assert claims.denied == 1
        assert claims.closed == 1

    def test_aging(self):
        report = returns_warranty_report(_input(), NOW)
        assert report.return_aging == {"0-7": 1, "8-14": 0, "15-30": 1, "31-60": 0, "60+": 0}
        assert report.claim_aging == {"0-7": 0, "8-14": 1, "15-30": 0, "31-60": 1, "60+": 1}
        assert list(report.return_aging) == ["0-7", "8-14", "15-30", "31-60", "60+"]

    def test_financial(self):
        financial = returns_warranty_report(_input(), NOW).financial
        assert financial.requested == Decimal("310")
        assert financial.approved == Decimal("200")
        assert financial.credit == Decimal("15")
        assert financial.reimbursed == Decimal("30")


class TestRankings:
    def test_top_vendors(self):
        vendors = returns_warranty_report(_input(), NOW).top_vendors
        assert [v.vendor_id for v in vendors] == ["v-1", "v-2", "v-3"]
        assert vendors[0].name == "Acme Parts"
        assert vendors[0].count == 2
        assert vendors[0].amount == Decimal("210")
        assert vendors[1].name == "v-2"
        assert vendors[1].amount == Decimal("35")

    def test_top_parts(self):
        parts = returns_warranty_report(_input(), NOW).top_parts
        assert [p.part_id for p in parts] == ["p-1", "p-2", "p-3"]
        assert parts[0].part_number == "FLT-100"
        assert parts[0].count == 3
        assert parts[0].amount == Decimal("190")
        assert parts[2].amount == Decimal("0")

    def test_capped_at_five(self):
        returns = [
            ReturnRecord(id=f"r-{i}", vendor_id=f"v-{i}", status="REQUESTED", created_at=NOW)
            for i in range(7)
        ]
        report = returns_warranty_report(ReportInput(returns=returns), NOW)
        assert len(report.top_vendors) == 5


class TestFilters:
    def test_range_filter(self):
        report = returns_warranty_report(_input(range="30"), NOW)
        assert report.return_totals.total == 2
        assert report.claim_totals.total == 1
        assert report.financial.requested == Decimal("30")

    def test_range_excludes_undated_records(self):
        undated = ReturnRecord(id="r-x", vendor_id="v-1", status="REQUESTED")
        assert returns_warranty_report(ReportInput(returns=[undated], range="365"), NOW).return_totals.total == 0
        assert returns_warranty_report(ReportInput(returns=[undated]), NOW).return_totals.total == 1

    def test_vendor_filter(self):
        report = returns_warranty_report(_input(vendor_id="v-2"), NOW)
        assert report.return_totals.total == 1
        assert report.claim_totals.total == 1
        assert [v.vendor_id for v in report.top_vendors] == ["v-2"]
        assert [p.part_id for p in report.top_parts] == ["p-2"]

    def test_invalid_range(self):
        with pytest.raises(ValueError, match="range"):
            ReportInput(range="7")

    def test_empty_input(self):
        report = returns_warranty_report(ReportInput(), NOW)
        assert report.return_totals.total == 0
        assert report.top_vendors == ()
        assert report.financial.requested == Decimal("0")
