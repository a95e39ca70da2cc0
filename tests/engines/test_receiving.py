"""
Shop Order Engine — Purchase Order Receiving Tests
====================================================
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.commands.rejection import ReasonCode
from core.identity import SequentialIds
from core.primitives import Order, OrderKind, OrderSnapshot, OrderStatus, Part
from core.time import FixedClock
from engines.orders import (
    AddLineRequest,
    OrderMutationService,
    ReceiveRequest,
    weighted_average_cost,
)
from engines.purchasing import DerivedPOStatus, derived_status

NOW = datetime(2026, 2, 20, 12, 0, 0, tzinfo=timezone.utc)


def _service() -> OrderMutationService:
    return OrderMutationService(clock=FixedClock(NOW), id_factory=SequentialIds())


def _po(part=None, status=OrderStatus.OPEN) -> OrderSnapshot:
    part = part or Part(id="p-1", part_number="BRK-300", cost=9, avg_cost=10, quantity_on_hand=4)
    order = Order(id="po-1", kind=OrderKind.PURCHASE, vendor_id="v-1", status=status)
    return OrderSnapshot(order=order, parts={part.id: part})


def _ordered(service, snapshot, quantity=10, unit_cost=12) -> OrderSnapshot:
    result = service.add_line(
        snapshot, AddLineRequest(part_id="p-1", quantity=quantity, unit_cost=unit_cost),
    )
    assert result.success, result.error
    return result.snapshot


# ══════════════════════════════════════════════════════════════
# PURCHASE LINES
# ══════════════════════════════════════════════════════════════

class TestPurchaseLines:
    def test_add_line_moves_no_stock(self):
        snapshot = _ordered(_service(), _po())
        line = snapshot.lines[0]
        assert line.unit_cost == Decimal("12")
        assert line.received_quantity == 0
        assert snapshot.parts["p-1"].quantity_on_hand == 4
        assert snapshot.order.total == Decimal("120.00")

    def test_unit_cost_defaults_to_catalog_cost(self):
        snapshot = _ordered(_service(), _po(), unit_cost=None)
        assert snapshot.lines[0].unit_cost == Decimal("9")

    def test_same_part_appends_new_line(self):
        service = _service()
        snapshot = _ordered(service, _ordered(service, _po()), quantity=5)
        assert [l.quantity for l in snapshot.lines] == [10, 5]

    def test_remove_unreceived_line(self):
        service = _service()
        snapshot = _ordered(service, _po())
        result = service.remove_line(snapshot, "id-0001")
        assert result.success
        assert result.snapshot.lines == ()
        assert result.snapshot.parts["p-1"].quantity_on_hand == 4


# ══════════════════════════════════════════════════════════════
# RECEIVE
# ══════════════════════════════════════════════════════════════

class TestReceive:
    def test_receive_updates_stock_costs_and_log(self):
        service = _service()
        snapshot = _ordered(service, _po())

        result = service.receive(snapshot, ReceiveRequest(line_id="id-0001", quantity=4, notes="Box 1"))

        assert result.success
        received = result.snapshot
        part = received.parts["p-1"]
        assert received.lines[0].received_quantity == 4
        assert part.quantity_on_hand == 8
        assert part.last_cost == Decimal("12")
        # (10 × 4 + 12 × 4) / 8
        assert part.avg_cost == Decimal("11.00")

        entry = received.receiving[0]
        assert entry.id == "id-0002"
        assert entry.vendor_id == "v-1"
        assert entry.line_id == "id-0001"
        assert entry.part_id == "p-1"
        assert entry.quantity == 4
        assert entry.unit_cost == Decimal("12")
        assert entry.received_at == NOW
        assert entry.notes == "Box 1"

    def test_receipt_cost_override(self):
        service = _service()
        snapshot = _ordered(service, _po())
        result = service.receive(
            snapshot, ReceiveRequest(line_id="id-0001", quantity=2, unit_cost=Decimal("15")),
        )
        assert result.snapshot.parts["p-1"].last_cost == Decimal("15")
        assert result.snapshot.receiving[0].unit_cost == Decimal("15")

    def test_over_receipt_rejected_and_state_unchanged(self):
        service = _service()
        snapshot = service.receive(
            _ordered(service, _po()), ReceiveRequest(line_id="id-0001", quantity=4),
        ).snapshot

        result = service.receive(snapshot, ReceiveRequest(line_id="id-0001", quantity=7))

        assert result.error_code == ReasonCode.OVER_RECEIPT
        assert result.is_invariant_violation
        assert result.snapshot is snapshot
        assert snapshot.lines[0].received_quantity == 4
        assert snapshot.parts["p-1"].quantity_on_hand == 8
        assert len(snapshot.receiving) == 1

    def test_receive_remaining_completes_order(self):
        service = _service()
        snapshot = _ordered(service, _po())
        for quantity in (4, 6):
            snapshot = service.receive(snapshot, ReceiveRequest(line_id="id-0001", quantity=quantity)).snapshot
        assert snapshot.lines[0].outstanding_quantity == 0
        assert derived_status(snapshot.order, snapshot.lines) == DerivedPOStatus.RECEIVED

    def test_receive_zero_rejected(self):
        service = _service()
        snapshot = _ordered(service, _po())
        result = service.receive(snapshot, ReceiveRequest(line_id="id-0001", quantity=0))
        assert result.error_code == ReasonCode.INVALID_QUANTITY

    def test_receive_only_on_purchase_orders(self):
        order = Order(id="o-1", kind=OrderKind.SALES)
        result = _service().receive(OrderSnapshot(order=order), ReceiveRequest(line_id="x", quantity=1))
        assert result.error_code == ReasonCode.INVALID_ORDER_KIND

    def test_closed_order_refuses_receipts(self):
        service = _service()
        snapshot = _ordered(service, _po())
        closed = service.close(snapshot).snapshot
        assert closed.order.status == OrderStatus.CLOSED

        result = service.receive(closed, ReceiveRequest(line_id="id-0001", quantity=1))
        assert result.error_code == ReasonCode.ORDER_LOCKED
        assert derived_status(closed.order, closed.lines) == DerivedPOStatus.RECEIVED


class TestUnitCostValidation:
    @pytest.mark.parametrize("unit_cost", ["abc", "n/a", "NaN", Decimal("-10"), -1, True])
    def test_bad_unit_cost_on_purchase_line_rejected(self, unit_cost):
        snapshot = _po()
        result = _service().add_line(
            snapshot, AddLineRequest(part_id="p-1", quantity=2, unit_cost=unit_cost),
        )
        assert result.error_code == ReasonCode.INVALID_UNIT_COST
        assert not result.is_invariant_violation
        assert result.snapshot is snapshot

    @pytest.mark.parametrize("unit_cost", ["abc", "n/a", "NaN", Decimal("-10"), -1, True])
    def test_bad_unit_cost_on_receipt_rejected(self, unit_cost):
        snapshot = _ordered(_service(), _po())
        result = _service().receive(
            snapshot, ReceiveRequest(line_id="id-0001", quantity=2, unit_cost=unit_cost),
        )
        assert result.error_code == ReasonCode.INVALID_UNIT_COST
        assert result.snapshot is snapshot
        assert snapshot.parts["p-1"].quantity_on_hand == 4
        assert snapshot.receiving == ()

    def test_zero_and_numeric_string_costs_accepted(self):
        service = _service()
        snapshot = _ordered(service, _po(), unit_cost=0)
        assert snapshot.lines[0].unit_cost == Decimal("0")

        result = service.receive(
            snapshot, ReceiveRequest(line_id="id-0001", quantity=1, unit_cost="12.50"),
        )
        assert result.success
        assert result.snapshot.parts["p-1"].last_cost == Decimal("12.50")


class TestReceivedLineProtection:
    def _received(self, service):
        snapshot = _ordered(service, _po())
        return service.receive(snapshot, ReceiveRequest(line_id="id-0001", quantity=4)).snapshot

    def test_cannot_order_below_received(self):
        service = _service()
        snapshot = self._received(service)
        result = service.update_line_quantity(snapshot, "id-0001", 3)
        assert result.error_code == ReasonCode.BELOW_RECEIVED_QUANTITY
        assert result.is_invariant_violation

    def test_can_order_down_to_received(self):
        service = _service()
        snapshot = self._received(service)
        result = service.update_line_quantity(snapshot, "id-0001", 4)
        assert result.success
        assert result.snapshot.order.total == Decimal("48.00")
        assert result.snapshot.parts["p-1"].quantity_on_hand == 8

    def test_received_line_cannot_be_removed(self):
        service = _service()
        result = service.remove_line(self._received(service), "id-0001")
        assert result.error_code == ReasonCode.LINE_ALREADY_RECEIVED


# ══════════════════════════════════════════════════════════════
# WEIGHTED AVERAGE COST
# ══════════════════════════════════════════════════════════════

class TestWeightedAverageCost:
    def test_blends_with_stock_on_hand(self):
        part = Part(id="p-1", avg_cost=10, quantity_on_hand=4)
        assert weighted_average_cost(part, 4, Decimal("12")) == Decimal("11.00")

    def test_backordered_stock_carries_no_value(self):
        part = Part(id="p-1", avg_cost=10, quantity_on_hand=-2)
        assert weighted_average_cost(part, 5, Decimal("12")) == Decimal("12.00")

    def test_no_prior_cost(self):
        part = Part(id="p-1", quantity_on_hand=3)
        assert weighted_average_cost(part, 1, Decimal("7.5")) == Decimal("7.50")

    def test_falls_back_to_last_then_catalog_cost(self):
        assert weighted_average_cost(
            Part(id="p-1", last_cost=6, cost=99, quantity_on_hand=1), 1, Decimal("8"),
        ) == Decimal("7.00")
        assert weighted_average_cost(
            Part(id="p-1", cost=4, quantity_on_hand=1), 1, Decimal("8"),
        ) == Decimal("6.00")

    def test_rounded_to_cents(self):
        part = Part(id="p-1", avg_cost=10, quantity_on_hand=2)
        # (20 + 11) / 3 = 10.333…
        assert weighted_average_cost(part, 1, Decimal("11")) == Decimal("10.33")

    def test_zero_avg_cost_falls_through_to_last_cost(self):
        part = Part(id="p-1", avg_cost=0, last_cost=10, quantity_on_hand=5)
        assert weighted_average_cost(part, 5, Decimal("10")) == Decimal("10.00")

    def test_receipt_into_zero_average_uses_last_cost(self):
        part = Part(id="p-1", avg_cost=0, last_cost=10, quantity_on_hand=5)
        service = _service()
        snapshot = _ordered(service, _po(part=part), unit_cost=10)
        result = service.receive(snapshot, ReceiveRequest(line_id="id-0001", quantity=5))
        assert result.snapshot.parts["p-1"].avg_cost == Decimal("10.00")
