"""
Shop Order Engine — Line Mutation, Labor and Lifecycle Tests
==============================================================
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.commands.rejection import ReasonCode
from core.config import ShopSettings
from core.identity import SequentialIds
from core.primitives import Order, OrderKind, OrderSnapshot, OrderStatus, Part
from core.time import FixedClock
from engines.orders import (
    AddLaborLineRequest,
    AddLineRequest,
    OrderMutationService,
    UpdateLaborLineRequest,
)

NOW = datetime(2026, 2, 20, 12, 0, 0, tzinfo=timezone.utc)


def _service(**kwargs) -> OrderMutationService:
    return OrderMutationService(
        clock=FixedClock(NOW), id_factory=SequentialIds("line"), **kwargs,
    )


def _filter() -> Part:
    return Part(
        id="p-1", part_number="FLT-100", description="Oil filter",
        cost=10, avg_cost=12, selling_price=25, quantity_on_hand=10,
    )


def _alternator() -> Part:
    return Part(
        id="p-2", part_number="ALT-200", cost=60, selling_price=100,
        quantity_on_hand=1, core_required=True, core_charge_amount=15,
    )


def _snapshot(kind=OrderKind.SALES, status=OrderStatus.OPEN, tax="0", parts=None) -> OrderSnapshot:
    order = Order(id="o-1", kind=kind, status=status, tax_rate_percent=Decimal(tax))
    parts = parts if parts is not None else [_filter(), _alternator()]
    return OrderSnapshot(order=order, parts={p.id: p for p in parts})


def _with_line(service, snapshot, part_id="p-1", quantity=3):
    result = service.add_line(snapshot, AddLineRequest(part_id=part_id, quantity=quantity))
    assert result.success, result.error
    return result.snapshot


# ══════════════════════════════════════════════════════════════
# ADD / REMOVE
# ══════════════════════════════════════════════════════════════

class TestAddLine:
    def test_add_snapshots_price_and_takes_stock(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())

        line = snapshot.lines[0]
        assert line.id == "line-0001"
        assert line.quantity == 3
        assert line.unit_price == Decimal("25")
        assert line.unit_cost == Decimal("12")
        assert line.description == "Oil filter"
        assert snapshot.parts["p-1"].quantity_on_hand == 7
        assert snapshot.order.parts_subtotal == Decimal("75.00")
        assert snapshot.order.total == Decimal("75.00")
        assert snapshot.order.updated_at == NOW

    def test_add_then_remove_restores_on_hand(self):
        service = _service()
        added = _with_line(service, _snapshot())

        result = service.remove_line(added, "line-0001")

        assert result.success
        assert result.snapshot.lines == ()
        assert result.snapshot.parts["p-1"].quantity_on_hand == 10
        assert result.snapshot.order.total == Decimal("0")

    def test_same_part_merges_into_existing_line(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())
        snapshot = snapshot.with_part(replace(snapshot.parts["p-1"], selling_price=Decimal("30")))

        snapshot = _with_line(service, snapshot, quantity=2)

        assert len(snapshot.lines) == 1
        assert snapshot.lines[0].quantity == 5
        assert snapshot.lines[0].unit_price == Decimal("25")
        assert snapshot.parts["p-1"].quantity_on_hand == 5

    def test_warranty_line_does_not_absorb(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())
        snapshot = service.toggle_warranty(snapshot, "line-0001").snapshot

        snapshot = _with_line(service, snapshot, quantity=1)

        assert [l.id for l in snapshot.lines] == ["line-0001", "line-0002"]

    def test_on_hand_may_go_negative(self):
        snapshot = _with_line(_service(), _snapshot(), part_id="p-2", quantity=3)
        assert snapshot.parts["p-2"].quantity_on_hand == -2
        assert snapshot.parts["p-2"].is_backordered

    def test_core_charge_snapshotted(self):
        snapshot = _with_line(_service(), _snapshot(), part_id="p-2", quantity=2)
        assert snapshot.lines[0].core_charge == Decimal("15")
        assert snapshot.order.core_charges_total == Decimal("30.00")
        assert snapshot.order.total == Decimal("230.00")

    def test_input_snapshot_untouched(self):
        original = _snapshot()
        _with_line(_service(), original)
        assert original.lines == ()
        assert original.parts["p-1"].quantity_on_hand == 10

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_invalid_quantity(self, quantity):
        result = _service().add_line(_snapshot(), AddLineRequest(part_id="p-1", quantity=quantity))
        assert result.error_code == ReasonCode.INVALID_QUANTITY

    def test_unknown_part(self):
        result = _service().add_line(_snapshot(), AddLineRequest(part_id="nope", quantity=1))
        assert result.error_code == ReasonCode.PART_NOT_FOUND

    def test_inactive_part(self):
        snapshot = _snapshot(parts=[_filter().deactivate(NOW)])
        result = _service().add_line(snapshot, AddLineRequest(part_id="p-1", quantity=1))
        assert result.error_code == ReasonCode.PART_INACTIVE
        assert result.snapshot is snapshot


class TestUpdateAndRemove:
    def test_update_quantity_moves_difference(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())

        result = service.update_line_quantity(snapshot, "line-0001", 5)

        assert result.success
        assert result.snapshot.lines[0].quantity == 5
        assert result.snapshot.parts["p-1"].quantity_on_hand == 5
        assert result.snapshot.order.total == Decimal("125.00")

    def test_update_to_zero_returns_all_stock(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())
        result = service.update_line_quantity(snapshot, "line-0001", 0)
        assert result.snapshot.parts["p-1"].quantity_on_hand == 10
        assert result.snapshot.order.total == Decimal("0.00")

    def test_negative_quantity_rejected(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())
        result = service.update_line_quantity(snapshot, "line-0001", -1)
        assert result.error_code == ReasonCode.INVALID_QUANTITY

    def test_unknown_line(self):
        service = _service()
        assert service.update_line_quantity(_snapshot(), "x", 1).error_code == ReasonCode.LINE_NOT_FOUND
        assert service.remove_line(_snapshot(), "x").error_code == ReasonCode.LINE_NOT_FOUND

    def test_missing_part_blocks_inventory_move(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())
        orphaned = replace(snapshot, parts={})
        result = service.remove_line(orphaned, "line-0001")
        assert result.error_code == ReasonCode.PART_NOT_FOUND


# ══════════════════════════════════════════════════════════════
# LOCKING / TOTALS
# ══════════════════════════════════════════════════════════════

class TestLockedOrders:
    def test_invoiced_order_refuses_line_changes(self):
        service = _service()
        snapshot = _with_line(service, _snapshot())
        invoiced = service.invoice(snapshot).snapshot
        assert invoiced.order.status == OrderStatus.INVOICED
        assert invoiced.order.invoiced_at == NOW

        result = service.add_line(invoiced, AddLineRequest(part_id="p-1", quantity=1))

        assert not result.success
        assert result.error_code == ReasonCode.ORDER_LOCKED
        assert result.is_invariant_violation
        assert result.snapshot is invoiced
        assert result.snapshot.order.total == Decimal("75.00")
        assert result.to_dict()["success"] is False

    @pytest.mark.parametrize("operation", [
        lambda s, snap: s.update_line_quantity(snap, "line-0001", 1),
        lambda s, snap: s.remove_line(snap, "line-0001"),
        lambda s, snap: s.toggle_warranty(snap, "line-0001"),
        lambda s, snap: s.toggle_core_returned(snap, "line-0001"),
        lambda s, snap: s.invoice(snap),
    ])
    def test_every_line_operation_locked(self, operation):
        service = _service()
        invoiced = service.invoice(_with_line(service, _snapshot())).snapshot
        assert operation(service, invoiced).error_code == ReasonCode.ORDER_LOCKED

    def test_notes_editable_after_invoice(self):
        service = _service()
        invoiced = service.invoice(_snapshot()).snapshot
        result = service.update_notes(invoiced, "Paid cash")
        assert result.success
        assert result.snapshot.order.notes == "Paid cash"


class TestTotals:
    def test_tax_on_subtotal(self):
        service = _service()
        snapshot = _with_line(service, _snapshot(tax="8.25"), quantity=2)
        order = snapshot.order
        assert order.subtotal == Decimal("50.00")
        assert order.tax_amount == Decimal("4.13")
        assert order.total == Decimal("54.13")

    def test_warranty_line_bills_nothing(self):
        service = _service()
        snapshot = _with_line(service, _snapshot(), part_id="p-2", quantity=1)
        result = service.toggle_warranty(snapshot, "line-0001")
        assert result.snapshot.lines[0].is_warranty
        assert result.snapshot.order.total == Decimal("0")
        assert result.snapshot.parts["p-2"].quantity_on_hand == 0

    def test_core_returned_drops_core_charge(self):
        service = _service()
        snapshot = _with_line(service, _snapshot(), part_id="p-2", quantity=1)
        result = service.toggle_core_returned(snapshot, "line-0001")
        assert result.snapshot.order.core_charges_total == Decimal("0")
        assert result.snapshot.order.total == Decimal("100.00")

        again = service.toggle_core_returned(result.snapshot, "line-0001")
        assert again.snapshot.order.core_charges_total == Decimal("15.00")

    def test_recalculate_leaves_updated_at(self):
        snapshot = _with_line(_service(), _snapshot())
        later = OrderMutationService(
            clock=FixedClock(NOW + timedelta(hours=1)), id_factory=SequentialIds(),
        )
        stale = replace(snapshot, order=replace(snapshot.order, total=Decimal("1")))

        result = later.recalculate(stale)

        assert result.snapshot.order.total == Decimal("75.00")
        assert result.snapshot.order.updated_at == NOW
        assert later.recalculate(result.snapshot).snapshot == result.snapshot


# ══════════════════════════════════════════════════════════════
# LABOR / WORK ORDER LIFECYCLE
# ══════════════════════════════════════════════════════════════

class TestLaborLines:
    def test_add_labor_snapshots_shop_rate(self):
        result = _service().add_labor_line(
            _snapshot(OrderKind.WORK), AddLaborLineRequest(description=" Diagnose ", hours="1.5"),
        )
        labor = result.snapshot.labor_lines[0]
        assert labor.description == "Diagnose"
        assert labor.hours == Decimal("1.5")
        assert labor.rate == Decimal("125.00")
        assert result.snapshot.order.labor_subtotal == Decimal("187.50")

    def test_custom_labor_rate(self):
        service = _service(shop_settings=ShopSettings(default_labor_rate=110))
        result = service.add_labor_line(
            _snapshot(OrderKind.WORK), AddLaborLineRequest(description="Brakes", hours=1.5),
        )
        assert result.snapshot.order.total == Decimal("165.00")

    @pytest.mark.parametrize("hours", [0, -1, "abc", None, True])
    def test_invalid_hours(self, hours):
        result = _service().add_labor_line(
            _snapshot(OrderKind.WORK), AddLaborLineRequest(description="Diagnose", hours=hours),
        )
        assert result.error_code == ReasonCode.INVALID_HOURS

    def test_description_required(self):
        result = _service().add_labor_line(
            _snapshot(OrderKind.WORK), AddLaborLineRequest(description="  ", hours=1),
        )
        assert result.error_code == ReasonCode.MISSING_FIELD

    def test_labor_only_on_work_orders(self):
        result = _service().add_labor_line(
            _snapshot(OrderKind.SALES), AddLaborLineRequest(description="Diagnose", hours=1),
        )
        assert result.error_code == ReasonCode.INVALID_ORDER_KIND

    def test_update_toggle_remove(self):
        service = _service()
        snapshot = service.add_labor_line(
            _snapshot(OrderKind.WORK), AddLaborLineRequest(description="Diagnose", hours=1),
        ).snapshot

        snapshot = service.update_labor_line(
            snapshot, UpdateLaborLineRequest(line_id="line-0001", hours=2, technician_id="t-1"),
        ).snapshot
        assert snapshot.labor_lines[0].technician_id == "t-1"
        assert snapshot.labor_lines[0].description == "Diagnose"
        assert snapshot.order.labor_subtotal == Decimal("250.00")

        snapshot = service.toggle_labor_warranty(snapshot, "line-0001").snapshot
        assert snapshot.order.total == Decimal("0")

        snapshot = service.remove_labor_line(snapshot, "line-0001").snapshot
        assert snapshot.labor_lines == ()

    def test_update_unknown_labor_line(self):
        result = _service().update_labor_line(
            _snapshot(OrderKind.WORK), UpdateLaborLineRequest(line_id="x", hours=1),
        )
        assert result.error_code == ReasonCode.LINE_NOT_FOUND

    def test_parts_and_labor_combine(self):
        service = _service()
        snapshot = _with_line(service, _snapshot(OrderKind.WORK, tax="10"), quantity=2)
        snapshot = service.add_labor_line(
            snapshot, AddLaborLineRequest(description="Install", hours=1),
        ).snapshot
        order = snapshot.order
        assert order.parts_subtotal == Decimal("50.00")
        assert order.labor_subtotal == Decimal("125.00")
        assert order.tax_amount == Decimal("17.50")
        assert order.total == Decimal("192.50")


class TestLifecycle:
    def test_start_work(self):
        service = _service()
        result = service.start_work(_snapshot(OrderKind.WORK))
        assert result.snapshot.order.status == OrderStatus.IN_PROGRESS

        again = service.start_work(result.snapshot)
        assert again.error_code == ReasonCode.INVALID_STATUS_TRANSITION

    def test_start_work_only_on_work_orders(self):
        assert _service().start_work(_snapshot()).error_code == ReasonCode.INVALID_ORDER_KIND

    def test_invoice_in_progress_work_order(self):
        service = _service()
        started = service.start_work(_snapshot(OrderKind.WORK)).snapshot
        result = service.invoice(started)
        assert result.snapshot.order.status == OrderStatus.INVOICED

    def test_invoice_and_close_respect_kind(self):
        service = _service()
        assert service.invoice(_snapshot(OrderKind.PURCHASE)).error_code == ReasonCode.INVALID_ORDER_KIND
        assert service.close(_snapshot(OrderKind.SALES)).error_code == ReasonCode.INVALID_ORDER_KIND
