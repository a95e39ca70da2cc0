"""
Shop Order Engine: Mutation Service
=====================================
Line-item mutations for sales, work and purchase orders.

Every operation takes an OrderSnapshot and returns an OperationResult:
    success=True  → result.snapshot is the new state (lines, parts,
                    receiving entries and recomputed totals)
    success=False → result.snapshot is the input, untouched

RULES (NON-NEGOTIABLE):
- Validate everything first, then apply (all-or-nothing)
- Expected failures are rejections, never exceptions
- Totals are recomputed after every successful mutation
- Sales / work lines move inventory; purchase lines only move it on receipt
- Prices and costs are snapshotted when a line is added, never re-derived
- Time and ids come from the injected clock and id factory
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.commands.outcomes import OperationResult
from core.commands.rejection import RejectionReason
from core.config import ShopSettings
from core.identity import IdFactory
from core.primitives.money import ZERO, round_currency, to_decimal
from core.primitives.orders import (
    LaborLine,
    OrderKind,
    OrderLine,
    OrderSnapshot,
    OrderStatus,
    ReceivingEntry,
)
from core.primitives.part import Part
from core.time import Clock
from engines.orders.commands import (
    ORDER_CLOSE,
    ORDER_INVOICE,
    ORDER_LABOR_ADD,
    ORDER_LABOR_REMOVE,
    ORDER_LABOR_TOGGLE_WARRANTY,
    ORDER_LABOR_UPDATE,
    ORDER_LINE_ADD,
    ORDER_LINE_RECEIVE,
    ORDER_LINE_REMOVE,
    ORDER_LINE_TOGGLE_CORE_RETURNED,
    ORDER_LINE_TOGGLE_WARRANTY,
    ORDER_LINE_UPDATE_QUANTITY,
    ORDER_START_WORK,
    ORDER_UPDATE_NOTES,
    AddLaborLineRequest,
    AddLineRequest,
    ReceiveRequest,
    UpdateLaborLineRequest,
)
from engines.orders.policies import (
    description_required_policy,
    first_rejection,
    labor_line_must_exist_policy,
    line_must_exist_policy,
    non_negative_quantity_policy,
    not_below_received_policy,
    order_kind_policy,
    order_not_locked_policy,
    parse_number,
    part_must_be_active_policy,
    part_must_exist_policy,
    positive_hours_policy,
    positive_quantity_policy,
    receipt_within_ordered_policy,
    received_line_removal_policy,
    status_transition_policy,
    unit_cost_policy,
)
from engines.orders.totals import recalculate_totals
from engines.pricing import get_cost_basis

logger = logging.getLogger("shop.orders")

SELLING_KINDS = (OrderKind.SALES, OrderKind.WORK)


def weighted_average_cost(part: Part, quantity: int, unit_cost: Decimal) -> Decimal:
    """
    Average cost after receiving `quantity` at `unit_cost`.

    The prior cost is the part's cost basis (first positive of avg_cost,
    last_cost, cost). Backordered (negative) stock carries no value; with
    nothing of value on hand, or no prior cost, the receipt cost becomes
    the average.
    """
    on_hand = max(part.quantity_on_hand, 0)
    prior = get_cost_basis(part).basis
    if on_hand == 0 or prior is None:
        return round_currency(unit_cost)
    return round_currency((prior * on_hand + unit_cost * quantity) / (on_hand + quantity))


class OrderMutationService:
    """
    Snapshot-in / snapshot-out order mutations.

    Holds no order state between calls; the caller persists the
    snapshot that comes back and serialises writers per order.
    """

    def __init__(
        self,
        *,
        clock: Clock,
        id_factory: IdFactory,
        shop_settings: Optional[ShopSettings] = None,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._shop_settings = shop_settings or ShopSettings()

    @property
    def shop_settings(self) -> ShopSettings:
        return self._shop_settings

    # ── Result helpers ────────────────────────────────────────

    def _reject(
        self, snapshot: OrderSnapshot, command_type: str, reason: RejectionReason,
    ) -> OperationResult:
        logger.info(
            f"Order {snapshot.order.id} {command_type} REJECTED: "
            f"{reason.code} ({reason.policy_name})"
        )
        return OperationResult.rejected(snapshot, reason)

    def _commit(
        self, snapshot: OrderSnapshot, command_type: str, now: datetime,
    ) -> OperationResult:
        order = recalculate_totals(
            replace(snapshot.order, updated_at=now),
            snapshot.lines,
            snapshot.labor_lines,
        )
        logger.debug(f"Order {order.id} {command_type} applied, total {order.total}")
        return OperationResult.ok(replace(snapshot, order=order))

    # ══════════════════════════════════════════════════════════
    # PART LINES
    # ══════════════════════════════════════════════════════════

    def add_line(self, snapshot: OrderSnapshot, request: AddLineRequest) -> OperationResult:
        """
        Sales / work: take stock (on-hand may go negative) and snapshot
        price, cost basis and core charge. An active non-warranty line for
        the same part absorbs the quantity and keeps its original prices.
        Purchase: append an ordered line with its unit cost; no stock moves.
        """
        order = snapshot.order
        reason = first_rejection((
            lambda: order_not_locked_policy(order),
            lambda: positive_quantity_policy(request.quantity),
            lambda: unit_cost_policy(request.unit_cost) if order.is_purchase else None,
            lambda: part_must_be_active_policy(snapshot, request.part_id),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LINE_ADD, reason)

        now = self._clock.now_utc()
        part = snapshot.get_part(request.part_id)
        quantity = request.quantity

        if order.is_purchase:
            if request.unit_cost is not None:
                unit_cost = to_decimal(request.unit_cost)
            else:
                unit_cost = part.cost if part.cost is not None else ZERO
            line = OrderLine(
                id=self._id_factory(),
                order_id=order.id,
                part_id=part.id,
                quantity=quantity,
                unit_cost=unit_cost,
                description=request.description or part.description,
                created_at=now,
                updated_at=now,
            )
            return self._commit(snapshot.with_line(line), ORDER_LINE_ADD, now)

        existing = next(
            (
                l for l in snapshot.active_lines
                if l.part_id == part.id and not l.is_warranty
            ),
            None,
        )
        if existing is not None:
            line = replace(existing, quantity=existing.quantity + quantity, updated_at=now)
        else:
            basis = get_cost_basis(part).basis
            line = OrderLine(
                id=self._id_factory(),
                order_id=order.id,
                part_id=part.id,
                quantity=quantity,
                unit_price=part.selling_price,
                unit_cost=basis if basis is not None else ZERO,
                core_charge=part.core_charge_amount if part.core_required else ZERO,
                description=request.description or part.description,
                created_at=now,
                updated_at=now,
            )

        updated = snapshot.with_line(line).with_part(part.adjust_on_hand(-quantity, now))
        return self._commit(updated, ORDER_LINE_ADD, now)

    def update_line_quantity(
        self, snapshot: OrderSnapshot, line_id: str, new_quantity: int,
    ) -> OperationResult:
        order = snapshot.order
        line = snapshot.find_line(line_id)
        reason = first_rejection((
            lambda: order_not_locked_policy(order),
            lambda: line_must_exist_policy(line, line_id),
            lambda: non_negative_quantity_policy(new_quantity),
            lambda: (
                not_below_received_policy(line, new_quantity) if order.is_purchase
                else part_must_exist_policy(snapshot, line.part_id)
            ),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LINE_UPDATE_QUANTITY, reason)

        now = self._clock.now_utc()
        updated = snapshot.with_line(replace(line, quantity=new_quantity, updated_at=now))
        if not order.is_purchase:
            delta = new_quantity - line.quantity
            part = snapshot.get_part(line.part_id)
            updated = updated.with_part(part.adjust_on_hand(-delta, now))
        return self._commit(updated, ORDER_LINE_UPDATE_QUANTITY, now)

    def remove_line(self, snapshot: OrderSnapshot, line_id: str) -> OperationResult:
        order = snapshot.order
        line = snapshot.find_line(line_id)
        reason = first_rejection((
            lambda: order_not_locked_policy(order),
            lambda: line_must_exist_policy(line, line_id),
            lambda: (
                received_line_removal_policy(line) if order.is_purchase
                else part_must_exist_policy(snapshot, line.part_id)
            ),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LINE_REMOVE, reason)

        now = self._clock.now_utc()
        updated = snapshot.without_line(line.id)
        if not order.is_purchase:
            part = snapshot.get_part(line.part_id)
            updated = updated.with_part(part.adjust_on_hand(line.quantity, now))
        return self._commit(updated, ORDER_LINE_REMOVE, now)

    def _toggle_line_flag(
        self, snapshot: OrderSnapshot, line_id: str, flag: str, command_type: str,
    ) -> OperationResult:
        line = snapshot.find_line(line_id)
        reason = first_rejection((
            lambda: order_not_locked_policy(snapshot.order),
            lambda: line_must_exist_policy(line, line_id),
        ))
        if reason is not None:
            return self._reject(snapshot, command_type, reason)

        now = self._clock.now_utc()
        flipped = replace(line, **{flag: not getattr(line, flag)}, updated_at=now)
        return self._commit(snapshot.with_line(flipped), command_type, now)

    def toggle_warranty(self, snapshot: OrderSnapshot, line_id: str) -> OperationResult:
        """Warranty lines bill zero. No inventory effect."""
        return self._toggle_line_flag(
            snapshot, line_id, "is_warranty", ORDER_LINE_TOGGLE_WARRANTY,
        )

    def toggle_core_returned(self, snapshot: OrderSnapshot, line_id: str) -> OperationResult:
        """A returned core is no longer charged. No inventory effect."""
        return self._toggle_line_flag(
            snapshot, line_id, "core_returned", ORDER_LINE_TOGGLE_CORE_RETURNED,
        )

    # ══════════════════════════════════════════════════════════
    # RECEIVING (purchase orders)
    # ══════════════════════════════════════════════════════════

    def receive(self, snapshot: OrderSnapshot, request: ReceiveRequest) -> OperationResult:
        """
        Receive stock against a purchase line.

        Moves received_quantity and on-hand, sets the part's last_cost,
        folds the receipt into avg_cost and appends a ReceivingEntry.
        """
        order = snapshot.order
        line = snapshot.find_line(request.line_id)
        reason = first_rejection((
            lambda: order_kind_policy(order, OrderKind.PURCHASE, action="receive stock"),
            lambda: order_not_locked_policy(order),
            lambda: positive_quantity_policy(request.quantity),
            lambda: unit_cost_policy(request.unit_cost),
            lambda: line_must_exist_policy(line, request.line_id),
            lambda: receipt_within_ordered_policy(line, request.quantity),
            lambda: part_must_exist_policy(snapshot, line.part_id),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LINE_RECEIVE, reason)

        now = self._clock.now_utc()
        quantity = request.quantity
        unit_cost = (
            to_decimal(request.unit_cost) if request.unit_cost is not None
            else line.unit_cost
        )
        part = snapshot.get_part(line.part_id)
        received_part = replace(
            part.adjust_on_hand(quantity, now),
            last_cost=unit_cost,
            avg_cost=weighted_average_cost(part, quantity, unit_cost),
        )
        entry = ReceivingEntry(
            id=self._id_factory(),
            vendor_id=order.vendor_id,
            order_id=order.id,
            line_id=line.id,
            part_id=part.id,
            quantity=quantity,
            unit_cost=unit_cost,
            received_at=now,
            notes=request.notes,
        )
        updated = replace(
            snapshot.with_line(
                replace(line, received_quantity=line.received_quantity + quantity, updated_at=now)
            ).with_part(received_part),
            receiving=snapshot.receiving + (entry,),
        )
        return self._commit(updated, ORDER_LINE_RECEIVE, now)

    # ══════════════════════════════════════════════════════════
    # LABOR LINES (work orders)
    # ══════════════════════════════════════════════════════════

    def add_labor_line(
        self, snapshot: OrderSnapshot, request: AddLaborLineRequest,
    ) -> OperationResult:
        """The shop labor rate in effect now is snapshotted onto the line."""
        order = snapshot.order
        reason = first_rejection((
            lambda: order_kind_policy(order, OrderKind.WORK, action="add labor"),
            lambda: order_not_locked_policy(order),
            lambda: description_required_policy(request.description),
            lambda: positive_hours_policy(request.hours),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LABOR_ADD, reason)

        now = self._clock.now_utc()
        line = LaborLine(
            id=self._id_factory(),
            order_id=order.id,
            description=request.description.strip(),
            hours=parse_number(request.hours),
            rate=self._shop_settings.default_labor_rate,
            technician_id=request.technician_id,
            created_at=now,
            updated_at=now,
        )
        return self._commit(snapshot.with_labor_line(line), ORDER_LABOR_ADD, now)

    def update_labor_line(
        self, snapshot: OrderSnapshot, request: UpdateLaborLineRequest,
    ) -> OperationResult:
        """The snapshotted rate is kept."""
        order = snapshot.order
        line = snapshot.find_labor_line(request.line_id)
        reason = first_rejection((
            lambda: order_not_locked_policy(order),
            lambda: labor_line_must_exist_policy(line, request.line_id),
            lambda: (
                description_required_policy(request.description)
                if request.description is not None else None
            ),
            lambda: (
                positive_hours_policy(request.hours)
                if request.hours is not None else None
            ),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LABOR_UPDATE, reason)

        now = self._clock.now_utc()
        changes = {"updated_at": now}
        if request.description is not None:
            changes["description"] = request.description.strip()
        if request.hours is not None:
            changes["hours"] = parse_number(request.hours)
        if request.technician_id is not None:
            changes["technician_id"] = request.technician_id
        return self._commit(
            snapshot.with_labor_line(replace(line, **changes)), ORDER_LABOR_UPDATE, now,
        )

    def remove_labor_line(self, snapshot: OrderSnapshot, line_id: str) -> OperationResult:
        line = snapshot.find_labor_line(line_id)
        reason = first_rejection((
            lambda: order_not_locked_policy(snapshot.order),
            lambda: labor_line_must_exist_policy(line, line_id),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LABOR_REMOVE, reason)

        now = self._clock.now_utc()
        return self._commit(snapshot.without_labor_line(line.id), ORDER_LABOR_REMOVE, now)

    def toggle_labor_warranty(self, snapshot: OrderSnapshot, line_id: str) -> OperationResult:
        line = snapshot.find_labor_line(line_id)
        reason = first_rejection((
            lambda: order_not_locked_policy(snapshot.order),
            lambda: labor_line_must_exist_policy(line, line_id),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_LABOR_TOGGLE_WARRANTY, reason)

        now = self._clock.now_utc()
        flipped = replace(line, is_warranty=not line.is_warranty, updated_at=now)
        return self._commit(
            snapshot.with_labor_line(flipped), ORDER_LABOR_TOGGLE_WARRANTY, now,
        )

    # ══════════════════════════════════════════════════════════
    # ORDER LIFECYCLE
    # ══════════════════════════════════════════════════════════

    def invoice(self, snapshot: OrderSnapshot) -> OperationResult:
        """Sales / work order → INVOICED. Locks the order."""
        order = snapshot.order
        reason = first_rejection((
            lambda: order_kind_policy(order, *SELLING_KINDS, action="invoice"),
            lambda: order_not_locked_policy(order),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_INVOICE, reason)

        now = self._clock.now_utc()
        invoiced = replace(order, status=OrderStatus.INVOICED, invoiced_at=now)
        logger.info(f"Order {order.id} INVOICED")
        return self._commit(replace(snapshot, order=invoiced), ORDER_INVOICE, now)

    def close(self, snapshot: OrderSnapshot) -> OperationResult:
        """Purchase order → CLOSED. Locks the order."""
        order = snapshot.order
        reason = first_rejection((
            lambda: order_kind_policy(order, OrderKind.PURCHASE, action="close"),
            lambda: order_not_locked_policy(order),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_CLOSE, reason)

        now = self._clock.now_utc()
        closed = replace(order, status=OrderStatus.CLOSED)
        logger.info(f"Order {order.id} CLOSED")
        return self._commit(replace(snapshot, order=closed), ORDER_CLOSE, now)

    def start_work(self, snapshot: OrderSnapshot) -> OperationResult:
        """Work order OPEN → IN_PROGRESS."""
        order = snapshot.order
        reason = first_rejection((
            lambda: order_kind_policy(order, OrderKind.WORK, action="start work"),
            lambda: order_not_locked_policy(order),
            lambda: status_transition_policy(
                order, OrderStatus.OPEN, OrderStatus.IN_PROGRESS,
            ),
        ))
        if reason is not None:
            return self._reject(snapshot, ORDER_START_WORK, reason)

        now = self._clock.now_utc()
        started = replace(order, status=OrderStatus.IN_PROGRESS)
        return self._commit(replace(snapshot, order=started), ORDER_START_WORK, now)

    def update_notes(self, snapshot: OrderSnapshot, notes: Optional[str]) -> OperationResult:
        """Notes stay editable on terminal orders."""
        now = self._clock.now_utc()
        noted = replace(snapshot.order, notes=notes)
        return self._commit(replace(snapshot, order=noted), ORDER_UPDATE_NOTES, now)

    def recalculate(self, snapshot: OrderSnapshot) -> OperationResult:
        """Recompute totals only; nothing else (not even updated_at) changes."""
        order = recalculate_totals(snapshot.order, snapshot.lines, snapshot.labor_lines)
        return OperationResult.ok(replace(snapshot, order=order))
