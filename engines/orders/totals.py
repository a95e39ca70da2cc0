"""
Shop Order Engine: Totals
===========================
Order money fields as a pure function of the order's active lines.

RULES (NON-NEGOTIABLE):
- Warranty lines bill nothing (no extended amount, no core charge)
- Sales / work lines bill quantity × unit_price
- Purchase lines cost quantity × unit_cost
- Core charges apply to non-warranty lines whose core is not returned
- Recalculating twice gives the same order (idempotent)
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Iterable

from core.primitives.money import ZERO, apply_percent, round_currency, sum_currency
from core.primitives.orders import LaborLine, Order, OrderKind, OrderLine


def line_extended_amount(line: OrderLine, kind: OrderKind) -> Decimal:
    if line.is_warranty:
        return ZERO
    unit = line.unit_cost if kind == OrderKind.PURCHASE else line.unit_price
    return round_currency(unit * line.quantity)


def line_core_charge(line: OrderLine) -> Decimal:
    if line.is_warranty or line.core_returned:
        return ZERO
    return round_currency(line.core_charge * line.quantity)


def labor_extended_amount(line: LaborLine) -> Decimal:
    if line.is_warranty:
        return ZERO
    return round_currency(line.hours * line.rate)


def recalculate_totals(
    order: Order,
    lines: Iterable[OrderLine],
    labor_lines: Iterable[LaborLine] = (),
) -> Order:
    """
    Return `order` with every money field recomputed.

    Inactive lines and lines of other orders are ignored. Timestamps
    are left alone so the result depends on the lines only.
    """
    part_lines = [l for l in lines if l.is_active and l.order_id == order.id]
    labor = [l for l in labor_lines if l.is_active and l.order_id == order.id]

    parts_subtotal = sum_currency(line_extended_amount(l, order.kind) for l in part_lines)
    labor_subtotal = sum_currency(labor_extended_amount(l) for l in labor)
    subtotal = parts_subtotal + labor_subtotal
    core_charges_total = sum_currency(line_core_charge(l) for l in part_lines)
    tax_amount = round_currency(apply_percent(subtotal, order.tax_rate_percent))

    return replace(
        order,
        parts_subtotal=parts_subtotal,
        labor_subtotal=labor_subtotal,
        subtotal=subtotal,
        core_charges_total=core_charges_total,
        tax_amount=tax_amount,
        total=subtotal + core_charges_total + tax_amount,
    )
