"""
Shop Job Costing Engine: Job Summaries
========================================
Read-only roll-ups over costed job lines for job headers and prints.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from core.primitives.jobs import FabJobLine, PlasmaJobLine
from core.primitives.money import ZERO, to_decimal


@dataclass(frozen=True)
class PlasmaJobMetrics:
    total_qty: int = 0
    total_cut_length: Decimal = ZERO
    total_pierces: int = 0
    total_machine_minutes: Decimal = ZERO


@dataclass(frozen=True)
class FabJobSummary:
    total_qty: int = 0
    total_machine_minutes: Decimal = ZERO
    total_setup_minutes: Decimal = ZERO
    total_sell: Decimal = ZERO
    total_cost: Decimal = ZERO


def _or_zero(value) -> Decimal:
    return ZERO if value is None else to_decimal(value)


def plasma_job_metrics(lines: Iterable[PlasmaJobLine]) -> PlasmaJobMetrics:
    """Per-job totals; per-part figures are multiplied by qty."""
    total_qty = 0
    cut_length = ZERO
    pierces = 0
    machine_minutes = ZERO
    for line in lines:
        qty = line.qty or 0
        total_qty += qty
        cut_length += _or_zero(line.cut_length) * qty
        pierces += (line.pierce_count or 0) * qty
        machine_minutes += _or_zero(line.machine_minutes) * qty
    return PlasmaJobMetrics(
        total_qty=total_qty,
        total_cut_length=cut_length,
        total_pierces=pierces,
        total_machine_minutes=machine_minutes,
    )


def summarize_fab_job(lines: Iterable[FabJobLine]) -> FabJobSummary:
    """machine_minutes on fab lines already covers every run, so no qty factor."""
    total_qty = 0
    machine_minutes = ZERO
    setup_minutes = ZERO
    sell = ZERO
    cost = ZERO
    for line in lines:
        total_qty += line.qty or 0
        machine_minutes += _or_zero(line.machine_minutes)
        setup_minutes += _or_zero(line.setup_minutes)
        sell += _or_zero(line.sell_price_total)
        cost += (
            _or_zero(line.consumables_cost)
            + _or_zero(line.labor_cost)
            + _or_zero(line.overhead_cost)
        )
    return FabJobSummary(
        total_qty=total_qty,
        total_machine_minutes=machine_minutes,
        total_setup_minutes=setup_minutes,
        total_sell=sell,
        total_cost=cost,
    )
