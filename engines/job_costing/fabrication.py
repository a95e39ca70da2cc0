"""
Shop Job Costing Engine: Press Brake and Welding
==================================================
Machine time, consumables, labor and overhead for fabrication lines.

RULES (NON-NEGOTIABLE):
- Pure function of (lines, config); missing inputs warn, never abort
- machine_minutes, consumables_cost and labor_cost honour their
  override flags; overhead and sell price are always recomputed
- Per-job costs (tooling, tonnage, setup) are spread over max(qty, 1)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from core.config import FabricationSettings
from core.primitives.jobs import FabJobLine, FabOperation, WeldProcess
from core.primitives.money import SIXTY, ZERO, apply_markup, round_currency, to_decimal
from engines.job_costing.plasma import CostingWarning, CostingWarningCode

logger = logging.getLogger("shop.job_costing")

FabConfigInput = Union[FabricationSettings, Mapping[str, Any], None]


@dataclass(frozen=True)
class FabCostingResult:
    lines: Tuple[FabJobLine, ...]
    warnings: Tuple[CostingWarning, ...] = ()


def _missing_inputs_warning(
    label: str, position: int, line: FabJobLine, missing: List[str],
) -> CostingWarning:
    return CostingWarning(
        code=CostingWarningCode.MISSING_INPUTS,
        message=(
            f"{label} line {position}: needs {', '.join(missing)} to calculate "
            f"pricing (or override machine minutes)."
        ),
        line_id=line.id,
    )


def _sell_prices(
    raw_total: Decimal, qty: Decimal, markup_percent: Decimal,
) -> Tuple[Decimal, Decimal]:
    base_each = raw_total / qty if qty > ZERO else raw_total
    each = round_currency(apply_markup(base_each, markup_percent))
    return each, round_currency(each * qty)


# ── Press brake ───────────────────────────────────────────────

def _cost_press_brake(
    line: FabJobLine, position: int, config: FabricationSettings,
) -> Tuple[FabJobLine, List[CostingWarning]]:
    rates = config.press_brake
    warnings: List[CostingWarning] = []

    missing = []
    if line.bends_count is None:
        missing.append("bends count")
    if line.bend_length is None:
        missing.append("bend length (in)")
    if missing:
        warnings.append(_missing_inputs_warning("PRESS_BRAKE", position, line, missing))

    qty = to_decimal(line.qty or 0)
    runs = max(qty, Decimal(1))
    setup_minutes = line.setup_minutes if line.setup_minutes is not None else rates.setup_minutes
    bends = to_decimal(line.bends_count or 0)
    bend_length = line.bend_length if line.bend_length is not None else ZERO

    bend_minutes = bends * rates.seconds_per_bend / SIXTY
    travel_minutes = (
        bend_length / rates.inches_per_minute if rates.inches_per_minute > ZERO else ZERO
    )

    derived_minutes: Optional[Decimal] = None
    if line.override_machine_minutes:
        machine_minutes = line.machine_minutes if line.machine_minutes is not None else ZERO
    else:
        derived_minutes = setup_minutes + (bend_minutes + travel_minutes) * runs
        machine_minutes = derived_minutes

    if line.override_consumables_cost:
        consumables_cost = line.consumables_cost if line.consumables_cost is not None else ZERO
    else:
        consumables_cost = round_currency(
            bends * rates.consumables_per_bend * runs
            + rates.tooling_cost_per_job
            + rates.tonnage_cost_per_job
        )

    if line.override_labor_cost:
        labor_cost = line.labor_cost if line.labor_cost is not None else ZERO
    else:
        labor_cost = round_currency(machine_minutes * rates.labor_rate_per_hour / SIXTY)
    overhead_cost = round_currency(machine_minutes * rates.overhead_rate_per_hour / SIXTY)

    each, total = _sell_prices(
        consumables_cost + labor_cost + overhead_cost, qty, rates.markup_percent,
    )
    updated = replace(
        line,
        setup_minutes=setup_minutes,
        machine_minutes=machine_minutes,
        derived_machine_minutes=derived_minutes,
        consumables_cost=consumables_cost,
        labor_cost=labor_cost,
        overhead_cost=overhead_cost,
        sell_price_each=each,
        sell_price_total=total,
        calc_version=config.calc_version,
    )
    return updated, warnings


# ── Welding ───────────────────────────────────────────────────

def _cost_weld(
    line: FabJobLine, position: int, config: FabricationSettings,
) -> Tuple[FabJobLine, List[CostingWarning]]:
    rates = config.welding

    missing = []
    if line.weld_length is None:
        missing.append("weld length (in)")
    if line.weld_process is None:
        missing.append("weld process")

    process = (line.weld_process or WeldProcess.MIG).value
    qty = to_decimal(line.qty or 0)
    runs = max(qty, Decimal(1))
    setup_minutes = line.setup_minutes if line.setup_minutes is not None else rates.setup_minutes
    weld_length = line.weld_length if line.weld_length is not None else ZERO

    derived_minutes: Optional[Decimal] = None
    if line.override_machine_minutes:
        machine_minutes = line.machine_minutes if line.machine_minutes is not None else ZERO
    else:
        speed = rates.process_rates.get(process)
        if speed is None and "weld process" not in missing:
            missing.append("weld process")
        travel_minutes = weld_length / speed if speed is not None and speed > ZERO else ZERO
        derived_minutes = setup_minutes + travel_minutes * runs
        machine_minutes = derived_minutes

    if line.override_consumables_cost:
        consumables_cost = line.consumables_cost if line.consumables_cost is not None else ZERO
    else:
        per_inch = rates.consumables_per_inch.get(process, ZERO)
        consumables_cost = round_currency(weld_length * per_inch * runs)

    if line.override_labor_cost:
        labor_cost = line.labor_cost if line.labor_cost is not None else ZERO
    else:
        labor_cost = round_currency(machine_minutes * rates.labor_rate_per_hour / SIXTY)
    overhead_cost = round_currency(machine_minutes * rates.overhead_rate_per_hour / SIXTY)

    each, total = _sell_prices(
        consumables_cost + labor_cost + overhead_cost, qty, rates.markup_percent,
    )

    warnings: List[CostingWarning] = []
    if missing:
        warnings.append(_missing_inputs_warning("WELD", position, line, missing))

    updated = replace(
        line,
        setup_minutes=setup_minutes,
        machine_minutes=machine_minutes,
        derived_machine_minutes=derived_minutes,
        consumables_cost=consumables_cost,
        labor_cost=labor_cost,
        overhead_cost=overhead_cost,
        sell_price_each=each,
        sell_price_total=total,
        calc_version=config.calc_version,
    )
    return updated, warnings


_COSTERS = {
    FabOperation.PRESS_BRAKE: _cost_press_brake,
    FabOperation.WELD: _cost_weld,
}


def calculate_fab_job(
    lines: Sequence[FabJobLine], config: FabConfigInput = None,
) -> FabCostingResult:
    """Cost every press-brake and weld line of a fabrication job."""
    if isinstance(config, FabricationSettings):
        settings = config
    else:
        settings = FabricationSettings.from_mapping(config)

    costed: List[FabJobLine] = []
    warnings: List[CostingWarning] = []
    for position, line in enumerate(lines, start=1):
        updated, line_warnings = _COSTERS[line.operation_type](line, position, settings)
        costed.append(updated)
        warnings.extend(line_warnings)

    for warning in warnings:
        logger.debug(f"Fabrication costing: {warning.message}")

    return FabCostingResult(lines=tuple(costed), warnings=tuple(warnings))
