"""
Shop Job Costing Engine: Plasma Cutting
=========================================
Material / consumables / labor / overhead roll-up for plasma job lines.

RULES (NON-NEGOTIABLE):
- calculate_job is a pure function of (lines, config)
- Lookup misses never abort: the line is costed with 0 for the missing
  figure and a warning is accumulated
- Override flags and sell-price overrides always win
- Every recomputed line is stamped with config.calc_version
- Re-costing a costed line reproduces the same figures

Cost model per line:
    setup      = line.setup_minutes or config.default_setup_minutes
    machine    = override ? line.machine_minutes
                          : cut_length / cut_speed + pierce_seconds × pierces / 60
    material   = round2(cut_length × material_cost_per_inch × qty)
    consumable = round2(round2(pierces × cost_per_pierce × qty) + runtime)
    labor      = round2(setup × setup_rate + machine × machine_rate)
    overhead   = round2((material + consumable + labor) × overhead % )
    sell_each  = round2((material + consumable + labor + overhead) × (1 + markup %))
    sell_total = round2(sell_each × qty)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from core.commands.rejection import ErrorKind
from core.config import JobCostingSettings
from core.primitives.jobs import PlasmaJobLine
from core.primitives.money import (
    SIXTY,
    ZERO,
    apply_markup,
    apply_percent,
    round_currency,
    sum_currency,
    to_decimal,
)

logger = logging.getLogger("shop.job_costing")

ConfigInput = Union[JobCostingSettings, Mapping[str, Any], None]


# ══════════════════════════════════════════════════════════════
# WARNINGS
# ══════════════════════════════════════════════════════════════

class CostingWarningCode:
    MISSING_MATERIAL = "MISSING_MATERIAL"
    MISSING_THICKNESS = "MISSING_THICKNESS"
    SPEED_LOOKUP_MISSING = "SPEED_LOOKUP_MISSING"
    MISSING_INPUTS = "MISSING_INPUTS"


@dataclass(frozen=True)
class CostingWarning:
    """Non-fatal lookup miss attached to one line."""
    code: str
    message: str
    line_id: Optional[str] = None
    kind: str = ErrorKind.LOOKUP_MISS

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "line_id": self.line_id}


# ══════════════════════════════════════════════════════════════
# RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class JobCostingTotals:
    material_cost: Decimal = ZERO
    consumables_cost: Decimal = ZERO
    labor_cost: Decimal = ZERO
    overhead_cost: Decimal = ZERO
    sell_price_total: Decimal = ZERO

    @property
    def cost_total(self) -> Decimal:
        return self.material_cost + self.consumables_cost + self.labor_cost + self.overhead_cost


@dataclass(frozen=True)
class JobCostingResult:
    lines: Tuple[PlasmaJobLine, ...]
    totals: JobCostingTotals
    warnings: Tuple[CostingWarning, ...] = ()

    @property
    def warning_codes(self) -> Tuple[str, ...]:
        return tuple(w.code for w in self.warnings)


def resolve_config(config: ConfigInput) -> JobCostingSettings:
    if isinstance(config, JobCostingSettings):
        return config
    return JobCostingSettings.from_mapping(config)


# ══════════════════════════════════════════════════════════════
# LINE COSTING
# ══════════════════════════════════════════════════════════════

def _hand_entered_runtime_consumable(line: PlasmaJobLine) -> Decimal:
    # Once costed, consumables_cost holds base + runtime and the entered
    # runtime figure lives in runtime_consumables_cost. A consumables_cost
    # that no longer matches that sum was edited and is the new entry.
    if (
        line.runtime_consumables_cost is not None
        and line.base_consumables_cost is not None
        and line.consumables_cost == round_currency(
            line.base_consumables_cost + line.runtime_consumables_cost
        )
    ):
        return line.runtime_consumables_cost
    return line.consumables_cost if line.consumables_cost is not None else ZERO


def cost_line(
    line: PlasmaJobLine, config: JobCostingSettings,
) -> Tuple[PlasmaJobLine, List[CostingWarning]]:
    """Cost one plasma line. Returns the updated line and its warnings."""
    warnings: List[CostingWarning] = []

    qty = to_decimal(line.qty or 0)
    cut_length = line.cut_length if line.cut_length is not None else ZERO
    pierces = to_decimal(line.pierce_count or 0)
    setup_minutes = (
        line.setup_minutes if line.setup_minutes is not None
        else config.default_setup_minutes
    )

    material = line.material_type.strip().upper() if line.material_type else None
    thickness = line.thickness

    if material is None:
        warnings.append(CostingWarning(
            code=CostingWarningCode.MISSING_MATERIAL,
            message=f"Line {line.id}: material type missing",
            line_id=line.id,
        ))
    if thickness is None:
        warnings.append(CostingWarning(
            code=CostingWarningCode.MISSING_THICKNESS,
            message=f"Line {line.id}: thickness missing",
            line_id=line.id,
        ))

    # ── Machine minutes ───────────────────────────────────────
    derived_minutes: Optional[Decimal] = None
    if not line.override_machine_minutes:
        speed = config.cut_speed(material, thickness)
        if speed is not None and speed > ZERO:
            derived_minutes = cut_length / speed if cut_length > ZERO else ZERO
        else:
            derived_minutes = ZERO
            if material is not None and thickness is not None:
                warnings.append(CostingWarning(
                    code=CostingWarningCode.SPEED_LOOKUP_MISSING,
                    message=f"Line {line.id}: no cut speed for {material} @ {thickness}",
                    line_id=line.id,
                ))

    pierce_seconds = config.pierce_time(material, thickness) or ZERO
    pierce_minutes = pierce_seconds * pierces / SIXTY if pierces > ZERO else ZERO

    if line.override_machine_minutes:
        machine_minutes = line.machine_minutes if line.machine_minutes is not None else ZERO
    else:
        machine_minutes = derived_minutes + pierce_minutes

    # ── Costs ─────────────────────────────────────────────────
    material_cost = round_currency(cut_length * config.material_cost_per_inch * qty)
    base_consumables = round_currency(pierces * config.consumable_cost_per_pierce * qty)
    if line.override_consumables_cost:
        runtime_consumable = _hand_entered_runtime_consumable(line)
    else:
        runtime_consumable = machine_minutes * config.consumables_cost_per_minute
    consumables_cost = round_currency(base_consumables + runtime_consumable)

    labor_cost = round_currency(
        setup_minutes * config.setup_rate_per_minute
        + machine_minutes * config.machine_rate_per_minute
    )
    overhead_cost = round_currency(
        apply_percent(material_cost + consumables_cost + labor_cost, config.overhead_percent)
    )
    raw_each = material_cost + consumables_cost + labor_cost + overhead_cost

    # ── Sell price ────────────────────────────────────────────
    overrides = line.overrides
    if overrides.sell_price_each is not None:
        sell_price_each = overrides.sell_price_each
    else:
        sell_price_each = round_currency(apply_markup(raw_each, config.markup_percent))
    if overrides.sell_price_total is not None:
        sell_price_total = overrides.sell_price_total
    else:
        sell_price_total = round_currency(sell_price_each * qty)

    updated = replace(
        line,
        setup_minutes=setup_minutes,
        machine_minutes=machine_minutes,
        material_cost=material_cost,
        consumables_cost=consumables_cost,
        base_consumables_cost=base_consumables,
        runtime_consumables_cost=(
            runtime_consumable if line.override_consumables_cost else None
        ),
        labor_cost=labor_cost,
        overhead_cost=overhead_cost,
        derived_machine_minutes=derived_minutes,
        sell_price_each=sell_price_each,
        sell_price_total=sell_price_total,
        calc_version=config.calc_version,
    )
    return updated, warnings


# ══════════════════════════════════════════════════════════════
# JOB COSTING
# ══════════════════════════════════════════════════════════════

def calculate_job(
    lines: Sequence[PlasmaJobLine], config: ConfigInput = None,
) -> JobCostingResult:
    """
    Cost every line of a plasma job and roll up totals.

    `config` may be a JobCostingSettings or a mapping of partial
    overrides merged onto the defaults.
    """
    settings = resolve_config(config)

    costed: List[PlasmaJobLine] = []
    warnings: List[CostingWarning] = []
    for line in lines:
        updated, line_warnings = cost_line(line, settings)
        costed.append(updated)
        warnings.extend(line_warnings)

    for warning in warnings:
        logger.debug(f"Job costing lookup miss: {warning.code} ({warning.message})")

    totals = JobCostingTotals(
        material_cost=sum_currency(l.material_cost for l in costed),
        consumables_cost=sum_currency(l.consumables_cost for l in costed),
        labor_cost=sum_currency(l.labor_cost for l in costed),
        overhead_cost=sum_currency(l.overhead_cost for l in costed),
        sell_price_total=sum_currency(l.sell_price_total for l in costed),
    )
    return JobCostingResult(lines=tuple(costed), totals=totals, warnings=tuple(warnings))


def is_stale(line: Any, config: ConfigInput = None) -> bool:
    """True when a line was never costed or was costed under another calc_version."""
    settings = resolve_config(config)
    return getattr(line, "calc_version", None) != settings.calc_version
