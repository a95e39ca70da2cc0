"""
Shop Fabrication Job Primitive: Plasma, Press Brake and Weld Lines
====================================================================
Engine: Core Primitives
Used by: Job Costing Engine.

RULES (NON-NEGOTIABLE):
- Input fields describe the work (material, thickness, lengths, counts)
- Cost / sell fields are engine-owned outputs
- The only way to pin an output is an override flag or the
  `overrides` sub-record; overrides always win
- calc_version is stamped by the engine for staleness detection

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.primitives.money import coerce_money_fields


@dataclass(frozen=True)
class LineOverrides:
    """Caller-pinned sell prices for one line."""
    sell_price_each: Optional[Decimal] = None
    sell_price_total: Optional[Decimal] = None

    def __post_init__(self):
        coerce_money_fields(self, "sell_price_each", "sell_price_total", optional=True)


_PLASMA_NUMERIC_FIELDS = (
    "thickness", "cut_length", "setup_minutes", "machine_minutes",
    "consumables_cost", "material_cost", "base_consumables_cost",
    "runtime_consumables_cost",
    "labor_cost", "overhead_cost", "derived_machine_minutes",
    "sell_price_each", "sell_price_total",
)


@dataclass(frozen=True)
class PlasmaJobLine:
    """
    One plasma-cut part on a fabrication job.

    Inputs:
        material_type, thickness (in), cut_length (in per part),
        pierce_count (per part), qty, setup_minutes (optional).
    Overrides:
        override_machine_minutes → machine_minutes is used as entered.
        override_consumables_cost → consumables_cost is the entered
            runtime consumable (kept in runtime_consumables_cost once costed;
            an edit to a costed consumables_cost is read as a new entry).
        overrides.sell_price_each / sell_price_total.
    Outputs:
        material_cost, consumables_cost, base_consumables_cost,
        runtime_consumables_cost,
        labor_cost, overhead_cost, derived_machine_minutes,
        sell_price_each, sell_price_total, calc_version.
    """

    id: str
    material_type: Optional[str] = None
    thickness: Optional[Decimal] = None
    cut_length: Optional[Decimal] = None
    pierce_count: Optional[int] = None
    qty: int = 0
    setup_minutes: Optional[Decimal] = None
    machine_minutes: Optional[Decimal] = None
    override_machine_minutes: bool = False
    consumables_cost: Optional[Decimal] = None
    override_consumables_cost: bool = False
    overrides: LineOverrides = field(default_factory=LineOverrides)
    material_cost: Optional[Decimal] = None
    base_consumables_cost: Optional[Decimal] = None
    runtime_consumables_cost: Optional[Decimal] = None
    labor_cost: Optional[Decimal] = None
    overhead_cost: Optional[Decimal] = None
    derived_machine_minutes: Optional[Decimal] = None
    sell_price_each: Optional[Decimal] = None
    sell_price_total: Optional[Decimal] = None
    calc_version: Optional[int] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if self.overrides is None:
            object.__setattr__(self, "overrides", LineOverrides())
        coerce_money_fields(self, *_PLASMA_NUMERIC_FIELDS, optional=True)


# ══════════════════════════════════════════════════════════════
# PRESS BRAKE / WELD LINES
# ══════════════════════════════════════════════════════════════

class FabOperation(Enum):
    PRESS_BRAKE = "PRESS_BRAKE"
    WELD = "WELD"


class WeldProcess(Enum):
    MIG = "MIG"
    TIG = "TIG"
    STICK = "STICK"
    FLUX = "FLUX"


_FAB_NUMERIC_FIELDS = (
    "bend_length", "weld_length", "setup_minutes", "machine_minutes",
    "consumables_cost", "labor_cost", "overhead_cost",
    "derived_machine_minutes", "sell_price_each", "sell_price_total",
)


@dataclass(frozen=True)
class FabJobLine:
    """
    One press-brake or weld operation on a fabrication job.

    machine_minutes, consumables_cost and labor_cost are engine outputs
    unless the matching override flag is set.
    """

    id: str
    operation_type: FabOperation
    qty: int = 0
    bends_count: Optional[int] = None
    bend_length: Optional[Decimal] = None
    weld_process: Optional[WeldProcess] = None
    weld_length: Optional[Decimal] = None
    setup_minutes: Optional[Decimal] = None
    machine_minutes: Optional[Decimal] = None
    override_machine_minutes: bool = False
    consumables_cost: Optional[Decimal] = None
    override_consumables_cost: bool = False
    labor_cost: Optional[Decimal] = None
    override_labor_cost: bool = False
    overhead_cost: Optional[Decimal] = None
    derived_machine_minutes: Optional[Decimal] = None
    sell_price_each: Optional[Decimal] = None
    sell_price_total: Optional[Decimal] = None
    calc_version: Optional[int] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("id must be non-empty.")
        if not isinstance(self.operation_type, FabOperation):
            object.__setattr__(self, "operation_type", FabOperation(self.operation_type))
        if self.weld_process is not None and not isinstance(self.weld_process, WeldProcess):
            object.__setattr__(self, "weld_process", WeldProcess(self.weld_process))
        coerce_money_fields(self, *_FAB_NUMERIC_FIELDS, optional=True)
