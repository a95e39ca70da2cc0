"""
Shop Core Config: Tenant-Configurable Rates
=============================================
Doctrine: No ambient global settings in engine logic.
Markups, labor rates and job-costing tables are explicit records
passed into every calculation. Missing fields fall back to the
documented defaults below.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Protocol

from core.primitives.money import coerce_money_fields, to_decimal


RateTable = Dict[str, Dict[Decimal, Decimal]]


def normalize_rate_table(table: Mapping[str, Mapping[Any, Any]]) -> RateTable:
    """
    material → thickness → rate, with upper-cased material keys and
    Decimal thickness keys (so 0.5, "0.5" and Decimal("0.50") all match).
    """
    return {
        str(material).upper(): {
            to_decimal(thickness): to_decimal(rate)
            for thickness, rate in by_thickness.items()
        }
        for material, by_thickness in table.items()
    }


def lookup_rate(
    table: RateTable, material: Optional[str], thickness: Any,
) -> Optional[Decimal]:
    """Two-level table lookup. None on any miss."""
    if not material or thickness is None:
        return None
    by_thickness = table.get(str(material).upper())
    if by_thickness is None:
        return None
    return by_thickness.get(to_decimal(thickness))


# ══════════════════════════════════════════════════════════════
# MARKUP / SHOP SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MarkupSettings:
    """Per-tenant markup percentage for each price level."""

    markup_retail_percent: Decimal = Decimal("60")
    markup_fleet_percent: Decimal = Decimal("40")
    markup_wholesale_percent: Decimal = Decimal("25")

    def __post_init__(self) -> None:
        coerce_money_fields(
            self, "markup_retail_percent", "markup_fleet_percent",
            "markup_wholesale_percent",
        )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> MarkupSettings:
        return _merge(cls(), data)


@dataclass(frozen=True)
class ShopSettings:
    """Order-level defaults snapshotted onto new lines and orders."""

    default_labor_rate: Decimal = Decimal("125.00")
    default_tax_rate_percent: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        coerce_money_fields(self, "default_labor_rate", "default_tax_rate_percent")

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> ShopSettings:
        return _merge(cls(), data)


# ══════════════════════════════════════════════════════════════
# PLASMA JOB COSTING SETTINGS
# ══════════════════════════════════════════════════════════════

DEFAULT_CUT_SPEEDS = {
    "STEEL": {"0.25": 140, "0.5": 90, "0.75": 60},
    "ALUMINUM": {"0.25": 200, "0.5": 140, "0.75": 100},
    "STAINLESS": {"0.25": 120, "0.5": 80, "0.75": 55},
}

DEFAULT_PIERCE_SECONDS = {
    "STEEL": {"0.25": "2.5", "0.5": "3.5", "0.75": "4.5"},
    "ALUMINUM": {"0.25": 2, "0.5": 3, "0.75": 4},
    "STAINLESS": {"0.25": 3, "0.5": 4, "0.75": 5},
}


@dataclass(frozen=True)
class JobCostingSettings:
    """
    Rates for plasma job costing.

    cut_speeds:     material → thickness → inches per minute.
    pierce_seconds: material → thickness → seconds per pierce.
    calc_version:   Stamped on every costed line.
    """

    material_cost_per_inch: Decimal = Decimal("0.90")
    consumable_cost_per_pierce: Decimal = Decimal("0.30")
    setup_rate_per_minute: Decimal = Decimal("1.75")
    machine_rate_per_minute: Decimal = Decimal("2.25")
    overhead_percent: Decimal = Decimal("12")
    markup_percent: Decimal = Decimal("25")
    consumables_cost_per_minute: Decimal = Decimal("1.20")
    default_setup_minutes: Decimal = Decimal("5")
    calc_version: int = 1
    cut_speeds: RateTable = field(default_factory=lambda: normalize_rate_table(DEFAULT_CUT_SPEEDS))
    pierce_seconds: RateTable = field(default_factory=lambda: normalize_rate_table(DEFAULT_PIERCE_SECONDS))

    def __post_init__(self) -> None:
        coerce_money_fields(
            self, "material_cost_per_inch", "consumable_cost_per_pierce",
            "setup_rate_per_minute", "machine_rate_per_minute",
            "overhead_percent", "markup_percent",
            "consumables_cost_per_minute", "default_setup_minutes",
        )
        object.__setattr__(self, "cut_speeds", normalize_rate_table(self.cut_speeds))
        object.__setattr__(self, "pierce_seconds", normalize_rate_table(self.pierce_seconds))

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> JobCostingSettings:
        """Merge partial overrides onto the defaults. Unknown keys are ignored."""
        return _merge(cls(), data)

    def cut_speed(self, material: Optional[str], thickness: Any) -> Optional[Decimal]:
        return lookup_rate(self.cut_speeds, material, thickness)

    def pierce_time(self, material: Optional[str], thickness: Any) -> Optional[Decimal]:
        return lookup_rate(self.pierce_seconds, material, thickness)


# ══════════════════════════════════════════════════════════════
# PRESS BRAKE / WELDING SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PressBrakeSettings:
    seconds_per_bend: Decimal = Decimal("8")
    inches_per_minute: Decimal = Decimal("240")
    setup_minutes: Decimal = Decimal("10")
    labor_rate_per_hour: Decimal = Decimal("95")
    overhead_rate_per_hour: Decimal = Decimal("45")
    consumables_per_bend: Decimal = Decimal("0.45")
    tonnage_cost_per_job: Decimal = Decimal("6")
    tooling_cost_per_job: Decimal = Decimal("12")
    markup_percent: Decimal = Decimal("22")

    def __post_init__(self) -> None:
        coerce_money_fields(self, *(f.name for f in fields(self)))


def _default_weld_rates() -> Dict[str, Decimal]:
    return {"MIG": Decimal("14"), "TIG": Decimal("8"), "STICK": Decimal("10"), "FLUX": Decimal("12")}


def _default_weld_consumables() -> Dict[str, Decimal]:
    return {"MIG": Decimal("0.40"), "TIG": Decimal("0.55"), "STICK": Decimal("0.35"), "FLUX": Decimal("0.32")}


@dataclass(frozen=True)
class WeldingSettings:
    """process_rates: process → inches per minute."""

    setup_minutes: Decimal = Decimal("8")
    process_rates: Dict[str, Decimal] = field(default_factory=_default_weld_rates)
    consumables_per_inch: Dict[str, Decimal] = field(default_factory=_default_weld_consumables)
    labor_rate_per_hour: Decimal = Decimal("90")
    overhead_rate_per_hour: Decimal = Decimal("40")
    markup_percent: Decimal = Decimal("25")

    def __post_init__(self) -> None:
        coerce_money_fields(
            self, "setup_minutes", "labor_rate_per_hour",
            "overhead_rate_per_hour", "markup_percent",
        )
        # Partial process maps merge onto the defaults.
        rates = _default_weld_rates()
        rates.update({str(k).upper(): to_decimal(v) for k, v in self.process_rates.items()})
        consumables = _default_weld_consumables()
        consumables.update({str(k).upper(): to_decimal(v) for k, v in self.consumables_per_inch.items()})
        object.__setattr__(self, "process_rates", rates)
        object.__setattr__(self, "consumables_per_inch", consumables)


@dataclass(frozen=True)
class FabricationSettings:
    calc_version: int = 1
    press_brake: PressBrakeSettings = field(default_factory=PressBrakeSettings)
    welding: WeldingSettings = field(default_factory=WeldingSettings)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> FabricationSettings:
        """Nested merge: {"press_brake": {...}, "welding": {...}}."""
        data = dict(data or {})
        press_brake = _merge(PressBrakeSettings(), data.pop("press_brake", None))
        welding = _merge(WeldingSettings(), data.pop("welding", None))
        return _merge(cls(press_brake=press_brake, welding=welding), data)


def _merge(base, data: Optional[Mapping[str, Any]]):
    """Overlay known, non-None keys of `data` onto a settings record."""
    if not data:
        return base
    known = {f.name for f in fields(base)}
    changes = {k: v for k, v in data.items() if k in known and v is not None}
    return replace(base, **changes)


# ══════════════════════════════════════════════════════════════
# SETTINGS PROVIDER PROTOCOL
# ══════════════════════════════════════════════════════════════

class SettingsProvider(Protocol):
    """
    Protocol for tenant settings storage.

    Implementations may back this with a database, file, or in-memory store.
    """

    def get_markup_settings(self) -> MarkupSettings:
        ...  # pragma: no cover

    def get_shop_settings(self) -> ShopSettings:
        ...  # pragma: no cover

    def get_job_costing_settings(self) -> JobCostingSettings:
        ...  # pragma: no cover

    def get_fabrication_settings(self) -> FabricationSettings:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY SETTINGS STORE (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemorySettingsStore:
    """
    Simple in-memory settings store for testing and bootstrap.

    Raw mappings (e.g. a settings row loaded by the caller) are merged
    onto the defaults when read.
    """

    def __init__(
        self,
        *,
        markup: Optional[Mapping[str, Any]] = None,
        shop: Optional[Mapping[str, Any]] = None,
        job_costing: Optional[Mapping[str, Any]] = None,
        fabrication: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._markup = dict(markup or {})
        self._shop = dict(shop or {})
        self._job_costing = dict(job_costing or {})
        self._fabrication = dict(fabrication or {})

    def update_markup(self, **values: Any) -> None:
        self._markup.update(values)

    def update_shop(self, **values: Any) -> None:
        self._shop.update(values)

    def update_job_costing(self, **values: Any) -> None:
        self._job_costing.update(values)

    def update_fabrication(self, **values: Any) -> None:
        """Nested sections (press_brake, welding) merge key by key."""
        for key, value in values.items():
            current = self._fabrication.get(key)
            if isinstance(value, Mapping) and isinstance(current, Mapping):
                self._fabrication[key] = {**current, **value}
            else:
                self._fabrication[key] = value

    def get_markup_settings(self) -> MarkupSettings:
        return MarkupSettings.from_mapping(self._markup)

    def get_shop_settings(self) -> ShopSettings:
        return ShopSettings.from_mapping(self._shop)

    def get_job_costing_settings(self) -> JobCostingSettings:
        return JobCostingSettings.from_mapping(self._job_costing)

    def get_fabrication_settings(self) -> FabricationSettings:
        return FabricationSettings.from_mapping(self._fabrication)
