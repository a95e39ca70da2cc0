"""
Shop Core Config: Public API
===============================
Tenant-configurable rates and tables with documented defaults.
Doctrine: settings are passed into calculations, never read globally.
"""

from core.config.rules import (
    FabricationSettings,
    InMemorySettingsStore,
    JobCostingSettings,
    MarkupSettings,
    PressBrakeSettings,
    SettingsProvider,
    ShopSettings,
    WeldingSettings,
    lookup_rate,
    normalize_rate_table,
)

__all__ = [
    "FabricationSettings",
    "InMemorySettingsStore",
    "JobCostingSettings",
    "MarkupSettings",
    "PressBrakeSettings",
    "SettingsProvider",
    "ShopSettings",
    "WeldingSettings",
    "lookup_rate",
    "normalize_rate_table",
]
