"""
Shop Pricing Engine: Cost Basis and Markup Pricing
=====================================================
Sell price for a catalog part at a customer price level.

RULES (NON-NEGOTIABLE):
- Cost basis waterfall is strictly ordered: avg_cost, last_cost, cost
- A basis must be > 0 to be used
- No basis → price is None with a warning, never a made-up price
- A price below basis is returned as computed, with a warning
- Rounding is half-away-from-zero to cents
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from core.config import MarkupSettings
from core.primitives.money import ZERO, apply_markup, round_currency
from core.primitives.part import Part

logger = logging.getLogger("shop.pricing")

NO_COST_BASIS_WARNING = "No cost basis available"
BELOW_COST_WARNING = "Calculated price is below cost basis"


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class PriceLevel(Enum):
    RETAIL = "RETAIL"
    FLEET = "FLEET"
    WHOLESALE = "WHOLESALE"


class CostBasisSource(Enum):
    AVG_COST = "AVG_COST"
    LAST_COST = "LAST_COST"
    COST = "COST"
    NONE = "NONE"


_MARKUP_FIELD_BY_LEVEL = {
    PriceLevel.RETAIL: "markup_retail_percent",
    PriceLevel.FLEET: "markup_fleet_percent",
    PriceLevel.WHOLESALE: "markup_wholesale_percent",
}


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CostBasis:
    basis: Optional[Decimal]
    source: CostBasisSource


@dataclass(frozen=True)
class PriceQuote:
    """
    Result of pricing one part at one level.

    price is None only when there is no cost basis.
    """
    price: Optional[Decimal]
    basis: Optional[Decimal]
    basis_source: CostBasisSource
    markup_percent: Decimal
    warnings: Tuple[str, ...] = ()

    @property
    def has_basis(self) -> bool:
        return self.basis_source != CostBasisSource.NONE


# ══════════════════════════════════════════════════════════════
# PRICING
# ══════════════════════════════════════════════════════════════

def get_cost_basis(part: Part) -> CostBasis:
    """First positive of avg_cost, last_cost, cost."""
    for value, source in (
        (part.avg_cost, CostBasisSource.AVG_COST),
        (part.last_cost, CostBasisSource.LAST_COST),
        (part.cost, CostBasisSource.COST),
    ):
        if value is not None and value > ZERO:
            return CostBasis(basis=value, source=source)
    return CostBasis(basis=None, source=CostBasisSource.NONE)


def resolve_level(level: Union[PriceLevel, str, None]) -> Optional[PriceLevel]:
    """Accept the enum or its name in any case. Unknown levels → None."""
    if isinstance(level, PriceLevel):
        return level
    if not isinstance(level, str):
        return None
    try:
        return PriceLevel(level.strip().upper())
    except ValueError:
        return None


def markup_for_level(
    settings: MarkupSettings, level: Union[PriceLevel, str, None],
) -> Decimal:
    resolved = resolve_level(level)
    if resolved is None:
        return ZERO
    return getattr(settings, _MARKUP_FIELD_BY_LEVEL[resolved])


def price_for_level(
    part: Part,
    settings: MarkupSettings,
    level: Union[PriceLevel, str, None],
) -> PriceQuote:
    """
    Price one part at a price level.

    price = round2(basis × (1 + markup / 100)); an unrecognised level
    prices at 0 % markup.
    """
    markup = markup_for_level(settings, level)
    cost_basis = get_cost_basis(part)

    if cost_basis.basis is None:
        logger.debug(f"Part {part.id}: no cost basis, price not computed")
        return PriceQuote(
            price=None,
            basis=None,
            basis_source=CostBasisSource.NONE,
            markup_percent=markup,
            warnings=(NO_COST_BASIS_WARNING,),
        )

    price = round_currency(apply_markup(cost_basis.basis, markup))
    warnings = ()
    if price < cost_basis.basis:
        warnings = (BELOW_COST_WARNING,)

    return PriceQuote(
        price=price,
        basis=cost_basis.basis,
        basis_source=cost_basis.source,
        markup_percent=markup,
        warnings=warnings,
    )


def price_all_levels(part: Part, settings: MarkupSettings) -> Dict[PriceLevel, PriceQuote]:
    return {level: price_for_level(part, settings, level) for level in PriceLevel}


__all__ = [
    "BELOW_COST_WARNING",
    "NO_COST_BASIS_WARNING",
    "CostBasis",
    "CostBasisSource",
    "PriceLevel",
    "PriceQuote",
    "get_cost_basis",
    "markup_for_level",
    "price_all_levels",
    "price_for_level",
    "resolve_level",
]
