"""
Shop Order Engine
===================
Line-item mutations, receiving and totals for sales, work and
purchase orders.
"""

from engines.orders.commands import (
    AddLaborLineRequest,
    AddLineRequest,
    ReceiveRequest,
    UpdateLaborLineRequest,
)
from engines.orders.services import OrderMutationService, weighted_average_cost
from engines.orders.totals import (
    labor_extended_amount,
    line_core_charge,
    line_extended_amount,
    recalculate_totals,
)

__all__ = [
    "AddLaborLineRequest",
    "AddLineRequest",
    "OrderMutationService",
    "ReceiveRequest",
    "UpdateLaborLineRequest",
    "labor_extended_amount",
    "line_core_charge",
    "line_extended_amount",
    "recalculate_totals",
    "weighted_average_cost",
]
