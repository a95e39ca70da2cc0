"""
Shop Job Costing Engine
=========================
Plasma, press-brake and welding job costing with per-line overrides,
plus job summaries.
"""

from engines.job_costing.fabrication import FabCostingResult, calculate_fab_job
from engines.job_costing.plasma import (
    CostingWarning,
    CostingWarningCode,
    JobCostingResult,
    JobCostingTotals,
    calculate_job,
    cost_line,
    is_stale,
)
from engines.job_costing.summary import (
    FabJobSummary,
    PlasmaJobMetrics,
    plasma_job_metrics,
    summarize_fab_job,
)

__all__ = [
    "CostingWarning",
    "CostingWarningCode",
    "FabCostingResult",
    "FabJobSummary",
    "JobCostingResult",
    "JobCostingTotals",
    "PlasmaJobMetrics",
    "calculate_fab_job",
    "calculate_job",
    "cost_line",
    "is_stale",
    "plasma_job_metrics",
    "summarize_fab_job",
]
