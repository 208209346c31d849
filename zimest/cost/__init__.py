"""BOQ generation and stage budgeting.

Prices a bill of quantities from a coarse building description and estimates
how far a budget reaches through the construction phases.
"""

from zimest.cost.engine import CostEngine
from zimest.cost.generator import generate_boq
from zimest.cost.models import DetailedRoom, GeneratedBOQItem, ManualBuilderConfig
from zimest.cost.report import BOQTotals, calculate_totals
from zimest.cost.stages import StageReachInput, StageReachResult, StageReachRow, estimate_stage_reach

__all__ = [
    "BOQTotals",
    "CostEngine",
    "DetailedRoom",
    "GeneratedBOQItem",
    "ManualBuilderConfig",
    "StageReachInput",
    "StageReachResult",
    "StageReachRow",
    "calculate_totals",
    "estimate_stage_reach",
    "generate_boq",
]
