"""zimest — construction bill of quantities and stage budget engine."""

__version__ = "1.0.0"

from zimest.config import EngineSettings, load_config, load_settings
from zimest.cost.assumptions import AssumptionTableError, resolve_assumptions
from zimest.cost.engine import CostEngine
from zimest.cost.generator import generate_boq
from zimest.cost.models import DetailedRoom, GeneratedBOQItem, ManualBuilderConfig
from zimest.cost.pricing import LocalProvider, PricingProvider, StaticProvider
from zimest.cost.report import BOQTotals, calculate_totals
from zimest.cost.stages import StageReachInput, StageReachResult, StageReachRow, estimate_stage_reach
