"""Stage budget estimator — how far through the build a budget reaches.

Prices a full house with the BOQ generator, groups the cost into the five
construction phases and walks the budget through them in build order.

Usage::

    from zimest.cost.stages import estimate_stage_reach

    result = estimate_stage_reach({"budgetUsd": 15000, "floorAreaM2": 120})
    result.reachable_stage_label    # e.g. "Structural Walls & Frame"
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from zimest.config import (
    BASELINE_USD_PER_M2,
    DEFAULT_FLOOR_AREA_M2,
    DEFAULT_ROOM_COUNT,
    DEFAULT_WALL_HEIGHT_M,
    EXTERIOR_ALLOWANCE_USD_PER_M2,
    EXTERIOR_MIN_SHARE,
    FLOOR_M2_PER_ROOM,
)
from zimest.cost.assumptions import normalize_enum, normalize_location_type
from zimest.cost.enums import (
    PHASE_ORDER,
    CementType,
    LocationType,
    MasonryUnitType,
    Phase,
    ProjectScope,
)
from zimest.cost.estimator import safe_float
from zimest.cost.generator import generate_boq
from zimest.cost.models import ManualBuilderConfig
from zimest.cost.pricing import PricingProvider
from zimest.cost.seed_data import STAGE_WEIGHT_FALLBACK

logger = logging.getLogger(__name__)

NO_STAGE_LABEL = "No stage completed"


class StageReachInput(BaseModel):
    """Budget and coarse building description.  Bad values are clamped."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    budget_usd: float = 0.0
    floor_area_m2: float = DEFAULT_FLOOR_AREA_M2
    room_count: int | None = None
    wall_height_m: float = DEFAULT_WALL_HEIGHT_M
    masonry_unit_type: MasonryUnitType = MasonryUnitType.COMMON
    cement_type: CementType = CementType.CEMENT_325
    location_type: LocationType = LocationType.URBAN

    @field_validator("budget_usd", mode="before")
    @classmethod
    def _budget(cls, v: Any) -> float:
        return safe_float(v, 0.0)

    @field_validator("floor_area_m2", mode="before")
    @classmethod
    def _floor_area(cls, v: Any) -> float:
        return safe_float(v, DEFAULT_FLOOR_AREA_M2)

    @field_validator("room_count", mode="before")
    @classmethod
    def _room_count(cls, v: Any) -> int | None:
        if v is None:
            return None
        return max(1, _round_half_up(safe_float(v, DEFAULT_ROOM_COUNT)))

    @field_validator("wall_height_m", mode="before")
    @classmethod
    def _wall_height(cls, v: Any) -> float:
        return safe_float(v, DEFAULT_WALL_HEIGHT_M)

    @field_validator("masonry_unit_type", mode="before")
    @classmethod
    def _masonry(cls, v: Any) -> MasonryUnitType:
        return normalize_enum(v, MasonryUnitType, MasonryUnitType.COMMON)

    @field_validator("cement_type", mode="before")
    @classmethod
    def _cement(cls, v: Any) -> CementType:
        return normalize_enum(v, CementType, CementType.CEMENT_325)

    @field_validator("location_type", mode="before")
    @classmethod
    def _location(cls, v: Any) -> LocationType:
        return normalize_location_type(v)

    def resolved_room_count(self) -> int:
        """Room count, estimated from floor area when none was given."""
        if self.room_count is not None:
            return self.room_count
        estimated = _round_half_up(self.floor_area_m2 / FLOOR_M2_PER_ROOM)
        return estimated if estimated > 0 else DEFAULT_ROOM_COUNT


class StageReachRow(BaseModel):
    id: Phase
    label: str
    stage_cost_usd: float
    cumulative_cost_usd: float
    affordable: bool
    coverage_percent: float


class StageReachResult(BaseModel):
    estimated_total_usd: float
    budget_usd: float
    coverage_percent: float
    reachable_stage_id: Phase | None = None
    reachable_stage_label: str = NO_STAGE_LABEL
    rows: list[StageReachRow] = Field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def coerce_stage_input(data: Any) -> StageReachInput:
    if isinstance(data, StageReachInput):
        return data
    if isinstance(data, Mapping):
        try:
            return StageReachInput.model_validate(dict(data))
        except ValidationError:
            logger.debug("Stage input could not be read, using defaults", exc_info=True)
    else:
        logger.debug("Unsupported stage input type %s, using defaults", type(data).__name__)
    return StageReachInput()


def phase_costs(items: list[Any]) -> dict[Phase, float]:
    """Sum item USD totals per construction phase.  Other categories are ignored."""
    costs = {phase: 0.0 for phase in PHASE_ORDER}
    for item in items:
        if item.category in costs:
            costs[Phase(item.category)] += item.total_usd
    return costs


def repair_phase_costs(costs: dict[Phase, float], floor_area_m2: float) -> dict[Phase, float]:
    """Fill phases that priced to zero.

    Missing phases are scaled from the known ones using the fallback weights.
    Exterior that is still unpriced gets a floor of 8% of the computed total
    or the per-m2 external works allowance, whichever is larger.
    """
    repaired = dict(costs)
    computed_total = sum(costs.values())
    missing = [phase for phase in PHASE_ORDER if costs[phase] <= 0]
    missing_weight = sum(STAGE_WEIGHT_FALLBACK[phase.value] for phase in missing)

    if computed_total > 0 and 0 < missing_weight < 1:
        implied_total = computed_total / (1 - missing_weight)
        for phase in missing:
            repaired[phase] = implied_total * STAGE_WEIGHT_FALLBACK[phase.value]
        logger.debug(
            "Repaired %d unpriced phases from implied total %.2f",
            len(missing),
            implied_total,
        )

    if repaired[Phase.EXTERIOR] <= 0:
        repaired[Phase.EXTERIOR] = max(
            computed_total * EXTERIOR_MIN_SHARE,
            floor_area_m2 * EXTERIOR_ALLOWANCE_USD_PER_M2,
        )
    return repaired


def estimate_stage_reach(
    data: StageReachInput | Mapping[str, Any],
    *,
    provider: PricingProvider | None = None,
    exchange_rate: float | None = None,
) -> StageReachResult:
    """Estimate the last construction phase a budget fully pays for.

    Parameters
    ----------
    data:
        Budget and building description, as a model or a mapping with
        snake_case or camelCase keys.
    provider:
        Pricing provider passed through to the BOQ generator.
    exchange_rate:
        Local currency units per USD, passed through to the generator.

    Returns
    -------
    StageReachResult
        One row per phase in build order.  ``reachable_stage_id`` is None
        when the budget does not cover the first phase.
    """
    request = coerce_stage_input(data)
    floor_area = request.floor_area_m2
    budget = request.budget_usd

    config = ManualBuilderConfig(
        floor_area=floor_area,
        room_count=request.resolved_room_count(),
        wall_height=request.wall_height_m,
        masonry_unit_type=request.masonry_unit_type,
        cement_type=request.cement_type,
        scope=[ProjectScope.FULL_HOUSE],
        include_labor=False,
        location_type=request.location_type,
    )
    items = generate_boq(config, provider=provider, exchange_rate=exchange_rate)

    costs = repair_phase_costs(phase_costs(items), floor_area)
    costs = {phase: round(cost, 2) for phase, cost in costs.items()}

    total = round(sum(costs.values()), 2)
    if total <= 0:
        total = floor_area * BASELINE_USD_PER_M2
    coverage = min(100.0, budget / total * 100)

    rows: list[StageReachRow] = []
    reachable: Phase | None = None
    cumulative = 0.0
    for phase in PHASE_ORDER:
        cost = costs[phase]
        start = cumulative
        cumulative = round(cumulative + cost, 2)
        affordable = budget >= cumulative
        if affordable:
            reachable = phase
        if cost > 0:
            stage_coverage = min(100.0, max(0.0, (budget - start) / cost * 100))
        else:
            stage_coverage = 0.0
        rows.append(
            StageReachRow(
                id=phase,
                label=phase.label,
                stage_cost_usd=cost,
                cumulative_cost_usd=cumulative,
                affordable=affordable,
                coverage_percent=round(stage_coverage, 2),
            )
        )

    logger.info(
        "Stage reach for $%.2f over %.1fm2: %s (%.1f%% of $%.2f)",
        budget,
        floor_area,
        reachable.value if reachable else "none",
        coverage,
        total,
    )
    return StageReachResult(
        estimated_total_usd=total,
        budget_usd=budget,
        coverage_percent=round(coverage, 2),
        reachable_stage_id=reachable,
        reachable_stage_label=reachable.label if reachable else NO_STAGE_LABEL,
        rows=rows,
    )
