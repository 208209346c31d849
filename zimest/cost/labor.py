"""Labor estimate — crew days from floor area and selected scope."""

from __future__ import annotations

import math
from typing import Any

from zimest.cost.enums import ProjectScope
from zimest.cost.seed_data import LABOR_DAYS_PER_M2

ASSISTANTS_PER_BUILDER = 1.5
BUILDER_DAYS_PER_FOREMAN_DAY = 10


def labor_days_per_m2(scopes: list[ProjectScope]) -> float:
    """Builder-days per m2 for the selected scopes.

    Full house uses its own rate; otherwise the per-phase rates are summed.
    """
    if ProjectScope.FULL_HOUSE in scopes:
        return LABOR_DAYS_PER_M2[ProjectScope.FULL_HOUSE.value]
    return sum(LABOR_DAYS_PER_M2.get(scope.value, 0.0) for scope in scopes)


def estimate_labor(floor_area: float, scopes: list[ProjectScope]) -> dict[str, Any]:
    """Estimate crew days for a build.

    Returns dict with: rate_per_m2, builder_days, assistant_days,
    foreman_days, person_days.
    """
    rate = labor_days_per_m2(scopes)
    builder_days = math.ceil(floor_area * rate)
    assistant_days = math.ceil(builder_days * ASSISTANTS_PER_BUILDER)
    foreman_days = math.ceil(builder_days / BUILDER_DAYS_PER_FOREMAN_DAY)

    return {
        "rate_per_m2": rate,
        "builder_days": builder_days,
        "assistant_days": assistant_days,
        "foreman_days": foreman_days,
        "person_days": builder_days + assistant_days + foreman_days,
    }
