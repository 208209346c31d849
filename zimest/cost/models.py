"""Generator input and output models.

Inputs accept snake_case or camelCase keys and never fail validation:
every field clamps bad values to a documented default before computation.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from zimest.config import DEFAULT_FLOOR_AREA_M2, DEFAULT_ROOM_COUNT
from zimest.cost.assumptions import (
    normalize_build_quality,
    normalize_enum,
    normalize_location_type,
)
from zimest.cost.enums import (
    BuildQuality,
    CementType,
    LocationType,
    MasonryUnitType,
    ProjectScope,
)
from zimest.cost.estimator import safe_float

logger = logging.getLogger(__name__)


class DetailedRoom(BaseModel):
    """One room of a detailed plan, used to split walling by material."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    length: float = 0.0
    width: float = 0.0
    windows: int = 0
    masonry_unit_type: MasonryUnitType | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("length", "width", mode="before")
    @classmethod
    def _dimension(cls, v: Any) -> float:
        return safe_float(v, 0.0)

    @field_validator("windows", mode="before")
    @classmethod
    def _windows(cls, v: Any) -> int:
        return int(round(safe_float(v, 0.0)))

    @field_validator("masonry_unit_type", mode="before")
    @classmethod
    def _masonry(cls, v: Any) -> MasonryUnitType | None:
        return normalize_enum(v, MasonryUnitType, None)

    @property
    def area(self) -> float:
        return self.length * self.width


class ManualBuilderConfig(BaseModel):
    """Coarse building description for the BOQ generator.

    Defaults applied when a value is missing, non-finite or not positive:

    - ``floor_area``: 120 m2
    - ``room_count``: 4 (rounded to a whole number, at least 1)
    - ``wall_height``: ``None``, resolved from build quality (3.0 / 2.7 m)
    - ``masonry_unit_type``: common brick
    - ``cement_type``: 32.5N
    - ``scope``: full house; unknown entries are dropped
    - ``location_type``: urban
    - ``build_quality``: standard
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    floor_area: float = DEFAULT_FLOOR_AREA_M2
    room_count: int = DEFAULT_ROOM_COUNT
    wall_height: float | None = None
    masonry_unit_type: MasonryUnitType = MasonryUnitType.COMMON
    cement_type: CementType = CementType.CEMENT_325
    scope: list[ProjectScope] = Field(default_factory=lambda: [ProjectScope.FULL_HOUSE])
    include_labor: bool = False
    location_type: LocationType = LocationType.URBAN
    build_quality: BuildQuality = BuildQuality.STANDARD
    rooms: list[DetailedRoom] = Field(default_factory=list)

    @field_validator("floor_area", mode="before")
    @classmethod
    def _floor_area(cls, v: Any) -> float:
        return safe_float(v, DEFAULT_FLOOR_AREA_M2)

    @field_validator("room_count", mode="before")
    @classmethod
    def _room_count(cls, v: Any) -> int:
        return max(1, int(round(safe_float(v, DEFAULT_ROOM_COUNT))))

    @field_validator("wall_height", mode="before")
    @classmethod
    def _wall_height(cls, v: Any) -> float | None:
        height = safe_float(v, 0.0)
        return height or None

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

    @field_validator("build_quality", mode="before")
    @classmethod
    def _quality(cls, v: Any) -> BuildQuality:
        return normalize_build_quality(v)

    @field_validator("include_labor", mode="before")
    @classmethod
    def _include_labor(cls, v: Any) -> bool:
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes", "on")
        return bool(v)

    @field_validator("scope", mode="before")
    @classmethod
    def _scope(cls, v: Any) -> list[ProjectScope]:
        values = list(v) if isinstance(v, (list, tuple, set, frozenset)) else [v]
        scopes: list[ProjectScope] = []
        for value in values:
            scope = normalize_enum(value, ProjectScope, None)
            if scope is not None and scope not in scopes:
                scopes.append(scope)
        return scopes or [ProjectScope.FULL_HOUSE]

    @field_validator("rooms", mode="before")
    @classmethod
    def _rooms(cls, v: Any) -> list[DetailedRoom]:
        if not isinstance(v, (list, tuple)):
            return []
        rooms: list[DetailedRoom] = []
        for entry in v:
            try:
                rooms.append(DetailedRoom.model_validate(entry))
            except ValidationError:
                logger.debug("Skipping unreadable room entry %r", entry)
        return rooms

    def covers(self, scope: ProjectScope) -> bool:
        """True if ``scope`` is selected directly or through full house."""
        return scope in self.scope or ProjectScope.FULL_HOUSE in self.scope


class GeneratedBOQItem(BaseModel):
    """One priced material line of a generated BOQ.

    Frozen; callers that need an edited line use ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    material_id: str
    material_name: str
    category: str
    quantity: float
    unit: str
    unit_price_usd: float = 0.0
    unit_price_local: float = 0.0
    total_usd: float = 0.0
    total_local: float = 0.0
    calculation_note: str = ""
    is_edited: bool = False
