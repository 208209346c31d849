"""Assumption table — construction ratios by location class and build quality.

The literal data lives in :mod:`zimest.cost.seed_data`.  It is validated into
frozen models once, at import time.  Every keyed table must carry a row for
every member of its enum, so lookups below can never miss.

Usage::

    from zimest.cost.assumptions import resolve_assumptions

    row = resolve_assumptions("rural", "economy")
    row.roofing_waste      # 0.15
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError

from zimest.cost.enums import (
    BuildQuality,
    ConcreteProfile,
    LocationType,
    MasonryUnitType,
    MortarProfile,
)
from zimest.cost.seed_data import ASSUMPTIONS_VERSION, BOQ_ASSUMPTIONS, MASONRY_UNITS

logger = logging.getLogger(__name__)

DEFAULT_LOCATION_TYPE = LocationType.URBAN
DEFAULT_BUILD_QUALITY = BuildQuality.STANDARD


class AssumptionTableError(Exception):
    """Raised at import when the embedded assumption table is malformed."""


def _every(enum_cls: type[Enum]):
    def check(table: dict[Any, Any]) -> dict[Any, Any]:
        missing = [member.value for member in enum_cls if member not in table]
        if missing:
            raise ValueError(f"missing {enum_cls.__name__} keys: {', '.join(missing)}")
        return table

    return check


ByLocation = Annotated[dict[LocationType, float], AfterValidator(_every(LocationType))]
ByQuality = Annotated[dict[BuildQuality, float], AfterValidator(_every(BuildQuality))]
ByConcrete = Annotated[dict[ConcreteProfile, float], AfterValidator(_every(ConcreteProfile))]
ByMortar = Annotated[dict[MortarProfile, float], AfterValidator(_every(MortarProfile))]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ConcreteAssumptions(_Frozen):
    mix_ratio: Annotated[dict[ConcreteProfile, str], AfterValidator(_every(ConcreteProfile))]
    cement_bags_per_m3: ByConcrete
    waste: ByLocation


class MortarAssumptions(_Frozen):
    mix_ratio: Annotated[dict[MortarProfile, str], AfterValidator(_every(MortarProfile))]
    cement_bags_per_m3: ByMortar


class PlasterAssumptions(_Frozen):
    mix_ratio: Annotated[dict[BuildQuality, str], AfterValidator(_every(BuildQuality))]
    cement_bags_per_m3: ByQuality


class MasonryUnit(_Frozen):
    """A walling unit and its nominal size."""

    material_id: str
    name: str
    units_per_m2: float
    length_mm: float
    height_mm: float
    width_mm: float


class MasonryAssumptions(_Frozen):
    waste: ByLocation
    units: Annotated[dict[MasonryUnitType, MasonryUnit], AfterValidator(_every(MasonryUnitType))]


class RoofingAssumptions(_Frozen):
    effective_sheet_coverage_m2: float
    waste: ByLocation


class PaintAssumptions(_Frozen):
    coverage_per_litre_per_coat: float
    coats: ByQuality


class TileAssumptions(_Frozen):
    waste: ByQuality
    adhesive_coverage_m2_per_bag: float


class StripFootingAssumptions(_Frozen):
    width_mm: ByLocation
    depth_mm: float


class SlabAssumptions(_Frozen):
    thickness_mm: ByQuality


class WallAssumptions(_Frozen):
    height_m: ByQuality


class RingBeamAssumptions(_Frozen):
    width_mm: float
    depth_mm: ByQuality


class WasteByLocation(_Frozen):
    waste: ByLocation


class WasteByQuality(_Frozen):
    waste: ByQuality


class AssumptionSet(_Frozen):
    """The complete, versioned assumption table."""

    version: str
    concrete: ConcreteAssumptions
    mortar: MortarAssumptions
    plaster: PlasterAssumptions
    masonry: MasonryAssumptions
    roofing: RoofingAssumptions
    paint: PaintAssumptions
    tiles: TileAssumptions
    strip_footing: StripFootingAssumptions
    slab: SlabAssumptions
    walls: WallAssumptions
    ring_beam: RingBeamAssumptions
    foundation: WasteByLocation
    finishes: WasteByQuality


class ResolvedAssumptions(_Frozen):
    """Scalar assumption row for one location class and build quality.

    Profile-keyed ratios (concrete and mortar mixes, masonry units) stay on
    ``table`` and are looked up through the helper methods.
    """

    version: str
    location_type: LocationType
    build_quality: BuildQuality

    concrete_waste: float
    masonry_waste: float
    roofing_waste: float
    foundation_waste: float
    finishes_waste: float
    tile_waste: float

    footing_width_m: float
    footing_depth_m: float
    slab_thickness_m: float
    wall_height_m: float
    ring_beam_width_m: float
    ring_beam_depth_m: float

    sheet_coverage_m2: float
    paint_coats: float
    paint_coverage_per_litre: float
    tile_adhesive_coverage_m2: float

    plaster_mix_ratio: str
    plaster_bags_per_m3: float

    table: AssumptionSet = Field(repr=False)

    def concrete_bags_per_m3(self, profile: ConcreteProfile) -> float:
        return self.table.concrete.cement_bags_per_m3[profile]

    def concrete_mix(self, profile: ConcreteProfile) -> tuple[float, ...]:
        return parse_mix_ratio(self.table.concrete.mix_ratio[profile])

    def mortar_bags_per_m3(self, profile: MortarProfile) -> float:
        return self.table.mortar.cement_bags_per_m3[profile]

    def mortar_mix(self, profile: MortarProfile) -> tuple[float, ...]:
        return parse_mix_ratio(self.table.mortar.mix_ratio[profile])

    def masonry_unit(self, unit_type: MasonryUnitType) -> MasonryUnit:
        return self.table.masonry.units[unit_type]


def load_assumptions(
    data: dict[str, Any],
    masonry_units: dict[str, Any],
    version: str = ASSUMPTIONS_VERSION,
) -> AssumptionSet:
    """Validate literal table data into an :class:`AssumptionSet`.

    Raises :class:`AssumptionTableError` when a keyed table is incomplete.
    """
    payload = dict(data)
    payload["version"] = version
    payload["masonry"] = {**data.get("masonry", {}), "units": masonry_units}
    try:
        return AssumptionSet.model_validate(payload)
    except ValidationError as exc:
        raise AssumptionTableError(str(exc)) from exc


ASSUMPTIONS: AssumptionSet = load_assumptions(BOQ_ASSUMPTIONS, MASONRY_UNITS)


def normalize_enum(value: Any, enum_cls: type[Enum], default: Enum | None) -> Any:
    """Coerce ``value`` to a member of ``enum_cls``, else return ``default``."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    if value is not None:
        logger.debug("Unrecognised %s %r, using %s", enum_cls.__name__, value, getattr(default, "value", default))
    return default


def normalize_location_type(location_type: Any = None) -> LocationType:
    """Map any input to a LocationType; unknown or absent values become urban."""
    return normalize_enum(location_type, LocationType, DEFAULT_LOCATION_TYPE)


def normalize_build_quality(build_quality: Any = None) -> BuildQuality:
    """Map any input to a BuildQuality; unknown or absent values become standard."""
    return normalize_enum(build_quality, BuildQuality, DEFAULT_BUILD_QUALITY)


def parse_mix_ratio(ratio: str) -> tuple[float, ...]:
    """Split a mix ratio such as ``"1:2:3"`` into its parts.

    Unparseable parts are dropped; an empty result becomes ``(1.0,)``.
    """
    parts: list[float] = []
    for token in str(ratio).split(":"):
        try:
            value = float(token)
        except ValueError:
            continue
        if value > 0:
            parts.append(value)
    return tuple(parts) or (1.0,)


def resolve_assumptions(
    location_type: Any = None,
    build_quality: Any = None,
    table: AssumptionSet = ASSUMPTIONS,
) -> ResolvedAssumptions:
    """Return the assumption row for a location class and build quality.

    Never raises: both arguments are normalized first.
    """
    location = normalize_location_type(location_type)
    quality = normalize_build_quality(build_quality)

    return ResolvedAssumptions(
        version=table.version,
        location_type=location,
        build_quality=quality,
        concrete_waste=table.concrete.waste[location],
        masonry_waste=table.masonry.waste[location],
        roofing_waste=table.roofing.waste[location],
        foundation_waste=table.foundation.waste[location],
        finishes_waste=table.finishes.waste[quality],
        tile_waste=table.tiles.waste[quality],
        footing_width_m=table.strip_footing.width_mm[location] / 1000.0,
        footing_depth_m=table.strip_footing.depth_mm / 1000.0,
        slab_thickness_m=table.slab.thickness_mm[quality] / 1000.0,
        wall_height_m=table.walls.height_m[quality],
        ring_beam_width_m=table.ring_beam.width_mm / 1000.0,
        ring_beam_depth_m=table.ring_beam.depth_mm[quality] / 1000.0,
        sheet_coverage_m2=table.roofing.effective_sheet_coverage_m2,
        paint_coats=table.paint.coats[quality],
        paint_coverage_per_litre=table.paint.coverage_per_litre_per_coat,
        tile_adhesive_coverage_m2=table.tiles.adhesive_coverage_m2_per_bag,
        plaster_mix_ratio=table.plaster.mix_ratio[quality],
        plaster_bags_per_m3=table.plaster.cement_bags_per_m3[quality],
        table=table,
    )
