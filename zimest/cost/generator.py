"""BOQ generator — priced material lines from a coarse building description.

Usage::

    from zimest.cost.generator import generate_boq

    items = generate_boq({"floorArea": 120, "roomCount": 6, "scope": "roofing"})

Each construction phase contributes its own lines; ``scope`` selects which
phases run.  Quantities are rounded up to whole purchase units before
pricing.  The generator never raises: the config is clamped first.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from zimest.config import DEFAULT_EXCHANGE_RATE
from zimest.cost.assumptions import ResolvedAssumptions, parse_mix_ratio, resolve_assumptions
from zimest.cost.enums import LABOR_CATEGORY, MasonryUnitType, Phase, ProjectScope
from zimest.cost.estimator import (
    APRON_THICKNESS_M,
    APRON_WIDTH_M,
    BAR_LENGTH_M,
    BRANDERING_M2_PER_LENGTH,
    BRICKFORCE_M_PER_ROLL,
    CONCRETE_DRY_VOLUME_FACTOR,
    DPM_M2_PER_M2,
    DPM_ROLL_M2,
    FLOOR_M2_PER_WINDOW,
    FOUNDATION_WALL_HEIGHT_M,
    HARDCORE_DEPTH_M,
    MESH_SHEETS_PER_M2,
    MORTAR_DRY_VOLUME_FACTOR,
    MORTAR_JOINT_MM,
    PAINT_TIN_LITRES,
    PLASTER_THICKNESS_MM,
    RAFTER_M2_PER_LENGTH,
    RING_BEAM_Y12_BARS,
    ROOF_SCREWS_PER_BOX,
    ROOF_SCREWS_PER_SHEET,
    SILL_M_PER_WINDOW,
    STIRRUPS_Y10_PER_M,
    estimate_dimensions,
    mix_components,
    mortar_m3_per_m2,
    roof_area,
    safe_float,
)
from zimest.cost.labor import estimate_labor
from zimest.cost.models import GeneratedBOQItem, ManualBuilderConfig
from zimest.cost.pricing import LocalProvider, PricingProvider
from zimest.cost.seed_data import CEMENT_MATERIALS, MATERIALS

logger = logging.getLogger(__name__)


class _ItemWriter:
    """Prices and numbers BOQ lines for one generator call."""

    def __init__(self, provider: PricingProvider, exchange_rate: float) -> None:
        self.provider = provider
        self.exchange_rate = exchange_rate
        self.items: list[GeneratedBOQItem] = []

    def add(
        self,
        material_id: str,
        category: str,
        quantity: float,
        note: str,
        *,
        name: str | None = None,
    ) -> GeneratedBOQItem:
        qty = float(math.ceil(quantity)) if math.isfinite(quantity) and quantity > 0 else 0.0
        price = self.provider.get_unit_price(material_id, self.exchange_rate)
        catalog = MATERIALS.get(material_id, {})
        unit_local = round(price.price_local, 4)

        item = GeneratedBOQItem(
            id=f"boq_{len(self.items) + 1:03d}",
            material_id=material_id,
            material_name=name or catalog.get("name", material_id),
            category=category,
            quantity=qty,
            unit=catalog.get("unit", "each"),
            unit_price_usd=price.price_usd,
            unit_price_local=unit_local,
            total_usd=round(qty * price.price_usd, 2),
            total_local=round(qty * unit_local, 2),
            calculation_note=note,
        )
        self.items.append(item)
        return item


def coerce_config(config: Any) -> ManualBuilderConfig:
    """Return ``config`` as a ManualBuilderConfig, defaulting anything unreadable."""
    if isinstance(config, ManualBuilderConfig):
        return config
    if isinstance(config, Mapping):
        try:
            return ManualBuilderConfig.model_validate(dict(config))
        except ValidationError:
            logger.debug("Config could not be read, using defaults", exc_info=True)
    else:
        logger.debug("Unsupported config type %s, using defaults", type(config).__name__)
    return ManualBuilderConfig()


def generate_boq(
    config: ManualBuilderConfig | Mapping[str, Any],
    *,
    provider: PricingProvider | None = None,
    exchange_rate: float | None = None,
) -> list[GeneratedBOQItem]:
    """Generate priced BOQ lines for a building.

    Parameters
    ----------
    config:
        Building description, as a model or a mapping with snake_case or
        camelCase keys.
    provider:
        Pricing provider.  Defaults to LocalProvider (embedded seed prices).
    exchange_rate:
        Local currency units per USD.  Invalid or missing values fall back
        to the configured default.

    Returns
    -------
    list[GeneratedBOQItem]
        Fresh items, in phase order, numbered ``boq_001`` onward.
    """
    cfg = coerce_config(config)
    writer = _ItemWriter(provider or LocalProvider(), safe_float(exchange_rate, DEFAULT_EXCHANGE_RATE))
    row = resolve_assumptions(cfg.location_type, cfg.build_quality)
    dims = estimate_dimensions(cfg.floor_area, cfg.room_count)
    wall_height = cfg.wall_height or row.wall_height_m

    if cfg.covers(ProjectScope.SUBSTRUCTURE):
        _substructure(writer, cfg, row, dims)
    if cfg.covers(ProjectScope.SUPERSTRUCTURE):
        _superstructure(writer, cfg, row, dims, wall_height)
    if cfg.covers(ProjectScope.ROOFING):
        _roofing(writer, cfg, row)
    if cfg.covers(ProjectScope.FINISHING):
        _finishing(writer, cfg, row, dims, wall_height)
    if cfg.covers(ProjectScope.EXTERIOR):
        _exterior(writer, cfg, row, dims)
    if cfg.include_labor:
        _labor(writer, cfg)

    logger.info(
        "Generated %d BOQ items for %.1fm2 (%s, %s)",
        len(writer.items),
        cfg.floor_area,
        row.location_type.value,
        ",".join(scope.value for scope in cfg.scope),
    )
    return writer.items


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _cement(cfg: ManualBuilderConfig) -> tuple[str, str]:
    info = CEMENT_MATERIALS[cfg.cement_type.value]
    return info["material_id"], info["name"]


def _ratio_label(mix: tuple[float, ...]) -> str:
    return ":".join(f"{part:g}" for part in mix)


def _concrete_aggregates(
    writer: _ItemWriter,
    category: str,
    volume_m3: float,
    mix: tuple[float, ...],
    label: str,
) -> None:
    """Sand and stone for a wet concrete volume, split by mix ratio."""
    parts = mix_components(volume_m3, mix, CONCRETE_DRY_VOLUME_FACTOR)
    sand = parts[1] if len(parts) > 1 else 0.0
    stone = parts[2] if len(parts) > 2 else 0.0
    ratio = _ratio_label(mix)
    writer.add("sand-river", category, sand, f"{label} sand: {volume_m3:.2f}m³ @ {ratio}")
    writer.add("stone-19mm", category, stone, f"{label} stone: {volume_m3:.2f}m³ @ {ratio}")


def _walling(
    writer: _ItemWriter,
    category: str,
    unit_type: MasonryUnitType,
    wall_area: float,
    row: ResolvedAssumptions,
    note: str,
) -> float:
    """Add masonry units for a wall area; return the wet mortar volume."""
    unit = row.masonry_unit(unit_type)
    waste = 1.0 + row.masonry_waste
    writer.add(
        unit.material_id,
        category,
        wall_area * unit.units_per_m2 * waste,
        f"{note} @ {unit.units_per_m2:g}/m²",
        name=unit.name,
    )
    return wall_area * mortar_m3_per_m2(unit) * waste


def _mortar(
    writer: _ItemWriter,
    category: str,
    volume_m3: float,
    cfg: ManualBuilderConfig,
    row: ResolvedAssumptions,
    label: str,
) -> None:
    profile = cfg.cement_type.mortar_profile
    mix = row.mortar_mix(profile)
    cement_id, cement_name = _cement(cfg)

    writer.add(
        cement_id,
        category,
        volume_m3 * row.mortar_bags_per_m3(profile),
        f"{label}: {volume_m3:.2f}m³ @ {MORTAR_JOINT_MM:g}mm joints, mix {_ratio_label(mix)}",
        name=cement_name,
    )
    parts = mix_components(volume_m3, mix, MORTAR_DRY_VOLUME_FACTOR)
    sand = parts[1] if len(parts) > 1 else 0.0
    writer.add("sand-bricks", category, sand, f"Mortar sand: {volume_m3:.2f}m³ mortar")


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


def _substructure(
    writer: _ItemWriter,
    cfg: ManualBuilderConfig,
    row: ResolvedAssumptions,
    dims: dict[str, float],
) -> None:
    phase = Phase.SUBSTRUCTURE.value
    floor = cfg.floor_area
    profile = cfg.cement_type.concrete_profile
    bags_per_m3 = row.concrete_bags_per_m3(profile)
    concrete_waste = 1.0 + row.concrete_waste
    cement_id, cement_name = _cement(cfg)

    writer.add(
        "hardcore",
        phase,
        floor * HARDCORE_DEPTH_M * (1.0 + row.foundation_waste),
        f"Hardcore fill: {floor:.1f}m² @ {HARDCORE_DEPTH_M * 1000:.0f}mm",
    )
    writer.add(
        "dpm-500",
        phase,
        floor * DPM_M2_PER_M2 / DPM_ROLL_M2,
        f"Floor membrane: {floor:.1f}m² with overlaps",
    )

    # Strip footing under external and partition walls
    footing_m = dims["perimeter_m"] + dims["internal_wall_m"]
    footing_m3 = footing_m * row.footing_width_m * row.footing_depth_m
    writer.add(
        cement_id,
        phase,
        footing_m3 * bags_per_m3 * concrete_waste,
        f"Foundation concrete: {footing_m:.1f}m footing x "
        f"{row.footing_width_m:.2f}m x {row.footing_depth_m:.2f}m",
        name=cement_name,
    )

    slab_m3 = floor * row.slab_thickness_m
    writer.add(
        cement_id,
        phase,
        slab_m3 * bags_per_m3 * concrete_waste,
        f"Floor slab concrete: {floor:.1f}m² @ {row.slab_thickness_m * 1000:.0f}mm",
        name=cement_name,
    )
    _concrete_aggregates(
        writer, phase, (footing_m3 + slab_m3) * concrete_waste, row.concrete_mix(profile), "Concrete"
    )

    wall_area = dims["perimeter_m"] * FOUNDATION_WALL_HEIGHT_M
    mortar_m3 = _walling(
        writer,
        phase,
        cfg.masonry_unit_type,
        wall_area,
        row,
        f"Foundation walls: {dims['perimeter_m']:.1f}m x {FOUNDATION_WALL_HEIGHT_M:g}m",
    )
    _mortar(writer, phase, mortar_m3, cfg, row, "Substructure mortar")

    writer.add(
        "mesh-ref193",
        phase,
        floor * MESH_SHEETS_PER_M2,
        f"Slab reinforcement: {floor:.1f}m²",
    )


def _superstructure(
    writer: _ItemWriter,
    cfg: ManualBuilderConfig,
    row: ResolvedAssumptions,
    dims: dict[str, float],
    wall_height: float,
) -> None:
    phase = Phase.SUPERSTRUCTURE.value
    perimeter = dims["perimeter_m"]
    internal = dims["internal_wall_m"]

    mortar_m3 = 0.0
    room_area = sum(room.area for room in cfg.rooms)
    if room_area > 0:
        mortar_m3 += _walls_from_rooms(writer, cfg, row, (perimeter + internal) * wall_height, room_area)
    else:
        mortar_m3 += _walling(
            writer,
            phase,
            cfg.masonry_unit_type,
            perimeter * wall_height,
            row,
            f"External walls: {perimeter:.1f}m x {wall_height:g}m height",
        )
        if internal > 0:
            mortar_m3 += _walling(
                writer,
                phase,
                cfg.masonry_unit_type,
                internal * wall_height,
                row,
                f"Internal walls: {internal:.1f}m x {wall_height:g}m height",
            )
    _mortar(writer, phase, mortar_m3, cfg, row, "Superstructure mortar")

    wall_m = perimeter + internal
    profile = cfg.cement_type.concrete_profile
    cement_id, cement_name = _cement(cfg)
    beam_m3 = wall_m * row.ring_beam_width_m * row.ring_beam_depth_m * (1.0 + row.concrete_waste)
    writer.add(
        cement_id,
        phase,
        beam_m3 * row.concrete_bags_per_m3(profile),
        f"Ring beam concrete: {wall_m:.1f}m @ "
        f"{row.ring_beam_width_m * 1000:.0f}x{row.ring_beam_depth_m * 1000:.0f}mm",
        name=cement_name,
    )
    _concrete_aggregates(writer, phase, beam_m3, row.concrete_mix(profile), "Ring beam")

    writer.add(
        "rebar-12",
        phase,
        wall_m * RING_BEAM_Y12_BARS / BAR_LENGTH_M,
        f"Ring beam: {wall_m:.1f}m @ {RING_BEAM_Y12_BARS} bars",
    )
    writer.add(
        "rebar-10",
        phase,
        wall_m * STIRRUPS_Y10_PER_M / BAR_LENGTH_M,
        "Ring beam stirrups @ 250mm spacing",
    )
    writer.add(
        "brickforce",
        phase,
        wall_m / BRICKFORCE_M_PER_ROLL,
        "Wall reinforcement every 3rd course",
    )


def _walls_from_rooms(
    writer: _ItemWriter,
    cfg: ManualBuilderConfig,
    row: ResolvedAssumptions,
    wall_area: float,
    room_area: float,
) -> float:
    """Split the wall area across masonry units by each unit's share of room area."""
    groups: dict[MasonryUnitType, float] = {}
    for room in cfg.rooms:
        unit_type = room.masonry_unit_type or cfg.masonry_unit_type
        groups[unit_type] = groups.get(unit_type, 0.0) + room.area

    mortar_m3 = 0.0
    for unit_type, area in groups.items():
        share = area / room_area
        group_area = wall_area * share
        mortar_m3 += _walling(
            writer,
            Phase.SUPERSTRUCTURE.value,
            unit_type,
            group_area,
            row,
            f"Walls ({share * 100:.0f}% of plan): {group_area:.1f}m²",
        )
    return mortar_m3


def _roofing(writer: _ItemWriter, cfg: ManualBuilderConfig, row: ResolvedAssumptions) -> None:
    phase = Phase.ROOFING.value
    area = roof_area(cfg.floor_area)

    sheet_item = writer.add(
        "ibr-05-3m",
        phase,
        area / row.sheet_coverage_m2 * (1.0 + row.roofing_waste),
        f"Roof area: {area:.1f}m² @ {row.sheet_coverage_m2:g}m² per sheet",
    )
    sheets = sheet_item.quantity
    writer.add(
        "screws-roof",
        phase,
        sheets * ROOF_SCREWS_PER_SHEET / ROOF_SCREWS_PER_BOX,
        f"{sheets:.0f} sheets @ {ROOF_SCREWS_PER_SHEET} screws each",
    )
    writer.add(
        "timber-50x76",
        phase,
        area / RAFTER_M2_PER_LENGTH,
        "Roof rafters @ 600mm spacing",
    )
    writer.add(
        "timber-38x38",
        phase,
        area / BRANDERING_M2_PER_LENGTH,
        "Brandering @ 400mm spacing",
    )
    writer.add(
        "fascia-board",
        phase,
        math.sqrt(area) * 4 / BAR_LENGTH_M,
        "Perimeter fascia",
    )


def _finishing(
    writer: _ItemWriter,
    cfg: ManualBuilderConfig,
    row: ResolvedAssumptions,
    dims: dict[str, float],
    wall_height: float,
) -> None:
    phase = Phase.FINISHING.value
    floor = cfg.floor_area
    waste = 1.0 + row.finishes_waste
    cement_id, cement_name = _cement(cfg)

    # Face brick is left fair-faced outside
    external_faces = 1 if cfg.masonry_unit_type is MasonryUnitType.FACE_BRICK else 2
    plaster_area = (
        dims["perimeter_m"] * wall_height * external_faces
        + dims["internal_wall_m"] * wall_height * 2
    )
    plaster_m3 = plaster_area * PLASTER_THICKNESS_MM / 1000.0 * waste
    writer.add(
        cement_id,
        phase,
        plaster_m3 * row.plaster_bags_per_m3,
        f"Plaster: {plaster_area:.1f}m² @ {PLASTER_THICKNESS_MM:g}mm, mix {row.plaster_mix_ratio}",
        name=cement_name,
    )
    mix = parse_mix_ratio(row.plaster_mix_ratio)
    parts = mix_components(plaster_m3, mix, MORTAR_DRY_VOLUME_FACTOR)
    writer.add(
        "sand-pit",
        phase,
        parts[1] if len(parts) > 1 else 0.0,
        f"Plaster sand: {plaster_m3:.2f}m³ plaster",
    )

    litres = plaster_area * row.paint_coats / row.paint_coverage_per_litre * waste
    writer.add(
        "paint-pva",
        phase,
        litres / PAINT_TIN_LITRES,
        f"Paint: {plaster_area:.1f}m² x {row.paint_coats:g} coats",
    )

    writer.add(
        "tiles-floor-ceramic",
        phase,
        floor * (1.0 + row.tile_waste),
        f"Floor tiles: {floor:.1f}m² + {row.tile_waste * 100:.0f}% waste",
    )
    writer.add(
        "tile-adhesive",
        phase,
        floor / row.tile_adhesive_coverage_m2,
        f"Tile adhesive: {floor:.1f}m² @ {row.tile_adhesive_coverage_m2:g}m² per bag",
    )

    if cfg.rooms:
        windows = sum(room.windows for room in cfg.rooms)
    else:
        windows = math.ceil(floor / FLOOR_M2_PER_WINDOW)
    writer.add(
        "window-sill-brick",
        phase,
        windows * SILL_M_PER_WINDOW,
        f"Window sills: {windows} windows",
    )


def _exterior(
    writer: _ItemWriter,
    cfg: ManualBuilderConfig,
    row: ResolvedAssumptions,
    dims: dict[str, float],
) -> None:
    phase = Phase.EXTERIOR.value
    perimeter = dims["perimeter_m"]
    profile = cfg.cement_type.concrete_profile
    cement_id, cement_name = _cement(cfg)

    apron_m3 = perimeter * APRON_WIDTH_M * APRON_THICKNESS_M * (1.0 + row.concrete_waste)
    writer.add(
        cement_id,
        phase,
        apron_m3 * row.concrete_bags_per_m3(profile),
        f"Perimeter apron: {perimeter:.1f}m x {APRON_WIDTH_M:g}m @ {APRON_THICKNESS_M * 1000:.0f}mm",
        name=cement_name,
    )
    _concrete_aggregates(writer, phase, apron_m3, row.concrete_mix(profile), "Apron")

    writer.add(
        "allowance-external-works",
        phase,
        cfg.floor_area,
        f"External works allowance: {cfg.floor_area:.1f}m² floor area",
    )


def _labor(writer: _ItemWriter, cfg: ManualBuilderConfig) -> None:
    labor = estimate_labor(cfg.floor_area, cfg.scope)

    writer.add(
        "labor-builder",
        LABOR_CATEGORY,
        labor["builder_days"],
        f"{cfg.floor_area:.1f}m² @ {labor['rate_per_m2']:g} days/m²",
    )
    writer.add(
        "labor-assistant",
        LABOR_CATEGORY,
        labor["assistant_days"],
        "1.5 assistants per builder",
    )
    if labor["foreman_days"] > 0:
        writer.add(
            "labor-foreman",
            LABOR_CATEGORY,
            labor["foreman_days"],
            "Site supervision",
        )
    writer.add(
        "service-food",
        LABOR_CATEGORY,
        labor["person_days"],
        f"{labor['person_days']} person-days",
    )
