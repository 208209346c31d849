"""Quantity takeoff geometry from coarse building parameters.

No floor plan is available, so plan dimensions, wall runs and roof area are
estimated from floor area and room count.  All outputs are metric (m, m2, m3).
"""

from __future__ import annotations

import math
from typing import Any

from zimest.cost.assumptions import MasonryUnit

# Typical house plan proportion, length : width
PLAN_ASPECT_RATIO = 1.4

# Partition wall run added per room beyond the first
PARTITION_M_PER_ROOM = 4.0

# Roof area over floor area, covering pitch and overhang
ROOF_PITCH_FACTOR = 1.15

# Foundation walls from footing to DPC level
FOUNDATION_WALL_HEIGHT_M = 1.0

HARDCORE_DEPTH_M = 0.15
DPM_M2_PER_M2 = 1.1
DPM_ROLL_M2 = 50.0
MESH_SHEETS_PER_M2 = 0.07

# Dry materials needed per m3 of wet concrete / mortar
CONCRETE_DRY_VOLUME_FACTOR = 1.54
MORTAR_DRY_VOLUME_FACTOR = 1.27

MORTAR_JOINT_MM = 10.0
PLASTER_THICKNESS_MM = 12.0

RING_BEAM_Y12_BARS = 4
STIRRUPS_Y10_PER_M = 4.0
BAR_LENGTH_M = 6.0
BRICKFORCE_M_PER_ROLL = 15.0

ROOF_SCREWS_PER_SHEET = 8
ROOF_SCREWS_PER_BOX = 100
RAFTER_M2_PER_LENGTH = 6.0
BRANDERING_M2_PER_LENGTH = 4.0

PAINT_TIN_LITRES = 20.0
FLOOR_M2_PER_WINDOW = 15.0
SILL_M_PER_WINDOW = 1.5

APRON_WIDTH_M = 0.6
APRON_THICKNESS_M = 0.075


def safe_float(value: Any, default: float) -> float:
    """Return ``value`` as a finite, positive float, else ``default``."""
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result) or result <= 0:
        return default
    return result


def estimate_dimensions(floor_area: float, room_count: int) -> dict[str, float]:
    """Estimate plan length, width, perimeter and partition run.

    Returns dict with: length_m, width_m, perimeter_m, internal_wall_m.
    """
    length = math.sqrt(floor_area * PLAN_ASPECT_RATIO)
    width = floor_area / length if length > 0 else 0.0
    perimeter = 2.0 * (length + width)
    internal = max(0.0, (room_count - 1) * PARTITION_M_PER_ROOM)
    return {
        "length_m": length,
        "width_m": width,
        "perimeter_m": perimeter,
        "internal_wall_m": internal,
    }


def roof_area(floor_area: float) -> float:
    return floor_area * ROOF_PITCH_FACTOR


def mortar_m3_per_m2(unit: MasonryUnit, joint_mm: float = MORTAR_JOINT_MM) -> float:
    """Wet mortar volume per m2 of wall face for a masonry unit.

    Bed joints run once per course; each unit carries one perpend joint.
    Wall thickness is the unit width.
    """
    joint = joint_mm / 1000.0
    height = unit.height_mm / 1000.0
    width = unit.width_mm / 1000.0
    bed_m = 1.0 / (height + joint)
    perpend_m = unit.units_per_m2 * height
    return joint * width * (bed_m + perpend_m)


def mix_components(volume_m3: float, mix: tuple[float, ...], dry_factor: float) -> list[float]:
    """Split a wet volume into dry component volumes by mix ratio.

    The first component is the binder (cement); the rest are fine and
    coarse aggregate, in the order of the ratio.
    """
    total_parts = sum(mix)
    if total_parts <= 0:
        return [0.0 for _ in mix]
    dry = volume_m3 * dry_factor
    return [dry * part / total_parts for part in mix]
