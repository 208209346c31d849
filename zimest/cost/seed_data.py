"""Embedded construction ratios, material catalog and default prices.

The assumption table is plain literal data keyed by the string values of the
enums in :mod:`zimest.cost.enums`.  It is validated into frozen models by
:mod:`zimest.cost.assumptions` when that module is imported.

Ratios are tuned to the Zimbabwean residential market and are carried as-is.
"""

from __future__ import annotations

from typing import Any

ASSUMPTIONS_VERSION = "2026.1"

# Source: Harare supplier survey, January 2026 (cheapest in-stock quote)
SOURCE = "Harare supplier survey 2026-01"

BOQ_ASSUMPTIONS: dict[str, Any] = {
    "concrete": {
        "mix_ratio": {"structural": "1:2:3", "economy": "1:2.5:3.5"},
        "cement_bags_per_m3": {"structural": 7.0, "economy": 6.5},
        # peri-urban is the midpoint of the urban and rural figures
        "waste": {"urban": 0.05, "peri-urban": 0.065, "rural": 0.08},
    },
    "mortar": {
        "mix_ratio": {"standard": "1:6", "economy": "1:7"},
        "cement_bags_per_m3": {"standard": 5.0, "economy": 4.5},
    },
    "plaster": {
        "mix_ratio": {"standard": "1:4", "economy": "1:5"},
        "cement_bags_per_m3": {"standard": 6.0, "economy": 5.0},
    },
    "masonry": {
        "waste": {"urban": 0.08, "peri-urban": 0.10, "rural": 0.15},
    },
    "roofing": {
        "effective_sheet_coverage_m2": 0.85,
        "waste": {"urban": 0.10, "peri-urban": 0.12, "rural": 0.15},
    },
    "paint": {
        "coverage_per_litre_per_coat": 8.0,
        "coats": {"standard": 2.0, "economy": 1.5},
    },
    "tiles": {
        "waste": {"standard": 0.10, "economy": 0.15},
        "adhesive_coverage_m2_per_bag": 4.5,
    },
    "strip_footing": {
        "width_mm": {"urban": 600.0, "peri-urban": 550.0, "rural": 500.0},
        "depth_mm": 200.0,
    },
    "slab": {
        "thickness_mm": {"standard": 100.0, "economy": 85.0},
    },
    "walls": {
        "height_m": {"standard": 3.0, "economy": 2.7},
    },
    "ring_beam": {
        "width_mm": 230.0,
        "depth_mm": {"standard": 150.0, "economy": 125.0},
    },
    "foundation": {
        "waste": {"urban": 0.05, "peri-urban": 0.07, "rural": 0.10},
    },
    "finishes": {
        "waste": {"standard": 0.12, "economy": 0.15},
    },
}

# Masonry units: units per m2 of wall face and nominal unit size in mm.
MASONRY_UNITS: dict[str, dict[str, Any]] = {
    "common": {
        "material_id": "brick-common",
        "name": "Red Common Brick",
        "units_per_m2": 50.0,
        "length_mm": 222.0,
        "height_mm": 73.0,
        "width_mm": 106.0,
    },
    "farm": {
        "material_id": "farm-brick",
        "name": "Farm Brick",
        "units_per_m2": 55.0,
        "length_mm": 210.0,
        "height_mm": 70.0,
        "width_mm": 100.0,
    },
    "semi_common": {
        "material_id": "brick-semi",
        "name": "Semi-Common Brick",
        "units_per_m2": 52.0,
        "length_mm": 220.0,
        "height_mm": 72.0,
        "width_mm": 106.0,
    },
    "blocks_6inch": {
        "material_id": "block-6inch",
        "name": '6" Cement Block',
        "units_per_m2": 12.5,
        "length_mm": 390.0,
        "height_mm": 190.0,
        "width_mm": 140.0,
    },
    "blocks_8inch": {
        "material_id": "block-8inch",
        "name": '8" Cement Block',
        "units_per_m2": 10.0,
        "length_mm": 440.0,
        "height_mm": 215.0,
        "width_mm": 190.0,
    },
    "face_brick": {
        "material_id": "brick-face-red",
        "name": "Face Brick",
        "units_per_m2": 48.0,
        "length_mm": 222.0,
        "height_mm": 76.0,
        "width_mm": 106.0,
    },
}

CEMENT_MATERIALS: dict[str, dict[str, str]] = {
    "cement_325": {"material_id": "cement-325", "name": "Standard Cement 32.5N"},
    "cement_425": {"material_id": "cement-425", "name": "Rapid Cement 42.5R"},
}

# Material catalog: id -> display name and purchase unit
MATERIALS: dict[str, dict[str, str]] = {
    "hardcore": {"name": "Hardcore (Filling)", "unit": "per cube"},
    "dpm-500": {"name": "DPM 500 Gauge", "unit": "per roll"},
    "cement-325": {"name": "Standard Cement 32.5N", "unit": "per 50kg bag"},
    "cement-425": {"name": "Rapid Cement 42.5R", "unit": "per 50kg bag"},
    "sand-river": {"name": "River Sand (Concrete)", "unit": "per cube"},
    "sand-bricks": {"name": "Brick Sand", "unit": "per cube"},
    "sand-pit": {"name": "Pit Sand (Plaster)", "unit": "per cube"},
    "stone-19mm": {"name": "Crushed Stone 19mm", "unit": "per cube"},
    "brick-common": {"name": "Red Common Brick", "unit": "each"},
    "farm-brick": {"name": "Farm Brick", "unit": "each"},
    "brick-semi": {"name": "Semi-Common Brick", "unit": "each"},
    "block-6inch": {"name": '6" Cement Block', "unit": "each"},
    "block-8inch": {"name": '8" Cement Block', "unit": "each"},
    "brick-face-red": {"name": "Face Brick", "unit": "each"},
    "mesh-ref193": {"name": "Welded Mesh Ref 193", "unit": "per sheet"},
    "rebar-12": {"name": "Rebar Y12 (6m)", "unit": "per 6m length"},
    "rebar-10": {"name": "Rebar Y10 (6m)", "unit": "per 6m length"},
    "brickforce": {"name": "Brickforce", "unit": "per roll"},
    "ibr-05-3m": {"name": "IBR Sheet 0.5mm (3m)", "unit": "per sheet"},
    "screws-roof": {"name": "Roof Screws 65mm", "unit": "per 100"},
    "timber-50x76": {"name": "Timber 50x76mm (Rafters)", "unit": "per 6m length"},
    "timber-38x38": {"name": "Timber 38x38mm (Brandering)", "unit": "per 6m length"},
    "fascia-board": {"name": "Fascia Board 228mm", "unit": "per 6m length"},
    "paint-pva": {"name": "PVA Paint (20L)", "unit": "per 20L tin"},
    "tiles-floor-ceramic": {"name": "Ceramic Floor Tiles", "unit": "per m2"},
    "tile-adhesive": {"name": "Tile Adhesive (20kg)", "unit": "per bag"},
    "window-sill-brick": {"name": "Window Sill (Brick)", "unit": "per meter"},
    "allowance-external-works": {"name": "External Works Allowance", "unit": "per m2"},
    "labor-builder": {"name": "Builder (Daily Rate)", "unit": "per day"},
    "labor-assistant": {"name": "General Hand (Daily Rate)", "unit": "per day"},
    "labor-foreman": {"name": "Foreman (Daily Rate)", "unit": "per day"},
    "service-food": {"name": "Builder's Food Allowance", "unit": "per day"},
}

# Unit prices in USD
SEED_PRICES: dict[str, float] = {
    "hardcore": 25.00,
    "dpm-500": 45.00,
    "cement-325": 10.00,
    "cement-425": 12.00,
    "sand-river": 45.00,
    "sand-bricks": 35.00,
    "sand-pit": 35.00,
    "stone-19mm": 55.00,
    "brick-common": 0.075,
    "farm-brick": 0.05,
    "brick-semi": 0.09,
    "block-6inch": 0.85,
    "block-8inch": 1.10,
    "brick-face-red": 0.18,
    "mesh-ref193": 85.00,
    "rebar-12": 7.80,
    "rebar-10": 5.50,
    "brickforce": 3.50,
    "ibr-05-3m": 22.00,
    "screws-roof": 12.00,
    "timber-50x76": 9.50,
    "timber-38x38": 4.50,
    "fascia-board": 14.00,
    "paint-pva": 35.00,
    "tiles-floor-ceramic": 12.00,
    "tile-adhesive": 8.00,
    "window-sill-brick": 6.00,
    "allowance-external-works": 18.00,
    "labor-builder": 25.00,
    "labor-assistant": 10.00,
    "labor-foreman": 40.00,
    "service-food": 5.00,
}

# Builder-days per m2 of floor area, by scope
LABOR_DAYS_PER_M2: dict[str, float] = {
    "full_house": 1.2,
    "substructure": 0.3,
    "superstructure": 0.5,
    "roofing": 0.2,
    "finishing": 0.2,
    "exterior": 0.15,
}

# Share of whole-project cost per phase, used to fill phases that priced to zero
STAGE_WEIGHT_FALLBACK: dict[str, float] = {
    "substructure": 0.22,
    "superstructure": 0.30,
    "roofing": 0.20,
    "finishing": 0.20,
    "exterior": 0.08,
}
