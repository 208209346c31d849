"""Tests for BOQ generation.

Covers: generator phases, clamping, scope, labor, detailed rooms, pricing,
totals, reports and the CostEngine facade.
"""

from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from zimest.cost.engine import CostEngine
from zimest.cost.enums import LABOR_CATEGORY, MasonryUnitType, Phase, ProjectScope
from zimest.cost.generator import generate_boq
from zimest.cost.labor import estimate_labor, labor_days_per_m2
from zimest.cost.models import GeneratedBOQItem, ManualBuilderConfig
from zimest.cost.pricing import (
    LocalProvider,
    StaticProvider,
    apply_average_price_update,
    calculate_variance,
    scale_local_price,
)
from zimest.cost.report import BOQTotals, calculate_totals
from zimest.cost.seed_data import MASONRY_UNITS, SEED_PRICES


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_FIXED = {"floorArea": 120, "roomCount": 6, "wallHeight": 2.7}


def _first(items: list[GeneratedBOQItem], note_prefix: str) -> GeneratedBOQItem:
    return next(item for item in items if item.calculation_note.startswith(note_prefix))


def _material(items: list[GeneratedBOQItem], material_id: str) -> list[GeneratedBOQItem]:
    return [item for item in items if item.material_id == material_id]


# ---------------------------------------------------------------------------
# Required relationships
# ---------------------------------------------------------------------------

class TestMonotonicity:
    def test_urban_foundation_cement_exceeds_rural(self):
        urban = generate_boq({**_FIXED, "locationType": "urban"})
        rural = generate_boq({**_FIXED, "locationType": "rural"})
        assert _first(urban, "Foundation concrete").quantity > _first(rural, "Foundation concrete").quantity

    def test_rural_roof_sheets_exceed_urban(self):
        urban = generate_boq({**_FIXED, "locationType": "urban"})
        rural = generate_boq({**_FIXED, "locationType": "rural"})
        assert _first(rural, "Roof area").quantity > _first(urban, "Roof area").quantity

    def test_peri_urban_roof_sheets_between(self):
        sheets = {
            loc: _first(generate_boq({**_FIXED, "locationType": loc}), "Roof area").quantity
            for loc in ("urban", "peri-urban", "rural")
        }
        assert sheets["urban"] < sheets["peri-urban"] < sheets["rural"]

    def test_higher_cement_grade_needs_more_mortar_cement(self):
        base = {**_FIXED, "scope": "superstructure"}
        low = generate_boq({**base, "cementType": "cement_325"})
        high = generate_boq({**base, "cementType": "cement_425"})
        assert _first(high, "Superstructure mortar").quantity > _first(low, "Superstructure mortar").quantity

    def test_roof_sheet_count(self):
        items = generate_boq({**_FIXED, "locationType": "urban"})
        # 138m2 / 0.85 * 1.10 = 178.6
        assert _first(items, "Roof area").quantity == 179


# ---------------------------------------------------------------------------
# Item invariants
# ---------------------------------------------------------------------------

class TestItems:
    def test_quantities_and_totals_non_negative(self):
        for config in (
            {},
            _FIXED,
            {"floorArea": 35, "roomCount": 1, "masonryUnitType": "blocks_8inch"},
            {"floorArea": 400, "roomCount": 12, "locationType": "rural", "includeLabor": True},
        ):
            for item in generate_boq(config):
                assert item.quantity >= 0
                assert item.total_usd >= 0
                assert item.total_local >= 0

    def test_quantities_are_whole_units(self):
        for item in generate_boq(_FIXED):
            assert item.quantity == math.ceil(item.quantity)

    def test_total_is_quantity_times_price(self):
        for item in generate_boq(_FIXED):
            assert item.total_usd == pytest.approx(item.quantity * item.unit_price_usd, abs=0.01)

    def test_ids_are_sequential(self):
        items = generate_boq(_FIXED)
        assert items[0].id == "boq_001"
        assert [item.id for item in items] == [f"boq_{n:03d}" for n in range(1, len(items) + 1)]

    def test_every_item_has_a_note(self):
        assert all(item.calculation_note for item in generate_boq(_FIXED))

    def test_items_not_edited(self):
        assert not any(item.is_edited for item in generate_boq(_FIXED))

    def test_items_are_frozen(self):
        item = generate_boq(_FIXED)[0]
        with pytest.raises(ValidationError):
            item.quantity = 1
        edited = item.model_copy(update={"quantity": 1, "is_edited": True})
        assert edited.is_edited is True

    def test_idempotent(self):
        first = generate_boq({**_FIXED, "includeLabor": True})
        second = generate_boq({**_FIXED, "includeLabor": True})
        assert first == second
        assert [i.model_dump_json() for i in first] == [i.model_dump_json() for i in second]

    def test_categories_in_phase_order(self):
        items = generate_boq({**_FIXED, "includeLabor": True})
        seen: list[str] = []
        for item in items:
            if item.category not in seen:
                seen.append(item.category)
        assert seen == [phase.value for phase in Phase] + [LABOR_CATEGORY]


# ---------------------------------------------------------------------------
# Clamping
# ---------------------------------------------------------------------------

class TestClamping:
    @pytest.mark.parametrize("bad", [0, -50, float("nan"), float("inf"), "abc", None])
    def test_bad_floor_area_uses_default(self, bad):
        assert generate_boq({"floorArea": bad}) == generate_boq({})

    def test_bad_room_count_uses_default(self):
        assert generate_boq({"roomCount": -3}) == generate_boq({"roomCount": 4})

    def test_room_count_rounded(self):
        assert ManualBuilderConfig(room_count=5.6).room_count == 6

    def test_bad_wall_height_uses_quality_default(self):
        assert generate_boq({"wallHeight": float("nan")}) == generate_boq({"wallHeight": 3.0})

    def test_unknown_enums_use_defaults(self):
        odd = generate_boq({"masonryUnitType": "adobe", "cementType": "glue", "locationType": "mars"})
        assert odd == generate_boq({})

    def test_snake_and_camel_keys(self):
        assert generate_boq({"floor_area": 80}) == generate_boq({"floorArea": 80})

    def test_unreadable_config_uses_defaults(self):
        assert generate_boq(None) == generate_boq({})
        assert generate_boq(["floorArea", 80]) == generate_boq({})

    def test_include_labor_from_string(self):
        assert ManualBuilderConfig(include_labor="yes").include_labor is True
        assert ManualBuilderConfig(include_labor="no").include_labor is False


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------

class TestScope:
    def test_single_scope(self):
        items = generate_boq({**_FIXED, "scope": "roofing"})
        assert items
        assert {item.category for item in items} == {"roofing"}

    def test_multiple_scopes(self):
        items = generate_boq({**_FIXED, "scope": ["substructure", "exterior"]})
        assert {item.category for item in items} == {"substructure", "exterior"}

    def test_unknown_scope_entries_dropped(self):
        items = generate_boq({**_FIXED, "scope": ["roofing", "swimming_pool"]})
        assert {item.category for item in items} == {"roofing"}

    def test_no_known_scope_means_full_house(self):
        assert generate_boq({**_FIXED, "scope": "swimming_pool"}) == generate_boq(_FIXED)

    def test_full_house_covers_every_phase(self):
        categories = {item.category for item in generate_boq(_FIXED)}
        assert categories == {phase.value for phase in Phase}

    def test_scoped_items_match_full_house(self):
        full = [i for i in generate_boq(_FIXED) if i.category == "finishing"]
        scoped = generate_boq({**_FIXED, "scope": "finishing"})
        assert [i.quantity for i in scoped] == [i.quantity for i in full]


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

class TestPhases:
    def test_substructure_lines(self):
        items = generate_boq({**_FIXED, "scope": "substructure"})
        ids = {item.material_id for item in items}
        assert {"hardcore", "dpm-500", "cement-325", "sand-river", "stone-19mm", "brick-common",
                "sand-bricks", "mesh-ref193"} <= ids

    def test_cement_grade_selects_cement_material(self):
        items = generate_boq({**_FIXED, "cementType": "cement_425"})
        assert _material(items, "cement-425")
        assert not _material(items, "cement-325")

    def test_masonry_type_selects_unit(self):
        items = generate_boq({**_FIXED, "scope": "superstructure", "masonryUnitType": "blocks_6inch"})
        blocks = _material(items, "block-6inch")
        assert blocks
        assert not _material(items, "brick-common")

    def test_blocks_need_fewer_units_than_bricks(self):
        base = {**_FIXED, "scope": "superstructure"}
        bricks = _first(generate_boq({**base, "masonryUnitType": "common"}), "External walls")
        blocks = _first(generate_boq({**base, "masonryUnitType": "blocks_8inch"}), "External walls")
        assert blocks.quantity < bricks.quantity

    def test_more_rooms_more_internal_walling(self):
        few = _first(generate_boq({**_FIXED, "roomCount": 3, "scope": "superstructure"}), "Internal walls")
        many = _first(generate_boq({**_FIXED, "roomCount": 8, "scope": "superstructure"}), "Internal walls")
        assert many.quantity > few.quantity

    def test_single_room_has_no_internal_walls(self):
        items = generate_boq({**_FIXED, "roomCount": 1, "scope": "superstructure"})
        assert not any(i.calculation_note.startswith("Internal walls") for i in items)

    def test_face_brick_skips_external_plaster_face(self):
        common = _first(generate_boq({**_FIXED, "scope": "finishing"}), "Plaster:")
        face = _first(
            generate_boq({**_FIXED, "scope": "finishing", "masonryUnitType": "face_brick"}),
            "Plaster:",
        )
        assert face.quantity < common.quantity

    def test_window_sills_from_floor_area(self):
        sill = _material(generate_boq({**_FIXED, "scope": "finishing"}), "window-sill-brick")[0]
        # ceil(120 / 15) = 8 windows at 1.5m
        assert sill.quantity == 12
        assert sill.calculation_note == "Window sills: 8 windows"

    def test_external_works_allowance(self):
        items = generate_boq({**_FIXED, "scope": "exterior"})
        allowance = _material(items, "allowance-external-works")[0]
        assert allowance.quantity == 120
        assert allowance.total_usd == pytest.approx(120 * 18)

    def test_economy_quality_uses_lower_walls(self):
        standard = _first(generate_boq({"floorArea": 120, "scope": "superstructure"}), "External walls")
        economy = _first(
            generate_boq({"floorArea": 120, "scope": "superstructure", "buildQuality": "economy"}),
            "External walls",
        )
        assert economy.quantity < standard.quantity


# ---------------------------------------------------------------------------
# Detailed rooms
# ---------------------------------------------------------------------------

class TestDetailedRooms:
    _ROOMS = [
        {"name": "Bedroom", "length": 4, "width": 3, "windows": 2, "masonryUnitType": "blocks_6inch"},
        {"name": "Lounge", "length": 5, "width": 4, "windows": 1},
    ]

    def test_walls_split_by_masonry_type(self):
        items = generate_boq({**_FIXED, "scope": "superstructure", "rooms": self._ROOMS})
        assert _material(items, "block-6inch")
        assert _material(items, "brick-common")

    def test_window_sills_from_rooms(self):
        items = generate_boq({**_FIXED, "scope": "finishing", "rooms": self._ROOMS})
        sill = _material(items, "window-sill-brick")[0]
        # 3 windows at 1.5m
        assert sill.quantity == 5

    def test_unreadable_rooms_skipped(self):
        config = ManualBuilderConfig.model_validate({"rooms": [self._ROOMS[0], "kitchen", 7]})
        assert len(config.rooms) == 1
        assert config.rooms[0].area == pytest.approx(12.0)

    def test_rooms_without_area_fall_back(self):
        rooms = [{"name": "Store", "length": 0, "width": 0}]
        with_rooms = generate_boq({**_FIXED, "scope": "superstructure", "rooms": rooms})
        without = generate_boq({**_FIXED, "scope": "superstructure"})
        assert [i.quantity for i in with_rooms] == [i.quantity for i in without]

    def test_unknown_room_unit_uses_building_unit(self):
        rooms = [{"name": "Bedroom", "length": 4, "width": 3, "masonryUnitType": "adobe"}]
        items = generate_boq(
            {**_FIXED, "scope": "superstructure", "masonryUnitType": "blocks_8inch", "rooms": rooms}
        )
        assert _material(items, "block-8inch")
        assert not _material(items, "brick-common")
        assert ManualBuilderConfig.model_validate({"rooms": rooms}).rooms[0].masonry_unit_type is None


# ---------------------------------------------------------------------------
# Labor
# ---------------------------------------------------------------------------

class TestLabor:
    def test_labor_excluded_by_default(self):
        assert not any(i.category == LABOR_CATEGORY for i in generate_boq(_FIXED))

    def test_labor_lines(self):
        items = [i for i in generate_boq({**_FIXED, "includeLabor": True}) if i.category == LABOR_CATEGORY]
        ids = [i.material_id for i in items]
        assert ids == ["labor-builder", "labor-assistant", "labor-foreman", "service-food"]

        builder, assistant, foreman, food = (i.quantity for i in items)
        assert assistant == math.ceil(builder * 1.5)
        assert foreman == math.ceil(builder / 10)
        assert food == builder + assistant + foreman

    def test_full_house_rate(self):
        assert labor_days_per_m2([ProjectScope.SUBSTRUCTURE]) == pytest.approx(0.3)
        assert labor_days_per_m2([ProjectScope.FULL_HOUSE, ProjectScope.ROOFING]) == pytest.approx(1.2)
        assert labor_days_per_m2([ProjectScope.ROOFING, ProjectScope.FINISHING]) == pytest.approx(0.4)

    def test_estimate_labor_counts(self):
        labor = estimate_labor(100, [ProjectScope.SUPERSTRUCTURE])
        assert labor["builder_days"] == 50
        assert labor["assistant_days"] == 75
        assert labor["foreman_days"] == 5
        assert labor["person_days"] == 130


# ---------------------------------------------------------------------------
# Pricing
# ---------------------------------------------------------------------------

class TestPricing:
    def test_local_provider_prices(self):
        price = LocalProvider().get_unit_price("cement-325", 30.0)
        assert price.price_usd == pytest.approx(10.0)
        assert price.price_local == pytest.approx(300.0)
        assert price.unit == "per 50kg bag"
        assert price.to_dict()["source"] == "Harare supplier survey 2026-01"

    def test_unknown_material_prices_at_zero(self):
        price = LocalProvider().get_unit_price("unobtainium", 30.0)
        assert price.price_usd == 0.0
        assert price.price_local == 0.0

    def test_static_provider_with_fallback(self):
        provider = StaticProvider({"cement-325": 11.5, "sand-river": -4}, fallback=LocalProvider())
        assert provider.get_price_usd("cement-325") == pytest.approx(11.5)
        assert provider.get_price_usd("sand-river") == pytest.approx(SEED_PRICES["sand-river"])
        assert provider.get_price_usd("stone-19mm") == pytest.approx(SEED_PRICES["stone-19mm"])

    def test_static_provider_without_prices(self):
        items = generate_boq(_FIXED, provider=StaticProvider({}))
        assert items
        assert all(i.unit_price_usd == 0 and i.total_usd == 0 for i in items)

    def test_injected_prices_used(self):
        items = generate_boq(_FIXED, provider=StaticProvider({"ibr-05-3m": 30}, fallback=LocalProvider()))
        sheets = _first(items, "Roof area")
        assert sheets.unit_price_usd == pytest.approx(30.0)
        assert sheets.total_usd == pytest.approx(sheets.quantity * 30)

    def test_local_price_follows_exchange_rate(self):
        for item in generate_boq(_FIXED, exchange_rate=25.0):
            assert item.unit_price_local == pytest.approx(item.unit_price_usd * 25.0, abs=1e-3)

    def test_local_total_matches_displayed_unit_price(self):
        for item in generate_boq(_FIXED, exchange_rate=27.123457):
            assert item.total_local == pytest.approx(item.quantity * item.unit_price_local, abs=0.005)

    def test_invalid_exchange_rate_uses_default(self):
        assert generate_boq(_FIXED, exchange_rate=-1) == generate_boq(_FIXED, exchange_rate=30.0)

    def test_masonry_units_distinct(self):
        rates = {unit["units_per_m2"] for unit in MASONRY_UNITS.values()}
        prices = {SEED_PRICES[unit["material_id"]] for unit in MASONRY_UNITS.values()}
        assert len(rates) == len(MasonryUnitType)
        assert len(prices) == len(MasonryUnitType)

    def test_scale_local_price(self):
        assert scale_local_price(12.0, 10.0, 280.0, 30.0) == pytest.approx(336.0)
        assert scale_local_price(12.0, 0.0, 0.0, 30.0) == pytest.approx(360.0)

    def test_calculate_variance(self):
        variance, pct = calculate_variance(10.0, 12.5)
        assert variance == pytest.approx(2.5)
        assert pct == pytest.approx(25.0)
        assert calculate_variance(0.0, 5.0) == (5.0, None)

    def test_average_update_moves_unedited_actual(self):
        item = {"average_price_usd": 10.0, "actual_price_usd": 10.0}
        updated = apply_average_price_update(item, 12.0, 330.0, 30.0)
        assert updated["average_price_usd"] == pytest.approx(12.0)
        assert updated["average_price_local"] == pytest.approx(330.0)
        assert updated["actual_price_usd"] == pytest.approx(12.0)
        assert updated["actual_price_local"] == pytest.approx(330.0)

    def test_average_update_keeps_edited_actual(self):
        item = {"average_price_usd": 10.0, "actual_price_usd": 9.0}
        updated = apply_average_price_update(item, 12.0, 330.0, 30.0)
        assert updated["actual_price_usd"] == pytest.approx(9.0)
        assert updated["actual_price_local"] == pytest.approx(9.0 / 12.0 * 330.0)

    def test_average_update_without_local_average(self):
        item = {"average_price_usd": 10.0, "actual_price_usd": 11.0}
        updated = apply_average_price_update(item, 12.0, 0.0, 30.0)
        assert updated["actual_price_local"] == pytest.approx(330.0)


# ---------------------------------------------------------------------------
# Totals & report
# ---------------------------------------------------------------------------

class TestTotals:
    def test_totals_match_items(self):
        items = generate_boq({**_FIXED, "includeLabor": True})
        totals = calculate_totals(items)
        assert totals.item_count == len(items)
        assert totals.total_usd == pytest.approx(sum(i.total_usd for i in items), abs=0.05)
        assert totals.total_local == pytest.approx(sum(i.total_local for i in items), abs=1.0)

    def test_totals_by_category(self):
        items = generate_boq({**_FIXED, "scope": ["roofing", "exterior"]})
        totals = calculate_totals(items)
        assert list(totals.by_category) == ["roofing", "exterior"]
        assert sum(c.count for c in totals.by_category.values()) == len(items)
        roofing = sum(i.total_usd for i in items if i.category == "roofing")
        assert totals.by_category["roofing"].usd == pytest.approx(roofing, abs=0.01)

    def test_empty_totals(self):
        totals = calculate_totals([])
        assert totals == BOQTotals()

    def test_markdown(self):
        items = generate_boq({**_FIXED, "includeLabor": True})
        md = calculate_totals(items).to_markdown(items)
        assert "# Bill of Quantities" in md
        assert "| Roofing |" in md
        assert "| Labor |" in md
        assert "boq_001" in md


# ---------------------------------------------------------------------------
# CostEngine
# ---------------------------------------------------------------------------

class TestCostEngine:
    def test_defaults(self):
        engine = CostEngine()
        assert engine.exchange_rate == pytest.approx(30.0)
        assert engine.generate(_FIXED) == generate_boq(_FIXED)

    def test_default_location_applied(self):
        engine = CostEngine(location_type="rural")
        sheets = _first(engine.generate(_FIXED), "Roof area")
        expected = _first(generate_boq({**_FIXED, "locationType": "rural"}), "Roof area")
        assert sheets.quantity == expected.quantity

    def test_none_location_uses_engine_default(self):
        engine = CostEngine(location_type="rural")
        assert engine.generate({**_FIXED, "locationType": None}) == engine.generate(_FIXED)
        assert engine.generate({**_FIXED, "location_type": None}) == engine.generate(_FIXED)

    def test_explicit_location_wins(self):
        engine = CostEngine(location_type="rural")
        items = engine.generate({**_FIXED, "locationType": "urban"})
        assert items == generate_boq({**_FIXED, "locationType": "urban"})

    def test_model_input_location(self):
        engine = CostEngine(location_type="rural")
        config = ManualBuilderConfig(floor_area=120, room_count=6, wall_height=2.7)
        assert engine.generate(config) == generate_boq({**_FIXED, "locationType": "rural"})

    def test_exchange_rate_applied(self):
        engine = CostEngine(exchange_rate=20.0)
        for item in engine.generate(_FIXED):
            assert item.unit_price_local == pytest.approx(item.unit_price_usd * 20.0, abs=1e-3)

    def test_totals(self):
        engine = CostEngine()
        items = engine.generate(_FIXED)
        assert engine.totals(items) == calculate_totals(items)

    def test_from_config_mapping(self):
        engine = CostEngine.from_config({"ZIMEST_EXCHANGE_RATE": "25", "ZIMEST_DEFAULT_LOCATION": "rural"})
        assert engine.exchange_rate == pytest.approx(25.0)
        assert engine.location_type.value == "rural"

    def test_from_config_bad_values(self):
        engine = CostEngine.from_config({"ZIMEST_EXCHANGE_RATE": "lots", "ZIMEST_DEFAULT_LOCATION": "moon"})
        assert engine.exchange_rate == pytest.approx(30.0)
        assert engine.location_type.value == "urban"
