"""Tests for recipes and the all-or-nothing craft operation."""

import pytest

from island_sim.agents.skills import SkillLedger
from island_sim.economy.crafting import RECIPES, can_craft, consume, craft, crafting_time
from island_sim.economy.inventory import CommunalStore, Inventory


def _store_with(**counts) -> CommunalStore:
    store = CommunalStore()
    for rid, n in counts.items():
        store.add(rid, n)
    return store


class TestRecipes:
    def test_spear_recipe(self):
        recipe = RECIPES["fishing_spear"]
        assert recipe.inputs == {"wood": 2, "stone": 1}
        assert recipe.base_durability == 15

    def test_can_craft(self):
        assert can_craft(_store_with(wood=2, stone=1), "fishing_spear")
        assert not can_craft(_store_with(wood=1, stone=1), "fishing_spear")
        assert not can_craft(_store_with(wood=9), "no_such_tool")

    def test_consume_all_or_nothing(self):
        store = _store_with(wood=2, stone=1)
        assert not consume(store, "stone_axe")
        assert store.contents() == {"wood": 2, "stone": 1}

    def test_crafting_time_scales_with_skill(self):
        skilled = SkillLedger()
        skilled.skills["crafting"].level = 100
        assert crafting_time("fishing_spear") == pytest.approx(5.0)
        assert crafting_time("fishing_spear", skilled) == pytest.approx(3.5)


class TestCraft:
    def test_spear_from_store_leaves_remainder(self):
        store = _store_with(wood=2, stone=1, vine=5)
        holder = Inventory()
        result = craft("fishing_spear", store, holder)
        assert result.success
        assert store.contents() == {"vine": 5}
        assert holder.tool_count("fishing_spear") == 1
        assert result.tool.durability == 15

    def test_missing_materials(self):
        store = _store_with(wood=1)
        result = craft("fishing_spear", store, Inventory())
        assert not result.success
        assert result.reason == "missing_materials"
        assert store.count("wood") == 1

    def test_unknown_recipe(self):
        assert craft("boat", CommunalStore(), Inventory()).reason == "unknown_recipe"

    def test_no_room_consumes_nothing(self):
        store = _store_with(wood=2, stone=1)
        holder = Inventory()
        holder.add_tool("fishing_spear")
        result = craft("fishing_spear", store, holder)
        assert result.reason == "no_room"
        assert store.contents() == {"wood": 2, "stone": 1}

    def test_skill_raises_durability(self):
        skills = SkillLedger()
        skills.skills["crafting"].level = 50
        result = craft("fishing_spear", _store_with(wood=2, stone=1), Inventory(), skills)
        assert result.tool.durability == 18
