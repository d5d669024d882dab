"""Crafting recipes: turning stored materials into tools."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from island_sim.agents.skills import SkillLedger
from island_sim.economy.inventory import TOOLS, Inventory, ToolInstance


@dataclass(frozen=True)
class Recipe:
    """A fixed bill of materials producing one tool."""

    output: str
    inputs: dict[str, int]
    craft_time: float
    base_durability: int


# =============================================================================
# Recipe definitions
# =============================================================================

RECIPES: dict[str, Recipe] = {
    tool_id: Recipe(tool_id, dict(tool.recipe), tool.craft_time, tool.durability)
    for tool_id, tool in TOOLS.items()
}


@dataclass
class CraftResult:
    success: bool
    tool: Optional[ToolInstance] = None
    reason: str = ""


def can_craft(inventory: Inventory, recipe_id: str) -> bool:
    """Does *inventory* hold every input of the recipe?"""
    recipe = RECIPES.get(recipe_id)
    if recipe is None:
        return False
    return all(inventory.count(rid) >= qty for rid, qty in recipe.inputs.items())


def consume(inventory: Inventory, recipe_id: str) -> bool:
    """Deduct the recipe's inputs. All or nothing."""
    if not can_craft(inventory, recipe_id):
        return False
    for rid, qty in RECIPES[recipe_id].inputs.items():
        inventory.remove(rid, qty)
    return True


def crafting_time(recipe_id: str, skills: Optional[SkillLedger] = None) -> float:
    recipe = RECIPES[recipe_id]
    if skills is None:
        return recipe.craft_time
    return skills.crafting_time(recipe.craft_time)


def craft(
    recipe_id: str,
    source: Inventory,
    destination: Inventory,
    skills: Optional[SkillLedger] = None,
) -> CraftResult:
    """Consume inputs from *source* and put one new tool in *destination*.

    Nothing is consumed when the destination cannot hold another tool.
    """
    recipe = RECIPES.get(recipe_id)
    if recipe is None:
        return CraftResult(False, reason="unknown_recipe")
    if not can_craft(source, recipe_id):
        return CraftResult(False, reason="missing_materials")
    if not destination.can_hold_tool(recipe.output):
        return CraftResult(False, reason="no_room")

    consume(source, recipe_id)
    durability = recipe.base_durability
    if skills is not None:
        durability = skills.crafted_durability(durability)
    destination.add_tool(recipe.output, durability)
    return CraftResult(True, tool=destination.tools[recipe.output][-1])
