"""Resource and tool catalogs, and the slot inventory shared by islanders and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from island_sim.core.config import (
    PERSONAL_MAX_SLOTS,
    PERSONAL_TOOL_CAPACITY,
    STORE_MAX_SLOTS,
    STORE_POSITION,
    STORE_STACK_SCALE,
    STORE_TOOL_CAPACITY,
)


# =============================================================================
# Resource catalog
# =============================================================================

@dataclass(frozen=True)
class ResourceDef:
    resource_id: str
    category: str                        # "food", "material" or "trophy"
    stack_size: int
    nutrition: float = 0.0
    nutrition_cooked: Optional[float] = None
    spoil_time: Optional[float] = None   # seconds; None never spoils
    gather_time: float = 1.0

    @property
    def is_food(self) -> bool:
        return self.category == "food"


RESOURCES: dict[str, ResourceDef] = {
    # Food
    "coconut": ResourceDef("coconut", "food", 6, nutrition=0.35, gather_time=1.0),
    "mullet": ResourceDef("mullet", "food", 4, nutrition=0.15, nutrition_cooked=0.25, spoil_time=120.0),
    "parrotfish": ResourceDef("parrotfish", "food", 3, nutrition=0.3, nutrition_cooked=0.45, spoil_time=100.0),
    "grouper": ResourceDef("grouper", "food", 2, nutrition=0.5, nutrition_cooked=0.7, spoil_time=80.0),
    "shark_meat": ResourceDef("shark_meat", "food", 8, nutrition=0.8, nutrition_cooked=1.0, spoil_time=60.0),
    "squid_meat": ResourceDef("squid_meat", "food", 20, nutrition=1.0, nutrition_cooked=1.2, spoil_time=40.0),
    # Materials
    "wood": ResourceDef("wood", "material", 10, gather_time=2.0),
    "stone": ResourceDef("stone", "material", 8, gather_time=2.5),
    "vine": ResourceDef("vine", "material", 8, gather_time=1.5),
    "leaves": ResourceDef("leaves", "material", 12, gather_time=1.0),
    "shark_skin": ResourceDef("shark_skin", "material", 4),
    "squid_tentacle": ResourceDef("squid_tentacle", "material", 8),
    "squid_ink": ResourceDef("squid_ink", "material", 2),
    # Trophies
    "shark_teeth": ResourceDef("shark_teeth", "trophy", 20),
    "shark_jaw": ResourceDef("shark_jaw", "trophy", 1),
    "squid_beak": ResourceDef("squid_beak", "trophy", 1),
    "squid_eye": ResourceDef("squid_eye", "trophy", 2),
}

# Foods that cause sickness unless cooked
_RAW_FOODS: frozenset[str] = frozenset({"mullet", "parrotfish", "grouper", "shark_meat", "squid_meat"})


# =============================================================================
# Tool catalog
# =============================================================================

@dataclass(frozen=True)
class ToolDef:
    tool_id: str
    recipe: dict[str, int]
    craft_time: float
    durability: int
    effects: dict[str, float] = field(default_factory=dict)
    is_weapon: bool = False


TOOLS: dict[str, ToolDef] = {
    "fishing_spear": ToolDef(
        "fishing_spear", {"wood": 2, "stone": 1}, 5.0, 15,
        {"fishing_speed_bonus": 0.5}, is_weapon=True,
    ),
    "gathering_stick": ToolDef(
        "gathering_stick", {"wood": 2, "vine": 1}, 3.0, 20,
        {"gather_speed_bonus": 0.5},
    ),
    "stone_axe": ToolDef(
        "stone_axe", {"wood": 2, "stone": 2, "vine": 1}, 8.0, 10,
        {"wood_yield_bonus": 1.0, "combat_damage_bonus": 0.3}, is_weapon=True,
    ),
    "shark_spear": ToolDef(
        "shark_spear", {"wood": 3, "shark_teeth": 5, "vine": 2}, 12.0, 25,
        {"combat_damage_bonus": 0.8, "fishing_speed_bonus": 0.8}, is_weapon=True,
    ),
}

SPEAR_IDS: tuple[str, ...] = ("fishing_spear", "shark_spear")


def food_nutrition(resource_id: str, is_cooked: bool = False) -> float:
    res = RESOURCES.get(resource_id)
    if res is None or not res.is_food:
        return 0.0
    if is_cooked and res.nutrition_cooked is not None:
        return res.nutrition_cooked
    return res.nutrition


def is_raw_food(resource_id: str, stamp: Optional["ItemStamp"] = None) -> bool:
    if resource_id not in _RAW_FOODS:
        return False
    return not (stamp is not None and stamp.is_cooked)


# =============================================================================
# Items
# =============================================================================

@dataclass
class ItemStamp:
    """Per-item provenance on simulated time."""

    spawn_time: float = 0.0
    spoil_time: Optional[float] = None
    is_cooked: bool = False

    def age(self, now: float) -> float:
        return now - self.spawn_time

    def is_spoiled(self, now: float) -> bool:
        return self.spoil_time is not None and self.age(now) >= self.spoil_time


@dataclass
class Slot:
    count: int = 0
    items: list[ItemStamp] = field(default_factory=list)


@dataclass
class ToolInstance:
    tool_id: str
    durability: int
    max_durability: int


class Inventory:
    """Stack-limited resource slots plus tools with durability.

    Each resource occupies at most one slot; a slot's count never exceeds the
    resource's stack size times ``stack_scale``.
    """

    def __init__(
        self,
        max_slots: int = PERSONAL_MAX_SLOTS,
        stack_scale: int = 1,
        tool_capacity: int = PERSONAL_TOOL_CAPACITY,
    ) -> None:
        self.max_slots = max_slots
        self.stack_scale = stack_scale
        self.tool_capacity = tool_capacity
        self.slots: dict[str, Slot] = {}
        self.tools: dict[str, list[ToolInstance]] = {}
        self.equipped: Optional[str] = None

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def stack_size(self, resource_id: str) -> int:
        res = RESOURCES.get(resource_id)
        return res.stack_size * self.stack_scale if res else 0

    def count(self, resource_id: str) -> int:
        slot = self.slots.get(resource_id)
        return slot.count if slot else 0

    def total(self) -> int:
        return sum(slot.count for slot in self.slots.values())

    @property
    def is_empty(self) -> bool:
        return not self.slots

    def room_for(self, resource_id: str) -> int:
        """How many more units of *resource_id* can be added."""
        if resource_id not in RESOURCES:
            return 0
        if resource_id not in self.slots and len(self.slots) >= self.max_slots:
            return 0
        return self.stack_size(resource_id) - self.count(resource_id)

    def add(
        self,
        resource_id: str,
        n: int = 1,
        now: float = 0.0,
        stamps: Optional[list[ItemStamp]] = None,
        is_cooked: bool = False,
    ) -> bool:
        """Add *n* units. Fails without mutation if they do not fit."""
        res = RESOURCES.get(resource_id)
        if res is None or n <= 0 or self.room_for(resource_id) < n:
            return False
        slot = self.slots.setdefault(resource_id, Slot())
        if stamps is not None and len(stamps) == n:
            slot.items.extend(stamps)
        else:
            slot.items.extend(
                ItemStamp(spawn_time=now, spoil_time=res.spoil_time, is_cooked=is_cooked)
                for _ in range(n)
            )
        slot.count += n
        return True

    def remove(self, resource_id: str, n: int = 1) -> Optional[list[ItemStamp]]:
        """Remove *n* units, oldest first. Returns their stamps, or None if short."""
        slot = self.slots.get(resource_id)
        if slot is None or n <= 0 or slot.count < n:
            return None
        removed = slot.items[:n]
        del slot.items[:n]
        slot.count -= n
        if slot.count <= 0:
            del self.slots[resource_id]
        return removed

    def sweep_spoilage(self, now: float) -> list[tuple[str, ItemStamp]]:
        """Drop every item whose age has reached its spoil time."""
        spoiled: list[tuple[str, ItemStamp]] = []
        for resource_id in list(self.slots):
            slot = self.slots[resource_id]
            fresh = [item for item in slot.items if not item.is_spoiled(now)]
            if len(fresh) == len(slot.items):
                continue
            spoiled.extend((resource_id, item) for item in slot.items if item.is_spoiled(now))
            slot.items = fresh
            slot.count = len(fresh)
            if slot.count <= 0:
                del self.slots[resource_id]
        return spoiled

    def food_ids(self) -> list[str]:
        return [rid for rid in self.slots if RESOURCES[rid].is_food]

    def has_food(self) -> bool:
        return bool(self.food_ids())

    def best_food(self) -> Optional[str]:
        """The food to eat next: safe food first, then the most nutritious."""
        foods = self.food_ids()
        if not foods:
            return None
        return min(foods, key=lambda rid: (is_raw_food(rid), -food_nutrition(rid), rid))

    def contents(self) -> dict[str, int]:
        return {rid: slot.count for rid, slot in self.slots.items()}

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def tool_count(self, tool_id: str) -> int:
        return len(self.tools.get(tool_id, []))

    def can_hold_tool(self, tool_id: str) -> bool:
        return tool_id in TOOLS and self.tool_count(tool_id) < self.tool_capacity

    def add_tool(self, tool_id: str, durability: Optional[int] = None) -> bool:
        if not self.can_hold_tool(tool_id):
            return False
        base = TOOLS[tool_id].durability
        value = base if durability is None else durability
        self.tools.setdefault(tool_id, []).append(ToolInstance(tool_id, value, max(base, value)))
        return True

    def put_tool(self, tool: ToolInstance) -> bool:
        if not self.can_hold_tool(tool.tool_id):
            return False
        self.tools.setdefault(tool.tool_id, []).append(tool)
        return True

    def take_tool(self, tool_id: str) -> Optional[ToolInstance]:
        """Remove and return one instance of *tool_id*, unequipping if needed."""
        held = self.tools.get(tool_id)
        if not held:
            return None
        tool = held.pop(0)
        if not held:
            del self.tools[tool_id]
            if self.equipped == tool_id:
                self.equipped = None
        return tool

    def has_tool(self, tool_id: str) -> bool:
        return self.tool_count(tool_id) > 0

    def equip(self, tool_id: str) -> bool:
        if not self.has_tool(tool_id):
            return False
        self.equipped = tool_id
        return True

    def use_tool(self, tool_id: str) -> bool:
        """Wear one use off a tool. Returns False if it broke or is missing."""
        held = self.tools.get(tool_id)
        if not held:
            return False
        tool = held[0]
        tool.durability -= 1
        if tool.durability <= 0:
            self.take_tool(tool_id)
            return False
        return True

    def equipped_effects(self) -> dict[str, float]:
        if self.equipped is None:
            return {}
        return dict(TOOLS[self.equipped].effects)

    def has_spear_equipped(self) -> bool:
        return self.equipped in SPEAR_IDS

    def has_weapon(self) -> bool:
        return any(TOOLS[tid].is_weapon for tid in self.tools)


class CommunalStore(Inventory):
    """The tribe's hut: an inventory with a location and much larger stacks."""

    def __init__(self, position: tuple[float, float] = STORE_POSITION) -> None:
        super().__init__(
            max_slots=STORE_MAX_SLOTS,
            stack_scale=STORE_STACK_SCALE,
            tool_capacity=STORE_TOOL_CAPACITY,
        )
        self.position = position


def transfer(source: Inventory, destination: Inventory, resource_id: str, n: Optional[int] = None) -> int:
    """Move up to *n* units (all by default), keeping item stamps. Returns units moved."""
    available = source.count(resource_id)
    wanted = available if n is None else min(n, available)
    moving = min(wanted, destination.room_for(resource_id))
    if moving <= 0:
        return 0
    stamps = source.remove(resource_id, moving)
    if stamps is None:
        return 0
    destination.add(resource_id, moving, stamps=stamps)
    return moving
