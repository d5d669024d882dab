"""Skill levels, XP curves, derived bonuses and apprenticeship."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from island_sim.core.config import (
    APPRENTICE_BONUS_PER_MENTOR,
    APPRENTICE_MARGIN,
    APPRENTICE_MAX_MULT,
    COMBAT_WIN_BASE,
    COMBAT_WIN_BOUNDS,
    MAX_SKILL_LEVEL,
    XP_PER_LEVEL,
    XP_SCALING,
)

SKILL_IDS: tuple[str, ...] = ("gathering", "fishing", "crafting", "combat", "cooking")

# (skill, effect) -> bonus at max level; bonus scales linearly with level
BONUS_CURVES: dict[tuple[str, str], float] = {
    ("gathering", "speed"): 1.0,
    ("gathering", "yield"): 0.5,
    ("fishing", "catch"): 1.0,
    ("fishing", "size"): 0.5,
    ("crafting", "time"): 0.3,
    ("crafting", "durability"): 0.5,
    ("combat", "win"): 0.8,
    ("cooking", "time"): 0.5,
    ("cooking", "nutrition"): 0.3,
}

# action -> (skill, xp)
XP_REWARDS: dict[str, tuple[str, int]] = {
    "gather_coconut": ("gathering", 5),
    "gather_wood": ("gathering", 8),
    "gather_stone": ("gathering", 10),
    "gather_vine": ("gathering", 5),
    "catch_mullet": ("fishing", 5),
    "catch_parrotfish": ("fishing", 15),
    "catch_grouper": ("fishing", 30),
    "catch_shark": ("fishing", 100),
    "craft_tool": ("crafting", 20),
    "repair_item": ("crafting", 10),
    "win_fight": ("combat", 25),
    "kill_shark": ("combat", 100),
    "kill_squid": ("combat", 500),
    "cook_fish": ("cooking", 10),
    "cook_meal": ("cooking", 20),
}


def xp_for_level(level: int) -> int:
    """XP needed to advance from *level* to the next one."""
    return math.floor(XP_PER_LEVEL * XP_SCALING ** level)


@dataclass
class SkillState:
    level: int = 0
    xp: float = 0.0


@dataclass
class XPResult:
    leveled: bool
    new_level: int
    levels_gained: int = 0


@dataclass
class SkillLedger:
    """Per-islander skill levels and accumulated XP."""

    skills: dict[str, SkillState] = field(
        default_factory=lambda: {sid: SkillState() for sid in SKILL_IDS}
    )

    def level(self, skill_id: str) -> int:
        state = self.skills.get(skill_id)
        return state.level if state else 0

    def normalized(self, skill_id: str) -> float:
        return self.level(skill_id) / MAX_SKILL_LEVEL

    def add_xp(self, skill_id: str, amount: float, multiplier: float = 1.0) -> XPResult:
        """Accumulate XP and level up while the requirement is met.

        Level never decreases and never passes the maximum; surplus XP at the
        cap is discarded.
        """
        state = self.skills.get(skill_id)
        if state is None:
            return XPResult(False, 0)
        if state.level >= MAX_SKILL_LEVEL:
            return XPResult(False, state.level)

        state.xp += max(0.0, amount * multiplier)
        start = state.level
        while state.level < MAX_SKILL_LEVEL:
            needed = xp_for_level(state.level)
            if state.xp < needed:
                break
            state.xp -= needed
            state.level += 1
        if state.level >= MAX_SKILL_LEVEL:
            state.xp = 0.0

        gained = state.level - start
        return XPResult(gained > 0, state.level, gained)

    def bonus(self, skill_id: str, effect: str) -> float:
        try:
            at_max = BONUS_CURVES[(skill_id, effect)]
        except KeyError:
            raise ValueError(f"unknown skill bonus {skill_id}/{effect}") from None
        return self.normalized(skill_id) * at_max

    # Derived helpers -------------------------------------------------

    def gathering_time(self, base_time: float) -> float:
        return base_time / (1.0 + self.bonus("gathering", "speed"))

    def gathering_yield(self, base_yield: int) -> int:
        return math.floor(base_yield * (1.0 + self.bonus("gathering", "yield")))

    def catch_chance(self, base_chance: float) -> float:
        return min(1.0, base_chance * (1.0 + self.bonus("fishing", "catch")))

    def crafting_time(self, base_time: float) -> float:
        return base_time * (1.0 - self.bonus("crafting", "time"))

    def crafted_durability(self, base_durability: int) -> int:
        return math.floor(base_durability * (1.0 + self.bonus("crafting", "durability")))

    def cooking_time(self, base_time: float) -> float:
        return base_time * (1.0 - self.bonus("cooking", "time"))

    def cooked_nutrition(self, base_nutrition: float) -> float:
        return base_nutrition * (1.0 + self.bonus("cooking", "nutrition"))


def combat_win_chance(attacker: SkillLedger, defender: SkillLedger) -> float:
    diff = attacker.bonus("combat", "win") - defender.bonus("combat", "win")
    lo, hi = COMBAT_WIN_BOUNDS
    return max(lo, min(hi, COMBAT_WIN_BASE + diff))


def apprenticeship_multiplier(learner_level: int, mentor_levels: Iterable[int]) -> float:
    """1 + 0.5 per mentor clearly ahead of the learner, capped at 2x."""
    mult = 1.0
    for level in mentor_levels:
        if level > learner_level + APPRENTICE_MARGIN:
            mult += APPRENTICE_BONUS_PER_MENTOR
    return min(APPRENTICE_MAX_MULT, mult)


def award_xp(ledger: SkillLedger, action: str, nearby: Iterable[SkillLedger] = ()) -> XPResult:
    """Grant the XP for *action*, boosted by skilled islanders nearby."""
    reward = XP_REWARDS.get(action)
    if reward is None:
        return XPResult(False, 0)
    skill_id, xp = reward
    current = ledger.level(skill_id)
    mult = apprenticeship_multiplier(current, (other.level(skill_id) for other in nearby))
    return ledger.add_xp(skill_id, xp, mult)
