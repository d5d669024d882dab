"""Tribe-wide scheduling state: the resource claim registry and stockpile urgencies."""

from __future__ import annotations

from typing import Iterable, Optional

from island_sim.agents.islander import Islander
from island_sim.core.config import (
    CRITICAL_ENERGY,
    CRITICAL_HUNGER,
    DESIRED_COCONUTS_PER_AGENT,
    DESIRED_STONE_PER_AGENT,
    DESIRED_WOOD_PER_AGENT,
    MIN_DESIRED_SPEARS,
    SPEARS_PER_AGENT_DIVISOR,
)
from island_sim.economy.inventory import SPEAR_IDS, Inventory


class ClaimRegistry:
    """Single-owner reservations of world targets (trees, rocks, fish, stored tools)."""

    def __init__(self) -> None:
        self._owners: dict[str, int] = {}

    def claim(self, target_id: str, agent_id: int) -> bool:
        """Reserve *target_id*. Fails if someone else already holds it."""
        owner = self._owners.get(target_id)
        if owner is not None and owner != agent_id:
            return False
        self._owners[target_id] = agent_id
        return True

    def release(self, target_id: str, agent_id: Optional[int] = None) -> bool:
        """Drop a claim. With *agent_id*, only if that agent holds it."""
        owner = self._owners.get(target_id)
        if owner is None or (agent_id is not None and owner != agent_id):
            return False
        del self._owners[target_id]
        return True

    def is_claimed(self, target_id: str) -> bool:
        return target_id in self._owners

    def is_claimed_by_other(self, target_id: str, agent_id: int) -> bool:
        owner = self._owners.get(target_id)
        return owner is not None and owner != agent_id

    def owner(self, target_id: str) -> Optional[int]:
        return self._owners.get(target_id)

    def claims_of(self, agent_id: int) -> list[str]:
        return [tid for tid, owner in self._owners.items() if owner == agent_id]

    def release_all(self, agent_id: int) -> int:
        held = self.claims_of(agent_id)
        for tid in held:
            del self._owners[tid]
        return len(held)

    def reconcile(self, agents: dict[int, Islander]) -> list[str]:
        """Drop claims whose owner is gone, dead, or no longer pursuing that target."""
        stale: list[str] = []
        for target_id, owner_id in self._owners.items():
            agent = agents.get(owner_id)
            if agent is None or not agent.is_alive:
                stale.append(target_id)
                continue
            task = agent.task
            if task is None or task.claim_id != target_id:
                stale.append(target_id)
        for target_id in stale:
            del self._owners[target_id]
        return stale

    def count(self) -> int:
        return len(self._owners)

    def __contains__(self, target_id: str) -> bool:
        return target_id in self._owners


def urgency(stock: int, desired: int) -> float:
    """Normalised deficiency: 0 when fully stocked, 1 when empty."""
    if desired <= 0:
        return 0.0
    return max(0.0, 1.0 - stock / desired)


class TribeCoordinator:
    """Aggregated, advisory view of the tribe recomputed every tick."""

    def __init__(self) -> None:
        self.critical: dict[int, bool] = {}
        self.urgencies: dict[str, float] = {"coconuts": 0.0, "wood": 0.0, "stone": 0.0, "spears": 0.0}
        self.population: int = 0

    def refresh(self, agents: Iterable[Islander], store: Inventory) -> None:
        living = [a for a in agents if a.is_alive]
        self.population = len(living)
        self.critical = {
            a.id: a.needs.hunger < CRITICAL_HUNGER or a.needs.energy < CRITICAL_ENERGY
            for a in living
        }

        n = self.population
        self.urgencies["coconuts"] = urgency(store.count("coconut"), n * DESIRED_COCONUTS_PER_AGENT)
        self.urgencies["wood"] = urgency(store.count("wood"), n * DESIRED_WOOD_PER_AGENT)
        self.urgencies["stone"] = urgency(store.count("stone"), n * DESIRED_STONE_PER_AGENT)

        stored_spears = sum(store.tool_count(tid) for tid in SPEAR_IDS)
        self.urgencies["spears"] = urgency(stored_spears, self.desired_spears())

    def desired_spears(self) -> int:
        return max(MIN_DESIRED_SPEARS, self.population // SPEARS_PER_AGENT_DIVISOR)

    def is_critical(self, agent_id: int) -> bool:
        return self.critical.get(agent_id, False)

    def needing_help(self) -> list[int]:
        return [aid for aid, flag in self.critical.items() if flag]

    @staticmethod
    def count_on_task(agents: Iterable[Islander], kind: str, exclude_id: Optional[int] = None) -> int:
        """Living agents currently pursuing a task of *kind*."""
        return sum(
            1 for a in agents
            if a.is_alive and a.id != exclude_id and a.task is not None and a.task.kind == kind
        )
