"""Harvestable world targets: palm trees, jungle trees and rocks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from numpy.random import Generator

from island_sim.core.config import (
    ISLAND_RADIUS,
    JUNGLE_TREE_COUNT,
    JUNGLE_TREE_PLACEMENT,
    JUNGLE_TREE_REGROWTH_RATE,
    JUNGLE_TREE_WOOD,
    PALM_COCONUTS,
    PALM_PLACEMENT,
    PALM_REGROWTH_RATE,
    PALM_TREE_COUNT,
    ROCK_COUNT,
    ROCK_PLACEMENT,
    ROCK_REGROWTH_RATE,
    ROCK_STONE,
)
from island_sim.world.terrain import TerrainFn, island_height, random_island_position


class ResourceKind(Enum):
    PALM_TREE = "palm_tree"
    JUNGLE_TREE = "jungle_tree"
    ROCK = "rock"


# What each kind of target yields
KIND_YIELDS: dict[ResourceKind, str] = {
    ResourceKind.PALM_TREE: "coconut",
    ResourceKind.JUNGLE_TREE: "wood",
    ResourceKind.ROCK: "stone",
}

# Gather categories used by the planner, in tie-break order
GATHER_CATEGORIES: dict[str, ResourceKind] = {
    "coconuts": ResourceKind.PALM_TREE,
    "wood": ResourceKind.JUNGLE_TREE,
    "stone": ResourceKind.ROCK,
}

_REGROWTH_RATES: dict[ResourceKind, float] = {
    ResourceKind.PALM_TREE: PALM_REGROWTH_RATE,
    ResourceKind.JUNGLE_TREE: JUNGLE_TREE_REGROWTH_RATE,
    ResourceKind.ROCK: ROCK_REGROWTH_RATE,
}


@dataclass
class ResourceTarget:
    """A world object with a mutable remaining yield."""

    target_id: str
    kind: ResourceKind
    position: tuple[float, float, float]
    remaining: int
    max_yield: int

    @property
    def resource_id(self) -> str:
        return KIND_YIELDS[self.kind]

    @property
    def depleted(self) -> bool:
        return self.remaining <= 0

    def take(self, amount: int) -> int:
        """Remove up to *amount* from this target. Returns actual yield."""
        taken = max(0, min(amount, self.remaining))
        self.remaining -= taken
        return taken

    def distance_to(self, x: float, z: float) -> float:
        return math.hypot(self.position[0] - x, self.position[2] - z)


class ResourceManager:
    """Owns every resource target. Core code references targets by id."""

    def __init__(self) -> None:
        self._targets: dict[str, ResourceTarget] = {}

    @property
    def targets(self) -> list[ResourceTarget]:
        return list(self._targets.values())

    def get(self, target_id: str) -> Optional[ResourceTarget]:
        return self._targets.get(target_id)

    def add(self, target: ResourceTarget) -> None:
        self._targets[target.target_id] = target

    def of_kind(self, kind: ResourceKind) -> list[ResourceTarget]:
        return [t for t in self._targets.values() if t.kind == kind]

    def total_remaining(self, kind: ResourceKind) -> int:
        return sum(t.remaining for t in self._targets.values() if t.kind == kind)

    def generate(
        self,
        rng: Generator,
        terrain: TerrainFn = island_height,
        palms: int = PALM_TREE_COUNT,
        jungle_trees: int = JUNGLE_TREE_COUNT,
        rocks: int = ROCK_COUNT,
    ) -> None:
        """Place all targets on suitable ground."""
        layout = [
            (ResourceKind.PALM_TREE, palms, PALM_PLACEMENT, PALM_COCONUTS),
            (ResourceKind.JUNGLE_TREE, jungle_trees, JUNGLE_TREE_PLACEMENT, JUNGLE_TREE_WOOD),
            (ResourceKind.ROCK, rocks, ROCK_PLACEMENT, ROCK_STONE),
        ]
        for kind, count, (min_frac, max_frac, min_height), (lo, hi, cap) in layout:
            for i in range(count):
                position = random_island_position(
                    rng, terrain,
                    min_dist=ISLAND_RADIUS * min_frac,
                    max_dist=ISLAND_RADIUS * max_frac,
                    min_height=min_height,
                )
                remaining = lo + int(rng.integers(0, hi - lo + 1))
                self.add(ResourceTarget(
                    target_id=f"{kind.value}:{i}",
                    kind=kind,
                    position=position,
                    remaining=remaining,
                    max_yield=cap,
                ))

    def nearest_available(
        self,
        x: float,
        z: float,
        kind: ResourceKind,
        is_blocked: Callable[[str], bool] = lambda _tid: False,
    ) -> Optional[ResourceTarget]:
        """Nearest non-depleted target of *kind* that *is_blocked* does not exclude."""
        best: Optional[ResourceTarget] = None
        best_dist = float("inf")
        for target in self._targets.values():
            if target.kind != kind or target.depleted or is_blocked(target.target_id):
                continue
            dist = target.distance_to(x, z)
            if dist < best_dist:
                best_dist = dist
                best = target
        return best

    def regenerate(self, dt: float, rng: Generator) -> int:
        """One regrowth roll per below-maximum target. Returns units regrown."""
        growing = [t for t in self._targets.values() if t.remaining < t.max_yield]
        if not growing:
            return 0
        rolls = rng.random(len(growing))
        regrown = 0
        for target, roll in zip(growing, rolls):
            if roll < _REGROWTH_RATES[target.kind] * dt:
                target.remaining += 1
                regrown += 1
        return regrown
