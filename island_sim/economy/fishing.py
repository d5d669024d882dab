"""Offshore fish, shore-only spearfishing targets and catch resolution."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional

from numpy.random import Generator

from island_sim.core.config import (
    FISH_BASE_SPEED,
    FISH_COUNT,
    FISH_DEPTH_RANGE,
    FISH_DETECTION_RANGE,
    FISH_ESCAPE_DISTANCE,
    FISH_LEASH,
    FISH_OFFSHORE_RANGE,
    FISH_RESPAWN_INTERVAL,
    FISH_SPECIES_BY_DEPTH,
    FISH_TURN_RATE,
    FISHING_BASE_RATE,
    FISHING_CANCEL_ENERGY,
    FISHING_CANCEL_HEALTH,
    FISHING_LOW_ENERGY,
    FISHING_LOW_ENERGY_MULT,
    FISHING_MAX_RATE,
    FISHING_PERSISTENCE_CAP,
    FISHING_PERSISTENCE_STEP,
    FISHING_SKILL_RATE,
    FLEE_DISTANCE,
    FLEE_MAX_SPEED,
    FLEE_STRENGTH,
    MAX_CATCH_DEPTH,
    MAX_FISH,
    STRIKING_RANGE,
)
from island_sim.world.terrain import TerrainFn, coast_distance, is_land, shore_point


class FishState(Enum):
    SWIMMING = "swimming"
    FLEEING = "fleeing"
    CAUGHT = "caught"
    FLED = "fled"


def species_for_depth(depth: float) -> str:
    for max_depth, species in FISH_SPECIES_BY_DEPTH:
        if depth <= max_depth:
            return species
    return FISH_SPECIES_BY_DEPTH[-1][1]


def _turn_toward(heading: float, target: float, amount: float) -> float:
    """Rotate *heading* toward *target* by at most *amount* radians."""
    diff = (target - heading + math.pi) % math.tau - math.pi
    if abs(diff) <= amount:
        return target
    return heading + math.copysign(amount, diff)


@dataclass
class Fish:
    fish_id: str
    x: float
    z: float
    y: float                      # negative: depth below the surface
    home: tuple[float, float]
    heading: float
    base_speed: float
    speed: float
    species: str
    state: FishState = FishState.SWIMMING

    @property
    def depth(self) -> float:
        return -self.y

    @property
    def active(self) -> bool:
        return self.state in (FishState.SWIMMING, FishState.FLEEING)

    def distance_to(self, x: float, z: float) -> float:
        return math.hypot(self.x - x, self.z - z)

    def update(self, dt: float, swimmers: Iterable[tuple[float, float]], terrain: TerrainFn) -> None:
        """Steer away from the nearest swimmer in range, otherwise circle home."""
        if not self.active:
            return

        nearest: Optional[tuple[float, float]] = None
        nearest_dist = FLEE_DISTANCE
        for sx, sz in swimmers:
            d = self.distance_to(sx, sz)
            if d < nearest_dist:
                nearest_dist = d
                nearest = (sx, sz)

        if nearest is not None:
            proximity = 1.0 - nearest_dist / FLEE_DISTANCE
            away = math.atan2(self.z - nearest[1], self.x - nearest[0])
            self.heading = _turn_toward(self.heading, away, math.pi * min(1.0, proximity * FLEE_STRENGTH))
            self.speed = min(FLEE_MAX_SPEED, self.base_speed * (1.0 + proximity * FLEE_STRENGTH * 2.0))
            self.state = FishState.FLEEING
        else:
            self.speed = self.base_speed
            self.state = FishState.SWIMMING
            hx, hz = self.home
            if math.hypot(self.x - hx, self.z - hz) > FISH_LEASH:
                home_angle = math.atan2(hz - self.z, hx - self.x)
                self.heading = _turn_toward(self.heading, home_angle, FISH_TURN_RATE * dt)
            else:
                self.heading += FISH_TURN_RATE * dt * 0.5

        nx = self.x + math.cos(self.heading) * self.speed * dt
        nz = self.z + math.sin(self.heading) * self.speed * dt
        if is_land(terrain, nx, nz):
            # Fish never beach themselves
            self.heading += math.pi
        else:
            self.x, self.z = nx, nz

        if math.hypot(self.x - self.home[0], self.z - self.home[1]) > FISH_ESCAPE_DISTANCE:
            self.state = FishState.FLED


@dataclass
class CatchResult:
    success: bool
    chance: float
    attempts: int


class FishingSystem:
    """The offshore fish population plus per-agent attempt counters."""

    def __init__(self) -> None:
        self.fish: list[Fish] = []
        self.attempts: dict[int, int] = {}
        self._next_id = 0
        self._respawn_timer = 0.0

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def spawn(self, rng: Generator, terrain: TerrainFn) -> Fish:
        angle = float(rng.random()) * math.tau
        dist = coast_distance(terrain, angle) + float(rng.uniform(*FISH_OFFSHORE_RANGE))
        depth = float(rng.uniform(*FISH_DEPTH_RANGE))
        base_speed = float(rng.uniform(*FISH_BASE_SPEED))
        x, z = math.cos(angle) * dist, math.sin(angle) * dist
        fish = Fish(
            fish_id=f"fish:{self._next_id}",
            x=x,
            z=z,
            y=-depth,
            home=(x, z),
            heading=angle + math.pi / 2,
            base_speed=base_speed,
            speed=base_speed,
            species=species_for_depth(depth),
        )
        self._next_id += 1
        self.fish.append(fish)
        return fish

    def populate(self, rng: Generator, terrain: TerrainFn, count: int = FISH_COUNT) -> None:
        for _ in range(count):
            self.spawn(rng, terrain)

    def get(self, fish_id: str) -> Optional[Fish]:
        for fish in self.fish:
            if fish.fish_id == fish_id:
                return fish
        return None

    def remove(self, fish_id: str) -> Optional[Fish]:
        fish = self.get(fish_id)
        if fish is not None:
            self.fish.remove(fish)
        return fish

    def update(
        self,
        dt: float,
        swimmers: list[tuple[float, float]],
        terrain: TerrainFn,
        rng: Generator,
    ) -> list[str]:
        """Move every fish, drop the ones that fled, respawn on a timer.

        Returns the ids of fish that left the simulation this tick.
        """
        gone: list[str] = []
        for fish in self.fish:
            fish.update(dt, swimmers, terrain)
            if fish.state == FishState.FLED:
                gone.append(fish.fish_id)
        if gone:
            self.fish = [f for f in self.fish if f.fish_id not in gone]

        self._respawn_timer += dt
        if self._respawn_timer >= FISH_RESPAWN_INTERVAL:
            self._respawn_timer = 0.0
            if len(self.fish) < MAX_FISH:
                self.spawn(rng, terrain)
        return gone

    # ------------------------------------------------------------------
    # Targeting
    # ------------------------------------------------------------------

    @staticmethod
    def fishing_spot(fish: Fish, terrain: TerrainFn) -> tuple[float, float]:
        """The dry shore spot a spear is thrown from."""
        return shore_point(terrain, fish.x, fish.z)

    def nearest_catchable(
        self,
        x: float,
        z: float,
        terrain: TerrainFn,
        is_blocked: Callable[[str], bool] = lambda _fid: False,
    ) -> Optional[Fish]:
        """Nearest unblocked fish shallow enough and within a throw of the shore."""
        best: Optional[Fish] = None
        best_dist = FISH_DETECTION_RANGE
        for fish in self.fish:
            if not fish.active or fish.depth > MAX_CATCH_DEPTH or is_blocked(fish.fish_id):
                continue
            dist = fish.distance_to(x, z)
            if dist >= best_dist:
                continue
            sx, sz = self.fishing_spot(fish, terrain)
            if fish.distance_to(sx, sz) > STRIKING_RANGE:
                continue
            best = fish
            best_dist = dist
        return best

    @staticmethod
    def in_striking_range(x: float, z: float, fish: Fish) -> bool:
        return fish.distance_to(x, z) <= STRIKING_RANGE

    # ------------------------------------------------------------------
    # Catching
    # ------------------------------------------------------------------

    @staticmethod
    def catch_chance(skill_level: int, energy: float, attempts: int) -> float:
        """Probability that one spear throw lands."""
        chance = FISHING_BASE_RATE + (skill_level / 100.0) * FISHING_SKILL_RATE
        if energy < FISHING_LOW_ENERGY:
            chance *= FISHING_LOW_ENERGY_MULT
        chance += min(attempts * FISHING_PERSISTENCE_STEP, FISHING_PERSISTENCE_CAP)
        return max(FISHING_BASE_RATE, min(FISHING_MAX_RATE, chance))

    def attempt_catch(self, agent_id: int, skill_level: int, energy: float, rng: Generator) -> CatchResult:
        """One seeded roll. Success resets the agent's attempt counter."""
        attempts = self.attempts.get(agent_id, 0)
        chance = self.catch_chance(skill_level, energy, attempts)
        if rng.random() < chance:
            self.attempts.pop(agent_id, None)
            return CatchResult(True, chance, attempts)
        self.attempts[agent_id] = attempts + 1
        return CatchResult(False, chance, attempts + 1)

    def forget(self, agent_id: int) -> None:
        self.attempts.pop(agent_id, None)

    @staticmethod
    def should_cancel(energy: float, health: float) -> bool:
        return energy < FISHING_CANCEL_ENERGY or health < FISHING_CANCEL_HEALTH
