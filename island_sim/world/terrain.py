"""Island height oracle and placement helpers.

The simulation only ever reads terrain through a ``TerrainFn``; the default
``island_height`` gives an organic island with a beach, rolling interior and a
central hill.
"""

from __future__ import annotations

import math
from typing import Callable

from numpy.random import Generator

from island_sim.core.config import (
    ISLAND_RADIUS,
    PLACEMENT_MAX_ATTEMPTS,
    SHORE_SEARCH_STEP,
    WATER_LEVEL,
)

TerrainFn = Callable[[float, float], float]

# Shape parameters for the coastline and surface noise
_SHAPE_A: float = 3.7
_SHAPE_B: float = 7.2

_PEAK_HEIGHT: float = 12.0
_FALLOFF_EXPONENT: float = 1.8
_HILL_RADIUS: float = 0.35
_HILL_GAIN: float = 8.0
_SEABED_SLOPE: float = 3.0
_LAND_FLOOR: float = 0.3


def island_height(x: float, z: float) -> float:
    """Terrain elevation at world coordinates (x, z)."""
    angle = math.atan2(z, x)
    radius_variation = (
        1.0
        + math.sin(angle * 3 + _SHAPE_A) * 0.12
        + math.sin(angle * 5 + _SHAPE_B) * 0.08
    )
    effective_radius = ISLAND_RADIUS * radius_variation
    normalized = math.hypot(x, z) / effective_radius

    if normalized >= 1.0:
        return -_SEABED_SLOPE * (normalized - 1.0) - 1.0

    height = (1.0 - normalized ** _FALLOFF_EXPONENT) * _PEAK_HEIGHT
    height += math.sin(x * 0.04 + _SHAPE_A) * math.cos(z * 0.04) * 1.5
    height += math.sin((x + z) * 0.025 + _SHAPE_B) * 2.0
    if normalized < _HILL_RADIUS:
        height += (_HILL_RADIUS - normalized) * _HILL_GAIN
    return max(_LAND_FLOOR, height)


def is_land(terrain: TerrainFn, x: float, z: float) -> bool:
    return terrain(x, z) > WATER_LEVEL


def random_island_position(
    rng: Generator,
    terrain: TerrainFn = island_height,
    min_dist: float = 5.0,
    max_dist: float = ISLAND_RADIUS * 0.8,
    min_height: float = 2.0,
    max_attempts: int = PLACEMENT_MAX_ATTEMPTS,
) -> tuple[float, float, float]:
    """Rejection-sample a position in an annulus whose ground is high enough.

    Falls back to the island centre when no attempt succeeds.
    """
    for _ in range(max_attempts):
        angle = float(rng.random()) * math.tau
        dist = min_dist + float(rng.random()) * (max_dist - min_dist)
        x = math.cos(angle) * dist
        z = math.sin(angle) * dist
        y = terrain(x, z)
        if y >= min_height:
            return (x, y, z)
    return (0.0, terrain(0.0, 0.0), 0.0)


def coast_distance(terrain: TerrainFn, angle: float, limit: float = ISLAND_RADIUS * 2) -> float:
    """Distance from the centre along ``angle`` to the first water cell."""
    dist = 0.0
    while dist < limit:
        if not is_land(terrain, math.cos(angle) * dist, math.sin(angle) * dist):
            return dist
        dist += SHORE_SEARCH_STEP
    return limit


def shore_point(terrain: TerrainFn, x: float, z: float) -> tuple[float, float]:
    """Nearest dry spot found by walking from (x, z) toward the island centre."""
    dist = math.hypot(x, z)
    if dist == 0.0 or is_land(terrain, x, z):
        return (x, z)
    ux, uz = x / dist, z / dist
    while dist > 0.0:
        dist = max(0.0, dist - SHORE_SEARCH_STEP)
        px, pz = ux * dist, uz * dist
        if is_land(terrain, px, pz):
            return (px, pz)
    return (0.0, 0.0)
