"""Periodic self-checks that repair out-of-range state instead of failing."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from island_sim.agents.islander import Islander
from island_sim.core.config import FLOATING_THRESHOLD, SINKING_THRESHOLD
from island_sim.economy.inventory import Inventory
from island_sim.viz.logger import SimLogger
from island_sim.world.terrain import TerrainFn

_BOUNDED_NEEDS: tuple[str, ...] = ("hunger", "energy", "health", "social", "reproduction_drive")
_NAN_REPLACEMENT: float = 0.5


@dataclass
class SanityReport:
    clamped: list[tuple[int, str, float]] = field(default_factory=list)
    regrounded: list[int] = field(default_factory=list)
    overflows: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.clamped or self.regrounded or self.overflows)


def clamp_needs(agent: Islander) -> list[tuple[str, float]]:
    """Force every bounded need into [0, 1]. Non-finite values become 0.5."""
    fixed: list[tuple[str, float]] = []
    for name in _BOUNDED_NEEDS:
        value = getattr(agent.needs, name)
        if not math.isfinite(value):
            setattr(agent.needs, name, _NAN_REPLACEMENT)
            fixed.append((name, value))
        elif value < 0.0 or value > 1.0:
            setattr(agent.needs, name, min(1.0, max(0.0, value)))
            fixed.append((name, value))
    return fixed


def reground(agent: Islander, terrain: TerrainFn) -> bool:
    """Snap an agent back onto the terrain if it floats or sinks past tolerance."""
    x, y, z = agent.position
    if not (math.isfinite(x) and math.isfinite(z)):
        agent.position = (0.0, terrain(0.0, 0.0), 0.0)
        return True
    ground = terrain(x, z)
    diff = y - ground if math.isfinite(y) else math.inf
    if diff > FLOATING_THRESHOLD or diff < -SINKING_THRESHOLD:
        agent.position = (x, ground, z)
        return True
    return False


def stack_overflows(name: str, inventory: Inventory) -> list[str]:
    """Describe any slot over its stack size or any surplus slot."""
    problems: list[str] = []
    if len(inventory.slots) > inventory.max_slots:
        problems.append(f"{name}: {len(inventory.slots)} slots > {inventory.max_slots}")
    for rid, slot in inventory.slots.items():
        if slot.count > inventory.stack_size(rid):
            problems.append(f"{name}: {rid} x{slot.count} > {inventory.stack_size(rid)}")
        if slot.count != len(slot.items):
            problems.append(f"{name}: {rid} count {slot.count} != {len(slot.items)} stamps")
    return problems


def run_sanity_checks(
    agents: Iterable[Islander],
    store: Inventory,
    terrain: TerrainFn,
    logger: SimLogger,
    tick: int,
) -> SanityReport:
    report = SanityReport()
    for agent in agents:
        if not agent.is_alive:
            continue
        for need, value in clamp_needs(agent):
            report.clamped.append((agent.id, need, value))
            logger.log(
                SimLogger.SANITY, f"{agent.name} had invalid {need} {value!r}; clamped",
                [agent.id], tick=tick, need=need, value=value,
            )
        if reground(agent, terrain):
            report.regrounded.append(agent.id)
            logger.log(SimLogger.SANITY, f"{agent.name} re-grounded on terrain", [agent.id], tick=tick)
        report.overflows.extend(stack_overflows(f"islander {agent.id}", agent.inventory))

    report.overflows.extend(stack_overflows("store", store))
    for problem in report.overflows:
        logger.log(SimLogger.SANITY, f"Inventory overflow: {problem}", tick=tick)
    return report
