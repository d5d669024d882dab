"""Time-series collection, summary statistics and CSV export."""

from __future__ import annotations

import csv
import os
from dataclasses import dataclass, field
from typing import Optional

from island_sim.agents.skills import SKILL_IDS
from island_sim.economy.inventory import RESOURCES, SPEAR_IDS


@dataclass
class TickSnapshot:
    """A snapshot of simulation state at one sampled tick."""

    tick: int = 0
    elapsed: float = 0.0
    day: int = 0
    population: int = 0
    births: int = 0
    deaths: int = 0
    death_causes: dict[str, int] = field(default_factory=dict)
    avg_hunger: float = 0.0
    avg_energy: float = 0.0
    avg_health: float = 0.0
    avg_social: float = 0.0
    sick_count: int = 0
    store_food: int = 0
    store_wood: int = 0
    store_stone: int = 0
    spears: int = 0
    task_counts: dict[str, int] = field(default_factory=dict)
    avg_skill_levels: dict[str, float] = field(default_factory=dict)
    catch_attempts: int = 0
    catches: int = 0
    crafts: int = 0
    combats: int = 0
    active_claims: int = 0
    active_threats: int = 0


class MetricsCollector:
    """Samples the simulation on a fixed tick interval."""

    def __init__(self) -> None:
        self.snapshots: list[TickSnapshot] = []
        self.total_births: int = 0
        self.death_causes: dict[str, int] = {}
        self._births: int = 0
        self._deaths: int = 0
        self._causes: dict[str, int] = {}
        self._catch_attempts: int = 0
        self._catches: int = 0
        self._crafts: int = 0
        self._combats: int = 0

    @property
    def total_deaths(self) -> int:
        return sum(self.death_causes.values())

    def record_birth(self) -> None:
        self._births += 1
        self.total_births += 1

    def record_death(self, cause: str) -> None:
        self._deaths += 1
        self._causes[cause] = self._causes.get(cause, 0) + 1
        self.death_causes[cause] = self.death_causes.get(cause, 0) + 1

    def record_catch_attempt(self, success: bool) -> None:
        self._catch_attempts += 1
        if success:
            self._catches += 1

    def record_craft(self) -> None:
        self._crafts += 1

    def record_combat(self) -> None:
        self._combats += 1

    def collect(
        self,
        tick: int,
        elapsed: float,
        day: int,
        agents: list["Islander"],  # noqa: F821
        store: "CommunalStore",  # noqa: F821
        active_claims: int,
        active_threats: int,
    ) -> TickSnapshot:
        """Collect all metrics since the previous sample."""
        alive = [a for a in agents if a.is_alive]
        n = max(1, len(alive))

        task_counts: dict[str, int] = {}
        for a in alive:
            kind = a.task.kind if a.task is not None else "idle"
            task_counts[kind] = task_counts.get(kind, 0) + 1

        avg_skill_levels = {
            sid: sum(a.skills.level(sid) for a in alive) / n
            for sid in SKILL_IDS
        }

        spears = sum(store.tool_count(t) for t in SPEAR_IDS)
        spears += sum(a.inventory.tool_count(t) for a in alive for t in SPEAR_IDS)

        snapshot = TickSnapshot(
            tick=tick,
            elapsed=elapsed,
            day=day,
            population=len(alive),
            births=self._births,
            deaths=self._deaths,
            death_causes=dict(self._causes),
            avg_hunger=sum(a.needs.hunger for a in alive) / n,
            avg_energy=sum(a.needs.energy for a in alive) / n,
            avg_health=sum(a.needs.health for a in alive) / n,
            avg_social=sum(a.needs.social for a in alive) / n,
            sick_count=sum(1 for a in alive if a.needs.is_sick),
            store_food=sum(c for rid, c in store.contents().items() if RESOURCES[rid].is_food),
            store_wood=store.count("wood"),
            store_stone=store.count("stone"),
            spears=spears,
            task_counts=task_counts,
            avg_skill_levels=avg_skill_levels,
            catch_attempts=self._catch_attempts,
            catches=self._catches,
            crafts=self._crafts,
            combats=self._combats,
            active_claims=active_claims,
            active_threats=active_threats,
        )
        self.snapshots.append(snapshot)

        # Reset interval counters
        self._births = 0
        self._deaths = 0
        self._causes = {}
        self._catch_attempts = 0
        self._catches = 0
        self._crafts = 0
        self._combats = 0

        return snapshot

    def export_csv(self, filepath: str) -> None:
        """Export all snapshots to CSV."""
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)
        with open(filepath, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow([
                "tick", "elapsed", "day", "population", "births", "deaths",
                "avg_hunger", "avg_energy", "avg_health", "avg_social", "sick",
                "store_food", "store_wood", "store_stone", "spears",
                "catch_attempts", "catches", "crafts", "combats",
                "active_claims", "active_threats",
            ])
            for s in self.snapshots:
                writer.writerow([
                    s.tick, f"{s.elapsed:.2f}", s.day, s.population, s.births, s.deaths,
                    f"{s.avg_hunger:.3f}", f"{s.avg_energy:.3f}",
                    f"{s.avg_health:.3f}", f"{s.avg_social:.3f}", s.sick_count,
                    s.store_food, s.store_wood, s.store_stone, s.spears,
                    s.catch_attempts, s.catches, s.crafts, s.combats,
                    s.active_claims, s.active_threats,
                ])

    def summary_report(self, start_tick: int = 0, end_tick: Optional[int] = None) -> str:
        """Human-readable summary of the sampled period."""
        relevant = [
            s for s in self.snapshots
            if s.tick >= start_tick and (end_tick is None or s.tick <= end_tick)
        ]
        if not relevant:
            return "No data available for the specified period."

        first = relevant[0]
        last = relevant[-1]
        births = sum(s.births for s in relevant)
        deaths = sum(s.deaths for s in relevant)
        causes: dict[str, int] = {}
        for s in relevant:
            for cause, count in s.death_causes.items():
                causes[cause] = causes.get(cause, 0) + count
        attempts = sum(s.catch_attempts for s in relevant)
        catches = sum(s.catches for s in relevant)

        lines = [
            f"=== Simulation Summary: Tick {first.tick} to Tick {last.tick} ===",
            f"Duration: {last.elapsed - first.elapsed:.0f} simulated seconds (day {first.day} to day {last.day})",
            f"",
            f"Population: {first.population} -> {last.population}",
            f"  Births: {births}",
            f"  Deaths: {deaths}",
        ]
        for cause, count in sorted(causes.items(), key=lambda x: -x[1]):
            lines.append(f"    {cause}: {count}")

        lines += [
            f"",
            f"Economy:",
            f"  Store food: {last.store_food}  wood: {last.store_wood}  stone: {last.store_stone}",
            f"  Spears in tribe: {last.spears}",
            f"  Tools crafted: {sum(s.crafts for s in relevant)}",
            f"  Fishing: {catches} catches from {attempts} throws"
            + (f" ({catches / attempts:.0%})" if attempts else ""),
            f"  Threat fights: {sum(s.combats for s in relevant)}",
            f"",
            f"Final Needs:",
            f"  Avg hunger: {last.avg_hunger:.1%}",
            f"  Avg energy: {last.avg_energy:.1%}",
            f"  Avg health: {last.avg_health:.1%}",
            f"  Avg social: {last.avg_social:.1%}",
            f"  Sick: {last.sick_count}",
        ]

        if last.task_counts:
            lines.append(f"")
            lines.append(f"Task Distribution (final sample):")
            total = sum(last.task_counts.values())
            for kind, count in sorted(last.task_counts.items(), key=lambda x: -x[1]):
                lines.append(f"  {kind}: {count} ({count / max(1, total) * 100:.0f}%)")

        if last.avg_skill_levels:
            lines.append(f"")
            lines.append(f"Average Skill Levels (final sample):")
            for skill, level in sorted(last.avg_skill_levels.items(), key=lambda x: -x[1]):
                if level > 0.0:
                    lines.append(f"  {skill}: {level:.1f}")

        return "\n".join(lines)
