"""Monte Carlo analysis: run N simulations with different seeds, aggregate statistics."""

from __future__ import annotations

import csv
import os
import statistics
import time
from dataclasses import dataclass

import numpy as np


@dataclass
class RunResult:
    """Summary of a single simulation run."""
    seed: int
    final_population: int
    total_births: int
    total_deaths: int
    death_causes: dict[str, int]
    total_catches: int
    total_catch_attempts: int
    total_crafts: int
    total_combats: int
    final_store_food: int
    final_spears: int
    final_avg_health: float
    final_avg_hunger: float
    peak_population: int
    min_population: int
    first_death_tick: int  # -1 if nobody died
    dominant_task: str
    top_skill: str
    top_skill_level: float
    heroes: int
    elapsed_seconds: float


def run_single(seed: int, ticks: int, population: int) -> RunResult:
    """Run one simulation and return summary."""
    from island_sim.simulation.engine import SimulationWorld

    world = SimulationWorld(seed=seed, population=population)

    t0 = time.time()
    world.step(ticks)
    elapsed = time.time() - t0

    snaps = world.metrics.snapshots
    last = snaps[-1] if snaps else None

    peak_pop = max(s.population for s in snaps) if snaps else population
    min_pop = min(s.population for s in snaps) if snaps else population

    dominant = "idle"
    if last and last.task_counts:
        dominant = max(last.task_counts, key=last.task_counts.get)

    top_skill = ""
    top_skill_level = 0.0
    if last and last.avg_skill_levels:
        top_skill = max(last.avg_skill_levels, key=last.avg_skill_levels.get)
        top_skill_level = last.avg_skill_levels[top_skill]

    return RunResult(
        seed=seed,
        final_population=len(world.living_agents()),
        total_births=world.metrics.total_births,
        total_deaths=world.metrics.total_deaths,
        death_causes=dict(world.metrics.death_causes),
        total_catches=sum(s.catches for s in snaps),
        total_catch_attempts=sum(s.catch_attempts for s in snaps),
        total_crafts=sum(s.crafts for s in snaps),
        total_combats=sum(s.combats for s in snaps),
        final_store_food=last.store_food if last else 0,
        final_spears=last.spears if last else 0,
        final_avg_health=last.avg_health if last else 0.0,
        final_avg_hunger=last.avg_hunger if last else 0.0,
        peak_population=peak_pop,
        min_population=min_pop,
        first_death_tick=world.death_log[0][0] if world.death_log else -1,
        dominant_task=dominant,
        top_skill=top_skill,
        top_skill_level=top_skill_level,
        heroes=sum(1 for n in world.social.nodes if n.is_hero or n.is_legend),
        elapsed_seconds=elapsed,
    )


def stat_line(label: str, values: list[float], fmt: str = ".1f") -> str:
    if not values:
        return f"  {label}: no data"
    mn = min(values)
    mx = max(values)
    avg = statistics.mean(values)
    med = statistics.median(values)
    std = statistics.stdev(values) if len(values) > 1 else 0
    return f"  {label:<30s}  mean={avg:{fmt}}  median={med:{fmt}}  std={std:{fmt}}  min={mn:{fmt}}  max={mx:{fmt}}"


def monte_carlo(
    n_runs: int = 20,
    ticks: int = 6000,
    population: int = 10,
    output_dir: str = "results/monte_carlo",
) -> list[RunResult]:
    """Run N simulations with seeds drawn from a fixed stream and report aggregate stats."""

    os.makedirs(output_dir, exist_ok=True)
    results: list[RunResult] = []
    rng = np.random.default_rng(0)
    seeds = [int(s) for s in rng.integers(0, 100_000, size=n_runs)]

    print("=== Monte Carlo Simulation ===")
    print(f"Runs: {n_runs} | Ticks/run: {ticks} | Population: {population}")
    print(f"Seeds: {seeds[:5]}{'...' if n_runs > 5 else ''}")
    print()

    total_t0 = time.time()

    for i, seed in enumerate(seeds):
        result = run_single(seed, ticks, population)
        results.append(result)
        status = "SURVIVED" if result.final_population > 0 else "EXTINCT"
        print(
            f"  Run {i+1:>3}/{n_runs} | seed={seed:>5} | "
            f"pop {population}->{result.final_population:>3} | "
            f"deaths={result.total_deaths:>3} | "
            f"catches={result.total_catches:>4} | "
            f"food={result.final_store_food:>4} | "
            f"{status} | {result.elapsed_seconds:.1f}s"
        )

    total_elapsed = time.time() - total_t0
    print(f"\nAll {n_runs} runs completed in {total_elapsed:.1f}s "
          f"({total_elapsed/max(1, n_runs):.1f}s avg)")

    # ── Aggregate Statistics ──────────────────────────────────────────
    print("\n" + "=" * 70)
    print("AGGREGATE RESULTS")
    print("=" * 70)

    print("\nPOPULATION")
    print(stat_line("Final population", [r.final_population for r in results]))
    print(stat_line("Peak population", [r.peak_population for r in results]))
    print(stat_line("Min population", [r.min_population for r in results]))
    print(stat_line("Total births", [r.total_births for r in results]))
    print(stat_line("Total deaths", [r.total_deaths for r in results]))

    extinct = sum(1 for r in results if r.final_population == 0)
    print(f"  Extinction rate: {extinct}/{n_runs} ({extinct/max(1, n_runs)*100:.0f}%)")

    causes: dict[str, int] = {}
    for r in results:
        for cause, count in r.death_causes.items():
            causes[cause] = causes.get(cause, 0) + count
    for cause, count in sorted(causes.items(), key=lambda x: -x[1]):
        print(f"    {cause}: {count}")

    print("\nECONOMY")
    print(stat_line("Final store food", [r.final_store_food for r in results]))
    print(stat_line("Final spears", [r.final_spears for r in results]))
    print(stat_line("Tools crafted", [r.total_crafts for r in results]))
    print(stat_line("Catches", [r.total_catches for r in results]))
    rates = [r.total_catches / r.total_catch_attempts for r in results if r.total_catch_attempts]
    print(stat_line("Catch rate", rates, ".2f"))

    print("\nWELLBEING")
    print(stat_line("Final health", [r.final_avg_health * 100 for r in results]))
    print(stat_line("Final hunger sat.", [r.final_avg_hunger * 100 for r in results]))

    print("\nTHREATS")
    print(stat_line("Fights", [r.total_combats for r in results]))
    print(stat_line("Heroes", [r.heroes for r in results]))

    print("\nSKILLS")
    skill_freq: dict[str, int] = {}
    for r in results:
        skill_freq[r.top_skill] = skill_freq.get(r.top_skill, 0) + 1
    for skill, count in sorted(skill_freq.items(), key=lambda x: -x[1]):
        print(f"  Top skill '{skill}': {count}/{n_runs} runs "
              f"({count/max(1, n_runs)*100:.0f}%)")

    print("\nDOMINANT FINAL TASK")
    task_freq: dict[str, int] = {}
    for r in results:
        task_freq[r.dominant_task] = task_freq.get(r.dominant_task, 0) + 1
    for task, count in sorted(task_freq.items(), key=lambda x: -x[1]):
        print(f"  '{task}': {count}/{n_runs} runs ({count/max(1, n_runs)*100:.0f}%)")

    # ── Export CSV ────────────────────────────────────────────────────
    csv_path = os.path.join(output_dir, "monte_carlo_results.csv")
    export_results(results, csv_path)
    print(f"\nResults exported to {csv_path}")

    return results


def export_results(results: list[RunResult], csv_path: str) -> None:
    with open(csv_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([
            "seed", "final_pop", "peak_pop", "min_pop", "births", "deaths",
            "first_death_tick", "catches", "catch_attempts", "crafts", "combats",
            "store_food", "spears", "health", "hunger_sat", "heroes",
            "dominant_task", "top_skill", "top_skill_level", "elapsed_s",
        ])
        for r in results:
            writer.writerow([
                r.seed, r.final_population, r.peak_population,
                r.min_population, r.total_births, r.total_deaths,
                r.first_death_tick, r.total_catches, r.total_catch_attempts,
                r.total_crafts, r.total_combats,
                r.final_store_food, r.final_spears,
                f"{r.final_avg_health:.3f}", f"{r.final_avg_hunger:.3f}", r.heroes,
                r.dominant_task, r.top_skill,
                f"{r.top_skill_level:.1f}", f"{r.elapsed_seconds:.1f}",
            ])


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Monte Carlo island tribe simulation")
    parser.add_argument("--runs", type=int, default=20, help="Number of runs")
    parser.add_argument("--ticks", type=int, default=6000, help="Ticks per run")
    parser.add_argument("--population", type=int, default=10, help="Founding tribe size")
    parser.add_argument("--output-dir", type=str, default="results/monte_carlo")
    args = parser.parse_args()

    monte_carlo(
        n_runs=args.runs,
        ticks=args.ticks,
        population=args.population,
        output_dir=args.output_dir,
    )
