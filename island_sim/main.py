"""Entry point for the island tribe survival simulation."""

from __future__ import annotations

import argparse
import os
import time


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Island Tribe Survival Simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--ticks", type=int, default=12000, help="Number of fixed ticks to simulate")
    parser.add_argument("--population", type=int, default=10, help="Founding tribe size")
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument("--verbosity", type=int, default=0, choices=[0, 1, 2, 3], help="Log verbosity level")
    parser.add_argument("--output-dir", type=str, default="results", help="Output directory for results")
    parser.add_argument("--log-file", type=str, default=None, help="Path to log file")
    parser.add_argument("--no-report", action="store_true", help="Skip the matplotlib plots")

    args = parser.parse_args()

    # Import here to allow --help without loading everything
    from island_sim.simulation.engine import SimulationWorld
    from island_sim.viz.logger import SimLogger

    print("=== Island Tribe Survival Simulation ===")
    print(f"Population: {args.population} | Ticks: {args.ticks} | Seed: {args.seed}")
    print(f"Output: {args.output_dir}")
    print()

    logger = SimLogger(
        verbosity=args.verbosity,
        log_file=args.log_file or os.path.join(args.output_dir, "simulation.log"),
        stdout=(args.verbosity > 0),
    )

    print("Building island and tribe...")
    t0 = time.time()
    world = SimulationWorld(seed=args.seed, population=args.population, logger=logger)
    print(f"Initialization complete in {time.time() - t0:.2f}s")
    print(f"  Resource targets: {len(world.resources.targets)}")
    print(f"  Fish: {len(world.fishing.fish)}")
    print()

    print(f"Running simulation for {args.ticks} ticks...")
    t0 = time.time()
    try:
        world.step(args.ticks)
    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")

    elapsed = time.time() - t0
    ticks_run = world.clock.tick
    print(
        f"\nSimulation complete: {ticks_run} ticks ({world.clock.elapsed:.0f} simulated seconds, "
        f"day {world.clock.day}) in {elapsed:.2f}s ({ticks_run / max(0.01, elapsed):.0f} ticks/sec)"
    )

    # Export results
    os.makedirs(args.output_dir, exist_ok=True)

    csv_path = os.path.join(args.output_dir, "metrics.csv")
    world.metrics.export_csv(csv_path)
    print(f"Metrics exported to {csv_path}")

    if not args.no_report:
        try:
            from island_sim.viz.dashboard import Dashboard
            Dashboard.comprehensive_report(world.metrics, args.output_dir)
        except Exception as e:
            print(f"Could not generate plots: {e}")

    print()
    print(world.metrics.summary_report())

    world.logger.export_json(os.path.join(args.output_dir, "events.json"))
    world.logger.close()

    print(f"\nAll results saved to {args.output_dir}/")


if __name__ == "__main__":
    main()
