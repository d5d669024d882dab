"""Matplotlib dashboard for simulation metrics, rendered off-screen."""

from __future__ import annotations

import os

import matplotlib
matplotlib.use("Agg")  # Headless backend; figures are written to disk
import matplotlib.pyplot as plt


class Dashboard:
    """Six-panel overview figure redrawn from the collected snapshots."""

    def __init__(self) -> None:
        self._fig = None
        self._axes = None

    def initialize(self) -> None:
        """Set up the matplotlib figure and subplots."""
        self._fig, axes = plt.subplots(2, 3, figsize=(18, 9))
        self._fig.suptitle("Island Tribe Dashboard", fontsize=14)
        self._axes = {
            "population": axes[0, 0],
            "needs": axes[0, 1],
            "store": axes[0, 2],
            "tasks": axes[1, 0],
            "fishing": axes[1, 1],
            "skills": axes[1, 2],
        }
        for ax in axes.flat:
            ax.grid(True, alpha=0.3)

    def update(self, metrics: "MetricsCollector") -> None:  # noqa: F821
        """Redraw every panel from the latest metrics."""
        if self._fig is None:
            self.initialize()

        snapshots = metrics.snapshots
        if not snapshots:
            return

        times = [s.elapsed for s in snapshots]

        # Population
        ax = self._axes["population"]
        ax.clear()
        ax.set_title("Population")
        ax.plot(times, [s.population for s in snapshots], "b-", linewidth=1.5)
        ax.plot(times, [s.sick_count for s in snapshots], "r--", linewidth=1, label="Sick")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        # Needs
        ax = self._axes["needs"]
        ax.clear()
        ax.set_title("Average Needs")
        ax.plot(times, [s.avg_hunger for s in snapshots], "orange", label="Hunger", linewidth=1.5)
        ax.plot(times, [s.avg_energy for s in snapshots], "g-", label="Energy", linewidth=1.5)
        ax.plot(times, [s.avg_health for s in snapshots], "b-", label="Health", linewidth=1.5)
        ax.plot(times, [s.avg_social for s in snapshots], "m-", label="Social", linewidth=1)
        ax.set_ylim(0, 1)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        # Communal store
        ax = self._axes["store"]
        ax.clear()
        ax.set_title("Communal Store")
        ax.plot(times, [s.store_food for s in snapshots], "g-", label="Food")
        ax.plot(times, [s.store_wood for s in snapshots], "brown", label="Wood")
        ax.plot(times, [s.store_stone for s in snapshots], "gray", label="Stone")
        ax.plot(times, [s.spears for s in snapshots], "k--", label="Spears")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        # Task distribution (pie chart of latest sample)
        ax = self._axes["tasks"]
        ax.clear()
        ax.set_title("Task Distribution")
        latest = snapshots[-1]
        if latest.task_counts:
            ordered = sorted(latest.task_counts.items(), key=lambda x: -x[1])
            ax.pie(
                [c for _, c in ordered],
                labels=[k for k, _ in ordered],
                autopct="%1.0f%%",
                textprops={"fontsize": 7},
            )

        # Fishing
        ax = self._axes["fishing"]
        ax.clear()
        ax.set_title("Fishing")
        ax.plot(times, _cumulative(s.catch_attempts for s in snapshots), "c-", label="Throws")
        ax.plot(times, _cumulative(s.catches for s in snapshots), "b-", label="Catches")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)

        # Skill development
        ax = self._axes["skills"]
        ax.clear()
        ax.set_title("Skill Development")
        for skill_name in sorted(latest.avg_skill_levels):
            values = [s.avg_skill_levels.get(skill_name, 0.0) for s in snapshots]
            if max(values) > 0.0:
                ax.plot(times, values, linewidth=1, label=skill_name)
        if ax.get_legend_handles_labels()[0]:
            ax.legend(fontsize=7, loc="upper left")
        ax.grid(True, alpha=0.3)

        self._fig.suptitle(f"Island Tribe - Day {latest.day}, tick {latest.tick}", fontsize=14)
        self._fig.tight_layout()

    def save(self, filepath: str) -> None:
        """Save the current dashboard as an image."""
        if self._fig:
            self._fig.savefig(filepath, dpi=150, bbox_inches="tight")

    def close(self) -> None:
        """Close the dashboard."""
        if self._fig:
            plt.close(self._fig)
            self._fig = None

    # ------------------------------------------------------------------
    # Post-hoc static plots
    # ------------------------------------------------------------------

    @staticmethod
    def comprehensive_report(metrics: "MetricsCollector", output_dir: str) -> list[str]:  # noqa: F821
        """Generate all plots into *output_dir*. Returns the files written."""
        os.makedirs(output_dir, exist_ok=True)

        snapshots = metrics.snapshots
        if not snapshots:
            return []

        written: list[str] = []
        times = [s.elapsed for s in snapshots]

        def save(fig, name: str) -> None:
            path = os.path.join(output_dir, name)
            fig.savefig(path, dpi=150)
            plt.close(fig)
            written.append(path)

        # Population over time
        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(times, [s.population for s in snapshots])
        ax.set_title("Population Over Time")
        ax.set_xlabel("Simulated seconds")
        ax.set_ylabel("Population")
        ax.grid(True, alpha=0.3)
        save(fig, "population.png")

        # Needs
        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(times, [s.avg_hunger for s in snapshots], label="Hunger")
        ax.plot(times, [s.avg_energy for s in snapshots], label="Energy")
        ax.plot(times, [s.avg_health for s in snapshots], label="Health")
        ax.plot(times, [s.avg_social for s in snapshots], label="Social")
        ax.set_title("Average Needs Over Time")
        ax.set_xlabel("Simulated seconds")
        ax.set_ylim(0, 1)
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        save(fig, "needs.png")

        # Communal stock
        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(times, [s.store_food for s in snapshots], label="Food")
        ax.plot(times, [s.store_wood for s in snapshots], label="Wood")
        ax.plot(times, [s.store_stone for s in snapshots], label="Stone")
        ax.plot(times, [s.spears for s in snapshots], "k--", label="Spears")
        ax.set_title("Communal Store Over Time")
        ax.set_xlabel("Simulated seconds")
        ax.set_ylabel("Units")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        save(fig, "store.png")

        # Fishing success
        fig, ax = plt.subplots(figsize=(10, 5))
        ax.plot(times, _cumulative(s.catch_attempts for s in snapshots), label="Throws")
        ax.plot(times, _cumulative(s.catches for s in snapshots), label="Catches")
        ax.set_title("Cumulative Fishing")
        ax.set_xlabel("Simulated seconds")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        save(fig, "fishing.png")

        # Skill development
        fig, ax = plt.subplots(figsize=(10, 5))
        for skill_name in sorted(snapshots[-1].avg_skill_levels):
            values = [s.avg_skill_levels.get(skill_name, 0.0) for s in snapshots]
            ax.plot(times, values, linewidth=1.5, label=skill_name)
        ax.set_title("Skill Development Over Time")
        ax.set_xlabel("Simulated seconds")
        ax.set_ylabel("Average Skill Level")
        ax.legend(fontsize=8)
        ax.grid(True, alpha=0.3)
        save(fig, "skill_development.png")

        # Overview
        dashboard = Dashboard()
        dashboard.update(metrics)
        overview = os.path.join(output_dir, "dashboard.png")
        dashboard.save(overview)
        dashboard.close()
        written.append(overview)

        print(f"Reports saved to {output_dir}/")
        return written


def _cumulative(values) -> list[int]:
    total = 0
    out: list[int] = []
    for v in values:
        total += v
        out.append(total)
    return out
