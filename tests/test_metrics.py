"""Tests for metric sampling, summaries and CSV export."""

import csv

import pytest

from island_sim.agents.islander import Islander
from island_sim.agents.needs import DeathCause, Needs
from island_sim.agents.tasks import AgentState, Gather
from island_sim.economy.inventory import CommunalStore
from island_sim.simulation.metrics import MetricsCollector


def _tribe() -> list[Islander]:
    a = Islander(0, (0.0, 1.0, 0.0), Needs(hunger=0.4, energy=0.6, age=25.0))
    b = Islander(1, (0.0, 1.0, 0.0), Needs(hunger=0.8, energy=1.0, age=30.0))
    b.set_task(Gather("wood", "jungle_tree:0"), AgentState.WALKING)
    b.inventory.add_tool("fishing_spear")
    c = Islander(2, (0.0, 1.0, 0.0), Needs(age=40.0))
    c.die(DeathCause.OLD_AGE)
    return [a, b, c]


def _store() -> CommunalStore:
    store = CommunalStore()
    store.add("coconut", 4)
    store.add("mullet", 2)
    store.add("wood", 7)
    store.add_tool("fishing_spear")
    return store


class TestCollect:
    def test_snapshot_values(self):
        metrics = MetricsCollector()
        snap = metrics.collect(20, 1.0, 0, _tribe(), _store(), active_claims=1, active_threats=0)
        assert snap.population == 2
        assert snap.avg_hunger == pytest.approx(0.6)
        assert snap.avg_energy == pytest.approx(0.8)
        assert snap.store_food == 6
        assert snap.store_wood == 7
        assert snap.spears == 2
        assert snap.task_counts == {"idle": 1, "gather": 1}

    def test_interval_counters_reset(self):
        metrics = MetricsCollector()
        metrics.record_birth()
        metrics.record_death("starvation")
        metrics.record_catch_attempt(True)
        metrics.record_catch_attempt(False)
        first = metrics.collect(20, 1.0, 0, _tribe(), _store(), 0, 0)
        second = metrics.collect(40, 2.0, 0, _tribe(), _store(), 0, 0)
        assert (first.births, first.deaths, first.catch_attempts, first.catches) == (1, 1, 2, 1)
        assert (second.births, second.deaths, second.catch_attempts) == (0, 0, 0)
        assert metrics.total_births == 1
        assert metrics.total_deaths == 1
        assert metrics.death_causes == {"starvation": 1}


class TestReports:
    def test_summary(self):
        metrics = MetricsCollector()
        metrics.record_death("shark_attack")
        metrics.collect(20, 1.0, 0, _tribe(), _store(), 0, 1)
        metrics.record_catch_attempt(True)
        metrics.collect(40, 2.0, 0, _tribe(), _store(), 0, 0)
        report = metrics.summary_report()
        assert "Tick 20 to Tick 40" in report
        assert "shark_attack: 1" in report
        assert "1 catches from 1 throws (100%)" in report

    def test_empty_summary(self):
        assert "No data" in MetricsCollector().summary_report()

    def test_csv_export(self, tmp_path):
        metrics = MetricsCollector()
        metrics.collect(20, 1.0, 0, _tribe(), _store(), 3, 0)
        path = tmp_path / "out" / "metrics.csv"
        metrics.export_csv(str(path))
        with open(path, newline="") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 1
        assert rows[0]["population"] == "2"
        assert rows[0]["active_claims"] == "3"
