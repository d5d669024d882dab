"""Tests for fish movement, target selection and catch resolution."""

import math

import numpy as np
import pytest

from island_sim.economy.fishing import Fish, FishingSystem, FishState, species_for_depth
from island_sim.world.terrain import island_height


def _round_island(x: float, z: float) -> float:
    return 1.0 if math.hypot(x, z) < 20.0 else -1.0


def _fish(fish_id: str = "fish:0", x: float = 24.0, z: float = 0.0, depth: float = 1.5,
          base_speed: float = 0.25) -> Fish:
    return Fish(
        fish_id=fish_id, x=x, z=z, y=-depth, home=(x, z), heading=math.pi / 2,
        base_speed=base_speed, speed=base_speed, species=species_for_depth(depth),
    )


def _system(*fish: Fish) -> FishingSystem:
    system = FishingSystem()
    system.fish.extend(fish)
    return system


class TestCatchChance:
    def test_mid_skill_full_energy(self):
        assert FishingSystem.catch_chance(50, 1.0, 0) == pytest.approx(0.60)

    def test_low_energy_floored_at_base(self):
        assert FishingSystem.catch_chance(0, 0.2, 0) == pytest.approx(0.25)

    def test_persistence_bonus_capped(self):
        assert FishingSystem.catch_chance(0, 1.0, 3) == pytest.approx(0.28)
        assert FishingSystem.catch_chance(0, 1.0, 50) == pytest.approx(0.30)

    def test_ceiling(self):
        assert FishingSystem.catch_chance(100, 1.0, 5) == pytest.approx(0.95)

    def test_failure_increments_and_success_resets(self):
        system = FishingSystem()
        rng = np.random.default_rng(11)
        outcomes = [system.attempt_catch(7, 0, 1.0, rng) for _ in range(40)]
        first_success = next(i for i, r in enumerate(outcomes) if r.success)
        assert outcomes[first_success].attempts == first_success
        assert all(not r.success for r in outcomes[:first_success])
        if first_success + 1 < len(outcomes) and not outcomes[first_success + 1].success:
            assert outcomes[first_success + 1].attempts == 1

    def test_forget_clears_counter(self):
        system = FishingSystem()
        system.attempts[3] = 4
        system.forget(3)
        assert 3 not in system.attempts

    def test_should_cancel(self):
        assert FishingSystem.should_cancel(0.1, 1.0)
        assert FishingSystem.should_cancel(1.0, 0.1)
        assert not FishingSystem.should_cancel(0.5, 0.5)


class TestTargeting:
    def test_fishing_spot_is_on_shore(self):
        spot = FishingSystem.fishing_spot(_fish(), _round_island)
        assert spot == pytest.approx((19.0, 0.0))

    def test_nearest_catchable_skips_far_offshore(self):
        near = _fish("fish:0", x=24.0)
        far = _fish("fish:1", x=40.0)
        system = _system(far, near)
        assert system.nearest_catchable(0.0, 0.0, _round_island) is near

    def test_nearest_catchable_skips_blocked_and_deep(self):
        deep = _fish("fish:0", x=22.0, depth=6.0)
        claimed = _fish("fish:1", x=23.0)
        free = _fish("fish:2", x=-24.0)
        system = _system(deep, claimed, free)
        chosen = system.nearest_catchable(5.0, 0.0, _round_island, is_blocked=lambda fid: fid == "fish:1")
        assert chosen is free

    def test_striking_range(self):
        fish = _fish(x=24.0)
        assert FishingSystem.in_striking_range(19.0, 0.0, fish)
        assert not FishingSystem.in_striking_range(10.0, 0.0, fish)


class TestMovement:
    def test_flees_from_nearby_swimmer(self):
        fish = _fish(x=24.0)
        fish.update(0.05, [(22.0, 0.0)], _round_island)
        assert fish.state == FishState.FLEEING
        assert fish.speed == pytest.approx(0.75)
        assert fish.x > 24.0

    def test_returns_to_base_speed(self):
        fish = _fish(x=24.0)
        fish.update(0.05, [(22.0, 0.0)], _round_island)
        fish.update(0.05, [], _round_island)
        assert fish.state == FishState.SWIMMING
        assert fish.speed == pytest.approx(fish.base_speed)

    def test_never_moves_onto_land(self):
        fish = _fish(x=20.05, base_speed=1.0)
        fish.heading = math.pi
        fish.update(0.1, [], _round_island)
        assert fish.x == pytest.approx(20.05)

    def test_escape_marks_fled(self):
        fish = _fish(x=24.0)
        fish.x = 50.0
        fish.update(0.05, [], _round_island)
        assert fish.state == FishState.FLED

    def test_species_by_depth(self):
        assert species_for_depth(1.0) == "mullet"
        assert species_for_depth(3.0) == "parrotfish"
        assert species_for_depth(5.0) == "grouper"


class TestPopulation:
    def test_spawned_fish_are_offshore(self):
        system = FishingSystem()
        system.populate(np.random.default_rng(5), island_height, count=10)
        assert len(system.fish) == 10
        for fish in system.fish:
            assert island_height(fish.x, fish.z) <= 0.0
            assert 1.0 <= fish.depth <= 4.0

    def test_update_drops_fled_and_respawns(self):
        rng = np.random.default_rng(2)
        system = FishingSystem()
        system.populate(rng, island_height, count=2)
        system.fish[0].x += 100.0
        gone = system.update(20.0, [], island_height, rng)
        assert gone == ["fish:0"]
        assert [f.fish_id for f in system.fish] == ["fish:1", "fish:2"]
