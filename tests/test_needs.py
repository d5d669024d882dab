"""Tests for needs decay, lifecycle transitions and death causes."""

import numpy as np
import pytest

from island_sim.agents.needs import (
    ADULT,
    BABY,
    CHILD,
    ELDER,
    DeathCause,
    Needs,
    NeedsContext,
    create_child_needs,
    generate_needs,
    life_stage_for,
    start_reproduction,
)
from island_sim.core.config import (
    BIRTH_ENERGY_COST,
    ENERGY_RESTORE_RATE,
    HUNGER_DECAY_RATE,
    HUNGER_MOVING_MULT,
    MIN_EFFICIENCY,
)


class _FixedRng:
    """Stands in for a Generator when a test needs a specific roll."""

    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


def _rng(seed: int = 0) -> np.random.Generator:
    return np.random.default_rng(seed)


class TestDecay:
    def test_idle_hunger_decay(self):
        needs = Needs(hunger=0.5)
        needs.advance(1.0, NeedsContext(), _rng())
        assert needs.hunger == pytest.approx(0.5 - HUNGER_DECAY_RATE)

    def test_moving_hunger_decays_faster(self):
        needs = Needs(hunger=0.5)
        needs.advance(1.0, NeedsContext(is_moving=True), _rng())
        assert needs.hunger == pytest.approx(0.5 - HUNGER_DECAY_RATE * HUNGER_MOVING_MULT)

    def test_rest_in_shelter_doubles_recovery(self):
        outside = Needs(energy=0.5)
        sheltered = Needs(energy=0.5)
        outside.advance(1.0, NeedsContext(is_resting=True), _rng())
        sheltered.advance(1.0, NeedsContext(is_resting=True, in_shelter=True), _rng())
        assert outside.energy == pytest.approx(0.5 + ENERGY_RESTORE_RATE)
        assert sheltered.energy == pytest.approx(0.5 + 2 * ENERGY_RESTORE_RATE)

    def test_values_stay_bounded(self):
        needs = Needs(hunger=1.0, energy=1.0, social=1.0)
        ctx = NeedsContext(is_resting=True, in_shelter=True, nearby_agent_count=5)
        for _ in range(100):
            needs.advance(0.05, ctx, _rng())
        for value in (needs.hunger, needs.energy, needs.health, needs.social, needs.reproduction_drive):
            assert 0.0 <= value <= 1.0

    def test_forced_rest_event_when_exhausted(self):
        needs = Needs(energy=0.05)
        result = needs.advance(0.05, NeedsContext(), _rng())
        assert result.alive
        assert [e.kind for e in result.events] == ["forced_rest"]

    def test_no_forced_rest_while_resting(self):
        needs = Needs(energy=0.05)
        result = needs.advance(0.05, NeedsContext(is_resting=True), _rng())
        assert result.events == []


class TestDeath:
    def test_starvation(self):
        needs = Needs(hunger=0.001)
        result = needs.advance(1.0, NeedsContext(), _rng())
        assert not result.alive
        assert result.death_cause == DeathCause.STARVATION
        assert result.events[0].kind == "death"
        assert not needs.alive

    def test_exhaustion_after_ten_seconds_at_zero_energy(self):
        needs = Needs(energy=0.0)
        ctx = NeedsContext(is_moving=True)
        assert needs.advance(5.0, ctx, _rng()).alive
        result = needs.advance(5.0, ctx, _rng())
        assert result.death_cause == DeathCause.EXHAUSTION

    def test_drowning_in_deep_water(self):
        needs = Needs(energy=0.0)
        ctx = NeedsContext(in_water=True, in_deep_water=True)
        result = needs.advance(10.0, ctx, _rng())
        assert result.death_cause == DeathCause.DROWNING

    def test_sickness_death(self):
        needs = Needs(health=0.001, is_sick=True, sickness_timer=60.0)
        result = needs.advance(1.0, NeedsContext(), _rng())
        assert result.death_cause == DeathCause.SICKNESS

    def test_cause_is_write_once(self):
        needs = Needs()
        needs.die(DeathCause.SHARK_ATTACK)
        needs.die(DeathCause.STARVATION)
        assert needs.death_cause == DeathCause.SHARK_ATTACK

    def test_dead_needs_do_not_change(self):
        needs = Needs(hunger=0.5)
        needs.die(DeathCause.COMBAT)
        result = needs.advance(10.0, NeedsContext(is_moving=True), _rng())
        assert not result.alive
        assert result.events == []
        assert needs.hunger == 0.5


class TestLifeStage:
    def test_stage_boundaries(self):
        assert life_stage_for(0.5) is BABY
        assert life_stage_for(5.0) is CHILD
        assert life_stage_for(20.0) is ADULT
        assert life_stage_for(60.0) is ELDER

    def test_stage_is_monotonic_in_age(self):
        order = [BABY, CHILD, ADULT, ELDER]
        indices = [order.index(life_stage_for(age)) for age in np.linspace(0, 100, 201)]
        assert indices == sorted(indices)

    def test_babies_cannot_act(self):
        assert not BABY.can_act
        assert Needs(age=1.0).efficiency_multiplier() == pytest.approx(MIN_EFFICIENCY)


class TestEfficiency:
    def test_healthy_adult_is_fully_efficient(self):
        assert Needs(age=20.0).efficiency_multiplier() == pytest.approx(1.0)

    def test_sickness_halves_efficiency(self):
        assert Needs(age=20.0, is_sick=True).efficiency_multiplier() == pytest.approx(0.5)


class TestFood:
    def test_safe_food_never_rolls(self):
        needs = Needs(hunger=0.5)
        assert needs.consume_food(0.3, _FixedRng(0.0)) is False
        assert needs.hunger == pytest.approx(0.8)

    def test_hunger_capped_at_one(self):
        needs = Needs(hunger=0.9)
        needs.consume_food(0.5, _rng())
        assert needs.hunger == 1.0

    def test_spoiled_food_can_sicken(self):
        needs = Needs(hunger=0.5)
        assert needs.consume_food(0.2, _FixedRng(0.0), is_spoiled=True) is True
        assert needs.is_sick

    def test_raw_food_roll_above_chance_is_safe(self):
        needs = Needs(hunger=0.5)
        assert needs.consume_food(0.2, _FixedRng(0.99), is_raw=True) is False
        assert not needs.is_sick


class TestReproduction:
    def test_pregnancy_starts_and_drives_reset(self):
        a = Needs(age=25.0, reproduction_drive=0.8)
        b = Needs(age=27.0, reproduction_drive=0.9)
        pregnant = start_reproduction(a, b, _rng(3))
        assert pregnant is a or pregnant is b
        assert pregnant.is_pregnant
        assert a.reproduction_drive == 0.0
        assert b.reproduction_drive == 0.0

    def test_child_cannot_reproduce(self):
        a = Needs(age=25.0, reproduction_drive=0.8)
        b = Needs(age=8.0, reproduction_drive=0.9)
        assert start_reproduction(a, b, _rng()) is None
        assert not a.is_pregnant

    def test_birth_event_at_term(self):
        needs = Needs(age=25.0, is_pregnant=True, pregnancy_timer=29.5)
        result = needs.advance(1.0, NeedsContext(), _rng())
        assert result.alive
        assert "give_birth" in [e.kind for e in result.events]
        assert not needs.is_pregnant
        assert needs.energy == pytest.approx(1.0 - BIRTH_ENERGY_COST)

    def test_newborn_needs(self):
        child = create_child_needs()
        assert child.age == 0.0
        assert child.hunger == child.energy == child.health == 1.0
        assert child.life_stage is BABY

    def test_generated_needs_within_ranges(self):
        rng = _rng(7)
        for _ in range(20):
            needs = generate_needs(20.0, rng)
            assert 0.8 <= needs.hunger <= 1.0
            assert 0.9 <= needs.energy <= 1.0
            assert needs.health == 1.0
