"""Tests for encounter rolls, group combat and the threat state machine."""

import numpy as np
import pytest

from island_sim.agents.needs import DeathCause
from island_sim.simulation.threats import (
    BULL_SHARK,
    GIANT_SQUID,
    Hunter,
    ThreatManager,
    ThreatState,
    check_shark_encounter,
    check_squid_spawn,
    combat_success_chance,
    resolve_combat,
    shark_encounter_chance,
)


class _FixedRng:
    """Every roll returns the same value; integer draws return the low bound."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value

    def integers(self, low: int, high: int) -> int:
        return low


def _hunters(n: int, armed: bool = True, skill: float = 0.0) -> list[Hunter]:
    return [Hunter(i, armed, skill) for i in range(n)]


class TestEncounters:
    def test_deep_reef_bands(self):
        assert shark_encounter_chance("deep_reef", 0.5) == pytest.approx(0.05)
        assert shark_encounter_chance("deep_reef", 0.15) == pytest.approx(0.30)
        assert shark_encounter_chance("deep_reef", 0.85) == pytest.approx(0.30)
        assert shark_encounter_chance("deep_reef", 0.95) == pytest.approx(0.50)

    def test_shallow_reef_only_at_night(self):
        assert shark_encounter_chance("shallow_reef", 0.5) == 0.0
        assert shark_encounter_chance("shallow_reef", 0.05) == pytest.approx(0.02)

    def test_blood_doubles_chance(self):
        assert shark_encounter_chance("deep_reef", 0.95, blood_in_water=True) == pytest.approx(1.0)

    def test_shark_check_always_rolls_once(self):
        rng = _FixedRng(0.0)
        assert not check_shark_encounter("shallow_reef", 0.5, False, rng)
        assert rng.calls == 1

    def test_squid_needs_night_and_deep_water(self):
        rng = _FixedRng(0.0)
        assert not check_squid_spawn(False, True, rng)
        assert not check_squid_spawn(True, False, rng)
        assert rng.calls == 0
        assert check_squid_spawn(True, True, rng)

    def test_squid_modifiers_stack(self):
        # 0.001 * 3 * 2 * 5 = 0.03
        assert check_squid_spawn(True, True, _FixedRng(0.029), is_storm=True, is_new_moon=True, blood_in_water=True)
        assert not check_squid_spawn(True, True, _FixedRng(0.031), is_storm=True, is_new_moon=True, blood_in_water=True)


class TestCombatChance:
    def test_shark_group_sizes(self):
        assert combat_success_chance(BULL_SHARK, _hunters(1)) == pytest.approx(0.1)
        assert combat_success_chance(BULL_SHARK, _hunters(2)) == pytest.approx(0.3)
        assert combat_success_chance(BULL_SHARK, _hunters(3)) == pytest.approx(0.5)
        assert combat_success_chance(BULL_SHARK, _hunters(5)) == pytest.approx(0.7)

    def test_unarmed_penalty(self):
        assert combat_success_chance(BULL_SHARK, _hunters(3, armed=False)) == pytest.approx(0.15)
        assert combat_success_chance(GIANT_SQUID, _hunters(6, armed=False)) == pytest.approx(0.06)

    def test_skill_adds_and_cap_applies(self):
        assert combat_success_chance(BULL_SHARK, _hunters(3, skill=1.0)) == pytest.approx(0.8)
        assert combat_success_chance(BULL_SHARK, _hunters(8, skill=1.0)) == pytest.approx(0.9)

    def test_squid_needs_a_war_party(self):
        assert combat_success_chance(GIANT_SQUID, _hunters(5)) == pytest.approx(0.05)
        assert combat_success_chance(GIANT_SQUID, _hunters(6)) == pytest.approx(0.3)
        assert combat_success_chance(GIANT_SQUID, _hunters(8)) == pytest.approx(0.4)

    def test_no_hunters(self):
        assert combat_success_chance(BULL_SHARK, []) == 0.0


class TestResolveCombat:
    def test_victory_drops_loot_and_names_killer(self):
        manager = ThreatManager()
        shark = manager.spawn("bull_shark", 0.0, 0.0)
        outcome = resolve_combat(shark, _hunters(3), _FixedRng(0.0))
        assert outcome.success
        assert outcome.killer_id == 0
        assert outcome.drops == {"shark_meat": 6, "shark_teeth": 8, "shark_skin": 2, "shark_jaw": 1}

    def test_defeat_has_no_loot(self):
        manager = ThreatManager()
        shark = manager.spawn("bull_shark", 0.0, 0.0)
        outcome = resolve_combat(shark, _hunters(3), _FixedRng(0.99))
        assert not outcome.success
        assert outcome.drops == {}
        assert outcome.killer_id is None
        assert outcome.casualties == []

    def test_casualties_are_hunters(self):
        manager = ThreatManager()
        squid = manager.spawn("giant_squid", 0.0, 0.0)
        rng = np.random.default_rng(4)
        hunters = _hunters(6)
        outcome = resolve_combat(squid, hunters, rng)
        assert set(outcome.casualties) <= {h.agent_id for h in hunters}

    def test_death_causes(self):
        assert BULL_SHARK.death_cause == DeathCause.SHARK_ATTACK
        assert GIANT_SQUID.death_cause == DeathCause.SQUID_ATTACK


class TestThreatManager:
    def test_aggro_then_attack(self):
        manager = ThreatManager()
        shark = manager.spawn("bull_shark", 0.0, 0.0)
        rng = np.random.default_rng(0)
        events = manager.update(0.05, {7: (10.0, 0.0)}, rng)
        assert [e.kind for e in events] == ["aggro"]
        assert shark.state == ThreatState.ATTACKING
        assert shark.target_id == 7

        kinds = []
        for _ in range(40):
            kinds.extend(e.kind for e in manager.update(0.05, {7: (10.0, 0.0)}, rng))
            if "attack" in kinds:
                break
        assert "attack" in kinds

    def test_patrol_timeout(self):
        manager = ThreatManager()
        manager.spawn("bull_shark", 0.0, 0.0)
        events = manager.update(60.0, {}, np.random.default_rng(0))
        assert [e.kind for e in events] == ["left"]
        assert manager.threats == []

    def test_driven_off_threat_flees_and_despawns(self):
        manager = ThreatManager()
        shark = manager.spawn("bull_shark", 0.0, 0.0)
        manager.drive_off(shark)
        events = manager.update(0.05, {1: (200.0, 0.0)}, np.random.default_rng(0))
        assert [e.kind for e in events] == ["fled"]
        assert manager.active() == []

    def test_damage_and_flee_threshold(self):
        manager = ThreatManager()
        shark = manager.spawn("bull_shark", 0.0, 0.0)
        assert not ThreatManager.damage(shark, 85.0, 3)
        events = manager.update(0.05, {}, np.random.default_rng(0))
        assert "fleeing" in [e.kind for e in events]
        assert ThreatManager.damage(shark, 50.0, 3)
        assert shark.state == ThreatState.DEAD
        assert shark.killer_id == 3
        assert manager.active() == []

    def test_blood_timer_counts_down(self):
        manager = ThreatManager()
        manager.mark_blood()
        assert manager.blood_in_water
        manager.update(30.0, {}, np.random.default_rng(0))
        assert not manager.blood_in_water

    def test_ids_are_sequential(self):
        manager = ThreatManager()
        assert manager.spawn("bull_shark", 0, 0).threat_id == "bull_shark:0"
        assert manager.spawn("giant_squid", 0, 0).threat_id == "giant_squid:1"
