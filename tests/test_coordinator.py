"""Tests for the claim registry and tribe-wide urgencies."""

import pytest

from island_sim.agents.islander import Islander
from island_sim.agents.needs import DeathCause, Needs
from island_sim.agents.tasks import AgentState, Gather, Rest
from island_sim.economy.inventory import CommunalStore
from island_sim.simulation.coordinator import ClaimRegistry, TribeCoordinator, urgency


def _islander(islander_id: int, hunger: float = 1.0, energy: float = 1.0) -> Islander:
    return Islander(islander_id, (0.0, 5.0, 0.0), Needs(hunger=hunger, energy=energy, age=25.0))


class TestClaims:
    def test_single_owner(self):
        claims = ClaimRegistry()
        assert claims.claim("palm_tree:0", 1)
        assert not claims.claim("palm_tree:0", 2)
        assert claims.claim("palm_tree:0", 1)
        assert claims.owner("palm_tree:0") == 1

    def test_release_only_by_owner(self):
        claims = ClaimRegistry()
        claims.claim("rock:3", 1)
        assert not claims.release("rock:3", 2)
        assert claims.release("rock:3", 1)
        assert "rock:3" not in claims

    def test_release_all(self):
        claims = ClaimRegistry()
        claims.claim("a", 1)
        claims.claim("b", 1)
        claims.claim("c", 2)
        assert claims.release_all(1) == 2
        assert claims.claims_of(2) == ["c"]

    def test_is_claimed_by_other(self):
        claims = ClaimRegistry()
        claims.claim("fish:0", 4)
        assert claims.is_claimed_by_other("fish:0", 5)
        assert not claims.is_claimed_by_other("fish:0", 4)

    def test_reconcile_drops_stale_claims(self):
        alive = _islander(0)
        alive.set_task(Gather("coconuts", "palm_tree:0"), AgentState.WALKING)
        idle = _islander(1)
        idle.set_task(Rest(2.0), AgentState.RESTING)
        dead = _islander(2)
        dead.set_task(Gather("wood", "jungle_tree:0"), AgentState.WALKING)
        dead.die(DeathCause.STARVATION)

        claims = ClaimRegistry()
        claims.claim("palm_tree:0", 0)
        claims.claim("rock:0", 1)
        claims.claim("jungle_tree:0", 2)
        claims.claim("fish:9", 99)

        stale = claims.reconcile({a.id: a for a in (alive, idle, dead)})
        assert sorted(stale) == ["fish:9", "jungle_tree:0", "rock:0"]
        assert claims.count() == 1
        assert claims.owner("palm_tree:0") == 0


class TestUrgency:
    def test_urgency_formula(self):
        assert urgency(0, 10) == pytest.approx(1.0)
        assert urgency(5, 10) == pytest.approx(0.5)
        assert urgency(20, 10) == 0.0
        assert urgency(3, 0) == 0.0

    def test_refresh(self):
        agents = [_islander(i) for i in range(4)]
        store = CommunalStore()
        store.add("coconut", 10)
        store.add("wood", 12)
        store.add_tool("fishing_spear")
        agents[0].inventory.add_tool("fishing_spear")

        coordinator = TribeCoordinator()
        coordinator.refresh(agents, store)
        assert coordinator.population == 4
        assert coordinator.urgencies["coconuts"] == pytest.approx(0.5)
        assert coordinator.urgencies["wood"] == 0.0
        assert coordinator.urgencies["stone"] == pytest.approx(1.0)
        assert coordinator.desired_spears() == 2
        # only the stored spear counts toward the stockpile
        assert coordinator.urgencies["spears"] == pytest.approx(0.5)

    def test_desired_spears_scale_with_population(self):
        coordinator = TribeCoordinator()
        coordinator.refresh([_islander(i) for i in range(8)], CommunalStore())
        assert coordinator.desired_spears() == 2
        coordinator.refresh([_islander(i) for i in range(9)], CommunalStore())
        assert coordinator.desired_spears() == 3
        assert coordinator.urgencies["spears"] == pytest.approx(1.0)

    def test_critical_agents_need_help(self):
        agents = [_islander(0, hunger=0.1), _islander(1), _islander(2, energy=0.1)]
        coordinator = TribeCoordinator()
        coordinator.refresh(agents, CommunalStore())
        assert coordinator.needing_help() == [0, 2]
        assert coordinator.is_critical(0)
        assert not coordinator.is_critical(1)

    def test_dead_agents_excluded(self):
        agents = [_islander(0), _islander(1)]
        agents[1].die(DeathCause.OLD_AGE)
        coordinator = TribeCoordinator()
        coordinator.refresh(agents, CommunalStore())
        assert coordinator.population == 1

    def test_count_on_task(self):
        agents = [_islander(i) for i in range(3)]
        for a in agents:
            a.set_task(Gather("wood", f"jungle_tree:{a.id}"), AgentState.WALKING)
        assert TribeCoordinator.count_on_task(agents, "gather") == 3
        assert TribeCoordinator.count_on_task(agents, "gather", exclude_id=1) == 2
