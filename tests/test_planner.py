"""Tests for the priority-cascade planner."""

import math

import numpy as np
import pytest

from island_sim.agents.islander import Islander
from island_sim.agents.needs import Needs
from island_sim.agents.planner import PlanContext, TaskPlanner
from island_sim.agents.tasks import (
    AgentState,
    Craft,
    EatFromInventory,
    FetchTool,
    Gather,
    GoFishing,
    GoToStoreForFood,
    GoToStoreForHelping,
    HaulToStore,
    HelpAgent,
    Patrol,
    Rest,
    WalkToStoreToCraft,
)
from island_sim.economy.fishing import Fish, FishingSystem
from island_sim.economy.inventory import CommunalStore
from island_sim.simulation.coordinator import ClaimRegistry, TribeCoordinator
from island_sim.world.resources import ResourceKind, ResourceManager, ResourceTarget


def _flat(x: float, z: float) -> float:
    return 1.0 if math.hypot(x, z) < 60.0 else -1.0


def _islander(islander_id: int, x: float = 10.0, z: float = 0.0, **needs) -> Islander:
    needs.setdefault("age", 25.0)
    return Islander(islander_id, (x, 1.0, z), Needs(**needs))


def _resources(*targets: tuple[str, ResourceKind, float, float]) -> ResourceManager:
    manager = ResourceManager()
    for target_id, kind, x, z in targets:
        manager.add(ResourceTarget(target_id, kind, (x, 1.0, z), remaining=3, max_yield=3))
    return manager


def _context(agents, store=None, resources=None, fishing=None, seed=0) -> PlanContext:
    store = store or CommunalStore()
    coordinator = TribeCoordinator()
    coordinator.refresh(agents, store)
    return PlanContext(
        agents=agents,
        store=store,
        coordinator=coordinator,
        claims=ClaimRegistry(),
        resources=resources or ResourceManager(),
        fishing=fishing or FishingSystem(),
        terrain=_flat,
        rng=np.random.default_rng(seed),
    )


class TestSurvivalRules:
    def test_hungry_agent_eats_own_food(self):
        agent = _islander(0, hunger=0.1)
        agent.inventory.add("coconut", 1)
        planner = TaskPlanner()
        assert planner.update(agent, _context([agent]))
        assert isinstance(agent.task, EatFromInventory)
        assert agent.task.resource_id == "coconut"
        assert agent.state == AgentState.EATING

    def test_hungry_agent_goes_to_store(self):
        agent = _islander(0, hunger=0.28)
        store = CommunalStore()
        store.add("coconut", 3)
        TaskPlanner().update(agent, _context([agent], store=store))
        assert isinstance(agent.task, GoToStoreForFood)
        assert agent.state == AgentState.WALKING

    def test_tired_agent_rests(self):
        agent = _islander(0, energy=0.1)
        TaskPlanner().update(agent, _context([agent]))
        assert isinstance(agent.task, Rest)
        assert 4.0 <= agent.task.remaining <= 8.0
        assert agent.state == AgentState.RESTING

    def test_helper_brings_food_to_critical_mate(self):
        helper = _islander(0)
        helper.inventory.add("coconut", 1)
        needy = _islander(1, x=20.0, hunger=0.1, energy=0.1)
        TaskPlanner().update(helper, _context([helper, needy]))
        assert isinstance(helper.task, HelpAgent)
        assert helper.task.target_agent_id == 1

    def test_helper_fetches_from_store_surplus(self):
        helper = _islander(0)
        needy = _islander(1, x=20.0, hunger=0.1)
        store = CommunalStore()
        store.add("coconut", 5)
        TaskPlanner().update(helper, _context([helper, needy], store=store))
        assert isinstance(helper.task, GoToStoreForHelping)

    def test_no_help_out_of_range(self):
        helper = _islander(0, x=-30.0)
        helper.inventory.add("coconut", 1)
        needy = _islander(1, x=30.0, hunger=0.1)
        TaskPlanner().update(helper, _context([helper, needy]))
        assert not isinstance(helper.task, HelpAgent)


class TestEligibility:
    def test_atomic_state_is_left_alone(self):
        agent = _islander(0, hunger=0.1)
        agent.inventory.add("coconut", 1)
        agent.set_task(Gather("wood", "jungle_tree:0", timer=1.0), AgentState.GATHERING)
        assert not TaskPlanner().update(agent, _context([agent]))
        assert isinstance(agent.task, Gather)

    def test_babies_are_never_planned(self):
        baby = _islander(0, age=1.0)
        assert not TaskPlanner().update(baby, _context([baby]))
        assert baby.task is None

    def test_same_task_is_kept(self):
        agent = _islander(0, x=40.0)
        ctx = _context([agent])
        planner = TaskPlanner()
        planner.update(agent, ctx)
        assert isinstance(agent.task, Patrol)
        agent.task.elapsed = 12.0
        assert not planner.update(agent, ctx)
        assert agent.task.elapsed == 12.0


class TestLogistics:
    def test_carrying_agent_hauls(self):
        agent = _islander(0)
        agent.inventory.add("wood", 2)
        TaskPlanner().update(agent, _context([agent]))
        assert isinstance(agent.task, HaulToStore)
        assert agent.state == AgentState.HAULING

    def test_peckish_agent_eats_from_stocked_store(self):
        agent = _islander(0, x=40.0, hunger=0.45)
        store = CommunalStore()
        store.add("coconut", 30)
        store.add("wood", 2)
        store.add("stone", 1)
        TaskPlanner().update(agent, _context([agent], store=store))
        assert isinstance(agent.task, GoToStoreForFood)

    def test_peckish_agent_leaves_a_short_store_alone(self):
        agent = _islander(0, x=40.0, hunger=0.45)
        other = _islander(1, x=45.0)
        store = CommunalStore()
        store.add("coconut", 3)
        TaskPlanner().update(agent, _context([agent, other], store=store))
        assert not isinstance(agent.task, GoToStoreForFood)

    def test_peckish_agent_hauls_first(self):
        agent = _islander(0, x=40.0, hunger=0.45)
        agent.inventory.add("wood", 1)
        store = CommunalStore()
        store.add("coconut", 30)
        TaskPlanner().update(agent, _context([agent], store=store))
        assert isinstance(agent.task, HaulToStore)

    def test_spear_crafted_when_materials_stored(self):
        agent = _islander(0, x=1.0)
        store = CommunalStore()
        store.add("wood", 2)
        store.add("stone", 1)
        TaskPlanner().update(agent, _context([agent], store=store))
        assert isinstance(agent.task, Craft)
        assert agent.task.recipe_id == "fishing_spear"

    def test_far_crafter_walks_to_store(self):
        agent = _islander(0, x=20.0)
        store = CommunalStore()
        store.add("wood", 2)
        store.add("stone", 1)
        TaskPlanner().update(agent, _context([agent], store=store))
        assert isinstance(agent.task, WalkToStoreToCraft)

    def test_only_one_crafter(self):
        a = _islander(0, x=20.0)
        b = _islander(1, x=25.0)
        store = CommunalStore()
        store.add("wood", 2)
        store.add("stone", 1)
        ctx = _context([a, b], store=store)
        planner = TaskPlanner()
        planner.update(a, ctx)
        planner.update(b, ctx)
        assert isinstance(a.task, WalkToStoreToCraft)
        assert not isinstance(b.task, (WalkToStoreToCraft, Craft))

    def test_fetch_spear_claims_the_tool(self):
        a = _islander(0)
        b = _islander(1)
        store = CommunalStore()
        for _ in range(6):
            store.add_tool("fishing_spear")
        ctx = _context([a, b], store=store)
        planner = TaskPlanner()
        planner.update(a, ctx)
        planner.update(b, ctx)
        assert isinstance(a.task, FetchTool)
        assert ctx.claims.owner("tool:fishing_spear") == 0
        assert not isinstance(b.task, FetchTool)


class TestProduction:
    def test_two_agents_one_palm(self):
        a = _islander(0, x=10.0)
        b = _islander(1, x=12.0)
        resources = _resources(
            ("palm_tree:0", ResourceKind.PALM_TREE, 30.0, 0.0),
            ("jungle_tree:0", ResourceKind.JUNGLE_TREE, -20.0, 0.0),
        )
        ctx = _context([a, b], resources=resources)
        planner = TaskPlanner()
        planner.update(a, ctx)
        planner.update(b, ctx)

        assert a.task == Gather("coconuts", "palm_tree:0")
        assert b.task == Gather("wood", "jungle_tree:0")
        assert ctx.claims.owner("palm_tree:0") == 0
        assert ctx.claims.owner("jungle_tree:0") == 1

    def test_worker_cap_limits_category(self):
        agents = [_islander(i, x=10.0 + i) for i in range(3)]
        resources = _resources(
            ("palm_tree:0", ResourceKind.PALM_TREE, 30.0, 0.0),
            ("palm_tree:1", ResourceKind.PALM_TREE, 31.0, 0.0),
            ("palm_tree:2", ResourceKind.PALM_TREE, 32.0, 0.0),
            ("rock:0", ResourceKind.ROCK, -30.0, 0.0),
        )
        ctx = _context(agents, resources=resources)
        planner = TaskPlanner()
        for agent in agents:
            planner.update(agent, ctx)
        categories = [a.task.category for a in agents]
        # ceil(3 * 1.0 * 0.6) = 2 coconut gatherers
        assert categories == ["coconuts", "coconuts", "stone"]

    def test_fisher_with_spear_targets_fish(self):
        agent = _islander(0, x=30.0)
        agent.inventory.add_tool("fishing_spear")
        agent.inventory.equip("fishing_spear")
        fish = Fish("fish:0", 63.0, 0.0, -1.5, (63.0, 0.0), 0.0, 0.25, 0.25, "mullet")
        fishing = FishingSystem()
        fishing.fish.append(fish)
        ctx = _context([agent], fishing=fishing)
        TaskPlanner().update(agent, ctx)
        assert isinstance(agent.task, GoFishing)
        assert agent.task.fish_id == "fish:0"
        assert agent.task.spot == pytest.approx((59.0, 0.0))
        assert ctx.claims.owner("fish:0") == 0

    def test_idle_near_store_rests(self):
        agent = _islander(0, x=2.0)
        TaskPlanner().update(agent, _context([agent]))
        assert isinstance(agent.task, Rest)
        assert 2.0 <= agent.task.remaining <= 4.0

    def test_changing_task_releases_old_claim(self):
        agent = _islander(0)
        resources = _resources(("palm_tree:0", ResourceKind.PALM_TREE, 30.0, 0.0))
        ctx = _context([agent], resources=resources)
        planner = TaskPlanner()
        planner.update(agent, ctx)
        assert ctx.claims.owner("palm_tree:0") == 0

        agent.needs.energy = 0.1
        planner.update(agent, ctx)
        assert isinstance(agent.task, Rest)
        assert not ctx.claims.is_claimed("palm_tree:0")
