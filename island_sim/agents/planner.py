"""Priority-cascade task planner: the first matching rule commits a task."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from numpy.random import Generator

from island_sim.agents.islander import Islander
from island_sim.agents.tasks import (
    ATOMIC_STATES,
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
    Task,
    WalkToStoreToCraft,
    same_task,
)
from island_sim.core.config import (
    CRAFT_AT_STORE_DISTANCE,
    EAT_HUNGER_THRESHOLD,
    FETCH_FOOD_URGENCY,
    FETCH_MIN_ENERGY,
    FISH_FOOD_URGENCY,
    FISH_MIN_ENERGY,
    FISH_MIN_HUNGER,
    FISHER_CAP_FRACTION,
    FISHING_MAX_ATTEMPTS_PER_TRIP,
    GATHER_URGENCY_THRESHOLD,
    HELP_RANGE,
    HELPER_MIN_ENERGY,
    HELPER_MIN_HUNGER,
    IDLE_REST_DURATION,
    MODERATE_HUNGER_FOOD_URGENCY,
    MODERATE_HUNGER_THRESHOLD,
    PATROL_DISTANCE,
    REST_DURATION,
    REST_ENERGY_THRESHOLD,
    SPEAR_URGENCY_THRESHOLD,
    STORE_FOOD_HUNGER_THRESHOLD,
    WORKER_CAP_FACTOR,
)
from island_sim.economy.crafting import can_craft, crafting_time
from island_sim.economy.fishing import FishingSystem
from island_sim.economy.inventory import SPEAR_IDS, CommunalStore
from island_sim.simulation.coordinator import ClaimRegistry, TribeCoordinator
from island_sim.world.resources import GATHER_CATEGORIES, ResourceManager, ResourceTarget
from island_sim.world.terrain import TerrainFn

SPEAR_RECIPE = "fishing_spear"


@dataclass
class PlanContext:
    """Everything the planner reads. Built once per tick by the engine."""

    agents: list[Islander]
    store: CommunalStore
    coordinator: TribeCoordinator
    claims: ClaimRegistry
    resources: ResourceManager
    fishing: FishingSystem
    terrain: TerrainFn
    rng: Generator


def state_for(task: Task) -> AgentState:
    """Behavioural state an agent enters when it takes on *task*."""
    if isinstance(task, Rest):
        return AgentState.RESTING
    if isinstance(task, EatFromInventory):
        return AgentState.EATING
    if isinstance(task, Craft):
        return AgentState.CRAFTING
    if isinstance(task, HaulToStore):
        return AgentState.HAULING
    return AgentState.WALKING


def _rest_time(duration: tuple[float, float], rng: Generator) -> float:
    base, span = duration
    return base + float(rng.random()) * span


class TaskPlanner:
    """Assigns or maintains one task per eligible islander per tick.

    Rules are tried in a fixed order; shared state (claims, task counts) is
    re-read for every agent, so agents planned later in the same tick see the
    choices of the agents planned before them.
    """

    @staticmethod
    def is_eligible(agent: Islander) -> bool:
        return agent.can_act and agent.state not in ATOMIC_STATES

    def update(self, agent: Islander, ctx: PlanContext) -> bool:
        """Replan *agent*. Returns True if its task changed."""
        if not self.is_eligible(agent):
            return False
        new_task = self.plan(agent, ctx)
        if new_task is None or same_task(agent.task, new_task):
            return False

        old = agent.task
        if old is not None and old.claim_id is not None and old.claim_id != new_task.claim_id:
            ctx.claims.release(old.claim_id, agent.id)
        agent.set_task(new_task, state_for(new_task))
        return True

    def plan(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        for rule in (
            self._eat_own_food,
            self._food_from_store,
            self._critical_rest,
            self._help_tribe_mate,
            self._haul,
            self._top_up_from_store,
            self._craft_spear,
            self._fetch_spear,
            self._go_fishing,
            self._gather_urgent,
            self._gather_maintenance,
            self._patrol,
        ):
            task = rule(agent, ctx)
            if task is not None:
                return task
        return Rest(_rest_time(IDLE_REST_DURATION, ctx.rng))

    # ------------------------------------------------------------------
    # Survival
    # ------------------------------------------------------------------

    def _eat_own_food(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        if agent.needs.hunger >= EAT_HUNGER_THRESHOLD:
            return None
        food = agent.inventory.best_food()
        return EatFromInventory(food) if food is not None else None

    def _food_from_store(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        if agent.needs.hunger < STORE_FOOD_HUNGER_THRESHOLD and ctx.store.has_food():
            return GoToStoreForFood()
        return None

    def _critical_rest(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        if agent.needs.energy < REST_ENERGY_THRESHOLD:
            return Rest(_rest_time(REST_DURATION, ctx.rng))
        return None

    def _help_tribe_mate(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        if agent.needs.hunger <= HELPER_MIN_HUNGER or agent.needs.energy <= HELPER_MIN_ENERGY:
            return None
        needy_ids = [aid for aid in ctx.coordinator.needing_help() if aid != agent.id]
        if not needy_ids:
            return None

        carrying_food = agent.inventory.has_food()
        store_surplus = ctx.store.count("coconut") > ctx.coordinator.population
        if not (carrying_food or store_surplus):
            return None

        by_id = {a.id: a for a in ctx.agents}
        candidates = [
            (agent.distance_to_agent(by_id[aid]), aid)
            for aid in needy_ids
            if aid in by_id and by_id[aid].is_alive
        ]
        if not candidates:
            return None
        dist, target_id = min(candidates)
        if dist >= HELP_RANGE:
            return None
        return HelpAgent(target_id) if carrying_food else GoToStoreForHelping(target_id)

    # ------------------------------------------------------------------
    # Logistics
    # ------------------------------------------------------------------

    def _haul(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        return HaulToStore() if not agent.inventory.is_empty else None

    def _top_up_from_store(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        """Moderately hungry islanders eat from the store while it is well stocked."""
        if agent.needs.hunger >= MODERATE_HUNGER_THRESHOLD:
            return None
        if ctx.coordinator.urgencies["coconuts"] >= MODERATE_HUNGER_FOOD_URGENCY:
            return None
        return GoToStoreForFood() if ctx.store.count("coconut") > 0 else None

    def _craft_spear(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        if ctx.coordinator.urgencies["spears"] <= SPEAR_URGENCY_THRESHOLD:
            return None
        if not can_craft(ctx.store, SPEAR_RECIPE):
            return None
        busy = (
            TribeCoordinator.count_on_task(ctx.agents, Craft.kind, exclude_id=agent.id)
            + TribeCoordinator.count_on_task(ctx.agents, WalkToStoreToCraft.kind, exclude_id=agent.id)
        )
        if busy > 0:
            return None
        sx, sz = ctx.store.position
        if agent.distance_to(sx, sz) > CRAFT_AT_STORE_DISTANCE:
            return WalkToStoreToCraft(SPEAR_RECIPE)
        return Craft(SPEAR_RECIPE, crafting_time(SPEAR_RECIPE, agent.skills))

    def _fetch_spear(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        inv = agent.inventory
        if inv.has_spear_equipped() or agent.needs.energy <= FETCH_MIN_ENERGY:
            return None
        if ctx.coordinator.urgencies["coconuts"] <= FETCH_FOOD_URGENCY:
            return None
        for tool_id in SPEAR_IDS:
            if not ctx.store.has_tool(tool_id) or not inv.can_hold_tool(tool_id):
                continue
            task = FetchTool(tool_id)
            if ctx.claims.claim(task.claim_id, agent.id):
                return task
        return None

    # ------------------------------------------------------------------
    # Production
    # ------------------------------------------------------------------

    def _go_fishing(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        needs = agent.needs
        if not agent.inventory.has_spear_equipped():
            return None
        if needs.energy <= FISH_MIN_ENERGY or needs.hunger <= FISH_MIN_HUNGER:
            return None
        if ctx.coordinator.urgencies["coconuts"] <= FISH_FOOD_URGENCY:
            return None

        fishers = TribeCoordinator.count_on_task(ctx.agents, GoFishing.kind, exclude_id=agent.id)
        max_fishers = max(1, math.floor(ctx.coordinator.population * FISHER_CAP_FRACTION))
        if fishers >= max_fishers:
            return None

        fish = ctx.fishing.nearest_catchable(
            agent.x, agent.z, ctx.terrain,
            is_blocked=lambda fid: ctx.claims.is_claimed_by_other(fid, agent.id),
        )
        if fish is None or not ctx.claims.claim(fish.fish_id, agent.id):
            return None
        spot = ctx.fishing.fishing_spot(fish, ctx.terrain)
        return GoFishing(fish.fish_id, spot, FISHING_MAX_ATTEMPTS_PER_TRIP)

    def _ranked_categories(self, ctx: PlanContext) -> list[tuple[str, float]]:
        """Gather categories by descending urgency; ties keep catalogue order."""
        ranked = [(cat, ctx.coordinator.urgencies[cat]) for cat in GATHER_CATEGORIES]
        return sorted(ranked, key=lambda item: -item[1])

    def _find_target(self, agent: Islander, category: str, ctx: PlanContext) -> Optional[ResourceTarget]:
        return ctx.resources.nearest_available(
            agent.x, agent.z, GATHER_CATEGORIES[category],
            is_blocked=lambda tid: ctx.claims.is_claimed_by_other(tid, agent.id),
        )

    def _gather_urgent(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        population = ctx.coordinator.population
        for category, urgency in self._ranked_categories(ctx):
            if urgency <= GATHER_URGENCY_THRESHOLD:
                continue
            target = self._find_target(agent, category, ctx)
            if target is None:
                continue
            workers = sum(
                1 for a in ctx.agents
                if a.is_alive and a.id != agent.id
                and isinstance(a.task, Gather) and a.task.category == category
            )
            if workers >= math.ceil(population * urgency * WORKER_CAP_FACTOR):
                continue
            if ctx.claims.claim(target.target_id, agent.id):
                return Gather(category, target.target_id)
        return None

    def _gather_maintenance(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        category = self._ranked_categories(ctx)[0][0]
        target = self._find_target(agent, category, ctx)
        if target is None or not ctx.claims.claim(target.target_id, agent.id):
            return None
        return Gather(category, target.target_id)

    def _patrol(self, agent: Islander, ctx: PlanContext) -> Optional[Task]:
        sx, sz = ctx.store.position
        if agent.distance_to(sx, sz) > PATROL_DISTANCE:
            return Patrol()
        return None
