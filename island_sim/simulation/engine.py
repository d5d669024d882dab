"""Main simulation loop: the fixed-step tribe tick and the host control surface."""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.random import Generator

from island_sim.agents.islander import Islander, create_child, generate_initial_population
from island_sim.agents.needs import DeathCause, NeedsContext, NeedsResult, start_reproduction
from island_sim.agents.planner import PlanContext, TaskPlanner
from island_sim.agents.skills import SkillLedger, award_xp
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
    Task,
    WalkToStoreToCraft,
)
from island_sim.core.clock import SimClock
from island_sim.core.config import (
    APPRENTICE_RADIUS,
    ARRIVAL_RADIUS,
    DEEP_REEF_DEPTH,
    DEFAULT_SEED,
    FISHING_THROW_INTERVAL,
    FORCED_REST_DURATION,
    GATHER_BASE_YIELD,
    HUNTER_RALLY_RADIUS,
    MATING_RANGE,
    MAX_SIMULATION_SPEED,
    MAX_STEPS_PER_FRAME,
    METRICS_SAMPLE_TICKS,
    MIN_SIMULATION_SPEED,
    NEARBY_RADIUS,
    PATROL_TIMEOUT,
    SANITY_CHECK_TICKS,
    SHELTER_RADIUS,
    SICK_CONTACT_RADIUS,
    STORE_TAKE_FOOD,
    TRIBE_SIZE,
    WALK_SPEED,
)
from island_sim.economy.crafting import craft, crafting_time
from island_sim.economy.fishing import FishingSystem
from island_sim.economy.inventory import (
    RESOURCES,
    SPEAR_IDS,
    CommunalStore,
    food_nutrition,
    is_raw_food,
    transfer,
)
from island_sim.simulation.coordinator import ClaimRegistry, TribeCoordinator
from island_sim.simulation.metrics import MetricsCollector
from island_sim.simulation.sanity import run_sanity_checks
from island_sim.simulation.threats import (
    Hunter,
    Threat,
    ThreatManager,
    ThreatState,
    check_shark_encounter,
    check_squid_spawn,
    resolve_combat,
)
from island_sim.social.relationships import RelationshipGraph, SocialAction
from island_sim.viz.logger import SimLogger
from island_sim.world.resources import ResourceKind, ResourceManager
from island_sim.world.terrain import TerrainFn, island_height


class SimulationWorld:
    """Owns every subsystem and the single seeded random stream."""

    def __init__(
        self,
        seed: int = DEFAULT_SEED,
        population: int = TRIBE_SIZE,
        terrain: TerrainFn = island_height,
        logger: Optional[SimLogger] = None,
    ) -> None:
        self.seed = seed
        self.population_size = population
        self.terrain = terrain
        self.logger = logger or SimLogger(verbosity=0, stdout=False)
        self.planner = TaskPlanner()

        # Presentation-only state
        self.simulation_speed: float = MIN_SIMULATION_SPEED
        self.display_time_of_day: Optional[float] = None
        self._accumulator: float = 0.0

        self.reset(seed)

    # ------------------------------------------------------------------
    # Host control surface
    # ------------------------------------------------------------------

    def reset(self, seed: Optional[int] = None) -> None:
        """Rebuild all simulation state deterministically from *seed*."""
        if seed is not None:
            self.seed = seed
        self.rng: Generator = np.random.default_rng(self.seed)
        self.clock = SimClock()
        self._accumulator = 0.0

        # World
        self.resources = ResourceManager()
        self.resources.generate(self.rng, self.terrain)
        self.store = CommunalStore()
        self.fishing = FishingSystem()
        self.fishing.populate(self.rng, self.terrain)

        # Coordination
        self.claims = ClaimRegistry()
        self.coordinator = TribeCoordinator()

        # Social and threats
        self.social = RelationshipGraph()
        self.threats = ThreatManager()

        # Agents
        self.agents: list[Islander] = generate_initial_population(self.population_size, self.rng, self.terrain)
        self._agent_map: dict[int, Islander] = {a.id: a for a in self.agents}
        self._next_agent_id = len(self.agents)
        for a in self.agents:
            self.social.add_node(a.id)

        # Records
        self.metrics = MetricsCollector()
        self.death_log: list[tuple[int, int, str]] = []
        self.catch_log: list[tuple[int, int, str, bool]] = []

        self.logger.log(
            SimLogger.LIFECYCLE,
            f"Tribe of {len(self.agents)} founded on the island (seed {self.seed})",
            tick=self.clock.tick,
        )
        self.logger.flush_tick(self.clock.tick)

    def step(self, n: int = 1) -> None:
        """Advance exactly *n* ticks."""
        if n < 0:
            raise ValueError(f"cannot step a negative number of ticks: {n}")
        for _ in range(n):
            self.tick()

    def advance_frame(self, frame_dt: float) -> int:
        """Run as many fixed ticks as *frame_dt* (scaled by speed) covers, up to the cap.

        Backlog beyond the cap is dropped. Returns the number of ticks run.
        """
        self._accumulator += frame_dt * self.simulation_speed
        steps = 0
        while self._accumulator >= self.clock.dt and steps < MAX_STEPS_PER_FRAME:
            self.tick()
            self._accumulator -= self.clock.dt
            steps += 1
        if self._accumulator >= self.clock.dt:
            self._accumulator = 0.0
        return steps

    def set_simulation_speed(self, speed: float) -> float:
        self.simulation_speed = max(MIN_SIMULATION_SPEED, min(MAX_SIMULATION_SPEED, speed))
        return self.simulation_speed

    def set_time_of_day(self, time_of_day: Optional[float]) -> None:
        """Override the reported lighting time. Never feeds back into the tick."""
        self.display_time_of_day = None if time_of_day is None else time_of_day % 1.0

    def get_agent_state(self) -> list[dict]:
        """Read-only snapshot of every islander, living or dead."""
        snapshot = []
        for a in self.agents:
            needs = a.needs
            snapshot.append({
                "id": a.id,
                "name": a.name,
                "position": a.position,
                "heading": a.heading,
                "alive": a.is_alive,
                "state": a.state.value,
                "task": a.task.kind if a.task is not None else None,
                "life_stage": needs.life_stage.name,
                "age": needs.age,
                "hunger": needs.hunger,
                "energy": needs.energy,
                "health": needs.health,
                "social": needs.social,
                "reproduction_drive": needs.reproduction_drive,
                "is_sick": needs.is_sick,
                "is_pregnant": needs.is_pregnant,
                "death_cause": needs.death_cause.value if needs.death_cause else None,
                "skills": {sid: s.level for sid, s in a.skills.skills.items()},
                "inventory": a.inventory.contents(),
                "tools": {tid: len(held) for tid, held in a.inventory.tools.items()},
                "equipped": a.inventory.equipped,
                "standing": self.social.standing(a.id),
            })
        return snapshot

    def get_environment_state(self) -> dict:
        time_of_day = self.clock.time_of_day
        return {
            "tick": self.clock.tick,
            "elapsed": self.clock.elapsed,
            "day": self.clock.day,
            "time_of_day": time_of_day,
            "display_time_of_day": (
                self.display_time_of_day if self.display_time_of_day is not None else time_of_day
            ),
            "band": self.clock.band,
            "is_new_moon": self.clock.is_new_moon,
            "population": len(self.living_agents()),
            "store": self.store.contents(),
            "store_tools": {tid: len(held) for tid, held in self.store.tools.items()},
            "resources": {kind.value: self.resources.total_remaining(kind) for kind in ResourceKind},
            "fish": len(self.fishing.fish),
            "threats": [
                {"id": t.threat_id, "type": t.type_id, "state": t.state.value,
                 "position": (t.x, t.z), "health": t.health, "ink_cloud": t.ink_cloud_active}
                for t in self.threats.threats
            ],
            "blood_in_water": self.threats.blood_in_water,
            "active_claims": self.claims.count(),
            "urgencies": dict(self.coordinator.urgencies),
            "simulation_speed": self.simulation_speed,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def living_agents(self) -> list[Islander]:
        return [a for a in self.agents if a.is_alive]

    def get_agent(self, agent_id: int) -> Optional[Islander]:
        return self._agent_map.get(agent_id)

    def _nearby(self, agent: Islander, radius: float) -> list[Islander]:
        return [
            o for o in self.agents
            if o.is_alive and o.id != agent.id and agent.distance_to_agent(o) <= radius
        ]

    def _nearby_ledgers(self, agent: Islander) -> list[SkillLedger]:
        return [o.skills for o in self._nearby(agent, APPRENTICE_RADIUS)]

    def _social(self, actor_id: int, target_id: int, action: SocialAction, tick: int, **data) -> None:
        """Apply a social action and log every event it produces."""
        for event in self.social.process_action(actor_id, target_id, action):
            actor = self.get_agent(event.actor_id)
            target = self.get_agent(event.target_id)
            self.logger.log(
                SimLogger.SOCIAL,
                f"{actor.name} [{event.kind}] {target.name}",
                [event.actor_id, event.target_id], tick=tick, **event.data, **data,
            )

    # ------------------------------------------------------------------
    # The tick
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """One fixed step: coordinate, then per agent needs -> plan -> execute, then the world."""
        tick = self.clock.tick
        dt = self.clock.dt

        # 1. Tribe-wide state and claim reconciliation
        self.coordinator.refresh(self.agents, self.store)
        for target_id in self.claims.reconcile(self._agent_map):
            self.logger.log(SimLogger.SANITY, f"Released stale claim on {target_id}", tick=tick)

        ctx = PlanContext(
            agents=self.agents,
            store=self.store,
            coordinator=self.coordinator,
            claims=self.claims,
            resources=self.resources,
            fishing=self.fishing,
            terrain=self.terrain,
            rng=self.rng,
        )

        # 2. Agents in stable id order
        for agent in list(self.agents):
            if not agent.is_alive:
                continue
            result = agent.needs.advance(dt, self._needs_context(agent), self.rng)
            self._handle_needs_result(agent, result, tick)
            if not agent.is_alive:
                continue
            if self.planner.update(agent, ctx):
                self.logger.log(
                    SimLogger.TASK, f"{agent.name} -> {agent.task.kind}", [agent.id], tick=tick,
                )
            self._execute(agent, dt, tick)

        # 3. Fish
        swimmers = [(a.x, a.z) for a in self.agents if a.is_alive and a.in_water]
        self.fishing.update(dt, swimmers, self.terrain, self.rng)

        # 4. Resource regrowth
        self.resources.regenerate(dt, self.rng)

        # 5. Threats
        self._update_threats(dt, tick)

        # 6. Spoilage
        self._sweep_spoilage(tick)

        # 7. Mating
        self._process_mating(tick)

        self.clock.advance()

        # 8. Self-checks and metrics
        if tick % SANITY_CHECK_TICKS == 0:
            run_sanity_checks(self.agents, self.store, self.terrain, self.logger, tick)
        if tick % METRICS_SAMPLE_TICKS == 0:
            self.metrics.collect(
                tick, self.clock.elapsed, self.clock.day, self.agents, self.store,
                self.claims.count(), len(self.threats.active()),
            )
        self.logger.flush_tick(tick)

    def _needs_context(self, agent: Islander) -> NeedsContext:
        nearby = self._nearby(agent, NEARBY_RADIUS)
        sx, sz = self.store.position
        return NeedsContext(
            is_moving=agent.state in (AgentState.WALKING, AgentState.HAULING),
            is_resting=agent.state == AgentState.RESTING,
            in_shelter=agent.distance_to(sx, sz) <= SHELTER_RADIUS,
            in_water=agent.in_water,
            in_deep_water=agent.in_deep_water,
            nearby_agent_count=len(nearby),
            near_sick_agent=any(
                o.needs.is_sick for o in nearby if agent.distance_to_agent(o) <= SICK_CONTACT_RADIUS
            ),
        )

    def _handle_needs_result(self, agent: Islander, result: NeedsResult, tick: int) -> None:
        for event in result.events:
            if event.kind == "give_birth":
                self._birth(agent, tick)
            elif event.kind == "death":
                self._handle_death(agent, tick)
            elif event.kind == "forced_rest":
                if not isinstance(agent.task, Rest):
                    self._finish(agent)
                    agent.set_task(Rest(self._duration(FORCED_REST_DURATION), forced=True), AgentState.RESTING)
                    self.logger.log(SimLogger.TASK, f"{agent.name} collapsed from exhaustion", [agent.id], tick=tick)
            elif event.kind == "got_sick":
                self.logger.log(SimLogger.LIFECYCLE, f"{agent.name} caught a sickness", [agent.id], tick=tick)
            elif event.kind == "recovered":
                self.logger.log(SimLogger.LIFECYCLE, f"{agent.name} recovered", [agent.id], tick=tick)

    def _handle_death(self, agent: Islander, tick: int) -> None:
        """Terminal bookkeeping: claims, records and the log."""
        cause = agent.needs.death_cause or DeathCause.OLD_AGE
        released = self.claims.release_all(agent.id)
        self.fishing.forget(agent.id)
        agent.task = None
        agent.state = AgentState.IDLE
        self.metrics.record_death(cause.value)
        self.death_log.append((tick, agent.id, cause.value))
        self.logger.log(
            SimLogger.LIFECYCLE,
            f"{agent.name} died of {cause.value.replace('_', ' ')} at age {agent.needs.age:.1f}",
            [agent.id], tick=tick, cause=cause.value, claims_released=released,
        )

    def _kill(self, agent: Islander, cause: DeathCause, tick: int) -> None:
        if not agent.is_alive:
            return
        agent.die(cause)
        self._handle_death(agent, tick)

    # ------------------------------------------------------------------
    # Task execution
    # ------------------------------------------------------------------

    def _duration(self, duration: tuple[float, float]) -> float:
        base, span = duration
        return base + float(self.rng.random()) * span

    def _finish(self, agent: Islander, next_task: Optional[Task] = None,
                state: AgentState = AgentState.IDLE) -> None:
        """End the current task, releasing its claim, and optionally start another."""
        task = agent.task
        if task is not None and task.claim_id is not None:
            if next_task is None or next_task.claim_id != task.claim_id:
                self.claims.release(task.claim_id, agent.id)
        agent.set_task(next_task, state if next_task is not None else AgentState.IDLE)

    def _walk_to(self, agent: Islander, x: float, z: float, dt: float) -> bool:
        """Move toward (x, z) at walking speed. Returns True once arrived."""
        if agent.distance_to(x, z) <= ARRIVAL_RADIUS:
            return True
        agent.move_toward(x, z, WALK_SPEED * dt, self.terrain)
        return agent.distance_to(x, z) <= ARRIVAL_RADIUS

    def _execute(self, agent: Islander, dt: float, tick: int) -> None:
        task = agent.task
        if task is None:
            return
        if isinstance(task, EatFromInventory):
            self._do_eat(agent, task, tick)
        elif isinstance(task, GoToStoreForFood):
            self._do_store_for_food(agent, dt, tick)
        elif isinstance(task, Rest):
            task.remaining -= dt
            if task.remaining <= 0.0:
                self._finish(agent)
        elif isinstance(task, HelpAgent):
            self._do_help(agent, task, dt, tick)
        elif isinstance(task, GoToStoreForHelping):
            self._do_store_for_helping(agent, task, dt, tick)
        elif isinstance(task, HaulToStore):
            self._do_haul(agent, dt, tick)
        elif isinstance(task, WalkToStoreToCraft):
            sx, sz = self.store.position
            if self._walk_to(agent, sx, sz, dt):
                recipe = task.recipe_id
                self._finish(agent, Craft(recipe, crafting_time(recipe, agent.skills)), AgentState.CRAFTING)
        elif isinstance(task, Craft):
            self._do_craft(agent, task, dt, tick)
        elif isinstance(task, FetchTool):
            self._do_fetch(agent, task, dt, tick)
        elif isinstance(task, GoFishing):
            self._do_fishing(agent, task, dt, tick)
        elif isinstance(task, Gather):
            self._do_gather(agent, task, dt, tick)
        elif isinstance(task, Patrol):
            sx, sz = self.store.position
            task.elapsed += dt
            if self._walk_to(agent, sx, sz, dt) or task.elapsed >= PATROL_TIMEOUT:
                self._finish(agent)

    def _eat_one(self, agent: Islander, resource_id: str, tick: int) -> bool:
        stamps = agent.inventory.remove(resource_id, 1)
        if not stamps:
            return False
        stamp = stamps[0]
        got_sick = agent.needs.consume_food(
            food_nutrition(resource_id, stamp.is_cooked),
            self.rng,
            is_raw=is_raw_food(resource_id, stamp),
            is_spoiled=stamp.is_spoiled(self.clock.elapsed),
        )
        self.logger.log(
            SimLogger.TASK, f"{agent.name} ate a {resource_id}", [agent.id], tick=tick,
            hunger=agent.needs.hunger,
        )
        if got_sick:
            self.logger.log(SimLogger.LIFECYCLE, f"{agent.name} fell sick after eating {resource_id}",
                            [agent.id], tick=tick)
        return True

    def _do_eat(self, agent: Islander, task: EatFromInventory, tick: int) -> None:
        rid = task.resource_id if agent.inventory.count(task.resource_id) > 0 else agent.inventory.best_food()
        if rid is not None:
            self._eat_one(agent, rid, tick)
        self._finish(agent)

    def _take_food_from_store(self, agent: Islander) -> int:
        taken = 0
        while taken < STORE_TAKE_FOOD:
            rid = self.store.best_food()
            if rid is None:
                break
            moved = transfer(self.store, agent.inventory, rid, STORE_TAKE_FOOD - taken)
            if moved == 0:
                break
            taken += moved
        return taken

    def _do_store_for_food(self, agent: Islander, dt: float, tick: int) -> None:
        sx, sz = self.store.position
        if not self._walk_to(agent, sx, sz, dt):
            return
        self._take_food_from_store(agent)
        food = agent.inventory.best_food()
        if food is None:
            self._finish(agent)
        else:
            self._finish(agent, EatFromInventory(food), AgentState.EATING)

    def _do_help(self, agent: Islander, task: HelpAgent, dt: float, tick: int) -> None:
        target = self.get_agent(task.target_agent_id)
        if target is None or not target.is_alive or not agent.inventory.has_food():
            self._finish(agent)
            return
        if not self._walk_to(agent, target.x, target.z, dt):
            return
        food = agent.inventory.best_food()
        if food is not None and transfer(agent.inventory, target.inventory, food, 1) > 0:
            self._social(agent.id, target.id, SocialAction.SHARE_FOOD, tick, food=food)
            self._social(agent.id, target.id, SocialAction.HELP, tick)
        self._finish(agent)

    def _do_store_for_helping(self, agent: Islander, task: GoToStoreForHelping, dt: float, tick: int) -> None:
        sx, sz = self.store.position
        if not self._walk_to(agent, sx, sz, dt):
            return
        if self._take_food_from_store(agent) > 0:
            self._finish(agent, HelpAgent(task.target_agent_id), AgentState.WALKING)
        else:
            self._finish(agent)

    def _do_haul(self, agent: Islander, dt: float, tick: int) -> None:
        sx, sz = self.store.position
        if not self._walk_to(agent, sx, sz, dt):
            return
        delivered: dict[str, int] = {}
        for rid in sorted(agent.inventory.contents()):
            moved = transfer(agent.inventory, self.store, rid)
            if moved:
                delivered[rid] = moved
            leftover = agent.inventory.count(rid)
            if leftover:
                # Store is full for this resource; the surplus is left behind
                agent.inventory.remove(rid, leftover)
                self.logger.log(SimLogger.TASK, f"Store full: {agent.name} left {leftover} {rid}",
                                [agent.id], tick=tick)
        if delivered:
            self.logger.log(SimLogger.TASK, f"{agent.name} stored {delivered}", [agent.id], tick=tick)
            for other in self._nearby(agent, SHELTER_RADIUS):
                if self.social.will_cooperate(agent.id, other.id):
                    self._social(agent.id, other.id, SocialAction.TEAM_UP, tick)
        self._finish(agent)

    def _do_craft(self, agent: Islander, task: Craft, dt: float, tick: int) -> None:
        task.remaining -= dt
        if task.remaining > 0.0:
            return
        destination = agent.inventory if agent.inventory.can_hold_tool(task.recipe_id) else self.store
        result = craft(task.recipe_id, self.store, destination, agent.skills)
        if result.success:
            if destination is agent.inventory:
                agent.inventory.equip(task.recipe_id)
            xp = award_xp(agent.skills, "craft_tool", self._nearby_ledgers(agent))
            self.metrics.record_craft()
            self.logger.log(
                SimLogger.CRAFT,
                f"{agent.name} crafted a {task.recipe_id} (durability {result.tool.durability})",
                [agent.id], tick=tick, kept=destination is agent.inventory,
            )
            if xp.leveled:
                self.logger.log(SimLogger.SKILL, f"{agent.name} reached crafting {xp.new_level}",
                                [agent.id], tick=tick)
        else:
            self.logger.log(SimLogger.CRAFT, f"{agent.name} could not craft: {result.reason}",
                            [agent.id], tick=tick)
        self._finish(agent)

    def _do_fetch(self, agent: Islander, task: FetchTool, dt: float, tick: int) -> None:
        sx, sz = self.store.position
        if not self._walk_to(agent, sx, sz, dt):
            return
        tool = self.store.take_tool(task.tool_id)
        if tool is not None:
            if agent.inventory.put_tool(tool):
                agent.inventory.equip(task.tool_id)
                self.logger.log(SimLogger.TASK, f"{agent.name} took a {task.tool_id}", [agent.id], tick=tick)
            else:
                self.store.put_tool(tool)
        self._finish(agent)

    def _equipped_spear(self, agent: Islander) -> Optional[str]:
        equipped = agent.inventory.equipped
        return equipped if equipped in SPEAR_IDS else None

    def _do_fishing(self, agent: Islander, task: GoFishing, dt: float, tick: int) -> None:
        fish = self.fishing.get(task.fish_id)
        spear = self._equipped_spear(agent)
        if fish is None or not fish.active or spear is None:
            self._finish(agent)
            return

        if task.timer is None:
            if self._walk_to(agent, task.spot[0], task.spot[1], dt):
                task.timer = self._duration(FISHING_THROW_INTERVAL)
                agent.state = AgentState.FISHING
            return

        if FishingSystem.should_cancel(agent.needs.energy, agent.needs.health):
            self._finish(agent)
            return
        task.timer -= dt
        if task.timer > 0.0:
            return

        self._check_encounters(fish.x, fish.z, fish.y, tick)
        if not FishingSystem.in_striking_range(agent.x, agent.z, fish):
            self._finish(agent)
            return

        result = self.fishing.attempt_catch(agent.id, agent.skills.level("fishing"), agent.needs.energy, self.rng)
        self.metrics.record_catch_attempt(result.success)
        self.catch_log.append((tick, agent.id, fish.fish_id, result.success))

        if result.success:
            agent.inventory.take_tool(spear)
            stored = agent.inventory.add(fish.species, 1, now=self.clock.elapsed)
            award_xp(agent.skills, f"catch_{fish.species}", self._nearby_ledgers(agent))
            self.fishing.remove(fish.fish_id)
            self.logger.log(
                SimLogger.FISHING,
                f"{agent.name} speared a {fish.species} ({result.chance:.0%} chance)",
                [agent.id], tick=tick, kept=stored,
            )
            self._finish(agent, HaulToStore(), AgentState.HAULING)
            return

        spear_intact = agent.inventory.use_tool(spear)
        task.attempts_left -= 1
        self.logger.log(SimLogger.FISHING, f"{agent.name} missed ({result.chance:.0%} chance)",
                        [agent.id], tick=tick)
        if not spear_intact or task.attempts_left <= 0:
            self._finish(agent)
        else:
            task.timer = self._duration(FISHING_THROW_INTERVAL)

    def _do_gather(self, agent: Islander, task: Gather, dt: float, tick: int) -> None:
        target = self.resources.get(task.target_id)
        if target is None or target.depleted:
            self.logger.log(SimLogger.TASK, f"{agent.name} found {task.target_id} stripped",
                            [agent.id], tick=tick)
            self._finish(agent)
            return

        rid = target.resource_id
        if task.timer is None:
            if self._walk_to(agent, target.position[0], target.position[2], dt):
                base = agent.skills.gathering_time(RESOURCES[rid].gather_time)
                task.timer = base / agent.needs.efficiency_multiplier()
                agent.state = AgentState.GATHERING
            return

        task.timer -= dt
        if task.timer > 0.0:
            return

        wanted = min(agent.skills.gathering_yield(GATHER_BASE_YIELD[rid]), agent.inventory.room_for(rid))
        taken = target.take(wanted)
        if taken > 0:
            agent.inventory.add(rid, taken, now=self.clock.elapsed)
            xp = award_xp(agent.skills, f"gather_{rid}", self._nearby_ledgers(agent))
            if xp.leveled:
                self.logger.log(SimLogger.SKILL, f"{agent.name} reached gathering {xp.new_level}",
                                [agent.id], tick=tick)
        self.logger.log(SimLogger.TASK, f"{agent.name} gathered {taken} {rid}", [agent.id], tick=tick)
        self._finish(agent, HaulToStore(), AgentState.HAULING)

    # ------------------------------------------------------------------
    # Threats
    # ------------------------------------------------------------------

    def _check_encounters(self, x: float, z: float, y: float, tick: int) -> None:
        """Each spear throw may draw a predator to the fish's water."""
        deep = y < -DEEP_REEF_DEPTH
        location = "deep_reef" if deep else "shallow_reef"
        blood = self.threats.blood_in_water
        if check_shark_encounter(location, self.clock.time_of_day, blood, self.rng):
            threat = self.threats.spawn("bull_shark", x, z)
            self.logger.log(SimLogger.THREAT, f"A bull shark appeared near the {location.replace('_', ' ')}",
                            tick=tick, threat=threat.threat_id)
        if check_squid_spawn(self.clock.is_night, deep, self.rng,
                             is_new_moon=self.clock.is_new_moon, blood_in_water=blood):
            threat = self.threats.spawn("giant_squid", x, z)
            self.logger.log(SimLogger.THREAT, "The Deep Hunger rises from the dark water",
                            tick=tick, threat=threat.threat_id)

    def _update_threats(self, dt: float, tick: int) -> None:
        if not self.threats.threats and self.threats.blood_timer <= 0.0:
            return
        targets = {
            a.id: (a.x, a.z) for a in self.agents
            if a.is_alive and (a.state == AgentState.FISHING or a.in_water)
        }
        by_id = {t.threat_id: t for t in self.threats.threats}
        for event in self.threats.update(dt, targets, self.rng):
            threat = by_id.get(event.threat_id)
            if event.kind == "attack" and threat is not None and event.target_id is not None:
                self._fight(threat, event.target_id, tick)
            elif event.kind in ("aggro", "ink_cloud", "fleeing", "fled", "left"):
                self.logger.log(SimLogger.THREAT, f"{event.threat_id}: {event.kind}",
                                [event.target_id] if event.target_id is not None else [], tick=tick)

    def _fight(self, threat: Threat, target_id: int, tick: int) -> None:
        """One combat resolution between a threat and whoever rallies to its victim."""
        target = self.get_agent(target_id)
        if target is None or not target.is_alive or threat.state != ThreatState.ATTACKING:
            return
        definition = threat.definition
        party = [target] + [
            o for o in self._nearby(target, HUNTER_RALLY_RADIUS)
            if o.can_act and o.inventory.has_weapon()
        ]
        hunters = [
            Hunter(a.id, a.inventory.has_weapon(), a.skills.normalized("combat")) for a in party
        ]
        outcome = resolve_combat(threat, hunters, self.rng)
        self.metrics.record_combat()
        names = ", ".join(a.name for a in party)
        self.logger.log(
            SimLogger.THREAT,
            f"{definition.name} attacked {target.name}; {len(party)} fought ({names}) - "
            + ("victory" if outcome.success else "defeat"),
            [a.id for a in party], tick=tick, chance=outcome.success_chance,
        )

        if outcome.success and outcome.killer_id is not None:
            self.threats.damage(threat, threat.health, outcome.killer_id)
            for item_id, count in outcome.drops.items():
                amount = min(count, self.store.room_for(item_id))
                if amount > 0:
                    self.store.add(item_id, amount, now=self.clock.elapsed)
            if definition.grants_legend:
                status = self.social.grant_legend(outcome.killer_id)
                kill_action = "kill_squid"
            else:
                status = self.social.grant_hero(outcome.killer_id)
                self.threats.mark_blood()
                kill_action = "kill_shark"
            killer = self.get_agent(outcome.killer_id)
            self.logger.log(SimLogger.THREAT, f"{killer.name} slew the {definition.name}",
                            [killer.id], tick=tick, drops=outcome.drops)
            self.logger.log(SimLogger.SOCIAL, f"{killer.name} {status.kind.replace('_', ' ')}",
                            [killer.id], tick=tick)
            for a in party:
                if a.id in outcome.casualties:
                    continue
                award_xp(a.skills, kill_action if a.id == outcome.killer_id else "win_fight")
                if a.id != target.id:
                    self._social(a.id, target.id, SocialAction.PROTECT, tick)
                    self._social(a.id, outcome.killer_id, SocialAction.TEAM_UP, tick)
        else:
            self.threats.drive_off(threat)

        for agent_id in outcome.casualties:
            victim = self.get_agent(agent_id)
            if victim is not None:
                self._kill(victim, definition.death_cause, tick)

    # ------------------------------------------------------------------
    # Spoilage and lifecycle
    # ------------------------------------------------------------------

    def _sweep_spoilage(self, tick: int) -> None:
        now = self.clock.elapsed
        holders = [("store", self.store)] + [(a.name, a.inventory) for a in self.agents if a.is_alive]
        for name, inventory in holders:
            spoiled = inventory.sweep_spoilage(now)
            if spoiled:
                counts: dict[str, int] = {}
                for rid, _stamp in spoiled:
                    counts[rid] = counts.get(rid, 0) + 1
                self.logger.log(SimLogger.SPOILAGE, f"Spoiled in {name}: {counts}", tick=tick)

    def _process_mating(self, tick: int) -> None:
        paired: set[int] = set()
        for agent in self.agents:
            if agent.id in paired or not agent.needs.wants_mate:
                continue

            def available(other_id: int, agent: Islander = agent) -> bool:
                other = self.get_agent(other_id)
                return (
                    other is not None
                    and other_id not in paired
                    and other.needs.wants_mate
                    and agent.distance_to_agent(other) <= MATING_RANGE
                )

            mate_id = self.social.find_best_mate(agent.id, available, candidates=[a.id for a in self.agents])
            if mate_id is None:
                continue
            mate = self._agent_map[mate_id]
            pregnant = start_reproduction(agent.needs, mate.needs, self.rng)
            if pregnant is None:
                continue
            paired.update((agent.id, mate.id))
            agent.partner_id = mate.id
            mate.partner_id = agent.id
            self._social(agent.id, mate.id, SocialAction.MATE, tick)
            mother = agent if pregnant is agent.needs else mate
            self.logger.log(SimLogger.LIFECYCLE, f"{agent.name} and {mate.name} are expecting; "
                            f"{mother.name} is pregnant", [agent.id, mate.id], tick=tick)

    def _birth(self, mother: Islander, tick: int) -> None:
        father = self.get_agent(mother.partner_id) if mother.partner_id is not None else None
        siblings = [self._agent_map[cid] for cid in mother.child_ids if cid in self._agent_map]
        child = create_child(self._next_agent_id, mother, father)
        self._next_agent_id += 1
        self.agents.append(child)
        self._agent_map[child.id] = child
        self.social.add_node(child.id)

        self.social.establish_family(mother.id, child.id, "parent_child")
        if father is not None:
            self.social.establish_family(father.id, child.id, "parent_child")
        for sibling in siblings:
            if sibling.is_alive:
                self.social.establish_family(sibling.id, child.id, "sibling")

        self.metrics.record_birth()
        self.logger.log(
            SimLogger.LIFECYCLE, f"{child.name} was born to {mother.name}",
            [mother.id, child.id], tick=tick,
        )
