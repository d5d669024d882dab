"""Survival needs, ageing, sickness, pregnancy and death for a single islander."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from numpy.random import Generator

from island_sim.core.config import (
    AGE_YEARS_PER_SECOND,
    BIRTH_ENERGY_COST,
    BIRTH_ENERGY_FLOOR,
    CHILDBIRTH_COMPLICATION_CHANCE,
    CHILDBIRTH_COMPLICATION_HEALTH,
    DROWN_ENERGY_DRAIN,
    ENERGY_CRITICAL_THRESHOLD,
    ENERGY_DECAY_RATE,
    ENERGY_LOW_THRESHOLD,
    ENERGY_RESTORE_RATE,
    ENERGY_SHELTER_MULT,
    EXHAUSTION_DEATH_TIME,
    FRAIL_HEALTH_THRESHOLD,
    FRAIL_SICKNESS_MULT,
    HEALTH_DECAY_BASE,
    HEALTH_RECOVER_MIN_HUNGER,
    HEALTH_RECOVER_RATE,
    HEALTH_SICKNESS_DECAY,
    HUNGER_DECAY_RATE,
    HUNGER_LOW_THRESHOLD,
    HUNGER_MOVING_MULT,
    HUNGER_SICK_MULT,
    INITIAL_ENERGY,
    INITIAL_HUNGER,
    INITIAL_SOCIAL,
    ISOLATION_HEALTH_PENALTY,
    ISOLATION_THRESHOLD,
    MAX_NATURAL_AGE,
    MIN_EFFICIENCY,
    OLD_AGE_DEATH_FACTOR,
    OLD_AGE_EFFICIENCY_LOSS,
    OLD_AGE_THRESHOLD,
    PREGNANCY_DURATION,
    PREGNANT_SICKNESS_MULT,
    RAW_FOOD_SICKNESS_CHANCE,
    REPRODUCTION_DRIVE_RATE,
    REPRODUCTION_THRESHOLD,
    SICKNESS_DURATION,
    SICKNESS_SPREAD_CHANCE,
    SOCIAL_DECAY_RATE,
    SOCIAL_RECOVER_RATE,
    SPOILED_FOOD_SICKNESS_CHANCE,
    VULNERABLE_STAGE_SICKNESS_MULT,
)


class DeathCause(str, Enum):
    STARVATION = "starvation"
    EXHAUSTION = "exhaustion"
    DROWNING = "drowning"
    SICKNESS = "sickness"
    OLD_AGE = "old_age"
    COMBAT = "combat"
    SHARK_ATTACK = "shark_attack"
    SQUID_ATTACK = "squid_attack"
    CHILDBIRTH = "childbirth"


@dataclass(frozen=True)
class LifeStage:
    name: str
    min_age: float
    max_age: float
    can_act: bool
    can_reproduce: bool
    efficiency: float


BABY = LifeStage("baby", 0.0, 2.0, can_act=False, can_reproduce=False, efficiency=0.0)
CHILD = LifeStage("child", 2.0, 12.0, can_act=True, can_reproduce=False, efficiency=0.5)
ADULT = LifeStage("adult", 12.0, 50.0, can_act=True, can_reproduce=True, efficiency=1.0)
ELDER = LifeStage("elder", 50.0, float("inf"), can_act=True, can_reproduce=False, efficiency=0.6)

LIFE_STAGES: tuple[LifeStage, ...] = (BABY, CHILD, ADULT, ELDER)


def life_stage_for(age: float) -> LifeStage:
    """Life stage is a pure, monotonic function of age."""
    for stage in LIFE_STAGES:
        if age < stage.max_age:
            return stage
    return ELDER


@dataclass
class NeedsContext:
    """Situational inputs for one needs update."""

    is_moving: bool = False
    is_resting: bool = False
    in_shelter: bool = False
    in_water: bool = False
    in_deep_water: bool = False
    nearby_agent_count: int = 0
    near_sick_agent: bool = False


@dataclass
class NeedsEvent:
    kind: str  # "death", "forced_rest", "recovered", "got_sick", "give_birth"
    cause: Optional[DeathCause] = None


@dataclass
class NeedsResult:
    alive: bool
    death_cause: Optional[DeathCause]
    events: list[NeedsEvent] = field(default_factory=list)


@dataclass
class Needs:
    """Bounded survival stats plus lifecycle timers."""

    hunger: float = 1.0
    energy: float = 1.0
    health: float = 1.0
    social: float = 1.0
    reproduction_drive: float = 0.0
    age: float = 18.0

    is_sick: bool = False
    sickness_timer: float = 0.0
    exhaustion_timer: float = 0.0
    is_pregnant: bool = False
    pregnancy_timer: float = 0.0
    alive: bool = True
    _death_cause: Optional[DeathCause] = field(default=None, repr=False)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def death_cause(self) -> Optional[DeathCause]:
        return self._death_cause

    @property
    def life_stage(self) -> LifeStage:
        return life_stage_for(self.age)

    def die(self, cause: DeathCause) -> DeathCause:
        """Terminal transition. The first recorded cause is kept."""
        if self._death_cause is None:
            self._death_cause = cause
        self.alive = False
        return self._death_cause

    def make_sick(self) -> None:
        self.is_sick = True
        self.sickness_timer = SICKNESS_DURATION

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def advance(self, dt: float, context: NeedsContext, rng: Generator) -> NeedsResult:
        """Advance all needs by *dt* seconds in a fixed order.

        Each stage may end the update early on death. Random branches draw
        from *rng* at most once each.
        """
        events: list[NeedsEvent] = []
        if not self.alive:
            return NeedsResult(False, self._death_cause, events)

        def dead(cause: DeathCause) -> NeedsResult:
            recorded = self.die(cause)
            events.append(NeedsEvent("death", recorded))
            return NeedsResult(False, recorded, events)

        # Ageing
        self.age += AGE_YEARS_PER_SECOND * dt
        if self.age > MAX_NATURAL_AGE:
            chance = (self.age - MAX_NATURAL_AGE) * OLD_AGE_DEATH_FACTOR * dt
            if rng.random() < chance:
                return dead(DeathCause.OLD_AGE)

        # Hunger
        decay = HUNGER_DECAY_RATE * dt
        if context.is_moving:
            decay *= HUNGER_MOVING_MULT
        if self.is_sick:
            decay *= HUNGER_SICK_MULT
        self.hunger = max(0.0, self.hunger - decay)
        if self.hunger <= 0.0:
            return dead(DeathCause.STARVATION)

        # Energy
        if context.is_resting:
            restore = ENERGY_RESTORE_RATE * dt
            if context.in_shelter:
                restore *= ENERGY_SHELTER_MULT
            self.energy = min(1.0, self.energy + restore)
        elif context.is_moving or context.in_water:
            drain = DROWN_ENERGY_DRAIN * dt if context.in_deep_water else ENERGY_DECAY_RATE * dt
            self.energy = max(0.0, self.energy - drain)

        if self.energy <= 0.0:
            self.exhaustion_timer += dt
            if self.exhaustion_timer >= EXHAUSTION_DEATH_TIME:
                return dead(DeathCause.DROWNING if context.in_deep_water else DeathCause.EXHAUSTION)
        else:
            self.exhaustion_timer = 0.0

        if self.energy < ENERGY_CRITICAL_THRESHOLD and not context.is_resting:
            events.append(NeedsEvent("forced_rest"))

        # Health
        change = -HEALTH_DECAY_BASE * dt
        if self.is_sick:
            change -= HEALTH_SICKNESS_DECAY * dt
        if context.is_resting and self.hunger > HEALTH_RECOVER_MIN_HUNGER and not self.is_sick:
            change += HEALTH_RECOVER_RATE * dt
        self.health = min(1.0, max(0.0, self.health + change))
        if self.health <= 0.0:
            # Sickness takes precedence over old age when both could apply
            return dead(DeathCause.SICKNESS if self.is_sick else DeathCause.OLD_AGE)

        # Social
        if context.nearby_agent_count > 0:
            self.social = min(1.0, self.social + SOCIAL_RECOVER_RATE * dt * context.nearby_agent_count)
        else:
            self.social = max(0.0, self.social - SOCIAL_DECAY_RATE * dt)
        if self.social < ISOLATION_THRESHOLD:
            self.health = max(0.0, self.health - ISOLATION_HEALTH_PENALTY * dt)

        # Reproduction drive
        if self.life_stage.can_reproduce and not self.is_pregnant:
            self.reproduction_drive = min(1.0, self.reproduction_drive + REPRODUCTION_DRIVE_RATE * dt)

        # Sickness countdown and contagion
        if self.is_sick:
            self.sickness_timer -= dt
            if self.sickness_timer <= 0.0:
                self.is_sick = False
                self.sickness_timer = 0.0
                events.append(NeedsEvent("recovered"))
        if not self.is_sick and context.near_sick_agent:
            if rng.random() < SICKNESS_SPREAD_CHANCE * dt:
                self.make_sick()
                events.append(NeedsEvent("got_sick"))

        # Pregnancy
        if self.is_pregnant:
            self.pregnancy_timer += dt
            if self.pregnancy_timer >= PREGNANCY_DURATION:
                events.append(NeedsEvent("give_birth"))
                self.is_pregnant = False
                self.pregnancy_timer = 0.0
                self.energy = max(BIRTH_ENERGY_FLOOR, self.energy - BIRTH_ENERGY_COST)
                if rng.random() < CHILDBIRTH_COMPLICATION_CHANCE and self.health < CHILDBIRTH_COMPLICATION_HEALTH:
                    return dead(DeathCause.CHILDBIRTH)

        return NeedsResult(True, None, events)

    # ------------------------------------------------------------------
    # Derived values and actions
    # ------------------------------------------------------------------

    def efficiency_multiplier(self) -> float:
        """Work efficiency from life stage, hunger, energy, sickness and old age."""
        mult = self.life_stage.efficiency
        if self.hunger < HUNGER_LOW_THRESHOLD:
            mult *= 0.5 + (self.hunger / HUNGER_LOW_THRESHOLD) * 0.5
        if self.energy < ENERGY_LOW_THRESHOLD:
            mult *= 0.5 + (self.energy / ENERGY_LOW_THRESHOLD) * 0.5
        if self.is_sick:
            mult *= 0.5
        if self.age > OLD_AGE_THRESHOLD:
            over = self.age - OLD_AGE_THRESHOLD
            span = MAX_NATURAL_AGE - OLD_AGE_THRESHOLD
            mult *= 1.0 - min(1.0, over / span) * OLD_AGE_EFFICIENCY_LOSS
        return max(MIN_EFFICIENCY, mult)

    def consume_food(self, nutrition: float, rng: Generator, is_raw: bool = False, is_spoiled: bool = False) -> bool:
        """Eat one item. Returns True if the meal made the eater sick."""
        self.hunger = min(1.0, self.hunger + nutrition)

        chance = 0.0
        if is_raw:
            chance = RAW_FOOD_SICKNESS_CHANCE
        if is_spoiled:
            chance = SPOILED_FOOD_SICKNESS_CHANCE
        if chance <= 0.0:
            return False

        if self.life_stage.name in ("child", "elder"):
            chance *= VULNERABLE_STAGE_SICKNESS_MULT
        if self.is_pregnant:
            chance *= PREGNANT_SICKNESS_MULT
        if self.health < FRAIL_HEALTH_THRESHOLD:
            chance *= FRAIL_SICKNESS_MULT

        if rng.random() < chance:
            self.make_sick()
            return True
        return False

    @property
    def wants_mate(self) -> bool:
        return (
            self.alive
            and self.life_stage.can_reproduce
            and not self.is_pregnant
            and self.reproduction_drive >= REPRODUCTION_THRESHOLD
        )


def generate_needs(age: float, rng: Generator) -> Needs:
    """Randomised needs for a founding member."""
    return Needs(
        hunger=float(rng.uniform(*INITIAL_HUNGER)),
        energy=float(rng.uniform(*INITIAL_ENERGY)),
        health=1.0,
        social=float(rng.uniform(*INITIAL_SOCIAL)),
        age=age,
    )


def create_child_needs() -> Needs:
    """A newborn starts full on every need at age zero."""
    return Needs(hunger=1.0, energy=1.0, health=1.0, social=1.0, age=0.0)


def start_reproduction(a: Needs, b: Needs, rng: Generator) -> Optional[Needs]:
    """Begin a pregnancy between two willing adults.

    Returns the needs of whoever became pregnant, or None if either partner
    is ineligible. Both drives reset on success.
    """
    if not (a.wants_mate and b.wants_mate):
        return None
    pregnant = a if rng.random() < 0.5 else b
    pregnant.is_pregnant = True
    pregnant.pregnancy_timer = 0.0
    a.reproduction_drive = 0.0
    b.reproduction_drive = 0.0
    return pregnant
