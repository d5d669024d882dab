"""Sea threats: encounter rolls, the threat state machine and group combat."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from numpy.random import Generator

from island_sim.agents.needs import DeathCause
from island_sim.core.clock import time_band
from island_sim.core.config import (
    BLOOD_IN_WATER_DURATION,
    COMBAT_SKILL_WEIGHT,
    COMBAT_SUCCESS_CAP,
    THREAT_AGGRO_RANGE,
    THREAT_ATTACK_RANGE,
    THREAT_DESPAWN_RANGE,
    THREAT_DROP_AGGRO_RANGE,
    THREAT_FLEE_HEALTH_FRACTION,
    THREAT_FLEE_SPEED_MULT,
    THREAT_PATROL_TIMEOUT,
)


@dataclass(frozen=True)
class ThreatDef:
    """Static data for one kind of threat."""

    type_id: str
    name: str
    health: float
    damage: float
    speed: float
    death_cause: DeathCause
    min_hunters: int
    drops: dict[str, tuple[int, int]]
    solo_death_chance: float = 0.9
    unarmed_mult: float = 0.3
    grab_chance: float = 0.0
    grab_death_bonus: float = 0.4
    ink_cloud_chance: float = 0.0
    ink_cloud_duration: float = 0.0
    grants_legend: bool = False


BULL_SHARK = ThreatDef(
    type_id="bull_shark",
    name="Bull Shark",
    health=100.0,
    damage=40.0,
    speed=8.0,
    death_cause=DeathCause.SHARK_ATTACK,
    min_hunters=3,
    drops={
        "shark_meat": (6, 10),
        "shark_teeth": (8, 15),
        "shark_skin": (2, 4),
        "shark_jaw": (1, 1),
    },
)

GIANT_SQUID = ThreatDef(
    type_id="giant_squid",
    name="The Deep Hunger",
    health=500.0,
    damage=80.0,
    speed=12.0,
    death_cause=DeathCause.SQUID_ATTACK,
    min_hunters=6,
    drops={
        "squid_meat": (15, 25),
        "squid_beak": (1, 1),
        "squid_tentacle": (6, 10),
        "squid_ink": (2, 3),
        "squid_eye": (2, 2),
    },
    unarmed_mult=0.2,
    grab_chance=0.3,
    ink_cloud_chance=0.2,
    ink_cloud_duration=10.0,
    grants_legend=True,
)

THREAT_TYPES: dict[str, ThreatDef] = {d.type_id: d for d in (BULL_SHARK, GIANT_SQUID)}

# (location, time band) -> chance per check; bands other than night/dawn/dusk count as day
SHARK_ENCOUNTER_CHANCE: dict[tuple[str, str], float] = {
    ("deep_reef", "day"): 0.05,
    ("deep_reef", "dawn_dusk"): 0.30,
    ("deep_reef", "night"): 0.50,
    ("shallow_reef", "night"): 0.02,
}
BLOOD_SHARK_MULT: float = 2.0

SQUID_BASE_SPAWN_CHANCE: float = 0.001
SQUID_STORM_MULT: float = 3.0
SQUID_NEW_MOON_MULT: float = 2.0
SQUID_BLOOD_MULT: float = 5.0


class ThreatState(str, Enum):
    PATROLLING = "patrolling"
    ATTACKING = "attacking"
    FLEEING = "fleeing"
    DEAD = "dead"


@dataclass
class Threat:
    threat_id: str
    type_id: str
    x: float
    z: float
    health: float
    max_health: float
    state: ThreatState = ThreatState.PATROLLING
    target_id: Optional[int] = None
    patrol_time: float = 0.0
    ink_cloud_timer: float = 0.0
    killer_id: Optional[int] = None

    @property
    def definition(self) -> ThreatDef:
        return THREAT_TYPES[self.type_id]

    @property
    def ink_cloud_active(self) -> bool:
        return self.ink_cloud_timer > 0.0


@dataclass
class ThreatEvent:
    kind: str          # "aggro", "attack", "ink_cloud", "ink_cleared", "fleeing", "fled", "left"
    threat_id: str
    target_id: Optional[int] = None


@dataclass
class Hunter:
    agent_id: int
    has_weapon: bool
    combat_skill: float    # normalised 0..1


@dataclass
class CombatOutcome:
    success: bool
    success_chance: float
    casualties: list[int] = field(default_factory=list)
    drops: dict[str, int] = field(default_factory=dict)
    killer_id: Optional[int] = None


# =============================================================================
# Encounter checks
# =============================================================================

def _band_key(time_of_day: float) -> str:
    band = time_band(time_of_day)
    return "dawn_dusk" if band in ("dawn", "dusk") else band


def shark_encounter_chance(location: str, time_of_day: float, blood_in_water: bool = False) -> float:
    chance = SHARK_ENCOUNTER_CHANCE.get((location, _band_key(time_of_day)), 0.0)
    if blood_in_water:
        chance *= BLOOD_SHARK_MULT
    return chance


def check_shark_encounter(location: str, time_of_day: float, blood_in_water: bool, rng: Generator) -> bool:
    """One roll against the location/time-band chance."""
    return bool(rng.random() < shark_encounter_chance(location, time_of_day, blood_in_water))


def check_squid_spawn(
    is_night: bool,
    is_deep_water: bool,
    rng: Generator,
    is_storm: bool = False,
    is_new_moon: bool = False,
    blood_in_water: bool = False,
) -> bool:
    """The squid only rises at night over deep water; modifiers stack."""
    if not (is_night and is_deep_water):
        return False
    chance = SQUID_BASE_SPAWN_CHANCE
    if is_storm:
        chance *= SQUID_STORM_MULT
    if is_new_moon:
        chance *= SQUID_NEW_MOON_MULT
    if blood_in_water:
        chance *= SQUID_BLOOD_MULT
    return bool(rng.random() < chance)


# =============================================================================
# Combat
# =============================================================================

def combat_success_chance(definition: ThreatDef, hunters: list[Hunter]) -> float:
    """Group size, weapons and average combat skill, capped at 90%."""
    n = len(hunters)
    if n == 0:
        return 0.0

    if definition.grants_legend:
        if n < definition.min_hunters:
            chance = 0.05
        else:
            chance = 0.3 + (n - definition.min_hunters) * 0.05
    else:
        if n == 1:
            chance = 0.1
        elif n < definition.min_hunters:
            chance = 0.3
        else:
            chance = 0.5 + (n - definition.min_hunters) * 0.1

    if not any(h.has_weapon for h in hunters):
        chance *= definition.unarmed_mult

    chance += sum(h.combat_skill for h in hunters) / n * COMBAT_SKILL_WEIGHT
    return min(COMBAT_SUCCESS_CAP, chance)


def resolve_combat(threat: Threat, hunters: list[Hunter], rng: Generator) -> CombatOutcome:
    """Roll the fight, then each hunter's fate, then the loot.

    The first hunter listed lands the killing blow.
    """
    definition = threat.definition
    chance = combat_success_chance(definition, hunters)
    success = bool(rng.random() < chance)
    solo = len(hunters) == 1

    casualties: list[int] = []
    for hunter in hunters:
        if solo:
            death_chance = 0.3 if success else definition.solo_death_chance
        else:
            death_chance = 0.1 if success else 0.5
        if definition.grab_chance > 0.0 and rng.random() < definition.grab_chance:
            death_chance += definition.grab_death_bonus
        if rng.random() < death_chance:
            casualties.append(hunter.agent_id)

    drops: dict[str, int] = {}
    killer_id: Optional[int] = None
    if success:
        for item_id, (lo, hi) in definition.drops.items():
            count = int(rng.integers(lo, hi + 1))
            if count > 0:
                drops[item_id] = count
        if hunters:
            killer_id = hunters[0].agent_id

    return CombatOutcome(success, chance, casualties, drops, killer_id)


# =============================================================================
# Live threats
# =============================================================================

class ThreatManager:
    """Active threats plus the tribe-wide blood-in-water timer."""

    def __init__(self) -> None:
        self.threats: list[Threat] = []
        self.blood_timer: float = 0.0
        self._next_id = 0

    @property
    def blood_in_water(self) -> bool:
        return self.blood_timer > 0.0

    def mark_blood(self) -> None:
        self.blood_timer = BLOOD_IN_WATER_DURATION

    def active(self) -> list[Threat]:
        return [t for t in self.threats if t.state != ThreatState.DEAD]

    def spawn(self, type_id: str, x: float, z: float) -> Threat:
        definition = THREAT_TYPES[type_id]
        threat = Threat(
            threat_id=f"{type_id}:{self._next_id}",
            type_id=type_id,
            x=x,
            z=z,
            health=definition.health,
            max_health=definition.health,
        )
        self._next_id += 1
        self.threats.append(threat)
        return threat

    @staticmethod
    def damage(threat: Threat, amount: float, attacker_id: int) -> bool:
        """Reduce health. Returns True if this blow killed the threat."""
        threat.health -= amount
        if threat.health <= 0.0:
            threat.health = 0.0
            threat.state = ThreatState.DEAD
            threat.killer_id = attacker_id
            return True
        return False

    def update(self, dt: float, targets: dict[int, tuple[float, float]], rng: Generator) -> list[ThreatEvent]:
        """Advance every live threat against the exposed agents in *targets*."""
        if self.blood_timer > 0.0:
            self.blood_timer = max(0.0, self.blood_timer - dt)

        events: list[ThreatEvent] = []
        for threat in self.threats:
            if threat.state != ThreatState.DEAD:
                events.extend(self._update_one(threat, dt, targets, rng))
        self.threats = [t for t in self.threats if t.state != ThreatState.DEAD]
        return events

    def _update_one(
        self,
        threat: Threat,
        dt: float,
        targets: dict[int, tuple[float, float]],
        rng: Generator,
    ) -> list[ThreatEvent]:
        events: list[ThreatEvent] = []
        definition = threat.definition

        if threat.ink_cloud_timer > 0.0:
            threat.ink_cloud_timer -= dt
            if threat.ink_cloud_timer <= 0.0:
                threat.ink_cloud_timer = 0.0
                events.append(ThreatEvent("ink_cleared", threat.threat_id))

        nearest_id: Optional[int] = None
        nearest_dist = math.inf
        for agent_id, (ax, az) in sorted(targets.items()):
            d = math.hypot(ax - threat.x, az - threat.z)
            if d < nearest_dist:
                nearest_dist = d
                nearest_id = agent_id

        if threat.state == ThreatState.PATROLLING:
            threat.x += (float(rng.random()) - 0.5) * definition.speed * dt
            threat.z += (float(rng.random()) - 0.5) * definition.speed * dt
            threat.patrol_time += dt
            if nearest_id is not None and nearest_dist < THREAT_AGGRO_RANGE:
                threat.state = ThreatState.ATTACKING
                threat.target_id = nearest_id
                events.append(ThreatEvent("aggro", threat.threat_id, nearest_id))
            elif threat.patrol_time >= THREAT_PATROL_TIMEOUT:
                threat.state = ThreatState.DEAD
                events.append(ThreatEvent("left", threat.threat_id))
                return events

        elif threat.state == ThreatState.ATTACKING:
            if nearest_id is None or nearest_dist > THREAT_DROP_AGGRO_RANGE:
                threat.state = ThreatState.PATROLLING
                threat.target_id = None
            else:
                threat.target_id = nearest_id
                tx, tz = targets[nearest_id]
                if nearest_dist > THREAT_ATTACK_RANGE:
                    threat.x += (tx - threat.x) / nearest_dist * definition.speed * dt
                    threat.z += (tz - threat.z) / nearest_dist * definition.speed * dt
                else:
                    events.append(ThreatEvent("attack", threat.threat_id, nearest_id))
                    if definition.ink_cloud_chance > 0.0 and rng.random() < definition.ink_cloud_chance:
                        threat.ink_cloud_timer = definition.ink_cloud_duration
                        events.append(ThreatEvent("ink_cloud", threat.threat_id))

        elif threat.state == ThreatState.FLEEING:
            if nearest_id is not None and nearest_dist > 0.0:
                tx, tz = targets[nearest_id]
                step = definition.speed * dt * THREAT_FLEE_SPEED_MULT
                threat.x += (threat.x - tx) / nearest_dist * step
                threat.z += (threat.z - tz) / nearest_dist * step
            if nearest_dist > THREAT_DESPAWN_RANGE:
                threat.state = ThreatState.DEAD
                events.append(ThreatEvent("fled", threat.threat_id))
                return events

        if (
            threat.health < threat.max_health * THREAT_FLEE_HEALTH_FRACTION
            and threat.state != ThreatState.FLEEING
        ):
            threat.state = ThreatState.FLEEING
            events.append(ThreatEvent("fleeing", threat.threat_id))
        return events

    def drive_off(self, threat: Threat) -> None:
        threat.state = ThreatState.FLEEING
        threat.target_id = None
