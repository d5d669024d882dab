"""Core agent class: position, needs, skills, inventory and the current task."""

from __future__ import annotations

import math
from typing import Optional

from numpy.random import Generator

from island_sim.agents.needs import Needs, create_child_needs, generate_needs
from island_sim.agents.skills import SkillLedger
from island_sim.agents.tasks import AgentState, Task
from island_sim.core.config import (
    AGENT_PLACEMENT,
    DEEP_WATER_DEPTH,
    INITIAL_AGE_RANGE,
    IN_WATER_MARGIN,
    ISLAND_RADIUS,
    WATER_LEVEL,
)
from island_sim.economy.inventory import Inventory
from island_sim.world.terrain import TerrainFn, island_height, random_island_position


_NAMES: list[str] = [
    "Aru", "Bina", "Kai", "Lani", "Moana", "Nalu", "Olu", "Pika", "Rua", "Sina",
    "Tama", "Ula", "Vai", "Wiki", "Ahe", "Hina", "Iolana", "Keoni", "Lea", "Makoa",
    "Noe", "Pua", "Kalea", "Mana", "Tavita",
]


def _name_for(islander_id: int) -> str:
    base = _NAMES[islander_id % len(_NAMES)]
    generation = islander_id // len(_NAMES)
    return base if generation == 0 else f"{base} {generation + 1}"


class Islander:
    """A single tribe member. Position is owned here; views only mirror it."""

    def __init__(
        self,
        islander_id: int,
        position: tuple[float, float, float],
        needs: Needs,
        name: Optional[str] = None,
        heading: float = 0.0,
    ) -> None:
        self.id = islander_id
        self.name = name or _name_for(islander_id)
        self.position = position
        self.heading = heading

        # Components
        self.needs = needs
        self.skills = SkillLedger()
        self.inventory = Inventory()

        # Behaviour
        self.task: Optional[Task] = None
        self.state: AgentState = AgentState.IDLE

        # Family
        self.parent_ids: list[int] = []
        self.child_ids: list[int] = []
        self.partner_id: Optional[int] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_alive(self) -> bool:
        return self.needs.alive

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def z(self) -> float:
        return self.position[2]

    @property
    def can_act(self) -> bool:
        return self.is_alive and self.needs.life_stage.can_act

    @property
    def in_water(self) -> bool:
        return self.position[1] < WATER_LEVEL + IN_WATER_MARGIN

    @property
    def in_deep_water(self) -> bool:
        return self.position[1] < WATER_LEVEL - DEEP_WATER_DEPTH

    def distance_to(self, x: float, z: float) -> float:
        return math.hypot(self.x - x, self.z - z)

    def distance_to_agent(self, other: "Islander") -> float:
        return self.distance_to(other.x, other.z)

    def move_toward(self, x: float, z: float, step: float, terrain: TerrainFn) -> bool:
        """Walk up to *step* toward (x, z), staying grounded. Returns True on arrival."""
        dx, dz = x - self.x, z - self.z
        dist = math.hypot(dx, dz)
        if dist <= step:
            nx, nz = x, z
        else:
            nx, nz = self.x + dx / dist * step, self.z + dz / dist * step
        if dist > 0.0:
            self.heading = math.atan2(dz, dx)
        self.position = (nx, terrain(nx, nz), nz)
        return dist <= step

    def set_task(self, task: Optional[Task], state: AgentState) -> None:
        self.task = task
        self.state = state

    def die(self, cause) -> None:
        self.needs.die(cause)
        self.task = None
        self.state = AgentState.IDLE

    def __repr__(self) -> str:
        return f"Islander({self.id}, {self.name}, {self.state.value})"


# ------------------------------------------------------------------
# Population generation
# ------------------------------------------------------------------

def generate_initial_population(
    n: int,
    rng: Generator,
    terrain: TerrainFn = island_height,
) -> list[Islander]:
    """Founding tribe members at random inland spots with randomised needs."""
    min_frac, max_frac, min_height = AGENT_PLACEMENT
    islanders: list[Islander] = []
    for i in range(n):
        position = random_island_position(
            rng, terrain,
            min_dist=ISLAND_RADIUS * min_frac,
            max_dist=ISLAND_RADIUS * max_frac,
            min_height=min_height,
        )
        age = float(rng.uniform(*INITIAL_AGE_RANGE))
        islanders.append(Islander(i, position, generate_needs(age, rng)))
    return islanders


def create_child(islander_id: int, mother: Islander, father: Optional[Islander]) -> Islander:
    """A newborn placed at its mother's position."""
    child = Islander(islander_id, mother.position, create_child_needs())
    child.parent_ids = [mother.id] + ([father.id] if father is not None else [])
    mother.child_ids.append(child.id)
    if father is not None:
        father.child_ids.append(child.id)
    return child
