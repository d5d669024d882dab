"""Task variants an islander can pursue. Each carries only the fields its kind needs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union


class AgentState(str, Enum):
    IDLE = "idle"
    WALKING = "walking"
    GATHERING = "gathering"
    HAULING = "hauling"
    RESTING = "resting"
    EATING = "eating"
    CRAFTING = "crafting"
    FISHING = "fishing"


# States in which the planner leaves the current task alone
ATOMIC_STATES: frozenset[AgentState] = frozenset({
    AgentState.GATHERING,
    AgentState.CRAFTING,
    AgentState.EATING,
    AgentState.FISHING,
    AgentState.RESTING,
})


@dataclass
class EatFromInventory:
    kind: ClassVar[str] = "eat"
    resource_id: str

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind, self.resource_id)


@dataclass
class GoToStoreForFood:
    kind: ClassVar[str] = "go_to_store_for_food"

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind,)


@dataclass
class Rest:
    kind: ClassVar[str] = "rest"
    remaining: float
    forced: bool = False

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind,)


@dataclass
class HelpAgent:
    kind: ClassVar[str] = "help_agent"
    target_agent_id: int

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind, self.target_agent_id)


@dataclass
class GoToStoreForHelping:
    """Pick up food at the store before helping a tribe-mate."""

    kind: ClassVar[str] = "go_to_store_for_helping"
    target_agent_id: int

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind, self.target_agent_id)


@dataclass
class HaulToStore:
    kind: ClassVar[str] = "haul_to_store"

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind,)


@dataclass
class WalkToStoreToCraft:
    kind: ClassVar[str] = "walk_to_store_to_craft"
    recipe_id: str

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind, self.recipe_id)


@dataclass
class Craft:
    kind: ClassVar[str] = "craft"
    recipe_id: str
    remaining: float

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind, self.recipe_id)


@dataclass
class FetchTool:
    kind: ClassVar[str] = "fetch_tool"
    tool_id: str

    @property
    def claim_id(self) -> Optional[str]:
        return f"tool:{self.tool_id}"

    @property
    def key(self) -> tuple:
        return (self.kind, self.tool_id)


@dataclass
class GoFishing:
    kind: ClassVar[str] = "go_fishing"
    fish_id: str
    spot: tuple[float, float]
    attempts_left: int
    timer: Optional[float] = None    # set on arrival, counts down to each throw

    @property
    def claim_id(self) -> Optional[str]:
        return self.fish_id

    @property
    def key(self) -> tuple:
        return (self.kind, self.fish_id)


@dataclass
class Gather:
    kind: ClassVar[str] = "gather"
    category: str
    target_id: str
    timer: Optional[float] = None

    @property
    def claim_id(self) -> Optional[str]:
        return self.target_id

    @property
    def key(self) -> tuple:
        return (self.kind, self.target_id)


@dataclass
class Patrol:
    kind: ClassVar[str] = "patrol"
    elapsed: float = 0.0

    @property
    def claim_id(self) -> Optional[str]:
        return None

    @property
    def key(self) -> tuple:
        return (self.kind,)


Task = Union[
    EatFromInventory,
    GoToStoreForFood,
    Rest,
    HelpAgent,
    GoToStoreForHelping,
    HaulToStore,
    WalkToStoreToCraft,
    Craft,
    FetchTool,
    GoFishing,
    Gather,
    Patrol,
]


def same_task(a: Optional[Task], b: Optional[Task]) -> bool:
    """Two tasks are equivalent when they pursue the same kind of work on the same target."""
    if a is None or b is None:
        return a is b
    return a.key == b.key
