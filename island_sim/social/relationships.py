"""Directed, bounded opinions between islanders, with derived friend and enemy sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, Optional

from island_sim.core.config import (
    ALLY_MIN_RELATIONSHIP,
    ENEMY_THRESHOLD,
    FAMILY_BASE,
    FRIEND_THRESHOLD,
    HERO_REPUTATION_BOOST,
    HERO_STANDING_BONUS,
    LEGEND_STANDING_BONUS,
    MATE_MIN_RELATIONSHIP,
    RELATIONSHIP_MAX,
    RELATIONSHIP_MIN,
    SIBLING_BASE,
)


class SocialAction(str, Enum):
    SHARE_FOOD = "share_food"
    HELP = "help"
    PROTECT = "protect"
    TRADE = "trade"
    BETRAY = "betray"
    FIGHT = "fight"
    MATE = "mate"
    TEAM_UP = "team_up"


# action -> (actor's change toward target, target's change toward actor)
ACTION_DELTAS: dict[SocialAction, tuple[float, float]] = {
    SocialAction.SHARE_FOOD: (0.0, 15.0),
    SocialAction.HELP: (5.0, 10.0),
    SocialAction.PROTECT: (5.0, 20.0),
    SocialAction.TRADE: (5.0, 5.0),
    SocialAction.BETRAY: (0.0, -40.0),
    SocialAction.FIGHT: (0.0, -25.0),
    SocialAction.MATE: (25.0, 25.0),
    SocialAction.TEAM_UP: (3.0, 3.0),
}

UNFAIR_TRADE_DELTAS: tuple[float, float] = (2.0, -10.0)
KIN_FIGHT_FAMILY_DELTA: float = -100.0

FAMILY_LINKS: dict[str, float] = {
    "parent_child": FAMILY_BASE,
    "sibling": SIBLING_BASE,
}


@dataclass
class SocialNode:
    """One islander's outgoing opinions and social record."""

    agent_id: int
    opinions: dict[int, float] = field(default_factory=dict)
    family_ids: set[int] = field(default_factory=set)
    friend_ids: set[int] = field(default_factory=set)
    enemy_ids: set[int] = field(default_factory=set)

    helps_given: int = 0
    helps_received: int = 0
    betrayals: int = 0
    fights: int = 0
    hero_kills: int = 0
    is_hero: bool = False
    is_legend: bool = False


@dataclass
class SocialEvent:
    kind: str
    actor_id: int
    target_id: int
    data: dict = field(default_factory=dict)


class RelationshipGraph:
    """All social nodes, keyed by agent id."""

    def __init__(self) -> None:
        self._nodes: dict[int, SocialNode] = {}

    def add_node(self, agent_id: int) -> SocialNode:
        if agent_id not in self._nodes:
            self._nodes[agent_id] = SocialNode(agent_id)
        return self._nodes[agent_id]

    def node(self, agent_id: int) -> SocialNode:
        return self.add_node(agent_id)

    @property
    def nodes(self) -> list[SocialNode]:
        return list(self._nodes.values())

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def get(self, from_id: int, to_id: int) -> float:
        """How *from_id* regards *to_id*; neutral when they have no history."""
        return self.node(from_id).opinions.get(to_id, 0.0)

    def set(self, from_id: int, to_id: int, score: float) -> float:
        """Write a clamped score and recompute friend/enemy membership."""
        node = self.node(from_id)
        clamped = max(RELATIONSHIP_MIN, min(RELATIONSHIP_MAX, score))
        node.opinions[to_id] = clamped
        node.friend_ids.discard(to_id)
        node.enemy_ids.discard(to_id)
        if clamped >= FRIEND_THRESHOLD:
            node.friend_ids.add(to_id)
        elif clamped <= ENEMY_THRESHOLD:
            node.enemy_ids.add(to_id)
        return clamped

    def modify(self, from_id: int, to_id: int, delta: float) -> float:
        return self.set(from_id, to_id, self.get(from_id, to_id) + delta)

    def establish_family(self, a_id: int, b_id: int, link: str = "parent_child") -> None:
        self.node(a_id).family_ids.add(b_id)
        self.node(b_id).family_ids.add(a_id)
        change = FAMILY_LINKS.get(link, FAMILY_BASE)
        self.modify(a_id, b_id, change)
        self.modify(b_id, a_id, change)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def process_action(
        self,
        actor_id: int,
        target_id: int,
        action: SocialAction,
        fair: bool = True,
    ) -> list[SocialEvent]:
        """Apply the fixed delta table for *action* and update counters."""
        actor = self.node(actor_id)
        target = self.node(target_id)
        actor_delta, target_delta = ACTION_DELTAS[action]
        if action == SocialAction.TRADE and not fair:
            actor_delta, target_delta = UNFAIR_TRADE_DELTAS

        if actor_delta:
            self.modify(actor_id, target_id, actor_delta)
        if target_delta:
            self.modify(target_id, actor_id, target_delta)

        data: dict = {}
        if action in (SocialAction.SHARE_FOOD, SocialAction.HELP):
            actor.helps_given += 1
            target.helps_received += 1
        elif action == SocialAction.BETRAY:
            actor.betrayals += 1
        elif action == SocialAction.FIGHT:
            actor.fights += 1
            target.fights += 1
            if target_id in actor.family_ids:
                # The rest of the victim's kin turn on the attacker
                kin = sorted(target.family_ids - {actor_id})
                for kin_id in kin:
                    self.modify(kin_id, actor_id, KIN_FIGHT_FAMILY_DELTA)
                data["kin_penalised"] = kin
        elif action == SocialAction.TRADE:
            data["fair"] = fair

        return [SocialEvent(action.value, actor_id, target_id, data)]

    def grant_hero(self, agent_id: int) -> SocialEvent:
        node = self.node(agent_id)
        node.is_hero = True
        node.hero_kills += 1
        for other in self.nodes:
            if other.agent_id != agent_id:
                self.modify(other.agent_id, agent_id, HERO_REPUTATION_BOOST)
        return SocialEvent("became_hero", agent_id, agent_id)

    def grant_legend(self, agent_id: int) -> SocialEvent:
        node = self.node(agent_id)
        node.is_legend = True
        node.hero_kills += 1
        for other in self.nodes:
            if other.agent_id != agent_id:
                self.set(other.agent_id, agent_id, RELATIONSHIP_MAX)
        return SocialEvent("became_legend", agent_id, agent_id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def will_cooperate(self, a_id: int, b_id: int) -> bool:
        return self.get(a_id, b_id) >= 0 and self.get(b_id, a_id) >= 0

    def will_mate(self, a_id: int, b_id: int) -> bool:
        return self.get(a_id, b_id) > MATE_MIN_RELATIONSHIP and self.get(b_id, a_id) > MATE_MIN_RELATIONSHIP

    def friends(self, agent_id: int) -> list[int]:
        return sorted(self.node(agent_id).friend_ids)

    def enemies(self, agent_id: int) -> list[int]:
        return sorted(self.node(agent_id).enemy_ids)

    def family(self, agent_id: int) -> list[int]:
        return sorted(self.node(agent_id).family_ids)

    def standing(self, agent_id: int, among: Optional[Iterable[int]] = None) -> float:
        """Average opinion others hold of *agent_id*, plus hero/legend bonus."""
        ids = [i for i in (among if among is not None else self._nodes) if i != agent_id]
        score = sum(self.get(i, agent_id) for i in ids) / len(ids) if ids else 0.0
        node = self.node(agent_id)
        if node.is_legend:
            score += LEGEND_STANDING_BONUS
        elif node.is_hero:
            score += HERO_STANDING_BONUS
        return score

    def find_best_mate(
        self,
        agent_id: int,
        is_available: Callable[[int], bool],
        candidates: Optional[Iterable[int]] = None,
    ) -> Optional[int]:
        """Highest-regarded mutual match among available candidates."""
        best: Optional[int] = None
        best_score = float("-inf")
        for other in candidates if candidates is not None else list(self._nodes):
            if other == agent_id or not is_available(other) or not self.will_mate(agent_id, other):
                continue
            score = self.get(agent_id, other)
            if score > best_score:
                best_score = score
                best = other
        return best

    def find_allies(self, agent_id: int, min_relationship: float = ALLY_MIN_RELATIONSHIP) -> list[int]:
        """Islanders who think well enough of *agent_id* to back it, strongest first."""
        allies = [
            (self.get(other, agent_id), other)
            for other in self._nodes
            if other != agent_id and self.get(other, agent_id) >= min_relationship
        ]
        allies.sort(key=lambda item: (-item[0], item[1]))
        return [other for _score, other in allies]
