"""Tests for the relationship graph and social actions."""

import pytest

from island_sim.social.relationships import RelationshipGraph, SocialAction


def _graph(n: int = 4) -> RelationshipGraph:
    graph = RelationshipGraph()
    for i in range(n):
        graph.add_node(i)
    return graph


class TestEdges:
    def test_neutral_default(self):
        assert _graph().get(0, 1) == 0.0

    def test_scores_clamped(self):
        graph = _graph()
        assert graph.set(0, 1, 250.0) == 100.0
        assert graph.modify(0, 1, -500.0) == -100.0

    def test_friend_and_enemy_sets_follow_score(self):
        graph = _graph()
        graph.set(0, 1, 35.0)
        assert graph.friends(0) == [1]
        graph.set(0, 1, -35.0)
        assert graph.friends(0) == []
        assert graph.enemies(0) == [1]
        graph.set(0, 1, 0.0)
        assert graph.enemies(0) == []

    def test_edges_are_directed(self):
        graph = _graph()
        graph.set(0, 1, 50.0)
        assert graph.get(1, 0) == 0.0


class TestActions:
    def test_share_food(self):
        graph = _graph()
        events = graph.process_action(0, 1, SocialAction.SHARE_FOOD)
        assert graph.get(0, 1) == 0.0
        assert graph.get(1, 0) == pytest.approx(15.0)
        assert graph.node(0).helps_given == 1
        assert graph.node(1).helps_received == 1
        assert events[0].kind == "share_food"

    def test_betrayal_hurts_the_victim_view(self):
        graph = _graph()
        graph.process_action(0, 1, SocialAction.BETRAY)
        assert graph.get(1, 0) == pytest.approx(-40.0)
        assert graph.enemies(1) == [0]
        assert graph.node(0).betrayals == 1

    def test_unfair_trade(self):
        graph = _graph()
        graph.process_action(0, 1, SocialAction.TRADE, fair=False)
        assert graph.get(0, 1) == pytest.approx(2.0)
        assert graph.get(1, 0) == pytest.approx(-10.0)

    def test_fighting_kin_turns_family_against_attacker(self):
        graph = _graph()
        graph.establish_family(2, 0)
        graph.establish_family(2, 3)
        graph.establish_family(0, 3, "sibling")
        # 0 attacks its sibling 3; 3's other kin (2) turns on 0
        events = graph.process_action(0, 3, SocialAction.FIGHT)
        assert graph.get(3, 0) == pytest.approx(30.0 - 25.0)
        assert graph.get(2, 0) == pytest.approx(50.0 - 100.0)
        assert events[0].data["kin_penalised"] == [2]

    def test_fight_with_stranger_has_no_kin_penalty(self):
        graph = _graph()
        graph.establish_family(1, 2)
        graph.process_action(0, 1, SocialAction.FIGHT)
        assert graph.get(2, 0) == 0.0


class TestFamilyAndStatus:
    def test_family_links(self):
        graph = _graph()
        graph.establish_family(0, 1)
        graph.establish_family(1, 2, "sibling")
        assert graph.get(0, 1) == graph.get(1, 0) == pytest.approx(50.0)
        assert graph.get(1, 2) == pytest.approx(30.0)
        assert graph.family(1) == [0, 2]

    def test_hero_boosts_everyone_opinion(self):
        graph = _graph()
        graph.grant_hero(0)
        assert graph.node(0).is_hero
        assert all(graph.get(i, 0) == pytest.approx(30.0) for i in (1, 2, 3))
        assert graph.standing(0) == pytest.approx(30.0 + 25.0)

    def test_legend_is_revered(self):
        graph = _graph()
        graph.set(1, 0, -80.0)
        graph.grant_legend(0)
        assert graph.get(1, 0) == 100.0
        assert graph.standing(0) == pytest.approx(150.0)


class TestQueries:
    def test_will_cooperate(self):
        graph = _graph()
        assert graph.will_cooperate(0, 1)
        graph.set(1, 0, -1.0)
        assert not graph.will_cooperate(0, 1)

    def test_best_mate_requires_mutual_regard(self):
        graph = _graph()
        graph.set(0, 1, 40.0)
        graph.set(1, 0, 40.0)
        graph.set(0, 2, 80.0)
        graph.set(2, 0, 5.0)
        assert graph.find_best_mate(0, lambda _i: True) == 1

    def test_best_mate_respects_availability(self):
        graph = _graph()
        for other in (1, 2):
            graph.set(0, other, 20.0 + other)
            graph.set(other, 0, 20.0)
        assert graph.find_best_mate(0, lambda i: i != 2) == 1
        assert graph.find_best_mate(0, lambda _i: False) is None

    def test_allies_sorted_by_regard(self):
        graph = _graph()
        graph.set(1, 0, 25.0)
        graph.set(2, 0, 60.0)
        graph.set(3, 0, 10.0)
        assert graph.find_allies(0) == [2, 1]
