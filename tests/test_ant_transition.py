"""
tests/test_ant_transition.py
────────────────────────────
Ants test suite — spawning, candidates, the transition rule, one-hop moves.

Reading guide
─────────────
Group 1 — spawn_ants
    Counts, ids, start positions, error cases.

Group 2 — Roulette wheel
    select_index boundary semantics; select_edge with α / β edge cases.

Group 3 — move_ant / advance_ants
    Normal hop, closing move, trapped and stalled ants, thread-pool parity.

All randomness goes through either a seeded numpy Generator or the
_FixedRNG test double, which returns pre-chosen values.
"""

from __future__ import annotations

from typing import List

import numpy as np
import pytest

from aco_core.ant import (
    candidate_edges,
    choose_next_edge,
    desirability,
    select_edge,
    select_index,
    spawn_ants,
)
from aco_core.generator import generate_random_graph
from aco_core.graph import build_complete_graph, create_edge
from aco_core.mover import PARALLEL_MIN_ANTS, advance_ants, is_stalled, move_ant
from aco_core.rng import make_rng
from simulator.shared.models import ACOParameters, Ant, Edge, Graph, Node


# ─────────────────────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────────────────────

class _FixedRNG:
    """RandomSource returning scripted values, in call order."""

    def __init__(self, uniforms: List[float], starts: List[int]) -> None:
        self._uniforms = list(uniforms)
        self._starts = list(starts)

    def random(self, size=None):
        if size is None:
            return self._uniforms.pop(0)
        return np.array([self._uniforms.pop(0) for _ in range(size)])

    def integers(self, low, high=None, size=None):
        if size is None:
            return self._starts.pop(0)
        return np.array([self._starts.pop(0) for _ in range(size)])


def _square() -> Graph:
    corners = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]
    return build_complete_graph(
        [Node(node_id=f"node-{i}", x=x, y=y) for i, (x, y) in enumerate(corners)]
    )


def _ant(path: List[str], length: float = 0.0, ant_id: str = "ant-0") -> Ant:
    return Ant(ant_id=ant_id, current_node=path[-1], visited_nodes=tuple(path), tour_length=length)


def _edge(target: str, distance: float, pheromone: float = 1.0) -> Edge:
    return Edge(source="s", target=target, distance=distance, pheromone=pheromone)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — spawn_ants
# ─────────────────────────────────────────────────────────────────────────────

class TestSpawnAnts:

    def test_spawns_requested_count(self):
        ants = spawn_ants(_square(), 7, make_rng(0))
        assert len(ants) == 7
        assert [a.ant_id for a in ants] == [f"ant-{i}" for i in range(7)]

    def test_fresh_ants_sit_on_their_start(self):
        g = _square()
        for ant in spawn_ants(g, 20, make_rng(1)):
            assert g.has_node(ant.current_node)
            assert ant.visited_nodes == (ant.current_node,)
            assert ant.tour_length == 0.0

    def test_start_positions_come_from_rng(self):
        ants = spawn_ants(_square(), 3, _FixedRNG([], [3, 0, 3]))
        assert [a.current_node for a in ants] == ["node-3", "node-0", "node-3"]

    def test_zero_ants(self):
        assert spawn_ants(_square(), 0, make_rng(2)) == ()

    def test_empty_graph_raises(self):
        with pytest.raises(ValueError):
            spawn_ants(Graph(), 5, make_rng(3))

    def test_negative_count_raises(self):
        with pytest.raises(ValueError):
            spawn_ants(_square(), -1, make_rng(4))


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — Roulette wheel
# ─────────────────────────────────────────────────────────────────────────────

class TestSelectIndex:

    def test_empty_weights_give_none(self):
        assert select_index(np.array([]), 0.5) is None

    def test_zero_draw_picks_first(self):
        assert select_index(np.array([1.0, 2.0, 3.0]), 0.0) == 0

    def test_high_draw_picks_last(self):
        assert select_index(np.array([1.0, 2.0, 3.0]), 0.999) == 2

    def test_boundary_resolves_to_earlier_candidate(self):
        """r lands exactly on cumsum[0]; the first slot with cumsum ≥ r wins."""
        assert select_index(np.array([2.0, 2.0]), 0.5) == 0

    def test_overshoot_falls_back_to_last_not_first(self):
        assert select_index(np.array([0.1, 0.2, 0.3]), 1.5) == 2

    def test_proportional_to_weight(self):
        """With weights [1, 3], draws below 0.25 pick slot 0, above pick slot 1."""
        w = np.array([1.0, 3.0])
        assert select_index(w, 0.24) == 0
        assert select_index(w, 0.26) == 1


class TestSelectEdge:

    def test_no_candidates_gives_none(self):
        assert select_edge([], ACOParameters(), 0.3) is None

    @pytest.mark.parametrize("draw", [0.0, 0.5, 0.999])
    def test_single_candidate_always_chosen(self, draw):
        """α = 0 with zero pheromone still returns the only candidate."""
        only = _edge("t", 5.0, pheromone=0.0)
        assert select_edge([only], ACOParameters(alpha=0.0), draw) is only

    def test_alpha_zero_ignores_pheromone(self):
        params = ACOParameters(alpha=0.0, beta=1.0)
        w = desirability(np.array([0.01, 100.0]), np.array([4.0, 4.0]), params)
        assert np.isclose(w[0], w[1])

    def test_beta_zero_ignores_distance(self):
        params = ACOParameters(alpha=1.0, beta=0.0)
        w = desirability(np.array([2.0, 2.0]), np.array([1.0, 500.0]), params)
        assert np.isclose(w[0], w[1])

    def test_desirability_formula(self):
        params = ACOParameters(alpha=2.0, beta=1.0)
        w = desirability(np.array([3.0]), np.array([4.0]), params)
        assert np.isclose(w[0], 9.0 * 0.25)

    def test_candidate_order_is_preserved(self):
        """The wheel walks candidates as given; a zero draw picks the first."""
        a, b = _edge("a", 1.0), _edge("b", 1.0)
        assert select_edge([b, a], ACOParameters(), 0.0) is b

    def test_shorter_edge_is_preferred(self):
        near, far = _edge("near", 1.0), _edge("far", 100.0)
        picks = [select_edge([near, far], ACOParameters(), d).target for d in np.linspace(0, 0.99, 50)]
        assert picks.count("near") > picks.count("far")


class TestCandidates:

    def test_visited_targets_are_excluded(self):
        g = _square()
        ant = _ant(["node-0", "node-1"])
        assert [e.target for e in candidate_edges(g, ant)] == ["node-2", "node-3"]

    def test_choose_next_edge_uses_one_draw(self):
        g = _square()
        ant = _ant(["node-0", "node-1"])
        edge = choose_next_edge(g, ant, ACOParameters(), _FixedRNG([0.999], []))
        assert edge.target == "node-3"

    def test_choose_next_edge_trapped(self):
        g = _square()
        ant = _ant(["node-0", "node-1", "node-2", "node-3"])
        assert choose_next_edge(g, ant, ACOParameters(), make_rng(0)) is None


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 3 — move_ant / advance_ants
# ─────────────────────────────────────────────────────────────────────────────

class TestMoveAnt:

    def test_hop_appends_target_and_distance(self):
        g = _square()
        moved = move_ant(g, _ant(["node-0"]), ACOParameters(), 0.0)
        assert moved.visited_nodes == ("node-0", "node-1")
        assert moved.current_node == "node-1"
        assert moved.tour_length == 10.0

    def test_closing_move_returns_to_start(self):
        g = _square()
        ant = _ant(["node-0", "node-1", "node-2", "node-3"], length=30.0)
        closed = move_ant(g, ant, ACOParameters(), 0.7)
        assert closed.current_node == "node-0"
        assert closed.visited_nodes[-1] == closed.visited_nodes[0]
        assert closed.tour_length == 40.0
        assert closed.is_complete(4)

    def test_complete_ant_is_unchanged(self):
        g = _square()
        done = _ant(["node-0", "node-1", "node-2", "node-3", "node-0"], length=40.0)
        assert move_ant(g, done, ACOParameters(), 0.1) is done

    def test_missing_closing_edge_stalls(self):
        a, b, c = (Node(node_id=i, x=float(k), y=0.0) for k, i in enumerate("abc"))
        g = Graph(nodes=(a, b, c), edges=(create_edge(a, b), create_edge(b, c)))
        ant = _ant(["a", "b", "c"], length=2.0)
        assert move_ant(g, ant, ACOParameters(), 0.5) is ant
        assert is_stalled(g, ant)

    def test_trapped_ant_stays_put(self):
        a, b, c = (Node(node_id=i, x=float(k), y=0.0) for k, i in enumerate("abc"))
        g = Graph(nodes=(a, b, c), edges=(create_edge(a, b), create_edge(b, a)))
        ant = _ant(["a", "b"], length=1.0)
        assert move_ant(g, ant, ACOParameters(), 0.5) is ant
        assert is_stalled(g, ant)

    def test_moving_ant_is_not_stalled(self):
        assert not is_stalled(_square(), _ant(["node-0"]))


class TestAdvanceAnts:

    def test_one_draw_per_ant_in_order(self):
        g = _square()
        ants = (_ant(["node-0"], ant_id="ant-0"), _ant(["node-0"], ant_id="ant-1"))
        moved = advance_ants(g, ants, ACOParameters(), _FixedRNG([0.0, 0.999], []))
        assert [a.current_node for a in moved] == ["node-1", "node-3"]

    def test_empty_generation(self):
        assert advance_ants(_square(), (), ACOParameters(), make_rng(0)) == ()

    def test_thread_pool_matches_sequential(self):
        g = generate_random_graph(9, rng=make_rng(21))
        params = ACOParameters(ant_count=PARALLEL_MIN_ANTS * 2)
        ants = spawn_ants(g, params.ant_count, make_rng(22))

        seq_rng, par_rng = make_rng(23), make_rng(23)
        seq, par = ants, ants
        for _ in range(g.node_count):
            seq = advance_ants(g, seq, params, seq_rng)
            par = advance_ants(g, par, params, par_rng, max_workers=4)
        assert seq == par
        assert all(a.is_complete(g.node_count) for a in par)

    def test_input_is_not_mutated(self):
        g = _square()
        ants = spawn_ants(g, 4, make_rng(5))
        before = tuple(a.visited_nodes for a in ants)
        advance_ants(g, ants, ACOParameters(), make_rng(6))
        assert tuple(a.visited_nodes for a in ants) == before
