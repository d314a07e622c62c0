"""
tests/test_graph_model.py
─────────────────────────
Graph layer test suite — data model, generator, tour length, edits.

Reading guide
─────────────
Group 1 — Graph model invariants
    Indexes, lookups, read-only numeric views, construction errors.

Group 2 — RandomGraphGenerator
    Edge count, pheromone, distances, placement inside the padded canvas.

Group 3 — tour_length
    Closed-tour sums, empty/short tours, missing-edge skipping.

Group 4 — Edit contract
    add_node / remove_node / move_node / rebuild_edges.

Helpers
───────
_square() builds the 4-node 10×10 square used across the suite:
    node-0 (0,0)  node-1 (0,10)  node-2 (10,10)  node-3 (10,0)
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from aco_core.generator import CANVAS_PADDING, generate_random_graph
from aco_core.graph import (
    add_node,
    build_complete_graph,
    create_edge,
    euclidean,
    move_node,
    rebuild_edges,
    remove_node,
    tour_length,
)
from aco_core.rng import make_rng
from simulator.shared.models import INITIAL_PHEROMONE, Edge, Graph, Node


# ─────────────────────────────────────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────────────────────────────────────

def _square() -> Graph:
    corners = [(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]
    nodes = [
        Node(node_id=f"node-{i}", x=x, y=y, label=str(i + 1))
        for i, (x, y) in enumerate(corners)
    ]
    return build_complete_graph(nodes)


def _assert_fully_connected(graph: Graph) -> None:
    ids = [n.node_id for n in graph.nodes]
    for a in ids:
        for b in ids:
            if a != b:
                assert graph.edge(a, b) is not None, f"missing edge {a} → {b}"


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 1 — Graph model invariants
# ─────────────────────────────────────────────────────────────────────────────

class TestGraphModel:
    """The arena-plus-index representation."""

    def test_empty_graph(self):
        g = Graph()
        assert g.node_count == 0
        assert g.edge_count == 0
        assert g.distances.shape == (0,)

    def test_lookup_by_id(self):
        g = _square()
        assert g.node("node-2").x == 10.0
        assert g.node("nope") is None
        assert g.edge("node-0", "node-1").distance == 10.0
        assert g.edge("node-0", "node-0") is None

    def test_outgoing_slots_follow_edge_order(self):
        """Edges leaving node-1 are listed toward node-0, node-2, node-3."""
        g = _square()
        targets = [g.edges[k].target for k in g.outgoing_slots("node-1")]
        assert targets == ["node-0", "node-2", "node-3"]

    def test_numeric_views_align_with_edges(self):
        g = _square()
        for k, edge in enumerate(g.edges):
            assert g.distances[k] == edge.distance
            assert g.pheromones[k] == edge.pheromone

    def test_numeric_views_are_read_only(self):
        g = _square()
        with pytest.raises(ValueError):
            g.pheromones[0] = 5.0

    def test_dangling_edge_rejected(self):
        a = Node(node_id="a", x=0, y=0)
        with pytest.raises(ValueError):
            Graph(nodes=(a,), edges=(Edge(source="a", target="b", distance=1.0),))

    def test_duplicate_node_id_rejected(self):
        a = Node(node_id="a", x=0, y=0)
        with pytest.raises(ValueError):
            Graph(nodes=(a, Node(node_id="a", x=1, y=1)))

    def test_duplicate_edge_rejected(self):
        a, b = Node(node_id="a", x=0, y=0), Node(node_id="b", x=3, y=4)
        e = create_edge(a, b)
        with pytest.raises(ValueError):
            Graph(nodes=(a, b), edges=(e, e))

    def test_self_loop_rejected(self):
        a = Node(node_id="a", x=0, y=0)
        with pytest.raises(ValueError):
            Graph(nodes=(a,), edges=(Edge(source="a", target="a", distance=0.0),))

    def test_models_are_frozen(self):
        g = _square()
        with pytest.raises(Exception):
            g.nodes[0].x = 99.0

    def test_equal_graphs_compare_equal(self):
        assert _square() == _square()

    def test_negative_pheromone_rejected(self):
        with pytest.raises(ValueError):
            Edge(source="a", target="b", distance=1.0, pheromone=-0.1)


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 2 — RandomGraphGenerator
# ─────────────────────────────────────────────────────────────────────────────

class TestGenerator:

    @pytest.mark.parametrize("n", [2, 3, 7, 12])
    def test_edge_count_is_n_times_n_minus_one(self, n):
        g = generate_random_graph(n, 750, 550, rng=make_rng(n))
        assert g.node_count == n
        assert g.edge_count == n * (n - 1)

    def test_every_edge_starts_at_initial_pheromone(self):
        g = generate_random_graph(6, rng=make_rng(1))
        assert np.all(g.pheromones == INITIAL_PHEROMONE)

    def test_distance_is_euclidean(self):
        g = generate_random_graph(6, rng=make_rng(2))
        for edge in g.edges:
            expected = euclidean(g.node(edge.source), g.node(edge.target))
            assert edge.distance == expected

    def test_distance_symmetric(self):
        g = generate_random_graph(5, rng=make_rng(3))
        for edge in g.edges:
            assert edge.distance == g.edge(edge.target, edge.source).distance

    def test_nodes_inside_padded_canvas(self):
        g = generate_random_graph(50, 300, 200, rng=make_rng(4))
        for node in g.nodes:
            assert CANVAS_PADDING <= node.x <= 300 - CANVAS_PADDING
            assert CANVAS_PADDING <= node.y <= 200 - CANVAS_PADDING

    def test_ids_and_labels(self):
        g = generate_random_graph(3, rng=make_rng(5))
        assert [n.node_id for n in g.nodes] == ["node-0", "node-1", "node-2"]
        assert [n.label for n in g.nodes] == ["1", "2", "3"]

    @pytest.mark.parametrize("n", [0, 1])
    def test_tiny_graphs_have_no_edges(self, n):
        g = generate_random_graph(n, rng=make_rng(6))
        assert g.node_count == n
        assert g.edge_count == 0

    def test_negative_count_raises(self):
        with pytest.raises(ValueError):
            generate_random_graph(-1, rng=make_rng(7))

    def test_same_seed_same_graph(self):
        assert generate_random_graph(8, rng=make_rng(11)) == generate_random_graph(8, rng=make_rng(11))


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 3 — tour_length
# ─────────────────────────────────────────────────────────────────────────────

class TestTourLength:

    def test_empty_tour_is_zero(self):
        assert tour_length(_square(), []) == 0.0

    def test_single_node_is_zero(self):
        assert tour_length(_square(), ["node-0"]) == 0.0

    def test_open_tour_adds_closing_edge(self):
        """0 → 1 → 2 → 3 plus the closing 3 → 0 is the 40-unit perimeter."""
        g = _square()
        assert tour_length(g, ["node-0", "node-1", "node-2", "node-3"]) == 40.0

    def test_closed_tour_counts_each_edge_once(self):
        g = _square()
        assert tour_length(g, ["node-0", "node-1", "node-2", "node-3", "node-0"]) == 40.0

    def test_tour_with_diagonals(self):
        g = _square()
        diag = math.hypot(10.0, 10.0)
        length = tour_length(g, ["node-0", "node-2", "node-1", "node-3"])
        assert np.isclose(length, 2 * diag + 20.0)

    def test_two_node_tour_goes_there_and_back(self):
        g = _square()
        assert tour_length(g, ["node-0", "node-1"]) == 20.0

    def test_missing_edges_contribute_zero(self):
        g = remove_node(_square(), "node-3")
        # node-2 → node-3 and node-3 → node-0 are gone
        assert tour_length(g, ["node-0", "node-1", "node-2", "node-3"]) == 20.0


# ─────────────────────────────────────────────────────────────────────────────
# GROUP 4 — Edit contract
# ─────────────────────────────────────────────────────────────────────────────

class TestGraphEdits:

    def test_add_node_links_both_ways(self):
        g = add_node(_square(), 5.0, 5.0, node_id="centre")
        assert g.node_count == 5
        assert g.edge_count == 12 + 2 * 4
        for other in ("node-0", "node-1", "node-2", "node-3"):
            out, back = g.edge("centre", other), g.edge(other, "centre")
            assert out.pheromone == back.pheromone == INITIAL_PHEROMONE
            assert np.isclose(out.distance, math.hypot(5.0, 5.0))
            assert out.distance == back.distance

    def test_add_node_default_label_and_generated_id(self):
        g = add_node(_square(), 1.0, 1.0)
        new = g.nodes[-1]
        assert new.label == "5"
        assert new.node_id.startswith("node-")

    def test_add_node_duplicate_id_raises(self):
        with pytest.raises(ValueError):
            add_node(_square(), 1.0, 1.0, node_id="node-0")

    def test_add_node_does_not_touch_original(self):
        g = _square()
        add_node(g, 5.0, 5.0)
        assert g.node_count == 4 and g.edge_count == 12

    def test_remove_node_drops_incident_edges(self):
        """Removing one of n nodes drops exactly 2·(n−1) edges."""
        g = generate_random_graph(6, rng=make_rng(8))
        smaller = remove_node(g, "node-2")
        assert smaller.node_count == 5
        assert g.edge_count - smaller.edge_count == 2 * (6 - 1)
        assert all("node-2" not in (e.source, e.target) for e in smaller.edges)
        _assert_fully_connected(smaller)

    def test_remove_unknown_node_is_noop(self):
        g = _square()
        assert remove_node(g, "ghost") is g

    def test_move_node_keeps_distances(self):
        g = _square()
        moved = move_node(g, "node-0", 100.0, 100.0)
        assert moved.node("node-0").x == 100.0
        assert moved.edge("node-0", "node-1").distance == 10.0

    def test_rebuild_edges_refreshes_distances_and_pheromone(self):
        g = move_node(_square(), "node-0", 0.0, -10.0)
        rebuilt = rebuild_edges(g)
        assert rebuilt.edge("node-0", "node-1").distance == 20.0
        assert np.all(rebuilt.pheromones == INITIAL_PHEROMONE)
