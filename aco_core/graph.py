"""
aco_core/graph.py
─────────────────
Graph construction, distance, tour length and the between-tick edit contract.

Every function here takes a Graph and returns a new Graph (or a number).
Nothing mutates its input — the Graph model is frozen, and its lookup
indexes are rebuilt by the constructor for each new value.

Edit contract
─────────────
  add_node     → new node + a bidirectional edge pair to every existing node
                 (distance = Euclidean, pheromone = INITIAL_PHEROMONE).
  remove_node  → node gone, together with all 2·(n−1) incident edges.
  move_node    → position changes; edge distances do NOT. Call
                 rebuild_edges() when fresh distances are wanted (this
                 also resets pheromone, exactly like regenerating the graph).

Missing-edge policy
───────────────────
tour_length() silently skips pairs with no edge: a user edit can remove an
edge that a stored best tour still references, and that must degrade the
number, not crash the caller.
"""

from __future__ import annotations

import logging
import math
import uuid
from typing import List, Optional, Sequence

from simulator.shared.models import (
    INITIAL_PHEROMONE,
    Edge,
    Graph,
    Node,
    NodeId,
)

logger = logging.getLogger(__name__)


def euclidean(a: Node, b: Node) -> float:
    """Straight-line distance between two nodes."""
    return math.hypot(a.x - b.x, a.y - b.y)


def create_edge(source: Node, target: Node, pheromone: float = INITIAL_PHEROMONE) -> Edge:
    """Directed edge source → target with distance derived from current positions."""
    return Edge(
        source=source.node_id,
        target=target.node_id,
        distance=euclidean(source, target),
        pheromone=pheromone,
    )


def build_complete_graph(nodes: Sequence[Node]) -> Graph:
    """
    Fully connected directed graph over `nodes`.

    Edge order is row-major over node order: every edge leaving nodes[0]
    (to nodes[1], nodes[2], …), then every edge leaving nodes[1], and so on.
    The transition rule walks candidates in this order, so it is part of the
    reproducibility contract for seeded runs.

    Yields exactly n·(n−1) edges, each with pheromone = INITIAL_PHEROMONE.
    """
    edges: List[Edge] = [
        create_edge(source, target)
        for i, source in enumerate(nodes)
        for j, target in enumerate(nodes)
        if i != j
    ]
    return Graph(nodes=tuple(nodes), edges=tuple(edges))


def tour_length(graph: Graph, tour: Sequence[NodeId]) -> float:
    """
    Sum of consecutive edge distances along `tour`, closing back to tour[0].

    The closing edge (tour[-1] → tour[0]) is added whenever len(tour) > 1.
    For an already-closed tour (start id repeated at the end) the closing
    pair is start → start, which never exists, so it contributes nothing.

    Missing edges contribute 0.

    Examples:
        tour_length(g, [])            → 0.0
        tour_length(g, ["a"])         → 0.0
        tour_length(g, ["a", "b"])    → d(a,b) + d(b,a)
    """
    if len(tour) < 2:
        return 0.0

    total = 0.0
    for source, target in zip(tour, tour[1:]):
        edge = graph.edge(source, target)
        if edge is not None:
            total += edge.distance

    closing = graph.edge(tour[-1], tour[0])
    if closing is not None:
        total += closing.distance
    return total


# ── Edit operations (between ticks only) ─────────────────────────────────────

def add_node(
    graph: Graph,
    x: float,
    y: float,
    node_id: Optional[NodeId] = None,
    label: Optional[str] = None,
) -> Graph:
    """
    Return a graph with one more node at (x, y), linked both ways to every
    existing node.

    Args:
        graph:   Current graph.
        x, y:    Canvas position.
        node_id: Identity for the new node. Generated when omitted.
        label:   Display label. Defaults to the new 1-based node count.

    Raises:
        ValueError: if node_id is already used in this graph.
    """
    if node_id is None:
        node_id = f"node-{uuid.uuid4().hex[:8]}"
    if graph.has_node(node_id):
        raise ValueError(f"Node id {node_id!r} already exists")

    new_node = Node(
        node_id=node_id,
        x=x,
        y=y,
        label=label if label is not None else str(len(graph.nodes) + 1),
    )

    new_edges: List[Edge] = list(graph.edges)
    for existing in graph.nodes:
        new_edges.append(create_edge(new_node, existing))
        new_edges.append(create_edge(existing, new_node))

    logger.debug("add_node: %s at (%.1f, %.1f)", node_id, x, y)
    return Graph(nodes=graph.nodes + (new_node,), edges=tuple(new_edges))


def remove_node(graph: Graph, node_id: NodeId) -> Graph:
    """
    Return a graph without `node_id` and without any edge touching it.

    Removing an unknown id is a no-op and returns the same graph.
    """
    if not graph.has_node(node_id):
        logger.debug("remove_node: unknown node_id=%s, nothing removed", node_id)
        return graph

    nodes = tuple(n for n in graph.nodes if n.node_id != node_id)
    edges = tuple(
        e for e in graph.edges
        if e.source != node_id and e.target != node_id
    )
    logger.debug(
        "remove_node: %s (%d incident edges dropped)",
        node_id, len(graph.edges) - len(edges),
    )
    return Graph(nodes=nodes, edges=edges)


def move_node(graph: Graph, node_id: NodeId, x: float, y: float) -> Graph:
    """
    Return a graph with `node_id` repositioned. Edge distances are kept as-is.

    Moving an unknown id is a no-op and returns the same graph.
    """
    slot = graph.node_slot(node_id)
    if slot is None:
        return graph

    moved = graph.nodes[slot].model_copy(update={"x": x, "y": y})
    nodes = graph.nodes[:slot] + (moved,) + graph.nodes[slot + 1:]
    return Graph(nodes=nodes, edges=graph.edges)


def rebuild_edges(graph: Graph) -> Graph:
    """
    Regenerate the full edge set from current node positions.

    Distances become current again; pheromone is reset to INITIAL_PHEROMONE
    because the regenerated edges are new arcs.
    """
    return build_complete_graph(graph.nodes)
