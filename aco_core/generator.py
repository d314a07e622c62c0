"""
aco_core/generator.py
─────────────────────
Random problem instances: n nodes scattered on a canvas, fully connected.

Placement
─────────
Each coordinate is drawn independently and uniformly inside the canvas
minus a fixed CANVAS_PADDING on every side:

    x ∈ [PADDING, width  − PADDING)
    y ∈ [PADDING, height − PADDING)

so rendered nodes never touch the canvas border. x and y for a node are
drawn together as one (n, 2) array from the caller's RandomSource.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from aco_core.graph import build_complete_graph
from aco_core.rng import RandomSource, make_rng
from simulator.shared.models import Graph, Node

logger = logging.getLogger(__name__)

CANVAS_WIDTH: float = 750.0
CANVAS_HEIGHT: float = 550.0

CANVAS_PADDING: float = 25.0
"""Inset from every canvas edge. Matches the node radius plus a margin."""


def generate_random_graph(
    node_count: int,
    width: float = CANVAS_WIDTH,
    height: float = CANVAS_HEIGHT,
    rng: Optional[RandomSource] = None,
) -> Graph:
    """
    Place `node_count` nodes at random and connect every ordered pair.

    Args:
        node_count: Number of nodes, ≥ 0. 0 or 1 gives an edge-less graph
                    (valid, but too small to simulate).
        width:      Canvas width.
        height:     Canvas height.
        rng:        Randomness source. A fresh unseeded generator if None.

    Returns:
        Graph with ids "node-0" … "node-{n-1}", labels "1" … "n", and
        exactly n·(n−1) edges at pheromone 1.0.

    Raises:
        ValueError: if node_count is negative.
    """
    if node_count < 0:
        raise ValueError(f"node_count must be ≥ 0, got {node_count}")

    rng = rng if rng is not None else make_rng()

    # A canvas narrower than twice the padding collapses to its centre line.
    span_x = max(width - 2.0 * CANVAS_PADDING, 0.0)
    span_y = max(height - 2.0 * CANVAS_PADDING, 0.0)

    if node_count == 0:
        return Graph()

    unit = np.asarray(rng.random((node_count, 2)), dtype=np.float64)
    xs = unit[:, 0] * span_x + CANVAS_PADDING
    ys = unit[:, 1] * span_y + CANVAS_PADDING

    nodes: List[Node] = [
        Node(node_id=f"node-{i}", x=float(xs[i]), y=float(ys[i]), label=str(i + 1))
        for i in range(node_count)
    ]
    graph = build_complete_graph(nodes)

    logger.debug(
        "generate_random_graph: %d nodes, %d edges on %.0fx%.0f canvas",
        graph.node_count, graph.edge_count, width, height,
    )
    return graph
