"""
aco_core/ant.py
───────────────
Ants: spawning a generation, and the rule one ant uses to pick its next hop.

What does an ant do?
─────────────────────
An ant is one independent attempt at a tour. It starts on a random node
and, one hop per tick, moves to a node it has not visited yet — not always
the nearest one, but more likely the nearer and better-trodden ones. Once
every node is visited it walks back to its start, closing the tour.

The two inputs to every decision
──────────────────────────────────
1. Pheromone trail (τ)   — what did earlier generations learn?
   Stored per directed edge in the Graph. High τ on a → b means completed
   tours through a → b have tended to be short.

2. Distance (d)          — what does geometry say right now?
   The heuristic is 1/d: short hops are attractive.

The selection formula
──────────────────────
desirability(e) = τ(e)^α × (1 / d(e))^β

  α = 0 → pheromone is ignored (pure greedy-random on distance).
  β = 0 → distance is ignored (pure trail following).

Roulette wheel
───────────────
Candidates are NOT filtered or re-sorted: their order is the graph's edge
order, and ties at a cumulative boundary resolve to the earlier candidate.

    weights    = [w0, w1, w2, …]
    cumsum     = [w0, w0+w1, w0+w1+w2, …]
    r          = draw × total          draw ∈ [0, 1)
    chosen     = first i with cumsum[i] ≥ r

np.searchsorted(cumsum, r, side="left") is exactly "first i with
cumsum[i] ≥ r". If rounding leaves r above cumsum[-1], searchsorted returns
len(candidates) and we take the LAST candidate — never the first, which
would bias the boundary case toward low-indexed edges.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from aco_core.rng import RandomSource
from simulator.shared.models import ACOParameters, Ant, Edge, Graph

logger = logging.getLogger(__name__)


# ── Spawning ───────────────────────────────────────────────────────────────────

def spawn_ants(graph: Graph, count: int, rng: RandomSource) -> Tuple[Ant, ...]:
    """
    Create a fresh generation of `count` ants on uniformly random start nodes.

    Start nodes are independent draws with replacement: two ants may share
    a start. All draws come from one rng.integers call, in ant order.

    Args:
        graph: Graph to spawn on. Must contain at least one node.
        count: Number of ants, ≥ 0.
        rng:   Randomness source.

    Returns:
        Tuple of ants "ant-0" … "ant-{count-1}", each with
        visited_nodes = (start,) and tour_length = 0.0.

    Raises:
        ValueError: if the graph is empty or count is negative. Both are
                    caller bugs — the service refuses small graphs before
                    the engine ever runs.
    """
    if not graph.nodes:
        raise ValueError("Cannot spawn ants on a graph with no nodes.")
    if count < 0:
        raise ValueError(f"Ant count must be ≥ 0, got {count}")
    if count == 0:
        return ()

    starts = np.asarray(rng.integers(0, len(graph.nodes), size=count)).reshape(-1)

    return tuple(
        Ant(
            ant_id=f"ant-{i}",
            current_node=graph.nodes[int(slot)].node_id,
            visited_nodes=(graph.nodes[int(slot)].node_id,),
            tour_length=0.0,
        )
        for i, slot in enumerate(starts)
    )


# ── Candidates ─────────────────────────────────────────────────────────────────

def candidate_slots(graph: Graph, ant: Ant) -> List[int]:
    """
    Edge slots leaving the ant's current node whose target it has not visited.

    Order is the graph's edge order. An empty list means the ant is trapped
    (every neighbour visited or no outgoing edges at all).
    """
    visited = set(ant.visited_nodes)
    return [
        k for k in graph.outgoing_slots(ant.current_node)
        if graph.edges[k].target not in visited
    ]


def candidate_edges(graph: Graph, ant: Ant) -> List[Edge]:
    return [graph.edges[k] for k in candidate_slots(graph, ant)]


# ── Transition rule ────────────────────────────────────────────────────────────

def desirability(
    pheromones: np.ndarray,
    distances: np.ndarray,
    params: ACOParameters,
) -> np.ndarray:
    """
    τ^α × (1/d)^β, elementwise.

    Zero distance (coincident nodes) is undefined; the division is silenced
    so it yields inf rather than a RuntimeWarning.
    """
    with np.errstate(divide="ignore"):
        heuristic = 1.0 / distances
    return np.power(pheromones, params.alpha) * np.power(heuristic, params.beta)


def select_index(weights: np.ndarray, draw: float) -> Optional[int]:
    """
    Roulette-wheel pick over `weights` using one uniform draw in [0, 1).

    Returns None for an empty weight vector.
    """
    n = len(weights)
    if n == 0:
        return None

    cumsum = np.cumsum(weights)
    r = draw * float(cumsum[-1])
    chosen = int(np.searchsorted(cumsum, r, side="left"))
    # Rounding can leave r above the running sum; fall back to the last slot.
    return min(chosen, n - 1)


def select_edge(
    candidates: Sequence[Edge],
    params: ACOParameters,
    draw: float,
) -> Optional[Edge]:
    """
    Apply the transition rule to an explicit candidate list.

    Args:
        candidates: Edges leaving the current node toward unvisited targets,
                    in graph order. Not filtered or re-sorted here.
        params:     Supplies alpha and beta.
        draw:       Uniform value in [0, 1) from the caller's RandomSource.

    Returns:
        The chosen edge, or None when there is no candidate ("no move
        available" — a normal outcome for a trapped ant, not an error).
    """
    if not candidates:
        return None
    tau = np.array([e.pheromone for e in candidates], dtype=np.float64)
    dist = np.array([e.distance for e in candidates], dtype=np.float64)
    chosen = select_index(desirability(tau, dist, params), draw)
    return candidates[chosen]


def select_slot(
    graph: Graph,
    slots: Sequence[int],
    params: ACOParameters,
    draw: float,
) -> Optional[int]:
    """
    Same rule as select_edge(), reading τ and d straight from the graph's
    numpy views instead of building per-edge lists. Used on the hot path.
    """
    if not slots:
        return None
    idx = np.asarray(slots, dtype=np.intp)
    weights = desirability(graph.pheromones[idx], graph.distances[idx], params)
    return slots[select_index(weights, draw)]


def choose_next_edge(
    graph: Graph,
    ant: Ant,
    params: ACOParameters,
    rng: RandomSource,
) -> Optional[Edge]:
    """Draw once from `rng` and pick the ant's next edge. None if trapped."""
    slots = candidate_slots(graph, ant)
    if not slots:
        return None
    slot = select_slot(graph, slots, params, float(rng.random()))
    return graph.edges[slot]
