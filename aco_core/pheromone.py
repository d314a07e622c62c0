"""
aco_core/pheromone.py
─────────────────────
The pheromone trail: the colony's shared, persistent memory.

What is pheromone?
──────────────────
In nature, ants deposit chemical pheromone on paths they walk.
Shorter paths get reinforced more, and over time the colony converges on
a short route — without any ant having a global view of the graph.

Here τ(e) is a non-negative scalar on every directed edge e.

Two forces balance each other, applied once per completed generation:
  1. Evaporation  — every edge: τ ← τ × (1 − ρ), used or not.
                    Keeps early, mediocre tours from locking the colony in.
  2. Deposit      — every completed ant adds Q / L (L = its tour length)
                    to each edge of its closed tour, including the final
                    edge back to its start. Shorter tours deposit more.
                    Several ants on the same edge add up.

Evaporation always runs before deposit so the fresh deposit is not
immediately weakened.

Array layout
────────────
  τ is a float64 vector aligned with graph.edges (slot k ↔ edges[k]).
  PheromoneTrail copies graph.pheromones on construction and works on its
  own buffer; the source Graph is never touched. to_edges() folds the
  buffer back into a new tuple of Edge values.

  Deposits use np.add.at, which accumulates correctly when the same slot
  appears more than once in one call.
"""

from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from simulator.shared.models import ACOParameters, Ant, Edge, Graph, NodeId

logger = logging.getLogger(__name__)


class PheromoneTrail:
    """
    A mutable working copy of a graph's pheromone levels.

    Used by:
        update_pheromones() → evaporate() then deposit_tour() per completed ant.
        Tests               → snapshot() to inspect intermediate state.

    Thread safety:
        Not thread-safe. The update runs once per generation, after every
        ant move for the tick has been merged.
    """

    def __init__(self, graph: Graph) -> None:
        self._graph = graph
        self._tau: NDArray[np.float64] = np.array(graph.pheromones, dtype=np.float64, copy=True)
        self._skipped_lookups: int = 0

    # ── Core operations ────────────────────────────────────────────────────────

    def evaporate(self, rho: float) -> None:
        """Scale every edge's pheromone by (1 − rho), in place."""
        self._tau *= (1.0 - rho)

    def deposit_tour(self, path: Sequence[NodeId], amount: float) -> int:
        """
        Add `amount` to every edge between consecutive ids in `path`.

        `path` is the ant's visited sequence; for a completed ant it already
        ends with its start id, so the closing edge is one of the pairs.

        Pairs with no matching edge are skipped silently.

        Returns:
            Number of edges that received the deposit.
        """
        slots: List[int] = []
        for source, target in zip(path, path[1:]):
            slot = self._graph.edge_slot(source, target)
            if slot is None:
                self._skipped_lookups += 1
                continue
            slots.append(slot)

        if slots:
            np.add.at(self._tau, np.asarray(slots, dtype=np.intp), amount)
        return len(slots)

    # ── Output ─────────────────────────────────────────────────────────────────

    def to_edges(self) -> Tuple[Edge, ...]:
        """New Edge values carrying the updated pheromone, in graph order."""
        return tuple(
            edge.model_copy(update={"pheromone": float(tau)})
            for edge, tau in zip(self._graph.edges, self._tau)
        )

    def snapshot(self) -> NDArray[np.float64]:
        """Copy of the working buffer. Mutating it does not affect the trail."""
        return self._tau.copy()

    @property
    def skipped_lookups(self) -> int:
        """Path pairs that had no edge since this trail was created."""
        return self._skipped_lookups

    def __repr__(self) -> str:
        if self._tau.size == 0:
            return "PheromoneTrail(edges=0)"
        return (
            f"PheromoneTrail(edges={self._tau.size}, "
            f"min={self._tau.min():.4f}, max={self._tau.max():.4f}, "
            f"mean={self._tau.mean():.4f})"
        )


def update_pheromones(
    graph: Graph,
    ants: Sequence[Ant],
    params: ACOParameters,
) -> Tuple[Edge, ...]:
    """
    Evaporate everywhere, then deposit for every completed ant.

    Args:
        graph:  Graph whose pheromone is the starting point.
        ants:   The generation. Only ants with len(visited) > node count
                contribute; the rest are ignored.
        params: Supplies rho and q.

    Returns:
        The full edge tuple with new pheromone values, in graph order.
    """
    trail = PheromoneTrail(graph)
    trail.evaporate(params.rho)

    node_count = len(graph.nodes)
    contributors = 0
    for ant in ants:
        if not ant.is_complete(node_count):
            continue
        if ant.tour_length <= 0.0:
            continue  # only reachable with coincident nodes
        trail.deposit_tour(ant.visited_nodes, params.q / ant.tour_length)
        contributors += 1

    if trail.skipped_lookups:
        logger.debug(
            "update_pheromones: %d tour pairs had no edge and were skipped",
            trail.skipped_lookups,
        )
    logger.debug("update_pheromones: %d ants deposited, %r", contributors, trail)
    return trail.to_edges()
