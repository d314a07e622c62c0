"""
aco_core/mover.py
─────────────────
Advance every ant in the current generation by (at most) one hop.

Per-ant rule
─────────────
  1. Already complete (visited all nodes and closed the loop)
       → unchanged.
  2. Visited every node but not closed yet
       → take the closing edge current → start if it exists,
         else stay put (stalled on a malformed graph).
  3. Otherwise
       → candidates = outgoing edges to unvisited targets.
         None → stay put (trapped; it will not complete this generation).
         Some → transition rule picks one; append its target, add its
                distance.

Independence and determinism
─────────────────────────────
No ant's move reads another ant's move from the same tick, so the per-ant
work can fan out over a thread pool. To keep seeded runs bit-identical
regardless of scheduling, every random draw for the tick is taken up front:
exactly one uniform per ant, in ant order, before any move is computed.
Ants that do not need their draw (closing, complete, trapped) simply ignore
it. Results are gathered back in ant order, so the returned tuple is the
single merged snapshot the pheromone update waits on.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence, Tuple

import numpy as np

from aco_core.ant import candidate_slots, select_slot
from aco_core.rng import RandomSource
from simulator.shared.models import ACOParameters, Ant, Graph

logger = logging.getLogger(__name__)

PARALLEL_MIN_ANTS: int = 16
"""Below this many ants the thread pool costs more than it saves."""


def move_ant(graph: Graph, ant: Ant, params: ACOParameters, draw: float) -> Ant:
    """
    Return `ant` after one hop, or the same ant when it cannot move.

    Args:
        graph:  Current graph (read-only).
        ant:    The ant to advance.
        params: Supplies alpha and beta for the transition rule.
        draw:   This ant's uniform value in [0, 1) for the tick.
    """
    n = len(graph.nodes)
    visited = len(ant.visited_nodes)

    if visited > n:
        return ant

    if visited == n:
        slot = graph.edge_slot(ant.current_node, ant.start_node)
        if slot is None:
            logger.debug(
                "move_ant: %s cannot close loop %s → %s (edge missing)",
                ant.ant_id, ant.current_node, ant.start_node,
            )
            return ant
        return _hop(graph, ant, slot)

    slots = candidate_slots(graph, ant)
    if not slots:
        logger.debug("move_ant: %s trapped at %s", ant.ant_id, ant.current_node)
        return ant

    return _hop(graph, ant, select_slot(graph, slots, params, draw))


def advance_ants(
    graph: Graph,
    ants: Sequence[Ant],
    params: ACOParameters,
    rng: RandomSource,
    max_workers: Optional[int] = None,
) -> Tuple[Ant, ...]:
    """
    Move every ant once and return the new generation in the same order.

    Args:
        graph:       Current graph.
        ants:        Current generation.
        params:      Algorithm parameters.
        rng:         Randomness source; exactly len(ants) uniforms are drawn.
        max_workers: Thread-pool size. None or ≤ 1 runs sequentially, as do
                     generations smaller than PARALLEL_MIN_ANTS.
    """
    if not ants:
        return ()

    draws = np.asarray(rng.random(len(ants)), dtype=np.float64).reshape(-1)

    if max_workers is None or max_workers <= 1 or len(ants) < PARALLEL_MIN_ANTS:
        return tuple(
            move_ant(graph, ant, params, float(draw))
            for ant, draw in zip(ants, draws)
        )

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="aco-mover") as pool:
        moved = pool.map(
            lambda pair: move_ant(graph, pair[0], params, float(pair[1])),
            zip(ants, draws),
        )
        return tuple(moved)


def is_stalled(graph: Graph, ant: Ant) -> bool:
    """
    True if the ant is incomplete and can never move again in this graph.

    Either it has visited every node and the closing edge is missing, or
    every outgoing edge leads somewhere it has already been.
    """
    n = len(graph.nodes)
    visited = len(ant.visited_nodes)
    if visited > n:
        return False
    if visited == n:
        return graph.edge_slot(ant.current_node, ant.start_node) is None
    return not candidate_slots(graph, ant)


# ── Private helpers ────────────────────────────────────────────────────────────

def _hop(graph: Graph, ant: Ant, slot: int) -> Ant:
    edge = graph.edges[slot]
    return Ant(
        ant_id=ant.ant_id,
        current_node=edge.target,
        visited_nodes=ant.visited_nodes + (edge.target,),
        tour_length=ant.tour_length + edge.distance,
    )
