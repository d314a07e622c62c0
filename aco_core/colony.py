"""
aco_core/colony.py
──────────────────
The iteration engine: advances the whole colony by one discrete step.

How a tick works
─────────────────
tick(state, params, rng) → new SimulationState. It is a pure function of
its arguments: no I/O, no hidden globals, no mutation of `state`.

  1. Bootstrap.  If there are no ants, or the lead ant already holds a
                 closed tour from an earlier tick, spawn a fresh generation.
                 New generations are detected lazily this way rather than
                 through an explicit phase flag.
  2. Move.       Every ant takes at most one hop (see mover.py).
  3. Detect.     Is every ant finished — complete, or stalled with no
                 possible move? If not, return the state with the new ants
                 and nothing else changed.
  4. Update.     Generation over:
                   a. evaporate + deposit pheromone (pheromone.py)
                   b. best completed tour replaces the global best only if
                      strictly shorter
                   c. current_iteration += 1
                   d. spawn the next generation right away, so the returned
                      state is ready for the next call without an idle tick.
  5. Return the new snapshot.

Colony states across ticks
───────────────────────────
  Bootstrapping ──spawn──▶ Stepping ──all ants finished──▶ Bootstrapping

Stalled ants
─────────────
An ant with no unvisited neighbour and no closing edge never completes.
It counts as finished for generation detection (so it cannot hold the
colony hostage) but deposits nothing and never competes for best tour.

Terminal condition
───────────────────
tick() does not look at params.iterations. Stopping once
current_iteration ≥ iterations is the caller's job (see
simulator.control_plane.preflight).
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from aco_core.ant import spawn_ants
from aco_core.mover import advance_ants, is_stalled
from aco_core.pheromone import update_pheromones
from aco_core.rng import RandomSource, make_rng
from simulator.shared.models import ACOParameters, Ant, Graph, SimulationState

logger = logging.getLogger(__name__)


def needs_new_generation(state: SimulationState) -> bool:
    """True when tick() would spawn before moving."""
    if not state.ants:
        return True
    return state.ants[0].is_complete(len(state.graph.nodes))


def generation_finished(graph: Graph, ants: Sequence[Ant]) -> bool:
    """Every ant has either closed its tour or can never move again."""
    n = len(graph.nodes)
    return all(ant.is_complete(n) or is_stalled(graph, ant) for ant in ants)


def tick(
    state: SimulationState,
    params: ACOParameters,
    rng: Optional[RandomSource] = None,
    max_workers: Optional[int] = None,
) -> SimulationState:
    """
    Advance the simulation by one time step.

    Args:
        state:       Current snapshot. Never modified.
        params:      Algorithm parameters.
        rng:         Randomness source. Pass a seeded generator for
                     reproducible runs; a fresh unseeded one is used if None.
        max_workers: Optional thread-pool size for per-ant moves.

    Returns:
        A new SimulationState.

    Raises:
        ValueError: if the graph has no nodes (nothing to spawn on).
    """
    rng = rng if rng is not None else make_rng()
    graph = state.graph

    ants = state.ants
    if needs_new_generation(state):
        ants = spawn_ants(graph, params.ant_count, rng)

    ants = advance_ants(graph, ants, params, rng, max_workers=max_workers)

    if not generation_finished(graph, ants):
        return state.model_copy(update={"ants": ants})

    # ── Generation complete: join point for the pheromone update ──────────
    new_graph = Graph(nodes=graph.nodes, edges=update_pheromones(graph, ants, params))

    node_count = len(graph.nodes)
    completed = [ant for ant in ants if ant.is_complete(node_count)]

    best_tour = state.best_tour
    best_tour_length = state.best_tour_length
    if completed:
        generation_best = min(completed, key=lambda a: a.tour_length)
        if generation_best.tour_length < best_tour_length:
            best_tour = generation_best.visited_nodes
            best_tour_length = generation_best.tour_length

    iteration = state.current_iteration + 1
    logger.debug(
        "tick: generation %d done (%d/%d ants completed, best=%.4f)",
        iteration, len(completed), len(ants), best_tour_length,
    )

    return state.model_copy(
        update={
            "graph": new_graph,
            "ants": spawn_ants(new_graph, params.ant_count, rng),
            "best_tour": best_tour,
            "best_tour_length": best_tour_length,
            "current_iteration": iteration,
        }
    )
