"""
aco_core — Ant Colony Optimisation simulation engine.

Public API:
    generate_random_graph — random fully connected problem instance
    spawn_ants            — fresh generation on random start nodes
    tick                  — advance the colony by one step (pure function)
    tour_length           — closed-tour length of a node id sequence
    add_node / remove_node / move_node / rebuild_edges — between-tick edits
    make_rng              — seedable RandomSource for reproducible runs

Usage:
    from aco_core import generate_random_graph, make_rng, tick
    from simulator.shared.models import ACOParameters, SimulationState

    rng    = make_rng(seed=7)
    state  = SimulationState(graph=generate_random_graph(8, rng=rng))
    params = ACOParameters()
    while state.current_iteration < params.iterations:
        state = tick(state, params, rng)
"""

from aco_core.ant import choose_next_edge, select_edge, spawn_ants
from aco_core.colony import tick
from aco_core.generator import generate_random_graph
from aco_core.graph import (
    add_node,
    build_complete_graph,
    move_node,
    rebuild_edges,
    remove_node,
    tour_length,
)
from aco_core.mover import advance_ants
from aco_core.pheromone import update_pheromones
from aco_core.rng import RandomSource, make_rng

__all__ = [
    "generate_random_graph",
    "build_complete_graph",
    "spawn_ants",
    "select_edge",
    "choose_next_edge",
    "advance_ants",
    "update_pheromones",
    "tick",
    "tour_length",
    "add_node",
    "remove_node",
    "move_node",
    "rebuild_edges",
    "RandomSource",
    "make_rng",
]
