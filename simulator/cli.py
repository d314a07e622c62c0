"""
simulator/cli.py
────────────────
Headless runner: generate a random graph, run the colony to its iteration
limit, print the best tour.

    aco-sim --nodes 12 --ants 20 --iterations 200 --seed 7
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from aco_core.generator import CANVAS_HEIGHT, CANVAS_WIDTH
from simulator.control_plane.simulation_service import SimulationService
from simulator.shared.models import DEFAULT_PARAMETERS, ACOParameters

EXIT_OK = 0
EXIT_REFUSED = 2


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="aco-sim",
        description="Ant Colony Optimisation on a random fully connected graph.",
    )
    g = p.add_argument_group("Graph")
    g.add_argument("--nodes", type=int, default=None, help="Node count (default: random 5..10)")
    g.add_argument("--width", type=float, default=CANVAS_WIDTH, help="Canvas width")
    g.add_argument("--height", type=float, default=CANVAS_HEIGHT, help="Canvas height")

    a = p.add_argument_group("ACO parameters")
    a.add_argument("--ants", type=int, default=DEFAULT_PARAMETERS.ant_count, help="Ants per generation")
    a.add_argument("--alpha", type=float, default=DEFAULT_PARAMETERS.alpha, help="Pheromone importance")
    a.add_argument("--beta", type=float, default=DEFAULT_PARAMETERS.beta, help="Distance importance")
    a.add_argument("--rho", type=float, default=DEFAULT_PARAMETERS.rho, help="Evaporation rate (0, 1]")
    a.add_argument("--q", type=float, default=DEFAULT_PARAMETERS.q, help="Deposit factor")
    a.add_argument("--iterations", type=int, default=DEFAULT_PARAMETERS.iterations, help="Generations to run")

    r = p.add_argument_group("Run")
    r.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    r.add_argument("--workers", type=int, default=None, help="Thread-pool size for ant moves")
    r.add_argument("--max-ticks", type=int, default=None, help="Stop after this many ticks")
    r.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, …)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_argparser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    params = ACOParameters(
        ant_count=args.ants,
        alpha=args.alpha,
        beta=args.beta,
        rho=args.rho,
        q=args.q,
        iterations=args.iterations,
    )
    service = SimulationService(
        parameters=params,
        seed=args.seed,
        width=args.width,
        height=args.height,
        max_workers=args.workers,
    )
    service.generate_random_graph(args.nodes)

    summary = service.run(max_ticks=args.max_ticks)
    if summary.status == "REJECTED":
        print(summary.message)
        return EXIT_REFUSED

    graph = service.state.graph
    labels = [
        (graph.node(node_id).label or node_id) if graph.node(node_id) else node_id
        for node_id in summary.best_tour
    ]
    print("Best tour:", " -> ".join(labels) if labels else "(none)")
    print(f"Length: {summary.best_tour_length:.4f}")
    print(f"Iterations: {summary.iterations}  Ticks: {summary.ticks}")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
