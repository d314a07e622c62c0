"""
simulator/control_plane/simulation_service.py
─────────────────────────────────────────────
SimulationService: the stateful session the UI and the timer talk to.

What it owns
─────────────
  - the current SimulationState snapshot (replaced wholesale, never edited)
  - the current ACOParameters
  - the single seedable RandomSource every engine call draws from

What it does NOT own
─────────────────────
  - the timer. An external scheduler calls scheduled_tick() every
    state.speed_ms milliseconds while state.running is True, and stops when
    it returns {"status": "COMPLETE"}. run() is a headless stand-in that
    calls scheduled_tick() in a loop without sleeping.
  - rendering, pointer handling, sliders, notifications.

Boundary contract
──────────────────
Public methods return status dictionaries and never raise for the advisory
conditions (too few nodes, iteration budget spent). Those are raised by
preflight.py and converted here, the same way the UI turns them into toast
messages:

    {"status": "STEPPED"|"STARTED"|"STOPPED"|"RESET"|"REJECTED"|"COMPLETE",
     "message": str, ...}

Thread safety
──────────────
Not thread-safe. Ticks must be applied strictly one after another on the
same lineage, and graph edits only happen between ticks. Callers driving
the service from several threads must serialise access themselves.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import numpy as np

from aco_core import graph as graph_ops
from aco_core.colony import tick
from aco_core.generator import CANVAS_HEIGHT, CANVAS_WIDTH, generate_random_graph
from aco_core.rng import RandomSource, make_rng
from simulator.control_plane.preflight import (
    InsufficientGraphError,
    MaxIterationsReachedError,
    check_can_start,
    check_can_step,
)
from simulator.shared.models import (
    DEFAULT_PARAMETERS,
    ACOParameters,
    NodeId,
    SimulationState,
)

logger = logging.getLogger(__name__)

RANDOM_NODE_COUNT_RANGE = (5, 10)
"""Inclusive bounds for the node count of an unsized random graph."""

StatusDict = Dict[str, Union[str, int, float, None]]


@dataclass
class RunSummary:
    """Outcome of a headless run()."""

    status: str
    ticks: int
    iterations: int
    best_tour: List[NodeId] = field(default_factory=list)
    best_tour_length: float = math.inf
    message: str = ""


class SimulationService:
    """
    One editing + simulation session.

    Public API:
        generate_random_graph(node_count)  → StatusDict
        start() / stop() / step() / reset() → StatusDict
        scheduled_tick()                   → StatusDict  (timer callback)
        run(max_ticks)                     → RunSummary  (headless)
        set_parameters(...) / set_speed(ms)
        add_node(x, y) / remove_node(id) / move_node(id, x, y)
        recompute_distances()
        get_metrics()                      → Dict

    Attributes:
        state       : SimulationState — current snapshot.
        parameters  : ACOParameters   — current knobs (already clamped).
        ticks       : int             — ticks applied since construction.
    """

    def __init__(
        self,
        parameters: Optional[ACOParameters] = None,
        seed: Optional[int] = None,
        rng: Optional[RandomSource] = None,
        width: float = CANVAS_WIDTH,
        height: float = CANVAS_HEIGHT,
        max_workers: Optional[int] = None,
    ) -> None:
        """
        Args:
            parameters:  Initial parameters; DEFAULT_PARAMETERS if None.
                         Kept as given (not clamped) so scripted sessions can
                         use small budgets.
            seed:        Seed for the session's generator. Ignored if rng given.
            rng:         Explicit RandomSource (e.g. a test double).
            width:       Canvas width for random graphs.
            height:      Canvas height for random graphs.
            max_workers: Thread-pool size for per-ant moves (None = sequential).
        """
        self.parameters: ACOParameters = parameters or DEFAULT_PARAMETERS
        self._rng: RandomSource = rng if rng is not None else make_rng(seed)
        self._width = width
        self._height = height
        self._max_workers = max_workers
        self.state: SimulationState = SimulationState()
        self.ticks: int = 0

    # ── Graph lifecycle ────────────────────────────────────────────────────────

    def generate_random_graph(self, node_count: Optional[int] = None) -> StatusDict:
        """
        Replace the graph with a random one and start a fresh session on it.

        Args:
            node_count: Number of nodes. Drawn from RANDOM_NODE_COUNT_RANGE
                        when omitted.
        """
        if node_count is None:
            lo, hi = RANDOM_NODE_COUNT_RANGE
            node_count = int(self._rng.integers(lo, hi + 1))

        graph = generate_random_graph(node_count, self._width, self._height, rng=self._rng)
        self.state = SimulationState(graph=graph, speed_ms=self.state.speed_ms)

        logger.info("Generated a random graph with %d nodes", node_count)
        return {
            "status": "GENERATED",
            "node_count": node_count,
            "message": f"Generated a random graph with {node_count} nodes",
        }

    def add_node(self, x: float, y: float, node_id: Optional[NodeId] = None) -> StatusDict:
        """Add a node at (x, y) linked both ways to every existing node."""
        try:
            graph = graph_ops.add_node(self.state.graph, x, y, node_id=node_id)
        except ValueError as e:
            logger.warning("add_node refused: %s", e)
            return {"status": "REJECTED", "node_id": node_id, "message": str(e)}

        new_id = graph.nodes[-1].node_id
        self.state = self.state.model_copy(update={"graph": graph})
        return {"status": "ADDED", "node_id": new_id, "message": f"Added node {new_id}"}

    def remove_node(self, node_id: NodeId) -> StatusDict:
        """Remove a node and every edge touching it."""
        if not self.state.graph.has_node(node_id):
            logger.warning("remove_node: unknown node_id=%s", node_id)
            return {"status": "ERROR", "node_id": node_id, "message": f"Node {node_id} not found"}

        graph = graph_ops.remove_node(self.state.graph, node_id)
        self.state = self.state.model_copy(update={"graph": graph})
        return {"status": "REMOVED", "node_id": node_id, "message": f"Removed node {node_id}"}

    def move_node(self, node_id: NodeId, x: float, y: float) -> StatusDict:
        """Reposition a node. Edge distances are left as they were."""
        if not self.state.graph.has_node(node_id):
            logger.warning("move_node: unknown node_id=%s", node_id)
            return {"status": "ERROR", "node_id": node_id, "message": f"Node {node_id} not found"}

        graph = graph_ops.move_node(self.state.graph, node_id, x, y)
        self.state = self.state.model_copy(update={"graph": graph})
        return {"status": "MOVED", "node_id": node_id, "message": f"Moved node {node_id}"}

    def recompute_distances(self) -> StatusDict:
        """Rebuild every edge from current positions (resets pheromone)."""
        graph = graph_ops.rebuild_edges(self.state.graph)
        self.state = self.state.model_copy(update={"graph": graph})
        return {
            "status": "REBUILT",
            "edge_count": graph.edge_count,
            "message": f"Rebuilt {graph.edge_count} edges",
        }

    # ── Simulation control ─────────────────────────────────────────────────────

    def start(self) -> StatusDict:
        """
        Mark the session running so the external timer begins ticking.

        A session that already used up its iteration budget is reset to
        iteration 0 first (graph and pheromone are kept).
        """
        try:
            check_can_start(self.state)
        except InsufficientGraphError as e:
            logger.warning("start refused: %s", e.reason)
            return {"status": "REJECTED", "message": e.reason}

        if self.state.current_iteration >= self.parameters.iterations:
            self.state = self._cleared_progress()
        self.state = self.state.model_copy(update={"running": True})

        logger.info(
            "Simulation started (%d nodes, %d ants, %d iterations)",
            self.state.graph.node_count, self.parameters.ant_count,
            self.parameters.iterations,
        )
        return {"status": "STARTED", "message": "Simulation started"}

    def stop(self) -> StatusDict:
        self.state = self.state.model_copy(update={"running": False})
        logger.info("Simulation stopped at iteration %d", self.state.current_iteration)
        return {"status": "STOPPED", "message": "Simulation stopped"}

    def step(self) -> StatusDict:
        """Apply exactly one tick, unless refused by preflight."""
        try:
            check_can_step(self.state, self.parameters)
        except InsufficientGraphError as e:
            logger.warning("step refused: %s", e.reason)
            return {"status": "REJECTED", "message": e.reason}
        except MaxIterationsReachedError as e:
            logger.info("step refused: %s", e.reason)
            return {"status": "COMPLETE", "message": e.reason}

        return self._apply_tick()

    def scheduled_tick(self) -> StatusDict:
        """
        Timer callback. Ticks once, or reports completion and clears running.

        Returns {"status": "COMPLETE"} once the iteration budget is spent;
        the scheduler should cancel its timer on that status.
        """
        try:
            check_can_step(self.state, self.parameters)
        except MaxIterationsReachedError:
            self.state = self.state.model_copy(update={"running": False})
            message = f"Simulation complete. Best tour length: {self.state.best_tour_length:.2f}"
            logger.info(
                "Simulation complete after %d iterations, best tour length %.2f",
                self.state.current_iteration, self.state.best_tour_length,
            )
            return {
                "status": "COMPLETE",
                "best_tour_length": self.state.best_tour_length,
                "message": message,
            }
        except InsufficientGraphError as e:
            self.state = self.state.model_copy(update={"running": False})
            logger.warning("scheduled_tick refused: %s", e.reason)
            return {"status": "REJECTED", "message": e.reason}

        return self._apply_tick()

    def reset(self) -> StatusDict:
        """Clear ants, best tour and iteration counter. The graph is kept."""
        self.state = self._cleared_progress()
        logger.info("Simulation reset")
        return {"status": "RESET", "message": "Simulation reset"}

    def run(self, max_ticks: Optional[int] = None) -> RunSummary:
        """
        Headless run: start, then call scheduled_tick() until COMPLETE.

        Args:
            max_ticks: Safety cap on ticks. None runs to the iteration limit
                       (stalled colonies still finish, so this terminates).

        Returns:
            RunSummary with status "COMPLETE", "REJECTED" or "STOPPED"
            (when max_ticks was hit first).
        """
        started = self.start()
        if started["status"] == "REJECTED":
            return RunSummary(
                status="REJECTED", ticks=0,
                iterations=self.state.current_iteration,
                message=str(started["message"]),
            )

        ticks = 0
        status: StatusDict = started
        while max_ticks is None or ticks < max_ticks:
            status = self.scheduled_tick()
            if status["status"] in ("COMPLETE", "REJECTED"):
                break
            ticks += 1
        else:
            status = self.stop()

        return RunSummary(
            status=str(status["status"]),
            ticks=ticks,
            iterations=self.state.current_iteration,
            best_tour=list(self.state.best_tour),
            best_tour_length=self.state.best_tour_length,
            message=str(status["message"]),
        )

    # ── Settings ───────────────────────────────────────────────────────────────

    def set_parameters(self, parameters: Optional[ACOParameters] = None, **changes: float) -> ACOParameters:
        """
        Replace the parameters, clamped to the UI ranges.

        Either pass a full ACOParameters, keyword changes applied on top of
        the current ones, or both.

        Raises:
            pydantic.ValidationError: if a change violates a hard invariant
                                      (e.g. rho=0).
        """
        base = parameters or self.parameters
        if changes:
            base = ACOParameters(**{**base.model_dump(), **changes})
        self.parameters = base.clamped()
        logger.debug("Parameters updated: %s", self.parameters)
        return self.parameters

    def set_speed(self, speed_ms: int) -> None:
        """Timer interval in ms. Takes effect on the scheduler's next reschedule."""
        self.state = self.state.model_copy(update={"speed_ms": max(1, int(speed_ms))})

    # ── Read-only queries ──────────────────────────────────────────────────────

    def get_metrics(self) -> Dict[str, Union[int, float, bool]]:
        """Snapshot of progress and pheromone statistics for a status panel."""
        graph = self.state.graph
        n = graph.node_count
        tau = graph.pheromones
        completed = sum(1 for a in self.state.ants if a.is_complete(n))

        return {
            "node_count": n,
            "edge_count": graph.edge_count,
            "iteration": self.state.current_iteration,
            "max_iterations": self.parameters.iterations,
            "running": self.state.running,
            "ticks": self.ticks,
            "ant_count": len(self.state.ants),
            "ants_completed": completed,
            "best_tour_length": self.state.best_tour_length,
            "pheromone_min": float(tau.min()) if tau.size else 0.0,
            "pheromone_max": float(tau.max()) if tau.size else 0.0,
            "pheromone_mean": float(np.mean(tau)) if tau.size else 0.0,
        }

    # ── Private helpers ────────────────────────────────────────────────────────

    def _apply_tick(self) -> StatusDict:
        previous_best = self.state.best_tour_length
        previous_iteration = self.state.current_iteration

        self.state = tick(self.state, self.parameters, self._rng, max_workers=self._max_workers)
        self.ticks += 1

        if self.state.current_iteration > previous_iteration:
            if self.state.best_tour_length < previous_best:
                logger.info(
                    "Iteration %d: new best tour length %.2f",
                    self.state.current_iteration, self.state.best_tour_length,
                )
            else:
                logger.debug("Iteration %d complete", self.state.current_iteration)

        return {
            "status": "STEPPED",
            "iteration": self.state.current_iteration,
            "best_tour_length": self.state.best_tour_length,
            "message": f"Iteration {self.state.current_iteration}",
        }

    def _cleared_progress(self) -> SimulationState:
        return self.state.model_copy(
            update={
                "ants": (),
                "best_tour": (),
                "best_tour_length": math.inf,
                "current_iteration": 0,
                "running": False,
            }
        )

    def __repr__(self) -> str:
        return (
            f"SimulationService(nodes={self.state.graph.node_count}, "
            f"iteration={self.state.current_iteration}/{self.parameters.iterations}, "
            f"running={self.state.running})"
        )
