"""
simulator/control_plane/preflight.py
────────────────────────────────────
Preflight control: refuse a start or a step before the engine runs.

The engine itself never refuses. tick() happily advances any state it is
given, and stalls or missing edges degrade numerically rather than raise.
The two conditions a user must be told about are checked here, at the
boundary, before any tick runs and before any state changes.

What it checks
───────────────
  1. InsufficientGraph   — fewer than MIN_SIMULATION_NODES nodes. With one
                           or two nodes every tour is trivial; with zero
                           there is nowhere to spawn an ant.

  2. MaxIterationsReached — current_iteration ≥ params.iterations. Further
                           ticks would run past the configured budget; the
                           caller should stop scheduling.

What it does NOT check
───────────────────────
  • Parameter ranges — pydantic validates ACOParameters on construction.
  • Graph well-formedness — the Graph constructor enforces it.
"""

from __future__ import annotations

from simulator.shared.models import ACOParameters, SimulationState

MIN_SIMULATION_NODES: int = 3
"""Smallest graph the simulator will start or step on."""


class SimulationRefusedError(Exception):
    """
    Base class for advisory refusals raised before a tick runs.

    Attributes:
        reason: Human-readable explanation, suitable for a user notification.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class InsufficientGraphError(SimulationRefusedError):
    """Raised when the graph has fewer than MIN_SIMULATION_NODES nodes."""

    def __init__(self, node_count: int) -> None:
        self.node_count = node_count
        super().__init__(
            f"Need at least {MIN_SIMULATION_NODES} nodes to run the simulation "
            f"(graph has {node_count})."
        )


class MaxIterationsReachedError(SimulationRefusedError):
    """Raised when the iteration budget is already spent."""

    def __init__(self, current_iteration: int, iterations: int) -> None:
        self.current_iteration = current_iteration
        self.iterations = iterations
        super().__init__(
            f"Maximum iterations reached ({current_iteration}/{iterations})."
        )


def check_graph(state: SimulationState) -> None:
    """
    Raises:
        InsufficientGraphError: if the graph is too small to simulate.
    """
    node_count = len(state.graph.nodes)
    if node_count < MIN_SIMULATION_NODES:
        raise InsufficientGraphError(node_count)


def check_iterations(state: SimulationState, params: ACOParameters) -> None:
    """
    Raises:
        MaxIterationsReachedError: if no generations remain.
    """
    if state.current_iteration >= params.iterations:
        raise MaxIterationsReachedError(state.current_iteration, params.iterations)


def check_can_start(state: SimulationState) -> None:
    """
    Gate for starting the timer. Only the graph size matters: a finished
    run is restarted from iteration 0 by the service, not refused.
    """
    check_graph(state)


def check_can_step(state: SimulationState, params: ACOParameters) -> None:
    """Gate for a single tick: graph size first, then the iteration budget."""
    check_graph(state)
    check_iterations(state, params)
