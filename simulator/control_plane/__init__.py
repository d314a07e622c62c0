"""
simulator/control_plane — the session layer between the UI and the engine.

Public API:
    SimulationService          — stateful session: generate, edit, start,
                                 stop, step, scheduled_tick, reset, run
    RunSummary                 — result of a headless run()
    SimulationRefusedError     — base for advisory refusals
    InsufficientGraphError     — fewer than MIN_SIMULATION_NODES nodes
    MaxIterationsReachedError  — iteration budget spent
    check_can_start / check_can_step — preflight gates
"""

from simulator.control_plane.preflight import (
    MIN_SIMULATION_NODES,
    InsufficientGraphError,
    MaxIterationsReachedError,
    SimulationRefusedError,
    check_can_start,
    check_can_step,
)
from simulator.control_plane.simulation_service import RunSummary, SimulationService

__all__ = [
    "SimulationService",
    "RunSummary",
    "SimulationRefusedError",
    "InsufficientGraphError",
    "MaxIterationsReachedError",
    "MIN_SIMULATION_NODES",
    "check_can_start",
    "check_can_step",
]
