"""
simulator/shared/models.py
──────────────────────────
The single source of truth for every data structure in the ACO simulator.

Design philosophy
-----------------
Every model is a value. The engine never edits a Graph, an Ant or a
SimulationState in place: it builds a new one and hands it back. Models are
frozen pydantic models and every sequence is a tuple, so a caller holding an
old snapshot can never see it change underneath them.

Reading guide
-------------
Read top-to-bottom. Each model builds on the ones above it.

  Node, Edge        → the raw graph elements.
  Graph             → arena of nodes/edges plus O(1) lookup indexes.
  Ant               → one path-building agent.
  ACOParameters     → the knobs the UI exposes.
  SimulationState   → the immutable snapshot passed tick to tick.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

NodeId = str
"""Stable string identity of a node, e.g. "node-3"."""


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 1: CONFIGURATION CONSTANTS
# Module-level so the service, the CLI and the tests share one definition.
# ─────────────────────────────────────────────────────────────────────────────

INITIAL_PHEROMONE: float = 1.0
"""Pheromone on every freshly created edge. All arcs start equally attractive."""

DEFAULT_TICK_INTERVAL_MS: int = 500
"""Milliseconds between scheduled ticks. Owned by the external timer."""

ANT_COUNT_RANGE: Tuple[int, int] = (1, 50)
ALPHA_RANGE: Tuple[float, float] = (0.0, 5.0)
BETA_RANGE: Tuple[float, float] = (0.0, 5.0)
RHO_RANGE: Tuple[float, float] = (0.01, 0.5)
"""Lower bound is the smallest step the UI slider offers; rho must stay > 0."""
Q_RANGE: Tuple[float, float] = (10.0, 1000.0)
ITERATIONS_RANGE: Tuple[int, int] = (10, 1000)


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 2: GRAPH ELEMENTS
# ─────────────────────────────────────────────────────────────────────────────

class Node(BaseModel):
    """
    A city on the canvas.

    Fields:
        node_id → Stable identity. Never reused within one graph.
        x, y    → Canvas position. Only used to derive edge distances.
        label   → Optional display text ("1", "2", …).
    """
    model_config = ConfigDict(frozen=True)

    node_id: NodeId = Field(..., min_length=1, description="Stable node identity")
    x: float = Field(..., description="Canvas x coordinate")
    y: float = Field(..., description="Canvas y coordinate")
    label: Optional[str] = Field(None, description="Display label")


class Edge(BaseModel):
    """
    A directed arc source → target.

    distance is computed once from node positions when the edge is created
    and is NOT refreshed when a node moves later. pheromone is the only field
    the engine changes, and it does so by building a new Edge.
    """
    model_config = ConfigDict(frozen=True)

    source: NodeId = Field(..., description="Origin node id")
    target: NodeId = Field(..., description="Destination node id")
    distance: float = Field(..., ge=0.0, description="Euclidean length at creation time")
    pheromone: float = Field(INITIAL_PHEROMONE, ge=0.0, description="Trail strength τ")

    @property
    def key(self) -> Tuple[NodeId, NodeId]:
        return (self.source, self.target)


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 3: GRAPH
# ─────────────────────────────────────────────────────────────────────────────

class Graph(BaseModel):
    """
    A set of nodes plus directed weighted edges, stored as an arena.

    Layout
    ──────
      nodes : Tuple[Node, ...]  — dense, index i is the node's arena slot.
      edges : Tuple[Edge, ...]  — dense, index k is the edge's arena slot.

    Indexes (built once per Graph value, never mutated afterwards):
      _node_index : Dict[NodeId, int]               node_id → slot
      _edge_index : Dict[(NodeId, NodeId), int]     (source, target) → slot
      _outgoing   : Dict[NodeId, List[int]]         source → edge slots, in edge order
      _distances  : NDArray[float64]  aligned with edges, read-only
      _pheromones : NDArray[float64]  aligned with edges, read-only

    The alternative — searching the edge list for every (source, target)
    lookup — is O(E) per hop and makes one tick quadratic in graph size.

    Invariants (checked on construction, ValueError otherwise):
      • node ids are unique
      • every edge's source and target resolve to a node in this graph
      • no self-loops, no duplicate (source, target) pairs

    Build new graphs with the constructor, never with model_copy(): the
    indexes are derived from the field values at construction time.
    """
    model_config = ConfigDict(frozen=True)

    nodes: Tuple[Node, ...] = Field(default_factory=tuple)
    edges: Tuple[Edge, ...] = Field(default_factory=tuple)

    _node_index: Dict[NodeId, int] = PrivateAttr(default_factory=dict)
    _edge_index: Dict[Tuple[NodeId, NodeId], int] = PrivateAttr(default_factory=dict)
    _outgoing: Dict[NodeId, List[int]] = PrivateAttr(default_factory=dict)
    _distances: NDArray[np.float64] = PrivateAttr(default=None)
    _pheromones: NDArray[np.float64] = PrivateAttr(default=None)

    def model_post_init(self, __context: object) -> None:
        node_index: Dict[NodeId, int] = {}
        for i, node in enumerate(self.nodes):
            if node.node_id in node_index:
                raise ValueError(f"Duplicate node id {node.node_id!r}")
            node_index[node.node_id] = i

        edge_index: Dict[Tuple[NodeId, NodeId], int] = {}
        outgoing: Dict[NodeId, List[int]] = {node_id: [] for node_id in node_index}
        for k, edge in enumerate(self.edges):
            if edge.source not in node_index or edge.target not in node_index:
                raise ValueError(
                    f"Edge {edge.source!r} → {edge.target!r} references a node "
                    f"that is not in the graph"
                )
            if edge.source == edge.target:
                raise ValueError(f"Self-loop on node {edge.source!r} is not allowed")
            if edge.key in edge_index:
                raise ValueError(f"Duplicate edge {edge.source!r} → {edge.target!r}")
            edge_index[edge.key] = k
            outgoing[edge.source].append(k)

        distances = np.array([e.distance for e in self.edges], dtype=np.float64)
        pheromones = np.array([e.pheromone for e in self.edges], dtype=np.float64)
        distances.flags.writeable = False
        pheromones.flags.writeable = False

        self._node_index = node_index
        self._edge_index = edge_index
        self._outgoing = outgoing
        self._distances = distances
        self._pheromones = pheromones

    # ── Lookups ────────────────────────────────────────────────────────────────

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self._node_index

    def node(self, node_id: NodeId) -> Optional[Node]:
        """Return the node with this id, or None if it is not in the graph."""
        i = self._node_index.get(node_id)
        return None if i is None else self.nodes[i]

    def node_slot(self, node_id: NodeId) -> Optional[int]:
        return self._node_index.get(node_id)

    def edge_slot(self, source: NodeId, target: NodeId) -> Optional[int]:
        """Arena index of the edge source → target, or None if absent."""
        return self._edge_index.get((source, target))

    def edge(self, source: NodeId, target: NodeId) -> Optional[Edge]:
        k = self._edge_index.get((source, target))
        return None if k is None else self.edges[k]

    def outgoing_slots(self, source: NodeId) -> List[int]:
        """
        Edge slots leaving `source`, in the order the edges appear in the graph.

        Returns a fresh list; callers may filter it freely.
        """
        return list(self._outgoing.get(source, ()))

    # ── Numeric views ──────────────────────────────────────────────────────────

    @property
    def distances(self) -> NDArray[np.float64]:
        """Edge distances aligned with self.edges. Read-only."""
        return self._distances

    @property
    def pheromones(self) -> NDArray[np.float64]:
        """Edge pheromone levels aligned with self.edges. Read-only."""
        return self._pheromones

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    # Equality is defined on the field values only; the indexes and numpy
    # views are derived data and numpy arrays do not compare to a single bool.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self.nodes == other.nodes and self.edges == other.edges

    def __hash__(self) -> int:
        return hash((self.nodes, self.edges))

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self.nodes)}, edges={len(self.edges)})"


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 4: ANT
# ─────────────────────────────────────────────────────────────────────────────

class Ant(BaseModel):
    """
    One path-building agent.

    Lifecycle:
        spawn     → visited_nodes = (start,), tour_length = 0.0
        each hop  → visited_nodes grows by exactly one id, tour_length grows
                    by that edge's distance
        complete  → len(visited_nodes) > node count, i.e. every node was
                    visited and the start id was appended again to close
                    the loop.
    """
    model_config = ConfigDict(frozen=True)

    ant_id: str = Field(..., description="Identity within its generation, e.g. 'ant-0'")
    current_node: NodeId = Field(..., description="Node the ant is standing on")
    visited_nodes: Tuple[NodeId, ...] = Field(..., min_length=1)
    tour_length: float = Field(0.0, ge=0.0, description="Sum of traversed edge distances")

    @property
    def start_node(self) -> NodeId:
        return self.visited_nodes[0]

    def is_complete(self, node_count: int) -> bool:
        """True once the ant has visited every node and returned to its start."""
        return len(self.visited_nodes) > node_count

    def has_visited(self, node_id: NodeId) -> bool:
        return node_id in self.visited_nodes


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 5: PARAMETERS
# ─────────────────────────────────────────────────────────────────────────────

class ACOParameters(BaseModel):
    """
    Algorithm knobs.

    Field constraints are the hard invariants the engine relies on
    (rho in (0, 1], q > 0, …). The narrower ranges the UI sliders offer are
    applied by clamped(), not by validation, so scripted callers can still
    use e.g. iterations=1.

    Fields:
        ant_count  → Ants per generation.
        alpha      → Pheromone exponent. 0 ignores pheromone entirely.
        beta       → Distance exponent. 0 ignores distance entirely.
        rho        → Evaporation rate: τ ← τ × (1 − rho) each generation.
        q          → Deposit scale: each completed ant adds q / tour_length.
        iterations → Generations to run before the simulation is complete.
    """
    model_config = ConfigDict(frozen=True)

    ant_count: int = Field(10, ge=1, description="Ants per generation")
    alpha: float = Field(1.0, ge=0.0, description="Pheromone importance")
    beta: float = Field(2.0, ge=0.0, description="Distance importance")
    rho: float = Field(0.1, gt=0.0, le=1.0, description="Evaporation rate")
    q: float = Field(100.0, gt=0.0, description="Pheromone deposit factor")
    iterations: int = Field(100, ge=1, description="Maximum generations")

    def clamped(self) -> "ACOParameters":
        """Return a copy with every field restricted to its UI range."""
        return ACOParameters(
            ant_count=int(_clamp(self.ant_count, *ANT_COUNT_RANGE)),
            alpha=_clamp(self.alpha, *ALPHA_RANGE),
            beta=_clamp(self.beta, *BETA_RANGE),
            rho=_clamp(self.rho, *RHO_RANGE),
            q=_clamp(self.q, *Q_RANGE),
            iterations=int(_clamp(self.iterations, *ITERATIONS_RANGE)),
        )


DEFAULT_PARAMETERS = ACOParameters()
"""antCount 10, alpha 1, beta 2, rho 0.1, q 100, iterations 100."""


# ─────────────────────────────────────────────────────────────────────────────
# SECTION 6: SIMULATION STATE
# ─────────────────────────────────────────────────────────────────────────────

class SimulationState(BaseModel):
    """
    The immutable snapshot handed from one tick to the next.

    Fields:
        graph              → Nodes and edges, including current pheromone.
        ants               → The current generation, mid-construction or fresh.
        best_tour          → Closed tour of the best ant so far (start id repeated
                             at the end). Empty until the first generation ends.
        best_tour_length   → Length of best_tour. +inf until then.
        current_iteration  → Completed generations.
        running            → Whether the external timer should keep ticking.
        speed_ms           → Timer interval. The engine never reads it.
    """
    model_config = ConfigDict(frozen=True)

    graph: Graph = Field(default_factory=Graph)
    ants: Tuple[Ant, ...] = Field(default_factory=tuple)
    best_tour: Tuple[NodeId, ...] = Field(default_factory=tuple)
    best_tour_length: float = Field(math.inf, ge=0.0)
    current_iteration: int = Field(0, ge=0)
    running: bool = False
    speed_ms: int = Field(DEFAULT_TICK_INTERVAL_MS, ge=1)

    @property
    def has_best_tour(self) -> bool:
        return bool(self.best_tour) and math.isfinite(self.best_tour_length)


# ── Utility ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    """Clamp value to [lo, hi]. Equivalent to max(lo, min(hi, value))."""
    return max(lo, min(hi, value))
