"""
railgraph
=========

A self-growing rail network simulation.

Core idea:
- Untrusted oracles plan, propose and verify new stations.
- A fixed-step engine moves trains along the network in real time.

Public API:
- GraphStore
- ExpansionOrchestrator
- MovementEngine
- Dispatcher
- FleetBalancer
"""

from railgraph.graph.graph_store import GraphStore
from railgraph.engine.orchestrator import ExpansionOrchestrator
from railgraph.engine.movement import MovementEngine
from railgraph.engine.dispatch import Dispatcher
from railgraph.engine.fleet import FleetBalancer

__all__ = [
    "GraphStore",
    "ExpansionOrchestrator",
    "MovementEngine",
    "Dispatcher",
    "FleetBalancer",
]

__version__ = "0.1.0"
