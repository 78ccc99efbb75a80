"""
Engine subsystem for railgraph.

- MovementEngine advances trains every tick and detects arrivals
- Dispatcher sends a train towards a station
- FleetBalancer keeps the fleet sized to the network
- ExpansionOrchestrator grows the network through the oracles
"""

from railgraph.engine.dispatch import Dispatcher, DispatchReceipt
from railgraph.engine.movement import MovementEngine, TickReport
from railgraph.engine.fleet import FleetBalancer
from railgraph.engine.orchestrator import (
    ExpansionContext,
    ExpansionOrchestrator,
    ExpansionOutcome,
    resolve_connection,
)
from railgraph.engine.scheduler import AutoExpansionScheduler, run_movement_loop

__all__ = [
    "Dispatcher",
    "DispatchReceipt",
    "MovementEngine",
    "TickReport",
    "FleetBalancer",
    "ExpansionContext",
    "ExpansionOrchestrator",
    "ExpansionOutcome",
    "resolve_connection",
    "AutoExpansionScheduler",
    "run_movement_loop",
]
