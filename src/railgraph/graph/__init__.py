"""
Graph subsystem for railgraph.

Defines the rail network data model and its durable store:
- stations (nodes) and tracks (edges) that only ever grow
- trains (movers) whose position is advanced by the movement engine
- an append-only event log
"""

from railgraph.graph.graph_schema import Node, Edge, Mover, Event, IDLE, MOVING
from railgraph.graph.graph_store import GraphStore, GraphSnapshot
from railgraph.graph.graph_query import GraphQueryEngine

__all__ = [
    "Node",
    "Edge",
    "Mover",
    "Event",
    "IDLE",
    "MOVING",
    "GraphStore",
    "GraphSnapshot",
    "GraphQueryEngine",
]
