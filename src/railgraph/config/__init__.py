"""
Configuration layer for railgraph.

Configuration in railgraph is:
- Explicit (passed, not global)
- Typed (frozen dataclasses)
- Defaulted to the values the simulation was tuned with
"""

from railgraph.config.settings import (
    StoreConfig,
    MovementConfig,
    ExpansionConfig,
    FleetConfig,
    BackendConfig,
    OracleConfig,
    RailgraphConfig,
)

__all__ = [
    "StoreConfig",
    "MovementConfig",
    "ExpansionConfig",
    "FleetConfig",
    "BackendConfig",
    "OracleConfig",
    "RailgraphConfig",
]
