from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

# ---------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class StoreConfig:
    """
    Controls where the simulation state is persisted.

    ``path`` may be ``":memory:"`` for a throwaway store.
    """

    path: str = "data/simulation.db"
    recent_events: int = 30


# ---------------------------------------------------------------------
# Movement physics
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class MovementConfig:
    """
    Controls the fixed-step movement simulation.

    Each tick advances simulated time by
    ``tick_ms / 1000 * time_acceleration`` seconds.
    """

    tick_ms: float = 50.0
    time_acceleration: float = 60.0
    pixels_per_km: float = 4.0

    @property
    def sim_seconds_per_tick(self) -> float:
        return (self.tick_ms / 1000.0) * self.time_acceleration


# ---------------------------------------------------------------------
# Expansion orchestration
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class ExpansionConfig:
    """
    Controls throttling, planning cadence and the propose/verify loop.
    """

    cooldown_seconds: float = 60.0
    planning_interval_seconds: float = 2 * 60 * 60
    max_attempts: int = 3
    recent_nodes: int = 5


# ---------------------------------------------------------------------
# Fleet balancing
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class FleetConfig:
    """
    Keeps roughly one mover per ``nodes_per_mover`` nodes.

    Spawned movers draw an integer speed in ``[min_speed_kmh, max_speed_kmh)``.
    """

    nodes_per_mover: int = 3
    min_speed_kmh: int = 100
    max_speed_kmh: int = 160
    name_prefix: str = "Express"


# ---------------------------------------------------------------------
# Oracle backends
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class BackendConfig:
    """
    Describes one text generation backend.
    """

    kind: Literal["huggingface", "openai"] = "openai"
    model: str = "llama-3.3-70b-versatile"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_new_tokens: int = 512
    temperature: float = 0.2


@dataclass(frozen=True)
class OracleConfig:
    """
    Backends used by the three oracles.

    Strategy and verification share ``reviewer``; proposals use ``engineer``.
    """

    reviewer: BackendConfig = field(default_factory=BackendConfig)
    engineer: BackendConfig = field(default_factory=BackendConfig)


# ---------------------------------------------------------------------
# Root configuration object
# ---------------------------------------------------------------------


@dataclass(frozen=True)
class RailgraphConfig:
    """
    Root configuration object for railgraph.

    This object is intended to be:
    - constructed explicitly
    - passed through all major subsystems
    - treated as immutable system policy
    """

    store: StoreConfig = field(default_factory=StoreConfig)
    movement: MovementConfig = field(default_factory=MovementConfig)
    expansion: ExpansionConfig = field(default_factory=ExpansionConfig)
    fleet: FleetConfig = field(default_factory=FleetConfig)
    oracles: OracleConfig = field(default_factory=OracleConfig)
