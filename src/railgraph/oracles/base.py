from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from railgraph.graph.graph_schema import Node


@dataclass(frozen=True)
class Directive:
    """
    Strategic guidance valid for one planning interval.
    """

    strategy_text: str
    area_label: str
    rationale: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy_text": self.strategy_text,
            "area_label": self.area_label,
            "rationale": self.rationale,
        }


DEFAULT_DIRECTIVE = Directive(
    strategy_text="Maintain system stability.",
    area_label="Central",
    rationale="Safety-first protocol engaged.",
)


@dataclass(frozen=True)
class Candidate:
    """
    One proposed station.

    ``connect_to_id`` is the raw value the oracle sent and is only
    trusted after it has been matched against the committed nodes.
    """

    name: str
    x: float
    y: float
    connect_to_id: Any
    rationale: str

    def requested_connection(self) -> Optional[int]:
        """
        The requested node id if it is an integer-valued number or numeric string.
        """
        value = self.connect_to_id
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value) if value.is_integer() else None
        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return None
            return int(number) if math.isfinite(number) and number.is_integer() else None
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "connect_to_id": self.connect_to_id,
            "rationale": self.rationale,
        }


@dataclass(frozen=True)
class Verdict:
    valid: bool
    feedback: str


class StrategyOracle(ABC):
    """
    Produces the directive that biases proposals for a planning interval.
    """

    role = "strategy"

    @abstractmethod
    async def plan(self, node_count: int) -> Directive:
        """
        Raise ``OracleError`` on any failure.
        """
        raise NotImplementedError


class ProposalOracle(ABC):
    """
    Proposes exactly one new station per call.
    """

    role = "proposal"

    @abstractmethod
    async def propose(self, directive: Directive, recent_nodes: List[Node]) -> Candidate:
        raise NotImplementedError


class VerificationOracle(ABC):
    """
    Judges whether a candidate station is sensible.
    """

    role = "verification"

    @abstractmethod
    async def verify(self, candidate: Candidate, all_nodes: List[Node]) -> Verdict:
        raise NotImplementedError
