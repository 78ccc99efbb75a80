from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple, Union

from railgraph.config.settings import ExpansionConfig
from railgraph.engine.fleet import FleetBalancer
from railgraph.errors import ConsensusError, OracleError, RailgraphError, ThrottleError
from railgraph.graph.graph_schema import Node
from railgraph.graph.graph_store import GraphStore
from railgraph.oracles.base import (
    DEFAULT_DIRECTIVE,
    Candidate,
    Directive,
    ProposalOracle,
    StrategyOracle,
    VerificationOracle,
)
from railgraph.utils.text import truncate

logger = logging.getLogger("railgraph.orchestrator")

OutcomeStatus = Literal["built", "throttled", "consensus_failed", "oracle_error"]


# ---------------------------------------------------------------------
# Cycle state and results
# ---------------------------------------------------------------------


@dataclass
class ExpansionContext:
    """
    Process-wide orchestrator state, built once and passed to every phase.

    Times come from the orchestrator's monotonic clock.
    """

    last_attempt_at: Optional[float] = None
    directive: Optional[Directive] = None
    directive_issued_at: Optional[float] = None


@dataclass(frozen=True)
class Accepted:
    candidate: Candidate
    feedback: str


@dataclass(frozen=True)
class Rejected:
    candidate: Candidate
    feedback: str


AttemptOutcome = Union[Accepted, Rejected]


@dataclass(frozen=True)
class ExpansionOutcome:
    status: OutcomeStatus
    message: str
    node_id: Optional[int] = None
    connected_to: Optional[int] = None
    candidate: Dict[str, Any] = field(default_factory=dict)
    attempts: int = 0
    error: Optional[RailgraphError] = None

    @property
    def success(self) -> bool:
        return self.status == "built"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "attempts": self.attempts,
        }
        if self.success:
            payload.update(self.candidate)
            payload["node_id"] = self.node_id
            payload["connected_to"] = self.connected_to
        return payload


# ---------------------------------------------------------------------
# Connection repair
# ---------------------------------------------------------------------


def resolve_connection(requested: Optional[int], existing: List[Node]) -> Optional[int]:
    """
    Pick the node a new station connects to.

    ``existing`` is the id-ordered node list from before the new station
    was inserted. A requested id that names one of those nodes wins;
    otherwise fall back to the second-most-recent node, or the only node
    when there is just one.
    """
    if not existing:
        return None

    if requested is not None and any(n.id == requested for n in existing):
        return requested

    fallback = existing[-2].id if len(existing) >= 2 else existing[0].id
    logger.warning(
        "connection %r is not an existing node; falling back to node %s",
        requested,
        fallback,
    )
    return fallback


# ---------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------


class ExpansionOrchestrator:
    """
    Grows the network one station per cycle.

    Phases run strictly in order:
    PLAN -> PROPOSE/VERIFY (bounded) -> EXECUTE -> REBALANCE.
    No store lock is held while an oracle is being awaited.
    """

    def __init__(
        self,
        *,
        store: GraphStore,
        strategy: StrategyOracle,
        proposer: ProposalOracle,
        verifier: VerificationOracle,
        fleet: FleetBalancer,
        config: ExpansionConfig,
        context: Optional[ExpansionContext] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.strategy = strategy
        self.proposer = proposer
        self.verifier = verifier
        self.fleet = fleet
        self.config = config
        self.context = context or ExpansionContext()
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_expansion_cycle(self) -> ExpansionOutcome:
        try:
            self._throttle()
        except ThrottleError as exc:
            logger.info("cycle throttled: %s", exc)
            return ExpansionOutcome(status="throttled", message=str(exc), error=exc)

        directive = await self._plan()

        try:
            candidate, attempts = await self._propose_and_verify(directive)
        except ConsensusError as exc:
            return self._failed("consensus_failed", exc, exc.attempts)
        except OracleError as exc:
            return self._failed("oracle_error", exc, exc.attempts)

        node, connected_to = self._execute(candidate)
        self.fleet.rebalance()

        return ExpansionOutcome(
            status="built",
            message=f"Built {node.name}",
            node_id=node.id,
            connected_to=connected_to,
            candidate=candidate.to_dict(),
            attempts=attempts,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _throttle(self) -> None:
        now = self._clock()
        last = self.context.last_attempt_at

        if last is not None and now - last < self.config.cooldown_seconds:
            retry_after = self.config.cooldown_seconds - (now - last)
            raise ThrottleError(
                "Expansion is cooling down between cycles.",
                retry_after=retry_after,
            )

        self.context.last_attempt_at = now

    async def _plan(self) -> Directive:
        ctx = self.context
        now = self._clock()

        if (
            ctx.directive is not None
            and ctx.directive_issued_at is not None
            and now - ctx.directive_issued_at < self.config.planning_interval_seconds
        ):
            return ctx.directive

        logger.info("planning phase: requesting a new directive")
        try:
            directive = await self.strategy.plan(self.store.node_count())
        except OracleError as exc:
            logger.error("plan phase failed, using default directive: %s", exc)
            return DEFAULT_DIRECTIVE

        ctx.directive = directive
        ctx.directive_issued_at = now

        self.store.add_event("AI_EXPANSION", f"[THOUGHT] {directive.rationale}")
        self.store.add_event("COMMANDER", f"STRATEGY: {directive.strategy_text}")
        return directive

    async def _propose_and_verify(self, directive: Directive) -> Tuple[Candidate, int]:
        all_nodes = self.store.get_nodes()
        recent = all_nodes[-self.config.recent_nodes:] if self.config.recent_nodes > 0 else []
        last: Optional[Rejected] = None

        for attempt in range(1, self.config.max_attempts + 1):
            logger.info("attempt %s: proposing build", attempt)
            try:
                outcome = await self._attempt(directive, recent, all_nodes)
            except OracleError as exc:
                exc.attempts = attempt
                raise
            if isinstance(outcome, Accepted):
                return outcome.candidate, attempt
            last = outcome

        raise ConsensusError(
            "Could not reach verified consensus after multiple attempts.",
            attempts=self.config.max_attempts,
            feedback=last.feedback if last is not None else "",
        )

    async def _attempt(
        self,
        directive: Directive,
        recent: List[Node],
        all_nodes: List[Node],
    ) -> AttemptOutcome:
        candidate = await self.proposer.propose(directive, recent)
        self.store.add_event("AI_EXPANSION", f"[THOUGHT] {candidate.rationale}")

        verdict = await self.verifier.verify(candidate, all_nodes)
        if verdict.valid:
            self.store.add_event("SYSTEM", f"VERIFIED: {verdict.feedback}")
            return Accepted(candidate, verdict.feedback)

        self.store.add_event(
            "SYSTEM",
            f"SELF-CORRECT: proposal rejected by surveyor. Feedback: {verdict.feedback}",
        )
        logger.warning("verification failed: %s", truncate(verdict.feedback))
        return Rejected(candidate, verdict.feedback)

    def _execute(self, candidate: Candidate) -> Tuple[Node, Optional[int]]:
        node, edge = self.store.commit_node_with_edge(
            candidate.name,
            candidate.x,
            candidate.y,
            partial(resolve_connection, candidate.requested_connection()),
        )
        connected_to = edge.node_a_id if edge is not None else None

        logger.info("execution complete: node %s connected to %s", node.id, connected_to)
        self.store.add_event(
            "CONSTRUCTION",
            f"Built {node.name} at ({node.x:g}, {node.y:g}) connected to Hub #{connected_to}",
        )
        return node, connected_to

    def _failed(
        self,
        status: OutcomeStatus,
        exc: RailgraphError,
        attempts: int,
    ) -> ExpansionOutcome:
        logger.error("orchestration failed: %s", exc)
        self.store.add_event("SYSTEM", f"SYSTEM ERROR: {exc}")
        return ExpansionOutcome(status=status, message=str(exc), attempts=attempts, error=exc)
