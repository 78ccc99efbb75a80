from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from railgraph.errors import OracleError
from railgraph.graph.graph_schema import Node
from railgraph.oracles.backends import GenerationBackend
from railgraph.oracles.base import (
    Candidate,
    Directive,
    ProposalOracle,
    StrategyOracle,
    VerificationOracle,
    Verdict,
)
from railgraph.oracles.payloads import CandidatePayload, DirectivePayload, VerdictPayload
from railgraph.utils.text import extract_json_object, truncate

logger = logging.getLogger("railgraph.oracles")

P = TypeVar("P", bound=BaseModel)

# Networks past this size are planned area by area.
AREA_SIZE = 50


def _node_brief(node: Node) -> Dict[str, Any]:
    return {"id": node.id, "name": node.name, "x": node.x, "y": node.y}


class _LLMOracle:
    """
    Shared prompt -> JSON -> schema pipeline.

    The backend call runs in a worker thread so the event loop keeps
    ticking movers while a model is thinking.
    """

    role = "oracle"

    def __init__(self, backend: GenerationBackend) -> None:
        if backend is None:
            raise ValueError("LLM backend must be provided")
        self.backend = backend

    async def _ask(self, prompt: str, schema: Type[P]) -> P:
        try:
            reply = await asyncio.to_thread(self.backend.generate, prompt)
        except Exception as exc:
            raise OracleError(f"{self.role} backend failed: {exc}", role=self.role) from exc

        try:
            payload = extract_json_object(reply)
        except ValueError as exc:
            logger.warning("%s oracle sent unreadable reply: %s", self.role, truncate(reply))
            raise OracleError(f"{self.role} reply is not JSON: {exc}", role=self.role) from exc

        try:
            return schema.model_validate(payload)
        except SchemaError as exc:
            logger.warning("%s oracle reply failed validation: %s", self.role, payload)
            raise OracleError(
                f"{self.role} reply failed validation: {exc.error_count()} error(s)",
                role=self.role,
            ) from exc


class LLMStrategyOracle(_LLMOracle, StrategyOracle):
    role = "strategy"

    def build_prompt(self, node_count: int) -> str:
        area_number = node_count // AREA_SIZE + 1
        jump_hint = (
            "The network is large enough for an inter-city jump to a new area."
            if node_count >= AREA_SIZE
            else "Keep growing the current urban area."
        )
        return f"""
Role: Senior Infrastructure Manager (Strategist)
Goal: Plan long-term rail network growth.

Current stats: {node_count} stations, Area {area_number}.
{jump_hint}

TASK:
1. Analyse the current network density.
2. Define one concise strategic directive.
3. Explain your reasoning in one or two sentences.

Reply with JSON only:
{{"strategy": "Concise strategy statement", "area": "Realistic city or area name", "rationale": "Reasoning behind the choice"}}
""".strip()

    async def plan(self, node_count: int) -> Directive:
        payload = await self._ask(self.build_prompt(node_count), DirectivePayload)
        return payload.to_directive()


class LLMProposalOracle(_LLMOracle, ProposalOracle):
    role = "proposal"

    def build_prompt(self, directive: Directive, recent_nodes: List[Node]) -> str:
        context = [_node_brief(n) for n in recent_nodes]
        ids = ", ".join(str(n.id) for n in recent_nodes)
        return f"""
Role: Lead Railway Engineer
Strategy: {directive.strategy_text}
Area: {directive.area_label}

Most recent stations:
{json.dumps(context)}

ACTION: Propose ONE new station.
- It MUST connect to one of these existing station ids: {ids}.
- Coordinates use 4 units per km.
- Keep a realistic distance of 50-300 km from the station it connects to.

Reply with JSON only:
{{"name": "Station name", "x": number, "y": number, "connect_to_id": existing_id, "rationale": "Brief engineering rationale"}}
""".strip()

    async def propose(self, directive: Directive, recent_nodes: List[Node]) -> Candidate:
        payload = await self._ask(self.build_prompt(directive, recent_nodes), CandidatePayload)
        return payload.to_candidate()


class LLMVerificationOracle(_LLMOracle, VerificationOracle):
    role = "verification"

    def build_prompt(self, candidate: Candidate, all_nodes: List[Node]) -> str:
        existing = [_node_brief(n) for n in all_nodes]
        return f"""
Role: Project Surveyor (Quality Control)
Proposal: {json.dumps(candidate.to_dict(), default=str)}
Existing stations ({len(all_nodes)}):
{json.dumps(existing)}

TASK: Decide whether the proposed coordinates and name are sensible.
Check for:
- coordinate collisions (too close to an existing station)
- duplicate or nonsensical names

Reply with JSON only:
{{"valid": true or false, "feedback": "Why it passed or failed"}}
""".strip()

    async def verify(self, candidate: Candidate, all_nodes: List[Node]) -> Verdict:
        payload = await self._ask(self.build_prompt(candidate, all_nodes), VerdictPayload)
        return payload.to_verdict()
