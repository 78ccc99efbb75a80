"""Schemas for oracle replies.

Everything an oracle returns is untrusted; these models are the only
path from raw JSON to the domain types in ``railgraph.oracles.base``.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, FiniteFloat, field_validator

from railgraph.oracles.base import Candidate, Directive, Verdict


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class DirectivePayload(_Payload):
    strategy: str = Field(
        min_length=1,
        validation_alias=AliasChoices("strategy", "strategy_text", "strategyText"),
    )
    area: str = Field(
        default="Central",
        validation_alias=AliasChoices("area", "area_label", "areaLabel", "cityName"),
    )
    rationale: str = Field(
        default="",
        validation_alias=AliasChoices("rationale", "thoughtSignature"),
    )

    def to_directive(self) -> Directive:
        return Directive(
            strategy_text=self.strategy.strip(),
            area_label=self.area.strip() or "Central",
            rationale=self.rationale.strip(),
        )


class CandidatePayload(_Payload):
    name: str = Field(min_length=1, max_length=120)
    x: FiniteFloat
    y: FiniteFloat
    connect_to_id: Any = Field(
        default=None,
        validation_alias=AliasChoices("connect_to_id", "connectToId"),
    )
    rationale: str = Field(
        default="",
        validation_alias=AliasChoices("rationale", "thoughtSignature"),
    )

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    def to_candidate(self) -> Candidate:
        return Candidate(
            name=self.name,
            x=float(self.x),
            y=float(self.y),
            connect_to_id=self.connect_to_id,
            rationale=self.rationale.strip(),
        )


class VerdictPayload(_Payload):
    valid: bool
    feedback: str = ""

    def to_verdict(self) -> Verdict:
        return Verdict(valid=self.valid, feedback=self.feedback.strip())
