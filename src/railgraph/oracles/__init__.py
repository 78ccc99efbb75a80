"""
Oracle subsystem for railgraph.

Three independent, untrusted judges drive network expansion:
- strategy: sets the directive for a planning interval
- proposal: suggests one station per attempt
- verification: accepts or rejects a proposal

Every reply is schema-validated before it reaches the orchestrator.
"""

from railgraph.oracles.base import (
    Directive,
    DEFAULT_DIRECTIVE,
    Candidate,
    Verdict,
    StrategyOracle,
    ProposalOracle,
    VerificationOracle,
)
from railgraph.oracles.backends import GenerationBackend, OpenAIBackend, build_backend
from railgraph.oracles.llm_oracles import (
    LLMStrategyOracle,
    LLMProposalOracle,
    LLMVerificationOracle,
)

__all__ = [
    "Directive",
    "DEFAULT_DIRECTIVE",
    "Candidate",
    "Verdict",
    "StrategyOracle",
    "ProposalOracle",
    "VerificationOracle",
    "GenerationBackend",
    "OpenAIBackend",
    "build_backend",
    "LLMStrategyOracle",
    "LLMProposalOracle",
    "LLMVerificationOracle",
]
