import pytest

from railgraph.config.settings import BackendConfig
from railgraph.errors import ConfigError, OracleError
from railgraph.graph.graph_schema import Node
from railgraph.oracles import (
    DEFAULT_DIRECTIVE,
    Candidate,
    LLMProposalOracle,
    LLMStrategyOracle,
    LLMVerificationOracle,
    build_backend,
)
from railgraph.utils.text import extract_json_object


class CannedBackend:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


NODES = [
    Node(id=1, name="Central Junction", x=50.0, y=300.0, created_at="2026-01-01T00:00:00Z"),
    Node(id=2, name="Northfield Terminal", x=650.0, y=300.0, created_at="2026-01-01T00:00:00Z"),
]


def test_extract_json_object_tolerates_fences_and_prose():
    reply = 'Sure! Here you go:\n```json\n{"valid": true, "feedback": "ok"}\n```\nAnything else?'
    assert extract_json_object(reply) == {"valid": True, "feedback": "ok"}

    with pytest.raises(ValueError):
        extract_json_object("no braces here")
    with pytest.raises(ValueError):
        extract_json_object("{not json")


@pytest.mark.asyncio
async def test_strategy_oracle_accepts_legacy_keys():
    backend = CannedBackend(
        '```json\n{"strategyText": "Link the coast", "cityName": "Port Ellen",'
        ' "thoughtSignature": "Coastal demand"}\n```'
    )

    directive = await LLMStrategyOracle(backend).plan(120)

    assert directive.strategy_text == "Link the coast"
    assert directive.area_label == "Port Ellen"
    assert directive.rationale == "Coastal demand"
    assert "Area 3" in backend.prompts[0]
    assert "inter-city jump" in backend.prompts[0]


@pytest.mark.asyncio
async def test_strategy_oracle_rejects_missing_strategy():
    backend = CannedBackend('{"area": "Nowhere"}')

    with pytest.raises(OracleError) as info:
        await LLMStrategyOracle(backend).plan(2)
    assert info.value.role == "strategy"


@pytest.mark.asyncio
async def test_proposal_oracle_parses_candidate():
    backend = CannedBackend(
        'I propose the following.\n'
        '{"name": "  Eastvale  ", "x": 850, "y": 310.5, "connectToId": "2", "rationale": "Extends east"}'
    )

    candidate = await LLMProposalOracle(backend).propose(DEFAULT_DIRECTIVE, NODES)

    assert candidate.name == "Eastvale"
    assert (candidate.x, candidate.y) == (850.0, 310.5)
    assert candidate.requested_connection() == 2
    assert "Maintain system stability." in backend.prompts[0]
    assert "1, 2" in backend.prompts[0]


@pytest.mark.parametrize(
    "reply",
    [
        "I think we should build near the river.",
        '{"name": "Eastvale", "x": "far", "y": 300}',
        '{"name": "Eastvale", "x": Infinity, "y": 300}',
        '{"name": "   ", "x": 1, "y": 2}',
        '["not", "an", "object"]',
    ],
)
@pytest.mark.asyncio
async def test_proposal_oracle_rejects_bad_replies(reply):
    with pytest.raises(OracleError) as info:
        await LLMProposalOracle(CannedBackend(reply)).propose(DEFAULT_DIRECTIVE, NODES)
    assert info.value.role == "proposal"


@pytest.mark.asyncio
async def test_backend_failure_becomes_oracle_error():
    backend = CannedBackend(error=RuntimeError("503 from upstream"))

    with pytest.raises(OracleError, match="503 from upstream"):
        await LLMVerificationOracle(backend).verify(
            Candidate("Eastvale", 850.0, 300.0, 2, ""), NODES
        )


@pytest.mark.asyncio
async def test_verification_oracle_reads_verdict():
    backend = CannedBackend('{"valid": false, "feedback": "Too close to Northfield Terminal"}')

    verdict = await LLMVerificationOracle(backend).verify(
        Candidate("Northfield East", 652.0, 300.0, 2, ""), NODES
    )

    assert verdict.valid is False
    assert verdict.feedback == "Too close to Northfield Terminal"
    assert "Northfield Terminal" in backend.prompts[0]


@pytest.mark.parametrize(
    "raw, expected",
    [
        (3, 3),
        ("3", 3),
        (" 4 ", 4),
        (2.0, 2),
        ("2.0", 2),
        (2.5, None),
        ("abc", None),
        ("nan", None),
        (None, None),
        (True, None),
        ([1], None),
    ],
)
def test_requested_connection(raw, expected):
    assert Candidate("X", 0.0, 0.0, raw, "").requested_connection() == expected


def test_openai_backend_requires_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ConfigError):
        build_backend(BackendConfig(kind="openai", model="llama-3.3-70b-versatile"))


def test_unknown_backend_kind():
    with pytest.raises(ConfigError):
        build_backend(BackendConfig(kind="carrier-pigeon", model="x"))


class _TemplateTokenizer:
    chat_template = "{{ messages }}"

    def apply_chat_template(self, messages, tokenize, add_generation_prompt):
        assert tokenize is False and add_generation_prompt is True
        return " | ".join(f"{m['role']}: {m['content']}" for m in messages)


class _PlainTokenizer:
    chat_template = None


def test_render_prompt_uses_chat_template_when_available():
    from railgraph.oracles.hf_backend import JSON_INSTRUCTION, render_prompt

    rendered = render_prompt(_TemplateTokenizer(), "Propose a station")
    assert rendered == f"system: {JSON_INSTRUCTION} | user: Propose a station"

    plain = render_prompt(_PlainTokenizer(), "Propose a station")
    assert plain.startswith(JSON_INSTRUCTION)
    assert plain.endswith("JSON:")
