from __future__ import annotations

import random
import sqlite3
from contextlib import asynccontextmanager
from typing import List

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from backend.app.main import create_app
from backend.app.config import AppConfig
from backend.app.dependencies import (
    get_store,
    get_query_engine,
    get_dispatcher,
    get_orchestrator,
    get_auto_scheduler,
)

from railgraph.config.settings import (
    StoreConfig,
    MovementConfig,
    ExpansionConfig,
    FleetConfig,
)
from railgraph.engine.dispatch import Dispatcher
from railgraph.engine.fleet import FleetBalancer
from railgraph.engine.movement import MovementEngine
from railgraph.engine.orchestrator import ExpansionOrchestrator
from railgraph.engine.scheduler import AutoExpansionScheduler
from railgraph.errors import OracleError
from railgraph.graph.graph_query import GraphQueryEngine
from railgraph.graph.graph_schema import Node
from railgraph.graph.graph_store import GraphStore
from railgraph.oracles.base import (
    Candidate,
    Directive,
    ProposalOracle,
    StrategyOracle,
    VerificationOracle,
    Verdict,
)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedStrategy(StrategyOracle):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[int] = []

    async def plan(self, node_count: int) -> Directive:
        self.calls.append(node_count)
        if self.fail:
            raise OracleError("strategy offline", role=self.role)
        return Directive(
            strategy_text="Extend the eastern corridor",
            area_label="Eastvale",
            rationale="Demand is growing east of Northfield.",
        )


class ScriptedProposer(ProposalOracle):
    def __init__(self, connect_to_id="2", fail: bool = False) -> None:
        self.connect_to_id = connect_to_id
        self.fail = fail
        self.calls: List[tuple] = []

    async def propose(self, directive: Directive, recent_nodes: List[Node]) -> Candidate:
        self.calls.append((directive, list(recent_nodes)))
        if self.fail:
            raise OracleError("proposal timed out", role=self.role)
        n = len(self.calls)
        return Candidate(
            name=f"Eastvale {n}",
            x=650.0 + 200.0 * n,
            y=300.0,
            connect_to_id=self.connect_to_id,
            rationale=f"Attempt {n} extends the line east.",
        )


class ScriptedVerifier(VerificationOracle):
    def __init__(self, verdicts: List[object] | None = None, default: bool = True) -> None:
        self.verdicts = list(verdicts or [])
        self.default = default
        self.calls: List[tuple] = []

    async def verify(self, candidate: Candidate, all_nodes: List[Node]) -> Verdict:
        self.calls.append((candidate, list(all_nodes)))
        valid = self.verdicts.pop(0) if self.verdicts else self.default
        if isinstance(valid, Exception):
            raise valid
        return Verdict(valid=valid, feedback="looks fine" if valid else "too close to Central")


@pytest.fixture()
def store(tmp_path) -> GraphStore:
    store = GraphStore(StoreConfig(path=str(tmp_path / "simulation.db")))
    yield store
    store.close()


@pytest.fixture()
def movement_config() -> MovementConfig:
    return MovementConfig()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def strategy() -> ScriptedStrategy:
    return ScriptedStrategy()


@pytest.fixture()
def proposer() -> ScriptedProposer:
    return ScriptedProposer()


@pytest.fixture()
def verifier() -> ScriptedVerifier:
    return ScriptedVerifier()


@pytest.fixture()
def fleet(store) -> FleetBalancer:
    return FleetBalancer(store, FleetConfig(), rng=random.Random(7))


@pytest.fixture()
def orchestrator(store, strategy, proposer, verifier, fleet, clock) -> ExpansionOrchestrator:
    return ExpansionOrchestrator(
        store=store,
        strategy=strategy,
        proposer=proposer,
        verifier=verifier,
        fleet=fleet,
        config=ExpansionConfig(),
        clock=clock,
    )


@pytest.fixture()
def dispatcher(store, movement_config) -> Dispatcher:
    return Dispatcher(store, movement_config)


@pytest.fixture()
def engine(store, movement_config) -> MovementEngine:
    return MovementEngine(store, movement_config)


@pytest.fixture()
def client(store, dispatcher, orchestrator):
    @asynccontextmanager
    async def _no_lifespan(_: FastAPI):
        yield

    app = create_app(AppConfig())
    app.router.lifespan_context = _no_lifespan

    query = GraphQueryEngine(store)
    scheduler = AutoExpansionScheduler(store, orchestrator)

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_query_engine] = lambda: query
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_auto_scheduler] = lambda: scheduler
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class FlakyConnection:
    """
    Wraps a sqlite3 connection and fails the statements ``fail`` selects.
    """

    def __init__(self, conn, fail) -> None:
        self._conn = conn
        self.fail = fail

    def execute(self, sql, params=()):
        if self.fail(sql, params):
            raise sqlite3.OperationalError("disk I/O error")
        return self._conn.execute(sql, params)

    def __enter__(self):
        self._conn.__enter__()
        return self

    def __exit__(self, *exc_info):
        return self._conn.__exit__(*exc_info)

    def __getattr__(self, name):
        return getattr(self._conn, name)
