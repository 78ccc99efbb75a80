import asyncio

import pytest

from backend.app import main
from backend.app.config import build_railgraph_config, load_settings
from railgraph.config.settings import MovementConfig
from railgraph.engine.movement import MovementEngine
from railgraph.errors import ConfigError


def test_defaults_apply_without_environment(monkeypatch):
    monkeypatch.delenv("RAILGRAPH_EXPANSION_COOLDOWN_SECONDS", raising=False)
    monkeypatch.delenv("RAILGRAPH_DB_PATH", raising=False)

    config = build_railgraph_config(load_settings())

    assert config.expansion.cooldown_seconds == 60
    assert config.expansion.planning_interval_seconds == 7200
    assert config.movement.tick_ms == 50
    assert config.store.path == "data/simulation.db"


def test_environment_overrides_defaults(monkeypatch, tmp_path):
    db_path = str(tmp_path / "override.db")
    monkeypatch.setenv("RAILGRAPH_EXPANSION_COOLDOWN_SECONDS", "5")
    monkeypatch.setenv("RAILGRAPH_TICK_MS", "20")
    monkeypatch.setenv("RAILGRAPH_DB_PATH", db_path)

    config = build_railgraph_config(load_settings())

    assert config.expansion.cooldown_seconds == 5
    assert config.movement.tick_ms == 20
    assert config.store.path == db_path


def test_provider_keys_are_read_without_prefix(monkeypatch):
    monkeypatch.delenv("RAILGRAPH_GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("RAILGRAPH_GROQ_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    monkeypatch.setenv("GROQ_API_KEY", "q-key")

    oracles = build_railgraph_config(load_settings()).oracles

    assert oracles.reviewer.api_key == "g-key"
    assert oracles.engineer.api_key == "q-key"


@pytest.mark.asyncio
async def test_movement_starts_without_llm_backends(store, monkeypatch):
    engine = MovementEngine(store, MovementConfig(tick_ms=5))

    def no_backends():
        raise ConfigError("no API key configured for model gemini-2.0-flash")

    monkeypatch.setattr(main, "get_movement_engine", lambda: engine)
    monkeypatch.setattr(main, "get_auto_scheduler", no_backends)

    stop = asyncio.Event()
    tasks = main.start_background_tasks(stop)

    assert len(tasks) == 1
    await asyncio.sleep(0.02)
    assert not tasks[0].done()

    stop.set()
    await asyncio.wait_for(asyncio.gather(*tasks), timeout=1.0)
