import os
from dataclasses import dataclass

from dynaconf import Dynaconf
from backend.app.constants import DEFAULTS

from railgraph.config.settings import (
    StoreConfig,
    MovementConfig,
    ExpansionConfig,
    FleetConfig,
    BackendConfig,
    OracleConfig,
    RailgraphConfig,
)


def load_settings() -> Dynaconf:
    """
    RAILGRAPH_* environment variables (and .env) win over DEFAULTS.
    """
    settings = Dynaconf(
        envvar_prefix="RAILGRAPH",
        load_dotenv=True,
        settings_files=[],
    )
    for key, value in DEFAULTS.items():
        if not settings.exists(key):
            settings.set(key, value)
    return settings


def _api_key(settings: Dynaconf, name: str):
    # Provider keys are usually exported without the app prefix.
    return settings.get(name) or os.getenv(name)


def build_railgraph_config(settings: Dynaconf) -> RailgraphConfig:
    return RailgraphConfig(
        store=StoreConfig(
            path=settings.get("DB_PATH"),
            recent_events=settings.get("RECENT_EVENTS"),
        ),
        movement=MovementConfig(
            tick_ms=settings.get("TICK_MS"),
            time_acceleration=settings.get("TIME_ACCELERATION"),
            pixels_per_km=settings.get("PIXELS_PER_KM"),
        ),
        expansion=ExpansionConfig(
            cooldown_seconds=settings.get("EXPANSION_COOLDOWN_SECONDS"),
            planning_interval_seconds=settings.get("PLANNING_INTERVAL_SECONDS"),
            max_attempts=settings.get("EXPANSION_MAX_ATTEMPTS"),
            recent_nodes=settings.get("EXPANSION_RECENT_NODES"),
        ),
        fleet=FleetConfig(
            nodes_per_mover=settings.get("FLEET_NODES_PER_MOVER"),
            min_speed_kmh=settings.get("FLEET_MIN_SPEED_KMH"),
            max_speed_kmh=settings.get("FLEET_MAX_SPEED_KMH"),
        ),
        oracles=OracleConfig(
            reviewer=BackendConfig(
                kind=settings.get("REVIEWER_BACKEND"),
                model=settings.get("REVIEWER_MODEL"),
                api_key=_api_key(settings, "GEMINI_API_KEY"),
                base_url=settings.get("REVIEWER_BASE_URL") or None,
                max_new_tokens=settings.get("LLM_MAX_NEW_TOKENS"),
                temperature=settings.get("LLM_TEMPERATURE"),
            ),
            engineer=BackendConfig(
                kind=settings.get("ENGINEER_BACKEND"),
                model=settings.get("ENGINEER_MODEL"),
                api_key=_api_key(settings, "GROQ_API_KEY"),
                base_url=settings.get("ENGINEER_BASE_URL") or None,
                max_new_tokens=settings.get("LLM_MAX_NEW_TOKENS"),
                temperature=settings.get("LLM_TEMPERATURE"),
            ),
        ),
    )


settings = load_settings()


@dataclass(frozen=True)
class AppConfig:
    # ---------------- App ----------------
    app_name: str = settings.get("APP_NAME", "railgraph-backend")
    api_prefix: str = settings.get("API_PREFIX", "")
    run_background_tasks: bool = settings.get("RUN_BACKGROUND_TASKS", True)
    auto_poll_seconds: float = settings.get("AUTO_POLL_SECONDS", 60)
    activity_log: str = settings.get("ACTIVITY_LOG", "")

    # ---------------- Railgraph Policy ----------------
    railgraph: RailgraphConfig = build_railgraph_config(settings)
