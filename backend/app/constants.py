DEFAULTS = {
    # SQLite file holding stations, tracks, trains and events
    "DB_PATH": "data/simulation.db",
    # Events returned with the state payload
    "RECENT_EVENTS": 30,
    # Movement tick period in milliseconds
    "TICK_MS": 50,
    # Simulated seconds per real second
    "TIME_ACCELERATION": 60,
    # Position units per km
    "PIXELS_PER_KM": 4,
    # Minimum seconds between expansion cycles
    "EXPANSION_COOLDOWN_SECONDS": 60,
    # Seconds a strategic directive stays valid
    "PLANNING_INTERVAL_SECONDS": 7200,
    # Proposal attempts per cycle before giving up
    "EXPANSION_MAX_ATTEMPTS": 3,
    # Recent stations shown to the proposal oracle
    "EXPANSION_RECENT_NODES": 5,
    # Stations per train before another train is bought
    "FLEET_NODES_PER_MOVER": 3,
    # Speed range for new trains (km/h, upper bound exclusive)
    "FLEET_MIN_SPEED_KMH": 100,
    "FLEET_MAX_SPEED_KMH": 160,
    # Strategy / verification backend
    "REVIEWER_BACKEND": "openai",
    "REVIEWER_MODEL": "gemini-2.0-flash",
    "REVIEWER_BASE_URL": "https://generativelanguage.googleapis.com/v1beta/openai/",
    # Proposal backend
    "ENGINEER_BACKEND": "openai",
    "ENGINEER_MODEL": "llama-3.3-70b-versatile",
    "ENGINEER_BASE_URL": "https://api.groq.com/openai/v1",
    # Generation limits shared by both backends
    "LLM_MAX_NEW_TOKENS": 512,
    "LLM_TEMPERATURE": 0.2,
    # Seconds between auto-expansion schedule checks
    "AUTO_POLL_SECONDS": 60,
    # Start the movement loop and auto scheduler with the app
    "RUN_BACKGROUND_TASKS": True,
    # Optional file receiving a copy of the activity log
    "ACTIVITY_LOG": "",
}
