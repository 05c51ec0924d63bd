# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "DODUE_APP_NAME": "App display name (default: dodue).",
    "DODUE_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "DODUE_DATA_DIR": "Local data directory, also holds dodue.log (default: .local/dodue).",
    "DODUE_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "DODUE_PREFERENCES_PATH": (
        "Filter preferences JSON path (default: <data_dir>/user_preferences.json)."
    ),
    # Behaviour
    "DODUE_SEED_TASKS": "Insert sample tasks when the task table is created (true/false, default: true).",
    "DODUE_EVENT_QUEUE_SIZE": "Max queued UI events; 0 means unbounded (default: 0).",
}
