"""Filter preferences persisted as a JSON key-value file (preferences_store.py)."""
