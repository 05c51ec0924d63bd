"""dodue: personal task tracker core (live task list + one-shot UI events)."""
