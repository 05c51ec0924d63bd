"""
Task storage.

Components:
- task_models.py: data structures (Task, SortOrder, FilterPreferences, TaskDraft)
- task_store.py: SQLite-backed storage with live queries
"""
