"""
Core: live task list, one-shot event channel and task commands.

Transport- and storage-agnostic; depends on the ports in ports.py.
"""
