# src/dodue/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores the task list view and runs
the console REPL on an asyncio loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, load_view_state, save_view_state
from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

# Pending application-scope work (e.g. a bulk delete) gets this long on exit.
SHUTDOWN_TIMEOUT_S = 10.0


async def _run(settings: Settings) -> None:
    state = create_initial_state(settings=settings)
    session = state.open_task_list(load_view_state(state))

    try:
        await run_console_loop(state, session)
    finally:
        save_view_state(state, session.close())
        await state.app_scope.close(timeout=SHUTDOWN_TIMEOUT_S)
        if state.events.pending:
            logger.info("Dropping %d undelivered UI event(s) on exit.", state.events.pending)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s... (log file: %s)", settings.app_name, log_file)
    try:
        asyncio.run(_run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
