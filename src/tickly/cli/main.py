# src/tickly/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (loading and catching up tasks), runs
the console REPL, and flushes pending writes on the way out.
"""

from __future__ import annotations

import logging
import signal

from ..cli.bootstrap import create_initial_state, shutdown
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    def _handle_sigterm(signum, _frame) -> None:
        # Turn SIGTERM into the same path as Ctrl+C so the finally block flushes.
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_sigterm)
    except (ValueError, OSError, AttributeError):
        # Not the main thread, or the platform has no SIGTERM.
        logger.debug("SIGTERM handler not installed.", exc_info=True)

    try:
        run_console_loop(state)
    except KeyboardInterrupt:
        pass
    finally:
        shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
