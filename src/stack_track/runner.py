# src/stack_track/runner.py

"""
Process entry point.

Initializes logging, builds the tracker and polls until SIGINT/SIGTERM.
There is no command surface; everything is configured through settings.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from .bootstrap import create_tracker, run_tracker
from .config import get_settings
from .core.models import QuestionState
from .logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _amain() -> None:
    settings = get_settings()
    tracker = create_tracker(settings=settings)
    cache = tracker.cache

    def _log_counts() -> None:
        logger.info(
            "Questions: %d unread, %d read",
            cache.get_question_count(QuestionState.NORMAL),
            cache.get_question_count(QuestionState.READ),
        )

    cache.register_count_callback(_log_counts)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is not available on every platform (e.g. Windows).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)

    await run_tracker(tracker, stop)


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(_amain())
    except KeyboardInterrupt:
        pass
    logger.info("Bye.")


if __name__ == "__main__":
    main()
