# src/stack_track/bootstrap.py

"""
Composition root.

- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite state store, the Stack Exchange fetcher, the cache and the scheduler,
- runs the polling lifecycle until asked to stop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .config import Settings, get_settings
from .core.errors import StatePersistenceError
from .core.models import Tag
from .core.question_cache import QuestionCache
from .core.scheduler import UpdateScheduler
from .fetch.stackexchange import StackExchangeFetcher
from .storage.state_store import SqliteStateStore

logger = logging.getLogger(__name__)


@dataclass
class Tracker:
    settings: Settings
    store: SqliteStateStore
    fetcher: StackExchangeFetcher
    cache: QuestionCache
    scheduler: UpdateScheduler


def configured_tags(raw_tags: list[str]) -> list[Tag]:
    """
    Parse STACKTRACK_TAGS entries.

    Entries that are not "network:tag" or name an unknown network are logged and skipped.
    """
    tags: list[Tag] = []
    for raw in raw_tags:
        try:
            tag = Tag.from_spec(raw)
            tag.get_network()
        except (ValueError, KeyError) as e:
            logger.error("Ignoring configured tag %r: %s (expected network:tag)", raw, e)
            continue
        tags.append(tag)
    if raw_tags and not tags:
        logger.error("No usable tags configured; nothing will be fetched")
    return tags


def create_tracker(*, settings: Settings | None = None) -> Tracker:
    """
    Build a Tracker from the provided settings.

    If settings is None, falls back to get_settings().
    The fetcher's HTTP client is created here, so call this where the event loop will run.
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.state_db_path.parent.mkdir(parents=True, exist_ok=True)

    store = SqliteStateStore(settings.state_db_path)
    fetcher = StackExchangeFetcher(
        settings.api_base_url,
        api_key=settings.api_key,
        timeout_seconds=settings.fetch_timeout_seconds,
    )
    cache = QuestionCache(fetcher, store, initial_quantity=settings.initial_quantity)
    cache.set_tags(configured_tags(settings.tags))

    return Tracker(
        settings=settings,
        store=store,
        fetcher=fetcher,
        cache=cache,
        scheduler=UpdateScheduler(cache),
    )


async def run_tracker(tracker: Tracker, stop_event: asyncio.Event) -> None:
    """
    Initial update, then scheduled updates until stop_event is set.

    On the way out: stop the scheduler, persist question state, close the HTTP client.
    """
    settings = tracker.settings
    cache = tracker.cache

    cache.update()
    tracker.scheduler.start(settings.update_interval_seconds, settings.update_quantity)

    try:
        await stop_event.wait()
    finally:
        await tracker.scheduler.stop()
        try:
            cache.save_question_state()
        except StatePersistenceError:
            logger.exception("Failed to save question state on shutdown")
        await tracker.fetcher.aclose()
