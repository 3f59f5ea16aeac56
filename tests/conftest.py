# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from stack_track.core.models import Tag
from stack_track.core.question_cache import QuestionCache

from .fakes import CallbackCounter, FakeFetcher, FakeStateStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the composition root.

    A SimpleNamespace rather than the real config keeps tests independent of the environment.
    """
    return SimpleNamespace(
        app_name="stack-track-test",
        log_level="DEBUG",
        tags=["stackoverflow:python", "ux:accessibility"],
        initial_quantity=5,
        update_quantity=3,
        update_interval_seconds=0.01,
        api_base_url="https://api.example.test/2.2",
        api_key=None,
        fetch_timeout_seconds=1.0,
        data_dir=tmp_path / "data",
        state_db_path=tmp_path / "data" / "state.sqlite3",
    )


@pytest.fixture()
def tag() -> Tag:
    return Tag(network="stackoverflow", name="python")


@pytest.fixture()
def store() -> FakeStateStore:
    return FakeStateStore()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture()
def counter() -> CallbackCounter:
    return CallbackCounter()


@pytest.fixture()
def cache(fetcher: FakeFetcher, store: FakeStateStore, counter: CallbackCounter) -> QuestionCache:
    c = QuestionCache(fetcher, store)
    c.register_count_callback(counter)
    return c
