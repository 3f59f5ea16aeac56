# src/stack_track/core/question_cache.py

from __future__ import annotations

"""
Question cache.

Single owner of every known question and its lifecycle state:
- merges fetched items (dedup by question_id, newer last_activity_date wins),
- exposes filtered/sorted views (archived questions are never listed),
- applies NORMAL -> READ -> ARCHIVED transitions,
- mirrors state into a persisted map stored under one key.

All map mutation happens in synchronous methods, so on a single event loop each
merge runs to completion before the next fetch reply is processed.
"""

import asyncio
import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import fields
from typing import Any

from .errors import StatePersistenceError
from .models import Question, QuestionState, Tag
from .ports import QuestionFetcher, RawQuestionItem, StateStore

logger = logging.getLogger(__name__)

# Number of questions requested per tag on an explicit update().
INITIAL_QUANTITY = 5

# Number of questions requested per tag on each scheduled update.
UPDATE_QUANTITY = 5

UPDATE_INTERVAL_SECONDS = 60.0

# Store key holding the JSON {question_id: state ordinal} blob.
STATE_KEY = "questionState"

CountCallback = Callable[[], Any]

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Question attributes that can be used as sort keys.
_SORTABLE_FIELDS = frozenset(
    {"last_activity_date", "answer_count", "score", "view_count", "creation_date", "state"}
)
_UNSORTABLE_FIELDS = frozenset(f.name for f in fields(Question)) - _SORTABLE_FIELDS


def encode_question_state(state_map: dict[str, QuestionState]) -> str:
    return json.dumps({qid: int(st) for qid, st in state_map.items()})


def decode_question_state(raw: str | None) -> dict[str, QuestionState]:
    """Parse the persisted blob. Anything unreadable yields an empty map."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Persisted question state is not valid JSON; starting empty")
        return {}
    if not isinstance(data, dict):
        logger.warning("Persisted question state is not an object; starting empty")
        return {}

    out: dict[str, QuestionState] = {}
    for qid, raw_state in data.items():
        st = QuestionState.from_db(raw_state)
        if st is None:
            logger.debug("Dropping persisted state for %s: %r", qid, raw_state)
            continue
        out[str(qid)] = st
    return out


class QuestionCache:
    def __init__(
            self,
            fetcher: QuestionFetcher,
            store: StateStore,
            *,
            initial_quantity: int = INITIAL_QUANTITY,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._initial_quantity = int(initial_quantity)

        self._questions: dict[str, Question] = {}
        self._question_state: dict[str, QuestionState] = self._load_question_state()
        self._count_callback: CountCallback | None = None

        # Strong refs for in-flight fetch tasks; asyncio only keeps weak ones.
        self._inflight: set[asyncio.Task[int]] = set()

        self.tags: list[Tag] = []

    def _load_question_state(self) -> dict[str, QuestionState]:
        try:
            raw = self._store.get(STATE_KEY)
        except StatePersistenceError:
            logger.exception("Failed to read persisted question state; starting empty")
            return {}
        state_map = decode_question_state(raw)
        logger.info("Loaded persisted state for %d questions", len(state_map))
        return state_map

    # ---- configuration ----

    def set_tags(self, tag_specs: Iterable[Any]) -> None:
        """Replace the watched tags. Does not fetch."""
        self.tags = [Tag.from_spec(spec) for spec in tag_specs]
        logger.info("Watching %d tags: %s", len(self.tags), ", ".join(str(t) for t in self.tags))

    def register_count_callback(self, callback: CountCallback | None) -> None:
        """Set the single no-arg callback fired when unread/read counts may have changed."""
        self._count_callback = callback

    def reset(self) -> None:
        """
        Forget all questions and all persisted state.

        Nothing is written to the store here; the empty map only becomes durable
        on the next save_question_state() (or any mutator that flushes).
        """
        self._questions = {}
        self._question_state = {}

    # ---- views ----

    def get_questions(
            self,
            sort: str | None = None,
            limit: int | None = None,
            offset: int | None = None,
    ) -> list[Question]:
        """
        Non-archived questions.

        sort: numeric field name; descending by default, "-field" for ascending.
        offset is applied before limit.
        """
        out = [q for q in self._questions.values() if q.state != QuestionState.ARCHIVED]

        if sort:
            ascending = sort.startswith("-")
            field_name = sort[1:] if ascending else sort
            attr = _resolve_sort_field(out, field_name)
            # sorted() is stable for reverse=True as well.
            out = sorted(out, key=lambda q: _sort_value(q, attr), reverse=not ascending)

        if offset is not None:
            out = out[max(0, offset):]
        if limit is not None:
            out = out[:max(0, limit)]
        return out

    def get_question(self, question_id: str) -> Question | None:
        return self._questions.get(str(question_id))

    def get_question_count(self, state: QuestionState = QuestionState.NORMAL) -> int:
        return sum(1 for q in self.get_questions() if q.state == state)

    # ---- fetching ----

    def update(self, quantity: int | None = None) -> list[asyncio.Task[int]]:
        """
        Fetch `quantity` questions for every watched tag and merge the results.

        One task per tag; tasks are not joined, each merges on its own completion.
        The returned handles let callers await or inspect individual fetches.
        Must be called from inside a running event loop.
        """
        qty = self._initial_quantity if quantity is None else int(quantity)

        tasks: list[asyncio.Task[int]] = []
        for tag in list(self.tags):
            task = asyncio.create_task(self._fetch_and_merge(tag, qty), name=f"fetch:{tag}")
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            tasks.append(task)
        logger.debug("Scheduled %d tag fetches quantity=%d", len(tasks), qty)
        return tasks

    async def _fetch_and_merge(self, tag: Tag, quantity: int) -> int:
        try:
            items = await self._fetcher.fetch(tag, quantity)
        except Exception:
            logger.exception("Fetch failed tag=%s quantity=%d", tag, quantity)
            return 0
        return self.merge(items, tag)

    def merge(self, raw_items: Iterable[RawQuestionItem], tag: Tag) -> int:
        """
        Reconcile one batch of fetched items for `tag`.

        Returns the number of question ids that were not known before. The count
        callback fires once, after the whole batch, if that number is non-zero.
        """
        new_ids = 0
        for item in raw_items:
            try:
                q = Question.from_payload(item)
            except ValueError as e:
                logger.warning("Skipping malformed question item tag=%s: %s", tag, e)
                continue

            existing = self._questions.get(q.question_id)
            if existing is not None and q.last_activity_date <= existing.last_activity_date:
                continue

            previous = existing.state if existing is not None else QuestionState.NORMAL
            q.state = self._question_state.get(q.question_id, previous)
            q.main_tag = tag
            self._questions[q.question_id] = q
            if existing is None:
                new_ids += 1

        if new_ids:
            logger.info("Merged %d new questions tag=%s", new_ids, tag)
            self._notify_count_changed()
        return new_ids

    # ---- state transitions ----

    def archive_read(self) -> None:
        """Archive every READ question, then persist the state of everything listed."""
        archived = 0
        for q in self.get_questions():
            if q.state == QuestionState.READ:
                q.state = QuestionState.ARCHIVED
                archived += 1
            self._question_state[q.question_id] = q.state

        logger.info("Archived %d read questions", archived)
        self._flush_question_state()
        self._notify_count_changed()

    def mark_read(self, questions: Iterable[Question | str]) -> None:
        """
        Force READ on each question, regardless of NORMAL/READ.

        Archived questions are left as they are.
        """
        marked = 0
        for ref in questions:
            qid = ref.question_id if isinstance(ref, Question) else str(ref)
            q = self._questions.get(qid)
            if q is None and isinstance(ref, Question):
                q = ref

            current = q.state if q is not None else self._question_state.get(qid, QuestionState.NORMAL)
            if current == QuestionState.ARCHIVED:
                logger.debug("Not marking archived question %s as read", qid)
                continue

            if q is not None:
                q.state = QuestionState.READ
            self._question_state[qid] = QuestionState.READ
            marked += 1

        logger.info("Marked %d questions as read", marked)
        self._flush_question_state()
        self._notify_count_changed()

    def archive_with_answers(self) -> None:
        """Archive every listed question that already has at least one answer."""
        answered = [q for q in self.get_questions() if q.answer_count > 0]
        self.mark_read(answered)
        self.archive_read()

    # ---- persistence ----

    def question_state_snapshot(self) -> dict[str, QuestionState]:
        return dict(self._question_state)

    def save_question_state(self) -> None:
        """Overwrite the stored state blob with the current persisted map."""
        self._store.set(STATE_KEY, encode_question_state(self._question_state))

    def _flush_question_state(self) -> None:
        try:
            self.save_question_state()
        except StatePersistenceError:
            logger.exception("Failed to persist question state")

    def _notify_count_changed(self) -> None:
        cb = self._count_callback
        if cb is None:
            return
        try:
            cb()
        except Exception:
            logger.exception("Count callback failed")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _resolve_sort_field(questions: list[Question], name: str) -> str:
    """
    Map a sort key to a numeric Question attribute or a numeric payload key in `extra`.

    Raises ValueError for anything else.
    """
    if name in _SORTABLE_FIELDS:
        return name
    snake = _CAMEL_RE.sub("_", name).lower()
    if snake in _SORTABLE_FIELDS:
        return snake
    if name in _UNSORTABLE_FIELDS or snake in _UNSORTABLE_FIELDS:
        raise ValueError(f"Sort key is not numeric: {name!r}")

    values = [q.extra[name] for q in questions if name in q.extra]
    if values and all(v is None or _is_number(v) for v in values):
        return name
    if not questions:
        return name
    raise ValueError(f"Unknown or non-numeric sort key: {name!r}")


def _sort_value(q: Question, attr: str) -> Any:
    if attr in _SORTABLE_FIELDS:
        return getattr(q, attr)
    value = q.extra.get(attr)
    return 0 if value is None else value
