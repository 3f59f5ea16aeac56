# src/stack_track/core/models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from .errors import MalformedPayloadError


@dataclass(slots=True, frozen=True)
class Network:
    id: str
    name: str
    root: str


# Static catalog of the Stack Exchange sites we know how to query.
NETWORK_INFO: dict[str, Network] = {
    "stackoverflow": Network(id="stackoverflow", name="Stack Overflow", root="stackoverflow.com"),
    "ux": Network(id="ux", name="User Experience", root="ux.stackexchange.com"),
    "gamedev": Network(id="gamedev", name="Game Development", root="gamedev.stackexchange.com"),
}


class QuestionState(IntEnum):
    """
    Lifecycle of a tracked question.

    Transitions only move forward: NORMAL -> READ -> ARCHIVED.
    The integer value is what gets persisted.
    """

    NORMAL = 1
    READ = 2
    ARCHIVED = 3

    @classmethod
    def from_db(cls, raw: Any) -> QuestionState | None:
        try:
            return cls(int(raw))
        except (TypeError, ValueError, OverflowError):
            return None


@dataclass(slots=True, frozen=True)
class Tag:
    network: str
    name: str

    @classmethod
    def from_spec(cls, spec: Any) -> Tag:
        """
        Build a Tag from one of:
        - an existing Tag
        - a mapping with "network" and "name"
        - a "network:name" string
        """
        if isinstance(spec, Tag):
            return cls(network=spec.network, name=spec.name)

        if isinstance(spec, Mapping):
            network = spec.get("network")
            name = spec.get("name")
        elif isinstance(spec, str) and ":" in spec:
            network, _, name = spec.partition(":")
        else:
            raise ValueError(f"Unsupported tag spec: {spec!r}")

        network = str(network or "").strip()
        name = str(name or "").strip()
        if not network or not name:
            raise ValueError(f"Tag spec needs both network and name: {spec!r}")
        return cls(network=network, name=name)

    def get_network(self) -> Network:
        try:
            return NETWORK_INFO[self.network]
        except KeyError:
            raise KeyError(f"Unknown network: {self.network!r}") from None

    def __str__(self) -> str:
        return f"{self.network}:{self.name}"


def _require_int(item: Mapping[str, Any], key: str) -> int:
    raw = item.get(key)
    if raw is None or isinstance(raw, bool):
        raise MalformedPayloadError(f"question item is missing {key!r}")
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        raise MalformedPayloadError(f"question item has non-numeric {key!r}: {raw!r}") from None


def _opt_int(item: Mapping[str, Any], key: str) -> int:
    try:
        return int(item.get(key) or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


# Payload keys mapped onto explicit Question fields; everything else lands in `extra`.
_KNOWN_KEYS = frozenset(
    {
        "question_id",
        "last_activity_date",
        "answer_count",
        "title",
        "link",
        "score",
        "view_count",
        "creation_date",
        "tags",
        "owner",
    }
)


@dataclass(slots=True)
class Question:
    """
    One fetched question.

    Everything except `state` and `main_tag` comes from the fetch payload.
    `state` is owned by QuestionCache and should not be assigned by callers.
    """

    question_id: str
    last_activity_date: int
    answer_count: int

    title: str = ""
    link: str = ""
    score: int = 0
    view_count: int = 0
    creation_date: int = 0
    tags: list[str] = field(default_factory=list)
    owner_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    state: QuestionState = QuestionState.NORMAL
    main_tag: Tag | None = None

    @classmethod
    def from_payload(cls, item: Any) -> Question:
        if not isinstance(item, Mapping):
            raise MalformedPayloadError(f"question item is not an object: {type(item).__name__}")

        raw_id = item.get("question_id")
        if raw_id is None or str(raw_id).strip() == "":
            raise MalformedPayloadError("question item is missing 'question_id'")

        answer_count = _require_int(item, "answer_count") if item.get("answer_count") is not None else 0
        if answer_count < 0:
            raise MalformedPayloadError(f"question item has negative answer_count: {answer_count}")

        owner = item.get("owner")
        owner_name = owner.get("display_name") if isinstance(owner, Mapping) else None

        tags = item.get("tags")
        return cls(
            question_id=str(raw_id).strip(),
            last_activity_date=_require_int(item, "last_activity_date"),
            answer_count=answer_count,
            title=str(item.get("title") or ""),
            link=str(item.get("link") or ""),
            score=_opt_int(item, "score"),
            view_count=_opt_int(item, "view_count"),
            creation_date=_opt_int(item, "creation_date"),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            owner_name=owner_name,
            extra={k: v for k, v in item.items() if k not in _KNOWN_KEYS},
        )
