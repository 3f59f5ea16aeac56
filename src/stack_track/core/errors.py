# src/stack_track/core/errors.py

from __future__ import annotations


class StackTrackError(Exception):
    """Base class for errors raised by stack_track."""


class FetchError(StackTrackError):
    """A tag fetch failed (transport, HTTP status, bad JSON or API error payload)."""


class MalformedPayloadError(StackTrackError, ValueError):
    """A raw question item is missing a required field or has an unusable value."""


class StatePersistenceError(StackTrackError):
    """The durable state store could not be read or written."""
