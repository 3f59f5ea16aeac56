# src/stack_track/__init__.py

"""Track unanswered Stack Exchange questions for a set of watched tags."""

__version__ = "0.1.0"
