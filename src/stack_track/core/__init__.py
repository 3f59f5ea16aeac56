"""
Question tracking core.

Components:
- models.py: data structures (Tag, Question, QuestionState, network catalog)
- ports.py: fetcher and state store Protocols
- question_cache.py: merge/dedup, views, state transitions, state persistence
- scheduler.py: periodic update loop
"""
