"""
Session matching package.

Groups annotated files into sessions, validates the groups and summarizes
them for reporting.
"""

from .service import SessionMatchingEngine, duplicate_roles, summarize

__all__ = ["SessionMatchingEngine", "duplicate_roles", "summarize"]
