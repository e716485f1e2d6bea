"""
Declarative base for persistable records.

Applications declare their own ORM classes on top of ``Base``; the library
ships no domain models of its own.
"""

from .base import Base, now_utc  # re-export

__all__ = [
    "Base",
    "now_utc",
]
