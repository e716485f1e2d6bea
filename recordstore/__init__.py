"""
Generic record repository over SQLAlchemy.

Exposes one interface for migrate/create/read/update/delete across any
declarative record type.
"""

from recordstore.db.loading import ALL_ASSOCIATIONS
from recordstore.db.models import Base, now_utc
from recordstore.db.repository import Repository, SQLAlchemyRepository, new_repository
from recordstore.exceptions import CompositePrimaryKeyError, MissingWhereClauseError

__all__ = [
    "ALL_ASSOCIATIONS",
    "Base",
    "now_utc",
    "Repository",
    "SQLAlchemyRepository",
    "new_repository",
    "CompositePrimaryKeyError",
    "MissingWhereClauseError",
]
