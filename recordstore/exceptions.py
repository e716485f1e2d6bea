"""Errors raised by the repository layer itself.

Everything else is SQLAlchemy's own exception hierarchy, passed through
unchanged.
"""
from sqlalchemy.exc import InvalidRequestError


class MissingWhereClauseError(InvalidRequestError):
    """A bulk update had no filter and global updates are not enabled."""


class CompositePrimaryKeyError(InvalidRequestError):
    """The record type does not map to a single identifier column."""

    def __init__(self, model, key_names):
        self.model = model
        self.key_names = tuple(key_names)
        super().__init__(
            f"{getattr(model, '__name__', model)!s} must declare exactly one primary key column, "
            f"found {len(self.key_names)}: {', '.join(self.key_names) or '<none>'}"
        )
