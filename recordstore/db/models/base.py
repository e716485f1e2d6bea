"""
Shared SQLAlchemy base and helpers.

Every record type handed to the repository derives from ``Base`` so that
schema reconciliation can find its table in ``Base.metadata``.
"""
from datetime import datetime, UTC

from sqlalchemy.orm import declarative_base


def now_utc():
    """Return an aware UTC datetime for default/updated timestamps."""
    return datetime.now(UTC)


Base = declarative_base()
