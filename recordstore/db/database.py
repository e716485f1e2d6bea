"""
Database engine and session management.

Builds the SQLAlchemy engine from environment configuration with a test
fallback (SQLite in-memory) and exposes a session generator for callers
that construct repositories per unit of work.
"""
import os
import sys
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recordstore.utils.settings import get_settings

SQLITE_MEMORY_URL = "sqlite+pysqlite:///:memory:"


def _is_pytest_runtime() -> bool:
    """Best-effort detection that we're executing under pytest.

    ``PYTEST_CURRENT_TEST`` is only set while an individual test runs, so
    also look for the pytest package in ``sys.modules``. ``PYTEST_RUNNING=1``
    forces the answer.
    """
    if os.getenv("PYTEST_RUNNING") == "1":
        return True
    if "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "pytest" in sys.modules:
        return True
    return False


def _get_database_url() -> str:
    # Test override first, then an explicit URL, then individual components
    explicit_test_db = os.getenv("RECORDSTORE_TEST_DB")
    if explicit_test_db:
        return explicit_test_db

    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    db_user = os.getenv("POSTGRES_USER")
    db_password = os.getenv("POSTGRES_PASSWORD")
    db_host = os.getenv("POSTGRES_HOST")
    db_port = os.getenv("POSTGRES_PORT")
    db_name = os.getenv("POSTGRES_DB")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        if _is_pytest_runtime() and not any([db_user, db_password, db_host, db_port, db_name]):
            return SQLITE_MEMORY_URL
        missing = []
        if not db_user: missing.append("POSTGRES_USER")
        if not db_password: missing.append("POSTGRES_PASSWORD")
        if not db_host: missing.append("POSTGRES_HOST")
        if not db_port: missing.append("POSTGRES_PORT")
        if not db_name: missing.append("POSTGRES_DB")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    return f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


def _engine_kwargs(url: str) -> dict:
    kwargs = {"echo": get_settings().sql_echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # StaticPool so the schema persists across connections
            kwargs["poolclass"] = StaticPool
    return kwargs


@lru_cache(maxsize=None)
def get_engine() -> Engine:
    """Return the process-wide engine, created on first use."""
    url = _get_database_url()
    return create_engine(url, **_engine_kwargs(url))


@lru_cache(maxsize=None)
def get_session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def reset_engine() -> None:
    """Dispose the cached engine so the next call re-reads the environment."""
    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()


def get_db():
    """Yield a database session and close it afterwards."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
