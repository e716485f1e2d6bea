import os
import pytest

from recordstore.db import database
from recordstore.utils.settings import refresh_settings_cache

# Store original environment variables to restore after tests
_original_env = {}
_TEST_VARS = [
    'RECORDSTORE_TEST_DB',
    'RECORDSTORE_ALLOW_GLOBAL_UPDATE',
    'RECORDSTORE_SQL_ECHO',
    'RECORDSTORE_STREAM_BATCH_SIZE',
]


def _setup_test_env():
    """Point the engine at in-memory SQLite and clear behavior toggles."""
    for var in _TEST_VARS:
        if var in os.environ:
            _original_env[var] = os.environ.pop(var)
    os.environ['RECORDSTORE_TEST_DB'] = database.SQLITE_MEMORY_URL


def _restore_env():
    for var in _TEST_VARS:
        os.environ.pop(var, None)
    for var, value in _original_env.items():
        os.environ[var] = value
    _original_env.clear()


_setup_test_env()


@pytest.fixture(scope="session", autouse=True)
def _restore_test_env():
    """Restore original environment variables after all tests complete"""
    yield
    _restore_env()
    refresh_settings_cache()
    database.reset_engine()
