import logging

import pytest
from sqlalchemy.orm import Session

from recordstore.db import database
from recordstore.db.models import Base
from recordstore.db.repository import new_repository


@pytest.fixture(scope="module")
def engine():
    eng = database.get_engine()
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(bind=eng)


@pytest.fixture
def db(engine):
    session = database.get_session_factory()()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db: Session):
    return new_repository(db, logging.getLogger("tests.repository"))


@pytest.fixture
def global_repo(db: Session):
    return new_repository(db, allow_global_update=True)
