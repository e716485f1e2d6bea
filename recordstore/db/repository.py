"""
Generic record repository.

One call surface for schema migration and CRUD over any record type mapped
on ``recordstore.db.models.Base``. Every method forwards to a single
SQLAlchemy call; errors from the ORM are re-raised unchanged. Write paths
roll the session back before re-raising, and read paths do so for errors
raised by the database driver, so the caller's session stays usable after a
failed statement.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import delete as sa_delete
from sqlalchemy import inspect, select, text
from sqlalchemy import update as sa_update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session

from recordstore.db.loading import ALL_ASSOCIATIONS, LoadPolicy, resolve_load_options
from recordstore.db.models import Base
from recordstore.db.schema_sync import sync_table
from recordstore.exceptions import CompositePrimaryKeyError, MissingWhereClauseError
from recordstore.utils.settings import get_settings

RecordT = TypeVar("RecordT", bound=Base)

_module_logger = logging.getLogger(__name__)


def identity_attribute(model):
    """Return the mapped attribute holding ``model``'s single-column identifier."""
    mapper = inspect(model)
    columns = mapper.primary_key
    if len(columns) != 1:
        raise CompositePrimaryKeyError(model, [c.name for c in columns])
    prop = mapper.get_property_by_column(columns[0])
    return getattr(mapper.class_, prop.key)


def changed_values(model, updated) -> dict:
    """Collect the values a bulk update should write.

    Mappings are used as-is, pydantic models contribute only the fields
    explicitly set, and ORM instances contribute every non-null column
    except the identifier.
    """
    if isinstance(updated, Mapping):
        return dict(updated)
    if isinstance(updated, BaseModel):
        return updated.model_dump(exclude_unset=True)
    mapper = inspect(model)
    key = identity_attribute(model).key
    values = {}
    for attr in mapper.column_attrs:
        if attr.key == key:
            continue
        value = getattr(updated, attr.key)
        if value is not None:
            values[attr.key] = value
    return values


class Repository(ABC, Generic[RecordT]):
    """
    Abstract interface for generic record access.

    Read operations accept a ``load`` policy (see ``recordstore.db.loading``)
    naming the associations to eager-load. Failures surface as SQLAlchemy
    exceptions; the repository adds no retry or classification.
    """

    @abstractmethod
    def migrate(self, model: Type[RecordT]) -> bool:
        """Create or extend the table for ``model``. Idempotent."""

    @abstractmethod
    def create(self, record: RecordT) -> RecordT:
        """Persist ``record`` and return it with generated fields populated."""

    @abstractmethod
    def get_rows(self, model: Type[RecordT], load: LoadPolicy = ALL_ASSOCIATIONS) -> List[RecordT]:
        """Stream every row of ``model`` through a server-side cursor."""

    @abstractmethod
    def get(
        self,
        model: Type[RecordT],
        fields: Mapping[str, Any],
        load: LoadPolicy = ALL_ASSOCIATIONS,
    ) -> List[RecordT]:
        """Return records whose columns equal every value in ``fields``."""

    @abstractmethod
    def get_all(self, model: Type[RecordT], load: LoadPolicy = ALL_ASSOCIATIONS) -> List[RecordT]:
        """Return every record of ``model``."""

    @abstractmethod
    def first(self, model: Type[RecordT], id: Any, load: LoadPolicy = ALL_ASSOCIATIONS) -> RecordT:
        """Return the record with identifier ``id`` or raise ``NoResultFound``."""

    @abstractmethod
    def find_all(
        self,
        model: Type[RecordT],
        raw_filter: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[RecordT]:
        """Return records matching a literal SQL WHERE fragment.

        ``raw_filter`` is passed to the database verbatim. Never build it
        from untrusted input; bind values through ``params`` instead.
        """

    @abstractmethod
    def update(self, model: Type[RecordT], id: Any, fields: Mapping[str, Any]) -> bool:
        """Write each column in ``fields`` on the row identified by ``id``."""

    @abstractmethod
    def updates(self, target: Union[RecordT, Type[RecordT]], updated: Any) -> int:
        """Bulk update rows selected by ``target`` from ``updated``'s values."""

    @abstractmethod
    def delete(self, model: Type[RecordT], id: Any) -> bool:
        """Delete the row identified by ``id``."""


class SQLAlchemyRepository(Repository[RecordT]):
    """
    Repository backed by a SQLAlchemy ``Session``.

    The session is injected and never closed here; its lifetime and thread
    confinement belong to the caller.

    Attributes:
        db: SQLAlchemy session used for every call
        logger: destination for debug traces of delegated calls
        allow_global_update: whether ``updates`` may run without a filter
        stream_batch_size: rows fetched per round trip in ``get_rows``
    """

    def __init__(
        self,
        db: Session,
        logger: Optional[logging.Logger] = None,
        *,
        allow_global_update: Optional[bool] = None,
        stream_batch_size: Optional[int] = None,
    ):
        settings = get_settings()
        self.db = db
        self.logger = logger or _module_logger
        self.allow_global_update = (
            settings.allow_global_update if allow_global_update is None else allow_global_update
        )
        self.stream_batch_size = stream_batch_size or settings.stream_batch_size

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _execute_write(self, stmt) -> int:
        try:
            rowcount = self.db.execute(stmt).rowcount
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return rowcount

    def _execute_read(self, stmt):
        try:
            return self.db.execute(stmt)
        except DBAPIError:
            # A failed statement aborts the transaction on Postgres
            self.db.rollback()
            raise

    def migrate(self, model: Type[RecordT]) -> bool:
        self.logger.debug("Migrating schema for %s", model.__name__)
        try:
            sync_table(self.db.connection(), model)
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self._commit()
        return True

    def create(self, record: RecordT) -> RecordT:
        self.logger.debug("Creating %s", type(record).__name__)
        self.db.add(record)
        self._commit()
        self.db.refresh(record)
        return record

    def get_rows(self, model: Type[RecordT], load: LoadPolicy = ALL_ASSOCIATIONS) -> List[RecordT]:
        stmt = (
            select(model)
            .options(*resolve_load_options(model, load))
            .execution_options(yield_per=self.stream_batch_size)
        )
        self.logger.debug("Streaming rows of %s in batches of %d", model.__name__, self.stream_batch_size)
        result = self._execute_read(stmt)
        try:
            # A row that fails to load raises here instead of being skipped
            return list(result.scalars())
        except DBAPIError:
            self.db.rollback()
            raise
        finally:
            result.close()

    def get(
        self,
        model: Type[RecordT],
        fields: Mapping[str, Any],
        load: LoadPolicy = ALL_ASSOCIATIONS,
    ) -> List[RecordT]:
        self.logger.debug("Querying %s where %s", model.__name__, sorted(fields))
        stmt = select(model).filter_by(**fields).options(*resolve_load_options(model, load))
        return list(self._execute_read(stmt).scalars().all())

    def get_all(self, model: Type[RecordT], load: LoadPolicy = ALL_ASSOCIATIONS) -> List[RecordT]:
        self.logger.debug("Loading all %s", model.__name__)
        stmt = select(model).options(*resolve_load_options(model, load))
        return list(self._execute_read(stmt).scalars().all())

    def first(self, model: Type[RecordT], id: Any, load: LoadPolicy = ALL_ASSOCIATIONS) -> RecordT:
        key = identity_attribute(model)
        self.logger.debug("Loading %s %s=%r", model.__name__, key.key, id)
        stmt = (
            select(model)
            .where(key == id)
            .options(*resolve_load_options(model, load))
            .order_by(key)
            .limit(1)
        )
        return self._execute_read(stmt).scalars().one()

    def find_all(
        self,
        model: Type[RecordT],
        raw_filter: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[RecordT]:
        self.logger.warning("Raw filter on %s: %s", model.__name__, raw_filter)
        clause = text(raw_filter)
        if params:
            clause = clause.bindparams(**params)
        stmt = select(model).where(clause)
        return list(self._execute_read(stmt).scalars().all())

    def update(self, model: Type[RecordT], id: Any, fields: Mapping[str, Any]) -> bool:
        key = identity_attribute(model)
        # One statement and commit per column; a failure leaves earlier columns written
        for column, value in fields.items():
            self.logger.debug("Updating %s %s=%r set %s", model.__name__, key.key, id, column)
            self._execute_write(sa_update(model).where(key == id).values({column: value}))
        return True

    def updates(self, target: Union[RecordT, Type[RecordT]], updated: Any) -> int:
        model = target if isinstance(target, type) else type(target)
        values = changed_values(model, updated)
        if not values:
            self.logger.debug("Nothing to update on %s", model.__name__)
            return 0

        stmt = sa_update(model).values(values)
        key = identity_attribute(model)
        identifier = None if isinstance(target, type) else getattr(target, key.key)
        if identifier is not None:
            stmt = stmt.where(key == identifier)
        elif not self.allow_global_update:
            raise MissingWhereClauseError(
                f"Refusing to update every {model.__name__} row without a filter; "
                "enable allow_global_update to permit it"
            )
        else:
            self.logger.warning("Global update of %s: %s", model.__name__, sorted(values))

        return self._execute_write(stmt)

    def delete(self, model: Type[RecordT], id: Any) -> bool:
        key = identity_attribute(model)
        self.logger.debug("Deleting %s %s=%r", model.__name__, key.key, id)
        self._execute_write(sa_delete(model).where(key == id))
        return True


def new_repository(db: Session, logger: Optional[logging.Logger] = None, **options) -> SQLAlchemyRepository:
    """Build the default repository over an existing session."""
    return SQLAlchemyRepository(db, logger, **options)
