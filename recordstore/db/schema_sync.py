"""
Additive schema reconciliation for a single record type.

Creates the table when it is missing and adds columns that are declared on
the model but absent from the database. Existing columns are never altered
or dropped; type and nullability drift is left to versioned migrations.
"""
from __future__ import annotations

import logging
from typing import List

from alembic.autogenerate import compare_metadata
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)


def _restrict_to(table):
    def include_name(name, type_, parent_names):
        if type_ == "table":
            return name == table.name
        return True

    def include_object(obj, name, type_, reflected, compare_to):
        if type_ == "table":
            return name == table.name
        parent = getattr(obj, "table", None)
        return parent is None or parent.name == table.name

    return include_name, include_object


def missing_columns(connection: Connection, model) -> List[tuple]:
    """Return ``(schema, table_name, column)`` for each column not yet in the database."""
    table = model.__table__
    include_name, include_object = _restrict_to(table)
    context = MigrationContext.configure(
        connection,
        opts={"include_name": include_name, "include_object": include_object},
    )
    diffs = compare_metadata(context, table.metadata)
    # Modifications come back as nested lists; only plain add_column tuples matter here
    return [
        (diff[1], diff[2], diff[3])
        for diff in diffs
        if isinstance(diff, tuple) and diff[0] == "add_column" and diff[2] == table.name
    ]


def sync_table(connection: Connection, model) -> List[str]:
    """Create or extend ``model``'s table; return the names of columns added."""
    table = model.__table__
    table.create(bind=connection, checkfirst=True)

    added = []
    columns = missing_columns(connection, model)
    if columns:
        ops = Operations(MigrationContext.configure(connection))
        for schema, table_name, column in columns:
            # add_column binds the column to a fresh Table, so hand it a detached copy
            ops.add_column(table_name, column._copy(), schema=schema)
            added.append(column.name)
        logger.info("Added columns to %s: %s", table.name, ", ".join(added))
    return added
