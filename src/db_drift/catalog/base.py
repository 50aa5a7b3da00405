"""Catalog client protocol definition.

Defines the ``CatalogClient`` Protocol that every dialect's catalog
introspector implements.  All query methods are ``async def`` and return
fresh data on every call -- nothing is cached between validation runs.

Usage:
    from db_drift.catalog.base import CatalogClient

    async def show(catalog: CatalogClient) -> None:
        for table in await catalog.list_tables():
            columns = await catalog.describe_table(table)
            indexes = await catalog.list_indexes(table)
        await catalog.close()
"""

from typing import Protocol

from db_drift.schema.dialects import Dialect
from db_drift.schema.models import (
    IntrospectedColumn,
    IntrospectedForeignKey,
    IntrospectedIndex,
)


class CatalogClient(Protocol):
    """Read-only view of a live database's catalog.

    All methods are async -- callers must ``await`` every operation.
    """

    dialect: Dialect

    async def list_tables(self) -> list[str]:
        """List base table names (views excluded), sorted by name."""
        ...

    async def describe_table(self, table: str) -> dict[str, IntrospectedColumn]:
        """Describe a table's columns.

        Args:
            table: Table name.

        Returns:
            Dict mapping column name to ``IntrospectedColumn``, in column
            order.  Column types use the dialect's native spelling, upper
            case (e.g. ``"CHARACTER VARYING(255)"``, ``"INT(11) UNSIGNED"``).
        """
        ...

    async def list_foreign_keys(self, table: str) -> list[IntrospectedForeignKey]:
        """List foreign key constraints declared on *table*.

        Raises:
            NotImplementedError: If the dialect cannot introspect foreign
                keys through a generic query.
        """
        ...

    async def list_indexes(self, table: str) -> list[IntrospectedIndex]:
        """List indexes on *table*, including the primary key index.

        Each index's ``fields`` are in index column order.
        """
        ...

    async def test_connection(self) -> bool:
        """Return ``True`` if the database answers ``SELECT 1``."""
        ...

    async def close(self) -> None:
        """Dispose of the connection pool."""
        ...
