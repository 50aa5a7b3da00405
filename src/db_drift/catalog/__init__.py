"""Catalog introspection package.

Provides the ``CatalogClient`` Protocol and concrete async catalog
implementations for PostgreSQL and MySQL.

Usage:
    from db_drift.catalog import CatalogClient, AsyncPostgresCatalog, AsyncMySQLCatalog
"""

from db_drift.catalog.base import CatalogClient
from db_drift.catalog.mysql import AsyncMySQLCatalog
from db_drift.catalog.postgres import AsyncPostgresCatalog

__all__ = [
    "CatalogClient",
    "AsyncPostgresCatalog",
    "AsyncMySQLCatalog",
]
