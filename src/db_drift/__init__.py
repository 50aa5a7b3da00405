"""db-drift: Dialect-aware schema drift validation.

Compares a live PostgreSQL or MySQL schema against declared table models and
reports every mismatch in types, nullability, keys, foreign keys, and
indexes.

Usage:
    from db_drift import AsyncPostgresCatalog, load_models, validate_schemas
    from db_drift import SchemaDriftError, ValidationOptions, ValidationMode
    from db_drift import connect_and_validate, load_db_config
"""

__version__ = "0.1.0"

# Catalogs
from db_drift.catalog.base import CatalogClient
from db_drift.catalog.mysql import AsyncMySQLCatalog
from db_drift.catalog.postgres import AsyncPostgresCatalog

# Config
from db_drift.config.loader import load_db_config
from db_drift.config.models import DatabaseConfig, DatabaseProfile, ValidationSettings

# Factory
from db_drift.factory import (
    ProfileNotFoundError,
    connect_and_validate,
    create_catalog,
    get_catalog,
    resolve_url,
)

# Schema
from db_drift.schema.dialects import Dialect
from db_drift.schema.models import (
    AttributeDefinition,
    ConnectionResult,
    Discrepancy,
    DiscrepancyKind,
    IndexDefinition,
    ModelDefinition,
    ValidationMode,
    ValidationOptions,
    ValidationResult,
)
from db_drift.schema.registry import ModelRegistry, load_models
from db_drift.schema.types import map_type
from db_drift.schema.validator import SchemaDriftError, validate_schemas

__all__ = [
    # Catalogs
    "CatalogClient",
    "AsyncPostgresCatalog",
    "AsyncMySQLCatalog",
    # Config
    "load_db_config",
    "DatabaseProfile",
    "DatabaseConfig",
    "ValidationSettings",
    # Factory
    "get_catalog",
    "create_catalog",
    "connect_and_validate",
    "ProfileNotFoundError",
    "resolve_url",
    # Schema
    "Dialect",
    "AttributeDefinition",
    "IndexDefinition",
    "ModelDefinition",
    "ModelRegistry",
    "load_models",
    "map_type",
    "validate_schemas",
    "SchemaDriftError",
    "Discrepancy",
    "DiscrepancyKind",
    "ValidationMode",
    "ValidationOptions",
    "ValidationResult",
    "ConnectionResult",
]
