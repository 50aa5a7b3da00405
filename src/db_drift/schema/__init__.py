"""Declared models, dialect type mapping, and schema reconciliation.

Provides the type mapper (``map_type``), the per-table checkers
(``check_attributes``, ``check_foreign_keys``, ``check_indexes``), the
orchestrator (``validate_schemas``), and the model registry.

Usage:
    from db_drift.schema import validate_schemas, ValidationOptions, SchemaDriftError
    from db_drift.schema import load_models, map_type, Dialect
"""

from db_drift.schema.comparator import (
    check_attributes,
    check_foreign_keys,
    check_indexes,
    check_missing_columns,
)
from db_drift.schema.dialects import (
    DIALECT_CAPABILITIES,
    Dialect,
    DialectCapabilities,
    dialect_from_url,
    get_capabilities,
)
from db_drift.schema.models import (
    DEFAULT_EXCLUDE,
    AttributeDefinition,
    ColumnType,
    ConnectionResult,
    Discrepancy,
    DiscrepancyKind,
    IndexDefinition,
    IntrospectedColumn,
    IntrospectedForeignKey,
    IntrospectedIndex,
    ModelDefinition,
    Reference,
    SizeClass,
    TypeKind,
    ValidationMode,
    ValidationOptions,
    ValidationResult,
)
from db_drift.schema.registry import ModelRegistry, load_models
from db_drift.schema.types import TYPE_MAPPERS, map_column_type, map_type
from db_drift.schema.validator import SchemaDriftError, validate_schemas

__all__ = [
    "validate_schemas",
    "SchemaDriftError",
    "check_attributes",
    "check_missing_columns",
    "check_foreign_keys",
    "check_indexes",
    "map_type",
    "map_column_type",
    "TYPE_MAPPERS",
    "Dialect",
    "DialectCapabilities",
    "DIALECT_CAPABILITIES",
    "dialect_from_url",
    "get_capabilities",
    "ModelRegistry",
    "load_models",
    "DEFAULT_EXCLUDE",
    "TypeKind",
    "SizeClass",
    "ColumnType",
    "Reference",
    "AttributeDefinition",
    "IndexDefinition",
    "ModelDefinition",
    "IntrospectedColumn",
    "IntrospectedForeignKey",
    "IntrospectedIndex",
    "DiscrepancyKind",
    "Discrepancy",
    "ValidationMode",
    "ValidationOptions",
    "ValidationResult",
    "ConnectionResult",
]
