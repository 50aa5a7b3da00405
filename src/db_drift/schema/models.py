"""Pydantic models for declared models, introspected catalog state, and drift.

This module contains schema-domain models:
- Declared model: TypeKind, ColumnType, Reference, AttributeDefinition,
  IndexDefinition, ModelDefinition
- Introspection models: IntrospectedColumn, IntrospectedForeignKey,
  IntrospectedIndex
- Validation models: DiscrepancyKind, Discrepancy, ValidationMode,
  ValidationOptions, ValidationResult
- Connection result: ConnectionResult

Configuration models (DatabaseProfile, DatabaseConfig) live in
db_drift.config.models.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from db_drift.schema.dialects import Dialect

DEFAULT_STRING_LENGTH = 255

# Migration bookkeeping table skipped unless the caller says otherwise
DEFAULT_EXCLUDE: tuple[str, ...] = ("schema_migrations",)


# ============================================================================
# Declared Model
# ============================================================================


class TypeKind(str, Enum):
    """Abstract column types a model attribute can declare."""

    STRING = "STRING"
    CHAR = "CHAR"
    TEXT = "TEXT"
    TINYINT = "TINYINT"
    SMALLINT = "SMALLINT"
    MEDIUMINT = "MEDIUMINT"
    INTEGER = "INTEGER"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    DECIMAL = "DECIMAL"
    BOOLEAN = "BOOLEAN"
    DATE = "DATE"
    DATEONLY = "DATEONLY"
    TIME = "TIME"
    UUID = "UUID"
    ENUM = "ENUM"
    JSON = "JSON"
    JSONB = "JSONB"
    BLOB = "BLOB"


class SizeClass(str, Enum):
    """Storage class for TEXT and BLOB columns."""

    TINY = "tiny"
    MEDIUM = "medium"
    LONG = "long"


_KIND_ALIASES: dict[str, TypeKind] = {
    "VARCHAR": TypeKind.STRING,
    "INT": TypeKind.INTEGER,
    "BOOL": TypeKind.BOOLEAN,
    "NUMERIC": TypeKind.DECIMAL,
    "DATETIME": TypeKind.DATE,
    "REAL": TypeKind.DOUBLE,
}

_SIZED_ALIASES: dict[str, tuple[TypeKind, SizeClass]] = {
    "TINYTEXT": (TypeKind.TEXT, SizeClass.TINY),
    "MEDIUMTEXT": (TypeKind.TEXT, SizeClass.MEDIUM),
    "LONGTEXT": (TypeKind.TEXT, SizeClass.LONG),
    "TINYBLOB": (TypeKind.BLOB, SizeClass.TINY),
    "MEDIUMBLOB": (TypeKind.BLOB, SizeClass.MEDIUM),
    "LONGBLOB": (TypeKind.BLOB, SizeClass.LONG),
}

_DESCRIPTOR_RE = re.compile(
    r"^\s*(?P<name>[A-Za-z]+)\s*(?:\((?P<args>.*)\))?\s*(?P<unsigned>UNSIGNED)?\s*$",
    re.IGNORECASE | re.DOTALL,
)
_ENUM_LITERAL_RE = re.compile(r"'((?:[^']|'')*)'")


class ColumnType(BaseModel):
    """An abstract column type with its parameters.

    Parameters that do not apply to a kind are left as ``None``.

    Example:
        >>> ColumnType.parse("DECIMAL(10,2) UNSIGNED")
        ColumnType(kind=<TypeKind.DECIMAL: 'DECIMAL'>, length=None, precision=10, scale=2, unsigned=True, values=[], size=None)
        >>> str(ColumnType.parse("enum('a','b')"))
        "ENUM('a','b')"
    """

    model_config = ConfigDict(frozen=True)

    kind: TypeKind
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    unsigned: bool = False
    values: list[str] = Field(default_factory=list)
    size: SizeClass | None = None

    @classmethod
    def parse(cls, descriptor: str) -> "ColumnType":
        """Parse a type descriptor such as ``"STRING(100)"`` or ``"INT UNSIGNED"``.

        Raises:
            ValueError: If the descriptor or its type name is not recognised.
        """
        match = _DESCRIPTOR_RE.match(descriptor)
        if match is None:
            raise ValueError(f"Invalid type descriptor: {descriptor!r}")

        name = match.group("name").upper()
        args = (match.group("args") or "").strip()
        unsigned = match.group("unsigned") is not None

        size: SizeClass | None = None
        if name in _SIZED_ALIASES:
            kind, size = _SIZED_ALIASES[name]
        elif name in _KIND_ALIASES:
            kind = _KIND_ALIASES[name]
        else:
            try:
                kind = TypeKind(name)
            except ValueError:
                raise ValueError(
                    f"Unknown type {name!r} in descriptor {descriptor!r}"
                ) from None

        params: dict = {"kind": kind, "unsigned": unsigned, "size": size}

        if not args:
            return cls(**params)

        if kind is TypeKind.ENUM:
            params["values"] = [
                v.replace("''", "'") for v in _ENUM_LITERAL_RE.findall(args)
            ]
        elif kind in (TypeKind.TEXT, TypeKind.BLOB):
            params["size"] = SizeClass(args.strip("'\" ").lower())
        elif kind in (TypeKind.DECIMAL, TypeKind.FLOAT, TypeKind.DOUBLE):
            parts = [p.strip() for p in args.split(",")]
            params["precision"] = int(parts[0])
            if len(parts) > 1:
                params["scale"] = int(parts[1])
        elif kind is TypeKind.DATE:
            params["precision"] = int(args)
        else:
            params["length"] = int(args)

        return cls(**params)

    def __str__(self) -> str:
        """Render back to a descriptor, used in diagnostics."""
        name = self.kind.value
        if self.size is not None:
            args = f"'{self.size.value}'"
        elif self.kind is TypeKind.ENUM:
            args = ",".join("'" + v.replace("'", "''") + "'" for v in self.values)
        elif self.precision is not None and self.scale is not None:
            args = f"{self.precision},{self.scale}"
        elif self.precision is not None:
            args = str(self.precision)
        elif self.length is not None:
            args = str(self.length)
        else:
            args = ""
        text = f"{name}({args})" if args else name
        return f"{text} UNSIGNED" if self.unsigned else text


class Reference(BaseModel):
    """Foreign key target declared on an attribute."""

    model_config = ConfigDict(frozen=True)

    table: str
    key: str = "id"


class AttributeDefinition(BaseModel):
    """A declared model attribute.

    ``allow_null=None`` means nullable.  ``unique`` is ``None`` (not unique),
    a bool, or a group token shared by attributes of one composite unique key.

    Example:
        >>> attr = AttributeDefinition(name="email", type="STRING(100)", unique=True)
        >>> attr.field, attr.nullable
        ('email', True)
    """

    model_config = ConfigDict(frozen=True)

    name: str
    field: str
    type: ColumnType
    primary_key: bool = False
    auto_increment: bool = False
    allow_null: bool | None = None
    unique: bool | str | None = None
    comment: str | None = None
    references: Reference | None = None

    @model_validator(mode="before")
    @classmethod
    def _default_field_to_name(cls, data):
        if isinstance(data, dict) and not data.get("field"):
            data = {**data, "field": data.get("name", "")}
        return data

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value):
        if isinstance(value, str):
            return ColumnType.parse(value)
        return value

    @field_validator("unique", mode="before")
    @classmethod
    def _empty_group_is_not_unique(cls, value):
        if value == "":
            return None
        return value

    @property
    def nullable(self) -> bool:
        """Whether the column accepts NULL (unset ``allow_null`` counts as yes)."""
        return self.allow_null is not False

    @property
    def unique_group(self) -> str | None:
        """Composite unique group token, if any."""
        if isinstance(self.unique, str):
            return self.unique
        return None


class IndexDefinition(BaseModel):
    """A declared index: ordered field names plus uniqueness."""

    model_config = ConfigDict(frozen=True)

    fields: list[str]
    unique: bool = False
    name: str | None = None


class ModelDefinition(BaseModel):
    """Declared shape of one table.

    Example:
        >>> model = ModelDefinition(
        ...     table_name="users",
        ...     attributes=[
        ...         AttributeDefinition(name="id", type="INTEGER", primary_key=True),
        ...     ],
        ... )
        >>> sorted(model.primary_keys)
        ['id']
    """

    model_config = ConfigDict(frozen=True)

    table_name: str
    attributes: list[AttributeDefinition] = Field(default_factory=list)
    indexes: list[IndexDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_consistency(self) -> "ModelDefinition":
        seen: set[str] = set()
        for attr in self.attributes:
            if attr.field in seen:
                raise ValueError(
                    f"{self.table_name}.{attr.field} is defined more than once"
                )
            seen.add(attr.field)
        for index in self.indexes:
            if not index.fields:
                raise ValueError(f"{self.table_name} declares an index with no fields")
            for field in index.fields:
                if field not in seen:
                    raise ValueError(
                        f"{self.table_name} index [{','.join(index.fields)}] "
                        f"references undefined field {field}"
                    )
        return self

    @property
    def fields(self) -> dict[str, AttributeDefinition]:
        """Attributes keyed by column name, in declaration order."""
        return {attr.field: attr for attr in self.attributes}

    @property
    def primary_keys(self) -> set[str]:
        """Column names of the primary key attributes."""
        return {attr.field for attr in self.attributes if attr.primary_key}

    def get_attribute(self, field: str) -> AttributeDefinition | None:
        """Get an attribute by column name."""
        for attr in self.attributes:
            if attr.field == field:
                return attr
        return None

    def effective_indexes(self) -> list[IndexDefinition]:
        """Declared indexes plus the implicit index of each unique group."""
        indexes = list(self.indexes)
        groups: dict[str, list[str]] = {}
        for attr in self.attributes:
            if attr.unique_group is not None:
                groups.setdefault(attr.unique_group, []).append(attr.field)

        declared = {tuple(index.fields) for index in indexes}
        for group, fields in groups.items():
            if tuple(fields) not in declared:
                indexes.append(IndexDefinition(fields=fields, unique=True, name=group))
        return indexes


# ============================================================================
# Introspection Models
# ============================================================================


class IntrospectedColumn(BaseModel):
    """A column as reported by the database catalog.

    Example:
        >>> col = IntrospectedColumn(field="id", type="INTEGER", allow_null=False)
        >>> col.primary_key
        False
    """

    field: str
    type: str
    allow_null: bool = True
    primary_key: bool = False
    default: str | None = None
    comment: str | None = None

    @field_validator("comment", mode="before")
    @classmethod
    def _blank_comment_is_none(cls, value):
        if value == "":
            return None
        return value


class IntrospectedForeignKey(BaseModel):
    """A foreign key constraint as reported by the database catalog.

    Drivers may return quoted identifiers; quotes are stripped.

    Example:
        >>> IntrospectedForeignKey(source='"owner_id"', target_table="users", target_column="id").source
        'owner_id'
    """

    source: str
    target_table: str
    target_column: str
    name: str | None = None

    @field_validator("source", "target_table", "target_column", mode="before")
    @classmethod
    def _strip_quotes(cls, value):
        if isinstance(value, str):
            return value.replace('"', "").replace("`", "")
        return value


class IntrospectedIndex(BaseModel):
    """An index as reported by the database catalog (fields in index order)."""

    fields: list[str]
    unique: bool = False
    primary: bool = False
    name: str | None = None


# ============================================================================
# Validation Models
# ============================================================================


class DiscrepancyKind(str, Enum):
    """Kinds of drift between a declared model and the live catalog."""

    UNDEFINED_MODEL = "UndefinedModel"
    MISSING_TABLE = "MissingTable"
    UNDEFINED_ATTRIBUTE = "UndefinedAttribute"
    MISSING_COLUMN = "MissingColumn"
    TYPE_MISMATCH = "TypeMismatch"
    PRIMARY_KEY_MISMATCH = "PrimaryKeyMismatch"
    NULLABILITY_MISMATCH = "NullabilityMismatch"
    COMMENT_MISMATCH = "CommentMismatch"
    MISSING_FOREIGN_KEY = "MissingForeignKey"
    FOREIGN_KEY_TARGET_MISMATCH = "ForeignKeyTargetMismatch"
    PRIMARY_KEY_FIELD_MISMATCH = "PrimaryKeyFieldMismatch"
    MISSING_COMPOSITE_INDEX = "MissingCompositeIndex"
    UNIQUENESS_MISMATCH = "UniquenessMismatch"
    MISSING_UNIQUE_INDEX = "MissingUniqueIndex"
    UNEXPECTED_UNIQUE_INDEX = "UnexpectedUniqueIndex"
    UNEXPLAINED_INDEX = "UnexplainedIndex"


class Discrepancy(BaseModel):
    """A single mismatch between declared model and catalog."""

    kind: DiscrepancyKind
    table: str
    fields: list[str] = Field(default_factory=list)
    expected: str | None = None
    actual: str | None = None
    message: str = ""

    def __str__(self) -> str:
        return self.message


class ValidationMode(str, Enum):
    """Whether to stop at the first discrepancy or collect them all."""

    FAIL_FAST = "fail_fast"
    FULL_REPORT = "full_report"


class ValidationOptions(BaseModel):
    """Options for one validation run.

    Example:
        >>> options = ValidationOptions(dialect="mysql")
        >>> options.exclude
        ['schema_migrations']
    """

    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    dialect: Dialect = Dialect.POSTGRES
    mode: ValidationMode = ValidationMode.FAIL_FAST
    max_concurrency: int = Field(default=5, ge=1)
    compare_comments: bool = False
    check_missing_columns: bool = True
    check_missing_tables: bool = True


class ValidationResult(BaseModel):
    """Result of validate_schemas().

    Example:
        >>> result = ValidationResult(valid=True, dialect="postgres")
        >>> result.format_report()
        'Schema valid'
    """

    valid: bool
    dialect: Dialect
    tables_checked: list[str] = Field(default_factory=list)
    tables_excluded: list[str] = Field(default_factory=list)
    discrepancies: list[Discrepancy] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        """Number of discrepancies found."""
        return len(self.discrepancies)

    def format_report(self) -> str:
        """Format validation result as human-readable report."""
        if self.valid:
            return "Schema valid"

        lines = [f"Schema drift detected ({self.error_count}):"]
        by_table: dict[str, list[Discrepancy]] = {}
        for discrepancy in self.discrepancies:
            by_table.setdefault(discrepancy.table, []).append(discrepancy)

        for table, items in by_table.items():
            lines.append(f"\n  {table}:")
            for item in items:
                lines.append(f"    - [{item.kind.value}] {item.message}")

        if self.tables_excluded:
            lines.append(f"\n  Excluded tables: {', '.join(self.tables_excluded)}")

        return "\n".join(lines)


# ============================================================================
# Connection Result
# ============================================================================


class ConnectionResult(BaseModel):
    """Result of connect_and_validate().

    Example:
        >>> result = ConnectionResult(success=True, profile_name="dev", schema_valid=True)
        >>> result.success
        True
    """

    success: bool
    profile_name: str | None = None
    schema_valid: bool | None = None
    schema_report: ValidationResult | None = None
    error: str | None = None
