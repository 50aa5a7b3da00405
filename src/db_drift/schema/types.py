"""Dialect type mapping: abstract attribute types to native catalog types.

Each dialect owns a table from ``TypeKind`` to a render function producing the
exact type string that dialect's catalog introspection reports (see
``db_drift.catalog``).  A kind with no entry for a dialect is *unmapped*: a
warning is logged and ``None`` is returned, which never compares equal to an
introspected type.

Pure logic -- no I/O.

Usage:
    from db_drift.schema.types import map_type
    from db_drift.schema.dialects import Dialect, get_capabilities

    map_type(attr, Dialect.MYSQL)
    # 'INT(11) UNSIGNED'
"""

import logging
from collections.abc import Callable

from db_drift.schema.dialects import Dialect, get_capabilities
from db_drift.schema.models import (
    DEFAULT_STRING_LENGTH,
    AttributeDefinition,
    ColumnType,
    SizeClass,
    TypeKind,
)

logger = logging.getLogger(__name__)

TypeRenderer = Callable[[ColumnType], str]

# MySQL 5.x display widths: (signed, unsigned)
_MYSQL_INT_WIDTHS: dict[str, tuple[int, int]] = {
    "TINYINT": (4, 3),
    "SMALLINT": (6, 5),
    "MEDIUMINT": (9, 8),
    "INT": (11, 10),
    "BIGINT": (20, 20),
}

_SIZE_PREFIX: dict[SizeClass | None, str] = {
    None: "",
    SizeClass.TINY: "TINY",
    SizeClass.MEDIUM: "MEDIUM",
    SizeClass.LONG: "LONG",
}


# kinds that take an UNSIGNED suffix on dialects that support it
_UNSIGNED_KINDS: frozenset[TypeKind] = frozenset(
    {
        TypeKind.TINYINT,
        TypeKind.SMALLINT,
        TypeKind.MEDIUMINT,
        TypeKind.INTEGER,
        TypeKind.BIGINT,
        TypeKind.FLOAT,
        TypeKind.DOUBLE,
        TypeKind.DECIMAL,
    }
)


def _enum_literals(column_type: ColumnType) -> str:
    quoted = ["'" + value.replace("'", "''") + "'" for value in column_type.values]
    return f"ENUM({','.join(quoted)})"


def _mysql_int(token: str) -> TypeRenderer:
    signed_width, unsigned_width = _MYSQL_INT_WIDTHS[token]

    def render(column_type: ColumnType) -> str:
        width = column_type.length
        if width is None:
            width = unsigned_width if column_type.unsigned else signed_width
        return f"{token}({width})"

    return render


def _mysql8_int(token: str) -> TypeRenderer:
    def render(column_type: ColumnType) -> str:
        # 8.0.19+ only keeps the display width on TINYINT(1)
        if token == "TINYINT" and column_type.length == 1:
            return "TINYINT(1)"
        return token

    return render


def _mysql_decimal(column_type: ColumnType) -> str:
    precision = column_type.precision if column_type.precision is not None else 10
    scale = column_type.scale if column_type.scale is not None else 0
    return f"DECIMAL({precision},{scale})"


def _mysql_float(token: str) -> TypeRenderer:
    def render(column_type: ColumnType) -> str:
        if column_type.precision is not None and column_type.scale is not None:
            return f"{token}({column_type.precision},{column_type.scale})"
        return token

    return render


def _mysql_datetime(column_type: ColumnType) -> str:
    if column_type.precision:
        return f"DATETIME({column_type.precision})"
    return "DATETIME"


def _postgres_numeric(column_type: ColumnType) -> str:
    if column_type.precision is None:
        return "NUMERIC"
    return f"NUMERIC({column_type.precision},{column_type.scale or 0})"


POSTGRES_TYPES: dict[TypeKind, TypeRenderer] = {
    TypeKind.STRING: lambda t: f"CHARACTER VARYING({t.length or DEFAULT_STRING_LENGTH})",
    TypeKind.CHAR: lambda t: f"CHARACTER({t.length or 1})",
    TypeKind.TEXT: lambda t: "TEXT",
    TypeKind.TINYINT: lambda t: "SMALLINT",
    TypeKind.SMALLINT: lambda t: "SMALLINT",
    TypeKind.MEDIUMINT: lambda t: "INTEGER",
    TypeKind.INTEGER: lambda t: "INTEGER",
    TypeKind.BIGINT: lambda t: "BIGINT",
    TypeKind.FLOAT: lambda t: "DOUBLE PRECISION",
    TypeKind.DOUBLE: lambda t: "DOUBLE PRECISION",
    TypeKind.DECIMAL: _postgres_numeric,
    TypeKind.BOOLEAN: lambda t: "BOOLEAN",
    TypeKind.DATE: lambda t: "TIMESTAMP WITH TIME ZONE",
    TypeKind.DATEONLY: lambda t: "DATE",
    TypeKind.TIME: lambda t: "TIME WITHOUT TIME ZONE",
    TypeKind.UUID: lambda t: "UUID",
    TypeKind.ENUM: _enum_literals,
    TypeKind.JSON: lambda t: "JSON",
    TypeKind.JSONB: lambda t: "JSONB",
    TypeKind.BLOB: lambda t: "BYTEA",
}

MYSQL_TYPES: dict[TypeKind, TypeRenderer] = {
    TypeKind.STRING: lambda t: f"VARCHAR({t.length or DEFAULT_STRING_LENGTH})",
    TypeKind.CHAR: lambda t: f"CHAR({t.length or 1})",
    TypeKind.TEXT: lambda t: f"{_SIZE_PREFIX[t.size]}TEXT",
    TypeKind.TINYINT: _mysql_int("TINYINT"),
    TypeKind.SMALLINT: _mysql_int("SMALLINT"),
    TypeKind.MEDIUMINT: _mysql_int("MEDIUMINT"),
    TypeKind.INTEGER: _mysql_int("INT"),
    TypeKind.BIGINT: _mysql_int("BIGINT"),
    TypeKind.FLOAT: _mysql_float("FLOAT"),
    TypeKind.DOUBLE: _mysql_float("DOUBLE"),
    TypeKind.DECIMAL: _mysql_decimal,
    TypeKind.BOOLEAN: lambda t: "TINYINT(1)",
    TypeKind.DATE: _mysql_datetime,
    TypeKind.DATEONLY: lambda t: "DATE",
    TypeKind.TIME: lambda t: "TIME",
    TypeKind.UUID: lambda t: "CHAR(36)",
    TypeKind.ENUM: _enum_literals,
    TypeKind.JSON: lambda t: "JSON",
    TypeKind.BLOB: lambda t: f"{_SIZE_PREFIX[t.size]}BLOB",
}

MYSQL8_TYPES: dict[TypeKind, TypeRenderer] = {
    **MYSQL_TYPES,
    TypeKind.TINYINT: _mysql8_int("TINYINT"),
    TypeKind.SMALLINT: _mysql8_int("SMALLINT"),
    TypeKind.MEDIUMINT: _mysql8_int("MEDIUMINT"),
    TypeKind.INTEGER: _mysql8_int("INT"),
    TypeKind.BIGINT: _mysql8_int("BIGINT"),
}

TYPE_MAPPERS: dict[Dialect, dict[TypeKind, TypeRenderer]] = {
    Dialect.POSTGRES: POSTGRES_TYPES,
    Dialect.MYSQL: MYSQL_TYPES,
    Dialect.MYSQL8: MYSQL8_TYPES,
}


def map_column_type(column_type: ColumnType, dialect: Dialect | str) -> str | None:
    """Render *column_type* as *dialect*'s catalog reports it, or ``None``.

    ``UNSIGNED`` is appended to numeric kinds only where the dialect
    supports it; elsewhere the flag is ignored.
    """
    dialect = Dialect(dialect)
    renderer = TYPE_MAPPERS[dialect].get(column_type.kind)
    if renderer is None:
        return None
    native = renderer(column_type)
    if (
        column_type.unsigned
        and column_type.kind in _UNSIGNED_KINDS
        and get_capabilities(dialect).supports_unsigned
    ):
        native = f"{native} UNSIGNED"
    return native


def map_type(attr: AttributeDefinition, dialect: Dialect | str) -> str | None:
    """Map an attribute's declared type to its native column type string.

    Args:
        attr: Declared model attribute.
        dialect: Target dialect.

    Returns:
        The native type token (e.g. ``"CHARACTER VARYING(255)"``), or
        ``None`` if the type has no mapping for this dialect.

    Examples:
        >>> attr = AttributeDefinition(name="title", type="STRING(100)")
        >>> map_type(attr, Dialect.POSTGRES)
        'CHARACTER VARYING(100)'
        >>> map_type(attr, Dialect.MYSQL)
        'VARCHAR(100)'
    """
    native = map_column_type(attr.type, dialect)
    if native is None:
        logger.warning(
            f"Unmapped type for {attr.field} on {Dialect(dialect).value}: {attr.type}"
        )
    return native
