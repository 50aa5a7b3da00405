"""Database dialect identifiers and per-dialect introspection capabilities.

Each dialect is a row in ``DIALECT_CAPABILITIES``.  Adding a dialect means
adding a row here and a type table in ``db_drift.schema.types`` -- the
checkers never branch on dialect names directly.

Usage:
    from db_drift.schema.dialects import Dialect, get_capabilities

    caps = get_capabilities(Dialect.MYSQL)
    caps.supports_foreign_key_introspection
    # False
"""

from enum import Enum

from pydantic import BaseModel


class Dialect(str, Enum):
    """Supported database dialect families."""

    POSTGRES = "postgres"
    MYSQL = "mysql"      # MySQL 5.x / MariaDB (integer display widths)
    MYSQL8 = "mysql8"    # MySQL 8.0.19+ (no integer display widths)


class DialectCapabilities(BaseModel):
    """What a dialect's catalog can tell us, and what it does implicitly."""

    supports_foreign_key_introspection: bool
    auto_creates_foreign_key_indexes: bool
    supports_unsigned: bool


DIALECT_CAPABILITIES: dict[Dialect, DialectCapabilities] = {
    Dialect.POSTGRES: DialectCapabilities(
        supports_foreign_key_introspection=True,
        auto_creates_foreign_key_indexes=False,
        supports_unsigned=False,
    ),
    Dialect.MYSQL: DialectCapabilities(
        supports_foreign_key_introspection=False,
        auto_creates_foreign_key_indexes=True,
        supports_unsigned=True,
    ),
    Dialect.MYSQL8: DialectCapabilities(
        supports_foreign_key_introspection=False,
        auto_creates_foreign_key_indexes=True,
        supports_unsigned=True,
    ),
}

# URL scheme prefix -> dialect (first match wins)
_SCHEME_DIALECTS: list[tuple[str, Dialect]] = [
    ("postgres", Dialect.POSTGRES),
    ("mysql", Dialect.MYSQL),
    ("mariadb", Dialect.MYSQL),
]


def get_capabilities(dialect: Dialect | str) -> DialectCapabilities:
    """Look up the capability row for *dialect*.

    Raises:
        ValueError: If the dialect is not known.
    """
    return DIALECT_CAPABILITIES[Dialect(dialect)]


def dialect_from_url(database_url: str) -> Dialect:
    """Infer the dialect family from a connection URL scheme.

    Example:
        >>> dialect_from_url("postgresql://user@localhost/app")
        <Dialect.POSTGRES: 'postgres'>
        >>> dialect_from_url("mysql+aiomysql://root@localhost/app")
        <Dialect.MYSQL: 'mysql'>

    Raises:
        ValueError: If the scheme does not belong to a supported dialect.
    """
    scheme = database_url.split("://", 1)[0].lower()
    for prefix, dialect in _SCHEME_DIALECTS:
        if scheme.startswith(prefix):
            return dialect
    raise ValueError(f"Unsupported database URL scheme: {scheme!r}")
