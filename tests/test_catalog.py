"""Tests for catalog clients and engine construction.

Database access is mocked: the engine's ``connect()`` context manager
returns a connection whose ``execute`` yields canned mapping rows.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from db_drift.catalog.engine import create_async_engine_pooled, normalize_url
from db_drift.catalog.mysql import (
    AsyncMySQLCatalog,
    group_index_rows,
    normalize_column_type,
    quote_identifier,
)
from db_drift.catalog.postgres import AsyncPostgresCatalog, render_postgres_type
from db_drift.schema.comparator import check_attributes, check_indexes
from db_drift.schema.dialects import Dialect
from db_drift.schema.models import AttributeDefinition, DiscrepancyKind, ModelDefinition


def _mock_engine(rows: list[dict]) -> tuple[MagicMock, MagicMock]:
    """Build a mock AsyncEngine whose queries return *rows*."""
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows
    result.scalar.return_value = 1

    conn = MagicMock()
    conn.execute = AsyncMock(return_value=result)

    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=conn)
    ctx.__aexit__ = AsyncMock(return_value=False)

    engine = MagicMock()
    engine.connect.return_value = ctx
    engine.dispose = AsyncMock()
    return engine, conn


# ============================================================================
# Test: Engine
# ============================================================================


class TestEngine:
    """Verify URL normalisation and pool defaults."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("postgres://u@h/db", "postgresql+asyncpg://u@h/db"),
            ("postgresql://u@h/db", "postgresql+asyncpg://u@h/db"),
            ("mysql://u@h/db", "mysql+aiomysql://u@h/db"),
            ("mariadb://u@h/db", "mysql+aiomysql://u@h/db"),
            ("postgresql+asyncpg://u@h/db", "postgresql+asyncpg://u@h/db"),
        ],
    )
    def test_normalize_url(self, url: str, expected: str) -> None:
        assert normalize_url(url) == expected

    def test_pool_defaults_and_timeout(self) -> None:
        with patch("db_drift.catalog.engine.create_async_engine") as mock_create:
            create_async_engine_pooled("postgresql+asyncpg://u@h/db")
        url = mock_create.call_args[0][0]
        kwargs = mock_create.call_args[1]
        assert url == "postgresql+asyncpg://u@h/db"
        assert kwargs["connect_args"] == {"timeout": 5}
        assert kwargs["pool_size"] == 5
        assert kwargs["max_overflow"] == 10
        assert kwargs["pool_pre_ping"] is True
        assert kwargs["pool_recycle"] == 300

    def test_mysql_timeout_keyword(self) -> None:
        with patch("db_drift.catalog.engine.create_async_engine") as mock_create:
            create_async_engine_pooled("mysql+aiomysql://u@h/db", connect_timeout=10)
        assert mock_create.call_args[1]["connect_args"] == {"connect_timeout": 10}

    def test_caller_kwargs_override(self) -> None:
        with patch("db_drift.catalog.engine.create_async_engine") as mock_create:
            create_async_engine_pooled("mysql+aiomysql://u@h/db?charset=utf8mb4", pool_size=2)
        assert mock_create.call_args[0][0] == "mysql+aiomysql://u@h/db?charset=utf8mb4"
        assert mock_create.call_args[1]["pool_size"] == 2


# ============================================================================
# Test: PostgreSQL Catalog
# ============================================================================


class TestRenderPostgresType:
    """Verify information_schema types are spelled like the mapper."""

    def test_varchar(self) -> None:
        assert render_postgres_type("character varying", 255) == "CHARACTER VARYING(255)"

    def test_integer_ignores_precision(self) -> None:
        assert render_postgres_type("integer", None, 32, 0) == "INTEGER"

    def test_numeric(self) -> None:
        assert render_postgres_type("numeric", None, 10, 2) == "NUMERIC(10,2)"

    def test_plain_numeric(self) -> None:
        assert render_postgres_type("numeric") == "NUMERIC"

    def test_timestamp(self) -> None:
        assert render_postgres_type("timestamp with time zone") == "TIMESTAMP WITH TIME ZONE"

    def test_enum(self) -> None:
        assert render_postgres_type("USER-DEFINED", enum_values=["a", "b's"]) == "ENUM('a','b''s')"


class TestAsyncPostgresCatalog:
    """Verify row shaping in AsyncPostgresCatalog."""

    def _catalog(self, rows: list[dict]) -> tuple[AsyncPostgresCatalog, MagicMock, MagicMock]:
        engine, conn = _mock_engine(rows)
        with patch(
            "db_drift.catalog.postgres.create_async_engine_pooled", return_value=engine
        ):
            catalog = AsyncPostgresCatalog("postgresql://u@h/db", schema_name="app")
        return catalog, engine, conn

    def test_dialect(self) -> None:
        catalog, _, _ = self._catalog([])
        assert catalog.dialect is Dialect.POSTGRES

    async def test_list_tables(self) -> None:
        catalog, _, conn = self._catalog([{"table_name": "teams"}, {"table_name": "users"}])
        assert await catalog.list_tables() == ["teams", "users"]
        assert conn.execute.call_args[0][1] == {"schema": "app"}

    async def test_describe_table(self) -> None:
        catalog, _, conn = self._catalog(
            [
                {
                    "column_name": "id",
                    "data_type": "integer",
                    "character_maximum_length": None,
                    "numeric_precision": 32,
                    "numeric_scale": 0,
                    "is_nullable": "NO",
                    "column_default": "nextval('users_id_seq'::regclass)",
                    "is_primary": True,
                    "comment": None,
                    "enum_values": None,
                },
                {
                    "column_name": "status",
                    "data_type": "USER-DEFINED",
                    "character_maximum_length": None,
                    "numeric_precision": None,
                    "numeric_scale": None,
                    "is_nullable": "YES",
                    "column_default": None,
                    "is_primary": False,
                    "comment": "",
                    "enum_values": ["active", "banned"],
                },
            ]
        )
        columns = await catalog.describe_table("users")
        assert list(columns) == ["id", "status"]
        assert columns["id"].type == "INTEGER"
        assert columns["id"].primary_key is True
        assert columns["id"].allow_null is False
        assert columns["status"].type == "ENUM('active','banned')"
        assert columns["status"].allow_null is True
        assert columns["status"].comment is None
        assert conn.execute.call_args[0][1] == {"schema": "app", "table": "users"}

    async def test_list_foreign_keys(self) -> None:
        catalog, _, _ = self._catalog(
            [
                {
                    "constraint_name": "users_team_id_fkey",
                    "source_column": "team_id",
                    "target_table": "teams",
                    "target_column": "id",
                }
            ]
        )
        fks = await catalog.list_foreign_keys("users")
        assert len(fks) == 1
        assert (fks[0].source, fks[0].target_table, fks[0].target_column) == (
            "team_id",
            "teams",
            "id",
        )

    async def test_composite_foreign_key_pairs_columns_by_position(self) -> None:
        catalog, _, conn = self._catalog(
            [
                {
                    "constraint_name": "fk_owner",
                    "source_column": "owner_org",
                    "target_table": "members",
                    "target_column": "org_id",
                },
                {
                    "constraint_name": "fk_owner",
                    "source_column": "owner_user",
                    "target_table": "members",
                    "target_column": "user_id",
                },
            ]
        )
        fks = await catalog.list_foreign_keys("orders")
        assert [(fk.source, fk.target_column) for fk in fks] == [
            ("owner_org", "org_id"),
            ("owner_user", "user_id"),
        ]
        query = str(conn.execute.call_args[0][0])
        # constraint columns come from the table's own pg_constraint row
        assert "pg_constraint" in query
        assert "unnest(con.conkey, con.confkey)" in query
        assert "t.relname = :table" in query
        assert conn.execute.call_args[0][1] == {"schema": "app", "table": "orders"}

    async def test_expression_index_is_unexplained(self) -> None:
        catalog, _, conn = self._catalog(
            [
                {
                    "index_name": "users_lower_email",
                    "columns": ["lower((email)::text)"],
                    "is_unique": True,
                    "is_primary": False,
                },
            ]
        )
        indexes = await catalog.list_indexes("users")
        assert indexes[0].fields == ["lower((email)::text)"]
        assert "pg_get_indexdef" in str(conn.execute.call_args[0][0])

        model = ModelDefinition(
            table_name="users",
            attributes=[AttributeDefinition(name="email", type="STRING", unique=True)],
        )
        found = check_indexes("users", model, indexes)
        assert [d.kind for d in found] == [DiscrepancyKind.UNEXPLAINED_INDEX]

    async def test_list_indexes(self) -> None:
        catalog, _, _ = self._catalog(
            [
                {"index_name": "users_pkey", "columns": ["id"], "is_unique": True, "is_primary": True},
                {"index_name": "users_name", "columns": ["first", "last"], "is_unique": False, "is_primary": False},
            ]
        )
        indexes = await catalog.list_indexes("users")
        assert indexes[0].primary is True
        assert indexes[1].fields == ["first", "last"]
        assert indexes[1].unique is False

    async def test_test_connection_and_close(self) -> None:
        catalog, engine, _ = self._catalog([])
        assert await catalog.test_connection() is True
        await catalog.close()
        engine.dispose.assert_awaited_once()


# ============================================================================
# Test: MySQL Catalog
# ============================================================================


class TestMySQLHelpers:
    """Verify SHOW INDEX folding and identifier quoting."""

    def test_quote_identifier(self) -> None:
        assert quote_identifier("users") == "`users`"
        assert quote_identifier("odd`name") == "`odd``name`"

    def test_group_index_rows(self) -> None:
        rows = [
            {"Key_name": "PRIMARY", "Non_unique": 0, "Seq_in_index": 1, "Column_name": "id"},
            {"Key_name": "full_name", "Non_unique": 0, "Seq_in_index": 2, "Column_name": "last"},
            {"Key_name": "full_name", "Non_unique": 0, "Seq_in_index": 1, "Column_name": "first"},
            {"Key_name": "team_id", "Non_unique": 1, "Seq_in_index": 1, "Column_name": "team_id"},
        ]
        indexes = group_index_rows(rows)
        assert [i.name for i in indexes] == ["PRIMARY", "full_name", "team_id"]
        assert indexes[0].primary is True
        assert indexes[1].fields == ["first", "last"]
        assert indexes[1].unique is True
        assert indexes[2].unique is False
        assert indexes[2].primary is False

    def test_group_index_rows_functional_key_part(self) -> None:
        rows = [
            {
                "Key_name": "fx",
                "Non_unique": 1,
                "Seq_in_index": 1,
                "Column_name": None,
                "Expression": b"lower(`email`)",
            },
            {"Key_name": "fy", "Non_unique": 1, "Seq_in_index": 1, "Column_name": None},
        ]
        indexes = group_index_rows(rows)
        assert indexes[0].fields == ["lower(`email`)"]
        assert indexes[1].fields == ["(expression)"]

    def test_functional_index_is_unexplained(self) -> None:
        rows = [
            {
                "Key_name": "fx",
                "Non_unique": 1,
                "Seq_in_index": 1,
                "Column_name": None,
                "Expression": "lower(`email`)",
            }
        ]
        model = ModelDefinition(
            table_name="users",
            attributes=[AttributeDefinition(name="email", type="STRING")],
        )
        found = check_indexes("users", model, group_index_rows(rows), dialect=Dialect.MYSQL8)
        assert [d.kind for d in found] == [DiscrepancyKind.UNEXPLAINED_INDEX]

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("int(10) unsigned", "INT(10) UNSIGNED"),
            ("enum('active','banned')", "ENUM('active','banned')"),
            ("enum('It''s','ok')", "ENUM('It''s','ok')"),
            ("set('a','B')", "SET('a','B')"),
        ],
    )
    def test_normalize_column_type(self, raw: str, expected: str) -> None:
        assert normalize_column_type(raw) == expected


class TestAsyncMySQLCatalog:
    """Verify AsyncMySQLCatalog row shaping and foreign key behaviour."""

    def _catalog(self, rows: list[dict], dialect: str = "mysql"):
        engine, conn = _mock_engine(rows)
        with patch("db_drift.catalog.mysql.create_async_engine_pooled", return_value=engine):
            catalog = AsyncMySQLCatalog("mysql://u@h/db", dialect=dialect)
        return catalog, engine, conn

    def test_dialect(self) -> None:
        catalog, _, _ = self._catalog([], dialect="mysql8")
        assert catalog.dialect is Dialect.MYSQL8

    async def test_describe_table(self) -> None:
        catalog, _, conn = self._catalog(
            [
                {
                    "Field": "id",
                    "Type": b"int(10) unsigned",
                    "Null": "NO",
                    "Key": "PRI",
                    "Default": None,
                    "Comment": "",
                },
                {
                    "Field": "email",
                    "Type": "varchar(100)",
                    "Null": "YES",
                    "Key": "UNI",
                    "Default": None,
                    "Comment": "login",
                },
            ]
        )
        columns = await catalog.describe_table("users")
        assert columns["id"].type == "INT(10) UNSIGNED"
        assert columns["id"].primary_key is True
        assert columns["id"].allow_null is False
        assert columns["id"].comment is None
        assert columns["email"].type == "VARCHAR(100)"
        assert columns["email"].comment == "login"
        assert "SHOW FULL COLUMNS FROM `users`" in str(conn.execute.call_args[0][0])

    async def test_lowercase_enum_matches_model(self) -> None:
        catalog, _, _ = self._catalog(
            [
                {
                    "Field": "status",
                    "Type": "enum('active','banned')",
                    "Null": "YES",
                    "Key": "",
                    "Default": None,
                    "Comment": "",
                }
            ]
        )
        columns = await catalog.describe_table("users")
        assert columns["status"].type == "ENUM('active','banned')"

        model = ModelDefinition(
            table_name="users",
            attributes=[AttributeDefinition(name="status", type="ENUM('active','banned')")],
        )
        assert check_attributes("users", model, columns, dialect=Dialect.MYSQL) == []

    async def test_list_foreign_keys_not_supported(self) -> None:
        catalog, _, _ = self._catalog([])
        with pytest.raises(NotImplementedError):
            await catalog.list_foreign_keys("users")

    async def test_list_indexes(self) -> None:
        catalog, _, _ = self._catalog(
            [{"Key_name": "PRIMARY", "Non_unique": 0, "Seq_in_index": 1, "Column_name": "id"}]
        )
        indexes = await catalog.list_indexes("users")
        assert indexes[0].primary is True
        assert indexes[0].fields == ["id"]
