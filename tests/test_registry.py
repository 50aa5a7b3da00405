"""Tests for the model registry and TOML model loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from db_drift.schema.models import ModelDefinition, TypeKind
from db_drift.schema.registry import ModelRegistry, load_models

MODELS_TOML = """
[tables.teams.attributes.id]
type = "INTEGER"
primary_key = true
allow_null = false

[tables.teams.attributes.name]
type = "STRING(80)"
unique = true

[tables.users]
indexes = [
    { fields = ["last_name", "first_name"] },
]

[tables.users.attributes.id]
type = "BIGINT UNSIGNED"
primary_key = true
auto_increment = true
allow_null = false

[tables.users.attributes.teamId]
field = "team_id"
type = "INTEGER"
references = { table = "teams" }

[tables.users.attributes.first_name]
type = "STRING"

[tables.users.attributes.last_name]
type = "STRING"
comment = "Family name"
"""


# ============================================================================
# Test: ModelRegistry
# ============================================================================


class TestModelRegistry:
    """Verify registration and lookup."""

    def test_resolve(self) -> None:
        registry = ModelRegistry([ModelDefinition(table_name="users")])
        assert registry.resolve_model("users").table_name == "users"
        assert registry.resolve_model("orders") is None

    def test_contains_and_len(self) -> None:
        registry = ModelRegistry([ModelDefinition(table_name="a"), ModelDefinition(table_name="b")])
        assert len(registry) == 2
        assert "a" in registry
        assert "c" not in registry
        assert registry.table_names() == ["a", "b"]

    def test_duplicate_rejected(self) -> None:
        registry = ModelRegistry([ModelDefinition(table_name="users")])
        with pytest.raises(ValueError, match="already registered"):
            registry.register(ModelDefinition(table_name="users"))


# ============================================================================
# Test: load_models
# ============================================================================


class TestLoadModels:
    """Verify models.toml parsing."""

    def test_loads_tables(self, tmp_path: Path) -> None:
        path = tmp_path / "models.toml"
        path.write_text(MODELS_TOML)
        registry = load_models(path)

        assert registry.table_names() == ["teams", "users"]

        users = registry.resolve_model("users")
        assert users.primary_keys == {"id"}
        assert users.get_attribute("id").type.kind is TypeKind.BIGINT
        assert users.get_attribute("id").type.unsigned is True

        team_ref = users.get_attribute("team_id")
        assert team_ref.name == "teamId"
        assert team_ref.references.table == "teams"
        assert team_ref.references.key == "id"

        assert users.indexes[0].fields == ["last_name", "first_name"]
        assert users.get_attribute("last_name").comment == "Family name"
        assert registry.resolve_model("teams").get_attribute("name").unique is True

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Models file not found"):
            load_models(tmp_path / "missing.toml")

    def test_no_tables(self, tmp_path: Path) -> None:
        path = tmp_path / "models.toml"
        path.write_text("title = 'empty'\n")
        with pytest.raises(ValueError, match="No \\[tables"):
            load_models(path)

    def test_invalid_type(self, tmp_path: Path) -> None:
        path = tmp_path / "models.toml"
        path.write_text('[tables.t.attributes.a]\ntype = "GEOMETRY"\n')
        with pytest.raises(ValidationError):
            load_models(path)
