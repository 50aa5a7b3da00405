"""Model-definition registry and TOML model file loading.

The registry is the read-only source of declared models for one validation
run.  Models can be registered directly or loaded from a TOML file:

    [tables.users]
    indexes = [
        { fields = ["email"], unique = true },
        { fields = ["last_name", "first_name"] },
    ]

    [tables.users.attributes.id]
    type = "INTEGER"
    primary_key = true
    auto_increment = true
    allow_null = false

    [tables.users.attributes.email]
    type = "STRING(100)"
    unique = true

    [tables.users.attributes.team_id]
    type = "INTEGER"
    references = { table = "teams", key = "id" }

Usage:
    from db_drift.schema.registry import load_models

    registry = load_models(Path("models.toml"))
    model = registry.resolve_model("users")
"""

import tomllib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from db_drift.schema.models import AttributeDefinition, ModelDefinition


class ModelRegistry:
    """Lookup of declared models by table name.

    Example:
        >>> registry = ModelRegistry([ModelDefinition(table_name="users")])
        >>> registry.resolve_model("users").table_name
        'users'
        >>> registry.resolve_model("orders") is None
        True
    """

    def __init__(self, models: Iterable[ModelDefinition] = ()) -> None:
        self._models: dict[str, ModelDefinition] = {}
        for model in models:
            self.register(model)

    def register(self, model: ModelDefinition) -> None:
        """Add a model.

        Raises:
            ValueError: If a model for the same table is already registered.
        """
        if model.table_name in self._models:
            raise ValueError(f"Model for table '{model.table_name}' already registered")
        self._models[model.table_name] = model

    def resolve_model(self, table_name: str) -> ModelDefinition | None:
        """Return the model declared for *table_name*, or ``None``."""
        return self._models.get(table_name)

    def table_names(self) -> list[str]:
        """Registered table names in registration order."""
        return list(self._models)

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, table_name: object) -> bool:
        return table_name in self._models


def _parse_model(table_name: str, data: dict[str, Any]) -> ModelDefinition:
    """Build a ModelDefinition from one ``[tables.<name>]`` TOML section."""
    attributes = [
        AttributeDefinition(name=name, **attr_data)
        for name, attr_data in data.get("attributes", {}).items()
    ]
    return ModelDefinition(
        table_name=data.get("table_name", table_name),
        attributes=attributes,
        indexes=data.get("indexes", []),
    )


def load_models(models_path: Path) -> ModelRegistry:
    """Load declared models from a TOML file.

    Args:
        models_path: Path to the models file.

    Returns:
        ModelRegistry with one model per ``[tables.<name>]`` section.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file declares no tables.
        pydantic.ValidationError: If a model definition is malformed.
    """
    if not models_path.exists():
        raise FileNotFoundError(f"Models file not found: {models_path}")

    with open(models_path, "rb") as f:
        data = tomllib.load(f)

    tables = data.get("tables", {})
    if not tables:
        raise ValueError(f"No [tables.*] sections found in {models_path.name}")

    return ModelRegistry(
        _parse_model(table_name, table_data) for table_name, table_data in tables.items()
    )
