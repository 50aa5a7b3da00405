"""Configuration loading from db.toml."""

import tomllib
from pathlib import Path

from db_drift.config.models import DatabaseConfig, DatabaseProfile, ValidationSettings


def load_db_config(config_path: Path | None = None) -> DatabaseConfig:
    """Load database configuration from TOML file.

    Args:
        config_path: Path to db.toml (default: ./db.toml)

    Returns:
        DatabaseConfig with all profiles and validation settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "db.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create db.toml with at least one [profiles.<name>] section."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = DatabaseProfile(**profile_data)

    if not profiles:
        raise ValueError(f"No [profiles.*] sections found in {config_path.name}")

    # Parse validation settings
    validation = ValidationSettings(**data.get("validation", {}))

    return DatabaseConfig(profiles=profiles, validation=validation)
