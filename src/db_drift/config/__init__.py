"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from db_drift.config import load_db_config, DatabaseProfile, DatabaseConfig
"""

from db_drift.config.loader import load_db_config
from db_drift.config.models import DatabaseConfig, DatabaseProfile, ValidationSettings

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile", "ValidationSettings"]
