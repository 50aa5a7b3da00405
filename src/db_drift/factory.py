"""Catalog client factory and one-call validation.

Resolves a database profile from db.toml, builds the catalog client for the
profile's dialect, and runs schema validation against a models file.

Profile resolution priority:
1. Explicit ``profile_name`` argument
2. ``{env_prefix}DB_PROFILE`` environment variable
3. Raise ``ProfileNotFoundError``
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from db_drift.catalog.base import CatalogClient
from db_drift.catalog.mysql import AsyncMySQLCatalog
from db_drift.catalog.postgres import AsyncPostgresCatalog
from db_drift.config.loader import load_db_config
from db_drift.config.models import DatabaseConfig, DatabaseProfile
from db_drift.schema.dialects import Dialect, dialect_from_url
from db_drift.schema.models import ConnectionResult, ValidationOptions
from db_drift.schema.registry import load_models
from db_drift.schema.validator import SchemaDriftError, validate_schemas

logger = logging.getLogger(__name__)


# ============================================================================
# Profile Resolution
# ============================================================================


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the environment variable
            (e.g. ``"APP_"`` reads ``APP_DB_PROFILE``).

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_var}=<name> db-drift validate\n"
        "Or pass --profile <name>."
    )


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Example:
        >>> p = DatabaseProfile(url="postgresql://u:[YOUR-PASSWORD]@h/db", db_password="p@ss")
        >>> resolve_url(p)
        'postgresql://u:p%40ss@h/db'
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


def _resolve_profile(
    config: DatabaseConfig, profile_name: str | None, env_prefix: str
) -> tuple[str, DatabaseProfile]:
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix=env_prefix)

    if profile_name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )
    return profile_name, config.profiles[profile_name]


# ============================================================================
# Catalog Factory
# ============================================================================


def create_catalog(
    database_url: str,
    dialect: Dialect | str | None = None,
    schema_name: str = "public",
) -> CatalogClient:
    """Create the catalog client for a URL.

    Args:
        database_url: Connection URL.
        dialect: Dialect to use; inferred from the URL scheme when ``None``.
        schema_name: PostgreSQL schema to introspect.

    Returns:
        ``AsyncPostgresCatalog`` or ``AsyncMySQLCatalog``.
    """
    dialect = Dialect(dialect) if dialect is not None else dialect_from_url(database_url)
    if dialect is Dialect.POSTGRES:
        return AsyncPostgresCatalog(database_url, schema_name=schema_name)
    return AsyncMySQLCatalog(database_url, dialect=dialect)


def get_catalog(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config_path: Path | None = None,
) -> CatalogClient:
    """Create a catalog client from a direct URL or a db.toml profile.

    Each call creates a new client; callers own it and must ``close()`` it.

    Raises:
        ProfileNotFoundError: If no profile can be resolved.
        FileNotFoundError: If db.toml is missing.
    """
    if database_url is not None:
        return create_catalog(database_url)

    config = load_db_config(config_path)
    _, profile = _resolve_profile(config, profile_name, env_prefix)
    return create_catalog(
        resolve_url(profile),
        dialect=profile.resolved_dialect,
        schema_name=profile.schema_name,
    )


# ============================================================================
# Connection and Validation
# ============================================================================


async def connect_and_validate(
    profile_name: str | None = None,
    models_file: Path | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
    overrides: dict | None = None,
) -> ConnectionResult:
    """Connect to a profile's database and validate it against the models.

    Never raises for expected failures: missing profile, missing files,
    connection errors, and drift are all reported in the result.

    Args:
        profile_name: Profile name from db.toml.  If None, uses the
            ``{env_prefix}DB_PROFILE`` env var.
        models_file: Models TOML file.  Defaults to
            ``[validation].models_file`` from db.toml.
        env_prefix: Prefix for environment variable lookup.
        config_path: Path to db.toml (default: ./db.toml).
        overrides: ``ValidationOptions`` fields overriding db.toml settings.

    Returns:
        ConnectionResult with success status and validation report

    Example:
        >>> result = await connect_and_validate("local")
        >>> if not result.success:
        ...     print(result.error)
    """
    try:
        config = load_db_config(config_path)
        profile_name, profile = _resolve_profile(config, profile_name, env_prefix)
    except (FileNotFoundError, ValueError, ProfileNotFoundError) as e:
        return ConnectionResult(success=False, profile_name=profile_name, error=str(e))

    settings = config.validation
    path = models_file if models_file is not None else Path(settings.models_file)
    try:
        registry = load_models(path)
        options = ValidationOptions(
            **{
                **settings.model_dump(exclude={"models_file"}),
                "dialect": profile.resolved_dialect,
                **(overrides or {}),
            }
        )
    except (FileNotFoundError, ValueError) as e:
        return ConnectionResult(success=False, profile_name=profile_name, error=str(e))

    catalog = create_catalog(
        resolve_url(profile),
        dialect=options.dialect,
        schema_name=profile.schema_name,
    )
    try:
        result = await validate_schemas(catalog, registry, options)
    except SchemaDriftError as e:
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            schema_valid=False,
            schema_report=e.result,
            error=f"Schema validation failed: {e.result.error_count} errors",
        )
    except Exception as e:
        logger.debug(f"Validation of profile {profile_name} failed", exc_info=True)
        return ConnectionResult(
            success=False,
            profile_name=profile_name,
            error=f"Failed to connect to database: {e}",
        )
    finally:
        await catalog.close()

    return ConnectionResult(
        success=True,
        profile_name=profile_name,
        schema_valid=True,
        schema_report=result,
    )
