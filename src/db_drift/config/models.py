"""Pydantic models for database profiles and validation settings."""

from pydantic import BaseModel, Field

from db_drift.schema.dialects import Dialect, dialect_from_url
from db_drift.schema.models import DEFAULT_EXCLUDE, ValidationMode


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    dialect: Dialect | None = None  # Inferred from the URL scheme when unset
    schema_name: str = "public"  # PostgreSQL only

    @property
    def resolved_dialect(self) -> Dialect:
        """Explicit dialect, or the one implied by the URL scheme."""
        if self.dialect is not None:
            return self.dialect
        return dialect_from_url(self.url)


class ValidationSettings(BaseModel):
    """``[validation]`` section of db.toml."""

    models_file: str = "models.toml"
    exclude: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    mode: ValidationMode = ValidationMode.FAIL_FAST
    max_concurrency: int = Field(default=5, ge=1)
    compare_comments: bool = False
    check_missing_columns: bool = True
    check_missing_tables: bool = True


class DatabaseConfig(BaseModel):
    """Complete database configuration from db.toml."""

    profiles: dict[str, DatabaseProfile]
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
