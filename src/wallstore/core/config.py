# src/wallstore/core/config.py
"""
Configuration schema and loading for wallstore.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class ContentStoreSettings(BaseModel):
    """Durable tier configuration.

    Example YAML:
        content_store:
          backend: database
          url: sqlite:///./.wallstore/content.db
    """

    model_config = {"frozen": True}

    backend: Literal["database", "filesystem"] = Field(
        default="database",
        description="Durable tier backend",
    )
    url: str = Field(
        default="sqlite:///./.wallstore/content.db",
        description="SQLAlchemy database URL (database backend)",
    )
    base_path: Path = Field(
        default=Path(".wallstore/content"),
        description="Root directory (filesystem backend)",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")


class ResolverSettings(BaseModel):
    """Batch resolution configuration."""

    model_config = {"frozen": True}

    max_workers: int = Field(
        default=16,
        gt=0,
        description="Maximum concurrent lookups per resolver",
    )
    lookup_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Per-key lookup timeout; slower keys resolve to Missing",
    )


class PublishSettings(BaseModel):
    """Write Coordinator configuration."""

    model_config = {"frozen": True}

    durability_retries: int = Field(
        default=1,
        ge=0,
        description="Durable-write re-attempts before giving up (ledger is never called while degraded)",
    )


class RetentionSettings(BaseModel):
    """Retention Sweeper configuration.

    Example YAML:
        retention:
          retention_days: 30
          sweep_interval_seconds: 3600
    """

    model_config = {"frozen": True}

    retention_days: int = Field(default=30, ge=0, description="Content retention in days")
    sweep_interval_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Interval between background sweeps",
    )

    @property
    def max_age(self) -> timedelta:
        return timedelta(days=self.retention_days)


class WallstoreSettings(BaseModel):
    """Top-level wallstore configuration. Every section has defaults."""

    model_config = {"frozen": True}

    content_store: ContentStoreSettings = Field(default_factory=ContentStoreSettings)
    resolver: ResolverSettings = Field(default_factory=ResolverSettings)
    publish: PublishSettings = Field(default_factory=PublishSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)

    @model_validator(mode="after")
    def validate_backend_location(self) -> "WallstoreSettings":
        """Database backend needs a non-empty URL."""
        if self.content_store.backend == "database" and not self.content_store.url.strip():
            raise ValueError("content_store.url is required when backend is 'database'")
        return self


def load_settings(config_path: Path) -> WallstoreSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (WALLSTORE_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: WALLSTORE_CONTENT_STORE__URL for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated WallstoreSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="WALLSTORE",
        settings_files=[str(config_path)],
        environments=False,  # No [default]/[production] sections
        load_dotenv=False,  # Don't auto-load .env
        merge_enabled=True,  # Deep merge nested dicts
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    # Also filter out internal Dynaconf settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = {k: _lower_keys(v) for k, v in raw_config.items()}

    return WallstoreSettings(**raw_config)


def _lower_keys(value: object) -> object:
    # Nested keys set from the environment arrive uppercased
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value
