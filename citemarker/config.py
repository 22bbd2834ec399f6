"""
citemarker Configuration System

Hierarchical configuration with environment variable overrides.
Uses Pydantic Settings for type validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional, Literal
import os

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml

from citemarker.utils.exceptions import ConfigError


class MarkerConfig(BaseSettings):
    """Marker engine configuration."""

    # What to do when two different records render identical marker text
    non_unique_policy: Literal["throws", "forgiven"] = "throws"
    default_style_path: Optional[str] = None  # YAML file with style properties
    min_grouping_count_override: Optional[int] = None

    model_config = SettingsConfigDict(env_prefix="CITEMARKER_MARKERS_")

    @field_validator("non_unique_policy", mode="before")
    @classmethod
    def _lower_policy(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    json_format: bool = False  # Single-line JSON records
    file: Optional[str] = None  # Optional log file path

    model_config = SettingsConfigDict(env_prefix="CITEMARKER_LOG_")


class Settings(BaseSettings):
    """
    Main application settings.

    Configuration priority (highest to lowest):
    1. Environment variables (CITEMARKER_*)
    2. .env file
    3. Config YAML file
    4. Default values
    """

    app_name: str = "citemarker"
    version: str = "0.3.0"
    environment: Literal["development", "production", "test"] = "development"

    markers: MarkerConfig = Field(default_factory=MarkerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="CITEMARKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> "Settings":
        """Load settings from a YAML file."""
        if not path.exists():
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration with proper precedence.

    Args:
        config_path: Optional path to YAML config file.
                    If not provided, checks CITEMARKER_CONFIG_PATH env var,
                    then falls back to config/default.yaml
    """
    if config_path is None:
        config_path = os.environ.get("CITEMARKER_CONFIG_PATH")

    if config_path is None:
        env = os.environ.get("CITEMARKER_ENVIRONMENT", "development")
        possible_paths = [
            Path(f"config/{env}.yaml"),
            Path("config/default.yaml"),
        ]
        for p in possible_paths:
            if p.exists():
                config_path = str(p)
                break

    try:
        if config_path and Path(config_path).exists():
            return Settings.from_yaml(Path(config_path))
        return Settings()
    except ValidationError as e:
        raise ConfigError(
            "Invalid configuration",
            details=f"{config_path or 'environment'}: {e}",
        ) from e


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Use this as the primary way to access settings throughout the app.
    The settings are cached after first load.  When runtime overrides
    are applied via :func:`apply_runtime_overrides`, the cache is
    invalidated so the next call returns fresh settings.
    """
    settings = load_config()

    if _runtime_overrides:
        settings = _apply_overrides(settings, _runtime_overrides)

    return settings


# ---------------------------------------------------------------------------
# Runtime override support
# ---------------------------------------------------------------------------

_runtime_overrides: dict = {}


def apply_runtime_overrides(section: str, updates: dict) -> None:
    """Apply runtime config overrides and invalidate the settings cache.

    Args:
        section: Top-level config key, e.g. ``"markers"``, ``"logging"``.
        updates: Dict of field -> value overrides for that section.
    """
    if section not in _runtime_overrides:
        _runtime_overrides[section] = {}
    _runtime_overrides[section].update(updates)
    get_settings.cache_clear()


def _apply_overrides(settings: Settings, overrides: dict) -> Settings:
    """Return a copy of *settings* with *overrides* applied."""
    top_updates: dict = {}
    for section, values in overrides.items():
        sub_config = getattr(settings, section, None)
        if sub_config is None or not hasattr(sub_config, "model_copy"):
            continue
        # Validate through the section model so bad values fail here
        merged = {**sub_config.model_dump(), **values}
        try:
            top_updates[section] = type(sub_config).model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid override for {section!r}", details=str(e)) from e
    if top_updates:
        return settings.model_copy(update=top_updates)
    return settings


def clear_settings_cache():
    """Clear the settings cache and runtime overrides."""
    _runtime_overrides.clear()
    get_settings.cache_clear()


def get_default_style():
    """Return the style configured by ``markers.default_style_path``.

    Falls back to the built-in default style when no path is configured.
    """
    from citemarker.core.citation.style import StyleConfig

    path = get_settings().markers.default_style_path
    if not path:
        return StyleConfig()
    return StyleConfig.from_yaml(Path(path))
