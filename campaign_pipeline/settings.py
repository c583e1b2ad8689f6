"""Pipeline configuration management."""

import os
from dataclasses import dataclass, field, fields, replace
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

ENV_PREFIX = "CAMPAIGN_PIPELINE_"
CONFIG_PATH_ENV = f"{ENV_PREFIX}CONFIG"

STORAGE_BACKENDS = ("memory", "file", "sql")
LOG_FORMATS = ("json", "text")


@dataclass
class Settings:
    """Pipeline settings loaded from environment and optional YAML file."""

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    # Storage
    storage_backend: str = "memory"  # memory, file, sql
    storage_path: str = "./campaign-data"
    database_url: str = "sqlite+aiosqlite:///./campaign_pipeline.db"

    # Continuity thresholds (0-100)
    continuity_threshold: int = 90
    preservation_threshold: int = 95
    asset_utilization_threshold: int = 80
    transition_quality_threshold: int = 85

    # Checker: quality score below this blocks completeness; None = advisory only
    quality_gate: Optional[int] = None
    # Penalty overrides by rule name
    penalties: Dict[str, int] = field(default_factory=dict)

    # Builder structural defaults
    candidate_date_months: int = 3
    default_brand: str = "Campaign Studio"
    default_language: str = "ru"

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got '{self.log_format}'")
        if self.storage_backend not in STORAGE_BACKENDS:
            raise ValueError(
                f"storage_backend must be one of {STORAGE_BACKENDS}, got '{self.storage_backend}'"
            )
        for name in (
            "continuity_threshold",
            "preservation_threshold",
            "asset_utilization_threshold",
            "transition_quality_threshold",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be within 0..100, got {value}")
        if self.quality_gate is not None and not 0 <= self.quality_gate <= 100:
            raise ValueError(f"quality_gate must be within 0..100, got {self.quality_gate}")
        if self.candidate_date_months < 1:
            raise ValueError("candidate_date_months must be at least 1")


def load_settings_from_env() -> Settings:
    """Load settings from CAMPAIGN_PIPELINE_* environment variables."""

    def get(key: str, default: str) -> str:
        return os.getenv(f"{ENV_PREFIX}{key}", default)

    def get_int(key: str, default: int) -> int:
        return int(get(key, str(default)))

    def get_optional_int(key: str) -> Optional[int]:
        value = os.getenv(f"{ENV_PREFIX}{key}")
        return int(value) if value not in (None, "") else None

    return Settings(
        # Logging
        log_level=get("LOG_LEVEL", "INFO"),
        log_format=get("LOG_FORMAT", "json"),

        # Storage
        storage_backend=get("STORAGE_BACKEND", "memory"),
        storage_path=get("STORAGE_PATH", "./campaign-data"),
        database_url=get("DATABASE_URL", "sqlite+aiosqlite:///./campaign_pipeline.db"),

        # Thresholds
        continuity_threshold=get_int("CONTINUITY_THRESHOLD", 90),
        preservation_threshold=get_int("PRESERVATION_THRESHOLD", 95),
        asset_utilization_threshold=get_int("ASSET_UTILIZATION_THRESHOLD", 80),
        transition_quality_threshold=get_int("TRANSITION_QUALITY_THRESHOLD", 85),
        quality_gate=get_optional_int("QUALITY_GATE"),

        # Builder
        candidate_date_months=get_int("CANDIDATE_DATE_MONTHS", 3),
        default_brand=get("DEFAULT_BRAND", "Campaign Studio"),
        default_language=get("DEFAULT_LANGUAGE", "ru"),
    )


def load_settings_from_yaml(
    path: Union[str, Path],
    base: Optional[Settings] = None,
) -> Settings:
    """Overlay values from a YAML mapping onto ``base`` (defaults if None).

    Raises:
        ValueError: the file is not a mapping or names unknown settings.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown settings in {path}: {', '.join(unknown)}")

    base = base or Settings()
    if "penalties" in data:
        data["penalties"] = {**base.penalties, **(data["penalties"] or {})}
    return replace(base, **data)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = load_settings_from_env()
    config_path = os.getenv(CONFIG_PATH_ENV)
    if config_path:
        settings = load_settings_from_yaml(config_path, settings)
    return settings


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_settings.cache_clear()
