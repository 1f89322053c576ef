from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from roomlock.exceptions import ConfigurationError

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


class StoreSettings(BaseModel):
    backend: Literal["memory", "file", "s3"] = "memory"
    root: Path = Path("data/geometry")
    bucket: str | None = None
    prefix: str = "room-geometry"
    region: str | None = None
    # In-memory cache eviction; None keeps entries until max_entries pushes them out
    ttl_seconds: float | None = Field(default=3600.0, gt=0.0)
    max_entries: int | None = Field(default=1024, ge=1)

    @model_validator(mode="after")
    def _bucket_required_for_s3(self) -> "StoreSettings":
        if self.backend == "s3" and not self.bucket:
            raise ValueError("store.bucket is required when store.backend is 's3'")
        return self


class CompilerSettings(BaseModel):
    inpaint_strength_min: float = Field(0.15, ge=0.0, le=1.0)
    inpaint_strength_max: float = Field(0.3, ge=0.0, le=1.0)
    placement_tolerance_percent: float = Field(2.0, gt=0.0, le=100.0)

    @model_validator(mode="after")
    def _ordered_strength(self) -> "CompilerSettings":
        if self.inpaint_strength_min > self.inpaint_strength_max:
            raise ValueError("inpaint_strength_min must not exceed inpaint_strength_max")
        return self


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    file: Path | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:  # noqa: D401
        if value is None:
            return "INFO"
        return str(value).upper()


class Settings(BaseModel):
    store: StoreSettings = Field(default_factory=StoreSettings)
    compiler: CompilerSettings = Field(default_factory=CompilerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from YAML configuration file.
        
        Args:
            path: Optional path to configuration file. If not provided, uses
                ROOMLOCK_CONFIG environment variable or defaults to config/default.yaml.
                A missing default file yields the built-in defaults.
        
        Returns:
            Settings instance with loaded configuration.
        
        Raises:
            ConfigurationError: If an explicit configuration file is missing or
                the configuration is invalid.
        """
        explicit = path is not None or "ROOMLOCK_CONFIG" in os.environ
        config_path = path or Path(os.getenv("ROOMLOCK_CONFIG", "config/default.yaml"))
        if not config_path.exists():
            if explicit:
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    {"path": str(config_path)},
                )
            return cls()
        with config_path.open("r", encoding="utf-8") as fp:
            payload = yaml.safe_load(fp) or {}
        try:
            return cls(**payload)
        except Exception as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}", {"path": str(config_path)}) from exc


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "StoreSettings",
    "CompilerSettings",
    "LoggingSettings",
    "get_settings",
]
