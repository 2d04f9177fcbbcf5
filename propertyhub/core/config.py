import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_PLACEHOLDER_IMAGE = "https://images.pexels.com/photos/106399/pexels-photo-106399.jpeg"


class AppConfig(BaseModel):
    placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE
    default_page_size: int = 10

    @field_validator("default_page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        if v < 1:
            print(
                f"WARNING: default_page_size ({v}) must be at least 1. "
                f"Using 10 instead."
            )
            return 10
        return v


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///./storage/db/propertyhub.sqlite"


class StorageConfig(BaseModel):
    base_url: str = ""
    bucket: str = "property-images"
    api_key: str = ""
    cache_control: str = "3600"
    timeout: int = 30


class AnalyticsConfig(BaseModel):
    default_range: str = "30d"
    popular_locations_limit: int = 8
    top_agents_limit: int = 5
    growth_window_days: int = 30

    @field_validator("default_range")
    @classmethod
    def validate_range(cls, v: str) -> str:
        if v not in ("7d", "30d", "90d", "1y"):
            print(f"WARNING: Unknown analytics range '{v}'. Using 30d instead.")
            return "30d"
        return v

    @field_validator("growth_window_days")
    @classmethod
    def validate_growth_window(cls, v: int) -> int:
        if v < 1:
            print(
                f"WARNING: growth_window_days ({v}) must be at least 1. "
                f"Using 30 instead."
            )
            return 30
        return v


class SchedulerConfig(BaseModel):
    enabled: bool = True
    interval_minutes: int = 15
    timezone: str = "Asia/Jakarta"

    @field_validator("interval_minutes")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 5:
            print(
                f"WARNING: Scheduler interval ({v} minutes) is too short. "
                f"Minimum interval is 5 minutes. Using 5 minutes instead."
            )
            return 5
        return v


class LoggingConfig(BaseModel):
    log_dir: str = "logs"
    level: str = "INFO"


class Config(BaseModel):
    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path | None = None) -> "Config":
        config_path = Path(path or os.getenv("PROPERTYHUB_CONFIG", "config.yaml"))

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)


# Load the configuration
config = Config.from_yaml()
