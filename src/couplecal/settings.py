from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .marking.classifier import MarkingPalette

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ttl_seconds: int = Field(default=300, ge=0, le=86400)
    max_size: int = Field(default=50, ge=1, le=10000)
    prune_interval_seconds: int = Field(default=60, ge=5, le=3600)


class RefreshSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    interval_minutes: int = Field(default=5, ge=1, le=60)
    jitter_seconds: int = Field(default=15, ge=0, le=300)


class EventsSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path: Path = Path("data/events.yaml")

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: Path) -> Path:
        text = str(value).strip()
        if not text or text == ".":
            raise ValueError("events.path must not be empty")
        return Path(text)


class HolidaySettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    extra_path: Path | None = None

    @field_validator("extra_path")
    @classmethod
    def validate_extra_path(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        text = str(value).strip()
        if not text or text == ".":
            return None
        return Path(text)


class ThemeSettings(MarkingPalette):
    @field_validator(
        "weekday",
        "saturday",
        "sunday",
        "holiday",
        "saturday_background",
        "sunday_background",
        "holiday_background",
        "event_background",
        "selected_background",
        "selected_text",
    )
    @classmethod
    def validate_color(cls, value: str) -> str:
        text = value.strip()
        if not text.startswith("#") or len(text) not in (4, 7, 9):
            raise ValueError("theme colors must be hex strings like '#333333'")
        return text

    @field_validator("event_border_width")
    @classmethod
    def validate_border_width(cls, value: int) -> int:
        if value < 0 or value > 10:
            raise ValueError("theme.event_border_width must be between 0 and 10")
        return value

    def to_palette(self) -> MarkingPalette:
        return MarkingPalette.model_validate(self.model_dump())


class DiagnosticsSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slow_operation_ms: float = Field(default=50.0, gt=0)
    history_size: int = Field(default=1000, ge=10, le=100000)


class CouplecalYamlSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cache: CacheSettings = Field(default_factory=CacheSettings)
    refresh: RefreshSettings = Field(default_factory=RefreshSettings)
    events: EventsSettings = Field(default_factory=EventsSettings)
    holidays: HolidaySettings = Field(default_factory=HolidaySettings)
    theme: ThemeSettings = Field(default_factory=ThemeSettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    couplecal_env: Literal["dev", "test", "prod"] = "dev"
    couplecal_timezone: str = "Asia/Tokyo"
    couplecal_config_path: Path = Path("config/couplecal.yaml")

    @field_validator("couplecal_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class AppSettings(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    env: EnvSettings
    yaml: CouplecalYamlSettings
    project_root: Path
    config_path: Path
    events_path: Path
    holidays_path: Path | None
    timezone: ZoneInfo


def _resolve_project_path(path: Path) -> Path:
    if path.is_absolute():
        return path
    return (PROJECT_ROOT / path).resolve()


def _load_yaml_settings(path: Path) -> CouplecalYamlSettings:
    if not path.exists():
        raise FileNotFoundError(f"Couplecal config file not found: {path}")

    raw_config = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ValueError("Couplecal config must be a YAML mapping/object at the top level")
    return CouplecalYamlSettings.model_validate(raw_config)


@lru_cache(maxsize=1)
def load_settings() -> AppSettings:
    env = EnvSettings()
    config_path = _resolve_project_path(env.couplecal_config_path)
    yaml_settings = _load_yaml_settings(config_path)
    events_path = _resolve_project_path(yaml_settings.events.path)
    holidays_path = None
    if yaml_settings.holidays.extra_path is not None:
        holidays_path = _resolve_project_path(yaml_settings.holidays.extra_path)
    return AppSettings(
        env=env,
        yaml=yaml_settings,
        project_root=PROJECT_ROOT,
        config_path=config_path,
        events_path=events_path,
        holidays_path=holidays_path,
        timezone=ZoneInfo(env.couplecal_timezone),
    )
