"""Configuration models for the view exporter."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from viewexport.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "viewexport.yaml"


class DatabaseConfig(BaseModel):
    """Local PostgreSQL connection settings."""

    socket_dir: str = Field(default="/run/postgresql", description="Unix domain socket directory.")
    name: str = Field(default="tms")
    timezone: str = Field(default="US/Central", description="Session time zone used when rendering rows.")

    @field_validator("socket_dir")
    @classmethod
    def _absolute_socket_dir(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("must be an absolute unix socket directory")
        return normalized

    @field_validator("name", "timezone")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("must be non-empty")
        return normalized


class MirrorConfig(BaseModel):
    """Remote mirroring settings, used only when a host is given."""

    remote_dir: str = Field(default="/var/www/html/iris/")
    rsync_path: str = Field(default="rsync")
    ssh_options: list[str] = Field(default_factory=lambda: ["-o", "BatchMode=yes"])
    timeout_seconds: float = Field(default=60.0, gt=0)


class LoggingConfig(BaseModel):
    """Root logger settings applied by the CLI."""

    level: str = Field(default="INFO")
    format: str = Field(default="%(asctime)s %(levelname)s %(name)s %(message)s")

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return normalized
class ExportConfig(BaseSettings):
    """Root configuration model for the view exporter.

    Sources, highest priority first: explicit keyword arguments,
    ``VIEWEXPORT_*`` environment variables, then the YAML file.
    """

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    mirror: MirrorConfig = Field(default_factory=MirrorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="VIEWEXPORT_",
        env_nested_delimiter="__",
        extra="ignore",
        yaml_file=DEFAULT_CONFIG_FILE,
        yaml_file_encoding="utf-8",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, YamlConfigSettingsSource(settings_cls))


def load_config(path: str | Path | None = None, overrides: dict[str, Any] | None = None) -> ExportConfig:
    """Build configuration from ``path`` (default ``./viewexport.yaml``), environment and overrides.

    A missing default file is fine; an explicitly named file must exist.

    Raises:
        ConfigurationError: file missing, unparsable, or values fail validation.
    """
    settings_cls = ExportConfig
    if path is not None:
        target = Path(path)
        if not target.is_file():
            raise ConfigurationError(f"Config file not found: {target}")
        settings_cls = type(
            "ExportConfig",
            (ExportConfig,),
            {"model_config": SettingsConfigDict(yaml_file=target), "__module__": __name__},
        )
    try:
        return settings_cls(**(overrides or {}))
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f"{mark.name}:{mark.line + 1}:{mark.column + 1}" if mark is not None else str(path or DEFAULT_CONFIG_FILE)
        raise ConfigurationError(f"Invalid YAML at {where}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Config root must be a mapping of sections: {exc}") from exc
