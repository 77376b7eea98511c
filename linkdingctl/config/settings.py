from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .integrations import LinkdingConfig

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = "linkdingctl"
CONFIG_FILE_NAME = "config.yaml"

MISSING_CONFIG_MESSAGE = "no configuration found. Run 'linkdingctl config init' to set up"


class ConfigError(RuntimeError):
    """Configuration is missing, unreadable or invalid."""


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    log_level: str = Field(default="WARNING", validation_alias="LINKDING_LOG_LEVEL")
    request_timeout_sec: int = Field(default=30, validation_alias="LINKDING_TIMEOUT")
    max_retries: int = Field(default=3, validation_alias="LINKDING_MAX_RETRIES")
    page_size: int = Field(default=100, validation_alias="LINKDING_PAGE_SIZE")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "WARNING").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("request_timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> int:
        try:
            timeout = int(str(value or 30))
        except ValueError as exc:
            msg = "Timeout must be a valid integer"
            raise ValueError(msg) from exc
        if timeout <= 0:
            msg = "Timeout must be positive"
            raise ValueError(msg)
        if timeout > 3600:
            msg = "Timeout too large (max 3600 seconds)"
            raise ValueError(msg)
        return timeout

    @field_validator("max_retries", mode="before")
    @classmethod
    def _validate_max_retries(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 3))
        except ValueError as exc:
            msg = "Max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 10:
            msg = "Max retries must be between 0 and 10"
            raise ValueError(msg)
        return parsed

    @field_validator("page_size", mode="before")
    @classmethod
    def _validate_page_size(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = "Page size must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 1000:
            msg = "Page size must be between 1 and 1000"
            raise ValueError(msg)
        return parsed


@dataclass(frozen=True)
class AppConfig:
    linkding: LinkdingConfig
    runtime: RuntimeConfig


class Settings(BaseSettings):
    """Settings merged from the config file, the environment and explicit overrides.

    Nested models are populated by field name from the file, by
    ``validation_alias`` from the environment, and by field name from
    constructor arguments, in increasing order of precedence.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        case_sensitive=True,
    )

    file_values: dict[str, Any] = Field(default_factory=dict, exclude=True)
    linkding: LinkdingConfig = Field(default_factory=LinkdingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    @model_validator(mode="before")
    @classmethod
    def _build_nested_from_sources(cls, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict):
            return data

        result = dict(data)
        file_values: dict[str, Any] = dict(data.get("file_values") or {})
        env_data: dict[str, Any] = dict(os.environ)

        for field_name, field_info in cls.model_fields.items():
            annotation = field_info.annotation
            if not isinstance(annotation, type) or not issubclass(annotation, BaseModel):
                continue

            nested_data: dict[str, Any] = {}
            nested_model: type[BaseModel] = annotation

            for nested_field_name, nested_field in nested_model.model_fields.items():
                if file_values.get(nested_field_name) not in (None, ""):
                    nested_data[nested_field_name] = file_values[nested_field_name]
                alias = nested_field.validation_alias
                if isinstance(alias, str) and env_data.get(alias) not in (None, ""):
                    nested_data[nested_field_name] = env_data[alias]

            explicit = result.get(field_name)
            if isinstance(explicit, dict):
                explicit = {key: value for key, value in explicit.items() if value is not None}
                nested_data = {**nested_data, **explicit}
            if nested_data:
                result[field_name] = nested_data

        return result

    def as_app_config(self) -> AppConfig:
        return AppConfig(linkding=self.linkding, runtime=self.runtime)


def default_config_path() -> Path:
    """``$XDG_CONFIG_HOME/linkdingctl/config.yaml`` (``~/.config`` when unset)."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / CONFIG_DIR_NAME / CONFIG_FILE_NAME


def read_config_file(config_path: str | Path | None = None) -> dict[str, Any]:
    """Read the YAML config file; a missing file yields an empty mapping.

    Raises:
        ConfigError: The file exists but is not a readable YAML mapping.
    """
    path = Path(config_path) if config_path else default_config_path()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("config_file_missing", extra={"path": str(path)})
        return {}
    except OSError as exc:
        msg = f"failed to read config file: {exc}"
        raise ConfigError(msg) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"failed to read config file: {exc}"
        raise ConfigError(msg) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"failed to read config file: {path} must contain a mapping"
        raise ConfigError(msg)
    return data


def load_config(
    config_path: str | Path | None = None,
    *,
    url: str | None = None,
    token: str | None = None,
    log_level: str | None = None,
    require_credentials: bool = True,
) -> AppConfig:
    """Load configuration: config file < environment < explicit arguments.

    Raises:
        ConfigError: The file cannot be read, a value is invalid, or (with
            ``require_credentials``) the URL or token is missing.
    """
    file_values = read_config_file(config_path)
    overrides: dict[str, Any] = {"file_values": file_values}
    if url or token:
        overrides["linkding"] = {"url": url or None, "token": token or None}
    if log_level:
        overrides["runtime"] = {"log_level": log_level}

    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise ConfigError(msg) from exc

    config = settings.as_app_config()
    if require_credentials and not config.linkding.is_complete:
        raise ConfigError(MISSING_CONFIG_MESSAGE)
    return config


def save_config(linkding: LinkdingConfig, config_path: str | Path | None = None) -> Path:
    """Write URL and token as YAML, readable by the owner only.

    The file is created with mode 0600, and an existing file is narrowed to
    0600 before the token is written. The directory is made 0700 when this
    call creates it or when it is the default config directory.
    """
    path = Path(config_path) if config_path else default_config_path()
    text = yaml.safe_dump({"url": linkding.url, "token": linkding.token}, sort_keys=False)
    try:
        private_dir = not path.parent.exists() or path.parent == default_config_path().parent
        path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        if private_dir:
            path.parent.chmod(0o700)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            path.chmod(0o600)
            handle.write(text)
    except OSError as exc:
        msg = f"failed to save config: {exc}"
        raise ConfigError(msg) from exc

    logger.info("config_saved", extra={"path": str(path)})
    return path
