from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator

CONFIG_FILENAME = "imagen.toml"
OUTPUT_DIR_ENV = "IMAGEN_OUTPUT_DIR"
LOG_LEVEL_ENV = "IMAGEN_LOG_LEVEL"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def normalize_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}, got '{value}'")
    return level


class ServerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    api_key_env: str = "GEMINI_API_KEY"
    output_dir: Optional[Path] = None
    log_level: str = "INFO"

    @field_validator("api_key_env")
    @classmethod
    def validate_api_key_env(cls, v: str) -> str:
        if not v:
            raise ValueError("api_key_env cannot be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return normalize_log_level(v)


@dataclass(frozen=True)
class Settings:
    api_key: str
    output_dir: Path
    log_level: str = "INFO"


class ConfigError(Exception):
    def __init__(self, message: str, path: Optional[Path] = None, line: Optional[int] = None):
        self.path = path
        self.line = line
        if path:
            loc = f"{path}"
            if line:
                loc += f":{line}"
            message = f"{loc}: {message}"
        super().__init__(message)


def load_config(config_path: Path) -> ServerConfig:
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}", path=config_path)

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore

    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to parse TOML: {e}", path=config_path) from e

    try:
        return ServerConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}", path=config_path) from e


def find_config(start_dir: Optional[Path] = None) -> Optional[Path]:
    """Walk up from ``start_dir`` looking for imagen.toml. The file is optional."""
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> Settings:
    """Resolve runtime settings from the optional config file and environment.

    Environment variables win over the file. The API key is mandatory.

    Raises:
        ConfigError: If the config file is unreadable or the API key is unset.
    """
    env = os.environ if environ is None else environ
    cwd = cwd or Path.cwd()

    if config_path is None:
        config_path = find_config(cwd)
    config = load_config(config_path) if config_path is not None else ServerConfig()

    api_key = env.get(config.api_key_env, "").strip()
    if not api_key:
        raise ConfigError(f"{config.api_key_env} environment variable is required")

    if env.get(OUTPUT_DIR_ENV):
        output_dir = Path(env[OUTPUT_DIR_ENV])
    elif config.output_dir is not None:
        output_dir = config.output_dir
        if not output_dir.is_absolute() and config_path is not None:
            output_dir = config_path.parent / output_dir
    else:
        output_dir = cwd / "generated-images"

    log_level = config.log_level
    if env.get(LOG_LEVEL_ENV):
        try:
            log_level = normalize_log_level(env[LOG_LEVEL_ENV])
        except ValueError as e:
            raise ConfigError(f"{LOG_LEVEL_ENV}: {e}") from e

    return Settings(api_key=api_key, output_dir=output_dir.expanduser(), log_level=log_level)
