"""
amazee-ai-configure Configuration Management

Handles loading tool settings from environment variables and an optional
amazee-ai.yaml in the project directory, with validation using Pydantic.
Also reads the project's own environment (.env files plus the process
environment) the way a Symfony application would see it.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import dotenv_values
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_HOST = "api.amazee.ai"
DEFAULT_SECRETS_COMMAND = "php bin/console secrets:set {key} --no-interaction"
YAML_CONFIG_NAME = "amazee-ai.yaml"

# Loaded in order; later files override earlier ones.
PROJECT_ENV_FILES = (".env", ".env.local")


def get_data_dir() -> Path:
    """
    Get the data directory for amazee-ai-configure (used for logs).

    Can be overridden via the AMAZEE_CONFIGURE_DATA environment variable,
    otherwise follows the XDG Base Directory layout.
    """
    data_dir = os.environ.get("AMAZEE_CONFIGURE_DATA")
    if data_dir:
        path = Path(data_dir)
    else:
        xdg_data = os.environ.get("XDG_DATA_HOME")
        if xdg_data:
            path = Path(xdg_data) / "amazee_ai_configure"
        else:
            path = Path.home() / ".local" / "share" / "amazee_ai_configure"

    path.mkdir(parents=True, exist_ok=True)
    return path


def load_yaml_config(project_dir: Path) -> dict[str, Any]:
    """Load configuration from amazee-ai.yaml if it exists."""
    config_path = project_dir / YAML_CONFIG_NAME
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


def read_project_env(project_dir: Optional[Path] = None) -> dict[str, str]:
    """
    Read the environment as the project sees it.

    Values from .env and .env.local are loaded first; real process
    environment variables take priority over anything in the files.
    """
    root = Path(project_dir) if project_dir else Path.cwd()
    values: dict[str, str] = {}

    for name in PROJECT_ENV_FILES:
        env_path = root / name
        if env_path.is_file():
            for key, value in dotenv_values(env_path).items():
                if value is not None:
                    values[key] = value

    values.update(os.environ)
    return values


def get_env_value(key: str, project_dir: Optional[Path] = None) -> Optional[str]:
    """Return a trimmed project environment value, or None if unset or empty."""
    value = read_project_env(project_dir).get(key)
    if not value or not value.strip():
        return None
    return value.strip()


class ApiSettings(BaseSettings):
    """amazee.ai API settings."""

    host: str = Field(default=DEFAULT_API_HOST, description="API host (no scheme)")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(env_prefix="AMAZEE_API_")


class SecretsSettings(BaseSettings):
    """Secrets command settings."""

    command: str = Field(
        default=DEFAULT_SECRETS_COMMAND,
        description="Command used to store one secret; {key} is replaced by the variable name",
    )

    model_config = SettingsConfigDict(env_prefix="AMAZEE_SECRETS_")


class Settings(BaseSettings):
    """Main settings container for amazee-ai-configure."""

    api: ApiSettings = Field(default_factory=ApiSettings)
    secrets: SecretsSettings = Field(default_factory=SecretsSettings)

    env_file: str = Field(default=".env.local", description="Env file written inside the project")
    log_level: str = Field(default="INFO", description="Log level for the log file")

    model_config = SettingsConfigDict(
        env_prefix="AMAZEE_CONFIGURE_",
        extra="ignore",
    )

    @classmethod
    def load(cls, project_dir: Optional[Path] = None) -> "Settings":
        """Load settings from the environment and the project's amazee-ai.yaml."""
        root = Path(project_dir) if project_dir else Path.cwd()
        yaml_config = load_yaml_config(root)

        settings = cls()

        # YAML only applies where the env var wasn't explicitly set
        if "api" in yaml_config:
            api_config = yaml_config["api"] or {}
            if "host" in api_config and not os.environ.get("AMAZEE_API_HOST"):
                settings.api.host = str(api_config["host"])
            if "timeout" in api_config and not os.environ.get("AMAZEE_API_TIMEOUT"):
                settings.api.timeout = float(api_config["timeout"])

        if "secrets" in yaml_config:
            secrets_config = yaml_config["secrets"] or {}
            if "command" in secrets_config and not os.environ.get("AMAZEE_SECRETS_COMMAND"):
                settings.secrets.command = str(secrets_config["command"])

        if "env_file" in yaml_config and not os.environ.get("AMAZEE_CONFIGURE_ENV_FILE"):
            settings.env_file = str(yaml_config["env_file"])

        return settings
