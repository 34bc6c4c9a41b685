import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env early so env vars are available for YAML interpolation
load_dotenv(Path.cwd() / ".env")

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

CONFIG_SECTION = "forms"


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ValueError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def get_config_path() -> Path:
    """FORMWORK_CONFIG if set, otherwise ./app.yaml."""
    override = os.environ.get("FORMWORK_CONFIG")
    if override:
        return Path(override)
    return Path.cwd() / "app.yaml"


def load_app_config() -> dict:
    """Load and parse app.yaml with environment variable interpolation."""
    config_path = get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    return interpolate_env_vars(config)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FORMWORK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Hidden field that carries PATCH/PUT/DELETE through a browser POST
    method_override_field: str = "_method"

    # What to do with submitted keys outside the permitted set
    unpermitted_params: Literal["log", "ignore", "raise"] = "log"


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment and the app.yaml forms section."""
    base_settings = Settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    if not isinstance(app_config, dict):
        raise ValueError(f"{get_config_path()} must contain a mapping at the top level")

    section = app_config.get(CONFIG_SECTION)
    if not section:
        return base_settings
    if not isinstance(section, dict):
        raise ValueError(
            f"'{CONFIG_SECTION}' section in {get_config_path()} must be a mapping, "
            f"got {type(section).__name__}"
        )

    return Settings(**{**base_settings.model_dump(), **section})


def clear_settings_cache() -> None:
    get_settings.cache_clear()
