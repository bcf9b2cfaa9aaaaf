"""
Settings loader for the space mission engine.

Reads an optional YAML settings file, then applies environment overrides
(a .env file in the working directory is loaded first).
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


# Default settings file (relative to project root)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "spacemission.yaml"

ENV_OVERRIDES = {
    "SPACEMISSION_API_URL": "api_base_url",
    "SPACEMISSION_API_TOKEN": "api_token",
    "SPACEMISSION_REQUEST_TIMEOUT": "request_timeout",
    "SPACEMISSION_STUDENT_ID": "student_id",
    "SPACEMISSION_TICK_INTERVAL": "tick_interval",
    "SPACEMISSION_LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    api_base_url: str = "http://localhost:5000"
    request_timeout: float = Field(default=10.0, gt=0)
    api_token: Optional[str] = None
    student_id: Optional[int] = None
    tick_interval: float = Field(default=1.0, gt=0)  # seconds per countdown tick
    log_level: str = "INFO"


def load_yaml_settings(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load raw settings from a YAML file.

    Args:
        config_path: Optional explicit settings file

    Returns:
        Dict of settings; empty if the default file does not exist

    Raises:
        FileNotFoundError: If an explicit config_path doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    file_path = config_path or DEFAULT_CONFIG_PATH

    if not file_path.exists():
        if config_path is not None:
            raise FileNotFoundError(f"Settings file not found: {file_path}")
        return {}

    with open(file_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Build Settings from YAML file and environment.

    Environment variables win over the file. Values are validated by
    the Settings model, so a malformed timeout raises ValidationError.
    """
    load_dotenv()
    values = load_yaml_settings(config_path)

    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            values[field_name] = value

    return Settings(**values)
