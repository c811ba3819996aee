"""
Configuration factories for the FormFlow engine tools.

Provides EngineConfig construction from environment variables or INI files.
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class EngineConfig:
    """Runtime settings shared by the API and the command-line tools."""
    log_dir: str = "./log"
    log_slug: str = "formflow"
    silent: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def config_from_env() -> EngineConfig:
    """
    Build an EngineConfig from environment variables.

    Expected vars: FORMFLOW_LOG_DIR, FORMFLOW_LOG_SLUG, FORMFLOW_SILENT,
                   FORMFLOW_CORS_ORIGINS (comma separated)
    """
    return EngineConfig(
        log_dir=os.environ.get("FORMFLOW_LOG_DIR", "./log"),
        log_slug=os.environ.get("FORMFLOW_LOG_SLUG", "API_services"),
        silent=_parse_bool(os.environ.get("FORMFLOW_SILENT", "false")),
        cors_origins=_parse_origins(
            os.environ.get("FORMFLOW_CORS_ORIGINS", "http://localhost:3000")
        ),
    )


def config_from_ini(ini_path: str | Path) -> EngineConfig:
    """Build an EngineConfig from an INI file's [logging] and [api] sections."""
    config = configparser.ConfigParser()
    if not config.read(ini_path):
        raise ValueError(f"Config file not found: {ini_path}")
    return EngineConfig(
        log_dir=config.get("logging", "log_dir", fallback="./log"),
        log_slug=config.get("logging", "log_slug", fallback="formflow"),
        silent=config.getboolean("logging", "silent", fallback=False),
        cors_origins=_parse_origins(
            config.get("api", "cors_origins", fallback="http://localhost:3000")
        ),
    )
