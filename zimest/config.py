"""Global configuration: constants, environment profiles and engine settings.

Settings are merged from, in increasing priority::

    defaults -> ZIMEST_ENV profile -> .zimest/config.json -> .env -> environment
"""

from __future__ import annotations

import json
import logging
import math
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

# Building defaults used when an input is missing or invalid
DEFAULT_FLOOR_AREA_M2 = 120.0
DEFAULT_ROOM_COUNT = 4
DEFAULT_WALL_HEIGHT_M = 2.7

# Floor area per room when the stage estimator has to guess a room count
FLOOR_M2_PER_ROOM = 28.0

# USD -> local currency (ZWG) rate used when none is injected
DEFAULT_EXCHANGE_RATE = 30.0

# External works allowance, USD per m2 of floor area
EXTERIOR_ALLOWANCE_USD_PER_M2 = 18.0

# Whole-project baseline, USD per m2, used when nothing else prices
BASELINE_USD_PER_M2 = 250.0

# Exterior share of the computed total when exterior priced to zero
EXTERIOR_MIN_SHARE = 0.08

CONFIG_DIR = ".zimest"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_CONFIG_KEYS: dict[str, dict[str, str]] = {
    "ZIMEST_ENV": {"default": "development", "description": "Environment profile"},
    "ZIMEST_LOG_LEVEL": {"default": "INFO", "description": "Logging level for the zimest logger"},
    "ZIMEST_EXCHANGE_RATE": {
        "default": str(DEFAULT_EXCHANGE_RATE),
        "description": "Local currency units per USD",
    },
    "ZIMEST_DEFAULT_LOCATION": {
        "default": "urban",
        "description": "Location class used when a request omits one",
    },
}

_PROFILES: dict[str, dict[str, str]] = {
    "development": {
        "ZIMEST_ENV": "development",
        "ZIMEST_LOG_LEVEL": "DEBUG",
    },
    "production": {
        "ZIMEST_ENV": "production",
        "ZIMEST_LOG_LEVEL": "WARNING",
    },
    "testing": {
        "ZIMEST_ENV": "testing",
        "ZIMEST_LOG_LEVEL": "DEBUG",
    },
}


def load_config(project_path: str | Path | None = None) -> dict[str, str]:
    """Load merged config: defaults -> profile -> config.json -> .env -> env vars.

    Returns a flat dict of configuration values.
    """
    config: dict[str, str] = {key: info["default"] for key, info in _CONFIG_KEYS.items()}

    env_name = os.environ.get("ZIMEST_ENV", config["ZIMEST_ENV"])
    config.update(_PROFILES.get(env_name, {}))

    if project_path is not None:
        root = Path(project_path)

        config_json = root / CONFIG_DIR / "config.json"
        if config_json.is_file():
            try:
                data = json.loads(config_json.read_text(encoding="utf-8"))
                for k, v in data.items():
                    config[k] = str(v)
            except (json.JSONDecodeError, OSError, AttributeError):
                logger.debug("Could not read %s", config_json, exc_info=True)

        env_file = root / ".env"
        if env_file.is_file():
            try:
                for line in env_file.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    if "=" in line:
                        k, v = line.split("=", 1)
                        config[k.strip()] = v.strip()
            except OSError:
                logger.debug("Could not read %s", env_file, exc_info=True)

    for key in _CONFIG_KEYS:
        env_val = os.environ.get(key)
        if env_val is not None:
            config[key] = env_val

    return config


class EngineSettings(BaseModel):
    """Typed view of the configuration values the engine consumes."""

    env: str = "development"
    log_level: str = "INFO"
    exchange_rate: float = DEFAULT_EXCHANGE_RATE
    default_location: str = "urban"

    @field_validator("exchange_rate", mode="before")
    @classmethod
    def _rate(cls, v: Any) -> float:
        try:
            rate = float(v)
        except (TypeError, ValueError):
            return DEFAULT_EXCHANGE_RATE
        if not math.isfinite(rate) or rate <= 0:
            return DEFAULT_EXCHANGE_RATE
        return rate

    @field_validator("log_level", mode="before")
    @classmethod
    def _level(cls, v: Any) -> str:
        level = str(v or "INFO").strip().upper()
        return level if level in _LOG_LEVELS else "INFO"

    @classmethod
    def from_config(cls, config: dict[str, str]) -> EngineSettings:
        return cls(
            env=config.get("ZIMEST_ENV", "development"),
            log_level=config.get("ZIMEST_LOG_LEVEL", "INFO"),
            exchange_rate=config.get("ZIMEST_EXCHANGE_RATE", DEFAULT_EXCHANGE_RATE),
            default_location=config.get("ZIMEST_DEFAULT_LOCATION", "urban"),
        )


def load_settings(project_path: str | Path | None = None) -> EngineSettings:
    return EngineSettings.from_config(load_config(project_path))


def apply_log_level(settings: EngineSettings) -> None:
    """Set the level of the ``zimest`` package logger.  Handlers are left alone."""
    logging.getLogger("zimest").setLevel(settings.log_level)


def generate_env_template(project_path: str | Path) -> Path:
    """Create .env.example with all config keys.

    Returns the path to the generated file.
    """
    env_path = Path(project_path) / ".env.example"

    lines = ["# zimest configuration template", "# Copy to .env and fill in values", ""]
    for key, info in _CONFIG_KEYS.items():
        lines.append(f"# {info['description']}")
        lines.append(f"{key}={info['default']}")
        lines.append("")

    env_path.write_text("\n".join(lines), encoding="utf-8")
    return env_path
