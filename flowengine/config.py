"""Shared engine configuration.

Settings come from, in order of precedence: explicit arguments, the
environment, ~/.flowengine/configuration.json, and built-in defaults.

Example configuration.json:
    {
        "backend": {"url": "http://executor:8080/api", "timeout_seconds": 30},
        "executor": "remote",
        "logging": {"level": "DEBUG", "format": "json"}
    }
"""

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from flowengine.execution.dispatcher import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS

# ---------------------------------------------------------------------------
# Low-level config file access
# ---------------------------------------------------------------------------

FLOWENGINE_CONFIG_FILE = Path.home() / ".flowengine" / "configuration.json"

EXECUTOR_CHOICES = ("remote", "local")


def get_engine_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load the configuration file; missing or unreadable files give {}."""
    config_path = path or FLOWENGINE_CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        with open(config_path, encoding="utf-8-sig") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# EngineConfig
# ---------------------------------------------------------------------------


@dataclass
class EngineConfig:
    """Resolved engine settings."""

    backend_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    executor: str = "remote"  # "remote" or "local"
    batch_payload: str = "graph"  # "graph" or "tasks"
    staged_granularity: str = "group"  # "group" or "task"
    simulated_latency_ms: int = 0
    log_level: str = "INFO"
    log_format: str = "auto"
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.executor not in EXECUTOR_CHOICES:
            raise ValueError(f"Invalid executor '{self.executor}'. Valid: {EXECUTOR_CHOICES}")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

    @classmethod
    def load(cls, config_path: Path | None = None, **overrides: Any) -> "EngineConfig":
        """Resolve settings from overrides, environment, file and defaults."""
        file_config = get_engine_config_file(config_path)
        backend = _section(file_config, "backend")
        logging_config = _section(file_config, "logging")
        local = _section(file_config, "local")

        values: dict[str, Any] = {
            "backend_url": backend.get("url"),
            "timeout_seconds": backend.get("timeout_seconds"),
            "batch_payload": backend.get("batch_payload"),
            "staged_granularity": backend.get("staged_granularity"),
            "headers": backend.get("headers"),
            "executor": file_config.get("executor"),
            "simulated_latency_ms": local.get("simulated_latency_ms"),
            "log_level": logging_config.get("level"),
            "log_format": logging_config.get("format"),
        }

        env = {
            "backend_url": os.environ.get("FLOWENGINE_BACKEND_URL"),
            "timeout_seconds": os.environ.get("FLOWENGINE_TIMEOUT"),
            "executor": os.environ.get("FLOWENGINE_EXECUTOR"),
            "log_level": os.environ.get("LOG_LEVEL"),
        }
        values.update({key: value for key, value in env.items() if value})
        values.update({key: value for key, value in overrides.items() if value is not None})

        known = {f.name for f in fields(cls)}
        resolved = {
            key: value for key, value in values.items() if key in known and value is not None
        }
        if "timeout_seconds" in resolved:
            resolved["timeout_seconds"] = float(resolved["timeout_seconds"])
        if "simulated_latency_ms" in resolved:
            resolved["simulated_latency_ms"] = int(resolved["simulated_latency_ms"])
        return cls(**resolved)


def _section(file_config: dict[str, Any], name: str) -> dict[str, Any]:
    """A nested config object; anything that is not an object counts as empty."""
    value = file_config.get(name)
    return value if isinstance(value, dict) else {}
