"""Configuration loading and validation for vmwriter."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class WriterConfig:
    """Import endpoint settings."""

    endpoint: str = "localhost:8428"
    timeout_seconds: float = 10.0
    headers: dict[str, str] = field(default_factory=dict)
    extra_labels: dict[str, str] = field(default_factory=dict)


@dataclass
class VmWriterConfig:
    """Top-level vmwriter configuration."""

    writer: WriterConfig = field(default_factory=WriterConfig)
    log_level: str = "INFO"


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using VMWRITER_ prefix."""
    env_map = {
        "VMWRITER_ENDPOINT": ("writer", "endpoint"),
        "VMWRITER_TIMEOUT": ("writer", "timeout_seconds"),
        "VMWRITER_LOG_LEVEL": ("log_level",),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            if final_key == "timeout_seconds":
                obj[final_key] = float(value)
            else:
                obj[final_key] = value
    return data


def _dict_to_config(data: dict[str, Any]) -> VmWriterConfig:
    """Convert a raw dictionary to a VmWriterConfig dataclass."""
    writer_data = data.get("writer") or {}

    return VmWriterConfig(
        writer=WriterConfig(**{
            k: v for k, v in writer_data.items()
            if k in WriterConfig.__dataclass_fields__
        }),
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def load_config(path: str | Path | None = None) -> VmWriterConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``vmwriter.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("vmwriter.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
