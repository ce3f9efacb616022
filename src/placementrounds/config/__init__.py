"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from ..schemas.config import AppConfig, load_config


class ConfigManager:
    """YAML-backed configuration loader for named settings files."""

    def __init__(self, base_path: str | Path):
        self._base_path = Path(base_path)

    def load(self, name: str) -> dict[str, Any]:
        """Load a YAML configuration by name without file extension."""
        path = self._base_path / f"{name}.yaml"
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    def load_settings(self, name: str) -> dict[str, Any]:
        """Load and validate a configuration, returning container settings."""
        return load_config(self.load(name)).to_settings()


def load_settings_file(path: str | Path) -> AppConfig:
    with Path(path).open("r", encoding="utf-8") as handle:
        return load_config(yaml.safe_load(handle))


__all__ = ["ConfigManager", "load_settings_file"]
