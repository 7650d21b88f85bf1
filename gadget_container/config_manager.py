"""
Config Manager

Loads the container configuration: ``config/config.json`` layered over
``config/config.template.json``. The template supplies every default so a
missing or partial config.json is never fatal.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from gadget_container.logging_config import get_logger

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_ENV = "GADGET_CONTAINER_CONFIG"


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``base`` updated recursively with ``override`` (neither is mutated)."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class ConfigManager:
    """Reads and caches the JSON configuration."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        template_path: Optional[str] = None,
        logger: Optional[logging.Logger] = None
    ) -> None:
        self.logger = logger or get_logger(__name__)
        self.config_path = config_path or self.get_config_path()
        self.template_path = template_path or self.get_template_path()
        self._config: Optional[Dict[str, Any]] = None

    @staticmethod
    def get_config_path() -> str:
        env_path = os.environ.get(CONFIG_ENV)
        if env_path:
            return env_path
        return str(PROJECT_ROOT / "config" / "config.json")

    @staticmethod
    def get_template_path() -> str:
        return str(PROJECT_ROOT / "config" / "config.template.json")

    def _read_json(self, path: str) -> Dict[str, Any]:
        if not os.path.exists(path):
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self.logger.error("Invalid JSON in %s: %s", path, e)
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be an object: {path}")
        return data

    def load_config(self) -> Dict[str, Any]:
        """
        Load the configuration from disk, merging config.json over the template.

        Returns:
            The merged configuration dict
        """
        template = self._read_json(self.template_path)
        overrides = self._read_json(self.config_path)
        if not overrides:
            self.logger.debug("No config overrides at %s, using template defaults", self.config_path)
        self._config = deep_merge(template, overrides)
        return self._config

    def get_config(self) -> Dict[str, Any]:
        if self._config is None:
            return self.load_config()
        return self._config

    def get_section(self, section: str) -> Dict[str, Any]:
        return self.get_config().get(section, {}) or {}

    def get_feature_paths(self) -> List[Path]:
        """Feature roots as absolute paths; relative entries resolve against the project root."""
        paths = self.get_section('features').get('paths', ['features'])
        if isinstance(paths, str):
            paths = [paths]
        resolved = []
        for entry in paths:
            path = Path(entry)
            if not path.is_absolute():
                path = PROJECT_ROOT / path
            resolved.append(path)
        return resolved

    def get_cache_directory(self) -> Path:
        directory = Path(self.get_section('cache').get('directory', 'cache'))
        if not directory.is_absolute():
            directory = PROJECT_ROOT / directory
        return directory
