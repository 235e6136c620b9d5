"""
Config system - layered, typed configuration for the validator.

Merge order (later overrides earlier):
1. Config files (YAML or JSON), in the order given
2. ``.env`` file (only keys with the env prefix)
3. Environment variables (``VETTA_*``)
4. Manual overrides

Keys map onto ``ValidationConfig`` fields; ``VETTA_MAX_CONCURRENCY=8``
sets ``max_concurrency``.  Files may hold the keys at top level or under a
``validation:`` section.
"""

from __future__ import annotations

import json
import logging
import os
import types
from dataclasses import dataclass, fields
from glob import glob
from pathlib import Path
from typing import Any, Dict, Optional, Type, Union, get_args, get_origin, get_type_hints

from dotenv import dotenv_values

from .faults import ConfigFault

logger = logging.getLogger("vetta.config")

DEFAULT_ENV_PREFIX = "VETTA_"


@dataclass(frozen=True)
class ValidationConfig:
    """
    Validator options.

    Attributes:
        skip_missing_properties: Treat every absent/null field as optional
        required_message: Message for an absent required field
        nested_message: Message for a nested field whose value is not an object
        array_message: Message for an array field whose value is not a sequence
        array_item_message: Message for an array element that is not an object
        max_concurrency: Upper bound on concurrently evaluated fields in
            ``validate_async()`` (``None`` = unbounded)
        freeze_registry: Freeze the validator's registry on construction
    """

    skip_missing_properties: bool = False
    required_message: str = "{{ property }} is required"
    nested_message: str = "{{ property }} must be an object"
    array_message: str = "{{ property }} must be an array"
    array_item_message: str = "each value in {{ property }} must be an object"
    max_concurrency: Optional[int] = None
    freeze_registry: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ConfigFault("max_concurrency", "must be a positive integer or None")


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > config files > defaults
    """

    def __init__(self, env_prefix: str = DEFAULT_ENV_PREFIX):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[Union[str, Path]]] = None,
        env_prefix: str = DEFAULT_ENV_PREFIX,
        env_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> ConfigLoader:
        """
        Load configuration from every source, lowest precedence first.

        Args:
            paths: Config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to a .env file
            overrides: Manual overrides (highest precedence)
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(str(pattern))

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        logger.debug("Loaded validation config keys: %s", sorted(loader.config_data))
        return loader

    # ── Sources ──────────────────────────────────────────────────────────

    def _load_from_files(self, pattern: str) -> None:
        """Load config from JSON or YAML files."""
        matched = sorted(glob(pattern)) or ([pattern] if Path(pattern).exists() else [])
        for path_str in matched:
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)

    def _load_json_file(self, path: Path) -> None:
        with open(path, encoding="utf-8") as f:
            self._merge_section(json.load(f))

    def _load_yaml_file(self, path: Path) -> None:
        import yaml

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            if data:
                self._merge_section(data)

    def _load_env_file(self, path: Union[str, Path]) -> None:
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return
        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self) -> None:
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _merge_section(self, data: Any) -> None:
        if not isinstance(data, dict):
            return
        section = data.get("validation", data)
        if isinstance(section, dict):
            self._merge_dict(self.config_data, section)

    def _set_nested(self, key: str, value: str) -> None:
        """Convert VETTA_SECTION__KEY to nested dict entries."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        lowered = value.lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False
        if lowered in ("none", "null"):
            return None

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict) -> None:
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    # ── Access ───────────────────────────────────────────────────────────

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current: Any = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def validation_config(self) -> ValidationConfig:
        """Build a typed ``ValidationConfig`` from the merged data."""
        return self._instantiate_dataclass(ValidationConfig, self.config_data)

    def _instantiate_dataclass(self, config_class: Type, data: dict) -> Any:
        hints = get_type_hints(config_class)
        kwargs = {}
        for field_info in fields(config_class):
            name = field_info.name
            if name not in data:
                continue
            value = data[name]
            if not self._check_type(value, hints[name]):
                raise ConfigFault(
                    name,
                    f"expected {hints[name]}, got {type(value).__name__}",
                )
            kwargs[name] = value

        unknown = set(data) - {f.name for f in fields(config_class)}
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", sorted(unknown))
        return config_class(**kwargs)

    def _check_type(self, value: Any, expected_type: Any) -> bool:
        """Basic type checking (Optional[...] aware, bool is not an int)."""
        origin = get_origin(expected_type)
        if origin is types.UnionType or origin is Union:
            return any(self._check_type(value, arg) for arg in get_args(expected_type))
        if expected_type is type(None):
            return value is None
        if expected_type is int:
            return isinstance(value, int) and not isinstance(value, bool)
        if origin:
            return isinstance(value, origin)
        try:
            return isinstance(value, expected_type)
        except TypeError:
            return True

    def to_dict(self) -> dict:
        return dict(self.config_data)


def load_config(
    paths: Optional[list[Union[str, Path]]] = None,
    *,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    env_file: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ValidationConfig:
    """Shortcut: ``ConfigLoader.load(...).validation_config()``."""
    return ConfigLoader.load(
        paths,
        env_prefix=env_prefix,
        env_file=env_file,
        overrides=overrides,
    ).validation_config()
