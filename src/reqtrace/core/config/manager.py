"""
reqtrace configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import jsonschema
import yaml

from reqtrace.core.exceptions import ConfigError
from reqtrace.core.utils.io import read_yaml
from reqtrace.core.utils.merge import deep_merge
from reqtrace.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "REQTRACE_"
PROJECT_CONFIG_FILES: Tuple[str, ...] = (".reqtrace.yaml", ".reqtrace/config.yaml")
SCHEMA_NAME = "config.schema.yaml"


class ConfigManager:
    """Load, merge, and validate reqtrace configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: ``REQTRACE_<SECTION>__<KEY>`` (values parsed as YAML)
    2. Explicit config file passed by the caller (``--config``)
    3. Project config: ``<repo>/.reqtrace.yaml`` or ``<repo>/.reqtrace/config.yaml``
    4. Bundled defaults: ``reqtrace.data/config/defaults.yaml``
    """

    def __init__(
        self,
        repo_root: Optional[Path] = None,
        *,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.repo_root = Path(repo_root).resolve() if repo_root else self.find_repo_root()
        self.config_path = Path(config_path) if config_path else None
        self.environ: Mapping[str, str] = os.environ if environ is None else environ
        self.defaults_path = get_data_path("config", "defaults.yaml")
        self.schema_path = get_data_path("schemas", SCHEMA_NAME)
        self._cache: Optional[Dict[str, Any]] = None
        self._validated = False

    @staticmethod
    def find_repo_root(start: Optional[Path] = None) -> Path:
        """Walk up from ``start`` (cwd) to the first dir with a config file or ``.git``."""
        current = (start or Path.cwd()).resolve()
        for candidate in (current, *current.parents):
            if any((candidate / name).is_file() for name in PROJECT_CONFIG_FILES):
                return candidate
            if (candidate / ".git").exists():
                return candidate
        return current

    def project_config_file(self) -> Optional[Path]:
        for name in PROJECT_CONFIG_FILES:
            candidate = self.repo_root / name
            if candidate.is_file():
                return candidate
        return None

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Fail closed: a broken config file must never be silently ignored.
        try:
            data = read_yaml(path, default={}, raise_on_error=True)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot load configuration file {path}: {exc}", context={"path": str(path)}) from exc
        if not isinstance(data, dict):
            raise ConfigError(
                f"Configuration file {path} must contain a mapping, got {type(data).__name__}",
                context={"path": str(path)},
            )
        return data

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any, str]]:
        for key in sorted(self.environ):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX) :]
            if "__" not in raw:
                continue
            path = [seg.lower() for seg in raw.split("__")]
            if any(not seg for seg in path):
                raise ConfigError(f"Malformed {ENV_PREFIX}* key: empty segment in '{key}'", context={"key": key})
            try:
                value = yaml.safe_load(self.environ[key])
            except yaml.YAMLError as exc:
                raise ConfigError(f"Cannot parse value of {key}: {exc}", context={"key": key}) from exc
            yield path, value, key

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path, value, key in self._iter_env_overrides():
            override: Dict[str, Any] = {path[-1]: value}
            for segment in reversed(path[:-1]):
                override = {segment: override}
            logger.debug("config override from %s", key)
            cfg = deep_merge(cfg, override)
        return cfg

    def validate_schema(self, cfg: Dict[str, Any]) -> None:
        schema = read_yaml(self.schema_path, default=None, raise_on_error=True)
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
        if errors:
            messages = [
                f"{'.'.join(str(p) for p in err.path) or '<root>'}: {err.message}" for err in errors
            ]
            raise ConfigError(
                "Invalid configuration: " + "; ".join(messages),
                context={"errors": messages},
            )

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration.

        The result is cached per manager and should be treated as immutable.

        Raises:
            ConfigError: If a layer cannot be parsed or the result fails
                schema validation.
        """
        if self._cache is not None:
            if validate and not self._validated:
                self.validate_schema(self._cache)
                self._validated = True
            return self._cache

        cfg = self.load_yaml(self.defaults_path)
        project_file = self.project_config_file()
        if project_file is not None:
            logger.debug("loading project config %s", project_file)
            cfg = deep_merge(cfg, self.load_yaml(project_file))
        if self.config_path is not None:
            if not self.config_path.is_file():
                raise ConfigError(
                    f"Configuration file not found: {self.config_path}",
                    context={"path": str(self.config_path)},
                )
            cfg = deep_merge(cfg, self.load_yaml(self.config_path))
        cfg = self.apply_env_overrides(cfg)

        if validate:
            self.validate_schema(cfg)
        self._validated = validate
        self._cache = cfg
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key (e.g. ``"scan.max_workers"``)."""
        current: Any = self.load_config()
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_PREFIX", "PROJECT_CONFIG_FILES"]
