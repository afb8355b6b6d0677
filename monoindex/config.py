"""Analysis configuration loaded from TOML.

Lookup order for :func:`load_config`:

1. Explicit ``config_path`` argument.
2. ``$MONOINDEX_CONFIG``.
3. ``<base_dir>/monoindex.toml``.
4. ``[tool.monoindex]`` in ``<base_dir>/pyproject.toml``.
5. Built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import toml

from .errors import ConfigError
from .priority import PriorityPolicy

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MONOINDEX_CONFIG"
CONFIG_FILE_NAME = "monoindex.toml"
MANIFEST_NAME = "pyproject.toml"

DEFAULT_WORKSPACE_DIRS = ["packages", "libs", "services", "apps", "tools"]
DEFAULT_INCLUDE_PATTERNS = ["**/*.py"]
DEFAULT_IGNORE_PATTERNS = [
    "**/.git/**",
    "**/.venv/**",
    "**/venv/**",
    "**/__pycache__/**",
    "**/.tox/**",
    "**/.mypy_cache/**",
    "**/.pytest_cache/**",
    "**/node_modules/**",
    "**/build/**",
    "**/dist/**",
    "**/*.egg-info/**",
    "**/tests/**",
    "**/test_*.py",
    "**/*_test.py",
    "**/conftest.py",
]
DEFAULT_MAX_TOKENS_PER_BATCH = 8000

_KNOWN_KEYS = {
    "workspace_dirs",
    "include_patterns",
    "ignore_patterns",
    "target_paths",
    "max_tokens_per_batch",
    "priority",
}


@dataclass
class AnalysisConfig:
    workspace_dirs: List[str] = field(default_factory=lambda: list(DEFAULT_WORKSPACE_DIRS))
    include_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    target_paths: List[str] = field(default_factory=list)
    max_tokens_per_batch: int = DEFAULT_MAX_TOKENS_PER_BATCH
    policy: PriorityPolicy = field(default_factory=PriorityPolicy)
    source: Optional[Path] = None

    @property
    def effective_include_patterns(self) -> List[str]:
        """Target paths, when given, replace the include patterns wholesale."""
        return list(self.target_paths) if self.target_paths else list(self.include_patterns)

    def with_overrides(
        self,
        target_paths: Optional[Sequence[str]] = None,
        max_tokens_per_batch: Optional[int] = None,
    ) -> "AnalysisConfig":
        updated = self
        if target_paths:
            updated = replace(updated, target_paths=list(target_paths))
        if max_tokens_per_batch is not None:
            if max_tokens_per_batch <= 0:
                raise ConfigError("max_tokens_per_batch must be a positive integer")
            updated = replace(updated, max_tokens_per_batch=max_tokens_per_batch)
        return updated

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[Path] = None) -> "AnalysisConfig":
        unknown = sorted(set(data) - _KNOWN_KEYS)
        if unknown:
            logger.warning("Ignoring unknown configuration keys in %s: %s", source or "<dict>", ", ".join(unknown))

        config = cls(source=source)
        for key in ("workspace_dirs", "include_patterns", "ignore_patterns", "target_paths"):
            if key in data:
                setattr(config, key, _string_list(data[key], key, source))

        if "max_tokens_per_batch" in data:
            value = data["max_tokens_per_batch"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError("max_tokens_per_batch must be a positive integer", source)
            config.max_tokens_per_batch = value

        if "priority" in data:
            if not isinstance(data["priority"], dict):
                raise ConfigError("[priority] must be a table", source)
            try:
                config.policy = PriorityPolicy.from_dict(data["priority"])
            except (TypeError, ValueError) as exc:
                raise ConfigError(str(exc), source) from exc

        if not config.include_patterns:
            raise ConfigError("include_patterns must not be empty", source)
        return config


def _string_list(value: Any, key: str, source: Optional[Path]) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be an array of strings", source)
    return list(value)


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, ValueError, IndexError) as exc:
        raise ConfigError(f"cannot read TOML ({exc})", path) from exc


def find_config_file(base_dir: Path) -> Optional[Path]:
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    candidate = base_dir / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    return None


def load_config(base_dir: Path, config_path: Optional[Path] = None) -> AnalysisConfig:
    """Load the analysis configuration for the workspace at ``base_dir``."""
    path = config_path or find_config_file(base_dir)
    if path is not None:
        if not path.is_file():
            raise ConfigError("config file not found", path)
        logger.debug("Loading configuration from %s", path)
        return AnalysisConfig.from_dict(_read_toml(path), source=path)

    manifest = base_dir / MANIFEST_NAME
    if manifest.is_file():
        try:
            data = _read_toml(manifest)
        except ConfigError as exc:
            # A broken root manifest is reported by package discovery.
            logger.debug("Skipping [tool.monoindex] lookup: %s", exc)
            return AnalysisConfig()
        section = data.get("tool", {}).get("monoindex")
        if section is not None:
            if not isinstance(section, dict):
                raise ConfigError("[tool.monoindex] must be a table", manifest)
            logger.debug("Loading configuration from [tool.monoindex] in %s", manifest)
            return AnalysisConfig.from_dict(section, source=manifest)

    return AnalysisConfig()
