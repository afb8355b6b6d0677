"""Tests for configuration loading and validation."""

import logging
from pathlib import Path

import pytest

from monoindex.config import (
    CONFIG_ENV_VAR,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_MAX_TOKENS_PER_BATCH,
    AnalysisConfig,
    load_config,
)
from monoindex.errors import ConfigError


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


def test_defaults_when_nothing_configured(temp_dir: Path):
    config = load_config(temp_dir)
    assert config.max_tokens_per_batch == DEFAULT_MAX_TOKENS_PER_BATCH
    assert config.include_patterns == DEFAULT_INCLUDE_PATTERNS
    assert config.source is None


def test_monoindex_toml_is_loaded(make_tree):
    base = make_tree({
        "monoindex.toml": """
            workspace_dirs = ["modules"]
            max_tokens_per_batch = 1200

            [priority.package_scores]
            modules = 75
        """,
    })
    config = load_config(base)
    assert config.workspace_dirs == ["modules"]
    assert config.max_tokens_per_batch == 1200
    assert config.policy.package_scores["modules"] == 75
    assert config.source == base / "monoindex.toml"


def test_tool_table_in_pyproject(make_tree):
    base = make_tree({
        "pyproject.toml": """
            [project]
            name = "ws"

            [tool.monoindex]
            ignore_patterns = ["**/generated/**"]
        """,
    })
    config = load_config(base)
    assert config.ignore_patterns == ["**/generated/**"]


def test_env_var_points_at_config(make_tree, monkeypatch):
    base = make_tree({"conf/custom.toml": "max_tokens_per_batch = 42\n"})
    monkeypatch.setenv(CONFIG_ENV_VAR, str(base / "conf" / "custom.toml"))
    assert load_config(base).max_tokens_per_batch == 42


def test_explicit_missing_file_raises(temp_dir: Path):
    with pytest.raises(ConfigError) as excinfo:
        load_config(temp_dir, temp_dir / "nope.toml")
    assert "nope.toml" in str(excinfo.value)


def test_malformed_toml_raises(make_tree):
    base = make_tree({"monoindex.toml": "max_tokens_per_batch = = 3\n"})
    with pytest.raises(ConfigError):
        load_config(base)


def test_broken_root_manifest_falls_back_to_defaults(make_tree):
    base = make_tree({"pyproject.toml": "[project\n"})
    assert load_config(base).max_tokens_per_batch == DEFAULT_MAX_TOKENS_PER_BATCH


@pytest.mark.parametrize(
    "data",
    [
        {"max_tokens_per_batch": 0},
        {"max_tokens_per_batch": "100"},
        {"max_tokens_per_batch": True},
        {"workspace_dirs": "packages"},
        {"include_patterns": []},
        {"priority": {"file_keywords": [{"words": ["x"]}]}},
        {"priority": "high"},
    ],
)
def test_invalid_values_rejected(data):
    with pytest.raises(ConfigError):
        AnalysisConfig.from_dict(data)


def test_unknown_keys_warn(caplog):
    with caplog.at_level(logging.WARNING, logger="monoindex.config"):
        AnalysisConfig.from_dict({"max_tokens": 10})
    assert any("max_tokens" in r.getMessage() for r in caplog.records)


def test_with_overrides():
    config = AnalysisConfig().with_overrides(["src/**/*.py"], 500)
    assert config.effective_include_patterns == ["src/**/*.py"]
    assert config.max_tokens_per_batch == 500
    assert AnalysisConfig().effective_include_patterns == DEFAULT_INCLUDE_PATTERNS

    with pytest.raises(ConfigError):
        AnalysisConfig().with_overrides(max_tokens_per_batch=-1)


def test_priority_keyword_tables_replace_defaults():
    config = AnalysisConfig.from_dict({
        "priority": {"file_keywords": [{"words": ["Handler"], "points": 40}], "dir_keywords": []}
    })
    assert config.policy.file_priority(Path("pkg/x/user_handler.py"), 0) == 40
    assert config.policy.file_priority(Path("pkg/src/main.py"), 0) == 0
