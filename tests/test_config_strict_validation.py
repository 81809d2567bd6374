from __future__ import annotations

from pathlib import Path

import pytest

from rules.config import ConfigError, load_config


def _write_config(repo_root: Path, toml_content: str) -> None:
    (repo_root / "archgraph.toml").write_text(toml_content, encoding="utf-8")


def test_missing_config_yields_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config.custom_rules == []
    assert config.layers.layer == []
    assert config.drift.window == "3mo"


def test_invalid_toml_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "custom_rules = [")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(tmp_path)


def test_unknown_top_level_key_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, "bogus_key = true")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_unknown_nested_layer_key_rejected(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[[layers.layer]]
name = "domain"
globs = ["src/domain/**"]
bogus = true
""".strip(),
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_unknown_custom_rule_key_rejected(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[[custom_rules]]
name = "no-console"
pattern = "console"
blockedIn = ["src"]
""".strip(),
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_duplicate_custom_rule_names_rejected(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[[custom_rules]]
name = "no-console"
pattern = "console"

[[custom_rules]]
name = "no-console"
pattern = "debugger"
""".strip(),
    )

    with pytest.raises(ConfigError, match="Duplicate custom rule name"):
        load_config(tmp_path)


def test_invalid_drift_window_rejected(tmp_path: Path) -> None:
    _write_config(tmp_path, '[drift]\nwindow = "2wk"')

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_valid_custom_rules_accepted(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[[custom_rules]]
name = "no-console"
pattern = 'console\\.log'
notAllowedIn = ["src/domain"]

[[custom_rules]]
name = "raw-sql"
pattern = "SELECT "
allowedIn = ["src/infrastructure"]
severity = "error"
""".strip(),
    )

    config = load_config(tmp_path)

    assert [rule.name for rule in config.custom_rules] == ["no-console", "raw-sql"]
    assert config.custom_rules[0].pattern == r"console\.log"
    assert config.custom_rules[0].not_allowed_in == ["src/domain"]
    assert config.custom_rules[0].severity == "warning"
    assert config.custom_rules[1].allowed_in == ["src/infrastructure"]
    assert config.custom_rules[1].severity == "error"


def test_valid_nested_layers_config_accepted(tmp_path: Path) -> None:
    _write_config(
        tmp_path,
        """
[layers]
unclassified = "deny"

[[layers.layer]]
name = "domain"
globs = ["src/domain/**"]

[[layers.layer]]
name = "application"
globs = ["src/app/**"]

[[layers.rules]]
from = "application"
to = ["domain"]

[drift]
window = "6mo"
""".strip(),
    )

    config = load_config(tmp_path)

    assert config.layers.unclassified == "deny"
    assert [layer.name for layer in config.layers.layer] == ["domain", "application"]
    assert config.layers.layer[0].globs == ["src/domain/**"]
    assert len(config.layers.rules) == 1
    assert config.layers.rules[0].from_layer == "application"
    assert config.layers.rules[0].to == ["domain"]
    assert config.drift.window == "6mo"


def test_empty_config_accepted(tmp_path: Path) -> None:
    _write_config(tmp_path, "")

    config = load_config(tmp_path)

    assert config.custom_rules == []
    assert config.layers.unclassified == "allow"
    assert config.drift.window == "3mo"
