"""Architecture rules: engine config, layer checks and decision-driven rules."""

from rules.config import (
    ConfigError,
    EngineConfig,
    LayersConfig,
    load_config,
)
from rules.constraints import CompiledRuleSet, compile_rule_set
from rules.diff import parse_unified_diff
from rules.engine import RuleEngine, check_rules, extract_import_path
from rules.layers import (
    build_allowed_deps,
    classify_layer,
    detect_layer_violations,
    infer_layers,
    is_violation,
)

__all__ = [
    "CompiledRuleSet",
    "ConfigError",
    "EngineConfig",
    "LayersConfig",
    "RuleEngine",
    "build_allowed_deps",
    "check_rules",
    "classify_layer",
    "compile_rule_set",
    "detect_layer_violations",
    "extract_import_path",
    "infer_layers",
    "is_violation",
    "load_config",
    "parse_unified_diff",
]
