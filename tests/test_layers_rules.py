from __future__ import annotations

from contract.models import FileRecord, LayerViolation
from graph.builder import build_dependency_graph
from rules.config import LayersConfig
from rules.layers import (
    build_allowed_deps,
    classify_layer,
    detect_layer_violations,
    infer_layers,
    is_violation,
)


def _layers_config(
    *,
    layer: list[dict[str, object]],
    rules: list[dict[str, object]],
    unclassified: str = "allow",
) -> LayersConfig:
    return LayersConfig.model_validate(
        {
            "layer": layer,
            "rules": rules,
            "unclassified": unclassified,
        }
    )


def _domain_ui_config() -> LayersConfig:
    return _layers_config(
        layer=[
            {"name": "domain", "globs": ["src/domain/**"]},
            {"name": "presentation", "globs": ["src/ui/**"]},
        ],
        rules=[
            {"from": "presentation", "to": ["domain"]},
            {"from": "domain", "to": []},
        ],
    )


def test_classify_layer_first_match_wins_with_overlapping_globs() -> None:
    config = _layers_config(
        layer=[
            {"name": "A", "globs": ["src/**"]},
            {"name": "B", "globs": ["src/domain/**"]},
        ],
        rules=[],
    )

    assert classify_layer("src/domain/order.ts", config) == "A"


def test_classify_layer_returns_none_when_no_glob_matches() -> None:
    config = _layers_config(
        layer=[{"name": "domain", "globs": ["src/domain/**"]}],
        rules=[],
    )

    assert classify_layer("scripts/seed.ts", config) is None


def test_build_allowed_deps_overwrites_duplicate_from_layer_rule_last_wins() -> None:
    config = _layers_config(
        layer=[],
        rules=[
            {"from": "application", "to": ["domain"]},
            {"from": "application", "to": ["infrastructure"]},
        ],
    )

    assert build_allowed_deps(config) == {"application": {"infrastructure"}}


def test_is_violation_unclassified_allow_no_violation_when_either_side_unclassified() -> (
    None
):
    allowed_deps = {"application": {"domain"}}

    assert is_violation(None, "application", allowed_deps, "allow") is False
    assert is_violation("application", None, allowed_deps, "allow") is False


def test_is_violation_unclassified_deny_is_asymmetric() -> None:
    allowed_deps = {"application": {"domain"}}

    assert is_violation(None, "application", allowed_deps, "deny") is False
    assert is_violation("application", None, allowed_deps, "deny") is True


def test_is_violation_missing_from_layer_rule_is_permissive() -> None:
    allowed_deps = {"application": {"domain"}}

    assert is_violation("unknown", "presentation", allowed_deps, "allow") is False


def test_is_violation_same_layer_is_always_allowed() -> None:
    assert is_violation("domain", "domain", {"domain": set()}, "allow") is False


def test_is_violation_detects_disallowed_dependency_when_rule_present() -> None:
    allowed_deps = {"application": {"domain"}}

    assert is_violation("application", "presentation", allowed_deps, "allow") is True


def test_detect_layer_violations_reports_forbidden_graph_edges() -> None:
    files = [
        FileRecord(path="src/domain/order.ts", imports=["../ui/view"]),
        FileRecord(path="src/ui/view.ts", imports=["../domain/order"]),
        FileRecord(path="scripts/seed.ts", imports=["../src/domain/order"]),
    ]
    graph = build_dependency_graph(files)

    violations = detect_layer_violations(graph, _domain_ui_config(), files)

    assert violations == [
        LayerViolation(
            source_file="src/domain/order.ts",
            target_file="src/ui/view.ts",
            source_layer="domain",
            target_layer="presentation",
            import_statement="../ui/view",
            message=(
                "Layer violation: domain -> presentation. The \"domain\" layer is "
                "only allowed to depend on: nothing (it should have no dependencies)."
            ),
        )
    ]


def test_detect_layer_violations_reports_each_file_pair_once() -> None:
    files = [
        FileRecord(path="src/domain/order.ts", imports=["../ui/view", "../ui/view.ts"]),
        FileRecord(path="src/ui/view.ts"),
    ]
    graph = build_dependency_graph(files)

    violations = detect_layer_violations(graph, _domain_ui_config(), files)

    assert len(graph.edges) == 2
    assert [(v.source_file, v.target_file) for v in violations] == [
        ("src/domain/order.ts", "src/ui/view.ts")
    ]


def test_detect_layer_violations_guard_returns_empty_without_layers_or_rules() -> None:
    graph = build_dependency_graph(
        [
            FileRecord(path="src/domain/order.ts", imports=["../ui/view"]),
            FileRecord(path="src/ui/view.ts"),
        ]
    )
    config_no_rules = _layers_config(
        layer=[{"name": "domain", "globs": ["src/domain/**"]}],
        rules=[],
    )

    assert detect_layer_violations(graph, LayersConfig()) == []
    assert detect_layer_violations(graph, config_no_rules) == []


def test_infer_layers_from_directory_names() -> None:
    config = infer_layers(
        [
            "src/ui/view.ts",
            "src/domain/order.ts",
            "src/db/client.ts",
            "README.md",
        ]
    )

    assert [(d.name, d.globs) for d in config.layer] == [
        ("presentation", ["src/ui/**"]),
        ("domain", ["src/domain/**"]),
        ("infrastructure", ["src/db/**"]),
    ]
    assert build_allowed_deps(config) == {
        "presentation": {"application", "domain"},
        "domain": set(),
        "infrastructure": {"domain", "application"},
    }
