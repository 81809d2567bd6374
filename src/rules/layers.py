"""Layer classification and violation detection over the dependency graph."""

from __future__ import annotations

from fnmatch import fnmatch
from typing import TYPE_CHECKING

from contract.models import LayerViolation
from rules.config import LayerDef, LayerRule, LayersConfig

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contract.models import DependencyGraph, FileRecord
    from rules.config import UnclassifiedBehavior

# Keyword -> layer, used when no layer config is supplied.
INFERRED_LAYER_KEYWORDS: dict[str, tuple[str, ...]] = {
    "presentation": (
        "ui",
        "views",
        "pages",
        "components",
        "presentation",
        "frontend",
        "web",
    ),
    "application": (
        "application",
        "services",
        "use-cases",
        "usecases",
        "handlers",
        "controllers",
    ),
    "domain": ("domain", "entities", "models", "core", "business"),
    "infrastructure": (
        "infrastructure",
        "repositories",
        "adapters",
        "db",
        "database",
        "external",
        "clients",
    ),
}

DEFAULT_ALLOWED_DEPS: dict[str, tuple[str, ...]] = {
    "presentation": ("application", "domain"),
    "application": ("domain",),
    "domain": (),
    "infrastructure": ("domain", "application"),
}

_MAX_INFERRED_DIR_DEPTH = 3


def classify_layer(path: str, layers_config: LayersConfig) -> str | None:
    """Classify a file path into an architectural layer.

    Uses first-match-wins semantics: the first layer definition whose
    glob patterns match the path determines the layer.
    """
    for layer_def in layers_config.layer:
        for glob_pattern in layer_def.globs:
            if fnmatch(path, glob_pattern):
                return layer_def.name
    return None


def build_allowed_deps(layers_config: LayersConfig) -> dict[str, set[str]]:
    """Build a mapping of layer -> set of allowed dependency layers."""
    allowed: dict[str, set[str]] = {}
    for rule in layers_config.rules:
        allowed[rule.from_layer] = set(rule.to)
    return allowed


def is_violation(
    from_layer: str | None,
    to_layer: str | None,
    allowed_deps: dict[str, set[str]],
    unclassified: UnclassifiedBehavior,
) -> bool:
    """Check if a dependency from one layer to another is a violation."""
    if from_layer is None or to_layer is None:
        if unclassified in {"allow", "ignore"}:
            return False
        return from_layer is not None

    if from_layer == to_layer:
        return False

    if from_layer not in allowed_deps:
        return False

    return to_layer not in allowed_deps[from_layer]


def infer_layers(paths: Iterable[str]) -> LayersConfig:
    """Infer layer definitions from conventional directory names.

    Directories up to three levels deep are matched by keyword; each layer
    that matches at least one directory gets ``<dir>/**`` globs and the
    default allowed dependencies.
    """
    dirs: list[str] = []
    for path in paths:
        parts = path.split("/")
        for depth in range(min(len(parts) - 1, _MAX_INFERRED_DIR_DEPTH)):
            directory = "/".join(parts[: depth + 1])
            if directory not in dirs:
                dirs.append(directory)

    layer_defs: list[LayerDef] = []
    layer_rules: list[LayerRule] = []
    for layer_name, keywords in INFERRED_LAYER_KEYWORDS.items():
        matching = [
            d for d in dirs if any(keyword in d.lower() for keyword in keywords)
        ]
        if not matching:
            continue
        layer_defs.append(
            LayerDef(name=layer_name, globs=[f"{d}/**" for d in matching])
        )
        layer_rules.append(
            LayerRule(from_layer=layer_name, to=list(DEFAULT_ALLOWED_DEPS[layer_name]))
        )

    return LayersConfig(layer=layer_defs, rules=layer_rules)


def _violation_message(
    from_layer: str, to_layer: str, allowed: set[str] | None
) -> str:
    allowed_text = (
        ", ".join(sorted(allowed))
        if allowed
        else "nothing (it should have no dependencies)"
    )
    return (
        f"Layer violation: {from_layer} -> {to_layer}. "
        f'The "{from_layer}" layer is only allowed to depend on: {allowed_text}.'
    )


def detect_layer_violations(
    graph: DependencyGraph,
    layers_config: LayersConfig,
    files: Iterable[FileRecord] = (),
) -> list[LayerViolation]:
    """Check every resolved import against the configured layer rules.

    Imports with an unclassified endpoint and imports inside one layer are
    never reported. Each file pair is reported once.
    """
    if not layers_config.layer or not layers_config.rules:
        return []

    allowed_deps = build_allowed_deps(layers_config)
    raw_imports = {record.path: record.imports for record in files}
    layer_cache: dict[str, str | None] = {}

    def layer_of(path: str) -> str | None:
        if path not in layer_cache:
            layer_cache[path] = classify_layer(path, layers_config)
        return layer_cache[path]

    violations: list[LayerViolation] = []
    for source, target in (
        (node.path, target) for node in graph.nodes.values() for target in node.imports
    ):
        from_layer = layer_of(source)
        to_layer = layer_of(target)
        if from_layer is None or to_layer is None:
            continue
        if not is_violation(
            from_layer, to_layer, allowed_deps, layers_config.unclassified
        ):
            continue
        violations.append(
            LayerViolation(
                source_file=source,
                target_file=target,
                source_layer=from_layer,
                target_layer=to_layer,
                import_statement=_find_import_statement(
                    raw_imports.get(source, []), target
                ),
                message=_violation_message(
                    from_layer, to_layer, allowed_deps.get(from_layer)
                ),
            )
        )
    return violations


def _find_import_statement(imports: list[str], target: str) -> str:
    """Best-effort match of a raw import string to its resolved target."""
    target_stem = target.rsplit(".", 1)[0]
    for raw in imports:
        tail = raw.lstrip("./@").split("/")[-1]
        if tail and target_stem.endswith(tail):
            return raw
    return target


__all__ = [
    "DEFAULT_ALLOWED_DEPS",
    "INFERRED_LAYER_KEYWORDS",
    "build_allowed_deps",
    "classify_layer",
    "detect_layer_violations",
    "infer_layers",
    "is_violation",
]
