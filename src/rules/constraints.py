"""Compile documented decisions into deterministic rule sets.

Constraint sentences are free text, so every rule here comes from pattern
matching. Compilation happens once per run; the engine then checks diffs
against the compiled structures only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from logs import get_logger
from utils import contains_dir_segment, parent_dir

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contract.models import Decision

logger = get_logger("rules.constraints")

WELL_KNOWN_LAYERS: dict[str, tuple[str, ...]] = {
    "domain": ("domain", "entities", "models", "core/domain", "core/entities"),
    "application": ("application", "use-cases", "usecases", "services", "app"),
    "infrastructure": (
        "infrastructure",
        "infra",
        "adapters",
        "persistence",
        "repositories/impl",
    ),
    "presentation": (
        "presentation",
        "controllers",
        "routes",
        "handlers",
        "api",
        "web",
        "ui",
    ),
    "shared": ("shared", "common", "utils", "lib", "helpers"),
}

DEFAULT_LAYER_RESTRICTIONS: dict[str, tuple[str, ...]] = {
    "domain": ("infrastructure", "presentation", "application"),
    "application": ("infrastructure", "presentation"),
    "infrastructure": ("presentation",),
    "presentation": (),
    "shared": (),
}

LAYERED_ARCHITECTURE_TAGS = frozenset(
    {"layered", "hexagonal", "clean-architecture", "onion", "ddd"}
)
_LAYERED_ARCHITECTURE_WORDS = ("layered", "hexagonal", "clean architecture", "onion")

NAMING_EXAMPLES: dict[str, tuple[str, ...]] = {
    "kebab-case": ("user-service.ts", "auth-controller.ts", "data-mapper.ts"),
    "camelCase": ("userService.ts", "authController.ts", "dataMapper.ts"),
    "PascalCase": ("UserService.ts", "AuthController.ts", "DataMapper.ts"),
    "snake_case": ("user_service.ts", "auth_controller.ts", "data_mapper.ts"),
}

_CONVENTION_ALIASES: dict[str, str] = {
    "kebabcase": "kebab-case",
    "camelcase": "camelCase",
    "pascalcase": "PascalCase",
    "snakecase": "snake_case",
}

_Q = r"['\"`]?"
_TOKEN = r"([^\s'\"`,]+)"

_LAYER_CONSTRAINT = re.compile(
    r"(\w+)(?:\s+(?:layer|module)s?)?\s+"
    r"(?:must\s+not|should\s+not|must\s+never|should\s+never|cannot|can\s*not|may\s+not)\s+"
    r"(?:import|depend\s+on|reference)\s+(?:from\s+)?(?:the\s+)?(?:any\s+)?(\w+)",
    re.IGNORECASE,
)
_PLACEMENT_EXPLICIT = re.compile(
    rf"(?:files?\s+matching|files?\s+like|pattern)\s+{_Q}{_TOKEN}{_Q}\s+"
    rf"(?:should\s+be\s+in|must\s+be\s+in|belongs?\s+in|go(?:es)?\s+in)\s+{_Q}{_TOKEN}{_Q}",
    re.IGNORECASE,
)
_PLACEMENT_DIRECTORY = re.compile(
    rf"(?:place|put|keep)\s+(?:all\s+)?(\w+)\s+(?:files?\s+)?(?:in|under|within)\s+{_Q}{_TOKEN}{_Q}",
    re.IGNORECASE,
)
_FILE_TYPE_CONSTRAINT = re.compile(
    r"(\w+)\s+(?:files?|modules?|components?)\s+(?:must|should)", re.IGNORECASE
)
_NAMING_CONSTRAINT = re.compile(
    r"(?:use|follow|apply)\s+(\w[\w-]*(?:\s+\w[\w-]*)?)\s+(?:naming|convention|casing)",
    re.IGNORECASE,
)
_CASING_MENTION = re.compile(r"\b(kebab|camel|pascal|snake)[\s_-]?case\b", re.IGNORECASE)
_SUFFIX_CONSTRAINT = re.compile(
    rf"(?:files?|modules?|components?)\s+(?:in|under)\s+{_Q}{_TOKEN}{_Q}\s+"
    rf"(?:must|should)\s+(?:end|be\s+suffixed)\s+(?:with|in|by)\s+{_Q}{_TOKEN}{_Q}",
    re.IGNORECASE,
)

# Words that read like a file type in "X files must ..." but are quantifiers.
_NON_TYPE_WORDS = frozenset({"all", "any", "new", "the", "these", "those", "other"})


@dataclass(frozen=True)
class LayerBoundary:
    """A named layer, its directory patterns and the layers it may not import."""

    layer: str
    patterns: tuple[str, ...]
    forbidden: tuple[str, ...] = ()
    decision: str | None = None


@dataclass(frozen=True)
class PlacementRule:
    file_pattern: str
    expected_dirs: tuple[str, ...]
    decision: str


@dataclass(frozen=True)
class NamingRule:
    """``convention`` is a casing style name or ``suffix:<text>``."""

    convention: str
    scope_dirs: tuple[str, ...]
    examples: tuple[str, ...]
    decision: str


@dataclass(frozen=True)
class CompiledRuleSet:
    boundaries: tuple[LayerBoundary, ...] = ()
    placement_rules: tuple[PlacementRule, ...] = ()
    naming_rules: tuple[NamingRule, ...] = ()


def _active(decisions: Iterable[Decision]) -> list[Decision]:
    return [d for d in decisions if d.status != "deprecated"]


def _clean_token(token: str) -> str:
    return token.rstrip(".,;:").rstrip("/")


def _patterns_for(layer: str) -> tuple[str, ...]:
    return WELL_KNOWN_LAYERS.get(layer, (layer,))


class _BoundaryBuilder:
    """Accumulates forbidden edges while keeping first-seen layer order."""

    def __init__(self) -> None:
        self.forbidden: dict[str, list[str]] = {}
        self.decisions: dict[str, str | None] = {}

    def forbid(self, source: str, target: str, decision: str | None) -> None:
        targets = self.forbidden.setdefault(source, [])
        if target not in targets:
            targets.append(target)
        if self.decisions.get(source) is None:
            self.decisions[source] = decision
        self.forbidden.setdefault(target, [])
        self.decisions.setdefault(target, None)

    def build(self) -> tuple[LayerBoundary, ...]:
        return tuple(
            LayerBoundary(
                layer=layer,
                patterns=_patterns_for(layer),
                forbidden=tuple(targets),
                decision=self.decisions.get(layer),
            )
            for layer, targets in self.forbidden.items()
        )


def is_layered_architecture(decision: Decision) -> bool:
    """Return True when a decision names a layered style of architecture."""
    text = f"{decision.title} {decision.description}".lower()
    if any(word in text for word in _LAYERED_ARCHITECTURE_WORDS):
        return True
    return any(tag.lower() in LAYERED_ARCHITECTURE_TAGS for tag in decision.tags)


def _layers_in_evidence(decisions: Sequence[Decision]) -> set[str]:
    found: set[str] = set()
    for decision in decisions:
        for evidence in decision.evidence:
            directory = parent_dir(evidence.file_path.replace("\\", "/"))
            for layer, patterns in WELL_KNOWN_LAYERS.items():
                if any(contains_dir_segment(directory, p) for p in patterns):
                    found.add(layer)
    return found


def infer_layer_boundaries(decisions: Iterable[Decision]) -> tuple[LayerBoundary, ...]:
    """Infer layer boundaries from decisions.

    In priority order: explicit "<layer> must not import <layer>" sentences;
    the full default table for decisions describing a layered architecture;
    the default table restricted to layers that co-occur in evidence paths.
    """
    active = _active(decisions)
    builder = _BoundaryBuilder()

    for decision in active:
        for constraint in decision.constraints:
            for match in _LAYER_CONSTRAINT.finditer(constraint):
                source, target = match.group(1).lower(), match.group(2).lower()
                if source != target:
                    builder.forbid(source, target, decision.title)
    if builder.forbidden:
        return builder.build()

    for decision in active:
        if is_layered_architecture(decision):
            for layer, restrictions in DEFAULT_LAYER_RESTRICTIONS.items():
                for target in restrictions:
                    builder.forbid(layer, target, decision.title)
    if builder.forbidden:
        return builder.build()

    found = _layers_in_evidence(active)
    for layer, restrictions in DEFAULT_LAYER_RESTRICTIONS.items():
        if layer not in found:
            continue
        for target in restrictions:
            if target in found:
                builder.forbid(layer, target, None)
    return builder.build()


def _evidence_dirs(decision: Decision) -> tuple[str, ...]:
    dirs: dict[str, None] = {}
    for evidence in decision.evidence:
        directory = parent_dir(evidence.file_path.replace("\\", "/"))
        if directory:
            dirs[directory] = None
    return tuple(dirs)


def build_placement_rules(decisions: Iterable[Decision]) -> tuple[PlacementRule, ...]:
    """Derive "file pattern -> expected directories" rules."""
    rules: list[PlacementRule] = []

    for decision in _active(decisions):
        for constraint in decision.constraints:
            explicit = _PLACEMENT_EXPLICIT.search(constraint)
            if explicit:
                rules.append(
                    PlacementRule(
                        file_pattern=_clean_token(explicit.group(1)),
                        expected_dirs=(_clean_token(explicit.group(2)),),
                        decision=decision.title,
                    )
                )
                continue

            directory = _PLACEMENT_DIRECTORY.search(constraint)
            if directory:
                rules.append(
                    PlacementRule(
                        file_pattern=f"*.{directory.group(1).lower()}.*",
                        expected_dirs=(_clean_token(directory.group(2)),),
                        decision=decision.title,
                    )
                )

        evidence_dirs = _evidence_dirs(decision)
        if not evidence_dirs:
            continue
        for constraint in decision.constraints:
            type_match = _FILE_TYPE_CONSTRAINT.search(constraint)
            if type_match is None:
                continue
            file_type = type_match.group(1).lower()
            if file_type in _NON_TYPE_WORDS:
                continue
            rules.append(
                PlacementRule(
                    file_pattern=f"*{file_type}*",
                    expected_dirs=evidence_dirs,
                    decision=decision.title,
                )
            )

    return tuple(rules)


def normalize_convention(raw: str) -> str:
    """Map spelling variants of a casing style to one canonical name.

    Unknown conventions are returned lower-cased and unchanged otherwise.
    """
    key = re.sub(r"[\s_-]", "", raw).lower()
    return _CONVENTION_ALIASES.get(key, raw.strip().lower())


def _naming_scope(decision: Decision) -> tuple[str, ...]:
    if not decision.evidence:
        return ("src",)
    scopes: dict[str, None] = {}
    for evidence in decision.evidence:
        parts = evidence.file_path.replace("\\", "/").split("/")
        scopes[parts[0] if len(parts) > 1 else "."] = None
    return tuple(scopes)


def extract_naming_rules(decisions: Iterable[Decision]) -> tuple[NamingRule, ...]:
    """Derive casing and suffix naming rules from constraint sentences."""
    rules: list[NamingRule] = []

    for decision in _active(decisions):
        for constraint in decision.constraints:
            convention: str | None = None
            naming = _NAMING_CONSTRAINT.search(constraint)
            casing = _CASING_MENTION.search(constraint)
            if naming:
                convention = normalize_convention(naming.group(1))
                if convention not in NAMING_EXAMPLES and casing:
                    convention = normalize_convention(casing.group(0))
            elif casing and re.search(r"\b(?:file|name|naming)", constraint, re.I):
                convention = normalize_convention(casing.group(0))

            if convention is not None:
                rules.append(
                    NamingRule(
                        convention=convention,
                        scope_dirs=_naming_scope(decision),
                        examples=NAMING_EXAMPLES.get(convention, ()),
                        decision=decision.title,
                    )
                )

            suffix = _SUFFIX_CONSTRAINT.search(constraint)
            if suffix:
                required = _clean_token(suffix.group(2))
                rules.append(
                    NamingRule(
                        convention=f"suffix:{required}",
                        scope_dirs=(_clean_token(suffix.group(1)),),
                        examples=(f"example{required}",),
                        decision=decision.title,
                    )
                )

    return tuple(rules)


def compile_rule_set(decisions: Iterable[Decision]) -> CompiledRuleSet:
    """Parse every decision once into the structures the rule engine checks."""
    decisions = list(decisions)
    rule_set = CompiledRuleSet(
        boundaries=infer_layer_boundaries(decisions),
        placement_rules=build_placement_rules(decisions),
        naming_rules=extract_naming_rules(decisions),
    )
    logger.debug(
        "Compiled %d decisions: %d layer boundaries, %d placement rules, "
        "%d naming rules",
        len(decisions),
        len(rule_set.boundaries),
        len(rule_set.placement_rules),
        len(rule_set.naming_rules),
    )
    return rule_set


__all__ = [
    "DEFAULT_LAYER_RESTRICTIONS",
    "WELL_KNOWN_LAYERS",
    "CompiledRuleSet",
    "LayerBoundary",
    "NamingRule",
    "PlacementRule",
    "build_placement_rules",
    "compile_rule_set",
    "extract_naming_rules",
    "infer_layer_boundaries",
    "is_layered_architecture",
    "normalize_convention",
]
