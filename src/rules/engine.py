"""Rule engine: check a code change against decisions and custom rules.

Four independent checks run over the same change and their results are
concatenated in a fixed order: import direction, file placement, naming
convention and custom rules. None of them suppresses another.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from contract.models import Violation
from logs import get_logger
from rules.constraints import compile_rule_set
from utils import base_name, contains_dir_segment, parent_dir

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contract.models import ChangeContext, CustomRule, Decision
    from rules.constraints import (
        CompiledRuleSet,
        LayerBoundary,
        NamingRule,
        PlacementRule,
    )

logger = get_logger("rules.engine")

_ES_FROM = re.compile(r"from\s+['\"]([^'\"]+)['\"]")
_REQUIRE = re.compile(r"require\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
_BARE_IMPORT = re.compile(r"^import\s+['\"]([^'\"]+)['\"]")
_PY_FROM = re.compile(r"^from\s+(\.*[\w.]*)\s+import\b")
_PY_IMPORT = re.compile(r"^import\s+([\w.]+)\s*(?:as\s+\w+\s*)?$")

_CASING_PATTERNS: dict[str, re.Pattern[str]] = {
    "kebab-case": re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$"),
    "camelCase": re.compile(r"^[a-z][a-zA-Z0-9]*$"),
    "PascalCase": re.compile(r"^[A-Z][a-zA-Z0-9]*$"),
    "snake_case": re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$"),
}


def extract_import_path(line: str) -> str | None:
    """Pull the module specifier out of one import statement.

    Examples:
        >>> extract_import_path("import Foo from '../infrastructure/foo'")
        '../infrastructure/foo'
        >>> extract_import_path("const db = require('./db')")
        './db'
        >>> extract_import_path("from app.services import billing")
        'app.services'
        >>> extract_import_path("x = 1") is None
        True
    """
    trimmed = line.strip()
    for pattern in (_ES_FROM, _REQUIRE, _BARE_IMPORT):
        match = pattern.search(trimmed)
        if match:
            return match.group(1)
    for pattern in (_PY_FROM, _PY_IMPORT):
        match = pattern.match(trimmed)
        if match and match.group(1).strip("."):
            return match.group(1)
    return None


def _as_slash_path(import_path: str) -> str:
    """Dotted module names become slash paths; specifiers with ``/`` pass through."""
    if "/" in import_path:
        return import_path
    return import_path.replace(".", "/")


def identify_layer(
    file_path: str, boundaries: Sequence[LayerBoundary]
) -> LayerBoundary | None:
    """Return the first boundary whose pattern names a directory of ``file_path``."""
    directory = parent_dir(file_path.replace("\\", "/"))
    for boundary in boundaries:
        if any(contains_dir_segment(directory, p) for p in boundary.patterns):
            return boundary
    return None


def identify_import_layer(
    import_path: str, boundaries: Sequence[LayerBoundary]
) -> LayerBoundary | None:
    """Return the first boundary whose pattern appears as a segment of the import."""
    target = _as_slash_path(import_path)
    for boundary in boundaries:
        if any(contains_dir_segment(target, p) for p in boundary.patterns):
            return boundary
    return None


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a file glob; ``*`` stays inside one segment, ``**`` does not."""
    escaped = re.escape(pattern).replace(r"\*\*", ".*").replace(r"\*", "[^/]*")
    escaped = escaped.replace(r"\?", "[^/]")
    return re.compile(f"^{escaped}$", re.IGNORECASE)


def matches_file_pattern(file_path: str, pattern: str) -> bool:
    regex = glob_to_regex(pattern)
    return bool(regex.match(base_name(file_path)) or regex.match(file_path))


def in_any_directory(file_path: str, dirs: Iterable[str]) -> bool:
    directory = parent_dir(file_path.replace("\\", "/"))
    for candidate in dirs:
        if candidate.strip("/") in {"", "."}:
            return True
        if contains_dir_segment(directory, candidate):
            return True
    return False


def _stem(file_name: str) -> str:
    """File name without extensions; dotfiles keep their leading dot."""
    if file_name.startswith("."):
        return file_name
    return file_name.split(".", 1)[0]


def matches_naming_convention(file_path: str, convention: str) -> bool:
    """Check a file's base name against a casing style or ``suffix:<s>``.

    Unknown conventions always pass.
    """
    file_name = base_name(file_path)

    if convention.startswith("suffix:"):
        suffix = convention.removeprefix("suffix:")
        without_ext = file_name.rsplit(".", 1)[0]
        return file_name.endswith(suffix) or without_ext.endswith(suffix)

    pattern = _CASING_PATTERNS.get(convention)
    if pattern is None:
        return True
    return bool(pattern.match(_stem(file_name)))


def _file_statuses(contexts: Iterable[ChangeContext]) -> dict[str, str]:
    statuses: dict[str, str] = {}
    for ctx in contexts:
        statuses.setdefault(ctx.file_path, ctx.status)
    return statuses


class RuleEngine:
    """Checks code changes against a fixed set of decisions and custom rules.

    Decisions are compiled once at construction, and custom rule patterns are
    compiled once as well; a pattern that fails to compile disables that rule.
    """

    def __init__(
        self,
        decisions: Iterable[Decision] = (),
        custom_rules: Iterable[CustomRule] = (),
    ) -> None:
        self.rule_set: CompiledRuleSet = compile_rule_set(decisions)
        self.custom_rules: list[tuple[CustomRule, re.Pattern[str]]] = []
        for rule in custom_rules:
            try:
                compiled = re.compile(rule.pattern)
            except re.error as e:
                logger.warning(
                    "Skipping custom rule %r: invalid pattern %r (%s)",
                    rule.name,
                    rule.pattern,
                    e,
                )
                continue
            self.custom_rules.append((rule, compiled))

    def check(self, contexts: Iterable[ChangeContext]) -> list[Violation]:
        """Run every check against the change and concatenate the results."""
        contexts = list(contexts)
        statuses = _file_statuses(contexts)

        violations: list[Violation] = []
        violations.extend(self.check_imports(contexts))
        violations.extend(self.check_placement(statuses))
        violations.extend(self.check_naming(statuses))
        violations.extend(self.check_custom_rules(contexts))
        logger.debug(
            "Checked %d change contexts: %d violations", len(contexts), len(violations)
        )
        return violations

    def check_imports(self, contexts: Iterable[ChangeContext]) -> list[Violation]:
        boundaries = self.rule_set.boundaries
        if not boundaries:
            return []

        violations: list[Violation] = []
        for ctx in contexts:
            if not ctx.new_imports:
                continue
            source = identify_layer(ctx.file_path, boundaries)
            if source is None or not source.forbidden:
                continue
            for line in ctx.new_imports:
                import_path = extract_import_path(line)
                if import_path is None:
                    continue
                target = identify_import_layer(import_path, boundaries)
                if target is None or target.layer not in source.forbidden:
                    continue
                violations.append(
                    Violation(
                        rule="import-violation",
                        severity="error",
                        message=(
                            f'Layer violation: "{source.layer}" should not import '
                            f'from "{target.layer}". Found import of '
                            f'"{import_path}" in {ctx.file_path}.'
                        ),
                        file_path=ctx.file_path,
                        line_start=ctx.line_start,
                        line_end=ctx.line_end,
                        suggestion=(
                            "Move the dependency behind an interface/port in the "
                            f'"{source.layer}" layer, and implement it in the '
                            f'"{target.layer}" layer using dependency inversion.'
                        ),
                        decision=source.decision,
                    )
                )
        return violations

    def check_placement(self, statuses: dict[str, str]) -> list[Violation]:
        """Flag newly added files that match a rule but sit outside its dirs."""
        violations: list[Violation] = []
        added = [path for path, status in statuses.items() if status == "added"]
        for path in added:
            for rule in self.rule_set.placement_rules:
                if not matches_file_pattern(path, rule.file_pattern):
                    continue
                if in_any_directory(path, rule.expected_dirs):
                    continue
                violations.append(_placement_violation(path, rule))
        return violations

    def check_naming(self, statuses: dict[str, str]) -> list[Violation]:
        violations: list[Violation] = []
        for path, status in statuses.items():
            if status not in {"added", "modified"}:
                continue
            for rule in self.rule_set.naming_rules:
                if not in_any_directory(path, rule.scope_dirs):
                    continue
                if matches_naming_convention(path, rule.convention):
                    continue
                violations.append(_naming_violation(path, rule))
        return violations

    def check_custom_rules(self, contexts: Sequence[ChangeContext]) -> list[Violation]:
        """Match every added line against each custom rule's pattern.

        Directory lists are matched by substring containment on the path.
        """
        violations: list[Violation] = []
        for rule, pattern in self.custom_rules:
            for ctx in contexts:
                path = ctx.file_path.replace("\\", "/")
                for offset, line in enumerate(ctx.added_lines):
                    if not pattern.search(line):
                        continue
                    line_no = ctx.line_start + offset

                    if rule.not_allowed_in and any(d in path for d in rule.not_allowed_in):
                        tail = (
                            f"It is only allowed in: {', '.join(rule.allowed_in)}."
                            if rule.allowed_in
                            else "Remove or refactor this code."
                        )
                        violations.append(
                            Violation(
                                rule=f"custom:{rule.name}",
                                severity=rule.severity,
                                message=(
                                    f'Custom rule "{rule.name}" violated: pattern '
                                    f'"{rule.pattern}" found in "{ctx.file_path}" '
                                    "which is in a restricted directory."
                                ),
                                file_path=ctx.file_path,
                                line_start=line_no,
                                line_end=line_no,
                                suggestion=(
                                    f'The pattern "{rule.pattern}" is not allowed in '
                                    f"directories: {', '.join(rule.not_allowed_in)}. "
                                    f"{tail}"
                                ),
                            )
                        )

                    if rule.allowed_in and not any(d in path for d in rule.allowed_in):
                        violations.append(
                            Violation(
                                rule=f"custom:{rule.name}",
                                severity=rule.severity,
                                message=(
                                    f'Custom rule "{rule.name}" violated: pattern '
                                    f'"{rule.pattern}" found in "{ctx.file_path}" '
                                    "which is outside the allowed directories."
                                ),
                                file_path=ctx.file_path,
                                line_start=line_no,
                                line_end=line_no,
                                suggestion=(
                                    f'The pattern "{rule.pattern}" is only allowed in: '
                                    f"{', '.join(rule.allowed_in)}. "
                                    "Move this code to an appropriate location."
                                ),
                            )
                        )
        return violations


def _placement_violation(path: str, rule: PlacementRule) -> Violation:
    expected = ", ".join(rule.expected_dirs)
    return Violation(
        rule="file-placement",
        severity="warning",
        message=(
            f'File "{path}" matches pattern "{rule.file_pattern}" but is not '
            f"placed in an expected directory ({expected})."
        ),
        file_path=path,
        suggestion=(
            f"Consider moving this file to one of the expected directories: "
            f'{expected}. This convention was established in decision "{rule.decision}".'
        ),
        decision=rule.decision,
    )


def _naming_violation(path: str, rule: NamingRule) -> Violation:
    examples = ", ".join(rule.examples)
    suggestion = f"Rename the file to follow the {rule.convention} convention."
    if examples:
        suggestion = f"{suggestion} Examples: {examples}."
    return Violation(
        rule="naming-convention",
        severity="warning",
        message=(
            f'File "{path}" does not follow the naming convention '
            f'"{rule.convention}" expected in {", ".join(rule.scope_dirs)}.'
        ),
        file_path=path,
        suggestion=suggestion,
        decision=rule.decision,
    )


def check_rules(
    contexts: Iterable[ChangeContext],
    decisions: Iterable[Decision] = (),
    custom_rules: Iterable[CustomRule] = (),
) -> list[Violation]:
    """One-shot helper: compile the decisions and check a single change."""
    return RuleEngine(decisions, custom_rules).check(contexts)


__all__ = [
    "RuleEngine",
    "check_rules",
    "extract_import_path",
    "glob_to_regex",
    "identify_import_layer",
    "identify_layer",
    "in_any_directory",
    "matches_file_pattern",
    "matches_naming_convention",
]
