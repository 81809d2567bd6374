"""Import resolution: raw import string -> known project file.

Strategies run in a fixed order. Language-specific conventions (Python
leading dots, Go module paths) come first because their strings are
ambiguous with generic relative paths.
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from resolve.config import ProjectConfig
from utils import join_path, normalize_path, parent_dir

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from contract.models import EdgeKind, FileRecord
    from resolve.config import AliasConfig

PROBE_SUFFIXES: tuple[str, ...] = (
    "",
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".py",
    ".go",
    "/index.ts",
    "/index.tsx",
    "/index.js",
    "/index.jsx",
)

STYLE_SUFFIXES: tuple[str, ...] = (".css", ".scss", ".sass", ".less")
DATA_SUFFIXES: tuple[str, ...] = (".json",)

LEGACY_ALIAS_PREFIX = "@/"
LEGACY_ALIAS_ROOT = "src/"

_PYTHON_RELATIVE = re.compile(r"^(\.+)(.*)$")


@dataclass(frozen=True)
class ResolutionContext:
    """Everything the resolver may consult, supplied explicitly.

    ``languages`` maps every known file path to its language tag (or None);
    its iteration order is the order of the input file records.
    """

    languages: Mapping[str, str | None]
    config: ProjectConfig = field(default_factory=ProjectConfig)

    @classmethod
    def from_records(
        cls,
        files: Iterable[FileRecord],
        config: ProjectConfig | None = None,
    ) -> ResolutionContext:
        languages: dict[str, str | None] = {}
        for record in files:
            languages.setdefault(record.path, record.language)
        return cls(languages=languages, config=config or ProjectConfig())

    def __contains__(self, path: object) -> bool:
        return path in self.languages


def detect_import_kind(raw_import: str) -> EdgeKind:
    """Classify an import by its suffix.

    Examples:
        >>> detect_import_kind("./theme.scss")
        'style'
        >>> detect_import_kind("../data/seed.json")
        'data'
        >>> detect_import_kind("./util")
        'module'
    """
    lowered = raw_import.lower()
    if lowered.endswith(STYLE_SUFFIXES):
        return "style"
    if lowered.endswith(DATA_SUFFIXES):
        return "data"
    return "module"


def probe_known_file(candidate: str, context: ResolutionContext) -> str | None:
    """Try ``candidate`` with each probe suffix and return the first known file."""
    base = normalize_path(candidate)
    if not base:
        return None
    for suffix in PROBE_SUFFIXES:
        path = base + suffix
        if path in context:
            return path
    return None


def resolve_python_relative(
    source: str, raw_import: str, context: ResolutionContext
) -> str | None:
    """Resolve ``from . import x`` style imports.

    One dot is the source file's own package; each extra dot walks up one
    parent directory. ``.`` alone resolves to that package's ``__init__.py``.

    Examples (with ``pkg/sub/__init__.py`` and ``pkg/util.py`` known):
        ``.`` from ``pkg/sub/mod.py`` -> ``pkg/sub/__init__.py``
        ``..util`` from ``pkg/sub/mod.py`` -> ``pkg/util.py``
    """
    match = _PYTHON_RELATIVE.match(raw_import)
    if match is None:
        return None

    dots, remainder = match.group(1), match.group(2).strip()
    directory = parent_dir(source)
    for _ in range(len(dots) - 1):
        directory = parent_dir(directory)

    if not remainder:
        init_path = join_path(directory, "__init__.py")
        return init_path if init_path in context else None

    module_path = remainder.split()[0].replace(".", "/")
    for candidate in (
        join_path(directory, module_path + ".py"),
        join_path(directory, module_path, "__init__.py"),
    ):
        if candidate in context:
            return candidate
    return None


def resolve_go_import(raw_import: str, context: ResolutionContext) -> str | None:
    """Resolve a Go package path to the first known file in that package.

    With a declared module prefix only imports under that prefix are local.
    Without one, successively shorter suffixes of the import path are
    compared against known file directories.
    """
    module = context.config.go_module
    if module is not None:
        if not raw_import.startswith(module + "/"):
            return None
        package_dir = normalize_path(raw_import[len(module) + 1 :])
        for path in context.languages:
            if parent_dir(path) == package_dir:
                return path
        return None

    segments = [segment for segment in raw_import.split("/") if segment]
    for start in range(len(segments)):
        suffix = "/".join(segments[start:])
        for path in context.languages:
            directory = parent_dir(path)
            if directory == suffix or directory.endswith("/" + suffix):
                return path
    return None


def resolve_relative(
    source: str, raw_import: str, context: ResolutionContext
) -> str | None:
    """Resolve ``./x``, ``../x`` and ``/x`` against the source file's directory."""
    candidate = posixpath.join(parent_dir(source), raw_import.lstrip("/"))
    return probe_known_file(candidate, context)


def _strip_wildcard(target: str) -> str:
    if target.endswith("/*"):
        return target[:-1]
    return target.removesuffix("*")


def resolve_alias(
    raw_import: str, alias: AliasConfig, context: ResolutionContext
) -> str | None:
    """Resolve through the alias map, then directly under a non-default base."""
    for pattern, targets in alias.paths.items():
        if pattern.endswith("*"):
            prefix = pattern[:-1]
            if not raw_import.startswith(prefix):
                continue
            remainder = raw_import[len(prefix) :]
            for target in targets:
                candidate = posixpath.join(
                    alias.base_url, _strip_wildcard(target), remainder
                )
                match = probe_known_file(candidate, context)
                if match:
                    return match
        elif raw_import == pattern:
            for target in targets:
                match = probe_known_file(
                    posixpath.join(alias.base_url, target), context
                )
                if match:
                    return match

    if normalize_path(alias.base_url):
        return probe_known_file(posixpath.join(alias.base_url, raw_import), context)
    return None


def resolve_workspace_package(
    raw_import: str, packages: Mapping[str, str], context: ResolutionContext
) -> str | None:
    """Resolve ``@scope/pkg`` or ``@scope/pkg/sub`` to a workspace package file."""
    for name, package_dir in packages.items():
        if raw_import == name:
            subpath = ""
        elif raw_import.startswith(name + "/"):
            subpath = raw_import[len(name) + 1 :]
        else:
            continue

        for base in (join_path(package_dir, "src"), package_dir):
            target = join_path(base, subpath) if subpath else base
            match = probe_known_file(target, context)
            if match:
                return match
            if not subpath:
                match = probe_known_file(join_path(base, "index"), context)
                if match:
                    return match
    return None


def resolve_import(
    source: str, raw_import: str, context: ResolutionContext
) -> str | None:
    """Resolve one raw import of ``source`` to a known project file.

    Args:
        source: Project-relative path of the importing file
        raw_import: Import string as written in the source
        context: Known files and optional project configuration

    Returns:
        The resolved project-relative path, or None for external imports.
    """
    raw_import = raw_import.strip()
    if not raw_import:
        return None
    language = context.languages.get(source)

    if language == "python" and raw_import.startswith("."):
        return resolve_python_relative(source, raw_import, context)

    if language == "go" and "/" in raw_import and not raw_import.startswith("."):
        return resolve_go_import(raw_import, context)

    if raw_import.startswith((".", "/")):
        return resolve_relative(source, raw_import, context)

    alias = context.config.alias
    if alias is not None:
        match = resolve_alias(raw_import, alias, context)
        if match:
            return match

    packages = context.config.workspace.packages
    if packages:
        match = resolve_workspace_package(raw_import, packages, context)
        if match:
            return match

    if alias is None and raw_import.startswith(LEGACY_ALIAS_PREFIX):
        return probe_known_file(
            LEGACY_ALIAS_ROOT + raw_import[len(LEGACY_ALIAS_PREFIX) :], context
        )

    return None


__all__ = [
    "PROBE_SUFFIXES",
    "ResolutionContext",
    "detect_import_kind",
    "probe_known_file",
    "resolve_alias",
    "resolve_go_import",
    "resolve_import",
    "resolve_python_relative",
    "resolve_relative",
    "resolve_workspace_package",
]
