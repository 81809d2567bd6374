"""Optional project configuration used by the import resolver.

Three files are consulted, each independently optional:

- ``tsconfig.json``: path alias map and base directory.
- ``pnpm-workspace.yaml``: workspace package globs, mapped to package names
  through each package's ``package.json``.
- ``go.mod``: the declared Go module prefix.

A missing or malformed file disables only the strategy that depends on it.
"""

from __future__ import annotations

import re
from pathlib import Path

import orjson
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from logs import get_logger
from utils import normalize_path

ALIAS_CONFIG_FILENAME = "tsconfig.json"
WORKSPACE_FILENAME = "pnpm-workspace.yaml"
GO_MODULE_FILENAME = "go.mod"
PACKAGE_MANIFEST_FILENAME = "package.json"

logger = get_logger("resolve.config")

# Strings are matched first so that "//" inside a value survives.
_JSON_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_JSON_TRAILING_COMMA = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')
_GO_MODULE_DIRECTIVE = re.compile(r"^module\s+(\S+)", re.MULTILINE)


class AliasConfig(BaseModel):
    """Path alias map relative to a base directory."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "."
    paths: dict[str, tuple[str, ...]] = Field(default_factory=dict)


class WorkspacePackages(BaseModel):
    """Workspace package name -> package directory (project-relative)."""

    model_config = ConfigDict(frozen=True)

    packages: dict[str, str] = Field(default_factory=dict)


class ProjectConfig(BaseModel):
    """All optional resolution inputs for one graph build."""

    model_config = ConfigDict(frozen=True)

    alias: AliasConfig | None = None
    workspace: WorkspacePackages = Field(default_factory=WorkspacePackages)
    go_module: str | None = None


def strip_json_comments(raw: str) -> str:
    """Remove ``//`` and ``/* */`` comments and trailing commas from JSON text."""
    without_comments = _JSON_COMMENT.sub(lambda m: m.group(1) or "", raw)
    return _JSON_TRAILING_COMMA.sub(
        lambda m: m.group(1) or m.group(2), without_comments
    )


def _read_text(path: Path) -> str | None:
    try:
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None


def load_alias_config(root: Path) -> AliasConfig | None:
    """Read ``compilerOptions.baseUrl`` and ``compilerOptions.paths``.

    Returns None when the file is missing, malformed, or declares neither a
    non-default base directory nor any alias.
    """
    raw = _read_text(Path(root) / ALIAS_CONFIG_FILENAME)
    if raw is None:
        return None

    try:
        data = orjson.loads(strip_json_comments(raw))
    except orjson.JSONDecodeError as exc:
        logger.debug("Ignoring malformed %s: %s", ALIAS_CONFIG_FILENAME, exc)
        return None

    compiler_options = data.get("compilerOptions") if isinstance(data, dict) else None
    if not isinstance(compiler_options, dict):
        return None

    try:
        config = AliasConfig.model_validate(
            {
                "base_url": compiler_options.get("baseUrl") or ".",
                "paths": compiler_options.get("paths") or {},
            }
        )
    except ValidationError as exc:
        logger.debug("Ignoring invalid alias map in %s: %s", ALIAS_CONFIG_FILENAME, exc)
        return None

    if not config.paths and config.base_url == ".":
        return None
    return config


def _parse_workspace_globs(raw: str) -> list[str]:
    """Extract the ``packages:`` entries; anything else disables the strategy."""
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        logger.debug("Ignoring malformed %s: %s", WORKSPACE_FILENAME, exc)
        return []
    globs = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(globs, list) or not all(isinstance(g, str) for g in globs):
        logger.debug("No packages list in %s", WORKSPACE_FILENAME)
        return []
    return [glob.strip() for glob in globs if glob.strip()]


def _read_package_name(package_dir: Path) -> str | None:
    raw = _read_text(package_dir / PACKAGE_MANIFEST_FILENAME)
    if raw is None:
        return None
    try:
        manifest = orjson.loads(raw)
    except orjson.JSONDecodeError:
        logger.debug("Skipping malformed manifest in %s", package_dir)
        return None
    name = manifest.get("name") if isinstance(manifest, dict) else None
    return name if isinstance(name, str) and name else None


def _candidate_package_dirs(root: Path, glob: str) -> list[Path]:
    if glob.startswith("!"):
        return []
    base_pattern = glob.removesuffix("/**").removesuffix("/*").removesuffix("*")
    base_dir = root / base_pattern if base_pattern else root
    try:
        if not base_dir.is_dir():
            return []
        if base_pattern == glob:
            return [base_dir]
        return sorted(entry for entry in base_dir.iterdir() if entry.is_dir())
    except OSError as exc:
        logger.debug("Cannot list workspace directory %s: %s", base_dir, exc)
        return []


def load_workspace_packages(root: Path) -> WorkspacePackages:
    """Map workspace package names to their project-relative directories."""
    root = Path(root)
    raw = _read_text(root / WORKSPACE_FILENAME)
    if raw is None:
        return WorkspacePackages()

    packages: dict[str, str] = {}
    for glob in _parse_workspace_globs(raw):
        for package_dir in _candidate_package_dirs(root, glob):
            name = _read_package_name(package_dir)
            if name is None or name in packages:
                continue
            packages[name] = normalize_path(package_dir.relative_to(root))

    return WorkspacePackages(packages=packages)


def load_go_module(root: Path) -> str | None:
    raw = _read_text(Path(root) / GO_MODULE_FILENAME)
    if raw is None:
        return None
    match = _GO_MODULE_DIRECTIVE.search(raw)
    return match.group(1) if match else None


def load_project_config(root: Path) -> ProjectConfig:
    """Read every optional resolution input once, at graph-build start."""
    config = ProjectConfig(
        alias=load_alias_config(root),
        workspace=load_workspace_packages(root),
        go_module=load_go_module(root),
    )
    logger.debug(
        "Project config for %s: alias=%s workspace_packages=%d go_module=%s",
        root,
        config.alias is not None,
        len(config.workspace.packages),
        config.go_module,
    )
    return config


__all__ = [
    "ALIAS_CONFIG_FILENAME",
    "GO_MODULE_FILENAME",
    "WORKSPACE_FILENAME",
    "AliasConfig",
    "ProjectConfig",
    "WorkspacePackages",
    "load_alias_config",
    "load_go_module",
    "load_project_config",
    "load_workspace_packages",
    "strip_json_comments",
]
