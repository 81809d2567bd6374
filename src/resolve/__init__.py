"""Import resolution: project configuration loaders and resolver strategies."""

from resolve.config import ProjectConfig, load_project_config
from resolve.imports import ResolutionContext, detect_import_kind, resolve_import

__all__ = [
    "ProjectConfig",
    "ResolutionContext",
    "detect_import_kind",
    "load_project_config",
    "resolve_import",
]
