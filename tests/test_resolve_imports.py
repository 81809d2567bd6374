from __future__ import annotations

import pytest

from contract.models import FileRecord
from resolve.config import AliasConfig, ProjectConfig, WorkspacePackages
from resolve.imports import ResolutionContext, detect_import_kind, resolve_import


def _context(*paths: str, config: ProjectConfig | None = None) -> ResolutionContext:
    return ResolutionContext.from_records(
        [FileRecord(path=path) for path in paths], config
    )


def test_relative_import_prefers_extension_probe_over_index() -> None:
    context = _context("src/util.ts", "src/util/index.ts")

    assert resolve_import("src/a.ts", "./util", context) == "src/util.ts"


def test_relative_import_falls_back_to_index_file() -> None:
    context = _context("src/util/index.ts")

    assert resolve_import("src/a.ts", "./util", context) == "src/util/index.ts"


def test_relative_import_walks_up_parent_directories() -> None:
    context = _context("src/domain/order.ts", "src/infra/db.ts")

    assert (
        resolve_import("src/infra/db.ts", "../domain/order", context)
        == "src/domain/order.ts"
    )


def test_relative_import_with_explicit_extension_resolves_exactly() -> None:
    context = _context("src/theme.scss")

    assert resolve_import("src/app.tsx", "./theme.scss", context) == "src/theme.scss"


def test_leading_slash_import_is_joined_to_source_directory() -> None:
    context = _context("src/lib/math.ts")

    assert resolve_import("src/main.ts", "/lib/math", context) == "src/lib/math.ts"


def test_unknown_relative_target_is_external() -> None:
    context = _context("src/a.ts")

    assert resolve_import("src/a.ts", "./missing", context) is None


def test_wildcard_alias_resolves_under_base_directory() -> None:
    config = ProjectConfig(alias=AliasConfig(paths={"@app/*": ("src/app/*",)}))
    context = _context("src/app/core.ts", config=config)

    assert resolve_import("src/main.ts", "@app/core", context) == "src/app/core.ts"


def test_exact_alias_resolves_to_its_target() -> None:
    config = ProjectConfig(
        alias=AliasConfig(paths={"@config": ("src/config/index.ts",)})
    )
    context = _context("src/config/index.ts", config=config)

    assert resolve_import("src/main.ts", "@config", context) == "src/config/index.ts"


def test_non_default_base_directory_resolves_bare_imports() -> None:
    config = ProjectConfig(alias=AliasConfig(base_url="src"))
    context = _context("src/lib/math.ts", config=config)

    assert resolve_import("src/main.ts", "lib/math", context) == "src/lib/math.ts"


def test_python_relative_imports_walk_packages() -> None:
    context = _context(
        "pkg/__init__.py",
        "pkg/util.py",
        "pkg/sub/__init__.py",
        "pkg/sub/mod.py",
        "pkg/sub/helpers/__init__.py",
    )

    assert resolve_import("pkg/sub/mod.py", "..util", context) == "pkg/util.py"
    assert resolve_import("pkg/sub/mod.py", ".", context) == "pkg/sub/__init__.py"
    assert (
        resolve_import("pkg/sub/mod.py", ".helpers", context)
        == "pkg/sub/helpers/__init__.py"
    )
    assert resolve_import("pkg/sub/mod.py", ".missing", context) is None


def test_go_import_with_declared_module_prefix() -> None:
    config = ProjectConfig(go_module="example.com/shop")
    context = _context(
        "cmd/main.go",
        "internal/orders/order.go",
        "internal/orders/repo.go",
        config=config,
    )

    assert (
        resolve_import("cmd/main.go", "example.com/shop/internal/orders", context)
        == "internal/orders/order.go"
    )
    assert resolve_import("cmd/main.go", "github.com/acme/orders", context) is None


def test_go_import_without_module_matches_directory_suffix() -> None:
    context = _context("cmd/main.go", "internal/orders/order.go")

    assert (
        resolve_import("cmd/main.go", "github.com/acme/shop/internal/orders", context)
        == "internal/orders/order.go"
    )


def test_go_standard_library_import_is_external() -> None:
    context = _context("cmd/main.go", "internal/fmt/fmt.go")

    assert resolve_import("cmd/main.go", "fmt", context) is None


def test_workspace_package_resolves_src_entry_and_subpath() -> None:
    config = ProjectConfig(
        workspace=WorkspacePackages(packages={"@acme/shared": "packages/shared"})
    )
    context = _context(
        "packages/shared/src/index.ts",
        "packages/shared/src/format.ts",
        config=config,
    )

    assert (
        resolve_import("apps/web/main.ts", "@acme/shared", context)
        == "packages/shared/src/index.ts"
    )
    assert (
        resolve_import("apps/web/main.ts", "@acme/shared/format", context)
        == "packages/shared/src/format.ts"
    )


def test_legacy_at_slash_prefix_maps_to_src_without_alias_config() -> None:
    context = _context("src/lib/api.ts")

    assert resolve_import("src/pages/home.ts", "@/lib/api", context) == "src/lib/api.ts"


def test_legacy_at_slash_prefix_is_disabled_when_alias_config_exists() -> None:
    config = ProjectConfig(alias=AliasConfig(paths={"~/*": ("src/*",)}))
    context = _context("src/lib/api.ts", config=config)

    assert resolve_import("src/pages/home.ts", "@/lib/api", context) is None


def test_package_imports_are_external() -> None:
    context = _context("src/a.ts")

    assert resolve_import("src/a.ts", "react", context) is None
    assert resolve_import("src/a.ts", "   ", context) is None


@pytest.mark.parametrize(
    ("raw", "kind"),
    [
        ("./theme.css", "style"),
        ("./theme.SCSS", "style"),
        ("../data/seed.json", "data"),
        ("./util", "module"),
    ],
)
def test_detect_import_kind(raw: str, kind: str) -> None:
    assert detect_import_kind(raw) == kind
