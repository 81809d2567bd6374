from __future__ import annotations

from rules.diff import changed_files, is_import_statement, parse_unified_diff

_DIFF = """\
diff --git a/src/domain/order.ts b/src/domain/order.ts
index 3b18e51..a9c2f10 100644
--- a/src/domain/order.ts
+++ b/src/domain/order.ts
@@ -1,3 +1,4 @@
 import { Money } from './money';
+import { Db } from '../infrastructure/db';

-export const x = 1;
+export const x = 2;
@@ -20,2 +21,3 @@ export class Order {
   total() {
+    // ++ counter
     return 0;
diff --git a/src/services/billing.ts b/src/services/billing.ts
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/src/services/billing.ts
@@ -0,0 +1,2 @@
+const db = require('../infrastructure/db');
+export const bill = () => db;
diff --git a/src/old.ts b/src/old.ts
deleted file mode 100644
index e69de29..0000000
--- a/src/old.ts
+++ /dev/null
@@ -1 +0,0 @@
-export {};
diff --git a/src/a.ts b/src/b.ts
similarity index 90%
rename from src/a.ts
rename to src/b.ts
@@ -1 +1 @@
-export const a = 1;
+export const b = 1;
"""


def test_parse_unified_diff_produces_one_context_per_hunk() -> None:
    contexts = parse_unified_diff(_DIFF)

    assert [(c.file_path, c.status) for c in contexts] == [
        ("src/domain/order.ts", "modified"),
        ("src/domain/order.ts", "modified"),
        ("src/services/billing.ts", "added"),
        ("src/old.ts", "deleted"),
        ("src/b.ts", "renamed"),
    ]


def test_hunk_lines_and_line_range() -> None:
    first, second, *_ = parse_unified_diff(_DIFF)

    assert first.added_lines == [
        "import { Db } from '../infrastructure/db';",
        "export const x = 2;",
    ]
    assert first.removed_lines == ["export const x = 1;"]
    assert first.context_lines == ["import { Money } from './money';", ""]
    assert first.new_imports == ["import { Db } from '../infrastructure/db';"]
    assert (first.line_start, first.line_end) == (1, 4)

    assert second.added_lines == ["    // ++ counter"]
    assert (second.line_start, second.line_end) == (21, 23)


def test_added_file_collects_require_imports() -> None:
    added = parse_unified_diff(_DIFF)[2]

    assert added.new_imports == ["const db = require('../infrastructure/db');"]
    assert (added.line_start, added.line_end) == (1, 2)


def test_plain_unified_diff_without_git_header() -> None:
    contexts = parse_unified_diff(
        "--- a/pkg/mod.py\n+++ b/pkg/mod.py\n@@ -1 +1,2 @@\n import os\n+from pkg import util\n"
    )

    assert len(contexts) == 1
    assert contexts[0].file_path == "pkg/mod.py"
    assert contexts[0].new_imports == ["from pkg import util"]


def test_empty_diff_has_no_contexts() -> None:
    assert parse_unified_diff("") == []


def test_changed_files_are_sorted_and_unique() -> None:
    assert changed_files(parse_unified_diff(_DIFF)) == [
        "src/b.ts",
        "src/domain/order.ts",
        "src/old.ts",
        "src/services/billing.ts",
    ]


def test_is_import_statement() -> None:
    assert is_import_statement("  import x from 'y'")
    assert is_import_statement("export * from './all'")
    assert is_import_statement("import (")
    assert not is_import_statement("const important = true")
