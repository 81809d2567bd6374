"""Turn unified diff text (as printed by ``git diff``) into change contexts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from contract.models import ChangeContext

if TYPE_CHECKING:
    from collections.abc import Iterable

    from contract.models import FileStatus

_GIT_HEADER = re.compile(r"^diff --git a/(.+?) b/(.+)$")
_HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_DEV_NULL = "/dev/null"


def is_import_statement(line: str) -> bool:
    """Return True for import/require lines of JS/TS, Python, Go and Java.

    Examples:
        >>> is_import_statement("import { x } from './x'")
        True
        >>> is_import_statement("from app.models import Order")
        True
        >>> is_import_statement("const x = require('x')")
        True
        >>> is_import_statement("return imported")
        False
    """
    trimmed = line.strip()
    return (
        trimmed.startswith(("import ", "import{", "import (", "from "))
        or "require(" in trimmed
        or trimmed.startswith(("export * from", "export { "))
    )


def _strip_prefix(path: str) -> str:
    path = path.strip()
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


@dataclass
class _Hunk:
    new_start: int
    new_lines: int
    old_remaining: int
    new_remaining: int
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    context: list[str] = field(default_factory=list)

    @property
    def open(self) -> bool:
        return self.old_remaining > 0 or self.new_remaining > 0


@dataclass
class _FileDiff:
    path: str = ""
    old_path: str = ""
    status: FileStatus = "modified"
    hunks: list[_Hunk] = field(default_factory=list)

    def contexts(self) -> list[ChangeContext]:
        path = self.path if self.path and self.path != _DEV_NULL else self.old_path
        result = []
        for hunk in self.hunks:
            result.append(
                ChangeContext(
                    file_path=path,
                    status=self.status,
                    added_lines=hunk.added,
                    removed_lines=hunk.removed,
                    context_lines=hunk.context,
                    new_imports=[line for line in hunk.added if is_import_statement(line)],
                    line_start=hunk.new_start,
                    line_end=max(hunk.new_start, hunk.new_start + hunk.new_lines - 1),
                )
            )
        return result


def _consume_hunk_line(hunk: _Hunk, line: str) -> None:
    if line.startswith("\\"):
        return
    marker, text = line[:1], line[1:]
    if marker == "+":
        hunk.added.append(text)
        hunk.new_remaining -= 1
    elif marker == "-":
        hunk.removed.append(text)
        hunk.old_remaining -= 1
    else:
        hunk.context.append(text)
        hunk.old_remaining -= 1
        hunk.new_remaining -= 1


def parse_unified_diff(text: str) -> list[ChangeContext]:
    """Parse a unified diff into one ``ChangeContext`` per hunk.

    File status comes from git's extended headers (``new file mode``,
    ``deleted file mode``, ``rename from``) or from ``/dev/null`` on either
    side of the ``---``/``+++`` pair. Lines inside a hunk are consumed by
    the counts in its ``@@`` header, so added lines starting with ``++``
    are never mistaken for file headers.
    """
    files: list[_FileDiff] = []
    current: _FileDiff | None = None
    hunk: _Hunk | None = None

    for line in text.splitlines():
        if hunk is not None and hunk.open:
            _consume_hunk_line(hunk, line)
            continue

        git_header = _GIT_HEADER.match(line)
        if git_header:
            current = _FileDiff(path=git_header.group(2), old_path=git_header.group(1))
            files.append(current)
            hunk = None
            continue

        if line.startswith("--- "):
            if current is None or current.hunks:
                current = _FileDiff()
                files.append(current)
            old = line[4:].split("\t", 1)[0]
            if old.strip() == _DEV_NULL:
                current.status = "added"
            else:
                current.old_path = _strip_prefix(old)
            continue

        if line.startswith("+++ ") and current is not None:
            new = line[4:].split("\t", 1)[0]
            if new.strip() == _DEV_NULL:
                current.status = "deleted"
            else:
                current.path = _strip_prefix(new)
            continue

        if current is None:
            continue

        if line.startswith("new file mode"):
            current.status = "added"
        elif line.startswith("deleted file mode"):
            current.status = "deleted"
        elif line.startswith("rename from "):
            current.status = "renamed"
            current.old_path = line.removeprefix("rename from ").strip()
        elif line.startswith("rename to "):
            current.status = "renamed"
            current.path = line.removeprefix("rename to ").strip()
        else:
            hunk_header = _HUNK_HEADER.match(line)
            if hunk_header:
                old_count = int(hunk_header.group(2) or 1)
                new_count = int(hunk_header.group(4) or 1)
                hunk = _Hunk(
                    new_start=int(hunk_header.group(3)),
                    new_lines=new_count,
                    old_remaining=old_count,
                    new_remaining=new_count,
                )
                current.hunks.append(hunk)

    contexts: list[ChangeContext] = []
    for file_diff in files:
        contexts.extend(file_diff.contexts())
    return contexts


def changed_files(contexts: Iterable[ChangeContext]) -> list[str]:
    """Sorted unique file paths touched by the given contexts."""
    return sorted({ctx.file_path for ctx in contexts})


__all__ = ["changed_files", "is_import_statement", "parse_unified_diff"]
