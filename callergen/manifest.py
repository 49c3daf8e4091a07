"""Cargo manifest updates registering the generated crate."""

from __future__ import annotations

import re
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .logging import get_logger

MANIFEST_NAME = "Cargo.toml"

_TABLE_HEADER_RE = re.compile(r"^\s*\[\[?\s*([^\]]+?)\s*\]\]?\s*(#.*)?$")
_MEMBERS_RE = re.compile(r"^\s*members\s*=\s*\[")

logger = get_logger("manifest")


class ManifestError(RuntimeError):
    """Raised when a Cargo manifest cannot be read, parsed or updated."""


def _load(path: Path, text: str) -> Dict[str, Any]:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Failed to parse {path}: {exc}") from exc


def _table_bounds(lines: Sequence[str], table: str) -> Optional[tuple[int, int]]:
    """Return `(header_index, end_index)` for a `[table]` section, end exclusive."""
    start: Optional[int] = None
    for index, line in enumerate(lines):
        match = _TABLE_HEADER_RE.match(line)
        if not match:
            continue
        if start is not None:
            return start, index
        if match.group(1) == table:
            start = index
    if start is None:
        return None
    return start, len(lines)


def _skip_string(text: str, index: int) -> int:
    """Return the index just past the TOML string starting at `index`."""
    quote = text[index]
    delimiter = quote * 3 if text.startswith(quote * 3, index) else quote
    position = index + len(delimiter)
    while position < len(text):
        if quote == '"' and text[position] == "\\":
            position += 2
            continue
        if text.startswith(delimiter, position):
            return position + len(delimiter)
        position += 1
    raise ManifestError("Unterminated string in members array")


def _scan_array(text: str, start: int) -> tuple[int, int]:
    """Scan the array opening at `text[start]`.

    Returns the index of the matching `]` and the index just past the last
    value token inside the array (`start + 1` for an empty array). Strings and
    `#` comments are skipped.
    """
    depth = 0
    last_token_end = start + 1
    position = start
    while position < len(text):
        char = text[position]
        if char == "#":
            newline = text.find("\n", position)
            position = len(text) if newline == -1 else newline
            continue
        if char in "\"'":
            position = _skip_string(text, position)
            last_token_end = position
            continue
        if char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return position, last_token_end
        if not char.isspace() and position != start:
            last_token_end = position + 1
        position += 1
    raise ManifestError("Unclosed members array")


def _insert_array_item(array_text: str, item: str) -> str:
    """Append a quoted item to the text of a TOML array literal `[ ... ]`."""
    end, last_token_end = _scan_array(array_text, 0)
    quoted = f'"{item}"'
    has_values = last_token_end > 1
    needs_comma = has_values and array_text[last_token_end - 1] != ","

    if "\n" not in array_text[:end]:
        if not has_values:
            return f"[{quoted}]"
        separator = "," if needs_comma else ""
        return f"{array_text[:last_token_end]}{separator} {quoted}{array_text[last_token_end:]}"

    indent = "    "
    for line in array_text[: end].splitlines()[1:]:
        if line.strip():
            indent = line[: len(line) - len(line.lstrip())]
            break

    head = array_text[:last_token_end] + ("," if needs_comma else "")
    rest = array_text[last_token_end:]
    newline = rest.find("\n")
    if newline == -1 or last_token_end + newline > end:
        # Closing bracket shares the line with the last value.
        closing = rest.index("]")
        return f"{head}{rest[:closing]}\n{indent}{quoted},\n{rest[closing:]}"
    return f"{head}{rest[: newline + 1]}{indent}{quoted},\n{rest[newline + 1:]}"


def register_workspace_member(base_dir: Path, member: str) -> bool:
    """Add `member` to `[workspace] members` in `base_dir/Cargo.toml`.

    Returns True when the manifest was rewritten; a missing manifest or a
    manifest without a members array is left untouched.
    """
    path = base_dir / MANIFEST_NAME
    logger.info("Updating workspace manifest at %s", path)
    if not path.exists():
        logger.info("Workspace manifest not found at %s", path)
        return False

    text = path.read_text(encoding="utf-8")
    data = _load(path, text)
    workspace = data.get("workspace")
    members = workspace.get("members") if isinstance(workspace, dict) else None
    if not isinstance(members, list):
        logger.info("No workspace members array in %s", path)
        return False
    if member in members:
        logger.info("%s is already in workspace members", member)
        return False

    lines = text.splitlines(keepends=True)
    bounds = _table_bounds([line.rstrip("\r\n") for line in lines], "workspace")
    if bounds is None:
        raise ManifestError(f"Could not locate the [workspace] table in {path}")

    offset = sum(len(line) for line in lines[: bounds[0]])
    section = "".join(lines[bounds[0]:bounds[1]])
    start = _find_members_array(section)
    if start is None:
        raise ManifestError(f"Could not locate the members array in {path}")
    try:
        end, _ = _scan_array(section, start)
    except ManifestError as exc:
        raise ManifestError(f"{exc} in {path}") from exc

    array_text = section[start:end + 1]
    updated_section = section[:start] + _insert_array_item(array_text, member) + section[end + 1:]
    updated = text[:offset] + updated_section + text[offset + len(section):]

    _write_checked(path, updated)
    logger.info("Added %s to workspace members", member)
    return True


def _find_members_array(section: str) -> Optional[int]:
    position = 0
    for line in section.splitlines(keepends=True):
        if _MEMBERS_RE.match(line):
            return position + line.index("[")
        position += len(line)
    return None


def add_path_dependency(project_dir: Path, name: str, dependency_path: str) -> bool:
    """Declare `name = { path = ... }` under `[dependencies]` of a project manifest.

    Returns True when the manifest was rewritten. A missing manifest is an
    error; a manifest without any dependencies is left untouched. When the
    dependencies are declared only as `[dependencies.<crate>]` sub-tables, a
    `[dependencies.<name>]` table is appended instead.
    """
    path = project_dir / MANIFEST_NAME
    logger.info("Adding %s dependency to %s", name, path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Failed to read project manifest {path}: {exc}") from exc

    data = _load(path, text)
    dependencies = data.get("dependencies")
    if not isinstance(dependencies, dict):
        logger.info("No [dependencies] table in %s", path)
        return False
    if name in dependencies:
        logger.info("%s dependency already exists in %s", name, path)
        return False

    lines = text.splitlines(keepends=True)
    bounds = _table_bounds([line.rstrip("\r\n") for line in lines], "dependencies")
    if bounds is None:
        # Only `[dependencies.<crate>]` sub-tables declare dependencies.
        separator = "" if not text or text.endswith("\n") else "\n"
        entry = f'\n[dependencies.{name}]\npath = "{dependency_path}"\n'
        _write_checked(path, text + separator + entry)
        logger.info("Added [dependencies.%s] table to %s", name, path)
        return True

    insert_at = bounds[1]
    while insert_at - 1 > bounds[0] and not lines[insert_at - 1].strip():
        insert_at -= 1

    entry = f'{name} = {{ path = "{dependency_path}" }}\n'
    head: List[str] = lines[:insert_at]
    if head and not head[-1].endswith("\n"):
        head[-1] += "\n"
    updated = "".join(head + [entry] + lines[insert_at:])

    _write_checked(path, updated)
    logger.info("Added %s dependency to %s", name, path)
    return True


def _write_checked(path: Path, text: str) -> None:
    try:
        tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"Refusing to write an unparseable manifest to {path}: {exc}") from exc
    path.write_text(text, encoding="utf-8")


__all__ = [
    "MANIFEST_NAME",
    "ManifestError",
    "add_path_dependency",
    "register_workspace_member",
]
