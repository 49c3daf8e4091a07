"""World discovery: resolve the world name and its imported interfaces."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Optional

from ..logging import get_logger
from ..models import World

WIT_SUFFIX = ".wit"
TYPES_PREFIX = "types-"

_WORLD_KEYWORD = "world "
_IMPORT_KEYWORD = "import "

logger = get_logger("world")


class WorldNotFoundError(RuntimeError):
    """Raised when no WIT file in the api directory declares a world."""


def iter_wit_files(api_dir: Path) -> Iterator[Path]:
    """Yield `.wit` files directly inside `api_dir`, sorted by name."""
    for path in sorted(api_dir.iterdir(), key=lambda item: item.name):
        if path.is_file() and path.suffix == WIT_SUFFIX:
            yield path


def is_world_source(text: str) -> bool:
    """Return True when the WIT source declares a world."""
    return any(line.strip().startswith(_WORLD_KEYWORD) for line in text.splitlines())


def extract_world_name(text: str) -> Optional[str]:
    """Return the name from the first `world <name> {` line, if any."""
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped.startswith(_WORLD_KEYWORD):
            continue
        tokens = stripped.split()
        if len(tokens) < 2:
            return None
        name = tokens[1]
        if name.endswith("{"):
            name = name[:-1]
        return name.strip() or None
    return None


def extract_imports(text: str) -> List[str]:
    """Return the targets of every `import <target>;` line in order."""
    imports: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(_IMPORT_KEYWORD) and stripped.endswith(";"):
            target = stripped[len(_IMPORT_KEYWORD):-1].strip()
            if target:
                imports.append(target)
    return imports


def _iter_world_sources(api_dir: Path) -> Iterator[tuple[Path, str]]:
    for path in iter_wit_files(api_dir):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Unable to read %s: %s", path, exc)
            continue
        if is_world_source(text):
            logger.debug("Analyzing world definition file: %s", path)
            yield path, text


def find_world_name(api_dir: Path) -> str:
    """Resolve the world to generate bindings for, preferring `types-` worlds."""
    regular_name: Optional[str] = None
    types_name: Optional[str] = None

    for path, text in _iter_world_sources(api_dir):
        name = extract_world_name(text)
        if name is None:
            continue
        logger.debug("Extracted world name %s from %s", name, path.name)
        if name.startswith(TYPES_PREFIX):
            if types_name is None:
                types_name = name
        elif regular_name is None:
            regular_name = name

    if types_name is not None:
        return types_name

    if regular_name is not None:
        candidate = f"{TYPES_PREFIX}{regular_name}"
        if (api_dir / f"{candidate}{WIT_SUFFIX}").exists():
            logger.info("Found types world from file: %s", candidate)
            return candidate
        logger.warning("No types- world found, using regular world: %s", regular_name)
        return regular_name

    raise WorldNotFoundError(
        f"No world name found in any WIT file under {api_dir}. "
        "Cannot generate caller-utils without a world name."
    )


def find_interfaces_in_world(api_dir: Path) -> List[str]:
    """Collect interface imports from every world file, duplicates included."""
    interfaces: List[str] = []
    for _, text in _iter_world_sources(api_dir):
        for interface in extract_imports(text):
            logger.debug("  Found interface import: %s", interface)
            interfaces.append(interface)
    return interfaces


def resolve_world(api_dir: Path) -> World:
    """Return the resolved world together with its imported interfaces."""
    if not api_dir.is_dir():
        raise FileNotFoundError(f"API directory not found: {api_dir}")
    name = find_world_name(api_dir)
    imports = find_interfaces_in_world(api_dir)
    return World(name=name, imported_interfaces=tuple(imports))


__all__ = [
    "TYPES_PREFIX",
    "WIT_SUFFIX",
    "World",
    "WorldNotFoundError",
    "extract_imports",
    "extract_world_name",
    "find_interfaces_in_world",
    "find_world_name",
    "is_world_source",
    "iter_wit_files",
    "resolve_world",
]
