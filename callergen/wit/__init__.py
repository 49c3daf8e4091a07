"""WIT source discovery, parsing and type translation."""

from __future__ import annotations

from .parser import SignatureFormatError, parse_wit_file, parse_wit_text
from .types import TypeSyntaxError, default_value, map_type
from .world import (
    WorldNotFoundError,
    find_interfaces_in_world,
    find_world_name,
    is_world_source,
    iter_wit_files,
    resolve_world,
)

__all__ = [
    "SignatureFormatError",
    "TypeSyntaxError",
    "WorldNotFoundError",
    "default_value",
    "find_interfaces_in_world",
    "find_world_name",
    "is_world_source",
    "iter_wit_files",
    "map_type",
    "parse_wit_file",
    "parse_wit_text",
    "resolve_world",
]
