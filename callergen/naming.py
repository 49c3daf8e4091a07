"""Identifier conversions between WIT kebab-case and Rust conventions."""

from __future__ import annotations


def _unescape(name: str) -> str:
    # WIT allows `%` to escape identifiers that collide with keywords.
    return name[1:] if name.startswith("%") else name


def to_snake_case(name: str) -> str:
    """Convert a kebab-case identifier to snake_case."""
    return _unescape(name).replace("-", "_")


def to_pascal_case(name: str) -> str:
    """Convert a kebab-case identifier to PascalCase."""
    parts = [part for part in _unescape(name).split("-") if part]
    return "".join(part[0].upper() + part[1:] for part in parts)


__all__ = ["to_pascal_case", "to_snake_case"]
