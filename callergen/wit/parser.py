"""Line-oriented extraction of signature records and type names from WIT files."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence, Tuple

from ..logging import get_logger
from ..models import ParsedInterface, SignatureField, SignatureStruct, TypeDeclaration

SIGNATURE_MARKER = "-signature-"

logger = get_logger("parser")


class SignatureFormatError(ValueError):
    """Raised when a signature record name does not split into operation and kind."""


def split_signature_name(record_name: str) -> Tuple[str, str]:
    """Split `<operation>-signature-<kind>` into its two halves."""
    parts = record_name.split(SIGNATURE_MARKER)
    if len(parts) != 2 or not all(parts):
        raise SignatureFormatError(
            f"Unexpected signature record name format: '{record_name}'"
        )
    return parts[0], parts[1]


def parse_wit_file(path: Path) -> ParsedInterface:
    """Read and parse one WIT interface file.

    Read failures propagate as `OSError` or `UnicodeDecodeError`.
    """
    logger.info("Parsing WIT file: %s", path)
    text = path.read_text(encoding="utf-8")
    parsed = parse_wit_text(text, path=path)
    logger.info(
        "Extracted %d signature structs and %d type definitions from %s",
        len(parsed.signatures),
        len(parsed.types),
        path,
    )
    return parsed


def parse_wit_text(text: str, *, path: Path | None = None) -> ParsedInterface:
    """Scan WIT source for plain records, variants and signature records."""
    parsed = ParsedInterface(path=path or Path("<memory>.wit"))
    lines = text.splitlines()
    index = 0

    while index < len(lines):
        line = lines[index].strip()

        if line.startswith("record ") and SIGNATURE_MARKER not in line:
            name = _declaration_name(line, "record")
            logger.debug("  Found type: record %s", name)
            parsed.types.append(TypeDeclaration(name=name, kind="record"))
        elif line.startswith("variant "):
            name = _declaration_name(line, "variant")
            logger.debug("  Found type: variant %s", name)
            parsed.types.append(TypeDeclaration(name=name, kind="variant"))
        elif line.startswith("record "):
            record_name = _declaration_name(line, "record")
            logger.debug("  Found record: %s", record_name)
            try:
                operation_name, call_kind = split_signature_name(record_name)
            except SignatureFormatError as exc:
                logger.warning("%s (in %s); skipping", exc, parsed.path)
                index += 1
                continue

            fields, index = _consume_fields(lines, index + 1)
            parsed.signatures.append(
                SignatureStruct(
                    operation_name=operation_name,
                    call_kind=call_kind,
                    fields=tuple(fields),
                )
            )

        index += 1

    return parsed


def _declaration_name(line: str, keyword: str) -> str:
    remainder = line[len(keyword):].strip()
    if remainder.endswith("{"):
        remainder = remainder[:-1]
    return remainder.strip()


def _consume_fields(lines: Sequence[str], start: int) -> Tuple[List[SignatureField], int]:
    """Collect `name: type,` lines up to the closing brace.

    Returns the fields and the index of the closing line. Nested blocks are not
    supported; the first line starting with `}` ends the body.
    """
    fields: List[SignatureField] = []
    index = start
    while index < len(lines) and not lines[index].strip().startswith("}"):
        field_line = lines[index].strip()
        index += 1
        if not field_line or field_line.startswith("//"):
            continue

        parts = field_line.split(":")
        if len(parts) != 2:
            logger.debug("    Ignoring unrecognised signature line: %s", field_line)
            continue

        name = parts[0].strip()
        wit_type = parts[1].strip().rstrip(",").strip()
        logger.debug("    Field: %s -> %s", name, wit_type)
        fields.append(SignatureField(name=name, wit_type=wit_type))
    return fields, index


__all__ = [
    "SIGNATURE_MARKER",
    "SignatureFormatError",
    "parse_wit_file",
    "parse_wit_text",
    "split_signature_name",
]
