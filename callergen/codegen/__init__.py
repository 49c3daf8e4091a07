"""Rust code generation for caller-utils crates."""

from __future__ import annotations

from .assembler import CrateWriter, LibraryAssembler, interface_module_name
from .stubs import StubGenerator, StubPlan, build_request_payload

__all__ = [
    "CrateWriter",
    "LibraryAssembler",
    "StubGenerator",
    "StubPlan",
    "build_request_payload",
    "interface_module_name",
]
