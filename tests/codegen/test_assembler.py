"""Tests for callergen.codegen.assembler."""

from __future__ import annotations

from pathlib import Path

import pytest

from callergen.codegen.assembler import CrateWriter, LibraryAssembler, interface_module_name
from callergen.codegen.stubs import StubGenerator
from callergen.models import (
    GenerationContext,
    ParsedInterface,
    SignatureField,
    SignatureStruct,
    TypeDeclaration,
    World,
)
from callergen.wit.types import TypeSyntaxError
from tests._fixtures.api_builder import ApiBuilder


def _wallet_interface() -> ParsedInterface:
    return ParsedInterface(
        path=Path("api/wallet-api.wit"),
        signatures=[
            SignatureStruct(
                "get-balance",
                "remote",
                (SignatureField("target", "string"), SignatureField("returning", "u64")),
            ),
            SignatureStruct(
                "list-balances",
                "remote",
                (
                    SignatureField("target", "address"),
                    SignatureField("returning", "map<string, u64>"),
                ),
            ),
        ],
        types=[TypeDeclaration("account", "record")],
    )


def test_render_builds_complete_library() -> None:
    assembler = LibraryAssembler()
    context = GenerationContext()
    assert assembler.add_interface(context, _wallet_interface())

    world = World(name="types-app", imported_interfaces=("wallet-api", "sign-in", "wallet-api"))
    lib_rs = assembler.render(world, context)

    assert lib_rs.startswith("wit_bindgen::generate!({\n")
    assert '    path: "target/wit",\n' in lib_rs
    assert '    world: "types-app",\n' in lib_rs
    assert "    generate_unused_types: true,\n" in lib_rs
    assert "pub use hyperware_app_common::SendResult;\n" in lib_rs
    assert "pub use hyperware_app_common::send;\n" in lib_rs
    assert "use std::collections::HashMap;\n" in lib_rs
    assert lib_rs.count("pub use crate::hyperware::process::wallet_api::*;") == 1
    assert "pub use crate::hyperware::process::sign_in::*;" in lib_rs
    assert "pub mod wallet_api {\n    use crate::*;\n\n" in lib_rs
    assert "    pub async fn get_balance_remote_rpc(target: &str) -> SendResult<u64> {\n" in lib_rs
    assert "        send::<u64>(&request, target, 30).await\n" in lib_rs
    assert lib_rs.endswith("}\n")
    assert context.interface_types == {"wallet-api": ["account"]}


def test_interfaces_without_signatures_are_recorded_but_not_emitted() -> None:
    assembler = LibraryAssembler()
    context = GenerationContext()
    types_only = ParsedInterface(
        path=Path("api/shared.wit"), types=[TypeDeclaration("shared-state", "variant")]
    )

    assert assembler.add_interface(context, types_only) is False
    lib_rs = assembler.render(World(name="app"), context)

    assert context.interface_types == {"shared": ["shared-state"]}
    assert "pub mod" not in lib_rs
    assert "HashMap" not in lib_rs
    assert "// Import types from each interface" not in lib_rs


def test_interface_module_name_strips_package_and_version() -> None:
    assert interface_module_name("wallet-api") == "wallet_api"
    assert interface_module_name("acme:bank/wallet-api@0.1.0") == "wallet_api"


def test_crate_writer_writes_manifest_lib_and_staged_wit(api_builder: ApiBuilder) -> None:
    api_builder.write_wit(
        {
            "app.wit": "world app {\n}\n",
            "wallet.wit": "interface wallet {\n}\n",
        }
    )
    api_builder.write({"api/notes.txt": "not wit\n"})
    writer = CrateWriter()

    lib_path, staged = writer.write(api_builder.root, api_builder.api_dir, "// lib\n")

    crate_dir = api_builder.root / "caller-utils"
    assert lib_path == crate_dir / "src" / "lib.rs"
    assert lib_path.read_text(encoding="utf-8") == "// lib\n"
    manifest = (crate_dir / "Cargo.toml").read_text(encoding="utf-8")
    assert 'name = "caller-utils"' in manifest
    assert 'wit-bindgen = "0.41.0"' in manifest
    assert [path.name for path in staged] == ["app.wit", "wallet.wit"]
    assert (crate_dir / "target" / "wit" / "wallet.wit").read_text(encoding="utf-8") == (
        "interface wallet {\n}\n"
    )


def test_staging_directory_is_rebuilt_from_scratch(api_builder: ApiBuilder) -> None:
    api_builder.write_wit({"app.wit": "world app {\n}\n"})
    stale = api_builder.root / "caller-utils" / "target" / "wit" / "removed.wit"
    stale.parent.mkdir(parents=True)
    stale.write_text("interface removed {}\n", encoding="utf-8")

    CrateWriter().write(api_builder.root, api_builder.api_dir, "")

    assert not stale.exists()
    assert (stale.parent / "app.wit").exists()


def test_crate_writer_honours_custom_name() -> None:
    manifest = CrateWriter("bank-callers").render_manifest()
    assert manifest.startswith('[package]\nname = "bank-callers"\n')


def test_render_is_repeatable_for_the_same_context() -> None:
    assembler = LibraryAssembler()
    context = GenerationContext()
    assembler.add_interface(context, _wallet_interface())
    world = World(name="types-app", imported_interfaces=("bank",))

    first = assembler.render(world, context)
    second = assembler.render(world, context)

    assert first == second
    assert (
        "// Import types from each interface\npub use crate::hyperware::process::bank::*;"
        in second
    )
    assert context.processed_interfaces == {"bank"}


def test_failed_interface_does_not_request_hashmap_import() -> None:
    assembler = LibraryAssembler()
    context = GenerationContext()
    broken = ParsedInterface(
        path=Path("api/ledger.wit"),
        signatures=[
            SignatureStruct(
                "list-totals",
                "remote",
                (
                    SignatureField("target", "address"),
                    SignatureField("returning", "map<string, u64>"),
                ),
            ),
            SignatureStruct(
                "broken",
                "remote",
                (SignatureField("target", "address"), SignatureField("returning", "list<u8")),
            ),
        ],
    )

    with pytest.raises(TypeSyntaxError):
        assembler.add_interface(context, broken)

    assert context.uses_hashmap is False
    assert "ledger" not in context.module_contents
    assert "HashMap" not in assembler.render(World(name="app"), context)


def test_templates_dir_overrides_bundled_stub_template(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "rpc_stub.rs.j2").write_text(
        "// custom {{ function_name }} -> {{ return_type }}\n", encoding="utf-8"
    )
    stub_generator = StubGenerator(templates_dir=templates)
    assembler = LibraryAssembler(stub_generator, templates_dir=templates)
    context = GenerationContext()

    assembler.add_interface(context, _wallet_interface())
    lib_rs = assembler.render(World(name="types-app"), context)

    assert "    // custom get_balance_remote_rpc -> u64\n" in lib_rs
    assert "pub async fn" not in lib_rs
    assert lib_rs.startswith("wit_bindgen::generate!({\n")
