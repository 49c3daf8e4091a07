"""Assembly of the generated caller-utils crate."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

from ..logging import get_logger
from ..models import GenerationContext, ParsedInterface, World
from ..naming import to_snake_case
from ..wit.world import iter_wit_files
from .rendering import create_environment
from .stubs import StubGenerator

DEFAULT_CRATE_NAME = "caller-utils"
DEFAULT_WIT_DIR = "target/wit"


def interface_module_name(interface: str) -> str:
    """Return the Rust module name for an imported interface.

    Package-qualified imports such as `ns:pkg/iface@1.0.0` resolve to `iface`.
    """
    name = interface.rsplit("/", 1)[-1]
    name = name.split("@", 1)[0]
    return to_snake_case(name.strip())


@dataclass
class ModuleBlock:
    """One `pub mod` block of the generated library."""

    name: str
    body: str


class LibraryAssembler:
    """Accumulates per-interface stubs and renders `src/lib.rs`."""

    def __init__(
        self,
        stub_generator: StubGenerator | None = None,
        *,
        wit_path: str = DEFAULT_WIT_DIR,
        templates_dir: Path | None = None,
    ) -> None:
        self.stub_generator = stub_generator or StubGenerator(templates_dir=templates_dir)
        self.wit_path = wit_path
        self._env = create_environment(templates_dir)
        self.logger = get_logger("assembler")

    def add_interface(self, context: GenerationContext, parsed: ParsedInterface) -> bool:
        """Record an interface's types and generate its stubs.

        Returns False when the interface contributed no signatures.
        """
        interface_name = parsed.interface_name
        context.interface_types[interface_name] = parsed.type_names

        if not parsed.signatures:
            self.logger.info("No signatures found in %s", parsed.path)
            return False

        functions: List[str] = []
        uses_hashmap = False
        for signature in parsed.signatures:
            plan = self.stub_generator.plan(signature)
            if any("HashMap<" in rust_type for rust_type in plan.rust_types):
                uses_hashmap = True
            functions.append(self.stub_generator.render(plan))

        module_name = to_snake_case(interface_name)
        context.module_contents[module_name] = "\n\n".join(functions)
        context.uses_hashmap = context.uses_hashmap or uses_hashmap
        self.logger.info(
            "Generated module %s with %d function stubs", module_name, len(functions)
        )
        return True

    def interface_uses(
        self, context: GenerationContext, imports: Iterable[str]
    ) -> List[str]:
        """Return distinct module names for the world's imports, in order.

        `context.processed_interfaces` is rebuilt on every call, so rendering
        the same context twice yields the same imports.
        """
        context.processed_interfaces.clear()
        modules: List[str] = []
        for interface in imports:
            module_name = interface_module_name(interface)
            if not module_name or module_name in context.processed_interfaces:
                continue
            context.processed_interfaces.add(module_name)
            modules.append(module_name)
        return modules

    def render(self, world: World, context: GenerationContext) -> str:
        """Render the complete `lib.rs` for the run."""
        modules = [
            ModuleBlock(name=name, body=body)
            for name, body in context.module_contents.items()
        ]
        template = self._env.get_template("lib.rs.j2")
        rendered = template.render(
            wit_path=self.wit_path,
            world_name=world.name,
            uses_hashmap=context.uses_hashmap,
            interface_uses=self.interface_uses(context, world.imported_interfaces),
            modules=modules,
        )
        return rendered.rstrip() + "\n"


class CrateWriter:
    """Writes the crate layout: Cargo.toml, src/lib.rs and staged WIT files."""

    def __init__(
        self,
        crate_name: str = DEFAULT_CRATE_NAME,
        *,
        wit_dir: str = DEFAULT_WIT_DIR,
        templates_dir: Path | None = None,
    ) -> None:
        self.crate_name = crate_name
        self.wit_dir = wit_dir
        self._env = create_environment(templates_dir)
        self.logger = get_logger("assembler")

    def crate_dir(self, base_dir: Path) -> Path:
        return base_dir / self.crate_name

    def render_manifest(self) -> str:
        template = self._env.get_template("Cargo.toml.j2")
        return template.render(crate_name=self.crate_name).rstrip() + "\n"

    def write(self, base_dir: Path, api_dir: Path, lib_source: str) -> tuple[Path, List[Path]]:
        """Write the crate under `base_dir` and return the lib.rs path and staged files."""
        crate_dir = self.crate_dir(base_dir)
        self.logger.info("Creating %s crate at %s", self.crate_name, crate_dir)
        (crate_dir / "src").mkdir(parents=True, exist_ok=True)

        (crate_dir / "Cargo.toml").write_text(self.render_manifest(), encoding="utf-8")

        lib_path = crate_dir / "src" / "lib.rs"
        self.logger.info("Writing lib.rs to %s", lib_path)
        lib_path.write_text(lib_source, encoding="utf-8")

        staged = self.stage_wit_files(api_dir, crate_dir / self.wit_dir)
        return lib_path, staged

    def stage_wit_files(self, api_dir: Path, staging_dir: Path) -> List[Path]:
        """Replace `staging_dir` with verbatim copies of the api WIT files."""
        if staging_dir.exists():
            self.logger.debug("Removing existing staging directory %s", staging_dir)
            shutil.rmtree(staging_dir)
        staging_dir.mkdir(parents=True)

        staged: List[Path] = []
        for source in iter_wit_files(api_dir):
            destination = staging_dir / source.name
            shutil.copyfile(source, destination)
            self.logger.debug("Copied %s to %s", source.name, staging_dir)
            staged.append(destination)
        return staged


__all__ = [
    "CrateWriter",
    "DEFAULT_CRATE_NAME",
    "DEFAULT_WIT_DIR",
    "LibraryAssembler",
    "ModuleBlock",
    "interface_module_name",
]
