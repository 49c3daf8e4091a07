"""Pipeline orchestration for caller-utils generation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Sequence

from .codegen.assembler import CrateWriter, LibraryAssembler
from .codegen.stubs import StubGenerator
from .config import CallerGenConfig, load_config
from .logging import get_logger
from .manifest import add_path_dependency, register_workspace_member
from .models import GenerationContext, GenerationOutcome, ParsedInterface, World
from .naming import to_snake_case
from .wit.parser import parse_wit_file
from .wit.types import TypeSyntaxError
from .wit.world import is_world_source, iter_wit_files, resolve_world

DEFAULT_API_DIR = "api"


class Orchestrator:
    """Coordinates world resolution, parsing, stub generation and crate output."""

    def __init__(self, config: CallerGenConfig | None = None) -> None:
        self._config_override = config
        self.logger = get_logger("orchestrator")

    def run_generate(
        self,
        base_dir: str | Path,
        api_dir: str | Path | None = None,
        projects: Sequence[str | Path] = (),
        *,
        dry_run: bool = False,
    ) -> GenerationOutcome:
        """Generate the caller-utils crate and register it with the workspace."""
        base_path = Path(base_dir).expanduser().resolve()
        if not base_path.is_dir():
            raise FileNotFoundError(f"Base directory not found: {base_dir}")
        config = self._load_config(base_path)

        api_path = self._resolve_api_dir(base_path, api_dir, config)
        project_paths = [Path(project).expanduser().resolve() for project in projects]
        if not project_paths:
            project_paths = list(config.projects)

        self.logger.info("Starting generation for %s (api dir %s)", base_path, api_path)
        world = resolve_world(api_path)
        self.logger.info("Using world name for code generation: %s", world.name)

        stub_generator = StubGenerator(
            timeout=config.rpc.timeout,
            strict_types=config.types.strict,
            templates_dir=config.crate.templates_dir,
        )
        assembler = LibraryAssembler(
            stub_generator,
            wit_path=config.crate.wit_dir,
            templates_dir=config.crate.templates_dir,
        )
        writer = CrateWriter(
            config.crate.name,
            wit_dir=config.crate.wit_dir,
            templates_dir=config.crate.templates_dir,
        )

        context = GenerationContext()
        modules = self._generate_modules(assembler, context, self._parse_interfaces(api_path))
        lib_source = assembler.render(world, context)

        crate_dir = writer.crate_dir(base_path)
        lib_path = crate_dir / "src" / "lib.rs"
        if dry_run:
            self.logger.info("Dry run: skipping writes for %s", crate_dir)
            return GenerationOutcome(
                crate_dir=crate_dir,
                lib_path=lib_path,
                world=world,
                modules=modules,
                staged_files=[],
                lib_source=lib_source,
                dry_run=True,
            )

        lib_path, staged = writer.write(base_path, api_path, lib_source)
        workspace_updated = register_workspace_member(base_path, config.crate.name)
        projects_updated = self._update_projects(project_paths, crate_dir, config.crate.name)

        return GenerationOutcome(
            crate_dir=crate_dir,
            lib_path=lib_path,
            world=world,
            modules=modules,
            staged_files=staged,
            lib_source=lib_source,
            workspace_updated=workspace_updated,
            projects_updated=projects_updated,
        )

    def describe_world(self, api_dir: str | Path) -> World:
        """Resolve the world name and imported interfaces of an api directory."""
        return resolve_world(Path(api_dir).expanduser().resolve())

    def _load_config(self, base_path: Path) -> CallerGenConfig:
        if self._config_override is not None:
            return self._config_override
        return load_config(base_path)

    @staticmethod
    def _resolve_api_dir(
        base_path: Path, api_dir: str | Path | None, config: CallerGenConfig
    ) -> Path:
        if api_dir is not None:
            candidate = Path(api_dir).expanduser()
            if not candidate.is_absolute():
                candidate = base_path / candidate
            return candidate.resolve()
        if config.api_dir is not None:
            return config.api_dir.resolve()
        return base_path / DEFAULT_API_DIR

    def _parse_interfaces(self, api_path: Path) -> List[ParsedInterface]:
        parsed: List[ParsedInterface] = []
        for path in iter_wit_files(api_path):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.error("Error reading WIT file %s: %s", path, exc)
                continue
            if is_world_source(text):
                continue
            self.logger.info("Processing interface: %s", path.stem)
            try:
                parsed.append(parse_wit_file(path))
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.error("Error parsing WIT file %s: %s", path, exc)
        self.logger.info("Found %d WIT interface files", len(parsed))
        return parsed

    def _generate_modules(
        self,
        assembler: LibraryAssembler,
        context: GenerationContext,
        interfaces: Iterable[ParsedInterface],
    ) -> List[str]:
        modules: List[str] = []
        for parsed in interfaces:
            try:
                if assembler.add_interface(context, parsed):
                    modules.append(to_snake_case(parsed.interface_name))
            except TypeSyntaxError as exc:
                self.logger.error("Error generating stubs for %s: %s", parsed.path, exc)
        return modules

    def _update_projects(
        self, projects: Sequence[Path], crate_dir: Path, crate_name: str
    ) -> List[Path]:
        updated: List[Path] = []
        for project in projects:
            dependency_path = _relative_path(crate_dir, project)
            if add_path_dependency(project, crate_name, dependency_path):
                updated.append(project)
        return updated


def _relative_path(target: Path, start: Path) -> str:
    """Return `target` relative to `start` using forward slashes."""
    try:
        return Path(os.path.relpath(target, start)).as_posix()
    except ValueError:
        return target.as_posix()


__all__ = ["DEFAULT_API_DIR", "Orchestrator"]
