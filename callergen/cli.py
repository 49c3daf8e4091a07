"""CLI entrypoints for callergen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .manifest import ManifestError
from .orchestrator import Orchestrator
from .wit.world import WorldNotFoundError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="callergen",
        description="Generate Rust caller-utils RPC stubs from WIT interface files.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a DEBUG-level log of the run to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate the caller-utils crate and register it with the workspace.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the workspace root (defaults to current directory).",
    )
    generate_parser.add_argument(
        "--api-dir",
        default=None,
        help="Directory holding the WIT files (defaults to <path>/api).",
    )
    generate_parser.add_argument(
        "--project",
        dest="projects",
        action="append",
        default=[],
        help="Project directory that should depend on the generated crate (repeatable).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated lib.rs without writing any files.",
    )

    world_parser = subparsers.add_parser(
        "world",
        help="Show the resolved world name and its imported interfaces.",
    )
    _add_verbose_option(world_parser, suppress_default=True)
    world_parser.add_argument(
        "api_dir",
        nargs="?",
        default="api",
        help="Directory holding the WIT files (defaults to ./api).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for callergen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    if args.command == "generate":
        dry_run = bool(getattr(args, "dry_run", False))
        try:
            outcome = orchestrator.run_generate(
                args.path,
                args.api_dir,
                args.projects,
                dry_run=dry_run,
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            parser.exit(1, f"{exc}\n")
        except (WorldNotFoundError, ConfigError, ManifestError) as exc:
            parser.exit(1, f"callergen generate failed: {exc}\n")
        except OSError as exc:
            parser.exit(1, f"callergen generate failed: {exc}\nRun with --verbose for more details.\n")
        if dry_run:
            print(outcome.lib_source, end="")
            return
        print(f"Generated {len(outcome.modules)} stub module(s) for world {outcome.world.name}")
        print(f"lib.rs written to {_relativize(outcome.lib_path)}")
        if outcome.workspace_updated:
            print("Workspace manifest updated")
        for project in outcome.projects_updated:
            print(f"Dependency added to {_relativize(project)}")
    elif args.command == "world":
        try:
            world = orchestrator.describe_world(args.api_dir)
        except (FileNotFoundError, WorldNotFoundError) as exc:
            parser.exit(1, f"{exc}\n")
        print(f"world: {world.name}")
        for interface in world.imported_interfaces:
            print(f"  import {interface}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
