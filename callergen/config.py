"""Configuration loading for callergen (.callergen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".callergen.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CrateConfig:
    """Layout of the generated crate."""

    name: str = "caller-utils"
    wit_dir: str = "target/wit"
    templates_dir: Optional[Path] = None


@dataclass
class RpcConfig:
    """Settings baked into generated RPC stubs."""

    timeout: int = 30


@dataclass
class TypesConfig:
    """Type translation behaviour."""

    strict: bool = False


@dataclass
class CallerGenConfig:
    """Represents the settings defined in .callergen.yml."""

    root: Path
    api_dir: Optional[Path] = None
    projects: List[Path] = field(default_factory=list)
    crate: CrateConfig = field(default_factory=CrateConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    types: TypesConfig = field(default_factory=TypesConfig)


def load_config(config_path: Path) -> CallerGenConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CallerGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    api_dir_str = _as_str(data.get("api_dir"))
    api_dir = root / api_dir_str if api_dir_str else None
    projects = [root / project for project in _as_str_list(data.get("projects"))]

    crate = CrateConfig()
    crate_data = _as_dict(data.get("crate"))
    if crate_data:
        crate.name = _as_str(crate_data.get("name")) or crate.name
        crate.wit_dir = _as_str(crate_data.get("wit_dir")) or crate.wit_dir
        templates_dir_str = _as_str(crate_data.get("templates_dir"))
        crate.templates_dir = root / templates_dir_str if templates_dir_str else None

    rpc = RpcConfig()
    rpc_data = _as_dict(data.get("rpc"))
    if rpc_data and "timeout" in rpc_data:
        timeout = _as_int(rpc_data.get("timeout"))
        if timeout is None or timeout <= 0:
            raise ConfigError("rpc.timeout must be a positive integer")
        rpc.timeout = timeout

    types = TypesConfig()
    types_data = _as_dict(data.get("types"))
    if types_data:
        types.strict = _as_bool(types_data.get("strict")) or False

    return CallerGenConfig(
        root=root,
        api_dir=api_dir,
        projects=projects,
        crate=crate,
        rpc=rpc,
        types=types,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
