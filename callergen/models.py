"""Core data models shared across callergen components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

TARGET_FIELD = "target"
RETURNING_FIELD = "returning"


@dataclass(frozen=True)
class SignatureField:
    """A single `name: type` entry inside a signature record."""

    name: str
    wit_type: str


@dataclass(frozen=True)
class SignatureFields:
    """Signature fields split into the control slots and ordinary parameters."""

    target: Optional[SignatureField]
    returning: Optional[SignatureField]
    params: Tuple[SignatureField, ...]


@dataclass(frozen=True)
class SignatureStruct:
    """One remote-callable operation declared as a `*-signature-*` record."""

    operation_name: str
    call_kind: str
    fields: Tuple[SignatureField, ...] = ()

    def split_fields(self) -> SignatureFields:
        """Separate the `target` and `returning` control fields from parameters."""
        target: Optional[SignatureField] = None
        returning: Optional[SignatureField] = None
        params: List[SignatureField] = []
        for item in self.fields:
            if item.name == TARGET_FIELD and target is None:
                target = item
            elif item.name == RETURNING_FIELD and returning is None:
                returning = item
            else:
                params.append(item)
        return SignatureFields(target=target, returning=returning, params=tuple(params))


@dataclass(frozen=True)
class TypeDeclaration:
    """A plain record or variant declared in an interface file."""

    name: str
    kind: str


@dataclass
class ParsedInterface:
    """Signatures and type declarations extracted from one WIT file."""

    path: Path
    signatures: List[SignatureStruct] = field(default_factory=list)
    types: List[TypeDeclaration] = field(default_factory=list)

    @property
    def interface_name(self) -> str:
        return self.path.stem

    @property
    def type_names(self) -> List[str]:
        return [declaration.name for declaration in self.types]


@dataclass(frozen=True)
class World:
    """The resolved world and the interfaces it imports."""

    name: str
    imported_interfaces: Tuple[str, ...] = ()


@dataclass
class GenerationContext:
    """Mutable state accumulated over a single generation run."""

    interface_types: Dict[str, List[str]] = field(default_factory=dict)
    module_contents: Dict[str, str] = field(default_factory=dict)
    processed_interfaces: Set[str] = field(default_factory=set)
    uses_hashmap: bool = False


@dataclass
class GenerationOutcome:
    """Result of a caller-utils generation run."""

    crate_dir: Path
    lib_path: Path
    world: World
    modules: List[str]
    staged_files: List[Path]
    lib_source: str
    workspace_updated: bool = False
    projects_updated: List[Path] = field(default_factory=list)
    dry_run: bool = False
