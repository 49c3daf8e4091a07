"""Rust async stub generation for parsed signature records."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from ..logging import get_logger
from ..models import SignatureStruct
from ..naming import to_pascal_case, to_snake_case
from ..wit.types import default_value, map_type
from .rendering import create_environment

DEFAULT_TIMEOUT = 30
HTTP_CALL_KIND = "http"
UNIT_TYPE = "()"

_RUST_KEYWORDS = frozenset(
    {
        "as", "async", "await", "break", "const", "continue", "crate", "dyn", "else",
        "enum", "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop",
        "match", "mod", "move", "mut", "pub", "ref", "return", "static", "struct",
        "super", "trait", "true", "type", "unsafe", "use", "where", "while",
    }
)


@dataclass
class StubPlan:
    """Everything needed to render one stub, before templating."""

    operation_name: str
    call_kind: str
    function_name: str
    target_type: str | None
    params: List[tuple[str, str]] = field(default_factory=list)
    return_type: str = UNIT_TYPE

    @property
    def is_http(self) -> bool:
        return self.call_kind == HTTP_CALL_KIND

    @property
    def param_names(self) -> List[str]:
        return [name for name, _ in self.params]

    @property
    def rust_types(self) -> List[str]:
        return [rust_type for _, rust_type in self.params] + [self.return_type]

    def signature_params(self, *, prefix: str = "") -> List[str]:
        """Return `name: Type` strings with the routing parameter first."""
        rendered: List[str] = []
        if self.target_type is not None:
            rendered.append(f"{prefix}target: {self.target_type}")
        for name, rust_type in self.params:
            if prefix and name.startswith("r#"):
                # Raw identifiers cannot take a prefix.
                name = name[2:]
            rendered.append(f"{prefix}{name}: {rust_type}")
        return rendered


def rust_identifier(name: str) -> str:
    """Convert a WIT field name to a Rust identifier, escaping keywords."""
    identifier = to_snake_case(name)
    if identifier in _RUST_KEYWORDS:
        return f"r#{identifier}"
    return identifier


def build_request_payload(operation_name: str, param_names: Sequence[str]) -> str:
    """Return the `json!` literal sent for an operation.

    No parameters map the variant to `{}`, one parameter maps it to the bare
    value and several map it to a tuple in declaration order.
    """
    variant = to_pascal_case(operation_name)
    if not param_names:
        return f'json!({{"{variant}": {{}}}})'
    if len(param_names) == 1:
        return f'json!({{"{variant}": {param_names[0]}}})'
    return f'json!({{"{variant}": ({", ".join(param_names)})}})'


class StubGenerator:
    """Turns signature records into Rust functions calling `send`."""

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        strict_types: bool = False,
        templates_dir: Path | None = None,
    ) -> None:
        self.timeout = timeout
        self.strict_types = strict_types
        self._env = create_environment(templates_dir)
        self.logger = get_logger("stubs")

    def plan(self, signature: SignatureStruct) -> StubPlan:
        fields = signature.split_fields()

        target_type: str | None = None
        if fields.target is not None:
            target_type = "&str" if fields.target.wit_type == "string" else "&Address"
        elif signature.call_kind != HTTP_CALL_KIND:
            self.logger.warning(
                "Signature %s has no target field; defaulting to an Address target",
                signature.operation_name,
            )
            target_type = "&Address"

        return_type = UNIT_TYPE
        if fields.returning is not None:
            return_type = map_type(fields.returning.wit_type, strict=self.strict_types)

        params = [
            (rust_identifier(item.name), map_type(item.wit_type, strict=self.strict_types))
            for item in fields.params
        ]

        return StubPlan(
            operation_name=signature.operation_name,
            call_kind=signature.call_kind,
            function_name=(
                f"{to_snake_case(signature.operation_name)}_{to_snake_case(signature.call_kind)}_rpc"
            ),
            target_type=target_type,
            params=params,
            return_type=return_type,
        )

    def render(self, plan: StubPlan) -> str:
        context = {
            "operation_name": plan.operation_name,
            "call_kind": plan.call_kind,
            "function_name": plan.function_name,
            "return_type": plan.return_type,
        }
        if plan.is_http:
            # Parameters are unused in the commented-out template.
            template = self._env.get_template("http_stub.rs.j2")
            return template.render(
                params=plan.signature_params(prefix="_"),
                default_value=default_value(plan.return_type),
                **context,
            )

        template = self._env.get_template("rpc_stub.rs.j2")
        return template.render(
            params=plan.signature_params(),
            request=build_request_payload(plan.operation_name, plan.param_names),
            timeout=self.timeout,
            **context,
        )

    def generate(self, signature: SignatureStruct) -> str:
        """Return the Rust source for one signature."""
        return self.render(self.plan(signature))


__all__ = [
    "DEFAULT_TIMEOUT",
    "HTTP_CALL_KIND",
    "StubGenerator",
    "StubPlan",
    "build_request_payload",
    "rust_identifier",
]
