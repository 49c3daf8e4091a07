"""WIT to Rust type translation and default-value synthesis."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..logging import get_logger
from ..naming import to_pascal_case

logger = get_logger("types")

_TOKEN_RE = re.compile(r"[<>,()]|[^\s<>,()]+")

_PRIMITIVES = {
    # Integer types
    "s8": "i8",
    "u8": "u8",
    "s16": "i16",
    "u16": "u16",
    "s32": "i32",
    "u32": "u32",
    "s64": "i64",
    "u64": "u64",
    # Spellings borrowed from Rust that show up in hand-written WIT
    "i8": "i8",
    "i16": "i16",
    "i32": "i32",
    "i64": "i64",
    # Size types
    "usize": "usize",
    "isize": "isize",
    # Floating point types
    "f32": "f32",
    "f64": "f64",
    "float32": "f32",
    "float64": "f64",
    # Other primitives
    "string": "String",
    "str": "&str",
    "char": "char",
    "bool": "bool",
    "unit": "()",
    # Ecosystem types
    "address": "WitAddress",
}

_INTEGER_TYPES = frozenset(
    {"i8", "u8", "i16", "u16", "i32", "u32", "i64", "u64", "isize", "usize"}
)
_FLOAT_TYPES = frozenset({"f32", "f64"})

_SCALAR_DEFAULTS = {
    "String": "String::new()",
    "&str": '""',
    "bool": "false",
    "char": "'\\0'",
}


class TypeSyntaxError(ValueError):
    """Raised when a type expression cannot be parsed or mapped."""


@dataclass(frozen=True)
class TypeExpr:
    """Parsed type expression: a name with optional generic arguments."""

    name: str
    args: Tuple["TypeExpr", ...] = ()
    is_tuple: bool = False


class _TypeParser:
    """Recursive-descent parser shared by the WIT and Rust type grammars.

    `name` or `name<arg, ...>`; with `allow_parens` the Rust tuple form
    `(a, b)` and the unit type `()` are accepted as well.
    """

    def __init__(self, text: str, *, allow_parens: bool) -> None:
        self._text = text
        self._tokens: List[str] = _TOKEN_RE.findall(text)
        self._position = 0
        self._allow_parens = allow_parens

    def parse(self) -> TypeExpr:
        expr = self._parse_expr()
        leftover = self._peek()
        if leftover is not None:
            raise TypeSyntaxError(f"Unexpected '{leftover}' in type expression '{self._text}'")
        return expr

    def _peek(self) -> Optional[str]:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self) -> Optional[str]:
        token = self._peek()
        if token is not None:
            self._position += 1
        return token

    def _parse_expr(self) -> TypeExpr:
        token = self._next()
        if token is None:
            raise TypeSyntaxError(f"Unexpected end of type expression '{self._text}'")
        if token == "(" and self._allow_parens:
            return TypeExpr("()", tuple(self._parse_list(")")), is_tuple=True)
        if token in {"<", ">", ",", "(", ")"}:
            raise TypeSyntaxError(f"Unexpected '{token}' in type expression '{self._text}'")
        if self._peek() == "<":
            self._next()
            args = self._parse_list(">")
            if not args:
                raise TypeSyntaxError(
                    f"Empty argument list for '{token}' in type expression '{self._text}'"
                )
            return TypeExpr(token, tuple(args))
        return TypeExpr(token)

    def _parse_list(self, closer: str) -> List[TypeExpr]:
        items: List[TypeExpr] = []
        if self._peek() == closer:
            self._next()
            return items
        while True:
            items.append(self._parse_expr())
            token = self._next()
            if token == closer:
                return items
            if token == ",":
                # Trailing comma, as in the one-element Rust tuple `(T,)`.
                if self._peek() == closer:
                    self._next()
                    return items
                continue
            found = "end of input" if token is None else f"'{token}'"
            raise TypeSyntaxError(
                f"Expected ',' or '{closer}' but found {found} in type expression '{self._text}'"
            )


def parse_type_expr(text: str) -> TypeExpr:
    """Parse a WIT type expression such as `list<tuple<string, u64>>`."""
    return _TypeParser(text, allow_parens=False).parse()


def parse_rust_type(text: str) -> TypeExpr:
    """Parse a Rust type expression as produced by :func:`map_type`."""
    return _TypeParser(text, allow_parens=True).parse()


def map_type(wit_type: str, *, strict: bool = False) -> str:
    """Translate a WIT type expression into the equivalent Rust type.

    Malformed arities fall back with a warning: `result<T>` gets `()` for the
    error type, `map<V>` gets `String` keys and a bare `list` or `option` is
    treated as a user type. With `strict` set, a :class:`TypeSyntaxError` is
    raised instead.
    """
    source = wit_type.strip()
    return _map_expr(parse_type_expr(source), strict=strict, source=source)


def default_value(rust_type: str) -> str:
    """Return an expression producing the default instance of a Rust type."""
    return _default_expr(parse_rust_type(rust_type.strip()))


def render_rust_type(expr: TypeExpr) -> str:
    """Render a parsed Rust type back to source text."""
    if expr.is_tuple:
        items = [render_rust_type(arg) for arg in expr.args]
        if len(items) == 1:
            return f"({items[0]},)"
        return f"({', '.join(items)})"
    if expr.args:
        return f"{expr.name}<{', '.join(render_rust_type(arg) for arg in expr.args)}>"
    return expr.name


def _map_expr(expr: TypeExpr, *, strict: bool, source: str) -> str:
    name, args = expr.name, expr.args

    def _inner(arg: TypeExpr) -> str:
        return _map_expr(arg, strict=strict, source=source)

    if name in ("list", "option") and not args:
        _lenient(
            strict,
            f"bare '{name}' without an element type in '{source}'; treating it as a user type",
        )
        return to_pascal_case(name)
    if name == "list":
        _expect_arity(expr, 1, source)
        return f"Vec<{_inner(args[0])}>"
    if name == "option":
        _expect_arity(expr, 1, source)
        return f"Option<{_inner(args[0])}>"
    if name == "result":
        if not args:
            return "Result<(), ()>"
        if len(args) == 1:
            _lenient(strict, f"result type without an error type in '{source}'; using ()")
            return f"Result<{_inner(args[0])}, ()>"
        _expect_arity(expr, 2, source)
        return f"Result<{_inner(args[0])}, {_inner(args[1])}>"
    if name == "tuple":
        items = [_inner(arg) for arg in args]
        if len(items) == 1:
            return f"({items[0]},)"
        return f"({', '.join(items)})"
    if name == "map":
        if len(args) == 1:
            _lenient(strict, f"map type without a key type in '{source}'; using String keys")
            return f"HashMap<String, {_inner(args[0])}>"
        _expect_arity(expr, 2, source)
        return f"HashMap<{_inner(args[0])}, {_inner(args[1])}>"

    if args:
        raise TypeSyntaxError(f"Type '{name}' does not take generic arguments in '{source}'")
    if name == "_":
        return "()"
    if name in _PRIMITIVES:
        return _PRIMITIVES[name]
    return to_pascal_case(name)


def _expect_arity(expr: TypeExpr, count: int, source: str) -> None:
    if len(expr.args) != count:
        raise TypeSyntaxError(
            f"Type '{expr.name}' expects {count} argument(s), got {len(expr.args)} in '{source}'"
        )


def _lenient(strict: bool, message: str) -> None:
    if strict:
        raise TypeSyntaxError(message)
    logger.warning(message)


def _default_expr(expr: TypeExpr) -> str:
    if expr.is_tuple:
        values = [_default_expr(arg) for arg in expr.args]
        if not values:
            return "()"
        if len(values) == 1:
            return f"({values[0]},)"
        return f"({', '.join(values)})"

    name = expr.name
    if name in _INTEGER_TYPES:
        return "0"
    if name in _FLOAT_TYPES:
        return "0.0"
    if name in _SCALAR_DEFAULTS:
        return _SCALAR_DEFAULTS[name]
    if name == "Vec":
        return "Vec::new()"
    if name == "Option":
        return "None"
    if name == "HashMap":
        return "HashMap::new()"
    if name == "Result":
        if not expr.args:
            return "Ok(())"
        return f"Ok({_default_expr(expr.args[0])})"
    if expr.args:
        generics = ", ".join(render_rust_type(arg) for arg in expr.args)
        return f"{name}::<{generics}>::default()"
    return f"{name}::default()"


__all__ = [
    "TypeExpr",
    "TypeSyntaxError",
    "default_value",
    "map_type",
    "parse_rust_type",
    "parse_type_expr",
    "render_rust_type",
]
