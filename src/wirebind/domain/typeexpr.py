from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")

VALUE_KIND_STRING = "string"
VALUE_KIND_INTEGER = "integer"
VALUE_KIND_FLOAT = "float"
VALUE_KIND_BOOLEAN = "boolean"

_SCALAR_KINDS = {
    "int": VALUE_KIND_INTEGER,
    "float": VALUE_KIND_FLOAT,
    "bool": VALUE_KIND_BOOLEAN,
}

_SCALAR_SCHEMAS: dict[str, dict[str, Any]] = {
    "str": {"type": "string"},
    "bool": {"type": "boolean"},
    "int": {"type": "integer"},
    "float": {"type": "number", "format": "double"},
    "bytes": {"type": "string", "format": "binary"},
    "datetime": {"type": "string", "format": "date-time"},
    "date": {"type": "string", "format": "date"},
}

_ARRAY_BASES = {"list", "List", "Sequence", "set", "Set", "frozenset", "FrozenSet", "Iterable", "tuple", "Tuple"}
_MAP_BASES = {"dict", "Dict", "Mapping", "MutableMapping"}
_OPTIONAL_BASES = {"Optional"}


@dataclass(frozen=True)
class Ident:
    name: str

    def accept(self, visitor: "TypeExprVisitor[T]") -> T:
        return visitor.visit_ident(self)


@dataclass(frozen=True)
class Nullable:
    """Optional[X] / X | None: the value-or-absent wrapper around a type."""

    inner: "TypeExpr"

    def accept(self, visitor: "TypeExprVisitor[T]") -> T:
        return visitor.visit_nullable(self)


@dataclass(frozen=True)
class Qualified:
    alias: str  # import alias, may be dotted for `import a.b`
    name: str

    def accept(self, visitor: "TypeExprVisitor[T]") -> T:
        return visitor.visit_qualified(self)


@dataclass(frozen=True)
class ArrayOf:
    item: "TypeExpr"

    def accept(self, visitor: "TypeExprVisitor[T]") -> T:
        return visitor.visit_array(self)


@dataclass(frozen=True)
class MapOf:
    key: "TypeExpr"
    value: "TypeExpr"

    def accept(self, visitor: "TypeExprVisitor[T]") -> T:
        return visitor.visit_map(self)


@dataclass(frozen=True)
class Opaque:
    text: str

    def accept(self, visitor: "TypeExprVisitor[T]") -> T:
        return visitor.visit_opaque(self)


TypeExpr = Union[Ident, Nullable, Qualified, ArrayOf, MapOf, Opaque]


class TypeExprVisitor(Generic[T]):
    def visit(self, expr: TypeExpr) -> T:
        return expr.accept(self)

    def visit_ident(self, expr: Ident) -> T:
        raise NotImplementedError

    def visit_nullable(self, expr: Nullable) -> T:
        raise NotImplementedError

    def visit_qualified(self, expr: Qualified) -> T:
        raise NotImplementedError

    def visit_array(self, expr: ArrayOf) -> T:
        raise NotImplementedError

    def visit_map(self, expr: MapOf) -> T:
        raise NotImplementedError

    def visit_opaque(self, expr: Opaque) -> T:
        raise NotImplementedError


@dataclass(frozen=True)
class TypeDescription:
    kind: str
    schema: dict[str, Any] = field(default_factory=dict)
    ref: Optional[str] = None  # component name of a referenced shape


class TypeDescriber(TypeExprVisitor[TypeDescription]):
    """
    One pass over a type expression giving its value kind, its schema fragment
    and the component it references (if any).

    Only unqualified scalar identifiers get a non-string kind. `resolve_ref`
    maps a plain identifier to a component name when it names a known shape.
    """

    def __init__(self, resolve_ref: Optional[Callable[[str], Optional[str]]] = None) -> None:
        self._resolve_ref = resolve_ref

    def visit_ident(self, expr: Ident) -> TypeDescription:
        kind = _SCALAR_KINDS.get(expr.name, VALUE_KIND_STRING)
        if expr.name in _SCALAR_SCHEMAS:
            return TypeDescription(kind, dict(_SCALAR_SCHEMAS[expr.name]))
        if self._resolve_ref is not None:
            ref = self._resolve_ref(expr.name)
            if ref:
                return TypeDescription(kind, {"$ref": f"#/components/schemas/{ref}"}, ref)
        return TypeDescription(kind, {"type": "string"})

    def visit_nullable(self, expr: Nullable) -> TypeDescription:
        inner = self.visit(expr.inner)
        return TypeDescription(VALUE_KIND_STRING, inner.schema, inner.ref)

    def visit_qualified(self, expr: Qualified) -> TypeDescription:
        # foreign types are opaque to the schema
        return TypeDescription(VALUE_KIND_STRING, {"type": "string"})

    def visit_array(self, expr: ArrayOf) -> TypeDescription:
        item = self.visit(expr.item)
        return TypeDescription(VALUE_KIND_STRING, {"type": "array", "items": item.schema}, item.ref)

    def visit_map(self, expr: MapOf) -> TypeDescription:
        value = self.visit(expr.value)
        return TypeDescription(
            VALUE_KIND_STRING,
            {"type": "object", "additionalProperties": value.schema},
            value.ref,
        )

    def visit_opaque(self, expr: Opaque) -> TypeDescription:
        return TypeDescription(VALUE_KIND_STRING, {"type": "string"})


def parse_type_expr(node: Optional[ast.AST]) -> TypeExpr:
    """Turn an annotation node into one of the TypeExpr variants. Never raises."""
    if node is None:
        return Opaque("")

    # forward reference: "Model"
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            inner = ast.parse(node.value.strip(), mode="eval").body
        except SyntaxError:
            return Opaque(node.value)
        return parse_type_expr(inner)

    if isinstance(node, ast.Constant) and node.value is None:
        return Ident("None")

    if isinstance(node, ast.Name):
        return Ident(node.id)

    if isinstance(node, ast.Attribute):
        alias = _dotted(node.value)
        if alias is None:
            return Opaque(ast.unparse(node))
        return Qualified(alias, node.attr)

    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        members = _union_members(node)
        return _from_union(members, node)

    if isinstance(node, ast.Subscript):
        return _parse_subscript(node)

    return Opaque(ast.unparse(node))


def annotated_parts(node: ast.AST) -> tuple[ast.AST, list[ast.AST]]:
    """
    Split Annotated[T, m1, m2] into (T, [m1, m2]).
    Anything else is returned as (node, []).
    """
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            node = ast.parse(node.value.strip(), mode="eval").body
        except SyntaxError:
            return node, []
    if isinstance(node, ast.Subscript) and _base_name(node.value) == "Annotated":
        elts = _subscript_elts(node)
        if elts:
            return elts[0], elts[1:]
    return node, []


def is_class_var(node: Optional[ast.AST]) -> bool:
    if node is None:
        return False
    if isinstance(node, ast.Subscript):
        return _base_name(node.value) == "ClassVar"
    return _base_name(node) == "ClassVar"


def _parse_subscript(node: ast.Subscript) -> TypeExpr:
    base = _base_name(node.value)
    elts = _subscript_elts(node)

    if base == "Annotated" and elts:
        return parse_type_expr(elts[0])

    if base in _OPTIONAL_BASES and len(elts) == 1:
        return Nullable(parse_type_expr(elts[0]))

    if base == "Union":
        return _from_union(elts, node)

    if base in _ARRAY_BASES and elts:
        # tuple[X, ...] and tuple[X] both read as "array of X"
        return ArrayOf(parse_type_expr(elts[0]))

    if base in _MAP_BASES and len(elts) == 2:
        return MapOf(parse_type_expr(elts[0]), parse_type_expr(elts[1]))

    return Opaque(ast.unparse(node))


def _from_union(members: list[ast.AST], node: ast.AST) -> TypeExpr:
    non_none = [m for m in members if not (isinstance(m, ast.Constant) and m.value is None)]
    if len(non_none) == 1 and len(members) == 2:
        return Nullable(parse_type_expr(non_none[0]))
    return Opaque(ast.unparse(node))


def _union_members(node: ast.AST) -> list[ast.AST]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _union_members(node.left) + _union_members(node.right)
    return [node]


def _subscript_elts(node: ast.Subscript) -> list[ast.AST]:
    sl = node.slice
    if isinstance(sl, ast.Tuple):
        return list(sl.elts)
    return [sl]


def _base_name(node: ast.AST) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ""


def _dotted(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        head = _dotted(node.value)
        return f"{head}.{node.attr}" if head else None
    return None
