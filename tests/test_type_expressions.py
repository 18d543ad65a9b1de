import ast

from wirebind.binding.classify import classify
from wirebind.domain.typeexpr import (
    ArrayOf,
    Ident,
    MapOf,
    Nullable,
    Opaque,
    Qualified,
    TypeDescriber,
    annotated_parts,
    is_class_var,
    parse_type_expr,
)


def expr(src: str):
    return parse_type_expr(ast.parse(src, mode="eval").body)


def test_parse_type_expr_variants():
    assert expr("int") == Ident("int")
    assert expr("Optional[int]") == Nullable(Ident("int"))
    assert expr("int | None") == Nullable(Ident("int"))
    assert expr("Union[None, User]") == Nullable(Ident("User"))
    assert expr("models.User") == Qualified("models", "User")
    assert expr("app.models.User") == Qualified("app.models", "User")
    assert expr("list[int]") == ArrayOf(Ident("int"))
    assert expr("tuple[str, ...]") == ArrayOf(Ident("str"))
    assert expr("dict[str, float]") == MapOf(Ident("str"), Ident("float"))
    assert expr("'User'") == Ident("User")
    assert expr("Annotated[int, Query('page')]") == Ident("int")


def test_parse_type_expr_falls_back_to_opaque():
    assert isinstance(expr("Callable[[int], str]"), Opaque)
    assert isinstance(expr("int | str"), Opaque)
    assert isinstance(expr("Literal['a', 'b']"), Opaque)


def test_classify_only_bare_scalars_are_typed():
    assert classify(expr("int")) == "integer"
    assert classify(expr("float")) == "float"
    assert classify(expr("bool")) == "boolean"
    assert classify(expr("str")) == "string"

    # no specialized accessor for wrappers, composites or foreign names
    assert classify(expr("Optional[int]")) == "string"
    assert classify(expr("list[int]")) == "string"
    assert classify(expr("numpy.int64")) == "string"
    assert classify(expr("User")) == "string"


def test_annotated_parts_splits_metadata():
    node = ast.parse("Annotated[int, Query('limit'), Header('X')]", mode="eval").body
    declared, meta = annotated_parts(node)
    assert ast.unparse(declared) == "int"
    assert [ast.unparse(m) for m in meta] == ["Query('limit')", "Header('X')"]

    plain = ast.parse("str", mode="eval").body
    assert annotated_parts(plain) == (plain, [])


def test_is_class_var():
    assert is_class_var(ast.parse("ClassVar[int]", mode="eval").body)
    assert is_class_var(ast.parse("typing.ClassVar", mode="eval").body)
    assert not is_class_var(ast.parse("int", mode="eval").body)


def test_describer_schemas():
    d = TypeDescriber()
    assert d.visit(expr("float")).schema == {"type": "number", "format": "double"}
    assert d.visit(expr("bytes")).schema == {"type": "string", "format": "binary"}
    assert d.visit(expr("list[datetime]")).schema == {
        "type": "array",
        "items": {"type": "string", "format": "date-time"},
    }
    assert d.visit(expr("dict[str, int]")).schema == {
        "type": "object",
        "additionalProperties": {"type": "integer"},
    }
    assert d.visit(expr("other.Thing")).schema == {"type": "string"}
    assert d.visit(expr("Unknown")).schema == {"type": "string"}


def test_describer_references_known_shapes():
    d = TypeDescriber(resolve_ref=lambda name: "User" if name == "User" else None)

    out = d.visit(expr("Optional[list[User]]"))
    assert out.ref == "User"
    assert out.schema == {"type": "array", "items": {"$ref": "#/components/schemas/User"}}
    assert out.kind == "string"
