from __future__ import annotations

import ast
from typing import Optional

from wirebind.domain.records import BINDING_MARKERS, BindingAnnotation, ShapeField, StructShape
from wirebind.domain.typeexpr import annotated_parts, is_class_var, parse_type_expr
from wirebind.log import get_logger

logger = get_logger(__name__)


def extract_shapes(tree: ast.AST, module: str, file_path: str = "") -> list[StructShape]:
    """
    Every top-level class of a module as a StructShape.

    Fields are the annotated class attributes (`name: T` / `name: T = default`),
    ClassVar excluded. Bases are kept as type expressions; the resolver decides
    which of them are shapes.
    """
    shapes: list[StructShape] = []
    for node in getattr(tree, "body", []):
        if not isinstance(node, ast.ClassDef):
            continue
        fields = tuple(
            f for f in (_field_of(stmt, node.name, file_path) for stmt in node.body) if f is not None
        )
        bases = tuple(parse_type_expr(b) for b in node.bases)
        shapes.append(
            StructShape(
                name=node.name,
                module=module,
                fields=fields,
                bases=bases,
                file_path=file_path,
                line=node.lineno,
            )
        )
    return shapes


def _field_of(stmt: ast.stmt, class_name: str, file_path: str) -> Optional[ShapeField]:
    if not isinstance(stmt, ast.AnnAssign) or not isinstance(stmt.target, ast.Name):
        return None
    if is_class_var(stmt.annotation):
        return None

    name = stmt.target.id
    declared, metadata = annotated_parts(stmt.annotation)

    binding: Optional[BindingAnnotation] = None
    for meta in metadata:
        found = _binding_marker(meta)
        if found is None:
            continue
        if binding is not None:
            logger.warning(
                "extra_binding_ignored",
                field=f"{class_name}.{name}",
                kept=binding.kind,
                ignored=found.kind,
                location=f"{file_path}:{stmt.lineno}",
            )
            continue
        binding = found

    return ShapeField(
        name=name,
        type_expr=parse_type_expr(declared),
        binding=binding,
        line=stmt.lineno,
    )


def _binding_marker(node: ast.AST) -> Optional[BindingAnnotation]:
    # Query("limit,default=10") / wb.Query("limit")
    if not isinstance(node, ast.Call):
        return None
    func = node.func
    if isinstance(func, ast.Name):
        marker = func.id
    elif isinstance(func, ast.Attribute):
        marker = func.attr
    else:
        return None
    kind = BINDING_MARKERS.get(marker)
    if kind is None or not node.args:
        return None
    arg = node.args[0]
    if not (isinstance(arg, ast.Constant) and isinstance(arg.value, str)):
        return None
    return BindingAnnotation(kind=kind, value=arg.value)
