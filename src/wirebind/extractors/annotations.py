from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from wirebind.domain.records import ImportRef, RoutingRecord, ShapeRef
from wirebind.domain.typeexpr import Ident, Nullable, Qualified, parse_type_expr
from wirebind.errors import ScanError

MARKER = "wirebind:api"

# `# wirebind:api method=POST path=/user [manual_func=upload]`
_ANNOTATION_RE = re.compile(
    r"^wirebind:api\s+method=([A-Z]+)\s+path=(\S+)(?:\s+manual_func=([A-Za-z_][A-Za-z0-9_]*))?\s*$"
)

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


@dataclass(frozen=True)
class Annotation:
    verb: str
    path: str
    manual_func: str
    line: int


def parse_annotation(comment: str, line: int = 0, file_path: str = "") -> Optional[Annotation]:
    """
    Parse one comment body (text after '#').
    Returns None when the comment is not an annotation; raises when it is a
    malformed one.
    """
    text = comment.strip()
    if not text.startswith(MARKER):
        return None
    m = _ANNOTATION_RE.match(text)
    if m is None:
        raise ScanError(
            f"malformed annotation {text!r}, want '{MARKER} method=<VERB> path=<path> [manual_func=<name>]'",
            file_path=file_path,
            line=line,
        )
    return Annotation(verb=m.group(1), path=m.group(2), manual_func=m.group(3) or "", line=line)


def extract_operations(
    tree: ast.AST,
    source: str,
    module: str,
    imports: dict[str, ImportRef],
    file_path: str = "",
    strict: bool = False,
) -> list[RoutingRecord]:
    """
    Annotated methods of a parsed module as RoutingRecords.

    The annotation must sit in the comment block directly above the method
    (above its decorators). Placement and signature violations raise ScanError.
    """
    lines = source.splitlines()
    records: list[RoutingRecord] = []

    for node, owner in _iter_function_defs(tree, None):
        ann = _annotation_for(node, lines, file_path)
        if ann is None:
            continue

        if owner is None or _is_static(node):
            raise ScanError(
                f"{MARKER} must be on a method with a receiver",
                file_path=file_path,
                line=node.lineno,
                name=node.name,
            )

        request_node = _request_param(node, file_path)
        request = _request_ref(request_node, node, file_path)
        response, is_bytes = _response_ref(node, file_path, strict)

        records.append(
            RoutingRecord(
                owner=owner.name,
                module=module,
                operation=node.name,
                verb=ann.verb,
                path=ann.path,
                request=request,
                response=response,
                response_is_bytes=is_bytes,
                manual_func=ann.manual_func,
                imports=dict(imports),
                is_async=isinstance(node, ast.AsyncFunctionDef),
                file_path=file_path,
                line=node.lineno,
            )
        )

    # stable ordering: by declaration line
    records.sort(key=lambda r: (r.line, r.operation))
    return records


def _iter_function_defs(
    node: ast.AST, owner: Optional[ast.ClassDef]
) -> Iterable[tuple[FunctionNode, Optional[ast.ClassDef]]]:
    for child in ast.iter_child_nodes(node):
        if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
            yield child, owner
            # nested functions have no receiver
            yield from _iter_function_defs(child, None)
        elif isinstance(child, ast.ClassDef):
            yield from _iter_function_defs(child, child)
        elif isinstance(child, ast.stmt):
            yield from _iter_function_defs(child, owner)


def _annotation_for(node: FunctionNode, lines: list[str], file_path: str) -> Optional[Annotation]:
    start = min([node.lineno] + [d.lineno for d in node.decorator_list])
    idx = start - 2  # 0-based index of the line above
    found: Optional[Annotation] = None
    while idx >= 0:
        text = lines[idx].strip()
        if not text.startswith("#"):
            break
        ann = parse_annotation(text[1:], line=idx + 1, file_path=file_path)
        if ann is not None and found is None:
            found = ann
        idx -= 1
    return found


def _is_static(node: FunctionNode) -> bool:
    for dec in node.decorator_list:
        if isinstance(dec, ast.Name) and dec.id == "staticmethod":
            return True
        if isinstance(dec, ast.Attribute) and dec.attr == "staticmethod":
            return True
    return False


def _request_param(node: FunctionNode, file_path: str) -> ast.arg:
    args = node.args
    positional = list(args.posonlyargs) + list(args.args)
    if not positional:
        raise ScanError(
            "method must take a receiver (self)",
            file_path=file_path,
            line=node.lineno,
            name=node.name,
        )

    params = positional[1:] + list(args.kwonlyargs)
    if args.vararg is not None:
        params.append(args.vararg)
    if args.kwarg is not None:
        params.append(args.kwarg)

    if len(params) != 1:
        raise ScanError(
            f"must have exactly ONE input param (the request shape), got {len(params)}",
            file_path=file_path,
            line=node.lineno,
            name=node.name,
        )
    if args.vararg is not None or args.kwarg is not None:
        raise ScanError(
            "request param must be a plain parameter, not *args/**kwargs",
            file_path=file_path,
            line=node.lineno,
            name=node.name,
        )
    return params[0]


def _request_ref(param: ast.arg, node: FunctionNode, file_path: str) -> ShapeRef:
    if param.annotation is None:
        raise ScanError(
            f"request param {param.arg!r} must be annotated with its shape",
            file_path=file_path,
            line=node.lineno,
            name=node.name,
        )
    ref = _shape_ref(parse_type_expr(param.annotation))
    if ref is None:
        raise ScanError(
            f"request param {param.arg!r} must reference a class (Name or alias.Name), "
            f"got {ast.unparse(param.annotation)!r}",
            file_path=file_path,
            line=node.lineno,
            name=node.name,
        )
    return ref


def _response_ref(
    node: FunctionNode, file_path: str, strict: bool
) -> tuple[Optional[ShapeRef], bool]:
    if node.returns is None:
        if strict:
            raise ScanError(
                "must declare a return annotation (strict mode)",
                file_path=file_path,
                line=node.lineno,
                name=node.name,
            )
        return None, False

    expr = parse_type_expr(node.returns)
    if isinstance(expr, Ident) and expr.name == "bytes":
        return None, True
    if isinstance(expr, Ident) and expr.name == "None":
        return None, False
    return _shape_ref(expr), False


def _shape_ref(expr) -> Optional[ShapeRef]:
    pointer = False
    if isinstance(expr, Nullable):
        pointer = True
        expr = expr.inner
    if isinstance(expr, Ident):
        return ShapeRef(name=expr.name, pointer=pointer)
    if isinstance(expr, Qualified):
        return ShapeRef(name=expr.name, qualifier=expr.alias, pointer=pointer)
    return None
