from __future__ import annotations

import ast
from typing import Optional

from wirebind.domain.records import ImportRef


def collect_imports(tree: ast.AST, module: str, is_package: bool = False) -> dict[str, ImportRef]:
    """
    alias -> ImportRef for every import statement at module level.

      import a.b          -> {"a": a, "a.b": a.b}
      import a.b as c     -> {"c": a.b}
      from a import b     -> {"b": (a, b)}
      from .x import Y    -> {"Y": (<pkg>.x, Y)}

    Imports inside functions are ignored; they are not visible to class bodies.
    """
    out: dict[str, ImportRef] = {}
    for node in _module_level(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if alias.asname:
                    out[alias.asname] = ImportRef(alias.name)
                    continue
                parts = alias.name.split(".")
                for i in range(1, len(parts) + 1):
                    dotted = ".".join(parts[:i])
                    out[dotted] = ImportRef(dotted)
        elif isinstance(node, ast.ImportFrom):
            base = resolve_relative(module, is_package, node.level, node.module)
            if base is None:
                continue
            for alias in node.names:
                if alias.name == "*":
                    continue
                out[alias.asname or alias.name] = ImportRef(base, alias.name)
    return out


def resolve_relative(
    module: str, is_package: bool, level: int, target: Optional[str]
) -> Optional[str]:
    if level == 0:
        return target
    parts = module.split(".") if module else []
    if not is_package:
        parts = parts[:-1]
    drop = level - 1
    if drop > len(parts):
        return None
    if drop:
        parts = parts[:-drop]
    if target:
        parts.append(target)
    return ".".join(parts) or None


def _module_level(tree: ast.AST):
    # statements at module level, including inside if/try blocks (TYPE_CHECKING etc.)
    stack = list(getattr(tree, "body", []))
    while stack:
        node = stack.pop(0)
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            continue
        yield node
        for attr in ("body", "orelse", "finalbody"):
            stack.extend(getattr(node, attr, []) or [])
        for handler in getattr(node, "handlers", []) or []:
            stack.extend(handler.body)
