from __future__ import annotations

from typing import Optional

from wirebind.binding.classify import classify, is_valid_default, query_accessor
from wirebind.binding.tags import parse_binding_value
from wirebind.domain.records import (
    BINDING_PATH,
    BINDING_QUERY,
    FieldBind,
    RoutingRecord,
    ShapeField,
    StructShape,
)
from wirebind.domain.typeexpr import Ident, Nullable, Qualified, TypeExpr
from wirebind.errors import ResolutionError
from wirebind.log import get_logger
from wirebind.registry.types import TypeRegistry

logger = get_logger(__name__)


class BindingResolver:
    """
    Flattens the field bindings of a request shape, following base classes
    (composition) depth-first: the shape's own fields first, then each base in
    declaration order.

    A visited set of shape identities lives for one resolve() call, so cyclic
    composition terminates and a base reached through two paths contributes
    its bindings once. A field re-declared in a more derived class shadows the
    base field of the same name.
    """

    def __init__(self, registry: TypeRegistry) -> None:
        self.registry = registry

    def resolve(self, shape: StructShape) -> list[FieldBind]:
        return self._walk(shape, set(), set())

    def resolve_request(self, record: RoutingRecord) -> StructShape:
        shape = self.registry.resolve_ref(record.module, record.request, record.imports or None)
        if shape is None:
            raise ResolutionError(
                f"request shape {record.request.expr!r} not found",
                file_path=record.file_path,
                line=record.line,
                name=f"{record.owner}.{record.operation}",
            )
        return shape

    def resolve_embedded(self, owner: StructShape, expr: TypeExpr) -> Optional[StructShape]:
        if isinstance(expr, Ident):
            return self.registry.lookup_local(owner.module, expr.name)
        if isinstance(expr, Nullable):
            return self.resolve_embedded(owner, expr.inner)
        if isinstance(expr, Qualified):
            # the owner's imports, not the caller's
            return self.registry.lookup_qualified(owner.module, expr.alias, expr.name)
        return None

    def flatten_fields(self, shape: StructShape) -> list[tuple[StructShape, ShapeField]]:
        """(declaring shape, field) for every field including composed ones, shadowing applied."""
        out: list[tuple[StructShape, ShapeField]] = []
        seen_names: set[str] = set()
        for owner in self._composition(shape, set()):
            for f in owner.fields:
                if f.name in seen_names:
                    continue
                seen_names.add(f.name)
                out.append((owner, f))
        return out

    def _composition(self, shape: StructShape, visited: set[tuple[str, str]]) -> list[StructShape]:
        if shape.identity in visited:
            return []
        visited.add(shape.identity)
        out = [shape]
        for base in shape.bases:
            embedded = self.resolve_embedded(shape, base)
            if embedded is not None:
                out.extend(self._composition(embedded, visited))
        return out

    def _walk(
        self,
        shape: StructShape,
        visited: set[tuple[str, str]],
        claimed: set[str],
    ) -> list[FieldBind]:
        if shape.identity in visited:
            return []
        visited.add(shape.identity)

        foreign = self.registry.is_foreign(shape)
        binds: list[FieldBind] = []
        for f in shape.fields:
            if f.binding is None or f.name in claimed:
                continue
            if foreign and not f.exported:
                continue
            binds.append(self.bind_field(shape, f))

        # shared across sibling bases: the first declaration in walk order wins
        claimed.update(f.name for f in shape.fields)
        for base in shape.bases:
            embedded = self.resolve_embedded(shape, base)
            if embedded is None:
                logger.debug("embedded_unresolved", owner=shape.qualname, base=repr(base))
                continue
            binds.extend(self._walk(embedded, visited, claimed))
        return binds

    def bind_field(self, shape: StructShape, f: ShapeField) -> FieldBind:
        if f.binding is None:
            raise ValueError(f"field {shape.qualname}.{f.name} has no binding marker")
        kind = f.binding.kind
        key, options = parse_binding_value(f.binding.value)
        value_kind = classify(f.type_expr)

        bind = FieldBind(
            name=f.name,
            kind=kind,
            key=key,
            value_kind=value_kind,
            query_func=query_accessor(value_kind) if kind == BINDING_QUERY else "",
        )

        raw = options.get("default")
        if raw is None or kind == BINDING_PATH:
            # path segments are always required
            return bind
        if not is_valid_default(bind.default_kind, raw):
            logger.warning(
                "default_dropped",
                field=f"{shape.qualname}.{f.name}",
                kind=bind.default_kind,
                default=raw,
                location=f"{shape.file_path}:{f.line}",
            )
            return bind
        return FieldBind(
            name=bind.name,
            kind=bind.kind,
            key=bind.key,
            default_raw=raw,
            has_default=True,
            value_kind=bind.value_kind,
            query_func=bind.query_func,
        )
