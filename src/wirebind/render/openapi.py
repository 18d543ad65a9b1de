from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from wirebind.binding.classify import default_json_value
from wirebind.binding.resolver import BindingResolver
from wirebind.domain.models import (
    MethodEntry,
    OpenAPIDocument,
    OpenAPIMeta,
    ParamEntry,
    PathEntry,
    SchemaEntry,
    Tag,
)
from wirebind.domain.records import BINDING_PATH, BINDING_QUERY, FieldBind, RoutingRecord, StructShape
from wirebind.domain.typeexpr import (
    VALUE_KIND_BOOLEAN,
    VALUE_KIND_FLOAT,
    VALUE_KIND_INTEGER,
    VALUE_KIND_STRING,
    TypeDescriber,
)
from wirebind.log import get_logger
from wirebind.registry.types import TypeRegistry
from wirebind.render.paths import base_tag, to_openapi_path

logger = get_logger(__name__)

VERB_ORDER = ("get", "post", "put", "patch", "delete", "head", "options")

_KIND_SCHEMA_TYPE = {
    VALUE_KIND_STRING: "string",
    VALUE_KIND_INTEGER: "integer",
    VALUE_KIND_FLOAT: "number",
    VALUE_KIND_BOOLEAN: "boolean",
}


def load_meta(path: Optional[Path]) -> OpenAPIMeta:
    """
    OpenAPI version and info block from the metadata file. A missing or
    invalid file is only a warning; defaults fill whatever it does not set.
    """
    if path is None:
        return OpenAPIMeta()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError:
        logger.warning("meta_file_missing", file=str(path))
        return OpenAPIMeta()
    try:
        return OpenAPIMeta.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning("meta_file_invalid", file=str(path), error=str(e))
        return OpenAPIMeta()


def param_entry(b: FieldBind) -> ParamEntry:
    # only query accessors are typed; header/cookie/path arrive as strings
    if b.kind == BINDING_QUERY:
        schema = {"type": _KIND_SCHEMA_TYPE.get(b.value_kind, "string")}
        if b.has_default:
            schema["default"] = default_json_value(b.value_kind, b.default_raw)
    else:
        schema = {"type": "string"}
        if b.has_default and b.kind != BINDING_PATH:
            schema["default"] = b.default_raw
    return ParamEntry(
        name=b.key,
        location=b.kind,
        required=b.kind == BINDING_PATH,
        schema_=schema,
    )


class SchemaBuilder:
    """
    Component schemas for the shapes used as request bodies and responses.

    Properties are the non-bound, exported fields (composed fields included).
    Shapes referenced from fields are added recursively, each once.
    """

    def __init__(self, registry: TypeRegistry, resolver: BindingResolver) -> None:
        self.registry = registry
        self.resolver = resolver
        self._names: dict[tuple[str, str], str] = {}
        self._taken: set[str] = set()
        self._entries: dict[str, SchemaEntry] = {}

    def component_for(self, shape: StructShape) -> str:
        name = self._names.get(shape.identity)
        if name is not None:
            return name

        name = shape.name
        if name in self._taken:
            name = shape.qualname.replace(".", "_")
        self._names[shape.identity] = name
        self._taken.add(name)

        # registered before walking fields so self-references terminate
        entry = SchemaEntry(name=name)
        self._entries[name] = entry
        for owner, f in self.resolver.flatten_fields(shape):
            if f.binding is not None or not f.exported:
                continue
            describer = TypeDescriber(resolve_ref=lambda ident, o=owner: self._ref_from(o, ident))
            entry.properties[f.name] = describer.visit(f.type_expr).schema
        return name

    def entries(self) -> list[SchemaEntry]:
        return [self._entries[k] for k in sorted(self._entries)]

    def _ref_from(self, owner: StructShape, ident: str) -> Optional[str]:
        target = self.registry.lookup_local(owner.module, ident)
        if target is None:
            return None
        return self.component_for(target)


def _verb_key(method: str) -> tuple[int, str]:
    if method in VERB_ORDER:
        return (VERB_ORDER.index(method), method)
    return (len(VERB_ORDER), method)


def build_openapi(
    records: Sequence[RoutingRecord],
    binds_per_record: Sequence[Sequence[FieldBind]],
    request_shapes: Sequence[StructShape],
    registry: TypeRegistry,
    resolver: BindingResolver,
    meta: Optional[OpenAPIMeta] = None,
) -> OpenAPIDocument:
    """
    Deterministic OpenAPI model: paths sorted by path string, methods by
    verb order, schemas and tags by name.
    """
    builder = SchemaBuilder(registry, resolver)
    by_path: dict[str, PathEntry] = {}
    tags: set[str] = set()

    for record, binds, shape in zip(records, binds_per_record, request_shapes):
        oas_path = to_openapi_path(record.path)
        tag = base_tag(oas_path)
        if tag:
            tags.add(tag)

        entry = MethodEntry(
            method=record.verb.lower(),
            summary=record.operation,
            tags=[tag] if tag else [],
            parameters=[param_entry(b) for b in binds],
        )
        if record.parses_body:
            entry.request_body_ref = builder.component_for(shape)
        if record.response_is_bytes:
            entry.response_is_binary = True
        elif record.response is not None:
            resp = registry.resolve_ref(record.module, record.response, record.imports or None)
            if resp is not None:
                entry.response_ref = builder.component_for(resp)

        by_path.setdefault(oas_path, PathEntry(path=oas_path)).methods.append(entry)

    paths = [by_path[p] for p in sorted(by_path)]
    for p in paths:
        p.methods.sort(key=lambda m: _verb_key(m.method))

    return OpenAPIDocument(
        meta=meta or OpenAPIMeta(),
        tags=[Tag(name=t) for t in sorted(tags)],
        paths=paths,
        schemas=builder.entries(),
    )
