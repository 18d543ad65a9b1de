from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from wirebind.binding.classify import default_literal
from wirebind.domain.records import (
    BINDING_COOKIE,
    BINDING_HEADER,
    BINDING_PATH,
    FieldBind,
    RoutingRecord,
    StructShape,
)
from wirebind.render.paths import snake_case, to_openapi_path

_ACCESSORS = {
    BINDING_PATH: "path_param",
    BINDING_HEADER: "header",
    BINDING_COOKIE: "cookie",
}

# names the generated build_routes() scope already uses
_RESERVED = {"request", "runtime", "req", "result", "Route", "Request", "Response"}


@dataclass(frozen=True)
class Extraction:
    target: str                     # request attribute
    accessor: str                   # runtime function name
    key: str                        # external key
    default: Optional[str] = None   # Python literal


@dataclass(frozen=True)
class ServiceParam:
    param: str          # user_service
    class_expr: str     # app.services.UserService


@dataclass(frozen=True)
class Handler:
    name: str
    verb: str
    route_path: str
    service: str
    operation: str
    shape_expr: str
    parses_body: bool
    is_async: bool
    raw_bytes: bool
    manual_func: str
    extractions: tuple[Extraction, ...] = ()


@dataclass(frozen=True)
class HandlerModule:
    imports: tuple[str, ...]
    services: tuple[ServiceParam, ...]
    handlers: tuple[Handler, ...]
    openapi_json: Optional[str] = None


def build_extractions(binds: Sequence[FieldBind]) -> list[Extraction]:
    """One extraction per binding, in binding order."""
    out: list[Extraction] = []
    for b in binds:
        if b.kind == BINDING_PATH:
            out.append(Extraction(b.name, _ACCESSORS[BINDING_PATH], b.key))
            continue
        accessor = b.query_func or _ACCESSORS.get(b.kind, "")
        if not accessor:
            continue
        default = default_literal(b.default_kind, b.default_raw) if b.has_default else None
        out.append(Extraction(b.name, accessor, b.key, default))
    return out


def build_handler_module(
    records: Sequence[RoutingRecord],
    binds_per_record: Sequence[Sequence[FieldBind]],
    request_shapes: Sequence[StructShape],
    openapi_json: Optional[str] = None,
) -> HandlerModule:
    """
    Data model for the handler template: one Handler per record, one service
    parameter per owning class, and the modules the generated code imports.
    """
    imports = {m for r, s in zip(records, request_shapes) for m in (r.module, s.module) if m}
    services: dict[tuple[str, str], ServiceParam] = {}
    # a parameter must not shadow the top-level name of an imported module
    used_params: set[str] = set(_RESERVED) | {m.split(".")[0] for m in imports}
    handler_counts: dict[str, int] = {}
    handlers: list[Handler] = []

    for record, binds, shape in zip(records, binds_per_record, request_shapes):
        owner_key = (record.module, record.owner)
        if owner_key not in services:
            services[owner_key] = ServiceParam(
                param=_unique(snake_case(record.owner), used_params),
                class_expr=f"{record.module}.{record.owner}",
            )

        # deterministic handler name collision handling
        base = f"handle_{snake_case(record.operation)}"
        handler_counts[base] = handler_counts.get(base, 0) + 1
        name = base if handler_counts[base] == 1 else f"{base}_{handler_counts[base]}"

        handlers.append(
            Handler(
                name=name,
                verb=record.verb.upper(),
                route_path=to_openapi_path(record.path),
                service=services[owner_key].param,
                operation=record.operation,
                shape_expr=shape.qualname,
                parses_body=record.parses_body,
                is_async=record.is_async,
                raw_bytes=record.response_is_bytes,
                manual_func=record.manual_func,
                extractions=tuple(build_extractions(binds)),
            )
        )

    return HandlerModule(
        imports=tuple(sorted(imports)),
        services=tuple(services.values()),
        handlers=tuple(handlers),
        openapi_json=openapi_json,
    )


def _unique(name: str, used: set[str]) -> str:
    candidate = name
    n = 1
    while candidate in used:
        n += 1
        candidate = f"{name}_{n}"
    used.add(candidate)
    return candidate
