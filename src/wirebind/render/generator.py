from __future__ import annotations

from typing import Optional, Sequence

from wirebind.binding.resolver import BindingResolver
from wirebind.domain.models import OpenAPIMeta
from wirebind.domain.records import FieldBind, RoutingRecord, StructShape
from wirebind.registry.types import TypeRegistry
from wirebind.render.engine import TemplateRenderer, format_python, normalize_json
from wirebind.render.handlers import build_handler_module
from wirebind.render.openapi import build_openapi

HANDLER_TEMPLATE = "handlers.py.j2"
OPENAPI_TEMPLATE = "openapi.json.j2"


def generate(
    records: Sequence[RoutingRecord],
    binds_per_record: Sequence[Sequence[FieldBind]],
    request_shapes: Sequence[StructShape],
    registry: TypeRegistry,
    resolver: BindingResolver,
    renderer: Optional[TemplateRenderer] = None,
    meta: Optional[OpenAPIMeta] = None,
    serve_openapi: bool = True,
) -> tuple[str, str]:
    """
    Render (handler module source, OpenAPI document) from one metadata model.
    The schema is rendered first so the handler module can embed it.
    """
    renderer = renderer or TemplateRenderer()

    doc = build_openapi(records, binds_per_record, request_shapes, registry, resolver, meta)
    info = doc.meta.info.model_dump(by_alias=True, exclude_none=True)
    schema_text = normalize_json(
        renderer.render(OPENAPI_TEMPLATE, doc=doc, info=info), name=OPENAPI_TEMPLATE
    )

    module = build_handler_module(
        records,
        binds_per_record,
        request_shapes,
        openapi_json=schema_text if serve_openapi else None,
    )
    source = format_python(renderer.render(HANDLER_TEMPLATE, module=module), name=HANDLER_TEMPLATE)
    return source, schema_text
