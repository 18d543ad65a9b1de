"""Helpers imported by generated handler modules.

Accessors return the declared default when a value is absent or does not
parse, and the zero value of the accessor's type when no default is given.
"""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from typing import Any, Awaitable, Callable, TypeVar

from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

T = TypeVar("T")

_TRUE = {"1", "t", "true"}
_FALSE = {"0", "f", "false"}


def path_param(request: Request, key: str) -> str:
    return str(request.path_params.get(key, ""))


def header(request: Request, key: str, default: str = "") -> str:
    value = request.headers.get(key)
    return value if value else default


def cookie(request: Request, key: str, default: str = "") -> str:
    value = request.cookies.get(key)
    return value if value else default


def query(request: Request, key: str, default: str = "") -> str:
    value = request.query_params.get(key)
    return value if value else default


def query_int(request: Request, key: str, default: int = 0) -> int:
    value = request.query_params.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def query_float(request: Request, key: str, default: float = 0.0) -> float:
    value = request.query_params.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def query_bool(request: Request, key: str, default: bool = False) -> bool:
    value = (request.query_params.get(key) or "").strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def new_request(shape: type[T]) -> T:
    """
    Empty request object without calling __init__, so shapes with required
    constructor arguments still work. Dataclass defaults are applied.
    """
    if hasattr(shape, "model_construct"):
        return shape.model_construct()
    obj = shape.__new__(shape)
    if dataclasses.is_dataclass(shape):
        for f in dataclasses.fields(shape):
            if f.default is not dataclasses.MISSING:
                object.__setattr__(obj, f.name, f.default)
            elif f.default_factory is not dataclasses.MISSING:
                object.__setattr__(obj, f.name, f.default_factory())
    return obj


def decode_body(shape: type[T], body: bytes) -> T:
    """Request object from a JSON body; bound fields are overwritten afterwards."""
    if not body:
        return new_request(shape)
    try:
        data = json.loads(body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"invalid JSON body: {e}") from e
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="JSON body must be an object")

    if hasattr(shape, "model_validate"):
        try:
            return shape.model_validate(data)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

    obj = new_request(shape)
    known = _field_names(shape)
    for key, value in data.items():
        if key in known:
            object.__setattr__(obj, key, value)
    return obj


def write_json(result: Any) -> Response:
    return JSONResponse(to_jsonable(result))


def write_bytes(result: bytes) -> Response:
    return Response(content=bytes(result), media_type="application/octet-stream")


def openapi_endpoint(document: str) -> Callable[[Request], Awaitable[Response]]:
    async def endpoint(request: Request) -> Response:
        return Response(content=document, media_type="application/json")

    return endpoint


def to_jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    if hasattr(value, "__dict__"):
        return {k: to_jsonable(v) for k, v in vars(value).items() if not k.startswith("_")}
    return str(value)


def _field_names(shape: type) -> set[str]:
    names: set[str] = set()
    for klass in shape.__mro__:
        names.update(getattr(klass, "__annotations__", {}))
    return names
