from __future__ import annotations

import json
import math
import re
from typing import Any, Optional

from wirebind.domain.typeexpr import (
    VALUE_KIND_BOOLEAN,
    VALUE_KIND_FLOAT,
    VALUE_KIND_INTEGER,
    VALUE_KIND_STRING,
    TypeDescriber,
    TypeExpr,
)

QUERY_ACCESSORS = {
    VALUE_KIND_INTEGER: "query_int",
    VALUE_KIND_FLOAT: "query_float",
    VALUE_KIND_BOOLEAN: "query_bool",
    VALUE_KIND_STRING: "query",
}

_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_FLOAT_RE = re.compile(r"^[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?$")

_describer = TypeDescriber()


def classify(type_expr: TypeExpr) -> str:
    """
    Value kind of a declared field type.

    Only bare `int`, `float` and `bool` are non-string. A string result means
    "no specialized accessor", not "declared as str".
    """
    return _describer.visit(type_expr).kind


def query_accessor(kind: str) -> str:
    return QUERY_ACCESSORS.get(kind, QUERY_ACCESSORS[VALUE_KIND_STRING])


def is_valid_default(kind: str, raw: str) -> bool:
    # booleans never fail: unknown text normalizes to false
    if kind == VALUE_KIND_INTEGER:
        return bool(_INT_RE.match(raw))
    if kind == VALUE_KIND_FLOAT:
        return bool(_FLOAT_RE.match(raw)) and math.isfinite(float(raw))
    return True


def normalize_bool(raw: str) -> bool:
    return raw.strip().lower() == "true"


def default_literal(kind: str, raw: str) -> Optional[str]:
    """Python source literal for a default, or None when it does not parse."""
    if not is_valid_default(kind, raw):
        return None
    # canonical forms: "042" is not a valid Python literal
    if kind == VALUE_KIND_INTEGER:
        return str(int(raw))
    if kind == VALUE_KIND_FLOAT:
        return repr(float(raw))
    if kind == VALUE_KIND_BOOLEAN:
        return "True" if normalize_bool(raw) else "False"
    return json.dumps(raw)


def default_json_value(kind: str, raw: str) -> Any:
    """Default as a JSON value for the schema. Callers check is_valid_default first."""
    if kind == VALUE_KIND_INTEGER:
        return int(raw)
    if kind == VALUE_KIND_FLOAT:
        return float(raw)
    if kind == VALUE_KIND_BOOLEAN:
        return normalize_bool(raw)
    return raw
