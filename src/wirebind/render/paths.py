from __future__ import annotations

import re

_PARAM_ANGLE = re.compile(r"<(?:[A-Za-z_]+:)?([A-Za-z_][A-Za-z0-9_]*)>")
_PARAM_COLON = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")
_MULTI_SLASH = re.compile(r"/{2,}")
_SAFE = re.compile(r"[^a-zA-Z0-9_]+")
_CAMEL_1 = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_2 = re.compile(r"([a-z\d])([A-Z])")


def to_openapi_path(path: str) -> str:
    p = (path or "").strip()
    if not p.startswith("/"):
        p = "/" + p

    # normalize common param styles into "{param}"
    p = _PARAM_ANGLE.sub(r"{\1}", p)     # <id> / <int:id> -> {id}
    p = _PARAM_COLON.sub(r"{\1}", p)     # :id  -> {id}

    # collapse accidental double slashes
    p = _MULTI_SLASH.sub("/", p)

    # keep "/" as-is, otherwise strip trailing slash for stability
    if p != "/" and p.endswith("/"):
        p = p[:-1]
    return p


def base_tag(path: str) -> str:
    """First path segment, title-cased: /user_groups/{id} -> 'User Groups'."""
    trimmed = to_openapi_path(path).strip("/")
    if not trimmed:
        return ""
    first = trimmed.split("/")[0]
    words = [w for w in re.split(r"[_-]+", first) if w]
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def snake_case(name: str) -> str:
    s = _CAMEL_1.sub(r"\1_\2", name)
    s = _CAMEL_2.sub(r"\1_\2", s).lower()
    s = _SAFE.sub("_", s).strip("_")
    return s or "op"
