"""Field binding markers for request shapes.

Used as ``Annotated`` metadata; the generator reads them from source and they
do nothing at runtime::

    class GetUserRequest:
        id: Annotated[str, Path("id")]
        token: Annotated[str, Header("Authorization")]
        limit: Annotated[int, Query("limit,default=20")]
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Header:
    value: str


@dataclass(frozen=True)
class Query:
    value: str


@dataclass(frozen=True)
class Path:
    value: str


@dataclass(frozen=True)
class Cookie:
    value: str
