from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from wirebind.domain.typeexpr import VALUE_KIND_STRING, TypeExpr

BINDING_HEADER = "header"
BINDING_QUERY = "query"
BINDING_PATH = "path"
BINDING_COOKIE = "cookie"

# marker call name -> binding kind
BINDING_MARKERS = {
    "Header": BINDING_HEADER,
    "Query": BINDING_QUERY,
    "Path": BINDING_PATH,
    "Cookie": BINDING_COOKIE,
}

BODY_VERBS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class ImportRef:
    module: str                 # absolute dotted module
    name: Optional[str] = None  # set for `from module import name`

    @property
    def target_module(self) -> str:
        # `from pkg import sub` used as `sub.Name` means sub is a module
        return f"{self.module}.{self.name}" if self.name else self.module


@dataclass(frozen=True)
class ShapeRef:
    name: str
    qualifier: str = ""     # import alias for alias.Name references
    pointer: bool = False   # declared as Optional[...]

    @property
    def expr(self) -> str:
        return f"{self.qualifier}.{self.name}" if self.qualifier else self.name


@dataclass(frozen=True)
class BindingAnnotation:
    kind: str   # header|query|path|cookie
    value: str  # raw "key[,default=...]"


@dataclass(frozen=True)
class ShapeField:
    name: str
    type_expr: TypeExpr
    binding: Optional[BindingAnnotation] = None
    line: int = 0

    @property
    def exported(self) -> bool:
        return not self.name.startswith("_")


@dataclass(frozen=True)
class StructShape:
    name: str
    module: str
    fields: tuple[ShapeField, ...] = ()
    bases: tuple[TypeExpr, ...] = ()
    file_path: str = ""
    line: int = 0

    @property
    def identity(self) -> tuple[str, str]:
        return (self.module, self.name)

    @property
    def qualname(self) -> str:
        return f"{self.module}.{self.name}" if self.module else self.name


@dataclass(frozen=True)
class RoutingRecord:
    owner: str              # class declaring the operation
    module: str             # module declaring the operation
    operation: str          # method name
    verb: str               # GET, POST, ...
    path: str               # /users/:id
    request: ShapeRef
    response: Optional[ShapeRef] = None
    response_is_bytes: bool = False
    manual_func: str = ""
    imports: dict[str, ImportRef] = field(default_factory=dict, compare=False, hash=False)
    is_async: bool = False
    file_path: str = ""
    line: int = 0

    @property
    def parses_body(self) -> bool:
        return self.verb.upper() in BODY_VERBS

    @property
    def location(self) -> str:
        return f"{self.file_path}:{self.line}"


@dataclass(frozen=True)
class FieldBind:
    name: str
    kind: str
    key: str
    default_raw: str = ""
    has_default: bool = False
    value_kind: str = VALUE_KIND_STRING
    query_func: str = ""  # query bindings only

    @property
    def default_kind(self) -> str:
        """Kind governing the default literal: header/cookie accessors are string-typed."""
        if self.kind == BINDING_QUERY:
            return self.value_kind
        return VALUE_KIND_STRING


@dataclass
class PackageRoutes:
    """
    Operations of one package directory plus the imports visible to them.

    A summary of the scan; shape resolution uses each record's own imports.
    """

    pkg_dir: str
    module: str
    imports: dict[str, ImportRef] = field(default_factory=dict)
    records: list[RoutingRecord] = field(default_factory=list)
