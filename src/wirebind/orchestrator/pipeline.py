from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from wirebind.binding.resolver import BindingResolver
from wirebind.config import GeneratorSettings
from wirebind.domain.records import FieldBind, PackageRoutes, RoutingRecord, StructShape
from wirebind.errors import ScanError
from wirebind.extractors.annotations import extract_operations
from wirebind.log import get_logger
from wirebind.registry.loader import ModuleLoader
from wirebind.registry.types import TypeRegistry
from wirebind.render.engine import TemplateRenderer
from wirebind.render.generator import generate
from wirebind.render.openapi import load_meta
from wirebind.render.paths import to_openapi_path
from wirebind.repo.scanner import module_name_for, scan_python_files

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScanResult:
    """Records in scan order; `packages` groups them by directory for reporting."""

    records: list[RoutingRecord]
    packages: dict[str, PackageRoutes]
    files_scanned: int


@dataclass(frozen=True)
class BuildContext:
    """Everything one run needs; nothing is shared between runs."""

    root: Path
    settings: GeneratorSettings
    loader: ModuleLoader
    registry: TypeRegistry
    resolver: BindingResolver
    scan: ScanResult


@dataclass(frozen=True)
class ResolvedRoute:
    record: RoutingRecord
    shape: StructShape
    binds: list[FieldBind] = field(default_factory=list)


@dataclass(frozen=True)
class GenerateResult:
    routes: list[ResolvedRoute]
    handler_source: str
    openapi_document: str
    files_scanned: int


def scan_repo(
    root: Path,
    loader: ModuleLoader,
    registry: TypeRegistry,
    settings: GeneratorSettings,
) -> ScanResult:
    """
    Parse every source file under root, register its shapes and collect its
    annotated operations, grouped by package directory.
    """
    files = scan_python_files(
        root, generated_names=(settings.handler_file, settings.openapi_file)
    )

    # shapes first so that lookups during extraction see the whole scanned set
    parsed = []
    for file_path in files:
        module, is_package = module_name_for(file_path, root)
        mod = loader.parse_file(file_path, module, is_package)
        registry.add_module(mod)
        parsed.append(mod)

    packages: dict[str, PackageRoutes] = {}
    records: list[RoutingRecord] = []
    seen_routes: dict[tuple[str, str], RoutingRecord] = {}

    for mod in parsed:
        ops = extract_operations(
            mod.tree,
            mod.source,
            mod.name,
            mod.imports,
            file_path=mod.file_path,
            strict=settings.strict,
        )
        if not ops:
            continue

        pkg_dir = os.path.dirname(mod.file_path)
        pkg_module = mod.name if mod.is_package else mod.name.rpartition(".")[0]
        pkg = packages.setdefault(pkg_dir, PackageRoutes(pkg_dir=pkg_dir, module=pkg_module))
        for alias, ref in mod.imports.items():
            prev = pkg.imports.get(alias)
            if prev is not None and prev != ref:
                logger.debug("import_alias_replaced", package=pkg_module, alias=alias, file=mod.file_path)
            pkg.imports[alias] = ref

        for op in ops:
            key = (op.verb.upper(), to_openapi_path(op.path))
            first = seen_routes.get(key)
            if first is not None:
                raise ScanError(
                    f"duplicate route {key[0]} {key[1]} (first declared at {first.location})",
                    file_path=op.file_path,
                    line=op.line,
                    name=f"{op.owner}.{op.operation}",
                )
            seen_routes[key] = op
            pkg.records.append(op)
            records.append(op)

    logger.info("scan_complete", files=len(files), operations=len(records), shapes=len(registry))
    return ScanResult(records=records, packages=packages, files_scanned=len(files))


def build_context(root: Path, settings: Optional[GeneratorSettings] = None) -> BuildContext:
    root = root.resolve()
    settings = settings or GeneratorSettings()

    search_roots = [root]
    if (root / "src").is_dir():
        search_roots.append(root / "src")
    search_roots.extend(Path(p) for p in settings.search_paths)
    loader = ModuleLoader(search_roots)
    registry = TypeRegistry(loader)
    resolver = BindingResolver(registry)
    scan = scan_repo(root, loader, registry, settings)
    return BuildContext(
        root=root,
        settings=settings,
        loader=loader,
        registry=registry,
        resolver=resolver,
        scan=scan,
    )


def resolve_routes(ctx: BuildContext) -> list[ResolvedRoute]:
    out: list[ResolvedRoute] = []
    for record in ctx.scan.records:
        shape = ctx.resolver.resolve_request(record)
        out.append(ResolvedRoute(record=record, shape=shape, binds=ctx.resolver.resolve(shape)))
    return out


def run_generate(root: Path, settings: Optional[GeneratorSettings] = None) -> GenerateResult:
    ctx = build_context(root, settings)
    routes = resolve_routes(ctx)

    meta_path = ctx.settings.meta_file
    if not meta_path.is_absolute():
        meta_path = ctx.root / meta_path

    source, document = generate(
        [r.record for r in routes],
        [r.binds for r in routes],
        [r.shape for r in routes],
        ctx.registry,
        ctx.resolver,
        renderer=TemplateRenderer(ctx.settings.templates_dir),
        meta=load_meta(meta_path),
        serve_openapi=ctx.settings.serve_openapi,
    )
    return GenerateResult(
        routes=routes,
        handler_source=source,
        openapi_document=document,
        files_scanned=ctx.scan.files_scanned,
    )
