from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wirebind.config import GeneratorSettings
from wirebind.errors import WirebindError
from wirebind.log import configure_logging
from wirebind.orchestrator.pipeline import build_context, resolve_routes, run_generate
from wirebind.render.paths import to_openapi_path

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)


def _repo_path(root: str) -> Path:
    repo_path = Path(root).expanduser().resolve()
    if not repo_path.exists():
        raise typer.BadParameter(f"Root path does not exist: {repo_path}")
    if not repo_path.is_dir():
        raise typer.BadParameter(f"Root path is not a directory: {repo_path}")
    return repo_path


def _fail(e: WirebindError) -> None:
    err_console.print(f"[bold red]error:[/bold red] {escape(str(e))}", highlight=False)
    raise typer.Exit(code=1)


@app.command()
def generate(
    root: str = typer.Argument(..., help="Root of the source tree to scan"),
    out: Optional[str] = typer.Option(None, help="Handler module path (default: <root>/<handler_file>)"),
    openapi_out: Optional[str] = typer.Option(None, help="OpenAPI document path (default: <root>/<openapi_file>)"),
    meta: Optional[str] = typer.Option(None, help="Metadata JSON for the OpenAPI info block"),
    templates_dir: Optional[str] = typer.Option(None, help="Directory with template overrides"),
    search_path: Optional[list[str]] = typer.Option(
        None, help="Extra module root for referenced shapes (repeatable)"
    ),
    strict: Optional[bool] = typer.Option(None, "--strict/--no-strict", help="Require return annotations"),
    serve_openapi: Optional[bool] = typer.Option(
        None, "--serve-openapi/--no-serve-openapi", help="Register GET /openapi.json"
    ),
    log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    repo_path = _repo_path(root)

    overrides: dict[str, object] = {}
    if meta is not None:
        overrides["meta_file"] = Path(meta).expanduser()
    if templates_dir is not None:
        overrides["templates_dir"] = Path(templates_dir).expanduser()
    if search_path:
        overrides["search_paths"] = [Path(p).expanduser() for p in search_path]
    if strict is not None:
        overrides["strict"] = strict
    if serve_openapi is not None:
        overrides["serve_openapi"] = serve_openapi
    if log_level is not None:
        overrides["log_level"] = log_level
    settings = GeneratorSettings(**overrides)
    configure_logging(settings.log_level, settings.json_logs)

    try:
        result = run_generate(repo_path, settings)
    except WirebindError as e:
        _fail(e)
        return

    handler_path = Path(out).expanduser() if out else repo_path / settings.handler_file
    openapi_path = Path(openapi_out).expanduser() if openapi_out else repo_path / settings.openapi_file
    for path, text in ((handler_path, result.handler_source), (openapi_path, result.openapi_document)):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    console.print(f"[bold green]wirebind[/bold green] generate: {repo_path}")
    console.print(f"Python files scanned: {result.files_scanned}")
    console.print(f"Operations: [bold]{len(result.routes)}[/bold]")
    console.print(f"Handlers: {handler_path}")
    console.print(f"OpenAPI: {openapi_path}")


@app.command()
def routes(
    root: str = typer.Argument(..., help="Root of the source tree to scan"),
    format: str = typer.Option("table", help="Output format: table|json"),
    log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG, INFO, WARNING, ERROR)"),
) -> None:
    repo_path = _repo_path(root)
    fmt = format.lower().strip()
    if fmt not in ("table", "json"):
        raise typer.BadParameter("format must be one of: table, json")

    settings = GeneratorSettings(**({"log_level": log_level} if log_level else {}))
    configure_logging(settings.log_level, settings.json_logs)

    try:
        ctx = build_context(repo_path, settings)
        resolved = resolve_routes(ctx)
    except WirebindError as e:
        _fail(e)
        return

    if fmt == "json":
        payload = [
            {
                "method": r.record.verb,
                "path": to_openapi_path(r.record.path),
                "handler": f"{r.record.module}.{r.record.owner}.{r.record.operation}",
                "request": r.shape.qualname,
                "manual_func": r.record.manual_func or None,
                "bindings": [
                    {
                        "field": b.name,
                        "in": b.kind,
                        "key": b.key,
                        "kind": b.value_kind,
                        "default": b.default_raw if b.has_default else None,
                    }
                    for b in r.binds
                ],
                "location": r.record.location,
            }
            for r in resolved
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("HANDLER")
    table.add_column("BINDINGS")
    table.add_column("FILE:LINE", no_wrap=True)

    for r in resolved:
        binds = ", ".join(f"{b.kind}:{b.key}" for b in r.binds) or "-"
        table.add_row(
            r.record.verb,
            to_openapi_path(r.record.path),
            f"{r.record.owner}.{r.record.operation}",
            binds,
            f"{os.path.relpath(r.record.file_path, repo_path)}:{r.record.line}",
        )

    console.print(f"[bold]Operations:[/bold] {len(resolved)}")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
