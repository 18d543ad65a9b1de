"""Template rendering backend.

Renders a data model through Jinja2 and normalizes the output: black for
Python source, a JSON round-trip for the schema document. Both are fatal on
failure since unparseable output means the model and template disagree.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import black
import jinja2

from wirebind.errors import RenderError

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def _json_fragment(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


class TemplateRenderer:
    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        loaders: list[jinja2.BaseLoader] = []
        if templates_dir is not None:
            loaders.append(jinja2.FileSystemLoader(str(templates_dir)))
        loaders.append(jinja2.FileSystemLoader(str(TEMPLATE_DIR)))

        self.env = jinja2.Environment(
            loader=jinja2.ChoiceLoader(loaders),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False,
            undefined=jinja2.StrictUndefined,
        )
        self.env.filters["pystr"] = json.dumps
        self.env.filters["json"] = _json_fragment

    def render(self, template_name: str, **context: Any) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except jinja2.TemplateError as e:
            raise RenderError(f"template {template_name}: {e}", name=template_name) from e


def format_python(source: str, name: str = "") -> str:
    try:
        formatted = black.format_str(source, mode=black.Mode())
    except black.InvalidInput as e:
        raise RenderError(f"generated source does not parse: {e}", name=name) from e
    # black's grammar is looser than the interpreter's (e.g. "042")
    try:
        compile(formatted, name or "<generated>", "exec")
    except (SyntaxError, ValueError) as e:
        raise RenderError(
            f"generated source does not compile: {e}", name=name, line=getattr(e, "lineno", None)
        ) from e
    return formatted


def normalize_json(text: str, name: str = "") -> str:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise RenderError(f"rendered JSON is invalid: {e}", name=name, line=e.lineno) from e
    try:
        return json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False) + "\n"
    except ValueError as e:
        raise RenderError(f"rendered JSON is invalid: {e}", name=name) from e
