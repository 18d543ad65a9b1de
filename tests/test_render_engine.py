import pytest

from wirebind.errors import RenderError
from wirebind.render.engine import TemplateRenderer, format_python, normalize_json


def test_format_python_normalizes_source():
    assert format_python("x=[1,2]\n") == "x = [1, 2]\n"


def test_format_python_rejects_source_that_does_not_compile():
    with pytest.raises(RenderError) as exc:
        format_python("x = 042\n", name="routes.py")
    assert exc.value.name == "routes.py"

    with pytest.raises(RenderError):
        format_python("def (:\n")


def test_normalize_json_rejects_non_finite_numbers():
    with pytest.raises(RenderError):
        normalize_json('{"default": Infinity}')
    with pytest.raises(RenderError):
        normalize_json("{oops")
    assert normalize_json('{"a":1}') == '{\n  "a": 1\n}\n'


def test_templates_dir_overrides_packaged_templates(tmp_path):
    (tmp_path / "handlers.py.j2").write_text("custom {{ name }}\n", encoding="utf-8")
    renderer = TemplateRenderer(tmp_path)
    assert renderer.render("handlers.py.j2", name="x") == "custom x\n"

    with pytest.raises(RenderError):
        renderer.render("missing.j2")
