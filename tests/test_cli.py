import json
from pathlib import Path

from typer.testing import CliRunner

from wirebind.cli import app

runner = CliRunner()


def test_generate_writes_both_artifacts(users_repo: Path):
    result = runner.invoke(app, ["generate", str(users_repo)])
    assert result.exit_code == 0, result.output

    handlers = users_repo / "wirebind_routes.py"
    schema = users_repo / "openapi.json"
    assert handlers.exists()
    assert "def build_routes(" in handlers.read_text(encoding="utf-8")
    assert "/users/{id}" in json.loads(schema.read_text(encoding="utf-8"))["paths"]

    # the previous output is skipped on the next scan
    again = runner.invoke(app, ["generate", str(users_repo)])
    assert again.exit_code == 0, again.output
    assert handlers.read_text(encoding="utf-8").count("def build_routes(") == 1


def test_generate_custom_outputs_and_flags(users_repo: Path, tmp_path: Path):
    out = tmp_path / "gen" / "routes.py"
    doc = tmp_path / "gen" / "api.json"
    result = runner.invoke(
        app,
        [
            "generate",
            str(users_repo),
            "--out",
            str(out),
            "--openapi-out",
            str(doc),
            "--no-serve-openapi",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "OPENAPI_JSON" not in out.read_text(encoding="utf-8")
    assert json.loads(doc.read_text(encoding="utf-8"))["openapi"] == "3.0.4"


def test_generate_reports_scan_errors(tmp_path: Path):
    (tmp_path / "svc.py").write_text(
        "class S:\n    # wirebind:api method=get path=/x\n    def x(self, req: R): ...\n",
        encoding="utf-8",
    )
    result = runner.invoke(app, ["generate", str(tmp_path)])
    assert result.exit_code == 1
    assert "error" in result.output
    assert not (tmp_path / "wirebind_routes.py").exists()


def test_generate_rejects_missing_root(tmp_path: Path):
    result = runner.invoke(app, ["generate", str(tmp_path / "nope")])
    assert result.exit_code != 0


def test_routes_json(users_repo: Path):
    result = runner.invoke(app, ["routes", str(users_repo), "--format", "json"])
    assert result.exit_code == 0, result.output

    rows = json.loads(result.stdout)
    assert [(r["method"], r["path"]) for r in rows] == [
        ("GET", "/users/{id}"),
        ("GET", "/users"),
        ("POST", "/users"),
        ("GET", "/users/{id}/avatar"),
        ("POST", "/upload"),
    ]
    first = rows[0]
    assert first["handler"] == "app.services.UserService.get_user"
    assert first["request"] == "app.schemas.GetUserRequest"
    assert [b["key"] for b in first["bindings"]] == ["id", "Authorization", "filter"]
    assert rows[4]["manual_func"] == "upload_raw"

    counts = rows[1]["bindings"][0]
    assert counts == {"field": "count", "in": "query", "key": "count", "kind": "integer", "default": "42"}


def test_routes_table(users_repo: Path):
    result = runner.invoke(app, ["routes", str(users_repo)])
    assert result.exit_code == 0, result.output
    assert "Operations: 5" in result.output
