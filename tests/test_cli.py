import json
import textwrap
from pathlib import Path

from typer.testing import CliRunner

from postgen.cli import NO_ENDPOINTS_TIP, app

runner = CliRunner()


def _write(root: Path, rel: str, text: str) -> None:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(text), encoding="utf-8")


def _service(root: Path) -> None:
    _write(root, "go.mod", "module example.com/svc\n")
    _write(
        root,
        "main.go",
        """
        package main

        // @route GET /v1/health Liveness probe
        // @tag ops
        func health() {}

        func CreateItem(c *gin.Context) {
            var createItem struct {
                Name string `json:"name"`
            }
            c.ShouldBindJSON(&createItem)
        }

        func main() {
            r := gin.Default()
            r.POST("/v1/items", CreateItem)
            r.GET("/v1/items", listItems)
        }
        """,
    )


def test_generate_writes_collection_and_environment(tmp_path):
    repo = tmp_path / "svc"
    _service(repo)
    out = tmp_path / "out" / "collection.json"
    env_out = tmp_path / "out" / "env.json"

    result = runner.invoke(
        app,
        [
            "generate",
            str(repo),
            "--name",
            "Items API",
            "--base-url",
            "http://items:8000",
            "--out",
            str(out),
            "--group-depth",
            "0",
            "--tag-folders",
            "--env-out",
            str(env_out),
            "--env-name",
            "Staging",
        ],
    )
    assert result.exit_code == 0, result.output

    col = json.loads(out.read_text(encoding="utf-8"))
    assert col["info"]["name"] == "Items API"
    names = [it["name"] for it in col["item"]]
    assert names == ["GET /v1/health", "GET /v1/items", "POST /v1/items", "By Tag"]
    post = col["item"][2]["request"]
    assert post["body"]["raw"] == '{"name":"string"}'
    assert col["variable"][0]["value"] == "http://items:8000"

    env = json.loads(env_out.read_text(encoding="utf-8"))
    assert env["name"] == "Staging"
    assert env["values"][0]["value"] == "http://items:8000"


def test_generate_with_no_endpoints_still_writes(tmp_path):
    _write(tmp_path / "repo", "main.go", "package main\n\nfunc main() {}\n")
    out = tmp_path / "c.json"

    result = runner.invoke(app, ["generate", str(tmp_path / "repo"), "--out", str(out)])
    assert result.exit_code == 0
    assert NO_ENDPOINTS_TIP in result.output
    assert json.loads(out.read_text(encoding="utf-8"))["item"] == []


def test_generate_reports_scan_errors(tmp_path):
    _write(tmp_path, "bad.go", "package main\n\nfunc (\n")
    result = runner.invoke(app, ["generate", str(tmp_path), "--out", str(tmp_path / "c.json")])
    assert result.exit_code == 1
    assert "error scanning" in result.output
    assert not (tmp_path / "c.json").exists()


def test_generate_rejects_missing_dir(tmp_path):
    result = runner.invoke(app, ["generate", str(tmp_path / "nope")])
    assert result.exit_code != 0


def test_endpoints_list_json_with_filters(tmp_path):
    _service(tmp_path)
    result = runner.invoke(app, ["endpoints", "list", str(tmp_path), "--format", "json", "--method", "get"])
    assert result.exit_code == 0, result.output
    rows = json.loads(result.stdout)
    assert [(r["method"], r["path"]) for r in rows] == [("GET", "/v1/health"), ("GET", "/v1/items")]

    result = runner.invoke(app, ["endpoints", "list", str(tmp_path), "--format", "json", "--tag", "ops"])
    assert [r["path"] for r in json.loads(result.stdout)] == ["/v1/health"]


def test_endpoints_list_table(tmp_path, monkeypatch):
    _service(tmp_path)
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["endpoints", "list", ".", "--path-contains", "items"])
    assert result.exit_code == 0, result.output
    assert "Endpoints: 2" in result.output
    assert "/v1/items" in result.output


def test_analyze(tmp_path):
    _service(tmp_path)
    result = runner.invoke(app, ["analyze", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "Module: example.com/svc" in result.output
    assert "Functions: 3" in result.output
    assert "Architecture:" in result.output
