import json
from pathlib import Path

from main import main


def _java_project(repo: Path) -> None:
    path = repo / "src" / "main" / "java" / "p" / "Api.java"
    path.parent.mkdir(parents=True)
    path.write_text(
        "package p;\n"
        "@RestController\n"
        "public class Api {\n"
        '    @PostMapping("/items")\n'
        "    public void add(Item item) {}\n"
        "}\n",
        encoding="utf-8",
    )
    (path.parent / "Item.java").write_text("package p;\npublic class Item {}\n", encoding="utf-8")


def test_cli_writes_graph_and_exits_zero(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _java_project(repo)
    out = tmp_path / "out" / "graph.json"

    code = main([str(repo), "--backend", "java", "--output", str(out), "--emit-rows", "proj-1"])

    assert code == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["status"] == "success"
    assert payload["fingerprint"].startswith("graph:")
    ids = [e["identifier"] for e in payload["graph"]["entities"]]
    assert ids == ["p.Api", "p.Item"]
    assert {"from": "p.Api", "to": "p.Item", "method": "add", "parameterPosition": 0} in payload["graph"]["edges"]
    assert payload["rows"]["parameterEdges"][0]["target"] == "p.Item"


def test_cli_prints_to_stdout(tmp_path: Path, capsys) -> None:
    repo = tmp_path / "repo"
    _java_project(repo)

    assert main([str(repo), "--backend", "java"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["graph"]["entities"][0]["methods"][0]["httpMethod"] == "POST"


def test_cli_rejects_unknown_backend_and_missing_root(tmp_path: Path) -> None:
    assert main([str(tmp_path), "--backend", "cobol"]) == 1
    assert main([str(tmp_path / "absent")]) == 1
