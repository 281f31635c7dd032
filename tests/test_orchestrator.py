import io
import json
from pathlib import Path
from unittest.mock import patch

from config import CodeGraphAnalysisSettings
from configuration.logging_config import configure_logging
from core.orchestrator import analyze_project
from plugins.golang.schema import ProjectAnalysis


def _write(root: Path, rel: str, text: str) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def _settings(tmp_path: Path, **overrides) -> CodeGraphAnalysisSettings:
    values = {"ANALYSIS_WORKERS": 2, "GO_ANALYZER_BIN": str(tmp_path / "missing-go-analyzer")}
    values.update(overrides)
    return CodeGraphAnalysisSettings(**values)


def _mixed_project(repo: Path) -> None:
    _write(
        repo,
        "src/main/java/com/acme/web/UserController.java",
        "package com.acme.web;\n"
        "\n"
        "import com.acme.service.UserService;\n"
        "import org.springframework.web.bind.annotation.RestController;\n"
        "\n"
        "@RestController\n"
        "public class UserController {\n"
        "    private final UserService users;\n"
        "\n"
        "    public UserController(UserService users) {\n"
        "        this.users = users;\n"
        "    }\n"
        "\n"
        '    @GetMapping("/users/{id}")\n'
        "    public String get(Long id) {\n"
        "        return users.find(id);\n"
        "    }\n"
        "}\n",
    )
    _write(
        repo,
        "src/main/java/com/acme/service/UserService.java",
        "package com.acme.service;\n\n@Service\npublic class UserService {\n    public String find(Long id) { return null; }\n}\n",
    )
    _write(repo, "src/main/java/shared/Config.java", "package shared;\npublic class Config {}\n")
    _write(repo, "package.json", json.dumps({"dependencies": {"express": "4"}}))
    _write(
        repo,
        "src/routes/health.js",
        "const router = require('express').Router();\nrouter.get('/health', (req, res) => res.send('ok'));\nmodule.exports = router;\n",
    )
    _write(repo, "src/shared/Config.ts", "export const config = {};\n")
    _write(repo, "go.mod", "module example.com/shop\n")


def test_mixed_project_with_failing_go_backend_is_partial(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _mixed_project(repo)

    result = analyze_project(repo, settings=_settings(tmp_path))

    assert result.status == "partial"
    assert [f.backend for f in result.backend_failures] == ["go"]
    assert result.frameworks == {"javascript": "express"}

    g = result.graph
    assert g.identifiers == (
        "com.acme.service.UserService",
        "com.acme.web.UserController",
        "routes.health",
        "shared.Config",
    )
    assert g.entity("shared.Config").source_file == "src/main/java/shared/Config.java"
    collisions = [d for d in result.diagnostics if d.kind == "identifier_collision"]
    assert [d.path for d in collisions] == ["src/shared/Config.ts"]

    controller = g.entity("com.acme.web.UserController")
    assert controller.is_entry_point is True
    methods = {m.name: m for m in controller.methods}
    assert (methods["get"].http_method, methods["get"].http_path) == ("GET", "/users/{id}")
    assert methods["UserController"].parameter_identifiers == ("com.acme.service.UserService",)

    assert g.dependencies("com.acme.web.UserController") == ("com.acme.service.UserService",)
    assert set(g.entry_points) == {"com.acme.web.UserController", "routes.health"}

    known = set(g.identifiers)
    assert all(e.to_identifier in known and e.from_identifier != e.to_identifier for e in g.edges)
    for entity in g.entities:
        for m in entity.methods:
            assert (m.http_method is None) == (m.http_path is None)


def test_rerun_over_unchanged_tree_is_identical(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _mixed_project(repo)
    settings = _settings(tmp_path)

    first = analyze_project(repo, settings=settings)
    second = analyze_project(repo, settings=settings.model_copy(update={"ANALYSIS_WORKERS": 1}))

    assert first.fingerprint == second.fingerprint
    assert first.graph == second.graph
    assert first.diagnostics == second.diagnostics


def test_every_backend_failing_is_failed(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo, "go.mod", "module example.com/shop\n")
    _write(repo, "main.go", "package main\n")

    result = analyze_project(repo, settings=_settings(tmp_path))

    assert result.status == "failed"
    assert result.graph.entities == ()
    assert "not found" in result.backend_failures[0].reason


def test_missing_source_root_is_an_empty_success(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo, "pom.xml", "<project/>\n")

    result = analyze_project(repo, settings=_settings(tmp_path))

    assert result.status == "success"
    assert result.graph.entities == ()
    assert [(d.kind, d.detail) for d in result.diagnostics] == [("source_root_missing", "java")]


def test_file_caps_are_reported_not_fatal(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo, "src/main/java/p/A.java", "package p;\npublic class A {}\n")
    _write(repo, "src/main/java/p/B.java", "package p;\npublic class B {}\n")
    _write(repo, "src/main/java/p/C.java", "package p;\npublic class C {}\n")

    result = analyze_project(repo, settings=_settings(tmp_path, MAX_FILES_PER_RUN=2), only=["java"])

    assert result.status == "success"
    assert result.graph.identifiers == ("p.A", "p.B")
    assert [(d.kind, d.path) for d in result.diagnostics] == [("file_limit_exceeded", "src/main/java/p/C.java")]


def test_unscannable_file_is_excluded_with_diagnostic(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo, "src/main/java/p/A.java", "package p;\npublic class A {\n    void use(Broken b) {}\n}\n")
    _write(repo, "src/main/java/p/Broken.java", "package p;\n// nothing declared\n")

    result = analyze_project(repo, settings=_settings(tmp_path), only=["java"])

    assert result.status == "success"
    assert result.graph.identifiers == ("p.A",)
    assert result.graph.edges == ()
    assert result.graph.entity("p.A").methods[0].parameter_identifiers == ()
    assert [(d.kind, d.path) for d in result.diagnostics] == [("extraction_failed", "src/main/java/p/Broken.java")]


def test_malformed_go_identifiers_do_not_discard_other_backends(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo, "src/main/java/p/A.java", "package p;\npublic class A {}\n")
    _write(repo, "go.mod", "go 1.22\n")
    _write(repo, "main.go", "package main\n")
    # A go.mod without a module line leaves the root package path empty.
    analysis = ProjectAnalysis.model_validate(
        {
            "module": "",
            "packages": [
                {
                    "path": "",
                    "dir": ".",
                    "files": ["main.go"],
                    "structs": [{"name": "Config", "file": "main.go", "line": 3}],
                    "functions": [{"name": "main", "file": "main.go", "line": 5}],
                }
            ],
        }
    )

    with patch("plugins.golang.plugin.run_go_analyzer", return_value=analysis):
        result = analyze_project(repo, settings=_settings(tmp_path))

    assert result.status == "success"
    assert result.graph.identifiers == ("p.A",)
    assert [(d.kind, d.path) for d in result.diagnostics] == [
        ("extraction_failed", "main.go"),
        ("extraction_failed", "main.go"),
    ]


def test_worker_failures_log_bound_run_context(tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    _write(repo, "src/main/java/p/A.java", "package p;\npublic class A {}\n")
    _write(repo, "src/main/java/p/Broken.java", "package p;\n// nothing declared\n")
    stream = io.StringIO()
    configure_logging("INFO", stream=stream, force_reconfigure=True)

    analyze_project(repo, settings=_settings(tmp_path), only=["java"])

    records = [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]
    (failed,) = [r for r in records if r["event"] in ("phase1.identify_failed", "phase2.extract_failed")]
    assert failed["level"] == "warning"
    assert failed["project_root"] == str(repo)
    assert failed["backend"] == "java"
    assert failed["path"] == "src/main/java/p/Broken.java"
    done = next(r for r in records if r["event"] == "analyze.done")
    assert "backend" not in done and "path" not in done
