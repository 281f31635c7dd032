from pathlib import Path
from unittest.mock import patch

import pytest

from config import CodeGraphAnalysisSettings
from core.errors import BackendInvocationError
from core.ignore_rules import build_ignore_rules
from core.records import Role
from core.resolver import build_known_set, resolve_unit
from plugins.golang.plugin import GoBackend, bare_type_name, build_go_index, directory_role, method_name
from plugins.golang.schema import FunctionInfo, ProjectAnalysis


MODULE = "example.com/shop"

ANALYSIS = {
    "module": MODULE,
    "packages": [
        {
            "path": MODULE,
            "dir": ".",
            "files": ["main.go"],
            "imports": [f"{MODULE}/internal/handler", "net/http"],
            "functions": [{"name": "main", "file": "main.go", "line": 9}],
        },
        {
            "path": f"{MODULE}/internal/handler",
            "dir": "internal/handler",
            "files": ["orders.go"],
            "imports": [f"{MODULE}/internal/orders"],
            "structs": [
                {
                    "name": "OrderHandler",
                    "file": "orders.go",
                    "line": 10,
                    "fields": [{"name": "svc", "type": "*orders.OrderService", "package": f"{MODULE}/internal/orders"}],
                    "methods": [
                        {
                            "name": "Get",
                            "receiver": "*OrderHandler",
                            "line": 20,
                            "httpMethod": "GET",
                            "httpPath": "/orders/{id}",
                            "params": [{"name": "w", "type": "http.ResponseWriter", "package": "net/http"}],
                        },
                        {"name": "Health", "receiver": "*OrderHandler", "line": 30, "httpMethod": "GET", "httpPath": ""},
                    ],
                }
            ],
        },
        {
            "path": f"{MODULE}/internal/orders",
            "dir": "internal/orders",
            "files": ["service.go", "store.go"],
            "structs": [
                {
                    "name": "OrderService",
                    "file": "service.go",
                    "line": 5,
                    "implements": ["Placer"],
                    "methods": [
                        {
                            "name": "Place",
                            "receiver": "*OrderService",
                            "line": 12,
                            "hasPanic": True,
                            "doc": "Place stores a new order.",
                            "params": [{"name": "o", "type": "*Order"}],
                        }
                    ],
                },
                {"name": "Order", "file": "store.go", "line": 3},
            ],
            "interfaces": [
                {"name": "Placer", "file": "service.go", "line": 30, "methods": [{"name": "Place", "params": [{"name": "o", "type": "*Order"}]}]}
            ],
        },
        {"path": f"{MODULE}/vendor/x", "dir": "vendor/x", "files": ["x.go"]},
    ],
}


def _analysis() -> ProjectAnalysis:
    return ProjectAnalysis.model_validate(ANALYSIS)


def _repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    for rel in ("go.mod", "main.go", "internal/handler/orders.go", "internal/orders/service.go", "internal/orders/store.go"):
        path = repo / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("package x\n", encoding="utf-8")
    return repo


def test_helpers() -> None:
    assert bare_type_name("*[]orders.Order") == "Order"
    assert bare_type_name("map[string]int") == ""
    assert method_name(FunctionInfo(name="Get", receiver="*OrderHandler")) == "OrderHandler.Get"
    assert method_name(FunctionInfo(name="New")) == "New"
    assert directory_role("internal/handler") is Role.CONTROLLER
    assert directory_role("pkg/orders/store") is Role.REPOSITORY
    assert directory_role("cmd/shop") is Role.OTHER


def test_index_entities_and_home_files() -> None:
    index = build_go_index(_analysis())
    assert sorted(index.entities) == [
        MODULE,
        f"{MODULE}/internal/handler",
        f"{MODULE}/internal/handler.OrderHandler",
        f"{MODULE}/internal/orders",
        f"{MODULE}/internal/orders.Order",
        f"{MODULE}/internal/orders.OrderService",
        f"{MODULE}/internal/orders.Placer",
    ]
    assert index.by_file["internal/orders/service.go"] == (
        f"{MODULE}/internal/orders",
        f"{MODULE}/internal/orders.OrderService",
        f"{MODULE}/internal/orders.Placer",
    )
    assert index.by_file["internal/orders/store.go"] == (f"{MODULE}/internal/orders.Order",)


def test_package_home_file_is_first_sorted_file() -> None:
    analysis = ProjectAnalysis.model_validate(
        {
            "module": MODULE,
            "packages": [
                {
                    "path": MODULE,
                    "dir": "cmd/shop",
                    "files": ["server.go", "app.go"],
                    "functions": [{"name": "main", "file": "server.go", "line": 7}],
                }
            ],
        }
    )
    index = build_go_index(analysis)
    assert index.entities[MODULE].home_file == "cmd/shop/app.go"
    assert index.by_file == {"cmd/shop/app.go": (MODULE,)}
    assert index.entities[MODULE].facts.is_entry_point


def test_index_facts_roles_entry_points_and_http() -> None:
    index = build_go_index(_analysis())

    root = index.entities[MODULE].facts
    assert root.is_entry_point is True

    handler = index.entities[f"{MODULE}/internal/handler.OrderHandler"].facts
    assert handler.role is Role.CONTROLLER
    assert handler.is_entry_point is True
    methods = {m.name: m for m in handler.methods}
    assert (methods["OrderHandler.Get"].http_method, methods["OrderHandler.Get"].http_path) == ("GET", "/orders/{id}")
    # A verb without a path is dropped to neither.
    assert methods["OrderHandler.Health"].http_method is None
    assert methods["OrderHandler.Health"].http_path is None

    service = index.entities[f"{MODULE}/internal/orders.OrderService"].facts
    assert service.role is Role.SERVICE
    (place,) = service.methods
    assert place.declared_exceptions == ("panic",)
    assert place.doc == "Place stores a new order."


def test_backend_failure_propagates_from_prepare(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    with patch(
        "plugins.golang.plugin.run_go_analyzer",
        side_effect=BackendInvocationError("go", "analyzer exited with status 1", returncode=1),
    ):
        with pytest.raises(BackendInvocationError):
            GoBackend().prepare(repo, CodeGraphAnalysisSettings(), build_ignore_rules(repo))


def test_backend_units_and_resolution(tmp_path: Path) -> None:
    repo = _repo(tmp_path)
    backend = GoBackend()
    with patch("plugins.golang.plugin.run_go_analyzer", return_value=_analysis()):
        ctx = backend.prepare(repo, CodeGraphAnalysisSettings(), build_ignore_rules(repo))

    files = backend.discover_files(ctx)
    assert [p.relative_to(repo).as_posix() for p in files] == [
        "internal/handler/orders.go",
        "internal/orders/service.go",
        "internal/orders/store.go",
        "main.go",
    ]
    units = [u for p in files for u in backend.identify(ctx, p)]
    known = build_known_set(units)

    by_id = {u.identifier: u for u in known.units}
    handler = by_id[f"{MODULE}/internal/handler.OrderHandler"]
    resolved = resolve_unit(handler, backend.analyze_unit(ctx, handler), known)
    assert [e.to_identifier for e in resolved.edges] == [f"{MODULE}/internal/orders.OrderService"]

    service = by_id[f"{MODULE}/internal/orders.OrderService"]
    resolved = resolve_unit(service, backend.analyze_unit(ctx, service), known)
    edges = {(e.to_identifier, e.method, e.parameter_position) for e in resolved.edges}
    assert (f"{MODULE}/internal/orders.Placer", None, None) in edges
    assert (f"{MODULE}/internal/orders.Order", "OrderService.Place", 0) in edges

    root = by_id[MODULE]
    resolved = resolve_unit(root, backend.analyze_unit(ctx, root), known)
    assert [e.to_identifier for e in resolved.edges] == [f"{MODULE}/internal/handler"]
