"""Row builders for graph persistence payloads.

Nothing here talks to a database. The storage collaborator receives these
rows and owns the merge queries; rows are shaped so that re-sending the same
graph is idempotent on (project_id, identifier[, method]).
"""

from __future__ import annotations

from core.graph import ProjectGraph


def entity_rows(project_id: str, graph: ProjectGraph) -> list[dict]:
    return [
        {
            "project_id": project_id,
            "identifier": e.identifier,
            "props": {
                "role": e.role.value,
                "source_file": e.source_file,
                "is_entry_point": e.is_entry_point,
            },
        }
        for e in graph.entities
    ]


def method_rows(project_id: str, graph: ProjectGraph) -> list[dict]:
    rows: list[dict] = []
    for e in graph.entities:
        for m in e.methods:
            rows.append(
                {
                    "project_id": project_id,
                    "owner": e.identifier,
                    "name": m.name,
                    "props": {
                        "line": m.line,
                        "http_method": m.http_method,
                        "http_path": m.http_path,
                        "declared_exceptions": list(m.declared_exceptions),
                        "doc": m.doc,
                    },
                }
            )
    return rows


def parameter_edge_rows(project_id: str, graph: ProjectGraph) -> list[dict]:
    return [
        {
            "project_id": project_id,
            "owner": e.from_identifier,
            "method": e.method,
            "position": e.parameter_position,
            "target": e.to_identifier,
        }
        for e in graph.edges
        if e.method is not None
    ]


def dependency_rows(project_id: str, graph: ProjectGraph) -> list[dict]:
    return [
        {
            "project_id": project_id,
            "src": e.from_identifier,
            "dst": e.to_identifier,
        }
        for e in graph.edges
        if e.method is None
    ]
