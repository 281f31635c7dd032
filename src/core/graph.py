"""Unified project graph and its queries."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable

from core.records import DependencyEdge, MethodDescriptor, Role, SourceEntity


@dataclass(frozen=True)
class ProjectGraph:
    entities: tuple[SourceEntity, ...] = ()
    edges: tuple[DependencyEdge, ...] = ()
    _by_id: dict[str, SourceEntity] = field(default_factory=dict, init=False, repr=False, compare=False)
    _out: dict[str, tuple[str, ...]] = field(default_factory=dict, init=False, repr=False, compare=False)
    _in: dict[str, tuple[str, ...]] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        entities = tuple(sorted(self.entities, key=lambda e: e.identifier))
        edges = tuple(sorted(set(self.edges), key=DependencyEdge.sort_key))
        out: dict[str, set[str]] = {}
        inc: dict[str, set[str]] = {}
        for e in edges:
            out.setdefault(e.from_identifier, set()).add(e.to_identifier)
            inc.setdefault(e.to_identifier, set()).add(e.from_identifier)
        object.__setattr__(self, "entities", entities)
        object.__setattr__(self, "edges", edges)
        object.__setattr__(self, "_by_id", {e.identifier: e for e in entities})
        object.__setattr__(self, "_out", {k: tuple(sorted(v)) for k, v in out.items()})
        object.__setattr__(self, "_in", {k: tuple(sorted(v)) for k, v in inc.items()})

    @property
    def identifiers(self) -> tuple[str, ...]:
        return tuple(e.identifier for e in self.entities)

    @property
    def entry_points(self) -> tuple[str, ...]:
        return tuple(e.identifier for e in self.entities if e.is_entry_point)

    def entity(self, identifier: str) -> SourceEntity | None:
        return self._by_id.get(identifier)

    def dependencies(self, identifier: str) -> tuple[str, ...]:
        return self._out.get(identifier, ())

    def dependents(self, identifier: str) -> tuple[str, ...]:
        return self._in.get(identifier, ())

    def neighbors(self, identifier: str) -> tuple[str, ...]:
        return tuple(sorted(set(self.dependencies(identifier)) | set(self.dependents(identifier))))

    def method_parameters(self, identifier: str) -> tuple[DependencyEdge, ...]:
        return tuple(e for e in self.edges if e.from_identifier == identifier and e.method is not None)

    def by_role(self, role: Role) -> tuple[str, ...]:
        return tuple(e.identifier for e in self.entities if e.role is role)

    def analysis_order(self) -> list[str]:
        """Breadth-first from entry points along dependencies; unreachable entities last."""

        seen: set[str] = set()
        order: list[str] = []
        queue: deque[str] = deque()
        for ep in self.entry_points:
            if ep not in seen:
                seen.add(ep)
                queue.append(ep)
        while queue:
            current = queue.popleft()
            order.append(current)
            for dep in self.dependencies(current):
                if dep not in seen and dep in self._by_id:
                    seen.add(dep)
                    queue.append(dep)
        order.extend(i for i in self.identifiers if i not in seen)
        return order

    def to_dict(self) -> dict[str, Any]:
        return {
            "entities": [_entity_dict(e) for e in self.entities],
            "edges": [_edge_dict(e) for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectGraph":
        entities = [
            SourceEntity(
                identifier=e["identifier"],
                source_file=e.get("sourceFile", ""),
                role=Role.from_string(e.get("role")),
                is_entry_point=bool(e.get("isEntryPoint", False)),
                methods=tuple(_method_from_dict(m) for m in e.get("methods", [])),
            )
            for e in data.get("entities", [])
        ]
        edges = [
            DependencyEdge(
                from_identifier=e["from"],
                to_identifier=e["to"],
                method=e.get("method"),
                parameter_position=e.get("parameterPosition"),
            )
            for e in data.get("edges", [])
        ]
        return cls(entities=tuple(entities), edges=tuple(edges))


def _method_dict(m: MethodDescriptor) -> dict[str, Any]:
    out: dict[str, Any] = {
        "name": m.name,
        "line": m.line,
        "parameterIdentifiers": list(m.parameter_identifiers),
        "declaredExceptions": list(m.declared_exceptions),
    }
    if m.is_http_endpoint:
        out["httpMethod"] = m.http_method
        out["httpPath"] = m.http_path
    if m.doc:
        out["doc"] = m.doc
    return out


def _method_from_dict(d: dict[str, Any]) -> MethodDescriptor:
    return MethodDescriptor(
        name=d["name"],
        line=int(d.get("line", 0)),
        http_method=d.get("httpMethod"),
        http_path=d.get("httpPath"),
        parameter_identifiers=tuple(d.get("parameterIdentifiers", [])),
        declared_exceptions=tuple(d.get("declaredExceptions", [])),
        doc=d.get("doc"),
    )


def _entity_dict(e: SourceEntity) -> dict[str, Any]:
    return {
        "identifier": e.identifier,
        "role": e.role.value,
        "sourceFile": e.source_file,
        "isEntryPoint": e.is_entry_point,
        "methods": [_method_dict(m) for m in e.methods],
    }


def _edge_dict(e: DependencyEdge) -> dict[str, Any]:
    out: dict[str, Any] = {"from": e.from_identifier, "to": e.to_identifier}
    if e.method is not None:
        out["method"] = e.method
    if e.parameter_position is not None:
        out["parameterPosition"] = e.parameter_position
    return out


def build_graph(entities: Iterable[SourceEntity], edges: Iterable[DependencyEdge]) -> ProjectGraph:
    return ProjectGraph(entities=tuple(entities), edges=tuple(edges))
