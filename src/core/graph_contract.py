"""Graph contract validation.

Validates merged-graph invariants before the graph is handed to collaborators.
A violation is a programming error in the engine, never an input problem.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from core.errors import AnalysisError
from core.records import DependencyEdge, SourceEntity


# Not frozen: context managers re-raising it assign __traceback__.
@dataclass(eq=False)
class GraphContractViolation(AnalysisError):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


def validate_graph_contract(
    *,
    known_identifiers: Iterable[str],
    entities: list[SourceEntity],
    edges: list[DependencyEdge],
) -> None:
    known = set(known_identifiers)

    ids = [e.identifier for e in entities]
    if len(ids) != len(set(ids)):
        raise GraphContractViolation("Duplicate identifier detected")

    for ent in entities:
        if not ent.identifier:
            raise GraphContractViolation("Entity identifier is empty")
        if ent.identifier not in known:
            raise GraphContractViolation(f"Entity not in known-identifier set: {ent.identifier}")
        for m in ent.methods:
            if (m.http_method is None) != (m.http_path is None):
                raise GraphContractViolation(
                    f"httpMethod/httpPath must be both set or both unset: {ent.identifier}#{m.name}"
                )

    entity_ids = set(ids)
    seen: set[tuple] = set()
    for e in edges:
        if e.to_identifier not in known:
            raise GraphContractViolation(f"Edge target not in known-identifier set: {e.to_identifier}")
        if e.from_identifier not in entity_ids or e.to_identifier not in entity_ids:
            raise GraphContractViolation(f"Edge endpoint has no entity: {e.from_identifier}->{e.to_identifier}")
        if e.from_identifier == e.to_identifier:
            raise GraphContractViolation(f"Self-loop edge: {e.from_identifier}")
        if (e.method is None) != (e.parameter_position is None):
            raise GraphContractViolation(f"Method-scoped edge needs both method and position: {e.from_identifier}")
        key = e.sort_key()
        if key in seen:
            raise GraphContractViolation(f"Duplicate edge: {e.from_identifier}->{e.to_identifier}")
        seen.add(key)
