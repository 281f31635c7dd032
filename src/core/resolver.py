"""Two-phase identifier resolution.

Phase 1 (`build_known_set`) closes the set of project identifiers and
applies the collision policy. Phase 2 (`resolve_unit`) filters one unit's
raw references against that closed set. `resolve_unit` only reads the
known set, so it is safe to call from worker threads once Phase 1 is done.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable

import structlog

from core.records import (
    DependencyEdge,
    Diagnostic,
    FileFacts,
    MethodDescriptor,
    SourceEntity,
    SourceUnit,
)


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class KnownSet:
    units: tuple[SourceUnit, ...]  # winners only, in collision-resolution order
    identifiers: frozenset[str]
    collisions: tuple[Diagnostic, ...]
    rejected: tuple[Diagnostic, ...] = ()  # units whose identifier is malformed

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.identifiers


@dataclass(frozen=True)
class ResolvedUnit:
    entity: SourceEntity
    edges: tuple[DependencyEdge, ...]


def is_valid_identifier(identifier: str) -> bool:
    """Non-empty, no whitespace, no leading or trailing `.` separator."""

    return (
        bool(identifier)
        and not any(ch.isspace() for ch in identifier)
        and not identifier.startswith(".")
        and not identifier.endswith(".")
    )


def build_known_set(units: Iterable[SourceUnit]) -> KnownSet:
    """Close the identifier set; the first unit to claim an identifier keeps it.

    `units` must already be in the deterministic resolution order (backend
    registry order, then project-relative path). Later claimants are dropped
    and reported; nothing is merged. Units with a malformed identifier never
    enter the set and are reported as extraction failures.
    """

    owners: dict[str, SourceUnit] = {}
    winners: list[SourceUnit] = []
    collisions: list[Diagnostic] = []
    rejected: list[Diagnostic] = []
    for unit in units:
        if not is_valid_identifier(unit.identifier):
            logger.warning(
                "resolver.invalid_identifier", backend=unit.backend, path=unit.path, identifier=unit.identifier
            )
            rejected.append(
                Diagnostic(
                    kind="extraction_failed",
                    path=unit.path,
                    detail=f"{unit.backend} produced an invalid identifier {unit.identifier!r}",
                )
            )
            continue
        owner = owners.get(unit.identifier)
        if owner is None:
            owners[unit.identifier] = unit
            winners.append(unit)
            continue
        logger.warning(
            "resolver.collision",
            identifier=unit.identifier,
            kept=f"{owner.backend}:{owner.path}",
            dropped=f"{unit.backend}:{unit.path}",
        )
        collisions.append(
            Diagnostic(
                kind="identifier_collision",
                path=unit.path,
                detail=f"identifier {unit.identifier!r} already defined by {owner.backend}:{owner.path}",
            )
        )
    return KnownSet(
        units=tuple(winners),
        identifiers=frozenset(owners),
        collisions=tuple(collisions),
        rejected=tuple(rejected),
    )


def first_known(candidates: Iterable[str], known: KnownSet) -> str | None:
    for c in candidates:
        if c in known:
            return c
    return None


def resolve_unit(unit: SourceUnit, facts: FileFacts, known: KnownSet) -> ResolvedUnit:
    """Filter one unit's references to the known set and build its edges."""

    me = unit.identifier
    edges: dict[tuple, DependencyEdge] = {}

    def add(edge: DependencyEdge) -> None:
        if edge.to_identifier == me:
            return
        edges.setdefault(edge.sort_key(), edge)

    for ref in facts.raw_references:
        target = first_known(ref.candidates, known)
        if target is not None:
            add(DependencyEdge(from_identifier=me, to_identifier=target))

    params_by_method: dict[str, list[str]] = {}
    for pref in facts.parameter_references:
        target = first_known(pref.candidates, known)
        if target is None:
            continue
        if target != me:
            bucket = params_by_method.setdefault(pref.method, [])
            if target not in bucket:
                bucket.append(target)
        add(DependencyEdge(from_identifier=me, to_identifier=target))
        add(
            DependencyEdge(
                from_identifier=me,
                to_identifier=target,
                method=pref.method,
                parameter_position=pref.position,
            )
        )

    methods: list[MethodDescriptor] = []
    for m in facts.methods:
        resolved = params_by_method.get(m.name)
        methods.append(replace(m, parameter_identifiers=tuple(resolved)) if resolved else m)

    entity = SourceEntity(
        identifier=me,
        source_file=unit.path,
        role=facts.role,
        is_entry_point=facts.is_entry_point,
        methods=tuple(methods),
    )
    return ResolvedUnit(entity=entity, edges=tuple(sorted(edges.values(), key=DependencyEdge.sort_key)))


def merge_resolved(resolved: Iterable[ResolvedUnit]) -> tuple[list[SourceEntity], list[DependencyEdge]]:
    """Single-threaded reduction: union, prune edges to excluded units, sort."""

    resolved = list(resolved)
    entities = {r.entity.identifier: r.entity for r in resolved}
    for ident, entity in entities.items():
        if any(p not in entities for m in entity.methods for p in m.parameter_identifiers):
            entities[ident] = replace(
                entity,
                methods=tuple(
                    replace(m, parameter_identifiers=tuple(p for p in m.parameter_identifiers if p in entities))
                    for m in entity.methods
                ),
            )
    edges: dict[tuple, DependencyEdge] = {}
    for r in resolved:
        for e in r.edges:
            if e.to_identifier in entities:
                edges.setdefault(e.sort_key(), e)
    return (
        [entities[k] for k in sorted(entities)],
        sorted(edges.values(), key=DependencyEdge.sort_key),
    )
