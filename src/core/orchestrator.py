"""Analysis orchestrator.

Pipeline:
select backends -> prepare -> discover + caps -> Phase 1 identify (pool)
-> known set -> barrier -> Phase 2 extract + resolve (pool) -> merge -> validate
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

import structlog
from structlog.contextvars import bound_contextvars

from config import CodeGraphAnalysisSettings, get_code_graph_analysis_settings
from core.errors import BackendInvocationError
from core.fingerprint import graph_fingerprint
from core.graph import ProjectGraph, build_graph
from core.graph_contract import validate_graph_contract
from core.ignore_rules import build_ignore_rules
from core.inventory import apply_file_caps, relative_posix
from core.records import BackendFailure, Diagnostic, SourceUnit
from core.resolver import KnownSet, ResolvedUnit, build_known_set, merge_resolved, resolve_unit
from observability.tracing import get_tracer, stage_span
from plugins.base import BackendContext, LanguageBackend
from plugins.registry import default_backends, select_backends


logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    graph: ProjectGraph
    status: str  # "success" | "partial" | "failed"
    fingerprint: str
    diagnostics: tuple[Diagnostic, ...] = ()
    backend_failures: tuple[BackendFailure, ...] = ()
    frameworks: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "fingerprint": self.fingerprint,
            "graph": self.graph.to_dict(),
            "diagnostics": [d.__dict__ for d in self.diagnostics],
            "backendFailures": [f.__dict__ for f in self.backend_failures],
            "frameworks": dict(sorted(self.frameworks.items())),
        }


Prepared = dict[str, tuple[LanguageBackend, BackendContext]]


def _prepare_backends(
    project_root: Path,
    settings: CodeGraphAnalysisSettings,
    active: Iterable[LanguageBackend],
    diagnostics: list[Diagnostic],
    failures: list[BackendFailure],
) -> Prepared:
    ignore = build_ignore_rules(project_root)
    prepared: Prepared = {}
    for backend in active:
        with stage_span(tracer, "prepare", backend=backend.name):
            try:
                ctx = backend.prepare(project_root, settings, ignore)
            except BackendInvocationError as e:
                logger.error(
                    "backend.failed",
                    backend=backend.name,
                    reason=e.reason,
                    returncode=e.returncode,
                    stderr=e.stderr,
                )
                failures.append(BackendFailure(backend=backend.name, reason=e.reason))
                continue
        if not ctx.source_roots:
            logger.warning("backend.source_root_missing", backend=backend.name, project_root=str(project_root))
            diagnostics.append(Diagnostic(kind="source_root_missing", path=".", detail=backend.name))
        prepared[backend.name] = (backend, ctx)
    return prepared


def _identify(prepared: Prepared, item: tuple[str, Path]) -> tuple[tuple[SourceUnit, ...], Diagnostic | None]:
    name, path = item
    backend, ctx = prepared[name]
    rel = relative_posix(path, ctx.project_root)
    with bound_contextvars(project_root=str(ctx.project_root), backend=name, path=rel):
        try:
            return backend.identify(ctx, path), None
        except Exception as e:  # noqa: BLE001 - a file that cannot be identified is skipped
            logger.warning("phase1.identify_failed", exc_info=True)
            return (), Diagnostic(kind="extraction_failed", path=rel, detail=str(e))


def _extract(prepared: Prepared, known: KnownSet, unit: SourceUnit) -> tuple[ResolvedUnit | None, Diagnostic | None]:
    backend, ctx = prepared[unit.backend]
    with bound_contextvars(project_root=str(ctx.project_root), backend=unit.backend, path=unit.path):
        try:
            facts = backend.analyze_unit(ctx, unit)
        except Exception as e:  # noqa: BLE001 - file-level failures exclude the file, never the run
            logger.warning("phase2.extract_failed", exc_info=True)
            return None, Diagnostic(kind="extraction_failed", path=unit.path, detail=str(e))
        return resolve_unit(unit, facts, known), None


def _status(active_count: int, failures: Sequence[BackendFailure]) -> str:
    if not failures:
        return "success"
    if len(failures) >= active_count:
        return "failed"
    return "partial"


def analyze_project(
    project_root: Path | str,
    *,
    settings: CodeGraphAnalysisSettings | None = None,
    backends: Iterable[LanguageBackend] | None = None,
    only: Sequence[str] | None = None,
) -> AnalysisResult:
    project_root = Path(project_root)
    settings = settings or get_code_graph_analysis_settings()
    registered = tuple(backends) if backends is not None else default_backends()

    diagnostics: list[Diagnostic] = []
    failures: list[BackendFailure] = []

    with stage_span(tracer, "analyze_project", project_root=str(project_root)) as span:
        logger.info("analyze.start", project_root=str(project_root))

        active = select_backends(project_root, settings, registered, only)
        if not active:
            logger.warning("analyze.no_backends", project_root=str(project_root))
        span.set_attribute("backends", ",".join(b.name for b in active))

        prepared = _prepare_backends(project_root, settings, active, diagnostics, failures)

        with stage_span(tracer, "inventory"):
            candidates = [
                (name, path)
                for name, (backend, ctx) in prepared.items()
                for path in backend.discover_files(ctx)
            ]
            caps = apply_file_caps(
                candidates,
                project_root=project_root,
                max_file_bytes=settings.MAX_FILE_BYTES,
                max_files=settings.MAX_FILES_PER_RUN,
            )
            diagnostics.extend(caps.diagnostics)

        # Phase 1: every file in every backend is identified before any resolution starts.
        with stage_span(tracer, "phase1.identify"):
            with ThreadPoolExecutor(max_workers=settings.ANALYSIS_WORKERS) as pool:
                identified = list(pool.map(lambda item: _identify(prepared, item), caps.kept))
            units: list[SourceUnit] = []
            for found, diag in identified:
                units.extend(found)
                if diag is not None:
                    diagnostics.append(diag)
            known = build_known_set(units)
            diagnostics.extend(known.rejected)
            diagnostics.extend(known.collisions)
            logger.info("phase1.done", files=len(caps.kept), identifiers=len(known.identifiers))

        # Phase 2: pure per-unit extraction against the closed known set.
        with stage_span(tracer, "phase2.extract"):
            with ThreadPoolExecutor(max_workers=settings.ANALYSIS_WORKERS) as pool:
                extracted = list(pool.map(lambda unit: _extract(prepared, known, unit), known.units))
            resolved: list[ResolvedUnit] = []
            for result, diag in extracted:
                if result is not None:
                    resolved.append(result)
                if diag is not None:
                    diagnostics.append(diag)

        with stage_span(tracer, "merge"):
            entities, edges = merge_resolved(resolved)
            validate_graph_contract(known_identifiers=known.identifiers, entities=entities, edges=edges)
            graph = build_graph(entities, edges)

        status = _status(len(active), failures)
        fingerprint = graph_fingerprint(graph)
        span.set_attribute("status", status)
        span.set_attribute("entities", len(graph.entities))
        span.set_attribute("edges", len(graph.edges))

    frameworks = {
        name: ctx.framework.name for name, (_, ctx) in prepared.items() if ctx.framework is not None
    }
    logger.info(
        "analyze.done",
        project_root=str(project_root),
        status=status,
        entities=len(graph.entities),
        edges=len(graph.edges),
        entry_points=len(graph.entry_points),
        diagnostics=len(diagnostics),
        failed_backends=[f.backend for f in failures],
        fingerprint=fingerprint.value,
    )
    return AnalysisResult(
        graph=graph,
        status=status,
        fingerprint=fingerprint.value,
        diagnostics=tuple(diagnostics),
        backend_failures=tuple(failures),
        frameworks=frameworks,
    )
