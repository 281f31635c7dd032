"""Backend contract types.

Every language backend is a stateless frozen dataclass satisfying
`LanguageBackend`. Per-project state (source roots, detected framework,
pre-computed analyzer output) is built once by `prepare` and passed back in
as a read-only `BackendContext`, so per-file calls are safe to run on a
thread pool.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Protocol

import structlog

from config import CodeGraphAnalysisSettings
from core.ignore_rules import IgnoreRules
from core.records import FileFacts, FrameworkInfo, MethodDescriptor, Role, SourceUnit


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BackendContext:
    backend: str
    project_root: Path
    source_roots: tuple[Path, ...]
    ignore: IgnoreRules
    framework: FrameworkInfo | None = None
    index: Any = None  # backend-owned, read-only after prepare()


class LanguageBackend(Protocol):
    name: str

    def applies_to(self, project_root: Path, settings: CodeGraphAnalysisSettings) -> bool:
        """Return True when the project carries this backend's marker file(s)."""

    def prepare(
        self, project_root: Path, settings: CodeGraphAnalysisSettings, ignore: IgnoreRules
    ) -> BackendContext:
        """Resolve source roots and project-wide facts. May raise BackendInvocationError."""

    def discover_files(self, ctx: BackendContext) -> list[Path]:
        """Return absolute source paths owned by this backend (must be deterministic)."""

    def identify(self, ctx: BackendContext, path: Path) -> tuple[SourceUnit, ...]:
        """Phase 1: the unit(s) a file defines. Pure function of the path (and prepared index)."""

    def analyze_unit(self, ctx: BackendContext, unit: SourceUnit) -> FileFacts:
        """Phase 2: classification, methods and raw references for one unit."""


def extract_facts(backend: LanguageBackend, ctx: BackendContext, unit: SourceUnit) -> FileFacts:
    """Run Phase-2 extraction; a unit that cannot be analyzed yields empty facts."""

    try:
        return backend.analyze_unit(ctx, unit)
    except Exception:  # noqa: BLE001 - file-level failures never escape a backend
        logger.warning("backend.unit_failed", backend=ctx.backend, path=unit.path, exc_info=True)
        return FileFacts()


def classify_role(backend: LanguageBackend, ctx: BackendContext, unit: SourceUnit) -> Role:
    return extract_facts(backend, ctx, unit).role


def is_entry_point(backend: LanguageBackend, ctx: BackendContext, unit: SourceUnit) -> bool:
    return extract_facts(backend, ctx, unit).is_entry_point


def extract_methods(
    backend: LanguageBackend, ctx: BackendContext, unit: SourceUnit
) -> tuple[MethodDescriptor, ...]:
    return extract_facts(backend, ctx, unit).methods


def extract_raw_references(backend: LanguageBackend, ctx: BackendContext, unit: SourceUnit) -> set[str]:
    return {c for ref in extract_facts(backend, ctx, unit).raw_references for c in ref.candidates}


def extract_parameter_references(
    backend: LanguageBackend, ctx: BackendContext, unit: SourceUnit
) -> Mapping[str, tuple[str, ...]]:
    """Method name -> candidate identifiers across all of its parameters, in signature order."""

    out: dict[str, list[str]] = {}
    for ref in extract_facts(backend, ctx, unit).parameter_references:
        bucket = out.setdefault(ref.method, [])
        for c in ref.candidates:
            if c not in bucket:
                bucket.append(c)
    return {k: tuple(v) for k, v in out.items()}
