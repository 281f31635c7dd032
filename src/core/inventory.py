"""Deterministic source discovery and per-run resource caps.

Discovery walks one source root, keeps files with the wanted suffixes, and
returns them sorted by project-relative POSIX path. Caps turn oversized files
and files beyond the per-run file cap into diagnostics instead of reading them.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import structlog

from core.ignore_rules import IgnoreRules
from core.records import Diagnostic


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CapResult:
    kept: list[tuple[str, Path]]
    diagnostics: list[Diagnostic]


def relative_posix(path: Path, project_root: Path) -> str:
    return path.relative_to(project_root).as_posix()


def iter_source_files(
    source_root: Path,
    *,
    project_root: Path,
    ignore: IgnoreRules,
    suffixes: tuple[str, ...],
    excluded_dirs: frozenset[str] = frozenset(),
    excluded_name_markers: tuple[str, ...] = (),
) -> list[Path]:
    """Return a deterministic list of source files under `source_root`."""

    if not source_root.is_dir():
        return []

    files: list[Path] = []
    for p in source_root.rglob("*"):
        if not p.is_file() or p.is_symlink():
            continue
        rel = relative_posix(p, project_root)
        if ignore.is_ignored(rel):
            continue
        rel_to_root = p.relative_to(source_root).parts
        if any(part in excluded_dirs for part in rel_to_root[:-1]):
            continue
        name = p.name.lower()
        if not name.endswith(suffixes):
            continue
        if any(marker in name for marker in excluded_name_markers):
            continue
        files.append(p)
    return sorted(files, key=lambda x: relative_posix(x, project_root))


def apply_file_caps(
    candidates: Iterable[tuple[str, Path]],
    *,
    project_root: Path,
    max_file_bytes: int,
    max_files: int,
) -> CapResult:
    """Drop files over the per-file size cap or beyond the per-run count cap.

    `candidates` are (backend name, absolute path) pairs in their final
    deterministic order; the count cap keeps the first `max_files` of them.
    """

    kept: list[tuple[str, Path]] = []
    diagnostics: list[Diagnostic] = []
    for backend, path in candidates:
        rel = relative_posix(path, project_root)
        if len(kept) >= max_files:
            diagnostics.append(
                Diagnostic(kind="file_limit_exceeded", path=rel, detail=f"max_files={max_files}")
            )
            continue
        try:
            size = path.stat().st_size
        except OSError as e:
            diagnostics.append(Diagnostic(kind="file_unreadable", path=rel, detail=str(e)))
            continue
        if size > max_file_bytes:
            logger.warning("inventory.file_skipped", path=rel, size=size, max_file_bytes=max_file_bytes)
            diagnostics.append(
                Diagnostic(kind="file_too_large", path=rel, detail=f"size={size} max={max_file_bytes}")
            )
            continue
        kept.append((backend, path))

    skipped_by_count = sum(1 for d in diagnostics if d.kind == "file_limit_exceeded")
    if skipped_by_count:
        logger.warning("inventory.file_limit_exceeded", skipped=skipped_by_count, max_files=max_files)
    return CapResult(kept=kept, diagnostics=diagnostics)


def read_source_text(path: Path) -> str:
    """Read a source file with newline normalization; undecodable bytes are replaced."""

    return path.read_bytes().decode("utf-8", errors="replace").replace("\r\n", "\n").replace("\r", "\n")
