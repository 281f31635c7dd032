"""Framework detection from the dependency manifest (once per project)."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from core.records import FrameworkInfo
from plugins.javascript.patterns import FRAMEWORK_RULES, TYPESCRIPT_DEPENDENCY, UNKNOWN_FRAMEWORK


logger = structlog.get_logger(__name__)


def read_manifest_dependencies(manifest: Path) -> set[str] | None:
    """Return declared dependency names, or None when the manifest is missing or unreadable."""

    if not manifest.is_file():
        return None
    try:
        data = json.loads(manifest.read_text(encoding="utf-8", errors="replace"))
    except (OSError, ValueError) as e:
        logger.warning("framework.manifest_unreadable", manifest=str(manifest), error=str(e))
        return None
    if not isinstance(data, dict):
        return None
    names: set[str] = set()
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            names.update(str(k) for k in section)
    return names


def _effective_root(project_root: Path, conventional: str, default_root: str) -> str:
    for candidate in (conventional, default_root):
        if candidate and (project_root / candidate).is_dir():
            return candidate
    return "."


def detect_framework(project_root: Path, *, manifest_name: str = "package.json", default_root: str = "src") -> FrameworkInfo:
    deps = read_manifest_dependencies(project_root / manifest_name)
    if deps is None:
        return FrameworkInfo(
            name=UNKNOWN_FRAMEWORK,
            source_root=_effective_root(project_root, default_root, default_root),
        )

    features: set[str] = set()
    if TYPESCRIPT_DEPENDENCY in deps:
        features.add("typescript")

    for name, markers, conventional_root, rule_features in FRAMEWORK_RULES:
        if any(m in deps for m in markers):
            info = FrameworkInfo(
                name=name,
                source_root=_effective_root(project_root, conventional_root, default_root),
                features=frozenset(features | rule_features),
            )
            logger.info("framework.detected", framework=name, source_root=info.source_root, features=sorted(info.features))
            return info

    return FrameworkInfo(
        name=UNKNOWN_FRAMEWORK,
        source_root=_effective_root(project_root, default_root, default_root),
        features=frozenset(features),
    )
