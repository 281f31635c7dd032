"""Ignore rules for deterministic source discovery.

Uses gitignore-compatible matching via `pathspec`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pathspec


# Never analyzed, whatever the backend. Backend-specific exclusions live in each plugin's patterns.
DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # VCS
    ".git/",
    ".hg/",
    ".svn/",
    # Dependencies and generated output
    "node_modules/",
    "target/",
    "out/",
    ".gradle/",
    # IDE / OS junk
    ".idea/",
    ".vscode/",
    "*.swp",
    ".DS_Store",
    "Thumbs.db",
)


@dataclass(frozen=True)
class IgnoreRules:
    spec: pathspec.PathSpec

    def is_ignored(self, repo_rel_posix_path: str) -> bool:
        return self.spec.match_file(repo_rel_posix_path)


def build_ignore_rules(project_root: Path, extra_patterns: list[str] | None = None) -> IgnoreRules:
    """Build ignore rules from defaults + optional `.gitignore` + extra patterns."""

    patterns: list[str] = list(DEFAULT_IGNORE_PATTERNS)
    if extra_patterns:
        patterns.extend(extra_patterns)

    gitignore = project_root / ".gitignore"
    if gitignore.is_file():
        patterns.extend(gitignore.read_text(encoding="utf-8", errors="replace").splitlines())

    spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
    return IgnoreRules(spec=spec)
