"""Backend registry and selection."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

from config import CodeGraphAnalysisSettings
from plugins.base import LanguageBackend


def default_backends() -> tuple[LanguageBackend, ...]:
    """Registry order is significant: it is the collision-resolution order."""

    # Local import so each backend module is only loaded when the registry is built.
    from plugins.golang.plugin import GoBackend
    from plugins.java.plugin import JavaBackend
    from plugins.javascript.plugin import JavaScriptBackend

    return (JavaBackend(), JavaScriptBackend(), GoBackend())


def select_backends(
    project_root: Path,
    settings: CodeGraphAnalysisSettings,
    backends: Iterable[LanguageBackend],
    only: Sequence[str] | None = None,
) -> list[LanguageBackend]:
    """Return the active backends for a project, in registry order.

    Without `only`, a backend is active when its marker file is present.
    With `only`, exactly the named backends run; unknown names are rejected.
    """

    registered = list(backends)
    by_name = {b.name: b for b in registered}
    if only:
        unknown = sorted(set(only) - set(by_name))
        if unknown:
            raise ValueError(f"Unsupported backend(s)={unknown!r}. Supported={sorted(by_name)}")
        wanted = set(only)
        return [b for b in registered if b.name in wanted]
    return [b for b in registered if b.applies_to(project_root, settings)]
