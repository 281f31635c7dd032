"""Error taxonomy for the analysis engine."""

from __future__ import annotations


class AnalysisError(Exception):
    """Base class for analysis errors."""


class FileExtractionError(AnalysisError):
    """A single file could not be read, parsed or scanned."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class BackendInvocationError(AnalysisError):
    """A backend's external tool failed; the whole backend contribution is discarded."""

    def __init__(
        self,
        backend: str,
        reason: str,
        *,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(f"{backend}: {reason}")
        self.backend = backend
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
