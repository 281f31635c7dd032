"""Invocation of the external Go analyzer.

One blocking subprocess call per run, bounded by a timeout. Any failure
(missing executable, timeout, non-zero exit, malformed output) raises
`BackendInvocationError`; nothing is partially returned.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import structlog
from pydantic import ValidationError

from core.errors import BackendInvocationError
from observability.tracing import get_tracer
from plugins.golang.schema import ProjectAnalysis


logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)

_STDERR_TAIL = 2000


def run_go_analyzer(project_root: Path, *, executable: str, timeout_seconds: int) -> ProjectAnalysis:
    cmd = [executable, str(project_root)]
    with tracer.start_as_current_span("go_analyzer") as span:
        span.set_attribute("executable", executable)
        logger.info("go_analyzer.start", project_root=str(project_root), executable=executable)
        try:
            proc = subprocess.run(
                cmd,
                cwd=project_root,
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
                check=False,
            )
        except FileNotFoundError as e:
            raise BackendInvocationError("go", f"analyzer executable not found: {executable}") from e
        except subprocess.TimeoutExpired as e:
            raise BackendInvocationError("go", f"analyzer timed out after {timeout_seconds}s") from e

        span.set_attribute("returncode", proc.returncode)
        if proc.returncode != 0:
            stderr = (proc.stderr or "")[-_STDERR_TAIL:]
            raise BackendInvocationError(
                "go",
                f"analyzer exited with status {proc.returncode}",
                returncode=proc.returncode,
                stderr=stderr,
            )

        try:
            analysis = ProjectAnalysis.model_validate_json(proc.stdout or "")
        except ValidationError as e:
            raise BackendInvocationError("go", f"analyzer produced malformed JSON: {e.error_count()} error(s)") from e

    logger.info("go_analyzer.done", module=analysis.module, packages=len(analysis.packages))
    return analysis
