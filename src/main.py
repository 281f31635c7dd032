"""Code graph analysis command line entry point.

Runs one analysis over a project tree and writes the graph plus its
diagnostics envelope as JSON (stdout by default). Logs go to stderr.

Exit status: 0 success, 2 partial (some backend failed), 1 failed.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

import structlog

from config import get_code_graph_analysis_settings
from configuration.logging_config import LEVELS, configure_logging
from core.orchestrator import AnalysisResult, analyze_project
from observability.tracing import init_tracing
from persistence.graph_rows import dependency_rows, entity_rows, method_rows, parameter_edge_rows


logger = structlog.get_logger(__name__)

EXIT_CODES = {"success": 0, "partial": 2, "failed": 1}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-graph-analyze",
        description="Build a dependency graph of a multi-language project.",
    )
    parser.add_argument("project_root", type=Path, help="Root directory of the project to analyze")
    parser.add_argument(
        "--backend",
        action="append",
        dest="backends",
        metavar="NAME",
        help="Run only this backend (repeatable): java, javascript, go",
    )
    parser.add_argument("--output", "-o", type=Path, help="Write JSON here instead of stdout")
    parser.add_argument("--log-level", choices=sorted(LEVELS), help="Overrides LOG_LEVEL")
    parser.add_argument(
        "--emit-rows",
        metavar="PROJECT_ID",
        help="Also emit storage rows scoped to this project id",
    )
    parser.add_argument("--trace", action="store_true", help="Print OpenTelemetry spans to stderr")
    return parser


def render(result: AnalysisResult, project_id: str | None = None) -> dict:
    payload = result.to_dict()
    if project_id:
        payload["rows"] = {
            "entities": entity_rows(project_id, result.graph),
            "methods": method_rows(project_id, result.graph),
            "parameterEdges": parameter_edge_rows(project_id, result.graph),
            "dependencies": dependency_rows(project_id, result.graph),
        }
    return payload


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_code_graph_analysis_settings()

    configure_logging(args.log_level or settings.LOG_LEVEL)
    init_tracing("code-graph-analysis", args.trace)

    root: Path = args.project_root
    if not root.is_dir():
        logger.error("cli.project_root_missing", project_root=str(root))
        return EXIT_CODES["failed"]

    try:
        result = analyze_project(root, settings=settings, only=args.backends)
    except ValueError as e:
        logger.error("cli.invalid_arguments", error=str(e))
        return EXIT_CODES["failed"]

    text = json.dumps(render(result, args.emit_rows), indent=2, sort_keys=True, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info("cli.output_written", path=str(args.output), status=result.status)
    else:
        sys.stdout.write(text + "\n")
    return EXIT_CODES[result.status]


if __name__ == "__main__":
    sys.exit(main())
