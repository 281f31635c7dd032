"""Service-specific configuration for code graph analysis."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field

from configuration.base_config import BaseConfig


class CodeGraphAnalysisSettings(BaseConfig):
    """Settings specific to code graph analysis."""

    JAVA_SOURCE_ROOT: str = Field(
        default="src/main/java",
        description="Conventional Java source root, relative to each module root.",
    )

    JS_DEFAULT_SOURCE_ROOT: str = Field(
        default="src",
        description="Fallback JS/TS source root when no framework convention applies.",
    )

    JS_MANIFEST_FILE: str = Field(
        default="package.json",
        description="Dependency manifest used for JS/TS framework detection.",
    )

    GO_MODULE_FILE: str = Field(
        default="go.mod",
        description="Module-root marker file for the Go backend.",
    )

    GO_ANALYZER_BIN: str = Field(
        default="go-analyzer",
        description="External Go analyzer executable; emits one JSON document on stdout.",
    )

    GO_ANALYZER_TIMEOUT_SECONDS: int = Field(
        default=120,
        description="Hard timeout for one analyzer invocation.",
        ge=1,
        le=3600,
    )

    MAX_FILE_BYTES: int = Field(
        default=5 * 1024 * 1024,
        description="Files larger than this are skipped and reported as diagnostics.",
        ge=1,
    )

    MAX_FILES_PER_RUN: int = Field(
        default=20_000,
        description="Total source files analyzed per run across all backends.",
        ge=1,
    )

    ANALYSIS_WORKERS: int = Field(
        default=8,
        description="Thread pool size for per-file identification and extraction.",
        ge=1,
        le=64,
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level for the CLI.",
    )


@lru_cache()
def get_code_graph_analysis_settings() -> CodeGraphAnalysisSettings:
    """Return cached service settings instance."""

    return CodeGraphAnalysisSettings()
