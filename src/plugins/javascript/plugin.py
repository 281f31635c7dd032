"""JavaScript / TypeScript backend.

Identifiers are module paths relative to the framework's source root with
the extension stripped and `/` replaced by `.` (`users/user.service.ts`
-> `users.user.service`). Framework detection runs once in `prepare`.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path

from config import CodeGraphAnalysisSettings
from core.ignore_rules import IgnoreRules
from core.inventory import iter_source_files, relative_posix
from core.records import FileFacts, MethodDescriptor, ParameterReference, Reference, Role, SourceUnit, http_route
from plugins.base import BackendContext
from plugins.javascript.extractor import ScriptExtraction, extract_script
from plugins.javascript.framework import detect_framework
from plugins.javascript.patterns import (
    ENTRY_FILENAMES,
    EXCLUDED_DIRS,
    EXCLUDED_NAME_MARKERS,
    FILE_ROUTE_ROOT_SEGMENT,
    FILE_ROUTE_STEM,
    FILE_ROUTE_VERBS,
    FILENAME_ROLE_RULES,
    GRAMMAR_BY_SUFFIX,
    SOURCE_ALIAS_PREFIXES,
    SOURCE_SUFFIXES,
)


def strip_source_suffix(rel_posix: str) -> str:
    for suffix in sorted(SOURCE_SUFFIXES, key=len, reverse=True):
        if rel_posix.endswith(suffix):
            return rel_posix[: -len(suffix)]
    return rel_posix


def derive_identifier(path: Path, source_root: Path) -> str:
    return strip_source_suffix(path.relative_to(source_root).as_posix()).replace("/", ".")


def module_candidates(specifier: str, importer_dir: str) -> tuple[str, ...]:
    """Candidate identifiers for a module specifier, most specific first.

    `importer_dir` is the importing file's directory relative to the source root.
    """

    target: str | None = None
    if specifier.startswith("."):
        target = posixpath.normpath(posixpath.join(importer_dir, specifier))
        if target.startswith(".."):
            return ()
    else:
        for alias in SOURCE_ALIAS_PREFIXES:
            if specifier.startswith(alias):
                target = posixpath.normpath(specifier[len(alias):])
                break
    if target is None:
        return (specifier,)
    if target in ("", "."):
        return ("index",)
    ident = strip_source_suffix(target).replace("/", ".")
    return (ident, f"{ident}.index")


def file_route_path(rel_posix: str) -> str | None:
    """Route path for a file-convention route handler (`app/**/route.ts`), else None."""

    parts = rel_posix.split("/")
    if parts[-1].split(".", 1)[0] != FILE_ROUTE_STEM or FILE_ROUTE_ROOT_SEGMENT not in parts[:-1]:
        return None
    start = parts.index(FILE_ROUTE_ROOT_SEGMENT) + 1
    segments: list[str] = []
    for seg in parts[start:-1]:
        if seg.startswith("(") and seg.endswith(")"):
            continue  # route groups do not appear in the URL
        if seg.startswith("[") and seg.endswith("]"):
            seg = ":" + seg.strip("[]").removeprefix("...")
        segments.append(seg)
    return "/" + "/".join(segments)


def filename_role(file_name: str) -> Role:
    name = file_name.lower()
    for markers, role in FILENAME_ROLE_RULES:
        if any(m in name for m in markers):
            return role
    return Role.OTHER


@dataclass(frozen=True)
class JavaScriptBackend:
    name: str = "javascript"

    def applies_to(self, project_root: Path, settings: CodeGraphAnalysisSettings) -> bool:
        return (project_root / settings.JS_MANIFEST_FILE).is_file()

    def prepare(
        self, project_root: Path, settings: CodeGraphAnalysisSettings, ignore: IgnoreRules
    ) -> BackendContext:
        framework = detect_framework(
            project_root,
            manifest_name=settings.JS_MANIFEST_FILE,
            default_root=settings.JS_DEFAULT_SOURCE_ROOT,
        )
        root = project_root / framework.source_root
        return BackendContext(
            backend=self.name,
            project_root=project_root,
            source_roots=(root,) if root.is_dir() else (),
            ignore=ignore,
            framework=framework,
        )

    def discover_files(self, ctx: BackendContext) -> list[Path]:
        files: list[Path] = []
        for root in ctx.source_roots:
            files.extend(
                iter_source_files(
                    root,
                    project_root=ctx.project_root,
                    ignore=ctx.ignore,
                    suffixes=SOURCE_SUFFIXES,
                    excluded_dirs=EXCLUDED_DIRS,
                    excluded_name_markers=EXCLUDED_NAME_MARKERS,
                )
            )
        return files

    def identify(self, ctx: BackendContext, path: Path) -> tuple[SourceUnit, ...]:
        return (
            SourceUnit(
                backend=self.name,
                identifier=derive_identifier(path, ctx.source_roots[0]),
                path=relative_posix(path, ctx.project_root),
                abs_path=path,
            ),
        )

    def analyze_unit(self, ctx: BackendContext, unit: SourceUnit) -> FileFacts:
        grammar = GRAMMAR_BY_SUFFIX[unit.abs_path.suffix.lower()]
        framework = ctx.framework
        extraction = extract_script(
            unit.abs_path.read_bytes(),
            grammar,
            method_decorators=framework is not None and framework.has("decorators"),
        )

        rel_to_root = unit.abs_path.relative_to(ctx.source_roots[0]).as_posix()
        importer_dir = posixpath.dirname(rel_to_root)
        route_path = None
        if framework is not None and framework.name == "nextjs":
            route_path = file_route_path(relative_posix(unit.abs_path, ctx.project_root))

        methods = self._methods(extraction, route_path)
        role, entry = self._classify(extraction, unit.abs_path.name, route_path is not None, methods)
        return FileFacts(
            role=role,
            is_entry_point=entry,
            methods=methods,
            raw_references=self._references(extraction, importer_dir),
            parameter_references=self._parameter_references(extraction, importer_dir),
        )

    @staticmethod
    def _methods(extraction: ScriptExtraction, route_path: str | None) -> tuple[MethodDescriptor, ...]:
        out: list[MethodDescriptor] = []
        for m in extraction.methods:
            verb, path = m.http_method, m.http_path
            if route_path is not None and m.exported and m.name in FILE_ROUTE_VERBS:
                verb, path = m.name, route_path
            if not m.routable:
                verb = path = None
            verb, path = http_route(verb, path)
            out.append(MethodDescriptor(name=m.name, line=m.line, http_method=verb, http_path=path))
        return tuple(out)

    @staticmethod
    def _classify(
        extraction: ScriptExtraction,
        file_name: str,
        is_route_file: bool,
        methods: tuple[MethodDescriptor, ...],
    ) -> tuple[Role, bool]:
        role = extraction.decorator_role or Role.OTHER
        entry = extraction.decorator_entry
        if extraction.registers_routes:
            entry = True
            if role is Role.OTHER:
                role = Role.CONTROLLER
        if any(m.is_http_endpoint for m in methods):
            entry = True
            if is_route_file and role is Role.OTHER:
                role = Role.CONTROLLER
        if role is Role.OTHER:
            role = filename_role(file_name)
        if role is Role.OTHER and file_name.lower() in ENTRY_FILENAMES:
            entry = True
        return role, entry

    @staticmethod
    def _references(extraction: ScriptExtraction, importer_dir: str) -> tuple[Reference, ...]:
        specifiers = [imp.source for imp in extraction.imports] + list(extraction.module_specifiers)
        out: list[Reference] = []
        for spec in dict.fromkeys(specifiers):
            candidates = module_candidates(spec, importer_dir)
            if candidates:
                out.append(Reference(candidates))
        return tuple(out)

    @staticmethod
    def _parameter_references(extraction: ScriptExtraction, importer_dir: str) -> tuple[ParameterReference, ...]:
        by_local = {imp.local_name: imp.source for imp in extraction.imports}
        here = importer_dir.replace("/", ".")
        out: list[ParameterReference] = []
        for m in extraction.methods:
            for position, type_name in enumerate(m.parameter_types):
                if not type_name:
                    continue
                head = type_name.split(".", 1)[0]
                candidates: list[str] = []
                if head in by_local:
                    candidates.extend(module_candidates(by_local[head], importer_dir))
                candidates.append(f"{here}.{type_name}" if here else type_name)
                out.append(
                    ParameterReference(method=m.name, position=position, candidates=tuple(dict.fromkeys(candidates)))
                )
        return tuple(out)
