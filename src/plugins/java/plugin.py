"""Java backend: lexical scanning over `src/main/java` source roots.

Identifiers are fully-qualified class names derived from the file path
relative to its owning source root. Multi-module builds contribute one
source root per module.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from config import CodeGraphAnalysisSettings
from core.ignore_rules import IgnoreRules
from core.inventory import iter_source_files, read_source_text, relative_posix
from core.records import FileFacts, MethodDescriptor, ParameterReference, Reference, Role, SourceUnit, http_route
from plugins.base import BackendContext
from plugins.java.patterns import (
    BODY_ENTRY_POINT_ANNOTATIONS,
    ENTRY_POINT_ANNOTATIONS,
    LISTENER_ANNOTATIONS,
    MODULE_MARKER_FILES,
    NAME_SUFFIX_RULES,
    ROLE_ANNOTATION_RULES,
)
from plugins.java.scanner import JavaScan, parameter_type, scan_java_source


_PRIMITIVES = frozenset({"byte", "short", "int", "long", "float", "double", "boolean", "char", "void", "var"})
_EXCLUDED_FILES = ("package-info.java", "module-info.java")


def derive_identifier(path: Path, source_root: Path) -> str:
    rel = path.relative_to(source_root).with_suffix("")
    return ".".join(rel.parts)


def classify_java_role(scan: JavaScan, file_stem: str) -> Role:
    header = set(scan.header_annotations)
    for marker, role in ROLE_ANNOTATION_RULES:
        if marker in header:
            return role
    if any(a in scan.file_annotations for a in LISTENER_ANNOTATIONS):
        return Role.LISTENER
    for suffixes, role in NAME_SUFFIX_RULES:
        if file_stem.endswith(suffixes):
            return role
    return Role.OTHER


def is_java_entry_point(scan: JavaScan) -> bool:
    header = set(scan.header_annotations)
    if any(a in header for a in ENTRY_POINT_ANNOTATIONS):
        return True
    return any(a in scan.file_annotations for a in BODY_ENTRY_POINT_ANNOTATIONS)


def parameter_candidates(type_name: str, package: str, import_map: dict[str, str]) -> tuple[str, ...]:
    """Ordered candidates: as written (if qualified), import map, same package."""

    if type_name in _PRIMITIVES:
        return ()
    out: list[str] = []
    if "." in type_name:
        out.append(type_name)
    simple = type_name.split(".", 1)[0]
    imported = import_map.get(simple)
    if imported:
        out.append(imported + type_name[len(simple):])
    if package and "." not in type_name:
        out.append(f"{package}.{type_name}")
    return tuple(dict.fromkeys(out))


@dataclass(frozen=True)
class JavaBackend:
    name: str = "java"
    suffixes: tuple[str, ...] = (".java",)

    def applies_to(self, project_root: Path, settings: CodeGraphAnalysisSettings) -> bool:
        if (project_root / settings.JAVA_SOURCE_ROOT).is_dir():
            return True
        return any((project_root / marker).is_file() for marker in MODULE_MARKER_FILES)

    def prepare(
        self, project_root: Path, settings: CodeGraphAnalysisSettings, ignore: IgnoreRules
    ) -> BackendContext:
        roots: list[Path] = []
        conventional = settings.JAVA_SOURCE_ROOT.strip("/")
        for candidate in project_root.glob(f"**/{conventional}"):
            if not candidate.is_dir() or candidate.is_symlink():
                continue
            if ignore.is_ignored(relative_posix(candidate, project_root) + "/"):
                continue
            roots.append(candidate)
        roots.sort(key=lambda p: relative_posix(p, project_root))
        return BackendContext(
            backend=self.name,
            project_root=project_root,
            source_roots=tuple(roots),
            ignore=ignore,
        )

    def discover_files(self, ctx: BackendContext) -> list[Path]:
        files: dict[str, Path] = {}
        for root in ctx.source_roots:
            for p in iter_source_files(root, project_root=ctx.project_root, ignore=ctx.ignore, suffixes=self.suffixes):
                if p.name in _EXCLUDED_FILES:
                    continue
                files.setdefault(relative_posix(p, ctx.project_root), p)
        return [files[k] for k in sorted(files)]

    def identify(self, ctx: BackendContext, path: Path) -> tuple[SourceUnit, ...]:
        root = self._owning_root(ctx, path)
        return (
            SourceUnit(
                backend=self.name,
                identifier=derive_identifier(path, root),
                path=relative_posix(path, ctx.project_root),
                abs_path=path,
            ),
        )

    def analyze_unit(self, ctx: BackendContext, unit: SourceUnit) -> FileFacts:
        scan = scan_java_source(read_source_text(unit.abs_path), path=unit.path)
        package = scan.package or unit.identifier.rpartition(".")[0]
        import_map = {imp.rsplit(".", 1)[-1]: imp for imp in scan.imports}

        methods: list[MethodDescriptor] = []
        param_refs: list[ParameterReference] = []
        same_package: list[str] = []
        for member in scan.members:
            for position, param in enumerate(member.parameters):
                type_name = parameter_type(param)
                if type_name is None:
                    continue
                candidates = parameter_candidates(type_name, package, import_map)
                if not candidates:
                    continue
                param_refs.append(ParameterReference(method=member.name, position=position, candidates=candidates))
                if type_name.split(".", 1)[0] not in import_map and "." not in type_name:
                    same_package.append(candidates[-1])
            verb, route = http_route(member.http_method, member.http_path)
            methods.append(
                MethodDescriptor(
                    name=member.name,
                    line=member.line,
                    http_method=verb,
                    http_path=route,
                    parameter_identifiers=(),
                    declared_exceptions=member.declared_exceptions,
                    doc=member.doc,
                )
            )

        return FileFacts(
            role=classify_java_role(scan, unit.abs_path.stem),
            is_entry_point=is_java_entry_point(scan),
            methods=tuple(methods),
            raw_references=tuple(Reference((c,)) for c in dict.fromkeys(scan.imports + tuple(same_package))),
            parameter_references=tuple(param_refs),
        )

    @staticmethod
    def _owning_root(ctx: BackendContext, path: Path) -> Path:
        # Longest root wins for nested module layouts.
        owners = [r for r in ctx.source_roots if path.is_relative_to(r)]
        if not owners:
            return ctx.project_root
        return max(owners, key=lambda r: len(r.parts))
