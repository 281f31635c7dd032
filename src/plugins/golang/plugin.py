"""Go backend: reshapes the external analyzer's JSON into common entities.

The analyzer runs once in `prepare`; every later call is a lookup in the
read-only index built from its output. Entities are:
- one per package (identifier = import path, methods = free functions)
- one per struct and interface (identifier = `<import path>.<Name>`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from config import CodeGraphAnalysisSettings
from core.errors import FileExtractionError
from core.ignore_rules import IgnoreRules
from core.inventory import relative_posix
from core.records import FileFacts, MethodDescriptor, ParameterReference, Reference, Role, SourceUnit, http_route
from plugins.base import BackendContext
from plugins.golang.patterns import (
    DIRECTORY_KEYWORD_RULES,
    EXCLUDED_DIRS,
    MAIN_FUNCTION,
    PANIC_EXCEPTION,
    TYPE_NAME_SUFFIX_RULES,
)
from plugins.golang.runner import run_go_analyzer
from plugins.golang.schema import FunctionInfo, PackageAnalysis, ParamInfo, ProjectAnalysis


def bare_type_name(go_type: str) -> str:
    """`*[]pkg.Order` -> `Order`."""

    t = go_type.strip()
    while t.startswith(("*", "[]", "...")):
        t = t.removeprefix("*").removeprefix("[]").removeprefix("...")
    if t.startswith("map[") or t.startswith("func") or t.startswith("chan"):
        return ""
    t = t.split("[", 1)[0]  # generic instantiation
    return t.rsplit(".", 1)[-1]


def method_name(fn: FunctionInfo) -> str:
    if fn.receiver:
        return f"{fn.receiver.lstrip('*').split('[', 1)[0]}.{fn.name}"
    return fn.name


def param_candidates(param: ParamInfo, own_package: str) -> tuple[str, ...]:
    name = bare_type_name(param.type)
    if not name:
        return ()
    if param.package:
        return (f"{param.package}.{name}", param.package)
    if "." not in param.type:
        return (f"{own_package}.{name}",)
    return ()


def directory_role(directory: str) -> Role:
    parts = [p.lower() for p in PurePosixPath(directory).parts]
    for part in reversed(parts):
        for keywords, role in DIRECTORY_KEYWORD_RULES:
            if part in keywords:
                return role
    return Role.OTHER


def type_name_role(name: str) -> Role:
    for suffixes, role in TYPE_NAME_SUFFIX_RULES:
        if name.endswith(suffixes):
            return role
    return Role.OTHER


def package_role(pkg: PackageAnalysis) -> Role:
    role = Role.from_string(pkg.class_type)
    if role is Role.OTHER:
        role = directory_role(pkg.dir)
    return role


def function_descriptor(fn: FunctionInfo, own_package: str) -> tuple[MethodDescriptor, list[ParameterReference]]:
    name = method_name(fn)
    verb, route = http_route(fn.http_method, fn.http_path)
    refs = [
        ParameterReference(method=name, position=i, candidates=c)
        for i, p in enumerate(fn.params)
        if (c := param_candidates(p, own_package))
    ]
    return (
        MethodDescriptor(
            name=name,
            line=fn.line,
            http_method=verb,
            http_path=route,
            declared_exceptions=(PANIC_EXCEPTION,) if fn.has_panic else (),
            doc=fn.doc or None,
        ),
        refs,
    )


@dataclass(frozen=True)
class GoEntitySpec:
    identifier: str
    home_file: str  # project-relative POSIX path
    facts: FileFacts


@dataclass(frozen=True)
class GoIndex:
    module: str
    entities: dict[str, GoEntitySpec] = field(default_factory=dict)
    # home file -> identifiers declared there, in declaration order
    by_file: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _join(directory: str, file_name: str) -> str:
    d = directory.strip("/")
    return file_name if d in ("", ".") else f"{d}/{file_name}"


def _package_facts(pkg: PackageAnalysis) -> FileFacts:
    methods: list[MethodDescriptor] = []
    param_refs: list[ParameterReference] = []
    entry = pkg.is_entry_point
    for fn in sorted(pkg.functions, key=lambda f: (f.file, f.line, f.name)):
        descriptor, refs = function_descriptor(fn, pkg.path)
        methods.append(descriptor)
        param_refs.extend(refs)
        if fn.http_method or (fn.name == MAIN_FUNCTION and not fn.receiver):
            entry = True
    refs = [Reference((imp,)) for imp in pkg.imports]
    refs.extend(Reference(r.candidates) for r in param_refs)
    return FileFacts(
        role=package_role(pkg),
        is_entry_point=entry,
        methods=tuple(methods),
        raw_references=tuple(refs),
        parameter_references=tuple(param_refs),
    )


def _struct_facts(pkg: PackageAnalysis, struct) -> FileFacts:
    methods: list[MethodDescriptor] = []
    param_refs: list[ParameterReference] = []
    entry = False
    for fn in sorted(struct.methods, key=lambda f: (f.line, f.name)):
        descriptor, refs = function_descriptor(fn, pkg.path)
        methods.append(descriptor)
        param_refs.extend(refs)
        if fn.http_method:
            entry = True

    refs: list[Reference] = []
    for f in struct.fields:
        name = bare_type_name(f.type)
        if f.package and name:
            refs.append(Reference((f"{f.package}.{name}", f.package)))
        elif name and "." not in f.type:
            refs.append(Reference((f"{pkg.path}.{name}",)))
    for embedded in struct.embedded_types:
        name = bare_type_name(embedded)
        if name and "." not in embedded:
            refs.append(Reference((f"{pkg.path}.{name}",)))
    for iface in struct.implements:
        refs.append(Reference((f"{pkg.path}.{bare_type_name(iface)}",)))
    refs.extend(Reference(r.candidates) for r in param_refs)

    role = type_name_role(struct.name)
    if role is Role.OTHER:
        role = package_role(pkg)
    return FileFacts(
        role=role,
        is_entry_point=entry,
        methods=tuple(methods),
        raw_references=tuple(refs),
        parameter_references=tuple(param_refs),
    )


def _interface_facts(pkg: PackageAnalysis, iface) -> FileFacts:
    methods: list[MethodDescriptor] = []
    param_refs: list[ParameterReference] = []
    for sig in iface.methods:
        methods.append(MethodDescriptor(name=sig.name, line=iface.line))
        param_refs.extend(
            ParameterReference(method=sig.name, position=i, candidates=c)
            for i, p in enumerate(sig.params)
            if (c := param_candidates(p, pkg.path))
        )
    refs = [Reference((f"{pkg.path}.{bare_type_name(e)}",)) for e in iface.embedded_interfaces if "." not in e]
    refs.extend(Reference(r.candidates) for r in param_refs)
    role = type_name_role(iface.name)
    if role is Role.OTHER:
        role = package_role(pkg)
    return FileFacts(
        role=role,
        methods=tuple(methods),
        raw_references=tuple(refs),
        parameter_references=tuple(param_refs),
    )


def build_go_index(analysis: ProjectAnalysis) -> GoIndex:
    entities: dict[str, GoEntitySpec] = {}
    by_file: dict[str, list[str]] = {}

    def add(identifier: str, home: str, facts: FileFacts) -> None:
        # Duplicate identifiers inside one analyzer document: first declaration wins.
        if identifier in entities:
            return
        entities[identifier] = GoEntitySpec(identifier=identifier, home_file=home, facts=facts)
        by_file.setdefault(home, []).append(identifier)

    for pkg in sorted(analysis.packages, key=lambda p: p.path):
        if any(part in EXCLUDED_DIRS for part in PurePosixPath(pkg.dir).parts):
            continue
        files = sorted(pkg.files)
        if not files:
            continue
        add(pkg.path, _join(pkg.dir, files[0]), _package_facts(pkg))
        for struct in pkg.structs:
            add(f"{pkg.path}.{struct.name}", _join(pkg.dir, struct.file or files[0]), _struct_facts(pkg, struct))
        for iface in pkg.interfaces:
            add(f"{pkg.path}.{iface.name}", _join(pkg.dir, iface.file or files[0]), _interface_facts(pkg, iface))

    return GoIndex(
        module=analysis.module,
        entities=entities,
        by_file={k: tuple(v) for k, v in by_file.items()},
    )


@dataclass(frozen=True)
class GoBackend:
    name: str = "go"

    def applies_to(self, project_root: Path, settings: CodeGraphAnalysisSettings) -> bool:
        return (project_root / settings.GO_MODULE_FILE).is_file()

    def prepare(
        self, project_root: Path, settings: CodeGraphAnalysisSettings, ignore: IgnoreRules
    ) -> BackendContext:
        has_module = (project_root / settings.GO_MODULE_FILE).is_file()
        index = GoIndex(module="")
        if has_module:
            analysis = run_go_analyzer(
                project_root,
                executable=settings.GO_ANALYZER_BIN,
                timeout_seconds=settings.GO_ANALYZER_TIMEOUT_SECONDS,
            )
            index = build_go_index(analysis)
        return BackendContext(
            backend=self.name,
            project_root=project_root,
            source_roots=(project_root,) if has_module else (),
            ignore=ignore,
            index=index,
        )

    def discover_files(self, ctx: BackendContext) -> list[Path]:
        index: GoIndex = ctx.index
        rels = [rel for rel in index.by_file if not ctx.ignore.is_ignored(rel)]
        return [ctx.project_root / rel for rel in sorted(rels)]

    def identify(self, ctx: BackendContext, path: Path) -> tuple[SourceUnit, ...]:
        index: GoIndex = ctx.index
        rel = relative_posix(path, ctx.project_root)
        return tuple(
            SourceUnit(backend=self.name, identifier=ident, path=rel, abs_path=path)
            for ident in index.by_file.get(rel, ())
        )

    def analyze_unit(self, ctx: BackendContext, unit: SourceUnit) -> FileFacts:
        index: GoIndex = ctx.index
        spec = index.entities.get(unit.identifier)
        if spec is None:
            raise FileExtractionError(unit.path, f"unknown Go entity {unit.identifier}")
        return spec.facts
