"""Internal record contracts for the project graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional


Identifier = str  # fully-qualified type name, module path, or package-qualified symbol


class Role(str, Enum):
    CONTROLLER = "CONTROLLER"
    SERVICE = "SERVICE"
    REPOSITORY = "REPOSITORY"
    ENTITY = "ENTITY"
    DTO = "DTO"
    CONFIGURATION = "CONFIGURATION"
    LISTENER = "LISTENER"
    UTILITY = "UTILITY"
    EXCEPTION = "EXCEPTION"
    OTHER = "OTHER"

    @property
    def description(self) -> str:
        return _ROLE_DESCRIPTIONS[self]

    @classmethod
    def from_string(cls, value: str | None) -> "Role":
        if not value:
            return cls.OTHER
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.OTHER


_ROLE_DESCRIPTIONS: dict[Role, str] = {
    Role.CONTROLLER: "Handles inbound requests (HTTP, RPC, messaging)",
    Role.SERVICE: "Business logic and orchestration",
    Role.REPOSITORY: "Data access and persistence",
    Role.ENTITY: "Domain or persistence model",
    Role.DTO: "Data transfer object",
    Role.CONFIGURATION: "Wiring, modules and settings",
    Role.LISTENER: "Event, message or job consumer",
    Role.UTILITY: "Shared helpers and cross-cutting concerns",
    Role.EXCEPTION: "Error type",
    Role.OTHER: "Unclassified",
}


def http_route(verb: str | None, path: str | None) -> tuple[Optional[str], Optional[str]]:
    """Normalize an HTTP (verb, path) pair so both are set or neither is."""

    verb = (verb or "").strip().upper() or None
    path = (path or "").strip() or None
    if verb is None or path is None:
        return None, None
    return verb, path


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    line: int
    http_method: Optional[str] = None
    http_path: Optional[str] = None
    parameter_identifiers: tuple[Identifier, ...] = ()
    declared_exceptions: tuple[str, ...] = ()
    doc: Optional[str] = None

    @property
    def is_http_endpoint(self) -> bool:
        return self.http_method is not None and self.http_path is not None


@dataclass(frozen=True)
class Reference:
    """One raw reference; the first candidate present in the known set wins."""

    candidates: tuple[str, ...]


@dataclass(frozen=True)
class ParameterReference:
    """Candidate identifiers for one declared parameter of a method."""

    method: str
    position: int  # 0-based index in the declared parameter list
    candidates: tuple[str, ...]


@dataclass(frozen=True)
class FileFacts:
    """Phase-2 extraction output for a single source unit."""

    role: Role = Role.OTHER
    is_entry_point: bool = False
    methods: tuple[MethodDescriptor, ...] = ()
    raw_references: tuple[Reference, ...] = ()
    parameter_references: tuple[ParameterReference, ...] = ()


@dataclass(frozen=True)
class SourceUnit:
    """Phase-1 output: one identifiable unit owned by a backend."""

    backend: str
    identifier: Identifier
    path: str  # project-relative POSIX path
    abs_path: Path


@dataclass(frozen=True)
class SourceEntity:
    identifier: Identifier
    source_file: str
    role: Role = Role.OTHER
    is_entry_point: bool = False
    methods: tuple[MethodDescriptor, ...] = ()


@dataclass(frozen=True)
class DependencyEdge:
    from_identifier: Identifier
    to_identifier: Identifier
    method: Optional[str] = None
    parameter_position: Optional[int] = None

    def sort_key(self) -> tuple:
        return (
            self.from_identifier,
            self.to_identifier,
            self.method or "",
            -1 if self.parameter_position is None else self.parameter_position,
        )


@dataclass(frozen=True)
class FrameworkInfo:
    name: str
    source_root: str
    features: frozenset[str] = field(default_factory=frozenset)

    def has(self, feature: str) -> bool:
        return feature in self.features


@dataclass(frozen=True)
class Diagnostic:
    kind: str  # file_too_large | file_limit_exceeded | file_unreadable | extraction_failed | identifier_collision | source_root_missing
    path: str
    detail: str = ""


@dataclass(frozen=True)
class BackendFailure:
    backend: str
    reason: str
