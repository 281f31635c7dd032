"""Pydantic models for the external Go analyzer's JSON document.

Keys are camelCase on the wire. Unknown keys are ignored and `null` is
treated as "absent" so older or newer analyzer builds keep parsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _AnalyzerModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # Go marshals nil slices as null; let field defaults apply instead.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ParamInfo(_AnalyzerModel):
    name: str = ""
    type: str = ""
    package: str = ""
    is_pointer: bool = False
    is_slice: bool = False
    is_variadic: bool = False


class FieldInfo(_AnalyzerModel):
    name: str = ""
    type: str = ""
    package: str = ""
    is_exported: bool = False
    tag: str = ""


class FunctionInfo(_AnalyzerModel):
    name: str
    file: str = ""
    line: int = 0
    receiver: str = ""
    params: list[ParamInfo] = Field(default_factory=list)
    returns: list[str] = Field(default_factory=list)
    http_method: str = ""
    http_path: str = ""
    has_panic: bool = False
    doc: str = ""


class MethodSignature(_AnalyzerModel):
    name: str
    params: list[ParamInfo] = Field(default_factory=list)


class StructInfo(_AnalyzerModel):
    name: str
    file: str = ""
    line: int = 0
    fields: list[FieldInfo] = Field(default_factory=list)
    methods: list[FunctionInfo] = Field(default_factory=list)
    embedded_types: list[str] = Field(default_factory=list)
    implements: list[str] = Field(default_factory=list)


class InterfaceInfo(_AnalyzerModel):
    name: str
    file: str = ""
    line: int = 0
    methods: list[MethodSignature] = Field(default_factory=list)
    embedded_interfaces: list[str] = Field(default_factory=list)


class PackageAnalysis(_AnalyzerModel):
    path: str
    dir: str = "."
    files: list[str] = Field(default_factory=list)
    imports: list[str] = Field(default_factory=list)
    structs: list[StructInfo] = Field(default_factory=list)
    interfaces: list[InterfaceInfo] = Field(default_factory=list)
    functions: list[FunctionInfo] = Field(default_factory=list)
    is_entry_point: bool = False
    class_type: str = ""


class ProjectAnalysis(_AnalyzerModel):
    module: str = ""
    packages: list[PackageAnalysis] = Field(default_factory=list)
