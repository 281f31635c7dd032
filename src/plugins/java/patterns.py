"""Java marker tables.

All rule lists are ordered; the first matching entry wins.
"""

from __future__ import annotations

import re

from core.records import Role


MODULE_MARKER_FILES: tuple[str, ...] = ("pom.xml", "build.gradle", "build.gradle.kts", "settings.gradle")

ROLE_ANNOTATION_RULES: tuple[tuple[str, Role], ...] = (
    ("RestController", Role.CONTROLLER),
    ("Controller", Role.CONTROLLER),
    ("Service", Role.SERVICE),
    ("Repository", Role.REPOSITORY),
    ("Configuration", Role.CONFIGURATION),
    ("Entity", Role.ENTITY),
    ("KafkaListener", Role.LISTENER),
    ("EventListener", Role.LISTENER),
)

# Listener markers usually sit on methods, so they are also looked for anywhere in the file.
LISTENER_ANNOTATIONS: tuple[str, ...] = ("KafkaListener", "EventListener")

NAME_SUFFIX_RULES: tuple[tuple[tuple[str, ...], Role], ...] = (
    (("Exception", "Error"), Role.EXCEPTION),
    (("Dto", "DTO", "Request", "Response"), Role.DTO),
    (("Util", "Utils", "Helper"), Role.UTILITY),
)

ENTRY_POINT_ANNOTATIONS: tuple[str, ...] = (
    "RestController",
    "Controller",
    "KafkaListener",
    "Scheduled",
    "EventListener",
    "SpringBootApplication",
)

BODY_ENTRY_POINT_ANNOTATIONS: tuple[str, ...] = (
    "KafkaListener",
    "Scheduled",
    "EventListener",
    "SpringBootApplication",
)

HTTP_MAPPING_ANNOTATIONS: tuple[tuple[str, str], ...] = (
    ("GetMapping", "GET"),
    ("PostMapping", "POST"),
    ("PutMapping", "PUT"),
    ("DeleteMapping", "DELETE"),
    ("PatchMapping", "PATCH"),
)

GENERIC_MAPPING_ANNOTATION = "RequestMapping"
DEFAULT_GENERIC_VERB = "GET"

# How many lines above a member declaration are searched for its routing marker.
MAPPING_LOOKBACK_LINES = 5

MODIFIERS: frozenset[str] = frozenset(
    {
        "public",
        "protected",
        "private",
        "static",
        "final",
        "abstract",
        "synchronized",
        "native",
        "default",
        "transient",
        "volatile",
        "strictfp",
        "sealed",
        "non-sealed",
    }
)

# Keywords that can look like `name(` at the start of a statement.
NON_MEMBER_KEYWORDS: frozenset[str] = frozenset(
    {"if", "for", "while", "switch", "catch", "return", "new", "throw", "else", "do", "try", "synchronized"}
)

RE_PACKAGE = re.compile(r"^\s*package\s+([\w.]+)\s*;")
RE_IMPORT = re.compile(r"^\s*import\s+(static\s+)?([\w.]+(?:\.\*)?)\s*;")
RE_TYPE_DECLARATION = re.compile(r"\b(?:class|interface|enum|record|@interface)\s+([A-Za-z_$][\w$]*)")
RE_ANNOTATION = re.compile(r"@([A-Za-z_$][\w$.]*)")
RE_MEMBER = re.compile(
    r"^\s*(?:@[\w.]+(?:\([^)]*\))?\s+)*"
    r"(?:(?:public|protected|private|static|final|abstract|synchronized|native|default|strictfp)\s+)*"
    r"(?:<[^>]*>\s+)?"
    r"(?:([\w$.]+(?:<.*>)?(?:\[\])*)\s+)?"
    r"([A-Za-z_$][\w$]*)\s*\("
)
RE_THROWS = re.compile(r"\)\s*throws\s+([\w$.,\s]+?)\s*(?:\{|;|$)")
RE_STRING_LITERAL = re.compile(r'"((?:[^"\\]|\\.)*)"')
RE_NAMED_PATH_ATTR = re.compile(r'\b(?:value|path)\s*=\s*\{?\s*"((?:[^"\\]|\\.)*)"')
RE_REQUEST_METHOD = re.compile(r"\bmethod\s*=\s*\{?\s*(?:RequestMethod\.)?([A-Z]+)")
