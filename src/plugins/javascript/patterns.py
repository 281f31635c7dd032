"""JavaScript / TypeScript marker tables.

All rule lists are ordered; the first matching entry wins.
"""

from __future__ import annotations

from core.records import Role


SOURCE_SUFFIXES: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

# Extension -> tree-sitter grammar name in tree_sitter_language_pack.
GRAMMAR_BY_SUFFIX: dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

EXCLUDED_DIRS: frozenset[str] = frozenset(
    {"node_modules", "dist", ".next", ".nuxt", "build", "coverage", "__tests__", "__mocks__"}
)

EXCLUDED_NAME_MARKERS: tuple[str, ...] = (".spec.", ".test.", ".d.ts")

# (framework, dependency names, conventional source root, features)
FRAMEWORK_RULES: tuple[tuple[str, tuple[str, ...], str, frozenset[str]], ...] = (
    ("nestjs", ("@nestjs/core",), "src", frozenset({"decorators"})),
    ("nextjs", ("next",), "src", frozenset({"file_routing"})),
    ("nuxt", ("nuxt", "nuxt3"), "src", frozenset({"file_routing"})),
    ("angular", ("@angular/core",), "src", frozenset({"decorators"})),
    ("vue", ("vue",), "src", frozenset()),
    ("remix", ("@remix-run/node", "@remix-run/react"), "app", frozenset({"file_routing"})),
    ("sveltekit", ("@sveltejs/kit",), "src", frozenset({"file_routing"})),
    ("astro", ("astro",), "src", frozenset({"file_routing"})),
    ("fastify", ("fastify",), "src", frozenset({"call_routing"})),
    ("express", ("express",), "src", frozenset({"call_routing"})),
)

UNKNOWN_FRAMEWORK = "unknown"
TYPESCRIPT_DEPENDENCY = "typescript"

# (decorator, role, forces entry point)
CLASS_DECORATOR_RULES: tuple[tuple[str, Role, bool], ...] = (
    ("Controller", Role.CONTROLLER, True),
    ("Resolver", Role.CONTROLLER, True),
    ("Injectable", Role.SERVICE, False),
    ("Component", Role.UTILITY, False),
    ("Directive", Role.UTILITY, False),
    ("Pipe", Role.UTILITY, False),
    ("NgModule", Role.CONFIGURATION, False),
    ("Module", Role.CONFIGURATION, False),
    ("Entity", Role.ENTITY, False),
    ("Schema", Role.ENTITY, False),
)

METHOD_DECORATOR_VERBS: tuple[tuple[str, str], ...] = (
    ("Get", "GET"),
    ("Post", "POST"),
    ("Put", "PUT"),
    ("Delete", "DELETE"),
    ("Patch", "PATCH"),
    ("Options", "OPTIONS"),
    ("Head", "HEAD"),
    ("All", "ALL"),
)

# Decorators that make a method an entry point without an HTTP route.
METHOD_ENTRY_DECORATORS: frozenset[str] = frozenset(
    {"MessagePattern", "EventPattern", "Cron", "Interval", "Timeout", "OnEvent", "Process", "Query", "Mutation", "Subscription"}
)

CALL_ROUTE_RECEIVERS: frozenset[str] = frozenset({"app", "router", "server", "fastify"})
CALL_ROUTE_VERBS: frozenset[str] = frozenset({"get", "post", "put", "delete", "patch", "all", "use", "options", "head"})

FILE_ROUTE_VERBS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
FILE_ROUTE_ROOT_SEGMENT = "app"
FILE_ROUTE_STEM = "route"

FILENAME_ROLE_RULES: tuple[tuple[tuple[str, ...], Role], ...] = (
    ((".controller.",), Role.CONTROLLER),
    ((".resolver.",), Role.CONTROLLER),
    ((".service.",), Role.SERVICE),
    ((".repository.",), Role.REPOSITORY),
    ((".entity.", ".model.", ".schema."), Role.ENTITY),
    ((".dto.",), Role.DTO),
    ((".config.",), Role.CONFIGURATION),
    ((".middleware.", ".guard.", ".interceptor.", ".pipe.", ".filter.", ".util.", ".utils.", ".helper."), Role.UTILITY),
    ((".exception.", ".error."), Role.EXCEPTION),
    ((".listener.", ".subscriber.", ".consumer."), Role.LISTENER),
    ((".module.",), Role.CONFIGURATION),
)

ENTRY_FILENAMES: frozenset[str] = frozenset(
    {"main.ts", "main.js", "index.ts", "index.js", "app.ts", "app.js", "server.ts", "server.js"}
)

SOURCE_ALIAS_PREFIXES: tuple[str, ...] = ("@/", "~/")
