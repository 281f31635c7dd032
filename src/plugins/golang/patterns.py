"""Go marker tables.

All rule lists are ordered; the first matching entry wins.
"""

from __future__ import annotations

from core.records import Role


EXCLUDED_DIRS: frozenset[str] = frozenset({"vendor", "testdata", ".git", "node_modules", "third_party", "tools"})

TYPE_NAME_SUFFIX_RULES: tuple[tuple[tuple[str, ...], Role], ...] = (
    (("Handler", "Controller"), Role.CONTROLLER),
    (("Service", "UseCase", "Usecase"), Role.SERVICE),
    (("Repository", "Repo", "Store", "DAO"), Role.REPOSITORY),
    (("Request", "Response", "DTO", "Dto", "Payload"), Role.DTO),
    (("Config", "Configuration", "Settings"), Role.CONFIGURATION),
    (("Listener", "Consumer", "Subscriber", "Worker"), Role.LISTENER),
    (("Error",), Role.EXCEPTION),
)

DIRECTORY_KEYWORD_RULES: tuple[tuple[tuple[str, ...], Role], ...] = (
    (("handler", "handlers", "controller", "controllers", "api", "http", "rest", "grpc"), Role.CONTROLLER),
    (("service", "services", "usecase", "usecases", "business", "domain"), Role.SERVICE),
    (("repository", "repositories", "repo", "store", "storage", "dao", "db", "database", "persistence"), Role.REPOSITORY),
    (("model", "models", "entity", "entities"), Role.ENTITY),
    (("dto", "dtos", "request", "response", "payload"), Role.DTO),
    (("config", "configuration", "settings"), Role.CONFIGURATION),
    (("listener", "listeners", "consumer", "consumers", "subscriber", "worker", "workers", "event", "events"), Role.LISTENER),
    (("util", "utils", "helper", "helpers", "common", "pkg", "lib"), Role.UTILITY),
)

MAIN_FUNCTION = "main"
PANIC_EXCEPTION = "panic"
