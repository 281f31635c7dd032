"""JS/TS per-file extraction via Tree-sitter.

Walks the syntax tree once and records:
- imports as (imported name, local name, source) triples, plus bare module
  specifiers from `require()`, dynamic `import()` and re-exports
- classes with their decorators and function-valued members
- free functions, exported function bindings and wrapper calls
  (`const h = wrap(async () => ...)`)
- object-literal functions (never routable)
- imperative route registration calls (`app.get(...)`)

Nothing is resolved here; module specifiers stay as written.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from plugins.javascript.patterns import (
    CALL_ROUTE_RECEIVERS,
    CALL_ROUTE_VERBS,
    CLASS_DECORATOR_RULES,
    METHOD_DECORATOR_VERBS,
    METHOD_ENTRY_DECORATORS,
)
from core.records import Role


_CLASS_NODES = frozenset({"class_declaration", "abstract_class_declaration", "class"})
_FUNCTION_DECLARATIONS = frozenset({"function_declaration", "generator_function_declaration"})
_FUNCTION_VALUES = frozenset(
    {"arrow_function", "function_expression", "function", "generator_function", "generator_function_declaration"}
)
_DECLARATION_LISTS = frozenset({"lexical_declaration", "variable_declaration"})
_CLASS_FIELDS = frozenset({"public_field_definition", "field_definition"})
_PARAMETER_NODES = frozenset(
    {"required_parameter", "optional_parameter", "identifier", "assignment_pattern", "rest_pattern", "object_pattern", "array_pattern"}
)


@dataclass(frozen=True)
class RawImport:
    imported_name: str  # "default" for default imports, "*" for namespace imports
    local_name: str
    source: str


@dataclass(frozen=True)
class ScriptMethod:
    name: str
    line: int
    exported: bool = False
    routable: bool = True
    http_method: str | None = None
    http_path: str | None = None
    parameter_types: tuple[str | None, ...] = ()


@dataclass
class ScriptExtraction:
    imports: list[RawImport] = field(default_factory=list)
    module_specifiers: list[str] = field(default_factory=list)
    methods: list[ScriptMethod] = field(default_factory=list)
    decorator_role: Role | None = None
    decorator_entry: bool = False
    registers_routes: bool = False


def _text(node: Node | None) -> str:
    if node is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _line(node: Node) -> int:
    return int(node.start_point[0]) + 1


def string_value(node: Node | None) -> str | None:
    """Literal value of a string (or substitution-free template) node."""

    if node is None:
        return None
    if node.type == "string":
        return _text(node)[1:-1]
    if node.type == "template_string" and not any(c.type == "template_substitution" for c in node.named_children):
        return _text(node)[1:-1]
    return None


def decorator_name(node: Node) -> str:
    expr = node.named_children[0] if node.named_children else None
    if expr is not None and expr.type == "call_expression":
        expr = expr.child_by_field_name("function")
    if expr is not None and expr.type == "member_expression":
        expr = expr.child_by_field_name("property")
    return _text(expr)


def _decorator_first_string_arg(node: Node) -> str | None:
    expr = node.named_children[0] if node.named_children else None
    if expr is None or expr.type != "call_expression":
        return None
    args = expr.child_by_field_name("arguments")
    if args is None:
        return None
    for arg in args.named_children:
        value = string_value(arg)
        if value is not None:
            return value
    return None


def _annotated_type_name(param: Node) -> str | None:
    annotation = param.child_by_field_name("type")
    if annotation is None:
        return None
    inner = annotation.named_children[0] if annotation.named_children else None
    if inner is None:
        return None
    if inner.type == "generic_type":
        inner = inner.child_by_field_name("name") or (inner.named_children[0] if inner.named_children else None)
    if inner is not None and inner.type in ("type_identifier", "nested_type_identifier"):
        return _text(inner)
    return None


def parameter_types(function_node: Node) -> tuple[str | None, ...]:
    params = function_node.child_by_field_name("parameters")
    if params is None:
        # Single-identifier arrow function: `x => ...`
        return (None,) if function_node.child_by_field_name("parameter") is not None else ()
    return tuple(
        _annotated_type_name(p) if p.type in ("required_parameter", "optional_parameter") else None
        for p in params.named_children
        if p.type in _PARAMETER_NODES
    )


def _wrapped_function(value: Node | None) -> Node | None:
    """Return the function passed as first argument of a wrapper call, if any."""

    if value is None or value.type != "call_expression":
        return None
    args = value.child_by_field_name("arguments")
    if args is None or not args.named_children:
        return None
    first = args.named_children[0]
    return first if first.type in _FUNCTION_VALUES else None


class _Collector:
    def __init__(self, *, method_decorators: bool) -> None:
        self.out = ScriptExtraction()
        self.method_decorators = method_decorators
        self._decorator_rank: int | None = None

    def add_import(self, node) -> None:
        source = string_value(node.child_by_field_name("source"))
        if source is None:
            return
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None:
            self.out.module_specifiers.append(source)
            return
        for child in clause.named_children:
            if child.type == "identifier":
                self.out.imports.append(RawImport("default", _text(child), source))
            elif child.type == "namespace_import":
                ident = next((c for c in child.named_children if c.type == "identifier"), None)
                self.out.imports.append(RawImport("*", _text(ident), source))
            elif child.type == "named_imports":
                for spec in child.named_children:
                    if spec.type != "import_specifier":
                        continue
                    name = _text(spec.child_by_field_name("name"))
                    alias = spec.child_by_field_name("alias")
                    self.out.imports.append(RawImport(name, _text(alias) if alias is not None else name, source))

    def apply_class_decorators(self, names: list[str]) -> None:
        for rank, (decorator, role, entry) in enumerate(CLASS_DECORATOR_RULES):
            if decorator not in names:
                continue
            if self._decorator_rank is None or rank < self._decorator_rank:
                self._decorator_rank = rank
                self.out.decorator_role = role
            if entry:
                self.out.decorator_entry = True

    def add_class(self, node, extra_decorators: list, exported: bool) -> list:
        """Record a class; returns member bodies still to be walked."""

        decorators = list(extra_decorators) + [c for c in node.named_children if c.type == "decorator"]
        self.apply_class_decorators([decorator_name(d) for d in decorators])

        body = node.child_by_field_name("body")
        if body is None:
            return []
        pending: list = []
        to_walk: list = []
        for member in body.named_children:
            if member.type == "decorator":
                pending.append(member)
                continue
            own = [c for c in member.named_children if c.type == "decorator"]
            member_decorators, pending = pending + own, []
            if member.type == "method_definition":
                name = _text(member.child_by_field_name("name"))
                fn = member
            elif member.type in _CLASS_FIELDS:
                value = member.child_by_field_name("value")
                if value is None or value.type not in _FUNCTION_VALUES:
                    if value is not None:
                        to_walk.append(value)
                    continue
                name = _text(member.child_by_field_name("name") or member.child_by_field_name("property"))
                fn = value
            else:
                to_walk.append(member)
                continue
            fn_body = fn.child_by_field_name("body")
            if fn_body is not None:
                to_walk.append(fn_body)
            if name == "constructor":
                continue
            self.add_member(name, member, fn, member_decorators, exported)
        return to_walk

    def add_member(self, name: str, member, fn, decorators: list, exported: bool) -> None:
        verb = path = None
        for d in decorators:
            dname = decorator_name(d)
            if dname in METHOD_ENTRY_DECORATORS:
                self.out.decorator_entry = True
            if not self.method_decorators or verb is not None:
                continue
            for marker, mapped in METHOD_DECORATOR_VERBS:
                if dname == marker:
                    verb = mapped
                    path = _decorator_first_string_arg(d) or "/"
                    break
        self.out.methods.append(
            ScriptMethod(
                name=name,
                line=_line(member),
                exported=exported,
                http_method=verb,
                http_path=path,
                parameter_types=parameter_types(fn),
            )
        )

    def add_function(self, name: str, node, fn, *, exported: bool, routable: bool = True) -> None:
        self.out.methods.append(
            ScriptMethod(
                name=name,
                line=_line(node),
                exported=exported,
                routable=routable,
                parameter_types=parameter_types(fn),
            )
        )

    def add_call(self, node) -> None:
        fn = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        if fn is None:
            return
        if fn.type == "import" or (fn.type == "identifier" and _text(fn) == "require"):
            first = args.named_children[0] if args is not None and args.named_children else None
            value = string_value(first)
            if value is not None:
                self.out.module_specifiers.append(value)
            return
        if fn.type == "member_expression":
            receiver = fn.child_by_field_name("object")
            verb = fn.child_by_field_name("property")
            if (
                receiver is not None
                and receiver.type == "identifier"
                and _text(receiver) in CALL_ROUTE_RECEIVERS
                and _text(verb) in CALL_ROUTE_VERBS
            ):
                self.out.registers_routes = True


def extract_script(source: bytes, grammar: str, *, method_decorators: bool = False) -> ScriptExtraction:
    """Extract structural facts from one JS/TS file."""

    parser = get_parser(grammar)
    tree = parser.parse(source)
    c = _Collector(method_decorators=method_decorators)

    stack: list[tuple[Node, bool]] = [(tree.root_node, False)]
    while stack:
        node, exported = stack.pop()
        t = node.type
        follow: list = []

        if t == "import_statement":
            c.add_import(node)
            continue

        if t == "export_statement":
            source_node = node.child_by_field_name("source")
            if source_node is not None:
                value = string_value(source_node)
                if value is not None:
                    c.out.module_specifiers.append(value)
                continue
            decorators = [d for d in node.named_children if d.type == "decorator"]
            declaration = node.child_by_field_name("declaration")
            value = node.child_by_field_name("value")
            if declaration is not None and declaration.type in _CLASS_NODES:
                follow = c.add_class(declaration, decorators, exported=True)
                stack.extend((n, False) for n in reversed(follow))
                continue
            if value is not None and value.type in _FUNCTION_VALUES:
                name_node = value.child_by_field_name("name")
                c.add_function(_text(name_node) if name_node is not None else "default", value, value, exported=True)
                body = value.child_by_field_name("body")
                if body is not None:
                    stack.append((body, False))
                continue
            if value is not None and value.type in _CLASS_NODES:
                follow = c.add_class(value, decorators, exported=True)
                stack.extend((n, False) for n in reversed(follow))
                continue
            stack.extend((n, True) for n in reversed(node.named_children) if n.type != "decorator")
            continue

        if t in _CLASS_NODES:
            follow = c.add_class(node, [], exported=exported)
            stack.extend((n, False) for n in reversed(follow))
            continue

        if t in _FUNCTION_DECLARATIONS:
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                c.add_function(_text(name_node), node, node, exported=exported)
            body = node.child_by_field_name("body")
            if body is not None:
                stack.append((body, False))
            continue

        if t == "variable_declarator":
            name_node = node.child_by_field_name("name")
            value = node.child_by_field_name("value")
            if name_node is not None and name_node.type == "identifier" and value is not None:
                fn = value if value.type in _FUNCTION_VALUES else _wrapped_function(value)
                if fn is not None:
                    c.add_function(_text(name_node), node, fn, exported=exported)
            if value is not None:
                stack.append((value, False))
            continue

        if t == "pair":
            value = node.child_by_field_name("value")
            if value is not None and value.type in _FUNCTION_VALUES:
                key = node.child_by_field_name("key")
                name = string_value(key) or _text(key)
                c.add_function(name, node, value, exported=False, routable=False)
            stack.extend((n, False) for n in reversed(node.named_children))
            continue

        if t == "method_definition":
            # Class members never reach here; this is an object-literal method.
            c.add_function(_text(node.child_by_field_name("name")), node, node, exported=False, routable=False)
            body = node.child_by_field_name("body")
            if body is not None:
                stack.append((body, False))
            continue

        if t == "call_expression":
            c.add_call(node)

        keep_export = exported and t in _DECLARATION_LISTS
        stack.extend((n, keep_export) for n in reversed(node.named_children))

    return c.out
