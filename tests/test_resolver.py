from pathlib import Path

from core.records import FileFacts, MethodDescriptor, ParameterReference, Reference, Role, SourceUnit
from core.resolver import build_known_set, merge_resolved, resolve_unit


def _unit(identifier: str, path: str, backend: str = "java") -> SourceUnit:
    return SourceUnit(backend=backend, identifier=identifier, path=path, abs_path=Path("/repo") / path)


def test_unknown_references_are_dropped_silently() -> None:
    a = _unit("p.A", "src/main/java/p/A.java")
    b = _unit("p.B", "src/main/java/p/B.java")
    known = build_known_set([a, b])

    facts = FileFacts(
        raw_references=(Reference(("p.B",)), Reference(("org.lib.External",)), Reference(("../../outside",))),
    )
    resolved = resolve_unit(a, facts, known)

    assert [(e.from_identifier, e.to_identifier) for e in resolved.edges] == [("p.A", "p.B")]
    assert known.collisions == ()


def test_first_known_candidate_wins() -> None:
    a = _unit("users.controller", "src/users/controller.ts", "javascript")
    idx = _unit("shared.index", "src/shared/index.ts", "javascript")
    known = build_known_set([a, idx])

    resolved = resolve_unit(a, FileFacts(raw_references=(Reference(("shared", "shared.index")),)), known)
    assert [e.to_identifier for e in resolved.edges] == ["shared.index"]


def test_collision_first_unit_wins_and_is_reported() -> None:
    java = _unit("shared.Config", "src/main/java/shared/Config.java", "java")
    js = _unit("shared.Config", "src/shared/Config.ts", "javascript")
    other = _unit("p.User", "src/main/java/p/User.java", "java")

    known = build_known_set([java, js, other])

    assert [u.path for u in known.units] == [java.path, other.path]
    assert known.identifiers == frozenset({"shared.Config", "p.User"})
    (diag,) = known.collisions
    assert diag.kind == "identifier_collision"
    assert diag.path == js.path
    assert java.path in diag.detail


def test_self_references_and_duplicates_are_excluded() -> None:
    a = _unit("p.A", "A.java")
    b = _unit("p.B", "B.java")
    known = build_known_set([a, b])
    facts = FileFacts(
        methods=(MethodDescriptor(name="copy", line=3), MethodDescriptor(name="use", line=5)),
        raw_references=(Reference(("p.A",)), Reference(("p.B",)), Reference(("p.B",))),
        parameter_references=(
            ParameterReference(method="copy", position=0, candidates=("p.A",)),
            ParameterReference(method="use", position=0, candidates=("p.B",)),
            ParameterReference(method="use", position=1, candidates=("p.B",)),
        ),
    )

    resolved = resolve_unit(a, facts, known)

    assert all(e.to_identifier != "p.A" for e in resolved.edges)
    keys = [(e.to_identifier, e.method, e.parameter_position) for e in resolved.edges]
    assert keys == [("p.B", None, None), ("p.B", "use", 0), ("p.B", "use", 1)]
    methods = {m.name: m for m in resolved.entity.methods}
    assert methods["copy"].parameter_identifiers == ()
    assert methods["use"].parameter_identifiers == ("p.B",)


def test_merge_prunes_edges_to_excluded_units_and_sorts() -> None:
    a = _unit("p.A", "A.java")
    b = _unit("p.B", "B.java")
    c = _unit("p.C", "C.java")
    known = build_known_set([a, b, c])

    ra = resolve_unit(a, FileFacts(role=Role.SERVICE, raw_references=(Reference(("p.C",)), Reference(("p.B",)))), known)
    rb = resolve_unit(b, FileFacts(), known)
    # p.C failed extraction and never produced a resolved unit.
    entities, edges = merge_resolved([rb, ra])

    assert [e.identifier for e in entities] == ["p.A", "p.B"]
    assert [(e.from_identifier, e.to_identifier) for e in edges] == [("p.A", "p.B")]


def test_malformed_identifiers_never_enter_the_known_set() -> None:
    good = _unit("p.A", "src/main/java/p/A.java")
    empty = _unit("", "main.go", "go")
    dangling = _unit(".Config", "main.go", "go")
    spaced = _unit("bad name", "src/bad name.ts", "javascript")

    known = build_known_set([good, empty, dangling, spaced])

    assert [u.identifier for u in known.units] == ["p.A"]
    assert known.identifiers == frozenset({"p.A"})
    assert known.collisions == ()
    assert [(d.kind, d.path) for d in known.rejected] == [
        ("extraction_failed", "main.go"),
        ("extraction_failed", "main.go"),
        ("extraction_failed", "src/bad name.ts"),
    ]
    assert "''" in known.rejected[0].detail
