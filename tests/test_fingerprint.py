from core.fingerprint import canonical_json_bytes, graph_fingerprint, sha256_hex
from core.graph import build_graph
from core.records import DependencyEdge, Role, SourceEntity


def test_canonical_json_is_key_order_independent() -> None:
    assert canonical_json_bytes({"b": 1, "a": [1, 2]}) == canonical_json_bytes({"a": [1, 2], "b": 1})
    assert canonical_json_bytes({"a": 1}) == b'{"a":1}'


def test_fingerprint_ignores_input_order() -> None:
    a = SourceEntity("p.A", "A.java", Role.SERVICE)
    b = SourceEntity("p.B", "B.java")
    e = DependencyEdge("p.A", "p.B")

    f1 = graph_fingerprint(build_graph([a, b], [e]))
    f2 = graph_fingerprint(build_graph([b, a], [e, e]))

    assert f1 == f2
    assert f1.value == "graph:" + sha256_hex(canonical_json_bytes(build_graph([a, b], [e]).to_dict()))
    assert (f1.entity_count, f1.edge_count) == (2, 1)


def test_fingerprint_moves_when_roles_change() -> None:
    before = graph_fingerprint(build_graph([SourceEntity("p.A", "A.java", Role.SERVICE)], []))
    after = graph_fingerprint(build_graph([SourceEntity("p.A", "A.java", Role.REPOSITORY)], []))
    assert before.value != after.value
