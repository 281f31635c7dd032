from core.records import DependencyEdge, MethodDescriptor, Role, http_route


def test_http_route_is_both_or_neither() -> None:
    assert http_route("get", "/users") == ("GET", "/users")
    assert http_route("GET", None) == (None, None)
    assert http_route(None, "/users") == (None, None)
    assert http_route("  ", "/users") == (None, None)
    assert http_route("post", "  ") == (None, None)


def test_method_descriptor_endpoint_flag() -> None:
    assert MethodDescriptor(name="m", line=1, http_method="GET", http_path="/").is_http_endpoint
    assert not MethodDescriptor(name="m", line=1).is_http_endpoint


def test_role_from_string_defaults_to_other() -> None:
    assert Role.from_string("service") is Role.SERVICE
    assert Role.from_string("handler") is Role.OTHER
    assert Role.from_string(None) is Role.OTHER
    assert all(r.description for r in Role)


def test_edge_sort_key_orders_class_edges_before_method_edges() -> None:
    class_edge = DependencyEdge("a", "b")
    method_edge = DependencyEdge("a", "b", method="m", parameter_position=0)
    assert sorted([method_edge, class_edge], key=DependencyEdge.sort_key) == [class_edge, method_edge]
