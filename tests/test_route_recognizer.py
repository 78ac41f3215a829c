import textwrap

from postgen.extractors.golang.routes import (
    RouteCallRecognizer,
    go_title,
    is_graphql_path,
    is_valid_endpoint_path,
)
from postgen.extractors.golang.syntax import parse_go_source


def _recognize(body: str, bodies=None):
    src = parse_go_source(
        "package main\n\nfunc routes() {\n" + textwrap.dedent(body) + "\n}\n",
        "main.go",
    )
    return RouteCallRecognizer(bodies).recognize(src)


def test_handle_func_without_methods_is_any():
    endpoints = _recognize('router.HandleFunc("/v1/ping", handler)')
    assert [(e.method, e.path, e.handler) for e in endpoints] == [("ANY", "/v1/ping", "handler")]


def test_handle_func_with_methods_chain_yields_one_endpoint_per_verb():
    endpoints = _recognize('router.HandleFunc("/v1/users", handler).Methods("GET", "POST")')
    assert [(e.method, e.path) for e in endpoints] == [("GET", "/v1/users"), ("POST", "/v1/users")]


def test_methods_before_handle_func():
    endpoints = _recognize('r.Methods("delete").HandleFunc("/v1/users/{id}", h.DeleteUser)')
    assert [(e.method, e.path, e.handler) for e in endpoints] == [("DELETE", "/v1/users/{id}", "DeleteUser")]


def test_methods_chain_without_literal_verbs_falls_back_to_any():
    endpoints = _recognize('router.HandleFunc("/v1/dyn", handler).Methods(method)')
    assert [(e.method, e.path) for e in endpoints] == [("ANY", "/v1/dyn")]


def test_verb_selectors_of_any_router():
    endpoints = _recognize(
        """
        r.Get("/v1/orders", listOrders)
        r.POST("/v1/orders", h.CreateOrder)
        e.Patch("/v1/orders/{id}", func(c echo.Context) error { return nil })
        """
    )
    assert [(e.method, e.path, e.handler) for e in endpoints] == [
        ("GET", "/v1/orders", "listOrders"),
        ("POST", "/v1/orders", "CreateOrder"),
        ("PATCH", "/v1/orders/{id}", ""),
    ]
    assert all(e.kind == "REST" for e in endpoints)


def test_graphql_post_route():
    endpoints = _recognize('r.POST("/graphql", graphqlHandler)')
    assert len(endpoints) == 1
    e = endpoints[0]
    assert (e.method, e.path, e.kind) == ("POST", "/graphql", "GraphQL")
    assert e.graphql is not None and e.graphql.operation == "query"


def test_non_literal_and_invalid_paths_are_skipped():
    endpoints = _recognize(
        """
        r.Get(prefix+"/users", h)
        r.Get("/X-Request-ID", h)
        r.Get("/", h)
        r.Get("users", h)
        w.Header().Set("Content-Type", "application/json")
        """
    )
    assert endpoints == []


def test_bodies_attach_to_handlers_and_body_verbs():
    bodies = {"CreateUser": '{"name":"string"}', "ListUsers": '{"x":0}'}
    endpoints = _recognize(
        """
        r.HandleFunc("/v1/users", h.CreateUser).Methods("GET", "POST")
        r.Get("/v1/list", ListUsers)
        """,
        bodies=bodies,
    )
    by_method = {(e.method, e.path): e.body_raw for e in endpoints}
    assert by_method[("GET", "/v1/users")] == ""
    assert by_method[("POST", "/v1/users")] == '{"name":"string"}'
    # plain verb calls attach whatever body the handler consumes
    assert by_method[("GET", "/v1/list")] == '{"x":0}'


def test_path_filter():
    assert is_valid_endpoint_path("/v1/users")
    assert is_valid_endpoint_path("/health-check")
    assert not is_valid_endpoint_path("/X-Request-ID")
    assert not is_valid_endpoint_path("/content-type")
    assert not is_valid_endpoint_path("/Some-Header")
    assert not is_valid_endpoint_path("/a")
    assert not is_valid_endpoint_path("")
    assert not is_valid_endpoint_path("users")


def test_go_title_and_graphql_paths():
    assert go_title("x-request-id") == "X-Request-Id"
    assert go_title("hello world") == "Hello World"
    assert is_graphql_path("/api/graphql")
    assert is_graphql_path("/v1/query")
    assert not is_graphql_path("/v1/users")


def test_bare_handle_func_carries_handler_body():
    endpoints = _recognize(
        """
        mux.HandleFunc("/v1/upload", UploadFile)
        mux.Handle("/v1/import", api.ImportData)
        """,
        bodies={"UploadFile": '{"file":"string"}', "ImportData": '{"rows":[0]}'},
    )
    assert [(e.method, e.path, e.body_raw) for e in endpoints] == [
        ("ANY", "/v1/upload", '{"file":"string"}'),
        ("ANY", "/v1/import", '{"rows":[0]}'),
    ]
