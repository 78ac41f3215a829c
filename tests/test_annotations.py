import textwrap

from postgen.extractors.golang.annotations import parse_comment_lines, parse_comments
from postgen.extractors.golang.syntax import parse_go_source


def test_route_block_with_header_body_and_tag():
    src = parse_go_source(
        textwrap.dedent(
            """
            package api

            // @route POST /v1/users Create a user
            // @header X-Api-Key: secret
            // @body {"a":1}
            // @tag users
            func CreateUser() {}
            """
        ),
        "api/users.go",
    )
    endpoints = parse_comments(src)
    assert len(endpoints) == 1
    e = endpoints[0]
    assert e.method == "POST"
    assert e.path == "/v1/users"
    assert e.description == "Create a user"
    assert e.headers == {"X-Api-Key": "secret"}
    assert e.body_raw == '{"a":1}'
    assert e.tags == ["users"]
    assert e.kind == "REST"
    assert e.source_file == "api/users.go"


def test_shared_directives_apply_to_every_route_of_the_group():
    endpoints = parse_comment_lines(
        [
            " @route GET /v1/items",
            " @rest delete /v1/items/{id} Remove",
            " @header Authorization: Bearer {{token}}",
            " @tag items",
        ],
        "items.go",
    )
    assert [(e.method, e.path) for e in endpoints] == [("GET", "/v1/items"), ("DELETE", "/v1/items/{id}")]
    for e in endpoints:
        assert e.headers == {"Authorization": "Bearer {{token}}"}
        assert e.tags == ["items"]

    # each endpoint owns its containers
    endpoints[0].tags.append("extra")
    assert endpoints[1].tags == ["items"]


def test_groups_are_independent():
    src = parse_go_source(
        textwrap.dedent(
            """
            package api

            // @route GET /v1/a
            // @tag a

            // @route GET /v1/b
            func B() {}
            """
        )
    )
    endpoints = parse_comments(src)
    assert [(e.path, e.tags) for e in endpoints] == [("/v1/a", ["a"]), ("/v1/b", [])]


def test_graphql_directive():
    endpoints = parse_comment_lines(
        [
            "@graphql mutation /graphql Create user",
            "@schema type User { id: ID! }",
            "@query mutation { createUser { id } }",
            '@variables {"name":"alice"}',
        ],
        "schema.go",
    )
    assert len(endpoints) == 1
    e = endpoints[0]
    assert e.method == "POST"
    assert e.kind == "GraphQL"
    assert e.description == "Create user"
    assert e.graphql is not None
    assert e.graphql.operation == "mutation"
    assert e.graphql.schema_text == "type User { id: ID! }"
    assert e.graphql.query == "mutation { createUser { id } }"
    assert e.graphql.variables == '{"name":"alice"}'


def test_unknown_method_becomes_any():
    endpoints = parse_comment_lines(["@route FETCH /v1/things"], "x.go")
    assert [(e.method, e.path) for e in endpoints] == [("ANY", "/v1/things")]


def test_directives_without_route_yield_nothing():
    assert parse_comment_lines(["@header A: b", "@tag x", "just a comment"], "x.go") == []


def test_block_comments_are_read():
    src = parse_go_source(
        textwrap.dedent(
            """
            package api

            /*
            @route PUT /v1/settings
            @body {"theme":"dark"}
            */
            func Save() {}
            """
        )
    )
    endpoints = parse_comments(src)
    assert len(endpoints) == 1
    assert endpoints[0].method == "PUT"
    assert endpoints[0].body_raw == '{"theme":"dark"}'


def test_trailing_comments_on_separate_statements_are_separate_groups():
    src = parse_go_source(
        textwrap.dedent(
            """
            package api

            func setup() {
                a() // @route GET /v1/a
                b() // @route GET /v1/b
                c() // @tag billing
            }
            """
        )
    )
    endpoints = parse_comments(src)
    assert [(e.path, e.tags) for e in endpoints] == [("/v1/a", []), ("/v1/b", [])]
