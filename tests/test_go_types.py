import textwrap

from postgen.extractors.golang.syntax import parse_go_source
from postgen.extractors.golang.types import (
    example_value,
    extract_json_tag,
    render_json_object,
    render_type,
    resolve_json_key,
    struct_fields,
)


def _struct(src_text: str, name: str):
    src = parse_go_source(textwrap.dedent(src_text))
    for decl in src.declarations("type_declaration"):
        for spec in decl.named_children:
            if spec.type == "type_spec" and src.text(spec.child_by_field_name("name")) == name:
                return src, spec.child_by_field_name("type")
    raise AssertionError(f"struct {name} not found")


def test_extract_json_tag_variants():
    assert extract_json_tag('json:"name"') == "name"
    assert extract_json_tag('json:"email,omitempty"') == "email"
    assert extract_json_tag('db:"user_id" json:"id"') == "id"
    assert extract_json_tag('json:",omitempty"') == ""
    assert extract_json_tag('json:"-"') == "-"
    assert extract_json_tag('xml:"name"') == ""
    assert extract_json_tag("") == ""


def test_resolve_json_key_falls_back_to_lowercased_name():
    assert resolve_json_key("UserName", None) == "username"
    assert resolve_json_key("UserName", 'json:",omitempty"') == "username"
    assert resolve_json_key("UserName", 'json:"user_name"') == "user_name"


def test_example_value_table():
    assert example_value("string") == '"string"'
    assert example_value("int") == "0"
    assert example_value("uint16") == "0"
    assert example_value("int64") == "0"
    assert example_value("float64") == "0.0"
    assert example_value("bool") == "false"
    assert example_value("[]string") == '["string"]'
    assert example_value("[]int") == "[0]"
    assert example_value("map[string]int") == "{}"
    assert example_value("*int") == "0"
    assert example_value("time.Time") == '"string"'
    assert example_value("interface{}") == '"string"'


def test_render_type_covers_composite_types():
    src, node = _struct(
        """
        package models

        type Everything struct {
            A string
            B *int
            C []string
            D [4]byte
            E map[string][]int
            F time.Time
            G func()
        }
        """,
        "Everything",
    )
    fields = {f.name: f.type for f in struct_fields(src, node)}
    assert fields == {
        "A": "string",
        "B": "*int",
        "C": "[]string",
        "D": "[]byte",
        "E": "map[string][]int",
        "F": "time.Time",
        "G": "interface{}",
    }
    assert render_type(src, None) == "interface{}"


def test_struct_fields_keys_and_embedded():
    src, node = _struct(
        """
        package models

        type CreateUserRequest struct {
            Base
            *audit.Stamp
            Name     string `json:"name"`
            Email    string `json:"email,omitempty"`
            Password string `json:"-"`
            Age, Score int
        }
        """,
        "CreateUserRequest",
    )
    fields = struct_fields(src, node)
    assert [f.name for f in fields] == ["Base", "Stamp", "Name", "Email", "Password", "Age", "Score"]
    assert fields[1].type == "*audit.Stamp"
    assert [f.json_key for f in fields] == ["base", "stamp", "name", "email", "-", "age", "score"]


def test_render_json_object_is_compact_and_skips_excluded():
    src, node = _struct(
        """
        package models

        type Login struct {
            User     string   `json:"user"`
            Secret   string   `json:"-"`
            Tries    int      `json:"tries"`
            Remember bool     `json:"remember"`
            Scopes   []string `json:"scopes"`
        }
        """,
        "Login",
    )
    assert render_json_object(struct_fields(src, node)) == (
        '{"user":"string","tries":0,"remember":false,"scopes":["string"]}'
    )
