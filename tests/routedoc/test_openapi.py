import json
from typing import Any

from routedoc.declaration import declaration_to_references
from routedoc.models import HTTP_METHODS, ExcludeRules, Registry, Route
from routedoc.openapi import assemble, parser_content_types

STRUCTURED = {"application/json", "application/x-www-form-urlencoded", "multipart/form-data"}


def _operation(document: dict[str, Any], path: str, method: str) -> dict[str, Any]:
    return document["paths"][path][method]


def test_assemble_document_shape() -> None:
    """Test the result carries paths and component schemas only."""
    document = assemble([Route(method="get", path="/")], definitions={"Name": {"type": "string"}})

    assert set(document) == {"components", "paths"}
    assert document["components"] == {"schemas": {"Name": {"type": "string"}}}
    assert _operation(document, "/", "get") == {"operationId": "getIndex"}


def test_assemble_synthesizes_path_parameters() -> None:
    """Test routes without a params schema get one string parameter per path token."""
    document = assemble([Route(method="get", path="/user/:id/posts/:postId")])

    operation = _operation(document, "/user/{id}/posts/{postId}", "get")
    assert operation["operationId"] == "getUserByIdPostsByPostId"
    assert operation["parameters"] == [
        {"name": "id", "in": "path", "required": True, "schema": {"type": "string"}},
        {"name": "postId", "in": "path", "required": True, "schema": {"type": "string"}},
    ]


def test_assemble_parameter_locations_and_required() -> None:
    """Test path parameters are always required, others only when listed."""
    route = Route(
        method="get",
        path="/items/:id",
        hooks={
            "params": {"type": "object", "properties": {"id": {"type": "integer"}}},
            "query": {
                "type": "object",
                "properties": {"page": {"type": "integer"}, "q": {"type": "string"}},
                "required": ["q"],
            },
            "headers": {"type": "object", "properties": {"x-api-key": {"type": "string"}}, "required": ["x-api-key"]},
            "cookie": {"type": "object", "properties": {"session": {"type": "string"}}},
        },
    )

    parameters = _operation(assemble([route]), "/items/{id}", "get")["parameters"]

    assert [(p["name"], p["in"], p["required"]) for p in parameters] == [
        ("id", "path", True),
        ("page", "query", False),
        ("q", "query", True),
        ("x-api-key", "header", True),
        ("session", "cookie", False),
    ]
    assert parameters[0]["schema"] == {"type": "integer"}


def test_assemble_parameters_from_reference_and_intersection() -> None:
    """Test parameter schemas are resolved through references and intersections."""
    route = Route(
        method="get",
        path="/search",
        hooks={
            "query": {
                "allOf": [
                    {"$ref": "#/components/schemas/Paging"},
                    {"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]},
                ]
            }
        },
    )
    paging = {"type": "object", "properties": {"page": {"type": "integer"}}, "required": ["page"]}

    parameters = _operation(assemble([route], definitions={"Paging": paging}), "/search", "get")["parameters"]

    assert [(p["name"], p["required"]) for p in parameters] == [("page", True), ("q", True)]


def test_assemble_optional_paths() -> None:
    """Test optional segments expand into several paths with their own operation ids."""
    document = assemble([Route(method="get", path="/user/:id?")])

    assert set(document["paths"]) == {"/user/{id}", "/user"}
    assert _operation(document, "/user/{id}", "get")["operationId"] == "getUserById"
    assert _operation(document, "/user", "get")["operationId"] == "getUser"


def test_assemble_explicit_operation_id_and_detail() -> None:
    """Test detail fields are copied verbatim and an explicit operation id wins."""
    detail = {"operationId": "fetchUser", "summary": "Fetch a user", "tags": ["users"]}
    document = assemble([Route(method="get", path="/user/:id", detail=detail)])

    operation = _operation(document, "/user/{id}", "get")
    assert operation["operationId"] == "fetchUser"
    assert operation["summary"] == "Fetch a user"

    operation["tags"].append("mutated")
    assert detail["tags"] == ["users"]


def test_assemble_all_method_expands_to_every_verb() -> None:
    """Test the wildcard method writes one identical operation per verb."""
    document = assemble([Route(method="all", path="/proxy")])

    path_item = document["paths"]["/proxy"]
    assert set(path_item) == set(HTTP_METHODS)
    assert {operation["operationId"] for operation in path_item.values()} == {"allProxy"}


def test_assemble_request_body_default_content_types(user_schema: dict[str, Any]) -> None:
    """Test structured bodies get three content types and primitive bodies plain text."""
    routes = [
        Route(method="post", path="/users", hooks={"body": user_schema}),
        Route(method="post", path="/notes", hooks={"body": {"type": "string"}}),
    ]

    document = assemble(routes)

    users_body = _operation(document, "/users", "post")["requestBody"]
    assert set(users_body["content"]) == STRUCTURED
    assert users_body["required"] is True
    assert users_body["description"] == "A registered user"

    notes_body = _operation(document, "/notes", "post")["requestBody"]
    assert notes_body == {"content": {"text/plain": {"schema": {"type": "string"}}}, "required": True}


def test_assemble_request_body_declared_parsers(user_schema: dict[str, Any]) -> None:
    """Test declared parsers decide the content types, parser functions are skipped."""
    route = Route(method="post", path="/users", hooks={"body": user_schema, "parse": ["json", lambda request: None]})

    body = _operation(assemble([route]), "/users", "post")["requestBody"]

    assert list(body["content"]) == ["application/json"]


def test_assemble_request_body_skipped_for_get_and_head(user_schema: dict[str, Any]) -> None:
    """Test methods that cannot carry a body get no request body."""
    routes = [Route(method=method, path="/users", hooks={"body": user_schema}) for method in ("get", "head")]

    document = assemble(routes)

    assert "requestBody" not in _operation(document, "/users", "get")
    assert "requestBody" not in _operation(document, "/users", "head")


def test_assemble_responses(user_schema: dict[str, Any]) -> None:
    """Test responses per status, content by kind, void responses without content."""
    route = Route(
        method="get",
        path="/users/:id",
        hooks={
            "response": {
                200: "User",
                204: {"type": "null"},
                404: {"type": "string", "description": "Not found"},
            }
        },
    )

    responses = _operation(assemble([route], definitions={"User": user_schema}), "/users/{id}", "get")["responses"]

    assert responses["200"] == {
        "description": "A registered user",
        "content": {"application/json": {"schema": {"$ref": "#/components/schemas/User"}}},
    }
    assert responses["204"] == {"description": "Response for status 204"}
    assert responses["404"] == {
        "description": "Not found",
        "content": {"text/plain": {"schema": {"type": "string", "description": "Not found"}}},
    }


def test_assemble_single_response_is_status_200() -> None:
    """Test a single response schema documents the 200 status."""
    route = Route(method="get", path="/ping", hooks={"response": {"type": "object", "properties": {}}})

    responses = _operation(assemble([route]), "/ping", "get")["responses"]

    assert list(responses) == ["200"]
    assert responses["200"]["description"] == "Response for status 200"
    assert "application/json" in responses["200"]["content"]


def test_assemble_exclusions() -> None:
    """Test hidden routes and every exclusion rule."""
    routes = [
        Route(method="get", path="/visible"),
        Route(method="get", path="/hidden", hide=True),
        Route(method="get", path="/detail-hidden", detail={"hide": True}),
        Route(method="options", path="/visible"),
        Route(method="get", path="/favicon.ico"),
        Route(method="get", path="/internal/metrics"),
        Route(method="get", path="/exact"),
        Route(method="get", path="/admin", detail={"tags": ["admin"]}),
    ]
    exclude = ExcludeRules(paths=["/exact"], patterns=[r"^/internal/"], tags=["admin"])

    document = assemble(routes, exclude=exclude)

    assert document["paths"] == {"/visible": {"get": {"operationId": "getVisible"}}}


def test_assemble_static_file_rule_can_be_disabled() -> None:
    """Test paths with a dot are kept when the static file rule is off."""
    document = assemble([Route(method="get", path="/openapi.json")], exclude=ExcludeRules(static_file=False))

    assert "/openapi.json" in document["paths"]


def test_assemble_flattens_guards() -> None:
    """Test guard schemas end up in the operation."""
    route = Route(
        method="get",
        path="/me",
        hooks={"guards": [{"headers": {"type": "object", "properties": {"authorization": {"type": "string"}}}}]},
    )

    parameters = _operation(assemble([route]), "/me", "get")["parameters"]

    assert parameters == [{"name": "authorization", "in": "header", "required": False, "schema": {"type": "string"}}]


def test_assemble_references_fill_empty_slots_only(route_declaration: str) -> None:
    """Test mined references fill gaps but never replace route schemas."""
    references = declaration_to_references(route_declaration)
    route = Route(
        method="patch",
        path="/user/:id/",
        hooks={"response": {200: {"type": "object", "properties": {"ok": {"type": "boolean"}}}}},
    )

    operation = _operation(assemble([route], references=references), "/user/{id}/", "patch")

    assert [(p["name"], p["in"]) for p in operation["parameters"]] == [("id", "path"), ("notify", "query")]
    body_schema = operation["requestBody"]["content"]["application/json"]["schema"]
    assert body_schema["properties"]["gender"] == {"type": "string", "enum": ["male", "female"]}
    assert operation["responses"]["200"]["content"]["application/json"]["schema"] == {
        "type": "object",
        "properties": {"ok": {"type": "boolean"}},
    }
    assert operation["responses"]["404"]["content"] == {"text/plain": {"schema": {"type": "string"}}}


def test_assemble_reference_sources_in_order() -> None:
    """Test later sources only fill what earlier ones left empty, factories are called."""
    first = {"/a": {"get": {"query": {"type": "object", "properties": {"x": {"type": "string"}}}}}}
    second = {
        "/a": {
            "get": {
                "query": {"type": "object", "properties": {"y": {"type": "string"}}},
                "headers": {"type": "object", "properties": {"z": {"type": "string"}}},
                "body": {},
            }
        }
    }

    operation = _operation(assemble([Route(method="get", path="/a")], references=[first, lambda: second]), "/a", "get")

    assert [p["name"] for p in operation["parameters"]] == ["x", "z"]


def test_assemble_unsupported_vendor_slot_is_omitted() -> None:
    """Test a slot that cannot be converted is simply left out."""

    class Opaque:
        __schema_vendor__ = "opaque"

    route = Route(method="post", path="/upload", hooks={"body": Opaque(), "response": {"type": "string"}})

    operation = _operation(assemble([route]), "/upload", "post")

    assert "requestBody" not in operation
    assert "200" in operation["responses"]


def test_assemble_is_idempotent(sample_registry: Registry, route_declaration: str) -> None:
    """Test two passes over the same input produce identical documents."""
    references = declaration_to_references(route_declaration)
    routes = [*sample_registry.routes, Route(method="patch", path="/user/:id")]

    first = assemble(routes, references=references, definitions=sample_registry.definitions)
    second = assemble(routes, references=references, definitions=sample_registry.definitions)

    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_parser_content_types() -> None:
    """Test parser aliases map to content types without duplicates."""
    assert parser_content_types(["text", "urlencoded", "formdata", "application/json", "json", print]) == [
        "text/plain",
        "application/x-www-form-urlencoded",
        "multipart/form-data",
        "application/json",
    ]
    assert parser_content_types(["yaml"]) == []
