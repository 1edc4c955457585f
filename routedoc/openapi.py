"""Assembly of OpenAPI paths and component schemas from registered routes."""

import copy
import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from routedoc.merge import as_status_map, flatten_guards
from routedoc.models import HTTP_METHODS, SLOT_NAMES, ExcludeRules, Hooks, Route, Schema
from routedoc.paths import (
    expand_optional_paths,
    get_loose_path,
    path_parameter_names,
    to_operation_id,
    to_path_template,
)
from routedoc.schema.canonical import is_schema_like, to_json_schema
from routedoc.schema.normalize import normalize, normalize_definitions, unwrap_reference
from routedoc.schema.vendors import VendorConverter

logger = logging.getLogger(__name__)

ReferenceSource = Mapping[str, Mapping[str, Mapping[str, Any]]]
ReferenceInput = ReferenceSource | Callable[[], ReferenceSource | None] | None
AdditionalReferences = ReferenceInput | Sequence[ReferenceInput]

STRUCTURED_CONTENT_TYPES = ("application/json", "application/x-www-form-urlencoded", "multipart/form-data")

PARSER_CONTENT_TYPES = {
    "text": "text/plain",
    "text/plain": "text/plain",
    "urlencoded": "application/x-www-form-urlencoded",
    "application/x-www-form-urlencoded": "application/x-www-form-urlencoded",
    "json": "application/json",
    "application/json": "application/json",
    "formdata": "multipart/form-data",
    "multipart/form-data": "multipart/form-data",
}

# Methods whose requests must not carry a body
_BODYLESS_METHODS = frozenset({"get", "head"})

# Parameter location per slot
_PARAMETER_LOCATIONS = (("params", "path"), ("query", "query"), ("headers", "header"), ("cookie", "cookie"))


def assemble(
    routes: Iterable[Route | Mapping[str, Any]],
    exclude: ExcludeRules | None = None,
    references: AdditionalReferences = None,
    vendors: Mapping[str, VendorConverter] | None = None,
    definitions: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the OpenAPI `paths` and `components.schemas` for a set of routes.

    The result is rebuilt from scratch on every call and shares no mutable state with
    the routes or definitions it was built from.

    Args:
        routes: Registered routes, in registry order (models or plain dicts)
        exclude: Rules for leaving routes out
        references: Reference maps (or callables producing them) filling slots routes leave empty
        vendors: User-supplied converters keyed by vendor name
        definitions: Definitions Table, component name -> schema

    Returns:
        Dictionary with `components` and `paths`
    """
    exclude = exclude or ExcludeRules()
    table = normalize_definitions(definitions, vendors)
    sources = resolve_references(references)
    matcher = _ExclusionMatcher(exclude)

    paths: dict[str, dict[str, Any]] = {}

    for entry in routes:
        route = entry if isinstance(entry, Route) else Route.model_validate(entry)

        if matcher.excludes(route):
            logger.debug("Excluding %s %s from the document", route.method.upper(), route.path)
            continue

        route = flatten_guards(route, vendors)
        method = route.method.lower()
        hooks = apply_references(route.hooks, route.path, method, sources)
        operation = build_operation(method, route.path, hooks, route.detail, table, vendors)

        for expanded in expand_optional_paths(route.path):
            operation_id = route.detail.get("operationId") or to_operation_id(route.method, expanded)
            path_item = paths.setdefault(to_path_template(expanded), {})

            for verb in HTTP_METHODS if method == "all" else (method,):
                path_item[verb] = {**copy.deepcopy(operation), "operationId": operation_id}

    return {
        "components": {"schemas": {name: to_json_schema(schema) for name, schema in table.items()}},
        "paths": paths,
    }


class _ExclusionMatcher:
    def __init__(self, exclude: ExcludeRules) -> None:
        self.exclude = exclude
        self.methods = {method.lower() for method in exclude.methods}
        self.patterns = [re.compile(pattern) for pattern in exclude.patterns]

    def excludes(self, route: Route) -> bool:
        if route.hidden:
            return True
        if route.method.lower() in self.methods:
            return True
        if self.exclude.static_file and "." in route.path:
            return True
        if route.path in self.exclude.paths:
            return True
        if any(pattern.search(route.path) for pattern in self.patterns):
            return True
        tags = route.detail.get("tags") or []
        return any(tag in self.exclude.tags for tag in tags)


def resolve_references(references: AdditionalReferences) -> list[ReferenceSource]:
    """Normalize reference input to a list of maps, calling any factories once."""
    if references is None:
        return []

    items = list(references) if isinstance(references, Sequence) and not isinstance(references, str) else [references]

    sources: list[ReferenceSource] = []
    for item in items:
        source = item() if callable(item) else item
        if source:
            sources.append(source)
    return sources


def apply_references(hooks: Hooks, path: str, method: str, sources: Sequence[ReferenceSource]) -> Hooks:
    """Fill the slots a route leaves empty from reference maps, in order.

    Slots the route declares are never overwritten; responses are filled per status code.
    """
    update: dict[str, Any] = {}
    response: dict[int, Any] | None = None

    for source in sources:
        refer = _lookup_reference(source, path, method)
        if not refer:
            continue

        for slot in SLOT_NAMES:
            current = update.get(slot, getattr(hooks, slot))
            candidate = refer.get(slot)
            if current is None and is_schema_like(candidate):
                update[slot] = candidate

        refer_response = refer.get("response")
        if not refer_response:
            continue

        for status, schema in as_status_map(refer_response).items():
            if not is_schema_like(schema):
                continue
            if response is None:
                response = as_status_map(hooks.response)
            response.setdefault(status, schema)

    if response is not None:
        update["response"] = response
    return hooks.model_copy(update=update) if update else hooks


def _lookup_reference(source: ReferenceSource, path: str, method: str) -> Mapping[str, Any] | None:
    for candidate in (path, get_loose_path(path)):
        methods = source.get(candidate)
        if methods and methods.get(method):
            return methods[method]
    return None


def build_operation(
    method: str,
    path: str,
    hooks: Hooks,
    detail: Mapping[str, Any],
    definitions: Mapping[str, Schema],
    vendors: Mapping[str, VendorConverter] | None = None,
) -> dict[str, Any]:
    """Build one operation object (without its operation id)."""
    operation: dict[str, Any] = {key: copy.deepcopy(value) for key, value in detail.items() if key != "hide"}

    parameters: list[dict[str, Any]] = []
    if hooks.params is None:
        parameters.extend(_synthesized_path_parameters(path))
    for slot, location in _PARAMETER_LOCATIONS:
        parameters.extend(build_parameters(getattr(hooks, slot), location, definitions, vendors))
    if parameters:
        operation["parameters"] = parameters

    if hooks.body is not None and method not in _BODYLESS_METHODS:
        request_body = build_request_body(hooks.body, hooks.parse, definitions, vendors)
        if request_body is not None:
            operation["requestBody"] = request_body

    if hooks.response is not None:
        responses = build_responses(hooks.response, definitions, vendors)
        if responses:
            operation["responses"] = responses

    return operation


def _synthesized_path_parameters(path: str) -> list[dict[str, Any]]:
    return [
        {"name": name, "in": "path", "required": True, "schema": {"type": "string"}}
        for name in dict.fromkeys(path_parameter_names(path))
    ]


def build_parameters(
    slot: Any,
    location: str,
    definitions: Mapping[str, Schema],
    vendors: Mapping[str, VendorConverter] | None = None,
) -> list[dict[str, Any]]:
    """Turn each top-level property of a slot schema into a parameter.

    Path parameters are always required; other locations follow the schema's `required` list.
    """
    schema = normalize(slot, vendors)
    if schema is None:
        return []

    members = object_members(schema, definitions)
    if members is None:
        return []

    properties, required = members
    return [
        {
            "name": name,
            "in": location,
            "required": location == "path" or name in required,
            "schema": to_json_schema(value),
        }
        for name, value in properties.items()
    ]


def object_members(schema: Schema, definitions: Mapping[str, Schema]) -> tuple[dict[str, Schema], list[str]] | None:
    """Collect the properties and required names of an object-shaped schema.

    References are resolved and intersections contribute the members of all their objects.
    """
    resolved = unwrap_reference(schema, definitions)

    if resolved.kind == "object":
        return dict(resolved.properties or {}), list(resolved.required)

    if resolved.kind == "intersection":
        properties: dict[str, Schema] = {}
        required: list[str] = []
        found = False
        for member in resolved.all_of:
            members = object_members(member, definitions)
            if members is None:
                continue
            found = True
            properties.update(members[0])
            required.extend(name for name in members[1] if name not in required)
        return (properties, required) if found else None

    return None


def build_request_body(
    slot: Any,
    parsers: Sequence[Any],
    definitions: Mapping[str, Schema],
    vendors: Mapping[str, VendorConverter] | None = None,
) -> dict[str, Any] | None:
    """Describe the request body, one content entry per declared parser or per default type."""
    body = normalize(slot, vendors)
    if body is None:
        return None

    resolved = unwrap_reference(body, definitions)

    content_types = parser_content_types(parsers)
    if not content_types:
        content_types = ["text/plain"] if resolved.is_primitive else list(STRUCTURED_CONTENT_TYPES)

    request_body: dict[str, Any] = {
        "content": {content_type: {"schema": to_json_schema(body)} for content_type in content_types},
        "required": True,
    }
    if resolved.description is not None:
        request_body["description"] = resolved.description
    return request_body


def parser_content_types(parsers: Sequence[Any]) -> list[str]:
    """Map named body parsers to content types; parser functions are skipped."""
    content_types: list[str] = []
    for parser in parsers:
        if not isinstance(parser, str):
            continue
        content_type = PARSER_CONTENT_TYPES.get(parser)
        if content_type is not None and content_type not in content_types:
            content_types.append(content_type)
    return content_types


def build_responses(
    slot: Any,
    definitions: Mapping[str, Schema],
    vendors: Mapping[str, VendorConverter] | None = None,
) -> dict[str, Any]:
    """Describe every response status; a single schema is the 200 response."""
    responses: dict[str, Any] = {}
    for status, value in as_status_map(slot).items():
        schema = normalize(value, vendors, "output")
        if schema is None:
            continue
        responses[str(status)] = build_response(schema, status, definitions)
    return responses


def build_response(schema: Schema, status: int, definitions: Mapping[str, Schema]) -> dict[str, Any]:
    """Describe one response; void-like schemas carry no content at all."""
    resolved = unwrap_reference(schema, definitions)
    response: dict[str, Any] = {
        "description": resolved.description if resolved.description is not None else f"Response for status {status}"
    }

    if resolved.is_void:
        return response

    content_type = "text/plain" if resolved.is_primitive else "application/json"
    response["content"] = {content_type: {"schema": to_json_schema(schema)}}
    return response
