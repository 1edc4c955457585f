"""Conversion between JSON Schema dicts and canonical Schema nodes."""

from collections.abc import Mapping
from typing import Any

from routedoc.models import COMPONENTS_PREFIX, Schema, to_ref

# Keywords that make a dict recognisable as a schema
SCHEMA_KEYWORDS = frozenset({"type", "properties", "items", "$ref", "anyOf", "oneOf", "allOf", "enum", "const"})

# Keywords dropped during classification
_DROPPED_KEYWORDS = frozenset({"$id", "$schema", "$defs", "definitions"})

_LOCAL_POINTERS = ("#/$defs/", "#/definitions/")

_JSON_TYPES = {
    "object": "object",
    "array": "array",
    "string": "string",
    "number": "number",
    "integer": "integer",
    "boolean": "boolean",
    "null": "null",
    "void": "void",
    "undefined": "undefined",
}


def is_schema_like(value: Any) -> bool:
    """Check whether a value can stand in for a schema slot.

    Empty or keyword-less dicts and unknown canonical nodes do not count.
    """
    if isinstance(value, Schema):
        return value.kind != "unknown"
    if isinstance(value, Mapping):
        return any(key in value for key in SCHEMA_KEYWORDS)
    return False


def from_json_schema(data: Mapping[str, Any], definitions: Mapping[str, Any] | None = None) -> Schema:
    """Classify a JSON Schema dict into a canonical Schema.

    Args:
        data: JSON Schema (draft 2020-12 / OpenAPI flavoured)
        definitions: Local `$defs` table; defaults to the `$defs` (or `definitions`) found on `data`

    Returns:
        Canonical schema tree
    """
    if definitions is None:
        definitions = data.get("$defs") or data.get("definitions") or {}
    return _classify(data, definitions, ())


def _classify(data: Mapping[str, Any], definitions: Mapping[str, Any], resolving: tuple[str, ...]) -> Schema:
    title = data.get("title")
    description = data.get("description")
    consumed = {"title", "description"}

    ref = data.get("$ref")
    if isinstance(ref, str):
        return _classify_ref(ref, data, definitions, resolving)

    extra = {key: value for key, value in data.items() if key not in consumed and key not in _DROPPED_KEYWORDS}

    for keyword in ("anyOf", "oneOf"):
        if isinstance(data.get(keyword), list):
            members = [_classify(member, definitions, resolving) for member in data[keyword]]
            extra.pop(keyword)
            extra.pop("type", None)
            return Schema(kind="union", any_of=members, title=title, description=description, extra=extra)

    if isinstance(data.get("allOf"), list):
        members = [_classify(member, definitions, resolving) for member in data["allOf"]]
        extra.pop("allOf")
        # pydantic wraps a described reference as allOf: [ {$ref} ]
        if len(members) == 1 and not extra:
            return members[0].model_copy(update=_documentation(title, description))
        return Schema(kind="intersection", all_of=members, title=title, description=description, extra=extra)

    json_type = data.get("type")
    if isinstance(json_type, list):
        extra.pop("type")
        members = [_classify({**extra, "type": member}, definitions, resolving) for member in json_type]
        if len(members) == 1:
            return members[0].model_copy(update={"title": title, "description": description})
        return Schema(kind="union", any_of=members, title=title, description=description)

    const = data.get("const")
    enum = data.get("enum")
    extra.pop("const", None)
    extra.pop("enum", None)
    extra.pop("type", None)

    kind = _JSON_TYPES.get(json_type) if isinstance(json_type, str) else None
    if kind is None:
        if "properties" in data or "additionalProperties" in data:
            kind = "object"
        elif "items" in data or "prefixItems" in data:
            kind = "array"
        elif const is not None:
            kind = _kind_of_value(const)
        elif isinstance(enum, list) and enum:
            kinds = {_kind_of_value(value) for value in enum}
            kind = kinds.pop() if len(kinds) == 1 else "string"
        else:
            kind = "unknown"

    fields: dict[str, Any] = {
        "kind": kind,
        "title": title,
        "description": description,
        "const": const,
        "enum": list(enum) if isinstance(enum, list) else None,
    }

    if kind == "object":
        properties = extra.pop("properties", None)
        if isinstance(properties, Mapping):
            fields["properties"] = {
                name: _classify(value, definitions, resolving) for name, value in properties.items()
            }
        required = extra.pop("required", None)
        if isinstance(required, list):
            fields["required"] = [name for name in required if isinstance(name, str)]
        additional = extra.pop("additionalProperties", None)
        if isinstance(additional, bool):
            fields["additional_properties"] = additional
        elif isinstance(additional, Mapping):
            fields["additional_properties"] = _classify(additional, definitions, resolving)
    elif kind == "array":
        items = extra.pop("items", None)
        if isinstance(items, Mapping):
            fields["items"] = _classify(items, definitions, resolving)

    fields["extra"] = extra
    return Schema(**fields)


def _classify_ref(
    ref: str, data: Mapping[str, Any], definitions: Mapping[str, Any], resolving: tuple[str, ...]
) -> Schema:
    name = ref[ref.rfind("/") + 1 :]
    title = data.get("title")
    description = data.get("description")

    if ref.startswith(_LOCAL_POINTERS) and name in definitions and name not in resolving:
        target = _classify(definitions[name], definitions, (*resolving, name))
        return target.model_copy(update=_documentation(title, description))

    if ref.startswith(COMPONENTS_PREFIX) or ref.startswith(_LOCAL_POINTERS):
        node = to_ref(name)
    else:
        node = Schema(kind="reference", ref=ref)
    return node.model_copy(update={"title": title, "description": description})


def _documentation(title: str | None, description: str | None) -> dict[str, Any]:
    update: dict[str, Any] = {}
    if title is not None:
        update["title"] = title
    if description is not None:
        update["description"] = description
    return update


def _kind_of_value(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "unknown"


def to_json_schema(schema: Schema) -> dict[str, Any]:
    """Render a canonical Schema as a JSON Schema dict for the document.

    References render as a bare `$ref`; the pointed-at component carries the documentation.
    """
    if schema.kind == "reference":
        return {"$ref": schema.ref}

    result: dict[str, Any] = {}

    match schema.kind:
        case "union":
            result["anyOf"] = [to_json_schema(member) for member in schema.any_of]
        case "intersection":
            result["allOf"] = [to_json_schema(member) for member in schema.all_of]
        case "object":
            result["type"] = "object"
            if schema.properties is not None:
                result["properties"] = {name: to_json_schema(value) for name, value in schema.properties.items()}
            if schema.required:
                result["required"] = list(schema.required)
            if isinstance(schema.additional_properties, Schema):
                result["additionalProperties"] = to_json_schema(schema.additional_properties)
            elif schema.additional_properties is not None:
                result["additionalProperties"] = schema.additional_properties
        case "array":
            result["type"] = "array"
            if schema.items is not None:
                result["items"] = to_json_schema(schema.items)
        case "string" | "number" | "integer" | "boolean" | "null":
            result["type"] = schema.kind
        case _:
            # void, undefined and unknown carry no type constraint
            pass

    if schema.const is not None:
        result["const"] = schema.const
    if schema.enum is not None:
        result["enum"] = list(schema.enum)
    if schema.title is not None:
        result["title"] = schema.title
    if schema.description is not None:
        result["description"] = schema.description
    result.update(schema.extra)
    return result
