"""Canonical schema normalization, reference resolution and enum folding."""

import logging
from collections.abc import Mapping
from typing import Any

from routedoc.models import Direction, Schema, to_ref
from routedoc.schema.canonical import from_json_schema, is_schema_like
from routedoc.schema.vendors import VendorConverter, convert_vendor_schema

logger = logging.getLogger(__name__)


def normalize(
    schema: Any,
    vendors: Mapping[str, VendorConverter] | None = None,
    direction: Direction = "input",
) -> Schema | None:
    """Bring any accepted schema form into canonical form.

    Strings are component names and become references. Canonical schemas pass through.
    JSON Schema dicts are classified, anything else goes through vendor conversion.
    Failures are logged and yield None so the slot is simply left out.

    Args:
        schema: Component name, canonical Schema, JSON Schema dict or vendor object
        vendors: User-supplied converters keyed by vendor name
        direction: Whether the schema describes input or output data

    Returns:
        Canonical schema with enums folded, or None
    """
    try:
        canonical = _to_canonical(schema, vendors, direction)
    except Exception:
        logger.exception("Failed to normalize schema %r", schema)
        return None

    if canonical is None:
        return None
    return fold_enums(canonical)


def _to_canonical(
    schema: Any, vendors: Mapping[str, VendorConverter] | None, direction: Direction
) -> Schema | None:
    if schema is None:
        return None
    if isinstance(schema, str):
        return to_ref(schema)
    if isinstance(schema, Schema):
        return schema
    if isinstance(schema, Mapping):
        return from_json_schema(schema) if is_schema_like(schema) else None

    converted = convert_vendor_schema(schema, vendors, direction)
    if isinstance(converted, Schema):
        return converted
    if isinstance(converted, Mapping) and is_schema_like(converted):
        return from_json_schema(converted)
    return None


def normalize_definitions(
    definitions: Mapping[str, Any] | None,
    vendors: Mapping[str, VendorConverter] | None = None,
) -> dict[str, Schema]:
    """Normalize a Definitions Table, dropping entries that cannot be converted."""
    table: dict[str, Schema] = {}
    for name, schema in (definitions or {}).items():
        canonical = normalize(schema, vendors)
        if canonical is not None:
            table[name] = canonical
    return table


def unwrap_reference(schema: Schema, definitions: Mapping[str, Schema]) -> Schema:
    """Substitute a reference with the definition it points to.

    Used for documentation purposes (descriptions, parameter expansion, content type choice);
    the caller keeps the original node to emit the pointer. Unknown targets stay unresolved.
    """
    if schema.kind != "reference":
        return schema
    name = schema.ref_name
    if name is not None and name in definitions:
        return definitions[name]
    return schema


def fold_enums(schema: Schema) -> Schema:
    """Rewrite unions of constants into enums, recursively.

    `"male" | "female"` becomes a string schema with `enum: ["male", "female"]`.
    The enum keeps the members' shared kind, so `1 | 2` folds to a number enum; members of
    mixed kinds fold to a string enum.
    """
    match schema.kind:
        case "union":
            members = [fold_enums(member) for member in schema.any_of]
            if members and all(member.is_constant for member in members):
                kinds = {member.kind for member in members}
                return Schema(
                    kind=kinds.pop() if len(kinds) == 1 else "string",
                    enum=[member.constant for member in members],
                    title=schema.title,
                    description=schema.description,
                    extra=schema.extra,
                )
            return schema.model_copy(update={"any_of": members})
        case "intersection":
            return schema.model_copy(update={"all_of": [fold_enums(member) for member in schema.all_of]})
        case "object":
            update: dict[str, Any] = {}
            if schema.properties:
                update["properties"] = {name: fold_enums(value) for name, value in schema.properties.items()}
            if isinstance(schema.additional_properties, Schema):
                update["additional_properties"] = fold_enums(schema.additional_properties)
            return schema.model_copy(update=update) if update else schema
        case "array":
            if schema.items is not None:
                return schema.model_copy(update={"items": fold_enums(schema.items)})
            return schema
        case _:
            return schema
