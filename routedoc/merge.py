"""Merging of guard and route schemas into one effective schema per slot.

Merges never mutate their inputs: every step builds new Schema nodes, so a slot
merged at one guard level can be read again safely at the next.
"""

from collections.abc import Mapping
from typing import Any

from routedoc.models import SLOT_NAMES, Direction, Route, Schema, SchemaSlots
from routedoc.schema.canonical import is_schema_like
from routedoc.schema.normalize import normalize
from routedoc.schema.vendors import VendorConverter


def merge_slot(
    outer: Any,
    inner: Any,
    vendors: Mapping[str, VendorConverter] | None = None,
    direction: Direction = "input",
) -> Schema | Any | None:
    """Merge two schemas of the same slot, the inner one being more specific.

    When one side is absent the other is returned unchanged, unresolved references included.

    Args:
        outer: Schema from the enclosing scope
        inner: Schema from the nested scope
        vendors: User-supplied converters keyed by vendor name
        direction: Whether the slot describes input or output data

    Returns:
        Merged canonical schema, the present side unchanged, or None
    """
    if outer is None:
        return inner
    if inner is None:
        return outer

    left = normalize(outer, vendors, direction)
    right = normalize(inner, vendors, direction)
    if left is None:
        return right
    if right is None:
        return left
    return merge_schemas(left, right)


def merge_schemas(*schemas: Schema) -> Schema:
    """Merge canonical schemas, outermost first.

    Objects merge field-wise. Anything that is not an object is kept next to the merged
    object in an intersection so that no constraint is dropped.
    """
    objects: list[Schema] = []
    leftovers: list[Schema] = []

    for schema in schemas:
        members = schema.all_of if schema.kind == "intersection" and _is_bare(schema) else [schema]
        for member in members:
            (objects if member.kind == "object" else leftovers).append(member)

    merged: Schema | None = None
    for schema in objects:
        merged = schema if merged is None else merge_objects(merged, schema)

    members = ([merged] if merged is not None else []) + leftovers
    if len(members) == 1:
        return members[0]
    return Schema(kind="intersection", all_of=members)


def merge_objects(outer: Schema, inner: Schema) -> Schema:
    """Merge two object schemas; the inner one wins on property collisions."""
    properties: dict[str, Schema] | None = None
    if outer.properties is not None or inner.properties is not None:
        properties = {**(outer.properties or {}), **(inner.properties or {})}

    required = list(dict.fromkeys([*outer.required, *inner.required]))

    if outer.additional_properties is False or inner.additional_properties is False:
        additional: bool | Schema | None = False
    elif inner.additional_properties is not None:
        additional = inner.additional_properties
    else:
        additional = outer.additional_properties

    return Schema(
        kind="object",
        properties=properties,
        required=required,
        additional_properties=additional,
        title=inner.title if inner.title is not None else outer.title,
        description=inner.description if inner.description is not None else outer.description,
        extra={**outer.extra, **inner.extra},
    )


def _is_bare(schema: Schema) -> bool:
    return schema.title is None and schema.description is None and not schema.extra


def is_status_map(value: Any) -> bool:
    """Check whether a response slot is a status code -> schema mapping."""
    if isinstance(value, Schema) or not isinstance(value, Mapping):
        return False
    if is_schema_like(value):
        return False
    return all(_status_code(key) is not None for key in value)


def _status_code(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None


def as_status_map(response: Any) -> dict[int, Any]:
    """Promote a response slot to the status code -> schema shape (single schema -> 200)."""
    if response is None:
        return {}
    if is_status_map(response):
        statuses: dict[int, Any] = {}
        for status, schema in response.items():
            code = _status_code(status)
            if code is not None:
                statuses[code] = schema
        return statuses
    return {200: response}


def merge_response_slot(
    outer: Any,
    inner: Any,
    vendors: Mapping[str, VendorConverter] | None = None,
) -> dict[int, Any] | Any | None:
    """Merge two response slots status by status.

    Statuses present on one side only pass through unchanged; statuses on both sides
    are merged with `merge_slot`.
    """
    if outer is None:
        return inner
    if inner is None:
        return outer

    outer_map = as_status_map(outer)
    inner_map = as_status_map(inner)

    merged: dict[int, Any] = {}
    for status in dict.fromkeys([*outer_map, *inner_map]):
        if status in outer_map and status in inner_map:
            merged[status] = merge_slot(outer_map[status], inner_map[status], vendors, "output")
        else:
            merged[status] = outer_map.get(status, inner_map.get(status))
    return merged


def merge_slots(
    outer: SchemaSlots,
    inner: SchemaSlots,
    vendors: Mapping[str, VendorConverter] | None = None,
) -> SchemaSlots:
    """Merge every slot of two scopes."""
    update: dict[str, Any] = {
        name: merge_slot(getattr(outer, name), getattr(inner, name), vendors) for name in SLOT_NAMES
    }
    update["response"] = merge_response_slot(outer.response, inner.response, vendors)
    return SchemaSlots(**update)


def flatten_guards(route: Route, vendors: Mapping[str, VendorConverter] | None = None) -> Route:
    """Fold a route's guard chain, outermost first, into its own slots.

    The returned route has an empty guard chain, so flattening twice is a no-op.
    """
    if not route.hooks.guards:
        return route

    effective = SchemaSlots()
    for scope in [*route.hooks.guards, route.hooks]:
        effective = merge_slots(effective, scope, vendors)

    hooks = route.hooks.model_copy(update={**effective.slots(), "guards": []})
    return route.model_copy(update={"hooks": hooks})
