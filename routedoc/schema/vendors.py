"""Vendor detection and conversion of third-party schema objects to JSON Schema.

A vendor is the library a schema object comes from. Conversion is looked up in a fixed order:
the user-supplied converter for the vendor, the built-in native converter, then a probe for
well-known JSON Schema export methods on the object itself.
"""

import dataclasses
import logging
from collections.abc import Callable, Mapping
from typing import Any

from openapi_pydantic import Schema as OpenAPISchema
from openapi_pydantic.v3.v3_0 import Schema as OpenAPISchema30
from pydantic import BaseModel, TypeAdapter
from typing_extensions import is_typeddict

from routedoc.models import Direction

logger = logging.getLogger(__name__)

VendorConverter = Callable[[Any], Any]

# Method names probed on unknown schema objects, in order
FALLBACK_METHODS = ("model_json_schema", "json_schema", "to_json_schema", "toJSONSchema", "toJsonSchema")

VENDOR_HINTS = {
    "msgspec": "vendors={'msgspec': msgspec.json.schema}",
    "marshmallow": "vendors={'marshmallow': marshmallow_jsonschema.JSONSchema().dump}",
    "attrs": "vendors={'attrs': lambda cls: pydantic.TypeAdapter(cls).json_schema()}",
}

# Vendors already reported as unsupported; grows monotonically for the process lifetime
_warned: set[str] = set()


def _json_mode(direction: Direction) -> str:
    return "serialization" if direction == "output" else "validation"


def _pydantic_json_schema(schema: Any, direction: Direction) -> dict[str, Any]:
    mode = _json_mode(direction)
    if isinstance(schema, TypeAdapter):
        return schema.json_schema(mode=mode)
    model = schema if isinstance(schema, type) else type(schema)
    return model.model_json_schema(mode=mode)


def _adapter_json_schema(schema: Any, direction: Direction) -> dict[str, Any]:
    return TypeAdapter(schema).json_schema(mode=_json_mode(direction))


def _openapi_pydantic_json_schema(schema: Any, direction: Direction) -> dict[str, Any]:
    return schema.model_dump(mode="json", by_alias=True, exclude_none=True)


NATIVE_CONVERTERS: dict[str, Callable[[Any, Direction], Any]] = {
    "pydantic": _pydantic_json_schema,
    "dataclass": _adapter_json_schema,
    "openapi-pydantic": _openapi_pydantic_json_schema,
}


def detect_vendor(schema: Any) -> str:
    """Name the library a schema object belongs to.

    Args:
        schema: Any non-dict, non-canonical schema object

    Returns:
        Vendor name used for converter lookup
    """
    if isinstance(schema, (OpenAPISchema, OpenAPISchema30)):
        return "openapi-pydantic"
    if isinstance(schema, (BaseModel, TypeAdapter)):
        return "pydantic"
    if isinstance(schema, type):
        if issubclass(schema, BaseModel):
            return "pydantic"
        if dataclasses.is_dataclass(schema) or is_typeddict(schema):
            return "dataclass"

    declared = getattr(schema, "__schema_vendor__", None)
    if isinstance(declared, str) and declared:
        return declared

    module = getattr(schema, "__module__", None) or type(schema).__module__
    return module.partition(".")[0]


def convert_vendor_schema(
    schema: Any,
    vendors: Mapping[str, VendorConverter] | None = None,
    direction: Direction = "input",
) -> Any | None:
    """Convert a vendor schema object with the first available strategy.

    Args:
        schema: Vendor schema object
        vendors: User-supplied converters keyed by vendor name
        direction: Whether the schema describes input or output data

    Returns:
        Whatever the converter produced (usually a JSON Schema dict), or None when the vendor is unsupported
    """
    vendor = detect_vendor(schema)

    converter = (vendors or {}).get(vendor)
    if callable(converter):
        return converter(schema)

    native = NATIVE_CONVERTERS.get(vendor)
    if native is not None:
        return native(schema, direction)

    for name in FALLBACK_METHODS:
        method = getattr(schema, name, None)
        if callable(method):
            return method()

    warn_unsupported(vendor)
    return None


def warn_unsupported(vendor: str) -> None:
    """Report an unsupported vendor once per process."""
    if vendor in _warned:
        return
    _warned.add(vendor)

    logger.warning("No JSON Schema conversion available for %s schemas; the schema is left out", vendor)
    hint = VENDOR_HINTS.get(vendor)
    if hint:
        logger.warning("Provide a converter for %s, e.g. %s", vendor, hint)
