"""Canonical schema handling: classification, vendor conversion and normalization."""

from routedoc.schema.canonical import from_json_schema, is_schema_like, to_json_schema
from routedoc.schema.normalize import fold_enums, normalize, normalize_definitions, unwrap_reference
from routedoc.schema.vendors import convert_vendor_schema, detect_vendor

__all__ = [
    "convert_vendor_schema",
    "detect_vendor",
    "fold_enums",
    "from_json_schema",
    "is_schema_like",
    "normalize",
    "normalize_definitions",
    "to_json_schema",
    "unwrap_reference",
]
