"""OpenAPI document generation from route schemas."""

from routedoc.declaration import declaration_to_references, find_route_tree
from routedoc.document import build_document, load_document, validate_document
from routedoc.merge import flatten_guards, merge_response_slot, merge_slot
from routedoc.models import DocumentationSettings, ExcludeRules, Hooks, Registry, Route, Schema, SchemaSlots
from routedoc.openapi import assemble
from routedoc.paths import expand_optional_paths, to_operation_id
from routedoc.schema import normalize

__all__ = [
    "DocumentationSettings",
    "ExcludeRules",
    "Hooks",
    "Registry",
    "Route",
    "Schema",
    "SchemaSlots",
    "assemble",
    "build_document",
    "declaration_to_references",
    "expand_optional_paths",
    "find_route_tree",
    "flatten_guards",
    "load_document",
    "merge_response_slot",
    "merge_slot",
    "normalize",
    "to_operation_id",
    "validate_document",
]
