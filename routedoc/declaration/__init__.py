"""Declaration text mining: route schemas recovered from emitted type declarations."""

from routedoc.declaration.compiler import DeclarationSyntaxError, compile_type_literal
from routedoc.declaration.miner import (
    References,
    declaration_to_references,
    extract_root_objects,
    find_route_tree,
    fold_route,
    quote_keys,
    strip_readonly,
)

__all__ = [
    "DeclarationSyntaxError",
    "References",
    "compile_type_literal",
    "declaration_to_references",
    "extract_root_objects",
    "find_route_tree",
    "fold_route",
    "quote_keys",
    "strip_readonly",
]
