"""Mine route schemas out of raw type-declaration text.

A route tree literal looks like

    { hello: { world: { get: { params: {}; query: {}; headers: {}; body: {}; response: { 200: ... } } } } }

possibly several of them joined with `&`. Each sibling object is cut out with a brace-depth
scan, compiled, and folded along its single-key chain into a path and a method.
"""

import logging
import re
from typing import Any

from routedoc.declaration.compiler import DeclarationSyntaxError, compile_type_literal
from routedoc.models import Schema

logger = logging.getLogger(__name__)

# A mined reference map: path -> method -> slot name -> schema (response: status -> schema)
References = dict[str, dict[str, dict[str, Any]]]

_KEY_DELIMITERS = frozenset("{};,")

_QUOTABLE_KEY = re.compile(
    r"""("(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')|(?<![\w$.])([^\W\d][\w$]*|\d+)(\s*\??\s*):""",
)

_READONLY = re.compile(r"\breadonly\s+")


def strip_readonly(code: str) -> str:
    """Remove `readonly` modifiers; schemas have no notion of mutability."""
    return _READONLY.sub("", code)


def quote_keys(code: str) -> str:
    """Quote bare identifier and numeric keys, `200:` becomes `"200":`.

    String literals are left untouched.
    """

    def replace(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(1)
        return f'"{match.group(2)}"{match.group(3)}:'

    return _QUOTABLE_KEY.sub(replace, code)


def extract_root_objects(code: str) -> list[str]:
    """Cut every sibling `key: { ... }` out of the text.

    Each result is wrapped as a one-field object literal, `{key: { ... };}`.
    A colon without a following balanced brace ends the scan.
    """
    results = []
    i = 0

    while i < len(code):
        colon = code.find(":", i)
        if colon == -1:
            break

        key_start = _find_key_start(code, colon)

        brace = code.find("{", colon)
        if brace == -1:
            break

        end = _find_closing_brace(code, brace)
        if end is None:
            logger.debug("Unbalanced braces after offset %d, stopping", brace)
            break

        results.append("{" + code[key_start:end] + ";}")
        i = end

    return results


def _find_key_start(code: str, colon: int) -> int:
    key_end = colon - 1
    while key_end >= 0 and code[key_end].isspace():
        key_end -= 1

    probe = key_end
    if probe >= 0 and code[probe] == "?":
        probe -= 1
    if probe >= 0 and code[probe] in "\"'":
        opening = code.rfind(code[probe], 0, probe)
        if opening != -1:
            return opening

    key_start = key_end
    while key_start >= 0 and not code[key_start].isspace() and code[key_start] not in _KEY_DELIMITERS:
        key_start -= 1
    return key_start + 1


def _find_closing_brace(code: str, brace: int) -> int | None:
    depth = 0
    for end in range(brace, len(code)):
        if code[end] == "{":
            depth += 1
        elif code[end] == "}":
            depth -= 1
            if depth == 0:
                return end + 1
    return None


def declaration_to_references(declaration: str) -> References:
    """Turn route tree declaration text into a reference map.

    Args:
        declaration: One or more route tree object literals, optionally joined with `&`

    Returns:
        Mapping of path -> lower-cased method -> slots (`params`, `query`, `headers`, `body`,
        `response`), with `response` flattened into a status code -> schema mapping
    """
    routes: References = {}

    for fragment in extract_root_objects(quote_keys(strip_readonly(declaration))):
        try:
            schema = compile_type_literal(fragment)
        except DeclarationSyntaxError as e:
            logger.debug("Skipping declaration fragment: %s", e)
            continue

        folded = fold_route(schema)
        if folded is None:
            continue

        path, method, slots = folded
        routes.setdefault(path, {})[method] = slots

    return routes


def fold_route(schema: Schema) -> tuple[str, str, dict[str, Any]] | None:
    """Walk a chain of single-key objects down to the method level.

    Returns:
        Tuple of (path, method, slots), or None when the chain does not end in a method
    """
    if schema.kind != "object":
        return None

    segments: list[str] = []
    while True:
        keys = list(schema.properties or {})
        if len(keys) != 1:
            break

        segments.append(keys[0])
        schema = (schema.properties or {})[keys[0]]
        if schema.properties is None:
            break

    if not segments or schema.properties is None:
        logger.debug("Declaration fragment does not describe a route: %s", "/".join(segments))
        return None

    method = segments.pop().lower()
    path = "/" + "/".join(segments)

    slots: dict[str, Any] = dict(schema.properties)
    response = slots.get("response")
    if isinstance(response, Schema) and response.kind == "object":
        slots["response"] = {_status_key(status): value for status, value in (response.properties or {}).items()}

    return path, method, slots


def _status_key(status: str) -> int | str:
    return int(status) if status.isdigit() else status


def find_route_tree(
    declaration: str,
    instance_name: str | None = None,
    type_name: str | None = None,
    generic_index: int = 4,
) -> str | None:
    """Find the route tree inside a declaration file.

    Typed application instances are declared as `app: App<A, B, C, D, Routes, ...>`; this
    returns the requested generic argument of the first matching declaration where that
    argument is an object literal. Text that is already an object literal is returned as is.

    Args:
        declaration: Declaration file contents
        instance_name: Name of the declared instance (default: any declaration with generics)
        type_name: Name of the instance type (default: any)
        generic_index: Zero-based position of the route tree among the generic arguments

    Returns:
        The route tree source, or None if not found
    """
    stripped = declaration.strip()
    if stripped.startswith("{"):
        return stripped

    name = re.escape(instance_name) if instance_name else r"[\w$]+"
    kind = re.escape(type_name) if type_name else r"[\w$.]+"
    # Other generic declarations (settings: Record<K, V>) may come first
    for match in re.finditer(rf"(?<![\w$]){name}\s*:\s*{kind}\s*<", declaration):
        arguments = _split_generic_arguments(declaration, match.end())
        if generic_index < len(arguments) and arguments[generic_index].startswith("{"):
            return arguments[generic_index]
    return None


def _split_generic_arguments(code: str, start: int) -> list[str]:
    arguments: list[str] = []
    depth = 0
    current = start
    i = start

    while i < len(code):
        char = code[i]
        if code.startswith("=>", i):
            i += 2
            continue
        if char in "<{([":
            depth += 1
        elif char in ">})]":
            if depth == 0:
                arguments.append(code[current:i].strip())
                return arguments
            depth -= 1
        elif char == "," and depth == 0:
            arguments.append(code[current:i].strip())
            current = i + 1
        i += 1

    return arguments
