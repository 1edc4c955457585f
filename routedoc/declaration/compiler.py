"""Compile TypeScript-like type literals into canonical schemas.

This is a deliberately small recursive-descent parser for the type syntax found in
emitted declaration files. Types it cannot describe (named types, function types,
conditional types) compile to `unknown` instead of failing.
"""

import ast
import re
from dataclasses import dataclass

from routedoc.models import Schema

_TOKEN = re.compile(
    r"""
    (?P<space>\s+)
  | (?P<comment>//[^\n]*|/\*.*?\*/)
  | (?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'|`(?:\\.|[^`\\])*`)
  | (?P<number>-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)
  | (?P<arrow>=>)
  | (?P<name>[^\W\d][\w$]*|\$[\w$]*)
  | (?P<punct>\.\.\.|[{}\[\]()<>:;,|&?=.])
    """,
    re.VERBOSE | re.DOTALL,
)

_PRIMITIVES = {
    "string": Schema(kind="string"),
    "number": Schema(kind="number"),
    "bigint": Schema(kind="integer"),
    "boolean": Schema(kind="boolean"),
    "null": Schema(kind="null"),
    "undefined": Schema(kind="undefined"),
    "void": Schema(kind="void"),
    "any": Schema(kind="unknown"),
    "unknown": Schema(kind="unknown"),
    "never": Schema(kind="unknown"),
    "symbol": Schema(kind="unknown"),
    "object": Schema(kind="object", properties={}),
    "Date": Schema(kind="string", extra={"format": "date-time"}),
    "File": Schema(kind="string", extra={"format": "binary"}),
    "Blob": Schema(kind="string", extra={"format": "binary"}),
    "Uint8Array": Schema(kind="string", extra={"format": "binary"}),
    "ArrayBuffer": Schema(kind="string", extra={"format": "binary"}),
}

# Code point escapes, \u{1F600}
_CODE_POINT_ESCAPE = re.compile(r"\\u\{([0-9a-fA-F]+)\}")

# Generic wrappers that describe the same data as their first argument
_TRANSPARENT_GENERICS = frozenset({"Promise", "Awaited", "Readonly", "Required", "NonNullable", "Partial"})


class DeclarationSyntaxError(ValueError):
    """Raised when a type literal cannot be parsed."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at offset {position}")
        self.position = position


@dataclass(frozen=True)
class _Token:
    kind: str
    value: str
    position: int


def tokenize(text: str) -> list[_Token]:
    """Split type literal text into tokens, dropping whitespace and comments."""
    tokens: list[_Token] = []
    position = 0
    while position < len(text):
        match = _TOKEN.match(text, position)
        if match is None:
            raise DeclarationSyntaxError(f"Unexpected character {text[position]!r}", position)
        kind = match.lastgroup or ""
        if kind not in ("space", "comment"):
            tokens.append(_Token(kind, match.group(), position))
        position = match.end()
    return tokens


def compile_type_literal(text: str) -> Schema:
    """Compile a type literal such as `{ name: string; age?: number }`.

    Args:
        text: Type literal source, `readonly` modifiers already removed or not

    Returns:
        Canonical schema tree

    Raises:
        DeclarationSyntaxError: If the text is not a well-formed type
    """
    parser = _Parser(tokenize(text), len(text))
    schema = parser.parse_type()
    while parser.accept(";"):
        pass
    if not parser.at_end():
        raise DeclarationSyntaxError("Unexpected trailing input", parser.position())
    return schema


class _Parser:
    def __init__(self, tokens: list[_Token], length: int) -> None:
        self.tokens = tokens
        self.index = 0
        self.length = length

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def at_end(self) -> bool:
        return self.index >= len(self.tokens)

    def position(self) -> int:
        return self.tokens[self.index].position if not self.at_end() else self.length

    def peek(self, offset: int = 0) -> _Token | None:
        index = self.index + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def peek_value(self, offset: int = 0) -> str | None:
        token = self.peek(offset)
        return token.value if token is not None else None

    def advance(self) -> _Token:
        token = self.peek()
        if token is None:
            raise DeclarationSyntaxError("Unexpected end of input", self.length)
        self.index += 1
        return token

    def accept(self, value: str) -> bool:
        token = self.peek()
        if token is not None and token.value == value and token.kind in ("punct", "arrow", "name"):
            self.index += 1
            return True
        return False

    def expect(self, value: str) -> None:
        if not self.accept(value):
            found = self.peek_value()
            raise DeclarationSyntaxError(f"Expected {value!r}, found {found!r}", self.position())

    def skip_balanced(self, opening: str, closing: str) -> None:
        self.expect(opening)
        depth = 1
        while depth:
            token = self.advance()
            if token.value == opening:
                depth += 1
            elif token.value == closing:
                depth -= 1

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def parse_type(self) -> Schema:
        self.accept("|")
        members = [self.parse_intersection()]
        while self.accept("|"):
            members.append(self.parse_intersection())
        if len(members) == 1:
            return members[0]
        return Schema(kind="union", any_of=members)

    def parse_intersection(self) -> Schema:
        self.accept("&")
        members = [self.parse_postfix()]
        while self.accept("&"):
            members.append(self.parse_postfix())
        if len(members) == 1:
            return members[0]
        return Schema(kind="intersection", all_of=members)

    def parse_postfix(self) -> Schema:
        schema = self.parse_primary()
        while True:
            if self.peek_value() == "[" and self.peek_value(1) == "]":
                self.index += 2
                schema = Schema(kind="array", items=schema)
            elif self.peek_value() == "[" and self.peek_value(2) == "]" and self._is_literal(self.peek(1)):
                # indexed access, T["key"]
                self.index += 3
                schema = Schema(kind="unknown")
            elif self.peek_value() == "extends":
                self._skip_conditional()
                schema = Schema(kind="unknown")
            else:
                return schema

    def _is_literal(self, token: _Token | None) -> bool:
        return token is not None and token.kind in ("string", "number")

    def _skip_conditional(self) -> None:
        self.expect("extends")
        self.parse_postfix()
        self.expect("?")
        self.parse_type()
        self.expect(":")
        self.parse_type()

    def parse_primary(self) -> Schema:
        token = self.peek()
        if token is None:
            raise DeclarationSyntaxError("Unexpected end of input", self.length)

        match token.kind:
            case "string":
                self.index += 1
                return Schema(kind="string", const=_string_value(token.value, token.position))
            case "number":
                self.index += 1
                return Schema(kind="number", const=_number_value(token.value))
            case "name":
                return self.parse_named()

        match token.value:
            case "{":
                return self.parse_object()
            case "[":
                return self.parse_tuple()
            case "(":
                return self.parse_parenthesized()

        raise DeclarationSyntaxError(f"Unexpected token {token.value!r}", token.position)

    def parse_named(self) -> Schema:
        name = self.advance().value

        match name:
            case "true" | "false":
                return Schema(kind="boolean", const=name == "true")
            case "readonly":
                return self.parse_postfix()
            case "keyof":
                self.parse_postfix()
                return Schema(kind="string")
            case "import" if self.peek_value() == "(":
                # inline import of an unexported type, import("./model").User
                self.skip_balanced("(", ")")
                while self.accept("."):
                    self.advance()
                if self.peek_value() == "<":
                    self.skip_balanced("<", ">")
                return Schema(kind="unknown")
            case "typeof" | "unique":
                self.parse_postfix()
                return Schema(kind="unknown")
            case "new":
                self.skip_balanced("(", ")")
                self.expect("=>")
                self.parse_type()
                return Schema(kind="unknown")

        while self.accept("."):
            name += "." + self.advance().value

        arguments: list[Schema] = []
        if self.peek_value() == "<":
            arguments = self.parse_type_arguments()

        if name in _PRIMITIVES and not arguments:
            return _PRIMITIVES[name]
        if name in ("Array", "ReadonlyArray", "Set", "ReadonlySet") and arguments:
            return Schema(kind="array", items=arguments[0])
        if name in ("Record", "Map", "ReadonlyMap") and len(arguments) == 2:
            return Schema(kind="object", additional_properties=arguments[1])
        if name in _TRANSPARENT_GENERICS and arguments:
            if name == "Partial" and arguments[0].kind == "object":
                return arguments[0].model_copy(update={"required": []})
            return arguments[0]
        return Schema(kind="unknown")

    def parse_type_arguments(self) -> list[Schema]:
        self.expect("<")
        arguments = [self.parse_type()]
        while self.accept(","):
            arguments.append(self.parse_type())
        self.expect(">")
        return arguments

    def parse_tuple(self) -> Schema:
        self.expect("[")
        elements: list[Schema] = []
        rest = False
        while not self.accept("]"):
            if self.accept(","):
                continue
            if self.accept("..."):
                rest = True
            # labelled element, [name: T]
            if self.peek(1) is not None and self.peek_value(1) in (":", "?") and self.peek_value(2) != "]":
                self.index += 1
                self.accept("?")
                self.expect(":")
            elements.append(self.parse_type())

        if not elements:
            return Schema(kind="array", extra={"maxItems": 0})
        items = elements[0] if len(elements) == 1 else Schema(kind="union", any_of=elements)
        if rest:
            return Schema(kind="array", items=items)
        return Schema(kind="array", items=items, extra={"minItems": len(elements), "maxItems": len(elements)})

    def parse_parenthesized(self) -> Schema:
        start = self.index
        try:
            self.expect("(")
            inner = self.parse_type()
            self.expect(")")
        except DeclarationSyntaxError:
            # a parameter list, (a: string) => void
            self.index = start
            self.skip_balanced("(", ")")
            self.expect("=>")
            self.parse_type()
            return Schema(kind="unknown")

        if self.accept("=>"):
            self.parse_type()
            return Schema(kind="unknown")
        return inner

    def parse_object(self) -> Schema:
        self.expect("{")
        properties: dict[str, Schema] = {}
        required: list[str] = []
        additional: Schema | None = None

        while not self.accept("}"):
            if self.accept(";") or self.accept(","):
                continue
            if self.peek_value() == "readonly" and self.peek_value(1) not in (":", "?", "(", None):
                self.index += 1

            if self.peek_value() == "[":
                additional = self.parse_index_signature()
                continue

            key = self.parse_key()
            optional = self.accept("?")

            if self.peek_value() in ("(", "<"):
                # method signature, name(args): T
                if self.peek_value() == "<":
                    self.skip_balanced("<", ">")
                self.skip_balanced("(", ")")
                self.expect(":")
                self.parse_type()
                properties[key] = Schema(kind="unknown")
                continue

            self.expect(":")
            properties[key] = self.parse_type()
            if not optional:
                required.append(key)

        return Schema(kind="object", properties=properties, required=required, additional_properties=additional)

    def parse_index_signature(self) -> Schema:
        self.expect("[")
        self.advance()
        if self.accept(":") or self.accept("in"):
            self.parse_type()
        self.expect("]")
        self.accept("?")
        self.expect(":")
        return self.parse_type()

    def parse_key(self) -> str:
        token = self.advance()
        match token.kind:
            case "name" | "number":
                return token.value
            case "string":
                return _string_value(token.value, token.position)
        raise DeclarationSyntaxError(f"Expected a property name, found {token.value!r}", token.position)


def _string_value(literal: str, position: int) -> str:
    if literal.startswith("`"):
        return literal[1:-1]
    literal = _CODE_POINT_ESCAPE.sub(lambda match: f"\\U{int(match.group(1), 16):08x}", literal)
    try:
        return str(ast.literal_eval(literal))
    except (SyntaxError, ValueError) as e:
        raise DeclarationSyntaxError(f"Invalid string literal {literal}", position) from e


def _number_value(literal: str) -> int | float:
    if any(marker in literal for marker in ".eE"):
        return float(literal)
    return int(literal)
