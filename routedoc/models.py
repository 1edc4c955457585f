"""Pydantic models for routes, canonical schemas and generation settings"""

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, Field

# ============================================================================
# Canonical Schema
# ============================================================================

SchemaKind = Literal[
    "object",
    "array",
    "string",
    "number",
    "integer",
    "boolean",
    "null",
    "void",
    "undefined",
    "union",
    "intersection",
    "reference",
    "unknown",
]

Direction = Literal["input", "output"]

PRIMITIVE_KINDS = frozenset({"string", "number", "integer", "boolean"})
VOID_KINDS = frozenset({"void", "null", "undefined"})

COMPONENTS_PREFIX = "#/components/schemas/"


class Schema(BaseModel):
    """Vendor-neutral schema node"""

    kind: SchemaKind = Field(description="Schema kind discriminator")
    properties: dict[str, "Schema"] | None = Field(default=None, description="Object properties")
    required: list[str] = Field(default_factory=list, description="Required object property names")
    additional_properties: "bool | Schema | None" = Field(
        default=None, description="Whether (or which) undeclared object properties are allowed"
    )
    items: "Schema | None" = Field(default=None, description="Array item schema")
    any_of: list["Schema"] = Field(default_factory=list, description="Union members")
    all_of: list["Schema"] = Field(default_factory=list, description="Intersection members")
    ref: str | None = Field(default=None, description="Component pointer for references")
    const: Any = Field(default=None, description="Single allowed value")
    enum: list[Any] | None = Field(default=None, description="Allowed values")
    title: str | None = Field(default=None, description="Schema title")
    description: str | None = Field(default=None, description="Schema description")
    extra: dict[str, Any] = Field(default_factory=dict, description="Other JSON Schema keywords")

    model_config = {"frozen": True}

    @property
    def is_constant(self) -> bool:
        return self.const is not None or (self.enum is not None and len(self.enum) == 1)

    @property
    def constant(self) -> Any:
        if self.const is not None:
            return self.const
        return self.enum[0] if self.enum else None

    @property
    def is_primitive(self) -> bool:
        return self.kind in PRIMITIVE_KINDS

    @property
    def is_void(self) -> bool:
        return self.kind in VOID_KINDS

    @property
    def ref_name(self) -> str | None:
        if self.ref is None:
            return None
        return self.ref[self.ref.rfind("/") + 1 :]


def to_ref(name: str) -> Schema:
    """Build a reference node pointing at a component schema."""
    return Schema(kind="reference", ref=f"{COMPONENTS_PREFIX}{name}")


# ============================================================================
# Route Models
# ============================================================================

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options", "trace")

SLOT_NAMES = ("params", "query", "headers", "cookie", "body")


class SchemaSlots(BaseModel):
    """The schema categories a route (or a guard scope) can declare"""

    params: Any = Field(default=None, description="Path parameter schema")
    query: Any = Field(default=None, description="Query string schema")
    headers: Any = Field(default=None, description="Request header schema")
    cookie: Any = Field(default=None, description="Cookie schema")
    body: Any = Field(default=None, description="Request body schema")
    response: Any = Field(default=None, description="Response schema, or status code -> schema mapping")

    model_config = {"frozen": True}

    def slots(self) -> dict[str, Any]:
        """Return the slot values keyed by slot name, response included."""
        return {name: getattr(self, name) for name in (*SLOT_NAMES, "response")}


class Hooks(SchemaSlots):
    """Schema slots of a route plus its body parsers and guard chain"""

    parse: list[str | Callable[..., Any]] = Field(
        default_factory=list, description="Declared body parsers (named formats or parser functions)"
    )
    guards: list[SchemaSlots] = Field(
        default_factory=list, description="Ancestor guard scopes, outermost first"
    )


class Route(BaseModel):
    """A registered endpoint as supplied by the route registry"""

    method: str = Field(description="HTTP method, or 'all' for every standard method")
    path: str = Field(description="Path pattern, e.g. /user/:id?")
    hooks: Hooks = Field(default_factory=Hooks, description="Schemas attached to the route")
    hide: bool = Field(default=False, description="Whether the route is hidden from documentation")
    detail: dict[str, Any] = Field(default_factory=dict, description="Operation metadata merged verbatim")

    model_config = {"frozen": True}

    @property
    def hidden(self) -> bool:
        return self.hide or bool(self.detail.get("hide"))


class Registry(BaseModel):
    """Everything a generation pass reads from the application"""

    routes: list[Route] = Field(default_factory=list, description="Registered routes, in order")
    definitions: dict[str, Any] = Field(default_factory=dict, description="Component schemas by name")
    vendors: dict[str, Callable[..., Any]] = Field(
        default_factory=dict, description="Vendor name -> converter to JSON Schema"
    )


# ============================================================================
# Generation Settings
# ============================================================================


class ExcludeRules(BaseModel):
    """Rules for leaving routes out of the document"""

    methods: list[str] = Field(default_factory=lambda: ["options"], description="Methods to exclude")
    paths: list[str] = Field(default_factory=list, description="Exact paths to exclude")
    patterns: list[str] = Field(default_factory=list, description="Regular expressions matched against paths")
    static_file: bool = Field(default=True, description="Exclude paths that look like static files")
    tags: list[str] = Field(default_factory=list, description="Exclude operations carrying any of these tags")


class InfoSettings(BaseModel):
    """The `info` object of the generated document"""

    title: str = Field(default="API Documentation", description="API title")
    description: str = Field(default="Development documentation", description="API description")
    version: str = Field(default="0.0.0", description="API version")


class DocumentationSettings(BaseModel):
    """Document-level fields merged around the generated paths and components"""

    openapi: str = Field(default="3.1.0", description="OpenAPI version of the document")
    info: InfoSettings = Field(default_factory=InfoSettings, description="Document info")
    tags: list[dict[str, Any]] = Field(default_factory=list, description="Tag objects")
    servers: list[dict[str, Any]] = Field(default_factory=list, description="Server objects")
    paths: dict[str, Any] = Field(default_factory=dict, description="Path items overriding generated ones")
    components: dict[str, Any] = Field(default_factory=dict, description="Components merged over generated ones")
