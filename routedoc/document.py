"""Complete OpenAPI documents: assembly around the generated paths, loading and validation."""

import copy
import json
import logging
from pathlib import Path
from typing import Any

import yaml
from openapi_pydantic import OpenAPI
from openapi_pydantic.v3.v3_0 import OpenAPI as OpenAPI30
from pydantic import ValidationError

from routedoc.models import HTTP_METHODS, DocumentationSettings, ExcludeRules, Registry
from routedoc.openapi import AdditionalReferences, assemble

logger = logging.getLogger(__name__)


def build_document(
    registry: Registry,
    documentation: DocumentationSettings | None = None,
    exclude: ExcludeRules | None = None,
    references: AdditionalReferences = None,
) -> dict[str, Any]:
    """Generate a complete OpenAPI document for a registry.

    Args:
        registry: Routes, definitions and vendor converters of the application
        documentation: Document-level fields; generated paths and schemas are overridden by its entries
        exclude: Rules for leaving routes out
        references: Reference maps filling slots routes leave empty

    Returns:
        OpenAPI document as a plain dictionary
    """
    documentation = documentation or DocumentationSettings()
    exclude = exclude or ExcludeRules()

    generated = assemble(registry.routes, exclude, references, registry.vendors, registry.definitions)
    logger.debug(
        "Generated %d paths and %d component schemas",
        len(generated["paths"]),
        len(generated["components"]["schemas"]),
    )

    document: dict[str, Any] = {
        "openapi": documentation.openapi,
        "info": documentation.info.model_dump(),
    }

    if documentation.tags:
        document["tags"] = [copy.deepcopy(tag) for tag in documentation.tags if tag.get("name") not in exclude.tags]
    if documentation.servers:
        document["servers"] = copy.deepcopy(documentation.servers)

    document["paths"] = {**generated["paths"], **copy.deepcopy(documentation.paths)}

    components = copy.deepcopy(documentation.components)
    components["schemas"] = {**generated["components"]["schemas"], **components.get("schemas", {})}
    document["components"] = components

    return document


def _add_default_responses(document: dict[str, Any]) -> dict[str, Any]:
    """Add empty responses to operations that don't have them.

    openapi-pydantic requires a responses field on every operation, while generated
    operations only carry one when a response schema is declared.

    Args:
        document: OpenAPI document dictionary, modified in place

    Returns:
        The same dictionary
    """
    for path_item in document.get("paths", {}).values():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict) and "responses" not in operation:
                operation["responses"] = {}

    return document


def validate_document(document: dict[str, Any]) -> OpenAPI | OpenAPI30:
    """Check that a document is structurally valid OpenAPI.

    The document itself is not modified.

    Args:
        document: OpenAPI 3.0 or 3.1 document dictionary

    Returns:
        Parsed document as a typed OpenAPI object

    Raises:
        ValueError: If the document does not validate
    """
    checked = _add_default_responses(copy.deepcopy(document))

    try:
        if str(checked.get("openapi", "")).startswith("3.0"):
            return OpenAPI30.model_validate(checked)
        return OpenAPI.model_validate(checked)
    except ValidationError as e:
        raise ValueError(f"Invalid OpenAPI document: {e}") from e


def load_document(document_file: Path) -> dict[str, Any]:
    """Read an OpenAPI document from a JSON or YAML file.

    Args:
        document_file: Path to the document

    Returns:
        Document dictionary

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file cannot be parsed
    """
    if not document_file.exists():
        raise FileNotFoundError(f"Document file not found: {document_file}")

    content = document_file.read_text()
    try:
        if document_file.suffix.lower() == ".json":
            document = json.loads(content)
        elif document_file.suffix.lower() in (".yaml", ".yml"):
            document = yaml.safe_load(content)
        else:
            try:
                document = json.loads(content)
            except json.JSONDecodeError:
                document = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to parse document file: {e}") from e

    if not isinstance(document, dict):
        raise ValueError(f"Document file does not contain an object: {document_file}")
    return document
