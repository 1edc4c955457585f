"""OpenAPI document generation and validation commands."""

import importlib
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import typer

from cli.commands.declaration import read_references
from cli.config import load_config
from cli.output import error_message, handle_permission_error, output_document, success_message
from routedoc.document import build_document, load_document, validate_document
from routedoc.models import Registry

app = typer.Typer(help="Generate and validate OpenAPI documents")


def load_registry(target: str) -> Registry:
    """Import the route registry named by `module:attribute`.

    The attribute may be a `Registry`, a list of routes (models or dicts), a mapping
    shaped like a registry, or a callable returning any of these.

    Args:
        target: Import path, e.g. `myapp.server:registry`

    Returns:
        Registry to generate the document from

    Raises:
        ValueError: If the target cannot be imported or is not a registry
    """
    module_name, _, attribute = target.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Target must look like 'module:attribute', got {target!r}")

    # Modules next to the caller are importable, as with `python -m`
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module {module_name!r}: {e}") from e

    try:
        obj: Any = getattr(module, attribute)
    except AttributeError as e:
        raise ValueError(f"Module {module_name!r} has no attribute {attribute!r}") from e

    if callable(obj) and not isinstance(obj, (Registry, type)):
        obj = obj()

    match obj:
        case Registry():
            return obj
        case list() | tuple():
            return Registry.model_validate({"routes": list(obj)})
        case Mapping():
            return Registry.model_validate(obj)

    raise ValueError(f"{target} is not a registry or a list of routes (got {type(obj).__name__})")


@app.command("generate")
def openapi_generate(
    target: str = typer.Argument(..., help="Route registry as module:attribute"),
    reference: list[Path] | None = typer.Option(
        None, "--reference", "-r", help="Declaration file filling schemas routes leave empty (repeatable)"
    ),
    instance: str | None = typer.Option(
        None, "--instance", help="Name of the typed application instance in declaration files"
    ),
    validate: bool = typer.Option(True, "--validate/--no-validate", help="Validate the generated document"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file path (default: stdout)", dir_okay=False, resolve_path=True
    ),
    output_format: str | None = typer.Option(None, "--format", "-f", help="Output format: json or yaml"),
    pretty: bool | None = typer.Option(None, "--pretty", help="Pretty-print JSON output"),
    config_file: Path | None = typer.Option(
        None, "--config", help="Config file (default: ROUTEDOC_CONFIG or ~/.routedoc.yaml)", dir_okay=False
    ),
) -> None:
    """Generate an OpenAPI document from a route registry.

    Example:
        routedoc openapi generate myapp.server:registry --output openapi.json --pretty
        routedoc openapi generate myapp.server:routes --reference dist/server.d.ts --format yaml
    """
    try:
        config = load_config(config_file)
        output_defaults = config.defaults.output

        if output_format is None:
            output_format = output_defaults.format
        if pretty is None:
            pretty = output_defaults.pretty

        registry = load_registry(target)
        references = [read_references(path, instance) for path in reference or []]

        document = build_document(registry, config.documentation, config.exclude, references)
        if validate:
            validate_document(document)

        output_document(
            document,
            output_path=output,
            output_format=output_format,
            pretty=pretty,
            label="OpenAPI document",
        )
    except typer.Exit:
        raise
    except FileNotFoundError as e:
        error_message(str(e), hint="Check the file path and try again")
        raise typer.Exit(1) from e
    except PermissionError as e:
        handle_permission_error(Path(e.filename or "."), e)
        raise typer.Exit(1) from e
    except ValueError as e:
        error_message(str(e), hint="Use --no-validate to inspect the document anyway")
        raise typer.Exit(1) from e
    except Exception as e:
        error_message(f"Failed to generate OpenAPI document: {e}")
        raise typer.Exit(1) from e


@app.command("validate")
def openapi_validate(
    path: Path = typer.Argument(
        ..., help="Path to OpenAPI document (JSON or YAML)", dir_okay=False, resolve_path=True, readable=False
    ),
) -> None:
    """Check that an OpenAPI document is structurally valid.

    Example:
        routedoc openapi validate openapi.json
    """
    try:
        document = load_document(path)
        parsed = validate_document(document)

        success_message(f"Valid OpenAPI {parsed.openapi} document: {path}")
        typer.echo(f"  Paths: {len(document.get('paths') or {})}")
        typer.echo(f"  Component schemas: {len((document.get('components') or {}).get('schemas') or {})}")
    except FileNotFoundError as e:
        error_message(f"File not found: {path}", hint="Check the file path and try again")
        raise typer.Exit(1) from e
    except PermissionError as e:
        handle_permission_error(path, e)
        raise typer.Exit(1) from e
    except ValueError as e:
        error_message(str(e))
        raise typer.Exit(1) from e
