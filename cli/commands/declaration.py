"""Declaration mining commands."""

from pathlib import Path
from typing import Any

import typer

from cli.config import get_output_defaults
from cli.output import error_message, handle_permission_error, output_document
from routedoc.declaration import References, declaration_to_references, find_route_tree
from routedoc.models import Schema
from routedoc.schema import to_json_schema

app = typer.Typer(help="Mine route schemas from type declaration files")


def read_references(path: Path, instance: str | None = None) -> References:
    """Mine the route tree of a declaration file into a reference map.

    Args:
        path: Declaration file (e.g. an emitted `.d.ts`)
        instance: Name of the typed application instance (default: first one found)

    Returns:
        Reference map, path -> method -> slots

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If no route tree can be found in the file
    """
    if not path.exists():
        raise FileNotFoundError(f"Declaration file not found: {path}")

    tree = find_route_tree(path.read_text(encoding="utf-8"), instance_name=instance)
    if tree is None:
        raise ValueError(f"No route tree found in {path}")

    return declaration_to_references(tree)


def render_references(references: References) -> dict[str, Any]:
    """Render a reference map with every schema as JSON Schema."""
    rendered: dict[str, Any] = {}
    for path, methods in references.items():
        for method, slots in methods.items():
            entry: dict[str, Any] = {}
            for slot, value in slots.items():
                if slot == "response" and isinstance(value, dict):
                    entry[slot] = {str(status): _render(schema) for status, schema in value.items()}
                else:
                    entry[slot] = _render(value)
            rendered.setdefault(path, {})[method] = entry
    return rendered


def _render(value: Any) -> Any:
    return to_json_schema(value) if isinstance(value, Schema) else value


@app.command("mine")
def declaration_mine(
    path: Path = typer.Argument(
        ..., help="Path to declaration file", dir_okay=False, resolve_path=True, readable=False
    ),
    instance: str | None = typer.Option(
        None, "--instance", help="Name of the typed application instance (default: first found)"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Output file path (default: stdout)", dir_okay=False, resolve_path=True
    ),
    output_format: str | None = typer.Option(None, "--format", "-f", help="Output format: json or yaml"),
    pretty: bool | None = typer.Option(None, "--pretty", help="Pretty-print JSON output"),
) -> None:
    """Print the route schemas recovered from a declaration file.

    Example:
        routedoc declaration mine dist/server.d.ts --pretty
        routedoc declaration mine dist/server.d.ts --instance app --output references.json
    """
    try:
        output_defaults = get_output_defaults()
        if output_format is None:
            output_format = output_defaults.format
        if pretty is None:
            pretty = output_defaults.pretty

        references = read_references(path, instance)
        output_document(
            render_references(references),
            output_path=output,
            output_format=output_format,
            pretty=pretty,
            label="References",
        )
    except typer.Exit:
        raise
    except FileNotFoundError as e:
        error_message(f"File not found: {path}", hint="Check the file path and try again")
        raise typer.Exit(1) from e
    except PermissionError as e:
        handle_permission_error(path, e)
        raise typer.Exit(1) from e
    except ValueError as e:
        error_message(str(e), hint="Use --instance to name the typed application instance")
        raise typer.Exit(1) from e
    except Exception as e:
        error_message(f"Failed to mine declaration file: {e}")
        raise typer.Exit(1) from e
