"""Output formatting and user-facing messages for CLI commands."""

import errno
import json
import sys
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.syntax import Syntax

console = Console()

OUTPUT_FORMATS = ("json", "yaml")


def handle_permission_error(path: Path, error: PermissionError) -> None:
    """Report a permission error, with a hint for macOS privacy restrictions.

    Args:
        path: Path that caused the error
        error: The PermissionError exception
    """
    hint = "Check file permissions."

    # EPERM on macOS means a TCC restriction on protected folders
    if sys.platform == "darwin" and getattr(error, "errno", None) == errno.EPERM:
        hint = (
            "This looks like a macOS security restriction. Move the file into your project "
            "folder or grant the terminal 'Full Disk Access' in System Settings."
        )

    error_message(f"Permission denied: {path}", hint=hint)


def render_document(data: dict[str, Any], output_format: str = "json", pretty: bool = False) -> str:
    """Serialize a document as JSON or YAML.

    Args:
        data: Document to serialize
        output_format: json or yaml
        pretty: Indent JSON output (YAML is always block style)

    Returns:
        Serialized document

    Raises:
        ValueError: If the output format is unknown
    """
    match output_format:
        case "json":
            return json.dumps(data, indent=2 if pretty else None, ensure_ascii=False)
        case "yaml":
            return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        case _:
            raise ValueError(f"Unknown output format: {output_format} (expected one of {', '.join(OUTPUT_FORMATS)})")


def output_document(
    data: dict[str, Any],
    output_path: Path | None = None,
    output_format: str = "json",
    pretty: bool = False,
    label: str = "Document",
) -> None:
    """Write a document to a file, or to stdout.

    Terminals get syntax highlighting; pipes get the plain text so the output stays parseable.

    Args:
        data: Document to write
        output_path: Output file path (None = stdout)
        output_format: json or yaml
        pretty: Whether to indent JSON
        label: What the document is, used in the success message
    """
    output_str = render_document(data, output_format, pretty)

    if output_path is None:
        if console.is_terminal:
            console.print(Syntax(output_str, output_format, theme="monokai", word_wrap=False))
        else:
            typer.echo(output_str)
        return

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output_str, encoding="utf-8")
    except PermissionError as e:
        handle_permission_error(output_path, e)
        raise typer.Exit(1) from e

    success_message(f"{label} written to {output_path}")


def error_message(message: str, hint: str | None = None) -> None:
    """Print an error message (and optional hint) to stderr.

    Args:
        message: Error message
        hint: Optional hint for user
    """
    typer.secho(f"✗ Error: {message}", fg=typer.colors.RED, err=True)
    if hint:
        typer.secho(f"  Hint: {hint}", fg=typer.colors.YELLOW, err=True)


def success_message(message: str) -> None:
    """Print success message.

    Args:
        message: Success message
    """
    typer.secho(f"✓ {message}", fg=typer.colors.GREEN)
