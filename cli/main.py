"""Command line entry point."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from cli.commands import config, declaration, openapi

app = typer.Typer(help="Generate OpenAPI documents from route schemas")
app.add_typer(openapi.app, name="openapi")
app.add_typer(declaration.app, name="declaration")
app.add_typer(config.app, name="config")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Generate OpenAPI documents from route schemas."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


if __name__ == "__main__":
    app()
