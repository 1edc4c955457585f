"""Configuration management commands."""

import typer

from cli.config import Config, get_config_path, init_config, load_config, validate_config
from cli.output import error_message, output_document, success_message

app = typer.Typer(help="Manage configuration file")


@app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing config file"),
    title: str | None = typer.Option(None, "--title", help="API title for generated documents"),
    api_version: str | None = typer.Option(None, "--api-version", help="API version for generated documents"),
) -> None:
    """Initialize configuration file with default values.

    Creates ~/.routedoc.yaml (or path from ROUTEDOC_CONFIG env var).

    Example:
        routedoc config init
        routedoc config init --title "Users API" --api-version 1.0.0 --force
    """
    try:
        config = Config()
        if title is not None:
            config.documentation.info.title = title
        if api_version is not None:
            config.documentation.info.version = api_version

        config_path = init_config(force=force, config=config)

        success_message(f"Created config file: {config_path}")
        typer.echo("Edit this file to customize document info, exclusions and output defaults.")
    except FileExistsError as e:
        error_message(
            f"Config file already exists: {get_config_path()}",
            hint="Use --force to overwrite, or edit the existing file",
        )
        raise typer.Exit(1) from e
    except Exception as e:
        error_message(f"Failed to create config file: {e}")
        raise typer.Exit(1) from e


@app.command("show")
def config_show(
    output_format: str = typer.Option("yaml", "--format", "-f", help="Output format: json or yaml"),
) -> None:
    """Display the effective configuration, defaults included.

    Example:
        routedoc config show
        routedoc config show --format json
    """
    try:
        config_path = get_config_path()
        config = load_config()

        typer.echo(f"Config file: {config_path}")
        if not config_path.exists():
            typer.echo("(using built-in defaults, file does not exist)")
        typer.echo("")

        output_document(config.model_dump(mode="json"), output_format=output_format, pretty=True)
    except Exception as e:
        error_message(f"Failed to load config: {e}")
        raise typer.Exit(1) from e


@app.command("validate")
def config_validate() -> None:
    """Validate configuration file syntax and structure.

    Example:
        routedoc config validate
    """
    try:
        config_path = get_config_path()

        if not config_path.exists():
            error_message(f"Config file does not exist: {config_path}", hint="Run 'routedoc config init' first")
            raise typer.Exit(1)

        config = load_config()
        errors = validate_config(config)

        if errors:
            error_message("Config validation failed:")
            for error in errors:
                typer.echo(f"  - {error}")
            raise typer.Exit(1)

        success_message("Config file is valid")
        exclude = config.exclude
        typer.echo(f"  Document: {config.documentation.info.title} {config.documentation.info.version}")
        typer.echo(f"  OpenAPI version: {config.documentation.openapi}")
        typer.echo(f"  Excluded methods: {', '.join(exclude.methods) or '-'}")
        typer.echo(f"  Excluded paths: {len(exclude.paths)} exact, {len(exclude.patterns)} patterns")
        typer.echo(f"  Excluded tags: {', '.join(exclude.tags) or '-'}")
    except typer.Exit:
        raise
    except Exception as e:
        error_message(f"Failed to validate config: {e}")
        raise typer.Exit(1) from e


@app.command("path")
def config_path() -> None:
    """Show path to configuration file.

    Example:
        routedoc config path
    """
    typer.echo(str(get_config_path()))
