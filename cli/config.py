"""YAML configuration for the routedoc command line tool.

The file holds document-level settings (info, tags, servers and hand-written paths or
components), the exclusion rules applied to the registry and default output options.
Every section is optional; missing keys fall back to the built-in defaults.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from cli.output import OUTPUT_FORMATS
from routedoc.models import HTTP_METHODS, DocumentationSettings, ExcludeRules

CONFIG_ENV_VAR = "ROUTEDOC_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".routedoc.yaml"


class OutputDefaults(BaseModel):
    """How generated documents are written when no option says otherwise."""

    format: str = Field(default="json", description="json or yaml")
    pretty: bool = Field(default=False, description="Indent JSON output")


class Defaults(BaseModel):
    """Per-command defaults."""

    output: OutputDefaults = Field(default_factory=OutputDefaults)


class Config(BaseModel):
    """Contents of the routedoc config file."""

    version: str = "1.0"
    documentation: DocumentationSettings = Field(default_factory=DocumentationSettings)
    exclude: ExcludeRules = Field(default_factory=ExcludeRules)
    defaults: Defaults = Field(default_factory=Defaults)


def get_config_path() -> Path:
    """Return $ROUTEDOC_CONFIG when set, otherwise ~/.routedoc.yaml."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else DEFAULT_CONFIG_PATH


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file {path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Cannot read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(path: Path | None = None) -> Config:
    """Load configuration, falling back to built-in defaults when the file is absent.

    Args:
        path: Config file to read (None = ROUTEDOC_CONFIG or ~/.routedoc.yaml)

    Raises:
        ValueError: If the file is not valid YAML or does not match the config structure
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        return Config()

    try:
        return Config.model_validate(_read_yaml(config_path))
    except ValidationError as e:
        raise ValueError(f"Invalid config file {config_path}: {e}") from e


def save_config(config: Config, path: Path | None = None) -> Path:
    """Write configuration as YAML, creating parent directories.

    Returns:
        Path written to
    """
    config_path = path or get_config_path()
    text = yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ValueError(f"Failed to save config file {config_path}: {e}") from e
    return config_path


def init_config(force: bool = False, config: Config | None = None) -> Path:
    """Write a config file, built-in defaults unless a config is given.

    Args:
        force: Overwrite an existing file
        config: Config to write (None = defaults)

    Returns:
        Path of the new config file

    Raises:
        FileExistsError: If the file exists and force is False
    """
    config_path = get_config_path()
    if config_path.exists() and not force:
        raise FileExistsError(f"Config file already exists: {config_path}")

    return save_config(config or Config(), config_path)


def get_output_defaults(config: Config | None = None) -> OutputDefaults:
    """Output defaults of the given config, or of the config file."""
    return (config or load_config()).defaults.output


def validate_config(config: Config) -> list[str]:
    """Check config values pydantic accepts but generation cannot use.

    Returns:
        Human-readable problems, empty when the config is usable
    """
    errors = []

    if not config.version:
        errors.append("Missing 'version' field")

    if config.defaults.output.format not in OUTPUT_FORMATS:
        errors.append("'defaults.output.format' must be 'json' or 'yaml'")

    if not config.documentation.openapi.startswith("3."):
        errors.append("'documentation.openapi' must be an OpenAPI 3.x version")

    unknown_methods = [m for m in config.exclude.methods if m.lower() not in HTTP_METHODS]
    if unknown_methods:
        errors.append(f"'exclude.methods' has unknown HTTP methods: {', '.join(unknown_methods)}")

    for pattern in config.exclude.patterns:
        try:
            re.compile(pattern)
        except re.error as e:
            errors.append(f"'exclude.patterns' entry {pattern!r} is not a valid regular expression: {e}")

    return errors
