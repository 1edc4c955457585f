"""Tests for the openapi generate and validate commands."""

import json
import sys
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from cli.commands.openapi import app, load_registry
from routedoc.models import Registry

runner = CliRunner()

APP_MODULE = "routedoc_sample_app"

APP_SOURCE = '''
from routedoc.models import Registry, Route

registry = Registry(
    routes=[
        Route(method="get", path="/users/:id", hooks={"response": "User"}, detail={"tags": ["users"]}),
        Route(method="get", path="/favicon.ico"),
    ],
    definitions={"User": {"type": "object", "properties": {"id": {"type": "integer"}}, "required": ["id"]}},
)


def routes():
    return [{"method": "post", "path": "/users", "hooks": {"body": {"type": "string"}}}]


bare_routes = [{"method": "patch", "path": "/user/:id"}]

not_a_registry = 42
'''


@pytest.fixture
def app_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Make a sample application module importable and isolate the config file"""
    (tmp_path / f"{APP_MODULE}.py").write_text(APP_SOURCE)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delitem(sys.modules, APP_MODULE, raising=False)
    monkeypatch.setenv("ROUTEDOC_CONFIG", str(tmp_path / "routedoc.yaml"))
    return APP_MODULE


def test_load_registry_variants(app_module: str) -> None:
    """Test registries, callables and plain route lists are accepted."""
    registry = load_registry(f"{app_module}:registry")
    from_callable = load_registry(f"{app_module}:routes")
    from_list = load_registry(f"{app_module}:bare_routes")

    assert isinstance(registry, Registry)
    assert [route.path for route in registry.routes] == ["/users/:id", "/favicon.ico"]
    assert from_callable.routes[0].method == "post"
    assert from_list.routes[0].path == "/user/:id"


def test_load_registry_errors(app_module: str) -> None:
    """Test malformed or wrong targets raise ValueError."""
    with pytest.raises(ValueError, match="module:attribute"):
        load_registry(app_module)
    with pytest.raises(ValueError, match="Cannot import module"):
        load_registry("routedoc_missing_module:registry")
    with pytest.raises(ValueError, match="has no attribute"):
        load_registry(f"{app_module}:missing")
    with pytest.raises(ValueError, match="is not a registry"):
        load_registry(f"{app_module}:not_a_registry")


def test_openapi_generate_json(app_module: str, tmp_path: Path) -> None:
    """Test generating a validated JSON document from a registry."""
    output_file = tmp_path / "openapi.json"

    result = runner.invoke(app, ["generate", f"{app_module}:registry", "--output", str(output_file)])

    assert result.exit_code == 0, f"Command failed: {result.output}"
    document = json.loads(output_file.read_text())

    assert document["openapi"] == "3.1.0"
    assert set(document["paths"]) == {"/users/{id}"}
    operation = document["paths"]["/users/{id}"]["get"]
    assert operation["operationId"] == "getUsersById"
    assert operation["responses"]["200"]["content"]["application/json"]["schema"] == {
        "$ref": "#/components/schemas/User"
    }
    assert document["components"]["schemas"]["User"]["required"] == ["id"]


def test_openapi_generate_yaml_from_callable(app_module: str, tmp_path: Path) -> None:
    """Test YAML output and callable targets."""
    output_file = tmp_path / "openapi.yaml"

    result = runner.invoke(
        app, ["generate", f"{app_module}:routes", "--format", "yaml", "--output", str(output_file)]
    )

    assert result.exit_code == 0, f"Command failed: {result.output}"
    document = yaml.safe_load(output_file.read_text())
    body = document["paths"]["/users"]["post"]["requestBody"]
    assert list(body["content"]) == ["text/plain"]


def test_openapi_generate_with_reference(app_module: str, tmp_path: Path, route_declaration: str) -> None:
    """Test declaration files fill the schemas routes leave empty."""
    declaration_file = tmp_path / "server.d.ts"
    declaration_file.write_text(route_declaration)
    output_file = tmp_path / "openapi.json"

    result = runner.invoke(
        app,
        [
            "generate",
            f"{app_module}:bare_routes",
            "--reference",
            str(declaration_file),
            "--output",
            str(output_file),
        ],
    )

    assert result.exit_code == 0, f"Command failed: {result.output}"
    operation = json.loads(output_file.read_text())["paths"]["/user/{id}"]["patch"]
    assert [parameter["name"] for parameter in operation["parameters"]] == ["id", "notify"]
    assert set(operation["responses"]) == {"200", "404"}


def test_openapi_generate_uses_config(app_module: str, tmp_path: Path) -> None:
    """Test documentation and exclusion settings come from the config file."""
    config = {
        "documentation": {"info": {"title": "Sample API", "version": "1.2.3"}},
        "exclude": {"tags": ["users"]},
    }
    (tmp_path / "routedoc.yaml").write_text(yaml.safe_dump(config))
    output_file = tmp_path / "openapi.json"

    result = runner.invoke(app, ["generate", f"{app_module}:registry", "--output", str(output_file)])

    assert result.exit_code == 0, f"Command failed: {result.output}"
    document = json.loads(output_file.read_text())
    assert document["info"]["title"] == "Sample API"
    assert document["paths"] == {}


def test_openapi_generate_bad_target(app_module: str) -> None:
    """Test an unusable target exits with an error."""
    result = runner.invoke(app, ["generate", f"{app_module}:not_a_registry"])

    assert result.exit_code == 1
    assert "✗ Error" in result.output


def test_openapi_generate_missing_reference(app_module: str, tmp_path: Path) -> None:
    """Test a missing declaration file exits with an error."""
    result = runner.invoke(
        app, ["generate", f"{app_module}:registry", "--reference", str(tmp_path / "missing.d.ts")]
    )

    assert result.exit_code == 1
    assert "not found" in result.output


def test_openapi_validate(tmp_path: Path) -> None:
    """Test validating an existing document."""
    document_file = tmp_path / "openapi.yaml"
    document_file.write_text(
        yaml.safe_dump(
            {
                "openapi": "3.1.0",
                "info": {"title": "API", "version": "1.0.0"},
                "paths": {"/ping": {"get": {"operationId": "getPing"}}},
            }
        )
    )

    result = runner.invoke(app, ["validate", str(document_file)])

    assert result.exit_code == 0, f"Command failed: {result.output}"
    assert "Valid OpenAPI 3.1.0 document" in result.output
    assert "Paths: 1" in result.output


def test_openapi_validate_invalid(tmp_path: Path) -> None:
    """Test an invalid document fails validation."""
    document_file = tmp_path / "openapi.json"
    document_file.write_text(json.dumps({"openapi": "3.1.0", "paths": {}}))

    result = runner.invoke(app, ["validate", str(document_file)])

    assert result.exit_code == 1
    assert "Invalid OpenAPI document" in result.output


def test_openapi_generate_stdout_with_config_option(app_module: str, tmp_path: Path) -> None:
    """Test piped output is plain JSON and --config selects the config file."""
    config_file = tmp_path / "other.yaml"
    config_file.write_text(yaml.safe_dump({"documentation": {"info": {"title": "Other API"}}}))

    result = runner.invoke(app, ["generate", f"{app_module}:registry", "--config", str(config_file)])

    assert result.exit_code == 0, f"Command failed: {result.output}"
    document = json.loads(result.output)
    assert document["info"]["title"] == "Other API"
    assert "/users/{id}" in document["paths"]
