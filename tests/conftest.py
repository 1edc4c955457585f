"""Pytest configuration and shared fixtures"""

import logging
from collections.abc import Iterator
from typing import Any

import pytest

from routedoc.models import Registry, Route
from routedoc.schema import vendors


@pytest.fixture(autouse=True)
def reset_vendor_warnings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give every test a fresh set of already-reported vendors"""
    monkeypatch.setattr(vendors, "_warned", set())


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo any logging configuration done by the application callback"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def user_schema() -> dict[str, Any]:
    """Return a JSON Schema describing a user"""
    return {
        "type": "object",
        "description": "A registered user",
        "properties": {
            "id": {"type": "integer"},
            "name": {"type": "string"},
            "email": {"type": "string", "format": "email"},
        },
        "required": ["id", "name"],
    }


@pytest.fixture
def route_declaration() -> str:
    """Return route tree declaration text as emitted for a typed application"""
    return """{
    hello: {
        world: {
            get: {
                params: {};
                query: {};
                headers: {};
                body: unknown;
                response: {
                    200: {
                        readonly name: string;
                    };
                };
            };
        };
    };
} & {
    user: {
        ":id": {
            patch: {
                params: {
                    id: string;
                };
                query: {
                    notify?: boolean;
                };
                headers: {};
                body: {
                    name: string;
                    gender: "male" | "female";
                };
                response: {
                    200: {
                        id: number;
                        name: string;
                    };
                    404: string;
                };
            };
        };
    };
}"""


@pytest.fixture
def sample_registry(user_schema: dict[str, Any]) -> Registry:
    """Return a small registry with a component schema and three routes"""
    return Registry(
        routes=[
            Route(method="get", path="/users", detail={"summary": "List users", "tags": ["users"]}),
            Route(
                method="get",
                path="/users/:id",
                hooks={"params": {"type": "object", "properties": {"id": {"type": "integer"}}}, "response": "User"},
            ),
            Route(method="post", path="/users", hooks={"body": "User", "response": {201: "User"}}),
        ],
        definitions={"User": user_schema},
    )
