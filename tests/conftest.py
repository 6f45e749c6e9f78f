from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from miniform.app import create_app
from miniform.config import Settings
from miniform.errors import GenerationError
from miniform.structure import FormField, FormSection, FormStructure

ADMIN = ("admin", "s3cret")


class FakeGenerator:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.descriptions: list[str] = []

    async def generate(self, description: str) -> Any:
        self.descriptions.append(description)
        if self.error:
            raise self.error
        return self.result


def make_field(field_id: str, label: str, field_type: str = "text", required: bool = False) -> dict[str, Any]:
    return {"id": field_id, "label": label, "type": field_type, "required": required}


def make_section(section_id: str, name: str, fields: list[dict[str, Any]]) -> dict[str, Any]:
    return {"id": section_id, "name": name, "fields": fields}


def contact_form_payload() -> dict[str, Any]:
    return {
        "title": "Contact us",
        "sections": [
            make_section(
                "s1",
                "About you",
                [
                    make_field("f1", "Name", required=True),
                    make_field("f2", "Age", "number"),
                ],
            ),
            make_section("s2", "Message", [make_field("f3", "Body", "textarea")]),
        ],
    }


def section_type(section_id: str, name: str, count: int) -> FormSection:
    return FormSection(
        id=section_id,
        name=name,
        fields=tuple(FormField(id=f"{section_id}f{i}", label=f"Field {i}") for i in range(1, count + 1)),
    )


@pytest.fixture
def sample_structure() -> FormStructure:
    return FormStructure(
        title="Contact us",
        sections=(
            FormSection(
                id="s1",
                name="About you",
                fields=(
                    FormField(id="f1", label="Name", type="text", required=True, placeholder="Jane"),
                    FormField(id="f2", label="Age", type="number", description="In years"),
                ),
            ),
            FormSection(id="s2", name="Message", fields=(FormField(id="f3", label="Body", type="textarea"),)),
        ),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    settings = Settings()
    settings.storage_backend = "sqlite"
    settings.sqlite_path = tmp_path / "app.db"
    settings.json_path = tmp_path / "store.json"
    settings.auth_mode = "static"
    settings.admin_username, settings.admin_password = ADMIN
    settings.session_secret = "test-secret"
    settings.public_route_prefix = "/public"
    return settings


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(error=GenerationError("not configured"))


@pytest.fixture
def client(settings, generator) -> TestClient:
    app = create_app(settings, generator=generator)
    with TestClient(app) as test_client:
        yield test_client
