"""Conversion between the authoring structure and its wire/stored form.

Sections are named ``name`` everywhere inside the service. An older wire
variant called the same value ``title``; it is accepted on input and mapped
to ``name`` by :func:`canonical_wire_form`, and ``name`` is always written.
"""

from __future__ import annotations

from typing import Any

from miniform.structure import FormField, FormSection, FormStructure
from miniform.utils import to_iso

OPTIONAL_FIELD_KEYS = ("description", "placeholder")


def canonical_wire_form(raw: Any) -> Any:
    if not isinstance(raw, dict) or not isinstance(raw.get("sections"), list):
        return raw
    sections: list[Any] = []
    for section in raw["sections"]:
        if isinstance(section, dict) and "name" not in section and "title" in section:
            section = {
                ("name" if key == "title" else key): value for key, value in section.items()
            }
        sections.append(section)
    return {**raw, "sections": sections}


def field_to_backend(item: FormField) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": item.id,
        "label": item.label,
        "type": item.type,
        "required": item.required,
    }
    for key in OPTIONAL_FIELD_KEYS:
        value = getattr(item, key)
        if value is not None:
            data[key] = value
    return data


def to_backend(form: FormStructure) -> dict[str, Any]:
    return {
        "title": form.title,
        "sections": [
            {
                "id": section.id,
                "name": section.name,
                "fields": [field_to_backend(item) for item in section.fields],
            }
            for section in form.sections
        ],
    }


def field_to_authoring(raw: dict[str, Any]) -> FormField:
    return FormField(
        id=raw["id"],
        label=raw["label"],
        type=raw["type"],
        required=bool(raw.get("required", False)),
        description=raw.get("description"),
        placeholder=raw.get("placeholder"),
    )


def sections_to_authoring(raw_sections: list[dict[str, Any]]) -> tuple[FormSection, ...]:
    canonical = canonical_wire_form({"sections": raw_sections})["sections"]
    return tuple(
        FormSection(
            id=section["id"],
            name=section["name"],
            fields=tuple(field_to_authoring(item) for item in section.get("fields", [])),
        )
        for section in canonical
    )


def to_authoring(wire: dict[str, Any]) -> FormStructure:
    return FormStructure(
        title=wire["title"],
        sections=sections_to_authoring(wire.get("sections", [])),
    )


def public_url(prefix: str, public_id: str) -> str:
    return f"{prefix.rstrip('/')}/{public_id}"


def form_output(
    form: dict[str, Any],
    public_prefix: str,
    submission_count: int | None = None,
) -> dict[str, Any]:
    output: dict[str, Any] = {
        "id": form["id"],
        "title": form["title"],
        "sections": form.get("sections", []),
        "publicId": form["public_id"],
        "publicUrl": public_url(public_prefix, form["public_id"]),
        "createdAt": to_iso(form["created_at"]),
        "updatedAt": to_iso(form["updated_at"]),
    }
    if submission_count is not None:
        output["submissionCount"] = submission_count
    return output


def submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "formId": submission["form_id"],
        "payload": submission.get("payload", {}),
        "createdAt": to_iso(submission["created_at"]),
    }
