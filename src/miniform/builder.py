"""Edit transitions for a draft form.

Each edit is applied by :func:`apply_edit`, which returns a new
:class:`FormStructure` and leaves its input untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Union

from miniform.config import DEFAULT_FORM_TITLE, FIELD_TYPES, MAX_FIELDS_PER_SECTION, MAX_SECTIONS
from miniform.errors import EditRejected
from miniform.structure import FormField, FormSection, FormStructure
from miniform.utils import new_element_id

EDITABLE_FIELD_ATTRS = {"label", "type", "required", "description", "placeholder"}


@dataclass(frozen=True)
class SetTitle:
    title: str


@dataclass(frozen=True)
class AddSection:
    section_id: str | None = None


@dataclass(frozen=True)
class RemoveSection:
    section_id: str


@dataclass(frozen=True)
class RenameSection:
    section_id: str
    name: str


@dataclass(frozen=True)
class AddField:
    section_id: str
    field_id: str | None = None


@dataclass(frozen=True)
class RemoveField:
    section_id: str
    field_id: str


@dataclass(frozen=True)
class UpdateField:
    section_id: str
    field_id: str
    changes: dict[str, Any] = field(default_factory=dict)


Edit = Union[SetTitle, AddSection, RemoveSection, RenameSection, AddField, RemoveField, UpdateField]


def new_field(position: int, field_id: str | None = None) -> FormField:
    return FormField(id=field_id or new_element_id(), label=f"Field {position}")


def new_section(position: int, section_id: str | None = None) -> FormSection:
    return FormSection(
        id=section_id or new_element_id(),
        name=f"Section {position}",
        fields=(new_field(1),),
    )


def default_form() -> FormStructure:
    return FormStructure(title=DEFAULT_FORM_TITLE, sections=(new_section(1),))


def _find_section(form: FormStructure, section_id: str) -> FormSection:
    for section in form.sections:
        if section.id == section_id:
            return section
    raise EditRejected(f"Section not found: {section_id}")


def _replace_section(form: FormStructure, updated: FormSection) -> FormStructure:
    sections = tuple(updated if s.id == updated.id else s for s in form.sections)
    return replace(form, sections=sections)


def _update_field(section: FormSection, edit: UpdateField) -> FormSection:
    unknown = set(edit.changes) - EDITABLE_FIELD_ATTRS
    if unknown:
        raise EditRejected(f"Unknown field attribute: {', '.join(sorted(unknown))}")
    if "type" in edit.changes and edit.changes["type"] not in FIELD_TYPES:
        raise EditRejected(f"Unknown field type: {edit.changes['type']}")
    found = False
    fields: list[FormField] = []
    for item in section.fields:
        if item.id == edit.field_id:
            found = True
            item = replace(item, **edit.changes)
        fields.append(item)
    if not found:
        raise EditRejected(f"Field not found: {edit.field_id}")
    return replace(section, fields=tuple(fields))


def apply_edit(form: FormStructure, edit: Edit) -> FormStructure:
    if isinstance(edit, SetTitle):
        return replace(form, title=edit.title)

    if isinstance(edit, AddSection):
        if len(form.sections) >= MAX_SECTIONS:
            raise EditRejected(f"Maximum of {MAX_SECTIONS} sections allowed")
        section = new_section(len(form.sections) + 1, edit.section_id)
        return replace(form, sections=form.sections + (section,))

    if isinstance(edit, RemoveSection):
        _find_section(form, edit.section_id)
        if len(form.sections) <= 1:
            raise EditRejected("At least one section is required")
        sections = tuple(s for s in form.sections if s.id != edit.section_id)
        return replace(form, sections=sections)

    if isinstance(edit, RenameSection):
        section = _find_section(form, edit.section_id)
        return _replace_section(form, replace(section, name=edit.name))

    if isinstance(edit, AddField):
        section = _find_section(form, edit.section_id)
        if len(section.fields) >= MAX_FIELDS_PER_SECTION:
            raise EditRejected(f"Maximum of {MAX_FIELDS_PER_SECTION} fields allowed")
        item = new_field(len(section.fields) + 1, edit.field_id)
        return _replace_section(form, replace(section, fields=section.fields + (item,)))

    if isinstance(edit, RemoveField):
        section = _find_section(form, edit.section_id)
        if not any(item.id == edit.field_id for item in section.fields):
            raise EditRejected(f"Field not found: {edit.field_id}")
        if len(section.fields) <= 1:
            raise EditRejected("At least one field is required")
        fields = tuple(item for item in section.fields if item.id != edit.field_id)
        return _replace_section(form, replace(section, fields=fields))

    if isinstance(edit, UpdateField):
        section = _find_section(form, edit.section_id)
        return _replace_section(form, _update_field(section, edit))

    raise EditRejected(f"Unsupported edit: {type(edit).__name__}")


EDIT_OPS = (
    "setTitle",
    "addSection",
    "removeSection",
    "renameSection",
    "addField",
    "removeField",
    "updateField",
)


def edit_from_wire(raw: dict[str, Any]) -> Edit:
    """Build an edit from its request representation.

    ``raw`` must already have passed the edit request schema.
    """
    op = raw["op"]
    if op == "setTitle":
        return SetTitle(title=raw["title"])
    if op == "addSection":
        return AddSection(section_id=raw.get("sectionId"))
    if op == "removeSection":
        return RemoveSection(section_id=raw["sectionId"])
    if op == "renameSection":
        return RenameSection(section_id=raw["sectionId"], name=raw["name"])
    if op == "addField":
        return AddField(section_id=raw["sectionId"], field_id=raw.get("fieldId"))
    if op == "removeField":
        return RemoveField(section_id=raw["sectionId"], field_id=raw["fieldId"])
    if op == "updateField":
        return UpdateField(
            section_id=raw["sectionId"],
            field_id=raw["fieldId"],
            changes=dict(raw["changes"]),
        )
    raise EditRejected(f"Unsupported edit: {op}")
