"""Business rules for a form's structure.

Every check returns a list of human readable messages instead of raising, and
all checks run to completion so the caller can show every problem at once.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Sequence

from miniform.config import DEFAULT_FORM_TITLE, MAX_FIELDS_PER_SECTION, MAX_SECTIONS
from miniform.structure import FormSection, FormStructure, iter_fields


def _describe_section(section: FormSection, index: int) -> str:
    name = section.name.strip()
    return f'Section "{name}"' if name else f"Section {index}"


def _duplicates(values: Iterable[str]) -> list[str]:
    """Distinct non-empty values seen more than once, in first-seen order."""
    stripped = [value.strip() for value in values]
    counts = Counter(value for value in stripped if value)
    result: list[str] = []
    for value in stripped:
        if counts.get(value, 0) > 1 and value not in result:
            result.append(value)
    return result


def validate_form_constraints(sections: Sequence[FormSection]) -> list[str]:
    errors: list[str] = []

    if len(sections) > MAX_SECTIONS:
        errors.append(f"Form cannot have more than {MAX_SECTIONS} sections")

    for index, section in enumerate(sections, start=1):
        if len(section.fields) > MAX_FIELDS_PER_SECTION:
            errors.append(
                f"{_describe_section(section, index)} cannot have more than "
                f"{MAX_FIELDS_PER_SECTION} fields"
            )

    return errors


def validate_form_builder_constraints(form: FormStructure) -> list[str]:
    errors: list[str] = []

    title = form.title.strip()
    if not title or title == DEFAULT_FORM_TITLE:
        errors.append("Form title is required")

    sections = form.sections
    if not sections:
        errors.append("Form must have at least one section")
    if len(sections) > MAX_SECTIONS:
        errors.append(f"Form cannot have more than {MAX_SECTIONS} sections")

    duplicate_names = _duplicates(section.name for section in sections)
    reported_names: set[str] = set()

    for index, section in enumerate(sections, start=1):
        name = section.name.strip()
        described = _describe_section(section, index)
        if not name:
            errors.append(f"Section {index} name is required")
        elif name in duplicate_names and name not in reported_names:
            reported_names.add(name)
            errors.append(f'Section name "{name}" is used multiple times')

        if not section.fields:
            errors.append(f"{described} must have at least one field")
        if len(section.fields) > MAX_FIELDS_PER_SECTION:
            errors.append(
                f"{described} cannot have more than {MAX_FIELDS_PER_SECTION} fields"
            )

        duplicate_labels = _duplicates(item.label for item in section.fields)
        reported_labels: set[str] = set()
        for position, item in enumerate(section.fields, start=1):
            label = item.label.strip()
            if not label:
                errors.append(f"Field {position} in {described} needs a label")
            elif label in duplicate_labels and label not in reported_labels:
                reported_labels.add(label)
                errors.append(f'Field label "{label}" is used multiple times in {described}')

    return errors


def validate_element_ids(sections: Sequence[FormSection]) -> list[str]:
    """Section ids and field ids must each be unique across the form.

    Submission payloads are flat mappings keyed by field id.
    """
    errors: list[str] = []
    for section_id in _duplicates(section.id for section in sections):
        errors.append(f'Section id "{section_id}" is used multiple times')
    for field_id in _duplicates(item.id for item in iter_fields(sections)):
        errors.append(f'Field id "{field_id}" is used multiple times')
    return errors


def truncate_generated(candidate: Any) -> Any:
    """Cut generator output down to the structural maxima.

    Only generated drafts are truncated. Authored input over the limits is
    rejected by :func:`validate_form_constraints` instead. Values that are not
    shaped like a form are returned unchanged for the shape validator to
    reject.
    """
    if not isinstance(candidate, dict):
        return candidate
    sections = candidate.get("sections")
    if not isinstance(sections, list):
        return dict(candidate)

    truncated: list[Any] = []
    for section in sections[:MAX_SECTIONS]:
        if isinstance(section, dict) and isinstance(section.get("fields"), list):
            section = {**section, "fields": section["fields"][:MAX_FIELDS_PER_SECTION]}
        truncated.append(section)
    return {**candidate, "sections": truncated}
