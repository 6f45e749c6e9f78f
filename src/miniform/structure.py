"""Value types describing a form's authored structure.

A form is an embedded tree: the form owns its sections and each section owns
its fields. The types are frozen so that edits always produce a new structure
(see :mod:`miniform.builder`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal, Sequence

FieldType = Literal["text", "number", "email", "phone", "textarea"]


@dataclass(frozen=True)
class FormField:
    id: str
    label: str
    type: FieldType = "text"
    required: bool = False
    description: str | None = None
    placeholder: str | None = None


@dataclass(frozen=True)
class FormSection:
    id: str
    name: str
    fields: tuple[FormField, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FormStructure:
    title: str
    sections: tuple[FormSection, ...] = field(default_factory=tuple)

    def iter_fields(self) -> Iterator[FormField]:
        return iter_fields(self.sections)


def iter_fields(sections: Sequence[FormSection]) -> Iterator[FormField]:
    for section in sections:
        yield from section.fields
