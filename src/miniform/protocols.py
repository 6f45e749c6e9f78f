from __future__ import annotations

from typing import Any, Protocol

# Keys a form update may replace. id, public_id and created_at never change.
UPDATABLE_FORM_KEYS = {"title", "sections", "updated_at"}


class FormRepository(Protocol):
    def list_forms(self) -> list[dict[str, Any]]: ...

    def find_form(self, form_id: str) -> dict[str, Any] | None: ...

    def find_form_by_public_id(self, public_id: str) -> dict[str, Any] | None: ...

    def create_form(self, form: dict[str, Any]) -> None: ...

    def update_form(self, form_id: str, updates: dict[str, Any]) -> dict[str, Any]: ...


class SubmissionRepository(Protocol):
    def list_submissions(self, form_id: str) -> list[dict[str, Any]]: ...

    def create_submission(self, submission: dict[str, Any]) -> None: ...

    def count_submissions(self, form_id: str) -> int: ...


class Storage(Protocol):
    forms: FormRepository
    submissions: SubmissionRepository
