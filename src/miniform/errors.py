from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ShapeIssue:
    path: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}


class MiniformError(Exception):
    pass


class ShapeValidationError(MiniformError):
    """Request body does not have the expected keys or types."""

    def __init__(self, issues: list[ShapeIssue]) -> None:
        super().__init__("; ".join(f"{issue.path}: {issue.message}" for issue in issues))
        self.issues = list(issues)


class ConstraintViolationError(MiniformError):
    """Well-shaped input that breaks a business rule."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages))
        self.messages = list(messages)


class NotFoundError(MiniformError):
    def __init__(self, message: str = "Form not found") -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(MiniformError):
    pass


class GenerationError(MiniformError):
    pass


class EditRejected(MiniformError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
