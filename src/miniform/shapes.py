"""Shape validation of inbound request bodies.

These checks only look at keys, primitive types, the field type enumeration
and string lengths. Business rules (section and field counts, duplicate
names) live in :mod:`miniform.constraints` and only run on input that has
passed here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from jsonschema import Draft7Validator

from miniform.adapter import canonical_wire_form, to_authoring
from miniform.builder import EDIT_OPS, Edit, edit_from_wire
from miniform.config import (
    FIELD_TYPES,
    MAX_FIELD_LABEL_LENGTH,
    MAX_FORM_TITLE_LENGTH,
    MAX_SECTION_NAME_LENGTH,
)
from miniform.errors import ShapeIssue, ShapeValidationError
from miniform.structure import FormStructure

T = TypeVar("T")

FIELD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "label": {"type": "string", "minLength": 1, "maxLength": MAX_FIELD_LABEL_LENGTH},
        "type": {"enum": list(FIELD_TYPES)},
        "required": {"type": "boolean"},
        "description": {"type": ["string", "null"]},
        "placeholder": {"type": ["string", "null"]},
    },
    "required": ["id", "label", "type", "required"],
}

SECTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "name": {"type": "string", "minLength": 1, "maxLength": MAX_SECTION_NAME_LENGTH},
        "fields": {"type": "array", "minItems": 1, "items": FIELD_SCHEMA},
    },
    "required": ["id", "name", "fields"],
}

# Upper bounds on section and field counts are checked by the constraint rules.
FORM_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "minLength": 1, "maxLength": MAX_FORM_TITLE_LENGTH},
        "sections": {"type": "array", "minItems": 1, "items": SECTION_SCHEMA},
    },
    "required": ["title", "sections"],
}

SUBMISSION_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "payload": {
            "type": "object",
            "additionalProperties": {"type": ["string", "number"]},
        }
    },
    "required": ["payload"],
}

GENERATE_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "description": {"type": "string", "minLength": 1, "pattern": r"\S"},
    },
    "required": ["description"],
}

LOGIN_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "username": {"type": "string"},
        "password": {"type": "string"},
    },
    "required": ["username", "password"],
}

_ID_SCHEMA: dict[str, Any] = {"type": "string", "minLength": 1}

# Required keys for each edit op, beyond "op" itself.
EDIT_OP_KEYS: dict[str, list[str]] = {
    "setTitle": ["title"],
    "addSection": [],
    "removeSection": ["sectionId"],
    "renameSection": ["sectionId", "name"],
    "addField": ["sectionId"],
    "removeField": ["sectionId", "fieldId"],
    "updateField": ["sectionId", "fieldId", "changes"],
}

EDIT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "op": {"enum": list(EDIT_OPS)},
        "title": {"type": "string", "maxLength": MAX_FORM_TITLE_LENGTH},
        "name": {"type": "string", "maxLength": MAX_SECTION_NAME_LENGTH},
        "sectionId": _ID_SCHEMA,
        "fieldId": _ID_SCHEMA,
        "changes": {
            "type": "object",
            "properties": {
                "label": {"type": "string", "maxLength": MAX_FIELD_LABEL_LENGTH},
                "type": {"type": "string"},
                "required": {"type": "boolean"},
                "description": {"type": ["string", "null"]},
                "placeholder": {"type": ["string", "null"]},
            },
        },
    },
    "required": ["op"],
    "allOf": [
        {
            "if": {"properties": {"op": {"const": op}}, "required": ["op"]},
            "then": {"required": keys},
        }
        for op, keys in EDIT_OP_KEYS.items()
        if keys
    ],
}

DRAFT_EDIT_REQUEST_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "form": {"type": "object"},
        "edit": EDIT_SCHEMA,
    },
    "required": ["form", "edit"],
}

_FORM_VALIDATOR = Draft7Validator(FORM_REQUEST_SCHEMA)
_LOGIN_VALIDATOR = Draft7Validator(LOGIN_REQUEST_SCHEMA)
_SUBMISSION_VALIDATOR = Draft7Validator(SUBMISSION_REQUEST_SCHEMA)
_GENERATE_VALIDATOR = Draft7Validator(GENERATE_REQUEST_SCHEMA)
_DRAFT_EDIT_VALIDATOR = Draft7Validator(DRAFT_EDIT_REQUEST_SCHEMA)


@dataclass(frozen=True)
class Parsed(Generic[T]):
    value: T
    ok = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class ShapeError:
    issues: list[ShapeIssue]
    ok = False

    def unwrap(self) -> Any:
        raise ShapeValidationError(self.issues)


ShapeResult = Union[Parsed[T], ShapeError]


def format_path(path: Any) -> str:
    parts = [str(part) for part in path]
    return ".".join(parts) if parts else "$"


def collect_issues(validator: Draft7Validator, instance: Any) -> list[ShapeIssue]:
    errors = sorted(
        validator.iter_errors(instance),
        key=lambda err: [str(part) for part in err.absolute_path],
    )
    return [ShapeIssue(format_path(err.absolute_path), err.message) for err in errors]


def _nest_issue(prefix: str, issue: ShapeIssue) -> ShapeIssue:
    path = prefix if issue.path == "$" else f"{prefix}.{issue.path}"
    return ShapeIssue(path, issue.message)


def parse_form_request(raw: Any) -> ShapeResult[FormStructure]:
    """Validate a create/update body (or generator output) into a structure."""
    candidate = canonical_wire_form(raw)
    issues = collect_issues(_FORM_VALIDATOR, candidate)
    if issues:
        return ShapeError(issues)
    return Parsed(to_authoring(candidate))


def parse_submission_request(raw: Any) -> ShapeResult[dict[str, Any]]:
    """Validate a submission body.

    Accepts ``{"payload": {...}}`` and, like the form posting endpoints, a bare
    mapping of field id to value.
    """
    candidate = raw
    if isinstance(raw, dict) and not isinstance(raw.get("payload"), dict):
        candidate = {"payload": raw}
    issues = collect_issues(_SUBMISSION_VALIDATOR, candidate)
    if issues:
        return ShapeError(issues)
    return Parsed(dict(candidate["payload"]))


def parse_generate_request(raw: Any) -> ShapeResult[str]:
    issues = collect_issues(_GENERATE_VALIDATOR, raw)
    if issues:
        return ShapeError(issues)
    return Parsed(raw["description"].strip())


def parse_login_request(raw: Any) -> ShapeResult[tuple[str, str]]:
    issues = collect_issues(_LOGIN_VALIDATOR, raw)
    if issues:
        return ShapeError(issues)
    return Parsed((raw["username"], raw["password"]))


def parse_draft_edit_request(raw: Any) -> ShapeResult[tuple[FormStructure, Edit]]:
    """Validate ``{"form": <draft>, "edit": {"op": ...}}``.

    Issues found in the draft are reported under the ``form.`` path.
    """
    issues = collect_issues(_DRAFT_EDIT_VALIDATOR, raw)
    if issues:
        return ShapeError(issues)
    parsed = parse_form_request(raw["form"])
    if not parsed.ok:
        return ShapeError([_nest_issue("form", issue) for issue in parsed.issues])
    return Parsed((parsed.value, edit_from_wire(raw["edit"])))
