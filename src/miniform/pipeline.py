"""Validation gates run before anything is persisted.

Each gate runs shape validation first and only applies business rules to
input that is well shaped. Failures raise :class:`ShapeValidationError` or
:class:`ConstraintViolationError` carrying every problem found.
"""

from __future__ import annotations

from typing import Any, Sequence

from miniform.constraints import (
    truncate_generated,
    validate_element_ids,
    validate_form_builder_constraints,
    validate_form_constraints,
)
from miniform.errors import ConstraintViolationError
from miniform.shapes import parse_form_request, parse_submission_request
from miniform.structure import FormSection, FormStructure
from miniform.submission import clean_payload, unknown_payload_keys, validate_submission


def _check_structure(form: FormStructure) -> FormStructure:
    violations = validate_form_constraints(form.sections) + validate_element_ids(form.sections)
    if violations:
        raise ConstraintViolationError(violations)
    return form


def check_authored_form(raw: Any) -> FormStructure:
    return _check_structure(parse_form_request(raw).unwrap())


def check_generated_form(raw: Any) -> FormStructure:
    # Generated drafts are cut to the maxima instead of being rejected.
    return _check_structure(parse_form_request(truncate_generated(raw)).unwrap())


def check_submission(raw: Any, sections: Sequence[FormSection]) -> dict[str, Any]:
    payload = parse_submission_request(raw).unwrap()
    violations = [f"Unknown field: {key}" for key in unknown_payload_keys(payload, sections)]
    violations += validate_submission(sections, payload)
    if violations:
        raise ConstraintViolationError(violations)
    return clean_payload(payload, sections)


def review_draft(form: FormStructure) -> list[str]:
    """Everything that would stop a draft from being published.

    Unlike the gates above this never raises.
    """
    return validate_form_builder_constraints(form) + validate_element_ids(form.sections)
