"""Checks a visitor's payload against a form's live field definitions."""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from miniform.structure import FormSection, iter_fields


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def is_valid_number(value: Any) -> bool:
    """True for finite numbers and for strings that spell one.

    Strings are read as decimals, so integers of any length are accepted.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not text or "_" in text:
        return False
    try:
        return Decimal(text).is_finite()
    except InvalidOperation:
        return False


def validate_required_fields(
    payload: Mapping[str, Any], sections: Sequence[FormSection]
) -> list[str]:
    errors: list[str] = []
    for item in iter_fields(sections):
        if item.required and is_blank(payload.get(item.id)):
            errors.append(f"{item.label} is required")
    return errors


def validate_field_types(
    payload: Mapping[str, Any], sections: Sequence[FormSection]
) -> list[str]:
    errors: list[str] = []
    for item in iter_fields(sections):
        value = payload.get(item.id)
        if is_blank(value):
            continue
        if item.type == "number" and not is_valid_number(value):
            errors.append(f"{item.label} must be a valid number")
    return errors


def validate_submission(
    sections: Sequence[FormSection], payload: Mapping[str, Any]
) -> list[str]:
    return validate_required_fields(payload, sections) + validate_field_types(payload, sections)


def unknown_payload_keys(
    payload: Mapping[str, Any], sections: Sequence[FormSection]
) -> list[str]:
    known = {item.id for item in iter_fields(sections)}
    return [key for key in payload if key not in known]


def clean_payload(
    payload: Mapping[str, Any], sections: Sequence[FormSection]
) -> dict[str, Any]:
    """Payload as stored: blank answers dropped, other values kept as sent."""
    return {
        item.id: payload[item.id]
        for item in iter_fields(sections)
        if not is_blank(payload.get(item.id))
    }
