from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from miniform.adapter import sections_to_authoring
from miniform.deps import read_json
from miniform.errors import NotFoundError
from miniform.pipeline import check_submission
from miniform.utils import new_ulid, now_utc, to_iso

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_public_form(storage: Any, public_id: str) -> dict[str, Any]:
    form = storage.forms.find_form_by_public_id(public_id)
    if not form:
        raise NotFoundError("Form not found")
    return form


@router.get("/api/public/forms/{public_id}", tags=["public"])
async def public_form(request: Request, public_id: str) -> JSONResponse:
    storage = request.app.state.storage
    form = _get_public_form(storage, public_id)
    return JSONResponse(
        {
            "publicId": form["public_id"],
            "title": form["title"],
            "sections": form["sections"],
        }
    )


@router.post("/api/public/forms/{public_id}/submissions", tags=["public"])
async def submit_form(request: Request, public_id: str) -> JSONResponse:
    storage = request.app.state.storage
    form = _get_public_form(storage, public_id)
    sections = sections_to_authoring(form["sections"])
    payload = check_submission(await read_json(request), sections)

    submission_id = new_ulid()
    created_at = now_utc()
    storage.submissions.create_submission(
        {
            "id": submission_id,
            "form_id": form["id"],
            "payload": payload,
            "created_at": created_at,
        }
    )
    logger.info("Stored submission %s for form %s", submission_id, form["id"])
    return JSONResponse(
        {
            "id": submission_id,
            "message": "Form submitted successfully",
            "submittedAt": to_iso(created_at),
        },
        status_code=201,
    )
