from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from miniform.adapter import form_output, submission_output, to_backend
from miniform.builder import apply_edit, default_form
from miniform.deps import admin_guard, read_json
from miniform.errors import NotFoundError
from miniform.pipeline import check_authored_form, check_generated_form, review_draft
from miniform.shapes import parse_draft_edit_request, parse_form_request, parse_generate_request
from miniform.structure import FormStructure
from miniform.utils import new_public_id, new_ulid, now_utc

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_form_or_404(storage: Any, form_id: str) -> dict[str, Any]:
    form = storage.forms.find_form(form_id)
    if not form:
        raise NotFoundError("Form not found")
    return form


def _draft_output(draft: FormStructure) -> dict[str, Any]:
    errors = review_draft(draft)
    return {"form": to_backend(draft), "valid": not errors, "errors": errors}


@router.get("/api/forms", tags=["api/forms"])
async def api_list_forms(request: Request, _: Any = Depends(admin_guard)) -> JSONResponse:
    storage = request.app.state.storage
    prefix = request.app.state.settings.public_route_prefix
    forms = [
        form_output(form, prefix, storage.submissions.count_submissions(form["id"]))
        for form in storage.forms.list_forms()
    ]
    return JSONResponse({"forms": forms})


@router.post("/api/forms", tags=["api/forms"])
async def api_create_form(request: Request, _: Any = Depends(admin_guard)) -> JSONResponse:
    storage = request.app.state.storage
    prefix = request.app.state.settings.public_route_prefix
    structure = check_authored_form(await read_json(request))
    wire = to_backend(structure)

    form_id = new_ulid()
    now = now_utc()
    storage.forms.create_form(
        {
            "id": form_id,
            "public_id": new_public_id(),
            "title": wire["title"],
            "sections": wire["sections"],
            "created_at": now,
            "updated_at": now,
        }
    )
    logger.info("Created form %s with %d sections", form_id, len(wire["sections"]))
    form = _get_form_or_404(storage, form_id)
    return JSONResponse(form_output(form, prefix, 0), status_code=201)


@router.get("/api/forms/draft", tags=["api/drafts"])
async def api_new_draft(_: Any = Depends(admin_guard)) -> JSONResponse:
    return JSONResponse(_draft_output(default_form()))


@router.post("/api/forms/draft/check", tags=["api/drafts"])
async def api_check_draft(request: Request, _: Any = Depends(admin_guard)) -> JSONResponse:
    draft = parse_form_request(await read_json(request)).unwrap()
    return JSONResponse(_draft_output(draft))


@router.post("/api/forms/draft/edit", tags=["api/drafts"])
async def api_edit_draft(request: Request, _: Any = Depends(admin_guard)) -> JSONResponse:
    draft, edit = parse_draft_edit_request(await read_json(request)).unwrap()
    edited = apply_edit(draft, edit)
    logger.debug("Applied %s to draft %r", type(edit).__name__, edited.title)
    return JSONResponse(_draft_output(edited))


@router.get("/api/forms/{form_id}", tags=["api/forms"])
async def api_get_form(request: Request, form_id: str, _: Any = Depends(admin_guard)) -> JSONResponse:
    storage = request.app.state.storage
    prefix = request.app.state.settings.public_route_prefix
    form = _get_form_or_404(storage, form_id)
    count = storage.submissions.count_submissions(form_id)
    return JSONResponse(form_output(form, prefix, count))


@router.put("/api/forms/{form_id}", tags=["api/forms"])
async def api_update_form(request: Request, form_id: str, _: Any = Depends(admin_guard)) -> JSONResponse:
    storage = request.app.state.storage
    prefix = request.app.state.settings.public_route_prefix
    _get_form_or_404(storage, form_id)
    structure = check_authored_form(await read_json(request))
    wire = to_backend(structure)

    try:
        updated = storage.forms.update_form(
            form_id,
            {"title": wire["title"], "sections": wire["sections"], "updated_at": now_utc()},
        )
    except KeyError as exc:
        raise NotFoundError("Form not found") from exc
    logger.info("Updated form %s", form_id)
    count = storage.submissions.count_submissions(form_id)
    return JSONResponse(form_output(updated, prefix, count))


@router.get("/api/forms/{form_id}/submissions", tags=["api/submissions"])
async def api_list_submissions(
    request: Request, form_id: str, _: Any = Depends(admin_guard)
) -> JSONResponse:
    storage = request.app.state.storage
    _get_form_or_404(storage, form_id)
    submissions = storage.submissions.list_submissions(form_id)
    return JSONResponse(
        {
            "formId": form_id,
            "count": len(submissions),
            "submissions": [submission_output(item) for item in submissions],
        }
    )


@router.post("/api/ai/generate-form", tags=["api/forms"])
async def api_generate_form(request: Request, _: Any = Depends(admin_guard)) -> JSONResponse:
    generator = request.app.state.generator
    description = parse_generate_request(await read_json(request)).unwrap()
    candidate = await generator.generate(description)
    structure = check_generated_form(candidate)
    logger.info("Generated draft %r with %d sections", structure.title, len(structure.sections))
    return JSONResponse(to_backend(structure))
