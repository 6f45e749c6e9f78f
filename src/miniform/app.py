from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from miniform.auth import get_auth_provider
from miniform.config import Settings
from miniform.errors import (
    ConstraintViolationError,
    EditRejected,
    GenerationError,
    NotFoundError,
    ShapeValidationError,
    Unauthorized,
)
from miniform.generator import FormGenerator, get_generator
from miniform.protocols import Storage
from miniform.routes.admin import router as admin_router
from miniform.routes.api import router as api_router
from miniform.routes.public import router as public_router
from miniform.storage import init_storage

logger = logging.getLogger(__name__)


async def _shape_error(request: Request, exc: ShapeValidationError) -> JSONResponse:
    logger.warning("Rejected malformed request to %s: %s", request.url.path, exc)
    return JSONResponse(
        {"error": "Invalid request data", "details": [issue.as_dict() for issue in exc.issues]},
        status_code=400,
    )


async def _constraint_error(request: Request, exc: ConstraintViolationError) -> JSONResponse:
    logger.warning("Rejected request to %s: %s", request.url.path, exc)
    return JSONResponse({"error": "Validation failed", "details": exc.messages}, status_code=422)


async def _edit_rejected(request: Request, exc: EditRejected) -> JSONResponse:
    return JSONResponse({"error": "Edit rejected", "details": [exc.message]}, status_code=422)


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse({"error": exc.message}, status_code=404)


async def _unauthorized(request: Request, exc: Unauthorized) -> JSONResponse:
    return JSONResponse(
        {"error": "Unauthorized"},
        status_code=401,
        headers={"WWW-Authenticate": 'Basic realm="Admin"'},
    )


async def _generation_error(request: Request, exc: GenerationError) -> JSONResponse:
    logger.error("AI generation failed: %s", exc)
    return JSONResponse({"error": "Failed to generate form with AI"}, status_code=502)


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
    generator: FormGenerator | None = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(
        openapi_tags=[
            {"name": "admin", "description": "Admin session"},
            {"name": "public", "description": "Public forms"},
            {"name": "api/forms", "description": "REST API: forms"},
            {"name": "api/submissions", "description": "REST API: submissions"},
            {"name": "system", "description": "System"},
        ]
    )

    app.state.settings = settings
    app.state.storage = storage or init_storage(settings)
    app.state.auth_provider = get_auth_provider(settings)
    app.state.generator = generator or get_generator(settings)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie="miniform_session",
        max_age=settings.session_max_age,
        same_site="lax",
    )

    app.add_exception_handler(ShapeValidationError, _shape_error)
    app.add_exception_handler(ConstraintViolationError, _constraint_error)
    app.add_exception_handler(EditRejected, _edit_rejected)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(Unauthorized, _unauthorized)
    app.add_exception_handler(GenerationError, _generation_error)

    app.include_router(admin_router)
    app.include_router(public_router)
    app.include_router(api_router)

    @app.get("/healthz", tags=["system"])
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
