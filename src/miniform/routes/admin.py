from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from miniform.deps import read_json
from miniform.errors import Unauthorized
from miniform.shapes import parse_login_request

router = APIRouter()


@router.post("/admin/login", tags=["admin"])
async def login(request: Request) -> JSONResponse:
    auth = request.app.state.auth_provider
    username, password = parse_login_request(await read_json(request)).unwrap()
    if not auth.login(request, username, password):
        raise Unauthorized()
    return JSONResponse({"authenticated": True})


@router.post("/admin/logout", tags=["admin"])
async def logout(request: Request) -> JSONResponse:
    request.app.state.auth_provider.logout(request)
    return JSONResponse({"authenticated": False})


@router.get("/admin/session", tags=["admin"])
async def session_status(request: Request) -> JSONResponse:
    auth = request.app.state.auth_provider
    return JSONResponse({"authenticated": auth.is_authorized(request)})
