from __future__ import annotations

from typing import Any

import orjson
from fastapi import Request

from miniform.errors import ShapeIssue, ShapeValidationError


def admin_guard(request: Request) -> None:
    request.app.state.auth_provider.require_admin(request)


async def read_json(request: Request) -> Any:
    body = await request.body()
    try:
        return orjson.loads(body)
    except orjson.JSONDecodeError as exc:
        raise ShapeValidationError([ShapeIssue("$", "Request body must be valid JSON")]) from exc
