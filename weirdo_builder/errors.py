from __future__ import annotations

from typing import Any

from fastapi import HTTPException


def api_error(
    status_code: int, error: str, code: str, context: Any | None = None
) -> HTTPException:
    detail: dict[str, Any] = {"error": error, "code": code}
    if context is not None:
        detail["context"] = context
    return HTTPException(status_code=status_code, detail=detail)


def not_found(what: str = "Warband") -> HTTPException:
    return api_error(404, f"{what} not found", "NOT_FOUND")
