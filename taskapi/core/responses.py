from typing import Any

from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: str | None = None) -> dict:
    body: dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)
