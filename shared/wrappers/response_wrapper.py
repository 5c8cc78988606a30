from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import JSONResponse
from fastapi import Request
from shared.core.schemas import JsonOutResult
from typing import Callable
import json

ENVELOPE_KEYS = {"status", "status_code", "message"}


def _passthrough_headers(response):
    return {k: v for k, v in response.headers.items() if k.lower() != "content-length"}


class JsonResponseMiddleware(BaseHTTPMiddleware):
    """Wraps every JSON body in the ``JsonOutResult`` envelope."""

    async def dispatch(self, request: Request, call_next: Callable):
        # Skip docs/openapi endpoints
        if request.url.path.startswith(("/openapi", "/docs", "/redoc")):
            return await call_next(request)

        response = await call_next(request)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            return response

        # Read the full body
        body_bytes = b""
        async for chunk in response.body_iterator:
            body_bytes += chunk

        try:
            data = json.loads(body_bytes.decode("utf-8")) if body_bytes else None
        except ValueError:
            data = None

        # Already wrapped by a handler or by error_response
        if isinstance(data, dict) and ENVELOPE_KEYS.issubset(data.keys()):
            return JSONResponse(
                content=data,
                status_code=response.status_code,
                headers=_passthrough_headers(response),
            )

        if not (200 <= response.status_code < 400):
            message = "An unexpected error occurred"
            if isinstance(data, dict):
                message = str(data.get("detail") or data.get("message") or message)
            elif isinstance(data, str):
                message = data

            wrapped_error = JsonOutResult(
                data=None,
                status="Failure",
                status_code=str(response.status_code),
                message=message,
            ).model_dump()
            return JSONResponse(
                content=wrapped_error,
                status_code=response.status_code,
                headers=_passthrough_headers(response),
            )

        message = "Data retrieved successfully"
        if isinstance(data, dict) and set(data.keys()) == {"message", "data"}:
            message, data = data["message"], data["data"]

        wrapped = JsonOutResult(
            data=data,
            status="Success",
            status_code=str(response.status_code),
            message=message
        ).model_dump()

        return JSONResponse(
            content=wrapped,
            status_code=response.status_code,
            headers=_passthrough_headers(response),
        )
