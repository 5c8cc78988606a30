import logging

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError

from shared.core.config import settings
from shared.core.schemas import FieldError, JsonOutResult
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import Environment

logger = logging.getLogger(__name__)


def validation_field_errors(exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # drop the "body"/"query" prefix so the field path reads like the payload
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(FieldError(
            field=".".join(loc) or "request",
            message=err.get("msg", "Invalid value"),
        ))
    return errors


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if isinstance(exc.detail, dict) and "status_code" in exc.detail:
            wrapped = exc.detail
        else:
            wrapped = JsonOutResult(
                data=None,
                status="Failure",
                status_code=str(exc.status_code or AppStatusCode.OPERATION_FAILED),
                message=str(exc.detail)
            ).model_dump()
        return JSONResponse(content=wrapped, status_code=exc.status_code or 400, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = validation_field_errors(exc)
        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR,
            message="Validation failed: " + ", ".join(e.field for e in errors),
            errors=errors
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=422)

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        # a uniqueness index rejected a concurrent write that passed the read check
        logger.warning("Integrity violation on %s: %s", request.url.path, exc.orig)
        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
            message="The request conflicts with the current state of the resource"
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=409)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s", request.url.path)

        message = "Internal Server Error"
        if settings.ENVIRONMENT.lower() != Environment.PRODUCTION.value:
            message = f"Internal Server Error: {exc}"

        wrapped = JsonOutResult(
            data=None,
            status="Failure",
            status_code=AppStatusCode.OPERATION_FAILED,
            message=message
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=500)
