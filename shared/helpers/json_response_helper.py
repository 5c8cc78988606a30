# shared/helpers/json_response_helper.py
from fastapi import HTTPException
from typing import List, Optional

from shared.utils.app_status_code import AppStatusCode
from shared.core.schemas import FieldError, JsonOutResult


def error_response(
        message: str,
        status_code: str = AppStatusCode.OPERATION_FAILED,
        http_status: int = 400,
        errors: Optional[List[FieldError]] = None,
        headers: Optional[dict] = None):
    raise HTTPException(
        status_code=http_status,
        detail=JsonOutResult(
            data=None,
            status="Failure",
            status_code=status_code,
            message=message,
            errors=errors
        ).model_dump(),
        headers=headers
    )


def reject_null_fields(data: dict, nullable=(), prefix: str = ""):
    """422 for every explicit ``null`` sent for a column that cannot hold one."""
    errors = [
        FieldError(field=f"{prefix}{field}", message="Field cannot be null")
        for field, value in data.items()
        if value is None and field not in nullable
    ]
    if errors:
        return error_response(
            message="Validation failed: " + ", ".join(e.field for e in errors),
            status_code=AppStatusCode.REQUIRED_VALIDATION_ERROR,
            http_status=422,
            errors=errors
        )
    return data
