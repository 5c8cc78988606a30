from pydantic import BaseModel
from typing import Any, Generic, List, Optional, TypeVar

from shared.utils.enums import UserRole
from shared.wrappers.empty_string_model_wrapper import EmptyStringModel

# Shared properties
T = TypeVar("T")


class UserToken(BaseModel):
    user_id: str
    role: UserRole
    name: Optional[str] = None
    exp: Optional[int] = None


class CommonQueryParams(EmptyStringModel):
    search: Optional[str] = None
    skip: Optional[int] = 0
    limit: Optional[int] = 10


class FieldError(BaseModel):
    field: str
    message: str


class JsonOutResult(EmptyStringModel, Generic[T]):
    data: Optional[T] = None
    status: str
    status_code: str
    message: str
    errors: Optional[List[FieldError]] = None


class MessageResponse(BaseModel):
    message: str
    data: Optional[Any] = None
