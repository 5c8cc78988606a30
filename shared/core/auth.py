import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests
from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from shared.core.config import settings
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import IdentityMode

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


def create_access_token(data: dict, expires_minutes: Optional[int] = None):
    payload = data.copy()
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload["exp"] = expires

    if "role" in payload and hasattr(payload["role"], "value"):
        payload["role"] = payload["role"].value

    return jwt.encode(payload, settings.JWT_SECRET,
                      algorithm=settings.JWT_ALGORITHM)


def unauthenticated(message: str = "Invalid or expired token", status_code: str = AppStatusCode.AUTHENTICATION_TOKEN_INVALID):
    return error_response(
        message=message,
        status_code=status_code,
        http_status=status.HTTP_401_UNAUTHORIZED,
        headers=BEARER_HEADERS
    )


def verify_token(token: str) -> UserToken:
    """Verify and decode a locally signed JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
        return UserToken(**payload)
    except ExpiredSignatureError:
        return unauthenticated("Token has expired", AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED)
    except (JWTError, ValidationError):
        return unauthenticated()


def verify_token_remote(token: str) -> UserToken:
    """Ask the auth service to verify the token.

    The auth service answers ``{"valid": bool, "userId": str, "role": str}``.
    """
    url = f"{settings.AUTH_SERVICE_URL.rstrip('/')}/api/auth/verify-token"
    try:
        response = requests.post(
            url, json={"token": token}, timeout=settings.AUTH_SERVICE_TIMEOUT)
    except requests.RequestException as e:
        logger.error("Auth service unreachable at %s: %s", url, e)
        return error_response(
            message="Identity service unavailable",
            status_code=AppStatusCode.SERVICE_UNAVAILABLE,
            http_status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    if response.status_code >= 500:
        logger.error("Auth service returned %s", response.status_code)
        return error_response(
            message="Identity service unavailable",
            status_code=AppStatusCode.SERVICE_UNAVAILABLE,
            http_status=status.HTTP_503_SERVICE_UNAVAILABLE
        )

    try:
        body = response.json()
    except ValueError:
        body = {}

    if response.status_code != 200 or not body.get("valid"):
        return unauthenticated()

    try:
        return UserToken(user_id=str(body.get("userId")), role=body.get("role"))
    except ValidationError:
        return unauthenticated("Token resolved to an unknown role")


def resolve_identity(token: str) -> UserToken:
    if settings.IDENTITY_MODE.lower() == IdentityMode.REMOTE.value:
        return verify_token_remote(token)
    return verify_token(token)


def validate_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserToken:
    if credentials is None or not credentials.credentials:
        return unauthenticated("Authentication required. No token provided.")
    return resolve_identity(credentials.credentials)
