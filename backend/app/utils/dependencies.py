from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_access_token

_bearer = HTTPBearer(auto_error=False)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> dict | None:
    """Token claims (`sub`, `role`) when a valid bearer token is sent, else None."""
    if not credentials or not credentials.credentials:
        return None
    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        return None
    return claims


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> dict:
    if not credentials or not credentials.credentials:
        raise UnauthorizedError(get_error_message("unauthorized"))
    claims = decode_access_token(credentials.credentials)
    if not claims or not claims.get("sub"):
        raise UnauthorizedError(get_error_message("session_expired"))
    return claims
