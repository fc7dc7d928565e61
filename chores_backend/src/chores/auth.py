from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .settings import Settings

_security = HTTPBasic(auto_error=False)


@dataclass(frozen=True)
class Requester:
    """The authenticated caller of a request."""

    id: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Basic"},
    )


# PUBLIC_INTERFACE
async def get_requester(
    request: Request,
    creds: Optional[HTTPBasicCredentials] = Depends(_security),
) -> Requester:
    """
    Identify the caller from HTTP Basic credentials.

    Behavior:
    - Missing credentials: 401 with WWW-Authenticate: Basic.
    - settings.enable_basic_auth False (default): the username is trusted as the
      requester id and the password is ignored.
    - settings.enable_basic_auth True: the password must match the entry for the
      username in BASIC_AUTH_USERS, otherwise 401.

    Usage:
        @router.get("/", ...)
        def handler(requester: Requester = Depends(get_requester)): ...
    """
    if creds is None or not creds.username:
        raise _unauthorized("Not authenticated")

    settings: Settings = request.app.state.settings
    if settings.enable_basic_auth:
        if not settings.basic_auth_users:
            # Misconfiguration: auth enabled but no users provided
            raise _unauthorized("Server authentication not configured")

        expected = settings.basic_auth_users.get(creds.username)
        if expected is None or not secrets.compare_digest(creds.password.encode("utf-8"), expected.encode("utf-8")):
            raise _unauthorized("Invalid authentication credentials")

    return Requester(id=creds.username)
