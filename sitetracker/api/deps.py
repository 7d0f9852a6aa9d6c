# File: sitetracker/api/deps.py

import secrets
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status

from sitetracker.core.permissions import Permission
from sitetracker.services.auth_service import AuthService
from sitetracker.services.dashboard import Dashboard
from sitetracker.services.data_service import DataService
from sitetracker.services.ui_port import SessionViewState


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def get_data(request: Request) -> DataService:
    return request.app.state.data


def get_dashboard(request: Request) -> Dashboard:
    return request.app.state.dashboard


def get_view_state(request: Request) -> SessionViewState:
    return request.app.state.view_state


def _same(given: str, expected: Optional[str]) -> bool:
    return bool(given and expected) and secrets.compare_digest(given.encode(), expected.encode())


def holds_session(request: Request, auth: AuthService) -> bool:
    """
    True when the caller presents the current session: the session cookie
    handed out by POST /auth/session, or the stored access token as a
    bearer header.
    """
    if _same(request.cookies.get(auth.settings.session_cookie_name, ""), auth.session_id):
        return True
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    return scheme.lower() == "bearer" and _same(token.strip(), auth.access_token)


async def require_session_holder(request: Request, auth: AuthService = Depends(get_auth)) -> AuthService:
    if not holds_session(request, auth):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return auth


async def require_session(auth: AuthService = Depends(require_session_holder)) -> Dict[str, Any]:
    """
    FastAPI dependency returning the signed-in user's profile.

    After a restart the stored token is re-verified on first use.
    """
    if not auth.is_authenticated and auth.access_token:
        await auth.check_auth("/")

    user = auth.get_user()
    if not auth.is_authenticated or user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def require_permission(permission: Permission):
    """
    Usage in route functions:
        user: dict = Depends(require_permission(Permission.ADD_PROJECT))
    """

    async def dependency(
        user: Dict[str, Any] = Depends(require_session),
        auth: AuthService = Depends(get_auth),
    ) -> Dict[str, Any]:
        if not auth.has_permission(permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission.value}",
            )
        return user

    return dependency
