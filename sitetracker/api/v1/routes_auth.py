# File: sitetracker/api/v1/routes_auth.py

"""
Session routes.

Login itself happens on the external auth backend; the browser hands the
resulting token pair over with POST /auth/session, which answers with the
session cookie later requests carry.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from sitetracker.api.deps import get_auth, get_view_state, holds_session, require_session, require_session_holder
from sitetracker.core.permissions import GATED_CONTROLS
from sitetracker.services.auth_service import AuthService, AuthState
from sitetracker.services.ui_port import SessionViewState, Toast

router = APIRouter()


class SessionStartRequest(BaseModel):
    access_token: str
    refresh_token: str


class SessionInfo(BaseModel):
    state: str
    authenticated: bool
    user: Optional[Dict[str, Any]] = None
    permissions: List[str] = []
    visibility: Dict[str, bool] = {}
    redirect: Optional[str] = None
    toasts: List[Toast] = []


def _session_info(auth: AuthService, view: SessionViewState) -> SessionInfo:
    return SessionInfo(
        state=auth.state.value,
        authenticated=auth.is_authenticated,
        user=auth.get_user(),
        permissions=auth.permissions(),
        visibility=dict(view.visibility),
        redirect=view.take_redirect(),
        toasts=view.drain_toasts(),
    )


def _anonymous_info(auth: AuthService, path: str) -> SessionInfo:
    """What a caller without the session cookie or token sees while a session exists."""
    return SessionInfo(
        state=AuthState.UNAUTHENTICATED.value,
        authenticated=False,
        visibility={control: False for control in GATED_CONTROLS},
        redirect=None if auth.is_public_page(path) else auth.settings.login_page,
    )


@router.get("/session", response_model=SessionInfo, summary="Current session and UI state")
async def get_session(
    request: Request,
    path: str = "/",
    auth: AuthService = Depends(get_auth),
    view: SessionViewState = Depends(get_view_state),
):
    """
    Page-load check. ``path`` is the page the browser is on; landing and
    login pages never trigger a redirect.
    """
    if auth.access_token and not holds_session(request, auth):
        return _anonymous_info(auth, path)
    await auth.check_auth(path)
    return _session_info(auth, view)


@router.post("/session", response_model=SessionInfo, summary="Adopt a token pair")
async def start_session(
    payload: SessionStartRequest,
    response: Response,
    auth: AuthService = Depends(get_auth),
    view: SessionViewState = Depends(get_view_state),
):
    if not await auth.start_session(payload.access_token, payload.refresh_token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token verification failed",
        )
    response.set_cookie(
        auth.settings.session_cookie_name,
        auth.session_id,
        httponly=True,
        samesite="lax",
    )
    return _session_info(auth, view)


@router.post("/refresh", summary="Refresh the token pair now")
async def refresh_session(auth: AuthService = Depends(require_session_holder)):
    if not await auth.refresh_tokens():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token refresh failed",
        )
    return {"refreshed": True}


@router.post("/logout", response_model=SessionInfo, summary="End the session")
async def logout(
    response: Response,
    auth: AuthService = Depends(require_session_holder),
    view: SessionViewState = Depends(get_view_state),
):
    await auth.logout()
    response.delete_cookie(auth.settings.session_cookie_name)
    return _session_info(auth, view)


@router.get("/me", summary="Reload the user profile from the auth backend")
async def reload_profile(
    auth: AuthService = Depends(get_auth),
    _user: dict = Depends(require_session),
):
    return await auth.reload_user()
