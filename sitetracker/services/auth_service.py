# File: sitetracker/services/auth_service.py

"""
Session handling against the external auth backend.

Tokens, the user profile and the id of the browser session that owns them
live in the key-value store.
The backend is reached over its REST contract:

    GET  /auth/me              bearer access token -> user profile
    POST /auth/token/refresh   {"refresh_token"}   -> new token pair
    POST /auth/logout          {"refresh_token"}   -> nothing

Any 401 from the backend ends the session on the spot; nothing is retried
except by the refresh schedule on its next tick.
"""

import json
import logging
import secrets
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import httpx

from sitetracker.core.config import Settings
from sitetracker.core.errors import NetworkError, UnauthorizedError
from sitetracker.core.permissions import GATED_CONTROLS, ROLE_PERMISSIONS, Role, role_has_permission
from sitetracker.db.storage import KeyValueStorage
from sitetracker.services.scheduler import RefreshScheduler
from sitetracker.services.ui_port import UIPort

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    EXPIRED = "expired"


class AuthService:
    def __init__(
        self,
        storage: KeyValueStorage,
        client: httpx.AsyncClient,
        ui: UIPort,
        settings: Settings,
    ):
        self.storage = storage
        self.client = client
        self.ui = ui
        self.settings = settings
        self.state = AuthState.UNAUTHENTICATED
        self.scheduler = RefreshScheduler(self.refresh_tokens, settings.token_refresh_interval_seconds)

    # -----------------------------
    # Storage helpers
    # -----------------------------

    def _url(self, endpoint: str) -> str:
        return self.settings.auth_api_base_url.rstrip("/") + endpoint

    @property
    def access_token(self) -> Optional[str]:
        return self.storage.get_item(self.settings.access_token_key)

    @property
    def refresh_token(self) -> Optional[str]:
        return self.storage.get_item(self.settings.refresh_token_key)

    def _store_tokens(self, access_token: str, refresh_token: str) -> None:
        self.storage.set_item(self.settings.access_token_key, access_token)
        self.storage.set_item(self.settings.refresh_token_key, refresh_token)

    @property
    def session_id(self) -> Optional[str]:
        return self.storage.get_item(self.settings.session_storage_key)

    def _clear_session(self) -> None:
        for key in (
            self.settings.access_token_key,
            self.settings.refresh_token_key,
            self.settings.user_storage_key,
            self.settings.session_storage_key,
        ):
            self.storage.remove_item(key)

    def is_public_page(self, path: str) -> bool:
        return any(path.endswith(page) for page in self.settings.public_pages)

    # -----------------------------
    # Lifecycle
    # -----------------------------

    async def check_auth(self, current_path: str = "/") -> AuthState:
        """
        Entry check for a page load. Landing and login pages are always
        reachable; anything else needs a stored token that the backend
        still accepts.
        """
        if self.is_public_page(current_path):
            return self.state

        token = self.access_token
        if not token:
            self.state = AuthState.UNAUTHENTICATED
            self.apply_rbac()
            self.ui.redirect(self.settings.login_page)
            return self.state

        await self.verify_token(token)
        return self.state

    async def start_session(self, access_token: str, refresh_token: str) -> bool:
        """
        Adopt a token pair obtained from the login page. On success a new
        opaque session id is issued; it identifies the browser holding this
        session and survives token refreshes.
        """
        self._store_tokens(access_token, refresh_token)
        if not await self.verify_token(access_token):
            return False
        self.storage.set_item(self.settings.session_storage_key, secrets.token_urlsafe(32))
        return True

    async def verify_token(self, token: str) -> bool:
        """
        Check ``token`` against the backend. A result that arrives after the
        stored token changed belongs to an older session and is dropped.
        """
        user = None
        try:
            response = await self.client.get(
                self._url("/auth/me"),
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            failure = str(e)
        else:
            failure = None if response.is_success else f"HTTP {response.status_code}"
            if failure is None:
                try:
                    user = response.json()
                except ValueError:
                    user = None
                if not isinstance(user, dict):
                    failure = "malformed user profile"

        if self.access_token != token:
            logger.info("[AUTH] Discarding verification result for a superseded session")
            return False

        if failure is not None:
            logger.error("[AUTH] Token verification failed: %s", failure)
            await self.logout()
            return False

        self.storage.set_item(self.settings.user_storage_key, json.dumps(user))
        self.state = AuthState.AUTHENTICATED
        self.apply_rbac()
        self.scheduler.start()
        logger.info("[AUTH] Session verified for role %s", user.get("role"))
        return True

    async def refresh_tokens(self) -> bool:
        """
        Swap the token pair for a fresh one. Does nothing unless both tokens
        are present; any failure ends the session. Results for a session
        that ended or was replaced while the request was in flight are
        dropped either way.
        """
        access_token = self.access_token
        refresh_token = self.refresh_token
        if not access_token or not refresh_token:
            return False

        self.state = AuthState.REFRESHING
        try:
            response = await self.client.post(
                self._url("/auth/token/refresh"),
                json={"refresh_token": refresh_token},
            )
            if not response.is_success:
                raise NetworkError(f"Token refresh failed: HTTP {response.status_code}")
            data = response.json()
            new_access = data["access_token"]
            new_refresh = data["refresh_token"]
        except (httpx.HTTPError, NetworkError, ValueError, KeyError, TypeError) as e:
            if self.refresh_token != refresh_token:
                logger.info("[AUTH] Ignoring refresh failure for a superseded session: %s", e)
                return False
            logger.error("[AUTH] Auto-refresh failed: %s", e)
            await self.logout(expired=True)
            return False

        if self.refresh_token != refresh_token:
            logger.info("[AUTH] Discarding refresh result for a superseded session")
            return False

        self._store_tokens(new_access, new_refresh)
        self.state = AuthState.AUTHENTICATED
        logger.info("[AUTH] Token refreshed successfully")
        return True

    async def logout(self, expired: bool = False) -> None:
        refresh_token = self.refresh_token
        if refresh_token:
            try:
                await self.client.post(
                    self._url("/auth/logout"),
                    json={"refresh_token": refresh_token},
                )
            except httpx.HTTPError as e:
                logger.error("[AUTH] Logout API error: %s", e)

        self._clear_session()
        self.scheduler.stop()
        self.state = AuthState.EXPIRED if expired else AuthState.UNAUTHENTICATED
        self.apply_rbac()
        self.ui.redirect(self.settings.login_page)
        logger.info("[AUTH] Session ended (%s)", self.state.value)

    async def reload_user(self) -> Optional[Dict[str, Any]]:
        """
        Fetch the profile again through the API wrapper; a role change on
        the backend is reflected in the gated controls right away.
        """
        response = await self.api_call("GET", "/auth/me")
        if not response.is_success:
            raise NetworkError(f"Profile request failed: HTTP {response.status_code}")
        user = response.json()
        previous = self.get_user() or {}
        self.storage.set_item(self.settings.user_storage_key, json.dumps(user))
        if previous.get("role") != user.get("role"):
            logger.info("[AUTH] Role changed from %s to %s", previous.get("role"), user.get("role"))
        self.apply_rbac()
        return user

    async def aclose(self) -> None:
        self.scheduler.stop(force=True)
        await self.client.aclose()

    # -----------------------------
    # Authorization
    # -----------------------------

    def get_user(self) -> Optional[Dict[str, Any]]:
        raw = self.storage.get_item(self.settings.user_storage_key)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("[AUTH] Stored user profile is not valid JSON")
            return None
        return user if isinstance(user, dict) else None

    @property
    def is_authenticated(self) -> bool:
        return self.state in (AuthState.AUTHENTICATED, AuthState.REFRESHING) and self.get_user() is not None

    def has_role(self, roles: Iterable[str]) -> bool:
        user = self.get_user()
        if not user:
            return False
        return user.get("role") in set(roles)

    def has_permission(self, permission: str) -> bool:
        user = self.get_user()
        if not user:
            return False
        return role_has_permission(user.get("role"), permission)

    def permissions(self) -> List[str]:
        user = self.get_user()
        if not user:
            return []
        try:
            role = Role(user.get("role"))
        except ValueError:
            return []
        return sorted(p.value for p in ROLE_PERMISSIONS[role])

    def apply_rbac(self) -> None:
        """Push the visibility of every gated control to the UI."""
        for control, permission in GATED_CONTROLS.items():
            self.ui.set_visible(control, self.has_permission(permission))

    # -----------------------------
    # API wrapper
    # -----------------------------

    async def api_call(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})
        token = self.access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self.client.request(method, self._url(endpoint), headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(f"{method} {endpoint} failed: {e}") from e

        if response.status_code == 401:
            await self.logout()
            raise UnauthorizedError("Unauthorized")

        return response
