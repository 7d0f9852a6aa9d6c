# File: tests/conftest.py

import json
import os

# Keep the module-level app in sitetracker.main off the disk
os.environ.setdefault("SITETRACKER_DATABASE_URL", "sqlite://")

import httpx
import pytest
from fastapi.testclient import TestClient

from sitetracker.core.config import Settings
from sitetracker.db.init_db import SEED_PROJECTS, init_db
from sitetracker.db.session import create_session_factory, create_storage_engine
from sitetracker.db.storage import KeyValueStorage
from sitetracker.main import create_application
from sitetracker.services.auth_service import AuthService
from sitetracker.services.data_service import DataService
from sitetracker.services.ui_port import SessionViewState

AUTH_BASE = "http://auth.test/api/v1"


class FakeAuthBackend:
    """
    Stand-in for the auth REST backend. Tokens ``access-<role>`` and
    ``refresh-<role>`` are valid for admin, editor and viewer.
    """

    def __init__(self):
        self.access = {}
        self.refresh = {}
        for role in ("admin", "editor", "viewer"):
            user = {"id": role, "email": f"{role}@example.org", "role": role}
            self.access[f"access-{role}"] = user
            self.refresh[f"refresh-{role}"] = user
        self.refresh_status = 200
        self.offline = False
        self.issued = 0
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))
        if self.offline:
            raise httpx.ConnectError("auth backend unreachable", request=request)

        if path.endswith("/auth/me"):
            token = request.headers.get("Authorization", "").replace("Bearer ", "", 1)
            user = self.access.get(token)
            if user is None:
                return httpx.Response(401, json={"detail": "Invalid token"})
            return httpx.Response(200, json=user)

        if path.endswith("/auth/token/refresh"):
            if self.refresh_status != 200:
                return httpx.Response(self.refresh_status, json={"detail": "Refresh rejected"})
            old = json.loads(request.content)["refresh_token"]
            user = self.refresh.pop(old, None)
            if user is None:
                return httpx.Response(401, json={"detail": "Unknown refresh token"})
            self.issued += 1
            pair = {
                "access_token": f"access-{user['role']}-{self.issued}",
                "refresh_token": f"refresh-{user['role']}-{self.issued}",
            }
            self.access[pair["access_token"]] = user
            self.refresh[pair["refresh_token"]] = user
            return httpx.Response(200, json=pair)

        if path.endswith("/auth/logout"):
            return httpx.Response(204)

        return httpx.Response(404, json={"detail": "Not found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def called(self, suffix: str) -> int:
        return sum(1 for _, path in self.calls if path.endswith(suffix))


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        auth_api_base_url=AUTH_BASE,
        token_refresh_interval_seconds=1500,
        log_level="WARNING",
    )


@pytest.fixture
def storage():
    engine = create_storage_engine("sqlite://")
    init_db(engine)
    return KeyValueStorage(create_session_factory(engine))


@pytest.fixture
def view():
    return SessionViewState()


@pytest.fixture
def data(storage):
    service = DataService(storage, "projects", seed=SEED_PROJECTS)
    service.init()
    return service


@pytest.fixture
def empty_data(storage):
    service = DataService(storage, "projects", seed=[])
    service.init()
    return service


@pytest.fixture
def backend():
    return FakeAuthBackend()


@pytest.fixture
def auth(storage, view, settings, backend):
    return AuthService(storage, backend.client(), view, settings)


@pytest.fixture
def app(settings, backend):
    return create_application(settings=settings, auth_client=backend.client())


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient, role: str = "admin"):
    resp = client.post(
        "/api/v1/auth/session",
        json={"access_token": f"access-{role}", "refresh_token": f"refresh-{role}"},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


def project_row(site_code: str = "NEW-001", **overrides):
    """One CSV-style row keyed by the template header labels."""
    row = {
        "Site Code": site_code,
        "Project Name": "Free-WIFI for All",
        "Site Name": "Sample Barangay Hall",
        "Barangay": "Sample Barangay",
        "Municipality": "Itbayat",
        "Province": "Batanes",
        "District": "District I",
        "Latitude": "20.728794",
        "Longitude": "121.804235",
        "Date of Activation": "April 30, 2024",
        "Status": "Done",
        "Notes": "",
    }
    row.update(overrides)
    return row
