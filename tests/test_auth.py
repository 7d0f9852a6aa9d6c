# File: tests/test_auth.py

from conftest import login


def test_session_without_token_points_to_login(client):
    resp = client.get("/api/v1/auth/session", params={"path": "/index.html"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["authenticated"] is False
    assert data["redirect"] == "login.html"


def test_login_page_is_always_reachable(client):
    resp = client.get("/api/v1/auth/session", params={"path": "/login.html"})
    assert resp.json()["redirect"] is None


def test_start_session_reports_permissions_and_visibility(client):
    data = login(client, "editor")
    assert data["authenticated"] is True
    assert data["state"] == "authenticated"
    assert data["user"]["role"] == "editor"
    assert "add_project" in data["permissions"]
    assert "delete_project" not in data["permissions"]
    assert data["visibility"]["delete-project-btn"] is False
    assert data["visibility"]["manual-entry"] is True


def test_start_session_with_bad_token(client):
    resp = client.post(
        "/api/v1/auth/session",
        json={"access_token": "nope", "refresh_token": "nope"},
    )
    assert resp.status_code == 401
    assert "verification failed" in resp.json()["detail"].lower()


def test_refresh_failure_logs_out(client, backend):
    login(client)
    backend.refresh_status = 401

    resp = client.post("/api/v1/auth/refresh")
    assert resp.status_code == 401

    session = client.get("/api/v1/auth/session", params={"path": "/login.html"}).json()
    assert session["authenticated"] is False
    assert session["state"] == "expired"
    assert session["redirect"] == "login.html"
    assert client.get("/api/v1/projects/").status_code == 401


def test_refresh_success(client, app):
    login(client)
    resp = client.post("/api/v1/auth/refresh")
    assert resp.status_code == 200
    assert app.state.storage.get_item("access_token") == "access-admin-1"


def test_logout(client, backend):
    login(client)
    data = client.post("/api/v1/auth/logout").json()
    assert data["authenticated"] is False
    assert data["redirect"] == "login.html"
    assert backend.called("/auth/logout") == 1
    assert client.get("/api/v1/projects/").status_code == 401


def test_profile_reload_with_revoked_token_logs_out(client, app):
    login(client)
    app.state.storage.set_item("access_token", "revoked")
    resp = client.get("/api/v1/auth/me")
    assert resp.status_code == 401
    assert app.state.storage.get_item("refresh_token") is None


def test_login_sets_session_cookie(client):
    login(client)
    assert client.cookies.get("sitetracker_session")


def test_request_without_session_cookie_is_refused_after_login(client):
    login(client, "admin")
    client.cookies.clear()

    resp = client.delete("/api/v1/projects/UNDP-GI-0009A")
    assert resp.status_code == 401
    assert client.post("/api/v1/auth/logout").status_code == 401
    assert client.post("/api/v1/auth/refresh").status_code == 401

    headers = {"Authorization": "Bearer access-admin"}
    assert client.get("/api/v1/projects/UNDP-GI-0009A", headers=headers).status_code == 200


def test_wrong_bearer_token_is_refused(client):
    login(client, "admin")
    client.cookies.clear()
    resp = client.get("/api/v1/projects/", headers={"Authorization": "Bearer access-editor"})
    assert resp.status_code == 401


def test_anonymous_session_check_hides_signed_in_user(client):
    login(client, "admin")
    client.cookies.clear()

    data = client.get("/api/v1/auth/session", params={"path": "/index.html"}).json()
    assert data["authenticated"] is False
    assert data["user"] is None
    assert data["permissions"] == []
    assert data["redirect"] == "login.html"
    assert not any(data["visibility"].values())


def test_cookie_from_replaced_session_is_refused(client):
    login(client, "admin")
    old = client.cookies.get("sitetracker_session")
    login(client, "editor")
    client.cookies.clear()

    resp = client.get("/api/v1/projects/", headers={"Cookie": f"sitetracker_session={old}"})
    assert resp.status_code == 401


def test_session_cookie_survives_token_refresh(client):
    login(client)
    assert client.post("/api/v1/auth/refresh").status_code == 200
    assert client.get("/api/v1/projects/").status_code == 200


def test_logout_drops_session_cookie(client):
    login(client)
    client.post("/api/v1/auth/logout")
    assert client.cookies.get("sitetracker_session") is None
