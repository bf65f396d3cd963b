from __future__ import annotations

import time
from typing import Any

from backend.lifesync.core.security import verify_password
from backend.lifesync.core.tokens import TokenService
from backend.lifesync.models import Event, User


def test_register_sets_http_only_session_cookie(app: Any, test_settings) -> None:
    response = app.post("/api/users/register", json={"email": "a@x.com", "password": "secret"})

    assert response.status_code == 200
    assert response.json() == {"message": "user registered successfully", "id": 1}

    cookie_header = response.headers["set-cookie"]
    assert cookie_header.startswith(f"{test_settings.SESSION_COOKIE_NAME}=")
    assert "HttpOnly" in cookie_header
    assert "Path=/api" in cookie_header
    assert f"Max-Age={test_settings.TOKEN_TTL_SECONDS}" in cookie_header


def test_register_stores_digest_not_password(app: Any, session_factory) -> None:
    app.post("/api/users/register", json={"email": "A@X.com ", "password": "secret"})

    with session_factory() as session:
        user = session.query(User).one()
        assert user.email == "a@x.com"
        assert user.password_hash != "secret"
        assert verify_password("secret", user.password_hash)


def test_register_response_never_contains_password(app: Any) -> None:
    response = app.post("/api/users/register", json={"email": "a@x.com", "password": "secret"})

    body = response.text
    assert "secret" not in body
    assert "password" not in body


def test_duplicate_registration_fails_and_first_user_still_logs_in(client_factory, register_user) -> None:
    first = client_factory()
    first_id = register_user(first, "a@x.com", "secret")

    second = client_factory()
    response = second.post("/api/users/register", json={"email": "a@x.com", "password": "other"})
    assert response.status_code == 400
    assert response.json() == {"error": "Email is already registered"}

    login = client_factory().post("/api/users/login", json={"email": "a@x.com", "password": "secret"})
    assert login.status_code == 200
    assert login.json() == {"id": first_id}


def test_register_rejects_malformed_payloads(app: Any) -> None:
    missing = app.post("/api/users/register", json={"email": "a@x.com"})
    assert missing.status_code == 400
    assert "error" in missing.json()

    bad_email = app.post("/api/users/register", json={"email": "not-an-email", "password": "secret"})
    assert bad_email.status_code == 400
    assert bad_email.json() == {"error": "Email is invalid"}

    long_password = app.post("/api/users/register", json={"email": "a@x.com", "password": "x" * 73})
    assert long_password.status_code == 400


def test_login_failures_are_indistinguishable(app: Any, register_user) -> None:
    register_user(app, "a@x.com", "secret")

    wrong_password = app.post("/api/users/login", json={"email": "a@x.com", "password": "wrong"})
    unknown_email = app.post("/api/users/login", json={"email": "nobody@x.com", "password": "secret"})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"error": "invalid credentials"}
    assert "set-cookie" not in wrong_password.headers


def test_protected_routes_require_session(app: Any) -> None:
    for method, path in (
        ("GET", "/api/users/me"),
        ("PUT", "/api/users"),
        ("DELETE", "/api/users"),
        ("GET", "/api/calendar"),
        ("DELETE", "/api/calendar/1"),
    ):
        response = app.request(method, path)
        assert response.status_code == 401, path
        assert response.json() == {"error": "Not authenticated"}


def test_bearer_header_is_accepted(client_factory, register_user, token_service) -> None:
    user_id = register_user(client_factory(), "a@x.com")
    token = token_service.issue(user_id, "a@x.com")

    response = client_factory().get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.json() == {"id": user_id, "email": "a@x.com"}


def test_expired_cookie_is_rejected(client_factory, register_user, test_settings) -> None:
    user_id = register_user(client_factory(), "a@x.com")
    stale = TokenService(
        test_settings.TOKEN_SECRET,
        test_settings.TOKEN_TTL_SECONDS,
        salt=test_settings.TOKEN_SALT,
        clock=lambda: time.time() - 2 * test_settings.TOKEN_TTL_SECONDS,
    ).issue(user_id, "a@x.com")

    client = client_factory()
    client.cookies.set(test_settings.SESSION_COOKIE_NAME, stale)
    response = client.get("/api/users/me")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated"}


def test_update_user_changes_only_email(app: Any, register_user, session_factory) -> None:
    user_id = register_user(app, "a@x.com", "secret")

    response = app.put(
        "/api/users",
        json={"email": "new@x.com", "id": 999, "password": "hijacked", "password_hash": "x"},
    )

    assert response.status_code == 200
    assert response.json() == {"email": "new@x.com"}
    with session_factory() as session:
        user = session.get(User, user_id)
        assert user.email == "new@x.com"
        assert verify_password("secret", user.password_hash)
        assert session.get(User, 999) is None


def test_update_user_rejects_taken_email(client_factory, register_user) -> None:
    register_user(client_factory(), "taken@x.com")
    client = client_factory()
    register_user(client, "a@x.com")

    response = client.put("/api/users", json={"email": "taken@x.com"})

    assert response.status_code == 400
    assert response.json() == {"error": "Email is already registered"}


def test_update_user_requires_email(app: Any, register_user) -> None:
    register_user(app, "a@x.com")

    response = app.put("/api/users", json={"nickname": "ignored"})

    assert response.status_code == 400
    assert response.json() == {"error": "Email is required"}


def test_delete_user_cascades_events(app: Any, register_user, session_factory) -> None:
    register_user(app, "a@x.com")
    created = app.post(
        "/api/calendar",
        json={"title": "Standup", "start": "2024-01-01T09:00:00Z", "end": "2024-01-01T09:15:00Z"},
    )
    assert created.status_code == 201

    response = app.delete("/api/users")

    assert response.status_code == 200
    assert response.json() == {"message": "Deleted successfully"}
    with session_factory() as session:
        assert session.query(User).count() == 0
        assert session.query(Event).count() == 0


def test_session_of_deleted_user_resolves_to_not_found(client_factory, register_user, token_service) -> None:
    client = client_factory()
    user_id = register_user(client, "a@x.com")
    token = token_service.issue(user_id, "a@x.com")
    assert client.delete("/api/users").status_code == 200

    headers = {"Authorization": f"Bearer {token}"}
    stale = client_factory()
    assert stale.put("/api/users", json={"email": "b@x.com"}, headers=headers).status_code == 404
    assert stale.delete("/api/users", headers=headers).status_code == 404
    assert stale.get("/api/users/me", headers=headers).json() == {"error": "User not found"}


def test_logout_clears_cookie(app: Any, register_user, test_settings) -> None:
    register_user(app, "a@x.com")

    response = app.post("/api/users/logout")

    assert response.status_code == 200
    cookie_header = response.headers["set-cookie"]
    assert cookie_header.startswith(f"{test_settings.SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in cookie_header


def test_login_rejects_suffix_beyond_bcrypt_limit(client_factory, register_user) -> None:
    password = "p" * 72
    register_user(client_factory(), "a@x.com", password)

    extended = client_factory().post("/api/users/login", json={"email": "a@x.com", "password": password + "extra"})
    exact = client_factory().post("/api/users/login", json={"email": "a@x.com", "password": password})

    assert extended.status_code == 401
    assert extended.json() == {"error": "invalid credentials"}
    assert exact.status_code == 200


def test_register_rejects_overlong_email(app: Any) -> None:
    response = app.post("/api/users/register", json={"email": "a" * 250 + "@x.com", "password": "secret"})

    assert response.status_code == 400
    assert response.json() == {"error": "Email must be at most 255 characters"}


def test_paths_sharing_api_prefix_are_not_gated(app: Any) -> None:
    sibling = app.get("/apix/whatever")
    gated = app.get("/api/calendar")

    assert sibling.status_code == 404
    assert gated.status_code == 401
