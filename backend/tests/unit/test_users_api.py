import pytest
from fastapi.testclient import TestClient

from backend.src.api.routes.users import safe_referrer
from backend.src.services import config as config_module

PASSWORD = "correct-horse"


def _join(client: TestClient, email: str, password: str = PASSWORD, confirmation: str = PASSWORD):
    return client.post(
        "/join",
        data={"email": email, "password": password, "password_confirmation": confirmation},
        follow_redirects=False,
    )


class TestJoin:
    """Registration through the web form."""

    def test_join_signs_in_and_redirects_home(self, client: TestClient) -> None:
        response = _join(client, "alice@example.com")

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert "id" in response.cookies

        home = client.get("/")
        assert home.status_code == 200
        assert "alice@example.com" in home.text

    def test_password_mismatch_rerenders_form(self, client: TestClient) -> None:
        response = _join(client, "alice@example.com", confirmation="something-else")

        assert response.status_code == 400
        assert "do not match" in response.text
        assert 'value="alice@example.com"' in response.text

    def test_short_password_is_rejected(self, client: TestClient) -> None:
        response = _join(client, "alice@example.com", password="short", confirmation="short")

        assert response.status_code == 400
        assert "at least 8 characters" in response.text

    def test_duplicate_email_is_rejected(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        client.cookies.clear()

        response = _join(client, "alice@example.com")

        assert response.status_code == 409
        assert "already exists" in response.text

    def test_registration_can_be_disabled(self, monkeypatch, client: TestClient) -> None:
        monkeypatch.setenv("DISABLE_REGISTRATION", "true")
        config_module.reload_config()

        assert client.get("/join").status_code == 404
        assert _join(client, "alice@example.com").status_code == 404
        assert "/join" not in client.get("/login").text


class TestLogin:
    """Cookie sessions for the web pages."""

    def test_guest_is_sent_to_login(self, client: TestClient) -> None:
        response = client.get("/", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login?referrer=/"

    def test_login_redirects_to_referrer(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        client.cookies.clear()

        response = client.post(
            "/login",
            data={"email": "alice@example.com", "password": PASSWORD, "referrer": "/?q=merge"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/?q=merge"
        assert "id" in response.cookies

    def test_login_ignores_offsite_referrer(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        client.cookies.clear()

        response = client.post(
            "/login",
            data={"email": "alice@example.com", "password": PASSWORD, "referrer": "/\\evil.example.com"},
            follow_redirects=False,
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    def test_wrong_password_shows_alert(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        client.cookies.clear()

        response = client.post(
            "/login", data={"email": "alice@example.com", "password": "nope"}
        )

        assert response.status_code == 401
        assert "Wrong email and password combination" in response.text

    def test_logout_revokes_session(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        session_key = client.cookies.get("id")

        response = client.post("/logout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

        client.cookies.clear()
        stale = client.get("/", headers={"Cookie": f"id={session_key}"}, follow_redirects=False)
        assert stale.status_code == 303

    def test_signed_in_user_skips_login_page(self, client: TestClient) -> None:
        _join(client, "alice@example.com")

        response = client.get("/login", follow_redirects=False)

        assert response.status_code == 303


class TestSigninApi:
    """Session keys for API clients."""

    def test_signin_returns_key(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        client.cookies.clear()

        response = client.post(
            "/api/v3/signin", json={"email": "alice@example.com", "password": PASSWORD}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["key"]
        assert body["expires_at"]
        assert response.cookies.get("id") == body["key"]

    def test_signin_accepts_form_data(self, client: TestClient) -> None:
        _join(client, "alice@example.com")
        client.cookies.clear()

        response = client.post(
            "/api/v3/signin", data={"email": "alice@example.com", "password": PASSWORD}
        )

        assert response.status_code == 200

    def test_bad_credentials_use_error_envelope(self, client: TestClient) -> None:
        response = client.post(
            "/api/v3/signin", json={"email": "nobody@example.com", "password": PASSWORD}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "invalid_credentials"

    def test_missing_fields_are_rejected(self, client: TestClient) -> None:
        response = client.post("/api/v3/signin", json={"email": "alice@example.com"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_signout_revokes_key(self, client: TestClient, signup) -> None:
        key = signup("alice@example.com")
        headers = {"Authorization": f"Bearer {key}"}

        assert client.get("/api/v3/notes", headers=headers).status_code == 200

        response = client.post("/api/v3/signout", headers=headers)
        assert response.status_code == 204

        rejected = client.get("/api/v3/notes", headers=headers)
        assert rejected.status_code == 401
        assert rejected.json()["error"] == "session_revoked"

    def test_api_requires_credentials(self, client: TestClient) -> None:
        response = client.get("/api/v3/notes")

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"

    def test_malformed_authorization_header(self, client: TestClient) -> None:
        response = client.get("/api/v3/notes", headers={"Authorization": "Token abc"})

        assert response.status_code == 401


@pytest.mark.parametrize(
    "referrer, expected",
    [
        (None, "/"),
        ("", "/"),
        ("/notes/abc", "/notes/abc"),
        ("//evil.example.com", "/"),
        ("https://evil.example.com", "/"),
        ("/\\evil.example.com", "/"),
        ("/\\/evil.example.com", "/"),
        ("/notes?q=a\\b", "/"),
        ("/?q=merge", "/?q=merge"),
    ],
)
def test_safe_referrer(referrer, expected) -> None:
    assert safe_referrer(referrer) == expected


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
