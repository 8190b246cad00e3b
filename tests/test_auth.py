"""
Travlr Auth - Authentication API Test Suite

Integration tests for:
- Register / login endpoints
- Forgot / reset password flow
- Bearer token gate on /auth/me
- Error response shape

Run with: pytest tests/test_auth.py -v
"""

from tests.conftest import auth_headers


def register(client, name="Ana", email="ana@x.com", password="pw123"):
    return client.post(
        "/api/auth/register",
        json={"name": name, "email": email, "password": password},
    )


def login(client, email="ana@x.com", password="pw123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


# =============================================================================
# REGISTER / LOGIN
# =============================================================================

class TestRegisterEndpoint:

    def test_register_success(self, client):
        response = register(client)

        assert response.status_code == 200
        data = response.json()
        assert data["access_token"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 7 * 24 * 3600

    def test_register_missing_fields(self, client):
        response = client.post("/api/auth/register", json={"email": "ana@x.com"})

        assert response.status_code == 400
        assert response.json() == {
            "detail": "All fields required",
            "error_code": "missing_fields",
        }

    def test_register_without_body(self, client):
        response = client.post("/api/auth/register")

        assert response.status_code == 400

    def test_register_duplicate_is_generic(self, client):
        register(client)
        response = register(client, name="Imposter", email="ANA@x.com")

        assert response.status_code == 400
        assert response.json()["detail"] == "Registration error"


class TestLoginEndpoint:

    def test_login_success(self, client, test_user):
        response = login(client)

        assert response.status_code == 200
        assert response.json()["access_token"]

    def test_login_wrong_password_and_unknown_user_identical(self, client, test_user):
        wrong = login(client, password="wrong")
        unknown = login(client, email="nobody@x.com")

        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.content == unknown.content

    def test_login_missing_fields(self, client):
        response = client.post("/api/auth/login", json={"email": "ana@x.com"})

        assert response.status_code == 400


# =============================================================================
# FORGOT / RESET
# =============================================================================

class TestForgotEndpoint:

    def test_forgot_identical_for_known_and_unknown(self, client, app, test_user):
        app.state.auth_service.expose_reset_url = False

        known = client.post("/api/auth/forgot", json={"email": "ana@x.com"})
        unknown = client.post("/api/auth/forgot", json={"email": "nobody@x.com"})

        assert known.status_code == unknown.status_code == 200
        assert known.content == unknown.content

    def test_forgot_dev_reset_url(self, client, mailer, test_user):
        response = client.post("/api/auth/forgot", json={"email": "ana@x.com"})
        data = response.json()

        assert data["message"].startswith("If that email exists")
        assert data["dev_reset_url"].endswith(mailer.last_token)

    def test_forgot_unknown_omits_dev_field(self, client):
        response = client.post("/api/auth/forgot", json={"email": "nobody@x.com"})

        assert "dev_reset_url" not in response.json()

    def test_forgot_mail_failure_still_ok(self, client, mailer, test_user):
        mailer.fail = True

        response = client.post("/api/auth/forgot", json={"email": "ana@x.com"})

        assert response.status_code == 200
        assert "dev_reset_url" not in response.json()

    def test_forgot_missing_email(self, client):
        response = client.post("/api/auth/forgot", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "Email required"


class TestResetEndpoint:

    def test_reset_with_body_token(self, client, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})

        response = client.post(
            "/api/auth/reset",
            json={"token": mailer.last_token, "password": "newpw"},
        )

        assert response.status_code == 200
        assert response.json() == {"message": "Password updated. You can now log in."}

    def test_reset_with_path_token(self, client, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})

        response = client.post(
            f"/api/auth/reset/{mailer.last_token}",
            json={"newPassword": "newpw"},
        )

        assert response.status_code == 200
        assert login(client, password="newpw").status_code == 200

    def test_body_token_wins_over_path(self, client, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})

        response = client.post(
            f"/api/auth/reset/{'0' * 64}",
            json={"token": mailer.last_token, "new_password": "newpw"},
        )

        assert response.status_code == 200

    def test_reset_twice_fails(self, client, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})
        body = {"token": mailer.last_token, "password": "newpw"}

        assert client.post("/api/auth/reset", json=body).status_code == 200
        second = client.post("/api/auth/reset", json=body)

        assert second.status_code == 400
        assert second.json()["detail"] == "Invalid or expired reset token"

    def test_reset_expired(self, client, clock, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})
        clock.advance(minutes=16)

        response = client.post(
            "/api/auth/reset",
            json={"token": mailer.last_token, "password": "newpw"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired reset token"

    def test_reset_short_token_same_message(self, client):
        response = client.post("/api/auth/reset", json={"token": "abc", "password": "newpw"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired reset token"

    def test_reset_missing_password(self, client):
        response = client.post("/api/auth/reset", json={"token": "f" * 64})

        assert response.status_code == 400
        assert response.json()["detail"] == "New password required"

    def test_reset_does_not_issue_session(self, client, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})

        response = client.post(
            "/api/auth/reset",
            json={"token": mailer.last_token, "password": "newpw"},
        )

        assert "access_token" not in response.json()


# =============================================================================
# UNENCODABLE INPUT
# =============================================================================

# JSON escape for U+D800, written into raw request bodies
JSON_LONE_SURROGATE = "\\ud800"


def post_raw(client, path, body):
    """Post a hand-written JSON body; JSON escapes can carry lone surrogates."""
    return client.post(path, content=body, headers={"Content-Type": "application/json"})


class TestUnencodableInput:
    """Lone surrogates decode from JSON but cannot be encoded as UTF-8."""

    def test_register_rejected(self, client):
        response = post_raw(
            client,
            "/api/auth/register",
            '{"name": "Ana", "email": "ana@x.com", "password": "pw%s"}' % JSON_LONE_SURROGATE,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid input"
        assert login(client).status_code == 401

    def test_login_rejected(self, client, test_user):
        response = post_raw(
            client,
            "/api/auth/login",
            '{"email": "%s@x.com", "password": "pw123"}' % JSON_LONE_SURROGATE,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid input"

    def test_forgot_acknowledged(self, client, mailer, test_user):
        response = post_raw(
            client,
            "/api/auth/forgot",
            '{"email": "ana%s@x.com"}' % JSON_LONE_SURROGATE,
        )

        assert response.status_code == 200
        assert response.json() == {
            "message": "If that email exists, we'll send instructions to reset your password."
        }
        assert mailer.sent == []

    def test_reset_token_rejected(self, client):
        response = post_raw(
            client,
            "/api/auth/reset",
            '{"token": "%s", "password": "newpw"}' % (JSON_LONE_SURROGATE * 64),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired reset token"

    def test_reset_password_rejected(self, client, mailer, test_user):
        client.post("/api/auth/forgot", json={"email": "ana@x.com"})

        response = post_raw(
            client,
            "/api/auth/reset",
            '{"token": "%s", "password": "new%s"}' % (mailer.last_token, JSON_LONE_SURROGATE),
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid input"
        assert login(client).status_code == 200


# =============================================================================
# BEARER GATE
# =============================================================================

class TestCurrentClaim:

    def test_me_with_valid_token(self, client, test_user):
        token = login(client).json()["access_token"]

        response = client.get("/api/auth/me", headers=auth_headers(token))

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(test_user.id)
        assert data["email"] == "ana@x.com"
        assert data["role"] == "user"

    def test_me_without_header(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_me_with_non_bearer_scheme(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401

    def test_me_with_garbage_token(self, client):
        response = client.get("/api/auth/me", headers=auth_headers("totally.invalid.token"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Token validation error"

    def test_me_with_expired_token(self, client, clock, test_user):
        token = login(client).json()["access_token"]
        clock.advance(days=7, seconds=1)

        response = client.get("/api/auth/me", headers=auth_headers(token))

        assert response.status_code == 401


# =============================================================================
# APP
# =============================================================================

class TestApp:

    def test_api_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Request-ID"]


# =============================================================================
# INTEGRATION FLOW TESTS
# =============================================================================

class TestFullAuthFlow:
    """End-to-end scenarios."""

    def test_register_then_login(self, client):
        """
        1. Register Ana
        2. Wrong password is rejected
        3. Right password yields a token whose claim is Ana / user
        """
        registered = register(client, "Ana", "ana@x.com", "pw123")
        assert registered.status_code == 200
        assert registered.json()["access_token"]

        assert login(client, "ana@x.com", "wrong").status_code == 401

        token = login(client, "ana@x.com", "pw123").json()["access_token"]
        me = client.get("/api/auth/me", headers=auth_headers(token)).json()
        assert me["email"] == "ana@x.com"
        assert me["role"] == "user"

    def test_forgot_reset_login(self, client, mailer):
        """
        1. Register Ana
        2. Forgot password, capture the mailed token
        3. Reset to a new password
        4. New password works, old one does not
        """
        register(client, "Ana", "ana@x.com", "pw123")

        assert client.post("/api/auth/forgot", json={"email": "ana@x.com"}).status_code == 200
        token = mailer.last_token

        reset = client.post("/api/auth/reset", json={"token": token, "password": "newpw"})
        assert reset.status_code == 200

        assert login(client, "ana@x.com", "newpw").status_code == 200
        assert login(client, "ana@x.com", "pw123").status_code == 401
