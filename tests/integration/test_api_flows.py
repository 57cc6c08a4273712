"""
End-to-end tests of the HTTP API over an in-memory container.
"""

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from social_studio.application.interfaces.notifier import (
    INotifier,
    LeadNotice,
    PasswordResetNotice,
    WelcomeNotice,
)
from social_studio.application.interfaces.repositories import ILeadRepository, IUserRepository
from social_studio.domain.entities import User, UserRole
from social_studio.infrastructure.auth import PasswordService
from social_studio.infrastructure.container import Container
from social_studio.interfaces.api.app import create_app

SIGNUP = {
    "fullName": "Jane Doe",
    "email": "jane@x.com",
    "password": "Secret123!",
    "phone": "555-123-4567",
    "userType": "client",
    "companyName": "Doe Bakery",
    "industry": "Food & Beverage",
}


@pytest.fixture
def container(test_config):
    return Container(test_config)


@pytest.fixture
def client(container):
    return TestClient(create_app(container))


@pytest.fixture
def outbox(container):
    return container.get(INotifier).sent


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def token_from(link):
    return parse_qs(urlparse(link).query)["token"][0]


def login(client, email="jane@x.com", password="Secret123!"):
    return client.post("/api/login", json={"email": email, "password": password})


class TestAccountLifecycle:
    def test_signup_login_reset_flow(self, client, outbox):
        response = client.post("/api/signup", json=SIGNUP)
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["email_verification_required"] is True
        assert body["user"]["email"] == "jane@x.com"
        assert body["user"]["role"] == "client"
        assert body["user"]["profile"] == {
            "company_name": "Doe Bakery",
            "industry": "Food & Beverage",
        }
        assert "password" not in str(body["user"])

        response = login(client)
        assert response.status_code == 200
        session = response.json()
        assert session["token_type"] == "Bearer"
        assert session["two_factor_required"] is False
        assert session["access_token"]

        response = client.post("/api/password/forgot", json={"email": "jane@x.com"})
        assert response.status_code == 200
        reset_token = token_from(
            [n for n in outbox if isinstance(n, PasswordResetNotice)][-1].reset_link
        )

        response = client.post(
            "/api/password/reset",
            json={"token": reset_token, "new_password": "NewSecret456!"},
        )
        assert response.status_code == 200

        assert login(client).status_code == 401
        assert login(client, password="NewSecret456!").status_code == 200

        response = client.post(
            "/api/password/reset",
            json={"token": reset_token, "new_password": "Another789!"},
        )
        assert response.status_code == 401
        assert response.json()["reason"] == "superseded"

    def test_duplicate_signup(self, client):
        client.post("/api/signup", json=SIGNUP)

        response = client.post("/api/signup", json={**SIGNUP, "email": "JANE@X.com"})

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": "An account with this email already exists",
        }

    def test_intern_signup_accepts_form_shapes(self, client):
        response = client.post(
            "/api/signup",
            json={
                "fullName": "Ana Lopez",
                "email": "ana@x.com",
                "password": "Secret123!",
                "phone": "555-987-6543",
                "userType": "intern",
                "university": "State University",
                "graduationYear": 2027,
                "skills": "SEO, Copywriting, ",
            },
        )

        assert response.status_code == 201
        assert response.json()["user"]["profile"] == {
            "university": "State University",
            "graduation_year": "2027",
            "skills": ["SEO", "Copywriting"],
        }

    def test_signup_validation_errors(self, client):
        response = client.post("/api/signup", json={**SIGNUP, "companyName": "", "phone": "1"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Please provide a valid phone number (at least 10 digits)"
        assert "Company name must be at least 2 characters" in body["errors"]

    def test_malformed_body(self, client):
        response = client.post("/api/signup", json={**SIGNUP, "email": "not-an-email"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("email:")

    def test_verify_email(self, client, outbox):
        client.post("/api/signup", json=SIGNUP)
        token = token_from(outbox[0].verification_link)

        for _ in range(2):
            response = client.post("/api/verify-email", json={"token": token})
            assert response.status_code == 200

        session = login(client).json()["access_token"]
        assert client.get("/api/me", headers=bearer(session)).json()["email_verified"] is True

    def test_resend_and_forgot_do_not_reveal_accounts(self, client):
        client.post("/api/signup", json=SIGNUP)

        for path in ("/api/password/forgot", "/api/verify-email/resend"):
            known = client.post(path, json={"email": "jane@x.com"})
            unknown = client.post(path, json={"email": "nobody@x.com"})
            assert known.status_code == unknown.status_code == 200
            assert known.json() == unknown.json()

    def test_login_errors_are_uniform(self, client):
        client.post("/api/signup", json=SIGNUP)

        wrong_password = login(client, password="Wrong123!")
        unknown_email = login(client, email="nobody@x.com")

        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert wrong_password.headers["WWW-Authenticate"] == "Bearer"

    def test_change_password(self, client):
        client.post("/api/signup", json=SIGNUP)
        session = login(client).json()["access_token"]

        response = client.post(
            "/api/password/change",
            json={"current_password": "Secret123!", "new_password": "NewSecret456!"},
            headers=bearer(session),
        )

        assert response.status_code == 200
        assert login(client, password="NewSecret456!").status_code == 200

    def test_password_whitespace_is_kept(self, client):
        response = client.post(
            "/api/signup",
            json={**SIGNUP, "fullName": "  Jane Doe  ", "password": "  Secret123!  "},
        )
        assert response.status_code == 201
        assert response.json()["user"]["full_name"] == "Jane Doe"

        assert login(client, password="Secret123!").status_code == 401
        assert login(client, password="  Secret123!  ").status_code == 200

        session = login(client, password="  Secret123!  ").json()["access_token"]
        response = client.post(
            "/api/password/change",
            json={"current_password": "  Secret123!  ", "new_password": " NewSecret456! "},
            headers=bearer(session),
        )
        assert response.status_code == 200
        assert login(client, password="NewSecret456!").status_code == 401
        assert login(client, password=" NewSecret456! ").status_code == 200


class TestAuthenticationErrors:
    def test_me_requires_session(self, client):
        response = client.get("/api/me")

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Authorization required"}
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_demo_token_rejected(self, client):
        response = client.get("/api/me", headers=bearer("demo-token"))

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid session token"

    def test_verification_token_is_not_a_session(self, client, outbox):
        client.post("/api/signup", json=SIGNUP)
        verification = token_from(outbox[0].verification_link)

        assert client.get("/api/me", headers=bearer(verification)).status_code == 401


class TestTwoFactorOverApi:
    def test_enroll_and_log_in(self, client, totp):
        client.post("/api/signup", json=SIGNUP)
        session = login(client).json()["access_token"]

        setup = client.post("/api/two-factor/setup", headers=bearer(session)).json()
        assert setup["provisioning_uri"].startswith("otpauth://totp/")

        response = client.post(
            "/api/two-factor/confirm",
            json={"code": totp(setup["secret"])},
            headers=bearer(session),
        )
        assert response.status_code == 200
        backup_codes = response.json()["backup_codes"]
        assert len(backup_codes) == 10

        challenge = login(client).json()
        assert challenge["two_factor_required"] is True
        assert challenge["access_token"] is None

        response = client.post(
            "/api/login/two-factor",
            json={
                "challenge_token": challenge["challenge_token"],
                "code": totp(setup["secret"], 1),
            },
        )
        assert response.status_code == 200
        session = response.json()["access_token"]

        response = client.post(
            "/api/login/two-factor",
            json={"challenge_token": challenge["challenge_token"], "code": backup_codes[0]},
        )
        assert response.status_code == 200

        status = client.get("/api/two-factor/backup-codes", headers=bearer(session)).json()
        assert status == {"two_factor_enabled": True, "remaining_codes": 9}

    def test_wrong_code_and_state_errors(self, client, totp):
        client.post("/api/signup", json=SIGNUP)
        session = login(client).json()["access_token"]

        response = client.post(
            "/api/two-factor/confirm", json={"code": "123456"}, headers=bearer(session)
        )
        assert response.status_code == 409

        setup = client.post("/api/two-factor/setup", headers=bearer(session)).json()
        wrong = "000000" if totp(setup["secret"]) != "000000" else "111111"
        response = client.post(
            "/api/two-factor/confirm", json={"code": wrong}, headers=bearer(session)
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid two-factor code"

    def test_disable_requires_password(self, client, totp):
        client.post("/api/signup", json=SIGNUP)
        session = login(client).json()["access_token"]
        setup = client.post("/api/two-factor/setup", headers=bearer(session)).json()
        client.post(
            "/api/two-factor/confirm",
            json={"code": totp(setup["secret"])},
            headers=bearer(session),
        )

        response = client.post(
            "/api/two-factor/disable", json={"password": "Wrong123!"}, headers=bearer(session)
        )
        assert response.status_code == 401

        response = client.post(
            "/api/two-factor/disable", json={"password": "Secret123!"}, headers=bearer(session)
        )
        assert response.status_code == 200
        assert login(client).json()["two_factor_required"] is False


class TestLeadEndpoints:
    def test_prototype_request(self, client, outbox):
        response = client.post(
            "/api/prototype-request",
            json={
                "name": "Sam",
                "email": "sam@x.com",
                "business": "Sam's Shop",
                "industry": "Retail",
            },
        )

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["message"] == "Prototype request submitted successfully"
        assert isinstance(outbox[-1], LeadNotice)

    def test_honeypot(self, client, container):
        response = client.post(
            "/api/prototype-request",
            json={
                "name": "Sam",
                "email": "sam@x.com",
                "business": "Sam's Shop",
                "industry": "Retail",
                "company_website": "http://spam.example",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid submission"
        assert container.get(ILeadRepository).list_recent() == []

    def test_internship_application(self, client):
        response = client.post(
            "/api/internship-application",
            json={
                "name": "Ana Lopez",
                "email": "ana@x.com",
                "phone": "555-987-6543",
                "track": "Design",
                "portfolio_or_linkedin": "https://ana.design",
                "availability": "Summer",
                "about": "Designer who loves branding work.",
            },
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Application submitted successfully"

    def test_contact_message_validation(self, client):
        response = client.post(
            "/api/contact-message", json={"name": "Lee", "email": "lee@x.com", "message": "Hi"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Message must be at least 10 characters"

    def test_admin_lists_leads(self, client, container):
        client.post(
            "/api/contact-message",
            json={"name": "Lee", "email": "lee@x.com", "message": "Do you work with nonprofits?"},
        )
        admin = User(
            email="admin@x.com",
            password_hash=PasswordService(rounds=4).hash_password("AdminPass1!"),
            role=UserRole.ADMIN,
        )
        container.get(IUserRepository).add(admin)
        client.post("/api/signup", json=SIGNUP)

        client_session = login(client).json()["access_token"]
        admin_session = login(client, "admin@x.com", "AdminPass1!").json()["access_token"]

        assert client.get("/api/leads", headers=bearer(client_session)).status_code == 403

        response = client.get("/api/leads", headers=bearer(admin_session))
        assert response.status_code == 200
        [lead] = response.json()
        assert lead["kind"] == "contact_message"
        assert lead["email"] == "lee@x.com"


class TestOperationalEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_request_id_round_trip(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-abc"})

        assert response.headers["X-Request-ID"] == "req-abc"

    def test_unexpected_errors_are_hidden(self, container):
        broken = MagicMock()
        broken.add.side_effect = RuntimeError("database exploded")
        container.register(ILeadRepository, broken)
        client = TestClient(create_app(container), raise_server_exceptions=False)

        response = client.post(
            "/api/contact-message",
            json={"name": "Lee", "email": "lee@x.com", "message": "Do you work with nonprofits?"},
        )

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Something went wrong. Please try again.",
        }
        assert "exploded" not in response.text

    def test_welcome_email_sent_on_signup(self, client, outbox):
        client.post("/api/signup", json=SIGNUP)

        assert isinstance(outbox[0], WelcomeNotice)
        assert outbox[0].verification_link.startswith(
            "https://socialstudio.example.com/verify-email?token="
        )
