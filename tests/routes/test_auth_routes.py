import pytest
from httpx import AsyncClient

from helpdesk.core.config import settings
from helpdesk.core.security import create_access_token
from tests.utils.helpers import assert_user_response_valid, create_auth_headers, decode_jwt_token


class TestRegister:
    @pytest.mark.asyncio
    async def test_should_register_and_return_token(self, test_client: AsyncClient):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Jane Doe", "email": "Jane@Example.com", "password": "secret123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert_user_response_valid(data["user"])
        assert data["user"]["email"] == "jane@example.com"
        assert data["user"]["role"] == "customer"
        assert "createdAt" in data["user"]

        payload = decode_jwt_token(data["token"])
        assert payload["sub"] == str(data["user"]["id"])
        assert payload["role"] == "customer"

    @pytest.mark.asyncio
    async def test_duplicate_email_is_conflict(self, test_client: AsyncClient, test_customer):
        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Again", "email": test_customer.email, "password": "secret123"},
        )

        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_role_is_ignored_when_signup_roles_disabled(self, test_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "allow_role_on_signup", False)

        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Sneaky", "email": "sneaky@example.com", "password": "secret123", "role": "admin"},
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "customer"

    @pytest.mark.asyncio
    async def test_role_is_honoured_when_signup_roles_enabled(self, test_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "allow_role_on_signup", True)

        response = await test_client.post(
            "/api/auth/register",
            json={"name": "Agent", "email": "new-agent@example.com", "password": "secret123", "role": "agent"},
        )

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "agent"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"name": "No Email", "password": "secret123"},
            {"name": "Bad Email", "email": "not-an-email", "password": "secret123"},
            {"name": "Short", "email": "short@example.com", "password": "123"},
        ],
    )
    async def test_invalid_payload_is_400(self, test_client: AsyncClient, body):
        response = await test_client.post("/api/auth/register", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["errors"]


class TestLogin:
    @pytest.mark.asyncio
    async def test_should_login_with_valid_credentials(self, test_client: AsyncClient, test_customer):
        response = await test_client.post(
            "/api/auth/login", json={"email": "customer@example.com", "password": "testpass123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == test_customer.id
        assert decode_jwt_token(data["token"])["sub"] == str(test_customer.id)

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_look_the_same(self, test_client: AsyncClient, test_customer):
        unknown = await test_client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "testpass123"}
        )
        wrong = await test_client.post(
            "/api/auth/login", json={"email": "customer@example.com", "password": "wrong-password"}
        )

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()


class TestCurrentUser:
    @pytest.mark.asyncio
    async def test_me_returns_current_user(self, test_client: AsyncClient, test_agent, agent_headers):
        response = await test_client.get("/api/auth/me", headers=agent_headers)

        assert response.status_code == 200
        data = response.json()
        assert_user_response_valid(data)
        assert data["email"] == test_agent.email
        assert data["role"] == "agent"

    @pytest.mark.asyncio
    async def test_missing_token(self, test_client: AsyncClient):
        response = await test_client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_malformed_header(self, test_client: AsyncClient):
        response = await test_client.get("/api/auth/me", headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_signed_with_other_secret(self, test_client: AsyncClient, test_customer):
        forged = create_access_token(subject=str(test_customer.id), role="admin", secret="not-the-secret")

        response = await test_client.get("/api/auth/me", headers=create_auth_headers(forged))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, test_client: AsyncClient):
        token = create_access_token(subject="9999", role="customer", secret=settings.jwt_secret)

        response = await test_client.get("/api/auth/me", headers=create_auth_headers(token))

        assert response.status_code == 401


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_role_in_profile_update_is_ignored(self, test_client: AsyncClient, customer_headers):
        response = await test_client.put(
            "/api/users/me", json={"name": "Renamed", "role": "admin"}, headers=customer_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Renamed"
        assert data["role"] == "customer"

    @pytest.mark.asyncio
    async def test_new_password_works_for_login(self, test_client: AsyncClient, customer_headers):
        response = await test_client.put("/api/users/me", json={"password": "brand-new-pass"}, headers=customer_headers)
        assert response.status_code == 200

        login = await test_client.post(
            "/api/auth/login", json={"email": "customer@example.com", "password": "brand-new-pass"}
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_email_taken_by_someone_else(self, test_client: AsyncClient, customer_headers, test_agent):
        response = await test_client.put("/api/users/me", json={"email": test_agent.email}, headers=customer_headers)

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_get_profile(self, test_client: AsyncClient, customer_headers, test_customer):
        response = await test_client.get("/api/users/me", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["id"] == test_customer.id


@pytest.mark.asyncio
async def test_health(test_client: AsyncClient):
    response = await test_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
