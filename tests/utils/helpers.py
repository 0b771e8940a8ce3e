from typing import Any

from jose import jwt

from helpdesk.core.config import settings


def create_auth_headers(token: str) -> dict[str, str]:
    """Create Authorization headers with Bearer token."""
    return {"Authorization": f"Bearer {token}"}


def decode_jwt_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])


def assert_user_response_valid(data: dict[str, Any]) -> None:
    assert "id" in data
    assert "email" in data
    assert "name" in data
    assert "role" in data
    assert "password" not in data
    assert "passwordHash" not in data
