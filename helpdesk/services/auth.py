# helpdesk/services/auth.py
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.core.errors import ConflictError, NotFoundError, UnauthorizedError
from helpdesk.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from helpdesk.db.models import RoleEnum as Role, User

log = logging.getLogger(__name__)

# одне повідомлення і для "нема такого email", і для "невірний пароль"
INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == normalize_email(email)))
    return res.scalar_one_or_none()


def make_token_for_user(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        role=user.role.value,
        secret=settings.jwt_secret,
        expires_minutes=settings.jwt_expires_min,
        algorithm=settings.jwt_alg,
    )


async def register(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    role: Role | str | None = None,
) -> tuple[User, str]:
    email = normalize_email(email)
    if await get_user_by_email(db, email):
        raise ConflictError("User already exists with this email")

    if role is None or not settings.allow_role_on_signup:
        role = Role.customer

    user = User(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role=Role(role),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    log.info("user_registered", extra={"user_id": user.id, "role": user.role.value})
    return user, make_token_for_user(user)


async def login(db: AsyncSession, *, email: str, password: str) -> tuple[User, str]:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password or "", user.password_hash):
        log.info("login_failed")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return user, make_token_for_user(user)


async def verify_token(db: AsyncSession, token: str) -> User:
    try:
        payload = decode_token(token, settings.jwt_secret, algorithm=settings.jwt_alg)
        user_id = int(payload["sub"])
    except (ValueError, KeyError, TypeError):
        raise UnauthorizedError("Invalid token.") from None

    user = await db.get(User, user_id)
    if not user:
        raise UnauthorizedError("Invalid token. User not found.")
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


async def update_user(db: AsyncSession, user_id: int, patch: Mapping[str, Any]) -> User:
    """Оновлення профілю. Роль цим шляхом не змінюється."""
    user = await get_user(db, user_id)

    if patch.get("name"):
        user.name = patch["name"].strip()

    if patch.get("email"):
        email = normalize_email(patch["email"])
        if email != user.email:
            other = await get_user_by_email(db, email)
            if other is not None:
                raise ConflictError("User already exists with this email")
            user.email = email

    if patch.get("password"):
        user.password_hash = hash_password(patch["password"])

    await db.commit()
    await db.refresh(user)
    return user

