# helpdesk/schemas/auth.py
from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from helpdesk.db.models import RoleEnum as Role
from helpdesk.schemas.common import ApiModel


class RegisterIn(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Role | None = None


class LoginIn(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(ApiModel):
    id: int
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime


class UserSummary(ApiModel):
    id: int
    name: str
    email: str


class AuthOut(ApiModel):
    user: UserOut
    token: str


class UserUpdateSelf(ApiModel):
    # role свідомо відсутній: через профіль його не змінити
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)
