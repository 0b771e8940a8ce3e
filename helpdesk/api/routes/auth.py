# helpdesk/api/routes/auth.py
from __future__ import annotations

from fastapi import APIRouter, status

from helpdesk.api.deps import DBDep, UserDep
from helpdesk.schemas.auth import AuthOut, LoginIn, RegisterIn, UserOut
from helpdesk.services import auth as auth_service

router = APIRouter()


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterIn, db: DBDep):
    user, token = await auth_service.register(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return AuthOut(user=UserOut.model_validate(user), token=token)


@router.post("/login", response_model=AuthOut)
async def login(payload: LoginIn, db: DBDep):
    user, token = await auth_service.login(db, email=payload.email, password=payload.password)
    return AuthOut(user=UserOut.model_validate(user), token=token)


@router.get("/me", response_model=UserOut)
async def me(current: UserDep):
    return current
