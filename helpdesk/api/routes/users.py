# helpdesk/api/routes/users.py
from __future__ import annotations

from fastapi import APIRouter

from helpdesk.api.deps import DBDep, UserDep
from helpdesk.schemas.auth import UserOut, UserUpdateSelf
from helpdesk.services import auth as auth_service

router = APIRouter()


@router.get("/me", response_model=UserOut)
async def get_me(current: UserDep):
    return current


@router.put("/me", response_model=UserOut)
async def update_me(payload: UserUpdateSelf, db: DBDep, current: UserDep):
    # роль у UserUpdateSelf відсутня, тож зайве поле role просто відкидається
    return await auth_service.update_user(db, current.id, payload.model_dump(exclude_unset=True))
