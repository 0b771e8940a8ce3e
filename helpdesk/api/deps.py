from __future__ import annotations

from typing import Annotated
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import ForbiddenError, UnauthorizedError
from helpdesk.db.session import get_session
from helpdesk.db.models import RoleEnum as Role, User
from helpdesk.services import auth as auth_service

# auto_error=False: відсутній/кривий заголовок віддаємо як 401 нашим форматом
bearer_scheme = HTTPBearer(auto_error=False)

# Тип для DI сесії БД
DBDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_user(
    db: DBDep,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> User:
    """
    Декодує Bearer JWT і дістає користувача з БД.
    """
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise UnauthorizedError("Access denied. No token provided.")
    return await auth_service.verify_token(db, credentials.credentials)


UserDep = Annotated[User, Depends(get_current_user)]


def require_role(*allowed: Role):
    """
    Пускає лише користувачів, чия роль входить у перелік allowed.
    Приклад: @router.put(..., dependencies=[Depends(require_role(Role.admin))])
    """
    allowed_set = set(allowed)

    async def _guard(current: UserDep) -> User:
        if current.role not in allowed_set:
            raise ForbiddenError(f"Role {current.role.value} is not authorized to access this resource")
        return current

    return _guard


def require_staff():
    return require_role(Role.admin, Role.agent)


def require_admin():
    return require_role(Role.admin)
