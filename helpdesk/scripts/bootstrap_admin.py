from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.config import settings
from helpdesk.core.logging import setup_logging
from helpdesk.core.security import hash_password
from helpdesk.db.models import RoleEnum as Role, User
from helpdesk.db.session import AsyncSessionLocal, engine
from helpdesk.services import queues as queue_service

log = logging.getLogger("helpdesk.bootstrap")


# ---------- helpers ----------
async def _get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def ensure_user(
    db: AsyncSession,
    *,
    email: str,
    role: Role,
    password_plain: Optional[str],
    name: str,
    update_role_if_different: bool = True,
) -> User:
    """
    Якщо користувача немає, створює його (потрібен password_plain).
    Якщо є, за потреби оновлює роль (пароль не чіпає).
    """
    email = email.strip().lower()
    user = await _get_user_by_email(db, email)

    if user is None:
        if not password_plain:
            raise ValueError(f"Не задано пароль для нового користувача {email}")
        user = User(email=email, password_hash=hash_password(password_plain), role=role, name=name)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        log.info("[bootstrap] створено користувача: %s (%s)", email, role.value)
        return user

    if update_role_if_different and user.role != role:
        await db.execute(update(User).where(User.id == user.id).values(role=role))
        await db.commit()
        await db.refresh(user)
        log.info("[bootstrap] оновлено роль: %s -> %s", email, role.value)
    else:
        log.info("[bootstrap] існує без змін: %s (%s)", email, user.role.value)

    return user


async def seed(
    db: AsyncSession,
    *,
    admin_email: str,
    admin_password: str,
    admin_name: str,
    make_demo_agent: bool,
    make_demo_customer: bool,
) -> None:
    # 1) admin
    await ensure_user(db, email=admin_email, role=Role.admin, password_plain=admin_password, name=admin_name)

    # 2) demo agent
    if make_demo_agent:
        await ensure_user(db, email="agent@example.com", role=Role.agent, password_plain="Agent123!", name="Agent")

    # 3) demo customer
    if make_demo_customer:
        await ensure_user(
            db, email="customer@example.com", role=Role.customer, password_plain="Customer123!", name="Customer"
        )

    # 4) default-черга, щоб перша заявка не створювала її "на льоту"
    await queue_service.get_or_create_default_queue(db)
    await db.commit()

    log.info("[bootstrap] завершено")


async def _run(args: argparse.Namespace) -> None:
    async with AsyncSessionLocal() as db:
        await seed(
            db,
            admin_email=args.email,
            admin_password=args.password,
            admin_name=args.name,
            make_demo_agent=args.demo_agent,
            make_demo_customer=args.demo_customer,
        )
    await engine.dispose()


def _parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Seed admin та демо-користувачів")
    p.add_argument("email", nargs="?", default=settings.admin_email, help="Email адміністратора")
    p.add_argument("password", nargs="?", default=settings.admin_password, help="Пароль адміністратора")
    p.add_argument("-n", "--name", default=settings.admin_name, help="Ім'я адміністратора")

    # Тумблери демо-користувачів
    p.add_argument("--demo-agent", dest="demo_agent", action="store_true", help="Створити demo-агента")
    p.add_argument("--no-demo-agent", dest="demo_agent", action="store_false", help="Не створювати demo-агента")
    p.set_defaults(demo_agent=settings.create_demo_agent)

    p.add_argument("--demo-customer", dest="demo_customer", action="store_true", help="Створити demo-клієнта")
    p.add_argument("--no-demo-customer", dest="demo_customer", action="store_false", help="Не створювати demo-клієнта")
    p.set_defaults(demo_customer=settings.create_demo_customer)

    return p.parse_args()


def main() -> None:
    setup_logging(settings.log_level)
    args = _parse_args()

    if not args.email:
        raise SystemExit("Помилка: не задано email адміністратора (аргумент або ADMIN_EMAIL у .env)")
    if not args.password:
        raise SystemExit("Помилка: не задано пароль адміністратора (аргумент або ADMIN_PASSWORD у .env)")

    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
