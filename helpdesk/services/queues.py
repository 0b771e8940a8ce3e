"""
Queue directory (черги для маршрутизації заявок)

Інваріант: не більше однієї черги з is_default = true.
Скидання старої default і встановлення нової робиться в одній транзакції сесії,
а частковий унікальний індекс uq_queues_single_default ловить гонку двох запитів.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.core.errors import ConflictError, NotFoundError
from helpdesk.db.models import Queue, Ticket

log = logging.getLogger(__name__)

GENERAL_QUEUE_NAME = "General"
GENERAL_QUEUE_DESCRIPTION = "Default queue for all tickets"

_QUEUE_FIELDS = ("name", "description", "is_default")


async def _clear_default(db: AsyncSession, *, keep_id: int | None = None) -> None:
    stmt = update(Queue).where(Queue.is_default == True)  # noqa: E712
    if keep_id is not None:
        stmt = stmt.where(Queue.id != keep_id)
    await db.execute(stmt.values(is_default=False))


async def _ensure_name_free(db: AsyncSession, name: str, *, exclude_id: int | None = None) -> None:
    stmt = select(Queue.id).where(Queue.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Queue.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ConflictError(f"Queue '{name}' already exists")


async def create_queue(
    db: AsyncSession,
    *,
    name: str,
    description: str | None = None,
    is_default: bool = False,
    commit: bool = True,
) -> Queue:
    name = name.strip()
    await _ensure_name_free(db, name)

    if is_default:
        await _clear_default(db)

    q = Queue(name=name, description=description, is_default=bool(is_default))
    db.add(q)
    if commit:
        await db.commit()
        await db.refresh(q)
    else:
        await db.flush()

    log.info("queue_created", extra={"queue_id": q.id, "queue_name": q.name, "is_default": q.is_default})
    return q


async def list_queues(db: AsyncSession) -> list[Queue]:
    res = await db.execute(select(Queue).order_by(Queue.name.asc()))
    return list(res.scalars().all())


async def get_queue(db: AsyncSession, queue_id: int) -> Queue:
    q = await db.get(Queue, queue_id)
    if not q:
        raise NotFoundError("Queue not found")
    return q


async def update_queue(db: AsyncSession, queue_id: int, patch: Mapping[str, Any]) -> Queue:
    q = await get_queue(db, queue_id)
    # description можна очистити через null; name та is_default із null ігноруються
    data = {
        k: v for k, v in patch.items()
        if k in _QUEUE_FIELDS and (v is not None or k == "description")
    }

    if "name" in data:
        data["name"] = data["name"].strip()
        if data["name"] != q.name:
            await _ensure_name_free(db, data["name"], exclude_id=q.id)

    if data.get("is_default"):
        await _clear_default(db, keep_id=q.id)
        log.info("queue_default_changed", extra={"queue_id": q.id})

    for field, value in data.items():
        setattr(q, field, value)

    await db.commit()
    await db.refresh(q)
    return q


async def get_default_queue(db: AsyncSession) -> Queue:
    res = await db.execute(select(Queue).where(Queue.is_default == True).limit(1))  # noqa: E712
    q = res.scalar_one_or_none()
    if not q:
        raise NotFoundError("No default queue found")
    return q


async def get_or_create_default_queue(db: AsyncSession) -> Queue:
    """Default-черга для нових заявок; якщо її немає, створюємо 'General'."""
    try:
        return await get_default_queue(db)
    except NotFoundError:
        pass

    existing = (
        await db.execute(select(Queue).where(Queue.name == GENERAL_QUEUE_NAME))
    ).scalar_one_or_none()
    if existing is not None:
        # 'General' вже є, але не default: робимо її default
        existing.is_default = True
        await db.flush()
        log.info("queue_default_changed", extra={"queue_id": existing.id})
        return existing

    return await create_queue(
        db,
        name=GENERAL_QUEUE_NAME,
        description=GENERAL_QUEUE_DESCRIPTION,
        is_default=True,
        commit=False,
    )


async def delete_queue(db: AsyncSession, queue_id: int) -> dict[str, Any]:
    q = await get_queue(db, queue_id)
    if q.is_default:
        raise ConflictError("Cannot delete the default queue")

    # заявки з цієї черги переносимо в default; без default видаляти не даємо
    referenced = (
        await db.execute(select(Ticket.id).where(Ticket.queue_id == q.id).limit(1))
    ).first()
    if referenced is not None:
        try:
            default = await get_default_queue(db)
        except NotFoundError:
            raise ConflictError(
                "Queue still has tickets and there is no default queue to move them to"
            ) from None
        res = await db.execute(
            update(Ticket).where(Ticket.queue_id == q.id).values(queue_id=default.id)
        )
        log.info(
            "queue_tickets_reassigned",
            extra={"from_queue_id": q.id, "to_queue_id": default.id, "count": res.rowcount},
        )

    await db.delete(q)
    await db.commit()
    log.info("queue_deleted", extra={"queue_id": queue_id})
    return {"success": True, "message": "Queue deleted successfully"}
