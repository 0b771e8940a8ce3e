"""
Tickets service (життєвий цикл заявок)

Тут живуть створення заявки з вибором default-черги, фільтри списку,
позначки часу переходів у resolved/closed, коментарі, призначення та перенос між чергами.
Перевірки прав живуть у services.policy, роутери викликають їх до цих функцій.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.core.errors import NotFoundError, ValidationError
from helpdesk.db.models import (
    Comment,
    PriorityEnum as Priority,
    Queue,
    Ticket,
    TicketStatusEnum as Status,
    User,
    utcnow,
)
from helpdesk.services import queues as queue_service

log = logging.getLogger(__name__)

# поля, які взагалі можна змінити через update_ticket
_UPDATABLE = ("title", "description", "status", "priority", "tags", "assignee_id", "queue_id")


@dataclass
class TicketFilters:
    status: Sequence[Status] = field(default_factory=tuple)
    priority: Sequence[Priority] = field(default_factory=tuple)
    queue_id: int | None = None
    assignee_id: int | None = None
    customer_id: int | None = None
    search: str | None = None


@dataclass
class TicketPage:
    items: list[Ticket]
    total: int
    page: int
    pages: int


def _with_refs(stmt: Select) -> Select:
    """Підвантажує customer/assignee/queue та авторів коментарів для відповіді."""
    return stmt.options(
        selectinload(Ticket.customer),
        selectinload(Ticket.assignee),
        selectinload(Ticket.queue),
        selectinload(Ticket.comments).selectinload(Comment.author),
    ).execution_options(populate_existing=True)


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    seen: dict[str, None] = {}
    for tag in tags or ():
        tag = str(tag).strip()
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


async def _require_user(db: AsyncSession, user_id: int, *, what: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError(f"{what.capitalize()} not found")
    return user


async def _get_plain(db: AsyncSession, ticket_id: int) -> Ticket:
    t = await db.get(Ticket, ticket_id)
    if not t:
        raise NotFoundError("Ticket not found")
    return t


async def get_ticket(db: AsyncSession, ticket_id: int) -> Ticket:
    t = (await db.execute(_with_refs(select(Ticket).where(Ticket.id == ticket_id)))).scalar_one_or_none()
    if not t:
        raise NotFoundError("Ticket not found")
    return t


async def create_ticket(
    db: AsyncSession,
    *,
    title: str,
    description: str,
    customer_id: int,
    priority: Priority | str | None = None,
    queue_id: int | None = None,
    tags: Iterable[str] | None = None,
) -> Ticket:
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    if not description or not description.strip():
        raise ValidationError("Description is required", field="description")
    if customer_id is None or await db.get(User, customer_id) is None:
        raise ValidationError("Customer not found", field="customer")

    if queue_id is None:
        queue = await queue_service.get_or_create_default_queue(db)
    else:
        queue = await db.get(Queue, queue_id)
        if queue is None:
            raise ValidationError("Queue not found", field="queue")

    t = Ticket(
        title=title.strip(),
        description=description,
        priority=Priority(priority) if priority else Priority.medium,
        status=Status.new,
        customer_id=customer_id,
        queue_id=queue.id,
        tags=normalize_tags(tags),
    )
    db.add(t)
    await db.commit()

    log.info("ticket_created", extra={"ticket_id": t.id, "customer_id": customer_id, "queue_id": queue.id})
    return await get_ticket(db, t.id)


async def list_tickets(
    db: AsyncSession,
    filters: TicketFilters,
    *,
    page: int = 1,
    page_size: int = 10,
) -> TicketPage:
    page = max(page, 1)
    page_size = max(page_size, 1)

    q = select(Ticket)
    if filters.status:
        q = q.where(Ticket.status.in_(list(filters.status)))
    if filters.priority:
        q = q.where(Ticket.priority.in_(list(filters.priority)))
    if filters.queue_id is not None:
        q = q.where(Ticket.queue_id == filters.queue_id)
    if filters.assignee_id is not None:
        q = q.where(Ticket.assignee_id == filters.assignee_id)
    if filters.customer_id is not None:
        q = q.where(Ticket.customer_id == filters.customer_id)
    if filters.search:
        term = filters.search.strip().lower()
        if term:
            q = q.where(
                or_(
                    func.lower(Ticket.title).contains(term, autoescape=True),
                    func.lower(Ticket.description).contains(term, autoescape=True),
                )
            )

    total = (await db.execute(q.with_only_columns(func.count(), maintain_column_froms=True))).scalar_one()

    rows = (
        await db.execute(
            _with_refs(q)
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )
    ).scalars().all()

    return TicketPage(
        items=list(rows),
        total=int(total or 0),
        page=page,
        pages=math.ceil(total / page_size) if total else 0,
    )


def _stamp_transition(t: Ticket, new_status: Status) -> None:
    """resolved_at/closed_at ставимо при кожному вході у відповідний статус."""
    if new_status == t.status:
        return
    now = utcnow()
    if new_status == Status.resolved:
        t.resolved_at = now
    elif new_status == Status.closed:
        t.closed_at = now


async def update_ticket(db: AsyncSession, ticket_id: int, patch: Mapping[str, Any]) -> Ticket:
    """
    Застосовує патч. comments і невідомі ключі мовчки ігноруються,
    customer змінити не можна.
    """
    t = await _get_plain(db, ticket_id)
    data = {k: v for k, v in patch.items() if k in _UPDATABLE}

    for key in ("title", "description", "status", "priority", "queue_id"):
        if key in data and data[key] is None:
            data.pop(key)

    if "title" in data and not str(data["title"]).strip():
        raise ValidationError("Title cannot be empty", field="title")
    if "description" in data and not str(data["description"]).strip():
        raise ValidationError("Description cannot be empty", field="description")
    if data.get("assignee_id") is not None:
        await _require_user(db, data["assignee_id"], what="assignee")
    if "queue_id" in data:
        await queue_service.get_queue(db, data["queue_id"])

    old_status = t.status
    if "status" in data:
        new_status = Status(data.pop("status"))
        _stamp_transition(t, new_status)
        t.status = new_status
    if "priority" in data:
        t.priority = Priority(data.pop("priority"))
    if "tags" in data:
        t.tags = normalize_tags(data.pop("tags"))
    for key, value in data.items():
        setattr(t, key, value)

    await db.commit()

    if t.status != old_status:
        log.info(
            "ticket_status_changed",
            extra={"ticket_id": t.id, "from": old_status.value, "to": t.status.value},
        )
    return await get_ticket(db, t.id)


async def add_comment(
    db: AsyncSession,
    ticket_id: int,
    *,
    content: str,
    author_id: int,
    is_internal: bool = False,
) -> Ticket:
    if not content or not content.strip():
        raise ValidationError("Comment content is required", field="content")
    t = await _get_plain(db, ticket_id)

    db.add(
        Comment(
            ticket_id=t.id,
            author_id=author_id,
            content=content,
            is_internal=bool(is_internal),
            created_at=utcnow(),
        )
    )
    t.updated_at = utcnow()
    await db.commit()

    log.info("ticket_commented", extra={"ticket_id": t.id, "author_id": author_id, "internal": bool(is_internal)})
    return await get_ticket(db, t.id)


async def assign_ticket(db: AsyncSession, ticket_id: int, assignee_id: int) -> Ticket:
    t = await _get_plain(db, ticket_id)
    await _require_user(db, assignee_id, what="assignee")

    t.assignee_id = assignee_id
    # нова заявка при призначенні переходить у open; інші статуси не чіпаємо
    if t.status == Status.new:
        t.status = Status.open
    await db.commit()

    log.info("ticket_assigned", extra={"ticket_id": t.id, "assignee_id": assignee_id, "status": t.status.value})
    return await get_ticket(db, t.id)


async def move_to_queue(db: AsyncSession, ticket_id: int, queue_id: int) -> Ticket:
    queue = await queue_service.get_queue(db, queue_id)
    t = await _get_plain(db, ticket_id)

    t.queue_id = queue.id
    await db.commit()

    log.info("ticket_moved", extra={"ticket_id": t.id, "queue_id": queue.id})
    return await get_ticket(db, t.id)
