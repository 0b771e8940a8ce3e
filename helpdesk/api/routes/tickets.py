# helpdesk/api/routes/tickets.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from helpdesk.api.deps import DBDep, UserDep, require_staff
from helpdesk.db.models import PriorityEnum as Priority, Ticket, TicketStatusEnum as Status, User
from helpdesk.schemas.tickets import (
    AssignIn,
    CommentCreate,
    CommentOut,
    MoveQueueIn,
    TicketCreate,
    TicketOut,
    TicketPageOut,
    TicketUpdate,
)
from helpdesk.services import policy
from helpdesk.services import tickets as ticket_service

router = APIRouter()


def _ticket_out(current: User, t: Ticket) -> TicketOut:
    """Проєкція для конкретного глядача: клієнт не бачить внутрішніх коментарів."""
    out = TicketOut.model_validate(t)
    comments = [CommentOut.model_validate(c) for c in policy.visible_comments(current, t.comments)]
    return out.model_copy(update={"comments": comments})


@router.get("", response_model=TicketPageOut)
async def list_tickets(
    db: DBDep,
    current: UserDep,
    status_: list[Status] | None = Query(default=None, alias="status"),
    priority: list[Priority] | None = Query(default=None),
    queue: int | None = Query(default=None),
    assignee: int | None = Query(default=None),
    customer: int | None = Query(default=None),
    search: str | None = Query(default=None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
):
    scoped = policy.scope_ticket_filters(
        current,
        {
            "status": tuple(status_ or ()),
            "priority": tuple(priority or ()),
            "queue_id": queue,
            "assignee_id": assignee,
            "customer_id": customer,
            "search": search,
        },
    )
    result = await ticket_service.list_tickets(
        db,
        ticket_service.TicketFilters(**scoped),
        page=page,
        page_size=limit,
    )
    return TicketPageOut(
        items=[_ticket_out(current, t) for t in result.items],
        total=result.total,
        page=result.page,
        pages=result.pages,
    )


@router.get("/{ticket_id}", response_model=TicketOut)
async def get_ticket(ticket_id: int, db: DBDep, current: UserDep):
    t = await ticket_service.get_ticket(db, ticket_id)
    policy.ensure_can_view_ticket(current, t)
    return _ticket_out(current, t)


@router.post("", response_model=TicketOut, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreate, db: DBDep, current: UserDep):
    t = await ticket_service.create_ticket(
        db,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        customer_id=current.id,
        queue_id=payload.queue_id,
        tags=payload.tags,
    )
    return _ticket_out(current, t)


@router.put("/{ticket_id}", response_model=TicketOut)
async def update_ticket(ticket_id: int, payload: TicketUpdate, db: DBDep, current: UserDep):
    patch = payload.as_patch()
    existing = await ticket_service.get_ticket(db, ticket_id)
    policy.ensure_can_update_ticket(current, existing, patch.keys())
    t = await ticket_service.update_ticket(db, ticket_id, patch)
    return _ticket_out(current, t)


@router.post("/{ticket_id}/comments", response_model=TicketOut)
async def add_comment(ticket_id: int, payload: CommentCreate, db: DBDep, current: UserDep):
    policy.ensure_can_author_internal(current, payload.is_internal)
    existing = await ticket_service.get_ticket(db, ticket_id)
    policy.ensure_can_comment(current, existing, payload.is_internal)
    t = await ticket_service.add_comment(
        db,
        ticket_id,
        content=payload.content,
        author_id=current.id,
        is_internal=payload.is_internal,
    )
    return _ticket_out(current, t)


@router.put("/{ticket_id}/assign", response_model=TicketOut, dependencies=[Depends(require_staff())])
async def assign_ticket(ticket_id: int, payload: AssignIn, db: DBDep, current: UserDep):
    t = await ticket_service.assign_ticket(db, ticket_id, payload.assignee_id)
    return _ticket_out(current, t)


@router.put("/{ticket_id}/queue", response_model=TicketOut, dependencies=[Depends(require_staff())])
async def move_ticket_queue(ticket_id: int, payload: MoveQueueIn, db: DBDep, current: UserDep):
    t = await ticket_service.move_to_queue(db, ticket_id, payload.queue_id)
    return _ticket_out(current, t)
