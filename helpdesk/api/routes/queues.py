# helpdesk/api/routes/queues.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from helpdesk.api.deps import DBDep, UserDep, require_admin
from helpdesk.schemas.queues import DeleteOut, QueueCreate, QueueOut, QueueUpdate
from helpdesk.services import queues as queue_service

router = APIRouter()


@router.get("", response_model=list[QueueOut])
async def list_queues(db: DBDep, current: UserDep):
    return await queue_service.list_queues(db)


@router.get("/{queue_id}", response_model=QueueOut)
async def get_queue(queue_id: int, db: DBDep, current: UserDep):
    return await queue_service.get_queue(db, queue_id)


@router.post(
    "",
    response_model=QueueOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin())],
)
async def create_queue(payload: QueueCreate, db: DBDep):
    return await queue_service.create_queue(
        db,
        name=payload.name,
        description=payload.description,
        is_default=payload.is_default,
    )


@router.put("/{queue_id}", response_model=QueueOut, dependencies=[Depends(require_admin())])
async def update_queue(queue_id: int, payload: QueueUpdate, db: DBDep):
    return await queue_service.update_queue(db, queue_id, payload.model_dump(exclude_unset=True))


@router.delete("/{queue_id}", response_model=DeleteOut, dependencies=[Depends(require_admin())])
async def delete_queue(queue_id: int, db: DBDep):
    return await queue_service.delete_queue(db, queue_id)
