# helpdesk/schemas/tickets.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import AliasChoices, ConfigDict, Field

from helpdesk.db.models import PriorityEnum as Priority, TicketStatusEnum as Status
from helpdesk.schemas.auth import UserSummary
from helpdesk.schemas.common import ApiModel
from helpdesk.schemas.queues import QueueSummary


class TicketCreate(ApiModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    priority: Optional[Priority] = None
    queue_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("queue", "queueId", "queue_id"))
    tags: List[str] = Field(default_factory=list)


class TicketUpdate(ApiModel):
    # невідомі ключі зберігаємо: політика доступу дивиться на всі передані поля
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    status: Optional[Status] = None
    priority: Optional[Priority] = None
    tags: Optional[List[str]] = None
    assignee_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("assignee", "assigneeId", "assignee_id")
    )
    queue_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("queue", "queueId", "queue_id"))

    def as_patch(self) -> dict[str, Any]:
        """Лише передані поля: відомі під snake_case іменами, решта як є."""
        patch = {name: getattr(self, name) for name in self.model_fields_set if name in type(self).model_fields}
        patch.update(self.model_extra or {})
        return patch


class CommentCreate(ApiModel):
    content: str = Field(..., min_length=1, max_length=10_000)
    is_internal: bool = False


class AssignIn(ApiModel):
    assignee_id: int = Field(..., validation_alias=AliasChoices("assigneeId", "assignee_id", "assignee"))


class MoveQueueIn(ApiModel):
    queue_id: int = Field(..., validation_alias=AliasChoices("queueId", "queue_id", "queue"))


class CommentOut(ApiModel):
    id: int
    content: str
    author: UserSummary
    is_internal: bool
    created_at: datetime


class TicketOut(ApiModel):
    id: int
    title: str
    description: str
    status: Status
    priority: Priority
    customer: UserSummary
    assignee: Optional[UserSummary] = None
    queue: QueueSummary
    tags: List[str] = Field(default_factory=list)
    comments: List[CommentOut] = Field(default_factory=list)
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TicketPageOut(ApiModel):
    items: List[TicketOut]
    total: int
    page: int
    pages: int
