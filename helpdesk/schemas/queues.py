# helpdesk/schemas/queues.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from helpdesk.schemas.common import ApiModel


class QueueCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    is_default: bool = False


class QueueUpdate(ApiModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    is_default: Optional[bool] = None


class QueueOut(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    is_default: bool
    created_at: datetime
    updated_at: datetime


class QueueSummary(ApiModel):
    id: int
    name: str


class DeleteOut(ApiModel):
    success: bool
    message: str
