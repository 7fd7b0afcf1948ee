"""
Notification schemas
"""
from datetime import datetime
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict, field_serializer

from app.utils.datetime_utils import iso_local


class NotificationOut(BaseModel):
    id: int
    event_type: str
    payload: Dict[str, Any]
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at")
    def _ser_created_at(self, dt: datetime) -> str:
        return iso_local(dt)


class NotificationListResponse(BaseModel):
    items: List[NotificationOut]
    unread: int
