"""Notification schemas."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from ekko.models.notification import NotificationType


class NotificationRead(BaseModel):
    id: int
    type: NotificationType
    user_id: int
    actor_id: int | None
    entity_id: int | None
    entity_type: str | None
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationPage(BaseModel):
    items: list[NotificationRead]
    next_cursor: int | None = None


class UnreadCount(BaseModel):
    count: int
