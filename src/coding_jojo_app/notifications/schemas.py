from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from coding_jojo_app.core.base.base import BaseResponse
from coding_jojo_app.notifications.models import NotificationType


class NotificationResponse(BaseResponse):
    type: NotificationType
    title: str
    body: str
    related_entity_id: Optional[str] = None
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    unread_count: int
    notifications: List[NotificationResponse]
