from datetime import datetime, timezone
from typing import Optional
from enum import Enum
from uuid import UUID
from pydantic import Field
from pymongo import ASCENDING, DESCENDING, IndexModel
from coding_jojo_app.core.base.base import BaseCollection


class NotificationType(str, Enum):
    ACCOUNT = "ACCOUNT"
    VERIFICATION = "VERIFICATION"
    SYSTEM = "SYSTEM"


class NotificationModel(BaseCollection):
    user_id: UUID
    type: NotificationType
    title: str
    body: str
    related_entity_id: Optional[str] = None
    is_read: bool = False

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "notifications"
        indexes = [
            IndexModel([("user_id", ASCENDING), ("created_at", DESCENDING)]),
        ]
