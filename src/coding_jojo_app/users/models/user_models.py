from beanie import before_event, Insert, Replace, Save
from pymongo import ASCENDING, IndexModel
from pydantic import EmailStr, Field
from typing import Optional
from datetime import datetime, timezone
from coding_jojo_app.core.base.base import BaseCollection
from coding_jojo_app.users.utils.user_role import UserRole


class UserModel(BaseCollection):

    name: str
    email: EmailStr
    password: Optional[str] = None
    role: UserRole = Field(default=UserRole.STUDENT)
    is_verified_instructor: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Auto-update "updated_at" on update
    @before_event([Insert, Save, Replace])
    def update_timestamp(self):
        self.updated_at = datetime.now(timezone.utc)

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("email", ASCENDING)], unique=True),
        ]
