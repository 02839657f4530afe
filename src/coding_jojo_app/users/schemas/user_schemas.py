from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from coding_jojo_app.core.base.base import BaseResponse
from coding_jojo_app.users.utils.user_role import UserRole


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8)
    role: UserRole = UserRole.STUDENT


class UserResponse(BaseResponse):
    name: str
    email: EmailStr
    role: UserRole
    is_verified_instructor: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseModel):
    refresh_token: str


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
