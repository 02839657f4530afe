from beanie import Document
from pydantic import BaseModel, Field
from uuid import UUID, uuid4


class BaseCollection(Document):
    id: UUID = Field(default_factory=uuid4, alias="_id")


class BaseResponse(BaseModel):
    id: UUID
