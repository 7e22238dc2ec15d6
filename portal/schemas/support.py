from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class SupportRequestCreate(BaseModel):
    type: str = Field(min_length=1)
    subject: str = Field(min_length=5)
    description: str = Field(min_length=20)
    priority: str = "normal"


class SupportRequestUpdate(BaseModel):
    description: str | None = None


class SupportStatusUpdate(BaseModel):
    status: Literal["open", "pending", "resolved", "closed"]


class SupportRequestResponse(BaseModel):
    id: int
    investor_id: int
    type: str
    subject: str
    description: str
    status: str
    priority: str
    assigned_to: int | None
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
