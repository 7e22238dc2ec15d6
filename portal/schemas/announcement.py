from datetime import datetime

from pydantic import BaseModel, Field


class AnnouncementCreate(BaseModel):
    title: str = Field(min_length=5)
    content: str = Field(min_length=20)
    type: str = Field(default="general", min_length=1)
    priority: str = Field(default="normal", min_length=1)
    target_audience: str = "all"
    expires_at: datetime | None = None


class AnnouncementUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    type: str | None = None
    priority: str | None = None
    target_audience: str | None = None
    is_active: bool | None = None
    expires_at: datetime | None = None


class AnnouncementResponse(BaseModel):
    id: int
    title: str
    content: str
    type: str
    priority: str
    target_audience: str
    is_active: bool
    published_at: datetime | None
    expires_at: datetime | None
    created_by: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
