from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from portal.models.admin_user import AdminRole


class AdminCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: str | None = None
    password: str = Field(min_length=6)
    role: AdminRole = AdminRole.admin
    permissions: list[str] = []

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class AdminUpdate(BaseModel):
    role: AdminRole | None = None
    permissions: list[str] | None = None
    is_active: bool | None = None


class AdminResponse(BaseModel):
    id: int
    user_id: int
    role: AdminRole
    permissions: list[str]
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityLogResponse(BaseModel):
    id: int
    user_id: int
    action: str
    resource: str
    resource_id: str | None
    details: dict | None
    ip_address: str | None
    user_agent: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class LeadCreate(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    phone: str | None = None
    company: str | None = None
    investment_range: str | None = None
    message: str = Field(min_length=10)


class SystemSettingValue(BaseModel):
    value: str | int | float | bool

    @field_validator("value", mode="after")
    @classmethod
    def as_text(cls, value) -> str:
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)


class SystemSettingUpsert(SystemSettingValue):
    key: str = Field(min_length=1, max_length=120)
    category: str | None = None
    description: str | None = None


class SystemSettingResponse(BaseModel):
    id: int
    key: str
    value: str
    category: str
    description: str | None
    updated_by: int | None
    updated_at: datetime

    model_config = {"from_attributes": True}
