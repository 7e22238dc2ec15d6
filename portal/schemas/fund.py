from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from portal.schemas.investor import decimal_string


class NavCreate(BaseModel):
    date: datetime
    nav: str = Field(min_length=1)
    aum: str = Field(min_length=1)

    @field_validator("nav", "aum")
    @classmethod
    def validate_decimal(cls, value: str) -> str:
        return decimal_string(value)


class NavUpdate(BaseModel):
    nav: str | None = None
    aum: str | None = None

    @field_validator("nav", "aum")
    @classmethod
    def validate_decimal(cls, value: str | None) -> str | None:
        return decimal_string(value)


class NavResponse(BaseModel):
    id: int
    date: datetime
    nav: str
    aum: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ReturnsCreate(BaseModel):
    period: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2999)
    month: int | None = Field(default=None, ge=1, le=12)
    quarter: int | None = Field(default=None, ge=1, le=4)
    gross_return: str
    net_return: str
    benchmark: str | None = None

    @field_validator("gross_return", "net_return", "benchmark")
    @classmethod
    def validate_decimal(cls, value: str | None) -> str | None:
        return decimal_string(value)


class ReturnsUpdate(BaseModel):
    gross_return: str | None = None
    net_return: str | None = None
    benchmark: str | None = None

    @field_validator("gross_return", "net_return", "benchmark")
    @classmethod
    def validate_decimal(cls, value: str | None) -> str | None:
        return decimal_string(value)


class ReturnsResponse(BaseModel):
    id: int
    period: str
    year: int
    month: int | None
    quarter: int | None
    gross_return: str
    net_return: str
    benchmark: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReportExport(BaseModel):
    report_type: Literal["aum", "inflows", "allocations", "segments", "summary"] = "summary"
    format: str = "csv"
