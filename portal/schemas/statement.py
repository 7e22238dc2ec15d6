from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from portal.models.statement import StatementType


class StatementRow(BaseModel):
    """One spreadsheet row describing a statement to attach to an investor."""

    investor_name: str | None = None
    investor_id: int | None = None
    type: StatementType = StatementType.monthly
    period: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2999)

    @field_validator("type", mode="before")
    @classmethod
    def lower_type(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("investor_name", "period", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


class StatementGenerate(BaseModel):
    investor_id: int
    type: StatementType
    period: str = Field(min_length=1)
    year: int = Field(ge=1900, le=2999)
    month: int | None = Field(default=None, ge=1, le=12)
    quarter: int | None = Field(default=None, ge=1, le=4)


class StatementResponse(BaseModel):
    id: int
    investor_id: int
    type: StatementType
    period: str
    year: int
    month: int | None
    quarter: int | None
    file_name: str
    file_url: str
    file_size: int | None
    version: int
    generated_at: datetime

    model_config = {"from_attributes": True}


class UnmatchedRow(BaseModel):
    row: dict
    reason: str


class MatchResult(BaseModel):
    matched: list[StatementResponse] = []
    unmatched: list[UnmatchedRow] = []


class StatementFilter(BaseModel):
    type: StatementType | None = None
    period: str | None = None
    year: int | None = None
    investor_id: int | None = None
