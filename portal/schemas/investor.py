from datetime import datetime
from decimal import Decimal, InvalidOperation

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from portal.models.investor import DeploymentStatus


def decimal_string(value: str | None) -> str | None:
    """Validate a monetary/percentage value and keep it as a canonical string."""
    if value is None:
        return None
    try:
        parsed = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise ValueError(f"'{value}' is not a valid decimal amount")
    if not parsed.is_finite():
        raise ValueError(f"'{value}' is not a valid decimal amount")
    return format(parsed, "f")


class PortfolioResponse(BaseModel):
    id: int
    investor_id: int
    fund_name: str
    total_invested: str
    current_value: str
    returns: str | None
    irr: str | None
    private_credit_allocation: str | None = "0"
    aif_exposure: str | None = "0"
    cash_equivalents: str | None = "0"
    deployment_status: DeploymentStatus
    inception_date: datetime

    model_config = {"from_attributes": True}


class InvestorProfileResponse(BaseModel):
    id: int
    user_id: int | None
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    investor_type: str
    pan_number: str | None
    address: str | None
    city: str | None
    state: str | None
    pincode: str | None
    kyc_status: str
    risk_profile: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class InvestorSelfUpdate(BaseModel):
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None


class InvestorCreate(BaseModel):
    first_name: str = Field(min_length=2)
    last_name: str = Field(min_length=2)
    email: EmailStr
    phone: str | None = None
    pan_number: str | None = None
    investment_amount: str | None = None
    investor_type: str = "individual"
    password: str | None = Field(default=None, min_length=6)
    confirm_password: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("investment_amount")
    @classmethod
    def validate_amount(cls, value: str | None) -> str | None:
        return decimal_string(value)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password and self.confirm_password and self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class InvestorAdminUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    kyc_status: str | None = None
    investor_type: str | None = None
    risk_profile: str | None = None
    is_active: bool | None = None


class TransactionResponse(BaseModel):
    id: int
    investor_id: int
    portfolio_id: int
    type: str
    amount: str
    status: str
    payment_method: str | None
    reference_number: str | None
    confirmation_url: str | None
    notes: str | None
    processed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionConfirmation(BaseModel):
    transaction_id: int
    confirmation_url: str = Field(min_length=1)


class PortfolioAdminUpdate(BaseModel):
    fund_name: str | None = None
    total_invested: str | None = None
    current_value: str | None = None
    returns: str | None = None
    irr: str | None = None
    private_credit_allocation: str | None = None
    aif_exposure: str | None = None
    cash_equivalents: str | None = None
    deployment_status: DeploymentStatus | None = None

    @field_validator(
        "total_invested",
        "current_value",
        "returns",
        "irr",
        "private_credit_allocation",
        "aif_exposure",
        "cash_equivalents",
    )
    @classmethod
    def validate_decimal(cls, value: str | None) -> str | None:
        return decimal_string(value)


class AllocationResponse(BaseModel):
    id: int
    portfolio_id: int
    asset_class: str
    asset_name: str | None
    percentage: str
    amount: str
    status: str
    description: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class BulkInvestorRow(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: str | None = None
    pan_number: str | None = None
    investment_amount: str = "0"
    investor_type: str = "individual"

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("investment_amount")
    @classmethod
    def validate_amount(cls, value: str) -> str:
        return decimal_string(value)


class BulkInvestorUpload(BaseModel):
    investors: list[BulkInvestorRow] = Field(min_length=1)


class NotificationResponse(BaseModel):
    id: int
    investor_id: int
    title: str
    message: str
    type: str
    is_read: bool
    link: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
