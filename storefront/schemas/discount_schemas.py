from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, timezone

CODE_PATTERN = r"^[A-Z0-9-]{1,50}$"


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    # naive input is taken as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DiscountCodeBase(BaseModel):
    code: str = Field(..., pattern=CODE_PATTERN)
    percentage: int = Field(..., ge=1, le=100)
    active: bool = True
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = Field(default=None, ge=1)

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("expires_at")
    @classmethod
    def expires_at_utc(cls, value):
        return _to_utc(value)


class DiscountCodeCreate(DiscountCodeBase):
    pass


class DiscountCodeUpdate(BaseModel):
    code: Optional[str] = Field(default=None, pattern=CODE_PATTERN)
    percentage: Optional[int] = Field(default=None, ge=1, le=100)
    active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = Field(default=None, ge=1)

    @field_validator("code", mode="before")
    @classmethod
    def upper_code(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("expires_at")
    @classmethod
    def expires_at_utc(cls, value):
        return _to_utc(value)


class DiscountCodeOut(DiscountCodeBase):
    id: int
    current_uses: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DiscountCodeAdminOut(DiscountCodeOut):
    # computed at read time; shoppers never see it
    usable: bool
    rejection: Optional[str] = None


class DiscountValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)


class DiscountValidateResponse(BaseModel):
    success: bool = True
    code: str
    percentage: int
    message: str
