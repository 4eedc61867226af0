from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models import MainCategory, PurchaseUnit, RevenuePeriod


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class TransactionIn(BaseModel):
    date: date
    main_category: MainCategory
    subcategory: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: int = Field(..., ge=0)

    @field_validator("subcategory")
    @classmethod
    def _subcategory_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Subcategory is required")
        return value

    @field_validator("description")
    @classmethod
    def _clean_description(cls, value: Optional[str]) -> Optional[str]:
        return _strip_optional(value)


class PurchaseLineIn(BaseModel):
    item_name: str = Field(default="", max_length=120)
    quantity: Optional[float] = Field(default=None, gt=0)
    unit: PurchaseUnit = PurchaseUnit.kg
    unit_price: Optional[int] = Field(default=None, ge=0)

    def is_complete(self) -> bool:
        return bool(self.item_name.strip()) and (
            self.quantity is not None and self.unit_price is not None
        )


class PurchaseBatchIn(BaseModel):
    date: date
    lines: list[PurchaseLineIn] = Field(default_factory=list)


class RevenueLineIn(BaseModel):
    subcategory: str = Field(default="", max_length=100)
    amount: Optional[int] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=500)

    def is_complete(self) -> bool:
        return bool(self.subcategory.strip()) and self.amount is not None


class RevenueBatchIn(BaseModel):
    date: date
    period: RevenuePeriod
    lines: list[RevenueLineIn] = Field(default_factory=list)


class LoginIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class PasswordChangeIn(BaseModel):
    new_password: str = Field(..., min_length=6, max_length=128)
    confirm_password: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "PasswordChangeIn":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
