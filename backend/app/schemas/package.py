"""Package, payment and package request schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from ..core.constants import MAX_NOTE_LENGTH, MAX_REASON_LENGTH
from .base import Money, StandardizedModel, StrictRequestModel

SessionKind = Literal["private", "duo", "group"]


def _non_negative(value: Optional[Money]) -> Optional[Money]:
    if value is not None and value < 0:
        raise ValueError("must not be negative")
    return value


class PaymentInput(StrictRequestModel):
    amount: Optional[Money] = None
    method: Literal["cash", "bank_transfer", "card"] = "cash"
    paid_at: Optional[datetime] = None
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)

    @field_validator("amount")
    @classmethod
    def _check_amount(cls, value: Optional[Money]) -> Optional[Money]:
        return _non_negative(value)


class PackageCreate(StrictRequestModel):
    customer_id: str
    name: str = Field(..., min_length=1, max_length=120)
    type: SessionKind
    total_sessions: int = Field(..., gt=0, le=500)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    price: Money = Money("0")
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)
    payment: Optional[PaymentInput] = None

    @field_validator("price")
    @classmethod
    def _check_price(cls, value: Optional[Money]) -> Optional[Money]:
        return _non_negative(value)


class PackageUpdate(StrictRequestModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    total_sessions: Optional[int] = Field(None, gt=0, le=500)
    remaining_sessions: Optional[int] = Field(None, ge=0)
    valid_from: Optional[datetime] = None
    valid_to: Optional[datetime] = None
    price: Optional[Money] = None
    status: Optional[Literal["active", "used", "expired", "frozen"]] = None
    note: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)
    reason: Optional[str] = Field(
        None, max_length=MAX_REASON_LENGTH, description="Required when remaining_sessions changes"
    )

    @field_validator("price")
    @classmethod
    def _check_price(cls, value: Optional[Money]) -> Optional[Money]:
        return _non_negative(value)


class PackageResponse(StandardizedModel):
    id: str
    customer_id: str
    name: str
    type: str
    total_sessions: int
    remaining_sessions: int
    valid_from: datetime
    valid_to: datetime
    price: float
    currency: str
    status: str
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_count: Optional[int] = None
    upcoming_count: Optional[int] = None
    cancelled_count: Optional[int] = None
    pending_count: Optional[int] = None
    remaining_unbooked: Optional[int] = None


class PackageRequestCreate(StrictRequestModel):
    package_type: SessionKind
    sessions: int = Field(..., gt=0, le=500)
    notes: Optional[str] = Field(None, max_length=MAX_NOTE_LENGTH)


class PackageRequestApprove(StrictRequestModel):
    package_type: SessionKind
    sessions: int = Field(..., gt=0, le=500)
    price: Money
    valid_from: Optional[datetime] = None

    @field_validator("price")
    @classmethod
    def _check_price(cls, value: Optional[Money]) -> Optional[Money]:
        return _non_negative(value)


class PackageRequestReject(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class PackageRequestResponse(StandardizedModel):
    id: str
    customer_id: str
    customer_name: Optional[str] = None
    package_type: str
    sessions: int
    requested_at: datetime
    status: str
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    package_id: Optional[str] = None


class PackageListResponse(StandardizedModel):
    packages: List[PackageResponse]
