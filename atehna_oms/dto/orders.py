from typing import Optional

from pydantic import BaseModel, Field, field_validator

from atehna_oms.core.constants import OrderStatus, PaymentStatus


class OrderStatusUpdate(BaseModel):
    status: Optional[str] = Field(None, description=f"One of {OrderStatus.all_statuses()}")

    @field_validator("status", mode="before")
    def strip_status(cls, status):
        if isinstance(status, str):
            return status.strip()
        return status


class PaymentStatusUpdate(BaseModel):
    status: Optional[str] = Field(None, description=f"One of {PaymentStatus.all_statuses()}")
    note: Optional[str] = Field(None, max_length=1000, description="Free-text note stored in the payment log")

    @field_validator("status", mode="before")
    def normalize_status(cls, status):
        if isinstance(status, str):
            return status.strip().lower()
        return status
