from pydantic import BaseModel, field_validator
from typing import Any, Optional


class ClientUser(BaseModel):
    customerId: Optional[str] = None
    customerName: Optional[str] = None
    customerEmail: Optional[str] = None
    customerPhone: Optional[str] = None

    @field_validator("customerId", "customerPhone", mode="before")
    @classmethod
    def coerce_to_str(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class CreateOrderRequest(BaseModel):
    # amount is validated by the order service so it can answer 400s itself
    amount: Optional[Any] = None
    metal: Optional[str] = None
    userData: Optional[ClientUser] = None
    paymentMethod: Optional[str] = None


class UpdatePaymentStatusRequest(BaseModel):
    status: Optional[str] = None
    paymentId: Optional[str] = None

    @field_validator("paymentId", mode="before")
    @classmethod
    def coerce_payment_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class VerifyUpiPaymentRequest(BaseModel):
    upiTxnId: Optional[str] = None
    status: Optional[str] = None

    @field_validator("upiTxnId", mode="before")
    @classmethod
    def coerce_upi_txn_id(cls, v):
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v
