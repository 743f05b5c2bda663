from pydantic import BaseModel
from typing import Any, Dict, List, Optional


class HealthResponse(BaseModel):
    status: str
    message: str
    variant: str


class CreateOrderResponse(BaseModel):
    success: bool = True
    message: str = "Order created successfully"
    data: Dict[str, Any]


class UpdatePaymentStatusResponse(BaseModel):
    success: bool = True
    orderId: str
    status: str  # internal status: pending | completed | failed


class PaymentStatusResponse(BaseModel):
    success: bool = True
    orderId: str
    status: str  # SUCCESS | PENDING | FAILURE
    transaction: Dict[str, Any]


class VerifyUpiPaymentResponse(BaseModel):
    success: bool = True
    orderId: str
    status: str
    upiTxnId: Optional[str] = None


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    orderId: str
    status: str  # SUCCESS | PENDING | FAILURE
    transactions: List[Dict[str, Any]]


class PaymentConfigResponse(BaseModel):
    success: bool = True
    environment: str
    currency: str
    merchantName: str
    upiVpa: str


class WebhookAck(BaseModel):
    success: bool = True


class UserTransactionsResponse(BaseModel):
    success: bool = True
    userId: str
    transactions: List[Dict[str, Any]]
