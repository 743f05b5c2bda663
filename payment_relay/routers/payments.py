from fastapi import APIRouter, Depends

from payment_relay.dependencies import get_status_service
from payment_relay.schemas.requests import UpdatePaymentStatusRequest, VerifyUpiPaymentRequest
from payment_relay.schemas.responses import (
    PaymentStatusResponse,
    UpdatePaymentStatusResponse,
    VerifyUpiPaymentResponse,
)
from payment_relay.services.status import StatusReconciliationService

router = APIRouter()


@router.post("/update-payment-status/{order_id}", response_model=UpdatePaymentStatusResponse)
def update_payment_status(
    order_id: str,
    request: UpdatePaymentStatusRequest,
    service: StatusReconciliationService = Depends(get_status_service),
):
    """
    Record a client-reported payment outcome.

    SUCCESS -> completed, FAILED/CANCELLED/FAILURE -> failed, anything else -> pending.
    """
    result = service.update_status(order_id, request.status, request.paymentId)
    return UpdatePaymentStatusResponse(**result)


@router.get("/payment-status/{order_id}", response_model=PaymentStatusResponse)
def payment_status(
    order_id: str,
    service: StatusReconciliationService = Depends(get_status_service),
):
    result = service.get_status(order_id)
    return PaymentStatusResponse(**result)


@router.post("/verify-upi-payment/{order_id}", response_model=VerifyUpiPaymentResponse)
def verify_upi_payment(
    order_id: str,
    request: VerifyUpiPaymentRequest,
    service: StatusReconciliationService = Depends(get_status_service),
):
    """Record the result of a UPI intent payment and mark the order as paid via UPI."""
    result = service.verify_upi_payment(order_id, request.upiTxnId, request.status)
    return VerifyUpiPaymentResponse(**result)
