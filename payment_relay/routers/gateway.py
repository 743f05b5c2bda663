"""Routes that only exist when the hosted-checkout gateway variant is active."""
import json
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header, Request

from payment_relay.config import Settings
from payment_relay.dependencies import get_app_settings, get_gateway, get_status_service
from payment_relay.errors import ValidationError, WebhookSignatureError
from payment_relay.providers.base import BaseGateway
from payment_relay.schemas.responses import (
    PaymentConfigResponse,
    UserTransactionsResponse,
    VerifyPaymentResponse,
    WebhookAck,
)
from payment_relay.services.orders import CURRENCY
from payment_relay.services.status import StatusReconciliationService

router = APIRouter()

logger = structlog.get_logger(component="gateway_routes")


@router.get("/payment-config", response_model=PaymentConfigResponse)
def payment_config(settings: Settings = Depends(get_app_settings)):
    """Public checkout settings for the frontend SDK. Never exposes credentials."""
    return PaymentConfigResponse(
        environment=settings.cashfree_environment,
        currency=CURRENCY,
        merchantName=settings.upi_merchant_name,
        upiVpa=settings.upi_vpa,
    )


@router.get("/verify-payment/{order_id}", response_model=VerifyPaymentResponse)
async def verify_payment(
    order_id: str,
    service: StatusReconciliationService = Depends(get_status_service),
):
    """
    Poll the gateway for the order's payment attempts and reconcile the stored status.

    Any SUCCESS -> completed; otherwise any PENDING -> left as is; otherwise failed.
    Gateway failures answer with status UNKNOWN and never touch the store.
    """
    result = await service.verify(order_id)
    return VerifyPaymentResponse(**result)


@router.post("/payment-webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    x_webhook_signature: Optional[str] = Header(default=None),
    x_webhook_timestamp: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_app_settings),
    gateway: Optional[BaseGateway] = Depends(get_gateway),
    service: StatusReconciliationService = Depends(get_status_service),
):
    raw_body = await request.body()

    if settings.verify_webhook_signature:
        if gateway is None or not gateway.verify_webhook_signature(
            raw_body, x_webhook_timestamp or "", x_webhook_signature or ""
        ):
            logger.warning("webhook_signature_rejected")
            raise WebhookSignatureError("Invalid webhook signature")

    try:
        payload = json.loads(raw_body or b"null")
    except ValueError:
        raise ValidationError("Invalid webhook payload: body is not valid JSON")

    return WebhookAck(**service.handle_webhook(payload))


@router.get("/transactions/{user_id}", response_model=UserTransactionsResponse)
def user_transactions(
    user_id: str,
    service: StatusReconciliationService = Depends(get_status_service),
):
    result = service.list_transactions(user_id)
    return UserTransactionsResponse(**result)
