"""
Test helpers — not fixtures — so any test module can import and call them.
"""
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

from payment_relay.config import Settings
from payment_relay.providers.base import BaseGateway, GatewayResult
from payment_relay.providers.clerk import ClerkClient, IdentityLookupError


CASHFREE_ORDER = {
    "cf_order_id": "2149460581",
    "order_id": "ORD-1700000000000-42",
    "order_amount": 100.0,
    "order_currency": "INR",
    "order_status": "ACTIVE",
    "payment_session_id": "session_abc123",
    "order_expiry_time": "2024-02-15T10:00:00+05:30",
}

CLERK_PROFILE = {
    "id": "user_2abcDEF",
    "first_name": "Asha",
    "last_name": "Iyer",
    "username": "asha",
    "email_addresses": [{"email_address": "asha@example.com"}],
    "phone_numbers": [{"phone_number": "+919876543210"}],
}

CLIENT_USER = {
    "customerId": "cust_42",
    "customerName": "Ravi Kumar Sharma",
    "customerEmail": "ravi@example.com",
    "customerPhone": "9123456780",
}


def make_settings(variant: str = "custom", **overrides) -> Settings:
    values = dict(
        payment_variant=variant,
        cashfree_app_id="test-app-id",
        cashfree_secret_key="test-secret",
        cashfree_environment="sandbox",
        verify_webhook_signature=False,
        upi_vpa="metals@upi",
        upi_merchant_name="Metals Store",
        order_return_url="https://shop.example.com/payment-status?order_id={order_id}",
        log_json=False,
    )
    values.update(overrides)
    return Settings(**values)


def mock_identity_client(profile=None, error: Optional[str] = None):
    """ClerkClient stand-in that returns `profile` or raises IdentityLookupError."""
    m = AsyncMock(spec=ClerkClient)
    if error is not None:
        m.get_current_user = AsyncMock(side_effect=IdentityLookupError(error))
    else:
        m.get_current_user = AsyncMock(return_value=profile)
    return m


def mock_gateway(create_result: Optional[GatewayResult] = None,
                 payments_result: Optional[GatewayResult] = None,
                 signature_ok: bool = True):
    m = MagicMock(spec=BaseGateway)
    m.create_order = AsyncMock(return_value=create_result or GatewayResult.ok(dict(CASHFREE_ORDER)))
    m.fetch_payments = AsyncMock(return_value=payments_result or GatewayResult.ok([]))
    m.verify_webhook_signature = MagicMock(return_value=signature_ok)
    return m


def webhook_payload(order_id: Optional[str] = "ORD-1",
                    payment_status: Optional[str] = "SUCCESS",
                    cf_payment_id=885577331):
    order = {"order_amount": 5000.0, "order_currency": "INR"}
    if order_id is not None:
        order["order_id"] = order_id
    payment = {"payment_amount": 5000.0, "payment_group": "upi"}
    if payment_status is not None:
        payment["payment_status"] = payment_status
    if cf_payment_id is not None:
        payment["cf_payment_id"] = cf_payment_id
    return {
        "type": "PAYMENT_SUCCESS_WEBHOOK",
        "event_time": "2024-01-15T10:23:45+05:30",
        "data": {"order": order, "payment": payment},
    }
