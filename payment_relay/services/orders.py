"""
Order creation.

Orchestrates:
1. Validate amount / metal
2. Resolve the purchaser (token -> userData -> guest)
3. Generate the order id
4. Create the gateway order (gateway variant only; failure aborts)
5. Persist a pending transaction (best effort: a store failure is logged
   and the order is still returned)
6. Build the client payload
"""
import math
import random
import time
from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import structlog

from payment_relay import models
from payment_relay.config import Settings
from payment_relay.errors import UpstreamError, ValidationError
from payment_relay.providers.base import BaseGateway
from payment_relay.services.identity import IdentityResolver, ResolvedUser, extract_bearer_token
from payment_relay.services.store import TransactionStore

logger = structlog.get_logger(component="order_service")


CURRENCY = "INR"
ORDER_ID_PREFIX = "ORD-"
ORDER_STATUS_ACTIVE = "ACTIVE"


def generate_order_id() -> str:
    return f"{ORDER_ID_PREFIX}{int(time.time() * 1000)}-{random.randint(0, 999)}"


def parse_amount(raw: Any) -> float:
    """
    Raises:
        ValidationError: if the amount is not a finite number above zero
    """
    if isinstance(raw, bool):
        raise ValidationError("Invalid amount: must be a positive number")
    try:
        amount = float(raw)
    except (TypeError, ValueError):
        raise ValidationError("Invalid amount: must be a positive number")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Invalid amount: must be a positive number")
    return amount


def build_upi_link(vpa: str, merchant_name: str, amount: float, order_id: str, note: str) -> str:
    params = {
        "pa": vpa,
        "pn": merchant_name,
        "am": f"{amount:.2f}",
        "cu": CURRENCY,
        "tn": note,
        "tr": order_id,
    }
    return "upi://pay?" + urlencode(params, quote_via=quote)


def build_gateway_order_request(
    order_id: str,
    amount: float,
    metal: str,
    customer_details: Dict[str, str],
    return_url_template: str,
) -> Dict[str, Any]:
    return {
        "order_id": order_id,
        "order_amount": amount,
        "order_currency": CURRENCY,
        "customer_details": customer_details,
        "order_meta": {
            "return_url": return_url_template.replace("{order_id}", order_id),
        },
        "order_note": f"Purchase of {metal}",
        "order_tags": {"metal": metal},
    }


class OrderService:
    def __init__(
        self,
        store: TransactionStore,
        identity: IdentityResolver,
        settings: Settings,
        gateway: Optional[BaseGateway] = None,
    ):
        self.store = store
        self.identity = identity
        self.settings = settings
        self.gateway = gateway

    async def create_order(
        self,
        amount: Any,
        metal: Any,
        auth_header: Optional[str] = None,
        client_user: Optional[Dict[str, Any]] = None,
        payment_method: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not amount or not metal:
            raise ValidationError("Missing required fields: amount and metal")

        parsed_amount = parse_amount(amount)
        metal = str(metal).strip()
        if not metal:
            raise ValidationError("Missing required fields: amount and metal")

        user = await self.identity.resolve(extract_bearer_token(auth_header), client_user)
        order_id = generate_order_id()
        customer_details = user.customer_details()
        upi_link = build_upi_link(
            self.settings.upi_vpa,
            self.settings.upi_merchant_name,
            parsed_amount,
            order_id,
            f"{metal} purchase {order_id}",
        )
        logger.info(
            "create_order",
            order_id=order_id,
            amount=parsed_amount,
            metal=metal,
            user_id=user.id,
            resolved_via=user.via.value,
        )

        if self.settings.gateway_enabled:
            response_data = await self._create_gateway_order(
                order_id, parsed_amount, metal, customer_details
            )
        else:
            response_data = {
                "order_id": order_id,
                "amount": parsed_amount,
                "currency": CURRENCY,
                "status": ORDER_STATUS_ACTIVE,
                "customer_details": customer_details,
            }
        response_data["upi_link"] = upi_link

        self._persist(user, order_id, parsed_amount, metal, payment_method)
        return response_data

    async def _create_gateway_order(
        self,
        order_id: str,
        amount: float,
        metal: str,
        customer_details: Dict[str, str],
    ) -> Dict[str, Any]:
        if self.gateway is None:
            raise UpstreamError("Failed to create order", error="Payment gateway is not configured")

        order_request = build_gateway_order_request(
            order_id, amount, metal, customer_details, self.settings.order_return_url
        )
        result = await self.gateway.create_order(order_request)
        if not result.success:
            logger.error("gateway_create_order_failed", order_id=order_id, error=result.error)
            raise UpstreamError("Failed to create order", error=result.error)

        order = result.data
        return {
            "order_id": order.get("order_id", order_id),
            "cf_order_id": order.get("cf_order_id"),
            "payment_session_id": order.get("payment_session_id"),
            "order_expiry_time": order.get("order_expiry_time"),
            "amount": amount,
            "currency": order.get("order_currency", CURRENCY),
            "status": order.get("order_status") or ORDER_STATUS_ACTIVE,
            "customer_details": customer_details,
        }

    def _persist(
        self,
        user: ResolvedUser,
        order_id: str,
        amount: float,
        metal: str,
        payment_method: Optional[str],
    ) -> None:
        result = self.store.insert({
            "order_id": order_id,
            "user_id": user.id,
            "amount": amount,
            "metal_type": metal,
            "status": models.STATUS_PENDING,
            "payment_method": payment_method or models.DEFAULT_PAYMENT_METHOD,
            "created_at": models.utcnow(),
        })
        if not result.success:
            logger.error("transaction_not_persisted", order_id=order_id, error=result.error)

