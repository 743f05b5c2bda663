"""
Payment status reconciliation.

Maps the external status vocabularies (client-reported, gateway payment
status, webhook payload) onto the internal three-state enumeration and writes
it to the transaction store. Entry points:

  update_status       explicit client update
  verify_upi_payment  client-reported UPI intent result
  verify              gateway poll
  handle_webhook      gateway notification (always acknowledged once valid)
  get_status          read, mapped back to the external vocabulary

Writes are unconditional: concurrent entry points for one order resolve as
last-write-wins.
"""
from typing import Any, Dict, List, Optional

import structlog

from payment_relay import models
from payment_relay.errors import NotFoundError, UpstreamError, ValidationError
from payment_relay.providers.base import BaseGateway
from payment_relay.services.store import TransactionStore

logger = structlog.get_logger(component="status_reconciliation")


INTERNAL_STATES = {
    "SUCCESS": models.STATUS_COMPLETED,
    "FAILED": models.STATUS_FAILED,
    "CANCELLED": models.STATUS_FAILED,
    "FAILURE": models.STATUS_FAILED,
    "PENDING": models.STATUS_PENDING,
}

EXTERNAL_STATES = {
    models.STATUS_COMPLETED: "SUCCESS",
    models.STATUS_PENDING: "PENDING",
}

GATEWAY_SUCCESS = "SUCCESS"
GATEWAY_PENDING = "PENDING"
GATEWAY_FAILURE = "FAILURE"
GATEWAY_UNKNOWN = "UNKNOWN"


def to_internal_status(external_status: Optional[str]) -> str:
    """Anything outside the table, including None, stays pending."""
    if not isinstance(external_status, str):
        return models.STATUS_PENDING
    return INTERNAL_STATES.get(external_status, models.STATUS_PENDING)


def to_external_status(internal_status: Optional[str]) -> str:
    return EXTERNAL_STATES.get(internal_status, "FAILURE")


def summarize_payments(payments: List[Dict[str, Any]]) -> str:
    """
    Overall status for an order from its gateway payment attempts:
    any SUCCESS wins, then any PENDING, otherwise FAILURE.
    """
    statuses = [p.get("payment_status") for p in payments if isinstance(p, dict)]
    if GATEWAY_SUCCESS in statuses:
        return GATEWAY_SUCCESS
    if GATEWAY_PENDING in statuses:
        return GATEWAY_PENDING
    return GATEWAY_FAILURE


class StatusReconciliationService:
    def __init__(self, store: TransactionStore, gateway: Optional[BaseGateway] = None):
        self.store = store
        self.gateway = gateway

    def _write_status(self, order_id: str, status: str, payment_id: Optional[str], **extra_fields):
        fields = {
            "status": status,
            "updated_at": models.utcnow(),
            "payment_id": payment_id or None,
        }
        fields.update(extra_fields)
        return self.store.update_by_order_id(order_id, fields)

    def update_status(self, order_id: str, external_status: Optional[str], payment_id: Optional[str] = None):
        if not order_id or not external_status:
            raise ValidationError("Order ID and status are required")

        status = to_internal_status(external_status)
        logger.info("update_payment_status", order_id=order_id, external_status=external_status, status=status)

        result = self._write_status(order_id, status, payment_id)
        if not result.success:
            raise UpstreamError("Failed to update transaction status", error=result.error)

        return {"orderId": order_id, "status": status}

    def verify_upi_payment(self, order_id: str, upi_txn_id: Optional[str] = None, external_status: Optional[str] = None):
        if not order_id:
            raise ValidationError("Order ID is required")

        status = to_internal_status(external_status)
        logger.info("verify_upi_payment", order_id=order_id, upi_txn_id=upi_txn_id, status=status)

        result = self._write_status(order_id, status, upi_txn_id, payment_method="UPI")
        if not result.success:
            raise UpstreamError("Failed to update UPI transaction status", error=result.error)

        return {"orderId": order_id, "status": status, "upiTxnId": upi_txn_id}

    async def verify(self, order_id: str):
        if not order_id:
            raise ValidationError("Order ID is required")
        if self.gateway is None:
            raise UpstreamError("Payment gateway is not configured")

        result = await self.gateway.fetch_payments(order_id)
        if not result.success:
            status_code = 404 if result.status_code == 404 else 500
            raise UpstreamError(
                "Failed to verify payment",
                error=result.error,
                status_code=status_code,
                orderId=order_id,
                status=GATEWAY_UNKNOWN,
            )

        payments = result.data
        overall = summarize_payments(payments)
        logger.info("verify_payment", order_id=order_id, status=overall, attempts=len(payments))

        if overall != GATEWAY_PENDING:
            internal = models.STATUS_COMPLETED if overall == GATEWAY_SUCCESS else models.STATUS_FAILED
            payment_id = _successful_payment_id(payments) if overall == GATEWAY_SUCCESS else None
            write = self._write_status(order_id, internal, payment_id)
            if not write.success:
                raise UpstreamError("Failed to update transaction status", error=write.error)

        return {"orderId": order_id, "status": overall, "transactions": payments}

    def handle_webhook(self, payload: Any):
        data = payload.get("data") if isinstance(payload, dict) else None
        order = data.get("order") if isinstance(data, dict) else None
        payment = data.get("payment") if isinstance(data, dict) else None
        order_id = order.get("order_id") if isinstance(order, dict) else None
        payment_status = payment.get("payment_status") if isinstance(payment, dict) else None

        if not order_id or not payment_status:
            raise ValidationError("Invalid webhook payload: order_id and payment_status are required")

        status = to_internal_status(payment_status)
        cf_payment_id = payment.get("cf_payment_id")
        payment_id = str(cf_payment_id) if cf_payment_id is not None else None
        logger.info(
            "payment_webhook",
            order_id=order_id,
            payment_status=payment_status,
            status=status,
            payment_id=payment_id,
        )

        result = self._write_status(order_id, status, payment_id)
        if not result.success:
            logger.error("webhook_store_update_failed", order_id=order_id, error=result.error)

        return {"success": True}

    def get_status(self, order_id: str):
        if not order_id:
            raise ValidationError("Order ID is required")

        result = self.store.get_by_order_id(order_id)
        if not result.success:
            raise UpstreamError("Failed to fetch transaction status", error=result.error)
        if result.data is None:
            raise NotFoundError("Transaction not found")

        transaction = result.data
        return {
            "orderId": order_id,
            "status": to_external_status(transaction["status"]),
            "transaction": transaction,
        }

    def list_transactions(self, user_id: str):
        if not user_id:
            raise ValidationError("User ID is required")

        result = self.store.list_by_user_id(user_id)
        if not result.success:
            raise UpstreamError("Failed to fetch transactions", error=result.error)
        return {"userId": user_id, "transactions": result.data}


def _successful_payment_id(payments: List[Dict[str, Any]]) -> Optional[str]:
    for p in payments:
        if isinstance(p, dict) and p.get("payment_status") == GATEWAY_SUCCESS:
            cf_payment_id = p.get("cf_payment_id")
            return str(cf_payment_id) if cf_payment_id is not None else None
    return None
