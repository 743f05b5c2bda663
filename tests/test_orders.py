"""
Unit tests for payment_relay/services/orders.py.

Covers: order id shape, amount validation, both variants, gateway failure
aborting without a stored row, and best-effort persistence.
"""
import re
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from payment_relay import models
from payment_relay.errors import UpstreamError, ValidationError
from payment_relay.providers.base import GatewayResult
from payment_relay.services.identity import IdentityResolver
from payment_relay.services.orders import (
    OrderService,
    build_gateway_order_request,
    build_upi_link,
    generate_order_id,
    parse_amount,
)
from payment_relay.services.store import StoreResult, TransactionStore
from tests.helpers import CLIENT_USER, make_settings, mock_gateway, mock_identity_client

ORDER_ID_PATTERN = re.compile(r"^ORD-\d+-\d{1,3}$")


def order_service(db, variant="custom", gateway=None, identity=None, store=None):
    return OrderService(
        store=store or TransactionStore(db),
        identity=IdentityResolver(identity or mock_identity_client(error="no provider")),
        settings=make_settings(variant),
        gateway=gateway,
    )


class TestGenerateOrderId:
    def test_matches_pattern(self):
        for _ in range(50):
            assert ORDER_ID_PATTERN.match(generate_order_id())

    def test_embeds_current_millis(self):
        millis = int(generate_order_id().split("-")[1])
        assert millis > 1_600_000_000_000


class TestParseAmount:
    @pytest.mark.parametrize("raw, expected", [(100, 100.0), ("250.50", 250.5), (0.01, 0.01)])
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "nan", "inf", -5, "-1", 0, None, True, [1]])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_amount(raw)


class TestBuilders:
    def test_upi_link(self):
        link = build_upi_link("metals@upi", "Metals Store", 1500, "ORD-1-2", "gold purchase ORD-1-2")
        parsed = urlparse(link)
        params = parse_qs(parsed.query)

        assert parsed.scheme == "upi"
        assert params["pa"] == ["metals@upi"]
        assert params["pn"] == ["Metals Store"]
        assert params["am"] == ["1500.00"]
        assert params["cu"] == ["INR"]
        assert params["tr"] == ["ORD-1-2"]

    def test_gateway_order_request(self):
        details = {"customer_id": "guest_user", "customer_name": "Guest User",
                   "customer_email": "guest@example.com", "customer_phone": "9999999999"}
        req = build_gateway_order_request(
            "ORD-1-2", 100.0, "silver", details, "https://shop/status?order_id={order_id}"
        )

        assert req["order_id"] == "ORD-1-2"
        assert req["order_amount"] == 100.0
        assert req["order_currency"] == "INR"
        assert req["customer_details"] == details
        assert req["order_meta"]["return_url"] == "https://shop/status?order_id=ORD-1-2"
        assert "silver" in req["order_note"]
        assert req["order_tags"] == {"metal": "silver"}


class TestCreateOrderValidation:
    @pytest.mark.parametrize("amount, metal", [(None, "gold"), (100, None), ("", "gold"), (100, ""), (0, "gold")])
    async def test_missing_fields(self, db, amount, metal):
        with pytest.raises(ValidationError) as exc_info:
            await order_service(db).create_order(amount, metal)
        assert "Missing required fields" in exc_info.value.message

    async def test_non_numeric_amount(self, db):
        with pytest.raises(ValidationError) as exc_info:
            await order_service(db).create_order("lots", "gold")
        assert "Invalid amount" in exc_info.value.message

    async def test_whitespace_metal(self, db):
        with pytest.raises(ValidationError):
            await order_service(db).create_order(100, "   ")

    async def test_nothing_persisted_on_validation_error(self, db):
        with pytest.raises(ValidationError):
            await order_service(db).create_order(-10, "gold")
        assert db.query(models.Transaction).count() == 0


class TestCreateOrderCustomVariant:
    async def test_guest_order(self, db):
        data = await order_service(db).create_order("100", "gold")

        assert ORDER_ID_PATTERN.match(data["order_id"])
        assert data["amount"] == 100.0
        assert data["currency"] == "INR"
        assert data["status"] == "ACTIVE"
        assert data["customer_details"]["customer_id"] == "guest_user"
        assert data["upi_link"].startswith("upi://pay?")
        assert "payment_session_id" not in data

    async def test_persists_pending_row(self, db):
        data = await order_service(db).create_order(2500, "silver", client_user=CLIENT_USER, payment_method="UPI")

        txn = db.query(models.Transaction).filter_by(order_id=data["order_id"]).one()
        assert txn.status == "pending"
        assert txn.user_id == "cust_42"
        assert txn.amount == 2500.0
        assert txn.metal_type == "silver"
        assert txn.payment_method == "UPI"
        assert txn.payment_id is None

    async def test_default_payment_method(self, db):
        data = await order_service(db).create_order(10, "gold")
        txn = db.query(models.Transaction).filter_by(order_id=data["order_id"]).one()
        assert txn.payment_method == "CUSTOM"

    async def test_failed_token_uses_client_data(self, db):
        identity = mock_identity_client(error="401")
        data = await order_service(db, identity=identity).create_order(
            100, "gold", auth_header="Bearer expired", client_user=CLIENT_USER
        )
        assert data["customer_details"]["customer_id"] == "cust_42"
        identity.get_current_user.assert_awaited_once_with("expired")

    async def test_store_failure_still_returns_order(self, db):
        store = MagicMock(spec=TransactionStore)
        store.insert.return_value = StoreResult(False, error={"code": "IntegrityError"})
        data = await order_service(db, store=store).create_order(100, "gold")

        assert data["status"] == "ACTIVE"
        store.insert.assert_called_once()


class TestCreateOrderGatewayVariant:
    async def test_returns_session_fields(self, db):
        gateway = mock_gateway()
        data = await order_service(db, "gateway", gateway=gateway).create_order(100, "gold")

        assert data["payment_session_id"] == "session_abc123"
        assert data["cf_order_id"] == "2149460581"
        assert data["status"] == "ACTIVE"
        assert data["amount"] == 100.0
        assert data["customer_details"]["customer_id"] == "guest_user"
        assert data["upi_link"].startswith("upi://pay?")

        sent = gateway.create_order.await_args.args[0]
        assert ORDER_ID_PATTERN.match(sent["order_id"])
        assert sent["order_currency"] == "INR"
        assert sent["order_tags"] == {"metal": "gold"}

    async def test_persists_row_under_generated_order_id(self, db):
        gateway = mock_gateway()
        await order_service(db, "gateway", gateway=gateway).create_order(100, "gold")

        sent_id = gateway.create_order.await_args.args[0]["order_id"]
        assert db.query(models.Transaction).filter_by(order_id=sent_id).count() == 1

    async def test_gateway_failure_aborts_without_row(self, db):
        gateway = mock_gateway(create_result=GatewayResult.fail("customer_phone is invalid", status_code=400))

        with pytest.raises(UpstreamError) as exc_info:
            await order_service(db, "gateway", gateway=gateway).create_order(100, "gold")

        assert exc_info.value.message == "Failed to create order"
        assert exc_info.value.error == "customer_phone is invalid"
        assert db.query(models.Transaction).count() == 0

    async def test_missing_gateway_handle(self, db):
        with pytest.raises(UpstreamError):
            await order_service(db, "gateway", gateway=None).create_order(100, "gold")
