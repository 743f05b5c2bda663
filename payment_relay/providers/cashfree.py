import base64
import hashlib
import hmac
from typing import Any, Dict, Optional

import httpx
import structlog

from payment_relay.providers.base import BaseGateway, GatewayResult


class CashfreeGateway(BaseGateway):
    """
    Cashfree PG REST client.
    Create order:   POST /pg/orders
    Payments:       GET  /pg/orders/{order_id}/payments
    Webhooks:       base64(HMAC-SHA256(secret, timestamp + raw body))
    """

    def __init__(
        self,
        app_id: str,
        secret_key: str,
        base_url: str,
        api_version: str = "2023-08-01",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app_id = app_id
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._transport = transport
        self._logger = structlog.get_logger(component="gateway_adapter", gateway=self.gateway_name)

    @property
    def gateway_name(self) -> str:
        return "cashfree"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-client-id": self.app_id,
            "x-client-secret": self.secret_key,
            "x-api-version": self.api_version,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return f"HTTP {response.status_code}"

    async def _request(self, method: str, path: str, json: Any = None) -> GatewayResult:
        try:
            async with self._client() as client:
                response = await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            self._logger.error("gateway_request_failed", method=method, path=path, error=str(e))
            return GatewayResult.fail(f"Cashfree request failed: {e}")

        if response.is_error:
            message = self._error_message(response)
            self._logger.error(
                "gateway_error_response",
                method=method,
                path=path,
                status_code=response.status_code,
                error=message,
            )
            return GatewayResult.fail(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError:
            self._logger.error("gateway_malformed_body", method=method, path=path)
            return GatewayResult.fail("Cashfree returned a malformed response", status_code=response.status_code)

        return GatewayResult.ok(data, status_code=response.status_code)

    async def create_order(self, order_request: Dict[str, Any]) -> GatewayResult:
        result = await self._request("POST", "/pg/orders", json=order_request)
        if result.success and not isinstance(result.data, dict):
            return GatewayResult.fail("Cashfree returned an unexpected order payload", result.status_code)
        return result

    async def fetch_payments(self, order_id: str) -> GatewayResult:
        result = await self._request("GET", f"/pg/orders/{order_id}/payments")
        if result.success and not isinstance(result.data, list):
            return GatewayResult.fail("Cashfree returned an unexpected payments payload", result.status_code)
        return result

    def verify_webhook_signature(self, raw_body: bytes, timestamp: str, signature: str) -> bool:
        if not timestamp or not signature or not self.secret_key:
            return False
        message = timestamp.encode("utf-8") + raw_body
        digest = hmac.new(self.secret_key.encode("utf-8"), message, hashlib.sha256).digest()
        expected = base64.b64encode(digest).decode("ascii")
        return hmac.compare_digest(expected, signature)
