from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class GatewayResult:
    """Outcome of a gateway call. Adapters return these instead of raising."""

    def __init__(
        self,
        success: bool,
        data: Any = None,
        error: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.success = success
        self.data = data
        self.error = error
        self.status_code = status_code

    @classmethod
    def ok(cls, data: Any, status_code: Optional[int] = None) -> "GatewayResult":
        return cls(True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: Optional[int] = None, data: Any = None) -> "GatewayResult":
        return cls(False, data=data, error=error, status_code=status_code)


class BaseGateway(ABC):
    """Abstract base for hosted-checkout payment gateways."""

    @property
    @abstractmethod
    def gateway_name(self) -> str:
        pass

    @abstractmethod
    async def create_order(self, order_request: Dict[str, Any]) -> GatewayResult:
        """
        Create a checkout order.
        On success `data` is the gateway's order object, which carries at
        least `order_id` and `payment_session_id`.
        """
        pass

    @abstractmethod
    async def fetch_payments(self, order_id: str) -> GatewayResult:
        """On success `data` is the list of payment attempts for the order."""
        pass

    @abstractmethod
    def verify_webhook_signature(self, raw_body: bytes, timestamp: str, signature: str) -> bool:
        pass
