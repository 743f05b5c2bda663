"""
Runtime configuration.

Values come from the process environment; a local `.env` file is loaded first
so development setups don't need exported variables.
"""
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:8080",
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:3001",
    "http://192.168.1.2:8080",
    "https://aczenfnl.vercel.app",
]

VARIANT_CUSTOM = "custom"
VARIANT_GATEWAY = "gateway"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings, read once per application instance."""

    def __init__(self, **overrides):
        self.port = int(os.getenv("PORT", "3001"))
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./transactions.db")
        self.payment_variant = os.getenv("PAYMENT_VARIANT", VARIANT_CUSTOM).strip().lower()

        self.identity_api_url = os.getenv("IDENTITY_API_URL", "https://api.clerk.dev/v1/me")

        self.cashfree_app_id = os.getenv("CASHFREE_APP_ID", "")
        self.cashfree_secret_key = os.getenv("CASHFREE_SECRET_KEY", "")
        self.cashfree_environment = os.getenv("CASHFREE_ENVIRONMENT", "sandbox").strip().lower()
        self.cashfree_api_version = os.getenv("CASHFREE_API_VERSION", "2023-08-01")
        self.verify_webhook_signature = _env_bool("CASHFREE_VERIFY_WEBHOOK_SIGNATURE", False)

        self.order_return_url = os.getenv(
            "ORDER_RETURN_URL",
            "http://localhost:5173/payment-status?order_id={order_id}",
        )
        self.upi_vpa = os.getenv("UPI_VPA", "merchant@upi")
        self.upi_merchant_name = os.getenv("UPI_MERCHANT_NAME", "Metals Store")

        self.http_timeout_seconds = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

        self.cors_allowed_origins = _env_list("CORS_ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS)
        self.cors_echo_unlisted_origins = _env_bool("CORS_ECHO_UNLISTED_ORIGINS", True)

        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_json = _env_bool("LOG_JSON", False)

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

        if self.payment_variant not in (VARIANT_CUSTOM, VARIANT_GATEWAY):
            raise ValueError(
                f"PAYMENT_VARIANT must be '{VARIANT_CUSTOM}' or '{VARIANT_GATEWAY}', "
                f"got '{self.payment_variant}'"
            )

    @property
    def gateway_enabled(self) -> bool:
        return self.payment_variant == VARIANT_GATEWAY

    @property
    def cashfree_base_url(self) -> str:
        if self.cashfree_environment == "production":
            return "https://api.cashfree.com"
        return "https://sandbox.cashfree.com"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
