from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from payment_relay import models
from payment_relay.config import Settings, get_settings
from payment_relay.database import engine
from payment_relay.errors import register_error_handlers
from payment_relay.logging_config import configure_logging
from payment_relay.providers.cashfree import CashfreeGateway
from payment_relay.providers.clerk import ClerkClient
from payment_relay.routers import gateway, orders, payments
from payment_relay.schemas.responses import HealthResponse

logger = structlog.get_logger(component="server")


class StorefrontCORSMiddleware(CORSMiddleware):
    """
    CORS with an allow-list. Unlisted origins are logged and, while
    `echo_unlisted` is set, still echoed back.
    """

    def __init__(self, app, echo_unlisted: bool = True, **kwargs):
        super().__init__(app, **kwargs)
        self.echo_unlisted = echo_unlisted

    def is_allowed_origin(self, origin: str) -> bool:
        if super().is_allowed_origin(origin):
            return True
        logger.warning("cors_origin_not_allowed", origin=origin, echoed=self.echo_unlisted)
        return self.echo_unlisted


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    models.Base.metadata.create_all(bind=engine)
    logger.info("server_started", variant=app.state.settings.payment_variant)
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title="Metals Payment Relay",
        description="Creates payment orders for the metals storefront and tracks their status",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.identity_client = ClerkClient(
        settings.identity_api_url,
        timeout=settings.http_timeout_seconds,
    )
    app.state.gateway = None
    if settings.gateway_enabled:
        app.state.gateway = CashfreeGateway(
            app_id=settings.cashfree_app_id,
            secret_key=settings.cashfree_secret_key,
            base_url=settings.cashfree_base_url,
            api_version=settings.cashfree_api_version,
            timeout=settings.http_timeout_seconds,
        )

    app.add_middleware(
        StorefrontCORSMiddleware,
        echo_unlisted=settings.cors_echo_unlisted_origins,
        allow_origins=settings.cors_allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        allow_credentials=True,
    )
    register_error_handlers(app)

    @app.get("/api/health", response_model=HealthResponse)
    def health_check():
        return HealthResponse(status="ok", message="Server is running", variant=settings.payment_variant)

    app.include_router(orders.router, prefix="/api", tags=["orders"])
    app.include_router(payments.router, prefix="/api", tags=["payments"])
    if settings.gateway_enabled:
        app.include_router(gateway.router, prefix="/api", tags=["gateway"])

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
