"""
Request-scoped wiring.

Long-lived handles (settings, gateway, identity client) are built once by the
application factory and stored on `app.state`; services are assembled per
request around a fresh database session. Tests swap any of these through
`app.dependency_overrides`.
"""
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from payment_relay.config import Settings
from payment_relay.database import get_db
from payment_relay.providers.base import BaseGateway
from payment_relay.providers.clerk import ClerkClient
from payment_relay.services.identity import IdentityResolver
from payment_relay.services.orders import OrderService
from payment_relay.services.status import StatusReconciliationService
from payment_relay.services.store import TransactionStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> Optional[BaseGateway]:
    return request.app.state.gateway


def get_identity_client(request: Request) -> ClerkClient:
    return request.app.state.identity_client


def get_store(db: Session = Depends(get_db)) -> TransactionStore:
    return TransactionStore(db)


def get_order_service(
    store: TransactionStore = Depends(get_store),
    identity_client: ClerkClient = Depends(get_identity_client),
    settings: Settings = Depends(get_app_settings),
    gateway: Optional[BaseGateway] = Depends(get_gateway),
) -> OrderService:
    return OrderService(
        store=store,
        identity=IdentityResolver(identity_client),
        settings=settings,
        gateway=gateway,
    )


def get_status_service(
    store: TransactionStore = Depends(get_store),
    gateway: Optional[BaseGateway] = Depends(get_gateway),
) -> StatusReconciliationService:
    return StatusReconciliationService(store=store, gateway=gateway)
