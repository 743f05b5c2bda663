from typing import Optional

from fastapi import APIRouter, Depends, Header

from payment_relay.dependencies import get_order_service
from payment_relay.schemas.requests import CreateOrderRequest
from payment_relay.schemas.responses import CreateOrderResponse
from payment_relay.services.orders import OrderService

router = APIRouter()


@router.post("/create-order", response_model=CreateOrderResponse, status_code=201)
async def create_order(
    request: CreateOrderRequest,
    authorization: Optional[str] = Header(default=None),
    service: OrderService = Depends(get_order_service),
):
    """
    Create an order for a metals purchase.

    - Resolves the purchaser from the bearer token, then `userData`, then guest
    - Creates the hosted-checkout order when the gateway variant is active
    - Stores a pending transaction and returns the client payload
    """
    data = await service.create_order(
        amount=request.amount,
        metal=request.metal,
        auth_header=authorization,
        client_user=request.userData.model_dump() if request.userData else None,
        payment_method=request.paymentMethod,
    )
    return CreateOrderResponse(data=data)
