"""
Order endpoints.

/verify and /webhook are called on behalf of the payment gateway and carry
no user token; every other route requires one.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from food_api.api.deps import get_admin_user, get_current_user_id, get_order_service
from food_api.core.errors import ValidationError
from food_api.schemas import (
    ErrorResponse,
    MessageResponse,
    OrderEnvelope,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    UpdateStatusRequest,
    VerifyPaymentRequest,
)
from food_api.services import OrderService
from food_api.services.payment import BasePaymentService, get_payment_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/order", tags=["Orders"])


@router.post(
    "/place",
    response_model=PlaceOrderResponse,
    responses={
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Place an order and start checkout",
)
async def place_order(
    payload: PlaceOrderRequest,
    user_id: str = Depends(get_current_user_id),
    service: OrderService = Depends(get_order_service),
) -> PlaceOrderResponse:
    items = None
    if payload.items is not None:
        items = [(line.item_id, line.quantity) for line in payload.items]

    placed = await service.place_order(user_id, items, payload.address)
    return PlaceOrderResponse(
        order_id=placed.order.id,
        amount=placed.order.amount,
        session_url=placed.session_url,
    )


@router.post(
    "/verify",
    response_model=MessageResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Record the payment outcome reported by the checkout redirect",
)
async def verify_order(
    payload: VerifyPaymentRequest,
    service: OrderService = Depends(get_order_service),
) -> MessageResponse:
    outcome = await service.verify_payment(payload.order_id, payload.success)
    return MessageResponse(success=True, message=outcome.message)


@router.post(
    "/webhook",
    summary="Payment gateway webhook",
    include_in_schema=False,
)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    payment_service: BasePaymentService = Depends(get_payment_service),
    service: OrderService = Depends(get_order_service),
) -> dict:
    body = await request.body()
    event = await payment_service.verify_webhook(body, stripe_signature or "")
    if event is None:
        raise ValidationError("Invalid webhook payload or signature", code="invalid_webhook")

    logger.info(f"Payment webhook received: {event.get('type', 'unknown')}")
    outcome = await service.handle_gateway_event(event)
    return {"received": True, "outcome": outcome.value if outcome else None}


@router.post(
    "/userorders",
    response_model=OrderListResponse,
    responses={401: {"model": ErrorResponse}},
    summary="List the caller's orders",
)
async def user_orders(
    user_id: str = Depends(get_current_user_id),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders = await service.list_user_orders(user_id)
    return OrderListResponse(data=[OrderResponse.model_validate(o) for o in orders])


@router.get(
    "/list",
    response_model=OrderListResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="List all orders (admin)",
    dependencies=[Depends(get_admin_user)],
)
async def list_orders(
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    orders = await service.list_all_orders()
    return OrderListResponse(data=[OrderResponse.model_validate(o) for o in orders])


@router.post(
    "/status",
    response_model=OrderEnvelope,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
    summary="Set an order's fulfilment status (admin)",
    dependencies=[Depends(get_admin_user)],
)
async def update_status(
    payload: UpdateStatusRequest,
    service: OrderService = Depends(get_order_service),
) -> OrderEnvelope:
    order = await service.update_status(payload.order_id, payload.status)
    return OrderEnvelope(message="Status Updated", data=OrderResponse.model_validate(order))
