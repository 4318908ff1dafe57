"""
Cart endpoints. All require a valid token; the cart is always the caller's.
"""

from fastapi import APIRouter, Depends

from food_api.api.deps import get_cart_service, get_current_user_id
from food_api.schemas import CartItemRequest, CartResponse, ErrorResponse
from food_api.services import CartService

router = APIRouter(
    prefix="/api/cart",
    tags=["Cart"],
    responses={401: {"model": ErrorResponse}},
)


@router.post("/add", response_model=CartResponse, summary="Add one unit of an item")
async def add_to_cart(
    payload: CartItemRequest,
    user_id: str = Depends(get_current_user_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.add_item(user_id, payload.item_id)
    return CartResponse(message="Added To Cart", cart_data=cart)


@router.post("/remove", response_model=CartResponse, summary="Remove one unit of an item")
async def remove_from_cart(
    payload: CartItemRequest,
    user_id: str = Depends(get_current_user_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.remove_item(user_id, payload.item_id)
    return CartResponse(message="Removed From Cart", cart_data=cart)


@router.post("/get", response_model=CartResponse, summary="Fetch the caller's cart")
async def get_cart(
    user_id: str = Depends(get_current_user_id),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.get_cart(user_id)
    return CartResponse(cart_data=cart)
