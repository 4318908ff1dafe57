"""
Catalog endpoints. Listing is public; adding and removing require an admin.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from food_api.api.deps import get_admin_user, get_catalog_service
from food_api.schemas import (
    ErrorResponse,
    FoodItemEnvelope,
    FoodItemResponse,
    FoodListResponse,
    MessageResponse,
    RemoveFoodRequest,
)
from food_api.services import CatalogService

router = APIRouter(prefix="/api/food", tags=["Food"])


@router.get("", response_model=FoodListResponse, summary="List food items")
@router.get("/list", response_model=FoodListResponse, include_in_schema=False)
async def list_food(
    service: CatalogService = Depends(get_catalog_service),
) -> FoodListResponse:
    items = await service.list_items()
    return FoodListResponse(data=[FoodItemResponse.model_validate(i) for i in items])


@router.post(
    "",
    response_model=FoodItemEnvelope,
    responses={403: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Add a food item (admin)",
    dependencies=[Depends(get_admin_user)],
)
@router.post(
    "/add",
    response_model=FoodItemEnvelope,
    include_in_schema=False,
    dependencies=[Depends(get_admin_user)],
)
async def add_food(
    name: str = Form(...),
    description: str = Form(""),
    price: float = Form(...),
    category: str = Form(...),
    image: Optional[UploadFile] = File(None),
    service: CatalogService = Depends(get_catalog_service),
) -> FoodItemEnvelope:
    image_name, image_data = None, None
    if image is not None:
        image_name = image.filename
        image_data = await image.read()

    item = await service.add_item(
        name=name,
        description=description,
        price=price,
        category=category,
        image_name=image_name,
        image_data=image_data,
    )
    return FoodItemEnvelope(message="Food Added", data=FoodItemResponse.model_validate(item))


@router.post(
    "/remove",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Remove a food item (admin)",
    dependencies=[Depends(get_admin_user)],
)
async def remove_food(
    payload: RemoveFoodRequest,
    service: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    await service.remove_item(payload.id)
    return MessageResponse(message="Food Removed")
