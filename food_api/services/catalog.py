"""
Catalog Store

Food items and their uploaded images. Images are written to
settings.upload_dir and served by the /images static mount.
"""

import asyncio
import logging
import re
import time
from pathlib import Path
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from food_api.core.config import Settings
from food_api.core.errors import NotFoundError, ValidationError
from food_api.models import FoodItem

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}


def safe_filename(filename: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-]."""
    name = Path(filename).name
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._") or "image"


class CatalogService:

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.upload_dir = Path(settings.upload_dir)

    async def list_items(self) -> list[FoodItem]:
        result = await self.db.execute(select(FoodItem).order_by(FoodItem.created_at))
        return list(result.scalars().all())

    async def add_item(
        self,
        name: str,
        description: str,
        price: float,
        category: str,
        image_name: Optional[str] = None,
        image_data: Optional[bytes] = None,
    ) -> FoodItem:
        """
        Create a catalog entry, storing its image if one was uploaded.

        Raises:
            ValidationError: Blank name/category, non-positive price or
                unsupported image type
        """
        name = (name or "").strip()
        category = (category or "").strip()
        if not name:
            raise ValidationError("Food name is required")
        if not category:
            raise ValidationError("Category is required")
        if price is None or price <= 0:
            raise ValidationError("Price must be greater than 0")

        stored_image = None
        if image_data:
            stored_image = await self._store_image(image_name or "image", image_data)

        item = FoodItem(
            name=name,
            description=(description or "").strip(),
            price=round(float(price), 2),
            category=category,
            image=stored_image,
        )
        self.db.add(item)
        await self.db.commit()

        logger.info(f"Food item added: {item.id} ({item.name})")
        return item

    async def remove_item(self, item_id: str) -> None:
        item = await self.db.get(FoodItem, item_id)
        if item is None:
            raise NotFoundError("Food item not found")

        image = item.image
        await self.db.delete(item)
        await self.db.commit()

        if image:
            path = self.upload_dir / image
            await asyncio.to_thread(path.unlink, missing_ok=True)

        logger.info(f"Food item removed: {item_id}")

    async def _store_image(self, upload_name: str, data: bytes) -> str:
        filename = safe_filename(upload_name)
        if Path(filename).suffix.lower() not in ALLOWED_IMAGE_EXTENSIONS:
            raise ValidationError(
                f"Unsupported image type. Allowed: {sorted(ALLOWED_IMAGE_EXTENSIONS)}"
            )

        stored = f"{int(time.time() * 1000)}_{filename}"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread((self.upload_dir / stored).write_bytes, data)
        return stored
