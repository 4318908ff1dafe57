"""
Cart Aggregator

Each user's cart lives on the user row as a JSON mapping of
food item id -> quantity. Every mutation re-reads the row under
SELECT ... FOR UPDATE and writes back a new mapping, so concurrent
requests for the same user are serialized by the database and never
lose an increment.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from food_api.core.errors import NotFoundError, ValidationError
from food_api.models import User

logger = logging.getLogger(__name__)


async def lock_user(db: AsyncSession, user_id: str) -> User:
    """Load a user row for update, bypassing any stale copy in the session."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return user


class CartService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add_item(self, user_id: str, item_id: str) -> dict[str, int]:
        """Increase the quantity of item_id by one."""
        item_id = self._clean_item_id(item_id)
        user = await lock_user(self.db, user_id)

        cart = dict(user.cart_data or {})
        cart[item_id] = cart.get(item_id, 0) + 1
        user.cart_data = cart
        await self.db.commit()

        logger.debug(f"Cart {user_id}: +1 {item_id} -> {cart[item_id]}")
        return cart

    async def remove_item(self, user_id: str, item_id: str) -> dict[str, int]:
        """Decrease the quantity of item_id by one; the entry goes away at zero."""
        item_id = self._clean_item_id(item_id)
        user = await lock_user(self.db, user_id)

        cart = dict(user.cart_data or {})
        quantity = cart.get(item_id, 0) - 1
        if quantity > 0:
            cart[item_id] = quantity
        else:
            cart.pop(item_id, None)

        user.cart_data = cart
        await self.db.commit()

        logger.debug(f"Cart {user_id}: -1 {item_id} -> {max(quantity, 0)}")
        return cart

    async def get_cart(self, user_id: str) -> dict[str, int]:
        result = await self.db.execute(
            select(User.cart_data).where(User.id == user_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("User not found")
        return dict(row.cart_data or {})

    async def clear_cart(self, user_id: str) -> None:
        user = await lock_user(self.db, user_id)
        user.cart_data = {}
        await self.db.commit()

    @staticmethod
    def _clean_item_id(item_id: str) -> str:
        item_id = (item_id or "").strip()
        if not item_id:
            raise ValidationError("itemId is required")
        return item_id
