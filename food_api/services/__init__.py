"""
                        Services Module

Business logic behind the HTTP routes, plus the external collaborators
with the hybrid Mock (development) / Real (production) pattern.

Services:
    - users: Identity Store (registration, login)
    - cart: Cart Aggregator
    - catalog: Catalog Store
    - orders: Order Ledger
    - payment: Stripe Checkout
    - notifications: SendGrid email
"""

from food_api.services.users import UserService
from food_api.services.cart import CartService
from food_api.services.catalog import CatalogService
from food_api.services.orders import OrderService, PaymentOutcome, PlacedOrder

__all__ = [
    "UserService",
    "CartService",
    "CatalogService",
    "OrderService",
    "PaymentOutcome",
    "PlacedOrder",
]
