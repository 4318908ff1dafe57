"""
HTTP routers, mounted under /api by food_api.main.
"""

from food_api.api import cart, food, orders, users

__all__ = ["cart", "food", "orders", "users"]
