"""
                Food Ordering API

Storefront backend for a food delivery service: token-authenticated
users, a food catalog, per-user carts and an order ledger with a
hosted-checkout payment flow.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
