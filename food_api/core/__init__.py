"""
Core module initialization.
Exports configuration, logging and error utilities.
"""

from food_api.core.config import get_settings, Settings, EnvironmentMode, PaymentFailurePolicy

__all__ = ["get_settings", "Settings", "EnvironmentMode", "PaymentFailurePolicy"]
