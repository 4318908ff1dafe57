"""
Notification Service Abstract Base Class

Defines the interface for sending customer emails. Implementations only
provide the transport (send_email); the order messages are composed here
so mock and real services send identical content.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


def format_address(address: dict) -> str:
    parts = [
        address.get("street"),
        address.get("city"),
        address.get("state"),
        address.get("zipcode") or address.get("zipCode"),
        address.get("country"),
    ]
    return ", ".join(str(p) for p in parts if p)


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    def __init__(self, app_name: str):
        self.app_name = app_name

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    async def send_order_confirmation(
        self,
        order_id: str,
        customer_name: str,
        customer_email: str,
        items: list[dict],
        total_amount: float,
        address: dict,
    ) -> NotificationResult:
        """Email the customer that their paid order is being prepared."""
        lines = "\n".join(
            f"  {item['quantity']} x {item['name']} (${item['price']:.2f})"
            for item in items
        )
        delivery = format_address(address) or "the address provided at checkout"
        message = (
            f"Hi {customer_name}! Your order #{order_id} has been confirmed.\n"
            f"{lines}\n"
            f"Delivery to: {delivery}\n"
            f"Total: ${total_amount:.2f}\n"
            f"Thank you for ordering from {self.app_name}!"
        )
        html_lines = "".join(
            f"<li>{item['quantity']} x {item['name']}</li>" for item in items
        )
        body_html = f"""
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
                <h1 style="color: #ff6347;">Order Confirmed!</h1>
                <p>Hi {customer_name},</p>
                <p>Your order <strong>#{order_id}</strong> has been confirmed.</p>
                <ul>{html_lines}</ul>
                <p>Delivery to: <strong>{delivery}</strong></p>
                <p>Total: <strong>${total_amount:.2f}</strong></p>
                <p>Thank you for ordering from {self.app_name}!</p>
            </div>
            """
        return await self.send_email(
            to_email=customer_email,
            subject=f"Order Confirmed #{order_id} - {self.app_name}",
            body_html=body_html,
            body_text=message,
        )

    async def send_status_update(
        self,
        order_id: str,
        customer_name: str,
        customer_email: str,
        status: str,
    ) -> NotificationResult:
        """Email the customer the new fulfilment status of an order."""
        message = f"Hi {customer_name}! Your order #{order_id} is now: {status}."
        return await self.send_email(
            to_email=customer_email,
            subject=f"Order #{order_id}: {status} - {self.app_name}",
            body_html=f"<p>{message}</p>",
            body_text=message,
        )
