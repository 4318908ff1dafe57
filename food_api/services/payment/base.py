"""
Payment Service Abstract Base Class

Defines the interface contract for all payment service implementations.
Both MockPaymentService and StripePaymentService must implement these methods,
ensuring consistent behavior regardless of which service is active.

The storefront uses a hosted checkout flow: the API creates a checkout
session, the customer is redirected to its URL, and the gateway later
reports back (redirect to /verify or webhook). The ledger then looks the
session up again before trusting the outcome.

Design Pattern: Strategy Pattern
    - Allows runtime switching between payment providers
    - Facilitates testing with mock implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class CheckoutLineItem:
    """One purchasable line shown on the hosted checkout page."""
    name: str
    unit_amount: float
    quantity: int

    @property
    def total(self) -> float:
        return round(self.unit_amount * self.quantity, 2)


@dataclass
class CheckoutSessionResult:
    """
    Standardized result from creating a checkout session.

    Attributes:
        success: Whether the session was created
        session_id: Provider session identifier (Stripe format: cs_xxx)
        url: Hosted page the customer is redirected to
        amount: Total amount of the session in major units
        currency: Currency code (e.g., "usd")
        error_message: Error description if creation failed
        error_code: Machine-readable error code
        response_time_ms: Time taken by the provider
    """
    success: bool
    session_id: Optional[str] = None
    url: Optional[str] = None
    amount: Optional[float] = None
    currency: str = "usd"
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0
    metadata: dict = field(default_factory=dict)


@dataclass
class CheckoutSessionStatus:
    """
    What the provider currently knows about a checkout session.

    Attributes:
        session_id: Provider session identifier
        paid: True once the customer's payment has been captured
        amount_total: Amount the session charges, in major units
        currency: Currency code
        order_id: Order reference attached when the session was created
    """
    session_id: str
    paid: bool
    amount_total: float
    currency: str = "usd"
    order_id: Optional[str] = None


class BasePaymentService(ABC):
    """
    Abstract base class for payment services.

    All payment service implementations (Mock, Stripe, etc.) must
    inherit from this class and implement all abstract methods.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the payment provider.

        Returns:
            str: Provider name (e.g., "mock", "stripe")
        """
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        order_id: str,
        line_items: list[CheckoutLineItem],
        success_url: str,
        cancel_url: str,
        currency: str = "usd",
        customer_email: Optional[str] = None,
    ) -> CheckoutSessionResult:
        """
        Create a hosted checkout session for an order.

        Args:
            order_id: Ledger order id, attached to the session as metadata
            line_items: Lines to charge (amounts in major units)
            success_url: Redirect target after a completed payment
            cancel_url: Redirect target after an abandoned payment
            currency: Three-letter currency code
            customer_email: Prefills the checkout form and receipt

        Returns:
            CheckoutSessionResult: Standardized result object
        """
        pass

    @abstractmethod
    async def retrieve_checkout_session(
        self,
        session_id: str,
    ) -> Optional[CheckoutSessionStatus]:
        """
        Look up a checkout session.

        Returns:
            CheckoutSessionStatus, or None if the provider does not know it
        """
        pass

    @abstractmethod
    async def verify_webhook(
        self,
        payload: bytes,
        signature: str,
    ) -> Optional[dict]:
        """
        Verify and parse a webhook from the payment provider.

        Args:
            payload: Raw request body bytes
            signature: Signature header from the request

        Returns:
            dict: Parsed webhook event if valid, None if invalid
        """
        pass
