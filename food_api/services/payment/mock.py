"""
Mock Payment Service Implementation

Simulates Stripe Checkout without making real API calls.
Used in development mode (ENV_MODE=development) to:
    - Test the complete checkout flow locally
    - Run load simulations without incurring costs
    - Develop without internet connectivity

Behavior:
    - Simulates configurable response times
    - Randomly declines session creation at `failure_rate`
    - Generates Stripe-like IDs (cs_mock_xxx)
    - Remembers created sessions; a known session is reported as paid,
      as if the customer completed the hosted page
"""

import asyncio
import json
import random
import uuid
import logging
from typing import Optional

from food_api.services.payment.base import (
    BasePaymentService,
    CheckoutLineItem,
    CheckoutSessionResult,
    CheckoutSessionStatus,
)

logger = logging.getLogger(__name__)


class MockPaymentService(BasePaymentService):
    """
    Mock implementation of the payment service.

    Attributes:
        failure_rate: Probability of simulated gateway failure (0.0-1.0)
        min_latency: Minimum simulated response time in seconds
        max_latency: Maximum simulated response time in seconds

    Example:
        >>> service = MockPaymentService(failure_rate=0.0)
        >>> result = await service.create_checkout_session(
        ...     "o1", [CheckoutLineItem("Salad", 5.0, 2)], "ok", "cancel"
        ... )
        >>> result.success
        True
    """

    # Simulated failure reasons (mimics real Stripe error codes)
    FAILURE_REASONS = [
        ("api_connection_error", "Payment service temporarily unavailable"),
        ("rate_limit", "Too many requests to the payment service"),
        ("processing_error", "An error occurred while creating the checkout session."),
    ]

    def __init__(
        self,
        failure_rate: float = 0.10,
        min_latency: float = 0.2,
        max_latency: float = 0.8,
        checkout_base_url: str = "https://checkout.stripe.com/mock",
    ):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(min_latency, max_latency)
        self.checkout_base_url = checkout_base_url.rstrip("/")
        self._sessions: dict[str, CheckoutSessionStatus] = {}

        logger.info(
            f"MockPaymentService initialized "
            f"(failure_rate={failure_rate:.0%}, "
            f"latency={min_latency}-{self.max_latency}s)"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    def _generate_session_id(self) -> str:
        """Generate a Stripe-like checkout session ID."""
        return f"cs_mock_{uuid.uuid4().hex[:24]}"

    async def _simulate_latency(self) -> float:
        """
        Simulate network latency.

        Returns:
            float: Actual latency in milliseconds
        """
        latency = random.uniform(self.min_latency, self.max_latency)
        if latency > 0:
            await asyncio.sleep(latency)
        return latency * 1000

    def _should_fail(self) -> bool:
        return random.random() < self.failure_rate

    async def create_checkout_session(
        self,
        order_id: str,
        line_items: list[CheckoutLineItem],
        success_url: str,
        cancel_url: str,
        currency: str = "usd",
        customer_email: Optional[str] = None,
    ) -> CheckoutSessionResult:
        """Simulate creating a hosted checkout session."""
        amount = round(sum(line.total for line in line_items), 2)

        logger.debug(f"Mock: Creating checkout session for order {order_id} (${amount:.2f})")

        if amount <= 0:
            return CheckoutSessionResult(
                success=False,
                error_message="Amount must be greater than 0",
                error_code="invalid_amount",
            )

        latency_ms = await self._simulate_latency()

        if self._should_fail():
            error_code, error_message = random.choice(self.FAILURE_REASONS)
            logger.debug(f"Mock: Checkout session failed - {error_code}")
            return CheckoutSessionResult(
                success=False,
                amount=amount,
                currency=currency,
                error_message=error_message,
                error_code=error_code,
                response_time_ms=latency_ms,
            )

        session_id = self._generate_session_id()
        self._sessions[session_id] = CheckoutSessionStatus(
            session_id=session_id,
            paid=True,
            amount_total=amount,
            currency=currency,
            order_id=order_id,
        )

        logger.info(f"Mock: Checkout session created - {session_id} - ${amount:.2f}")

        return CheckoutSessionResult(
            success=True,
            session_id=session_id,
            url=f"{self.checkout_base_url}/{session_id}",
            amount=amount,
            currency=currency,
            response_time_ms=latency_ms,
            metadata={
                "order_id": order_id,
                "success_url": success_url,
                "cancel_url": cancel_url,
                "customer_email": customer_email,
                "mock": True,
            },
        )

    async def retrieve_checkout_session(
        self,
        session_id: str,
    ) -> Optional[CheckoutSessionStatus]:
        """Return the remembered session, if any."""
        return self._sessions.get(session_id)

    async def verify_webhook(
        self,
        payload: bytes,
        signature: str,
    ) -> Optional[dict]:
        """
        Simulate webhook verification.

        In mock mode, always returns the parsed payload without
        cryptographic verification.
        """
        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Mock: Invalid webhook payload")
            return None
        return event if isinstance(event, dict) else None
