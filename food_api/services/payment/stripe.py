"""
Stripe Payment Service Implementation

Production implementation using Stripe Checkout through the official SDK.
Used when ENV_MODE=production or ENV_MODE=staging.

Requirements:
    - STRIPE_SECRET_KEY must be set in environment
    - STRIPE_WEBHOOK_SECRET for webhook verification

Security Notes:
    - Always verify webhook signatures
    - Amounts are sent to Stripe in the smallest currency unit (cents)
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Optional

import stripe

from food_api.core.config import Settings
from food_api.services.payment.base import (
    BasePaymentService,
    CheckoutLineItem,
    CheckoutSessionResult,
    CheckoutSessionStatus,
)

logger = logging.getLogger(__name__)


class StripePaymentService(BasePaymentService):
    """
    Production Stripe payment service implementation.

    The SDK is synchronous; calls run in a worker thread so the event loop
    keeps serving other requests while Stripe responds.
    """

    def __init__(self, settings: Settings):
        """
        Initialize Stripe with API key from settings.

        Raises:
            ValueError: If STRIPE_SECRET_KEY is not configured
        """
        if not settings.stripe_secret_key:
            raise ValueError(
                "STRIPE_SECRET_KEY is required for production mode. "
                "Set it in your .env file or environment variables."
            )

        stripe.api_key = settings.stripe_secret_key
        stripe.api_version = "2023-10-16"  # Pin API version for stability
        stripe.max_network_retries = settings.stripe_max_network_retries
        stripe.default_http_client = stripe.RequestsClient(
            timeout=settings.stripe_timeout_seconds
        )

        self._webhook_secret = settings.stripe_webhook_secret
        self._currency = settings.stripe_currency

        logger.info(
            f"StripePaymentService initialized "
            f"(api_version={stripe.api_version}, "
            f"timeout={settings.stripe_timeout_seconds}s, "
            f"retries={settings.stripe_max_network_retries})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "stripe"

    def _convert_to_cents(self, amount: float) -> int:
        """
        Convert dollar amount to cents for Stripe.

        Args:
            amount: Amount in dollars (e.g., 29.99)

        Returns:
            int: Amount in cents (e.g., 2999)
        """
        return int(round(amount * 100))

    def _convert_from_cents(self, cents: Optional[int]) -> float:
        """Convert cents back to dollars."""
        return (cents or 0) / 100.0

    async def create_checkout_session(
        self,
        order_id: str,
        line_items: list[CheckoutLineItem],
        success_url: str,
        cancel_url: str,
        currency: str = "usd",
        customer_email: Optional[str] = None,
    ) -> CheckoutSessionResult:
        """Create a Stripe Checkout session in payment mode."""
        start_time = datetime.now()
        currency = currency or self._currency

        logger.info(f"Stripe: Creating checkout session for order {order_id}")

        params = {
            "mode": "payment",
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": line.name},
                        "unit_amount": self._convert_to_cents(line.unit_amount),
                    },
                    "quantity": line.quantity,
                }
                for line in line_items
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": order_id,
            "metadata": {"order_id": order_id},
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = await asyncio.to_thread(stripe.checkout.Session.create, **params)

            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.info(f"Stripe: Checkout session created - {session.id}")

            return CheckoutSessionResult(
                success=True,
                session_id=session.id,
                url=session.url,
                amount=self._convert_from_cents(session.amount_total),
                currency=session.currency or currency,
                response_time_ms=elapsed_ms,
                metadata={"status": session.status},
            )

        except stripe.InvalidRequestError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Invalid request - {e}")
            return CheckoutSessionResult(
                success=False,
                error_message=str(e),
                error_code="invalid_request",
                response_time_ms=elapsed_ms,
            )

        except stripe.AuthenticationError as e:
            logger.critical(f"Stripe: Authentication failed - {e}")
            return CheckoutSessionResult(
                success=False,
                error_message="Payment service configuration error",
                error_code="authentication_error",
            )

        except stripe.APIConnectionError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Connection error - {e}")
            return CheckoutSessionResult(
                success=False,
                error_message="Payment service temporarily unavailable",
                error_code="connection_error",
                response_time_ms=elapsed_ms,
            )

        except stripe.StripeError as e:
            elapsed_ms = (datetime.now() - start_time).total_seconds() * 1000
            logger.error(f"Stripe: Error - {e}")
            return CheckoutSessionResult(
                success=False,
                error_message="Payment processing error",
                error_code="stripe_error",
                response_time_ms=elapsed_ms,
            )

    async def retrieve_checkout_session(
        self,
        session_id: str,
    ) -> Optional[CheckoutSessionStatus]:
        """
        Fetch a checkout session from Stripe.

        Returns None when Stripe does not know the id. Connectivity problems
        propagate as stripe.StripeError so callers can report an upstream
        failure instead of treating the payment as declined.
        """
        try:
            session = await asyncio.to_thread(stripe.checkout.Session.retrieve, session_id)
        except stripe.InvalidRequestError as e:
            logger.warning(f"Stripe: Unknown checkout session {session_id} - {e}")
            return None

        metadata = session.metadata or {}
        return CheckoutSessionStatus(
            session_id=session.id,
            paid=session.payment_status == "paid",
            amount_total=self._convert_from_cents(session.amount_total),
            currency=session.currency or self._currency,
            order_id=metadata.get("order_id") or session.client_reference_id,
        )

    async def verify_webhook(
        self,
        payload: bytes,
        signature: str,
    ) -> Optional[dict]:
        """
        Verify and parse a Stripe webhook event.

        Returns:
            Parsed event object if valid, None if verification fails
        """
        event = self._parse_event(payload)
        if event is None:
            return None

        if not self._webhook_secret:
            logger.warning(
                "Stripe: Webhook secret not configured, skipping verification"
            )
            return event

        try:
            verified = stripe.Webhook.construct_event(
                payload,
                signature,
                self._webhook_secret,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe: Webhook signature invalid - {e}")
            return None
        except ValueError as e:
            logger.warning(f"Stripe: Webhook payload invalid - {e}")
            return None

        logger.debug(f"Stripe: Webhook verified - {verified.type}")
        # Signature checked; hand plain JSON to the ledger
        return event

    @staticmethod
    def _parse_event(payload: bytes) -> Optional[dict]:
        """Decode a webhook body. Only a JSON object is an event."""
        try:
            event = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Stripe: Webhook payload is not JSON")
            return None
        return event if isinstance(event, dict) else None
