"""
Order Ledger

Checkout, payment verification and fulfilment status of orders.

Lifecycle:
    place_order      -> "Food Processing", payment=False, cart cleared
    verify_payment   -> payment=True (gateway confirmed), or the unpaid
                        order is deleted / marked "Payment Failed"
    update_status    -> admin overwrite of the fulfilment status

Cart clearing and order creation share one transaction. The checkout
session is requested after that commit; if the gateway cannot create one
the order is withdrawn and its items go back into the cart.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from food_api.core.config import PaymentFailurePolicy, Settings
from food_api.core.errors import (
    AppError,
    EmptyCartError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from food_api.models import FoodItem, Order, OrderStatus, User
from food_api.services.cart import lock_user
from food_api.services.payment import BasePaymentService, CheckoutLineItem, CheckoutSessionStatus
from food_api import tasks

logger = logging.getLogger(__name__)

# Tolerance when comparing gateway amounts (major units) to order amounts
AMOUNT_TOLERANCE = 0.005


class PaymentOutcome(str, enum.Enum):
    PAID = "paid"
    ALREADY_PAID = "already_paid"
    DELETED = "deleted"
    MARKED_FAILED = "marked_failed"

    @property
    def message(self) -> str:
        return {
            PaymentOutcome.PAID: "Paid",
            PaymentOutcome.ALREADY_PAID: "Order already paid",
            PaymentOutcome.DELETED: "Not Paid",
            PaymentOutcome.MARKED_FAILED: "Not Paid",
        }[self]


@dataclass
class PlacedOrder:
    order: Order
    session_url: str


class OrderService:
    """
    Ledger operations for one request.

    Args:
        db: Request-scoped session
        payment_service: Gateway used for checkout sessions
        settings: Provides frontend URL, currency and failure policy
    """

    def __init__(
        self,
        db: AsyncSession,
        payment_service: BasePaymentService,
        settings: Settings,
    ):
        self.db = db
        self.payment = payment_service
        self.settings = settings

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def place_order(
        self,
        user_id: str,
        items: Optional[list[tuple[str, int]]],
        address: Any,
    ) -> PlacedOrder:
        """
        Create an order and start a checkout session for it.

        Args:
            user_id: Owner of the order
            items: (item id, quantity) pairs; None orders the stored cart
            address: Delivery address object

        Raises:
            EmptyCartError: No items to order
            ValidationError: Non-positive quantity or missing address
            NotFoundError: Unknown user or food item
            UpstreamError: Checkout session could not be created (the order
                is withdrawn and the cart restored)
        """
        try:
            user = await lock_user(self.db, user_id)
            cart = dict(user.cart_data or {})
            if items is None:
                items = list(cart.items())

            quantities = self._merge_quantities(items)
            self._validate_address(address)
            snapshot, amount = await self._price_items(quantities)

            order = Order(
                user_id=user.id,
                items=snapshot,
                amount=amount,
                address=address,
                status=OrderStatus.FOOD_PROCESSING,
                payment=False,
            )
            self.db.add(order)
            user.cart_data = {}
            await self.db.commit()
        except AppError:
            await self.db.rollback()
            raise

        logger.info(f"Order #{order.id} placed by {user_id} (${amount:.2f}, {len(snapshot)} lines)")

        try:
            session_url = await self._start_checkout(order, user.email)
        except UpstreamError:
            await self._abandon_checkout(order, cart)
            raise
        return PlacedOrder(order=order, session_url=session_url)

    async def _abandon_checkout(self, order: Order, cart: dict[str, int]) -> None:
        """
        Undo a checkout whose payment session could not be created.

        The order has no session and can never be paid, so it is removed and
        the cart it consumed is merged back into the user's current cart.
        """
        user = await lock_user(self.db, order.user_id)

        restored = dict(user.cart_data or {})
        for item_id, quantity in cart.items():
            restored[item_id] = restored.get(item_id, 0) + quantity
        user.cart_data = restored

        stale = await self._lock_order(order.id)
        await self.db.delete(stale)
        await self.db.commit()

        logger.info(f"Order #{order.id} withdrawn after checkout failure; cart restored for {user.id}")

    @staticmethod
    def _merge_quantities(items: list[tuple[str, int]]) -> dict[str, int]:
        if not items:
            raise EmptyCartError()

        quantities: dict[str, int] = {}
        for item_id, quantity in items:
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise ValidationError(f"Quantity for item {item_id} must be a positive integer")
            quantities[item_id] = quantities.get(item_id, 0) + quantity
        return quantities

    @staticmethod
    def _validate_address(address: Any) -> None:
        if not isinstance(address, dict) or not any(
            str(value).strip() for value in address.values() if value is not None
        ):
            raise ValidationError("A delivery address is required")

    async def _price_items(self, quantities: dict[str, int]) -> tuple[list[dict], float]:
        """Snapshot current catalog prices for the ordered items."""
        result = await self.db.execute(
            select(FoodItem).where(FoodItem.id.in_(list(quantities)))
        )
        catalog = {item.id: item for item in result.scalars().all()}

        missing = [item_id for item_id in quantities if item_id not in catalog]
        if missing:
            raise NotFoundError(f"Food item(s) not found: {', '.join(missing)}")

        snapshot = [
            {
                "itemId": item_id,
                "name": catalog[item_id].name,
                "price": catalog[item_id].price,
                "quantity": quantity,
            }
            for item_id, quantity in quantities.items()
        ]
        amount = round(sum(line["price"] * line["quantity"] for line in snapshot), 2)
        return snapshot, amount

    async def _start_checkout(self, order: Order, customer_email: str) -> str:
        base = self.settings.frontend_url.rstrip("/")
        line_items = [
            CheckoutLineItem(name=line["name"], unit_amount=line["price"], quantity=line["quantity"])
            for line in order.items
        ]

        try:
            result = await self.payment.create_checkout_session(
                order_id=order.id,
                line_items=line_items,
                success_url=f"{base}/verify?success=true&orderId={order.id}",
                cancel_url=f"{base}/verify?success=false&orderId={order.id}",
                currency=self.settings.stripe_currency,
                customer_email=customer_email,
            )
        except Exception as e:
            logger.exception(f"Checkout session error for order #{order.id}: {e}")
            raise UpstreamError("Payment service unavailable, please try again") from e

        if not result.success or not result.url:
            logger.error(
                f"Checkout session failed for order #{order.id}: "
                f"{result.error_code} - {result.error_message}"
            )
            raise UpstreamError(result.error_message or "Payment service unavailable, please try again")

        order.payment_session_id = result.session_id
        await self.db.commit()
        return result.url

    # =========================================================================
    # PAYMENT VERIFICATION
    # =========================================================================

    async def verify_payment(self, order_id: str, success: bool) -> PaymentOutcome:
        """
        Record the gateway's verdict for an order.

        Called without authentication (gateway redirect), so a success claim
        is only trusted once the order's own checkout session is confirmed
        paid for this order id and amount. A paid order is never modified.

        Raises:
            NotFoundError: Unknown order
            ValidationError: Gateway does not confirm the payment (payment_mismatch)
            UpstreamError: Gateway could not be queried
        """
        if success:
            return await self._record_payment(order_id)

        order = await self._lock_order(order_id)
        if order.payment:
            await self.db.rollback()
            logger.warning(f"Ignoring failure report for paid order #{order_id}")
            return PaymentOutcome.ALREADY_PAID

        if self.settings.payment_failure_policy == PaymentFailurePolicy.MARK_FAILED:
            order.status = OrderStatus.PAYMENT_FAILED
            await self.db.commit()
            logger.info(f"Order #{order_id} marked as payment failed")
            return PaymentOutcome.MARKED_FAILED

        await self.db.delete(order)
        await self.db.commit()
        logger.info(f"Order #{order_id} deleted after failed payment")
        return PaymentOutcome.DELETED

    async def _record_payment(self, order_id: str) -> PaymentOutcome:
        # The gateway is queried before the row lock is taken
        order = await self.db.get(Order, order_id)
        if order is None:
            raise NotFoundError(f"Order #{order_id} not found")
        if order.payment:
            return PaymentOutcome.ALREADY_PAID

        session = await self._fetch_session(order)

        order = await self._lock_order(order_id)
        if order.payment:
            await self.db.rollback()
            return PaymentOutcome.ALREADY_PAID

        try:
            self._check_session(order, session)
        except AppError:
            await self.db.rollback()
            raise

        order.payment = True
        if order.status == OrderStatus.PAYMENT_FAILED:
            order.status = OrderStatus.FOOD_PROCESSING
        await self.db.commit()
        logger.info(f"Order #{order_id} paid")

        await self._notify(order, tasks.send_order_confirmation, {
            "items": order.items,
            "amount": order.amount,
            "address": order.address,
        })
        return PaymentOutcome.PAID

    async def _fetch_session(self, order: Order) -> CheckoutSessionStatus:
        if not order.payment_session_id:
            raise ValidationError("No checkout session exists for this order", code="payment_mismatch")

        try:
            session = await self.payment.retrieve_checkout_session(order.payment_session_id)
        except Exception as e:
            logger.exception(f"Could not look up checkout session for order #{order.id}: {e}")
            raise UpstreamError("Payment service unavailable, please try again") from e

        if session is None or not session.paid:
            raise ValidationError("Payment has not been completed", code="payment_mismatch")
        return session

    @staticmethod
    def _check_session(order: Order, session: CheckoutSessionStatus) -> None:
        if session.order_id != order.id or abs(session.amount_total - order.amount) > AMOUNT_TOLERANCE:
            logger.warning(
                f"Checkout session {session.session_id} does not match order #{order.id} "
                f"(session order={session.order_id}, amount={session.amount_total:.2f}, "
                f"order amount={order.amount:.2f})"
            )
            raise ValidationError("Payment does not match this order", code="payment_mismatch")

    async def handle_gateway_event(self, event: dict) -> Optional[PaymentOutcome]:
        """
        Apply a verified payment gateway webhook event.

        Handles checkout.session.completed (paid sessions only) and
        checkout.session.expired / async_payment_failed. Other events, and
        events for orders that no longer exist, are ignored.

        Raises:
            ValidationError: Event has no data object (invalid_webhook)
        """
        event_type = event.get("type")
        data = event.get("data")
        session = data.get("object") if isinstance(data, dict) else None
        if not isinstance(session, dict):
            raise ValidationError("Webhook event has no data object", code="invalid_webhook")

        metadata = session.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        order_id = metadata.get("order_id") or session.get("client_reference_id")

        if not isinstance(order_id, str) or not order_id:
            logger.debug(f"Ignoring gateway event {event_type} without order reference")
            return None

        if event_type == "checkout.session.completed":
            if session.get("payment_status") != "paid":
                return None
            success = True
        elif event_type in ("checkout.session.expired", "checkout.session.async_payment_failed"):
            success = False
        else:
            return None

        try:
            return await self.verify_payment(order_id, success)
        except NotFoundError:
            logger.info(f"Gateway event {event_type} for unknown order #{order_id}")
            return None

    # =========================================================================
    # FULFILMENT
    # =========================================================================

    async def update_status(self, order_id: str, new_status: str) -> Order:
        """
        Overwrite an order's fulfilment status.

        Any known status is accepted from any other; transitions are not
        checked against the workflow order.

        Raises:
            ValidationError: Unknown status value
            NotFoundError: Unknown order
        """
        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise ValidationError(
                f"Invalid status. Options: {[s.value for s in OrderStatus]}"
            )

        order = await self._lock_order(order_id)
        previous = order.status
        order.status = status
        await self.db.commit()

        logger.info(f"Order #{order_id} status {previous.value} -> {status.value}")

        if previous != status:
            await self._notify(order, tasks.send_status_update, {"status": status.value})
        return order

    async def list_user_orders(self, user_id: str) -> list[Order]:
        result = await self.db.execute(
            select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all_orders(self) -> list[Order]:
        result = await self.db.execute(select(Order).order_by(Order.created_at.desc()))
        return list(result.scalars().all())

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _lock_order(self, order_id: str) -> Order:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundError(f"Order #{order_id} not found")
        return order

    async def _notify(self, order: Order, task, extra: dict) -> None:
        user = await self.db.get(User, order.user_id)
        if user is None:
            return
        tasks.dispatch(task, {
            "order_id": order.id,
            "customer_name": user.name,
            "customer_email": user.email,
            **extra,
        })
