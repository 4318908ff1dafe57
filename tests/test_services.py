"""Payment and notification collaborators, and the Celery tasks that use them."""

import json

import pytest
from kombu.exceptions import OperationalError

from food_api import tasks
from food_api.tasks import dispatch
from food_api.services.notifications import MockNotificationService
from food_api.services.notifications.base import format_address
from food_api.services.payment import CheckoutLineItem, MockPaymentService
from food_api.services.payment.stripe import StripePaymentService

LINES = [CheckoutLineItem("Greek Salad", 12.5, 2), CheckoutLineItem("Veg Rolls", 4.25, 1)]


@pytest.fixture
def payment():
    return MockPaymentService(failure_rate=0.0, min_latency=0, max_latency=0)


# =============================================================================
# PAYMENT
# =============================================================================

async def test_mock_checkout_session_round_trip(payment):
    result = await payment.create_checkout_session("o1", LINES, "http://ok", "http://cancel")

    assert result.success is True
    assert result.session_id.startswith("cs_mock_")
    assert result.url.endswith(result.session_id)
    assert result.amount == 29.25

    session = await payment.retrieve_checkout_session(result.session_id)
    assert session.paid is True
    assert session.order_id == "o1"
    assert session.amount_total == 29.25


async def test_mock_unknown_session(payment):
    assert await payment.retrieve_checkout_session("cs_missing") is None


async def test_mock_rejects_zero_amount(payment):
    result = await payment.create_checkout_session("o1", [CheckoutLineItem("Free", 0, 1)], "ok", "cancel")

    assert result.success is False
    assert result.error_code == "invalid_amount"


async def test_mock_simulated_failure():
    payment = MockPaymentService(failure_rate=1.0, min_latency=0, max_latency=0)

    result = await payment.create_checkout_session("o1", LINES, "ok", "cancel")

    assert result.success is False
    assert result.error_code in {code for code, _ in MockPaymentService.FAILURE_REASONS}
    assert result.session_id is None


async def test_mock_webhook_parsing(payment):
    event = {"type": "checkout.session.completed"}

    assert await payment.verify_webhook(json.dumps(event).encode(), "") == event
    assert await payment.verify_webhook(b"[1, 2]", "") is None
    assert await payment.verify_webhook(b"\xff", "") is None


async def test_stripe_webhook_requires_json_object(settings):
    stripe_settings = settings.model_copy(update={
        "stripe_secret_key": "sk_test_x",
        "stripe_webhook_secret": None,
    })
    service = StripePaymentService(stripe_settings)
    event = {"type": "checkout.session.completed", "data": {"object": {}}}

    assert await service.verify_webhook(json.dumps(event).encode(), "") == event
    assert await service.verify_webhook(b"[1, 2]", "") is None
    assert await service.verify_webhook(b'"checkout"', "") is None
    assert await service.verify_webhook(b"not json", "") is None


async def test_stripe_webhook_rejects_unsigned_event(settings):
    stripe_settings = settings.model_copy(update={
        "stripe_secret_key": "sk_test_x",
        "stripe_webhook_secret": "whsec_test",
    })
    service = StripePaymentService(stripe_settings)
    payload = json.dumps({"type": "checkout.session.completed"}).encode()

    assert await service.verify_webhook(payload, "t=1,v1=bad") is None


# =============================================================================
# NOTIFICATIONS
# =============================================================================

def test_format_address():
    address = {"firstName": "Alice", "street": "1 Main St", "city": "Springfield", "zipcode": "12345"}
    assert format_address(address) == "1 Main St, Springfield, 12345"
    assert format_address({}) == ""


async def test_order_confirmation_content():
    service = MockNotificationService("Tomato", failure_rate=0, max_latency=0)

    result = await service.send_order_confirmation(
        order_id="o1",
        customer_name="Alice",
        customer_email="a@x.com",
        items=[{"itemId": "f1", "name": "Greek Salad", "price": 12.5, "quantity": 2}],
        total_amount=25.0,
        address={"street": "1 Main St"},
    )

    assert result.success is True
    sent = service.sent[0]
    assert sent["to"] == "a@x.com"
    assert sent["subject"] == "Order Confirmed #o1 - Tomato"
    assert "2 x Greek Salad" in sent["text"]
    assert "Total: $25.00" in sent["text"]


# =============================================================================
# TASKS
# =============================================================================

ORDER_DATA = {
    "order_id": "o1",
    "customer_name": "Alice",
    "customer_email": "a@x.com",
    "items": [{"itemId": "f1", "name": "Greek Salad", "price": 12.5, "quantity": 2}],
    "amount": 25.0,
    "address": {"street": "1 Main St"},
}


def test_confirmation_task_sends_email(monkeypatch):
    service = MockNotificationService("Tomato", failure_rate=0, max_latency=0)
    monkeypatch.setattr(tasks, "get_notification_service", lambda: service)

    result = tasks.send_order_confirmation.run(ORDER_DATA)

    assert result["success"] is True
    assert result["order_id"] == "o1"
    assert result["message_id"].startswith("email_mock_")
    assert len(service.sent) == 1


def test_status_task_sends_email(monkeypatch):
    service = MockNotificationService("Tomato", failure_rate=0, max_latency=0)
    monkeypatch.setattr(tasks, "get_notification_service", lambda: service)

    result = tasks.send_status_update.run({**ORDER_DATA, "status": "Delivered"})

    assert result["success"] is True
    assert "Delivered" in service.sent[0]["subject"]


def test_failed_delivery_raises(monkeypatch):
    service = MockNotificationService("Tomato", failure_rate=1.0, max_latency=0)
    monkeypatch.setattr(tasks, "get_notification_service", lambda: service)

    with pytest.raises(tasks.NotificationDeliveryError):
        tasks.send_status_update.run({**ORDER_DATA, "status": "Delivered"})


def test_dispatch_survives_broker_outage():
    class UnreachableTask:
        name = "food_api.tasks.send_order_confirmation"

        def delay(self, payload):
            raise OperationalError("connection refused")

    assert dispatch(UnreachableTask(), ORDER_DATA) is False


def test_dispatch_queues_task():
    queued = []

    class RecordingTask:
        name = "food_api.tasks.send_order_confirmation"

        def delay(self, payload):
            queued.append(payload)

    assert dispatch(RecordingTask(), ORDER_DATA) is True
    assert queued == [ORDER_DATA]
