"""
Celery Tasks
Background customer notifications for the order ledger.
"""

import asyncio
import logging
import time

from kombu.exceptions import OperationalError

from food_api.celery_worker import celery_app
from food_api.services.notifications import get_notification_service

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    """The notification provider reported a failed delivery."""


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(NotificationDeliveryError,),
    retry_backoff=True
)
def send_order_confirmation(self, order_data: dict) -> dict:
    """
    Email the customer a confirmation for a paid order.

    Args:
        order_data: order_id, customer_name, customer_email, items, amount, address

    Returns:
        dict: Result of the send operation
    """
    order_id = order_data.get("order_id", "unknown")
    logger.info(f"Task {self.request.id}: Sending confirmation for order #{order_id}")
    start_time = time.time()

    service = get_notification_service()
    result = asyncio.run(service.send_order_confirmation(
        order_id=order_id,
        customer_name=order_data["customer_name"],
        customer_email=order_data["customer_email"],
        items=order_data["items"],
        total_amount=order_data["amount"],
        address=order_data.get("address") or {},
    ))

    elapsed = round(time.time() - start_time, 3)
    if not result.success:
        logger.warning(f"Task {self.request.id}: Order #{order_id} failed - {result.error_message}")
        raise NotificationDeliveryError(result.error_message)

    logger.info(f"Task {self.request.id}: Order #{order_id} confirmed in {elapsed}s")
    return {
        "success": True,
        "order_id": order_id,
        "message_id": result.message_id,
        "processing_time_seconds": elapsed,
    }


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(NotificationDeliveryError,),
    retry_backoff=True
)
def send_status_update(self, order_data: dict) -> dict:
    """Email the customer the new fulfilment status of an order."""
    order_id = order_data.get("order_id", "unknown")
    service = get_notification_service()
    result = asyncio.run(service.send_status_update(
        order_id=order_id,
        customer_name=order_data["customer_name"],
        customer_email=order_data["customer_email"],
        status=order_data["status"],
    ))

    if not result.success:
        raise NotificationDeliveryError(result.error_message)

    return {"success": True, "order_id": order_id, "message_id": result.message_id}


def dispatch(task, payload: dict) -> bool:
    """
    Queue a notification task without failing the calling request.

    Returns:
        bool: True if the task reached the broker
    """
    try:
        task.delay(payload)
        return True
    except OperationalError as e:
        logger.error(f"Could not queue {task.name} for order #{payload.get('order_id')}: {e}")
        return False
