"""
RabbitMQ Event Publisher for order email notifications
"""
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Optional

import pika
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from orderflow.config import settings
from orderflow.metrics import NOTIFICATION_FAILURES

logger = logging.getLogger(__name__)

ORDER_CONFIRMED_TEMPLATE = "order_confirmed"
ORDER_CANCELLED_TEMPLATE = "order_cancelled"


class EventPublisher:
    """Publisher for sending order email requests to RabbitMQ"""

    def __init__(self):
        self.rabbitmq_url = settings.RABBITMQ_URL
        self.exchange = settings.RABBITMQ_EXCHANGE
        self.routing_key = settings.RABBITMQ_ROUTING_KEY
        self.enabled = settings.NOTIFICATIONS_ENABLED

    @retry(
        stop=stop_after_attempt(settings.MAX_RETRIES),
        wait=wait_exponential(multiplier=settings.RETRY_DELAY, min=1, max=10),
        retry=retry_if_exception_type(pika.exceptions.AMQPConnectionError),
        reraise=True
    )
    def _connect(self) -> pika.BlockingConnection:
        return pika.BlockingConnection(pika.URLParameters(self.rabbitmq_url))

    def publish_order_email(self, template: str, order_data: Dict, customer_email: Optional[str]) -> bool:
        """
        Publish an OrderEmailRequested event

        Args:
            template: Email template (order_confirmed, order_cancelled)
            order_data: Serialized order
            customer_email: Recipient

        Returns:
            True if published successfully, False otherwise
        """
        if not self.enabled:
            logger.debug(f"Notifications disabled; skipping {template} for order {order_data.get('id')}")
            return False

        event = {
            "event_type": "OrderEmailRequested",
            "event_id": str(uuid.uuid4()),
            "event_version": "1.0",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "source": settings.SERVICE_NAME,
            "data": {
                "template": template,
                "order": order_data,
                "customerEmail": customer_email,
            }
        }

        try:
            connection = self._connect()
            try:
                channel = connection.channel()
                channel.exchange_declare(
                    exchange=self.exchange,
                    exchange_type='topic',
                    durable=True
                )
                channel.confirm_delivery()
                channel.basic_publish(
                    exchange=self.exchange,
                    routing_key=self.routing_key,
                    body=json.dumps(event, default=str),
                    properties=pika.BasicProperties(
                        delivery_mode=2,  # Persistent message
                        content_type='application/json',
                        correlation_id=event["event_id"]
                    ),
                    mandatory=True
                )
            finally:
                connection.close()

            logger.info(f"Event published: OrderEmailRequested/{template} (ID: {event['event_id']})")
            return True

        except pika.exceptions.UnroutableError:
            logger.error(f"OrderEmailRequested/{template} could not be routed to any queue")
            return False


def notify_order_event(publisher: Optional[EventPublisher], template: str, order_data: Dict,
                       customer_email: Optional[str]) -> None:
    """
    Fire-and-forget order email request

    Called after the triggering transaction has committed. Failures are
    logged and counted, never raised to the caller.
    """
    if publisher is None:
        return
    try:
        published = publisher.publish_order_email(template, order_data, customer_email)
    except Exception as e:
        logger.error(f"Failed to publish {template} notification for order {order_data.get('id')}: {e}")
        published = False

    if not published and getattr(publisher, "enabled", True):
        NOTIFICATION_FAILURES.labels(template=template).inc()
        logger.warning(f"{template} notification for order {order_data.get('id')} was not delivered")
