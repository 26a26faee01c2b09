import logging

from django.dispatch import receiver
from .signals import order_placed, order_status_changed

logger = logging.getLogger(__name__)


@receiver(order_placed)
def log_order_placed(sender, order, **kwargs):
    logger.info(
        f"order_placed: {order.pk} total={order.total_amount}",
        extra={"order_id": order.pk, "user_id": order.user_id},
    )


@receiver(order_status_changed)
def log_status_change(sender, order, old_status, new_status, **kwargs):
    logger.info(
        f"order_status_changed: {order.pk} {old_status} -> {new_status}",
        extra={"order_id": order.pk, "user_id": order.user_id},
    )
