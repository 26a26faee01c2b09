from decimal import Decimal

from django.db import models

from apps.utils.models import TimestampedModel

__all__ = ["Order", "ALLOWED_TRANSITIONS"]


class Order(TimestampedModel):
    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        PROCESSING = "Processing", "Processing"
        SHIPPED = "Shipped", "Shipped"
        DELIVERED = "Delivered", "Delivered"
        CANCELLED = "Cancelled", "Cancelled"

    user_id = models.CharField(max_length=128, db_index=True)

    # Snapshot, never recomputed after creation
    total_amount = models.DecimalField(max_digits=18, decimal_places=2)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    shipping_address = models.TextField()
    payment_method = models.CharField(max_length=100)

    # Client supplied; a repeated submit with the same key replays the first order
    idempotency_key = models.CharField(max_length=100, blank=True, null=True)

    # True when checkout decremented catalog stock; cancellation gives it back
    stock_reserved = models.BooleanField(default=False)

    class Meta:
        db_table = "orders"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "idempotency_key"],
                name="uniq_order_idempotency_key_per_user",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=Decimal("0.00")),
                name="order_total_non_negative",
            ),
        ]

    def __str__(self):
        return f"Order {self.id} [{self.status}]"

    @property
    def can_cancel(self):
        return self.can_transition_to(self.Status.CANCELLED)

    def can_transition_to(self, new_status):
        return new_status in ALLOWED_TRANSITIONS.get(self.status, ())


# Delivered and Cancelled are terminal
ALLOWED_TRANSITIONS = {
    Order.Status.PENDING: (Order.Status.PROCESSING, Order.Status.CANCELLED),
    Order.Status.PROCESSING: (Order.Status.SHIPPED, Order.Status.CANCELLED),
    Order.Status.SHIPPED: (Order.Status.DELIVERED,),
    Order.Status.DELIVERED: (),
    Order.Status.CANCELLED: (),
}
