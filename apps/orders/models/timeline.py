from django.db import models

from .order import Order

__all__ = ["OrderStatusHistory"]


class OrderStatusHistory(models.Model):
    order = models.ForeignKey(Order, related_name="status_history", on_delete=models.CASCADE)

    status = models.CharField(max_length=20, choices=Order.Status.choices)  # Status *after* change
    note = models.TextField(blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "order_status_history"
        ordering = ["timestamp", "id"]

    def __str__(self):
        return f"{self.order_id} -> {self.status}"
