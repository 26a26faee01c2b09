from django.db import models

from .order import Order

__all__ = ["OrderItem"]


class OrderItem(models.Model):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name='items')
    # PROTECT: history must keep resolving after catalog changes
    product = models.ForeignKey("catalog.Product", on_delete=models.PROTECT, related_name='order_items')

    quantity = models.PositiveIntegerField()
    # Unit price captured at checkout
    price = models.DecimalField(max_digits=18, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]

    @property
    def subtotal(self):
        return self.price * self.quantity

    def __str__(self):
        return f"{self.quantity}x {self.product_id} @ {self.price}"
