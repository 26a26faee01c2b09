from django.db import models

from apps.utils.models import TimestampedModel

__all__ = ["CartItem"]


class CartItem(TimestampedModel):
    """
    One pending purchase line: (user, product) -> quantity.
    Never stores a price; totals always use the current catalog price.
    """
    user_id = models.CharField(max_length=128, db_index=True)
    product = models.ForeignKey(
        "catalog.Product",
        related_name="cart_items",
        on_delete=models.PROTECT,
    )
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        db_table = "cart_items"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_id", "product"],
                name="uniq_cart_item_per_user_product",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="cart_item_quantity_positive",
            ),
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.product_id} x {self.quantity}"

    @property
    def line_total(self):
        return self.product.price * self.quantity
