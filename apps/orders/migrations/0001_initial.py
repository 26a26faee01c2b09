from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user_id", models.CharField(db_index=True, max_length=128)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("status", models.CharField(
                    choices=[
                        ("Pending", "Pending"),
                        ("Processing", "Processing"),
                        ("Shipped", "Shipped"),
                        ("Delivered", "Delivered"),
                        ("Cancelled", "Cancelled"),
                    ],
                    db_index=True,
                    default="Pending",
                    max_length=20,
                )),
                ("shipping_address", models.TextField()),
                ("payment_method", models.CharField(max_length=100)),
                ("idempotency_key", models.CharField(blank=True, max_length=100, null=True)),
                ("stock_reserved", models.BooleanField(default=False)),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-created_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(fields=("user_id", "idempotency_key"), name="uniq_order_idempotency_key_per_user"),
                    models.CheckConstraint(condition=models.Q(("total_amount__gte", Decimal("0.00"))), name="order_total_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user_id", models.CharField(db_index=True, max_length=128)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="cart_items",
                    to="catalog.product",
                )),
            ],
            options={
                "db_table": "cart_items",
                "ordering": ["id"],
                "constraints": [
                    models.UniqueConstraint(fields=("user_id", "product"), name="uniq_cart_item_per_user_product"),
                    models.CheckConstraint(condition=models.Q(("quantity__gte", 1)), name="cart_item_quantity_positive"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("price", models.DecimalField(decimal_places=2, max_digits=18)),
                ("order", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="items",
                    to="orders.order",
                )),
                ("product", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="order_items",
                    to="catalog.product",
                )),
            ],
            options={
                "db_table": "order_items",
                "ordering": ["id"],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(
                    choices=[
                        ("Pending", "Pending"),
                        ("Processing", "Processing"),
                        ("Shipped", "Shipped"),
                        ("Delivered", "Delivered"),
                        ("Cancelled", "Cancelled"),
                    ],
                    max_length=20,
                )),
                ("note", models.TextField(blank=True)),
                ("timestamp", models.DateTimeField(auto_now_add=True)),
                ("order", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="status_history",
                    to="orders.order",
                )),
            ],
            options={
                "db_table": "order_status_history",
                "ordering": ["timestamp", "id"],
            },
        ),
    ]
