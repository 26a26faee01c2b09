# apps/catalog/admin.py
from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "name",
        "category",
        "price",
        "stock_quantity",
        "is_active",
    )
    search_fields = ("name", "description", "category")
    list_filter = ("category", "is_active")
    list_editable = ("price", "stock_quantity", "is_active")
    readonly_fields = ("created_at", "updated_at")
