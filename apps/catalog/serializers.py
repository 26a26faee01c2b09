# apps/catalog/serializers.py
from decimal import Decimal

from rest_framework import serializers
from .models import Product


class ProductSerializer(serializers.ModelSerializer):
    imageUrl = serializers.URLField(source="image_url", required=False, allow_blank=True, max_length=500)
    stockQuantity = serializers.IntegerField(source="stock_quantity", required=False, min_value=0)
    isActive = serializers.BooleanField(source="is_active", required=False)
    inStock = serializers.SerializerMethodField()
    price = serializers.DecimalField(max_digits=18, decimal_places=2, min_value=Decimal("0.00"))

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "description",
            "price",
            "category",
            "imageUrl",
            "stockQuantity",
            "isActive",
            "inStock",
        ]
        read_only_fields = ["id"]
        extra_kwargs = {
            "description": {"required": False},
            "category": {"required": False},
        }

    def get_inStock(self, obj) -> bool:
        return obj.stock_quantity > 0 and obj.is_active

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("Name is required.")
        return value.strip()
