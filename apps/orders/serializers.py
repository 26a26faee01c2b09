from rest_framework import serializers

from apps.catalog.serializers import ProductSerializer
from .models import CartItem, Order, OrderItem, OrderStatusHistory


# --- Cart ---

class CartItemSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source="user_id", read_only=True)
    productId = serializers.IntegerField(source="product_id", read_only=True)
    productName = serializers.CharField(source="product.name", read_only=True)
    product = ProductSerializer(read_only=True)

    class Meta:
        model = CartItem
        fields = ["id", "userId", "productId", "productName", "product", "quantity"]


class CartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True, read_only=True)
    total = serializers.DecimalField(max_digits=18, decimal_places=2, read_only=True)


class AddToCartSerializer(serializers.Serializer):
    userId = serializers.CharField(max_length=128)
    productId = serializers.IntegerField()
    quantity = serializers.IntegerField(default=1)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()


# --- Orders ---

class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)
    product = ProductSerializer(read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "product", "quantity", "price"]


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ["status", "note", "timestamp"]


class OrderSerializer(serializers.ModelSerializer):
    """
    Order body. `orderId`, `total` and `items` are aliases the browser
    client reads; they are computed here, not stored.
    """
    orderId = serializers.IntegerField(source="id", read_only=True)
    userId = serializers.CharField(source="user_id", read_only=True)
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=18, decimal_places=2, read_only=True)
    total = serializers.DecimalField(source="total_amount", max_digits=18, decimal_places=2, read_only=True)
    shippingAddress = serializers.CharField(source="shipping_address", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    orderItems = OrderItemSerializer(source="items", many=True, read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "orderId", "userId", "totalAmount", "total", "status",
            "shippingAddress", "paymentMethod", "createdAt", "orderItems", "items",
        ]


class OrderDetailSerializer(OrderSerializer):
    statusHistory = OrderStatusHistorySerializer(source="status_history", many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["statusHistory"]


class CreateOrderSerializer(serializers.Serializer):
    userId = serializers.CharField(max_length=128)
    shippingAddress = serializers.CharField()
    paymentMethod = serializers.CharField(max_length=100)
    cartItemIds = serializers.ListField(child=serializers.IntegerField(), allow_empty=True, default=list)


class OrderStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="Customer requested cancellation")
