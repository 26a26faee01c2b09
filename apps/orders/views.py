from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny

from .exceptions import CartItemNotFound
from .serializers import (
    AddToCartSerializer,
    CancelOrderSerializer,
    CartSerializer,
    CreateOrderSerializer,
    OrderDetailSerializer,
    OrderSerializer,
    OrderStatusUpdateSerializer,
    UpdateCartItemSerializer,
)
from .services import CartService, OrderService


IDEMPOTENCY_HEADERS = ("Idempotency-Key", "X-Idempotency-Key")


class AddToCartView(APIView):
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = AddToCartSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        item = CartService.add_to_cart(
            user_id=data["userId"],
            product_id=data["productId"],
            quantity=data["quantity"],
        )
        return Response({
            "success": True,
            "message": "Item added to cart",
            "cartItemId": item.id,
            "quantity": item.quantity,
        })


class CartDetailView(APIView):
    """
    /api/cart/{key}
    GET reads the cart of user `key`; PUT/DELETE address cart item `key`.
    """
    permission_classes = [AllowAny]

    def get(self, request, key):
        items, total = CartService.get_cart(key)
        return Response(CartSerializer({"items": items, "total": total}).data)

    def put(self, request, key):
        serializer = UpdateCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = CartService.update_cart_item(self._item_id(key), serializer.validated_data["quantity"])
        return Response({"success": True, "message": "Cart item updated", "quantity": item.quantity})

    def delete(self, request, key):
        CartService.remove_cart_item(self._item_id(key))
        return Response({"success": True, "message": "Item removed from cart"})

    @staticmethod
    def _item_id(key):
        try:
            return int(key)
        except (TypeError, ValueError):
            raise CartItemNotFound(f"Cart item {key} not found.")


class CartCountView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        return Response({"count": CartService.cart_count(user_id)})


class ClearCartView(APIView):
    permission_classes = [AllowAny]

    def delete(self, request, user_id):
        removed = CartService.clear_cart(user_id)
        return Response({"success": True, "message": "Cart cleared", "removed": removed})


class PlaceOrderView(APIView):
    """
    Checkout.
    An Idempotency-Key header makes a repeated submit return the first
    order (200) instead of placing another one.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        idempotency_key = next(
            (request.headers[h] for h in IDEMPOTENCY_HEADERS if request.headers.get(h)),
            None,
        )
        order, created = OrderService.place_order(
            user_id=data["userId"],
            cart_item_ids=data["cartItemIds"],
            shipping_address=data["shippingAddress"],
            payment_method=data["paymentMethod"],
            idempotency_key=idempotency_key,
        )

        if not created:
            return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)
        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_201_CREATED,
            headers={"Location": f"/api/orders/details/{order.id}"},
        )


class UserOrdersView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, user_id):
        orders = OrderService.list_orders(user_id)
        return Response(OrderSerializer(orders, many=True).data)


class OrderDetailView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, order_id):
        order = OrderService.get_order(order_id)
        return Response(OrderDetailSerializer(order).data)


class OrderStatusView(APIView):
    permission_classes = [AllowAny]

    def post(self, request, order_id):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        OrderService.transition_status(
            order_id,
            serializer.validated_data["status"],
            note=serializer.validated_data["note"],
        )
        return Response(OrderDetailSerializer(OrderService.get_order(order_id)).data)


class CancelOrderView(APIView):
    permission_classes = [AllowAny]

    def post(self, request, order_id):
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        OrderService.cancel_order(order_id, reason=serializer.validated_data["reason"])
        return Response(OrderDetailSerializer(OrderService.get_order(order_id)).data)
