from django.urls import path
from .views import (
    AddToCartView,
    CancelOrderView,
    CartCountView,
    CartDetailView,
    ClearCartView,
    OrderDetailView,
    OrderStatusView,
    PlaceOrderView,
    UserOrdersView,
)

urlpatterns = [
    # Cart (fixed segments before the catch-all {key})
    path("cart/add", AddToCartView.as_view(), name="cart-add"),
    path("cart/clear/<str:user_id>", ClearCartView.as_view(), name="cart-clear-legacy"),
    path("cart/<str:user_id>/count", CartCountView.as_view(), name="cart-count"),
    path("cart/<str:user_id>/clear", ClearCartView.as_view(), name="cart-clear"),
    path("cart/<str:key>", CartDetailView.as_view(), name="cart-detail"),

    # Orders
    path("orders", PlaceOrderView.as_view(), name="order-create"),
    path("orders/details/<int:order_id>", OrderDetailView.as_view(), name="order-detail"),
    path("orders/details/<int:order_id>/status", OrderStatusView.as_view(), name="order-status"),
    path("orders/details/<int:order_id>/cancel", CancelOrderView.as_view(), name="order-cancel"),
    path("orders/<str:user_id>", UserOrdersView.as_view(), name="user-orders"),
]
