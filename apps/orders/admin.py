from django.contrib import admin
from .models import CartItem, Order, OrderItem, OrderStatusHistory


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'quantity', 'price')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    readonly_fields = ('timestamp', 'status', 'note')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are immutable history: everything is read-only here.
    Status changes go through OrderService so the state machine holds.
    """
    list_display = ('id', 'user_id', 'status', 'total_amount', 'payment_method', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('id', 'user_id', 'idempotency_key')
    inlines = [OrderItemInline, OrderStatusHistoryInline]

    readonly_fields = (
        'id',
        'user_id',
        'total_amount',
        'status',
        'shipping_address',
        'payment_method',
        'idempotency_key',
        'stock_reserved',
        'created_at',
        'updated_at',
    )

    fieldsets = (
        ('Order Details', {
            'fields': ('id', 'user_id', 'status')
        }),
        ('Financials', {
            'fields': ('total_amount', 'payment_method', 'stock_reserved')
        }),
        ('Delivery Info', {
            'fields': ('shipping_address',)
        }),
        ('System Data', {
            'fields': ('idempotency_key', 'created_at', 'updated_at'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ('id', 'user_id', 'product', 'quantity', 'updated_at')
    search_fields = ('user_id', 'product__name')
    list_select_related = ('product',)
