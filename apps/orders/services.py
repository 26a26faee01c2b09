import logging
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.catalog.models import Product
from apps.utils.db import retry_on_tx_failure
from apps.utils.exceptions import ValidationFailed
from apps.utils.validators import require_positive_quantity, require_text
from .exceptions import (
    CartItemNotFound,
    CartItemsAlreadyConsumed,
    EmptyOrderRequest,
    InsufficientStock,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
    ProductUnavailable,
)
from .models import CartItem, Order, OrderItem, OrderStatusHistory
from .signals import order_placed, order_status_changed

logger = logging.getLogger(__name__)


def _revalidate_stock():
    return getattr(settings, "CHECKOUT_REVALIDATE_STOCK", True)


def _reserve_stock():
    return getattr(settings, "CHECKOUT_RESERVE_STOCK", True)


def _max_line_quantity():
    return getattr(settings, "CART_MAX_LINE_QUANTITY", 999)


class CartService:
    """
    Per-user cart lines. Identity is always the caller-supplied user id.
    """

    @staticmethod
    def get_cart(user_id: str):
        """
        Returns (items, total). Total uses the current catalog price.
        """
        user_id = require_text(user_id, "userId")
        items = list(
            CartItem.objects.filter(user_id=user_id)
            .select_related("product")
            .order_by("id")
        )
        total = sum((item.line_total for item in items), Decimal("0.00"))
        return items, total

    @staticmethod
    def cart_count(user_id: str) -> int:
        user_id = require_text(user_id, "userId")
        return sum(CartItem.objects.filter(user_id=user_id).values_list("quantity", flat=True))

    @staticmethod
    def add_to_cart(user_id: str, product_id: int, quantity: int = 1) -> CartItem:
        """
        Adds `quantity` of a product, merging into the existing
        (user, product) line when there is one.
        """
        user_id = require_text(user_id, "userId")
        quantity = require_positive_quantity(quantity, maximum=_max_line_quantity())

        with transaction.atomic():
            product = Product.objects.filter(pk=product_id).first()
            if product is None or not product.is_active:
                raise ProductUnavailable("Product not found or inactive.")
            if product.stock_quantity < quantity:
                raise InsufficientStock(
                    f"Insufficient stock for {product.name}. "
                    f"Requested: {quantity}, Available: {product.stock_quantity}"
                )

            item = (
                CartItem.objects.select_for_update()
                .filter(user_id=user_id, product=product)
                .first()
            )
            if item is None:
                try:
                    # Savepoint so a lost insert race does not poison the outer block
                    with transaction.atomic():
                        item = CartItem.objects.create(user_id=user_id, product=product, quantity=quantity)
                    return item
                except IntegrityError:
                    # A concurrent request created the line first; merge into it
                    item = CartItem.objects.select_for_update().get(user_id=user_id, product=product)

            new_quantity = item.quantity + quantity
            if new_quantity > _max_line_quantity():
                raise ValidationFailed(
                    f"Quantity cannot exceed {_max_line_quantity()}.", code="invalid_quantity"
                )
            if _revalidate_stock() and new_quantity > product.stock_quantity:
                raise InsufficientStock(
                    f"Insufficient stock for {product.name}. "
                    f"In cart: {item.quantity}, Requested: {quantity}, Available: {product.stock_quantity}"
                )

            CartItem.objects.filter(pk=item.pk).update(
                quantity=F("quantity") + quantity,
                updated_at=timezone.now(),
            )
            item.refresh_from_db()
            return item

    @staticmethod
    @transaction.atomic
    def update_cart_item(cart_item_id: int, quantity: int) -> CartItem:
        quantity = require_positive_quantity(quantity, maximum=_max_line_quantity())

        item = (
            CartItem.objects.select_for_update()
            .select_related("product")
            .filter(pk=cart_item_id)
            .first()
        )
        if item is None:
            raise CartItemNotFound(f"Cart item {cart_item_id} not found.")

        if _revalidate_stock() and quantity > item.product.stock_quantity:
            raise InsufficientStock(
                f"Insufficient stock for {item.product.name}. "
                f"Requested: {quantity}, Available: {item.product.stock_quantity}"
            )

        item.quantity = quantity
        item.save(update_fields=["quantity", "updated_at"])
        return item

    @staticmethod
    def remove_cart_item(cart_item_id: int) -> None:
        deleted, _ = CartItem.objects.filter(pk=cart_item_id).delete()
        if not deleted:
            raise CartItemNotFound(f"Cart item {cart_item_id} not found.")

    @staticmethod
    def clear_cart(user_id: str) -> int:
        """
        Idempotent: clearing an empty cart removes nothing and succeeds.
        """
        user_id = require_text(user_id, "userId")
        deleted, _ = CartItem.objects.filter(user_id=user_id).delete()
        return deleted


class OrderService:

    @staticmethod
    def place_order(user_id: str, cart_item_ids, shipping_address: str, payment_method: str,
                    idempotency_key: str = None):
        """
        Converts the selected cart lines into an order.

        Returns (order, created). `created` is False only when
        `idempotency_key` matched an order this user already placed; that
        order is returned untouched.

        Ids that are unknown or belong to another user are dropped, not
        rejected; if nothing is left the request fails with
        EmptyOrderRequest.
        """
        user_id = require_text(user_id, "userId")
        shipping_address = require_text(shipping_address, "shippingAddress")
        payment_method = require_text(payment_method, "paymentMethod")
        idempotency_key = (idempotency_key or "").strip() or None
        requested_ids = OrderService._normalize_ids(cart_item_ids)

        try:
            order, created = OrderService._place_order_tx(
                user_id, requested_ids, shipping_address, payment_method, idempotency_key
            )
        except IntegrityError:
            # Two submits with the same key raced; the first one owns the order
            existing = None
            if idempotency_key:
                existing = Order.objects.filter(user_id=user_id, idempotency_key=idempotency_key).first()
            if existing is None:
                raise
            order, created = existing, False

        return OrderService.get_order(order.pk), created

    @staticmethod
    @retry_on_tx_failure(
        max_attempts=lambda: getattr(settings, "CHECKOUT_TX_MAX_ATTEMPTS", 3),
        backoff=lambda: getattr(settings, "CHECKOUT_TX_BACKOFF", 0.05),
    )
    @transaction.atomic
    def _place_order_tx(user_id, requested_ids, shipping_address, payment_method, idempotency_key):
        if idempotency_key:
            existing = Order.objects.filter(user_id=user_id, idempotency_key=idempotency_key).first()
            if existing is not None:
                logger.info(
                    f"Idempotent replay of order {existing.pk}",
                    extra={"order_id": existing.pk, "user_id": user_id},
                )
                return existing, False

        # 1. Owned cart lines only, locked until commit
        cart_items = OrderService._owned_cart_items(user_id, requested_ids)
        if not cart_items:
            logger.warning(f"Checkout rejected: no owned cart items for user {user_id}", extra={"user_id": user_id})
            raise EmptyOrderRequest("No valid cart items found.")

        # 2. Resolve + validate products, price each line at the current price
        products = OrderService._lock_products(cart_items)
        lines = OrderService._price_lines(cart_items, products)
        total_amount = sum((line["subtotal"] for line in lines), Decimal("0.00"))
        reserve = _reserve_stock()

        # 3. Order + snapshot-priced items
        order = Order.objects.create(
            user_id=user_id,
            total_amount=total_amount,
            status=Order.Status.PENDING,
            shipping_address=shipping_address,
            payment_method=payment_method,
            idempotency_key=idempotency_key,
            stock_reserved=reserve,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=line["product"],
                quantity=line["quantity"],
                price=line["unit_price"],
            ) for line in lines
        ])
        OrderStatusHistory.objects.create(order=order, status=Order.Status.PENDING, note="Order placed")

        # 4. Stock reservation
        if reserve:
            for line in lines:
                Product.objects.filter(pk=line["product"].pk).update(
                    stock_quantity=F("stock_quantity") - line["quantity"],
                    updated_at=timezone.now(),
                )

        # 5. Consume the cart lines; all of them or nothing
        consumed_ids = [item.pk for item in cart_items]
        deleted, _ = CartItem.objects.filter(pk__in=consumed_ids, user_id=user_id).delete()
        if deleted != len(consumed_ids):
            raise CartItemsAlreadyConsumed("Some cart items were already used by another order.")

        logger.info(
            f"Order {order.pk} placed: {len(lines)} line(s), total {total_amount}",
            extra={"order_id": order.pk, "user_id": user_id},
        )
        transaction.on_commit(lambda: order_placed.send(sender=Order, order=order))
        return order, True

    @staticmethod
    def _normalize_ids(cart_item_ids):
        """
        De-duplicates while keeping order. Non-integer entries are treated
        like unknown ids: dropped.
        """
        seen = []
        for raw in cart_item_ids or []:
            if isinstance(raw, bool):
                continue
            try:
                value = int(raw)
            except (TypeError, ValueError):
                continue
            if value not in seen:
                seen.append(value)
        return seen

    @staticmethod
    def _owned_cart_items(user_id, requested_ids):
        """
        Explicit ownership filter: keeps only lines that both match a
        requested id and belong to `user_id`.
        """
        if not requested_ids:
            return []
        return list(
            CartItem.objects.select_for_update()
            .filter(pk__in=requested_ids, user_id=user_id)
            .order_by("id")
        )

    @staticmethod
    def _lock_products(cart_items):
        # Deterministic lock order to avoid deadlocks between checkouts
        product_ids = sorted({item.product_id for item in cart_items})
        return Product.objects.select_for_update().order_by("id").in_bulk(product_ids)

    @staticmethod
    def _price_lines(cart_items, products):
        """
        One dict per cart line: product, quantity, unit_price, subtotal.
        Raises ProductNotFound / ProductUnavailable / InsufficientStock.
        """
        check_stock = _revalidate_stock() or _reserve_stock()
        lines = []

        for item in cart_items:
            product = products.get(item.product_id)
            if product is None:
                logger.error(
                    f"Cart item {item.pk} references missing product {item.product_id}",
                    extra={"user_id": item.user_id},
                )
                raise ProductNotFound(f"Product {item.product_id} no longer exists.")

            if _revalidate_stock() and not product.is_active:
                raise ProductUnavailable(f"{product.name} is currently unavailable.")

            if check_stock and item.quantity > product.stock_quantity:
                raise InsufficientStock(
                    f"Insufficient stock for {product.name}. "
                    f"Required: {item.quantity}, Available: {product.stock_quantity}"
                )

            lines.append({
                "product": product,
                "quantity": item.quantity,
                "unit_price": product.price,
                "subtotal": product.price * item.quantity,
            })

        return lines

    @staticmethod
    def list_orders(user_id: str):
        user_id = require_text(user_id, "userId")
        return list(
            Order.objects.filter(user_id=user_id)
            .prefetch_related("items__product")
            .order_by("-created_at", "-id")
        )

    @staticmethod
    def get_order(order_id) -> Order:
        order = (
            Order.objects.prefetch_related("items__product", "status_history")
            .filter(pk=order_id)
            .first()
        )
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    @staticmethod
    @transaction.atomic
    def transition_status(order_id, new_status: str, note: str = "") -> Order:
        """
        Pending -> Processing -> Shipped -> Delivered, or -> Cancelled
        from Pending/Processing. Anything else is InvalidStatusTransition.
        """
        if new_status not in Order.Status.values:
            raise ValidationFailed(f"Unknown order status '{new_status}'.", code="invalid_status")

        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")

        old_status = order.status
        if not order.can_transition_to(new_status):
            raise InvalidStatusTransition(f"Cannot move order {order.pk} from {old_status} to {new_status}.")

        if new_status == Order.Status.CANCELLED and order.stock_reserved:
            OrderService._restore_stock(order)

        order.status = new_status
        order.save(update_fields=["status", "updated_at"])
        OrderStatusHistory.objects.create(order=order, status=new_status, note=note or "")

        logger.info(
            f"Order {order.pk}: {old_status} -> {new_status}",
            extra={"order_id": order.pk, "user_id": order.user_id},
        )
        transaction.on_commit(
            lambda: order_status_changed.send(
                sender=Order, order=order, old_status=old_status, new_status=new_status
            )
        )
        return order

    @staticmethod
    def cancel_order(order_id, reason: str = "Customer requested cancellation") -> Order:
        return OrderService.transition_status(order_id, Order.Status.CANCELLED, note=reason)

    @staticmethod
    def _restore_stock(order):
        items = sorted(order.items.all(), key=lambda i: i.product_id)
        # Row locks in id order before touching stock
        list(
            Product.objects.select_for_update()
            .filter(pk__in=[i.product_id for i in items])
            .order_by("id")
            .values_list("id", flat=True)
        )
        for item in items:
            Product.objects.filter(pk=item.product_id).update(
                stock_quantity=F("stock_quantity") + item.quantity,
                updated_at=timezone.now(),
            )
