# apps/orders/tests.py
import unittest
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest import mock

from django.db import connection, close_old_connections
from django.test import TestCase, TransactionTestCase, override_settings
from django.urls import reverse

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from apps.catalog.models import Product
from apps.utils.exceptions import BusinessLogicException, ValidationFailed
from apps.orders.exceptions import (
    CartItemNotFound,
    CartItemsAlreadyConsumed,
    EmptyOrderRequest,
    InsufficientStock,
    InvalidStatusTransition,
    OrderNotFound,
    ProductNotFound,
    ProductUnavailable,
)
from apps.orders.models import CartItem, Order, OrderItem, OrderStatusHistory
from apps.orders.services import CartService, OrderService


def make_product(name="Wireless Mouse", price="49.99", stock=10, **kwargs):
    return Product.objects.create(
        name=name,
        description=f"{name} description",
        price=Decimal(price),
        category=kwargs.pop("category", "Electronics"),
        stock_quantity=stock,
        **kwargs,
    )


class CartServiceTests(TestCase):
    def setUp(self):
        self.mouse = make_product()
        self.speaker = make_product("Bluetooth Speaker", "89.99", stock=5)

    def test_add_to_cart_creates_line(self):
        item = CartService.add_to_cart("u1", self.mouse.id, 2)

        self.assertEqual(item.quantity, 2)
        self.assertEqual(item.user_id, "u1")
        self.assertEqual(CartItem.objects.count(), 1)

    def test_add_to_cart_merges_same_product(self):
        first = CartService.add_to_cart("u1", self.mouse.id, 2)
        second = CartService.add_to_cart("u1", self.mouse.id, 3)

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.quantity, 5)
        self.assertEqual(CartItem.objects.filter(user_id="u1").count(), 1)

    def test_same_product_different_users_are_separate_lines(self):
        CartService.add_to_cart("u1", self.mouse.id, 1)
        CartService.add_to_cart("u2", self.mouse.id, 1)

        self.assertEqual(CartItem.objects.filter(product=self.mouse).count(), 2)

    def test_add_more_than_stock_is_rejected(self):
        with self.assertRaises(InsufficientStock):
            CartService.add_to_cart("u1", self.speaker.id, 6)
        self.assertFalse(CartItem.objects.exists())

    def test_merge_beyond_stock_is_rejected(self):
        CartService.add_to_cart("u1", self.speaker.id, 4)
        with self.assertRaises(InsufficientStock):
            CartService.add_to_cart("u1", self.speaker.id, 2)

        self.assertEqual(CartItem.objects.get(user_id="u1").quantity, 4)

    def test_add_inactive_or_unknown_product_is_rejected(self):
        self.mouse.is_active = False
        self.mouse.save()

        with self.assertRaises(ProductUnavailable):
            CartService.add_to_cart("u1", self.mouse.id, 1)
        with self.assertRaises(ProductUnavailable):
            CartService.add_to_cart("u1", 999999, 1)

    def test_non_positive_quantity_is_rejected(self):
        for bad in (0, -1, "abc", True):
            with self.assertRaises(ValidationFailed):
                CartService.add_to_cart("u1", self.mouse.id, bad)

    def test_blank_user_is_rejected(self):
        with self.assertRaises(ValidationFailed):
            CartService.add_to_cart("   ", self.mouse.id, 1)

    def test_get_cart_totals_current_prices(self):
        CartService.add_to_cart("u1", self.mouse.id, 2)
        CartService.add_to_cart("u1", self.speaker.id, 1)

        items, total = CartService.get_cart("u1")

        self.assertEqual(len(items), 2)
        self.assertEqual(total, Decimal("189.97"))

    def test_get_cart_empty(self):
        items, total = CartService.get_cart("nobody")
        self.assertEqual(items, [])
        self.assertEqual(total, Decimal("0"))

    def test_update_cart_item(self):
        item = CartService.add_to_cart("u1", self.mouse.id, 1)
        updated = CartService.update_cart_item(item.id, 7)

        self.assertEqual(updated.quantity, 7)
        item.refresh_from_db()
        self.assertEqual(item.quantity, 7)

    def test_update_missing_item_is_not_found(self):
        with self.assertRaises(CartItemNotFound):
            CartService.update_cart_item(424242, 1)

    def test_update_beyond_stock_is_rejected(self):
        item = CartService.add_to_cart("u1", self.speaker.id, 1)
        with self.assertRaises(InsufficientStock):
            CartService.update_cart_item(item.id, 6)

    def test_remove_cart_item(self):
        item = CartService.add_to_cart("u1", self.mouse.id, 1)
        CartService.remove_cart_item(item.id)

        self.assertFalse(CartItem.objects.exists())
        with self.assertRaises(CartItemNotFound):
            CartService.remove_cart_item(item.id)

    def test_clear_cart_is_idempotent(self):
        CartService.add_to_cart("u1", self.mouse.id, 1)
        CartService.add_to_cart("u1", self.speaker.id, 1)
        CartService.add_to_cart("u2", self.mouse.id, 1)

        self.assertEqual(CartService.clear_cart("u1"), 2)
        self.assertEqual(CartService.clear_cart("u1"), 0)
        self.assertEqual(CartItem.objects.filter(user_id="u2").count(), 1)

    def test_cart_count_sums_quantities(self):
        CartService.add_to_cart("u1", self.mouse.id, 2)
        CartService.add_to_cart("u1", self.speaker.id, 3)

        self.assertEqual(CartService.cart_count("u1"), 5)
        self.assertEqual(CartService.cart_count("u2"), 0)


class PlaceOrderServiceTests(TestCase):
    def setUp(self):
        self.mouse = make_product(stock=10)
        self.speaker = make_product("Bluetooth Speaker", "89.99", stock=5)
        self.mouse_line = CartService.add_to_cart("u1", self.mouse.id, 2)
        self.speaker_line = CartService.add_to_cart("u1", self.speaker.id, 1)

    def _place(self, ids, user_id="u1", **kwargs):
        return OrderService.place_order(
            user_id=user_id,
            cart_item_ids=ids,
            shipping_address=kwargs.pop("shipping_address", "123 Test St"),
            payment_method=kwargs.pop("payment_method", "card"),
            **kwargs,
        )

    def test_total_matches_sum_of_line_subtotals(self):
        order, created = self._place([self.mouse_line.id, self.speaker_line.id])

        self.assertTrue(created)
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.total_amount, Decimal("189.97"))
        self.assertEqual(
            sum(i.price * i.quantity for i in order.items.all()),
            order.total_amount,
        )
        self.assertEqual(order.items.count(), 2)

    def test_consumed_lines_leave_cart_others_stay(self):
        order, _ = self._place([self.mouse_line.id])

        remaining = list(CartItem.objects.filter(user_id="u1").values_list("id", flat=True))
        self.assertEqual(remaining, [self.speaker_line.id])
        self.assertEqual(order.items.get().product_id, self.mouse.id)

    def test_history_records_initial_status(self):
        order, _ = self._place([self.mouse_line.id])

        history = list(order.status_history.all())
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].status, Order.Status.PENDING)

    def test_empty_selection_is_rejected(self):
        with self.assertRaises(EmptyOrderRequest):
            self._place([])
        self.assertFalse(Order.objects.exists())
        self.assertEqual(CartItem.objects.filter(user_id="u1").count(), 2)

    def test_foreign_and_unknown_ids_are_ignored(self):
        other = CartService.add_to_cart("u2", self.mouse.id, 1)

        with self.assertRaises(EmptyOrderRequest):
            self._place([other.id, 999999])

        # Foreign line untouched
        self.assertTrue(CartItem.objects.filter(pk=other.id).exists())

        order, _ = self._place([other.id, self.mouse_line.id])
        self.assertEqual(order.items.count(), 1)
        self.assertTrue(CartItem.objects.filter(pk=other.id).exists())

    def test_duplicate_ids_count_once(self):
        order, _ = self._place([self.mouse_line.id, self.mouse_line.id, str(self.mouse_line.id)])

        self.assertEqual(order.items.count(), 1)
        self.assertEqual(order.total_amount, Decimal("99.98"))

    def test_blank_inputs_are_rejected(self):
        with self.assertRaises(ValidationFailed):
            self._place([self.mouse_line.id], shipping_address="   ")
        with self.assertRaises(ValidationFailed):
            self._place([self.mouse_line.id], payment_method="")
        with self.assertRaises(ValidationFailed):
            self._place([self.mouse_line.id], user_id="")
        self.assertFalse(Order.objects.exists())

    def test_item_price_is_a_snapshot(self):
        order, _ = self._place([self.mouse_line.id])

        self.mouse.price = Decimal("10.00")
        self.mouse.save()

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.price, Decimal("49.99"))
        order.refresh_from_db()
        self.assertEqual(order.total_amount, Decimal("99.98"))

    def test_stock_is_reserved(self):
        self._place([self.mouse_line.id, self.speaker_line.id])

        self.mouse.refresh_from_db()
        self.speaker.refresh_from_db()
        self.assertEqual(self.mouse.stock_quantity, 8)
        self.assertEqual(self.speaker.stock_quantity, 4)

    @override_settings(CHECKOUT_RESERVE_STOCK=False)
    def test_stock_untouched_without_reservation(self):
        order, _ = self._place([self.mouse_line.id])

        self.assertFalse(order.stock_reserved)
        self.mouse.refresh_from_db()
        self.assertEqual(self.mouse.stock_quantity, 10)

    def test_insufficient_stock_at_checkout_rolls_back(self):
        Product.objects.filter(pk=self.speaker.pk).update(stock_quantity=0)

        with self.assertRaises(InsufficientStock):
            self._place([self.mouse_line.id, self.speaker_line.id])

        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertEqual(CartItem.objects.filter(user_id="u1").count(), 2)
        self.mouse.refresh_from_db()
        self.assertEqual(self.mouse.stock_quantity, 10)

    def test_inactive_product_at_checkout(self):
        Product.objects.filter(pk=self.mouse.pk).update(is_active=False)

        with self.assertRaises(ProductUnavailable):
            self._place([self.mouse_line.id])
        self.assertFalse(Order.objects.exists())

    def test_price_lines_flags_missing_product(self):
        # PROTECT keeps this unreachable through place_order; the helper still guards it
        cart_items = list(CartItem.objects.filter(pk=self.mouse_line.id))

        with self.assertRaises(ProductNotFound) as ctx:
            OrderService._price_lines(cart_items, {})
        self.assertEqual(ctx.exception.status_code, 404)

    def test_idempotent_replay_returns_first_order(self):
        first, created = self._place([self.mouse_line.id], idempotency_key="abc-123")
        replay, replay_created = self._place([self.speaker_line.id], idempotency_key="abc-123")

        self.assertTrue(created)
        self.assertFalse(replay_created)
        self.assertEqual(first.id, replay.id)
        self.assertEqual(Order.objects.count(), 1)
        # The replay did not consume anything
        self.assertTrue(CartItem.objects.filter(pk=self.speaker_line.id).exists())

    def test_same_key_for_different_users_is_independent(self):
        other_line = CartService.add_to_cart("u2", self.mouse.id, 1)

        a, _ = self._place([self.mouse_line.id], idempotency_key="k")
        b, created = self._place([other_line.id], user_id="u2", idempotency_key="k")

        self.assertTrue(created)
        self.assertNotEqual(a.id, b.id)

    def test_second_checkout_of_same_lines_is_empty(self):
        self._place([self.mouse_line.id])
        with self.assertRaises(EmptyOrderRequest):
            self._place([self.mouse_line.id])

    def test_line_consumed_mid_checkout_rolls_back(self):
        # Lines as read before another checkout deleted one of them
        stale = list(
            CartItem.objects.filter(pk__in=[self.mouse_line.id, self.speaker_line.id]).order_by("id")
        )
        CartItem.objects.filter(pk=self.speaker_line.id).delete()

        with mock.patch.object(OrderService, "_owned_cart_items", return_value=stale):
            with self.assertRaises(CartItemsAlreadyConsumed) as ctx:
                self._place([self.mouse_line.id, self.speaker_line.id])

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())
        self.assertFalse(OrderStatusHistory.objects.exists())
        self.assertTrue(CartItem.objects.filter(pk=self.mouse_line.id).exists())
        self.mouse.refresh_from_db()
        self.speaker.refresh_from_db()
        self.assertEqual(self.mouse.stock_quantity, 10)
        self.assertEqual(self.speaker.stock_quantity, 5)

    def test_user_id_is_trimmed_on_every_operation(self):
        order, _ = self._place([self.mouse_line.id], user_id=" u1 ")

        self.assertEqual(order.user_id, "u1")
        self.assertEqual([o.id for o in OrderService.list_orders(" u1")], [order.id])
        self.assertEqual(CartService.cart_count("u1 "), 1)
        items, _ = CartService.get_cart(" u1")
        self.assertEqual([i.id for i in items], [self.speaker_line.id])
        self.assertEqual(CartService.clear_cart(" u1 "), 1)

    def test_blank_user_id_is_rejected_on_reads(self):
        for call in (CartService.get_cart, CartService.cart_count, CartService.clear_cart, OrderService.list_orders):
            with self.assertRaises(ValidationFailed):
                call("  ")


class OrderStatusServiceTests(TestCase):
    def setUp(self):
        self.mouse = make_product(stock=10)
        line = CartService.add_to_cart("u1", self.mouse.id, 3)
        self.order, _ = OrderService.place_order("u1", [line.id], "123 Test St", "card")

    def test_happy_path_to_delivered(self):
        for next_status in ("Processing", "Shipped", "Delivered"):
            OrderService.transition_status(self.order.id, next_status)

        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Order.Status.DELIVERED)
        statuses = list(self.order.status_history.values_list("status", flat=True))
        self.assertEqual(statuses, ["Pending", "Processing", "Shipped", "Delivered"])

    def test_skipping_states_is_rejected(self):
        with self.assertRaises(InvalidStatusTransition):
            OrderService.transition_status(self.order.id, "Delivered")

    def test_cannot_cancel_shipped_order(self):
        OrderService.transition_status(self.order.id, "Processing")
        OrderService.transition_status(self.order.id, "Shipped")

        with self.assertRaises(InvalidStatusTransition):
            OrderService.cancel_order(self.order.id)

    def test_terminal_states(self):
        OrderService.cancel_order(self.order.id)
        with self.assertRaises(InvalidStatusTransition):
            OrderService.transition_status(self.order.id, "Processing")

    def test_cancel_restores_reserved_stock(self):
        self.mouse.refresh_from_db()
        self.assertEqual(self.mouse.stock_quantity, 7)

        OrderService.cancel_order(self.order.id, reason="Changed mind")

        self.mouse.refresh_from_db()
        self.assertEqual(self.mouse.stock_quantity, 10)
        last = self.order.status_history.last()
        self.assertEqual(last.status, Order.Status.CANCELLED)
        self.assertEqual(last.note, "Changed mind")

    def test_unknown_status_is_validation_error(self):
        with self.assertRaises(ValidationFailed):
            OrderService.transition_status(self.order.id, "Lost")

    def test_unknown_order(self):
        with self.assertRaises(OrderNotFound):
            OrderService.transition_status(999999, "Processing")
        with self.assertRaises(OrderNotFound):
            OrderService.get_order(999999)

    def test_can_cancel_property(self):
        self.assertTrue(self.order.can_cancel)
        self.order.status = Order.Status.SHIPPED
        self.assertFalse(self.order.can_cancel)

    def test_list_orders_newest_first(self):
        line = CartService.add_to_cart("u1", self.mouse.id, 1)
        newer, _ = OrderService.place_order("u1", [line.id], "123 Test St", "card")

        orders = OrderService.list_orders("u1")
        self.assertEqual([o.id for o in orders], [newer.id, self.order.id])
        self.assertEqual(OrderService.list_orders("u2"), [])


class CartAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.product = make_product("Yoga Mat", "39.99", stock=60)

    def test_add_then_get_cart(self):
        resp = self.client.post(
            reverse("cart-add"),
            {"userId": "u1", "productId": self.product.id, "quantity": 2},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data["success"])

        resp = self.client.get(reverse("cart-detail", kwargs={"key": "u1"}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.data["items"]), 1)
        self.assertEqual(resp.data["items"][0]["productName"], "Yoga Mat")
        self.assertEqual(Decimal(resp.data["total"]), Decimal("79.98"))
        self.assertEqual(resp.json()["total"], 79.98)
        self.assertIsInstance(resp.json()["items"][0]["product"]["price"], float)

    def test_empty_cart(self):
        resp = self.client.get(reverse("cart-detail", kwargs={"key": "new-user"}))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["items"], [])
        self.assertEqual(resp.json()["total"], 0)

    def test_add_invalid_quantity_is_400(self):
        resp = self.client.post(
            reverse("cart-add"),
            {"userId": "u1", "productId": self.product.id, "quantity": 0},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "invalid_quantity")

    def test_add_over_stock_is_400(self):
        resp = self.client.post(
            reverse("cart-add"),
            {"userId": "u1", "productId": self.product.id, "quantity": 61},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "insufficient_stock")

    def test_update_and_delete_item(self):
        item = CartService.add_to_cart("u1", self.product.id, 1)
        url = reverse("cart-detail", kwargs={"key": str(item.id)})

        resp = self.client.put(url, {"quantity": 4}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["quantity"], 4)

        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        resp = self.client.delete(url)
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_unknown_item_is_404(self):
        resp = self.client.put(reverse("cart-detail", kwargs={"key": "999999"}), {"quantity": 1}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

        resp = self.client.put(reverse("cart-detail", kwargs={"key": "not-a-number"}), {"quantity": 1}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_count_and_clear(self):
        CartService.add_to_cart("u1", self.product.id, 3)

        resp = self.client.get(reverse("cart-count", kwargs={"user_id": "u1"}))
        self.assertEqual(resp.data["count"], 3)

        resp = self.client.delete(reverse("cart-clear", kwargs={"user_id": "u1"}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["removed"], 1)

        # Clearing again still succeeds
        resp = self.client.delete(reverse("cart-clear-legacy", kwargs={"user_id": "u1"}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["removed"], 0)


class OrderAPITests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.laptop = make_product("Laptop Computer", "1299.99", stock=25)
        self.mouse = make_product("Wireless Mouse", "49.99", stock=75)

    def _checkout(self, ids, extra=None, **overrides):
        payload = {
            "userId": "u1",
            "shippingAddress": "123 Test St",
            "paymentMethod": "card",
            "cartItemIds": ids,
        }
        payload.update(overrides)
        return self.client.post(reverse("order-create"), payload, format="json", **(extra or {}))

    def test_checkout_scenario(self):
        laptop_line = CartService.add_to_cart("u1", self.laptop.id, 1)
        mouse_line = CartService.add_to_cart("u1", self.mouse.id, 2)

        resp = self._checkout([laptop_line.id, mouse_line.id])

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        body = resp.json()
        self.assertEqual(body["totalAmount"], 1399.97)
        self.assertEqual(body["total"], body["totalAmount"])
        self.assertEqual(sorted(i["price"] for i in body["orderItems"]), [49.99, 1299.99])
        self.assertEqual(resp.data["orderId"], resp.data["id"])
        self.assertEqual(resp.data["status"], "Pending")
        self.assertEqual(resp.data["shippingAddress"], "123 Test St")
        self.assertEqual(len(resp.data["orderItems"]), 2)
        self.assertEqual(resp["Location"], f"/api/orders/details/{resp.data['id']}")

        cart = self.client.get(reverse("cart-detail", kwargs={"key": "u1"}))
        self.assertEqual(cart.data["items"], [])
        self.assertEqual(cart.json()["total"], 0)

        orders = self.client.get(reverse("user-orders", kwargs={"user_id": "u1"}))
        self.assertEqual(orders.status_code, status.HTTP_200_OK)
        self.assertEqual(len(orders.data), 1)

    def test_checkout_with_nothing_valid_is_400(self):
        resp = self._checkout([999999])

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(resp.data["code"], "empty_order_request")
        self.assertFalse(Order.objects.exists())

    def test_checkout_missing_address_is_400(self):
        line = CartService.add_to_cart("u1", self.mouse.id, 1)

        resp = self._checkout([line.id], shippingAddress="")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(CartItem.objects.filter(pk=line.id).exists())

    def test_idempotency_header_replays(self):
        line = CartService.add_to_cart("u1", self.mouse.id, 1)

        first = self._checkout([line.id], extra={"HTTP_IDEMPOTENCY_KEY": "checkout-1"})
        again = self._checkout([line.id], extra={"HTTP_X_IDEMPOTENCY_KEY": "checkout-1"})

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(again.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data["id"], again.data["id"])

    def test_order_detail_and_status_flow(self):
        line = CartService.add_to_cart("u1", self.mouse.id, 1)
        order_id = self._checkout([line.id]).data["id"]

        detail = self.client.get(reverse("order-detail", kwargs={"order_id": order_id}))
        self.assertEqual(detail.status_code, status.HTTP_200_OK)
        self.assertEqual(len(detail.data["statusHistory"]), 1)

        resp = self.client.post(
            reverse("order-status", kwargs={"order_id": order_id}),
            {"status": "Processing", "note": "Picked"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "Processing")

        resp = self.client.post(
            reverse("order-status", kwargs={"order_id": order_id}),
            {"status": "Delivered"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.data["code"], "invalid_status_transition")

        resp = self.client.post(reverse("order-cancel", kwargs={"order_id": order_id}), {}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["status"], "Cancelled")

    def test_unknown_order_is_404(self):
        resp = self.client.get(reverse("order-detail", kwargs={"order_id": 999999}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["code"], "order_not_found")

    def test_orders_for_unknown_user_is_empty_list(self):
        resp = self.client.get(reverse("user-orders", kwargs={"user_id": "ghost"}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data, [])


@unittest.skipUnless(connection.vendor == "postgresql", "row locks need PostgreSQL")
class ConcurrentCheckoutTests(TransactionTestCase):
    """
    Two checkouts racing over the same cart lines: exactly one wins and
    stock is decremented once.
    """

    def setUp(self):
        self.product = make_product(stock=5)
        self.line = CartService.add_to_cart("u1", self.product.id, 3)

    def _attempt(self):
        close_old_connections()
        try:
            order, _ = OrderService.place_order("u1", [self.line.id], "123 Test St", "card")
            return order.id
        except BusinessLogicException as e:
            return e.code
        finally:
            connection.close()

    def test_single_winner(self):
        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(lambda _: self._attempt(), range(2)))

        winners = [r for r in results if isinstance(r, int)]
        self.assertEqual(len(winners), 1, results)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(OrderStatusHistory.objects.count(), 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 2)
