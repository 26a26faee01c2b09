# apps/catalog/tests.py
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse

from rest_framework.test import APITestCase, APIClient
from rest_framework import status

from .models import Product


class ProductModelTests(TestCase):
    def test_negative_price_is_rejected_by_database(self):
        with self.assertRaises(IntegrityError), transaction.atomic():
            Product.objects.create(name="Broken", price=Decimal("-1.00"), stock_quantity=1)


class ProductViewSetTests(APITestCase):
    def setUp(self):
        self.client = APIClient()
        self.laptop = Product.objects.create(
            name="Laptop Computer",
            description="High-performance laptop",
            price=Decimal("1299.99"),
            category="Electronics",
            stock_quantity=25,
        )
        self.mat = Product.objects.create(
            name="Yoga Mat",
            description="Non-slip exercise mat",
            price=Decimal("39.99"),
            category="Sports & Fitness",
            stock_quantity=0,
        )
        self.retired = Product.objects.create(
            name="Old Laptop",
            price=Decimal("99.00"),
            category="Electronics",
            stock_quantity=3,
            is_active=False,
        )

    def test_public_list_only_active_products(self):
        resp = self.client.get(reverse("product-list"))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        names = [p["name"] for p in resp.data["products"]]
        self.assertEqual(names, ["Laptop Computer", "Yoga Mat"])
        self.assertEqual(resp.data["total"], 2)
        self.assertEqual(resp.data["page"], 1)

    def test_in_stock_is_derived(self):
        resp = self.client.get(reverse("product-list"))
        by_name = {p["name"]: p for p in resp.data["products"]}

        self.assertTrue(by_name["Laptop Computer"]["inStock"])
        self.assertFalse(by_name["Yoga Mat"]["inStock"])

    def test_filters(self):
        url = reverse("product-list")

        resp = self.client.get(url, {"category": "electronics"})
        self.assertEqual([p["id"] for p in resp.data["products"]], [self.laptop.id])

        resp = self.client.get(url, {"search": "non-slip"})
        self.assertEqual([p["id"] for p in resp.data["products"]], [self.mat.id])

        resp = self.client.get(url, {"minPrice": "40", "maxPrice": "2000"})
        self.assertEqual([p["id"] for p in resp.data["products"]], [self.laptop.id])

    def test_sort_and_paginate(self):
        resp = self.client.get(reverse("product-list"), {"sortBy": "price", "sortOrder": "desc", "limit": 1})

        self.assertEqual(len(resp.data["products"]), 1)
        self.assertEqual(resp.data["products"][0]["id"], self.laptop.id)
        self.assertEqual(resp.data["total"], 2)
        self.assertEqual(resp.data["limit"], 1)
        self.assertEqual(resp.data["sortBy"], "price")

        resp = self.client.get(reverse("product-list"), {"sortBy": "price", "limit": 1, "page": 2})
        self.assertEqual(resp.data["products"][0]["id"], self.laptop.id)

    def test_detail_hides_inactive(self):
        resp = self.client.get(reverse("product-detail", kwargs={"pk": self.laptop.id}))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["price"], Decimal("1299.99"))
        self.assertEqual(resp.json()["price"], 1299.99)

        resp = self.client.get(reverse("product-detail", kwargs={"pk": self.retired.id}))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_product(self):
        resp = self.client.post(
            reverse("product-list"),
            {"name": "  Sunglasses ", "price": "79.99", "category": "Fashion & Accessories", "stockQuantity": 40},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data["name"], "Sunglasses")
        self.assertTrue(resp.data["inStock"])
        self.assertEqual(resp["Location"], f"/api/products/{resp.data['id']}")

    def test_create_rejects_negative_price(self):
        resp = self.client.post(reverse("product-list"), {"name": "Bad", "price": "-5.00"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_is_partial(self):
        resp = self.client.put(
            reverse("product-detail", kwargs={"pk": self.mat.id}),
            {"stockQuantity": 12},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.mat.refresh_from_db()
        self.assertEqual(self.mat.stock_quantity, 12)
        self.assertEqual(self.mat.price, Decimal("39.99"))


class SeedCatalogCommandTests(TestCase):
    def test_seed_is_rerunnable(self):
        call_command("seed_catalog", stdout=StringIO())
        first = Product.objects.count()
        call_command("seed_catalog", stdout=StringIO())

        self.assertEqual(first, 15)
        self.assertEqual(Product.objects.count(), 15)

    def test_reset_stock_overwrites(self):
        call_command("seed_catalog", stdout=StringIO())
        Product.objects.filter(name="Smartphone").update(stock_quantity=0)

        call_command("seed_catalog", stdout=StringIO())
        self.assertEqual(Product.objects.get(name="Smartphone").stock_quantity, 0)

        call_command("seed_catalog", "--reset-stock", stdout=StringIO())
        self.assertEqual(Product.objects.get(name="Smartphone").stock_quantity, 35)
