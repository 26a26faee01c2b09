from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.catalog.models import Product


CATALOG_DATA = [
    # Electronics
    ("Laptop Computer", "High-performance laptop for work and gaming with 16GB RAM and 512GB SSD",
     "1299.99", "Electronics", "https://images.unsplash.com/photo-1496181133206-80ce9b88a853?w=400", 25),
    ("Wireless Headphones", "Premium noise-canceling headphones with 30-hour battery life",
     "299.99", "Electronics", "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=400", 50),
    ("Smartphone", "Latest flagship smartphone with triple camera system and 5G connectivity",
     "899.99", "Electronics", "https://images.unsplash.com/photo-1511707171634-5f897ff02aa9?w=400", 35),
    ("Wireless Mouse", "Ergonomic wireless mouse with precision tracking and long battery life",
     "49.99", "Electronics", "https://images.unsplash.com/photo-1527864550417-7fd91fc51a46?w=400", 75),
    ("4K Monitor", "27-inch 4K UHD monitor with HDR support and USB-C connectivity",
     "399.99", "Electronics", "https://images.unsplash.com/photo-1527443224154-c4a3942d3acf?w=400", 20),

    # Home & Kitchen
    ("Coffee Maker", "Automatic drip coffee maker with programmable timer and thermal carafe",
     "79.99", "Home & Kitchen", "https://images.unsplash.com/photo-1447933601403-0c6688de566e?w=400", 30),
    ("Air Fryer", "Digital air fryer with 8 preset cooking functions and non-stick basket",
     "129.99", "Home & Kitchen", "https://images.unsplash.com/photo-1556909114-f6e7ad7d3136?w=400", 25),
    ("Vacuum Cleaner", "Cordless stick vacuum with powerful suction and HEPA filtration",
     "249.99", "Home & Kitchen", "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=400", 15),

    # Sports & Fitness
    ("Running Shoes", "Comfortable athletic shoes with advanced cushioning technology",
     "129.99", "Sports & Fitness", "https://images.unsplash.com/photo-1542291026-7eec264c27ff?w=400", 40),
    ("Yoga Mat", "Non-slip exercise mat with extra thickness for comfort and stability",
     "39.99", "Sports & Fitness", "https://images.unsplash.com/photo-1544367567-0f2fcb009e0b?w=400", 60),
    ("Fitness Tracker", "Waterproof fitness tracker with heart rate monitor and sleep tracking",
     "199.99", "Sports & Fitness", "https://images.unsplash.com/photo-1575311373937-040b8e1fd5b6?w=400", 30),

    # Books & Media
    ("Programming Book", "Comprehensive guide to modern web development with practical examples",
     "49.99", "Books & Media", "https://images.unsplash.com/photo-1532012197267-da84d127e765?w=400", 45),
    ("Bluetooth Speaker", "Portable wireless speaker with 360-degree sound and water resistance",
     "89.99", "Electronics", "https://images.unsplash.com/photo-1545454675-3531b543be5d?w=400", 35),

    # Fashion & Accessories
    ("Leather Wallet", "Genuine leather wallet with RFID blocking and multiple card slots",
     "59.99", "Fashion & Accessories", "https://images.unsplash.com/photo-1553062407-98eeb64c6a62?w=400", 50),
    ("Sunglasses", "UV protection sunglasses with polarized lenses and durable frame",
     "79.99", "Fashion & Accessories", "https://images.unsplash.com/photo-1572635196237-14b3f281503f?w=400", 40),
]


class Command(BaseCommand):
    help = "Seeds the demo catalog (safe to re-run; products are matched by name)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset-stock",
            action="store_true",
            help="Overwrite stock/price of products that already exist",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        created_count = 0
        for name, description, price, category, image_url, stock in CATALOG_DATA:
            defaults = {
                "description": description,
                "price": Decimal(price),
                "category": category,
                "image_url": image_url,
                "stock_quantity": stock,
                "is_active": True,
            }
            if options["reset_stock"]:
                _, created = Product.objects.update_or_create(name=name, defaults=defaults)
            else:
                _, created = Product.objects.get_or_create(name=name, defaults=defaults)
            created_count += int(created)

        self.stdout.write(self.style.SUCCESS(
            f"Catalog seeded: {created_count} new, {len(CATALOG_DATA) - created_count} existing."
        ))
