from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.cart.models import CartLine
from modules.catalog.models import Product, ProductVariant


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        products = self._seed_flat_products()
        variant_products = self._seed_variant_products()
        cart_lines = self._seed_cart(products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"flat_products={len(products)}, "
                f"variant_products={len(variant_products)}, "
                f"cart_lines={cart_lines}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user(
                "manager", password="manager123", is_staff=True
            )
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_flat_products(self) -> list[Product]:
        self.stdout.write("Creating flat-stock products...")
        products: list[Product] = []
        catalog = [
            ("Bolsa Tiracolo Couro", Decimal("289.90"), Decimal("349.90")),
            ("Cinto Trançado", Decimal("119.90"), None),
            ("Lenço de Seda", Decimal("89.90"), None),
            ("Carteira Slim", Decimal("149.90"), Decimal("179.90")),
            ("Necessaire Linho", Decimal("69.90"), None),
        ]
        for name, price, original_price in catalog:
            product, _ = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": "Acessório",
                    "price": price,
                    "original_price": original_price,
                    "stock": random.randint(0, 30),
                    "is_active": True,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating flat-stock products... Done!"))
        return products

    def _seed_variant_products(self) -> list[Product]:
        self.stdout.write("Creating variant products...")
        products: list[Product] = []
        catalog = [
            ("Vestido Midi Floral", Decimal("259.90"), ["P", "M", "G"], ["Azul", "Rosa"]),
            ("Camisa Linho", Decimal("189.90"), ["P", "M", "G", "GG"], ["Branco"]),
            ("Saia Plissada", Decimal("159.90"), ["P", "M"], ["Preto", "Verde"]),
        ]
        for name, price, sizes, colors in catalog:
            product, created = Product.objects.get_or_create(
                name=name,
                defaults={
                    "description": "Vestuário",
                    "price": price,
                    "stock": None,
                    "sizes": sizes,
                    "colors": colors,
                    "is_active": True,
                },
            )
            if created:
                for size in sizes:
                    for color in colors:
                        ProductVariant.objects.create(
                            product=product,
                            size=size,
                            color=color,
                            stock=random.randint(0, 10),
                        )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating variant products... Done!"))
        return products

    def _seed_cart(self, products: list[Product]) -> int:
        User = get_user_model()
        user = User.objects.filter(username="user").first()
        if user is None:
            return 0
        created = 0
        for product in products[:2]:
            if not product.stock:
                continue
            _, was_created = CartLine.objects.get_or_create(
                user_id=str(user.pk),
                product=product,
                size="",
                color="",
                defaults={"quantity": 1},
            )
            created += int(was_created)
        return created
