"""
Django Management Command to seed the catalog with a deterministic dataset.

Creates categories, products spread across them and, optionally, an admin
account that can be used to obtain a bearer token.

Usage:
    python manage.py seed_catalog --categories 5 --products 50
    python manage.py seed_catalog --clear --admin-email admin@example.com --admin-password secret
"""

from decimal import Decimal
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from apps.product_catalog.models import Category, Product
from apps.product_catalog.cache import LIST_KEY_PREFIX, delete_pattern
from apps.authentication.models import Role, User


class Command(BaseCommand):
    help = "Seed the catalog with categories, products and an optional admin user"

    def add_arguments(self, parser):
        parser.add_argument(
            "--clear",
            action="store_true",
            help="Clear existing products and categories before seeding",
        )
        parser.add_argument(
            "--categories",
            type=int,
            default=5,
            help="Number of categories to create",
        )
        parser.add_argument(
            "--products",
            type=int,
            default=50,
            help="Number of products to create",
        )
        parser.add_argument("--admin-email", help="Email of an admin account to create")
        parser.add_argument("--admin-password", help="Password of the admin account")

    def handle(self, *args, **options):
        if options["categories"] < 1 or options["products"] < 0:
            raise CommandError("--categories must be >= 1 and --products must be >= 0")

        with transaction.atomic():
            if options["clear"]:
                self.stdout.write("Clearing existing data...")
                Product.objects.all().delete()
                Category.objects.all().delete()
                self.stdout.write(self.style.SUCCESS("✓ Data cleared"))

            categories = self._create_categories(options["categories"])
            self._create_products(options["products"], categories)

            if options["admin_email"]:
                self._create_admin(options["admin_email"], options["admin_password"])

        # bulk_create skips post_save, so list pages are invalidated here
        delete_pattern(f"{LIST_KEY_PREFIX}:*")
        delete_pattern("category:*")

        self._print_summary()

    def _create_categories(self, count):
        self.stdout.write(f"Creating {count} categories...")
        categories = []

        for index in range(1, count + 1):
            category, created = Category.objects.get_or_create(
                name=f"Category {index:03d}",
                defaults={"description": f"Seeded category number {index}"},
            )
            categories.append(category)

            if created:
                self.stdout.write(f"  ✓ Created category: {category.name}")

        return categories

    def _create_products(self, count, categories):
        self.stdout.write(f"Creating {count} products...")

        products = [
            Product(
                name=f"Product {index:04d}",
                description=f"Seeded product number {index}",
                price=Decimal(index * 250) / 100,
                stock=index % 7,
                category=categories[index % len(categories)],
            )
            for index in range(1, count + 1)
        ]

        Product.objects.bulk_create(products)

        self.stdout.write(self.style.SUCCESS(f"✓ Created {len(products)} products"))

    def _create_admin(self, email, password):
        if not password:
            raise CommandError("--admin-password is required with --admin-email")

        if User.objects.filter(email=email).exists():
            self.stdout.write(self.style.WARNING(f"Admin {email} already exists, skipping"))
            return

        User.objects.create_user(email=email, password=password, name="Administrator", role=Role.ADMIN)
        self.stdout.write(self.style.SUCCESS(f"✓ Created admin user: {email}"))

    def _print_summary(self):
        self.stdout.write("\n" + "=" * 50)
        self.stdout.write(self.style.SUCCESS("Catalog summary"))
        self.stdout.write("=" * 50)
        self.stdout.write(f"Categories: {Category.objects.count()}")
        self.stdout.write(f"Products:   {Product.objects.count()}")
