import json
import uuid
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, RequestFactory, override_settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status

from apps.authentication.models import Role
from apps.authentication.services import TokenService
from apps.common.exceptions import NotFoundError, ValidationError
from apps.common.identity import Identifiable
from apps.product_catalog.cache import catalog_list_key, product_cache
from apps.product_catalog.models import Category, Product
from apps.product_catalog.queries import CategoryQueries, ProductQueries

User = get_user_model()


class CatalogTestMixin:
    """Users, tokens and a 25-product category shared by catalog tests"""

    def setUp(self):
        self.client = APIClient()

        self.admin = User.objects.create_user(
            email="admin@example.com", password="TestPass123!", role=Role.ADMIN
        )
        self.customer = User.objects.create_user(
            email="customer@example.com", password="TestPass123!"
        )

        self.category = Category.objects.create(name="Electronics", description="Devices")
        self.other_category = Category.objects.create(name="Books")

        for index in range(25):
            Product.objects.create(
                name=f"Gadget {index:02d}",
                description="Test",
                price=Decimal("10.00") + index,
                stock=index,
                category=self.category,
            )

        for index in range(3):
            Product.objects.create(
                name=f"Novel {index}",
                description="Paperback",
                price=Decimal("5.00"),
                category=self.other_category,
            )

    def authenticate(self, user):
        access = TokenService.issue_for(user)["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

    def metadata(self, response):
        return json.loads(response["X-Pagination"])


class ProductListTestCase(CatalogTestMixin, TestCase):
    """Tests for the paginated product listing"""

    product_url = "/api/v1/products/"

    def setUp(self):
        super().setUp()
        self.authenticate(self.admin)

    def category_query(self, page_number, page_size=10):
        return f"{self.product_url}?category={self.category.id}&pageNumber={page_number}&pageSize={page_size}"

    def test_first_page(self):
        """Test page 1 of 25 filtered products with page size 10"""
        response = self.client.get(self.category_query(1))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 10)

        metadata = self.metadata(response)
        self.assertEqual(metadata["pageCurrent"], 1)
        self.assertEqual(metadata["pageSize"], 10)
        self.assertEqual(metadata["totalCount"], 25)
        self.assertFalse(metadata["hasPreviousPage"])
        self.assertTrue(metadata["hasNextPage"])
        self.assertEqual(response["X-Pagination-Version"], "1")

    def test_last_page(self):
        """Test page 3 holds the remaining 5 products"""
        response = self.client.get(self.category_query(3))

        self.assertEqual(len(response.data), 5)

        metadata = self.metadata(response)
        self.assertTrue(metadata["hasPreviousPage"])
        self.assertFalse(metadata["hasNextPage"])

    def test_page_beyond_range(self):
        """Test page 4 is an empty page, not an error"""
        response = self.client.get(self.category_query(4))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])
        self.assertFalse(self.metadata(response)["hasNextPage"])

    def test_pages_cover_all_products_in_order(self):
        """Test walking every page returns each product exactly once in order"""
        seen = []
        for page_number in range(1, 4):
            response = self.client.get(self.category_query(page_number))
            seen.extend(item["id"] for item in response.data)

        expected = [
            str(product_id)
            for product_id in Product.objects.filter(category=self.category)
            .order_by("created_at", "id")
            .values_list("id", flat=True)
        ]
        self.assertEqual(seen, expected)

    def test_repeated_requests_identical(self):
        first = self.client.get(self.category_query(2))
        second = self.client.get(self.category_query(2))

        self.assertEqual(first.data, second.data)
        self.assertEqual(first["X-Pagination"], second["X-Pagination"])

    def test_defaults_when_parameters_absent(self):
        response = self.client.get(self.product_url)

        metadata = self.metadata(response)
        self.assertEqual(metadata["pageCurrent"], 1)
        self.assertEqual(metadata["pageSize"], 10)
        self.assertEqual(metadata["totalCount"], 28)

    def test_nonexistent_category_gives_empty_page(self):
        response = self.client.get(f"{self.product_url}?category={uuid.uuid4()}")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])
        self.assertEqual(self.metadata(response)["totalCount"], 0)

    def test_malformed_category_filter(self):
        response = self.client.get(f"{self.product_url}?category=not-a-uuid")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("category", response.data["details"])

    def test_price_and_search_filters(self):
        response = self.client.get(f"{self.product_url}?min_price=30&search=Gadget")

        names = [item["name"] for item in response.data]
        self.assertEqual(self.metadata(response)["totalCount"], 5)
        self.assertTrue(all(name.startswith("Gadget") for name in names))

    def test_invalid_page_number(self):
        response = self.client.get(f"{self.product_url}?pageNumber=0")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")
        self.assertIn("pageNumber", response.data["details"])

    def test_non_numeric_page_size(self):
        response = self.client.get(f"{self.product_url}?pageSize=ten")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("pageSize", response.data["details"])

    def test_products_with_category_page(self):
        response = self.client.get(f"{self.product_url}category/?pageNumber=1&pageSize=10")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 10)
        self.assertTrue(all(item["category"] is not None for item in response.data))

        metadata = self.metadata(response)
        self.assertFalse(metadata["hasPreviousPage"])
        self.assertTrue(metadata["hasNextPage"])


class ProductDetailTestCase(CatalogTestMixin, TestCase):
    """Tests for single product endpoints"""

    product_url = "/api/v1/products/"

    def setUp(self):
        super().setUp()
        self.authenticate(self.customer)
        self.product = Product.objects.filter(category=self.category).first()

    def test_get_by_id(self):
        response = self.client.get(f"{self.product_url}{self.product.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], str(self.product.id))
        self.assertEqual(response.data["category_id"], str(self.category.id))

    def test_get_by_unknown_id(self):
        response = self.client.get(f"{self.product_url}{uuid.uuid4()}/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")
        self.assertIn("message", response.data)

    def test_get_by_malformed_id(self):
        response = self.client.get(f"{self.product_url}not-a-uuid/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_get_with_category(self):
        response = self.client.get(f"{self.product_url}category/{self.product.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], str(self.product.id))
        self.assertEqual(response.data["category"]["name"], self.category.name)

    def test_get_with_category_unknown_id(self):
        response = self.client.get(f"{self.product_url}category/{uuid.uuid4()}/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CatalogAuthorizationTestCase(CatalogTestMixin, TestCase):
    """Tests for authentication and role checks on catalog endpoints"""

    product_url = "/api/v1/products/"

    def test_anonymous_request_rejected(self):
        response = self.client.get(self.product_url)

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["error"], "authentication_error")

    def test_customer_can_read(self):
        self.authenticate(self.customer)

        response = self.client.get(self.product_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_customer_cannot_create(self):
        self.authenticate(self.customer)

        response = self.client.post(
            self.product_url, {"name": "Forbidden", "price": "1.00"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Product.objects.filter(name="Forbidden").exists())

    def test_customer_cannot_delete(self):
        self.authenticate(self.customer)
        product = Product.objects.first()

        response = self.client.delete(f"{self.product_url}{product.id}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Product.objects.filter(pk=product.pk).exists())


class ProductCommandTestCase(CatalogTestMixin, TestCase):
    """Tests for product create, update and delete"""

    product_url = "/api/v1/products/"

    def setUp(self):
        super().setUp()
        self.authenticate(self.admin)

    def test_create_product(self):
        response = self.client.post(
            self.product_url,
            {
                "name": "Headphones",
                "description": "Noise cancelling",
                "price": "199.99",
                "stock": 4,
                "category": str(self.category.id),
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["name"], "Headphones")
        self.assertEqual(response.data["category_id"], str(self.category.id))
        self.assertTrue(Product.objects.filter(pk=response.data["id"]).exists())

    def test_create_product_with_unknown_category(self):
        response = self.client.post(
            self.product_url,
            {"name": "Orphan", "price": "1.00", "category": str(uuid.uuid4())},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("category", response.data["details"])

    def test_create_product_negative_price(self):
        response = self.client.post(
            self.product_url, {"name": "Bad", "price": "-1.00"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_partial_update(self):
        product = Product.objects.first()

        response = self.client.patch(
            f"{self.product_url}{product.id}/", {"stock": 99}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["stock"], 99)
        product.refresh_from_db()
        self.assertEqual(product.stock, 99)

    def test_delete_product(self):
        product = Product.objects.first()

        response = self.client.delete(f"{self.product_url}{product.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())


class CategoryEndpointsTestCase(CatalogTestMixin, TestCase):
    """Tests for category endpoints"""

    category_url = "/api/v1/categories/"

    def setUp(self):
        super().setUp()
        self.authenticate(self.admin)

    def test_list_categories(self):
        response = self.client.get(f"{self.category_url}?pageSize=1")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(self.metadata(response)["totalCount"], 2)

    def test_get_category(self):
        response = self.client.get(f"{self.category_url}{self.category.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["name"], "Electronics")

    def test_list_categories_with_products(self):
        response = self.client.get(f"{self.category_url}products/?pageNumber=1&pageSize=10")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        counts = {item["name"]: len(item["products"]) for item in response.data}
        self.assertEqual(counts, {"Electronics": 25, "Books": 3})

    def test_get_category_with_products(self):
        response = self.client.get(f"{self.category_url}products/{self.other_category.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["products"]), 3)

    def test_get_unknown_category_with_products(self):
        response = self.client.get(f"{self.category_url}products/{uuid.uuid4()}/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_category_with_products_rejected(self):
        response = self.client.delete(f"{self.category_url}{self.category.id}/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=self.category.pk).exists())

    def test_delete_empty_category(self):
        empty = Category.objects.create(name="Empty")

        response = self.client.delete(f"{self.category_url}{empty.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_create_category(self):
        response = self.client.post(
            self.category_url, {"name": "Garden", "description": "Outdoor"}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["name"], "Garden")


class QueryLayerTestCase(CatalogTestMixin, TestCase):
    """Tests for the query layer used by the endpoints"""

    def test_filter_applies_before_pagination(self):
        page = ProductQueries().list({"category": str(self.other_category.id)}, 1, 2)

        self.assertEqual(page.total_count, 3)
        self.assertEqual(len(page), 2)
        self.assertTrue(page.has_next_page)

    def test_projection_is_plain_data(self):
        page = ProductQueries().list({}, 1, 1)

        self.assertIsInstance(page.items[0]["id"], str)
        self.assertNotIsInstance(page.items[0], Product)

    def test_get_by_id_missing(self):
        with self.assertRaises(NotFoundError):
            ProductQueries().get_by_id(uuid.uuid4())

    def test_invalid_filter(self):
        with self.assertRaises(ValidationError):
            ProductQueries().list({"min_price": "cheap"}, 1, 10)

    def test_category_search(self):
        page = CategoryQueries().list({"search": "book"}, 1, 10)

        self.assertEqual([item["name"] for item in page], ["Books"])

    def test_entities_are_identifiable(self):
        for entity in (self.category, Product.objects.first(), self.admin):
            self.assertIsInstance(entity, Identifiable)


class CatalogCacheKeyTestCase(TestCase):
    """Tests for list cache key generation"""

    def test_query_string_changes_key(self):
        factory = RequestFactory()

        first = catalog_list_key(factory.get("/api/v1/products/", {"pageNumber": 1}))
        second = catalog_list_key(factory.get("/api/v1/products/", {"pageNumber": 2}))
        other_path = catalog_list_key(factory.get("/api/v1/categories/", {"pageNumber": 1}))

        self.assertNotEqual(first, second)
        self.assertNotEqual(first, other_path)
        self.assertTrue(first.startswith("catalog_list:/api/v1/products/:"))


@override_settings(
    CACHES={
        "default": {"BACKEND": "django.core.cache.backends.dummy.DummyCache"},
        "product_cache": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "catalog-tests",
        },
    }
)
class CatalogCacheTestCase(TestCase):
    """Tests for cached catalog reads and their invalidation on writes"""

    product_url = "/api/v1/products/"

    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(
            email="admin@example.com", password="TestPass123!", role=Role.ADMIN
        )
        self.category = Category.objects.create(name="Audio")
        self.products = [
            Product.objects.create(name=f"p{index}", price=Decimal("1.00"), category=self.category)
            for index in range(3)
        ]

        access = TokenService.issue_for(self.admin)["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")

        product_cache.clear()

    def tearDown(self):
        product_cache.clear()

    def test_repeated_list_served_from_cache(self):
        """Test a second identical list request does not hit the database"""
        first = self.client.get(f"{self.product_url}?pageSize=2")

        # queryset update() sends no signals, so the cache is left alone
        Product.objects.filter(category=self.category).update(name="stale")

        second = self.client.get(f"{self.product_url}?pageSize=2")

        self.assertEqual(first["X-Pagination"], second["X-Pagination"])
        self.assertEqual(first.data, second.data)
        self.assertEqual(second.data[0]["name"], "p0")

    def test_create_invalidates_list_pages(self):
        first = self.client.get(f"{self.product_url}?pageSize=2")
        self.assertEqual(json.loads(first["X-Pagination"])["totalCount"], 3)

        response = self.client.post(
            self.product_url,
            {"name": "p3", "price": "2.00", "category": str(self.category.id)},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        second = self.client.get(f"{self.product_url}?pageSize=2")

        metadata = json.loads(second["X-Pagination"])
        self.assertEqual(metadata["totalCount"], 4)
        self.assertTrue(metadata["hasNextPage"])

    def test_update_invalidates_detail(self):
        product = self.products[0]
        detail_url = f"{self.product_url}{product.id}/"

        self.assertEqual(self.client.get(detail_url).data["name"], "p0")

        Product.objects.filter(pk=product.pk).update(name="stale")
        self.assertEqual(self.client.get(detail_url).data["name"], "p0")

        response = self.client.patch(detail_url, {"name": "renamed"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(self.client.get(detail_url).data["name"], "renamed")

    @override_settings(CATEGORY_DETAIL_CACHE_TIMEOUT=0, CATEGORY_LIST_CACHE_TIMEOUT=3600)
    def test_category_detail_uses_detail_timeout(self):
        """Test category detail entries expire by their own timeout, not the list one"""
        detail_url = f"/api/v1/categories/{self.category.id}/"

        self.assertEqual(self.client.get(detail_url).data["name"], "Audio")

        Category.objects.filter(pk=self.category.pk).update(name="Uncached")

        self.assertEqual(self.client.get(detail_url).data["name"], "Uncached")

    def test_category_change_invalidates_nested_product(self):
        detail_url = f"{self.product_url}category/{self.products[0].id}/"

        self.assertEqual(self.client.get(detail_url).data["category"]["name"], "Audio")

        response = self.client.patch(
            f"/api/v1/categories/{self.category.id}/", {"name": "Hi-Fi"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertEqual(self.client.get(detail_url).data["category"]["name"], "Hi-Fi")


class SeedCatalogCommandTestCase(TestCase):
    """Tests for the seed_catalog management command"""

    def test_seed_creates_data_and_admin(self):
        call_command(
            "seed_catalog",
            categories=2,
            products=7,
            admin_email="seed-admin@example.com",
            admin_password="SeedPass123!",
            stdout=StringIO(),
        )

        self.assertEqual(Category.objects.count(), 2)
        self.assertEqual(Product.objects.count(), 7)
        self.assertEqual(User.objects.get(email="seed-admin@example.com").role, Role.ADMIN)

    def test_seed_clear_replaces_products(self):
        call_command("seed_catalog", categories=1, products=3, stdout=StringIO())
        call_command("seed_catalog", categories=1, products=2, clear=True, stdout=StringIO())

        self.assertEqual(Product.objects.count(), 2)
