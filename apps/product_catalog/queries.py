"""
Read-side queries for the catalog.

Each query filters, orders and pages a queryset and returns projections
(serialized dicts), never model instances. Filters are applied before
pagination so the page metadata always describes the filtered set.
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Prefetch

from apps.common.exceptions import NotFoundError, ValidationError
from apps.common.pagination import paginate

from .filters import CategoryFilter, ProductFilter
from .models import Category, Product
from .serializers import (
    CategorySerializer,
    CategoryWithProductsSerializer,
    ProductSerializer,
    ProductWithCategorySerializer,
)

import logging

logger = logging.getLogger(__name__)


# Stable ordering so a given page always holds the same rows
DEFAULT_ORDERING = ("created_at", "id")


class EntityQueries:
    model = None
    filterset_class = None

    def get_queryset(self):
        return self.model.objects.order_by(*DEFAULT_ORDERING)

    def filter_queryset(self, queryset, filters):
        filterset = self.filterset_class(data=filters or {}, queryset=queryset)

        if not filterset.is_valid():
            errors = {field: list(messages) for field, messages in filterset.errors.items()}
            raise ValidationError(errors, message="Invalid filter parameters")

        return filterset.qs

    def get_page(self, queryset, filters, page_number, page_size, serializer_class):
        queryset = self.filter_queryset(queryset, filters)
        page = paginate(queryset, page_number, page_size)

        return page.map(lambda instance: serializer_class(instance).data)

    def get_one(self, queryset, entity_id, serializer_class):
        try:
            instance = queryset.get(pk=entity_id)
        except (self.model.DoesNotExist, DjangoValidationError, ValueError):
            # malformed ids cannot exist either
            logger.info(f"{self.model.__name__} lookup missed for id: {entity_id}")
            raise NotFoundError(
                f"{self.model._meta.verbose_name.capitalize()} with id '{entity_id}' was not found"
            )

        return serializer_class(instance).data


class ProductQueries(EntityQueries):
    model = Product
    filterset_class = ProductFilter

    def list(self, filters, page_number, page_size):
        return self.get_page(
            self.get_queryset(), filters, page_number, page_size, ProductSerializer
        )

    def list_with_category(self, filters, page_number, page_size):
        return self.get_page(
            self.get_queryset().select_related("category"),
            filters,
            page_number,
            page_size,
            ProductWithCategorySerializer,
        )

    def get_by_id(self, product_id):
        return self.get_one(self.get_queryset(), product_id, ProductSerializer)

    def get_with_category(self, product_id):
        return self.get_one(
            self.get_queryset().select_related("category"),
            product_id,
            ProductWithCategorySerializer,
        )


class CategoryQueries(EntityQueries):
    model = Category
    filterset_class = CategoryFilter

    def with_products(self, queryset):
        return queryset.prefetch_related(
            Prefetch("products", queryset=Product.objects.order_by(*DEFAULT_ORDERING))
        )

    def list(self, filters, page_number, page_size):
        return self.get_page(
            self.get_queryset(), filters, page_number, page_size, CategorySerializer
        )

    def list_with_products(self, filters, page_number, page_size):
        return self.get_page(
            self.with_products(self.get_queryset()),
            filters,
            page_number,
            page_size,
            CategoryWithProductsSerializer,
        )

    def get_by_id(self, category_id):
        return self.get_one(self.get_queryset(), category_id, CategorySerializer)

    def get_with_products(self, category_id):
        return self.get_one(
            self.with_products(self.get_queryset()),
            category_id,
            CategoryWithProductsSerializer,
        )
