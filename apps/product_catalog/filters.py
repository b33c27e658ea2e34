import django_filters
from django.db.models import Q

from .models import Category, Product


class ProductFilter(django_filters.FilterSet):
    """
    Filters for product listings: category, price range and free-text search.
    """

    category = django_filters.UUIDFilter(
        # use id for security reasons
        field_name="category_id",
        label="Category"
    )

    min_price = django_filters.NumberFilter(
        field_name="price",
        lookup_expr="gte",
        label="Minimum Price"
    )

    max_price = django_filters.NumberFilter(
        field_name="price",
        lookup_expr="lte",
        label="Maximum Price"
    )

    search = django_filters.CharFilter(
        method="filter_search",
        label="Search"
    )

    def filter_search(self, queryset, name, value):
        """Match the term against product name or description."""
        return queryset.filter(
            Q(name__icontains=value) | Q(description__icontains=value)
        )

    class Meta:
        model = Product
        fields = []


class CategoryFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(
        field_name="name",
        lookup_expr="icontains",
        label="Search"
    )

    class Meta:
        model = Category
        fields = []
