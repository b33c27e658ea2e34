from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_yasg import openapi
from drf_yasg.utils import swagger_auto_schema

from django.conf import settings
from django.db.models import ProtectedError

from apps.authentication.permissions import RolePolicyPermission
from apps.authentication.policies import CATALOG_READ, CATALOG_WRITE
from apps.common.exceptions import ValidationError
from apps.common.identity import Identifiable
from apps.common.pagination import (
    PAGE_NUMBER_PARAM,
    PAGE_SIZE_PARAM,
    paginated_response,
    parse_page_params,
)

from .models import Category, Product
from .queries import CategoryQueries, ProductQueries
from .serializers import (
    CategorySerializer,
    CategoryCreateUpdateSerializer,
    ProductSerializer,
    ProductCreateUpdateSerializer,
)
from .cache import (
    catalog_list_key,
    product_detail_key,
    category_detail_key,
    cache_page,
    get_cached_page,
    cache_detail,
    get_cached_detail,
)

import logging

logger = logging.getLogger(__name__)


def log_change(verb, entity: Identifiable):
    logger.info(f"{entity.__class__.__name__} {verb}: {entity.id} ({entity.name})")


PAGE_PARAMETERS = [
    openapi.Parameter(PAGE_NUMBER_PARAM, openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="1-based page number"),
    openapi.Parameter(PAGE_SIZE_PARAM, openapi.IN_QUERY, type=openapi.TYPE_INTEGER, description="Items per page"),
]

PRODUCT_FILTER_PARAMETERS = PAGE_PARAMETERS + [
    openapi.Parameter("category", openapi.IN_QUERY, type=openapi.TYPE_STRING, format=openapi.FORMAT_UUID),
    openapi.Parameter("min_price", openapi.IN_QUERY, type=openapi.TYPE_NUMBER),
    openapi.Parameter("max_price", openapi.IN_QUERY, type=openapi.TYPE_NUMBER),
    openapi.Parameter("search", openapi.IN_QUERY, type=openapi.TYPE_STRING),
]

CATEGORY_FILTER_PARAMETERS = PAGE_PARAMETERS + [
    openapi.Parameter("search", openapi.IN_QUERY, type=openapi.TYPE_STRING),
]


class CatalogViewSet(viewsets.ModelViewSet):
    """
    Shared behaviour for catalog resources: role policy, cached paginated
    reads through the query layer and writes that answer with the read
    projection.
    """

    permission_classes = [IsAuthenticated, RolePolicyPermission]
    filter_backends = []
    pagination_class = None

    queries_class = None
    write_serializer_class = None

    policy_operations = {
        "list": CATALOG_READ,
        "retrieve": CATALOG_READ,
        "*": CATALOG_WRITE,
    }

    @property
    def queries(self):
        return self.queries_class()

    def get_serializer_class(self):
        if self.action in ["create", "update", "partial_update"]:
            return self.write_serializer_class
        return self.serializer_class

    def page_response(self, request, query, timeout):
        """
        Answer a list request with one page of projections.

        Pagination parameters are validated before the cache is consulted.
        """

        page_number, page_size = parse_page_params(request.query_params)

        key = catalog_list_key(request)
        page = get_cached_page(key)

        if page is not None:
            logger.info(f"Catalog page retrieved from cache successfully with key: {key}")
            return paginated_response(page)

        page = query(request.query_params, page_number, page_size)

        cache_page(key, page, timeout=timeout)

        logger.info(f"Catalog page cached successfully with key: {key}")

        return paginated_response(page)

    def detail_response(self, key, query, entity_id, timeout):
        cached = get_cached_detail(key)

        if cached:
            logger.info(f"Catalog detail retrieved from cache with key: {key}")
            return Response(cached, status=status.HTTP_200_OK)

        data = query(entity_id)

        cache_detail(key, data, timeout=timeout)

        logger.info(f"Catalog detail cached with key: {key}")

        return Response(data, status=status.HTTP_200_OK)

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        instance = serializer.save()

        log_change("created", instance)

        return Response(
            self.queries.get_by_id(instance.id), status=status.HTTP_201_CREATED
        )

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()

        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        log_change("updated", instance)

        return Response(self.queries.get_by_id(instance.id), status=status.HTTP_200_OK)

    def perform_destroy(self, instance):
        instance_id = instance.id
        instance.delete()
        logger.info(f"{instance.__class__.__name__} deleted: {instance_id} ({instance.name})")


class ProductViewSet(CatalogViewSet):
    queryset = Product.objects.all()
    serializer_class = ProductSerializer
    write_serializer_class = ProductCreateUpdateSerializer
    queries_class = ProductQueries

    policy_operations = {
        **CatalogViewSet.policy_operations,
        "list_with_category": CATALOG_READ,
        "retrieve_with_category": CATALOG_READ,
    }

    @swagger_auto_schema(
        manual_parameters=PRODUCT_FILTER_PARAMETERS,
        responses={200: openapi.Response("Page of products, metadata in the X-Pagination header", ProductSerializer(many=True))},
    )
    def list(self, request, *args, **kwargs):
        return self.page_response(
            request, self.queries.list, settings.PRODUCT_LIST_CACHE_TIMEOUT
        )

    def retrieve(self, request, *args, **kwargs):
        product_id = kwargs[self.lookup_field]

        return self.detail_response(
            product_detail_key(product_id),
            self.queries.get_by_id,
            product_id,
            settings.PRODUCT_DETAIL_CACHE_TIMEOUT,
        )

    @swagger_auto_schema(method="get", manual_parameters=PRODUCT_FILTER_PARAMETERS)
    @action(detail=False, methods=["get"], url_path="category", url_name="with-category-list")
    def list_with_category(self, request):
        return self.page_response(
            request, self.queries.list_with_category, settings.PRODUCT_LIST_CACHE_TIMEOUT
        )

    @action(
        detail=False,
        methods=["get"],
        url_path=r"category/(?P<product_id>[^/.]+)",
        url_name="with-category-detail",
    )
    def retrieve_with_category(self, request, product_id=None):
        return self.detail_response(
            product_detail_key(product_id, variant="with_category"),
            self.queries.get_with_category,
            product_id,
            settings.PRODUCT_DETAIL_CACHE_TIMEOUT,
        )


class CategoryViewSet(CatalogViewSet):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    write_serializer_class = CategoryCreateUpdateSerializer
    queries_class = CategoryQueries

    policy_operations = {
        **CatalogViewSet.policy_operations,
        "list_with_products": CATALOG_READ,
        "retrieve_with_products": CATALOG_READ,
    }

    @swagger_auto_schema(
        manual_parameters=CATEGORY_FILTER_PARAMETERS,
        responses={200: openapi.Response("Page of categories, metadata in the X-Pagination header", CategorySerializer(many=True))},
    )
    def list(self, request, *args, **kwargs):
        return self.page_response(
            request, self.queries.list, settings.CATEGORY_LIST_CACHE_TIMEOUT
        )

    def retrieve(self, request, *args, **kwargs):
        category_id = kwargs[self.lookup_field]

        return self.detail_response(
            category_detail_key(category_id),
            self.queries.get_by_id,
            category_id,
            settings.CATEGORY_DETAIL_CACHE_TIMEOUT,
        )

    @swagger_auto_schema(method="get", manual_parameters=CATEGORY_FILTER_PARAMETERS)
    @action(detail=False, methods=["get"], url_path="products", url_name="with-products-list")
    def list_with_products(self, request):
        return self.page_response(
            request, self.queries.list_with_products, settings.CATEGORY_LIST_CACHE_TIMEOUT
        )

    @action(
        detail=False,
        methods=["get"],
        url_path=r"products/(?P<category_id>[^/.]+)",
        url_name="with-products-detail",
    )
    def retrieve_with_products(self, request, category_id=None):
        return self.detail_response(
            category_detail_key(category_id, variant="with_products"),
            self.queries.get_with_products,
            category_id,
            settings.CATEGORY_DETAIL_CACHE_TIMEOUT,
        )

    def perform_destroy(self, instance):
        try:
            super().perform_destroy(instance)
        except ProtectedError:
            raise ValidationError(
                {"category": ["Category still has products assigned."]},
                message="Category cannot be deleted while it has products",
            )
