"""
Page slicing and the pagination header contract shared by every list endpoint.

List endpoints return a plain JSON array and describe the page in headers:

    X-Pagination: {"pageCurrent": 2, "pageSize": 10, "totalCount": 25,
                   "hasPreviousPage": true, "hasNextPage": true}
    X-Pagination-Version: 1

Both headers are listed in Access-Control-Expose-Headers so browser clients
can read them.
"""

import json
import logging
from dataclasses import dataclass, replace

from django.conf import settings
from django.db.models.query import QuerySet
from rest_framework.pagination import BasePagination
from rest_framework.response import Response

from .exceptions import InvalidPageParameter

logger = logging.getLogger(__name__)


PAGINATION_HEADER = "X-Pagination"
PAGINATION_VERSION_HEADER = "X-Pagination-Version"
PAGINATION_HEADER_VERSION = "1"

PAGE_NUMBER_PARAM = "pageNumber"
PAGE_SIZE_PARAM = "pageSize"

DEFAULT_PAGE_NUMBER = 1


@dataclass(frozen=True)
class Page:
    """One slice of an ordered collection plus its position metadata."""

    items: tuple
    page_current: int
    page_size: int
    total_count: int

    @property
    def has_previous_page(self):
        return self.page_current > 1

    @property
    def has_next_page(self):
        return self.page_current * self.page_size < self.total_count

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)

    def map(self, func):
        """Return a page with ``func`` applied to every item and the same metadata."""
        return replace(self, items=tuple(func(item) for item in self.items))

    def metadata(self):
        return {
            "pageCurrent": self.page_current,
            "pageSize": self.page_size,
            "totalCount": self.total_count,
            "hasPreviousPage": self.has_previous_page,
            "hasNextPage": self.has_next_page,
        }


def _check_positive(value, parameter):
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPageParameter(parameter, "must be an integer")

    if value < 1:
        raise InvalidPageParameter(parameter, "must be greater than or equal to 1")


def _count(source):
    if isinstance(source, QuerySet):
        if not source.ordered:
            logger.warning(
                f"Paginating an unordered {source.model.__name__} queryset; "
                f"pages may be inconsistent between requests"
            )
        return source.count()

    return len(source)


def paginate(source, page_number, page_size):
    """
    Slice ``source`` into the requested page.

    ``source`` is any sliceable ordered sequence or a queryset; it is only
    read, never modified. A page past the end of the source is returned
    empty rather than raising.

    Raises:
        InvalidPageParameter: if ``page_number`` or ``page_size`` is not an integer >= 1
    """

    _check_positive(page_number, PAGE_NUMBER_PARAM)
    _check_positive(page_size, PAGE_SIZE_PARAM)

    total_count = _count(source)
    start = (page_number - 1) * page_size

    if start >= total_count:
        items = ()
    else:
        items = tuple(source[start:start + page_size])

    return Page(
        items=items,
        page_current=page_number,
        page_size=page_size,
        total_count=total_count,
    )


def _parse_positive_int(raw, parameter):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidPageParameter(parameter, "must be an integer")

    _check_positive(value, parameter)
    return value


def parse_page_params(query_params, default_page_size=None, max_page_size=None):
    """
    Read ``pageNumber`` and ``pageSize`` from request query parameters.

    Missing values fall back to page 1 and the configured default size.
    A ``pageSize`` above the maximum is lowered to the maximum.

    Returns:
        tuple: (page_number, page_size)
    """

    if default_page_size is None:
        default_page_size = settings.PAGINATION_DEFAULT_PAGE_SIZE
    if max_page_size is None:
        max_page_size = settings.PAGINATION_MAX_PAGE_SIZE

    raw_number = query_params.get(PAGE_NUMBER_PARAM)
    raw_size = query_params.get(PAGE_SIZE_PARAM)

    page_number = (
        DEFAULT_PAGE_NUMBER
        if raw_number is None
        else _parse_positive_int(raw_number, PAGE_NUMBER_PARAM)
    )
    page_size = (
        default_page_size
        if raw_size is None
        else _parse_positive_int(raw_size, PAGE_SIZE_PARAM)
    )

    return page_number, min(page_size, max_page_size)


def pagination_headers(page):
    return {
        PAGINATION_HEADER: json.dumps(page.metadata()),
        PAGINATION_VERSION_HEADER: PAGINATION_HEADER_VERSION,
        "Access-Control-Expose-Headers": f"{PAGINATION_HEADER}, {PAGINATION_VERSION_HEADER}",
    }


def paginated_response(page, data=None):
    """Build a 200 response with the page items as body and the pagination headers."""

    if data is None:
        data = list(page.items)

    return Response(data, headers=pagination_headers(page))


class HeaderPagination(BasePagination):
    """
    DRF pagination class for generic list views using the header contract.
    """

    page_size = None
    max_page_size = None

    def paginate_queryset(self, queryset, request, view=None):
        page_number, page_size = parse_page_params(
            request.query_params,
            default_page_size=self.page_size,
            max_page_size=self.max_page_size,
        )

        self.page = paginate(queryset, page_number, page_size)

        return list(self.page.items)

    def get_paginated_response(self, data):
        return paginated_response(self.page, data)

    def get_paginated_response_schema(self, schema):
        return schema

    def get_schema_fields(self, view):
        return []

    def get_schema_operation_parameters(self, view):
        return [
            {
                "name": PAGE_NUMBER_PARAM,
                "required": False,
                "in": "query",
                "description": "1-based page number.",
                "schema": {"type": "integer", "minimum": 1},
            },
            {
                "name": PAGE_SIZE_PARAM,
                "required": False,
                "in": "query",
                "description": "Number of results per page.",
                "schema": {"type": "integer", "minimum": 1},
            },
        ]
