import json

from django.http import Http404
from django.test import SimpleTestCase
from rest_framework import exceptions, status

from apps.common.exceptions import (
    InternalError,
    InvalidPageParameter,
    NotFoundError,
    api_exception_handler,
)
from apps.common.pagination import (
    PAGINATION_HEADER,
    PAGINATION_VERSION_HEADER,
    Page,
    paginate,
    paginated_response,
    parse_page_params,
)


class PaginateTestCase(SimpleTestCase):
    """Tests for the page slicing engine"""

    def setUp(self):
        self.items = list(range(1, 26))

    def test_first_page_of_twenty_five(self):
        """Test page 1 of 25 items with page size 10"""
        page = paginate(self.items, 1, 10)

        self.assertEqual(list(page), list(range(1, 11)))
        self.assertEqual(page.total_count, 25)
        self.assertFalse(page.has_previous_page)
        self.assertTrue(page.has_next_page)

    def test_last_partial_page(self):
        """Test page 3 of 25 items holds the remaining 5"""
        page = paginate(self.items, 3, 10)

        self.assertEqual(list(page), [21, 22, 23, 24, 25])
        self.assertTrue(page.has_previous_page)
        self.assertFalse(page.has_next_page)

    def test_page_beyond_range_is_empty(self):
        """Test a page past the end is empty rather than an error"""
        page = paginate(self.items, 4, 10)

        self.assertEqual(len(page), 0)
        self.assertFalse(page.has_next_page)
        self.assertTrue(page.has_previous_page)
        self.assertEqual(page.total_count, 25)

    def test_empty_source(self):
        """Test paginating nothing gives an empty first page"""
        page = paginate([], 1, 10)

        self.assertEqual(page.items, ())
        self.assertEqual(page.total_count, 0)
        self.assertFalse(page.has_previous_page)
        self.assertFalse(page.has_next_page)

    def test_pages_reconstruct_source(self):
        """Test concatenating every page gives back the source in order"""
        for size in range(1, 30):
            page_count = -(-len(self.items) // size)
            rebuilt = []

            for number in range(1, page_count + 1):
                rebuilt.extend(paginate(self.items, number, size))

            self.assertEqual(rebuilt, self.items, f"page size {size}")

    def test_metadata_flags_follow_position(self):
        """Test has-previous and has-next are derived from position and count"""
        for size in (1, 3, 10, 25, 40):
            for number in range(1, 12):
                page = paginate(self.items, number, size)

                self.assertEqual(page.has_previous_page, number > 1)
                self.assertEqual(page.has_next_page, number * size < len(self.items))

    def test_repeated_calls_are_identical(self):
        """Test identical requests give identical pages"""
        self.assertEqual(paginate(self.items, 2, 7), paginate(self.items, 2, 7))

    def test_source_is_not_mutated(self):
        """Test the source sequence is left untouched"""
        source = list(self.items)

        paginate(source, 2, 10)

        self.assertEqual(source, self.items)

    def test_rejects_non_positive_page_number(self):
        """Test page number below 1 is rejected naming the parameter"""
        with self.assertRaises(InvalidPageParameter) as ctx:
            paginate(self.items, 0, 10)

        self.assertEqual(ctx.exception.parameter, "pageNumber")

    def test_rejects_non_positive_page_size(self):
        """Test page size below 1 is rejected naming the parameter"""
        with self.assertRaises(InvalidPageParameter) as ctx:
            paginate(self.items, 1, 0)

        self.assertEqual(ctx.exception.parameter, "pageSize")

    def test_rejects_non_integer_values(self):
        """Test booleans and strings are not accepted as page values"""
        with self.assertRaises(InvalidPageParameter):
            paginate(self.items, True, 10)

        with self.assertRaises(InvalidPageParameter):
            paginate(self.items, 1, "10")

    def test_map_keeps_metadata(self):
        """Test mapping items leaves the page metadata unchanged"""
        page = paginate(self.items, 2, 10).map(lambda item: item * 2)

        self.assertEqual(page.items[0], 22)
        self.assertEqual(page.page_current, 2)
        self.assertEqual(page.total_count, 25)


class PageMetadataTestCase(SimpleTestCase):
    """Tests for the pagination header contract"""

    def test_metadata_document(self):
        """Test metadata uses the documented camelCase keys"""
        page = Page(items=(1, 2), page_current=2, page_size=2, total_count=5)

        self.assertEqual(
            page.metadata(),
            {
                "pageCurrent": 2,
                "pageSize": 2,
                "totalCount": 5,
                "hasPreviousPage": True,
                "hasNextPage": True,
            },
        )

    def test_paginated_response_headers(self):
        """Test the response carries body items and the pagination headers"""
        page = Page(items=("a", "b"), page_current=1, page_size=2, total_count=3)

        response = paginated_response(page)

        self.assertEqual(response.data, ["a", "b"])
        self.assertEqual(json.loads(response[PAGINATION_HEADER]), page.metadata())
        self.assertEqual(response[PAGINATION_VERSION_HEADER], "1")
        self.assertIn(PAGINATION_HEADER, response["Access-Control-Expose-Headers"])


class ParsePageParamsTestCase(SimpleTestCase):
    """Tests for reading pagination query parameters"""

    def test_defaults_when_absent(self):
        """Test missing parameters fall back to page 1 and the default size"""
        self.assertEqual(parse_page_params({}), (1, 10))

    def test_reads_values(self):
        """Test explicit parameters are parsed as integers"""
        self.assertEqual(parse_page_params({"pageNumber": "3", "pageSize": "7"}), (3, 7))

    def test_page_size_is_capped(self):
        """Test oversize page size is lowered to the maximum"""
        self.assertEqual(parse_page_params({"pageSize": "1000"}), (1, 100))

    def test_invalid_values_rejected(self):
        """Test non-numeric and non-positive values raise a validation error"""
        for params in ({"pageNumber": "abc"}, {"pageNumber": "0"}, {"pageSize": "-1"}, {"pageSize": ""}):
            with self.assertRaises(InvalidPageParameter):
                parse_page_params(params)


class ExceptionHandlerTestCase(SimpleTestCase):
    """Tests for the error body produced for every error kind"""

    def test_validation_error_body(self):
        """Test pagination errors become 400 with field details"""
        response = api_exception_handler(InvalidPageParameter("pageSize", "must be an integer"), {})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"], "validation_error")
        self.assertIn("pageSize", response.data["details"])
        self.assertIn("pageSize", response.data["message"])

    def test_not_found_body(self):
        """Test not found errors keep their message"""
        response = api_exception_handler(NotFoundError("Product with id 'x' was not found"), {})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")
        self.assertEqual(response.data["message"], "Product with id 'x' was not found")

    def test_django_404_is_translated(self):
        """Test Http404 raised by Django helpers becomes a structured 404"""
        response = api_exception_handler(Http404(), {})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["error"], "not_found")

    def test_permission_denied_body(self):
        """Test permission errors become 403"""
        response = api_exception_handler(exceptions.PermissionDenied(), {})

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"], "permission_error")

    def test_unexpected_error_hides_details(self):
        """Test unexpected errors become a generic 500"""
        with self.assertLogs("apps.common.exceptions", level="ERROR"):
            response = api_exception_handler(RuntimeError("database password is hunter2"), {})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["error"], "server_error")
        self.assertNotIn("hunter2", response.data["message"])

    def test_internal_error_body(self):
        """Test InternalError renders the generic 500 body"""
        with self.assertLogs("apps.common.exceptions", level="ERROR"):
            response = api_exception_handler(InternalError(), {})

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["error"], "server_error")
        self.assertEqual(response.data["message"], InternalError.default_detail)
