from django.core.cache import caches
from django.utils.connection import ConnectionProxy
import hashlib
import logging

from apps.common.pagination import Page

logger = logging.getLogger(__name__)

# resolved on every access, like django.core.cache.cache
product_cache = ConnectionProxy(caches, "product_cache")


LIST_KEY_PREFIX = "catalog_list"


def catalog_list_key(request):
    """
    Generate a unique cache key for a paginated catalog listing.

    Different query parameters produce different keys so that filtered or
    paginated results don't collide. For example:
    - /products/?pageNumber=1 gets a different key than /products/?pageNumber=2
    - /products/?category=<id> gets a different key than /products/

    Args:
        request: Django request object containing query parameters

    Returns:
        str: A unique cache key for this specific list request
    """
    query_string = request.META.get("QUERY_STRING", "")
    path = request.path

    # Hash the query string to create a fixed-length identifier
    query_hash = hashlib.md5(query_string.encode()).hexdigest()

    return f"{LIST_KEY_PREFIX}:{path}:{query_hash}"


def product_detail_key(product_id, variant="plain"):
    """
    Generate cache key for a single product projection.

    Args:
        product_id: UUID of the product
        variant: "plain" or "with_category"
    """
    return f"product:{product_id}:{variant}"


def category_detail_key(category_id, variant="plain"):
    """
    Generate cache key for a single category projection.

    Args:
        category_id: UUID of the category
        variant: "plain" or "with_products"
    """
    return f"category:{category_id}:{variant}"


def cache_page(key, page, timeout):
    """Store a page of projections with its metadata."""
    value = {
        "items": list(page.items),
        "page_current": page.page_current,
        "page_size": page.page_size,
        "total_count": page.total_count,
    }
    product_cache.set(key, value, timeout=timeout)


def get_cached_page(key):
    """Return the cached Page for ``key`` or None."""
    value = product_cache.get(key)

    if not value:
        return None

    return Page(
        items=tuple(value["items"]),
        page_current=value["page_current"],
        page_size=value["page_size"],
        total_count=value["total_count"],
    )


def cache_detail(key, data, timeout):
    product_cache.set(key, data, timeout=timeout)


def get_cached_detail(key):
    return product_cache.get(key)


def delete_pattern(pattern: str):
    """
    Delete all cache keys matching a pattern in product_cache.

    Used for invalidation when products or categories change: any list
    page might be displaying the changed entity.

    Args:
        pattern: glob-style pattern to match keys (e.g., "catalog_list:*")

    Returns:
        int: Number of keys deleted
    """
    try:
        # django-redis understands key prefixes and versions
        if hasattr(product_cache, "delete_pattern"):
            deleted = product_cache.delete_pattern(pattern)
            logger.info(f"Deleted {deleted} cache keys matching pattern: {pattern}")
            return deleted

        # locmem and dummy caches cannot iterate keys, so clear everything
        product_cache.clear()
        logger.info(
            f"Cleared entire product cache (using {product_cache.__class__.__name__})"
        )
        return 1

    except Exception as e:
        # If Redis isn't available we don't want to crash the request
        logger.error(f"Failed to delete cache pattern {pattern}: {str(e)}")
        return 0
