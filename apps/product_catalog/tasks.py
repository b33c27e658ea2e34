import logging
from celery import shared_task

from .cache import (
    LIST_KEY_PREFIX,
    delete_pattern,
)


logger = logging.getLogger(__name__)


@shared_task
def invalidate_product_cache(product_id):
    """
    Deletes the product's detail entries, every category-with-products
    entry and all list pages.
    """

    try:
        delete_pattern(f"product:{product_id}:*")

        # categories embed their products
        delete_pattern("category:*")

        delete_pattern(f"{LIST_KEY_PREFIX}:*")

        logger.info(f"Product cache invalidated for product: {product_id}")

        return True

    except Exception as e:
        logger.error(f"Failed to invalidate product cache for {product_id}: {str(e)}")
        raise


@shared_task
def invalidate_category_cache(category_id):
    """
    Deletes the category's detail entries, every product-with-category
    entry and all list pages.
    """

    try:
        delete_pattern(f"category:{category_id}:*")

        # products embed their category
        delete_pattern("product:*")

        delete_pattern(f"{LIST_KEY_PREFIX}:*")

        logger.info(f"Category cache invalidated for category: {category_id}")

        return True

    except Exception as e:
        logger.error(f"Failed to invalidate category cache for {category_id}: {str(e)}")
        raise
