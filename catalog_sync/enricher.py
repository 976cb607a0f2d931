"""Product enrichment: categories, keywords and category URL."""

from typing import Iterable, List, Optional

from catalog_sync.category_resolver import resolve_category_paths, select_primary_category
from catalog_sync.category_tree import CategoryForest
from catalog_sync.config import DEFAULT_CATEGORY_NAME, STORE_BASE_URL
from catalog_sync.logging_config import get_logger
from catalog_sync.models import CategoryPath, EnrichedProduct, ProductRow, SyncCounters
from catalog_sync.tokenizer import KeywordSet, merge_tokens

__all__ = [
    "category_url",
    "build_keywords",
    "enrich_product",
    "enrich_products",
]

logger = get_logger("enricher")


def category_url(primary: Optional[CategoryPath], brand: str) -> str:
    """Storefront URL for the primary category, or the brand page without one."""
    if primary is not None:
        return f"{STORE_BASE_URL}{primary.slug}"
    return f"{STORE_BASE_URL}{brand}"


def build_keywords(
    product: ProductRow,
    primary: Optional[CategoryPath],
    paths: Iterable[CategoryPath],
) -> KeywordSet:
    """Search keywords from name, brand, every category and the description."""
    keywords = KeywordSet()

    primary_name = primary.name if primary else DEFAULT_CATEGORY_NAME
    primary_path = primary.path_string if primary else DEFAULT_CATEGORY_NAME
    merge_tokens(keywords, product.name, product.brand, primary_name, primary_path)

    # Every membership, so roots like "Techos" are searchable too
    for path in paths:
        merge_tokens(keywords, path.name, path.path_string)

    if product.short_description:
        merge_tokens(keywords, product.short_description)

    return keywords


def enrich_product(
    product: ProductRow,
    forest: CategoryForest,
    counters: Optional[SyncCounters] = None,
) -> EnrichedProduct:
    """Resolve categories and compute keywords for one product row."""
    paths = resolve_category_paths(product.category_membership, forest, counters)
    primary = select_primary_category(paths)

    return EnrichedProduct(
        product=product,
        primary_category=primary,
        all_category_paths=tuple(paths),
        keywords=tuple(build_keywords(product, primary, paths)),
        resolved_category_url=category_url(primary, product.brand),
    )


def enrich_products(
    products: Iterable[ProductRow],
    forest: CategoryForest,
    counters: Optional[SyncCounters] = None,
) -> List[EnrichedProduct]:
    """Enrich published, individually visible products, preserving order."""
    enriched = [
        enrich_product(product, forest, counters)
        for product in products
        if product.published and product.visible_individually
    ]
    uncategorized = sum(1 for item in enriched if item.primary_category is None)
    logger.info(f"Enriched {len(enriched)} products ({uncategorized} without a category)")
    return enriched
