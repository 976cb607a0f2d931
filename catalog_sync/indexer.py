"""Inverted indices over the enriched product sequence."""

from typing import Dict, List, Sequence

from catalog_sync.config import PRICE_BRACKETS, TOP_PRICE_BRACKET
from catalog_sync.models import CatalogIndex, CategoryBucket, EnrichedProduct

__all__ = ["price_bracket", "build_indices"]


def price_bracket(price: float) -> str:
    """Name of the fixed price bracket a price falls into."""
    for upper_bound, name in PRICE_BRACKETS:
        if price < upper_bound:
            return name
    return TOP_PRICE_BRACKET


def _register(index: Dict[str, List[int]], key: str, position: int) -> None:
    index.setdefault(key, []).append(position)


def build_indices(products: Sequence[EnrichedProduct]) -> CatalogIndex:
    """Index products by category (id, name, slug), brand and price bracket.

    Positions refer to ``products`` and stay valid as long as that sequence
    is not reordered. A product appears under every category it belongs to,
    under its brand when it has one, and under exactly one price bracket.
    """
    index = CatalogIndex(
        by_price_bracket={name: [] for _, name in PRICE_BRACKETS},
    )
    index.by_price_bracket[TOP_PRICE_BRACKET] = []

    for position, item in enumerate(products):
        for path in item.all_category_paths:
            bucket = index.by_category_id.get(path.category_id)
            if bucket is None:
                bucket = index.by_category_id[path.category_id] = CategoryBucket(info=path)
            bucket.positions.append(position)
            _register(index.by_category_name, path.name, position)
            _register(index.by_category_slug, path.slug, position)

        if item.product.brand:
            _register(index.by_brand, item.product.brand, position)

        index.by_price_bracket[price_bracket(item.product.price)].append(position)

    return index
