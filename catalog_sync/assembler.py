"""Catalog document assembly and the public product list.

The full document bundles metadata, the category tree, the indices and
every enriched product. The public list is a flat, leaner view for the
consuming application: only active, visible, priced products, labelled
with their deepest category path.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from catalog_sync.category_resolver import select_deepest_category
from catalog_sync.category_tree import CategoryForest
from catalog_sync.config import DEFAULT_CATEGORY_NAME, PATH_SEPARATOR, STORE_BASE_URL
from catalog_sync.indexer import build_indices
from catalog_sync.models import CatalogIndex, EnrichedProduct, PublicProduct
from catalog_sync.tokenizer import KeywordSet, merge_tokens

__all__ = [
    "CatalogDocument",
    "format_timestamp",
    "assemble_catalog",
    "deepest_category_label",
    "to_public_product",
    "build_public_products",
]


def format_timestamp(moment: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class CatalogDocument:
    """Everything one sync run produces, before serialization."""

    generated_at: datetime
    forest: CategoryForest
    products: Tuple[EnrichedProduct, ...]
    index: CatalogIndex

    @property
    def metadata(self) -> Dict[str, Any]:
        return {
            "ultima_actualizacion": format_timestamp(self.generated_at),
            "total_productos": len(self.products),
            "productos_disponibles": sum(1 for item in self.products if item.product.stock_quantity > 0),
            "total_categorias": len(self.forest.active_categories()),
            "categorias_principales": len(self.forest.roots),
            "marcas_total": len(self.index.by_brand),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metadata": self.metadata,
            "categorias": {
                "arbol": [root.to_dict() for root in self.forest.roots],
                "todas": [node.to_summary() for node in self.forest.active_categories()],
            },
            "indices": self.index.to_dict(),
            "productos": [item.to_dict() for item in self.products],
        }


def assemble_catalog(
    forest: CategoryForest,
    products: Sequence[EnrichedProduct],
    generated_at: Optional[datetime] = None,
) -> CatalogDocument:
    """Index the enriched products and bundle them with the category tree."""
    products = tuple(products)
    return CatalogDocument(
        generated_at=generated_at or datetime.now(timezone.utc),
        forest=forest,
        products=products,
        index=build_indices(products),
    )


def deepest_category_label(item: EnrichedProduct) -> Tuple[str, str]:
    """Category label and URL shown for a product in the public list.

    Uses the deepest resolved path. Products without categories fall back
    to their primary path string and resolved category URL.
    """
    deepest = select_deepest_category(item.all_category_paths)
    if deepest is not None:
        url = f"{STORE_BASE_URL}{deepest.slug}" if deepest.slug else STORE_BASE_URL
        return deepest.path_string, url

    return item.primary_path_string or DEFAULT_CATEGORY_NAME, item.resolved_category_url or STORE_BASE_URL


def to_public_product(item: EnrichedProduct) -> PublicProduct:
    product = item.product
    label, url = deepest_category_label(item)
    root = label.split(PATH_SEPARATOR)[0] or DEFAULT_CATEGORY_NAME

    keywords = KeywordSet(item.keywords)
    merge_tokens(keywords, product.name, product.brand, label, root)

    return PublicProduct(
        external_id=product.external_id,
        active=product.published,
        sku=product.sku,
        name=product.name.strip(),
        brand=product.brand,
        category=label,
        category_root=root,
        category_url=url,
        price=product.price,
        in_stock=product.stock_quantity > 0,
        url=product.url,
        image_url=product.image_url,
        short_description=product.short_description.strip(),
        weight_kg=product.weight_kg,
        keywords=",".join(keywords),
    )


def build_public_products(document: CatalogDocument) -> List[PublicProduct]:
    """Flat public records for active, visible products with a price."""
    return [
        to_public_product(item)
        for item in document.products
        if item.product.published and item.product.visible_individually and item.product.price > 0
    ]
