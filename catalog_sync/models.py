"""Data models for catalog rows, the category forest and derived products.

Input rows mirror the spreadsheet columns. Derived records are immutable;
their ``to_dict`` methods produce the document schema consumed downstream
(storefront, search index, assistant), which keeps the Spanish field names.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from catalog_sync.config import (
    DEFAULT_CATEGORY_NAME,
    DEFAULT_CATEGORY_SLUG,
    PATH_SEPARATOR,
    STORE_BASE_URL,
)
from catalog_sync.errors import DropReason

__all__ = [
    "CategoryRow",
    "CategoryNode",
    "CategoryPath",
    "ProductRow",
    "EnrichedProduct",
    "PublicProduct",
    "CategoryBucket",
    "CatalogIndex",
    "SyncCounters",
]


def _json_number(value: float) -> Any:
    """Whole numbers as ints, so 12000.0 is written 12000."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True)
class CategoryRow:
    """One row of the category export."""

    id: int
    name: str
    slug: str
    description: str = ""
    parent_id: int = 0  # 0 means root
    display_order: int = 0
    published: bool = False


@dataclass(frozen=True)
class CategoryNode:
    """A category with its ordered children. Built once, never mutated."""

    id: int
    name: str
    slug: str
    description: str
    parent_id: int
    display_order: int
    published: bool
    children: Tuple["CategoryNode", ...] = ()

    @property
    def url(self) -> str:
        return f"{STORE_BASE_URL}{self.slug}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nombre": self.name,
            "slug": self.slug,
            "url_categoria": self.url,
            "descripcion": self.description,
            "parent_id": self.parent_id,
            "orden": self.display_order,
            "visible": self.published,
            "hijos": [child.to_dict() for child in self.children],
        }

    def to_summary(self) -> Dict[str, Any]:
        """Flat view used by the 'all categories' listing."""
        return {
            "id": self.id,
            "nombre": self.name,
            "slug": self.slug,
            "parent_id": self.parent_id,
        }


@dataclass(frozen=True)
class CategoryPath:
    """A product's membership in one category, with its root-to-leaf path."""

    category_id: int
    name: str
    slug: str
    full_path: Tuple[str, ...]
    order: int = 0

    @property
    def path_string(self) -> str:
        return PATH_SEPARATOR.join(self.full_path)

    @property
    def root(self) -> str:
        return self.full_path[0] if self.full_path else self.name

    @property
    def depth(self) -> int:
        return len(self.full_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.category_id,
            "nombre": self.name,
            "slug": self.slug,
            "ruta": self.path_string,
            "ruta_principal": self.root,
            "orden": self.order,
        }


@dataclass(frozen=True)
class ProductRow:
    """One published product row, already joined with its URL data."""

    sku: str
    name: str
    short_description: str = ""
    price: float = 0.0
    stock_quantity: int = 0
    brand: str = ""
    weight_kg: float = 0.0
    category_membership: str = ""
    published: bool = False
    visible_individually: bool = False
    url: str = ""
    image_url: str = ""
    external_id: Any = ""


@dataclass(frozen=True)
class EnrichedProduct:
    """A product row plus resolved categories and search keywords."""

    product: ProductRow
    primary_category: Optional[CategoryPath]
    all_category_paths: Tuple[CategoryPath, ...]
    keywords: Tuple[str, ...]
    resolved_category_url: str

    @property
    def primary_category_name(self) -> str:
        return self.primary_category.name if self.primary_category else DEFAULT_CATEGORY_NAME

    @property
    def primary_category_slug(self) -> str:
        return self.primary_category.slug if self.primary_category else DEFAULT_CATEGORY_SLUG

    @property
    def primary_path_string(self) -> str:
        return self.primary_category.path_string if self.primary_category else DEFAULT_CATEGORY_NAME

    def to_dict(self) -> Dict[str, Any]:
        p = self.product
        return {
            "id": p.external_id,
            "sku": p.sku,
            "nombre": p.name,
            "descripcion_corta": p.short_description,
            "precio": _json_number(p.price),
            "stock": p.stock_quantity,
            "marca": p.brand,
            "peso_kg": _json_number(p.weight_kg),
            "categorias": p.category_membership,
            "url": p.url,
            "imageUrl": p.image_url,
            "activo": p.published,
            "visible": p.visible_individually,
            "keywords": list(self.keywords),
            "categoria_principal": self.primary_category_name,
            "categoria_principal_slug": self.primary_category_slug,
            "categorias_completas": [path.to_dict() for path in self.all_category_paths],
            "ruta_categoria": self.primary_path_string,
            "url_categoria": self.resolved_category_url,
        }


@dataclass(frozen=True)
class PublicProduct:
    """Flat record of the public product list."""

    external_id: Any
    active: bool
    sku: str
    name: str
    brand: str
    category: str
    category_root: str
    category_url: str
    price: float
    in_stock: bool
    url: str
    image_url: str
    short_description: str
    weight_kg: float
    keywords: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.external_id,
            "activo": self.active,
            "sku": self.sku,
            "nombre": self.name,
            "marca": self.brand,
            "categoria": self.category,
            "categoria_root": self.category_root,
            "url_categoria": self.category_url,
            "precio": _json_number(self.price),
            "stock": self.in_stock,
            "url": self.url,
            "imageUrl": self.image_url,
            "descripcion_corta": self.short_description,
            "peso_kg": _json_number(self.weight_kg),
            "keywords": self.keywords,
        }


@dataclass
class CategoryBucket:
    """Products registered under one category id."""

    info: CategoryPath
    positions: List[int] = field(default_factory=list)


@dataclass
class CatalogIndex:
    """Inverted indices over the enriched product sequence.

    Values are positions into that sequence.
    """

    by_category_id: Dict[int, CategoryBucket] = field(default_factory=dict)
    by_category_name: Dict[str, List[int]] = field(default_factory=dict)
    by_category_slug: Dict[str, List[int]] = field(default_factory=dict)
    by_brand: Dict[str, List[int]] = field(default_factory=dict)
    by_price_bracket: Dict[str, List[int]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "por_categoria_id": {
                str(category_id): {"info": bucket.info.to_dict(), "productos": list(bucket.positions)}
                for category_id, bucket in self.by_category_id.items()
            },
            "por_categoria_nombre": {k: list(v) for k, v in self.by_category_name.items()},
            "por_categoria_slug": {k: list(v) for k, v in self.by_category_slug.items()},
            "por_marca": {k: list(v) for k, v in self.by_brand.items()},
            "por_rango_precio": {k: list(v) for k, v in self.by_price_bracket.items()},
        }


@dataclass
class SyncCounters:
    """Counts of recoveries made during one run (dropped entries, promotions)."""

    counts: Counter = field(default_factory=Counter)

    def record(self, reason: DropReason, amount: int = 1) -> None:
        self.counts[reason] += amount

    def get(self, reason: DropReason) -> int:
        return self.counts.get(reason, 0)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def as_dict(self) -> Dict[str, int]:
        return {reason.value: self.counts.get(reason, 0) for reason in DropReason}
