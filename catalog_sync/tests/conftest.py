"""Shared test fixtures for the catalog sync test suite."""

from datetime import datetime, timezone

import pytest

from catalog_sync.category_tree import build_category_tree
from catalog_sync.models import CategoryRow, SyncCounters
from catalog_sync.pipeline import SourceMaterials, run_sync

GENERATED_AT = datetime(2025, 3, 1, 12, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def generated_at():
    return GENERATED_AT


@pytest.fixture
def category_records():
    """Category export rows as they come out of the spreadsheet."""
    return [
        {"Id": 1, "Name": "Construcción", "SeName": "construccion", "Description": "Obra gruesa",
         "ParentCategoryId": 0, "DisplayOrder": 1, "Published": True},
        {"Id": 2, "Name": "Cales y Cementos", "SeName": "cales-y-cementos", "Description": None,
         "ParentCategoryId": 1, "DisplayOrder": 2, "Published": True},
        {"Id": 3, "Name": "Techos", "SeName": "techos", "Description": "",
         "ParentCategoryId": 0, "DisplayOrder": 0, "Published": True},
        {"Id": 4, "Name": "Chapas", "SeName": "chapas", "Description": "",
         "ParentCategoryId": 3, "DisplayOrder": 0, "Published": True},
        {"Id": 5, "Name": "Chapas Lisas", "SeName": "chapas-lisas", "Description": "",
         "ParentCategoryId": 4, "DisplayOrder": 0, "Published": True},
        {"Id": 6, "Name": "Ofertas viejas", "SeName": "ofertas-viejas", "Description": "",
         "ParentCategoryId": 0, "DisplayOrder": 5, "Published": False},
    ]


@pytest.fixture
def product_records():
    """Product export rows: one per interesting case."""
    return [
        {"SKU": " CH-060 ", "Name": "Chapa 0.60x0.40m Lisa ", "ShortDescription": "<p>Chapa <b>lisa</b> galvanizada</p>",
         "Price": 12000.5, "StockQuantity": 5, "Manufacturers": "Acme", "Weight": 3.2,
         "Categories": "3|0;5|1", "Published": True, "VisibleIndividually": True},
        {"SKU": "CAL-1", "Name": "Cal Hidratada", "ShortDescription": "Bolsa 25 kg",
         "Price": 0, "StockQuantity": 0, "Manufacturers": "Cementera", "Weight": 25,
         "Categories": "2|0", "Published": "TRUE", "VisibleIndividually": "1"},
        {"SKU": "POR-1", "Name": "Porcellanato Gris", "ShortDescription": None,
         "Price": "180000", "StockQuantity": "12", "Manufacturers": None, "Weight": None,
         "Categories": "99|0;abc|1", "Published": True, "VisibleIndividually": True},
        {"SKU": "HID-1", "Name": "Hidrófugo", "ShortDescription": "",
         "Price": 5000, "StockQuantity": 3, "Manufacturers": "Acme", "Weight": 1,
         "Categories": "2|0", "Published": False, "VisibleIndividually": True},
    ]


@pytest.fixture
def url_records():
    return [
        {"Sku": "CH-060", "Id": 101, "url": "https://www.nimat.com.ar/chapa-060", "imageUrl": "https://img.example/ch.jpg"},
        {"Sku": "CAL-1", "Id": 102, "url": "https://www.nimat.com.ar/cal", "imageUrl": None},
        {"Sku": None, "Id": 999, "url": "https://www.nimat.com.ar/huerfano", "imageUrl": None},
    ]


@pytest.fixture
def materials(category_records, product_records, url_records):
    return SourceMaterials(
        category_records=category_records,
        product_records=product_records,
        url_records=url_records,
    )


@pytest.fixture
def sync_result(materials, generated_at):
    return run_sync(materials, generated_at=generated_at)


@pytest.fixture
def make_category():
    """Factory for CategoryRow with sensible defaults."""
    def _make(category_id, name=None, parent_id=0, display_order=0, published=True):
        name = name or f"Cat {category_id}"
        return CategoryRow(
            id=category_id,
            name=name,
            slug=name.lower().replace(" ", "-"),
            parent_id=parent_id,
            display_order=display_order,
            published=published,
        )
    return _make


@pytest.fixture
def sample_forest(make_category):
    """Techos > Chapas > Chapas Lisas, plus Construcción > Cales y Cementos."""
    rows = [
        make_category(1, "Construcción", display_order=1),
        make_category(2, "Cales y Cementos", parent_id=1),
        make_category(3, "Techos"),
        make_category(4, "Chapas", parent_id=3),
        make_category(5, "Chapas Lisas", parent_id=4),
    ]
    return build_category_tree(rows, SyncCounters())
