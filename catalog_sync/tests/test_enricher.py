"""Tests for product enrichment."""

from catalog_sync.enricher import build_keywords, category_url, enrich_product, enrich_products
from catalog_sync.errors import DropReason
from catalog_sync.models import ProductRow, SyncCounters


def _product(**overrides):
    fields = dict(
        sku="CH-060",
        name="Chapa 0.60x0.40m Lisa",
        short_description="Galvanizada",
        price=12000.0,
        stock_quantity=5,
        brand="Acme",
        category_membership="3|0;5|1",
        published=True,
        visible_individually=True,
    )
    fields.update(overrides)
    return ProductRow(**fields)


class TestEnrichProduct:

    def test_primary_category_and_paths(self, sample_forest):
        enriched = enrich_product(_product(), sample_forest)

        assert enriched.primary_category.name == "Techos"
        assert [path.path_string for path in enriched.all_category_paths] == [
            "Techos",
            "Techos > Chapas > Chapas Lisas",
        ]
        assert enriched.resolved_category_url == "https://www.nimat.com.ar/techos"

    def test_keywords_cover_name_brand_categories_and_description(self, sample_forest):
        keywords = enrich_product(_product(), sample_forest).keywords

        for expected in ["chapa", "lisa", "acme", "techos", "chapas", "lisas", "galvanizada", "060", "40"]:
            assert expected in keywords
        assert len(keywords) == len(set(keywords))

    def test_uncategorized_product_uses_brand_url_and_general(self, sample_forest):
        counters = SyncCounters()
        enriched = enrich_product(_product(category_membership="404|0", brand="Acme"), sample_forest, counters)

        assert enriched.primary_category is None
        assert enriched.all_category_paths == ()
        assert enriched.resolved_category_url == "https://www.nimat.com.ar/Acme"
        assert "general" in enriched.keywords
        assert enriched.to_dict()["categoria_principal"] == "General"
        assert enriched.to_dict()["categoria_principal_slug"] == "general"
        assert counters.get(DropReason.DANGLING_CATEGORY) == 1

    def test_input_row_untouched(self, sample_forest):
        product = _product()
        enriched = enrich_product(product, sample_forest)
        assert enriched.product is product


class TestEnrichProducts:

    def test_filters_hidden_products_and_keeps_order(self, sample_forest):
        products = [
            _product(sku="A"),
            _product(sku="B", published=False),
            _product(sku="C", visible_individually=False),
            _product(sku="D", category_membership=""),
        ]
        enriched = enrich_products(products, sample_forest)
        assert [item.product.sku for item in enriched] == ["A", "D"]


class TestHelpers:

    def test_category_url_without_primary(self):
        assert category_url(None, "") == "https://www.nimat.com.ar/"

    def test_build_keywords_without_categories(self):
        keywords = build_keywords(_product(short_description=""), None, [])
        assert keywords.to_list()[:2] == ["chapa", "0.60x0.40m"]
        assert "general" in keywords
        assert "galvanizada" not in keywords
