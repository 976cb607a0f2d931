"""Tests for the catalog document and the public product list."""

import json
from datetime import datetime, timedelta, timezone

from catalog_sync.assembler import (
    assemble_catalog,
    build_public_products,
    deepest_category_label,
    format_timestamp,
)
from catalog_sync.pipeline import run_sync


class TestCatalogDocument:

    def test_metadata(self, sync_result):
        assert sync_result.document.metadata == {
            "ultima_actualizacion": "2025-03-01T12:30:00.000Z",
            "total_productos": 3,
            "productos_disponibles": 2,
            "total_categorias": 5,
            "categorias_principales": 3,
            "marcas_total": 2,
        }

    def test_sections(self, sync_result):
        data = sync_result.catalog_dict()

        assert list(data) == ["metadata", "categorias", "indices", "productos"]
        assert [node["nombre"] for node in data["categorias"]["arbol"]] == ["Techos", "Construcción", "Ofertas viejas"]
        # Flattened listing only holds published categories
        assert [node["id"] for node in data["categorias"]["todas"]] == [1, 2, 3, 4, 5]
        assert data["categorias"]["todas"][1] == {
            "id": 2,
            "nombre": "Cales y Cementos",
            "slug": "cales-y-cementos",
            "parent_id": 1,
        }
        assert [item["sku"] for item in data["productos"]] == ["CH-060", "CAL-1", "POR-1"]

    def test_enriched_product_fields(self, sync_result):
        chapa = sync_result.catalog_dict()["productos"][0]

        assert chapa["id"] == 101
        assert chapa["categoria_principal"] == "Techos"
        assert chapa["ruta_categoria"] == "Techos"
        assert chapa["url_categoria"] == "https://www.nimat.com.ar/techos"
        assert chapa["categorias_completas"][1]["ruta_principal"] == "Techos"
        assert isinstance(chapa["keywords"], list)

    def test_zero_price_kept_in_catalog(self, sync_result):
        data = sync_result.catalog_dict()
        skus = [item["sku"] for item in data["productos"]]

        assert "CAL-1" in skus
        assert skus.index("CAL-1") in data["indices"]["por_marca"]["Cementera"]
        assert "CAL-1" not in [product.sku for product in sync_result.public_products]

    def test_json_serializable(self, sync_result):
        json.dumps(sync_result.catalog_dict(), ensure_ascii=False)

    def test_default_timestamp_is_now(self, sync_result):
        document = assemble_catalog(sync_result.document.forest, sync_result.document.products)
        assert datetime.now(timezone.utc) - document.generated_at < timedelta(minutes=1)


class TestPublicProducts:

    def test_public_records(self, sync_result):
        records = sync_result.public_dicts()
        assert [record["sku"] for record in records] == ["CH-060", "POR-1"]

        chapa = records[0]
        assert chapa["id"] == 101
        assert chapa["activo"] is True
        assert chapa["nombre"] == "Chapa 0.60x0.40m Lisa"
        assert chapa["categoria"] == "Techos > Chapas > Chapas Lisas"
        assert chapa["categoria_root"] == "Techos"
        assert chapa["url_categoria"] == "https://www.nimat.com.ar/chapas-lisas"
        assert chapa["stock"] is True
        assert chapa["descripcion_corta"] == "Chapa lisa galvanizada"
        assert chapa["peso_kg"] == 3.2

    def test_deepest_and_primary_disagree(self, sync_result):
        chapa = sync_result.document.products[0]
        public = sync_result.public_products[0]

        assert chapa.primary_category.path_string == "Techos"
        assert public.category == "Techos > Chapas > Chapas Lisas"

    def test_keyword_string_merges_category_tokens(self, sync_result):
        keywords = sync_result.public_products[0].keywords.split(",")

        assert keywords[: len(sync_result.document.products[0].keywords)] == list(sync_result.document.products[0].keywords)
        for expected in ["techos", "chapas", "lisas", "acme"]:
            assert expected in keywords
        assert len(keywords) == len(set(keywords))

    def test_uncategorized_falls_back_to_general(self, sync_result):
        porcellanato = sync_result.public_products[1]

        assert porcellanato.category == "General"
        assert porcellanato.category_root == "General"
        assert porcellanato.category_url == "https://www.nimat.com.ar/"
        assert porcellanato.external_id == ""
        assert "porcelanato" in porcellanato.keywords.split(",")

    def test_deepest_label_of_uncategorized(self, sync_result):
        label, url = deepest_category_label(sync_result.document.products[2])
        assert (label, url) == ("General", "https://www.nimat.com.ar/")

    def test_whole_prices_written_as_integers(self, sync_result):
        chapa, porcellanato = sync_result.public_dicts()

        assert porcellanato["precio"] == 180000 and isinstance(porcellanato["precio"], int)
        assert chapa["precio"] == 12000.5
        assert '"precio": 180000,' in json.dumps(porcellanato)

        cal = sync_result.catalog_dict()["productos"][1]
        assert (cal["precio"], cal["peso_kg"]) == (0, 25)
        assert isinstance(cal["precio"], int) and isinstance(cal["peso_kg"], int)

    def test_rebuild_from_document(self, sync_result):
        rebuilt = build_public_products(sync_result.document)
        assert rebuilt == sync_result.public_products


class TestDeterminism:

    def test_same_input_same_output(self, materials, generated_at):
        first = run_sync(materials, generated_at=generated_at)
        second = run_sync(materials, generated_at=generated_at)

        first_data, second_data = first.catalog_dict(), second.catalog_dict()
        for section in ["productos", "indices", "categorias"]:
            assert json.dumps(first_data[section], ensure_ascii=False) == json.dumps(second_data[section], ensure_ascii=False)
        assert first.public_dicts() == second.public_dicts()


class TestFormatTimestamp:

    def test_naive_treated_as_utc(self):
        assert format_timestamp(datetime(2025, 1, 2, 3, 4, 5, 678000)) == "2025-01-02T03:04:05.678Z"

    def test_converted_to_utc(self):
        moment = datetime(2025, 1, 2, 0, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert format_timestamp(moment) == "2025-01-02T03:00:00.000Z"
