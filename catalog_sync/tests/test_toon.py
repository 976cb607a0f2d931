"""Tests for the TOON copy of the catalog."""

import json

import toon_format

from catalog_sync.export_utils import to_json, write_toon


class TestWriteToon:

    def test_uniform_rows_written_as_table(self, tmp_path):
        data = {"todas": [{"id": 1, "nombre": "Techos"}, {"id": 2, "nombre": "Cales y Cementos"}]}

        path = write_toon(data, tmp_path / "out" / "catalogo.toon")

        assert path.read_text(encoding="utf-8") == (
            "todas[2]{id,nombre}:\n"
            "  1,Techos\n"
            "  2,Cales y Cementos"
        )

    def test_catalog_document_decodes_to_same_data(self, sync_result, tmp_path):
        catalog = sync_result.catalog_dict()

        path = write_toon(catalog, tmp_path / "catalogo.toon")
        text = path.read_text(encoding="utf-8")

        assert text.startswith("metadata:\n")
        assert toon_format.decode(text) == json.loads(to_json(catalog))

    def test_numeric_looking_keywords_stay_strings(self, tmp_path):
        data = {"keywords": ["chapa", "lisa", "060"]}

        text = write_toon(data, tmp_path / "k.toon").read_text(encoding="utf-8")

        assert text.startswith("keywords[3]: ")
        assert toon_format.decode(text) == data
