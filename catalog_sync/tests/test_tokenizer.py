"""Tests for keyword normalization and tokenization."""

import pytest

from catalog_sync.tokenizer import KeywordSet, merge_tokens, normalize_text, tokenize


class TestNormalizeText:

    @pytest.mark.parametrize("text,expected", [
        ("Construcción", "construccion"),
        ("Caño 1/2\" PVC", "cano 1/2 pvc"),
        ("Chapa 2×1", "chapa 2x1"),
        ("  Cal   (25kg)  ", "cal 25kg"),
        ("Ladrillo, hueco; 12-18", "ladrillo hueco 12-18"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, text, expected):
        assert normalize_text(text) == expected


class TestTokenize:

    def test_dimension_splitting(self):
        tokens = tokenize("Chapa 0.60x0.40m Lisa")
        for expected in ["chapa", "lisa", "0.60x0.40m", "0.60", "060", "60", "0.40m", "040", "40"]:
            assert expected in tokens

    def test_short_tokens_kept_only_with_digits(self):
        tokens = tokenize("Caño de 6m a 1/2")
        assert "6m" in tokens
        assert "1/2" in tokens
        assert "de" not in tokens
        assert "a" not in tokens

    def test_is_suffix_guard_and_misspelling_variant(self):
        tokens = tokenize("Porcellanato Gris")
        assert "gris" in tokens
        assert "gri" not in tokens
        assert "porcellanato" in tokens
        assert "porcelanato" in tokens

    def test_plural_to_singular(self):
        assert tokenize("Chapas") == ["chapas", "chapa"]

    def test_short_plural_not_singularized(self):
        assert tokenize("mas") == ["mas"]

    def test_trailing_dot(self):
        tokens = tokenize("Bolsa 25 kg.")
        assert "kg." in tokens
        assert "kg" in tokens

    def test_interchangeable_spellings_both_ways(self):
        assert "zincalum" in tokenize("Chapa Cincalum")
        assert "cincalum" in tokenize("Chapa Zincalum")

    def test_deduplicated_and_ordered(self):
        assert tokenize("Cal cal CAL", "Cal") == ["cal"]

    def test_deterministic_order(self):
        text = "Chapa Cincalum 0.60x0.40m Lisas"
        assert tokenize(text) == tokenize(text)
        assert tokenize(text)[0] == "chapa"

    def test_empty_inputs(self):
        assert tokenize() == []
        assert tokenize("", None, "   ") == []


class TestKeywordSet:

    def test_insertion_order_and_empty_strings(self):
        keywords = KeywordSet(["b", "a", "", "b"])
        assert keywords.to_list() == ["b", "a"]
        assert len(keywords) == 2
        assert "a" in keywords

    def test_merge_tokens_skips_empty_texts(self):
        keywords = merge_tokens(KeywordSet(["techos"]), "Chapas", None, "")
        assert keywords.to_list() == ["techos", "chapas", "chapa"]
