"""
Tests for matchengine.ml.nlp.preprocessor: normalization and tokenizing.
"""

import pytest

from matchengine.ml.nlp.preprocessor import (
    TextNormalizer,
    normalize_text,
    tokenize,
    unique,
)


@pytest.fixture
def normalizer():
    return TextNormalizer()


# ── normalize ────────────────────────────────────────────────────────────────


class TestNormalize:
    def test_lowercases_and_collapses_whitespace(self, normalizer):
        assert normalizer.normalize("  Senior   Python\n\tDeveloper ") == "senior python developer"

    def test_folds_synonyms(self, normalizer):
        assert normalizer.normalize("React.js, NodeJS and PostgreSQL") == "react, node and postgres"

    def test_synonym_needs_word_boundary(self, normalizer):
        # "preact.js" is not React
        assert "preact" in normalizer.normalize("Preact.js")

    def test_typographic_characters(self, normalizer):
        assert normalizer.normalize("Python•Django REST") == "python django rest"

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_input(self, normalizer, value):
        assert normalizer.normalize(value) == ""


# ── tokenize ─────────────────────────────────────────────────────────────────


class TestTokenize:
    def test_splits_on_punctuation(self, normalizer):
        assert normalizer.tokenize("React, Node.js; Docker/Kubernetes") == [
            "react", "node", "docker", "kubernetes",
        ]

    def test_keeps_symbol_skills(self, normalizer):
        tokens = normalizer.tokenize("C++, C# and .NET")
        assert "c++" in tokens
        assert "c#" in tokens
        assert ".net" in tokens

    def test_trailing_dot_dropped(self, normalizer):
        assert normalizer.tokenize("I know node.") == ["i", "know", "node"]

    def test_none(self, normalizer):
        assert normalizer.tokenize(None) == []

    def test_module_helpers_share_rules(self):
        assert tokenize("Vue.js") == ["vue"]
        assert normalize_text("K8s") == "kubernetes"


# ── unique / sentences ───────────────────────────────────────────────────────


class TestUniqueAndSentences:
    def test_unique_preserves_order(self):
        assert unique(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]

    def test_unique_tokens(self, normalizer):
        assert normalizer.unique_tokens("react react node React") == ["react", "node"]

    def test_split_sentences_keeps_case(self, normalizer):
        sentences = normalizer.split_sentences("Built APIs. Led a team! Shipped?  Yes")
        assert sentences == ["Built APIs.", "Led a team!", "Shipped?", "Yes"]

    def test_split_sentences_empty(self, normalizer):
        assert normalizer.split_sentences("") == []
