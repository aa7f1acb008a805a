"""Tests for boxdiff.core.similarity."""

from __future__ import annotations

import pytest

from boxdiff.core.similarity import levenshtein_distance, similarity, size_similarity


class TestLevenshteinDistance:
    """Edit distance."""

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("", "", 0),
            ("abc", "", 3),
            ("", "abc", 3),
            ("kitten", "sitting", 3),
            ("flaw", "lawn", 2),
            ("same", "same", 0),
        ],
    )
    def test_known_distances(self, a: str, b: str, expected: int) -> None:
        assert levenshtein_distance(a, b) == expected

    def test_symmetric(self) -> None:
        assert levenshtein_distance("abcdef", "azced") == levenshtein_distance("azced", "abcdef")


class TestSimilarity:
    """Normalized similarity."""

    def test_identical_is_one(self) -> None:
        assert similarity("hello", "hello") == 1.0

    def test_both_empty_is_one(self) -> None:
        assert similarity("", "") == 1.0

    def test_one_empty_is_zero(self) -> None:
        assert similarity("", "abc") == 0.0

    def test_completely_different(self) -> None:
        assert similarity("aaaa", "bbbb") == 0.0

    def test_single_token_change(self) -> None:
        ratio = similarity("console.log('old')", "console.log('new')")
        assert ratio == pytest.approx(1 - 3 / 18)
        assert ratio > 0.8

    @pytest.mark.parametrize(
        ("a", "b"),
        [("a", "ab"), ("line one\n", "line two\n"), ("x" * 10, "y"), ("abc", "cba")],
    )
    def test_bounded(self, a: str, b: str) -> None:
        assert 0.0 <= similarity(a, b) <= 1.0


class TestLargeInputs:
    """Similarity over large files stays exact for small edits and fast for rewrites."""

    def test_shared_prefix_and_suffix_are_exact(self) -> None:
        body = "x" * 200_000
        ratio = similarity(body + "a" + body, body + "b" + body)
        assert ratio == pytest.approx(1 - 1 / 400_001)

    def test_distance_ignores_common_affixes(self) -> None:
        assert levenshtein_distance("pre-kitten-post", "pre-sitting-post") == 3

    def test_large_rewrite_uses_line_ratio(self) -> None:
        lines = [f"line {n}\n" for n in range(2000)]
        rewritten = lines[:1000] + [f"other {n}\n" for n in range(1000, 2000)]
        assert similarity("".join(lines), "".join(rewritten)) == pytest.approx(0.5)

    def test_cell_budget(self) -> None:
        assert similarity("a\nb\n", "a\nc\n") == pytest.approx(0.75)
        assert similarity("a\nb\n", "a\nc\n", max_cells=0) == pytest.approx(0.5)


class TestSizeSimilarity:
    """Size-based fallback."""

    def test_equal_sizes(self) -> None:
        assert size_similarity(100, 100) == 1.0

    def test_both_zero(self) -> None:
        assert size_similarity(0, 0) == 1.0

    def test_growth(self) -> None:
        assert size_similarity(1000, 1500) == pytest.approx(1 - 500 / 1500)

    def test_from_zero(self) -> None:
        assert size_similarity(0, 10) == 0.0
