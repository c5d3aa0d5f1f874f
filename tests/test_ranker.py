"""Tests for hybrid result fusion."""

import pytest

from knowledge_search.search.models import SearchResult, SearchSource
from knowledge_search.search.ranker import DEFAULT_PRESENCE_BONUS, HybridRanker


def lex(document_id: str, score: float) -> SearchResult:
    return SearchResult(document_id=document_id, score=score, source=SearchSource.LEXICAL)


def sem(document_id: str, score: float) -> SearchResult:
    return SearchResult(document_id=document_id, score=score, source=SearchSource.SEMANTIC)


class TestHybridRanker:
    """Tests for HybridRanker.fuse."""

    def test_default_bonus(self) -> None:
        """The default presence bonus is 0.1."""
        assert HybridRanker().presence_bonus == DEFAULT_PRESENCE_BONUS == 0.1

    @pytest.mark.parametrize("bonus", [-0.1, 1.5])
    def test_bonus_out_of_range(self, bonus: float) -> None:
        """The bonus must lie in [0, 1]."""
        with pytest.raises(ValueError):
            HybridRanker(presence_bonus=bonus)

    def test_single_source_keeps_score_and_tag(self) -> None:
        """Documents found by one method are passed through."""
        fused = HybridRanker().fuse([lex("A", 0.7)], [sem("B", 0.6)])

        assert fused == [lex("A", 0.7), sem("B", 0.6)]

    def test_both_sources_fused_as_hybrid(self) -> None:
        """A document in both sets gets max score plus bonus."""
        fused = HybridRanker().fuse([lex("A", 0.5)], [sem("A", 0.6)])

        assert len(fused) == 1
        assert fused[0].source == SearchSource.HYBRID
        assert fused[0].score == pytest.approx(0.7)

    def test_fused_score_capped_at_one(self) -> None:
        """Fused scores never exceed 1.0."""
        fused = HybridRanker().fuse([lex("A", 0.95)], [sem("A", 0.97)])

        assert fused[0].score == 1.0

    @pytest.mark.parametrize(
        ("lexical_score", "semantic_score"),
        [(0.0, 0.0), (0.2, 0.9), (0.9, 0.2), (1.0, 1.0), (0.45, 0.45)],
    )
    def test_hybrid_score_bounds(self, lexical_score: float, semantic_score: float) -> None:
        """Hybrid score is at least the better input and at most 1.0."""
        fused = HybridRanker().fuse([lex("A", lexical_score)], [sem("A", semantic_score)])

        assert len(fused) == 1
        assert max(lexical_score, semantic_score) <= fused[0].score <= 1.0

    def test_each_document_appears_once(self) -> None:
        """Duplicates within and across sets collapse to one entry."""
        fused = HybridRanker().fuse(
            [lex("A", 0.3), lex("A", 0.5), lex("B", 0.4)],
            [sem("A", 0.2), sem("C", 0.1), sem("C", 0.6)],
        )

        ids = [r.document_id for r in fused]
        assert sorted(ids) == ["A", "B", "C"]
        by_id = {r.document_id: r for r in fused}
        assert by_id["A"].score == pytest.approx(0.6)
        assert by_id["C"].score == pytest.approx(0.6)

    def test_ordering_by_score_descending(self) -> None:
        """Higher scores come first."""
        fused = HybridRanker().fuse(
            [lex("low", 0.1), lex("high", 0.9)],
            [sem("mid", 0.5)],
        )

        assert [r.document_id for r in fused] == ["high", "mid", "low"]

    def test_ties_broken_by_semantic_score(self) -> None:
        """Equal scores prefer the higher semantic score."""
        fused = HybridRanker(presence_bonus=0.0).fuse(
            [lex("lex-only", 0.8), lex("both", 0.8)],
            [sem("both", 0.3), sem("sem-only", 0.8)],
        )

        assert [r.document_id for r in fused] == ["sem-only", "both", "lex-only"]

    def test_ties_broken_by_document_id(self) -> None:
        """Remaining ties are ordered by document id ascending."""
        fused = HybridRanker().fuse([lex("b", 0.5), lex("a", 0.5), lex("c", 0.5)], [])

        assert [r.document_id for r in fused] == ["a", "b", "c"]

    def test_deterministic_for_shuffled_input(self) -> None:
        """Input order does not change the output."""
        lexical = [lex("A", 0.4), lex("B", 0.4), lex("C", 0.9)]
        semantic = [sem("B", 0.4), sem("D", 0.4)]
        ranker = HybridRanker()

        first = ranker.fuse(lexical, semantic)
        second = ranker.fuse(list(reversed(lexical)), list(reversed(semantic)))

        assert first == second

    def test_empty_inputs(self) -> None:
        """No input yields no output."""
        assert HybridRanker().fuse([], []) == []
