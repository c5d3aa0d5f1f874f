"""Fusion of lexical and semantic result sets."""

from dataclasses import dataclass

from knowledge_search.search.models import SearchResult, SearchSource, clamp_score

# Added to the better of the two scores when both methods found a document.
DEFAULT_PRESENCE_BONUS = 0.1


@dataclass(slots=True)
class _Fused:
    document_id: str
    lexical_score: float | None = None
    semantic_score: float | None = None

    @property
    def source(self) -> SearchSource:
        if self.lexical_score is not None and self.semantic_score is not None:
            return SearchSource.HYBRID
        if self.lexical_score is not None:
            return SearchSource.LEXICAL
        return SearchSource.SEMANTIC


def _best_scores(results: list[SearchResult]) -> dict[str, float]:
    best: dict[str, float] = {}
    for result in results:
        current = best.get(result.document_id)
        if current is None or result.score > current:
            best[result.document_id] = result.score
    return best


class HybridRanker:
    """Merges lexical and semantic results by document id.

    A document found by only one method keeps its score and source. A
    document found by both is tagged HYBRID and scored
    ``min(1, max(lexical, semantic) + presence_bonus)``. Ordering is by
    score, then semantic score, then document id, so equal inputs always
    produce the same output.
    """

    def __init__(self, presence_bonus: float = DEFAULT_PRESENCE_BONUS) -> None:
        if not 0.0 <= presence_bonus <= 1.0:
            raise ValueError("presence_bonus must be between 0 and 1")
        self.presence_bonus = presence_bonus

    def fuse(
        self,
        lexical: list[SearchResult],
        semantic: list[SearchResult],
    ) -> list[SearchResult]:
        fused: dict[str, _Fused] = {}
        for document_id, score in _best_scores(lexical).items():
            fused[document_id] = _Fused(document_id, lexical_score=score)
        for document_id, score in _best_scores(semantic).items():
            entry = fused.setdefault(document_id, _Fused(document_id))
            entry.semantic_score = score

        scored = [(self._score(entry), entry) for entry in fused.values()]
        scored.sort(
            key=lambda item: (
                -item[0],
                -(item[1].semantic_score or 0.0),
                item[1].document_id,
            )
        )
        return [
            SearchResult(document_id=entry.document_id, score=score, source=entry.source)
            for score, entry in scored
        ]

    def _score(self, entry: _Fused) -> float:
        if entry.lexical_score is not None and entry.semantic_score is not None:
            best = max(entry.lexical_score, entry.semantic_score)
            return clamp_score(best + self.presence_bonus)
        if entry.lexical_score is not None:
            return entry.lexical_score
        return entry.semantic_score or 0.0
