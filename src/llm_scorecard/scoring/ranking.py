"""Ranking quality metrics against graded relevance.

- NDCG@k: How close is the model's ordering to the ideal ordering?
- MRR: How early does the first highly relevant result appear?

Identifiers missing from the relevance mapping count as relevance 0.
"""

from collections.abc import Iterable, Mapping, Sequence

import numpy as np

from ..schemas.gold import GradedCandidate, RankedResult


def _dcg(grades: Sequence[int] | np.ndarray) -> float:
    gains = np.power(2.0, np.asarray(grades, dtype=float)) - 1.0
    discounts = np.log2(np.arange(len(gains)) + 2.0)
    return float(np.sum(gains / discounts))


def ndcg(order: Sequence[str], relevance: Mapping[str, int], k: int = 10) -> float:
    """Calculate Normalized Discounted Cumulative Gain at K.

    Gain is ``2^rel - 1`` discounted by ``log2(position + 2)``. The ideal
    ordering is built from every grade in ``relevance``, not just the
    identifiers the model returned. Repeated identifiers only count at
    their first position.

    Args:
        order: Candidate identifiers in the model's ranked order
        relevance: Gold relevance grade per identifier
        k: Cutoff; clamped to the number of distinct identifiers in ``order``

    Returns:
        NDCG@K score (0-1, higher is better). 0.0 for an empty order, k <= 0,
        or when no candidate is relevant.
    """
    order = list(dict.fromkeys(order))
    if k <= 0 or not order:
        return 0.0
    k = min(k, len(order))

    dcg = _dcg([relevance.get(item, 0) for item in order[:k]])

    ideal = np.sort(np.asarray(list(relevance.values()), dtype=float))[::-1][:k]
    idcg = _dcg(ideal)

    if idcg == 0:
        return 0.0
    return dcg / idcg


def mrr(order: Sequence[str], relevance: Mapping[str, int], threshold: int = 3) -> float:
    """Reciprocal rank of the first identifier with relevance >= threshold.

    Args:
        order: Candidate identifiers in the model's ranked order
        relevance: Gold relevance grade per identifier
        threshold: Minimum grade that counts as a hit

    Returns:
        1 / (1-based position of the first hit), or 0.0 if none qualifies
    """
    for position, item in enumerate(order, start=1):
        if relevance.get(item, 0) >= threshold:
            return 1.0 / position
    return 0.0


def relevance_map(graded: Iterable[GradedCandidate]) -> dict[str, int]:
    """Build an identifier -> grade mapping from gold candidates."""
    return {candidate.id: candidate.relevance for candidate in graded}


def order_by_score(results: Iterable[RankedResult]) -> list[str]:
    """Identifiers sorted by model score, highest first.

    The sort is stable, so tied scores keep the order the model emitted them in.
    """
    return [r.id for r in sorted(results, key=lambda r: r.score, reverse=True)]
