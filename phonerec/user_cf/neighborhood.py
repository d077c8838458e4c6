"""Nearest-K user neighborhood selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import ConfigError
from .similarity import SimilarityMetric
from .store import UserId, id_sort_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Neighbor:
    userId: UserId
    similarity: float


class NeighborhoodSelector:
    """Ranks all other users by similarity to a target and keeps the top K.

    Ordering is similarity descending, then user id ascending, so equal input always
    yields the same neighborhood.
    """

    def __init__(self, metric: SimilarityMetric, *, min_similarity: float | None = None) -> None:
        self.metric = metric
        self.store = metric.store
        self.min_similarity = (None if min_similarity is None else float(min_similarity))

    def scored_candidates(self, target: UserId) -> list[Neighbor]:
        """Every other user with a defined similarity to `target`, best first."""
        if not self.store.ratings_of(target):
            return []

        out: list[Neighbor] = []
        for other in self.store.all_user_ids():
            if other == target:
                continue
            sim = self.metric.similarity(target, other)
            if sim is None:
                continue
            if self.min_similarity is not None and sim < self.min_similarity:
                continue
            out.append(Neighbor(userId=other, similarity=float(sim)))

        out.sort(key=lambda n: (-n.similarity, id_sort_key(n.userId)))
        return out

    def neighbors_of(self, target: UserId, k: int) -> list[Neighbor]:
        """Return up to `k` most similar users; fewer when not enough users qualify."""
        k = int(k)
        if k <= 0:
            raise ConfigError(f"k must be a positive integer, got {k}")
        neighbors = self.scored_candidates(target)[:k]
        logger.debug("Neighborhood for user=%s k=%d size=%d", target, k, len(neighbors))
        return neighbors
