from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..errors import ConfigError
from .neighborhood import Neighbor, NeighborhoodSelector
from .similarity import SimilarityKind, SimilarityMetric
from .store import ItemId, PreferenceStore, UserId, id_sort_key


logger = logging.getLogger(__name__)


class NegativeSimilarityPolicy(str, Enum):
    """How neighbors with non-positive similarity take part in a prediction.

    EXCLUDE: only positive similarities are used as weights.
    INCLUDE: negative neighbors pull the prediction down; the weighted sum is divided by
    the sum of absolute similarities. An item still needs at least one positive neighbor.
    """

    EXCLUDE = "exclude"
    INCLUDE = "include"

    @classmethod
    def parse(cls, value: "str | NegativeSimilarityPolicy") -> "NegativeSimilarityPolicy":
        try:
            return cls(str(value.value if isinstance(value, NegativeSimilarityPolicy) else value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(p.value for p in cls)
            raise ConfigError(f"Unknown negative_similarity policy {value!r} (expected one of: {choices})") from exc


@dataclass(frozen=True)
class RecommenderConfig:
    neighborhood_size: int = 3
    num_recommendations: int = 2
    similarity: SimilarityKind = SimilarityKind.PEARSON
    negative_similarity: NegativeSimilarityPolicy = NegativeSimilarityPolicy.EXCLUDE
    min_similarity: float | None = None
    min_supporting_neighbors: int = 1
    cap_estimates: bool = True

    def __post_init__(self) -> None:
        for name in ("neighborhood_size", "num_recommendations", "min_supporting_neighbors"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        object.__setattr__(self, "similarity", SimilarityKind.parse(self.similarity))
        object.__setattr__(self, "negative_similarity", NegativeSimilarityPolicy.parse(self.negative_similarity))
        if self.min_similarity is not None:
            if isinstance(self.min_similarity, bool) or not isinstance(self.min_similarity, (int, float)):
                raise ConfigError(f"min_similarity must be a number or None, got {self.min_similarity!r}")
            object.__setattr__(self, "min_similarity", float(self.min_similarity))
        if not isinstance(self.cap_estimates, bool):
            raise ConfigError(f"cap_estimates must be a bool, got {self.cap_estimates!r}")


@dataclass(frozen=True)
class Recommendation:
    itemId: ItemId
    value: float


class RecommenderEngine:
    """Turns a neighborhood into ranked item predictions for a target user."""

    def __init__(
        self,
        store: PreferenceStore,
        *,
        negative_similarity: NegativeSimilarityPolicy | str = NegativeSimilarityPolicy.EXCLUDE,
        min_supporting_neighbors: int = 1,
        cap_estimates: bool = True,
    ) -> None:
        self.store = store
        self.negative_similarity = NegativeSimilarityPolicy.parse(negative_similarity)
        self.min_supporting_neighbors = int(min_supporting_neighbors)
        self.cap_estimates = bool(cap_estimates)
        if self.min_supporting_neighbors <= 0:
            raise ConfigError(f"min_supporting_neighbors must be positive, got {self.min_supporting_neighbors}")

    def _weight(self, similarity: float) -> float | None:
        if similarity > 0.0:
            return similarity
        if similarity < 0.0 and self.negative_similarity is NegativeSimilarityPolicy.INCLUDE:
            return similarity
        return None

    def _predict(self, item_id: ItemId, neighborhood: Sequence[Neighbor]) -> float | None:
        weighted = 0.0
        w_sum = 0.0
        support = 0
        positive = 0
        for n in neighborhood:
            r = self.store.rating(n.userId, item_id)
            if r is None:
                continue
            w = self._weight(n.similarity)
            if w is None:
                continue
            weighted += w * r
            w_sum += abs(w)
            support += 1
            if w > 0.0:
                positive += 1

        # Negative neighbors only adjust an estimate some positive neighbor backs.
        if positive == 0 or support < self.min_supporting_neighbors:
            return None

        value = weighted / w_sum
        if self.cap_estimates:
            value = max(self.store.min_rating, min(self.store.max_rating, value))
        return float(value)

    def estimate(self, target: UserId, item_id: ItemId, neighborhood: Sequence[Neighbor]) -> float | None:
        """Target's own rating when it exists, otherwise the neighborhood prediction (or None)."""
        own = self.store.rating(target, item_id)
        if own is not None:
            return float(own)
        return self._predict(item_id, neighborhood)

    def candidate_items(self, target: UserId, neighborhood: Sequence[Neighbor]) -> list[ItemId]:
        """Items rated by any neighbor but not by the target, in id order."""
        seen = self.store.ratings_of(target)
        items: set[ItemId] = set()
        for n in neighborhood:
            items.update(i for i in self.store.ratings_of(n.userId) if i not in seen)
        return sorted(items, key=id_sort_key)

    def recommend(self, target: UserId, neighborhood: Sequence[Neighbor], n: int) -> list[Recommendation]:
        """Top-`n` predictions, highest first, ties broken by ascending item id.

        An empty list is a normal outcome: empty neighborhood, or no candidate survives.
        """
        n = int(n)
        if n <= 0:
            raise ConfigError(f"n must be a positive integer, got {n}")
        if not neighborhood:
            return []

        scored: list[Recommendation] = []
        for item_id in self.candidate_items(target, neighborhood):
            value = self._predict(item_id, neighborhood)
            if value is None:
                continue
            scored.append(Recommendation(itemId=item_id, value=value))

        scored.sort(key=lambda r: (-r.value, id_sort_key(r.itemId)))
        logger.debug("Recommendations for user=%s candidates=%d returned=%d", target, len(scored), min(n, len(scored)))
        return scored[:n]


class UserBasedRecommender:
    """Store + similarity + neighborhood + engine, wired from a `RecommenderConfig`.

    Holds no per-request state, so one instance can serve many users concurrently.
    """

    def __init__(self, store: PreferenceStore, config: RecommenderConfig | None = None) -> None:
        self.store = store
        self.config = config if config is not None else RecommenderConfig()
        self.metric = SimilarityMetric(store, self.config.similarity)
        self.selector = NeighborhoodSelector(self.metric, min_similarity=self.config.min_similarity)
        self.engine = RecommenderEngine(
            store,
            negative_similarity=self.config.negative_similarity,
            min_supporting_neighbors=self.config.min_supporting_neighbors,
            cap_estimates=self.config.cap_estimates,
        )

    def similar_users(self, user_id: UserId, *, k: int | None = None) -> list[Neighbor]:
        return self.selector.neighbors_of(user_id, int(k if k is not None else self.config.neighborhood_size))

    def recommend(self, user_id: UserId, *, n: int | None = None, k: int | None = None) -> list[Recommendation]:
        neighborhood = self.similar_users(user_id, k=k)
        return self.engine.recommend(
            user_id,
            neighborhood,
            int(n if n is not None else self.config.num_recommendations),
        )

    def estimate_preference(self, user_id: UserId, item_id: ItemId, *, k: int | None = None) -> float | None:
        return self.engine.estimate(user_id, item_id, self.similar_users(user_id, k=k))
