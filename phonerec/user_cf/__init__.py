"""User-user collaborative filtering over explicit ratings.

Core idea:
- Load (userId, itemId, rating) triples into a read-only `PreferenceStore`
- Score other users by Pearson (or cosine) similarity over co-rated items
- Keep the K most similar users as the neighborhood
- Predict unseen items as the similarity-weighted average of neighbor ratings
"""

from .neighborhood import Neighbor, NeighborhoodSelector
from .recommender import (
    NegativeSimilarityPolicy,
    Recommendation,
    RecommenderConfig,
    RecommenderEngine,
    UserBasedRecommender,
)
from .similarity import SimilarityKind, SimilarityMetric
from .store import PreferenceStore

__all__ = [
    "Neighbor",
    "NeighborhoodSelector",
    "NegativeSimilarityPolicy",
    "PreferenceStore",
    "Recommendation",
    "RecommenderConfig",
    "RecommenderEngine",
    "SimilarityKind",
    "SimilarityMetric",
    "UserBasedRecommender",
]
