"""User-user similarity over co-rated items."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

from ..errors import ConfigError
from .store import PreferenceStore, UserId, id_sort_key


MIN_CO_RATED = 2


class SimilarityKind(str, Enum):
    PEARSON = "pearson"
    COSINE = "cosine"

    @classmethod
    def parse(cls, value: "str | SimilarityKind") -> "SimilarityKind":
        try:
            return cls(str(value.value if isinstance(value, SimilarityKind) else value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(k.value for k in cls)
            raise ConfigError(f"Unknown similarity {value!r} (expected one of: {choices})") from exc


def co_rated_vectors(store: PreferenceStore, user_a: UserId, user_b: UserId) -> tuple[np.ndarray, np.ndarray]:
    """Aligned rating vectors of two users over the items both have rated.

    Items are visited in id order, so the result does not depend on argument order.
    """
    prefs_a = store.ratings_of(user_a)
    prefs_b = store.ratings_of(user_b)
    if len(prefs_a) > len(prefs_b):
        common = [i for i in prefs_b if i in prefs_a]
    else:
        common = [i for i in prefs_a if i in prefs_b]
    common.sort(key=id_sort_key)

    a = np.fromiter((prefs_a[i] for i in common), dtype=np.float64, count=len(common))
    b = np.fromiter((prefs_b[i] for i in common), dtype=np.float64, count=len(common))
    return a, b


def pearson(a: np.ndarray, b: np.ndarray) -> float | None:
    """Pearson correlation of two aligned vectors, or None when undefined."""
    if a.shape[0] < MIN_CO_RATED:
        return None
    # Zero variance on either side (e.g. all ratings equal). Checked on the raw values,
    # since centring a constant like 3.3 leaves rounding residue.
    if np.all(a == a[0]) or np.all(b == b[0]):
        return None
    a_c = a - a.mean()
    b_c = b - b.mean()
    denom = float(np.sqrt(np.dot(a_c, a_c))) * float(np.sqrt(np.dot(b_c, b_c)))
    if denom == 0.0:
        return None
    return _clamp(float(np.dot(a_c, b_c)) / denom)


def cosine(a: np.ndarray, b: np.ndarray) -> float | None:
    """Uncentered cosine similarity of two aligned vectors, or None when undefined."""
    if a.shape[0] < MIN_CO_RATED:
        return None
    denom = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if denom == 0.0:
        return None
    return _clamp(float(np.dot(a, b)) / denom)


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


@dataclass(frozen=True)
class SimilarityMetric:
    """Symmetric user-user similarity backed by a `PreferenceStore`.

    `similarity()` returns a float in [-1, 1], or None when the pair shares fewer than
    two co-rated items or one side has no spread. None means "cannot be a neighbor".
    """

    store: PreferenceStore
    kind: SimilarityKind = SimilarityKind.PEARSON

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", SimilarityKind.parse(self.kind))

    def similarity(self, user_a: UserId, user_b: UserId) -> float | None:
        a, b = co_rated_vectors(self.store, user_a, user_b)
        if self.kind is SimilarityKind.COSINE:
            return cosine(a, b)
        return pearson(a, b)

    def co_rated_count(self, user_a: UserId, user_b: UserId) -> int:
        prefs_a = self.store.ratings_of(user_a)
        return sum(1 for i in self.store.ratings_of(user_b) if i in prefs_a)
