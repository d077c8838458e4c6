"""In-memory sparse user x item rating matrix."""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping
from types import MappingProxyType

import pandas as pd

from ..data import RatingsSource, parse_ratings, validate_ratings
from ..errors import EmptyDatasetError


logger = logging.getLogger(__name__)

UserId = Hashable
ItemId = Hashable

_EMPTY: Mapping = MappingProxyType({})


def id_sort_key(value: Hashable) -> tuple[int, int | str]:
    """Total order over user/item ids: integers numerically, then everything else as text."""
    if isinstance(value, int) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))


class PreferenceStore:
    """Read-only rating matrix indexed both by user and by item.

    Built once (from a file, a frame or raw triples) and never mutated afterwards, so it
    can be shared across worker threads without locking. Unknown users and items are not
    errors: they simply have no ratings.
    """

    def __init__(self, by_user: dict[UserId, dict[ItemId, float]]) -> None:
        by_item: dict[ItemId, dict[UserId, float]] = {}
        n_ratings = 0
        for user_id, prefs in by_user.items():
            for item_id, value in prefs.items():
                by_item.setdefault(item_id, {})[user_id] = float(value)
                n_ratings += 1

        if n_ratings == 0:
            raise EmptyDatasetError("preference store needs at least one rating")

        self._by_user = {u: MappingProxyType(dict(p)) for u, p in by_user.items() if p}
        self._by_item = {i: MappingProxyType(u) for i, u in by_item.items()}
        self._num_ratings = n_ratings

        values = [v for prefs in self._by_user.values() for v in prefs.values()]
        self._min_rating = float(min(values))
        self._max_rating = float(max(values))

    # ----- constructors -----

    @classmethod
    def load(cls, source: RatingsSource, *, delimiter: str | None = None) -> "PreferenceStore":
        """Parse a ratings file (or text stream) into a store.

        Raises `MalformedInputError` on any unparsable record and `EmptyDatasetError`
        when no ratings result. Nothing is returned on failure, so no partial store exists.
        """
        df = parse_ratings(source, delimiter=delimiter)
        store = cls.from_frame(df)
        logger.info(
            "PreferenceStore loaded: users=%d items=%d ratings=%d",
            store.num_users,
            store.num_items,
            store.num_ratings,
        )
        return store

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "PreferenceStore":
        """Build from a frame with columns userId, itemId, rating (later rows win)."""
        df = validate_ratings(df)
        by_user: dict[UserId, dict[ItemId, float]] = {}
        for user_id, item_id, value in zip(df["userId"].tolist(), df["itemId"].tolist(), df["rating"].tolist()):
            by_user.setdefault(user_id, {})[item_id] = float(value)
        return cls(by_user)

    @classmethod
    def from_triples(cls, triples: Iterable[tuple[UserId, ItemId, float]]) -> "PreferenceStore":
        by_user: dict[UserId, dict[ItemId, float]] = {}
        for user_id, item_id, value in triples:
            by_user.setdefault(user_id, {})[item_id] = float(value)
        return cls(by_user)

    # ----- queries -----

    def ratings_of(self, user_id: UserId) -> Mapping[ItemId, float]:
        """All (item -> rating) for a user; empty for unknown users."""
        return self._by_user.get(user_id, _EMPTY)

    def raters_of(self, item_id: ItemId) -> frozenset[UserId]:
        """All users who rated an item; empty for unknown items."""
        raters = self._by_item.get(item_id)
        return frozenset(raters) if raters is not None else frozenset()

    def rating(self, user_id: UserId, item_id: ItemId) -> float | None:
        return self._by_user.get(user_id, _EMPTY).get(item_id)

    def all_user_ids(self) -> frozenset[UserId]:
        return frozenset(self._by_user)

    def all_item_ids(self) -> frozenset[ItemId]:
        return frozenset(self._by_item)

    def has_user(self, user_id: UserId) -> bool:
        return user_id in self._by_user

    def resolve_user_id(self, raw: UserId) -> UserId:
        """Map a textual id from a CLI flag or request onto the store's id type."""
        if raw in self._by_user:
            return raw
        text = str(raw).strip()
        if text in self._by_user:
            return text
        try:
            as_int = int(text)
        except ValueError:
            return raw
        return as_int if as_int in self._by_user else raw

    @property
    def num_users(self) -> int:
        return len(self._by_user)

    @property
    def num_items(self) -> int:
        return len(self._by_item)

    @property
    def num_ratings(self) -> int:
        return int(self._num_ratings)

    @property
    def min_rating(self) -> float:
        return self._min_rating

    @property
    def max_rating(self) -> float:
        return self._max_rating

    def to_frame(self) -> pd.DataFrame:
        rows = [(u, i, v) for u, prefs in self._by_user.items() for i, v in prefs.items()]
        return pd.DataFrame(rows, columns=["userId", "itemId", "rating"])

    def __repr__(self) -> str:
        return f"PreferenceStore(users={self.num_users}, items={self.num_items}, ratings={self.num_ratings})"
