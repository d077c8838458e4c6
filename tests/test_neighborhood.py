from __future__ import annotations

import pytest

from phonerec.errors import ConfigError
from phonerec.user_cf.neighborhood import NeighborhoodSelector
from phonerec.user_cf.similarity import SimilarityMetric
from phonerec.user_cf.store import PreferenceStore


def _selector(store: PreferenceStore, **kwargs) -> NeighborhoodSelector:
    return NeighborhoodSelector(SimilarityMetric(store), **kwargs)


def test_scenario_a_top_one(scenario_a_store: PreferenceStore) -> None:
    neighbors = _selector(scenario_a_store).neighbors_of(1, 1)
    assert len(neighbors) == 1
    assert neighbors[0].userId == 2
    assert neighbors[0].similarity == pytest.approx(1.0)


def test_sorted_by_similarity_descending(scenario_a_store: PreferenceStore) -> None:
    neighbors = _selector(scenario_a_store).neighbors_of(1, 5)
    assert [n.userId for n in neighbors] == [2, 3]
    assert neighbors[0].similarity > neighbors[1].similarity


def test_k_larger_than_available_returns_available(scenario_a_store: PreferenceStore) -> None:
    # Scenario C: only two other users have a defined similarity to user 1.
    assert len(_selector(scenario_a_store).neighbors_of(1, 50)) == 2


def test_unknown_or_empty_target_has_empty_neighborhood(scenario_a_store: PreferenceStore) -> None:
    assert _selector(scenario_a_store).neighbors_of(404, 3) == []


def test_target_is_never_its_own_neighbor(sample_ratings_path) -> None:
    store = PreferenceStore.load(sample_ratings_path)
    selector = _selector(store)
    for user_id in store.all_user_ids():
        neighbors = selector.neighbors_of(user_id, 3)
        assert len(neighbors) <= 3
        assert all(n.userId != user_id for n in neighbors)
        assert all(n.similarity is not None and -1.0 <= n.similarity <= 1.0 for n in neighbors)


def test_ties_break_by_ascending_user_id() -> None:
    store = PreferenceStore.from_triples(
        [(1, "a", 5.0), (1, "b", 1.0),
         (7, "a", 6.0), (7, "b", 2.0),
         (3, "a", 5.0), (3, "b", 1.0),
         (5, "a", 4.0), (5, "b", 0.0)]
    )
    neighbors = _selector(store).neighbors_of(1, 3)
    assert [n.userId for n in neighbors] == [3, 5, 7]
    assert neighbors[0].similarity == neighbors[1].similarity == neighbors[2].similarity
    assert _selector(store).neighbors_of(1, 1) == [neighbors[0]]


def test_users_without_defined_similarity_are_skipped() -> None:
    store = PreferenceStore.from_triples(
        [(1, "a", 5.0), (1, "b", 1.0), (2, "a", 3.0), (3, "a", 4.0), (3, "b", 4.0)]
    )
    # user 2 shares one item, user 3 has no variance.
    assert _selector(store).neighbors_of(1, 3) == []


def test_min_similarity_threshold(scenario_a_store: PreferenceStore) -> None:
    neighbors = _selector(scenario_a_store, min_similarity=0.0).neighbors_of(1, 5)
    assert [n.userId for n in neighbors] == [2]


def test_non_positive_k_is_rejected(scenario_a_store: PreferenceStore) -> None:
    with pytest.raises(ConfigError):
        _selector(scenario_a_store).neighbors_of(1, 0)
