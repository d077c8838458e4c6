from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `import phonerec...` works when pytest uses importlib import mode.
REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))

from phonerec.user_cf.store import PreferenceStore  # noqa: E402


SCENARIO_A = [
    (1, "itemA", 5.0),
    (1, "itemB", 3.0),
    (2, "itemA", 5.0),
    (2, "itemB", 3.0),
    (2, "itemC", 4.0),
    (3, "itemA", 1.0),
    (3, "itemB", 5.0),
]


@pytest.fixture()
def scenario_a_store() -> PreferenceStore:
    return PreferenceStore.from_triples(SCENARIO_A)


@pytest.fixture()
def sample_ratings_path() -> Path:
    return REPO_ROOT / "data" / "raw" / "ratings.csv"


@pytest.fixture()
def scenario_a_config(tmp_path: Path) -> Path:
    """A config.yaml + ratings.csv pair for scenario A inside tmp_path."""
    ratings = tmp_path / "ratings.csv"
    ratings.write_text("\n".join(f"{u},{i},{v}" for u, i, v in SCENARIO_A) + "\n")
    config = tmp_path / "config.yaml"
    config.write_text(
        "dataset:\n"
        "  ratings_path: ratings.csv\n"
        "user_cf:\n"
        "  target_user: 1\n"
        "  neighborhood_size: 1\n"
        "  num_recommendations: 1\n"
        "batch:\n"
        "  max_workers: 2\n"
        "  out_dir: out\n"
        "catalog:\n"
        '  itemC: {brand: Google, name: Pixel 7a, category: "Mid-range Excellence", price: "449"}\n'
    )
    return config
