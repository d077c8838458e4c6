from __future__ import annotations

from pathlib import Path

from phonerec.catalog import ItemCatalog
from phonerec.user_cf.cli import format_neighbors, format_recommendations, main
from phonerec.user_cf.recommender import Recommendation


REPO_ROOT = Path(__file__).resolve().parents[1]


def test_cli_scenario_a(scenario_a_config: Path, capsys) -> None:
    code = main(["--config", str(scenario_a_config), "--show-neighbors"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Welcome to the AI Phone Recommendation System!" in out
    assert "--- Phone Recommendations for User 1 ---" in out
    assert "Brand: Google, Name: Pixel 7a" in out
    assert "Predicted Preference: 4.0000" in out


def test_cli_unknown_user_prints_no_recommendations(scenario_a_config: Path, capsys) -> None:
    code = main(["--config", str(scenario_a_config), "--user-id", "99"])
    out = capsys.readouterr().out

    assert code == 0
    assert "No recommendations found for user 99" in out


def test_cli_malformed_ratings_is_fatal(tmp_path: Path, scenario_a_config: Path, capsys) -> None:
    bad = tmp_path / "bad.csv"
    bad.write_text("1,itemA,5\n1,itemB,lots\n")

    code = main(["--config", str(scenario_a_config), "--ratings", str(bad)])
    captured = capsys.readouterr()

    assert code == 1
    assert "line 2" in captured.err
    assert "Welcome" not in captured.out


def test_cli_rejects_non_positive_k(scenario_a_config: Path, capsys) -> None:
    assert main(["--config", str(scenario_a_config), "--k", "0"]) == 1
    assert "neighborhood_size" in capsys.readouterr().err


def test_cli_on_sample_data(capsys) -> None:
    code = main(["--config", str(REPO_ROOT / "config.yaml"), "--n", "3", "--include-negative"])
    out = capsys.readouterr().out
    assert code == 0
    assert "--- Phone Recommendations for User 10 ---" in out


def test_format_recommendations_falls_back_to_raw_id() -> None:
    lines = format_recommendations(5, [Recommendation("x9", 3.25)], ItemCatalog())
    assert lines == [
        "--- Phone Recommendations for User 5 ---",
        "Brand ID: x9, Preference Value: 3.2500 (Phone details not found)",
    ]


def test_format_neighbors_empty() -> None:
    assert format_neighbors([]) == "No similar users found."
