from __future__ import annotations

import io

import pytest

from phonerec.data import parse_ratings, read_ratings_text, validate_ratings
from phonerec.errors import EmptyDatasetError, MalformedInputError
from phonerec.user_cf.store import PreferenceStore


def test_parse_skips_comments_blank_lines_and_timestamps() -> None:
    df = read_ratings_text("# userId,itemId,rating\n\n1,10,4.5\n2,10,3,1700000000\n")

    assert list(df.columns) == ["userId", "itemId", "rating"]
    assert df["userId"].tolist() == [1, 2]
    assert df["itemId"].tolist() == [10, 10]
    assert df["rating"].tolist() == [4.5, 3.0]


def test_parse_tab_delimited() -> None:
    df = read_ratings_text("1\t7\t2.5\n1\t8\t4\n")
    assert df["itemId"].tolist() == [7, 8]
    assert df["rating"].tolist() == [2.5, 4.0]


def test_later_rating_overwrites_earlier_one() -> None:
    df = read_ratings_text("1,1,3\n1,2,2\n1,1,5\n")
    as_dict = {(u, i): r for u, i, r in df.itertuples(index=False)}
    assert as_dict == {(1, 1): 5.0, (1, 2): 2.0}


def test_string_ids_are_kept_as_text() -> None:
    df = read_ratings_text("alice,iphone,5\nbob,pixel,4\n")
    assert df["userId"].tolist() == ["alice", "bob"]
    assert df["itemId"].tolist() == ["iphone", "pixel"]


def test_mixed_id_column_falls_back_to_strings() -> None:
    df = read_ratings_text("1,a,5\nx,b,3\n")
    assert df["userId"].tolist() == ["1", "x"]


@pytest.mark.parametrize(
    ("text", "line_number"),
    [
        ("1,1,5\n1,2,abc\n", 2),
        ("1,1\n", 1),
        ("1,1,5,6,7\n", 1),
        ("1,,5\n", 1),
        ("1,1,nan\n", 1),
        ("1,1,inf\n", 1),
        ("# header\n1,1,5,yesterday\n", 2),
    ],
)
def test_malformed_records_are_rejected(text: str, line_number: int) -> None:
    with pytest.raises(MalformedInputError) as exc_info:
        read_ratings_text(text)
    assert exc_info.value.line_number == line_number
    assert f"line {line_number}" in str(exc_info.value)


@pytest.mark.parametrize("text", ["", "\n\n", "# nothing here\n"])
def test_empty_source_raises_empty_dataset(text: str) -> None:
    with pytest.raises(EmptyDatasetError):
        read_ratings_text(text)


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        parse_ratings(tmp_path / "nope.csv")


def test_malformed_load_leaves_no_store() -> None:
    store = None
    with pytest.raises(MalformedInputError):
        store = PreferenceStore.load(io.StringIO("1,1,5\n2,1,five\n"))
    assert store is None


def test_validate_ratings_checks_columns_and_values() -> None:
    import pandas as pd

    with pytest.raises(MalformedInputError):
        validate_ratings(pd.DataFrame({"userId": [1], "rating": [3.0]}))
    with pytest.raises(MalformedInputError):
        validate_ratings(pd.DataFrame({"userId": [1], "itemId": [1], "rating": ["x"]}))
    with pytest.raises(EmptyDatasetError):
        validate_ratings(pd.DataFrame({"userId": [], "itemId": [], "rating": []}))
