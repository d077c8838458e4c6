from __future__ import annotations

import io
import logging
import math
from pathlib import Path
from typing import IO, Tuple, Union

import numpy as np
import pandas as pd

from .errors import EmptyDatasetError, MalformedInputError


logger = logging.getLogger(__name__)

RatingsSource = Union[str, Path, IO[str]]

REQUIRED_COLUMNS: Tuple[str, ...] = ("userId", "itemId", "rating")

_INT_ID_PATTERN = r"[+-]?\d+"


def _read_text(source: RatingsSource) -> str:
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Ratings file not found: {path}")
        return path.read_text(encoding="utf-8")
    return source.read()


def _split_records(text: str, delimiter: str | None) -> pd.DataFrame:
    """Split raw text into string fields, keeping the physical line number of each record."""
    rows: list[tuple[int, str, str, str, str | None, str]] = []
    sep = delimiter
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if sep is None:
            # Auto-detect once, from the first data line.
            sep = "\t" if "\t" in line else ","
        fields = [f.strip() for f in line.split(sep)]
        if len(fields) not in (3, 4):
            raise MalformedInputError(
                f"expected 3 or 4 fields separated by {sep!r}, got {len(fields)}",
                line_number=line_number,
                record=raw,
            )
        if any(f == "" for f in fields[:3]):
            raise MalformedInputError("empty userId, itemId or rating field", line_number=line_number, record=raw)
        timestamp = fields[3] if len(fields) == 4 else None
        rows.append((line_number, fields[0], fields[1], fields[2], timestamp, raw))

    return pd.DataFrame(rows, columns=["line", "userId", "itemId", "rating", "timestamp", "raw"])


def _first_bad(df: pd.DataFrame, mask: pd.Series, message: str) -> MalformedInputError:
    row = df.loc[mask].iloc[0]
    return MalformedInputError(message, line_number=int(row["line"]), record=str(row["raw"]))


def _coerce_ids(values: pd.Series) -> pd.Series:
    """Parse an id column as int when every value is an integer literal, otherwise keep strings."""
    as_str = values.astype(str)
    if bool(as_str.str.fullmatch(_INT_ID_PATTERN).all()):
        return as_str.map(int)
    return as_str


def parse_ratings(source: RatingsSource, *, delimiter: str | None = None) -> pd.DataFrame:
    """Parse `userId<sep>itemId<sep>rating[<sep>timestamp]` records into a ratings frame.

    Notes
    -----
    - Blank lines and lines starting with `#` are ignored; there is no header.
    - A later record for the same (userId, itemId) pair overwrites the earlier one.
    - Any unparsable record rejects the whole source with `MalformedInputError`.
    - A source with no records raises `EmptyDatasetError`.
    """
    text = _read_text(source)
    df = _split_records(text, delimiter)
    if df.empty:
        raise EmptyDatasetError("ratings source contains no rating records")

    ratings = pd.to_numeric(df["rating"], errors="coerce")
    bad_rating = ratings.isna() | ~np.isfinite(ratings.fillna(0.0).astype(float))
    if bad_rating.any():
        raise _first_bad(df, bad_rating, "rating is not a finite number")

    has_ts = df["timestamp"].notna()
    if has_ts.any():
        ts_ok = df["timestamp"].astype(str).str.fullmatch(_INT_ID_PATTERN)
        bad_ts = has_ts & ~ts_ok
        if bad_ts.any():
            raise _first_bad(df, bad_ts, "timestamp is not an integer")

    out = pd.DataFrame(
        {
            "userId": _coerce_ids(df["userId"]),
            "itemId": _coerce_ids(df["itemId"]),
            "rating": ratings.astype("float64"),
        }
    )

    n_before = len(out)
    out = out.drop_duplicates(subset=["userId", "itemId"], keep="last").reset_index(drop=True)
    if len(out) != n_before:
        logger.info("Dropped %d overwritten duplicate ratings", n_before - len(out))

    return out


def validate_ratings(df: pd.DataFrame) -> pd.DataFrame:
    """Validate an already-built ratings frame and return a normalised copy."""
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise MalformedInputError(f"ratings frame missing columns: {missing}")

    out = df[list(REQUIRED_COLUMNS)].copy()
    if out.empty:
        raise EmptyDatasetError("ratings frame contains no rows")

    if out["userId"].isna().any() or out["itemId"].isna().any():
        raise MalformedInputError("ratings frame contains missing userId/itemId values")

    ratings = pd.to_numeric(out["rating"], errors="coerce")
    if ratings.isna().any() or not all(math.isfinite(float(v)) for v in ratings.tolist()):
        raise MalformedInputError("ratings frame contains non-numeric or non-finite rating values")
    out["rating"] = ratings.astype("float64")

    return out.drop_duplicates(subset=["userId", "itemId"], keep="last").reset_index(drop=True)


def read_ratings_text(text: str, *, delimiter: str | None = None) -> pd.DataFrame:
    """Convenience wrapper for parsing ratings held in memory."""
    return parse_ratings(io.StringIO(text), delimiter=delimiter)
