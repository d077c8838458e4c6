"""Recommend for every user in the ratings file and persist the results."""

from __future__ import annotations

import argparse
import copy
import hashlib
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

import pandas as pd

from ..config import load_config
from ..errors import BatchCancelled
from ..user_cf.recommender import Recommendation, UserBasedRecommender
from ..user_cf.store import PreferenceStore, UserId, id_sort_key
from ..utils import setup_logging


logger = logging.getLogger(__name__)

_SKIPPED = object()


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def recommend_all(
    recommender: UserBasedRecommender,
    user_ids: Iterable[UserId] | None = None,
    *,
    max_workers: int = 4,
    cancel_event: threading.Event | None = None,
) -> dict[UserId, list[Recommendation]]:
    """Run one recommendation per user on a thread pool.

    Workers only read the shared store. Cancellation is checked before each user starts;
    when it fires, users not yet started are skipped and `BatchCancelled` carries the
    finished ones.
    """
    users = sorted(set(user_ids) if user_ids is not None else recommender.store.all_user_ids(), key=id_sort_key)

    def _work(user_id: UserId) -> Any:
        if cancel_event is not None and cancel_event.is_set():
            return _SKIPPED
        return recommender.recommend(user_id)

    with ThreadPoolExecutor(max_workers=int(max_workers)) as pool:
        results = list(pool.map(_work, users))

    completed = {u: r for u, r in zip(users, results) if r is not _SKIPPED}
    pending = len(users) - len(completed)
    if pending:
        logger.warning("Batch cancelled: done=%d pending=%d", len(completed), pending)
        raise BatchCancelled(completed, pending)

    logger.info("Batch done: users=%d", len(completed))
    return completed


def recommendations_to_frame(results: dict[UserId, list[Recommendation]]) -> pd.DataFrame:
    rows = [
        {"userId": user_id, "rank": rank, "itemId": r.itemId, "predicted_value": float(r.value)}
        for user_id, recs in results.items()
        for rank, r in enumerate(recs, start=1)
    ]
    return pd.DataFrame(rows, columns=["userId", "rank", "itemId", "predicted_value"])


def run_batch(
    *,
    config_path: Path | None,
    out_dir: Path | None = None,
    force: bool = False,
    max_workers: int | None = None,
) -> dict[str, Any]:
    app_cfg = load_config(config_path)
    out_dir = Path(out_dir).resolve() if out_dir is not None else app_cfg.paths.batch_dir
    recs_path = out_dir / "recommendations.csv"
    manifest_path = out_dir / "batch_manifest.json"

    existing = [p for p in (recs_path, manifest_path) if p.exists()]
    if existing and not force:
        raise FileExistsError(
            "Batch outputs already exist. Re-run with --force to overwrite.\n"
            + "\n".join([str(p) for p in existing])
        )
    out_dir.mkdir(parents=True, exist_ok=True)

    ratings_path = app_cfg.paths.ratings_path
    logger.info("Loading ratings from %s", ratings_path)
    store = PreferenceStore.load(ratings_path, delimiter=app_cfg.delimiter)
    recommender = UserBasedRecommender(store, app_cfg.recommender)

    results = recommend_all(
        recommender,
        max_workers=int(max_workers if max_workers is not None else app_cfg.batch_max_workers),
    )
    df = recommendations_to_frame(results)
    df.to_csv(recs_path, index=False)

    now_utc = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    manifest = {
        "built_at_utc": now_utc,
        "dataset": {
            "ratings_path": str(ratings_path),
            "ratings_sha256": _sha256_file(ratings_path),
            "users": store.num_users,
            "items": store.num_items,
            "ratings": store.num_ratings,
        },
        "config": copy.deepcopy(app_cfg.raw),
        "outputs": {
            "recommendations": str(recs_path),
            "rows": int(len(df)),
            "users_without_recommendations": sum(1 for r in results.values() if not r),
        },
    }
    manifest_path.write_text(json.dumps(manifest, indent=2, sort_keys=True, default=str) + "\n")

    logger.info("Wrote %d recommendation rows to %s", len(df), recs_path)
    return manifest


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Batch user-based CF recommendations for every user.")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML.")
    p.add_argument("--out-dir", type=Path, default=None, help="Output directory (default: batch.out_dir)")
    p.add_argument("--max-workers", type=int, default=None, help="Override worker thread count")
    p.add_argument("--force", action="store_true", help="Overwrite existing outputs.")
    return p


def main(argv: list[str] | None = None) -> None:
    setup_logging("INFO")
    args = build_arg_parser().parse_args(argv)
    run_batch(
        config_path=args.config,
        out_dir=args.out_dir,
        force=bool(args.force),
        max_workers=args.max_workers,
    )


if __name__ == "__main__":
    main()
