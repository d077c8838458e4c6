"""Command-line entry point: phone recommendations for one user.

Reads settings from config.yaml; flags override them.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

from ..catalog import ItemCatalog
from ..config import load_config
from ..errors import ConfigError, RecommenderError
from ..utils import setup_logging
from .neighborhood import Neighbor
from .recommender import Recommendation, RecommenderConfig, UserBasedRecommender
from .store import PreferenceStore


logger = logging.getLogger(__name__)

SEPARATOR = "-" * 50


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="User-based collaborative filtering phone recommender")
    p.add_argument("--config", type=Path, default=None, help="Path to config YAML (default: repo config.yaml)")
    p.add_argument("--ratings", type=Path, default=None, help="Override ratings file path")
    p.add_argument("--user-id", type=str, default=None, help="Target userId (default: user_cf.target_user)")
    p.add_argument("--k", type=int, default=None, help="Neighborhood size")
    p.add_argument("--n", type=int, default=None, help="How many recommendations to return")
    p.add_argument("--similarity", choices=["pearson", "cosine"], default=None, help="Similarity metric")
    p.add_argument(
        "--include-negative",
        action="store_true",
        help="Let negatively-correlated neighbors pull predictions down",
    )
    p.add_argument("--show-neighbors", action="store_true", help="Print the neighborhood table")
    p.add_argument("--log-level", type=str, default="WARNING", help="Logging level")
    return p


def _override(cfg: RecommenderConfig, args: argparse.Namespace) -> RecommenderConfig:
    return RecommenderConfig(
        neighborhood_size=int(args.k if args.k is not None else cfg.neighborhood_size),
        num_recommendations=int(args.n if args.n is not None else cfg.num_recommendations),
        similarity=(args.similarity or cfg.similarity),
        negative_similarity=("include" if args.include_negative else cfg.negative_similarity),
        min_similarity=cfg.min_similarity,
        min_supporting_neighbors=cfg.min_supporting_neighbors,
        cap_estimates=cfg.cap_estimates,
    )


def format_recommendations(
    user_id: object,
    recs: list[Recommendation],
    catalog: ItemCatalog,
) -> list[str]:
    lines = [f"--- Phone Recommendations for User {user_id} ---"]
    if not recs:
        lines.append(f"No recommendations found for user {user_id}")
        return lines
    lines.extend(catalog.describe(r.itemId, r.value) for r in recs)
    return lines


def format_neighbors(neighbors: list[Neighbor]) -> str:
    if not neighbors:
        return "No similar users found."
    df = pd.DataFrame([{"userId": n.userId, "similarity": round(n.similarity, 4)} for n in neighbors])
    return df.to_string(index=False)


def run(args: argparse.Namespace) -> int:
    app_cfg = load_config(args.config)
    ratings_path = args.ratings if args.ratings is not None else app_cfg.paths.ratings_path
    rec_cfg = _override(app_cfg.recommender, args)

    raw_user = args.user_id if args.user_id is not None else app_cfg.target_user
    if raw_user is None:
        raise ConfigError("No target user: pass --user-id or set user_cf.target_user in config.yaml")

    store = PreferenceStore.load(ratings_path, delimiter=app_cfg.delimiter)
    rec = UserBasedRecommender(store, rec_cfg)
    user_id = store.resolve_user_id(raw_user)
    logger.info("Recommending for user=%s k=%d n=%d", user_id, rec_cfg.neighborhood_size, rec_cfg.num_recommendations)

    print(SEPARATOR)
    print("  Welcome to the AI Phone Recommendation System!  ")
    print(SEPARATOR)
    print()

    neighbors = rec.similar_users(user_id)
    if args.show_neighbors:
        print(f"=== Similar Users (k={rec_cfg.neighborhood_size}) ===")
        print(format_neighbors(neighbors))
        print()

    recs = rec.engine.recommend(user_id, neighbors, rec_cfg.num_recommendations)
    for line in format_recommendations(user_id, recs, app_cfg.catalog):
        print(line)
    print(SEPARATOR)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    setup_logging(str(args.log_level).upper())
    try:
        return run(args)
    except (RecommenderError, FileNotFoundError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
