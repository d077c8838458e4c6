"""FastAPI service for user-based phone recommendations."""

from __future__ import annotations

import dataclasses
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request

from ..catalog import ItemCatalog
from ..config import load_config
from ..paths import get_repo_root
from ..user_cf.recommender import NegativeSimilarityPolicy, UserBasedRecommender
from ..user_cf.store import PreferenceStore
from ..utils import setup_logging
from .schemas import (
    HealthResponse,
    RecommendRequest,
    RecommendResponse,
    SimilarUsersRequest,
    SimilarUsersResponse,
)

logger = logging.getLogger(__name__)


def _get_env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    p = Path(str(raw))
    return p if p.is_absolute() else (get_repo_root() / p).resolve()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    # Tests (or embedding apps) may inject a recommender before startup.
    if getattr(app.state, "recommender", None) is None:
        config_path = _get_env_path("CONFIG_PATH", get_repo_root() / "config.yaml")
        app_cfg = load_config(config_path)
        logger.info("Starting service with config=%s ratings=%s", config_path, app_cfg.paths.ratings_path)
        store = PreferenceStore.load(app_cfg.paths.ratings_path, delimiter=app_cfg.delimiter)
        app.state.recommender = UserBasedRecommender(store, app_cfg.recommender)
        app.state.catalog = app_cfg.catalog
    yield


app = FastAPI(title="Phone Recommendation Service", lifespan=lifespan)


def _recommender(request: Request) -> UserBasedRecommender:
    rec = getattr(request.app.state, "recommender", None)
    if rec is None:
        raise HTTPException(status_code=503, detail="Recommender not initialized")
    return rec


def _catalog(request: Request) -> ItemCatalog:
    catalog = getattr(request.app.state, "catalog", None)
    return catalog if catalog is not None else ItemCatalog()


@app.get("/health", response_model=HealthResponse)
def health(request: Request) -> dict:
    rec = _recommender(request)
    return {
        "status": "ok",
        "users": rec.store.num_users,
        "items": rec.store.num_items,
        "ratings": rec.store.num_ratings,
    }


@app.post("/recommend", response_model=RecommendResponse)
def recommend(req: RecommendRequest, request: Request) -> dict:
    """Recommend phones for a user; unknown users get an empty result list."""
    rec = _recommender(request)
    catalog = _catalog(request)

    if req.negative_similarity is not None:
        cfg = dataclasses.replace(
            rec.config,
            negative_similarity=NegativeSimilarityPolicy.parse(req.negative_similarity),
        )
        rec = UserBasedRecommender(rec.store, cfg)

    user_id = rec.store.resolve_user_id(req.user_id)
    n = int(req.n if req.n is not None else rec.config.num_recommendations)
    k = int(req.k if req.k is not None else rec.config.neighborhood_size)
    recs = rec.recommend(user_id, n=n, k=k)

    results = []
    for r in recs:
        info = catalog.get(r.itemId)
        item = {"itemId": r.itemId, "predicted_value": float(r.value)}
        if info is not None:
            item.update(dataclasses.asdict(info))
        results.append(item)

    return {"user_id": req.user_id, "n": n, "k": k, "results": results}


@app.post("/similar_users", response_model=SimilarUsersResponse)
def similar_users(req: SimilarUsersRequest, request: Request) -> dict:
    """Return the neighborhood of a user (most similar rating patterns first)."""
    rec = _recommender(request)
    user_id = rec.store.resolve_user_id(req.user_id)
    k = int(req.k if req.k is not None else rec.config.neighborhood_size)
    sims = rec.similar_users(user_id, k=k)
    return {
        "user_id": req.user_id,
        "k": k,
        "results": [{"userId": s.userId, "similarity": float(s.similarity)} for s in sims],
    }
