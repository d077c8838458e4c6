"""Load `config.yaml` into typed settings."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .catalog import ItemCatalog
from .errors import ConfigError
from .paths import ProjectPaths, get_repo_root
from .user_cf.recommender import RecommenderConfig


@dataclass(frozen=True)
class AppConfig:
    paths: ProjectPaths
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    catalog: ItemCatalog = field(default_factory=ItemCatalog)
    target_user: Any = None
    delimiter: str | None = None
    batch_max_workers: int = 4
    raw: dict[str, Any] = field(default_factory=dict)


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    obj = yaml.safe_load(path.read_text())
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ConfigError(f"Expected YAML mapping at {path}, got {type(obj)}")
    return obj


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    value = cfg.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"config section {name!r} must be a mapping")
    return value


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        out = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from exc
    if out <= 0:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return out


def _optional_float(value: Any, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number or null, got {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number or null, got {value!r}") from exc
    if not math.isfinite(out):
        raise ConfigError(f"{name} must be finite, got {value!r}")
    return out


def _bool(value: Any, name: str) -> bool:
    # YAML already maps true/false/yes/no; anything else (e.g. a quoted "false") is rejected.
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false, got {value!r}")
    return value


def recommender_config_from_dict(raw: dict[str, Any]) -> RecommenderConfig:
    defaults = RecommenderConfig()
    return RecommenderConfig(
        neighborhood_size=_positive_int(raw.get("neighborhood_size", defaults.neighborhood_size), "neighborhood_size"),
        num_recommendations=_positive_int(
            raw.get("num_recommendations", defaults.num_recommendations), "num_recommendations"
        ),
        similarity=raw.get("similarity", defaults.similarity),
        negative_similarity=raw.get("negative_similarity", defaults.negative_similarity),
        min_similarity=_optional_float(raw.get("min_similarity", defaults.min_similarity), "min_similarity"),
        min_supporting_neighbors=_positive_int(
            raw.get("min_supporting_neighbors", defaults.min_supporting_neighbors), "min_supporting_neighbors"
        ),
        cap_estimates=_bool(raw.get("cap_estimates", defaults.cap_estimates), "cap_estimates"),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """Read `config.yaml`; relative paths inside it resolve against the file's directory."""
    config_path = Path(config_path).resolve() if config_path else (get_repo_root() / "config.yaml")
    cfg = _load_yaml(config_path)
    base_dir = config_path.parent

    dataset = _section(cfg, "dataset")
    user_cf = _section(cfg, "user_cf")
    batch = _section(cfg, "batch")

    delimiter = dataset.get("delimiter")
    if delimiter is not None and (not isinstance(delimiter, str) or len(delimiter) != 1):
        raise ConfigError(f"dataset.delimiter must be a single character, got {delimiter!r}")

    paths = ProjectPaths.from_repo_root(
        base_dir,
        ratings_path=str(dataset.get("ratings_path", "data/raw/ratings.csv")),
        artifacts_dir=str(cfg.get("artifacts_dir", "artifacts")),
        batch_dir=batch.get("out_dir"),
    )

    return AppConfig(
        paths=paths,
        recommender=recommender_config_from_dict(user_cf),
        catalog=ItemCatalog.from_mapping(cfg.get("catalog")),
        target_user=user_cf.get("target_user"),
        delimiter=delimiter,
        batch_max_workers=_positive_int(batch.get("max_workers", 4), "batch.max_workers"),
        raw=copy.deepcopy(cfg),
    )
