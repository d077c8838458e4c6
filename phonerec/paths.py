from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ProjectPaths:
    ratings_path: Path
    artifacts_dir: Path
    batch_dir: Path

    @classmethod
    def from_repo_root(
        cls,
        repo_root: Path,
        *,
        ratings_path: Path | str = "data/raw/ratings.csv",
        artifacts_dir: Path | str = "artifacts",
        batch_dir: Path | str | None = None,
    ) -> "ProjectPaths":
        artifacts_dir_p = resolve_path(repo_root, artifacts_dir)
        return cls(
            ratings_path=resolve_path(repo_root, ratings_path),
            artifacts_dir=artifacts_dir_p,
            batch_dir=(resolve_path(repo_root, batch_dir) if batch_dir is not None else artifacts_dir_p / "batch"),
        )


def resolve_path(repo_root: Path, p: Path | str) -> Path:
    """Resolve `p` against `repo_root` unless it is already absolute."""
    p_path = Path(p) if isinstance(p, str) else p
    if not p_path.is_absolute():
        p_path = repo_root / p_path
    return p_path.resolve()


def _is_project_root(path: Path) -> bool:
    return (path / "config.yaml").is_file() or (path / ".git").exists()


def get_repo_root() -> Path:
    """Directory holding `config.yaml` (or `.git`), looked up from the cwd, then from the package."""
    # The package location covers uvicorn or the CLIs started outside the checkout.
    for start in (Path.cwd().resolve(), Path(__file__).resolve().parent):
        for candidate in (start, *start.parents):
            if _is_project_root(candidate):
                return candidate
    raise FileNotFoundError("Could not locate repo root (expected `config.yaml` or `.git`).")
