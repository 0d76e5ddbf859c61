from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_SCORING_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"


def scoring_config_path() -> Path:
    override = (os.getenv("SCORING_CONFIG_PATH") or "").strip()
    return Path(override) if override else DEFAULT_SCORING_CONFIG_PATH


@lru_cache(maxsize=4)
def _load(path: Path) -> dict[str, Any]:
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise RuntimeError(f"Scoring config not found at '{path}'. Expected file: config/scoring.yaml") from exc
    except OSError as exc:
        raise RuntimeError(f"Failed to read scoring config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in scoring config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid scoring config '{path}': expected a top-level mapping.")
    return parsed


def get_scoring_config() -> dict[str, Any]:
    """Parsed config/scoring.yaml (or ``SCORING_CONFIG_PATH``), cached per path."""
    return _load(scoring_config_path())


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'weights.keyword_exact'."""
    current: Any = get_scoring_config()
    for key in (path or "").split("."):
        if not key or not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def get_subscore_weights() -> dict[str, float]:
    """Composite weights per sub-score, normalized to sum to 1.0."""
    from resume_revision.schemas.ats import SUBSCORE_KEYS

    weights = get_scoring_value("weights")
    if not isinstance(weights, dict) or not weights:
        raise RuntimeError("Scoring config is missing the 'weights' mapping.")
    unknown = sorted(set(weights) - set(SUBSCORE_KEYS))
    if unknown:
        raise RuntimeError(f"Unknown sub-score weights in scoring config: {', '.join(unknown)}")
    total = sum(float(value) for value in weights.values())
    if total <= 0:
        raise RuntimeError("Scoring weights must sum to a positive value.")
    return {str(key): float(value) / total for key, value in weights.items()}
