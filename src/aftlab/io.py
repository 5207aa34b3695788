
from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional

import pandas as pd
import yaml
import json

FIT_MODELS = ("exponential", "lognormal", "bayes-exponential", "bayes-lognormal")
_FIT_KEYS = ("model", "covariates", "params")


def load_csv(path: str | Path) -> pd.DataFrame:
    """Load a CSV into a DataFrame."""
    return pd.read_csv(path)


def save_json(obj: dict, path: str | Path) -> None:
    """Save an object as pretty JSON."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2)


def load_json(path: str | Path) -> dict:
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def load_config(path: str | Path) -> dict:
    """Load a YAML config file."""
    with Path(path).open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def infer_covariates(
    df: pd.DataFrame,
    time_col: str,
    event_col: str,
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
) -> list[str]:
    """Return model covariate columns.

    Preference order:
    1. If `include` is provided, return intersection of `include` with df columns.
    2. Otherwise, return all numeric columns excluding time/event and any in `exclude`.
    """
    include = list(include or [])
    excl = set(exclude or []) | {time_col, event_col}

    if include:
        return [c for c in include if c in df.columns]

    return [c for c in df.columns if c not in excl and pd.api.types.is_numeric_dtype(df[c])]


def save_fit(record: dict[str, Any], path: str | Path) -> None:
    """Write a fit record (see `aftlab.models.aft.fit_record`) as JSON."""
    _check_fit(record)
    save_json(record, path)


def load_fit(path: str | Path) -> dict[str, Any]:
    """Read a fit record written by `save_fit`."""
    record = load_json(path)
    _check_fit(record)
    return record


def _check_fit(record: dict[str, Any]) -> None:
    missing = [k for k in _FIT_KEYS if k not in record]
    if missing:
        raise ValueError(f"Fit record is missing keys: {missing}")
    if record["model"] not in FIT_MODELS:
        raise ValueError(f"Unknown model '{record['model']}', expected one of {FIT_MODELS}")
