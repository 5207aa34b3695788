
from __future__ import annotations

from typing import Sequence

import pandas as pd


def validate_schema(
    df: pd.DataFrame,
    time_col: str,
    event_col: str,
    covariates: Sequence[str] = (),
    group_col: str | None = None,
) -> None:
    """Validate required columns and basic invariants.

    - `time` must be present and strictly positive (log-time models)
    - `event` must be present and in {0, 1}
    - covariate names must be identifiers so they can appear in formulas
    - `group`, when given, must have at least two levels
    """
    required = [time_col, event_col, *covariates]
    if group_col:
        required.append(group_col)
    missing = [c for c in dict.fromkeys(required) if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")

    if df[time_col].isna().any():
        raise ValueError("Missing follow-up times detected.")

    if (df[time_col] <= 0).any():
        raise ValueError("Non-positive follow-up times detected.")

    if (~df[event_col].isin([0, 1])).any():
        raise ValueError("Event column must be 0/1.")

    bad = [c for c in covariates if not str(c).isidentifier()]
    if bad:
        raise ValueError(f"Covariate names must be identifiers: {bad}")

    if group_col and df[group_col].nunique(dropna=True) < 2:
        raise ValueError(f"Group column '{group_col}' needs at least two levels.")
