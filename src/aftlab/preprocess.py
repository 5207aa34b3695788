
from __future__ import annotations

from typing import Sequence

import pandas as pd
from sklearn.impute import SimpleImputer
from sklearn.preprocessing import StandardScaler


def make_preprocessor(strategy: str = "median", scale: str | None = None) -> tuple[SimpleImputer, StandardScaler | None]:
    """Construct imputer and scaler according to config."""
    imputer = SimpleImputer(strategy=strategy)
    scaler = StandardScaler() if scale == "standard" else None
    return imputer, scaler


def prepare_frame(
    df: pd.DataFrame,
    time_col: str,
    event_col: str,
    covariates: Sequence[str],
    strategy: str = "median",
    scale: str | None = None,
) -> pd.DataFrame:
    """Return `[time, event] + covariates` with covariates imputed (and optionally scaled).

    Scaling changes the meaning of time ratios to "per standard deviation", so it
    is off unless the config asks for it.
    """
    covs = list(covariates)
    out = df[[time_col, event_col]].copy()
    out[event_col] = out[event_col].astype(int)
    if not covs:
        return out

    imputer, scaler = make_preprocessor(strategy, scale)
    X = imputer.fit_transform(df[covs])
    if scaler is not None:
        X = scaler.fit_transform(X)
    for i, c in enumerate(covs):
        out[c] = X[:, i]
    return out
