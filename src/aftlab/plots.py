
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from lifelines import KaplanMeierFitter
from scipy.stats import lognorm

from .lognormal import location_scale_from_moments
from .models.aft import predict_survival


def _ensure_outdir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def group_profiles(df: pd.DataFrame, covariates: Sequence[str], groups: pd.Series) -> dict:
    """Mean covariate profile per group, taken from the frame the model was fitted on."""
    missing = [c for c in covariates if c not in df.columns]
    if missing:
        raise ValueError(f"Fit covariates not found in data: {missing}")
    return {grp: {c: float(sub[c].mean()) for c in covariates} for grp, sub in df.groupby(groups)}


def km_with_fit(
    df: pd.DataFrame,
    time_col: str,
    event_col: str,
    group_col: str,
    outdir: str | Path,
    record: Optional[Mapping[str, Any]] = None,
    groups: Optional[pd.Series] = None,
) -> Path:
    """KM curves per group, overlaid with the fitted parametric survival when a fit record is given.

    `df` must hold covariates on the scale the model was fitted on (see
    `aftlab.preprocess.prepare_frame`); `groups` gives the raw group labels when
    the group column itself was transformed. The record's covariates are held at
    each group's mean.
    """
    outdir = _ensure_outdir(Path(outdir))
    by = groups if groups is not None else df[group_col]
    profiles = group_profiles(df, record["covariates"], by) if record is not None else {}

    fig, ax = plt.subplots()
    grid = np.linspace(0.0, float(df[time_col].max()), 200)
    for grp, sub in df.groupby(by):
        kmf = KaplanMeierFitter(label=f"{group_col}={grp}")
        kmf.fit(durations=sub[time_col].values, event_observed=sub[event_col].values)
        kmf.plot_survival_function(ax=ax, ci_show=False)
        if record is not None:
            ax.plot(grid, predict_survival(record, profiles[grp], grid), linestyle="--", linewidth=1)

    title = "Kaplan-Meier"
    if record is not None:
        title += f" vs {record['model']} fit"
    ax.set_title(title)
    ax.set_xlabel("Time")
    ax.set_ylabel("Survival probability")

    outpath = outdir / "km_with_fit.png"
    fig.savefig(outpath, dpi=160, bbox_inches="tight")
    plt.close(fig)
    return outpath


def lognormal_density(mean: float, variance: float, outdir: str | Path, n_points: int = 400) -> Path:
    """Density of the lognormal with the given natural-scale moments, marking mean and median."""
    outdir = _ensure_outdir(Path(outdir))
    mu, sigma = location_scale_from_moments(mean, variance)
    if sigma == 0:
        raise ValueError("A zero-variance lognormal has no density to plot.")

    dist = lognorm(s=sigma, scale=np.exp(mu))
    x = np.linspace(dist.ppf(0.001), dist.ppf(0.995), n_points)

    fig, ax = plt.subplots()
    ax.plot(x, dist.pdf(x))
    ax.axvline(mean, linestyle="--", linewidth=1, label=f"mean={mean:g}")
    ax.axvline(np.exp(mu), linestyle=":", linewidth=1, label=f"median={np.exp(mu):.4g}")
    ax.set_title(f"Lognormal(mu={mu:.3f}, sigma={sigma:.3f})")
    ax.set_xlabel("Time")
    ax.set_ylabel("Density")
    ax.legend()

    outpath = outdir / "lognormal_density.png"
    fig.savefig(outpath, dpi=160, bbox_inches="tight")
    plt.close(fig)
    return outpath
