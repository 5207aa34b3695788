
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Sequence

import numpy as np
import pandas as pd
from autograd import numpy as anp
from lifelines import LogNormalAFTFitter
from lifelines.fitters import ParametricRegressionFitter
from scipy.stats import norm

from ..lognormal import moments_from_location_scale

logger = logging.getLogger(__name__)

INTERCEPT = "Intercept"


class ExponentialAFTFitter(ParametricRegressionFitter):
    """Exponential AFT model: ``log T = x'beta + W`` with extreme-value ``W``.

    ``lambda_`` is the log of the scale (the mean survival time), so ``exp(beta)``
    is a time ratio exactly as for the lognormal AFT location.
    """

    _fitted_parameter_names = ["lambda_"]

    def _cumulative_hazard(self, params, T, Xs):
        scale = anp.exp(anp.dot(Xs["lambda_"], params["lambda_"]))
        return T / scale


def _formula(covariates: Sequence[str]) -> str:
    return " + ".join(["1", *covariates])


def fit_exponential_aft(
    df: pd.DataFrame, time_col: str, event_col: str, covariates: Sequence[str]
) -> ExponentialAFTFitter:
    """Fit an exponential AFT model with lifelines."""
    covs = list(covariates)
    data = df[[time_col, event_col] + covs].copy()
    fitter = ExponentialAFTFitter()
    fitter.fit(data, duration_col=time_col, event_col=event_col, regressors={"lambda_": _formula(covs)}, show_progress=False)
    logger.debug("exponential AFT: n=%d loglik=%.3f", len(data), fitter.log_likelihood_)
    return fitter


def fit_lognormal_aft(
    df: pd.DataFrame, time_col: str, event_col: str, covariates: Sequence[str]
) -> LogNormalAFTFitter:
    """Fit a lognormal AFT model with lifelines."""
    covs = list(covariates)
    data = df[[time_col, event_col] + covs].copy()
    fitter = LogNormalAFTFitter()
    fitter.fit(
        data,
        duration_col=time_col,
        event_col=event_col,
        formula=None if covs else "1",
        show_progress=False,
    )
    logger.debug("lognormal AFT: n=%d loglik=%.3f", len(data), fitter.log_likelihood_)
    return fitter


FITTERS = {
    "exponential": fit_exponential_aft,
    "lognormal": fit_lognormal_aft,
}


def fit_aft(model: str, df: pd.DataFrame, time_col: str, event_col: str, covariates: Sequence[str]):
    """Dispatch to the fitter named by `model` (exponential | lognormal)."""
    try:
        fit = FITTERS[model.lower()]
    except KeyError:
        raise ValueError(f"Model must be one of: {', '.join(FITTERS)}") from None
    return fit(df, time_col, event_col, covariates)


def _location_param(names: Sequence[str]) -> str:
    for p in ("mu_", "lambda_"):
        if p in names:
            return p
    raise ValueError(f"No location parameter among {list(names)}")


def time_ratios(fitter, alpha: float = 0.05) -> pd.DataFrame:
    """Time ratios ``exp(coef)`` with Wald bounds for each covariate of the location parameter."""
    summ = fitter.summary
    param = _location_param(list(summ.index.get_level_values(0).unique()))
    rows = summ.loc[param]
    rows = rows[rows.index != INTERCEPT]

    z = norm.ppf(1 - alpha / 2)
    coef = rows["coef"].astype(float)
    se = rows["se(coef)"].astype(float)
    return pd.DataFrame(
        {
            "coef": coef,
            "time_ratio": np.exp(coef),
            "lower": np.exp(coef - z * se),
            "upper": np.exp(coef + z * se),
            "p": rows["p"].astype(float),
        }
    )


def fit_record(fitter, model: str, covariates: Sequence[str]) -> Dict[str, Any]:
    """JSON-serialisable description of a fitted lifelines model."""
    params = fitter.params_
    nested = {
        p: {str(c): float(v) for c, v in params.loc[p].items()}
        for p in params.index.get_level_values(0).unique()
    }
    summary = json.loads(fitter.summary.reset_index().to_json(orient="records"))
    return {
        "model": model,
        "covariates": list(covariates),
        "params": nested,
        "summary": summary,
        "log_likelihood": float(fitter.log_likelihood_),
        "AIC": float(fitter.AIC_),
        "n": int(len(fitter.durations)),
        "n_events": int(np.asarray(fitter.event_observed).sum()),
    }


def _linear(coefs: Mapping[str, float], profile: Mapping[str, float]) -> float:
    total = float(coefs.get(INTERCEPT, 0.0))
    for name, coef in coefs.items():
        if name == INTERCEPT:
            continue
        if name not in profile:
            raise ValueError(f"Covariate profile is missing '{name}'")
        total += float(coef) * float(profile[name])
    return total


def location_scale(record: Mapping[str, Any], profile: Mapping[str, float]) -> tuple[str, float, float]:
    """Return ``(family, location, scale)`` for a covariate profile.

    exponential: location is ``log(mean time)`` and scale is 1.
    lognormal: ``log T ~ Normal(location, scale)``.
    """
    family = record["model"].split("-")[-1]
    params = record["params"]
    if family == "exponential":
        return family, _linear(params["lambda_"], profile), 1.0
    if family == "lognormal":
        return family, _linear(params["mu_"], profile), float(np.exp(_linear(params["sigma_"], profile)))
    raise ValueError(f"Unknown model family '{family}'")


def predict_survival(record: Mapping[str, Any], profile: Mapping[str, float], times) -> np.ndarray:
    """S(t | x) from a fit record."""
    family, loc, scale = location_scale(record, profile)
    t = np.asarray(times, dtype=float)
    if family == "exponential":
        return np.exp(-np.clip(t, 0.0, None) / np.exp(loc))
    with np.errstate(divide="ignore"):
        logt = np.log(np.clip(t, 0.0, None))
    if scale == 0:
        return np.where(logt < loc, 1.0, 0.0)
    return norm.sf((logt - loc) / scale)


def implied_moments(record: Mapping[str, Any], profile: Mapping[str, float]) -> tuple[float, float]:
    """Natural-scale (mean, variance) of T implied by a fit for a covariate profile."""
    family, loc, scale = location_scale(record, profile)
    if family == "exponential":
        mean = float(np.exp(loc))
        return mean, mean * mean
    return moments_from_location_scale(loc, scale)
