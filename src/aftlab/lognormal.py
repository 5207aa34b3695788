
from __future__ import annotations

import math

import numpy as np


class LognormalDomainError(ValueError):
    """Raised when a lognormal parameter lies outside its domain.

    Also raised when a result is mathematically valid but not representable as
    a finite, positive float.
    """


def _check_finite(**values: float) -> None:
    for name, value in values.items():
        if not math.isfinite(value):
            raise LognormalDomainError(f"{name} must be finite, got {value!r}")


def _check_location_scale(mu: float, sigma: float) -> tuple[float, float]:
    mu, sigma = float(mu), float(sigma)
    _check_finite(mu=mu, sigma=sigma)
    if sigma < 0:
        raise LognormalDomainError(f"sigma must be >= 0, got {sigma!r}")
    return mu, sigma


def _exp(x: float, name: str) -> float:
    try:
        value = math.exp(x)
    except OverflowError:
        raise LognormalDomainError(f"{name} is not representable (exp({x:.6g}) overflows)") from None
    if value == 0.0:
        raise LognormalDomainError(f"{name} is not representable (exp({x:.6g}) underflows)")
    return value


def _log_expm1(x: float) -> float:
    # log(exp(x) - 1) for x > 0 without overflowing exp
    if x > 1.0:
        return x + math.log1p(-math.exp(-x))
    return math.log(math.expm1(x))


def moments_from_location_scale(mu: float, sigma: float) -> tuple[float, float]:
    """Return ``(mean, variance)`` of ``exp(N(mu, sigma**2))``.

    ``mean = exp(mu + sigma^2/2)`` and
    ``variance = exp(2*mu + sigma^2) * (exp(sigma^2) - 1)``; the variance is
    assembled on the log scale so neither factor overflows on its own.
    """
    mu, sigma = _check_location_scale(mu, sigma)

    s2 = sigma * sigma
    mean = _exp(mu + s2 / 2.0, "mean")
    if s2 == 0.0:
        return mean, 0.0
    variance = _exp(2.0 * mu + s2 + _log_expm1(s2), "variance")
    return mean, variance


def location_scale_from_moments(mean: float, variance: float) -> tuple[float, float]:
    """Return ``(mu, sigma)`` of the lognormal with the given natural-scale moments.

    ``mu = ln(mean^2 / sqrt(variance + mean^2))`` and
    ``sigma = sqrt(ln(variance / mean^2 + 1))``, evaluated as
    ``ln(mean) - sigma^2 / 2`` so small variances keep full precision.
    """
    mean, variance = float(mean), float(variance)
    _check_finite(mean=mean, variance=variance)
    if mean <= 0:
        raise LognormalDomainError(f"mean must be > 0, got {mean!r}")
    if variance < 0:
        raise LognormalDomainError(f"variance must be >= 0, got {variance!r}")

    ratio = variance / mean / mean
    if math.isinf(ratio):
        # variance / mean^2 beyond float range: log1p(r) = log(r) + log1p(1/r)
        log_ratio = math.log(variance) - 2.0 * math.log(mean)
        s2 = log_ratio + math.log1p(math.exp(-log_ratio))
    else:
        s2 = math.log1p(ratio)
    mu = math.log(mean) - s2 / 2.0
    return mu, math.sqrt(s2)


def lognormal_median(mu: float, sigma: float) -> float:
    """Median of the lognormal, ``exp(mu)``; sigma only checked for domain."""
    mu, _ = _check_location_scale(mu, sigma)
    return _exp(mu, "median")


def sample_lognormal(
    mean: float,
    variance: float,
    size: int,
    random_state: int | np.random.RandomState | None = None,
) -> np.ndarray:
    """Draw ``size`` lognormal durations described by natural-scale mean/variance."""
    if size < 0:
        raise ValueError(f"size must be >= 0, got {size!r}")
    mu, sigma = location_scale_from_moments(mean, variance)
    rng = random_state if isinstance(random_state, np.random.RandomState) else np.random.RandomState(random_state)
    return rng.lognormal(mean=mu, sigma=sigma, size=int(size))
