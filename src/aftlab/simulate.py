
from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from .compare import logrank, rank_sum
from .lognormal import sample_lognormal

logger = logging.getLogger(__name__)

TESTS = ("logrank", "ranksum")


def simulate_trial(
    n_per_arm: int,
    control_mean: float,
    control_variance: float,
    time_ratio: float = 1.0,
    censor_time: Optional[float] = None,
    seed: int | np.random.RandomState | None = None,
) -> pd.DataFrame:
    """Simulate a two-arm trial with lognormal durations.

    Arm 0 has the given natural-scale mean and variance. Arm 1 durations are
    stretched by `time_ratio`, i.e. mean times `time_ratio` and variance times
    `time_ratio**2` (its `mu` is shifted by `log(time_ratio)`, `sigma` unchanged).
    Durations beyond `censor_time` are administratively censored.
    """
    if n_per_arm < 1:
        raise ValueError(f"n_per_arm must be >= 1, got {n_per_arm!r}")
    if time_ratio <= 0:
        raise ValueError(f"time_ratio must be > 0, got {time_ratio!r}")
    if censor_time is not None and censor_time <= 0:
        raise ValueError(f"censor_time must be > 0, got {censor_time!r}")

    rng = seed if isinstance(seed, np.random.RandomState) else np.random.RandomState(seed)

    n = int(n_per_arm)
    arm = np.repeat([0, 1], n)
    latent = np.concatenate(
        [
            sample_lognormal(control_mean, control_variance, n, rng),
            sample_lognormal(control_mean * time_ratio, control_variance * time_ratio**2, n, rng),
        ]
    )

    if censor_time is None:
        time, event = latent, np.ones_like(arm)
    else:
        time = np.minimum(latent, censor_time)
        event = (latent <= censor_time).astype(int)

    return pd.DataFrame({"time": time, "event": event, "arm": arm})


def power_by_simulation(
    n_per_arm: int,
    control_mean: float,
    control_variance: float,
    time_ratio: float,
    censor_time: Optional[float] = None,
    n_sims: int = 200,
    alpha: float = 0.05,
    test: str = "logrank",
    seed: Optional[int] = 42,
) -> float:
    """Share of simulated trials in which `test` rejects at level `alpha`."""
    if test not in TESTS:
        raise ValueError(f"test must be one of: {', '.join(TESTS)}")
    if n_sims < 1:
        raise ValueError(f"n_sims must be >= 1, got {n_sims!r}")
    if not 0 < alpha < 1:
        raise ValueError(f"alpha must be in (0, 1), got {alpha!r}")

    rng = np.random.RandomState(seed)
    hits = 0
    for _ in range(int(n_sims)):
        df = simulate_trial(n_per_arm, control_mean, control_variance, time_ratio, censor_time, rng)
        if test == "logrank":
            res = logrank(df, "time", "event", "arm")
        else:
            res = rank_sum(df, "time", "arm")
        hits += res["p_value"] < alpha

    power = hits / n_sims
    logger.debug("power n=%d ratio=%g test=%s: %.3f", n_per_arm, time_ratio, test, power)
    return power


def sample_size_curve(
    n_grid: Iterable[int],
    control_mean: float,
    control_variance: float,
    time_ratio: float,
    censor_time: Optional[float] = None,
    n_sims: int = 200,
    alpha: float = 0.05,
    test: str = "logrank",
    seed: Optional[int] = 42,
) -> pd.DataFrame:
    """Simulated power for each per-arm sample size in `n_grid`."""
    rows = [
        {
            "n_per_arm": int(n),
            "power": power_by_simulation(
                int(n), control_mean, control_variance, time_ratio, censor_time, n_sims, alpha, test, seed
            ),
        }
        for n in n_grid
    ]
    return pd.DataFrame(rows, columns=["n_per_arm", "power"])
