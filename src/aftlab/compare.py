
from __future__ import annotations

from typing import Any, Dict

import pandas as pd
from lifelines.statistics import logrank_test, multivariate_logrank_test
from scipy.stats import mannwhitneyu


def _groups(df: pd.DataFrame, group_col: str) -> list:
    levels = sorted(df[group_col].dropna().unique().tolist())
    if len(levels) < 2:
        raise ValueError(f"Group column '{group_col}' needs at least two levels.")
    return levels


def logrank(df: pd.DataFrame, time_col: str, event_col: str, group_col: str) -> Dict[str, Any]:
    """Log-rank test of equal survival across the levels of `group_col`."""
    levels = _groups(df, group_col)
    if len(levels) == 2:
        a = df[df[group_col] == levels[0]]
        b = df[df[group_col] == levels[1]]
        res = logrank_test(
            a[time_col],
            b[time_col],
            event_observed_A=a[event_col],
            event_observed_B=b[event_col],
        )
    else:
        res = multivariate_logrank_test(df[time_col], df[group_col], df[event_col])
    return {"test": "logrank", "statistic": float(res.test_statistic), "p_value": float(res.p_value), "groups": levels}


def rank_sum(df: pd.DataFrame, time_col: str, group_col: str) -> Dict[str, Any]:
    """Wilcoxon rank-sum (Mann-Whitney U) on observed durations; censoring is ignored."""
    levels = _groups(df, group_col)
    if len(levels) != 2:
        raise ValueError("Rank-sum test compares exactly two groups.")
    a = df.loc[df[group_col] == levels[0], time_col].to_numpy(dtype=float)
    b = df.loc[df[group_col] == levels[1], time_col].to_numpy(dtype=float)
    res = mannwhitneyu(a, b, alternative="two-sided")
    return {"test": "ranksum", "statistic": float(res.statistic), "p_value": float(res.pvalue), "groups": levels}
