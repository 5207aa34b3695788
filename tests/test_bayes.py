import math

import numpy as np
import pandas as pd
import pytest

from aftlab.models.bayes import design_matrix, fit_bayes_aft


def test_design_matrix():
    df = pd.DataFrame({"arm": [0, 1, 1], "age": [50.0, 60.0, 70.0]})
    X, terms = design_matrix(df, ["arm", "age"])
    assert terms == ["Intercept", "arm", "age"]
    np.testing.assert_allclose(X[:, 0], 1.0)
    np.testing.assert_allclose(X[:, 2], [50.0, 60.0, 70.0])


def test_unknown_family_rejected(trial):
    with pytest.raises(ValueError, match="family"):
        fit_bayes_aft(trial, "time", "event", ["arm"], family="weibull")


@pytest.mark.slow
def test_bayes_lognormal_recovers_time_ratio(trial):
    pytest.importorskip("pymc")
    pytest.importorskip("arviz")
    res = fit_bayes_aft(trial, "time", "event", ["arm"], draws=300, tune=300, chains=1, random_seed=1)
    record = res["record"]
    assert record["model"] == "bayes-lognormal"
    assert set(record["params"]) == {"mu_", "sigma_"}
    assert math.exp(record["params"]["mu_"]["arm"]) == pytest.approx(2.0, rel=0.2)
    assert "beta[arm]" in res["summary"].index
