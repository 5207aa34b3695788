import pytest

from aftlab.models.aft import fit_lognormal_aft, fit_record
from aftlab.plots import km_with_fit, lognormal_density


def test_km_without_fit(tmp_path, trial):
    path = km_with_fit(trial, "time", "event", "arm", tmp_path)
    assert path.exists()


def test_km_with_fit(tmp_path, trial):
    record = fit_record(fit_lognormal_aft(trial, "time", "event", ["arm"]), "lognormal", ["arm"])
    path = km_with_fit(trial, "time", "event", "arm", tmp_path / "figs", record=record)
    assert path.name == "km_with_fit.png"
    assert path.exists()


def test_lognormal_density(tmp_path):
    assert lognormal_density(6.0, 1.2, tmp_path).exists()
    with pytest.raises(ValueError, match="zero-variance"):
        lognormal_density(6.0, 0.0, tmp_path)


def test_group_profiles_use_fitted_scale(trial):
    from aftlab.plots import group_profiles
    from aftlab.preprocess import prepare_frame

    scaled = prepare_frame(trial, "time", "event", ["arm"], scale="standard")
    profiles = group_profiles(scaled, ["arm"], trial["arm"])
    assert set(profiles) == {0, 1}
    assert profiles[0]["arm"] == pytest.approx(-1.0)
    assert profiles[1]["arm"] == pytest.approx(1.0)


def test_km_with_fit_on_scaled_frame(tmp_path, trial):
    from aftlab.preprocess import prepare_frame

    scaled = prepare_frame(trial, "time", "event", ["arm"], scale="standard")
    record = fit_record(fit_lognormal_aft(scaled, "time", "event", ["arm"]), "lognormal", ["arm"])
    path = km_with_fit(scaled, "time", "event", "arm", tmp_path, record=record, groups=trial["arm"])
    assert path.exists()


def test_km_with_fit_rejects_missing_covariates(tmp_path, trial):
    record = {"model": "lognormal", "covariates": ["age"], "params": {"mu_": {"Intercept": 1.0, "age": 0.1}, "sigma_": {"Intercept": 0.0}}}
    with pytest.raises(ValueError, match="not found"):
        km_with_fit(trial, "time", "event", "arm", tmp_path, record=record)
