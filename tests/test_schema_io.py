import pandas as pd
import pytest

from aftlab.io import infer_covariates, load_config, load_csv, load_fit, save_fit
from aftlab.preprocess import make_preprocessor, prepare_frame
from aftlab.schema import validate_schema


def test_schema_and_covariates(trial_csv, config_path):
    df = load_csv(trial_csv)
    cfg = load_config(config_path)
    covs = infer_covariates(df, cfg["columns"]["time"], cfg["columns"]["event"], cfg["covariates"]["include"], cfg["covariates"]["exclude"])
    validate_schema(df, cfg["columns"]["time"], cfg["columns"]["event"], covs, cfg["columns"]["group"])
    assert set(covs) == set(cfg["covariates"]["include"])


def test_infer_covariates_numeric_fallback():
    df = pd.DataFrame({"t": [1.0, 2.0], "e": [1, 0], "age": [50, 60], "site": ["a", "b"], "bmi": [20.0, 30.0]})
    assert infer_covariates(df, "t", "e") == ["age", "bmi"]
    assert infer_covariates(df, "t", "e", exclude=["bmi"]) == ["age"]
    assert infer_covariates(df, "t", "e", include=["bmi", "missing"]) == ["bmi"]


@pytest.mark.parametrize(
    "frame,message",
    [
        (pd.DataFrame({"t": [1.0], "x": [0]}), "Missing required columns"),
        (pd.DataFrame({"t": [0.0, 1.0], "e": [1, 0], "x": [0, 1]}), "Non-positive"),
        (pd.DataFrame({"t": [1.0, 2.0], "e": [1, 2], "x": [0, 1]}), "0/1"),
        (pd.DataFrame({"t": [1.0, None], "e": [1, 0], "x": [0, 1]}), "Missing follow-up"),
    ],
)
def test_schema_rejections(frame, message):
    with pytest.raises(ValueError, match=message):
        validate_schema(frame, "t", "e", ["x"])


def test_schema_rejects_bad_covariate_name_and_single_group():
    df = pd.DataFrame({"t": [1.0, 2.0], "e": [1, 0], "bad name": [0, 1], "g": [1, 1]})
    with pytest.raises(ValueError, match="identifiers"):
        validate_schema(df, "t", "e", ["bad name"])
    with pytest.raises(ValueError, match="two levels"):
        validate_schema(df, "t", "e", group_col="g")


def test_prepare_frame_imputes_median():
    df = pd.DataFrame({"t": [1.0, 2.0, 3.0], "e": [1, 0, 1], "age": [40.0, None, 60.0], "other": ["a", "b", "c"]})
    out = prepare_frame(df, "t", "e", ["age"])
    assert list(out.columns) == ["t", "e", "age"]
    assert out["age"].tolist() == [40.0, 50.0, 60.0]


def test_prepare_frame_scaling():
    imputer, scaler = make_preprocessor("mean", "standard")
    assert scaler is not None
    df = pd.DataFrame({"t": [1.0, 2.0, 3.0], "e": [1, 0, 1], "age": [40.0, 50.0, 60.0]})
    out = prepare_frame(df, "t", "e", ["age"], scale="standard")
    assert out["age"].mean() == pytest.approx(0.0)


def test_fit_record_round_trip(tmp_path):
    record = {"model": "lognormal", "covariates": ["arm"], "params": {"mu_": {"Intercept": 2.0, "arm": 0.5}, "sigma_": {"Intercept": -0.3}}}
    save_fit(record, tmp_path / "fit.json")
    assert load_fit(tmp_path / "fit.json") == record


def test_fit_record_validation(tmp_path):
    with pytest.raises(ValueError, match="missing keys"):
        save_fit({"model": "lognormal"}, tmp_path / "fit.json")
    with pytest.raises(ValueError, match="Unknown model"):
        save_fit({"model": "weibull", "covariates": [], "params": {}}, tmp_path / "fit.json")
