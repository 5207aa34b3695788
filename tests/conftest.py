from pathlib import Path

import matplotlib
import pytest

matplotlib.use("Agg")

from aftlab.simulate import simulate_trial  # noqa: E402

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def config_path():
    return ROOT / "configs" / "default.yaml"


@pytest.fixture
def trial():
    return simulate_trial(400, control_mean=10.0, control_variance=80.0, time_ratio=2.0, censor_time=30.0, seed=7)


@pytest.fixture
def trial_csv(tmp_path, trial):
    path = tmp_path / "trial.csv"
    trial.to_csv(path, index=False)
    return path
