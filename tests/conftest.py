"""Shared fixtures for probscore tests."""

import numpy as np
import pandas as pd
import pytest

from probscore.data.trajectories import TrajectorySet
from probscore.evaluation.quantiles import QuantileTable


@pytest.fixture
def rng():
    return np.random.default_rng(20240501)


@pytest.fixture
def normal_set(rng):
    """2000 standard normal runs over 6 horizons"""
    return TrajectorySet('normal', rng.normal(size=(2000, 6)))


def constant_set(model_id, value, n_runs=10, n_horizons=4, index=None):
    """Point-mass forecast: every run equals `value` at every horizon"""
    return TrajectorySet(model_id, np.full((n_runs, n_horizons), float(value)), index=index)


def manual_table(model_id, data, index=None):
    """QuantileTable from a {probability: [values per horizon]} dict"""
    frame = pd.DataFrame(data, index=index)
    return QuantileTable(model_id, frame)
