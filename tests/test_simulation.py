"""
Tests for probscore/data/simulation.py and probscore/data/trajectories.py.
"""

import numpy as np
import pandas as pd
import pytest
from scipy import stats

from probscore.data.simulation import (
    DistributionSimulator,
    RandomWalkSimulator,
    TrajectorySimulator,
    simulate,
    simulate_all,
)
from probscore.data.trajectories import TrajectorySet
from probscore.errors import InvalidInputError


class TestTrajectorySet:
    def test_copies_input(self):
        source = np.zeros((3, 2))
        ts = TrajectorySet('m', source)
        source[0, 0] = 5.0

        assert ts.values[0, 0] == 0.0
        assert not ts.values.flags.writeable

    def test_default_index(self):
        ts = TrajectorySet('m', np.zeros((3, 4)))
        assert list(ts.index) == [1, 2, 3, 4]

    def test_horizon_lookup(self):
        ts = TrajectorySet('m', [[1.0, 2.0], [3.0, 4.0]], index=['a', 'b'])
        np.testing.assert_array_equal(ts.horizon('b'), [2.0, 4.0])
        with pytest.raises(InvalidInputError):
            ts.horizon('c')

    @pytest.mark.parametrize("values", [np.zeros(3), np.zeros((2, 0)), [[1.0, np.nan]], [[np.inf]], [['a']]])
    def test_rejects_bad_values(self, values):
        with pytest.raises(InvalidInputError):
            TrajectorySet('m', values)

    def test_rejects_index_length(self):
        with pytest.raises(InvalidInputError):
            TrajectorySet('m', np.zeros((2, 3)), index=[1, 2])

    def test_rejects_duplicate_labels(self):
        with pytest.raises(InvalidInputError):
            TrajectorySet('m', np.zeros((2, 2)), index=[1, 1])

    def test_rejects_empty_model_id(self):
        with pytest.raises(InvalidInputError):
            TrajectorySet('', np.zeros((2, 2)))

    def test_frame_round_trip(self):
        ts = TrajectorySet('m', [[1.0, 2.0], [3.0, 4.0]], index=['x', 'y'])
        frame = ts.to_frame()
        frame.iloc[0, 0] = 100.0

        rebuilt = TrajectorySet.from_frame(ts.to_frame(), 'm2')
        assert rebuilt.model_id == 'm2'
        assert rebuilt.index.equals(ts.index)
        assert ts.values[0, 0] == 1.0

    def test_with_model_id(self):
        ts = TrajectorySet('m', np.ones((2, 2)), origin='2019-12')
        renamed = ts.with_model_id('other')
        assert renamed.model_id == 'other'
        assert renamed.origin == '2019-12'
        assert ts.model_id == 'm'


class TestDistributionSimulator:
    def test_protocol(self):
        sim = DistributionSimulator('norm', stats.norm())
        assert isinstance(sim, TrajectorySimulator)

    def test_shape_and_seed(self):
        sim = DistributionSimulator('norm', stats.norm(loc=10, scale=2))
        first = simulate(sim, horizon=5, n_runs=200, seed=7)
        second = simulate(sim, horizon=5, n_runs=200, seed=7)

        assert first.model_id == 'norm'
        assert (first.n_runs, first.n_horizons) == (200, 5)
        np.testing.assert_array_equal(first.values, second.values)

    def test_from_params_normal(self):
        sim = DistributionSimulator.from_params('n', 'normal', {'loc': [0.0, 100.0], 'scale': [1.0, 1.0]})
        ts = simulate(sim, horizon=2, n_runs=5000, seed=1)
        means = ts.values.mean(axis=0)

        assert abs(means[0]) < 0.1
        assert abs(means[1] - 100.0) < 0.1

    def test_from_params_jsu_median_at_loc(self):
        sim = DistributionSimulator.from_params(
            'jsu', 'jsu', {'loc': 5.0, 'scale': 2.0, 'tailweight': 1.5, 'skewness': 0.0})
        ts = simulate(sim, horizon=1, n_runs=20000, seed=3)
        assert abs(np.median(ts.values) - 5.0) < 0.1

    def test_from_params_broadcasts_scalars(self):
        sim = DistributionSimulator.from_params('t', 't', {'df': 5, 'loc': [0.0, 1.0, 2.0], 'scale': 1.0})
        assert len(sim.distributions) == 3

    def test_from_params_unknown_type(self):
        with pytest.raises(InvalidInputError):
            DistributionSimulator.from_params('x', 'cauchy', {'loc': 0.0})

    def test_from_params_missing_keys(self):
        with pytest.raises(InvalidInputError):
            DistributionSimulator.from_params('x', 'jsu', {'loc': 0.0, 'scale': 1.0})

    def test_horizon_mismatch(self):
        sim = DistributionSimulator('n', [stats.norm(), stats.norm()])
        with pytest.raises(InvalidInputError):
            simulate(sim, horizon=3, n_runs=10)

    def test_index_labels(self):
        index = pd.period_range('2020-01', periods=3, freq='M')
        sim = DistributionSimulator('n', stats.norm(), index=index)
        ts = simulate(sim, horizon=3, n_runs=10, seed=0)
        assert ts.index.equals(index)


class TestRandomWalkSimulator:
    @pytest.fixture
    def linear_history(self):
        return pd.Series(np.arange(10.0), index=pd.period_range('2019-01', periods=10, freq='M'))

    def test_continues_period_index(self, linear_history):
        ts = simulate(RandomWalkSimulator('naive', linear_history), horizon=3, n_runs=20, seed=0)

        expected = pd.period_range('2019-11', periods=3, freq='M')
        assert ts.index.equals(expected)
        assert ts.origin == pd.Period('2019-10', freq='M')

    def test_constant_steps_are_deterministic(self, linear_history):
        for drift in (False, True):
            ts = simulate(RandomWalkSimulator('rw', linear_history, drift=drift), horizon=4, n_runs=10, seed=0)
            np.testing.assert_allclose(ts.values, np.tile([10.0, 11.0, 12.0, 13.0], (10, 1)))

    def test_gaussian_spread_grows_with_horizon(self, rng):
        history = pd.Series(np.cumsum(rng.normal(size=200)))
        ts = simulate(RandomWalkSimulator('rw', history, bootstrap=False), horizon=12, n_runs=4000, seed=5)

        spread = ts.values.std(axis=0)
        assert spread[-1] > spread[0]
        assert list(ts.index) == list(range(1, 13))

    def test_datetime_index(self):
        index = pd.date_range('2020-01-01', periods=5, freq='D')
        history = pd.Series([1.0, 2.0, 1.5, 2.5, 3.0], index=index)
        ts = simulate(RandomWalkSimulator('rw', history), horizon=2, n_runs=5, seed=0)

        assert ts.index[0] == pd.Timestamp('2020-01-06')

    def test_short_history(self):
        with pytest.raises(InvalidInputError):
            RandomWalkSimulator('rw', pd.Series([1.0]))


class TestSimulate:
    @pytest.mark.parametrize("horizon,n_runs", [(0, 10), (5, 0), (-1, 10)])
    def test_invalid_arguments(self, horizon, n_runs):
        with pytest.raises(InvalidInputError):
            simulate(DistributionSimulator('n', stats.norm()), horizon=horizon, n_runs=n_runs)

    def test_not_a_model(self):
        with pytest.raises(InvalidInputError):
            simulate(object(), horizon=3, n_runs=10)

    def test_simulate_all_uses_distinct_seeds(self):
        models = [DistributionSimulator('a', stats.norm()), DistributionSimulator('b', stats.norm())]
        a, b = simulate_all(models, horizon=2, n_runs=50, seed=11)

        assert a.model_id == 'a' and b.model_id == 'b'
        assert not np.array_equal(a.values, b.values)
