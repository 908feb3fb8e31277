"""
Generative model interface and reference simulators.

Model fitting lives outside this package. Anything that can produce simulated
sample paths satisfies the TrajectorySimulator protocol; the two simulators
here are lightweight stand-ins used for demonstrations and tests.
"""

import logging
import numpy as np
import pandas as pd
from scipy import stats
from typing import List, Optional, Protocol, Sequence, Union, runtime_checkable

from .trajectories import TrajectorySet
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


@runtime_checkable
class TrajectorySimulator(Protocol):
    """Anything able to draw future sample paths from a fitted model"""

    model_id: str

    def simulate(self, horizon: int, n_runs: int, seed: Optional[int] = None) -> TrajectorySet:
        ...


def simulate(model: TrajectorySimulator, horizon: int, n_runs: int, seed: Optional[int] = None) -> TrajectorySet:
    """
    Draw a trajectory set from a fitted generative model.

    Parameters
    ----------
    model : TrajectorySimulator
        Fitted model exposing ``simulate(horizon, n_runs, seed)``
    horizon : int
        Number of future steps per run
    n_runs : int
        Number of sample paths
    seed : int, optional
        Seed forwarded to the model for reproducible draws

    Returns
    -------
    TrajectorySet
    """
    if not isinstance(model, TrajectorySimulator):
        raise InvalidInputError(f"{type(model).__name__} does not implement simulate(horizon, n_runs, seed)")
    if int(horizon) < 1:
        raise InvalidInputError(f"horizon must be positive, got {horizon}")
    if int(n_runs) < 1:
        raise InvalidInputError(f"n_runs must be positive, got {n_runs}")

    logger.debug(f"Simulating {n_runs} runs x {horizon} steps from '{model.model_id}'")
    trajectories = model.simulate(int(horizon), int(n_runs), seed=seed)

    if trajectories.n_horizons != int(horizon) or trajectories.n_runs != int(n_runs):
        raise InvalidInputError(
            f"Model '{model.model_id}' returned shape ({trajectories.n_runs}, {trajectories.n_horizons}), "
            f"expected ({n_runs}, {horizon})"
        )
    return trajectories


class DistributionSimulator:
    """
    Independent per-horizon draws from frozen scipy.stats distributions.

    Parameters
    ----------
    model_id : str
        Model identifier attached to simulated sets
    distributions : frozen distribution or list of them
        Either one distribution used at every horizon, or one per horizon
    index : array-like, optional
        Horizon labels for the simulated sets
    """

    def __init__(self, model_id: str, distributions, index=None):
        self.model_id = model_id
        if isinstance(distributions, (list, tuple)):
            if not distributions:
                raise InvalidInputError("At least one distribution is required")
            self.distributions = list(distributions)
        else:
            self.distributions = distributions
        self.index = None if index is None else pd.Index(index)

    @classmethod
    def from_params(cls, model_id: str, distribution: str, params: dict, index=None) -> 'DistributionSimulator':
        """
        Build per-horizon distributions from parameter lists.

        Supported types and keys:
        - 'normal': loc, scale
        - 'jsu': loc, scale, tailweight, skewness
        - 't': df, loc, scale
        - 'uniform': loc, scale
        """
        distribution = distribution.lower()
        required = {
            'normal': ['loc', 'scale'],
            'jsu': ['loc', 'scale', 'tailweight', 'skewness'],
            't': ['df', 'loc', 'scale'],
            'uniform': ['loc', 'scale'],
        }
        if distribution not in required:
            raise InvalidInputError(f"Unsupported distribution type: {distribution}")

        missing = [k for k in required[distribution] if k not in params]
        if missing:
            raise InvalidInputError(f"Missing required parameters for {distribution}: {missing}")

        columns = {k: np.atleast_1d(np.asarray(params[k], dtype=float)) for k in required[distribution]}
        n_horizons = max(len(v) for v in columns.values())
        columns = {k: np.broadcast_to(v, (n_horizons,)) for k, v in columns.items()}

        dists = []
        for h in range(n_horizons):
            if distribution == 'normal':
                dists.append(stats.norm(loc=columns['loc'][h], scale=columns['scale'][h]))
            elif distribution == 'jsu':
                # x = loc + scale * sinh((z - skewness) / tailweight)
                dists.append(stats.johnsonsu(columns['skewness'][h], columns['tailweight'][h],
                                             loc=columns['loc'][h], scale=columns['scale'][h]))
            elif distribution == 't':
                dists.append(stats.t(columns['df'][h], loc=columns['loc'][h], scale=columns['scale'][h]))
            else:
                dists.append(stats.uniform(loc=columns['loc'][h], scale=columns['scale'][h]))

        return cls(model_id, dists, index=index)

    def simulate(self, horizon: int, n_runs: int, seed: Optional[int] = None) -> TrajectorySet:
        rng = np.random.default_rng(seed)

        if isinstance(self.distributions, list):
            if len(self.distributions) != horizon:
                raise InvalidInputError(
                    f"Simulator '{self.model_id}' has {len(self.distributions)} horizon distributions, "
                    f"requested {horizon}"
                )
            dists = self.distributions
        else:
            dists = [self.distributions] * horizon

        samples = np.zeros((n_runs, horizon))
        for h, dist in enumerate(dists):
            samples[:, h] = dist.rvs(size=n_runs, random_state=rng)

        index = self.index[:horizon] if self.index is not None else None
        return TrajectorySet(self.model_id, samples, index=index)


class RandomWalkSimulator:
    """
    Naive (random walk) sample paths continuing an observed history.

    Each path starts at the last observation and accumulates innovations.
    Innovations are bootstrapped from the history's one-step residuals, or
    drawn from a normal distribution with the residuals' standard deviation.
    With ``drift=True`` the mean first difference is added at every step.

    Parameters
    ----------
    model_id : str
        Model identifier attached to simulated sets
    history : pd.Series
        Observed series, oldest first. Needs at least two values
    drift : bool
        Add the average change per step
    bootstrap : bool
        Resample residuals instead of drawing Gaussian innovations
    """

    def __init__(self, model_id: str, history: pd.Series, drift: bool = False, bootstrap: bool = True):
        history = pd.Series(history).dropna()
        if len(history) < 2:
            raise InvalidInputError("Random walk needs a history of at least two observations")

        self.model_id = model_id
        self.history = history
        self.drift = drift
        self.bootstrap = bootstrap

        diffs = np.diff(history.to_numpy(dtype=float))
        self.drift_term = float(np.mean(diffs)) if drift else 0.0
        self.residuals = diffs - self.drift_term
        self.sigma = float(np.std(self.residuals, ddof=1)) if len(self.residuals) > 1 else 0.0

    def _future_index(self, horizon: int) -> pd.Index:
        index = self.history.index
        if isinstance(index, pd.PeriodIndex):
            return pd.period_range(start=index[-1] + 1, periods=horizon, freq=index.freq)
        if isinstance(index, pd.DatetimeIndex):
            freq = index.freq or (pd.infer_freq(index) if len(index) >= 3 else None)
            if freq is not None:
                return pd.date_range(start=index[-1], periods=horizon + 1, freq=freq)[1:]
        return pd.RangeIndex(1, horizon + 1, name='horizon')

    def simulate(self, horizon: int, n_runs: int, seed: Optional[int] = None) -> TrajectorySet:
        rng = np.random.default_rng(seed)

        if self.bootstrap:
            innovations = rng.choice(self.residuals, size=(n_runs, horizon), replace=True)
        else:
            innovations = rng.normal(0.0, self.sigma, size=(n_runs, horizon))

        last = float(self.history.iloc[-1])
        paths = last + np.cumsum(innovations + self.drift_term, axis=1)

        return TrajectorySet(self.model_id, paths, index=self._future_index(horizon),
                             origin=self.history.index[-1])


def simulate_all(models: Sequence[TrajectorySimulator], horizon: int, n_runs: int,
                 seed: Optional[int] = None) -> List[TrajectorySet]:
    """Simulate every model with per-model seeds derived from one base seed"""
    seeds: List[Union[int, None]]
    if seed is None:
        seeds = [None] * len(models)
    else:
        seeds = [seed + i for i in range(len(models))]
    return [simulate(model, horizon, n_runs, seed=s) for model, s in zip(models, seeds)]
