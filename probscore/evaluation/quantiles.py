"""
Quantile tables built from trajectory sets.

Interpolation convention
------------------------
The default ``method='linear'`` places the p-quantile of n sorted values at
0-indexed position (n - 1) * p and interpolates linearly between the two
neighbouring order statistics (Hyndman & Fan type 7, numpy's default).
Every score in this package is computed from tables built this way unless a
caller explicitly asks for ``method='inverted_cdf'`` (type 1, the step
function empirical quantile).

CRPS grid
---------
``probability_grid()`` returns 0.01, 0.02, ..., 0.99 (99 points). CRPS values
depend on the grid, so the same grid must be used for every model compared.
"""

import logging
import numpy as np
import pandas as pd
from typing import Iterable, Optional, Sequence

from ..data.trajectories import TrajectorySet
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

INTERPOLATION_METHODS = ('linear', 'inverted_cdf')

DECILES = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)

# Tolerance when looking a probability up in a table
PROBABILITY_ATOL = 1e-9


def probability_grid(start: float = 0.01, stop: float = 0.99, step: float = 0.01) -> np.ndarray:
    """
    Evenly spaced probabilities in (0, 1), endpoints inclusive.

    Values are rounded to 10 decimals so that 0.07 is exactly the float 0.07
    rather than an accumulation of steps.
    """
    if step <= 0:
        raise InvalidInputError(f"Grid step must be positive, got {step}")
    if not (0 < start <= stop < 1):
        raise InvalidInputError(f"Grid must satisfy 0 < start <= stop < 1, got start={start}, stop={stop}")

    n_points = int(np.floor((stop - start) / step + 1e-9)) + 1
    grid = np.round(start + step * np.arange(n_points), 10)
    return grid


def validate_probabilities(probabilities: Iterable[float]) -> np.ndarray:
    """Return probabilities as a sorted float array, rejecting anything outside (0, 1)"""
    probs = np.asarray(list(probabilities), dtype=float)
    if probs.ndim != 1 or probs.size == 0:
        raise InvalidInputError("At least one probability is required")
    if not np.all(np.isfinite(probs)):
        raise InvalidInputError(f"Probabilities must be finite, got {probs.tolist()}")
    if np.any(probs <= 0) or np.any(probs >= 1):
        bad = probs[(probs <= 0) | (probs >= 1)]
        raise InvalidInputError(f"Probabilities must lie strictly between 0 and 1, got {bad.tolist()}")

    probs = np.sort(probs)
    if np.any(np.diff(probs) <= PROBABILITY_ATOL):
        raise InvalidInputError(f"Duplicate probabilities in {probs.tolist()}")
    return probs


class QuantileTable:
    """
    Quantile estimates per (horizon, probability) for one model.

    The table is stored as a DataFrame with horizon labels as index and
    probabilities as columns. Accessors return copies so callers never hold
    a live reference to the stored data.
    """

    def __init__(self, model_id: str, frame: pd.DataFrame, method: str = 'linear'):
        frame = frame.copy()
        frame = frame.reindex(columns=sorted(frame.columns))
        frame.columns = pd.Index(np.asarray(frame.columns, dtype=float), name='probability')
        self._frame = frame
        self._model_id = model_id
        self._method = method

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def method(self) -> str:
        return self._method

    @property
    def probabilities(self) -> np.ndarray:
        return self._frame.columns.to_numpy(dtype=float)

    @property
    def horizons(self) -> pd.Index:
        return self._frame.index.copy()

    def _column_position(self, probability: float) -> int:
        matches = np.flatnonzero(np.isclose(self.probabilities, probability, rtol=0.0, atol=PROBABILITY_ATOL))
        if matches.size == 0:
            raise InvalidInputError(
                f"Probability {probability} not in quantile table for '{self._model_id}'"
            )
        return int(matches[0])

    def has_probability(self, probability: float) -> bool:
        return bool(np.any(np.isclose(self.probabilities, probability, rtol=0.0, atol=PROBABILITY_ATOL)))

    def column(self, probability: float) -> pd.Series:
        """Quantile estimates at one probability across all horizons"""
        series = self._frame.iloc[:, self._column_position(probability)].copy()
        series.name = float(probability)
        return series

    def value(self, horizon, probability: float) -> float:
        if horizon not in self._frame.index:
            raise InvalidInputError(f"Horizon {horizon!r} not in quantile table for '{self._model_id}'")
        return float(self._frame.loc[horizon].iloc[self._column_position(probability)])

    def to_frame(self) -> pd.DataFrame:
        return self._frame.copy()

    def __repr__(self):
        return (f"QuantileTable(model_id={self._model_id!r}, n_horizons={len(self._frame.index)}, "
                f"n_probabilities={len(self._frame.columns)}, method={self._method!r})")


def build_quantile_table(trajectories: TrajectorySet, probabilities: Sequence[float],
                         method: str = 'linear', model_id: Optional[str] = None) -> QuantileTable:
    """
    Empirical quantiles across runs at every horizon.

    Parameters
    ----------
    trajectories : TrajectorySet
        Simulated runs for one model
    probabilities : sequence of float
        Probability levels in (0, 1)
    method : str
        'linear' (default, position (n-1)*p) or 'inverted_cdf'
    model_id : str, optional
        Override the table's model id (defaults to the trajectory set's)

    Returns
    -------
    QuantileTable
    """
    if trajectories is None or not isinstance(trajectories, TrajectorySet):
        raise InvalidInputError("A TrajectorySet is required to build a quantile table")
    if trajectories.n_runs == 0:
        raise InvalidInputError(f"Trajectory set '{trajectories.model_id}' is empty")
    if method not in INTERPOLATION_METHODS:
        raise InvalidInputError(f"Unknown interpolation method '{method}', expected one of {INTERPOLATION_METHODS}")

    probs = validate_probabilities(probabilities)

    # shape: (n_probabilities, n_horizons)
    quantiles = np.quantile(trajectories.values, probs, axis=0, method=method)

    frame = pd.DataFrame(quantiles.T, index=trajectories.index.copy(), columns=probs)
    logger.debug(f"Built {len(probs)}-level quantile table for '{trajectories.model_id}' "
                 f"from {trajectories.n_runs} runs")
    return QuantileTable(model_id or trajectories.model_id, frame, method=method)
