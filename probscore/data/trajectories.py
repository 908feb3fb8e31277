"""
Trajectory sets: simulated future sample paths for one model and one origin.

A trajectory set is a (n_runs, n_horizons) matrix of simulated values plus the
horizon labels shared by every run. Instances are immutable: the values are
copied on construction and the stored array is flagged read-only.
"""

import numpy as np
import pandas as pd
from typing import Hashable, Optional

from ..errors import InvalidInputError


class TrajectorySet:
    """
    Immutable collection of simulated runs for one model.

    Parameters
    ----------
    model_id : str
        Identifier of the model that produced the runs
    values : array-like, shape (n_runs, n_horizons)
        Simulated values, one row per run
    index : array-like, optional
        Horizon labels (e.g. a PeriodIndex of future months). Defaults to
        horizon steps 1..n_horizons
    origin : optional
        Label of the forecast origin, carried through for reporting

    Example
    -------
    >>> ts = TrajectorySet('ets', np.random.normal(size=(1000, 12)))
    >>> ts.n_runs, ts.n_horizons
    (1000, 12)
    """

    def __init__(self, model_id: str, values, index=None, origin: Optional[Hashable] = None):
        if not model_id:
            raise InvalidInputError("model_id must be a non-empty string")

        try:
            array = np.array(values, dtype=float, copy=True)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Trajectory values for '{model_id}' are not numeric: {e}") from e

        if array.ndim != 2:
            raise InvalidInputError(
                f"Trajectory values for '{model_id}' must be 2-D (runs x horizons), got shape {array.shape}"
            )
        if array.shape[0] == 0 or array.shape[1] == 0:
            raise InvalidInputError(f"Trajectory set for '{model_id}' is empty (shape {array.shape})")
        if not np.all(np.isfinite(array)):
            raise InvalidInputError(f"Trajectory set for '{model_id}' contains non-finite values")

        if index is None:
            index = pd.RangeIndex(1, array.shape[1] + 1, name='horizon')
        else:
            index = pd.Index(index).copy()
        if len(index) != array.shape[1]:
            raise InvalidInputError(
                f"Index length ({len(index)}) doesn't match horizon count ({array.shape[1]}) for '{model_id}'"
            )
        if not index.is_unique:
            raise InvalidInputError(f"Horizon labels for '{model_id}' must be unique")

        array.setflags(write=False)
        self._model_id = str(model_id)
        self._values = array
        self._index = index
        self._origin = origin

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def values(self) -> np.ndarray:
        """Read-only (n_runs, n_horizons) array"""
        return self._values

    @property
    def index(self) -> pd.Index:
        return self._index

    @property
    def origin(self):
        return self._origin

    @property
    def n_runs(self) -> int:
        return self._values.shape[0]

    @property
    def n_horizons(self) -> int:
        return self._values.shape[1]

    def horizon(self, label) -> np.ndarray:
        """Across-run values at one horizon, looked up by label"""
        try:
            position = self._index.get_loc(label)
        except KeyError:
            raise InvalidInputError(f"Horizon {label!r} not in trajectory set '{self._model_id}'") from None
        return self._values[:, position]

    def same_horizons(self, other: 'TrajectorySet') -> bool:
        """True when both sets share horizon count and labels"""
        return self.n_horizons == other.n_horizons and self._index.equals(other.index)

    def with_model_id(self, model_id: str) -> 'TrajectorySet':
        return TrajectorySet(model_id, self._values, index=self._index, origin=self._origin)

    def to_frame(self) -> pd.DataFrame:
        """Fresh DataFrame copy: rows are runs, columns are horizon labels"""
        frame = pd.DataFrame(np.array(self._values), columns=self._index.copy())
        frame.index.name = 'run'
        return frame

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, model_id: str, origin=None) -> 'TrajectorySet':
        return cls(model_id, frame.to_numpy(dtype=float), index=frame.columns, origin=origin)

    def __len__(self):
        return self.n_runs

    def __repr__(self):
        return (f"TrajectorySet(model_id={self._model_id!r}, n_runs={self.n_runs}, "
                f"n_horizons={self.n_horizons})")
