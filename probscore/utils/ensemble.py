"""
Ensemble methods for combining forecasts from several models.

Two combination schemes are provided:

combine (vertical / pooled ensemble)
    Pools simulated runs from every source into one trajectory set. Weights
    are honoured by simulation-count proportioning: each source contributes a
    number of runs proportional to its weight, subsampling or cycling its own
    runs as needed. This approximates a weighted mixture distribution; it is
    not a closed-form merge.

average_quantile_tables (horizontal ensemble)
    Averages quantile estimates level by level across models.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional, Sequence

from ..data.trajectories import TrajectorySet
from ..evaluation.quantiles import QuantileTable
from ..errors import InvalidInputError, MismatchedHorizonError

logger = logging.getLogger(__name__)

ENSEMBLE_MODEL_ID = 'ensemble'


def _normalise_weights(weights: Optional[Sequence[float]], n_sources: int) -> np.ndarray:
    if weights is None:
        return np.full(n_sources, 1.0 / n_sources)

    w = np.asarray(weights, dtype=float)
    if w.shape != (n_sources,):
        raise InvalidInputError(f"Expected {n_sources} weights, got {len(w)}")
    if not np.all(np.isfinite(w)) or np.any(w < 0):
        raise InvalidInputError(f"Weights must be finite and non-negative, got {w.tolist()}")
    if w.sum() <= 0:
        raise InvalidInputError("At least one weight must be positive")
    return w / w.sum()


def allocate_runs(weights: Sequence[float], n_runs: int) -> List[int]:
    """
    Split n_runs across sources in proportion to their weights.

    Uses largest-remainder apportionment, so the counts always sum to
    n_runs. Ties in the remainders go to the earlier source.
    """
    if n_runs < 1:
        raise InvalidInputError(f"n_runs must be positive, got {n_runs}")

    w = _normalise_weights(weights, len(weights))
    exact = w * n_runs
    counts = np.floor(exact).astype(int)
    shortfall = n_runs - counts.sum()
    if shortfall > 0:
        remainders = exact - counts
        # stable sort keeps earlier sources first among equal remainders
        order = np.argsort(-remainders, kind='stable')
        counts[order[:shortfall]] += 1
    return counts.tolist()


def _take_runs(values: np.ndarray, count: int) -> np.ndarray:
    """First `count` runs, cycling through the source when it has fewer"""
    positions = np.arange(count) % values.shape[0]
    return values[positions]


def check_compatible(trajectory_sets: Sequence[TrajectorySet]) -> None:
    """Raise MismatchedHorizonError unless every set shares the first set's horizons"""
    reference = trajectory_sets[0]
    for ts in trajectory_sets[1:]:
        if not reference.same_horizons(ts):
            raise MismatchedHorizonError(
                f"Cannot combine '{ts.model_id}' ({ts.n_horizons} horizons) with "
                f"'{reference.model_id}' ({reference.n_horizons} horizons): horizon labels differ"
            )


def combine(trajectory_sets: Sequence[TrajectorySet], weights: Optional[Sequence[float]] = None,
            n_runs: Optional[int] = None, model_id: str = ENSEMBLE_MODEL_ID) -> TrajectorySet:
    """
    Pool simulated runs from several models into one trajectory set.

    Pooling equal-weight copies of one set duplicates every run. Quantiles
    built with ``method='inverted_cdf'`` are then unchanged. Under the
    default ``'linear'`` interpolation they may move by up to one gap
    between adjacent sorted runs.

    Parameters
    ----------
    trajectory_sets : sequence of TrajectorySet
        Sources sharing horizon count and labels
    weights : sequence of float, optional
        Relative contribution of each source. Without weights every run of
        every source is pooled as is
    n_runs : int, optional
        Size of the weighted ensemble; defaults to the total number of input runs
    model_id : str
        Identity of the resulting set

    Returns
    -------
    TrajectorySet owning a fresh copy of the pooled runs
    """
    trajectory_sets = list(trajectory_sets)
    if not trajectory_sets:
        raise InvalidInputError("At least one trajectory set is required to build an ensemble")
    check_compatible(trajectory_sets)

    if weights is None and n_runs is None:
        pooled = np.concatenate([ts.values for ts in trajectory_sets], axis=0)
        counts = [ts.n_runs for ts in trajectory_sets]
    else:
        total = int(n_runs) if n_runs is not None else sum(ts.n_runs for ts in trajectory_sets)
        counts = allocate_runs(
            weights if weights is not None else [1.0] * len(trajectory_sets), total
        )
        parts = [_take_runs(ts.values, count) for ts, count in zip(trajectory_sets, counts) if count > 0]
        pooled = np.concatenate(parts, axis=0)

    origins = {ts.origin for ts in trajectory_sets}
    origin = origins.pop() if len(origins) == 1 else None

    logger.info(
        f"Combined {len(trajectory_sets)} trajectory sets into '{model_id}' with "
        + ", ".join(f"{ts.model_id}={c}" for ts, c in zip(trajectory_sets, counts))
        + f" runs ({pooled.shape[0]} total)"
    )
    return TrajectorySet(model_id, pooled, index=trajectory_sets[0].index, origin=origin)


def average_quantile_tables(tables: Sequence[QuantileTable], weights: Optional[Sequence[float]] = None,
                            model_id: str = ENSEMBLE_MODEL_ID) -> QuantileTable:
    """
    Weighted average of quantile estimates level by level.

    All tables must share horizons and probabilities.
    """
    tables = list(tables)
    if not tables:
        raise InvalidInputError("At least one quantile table is required to build an ensemble")

    reference = tables[0]
    for table in tables[1:]:
        if not reference.horizons.equals(table.horizons):
            raise MismatchedHorizonError(
                f"Quantile tables '{reference.model_id}' and '{table.model_id}' have different horizons"
            )
        if len(reference.probabilities) != len(table.probabilities) \
                or not np.allclose(reference.probabilities, table.probabilities, rtol=0.0, atol=1e-9):
            raise MismatchedHorizonError(
                f"Quantile tables '{reference.model_id}' and '{table.model_id}' have different probabilities"
            )

    w = _normalise_weights(weights, len(tables))
    stacked = np.stack([t.to_frame().to_numpy() for t in tables])
    averaged = np.tensordot(w, stacked, axes=1)

    frame = pd.DataFrame(averaged, index=reference.horizons, columns=reference.probabilities)
    return QuantileTable(model_id, frame, method=reference.method)
