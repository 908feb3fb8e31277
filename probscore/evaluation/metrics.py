"""
Scoring rules for quantile forecasts.

Quantile score (pinball loss)
    Q_p(q, y) = 2 * (1 - p) * (q - y)   if y < q
              = 2 * p * (y - q)         otherwise

With the factor 2, Q_0.5 equals the absolute error and the mean of Q_p over
p in (0, 1) equals the Continuous Ranked Probability Score. ``crps`` averages
over a discrete probability grid (0.01..0.99 by default), so it approximates
the integral; the finer the grid, the closer the approximation.
"""

import logging
import numpy as np
import pandas as pd
from collections.abc import Mapping
from sklearn.metrics import mean_absolute_error, mean_squared_error

from .quantiles import QuantileTable, probability_grid, validate_probabilities
from ..data.trajectories import TrajectorySet
from ..errors import InvalidInputError, NoDataError

logger = logging.getLogger(__name__)


def as_observations(observations) -> pd.Series:
    """
    Coerce observations to a float Series indexed by horizon label.

    Missing labels and NaN both mean the value has not been realised yet.
    """
    if isinstance(observations, pd.Series):
        series = observations.astype(float).copy()
    elif isinstance(observations, Mapping):
        series = pd.Series(dict(observations), dtype=float)
    else:
        raise InvalidInputError(
            f"Observations must be a pandas Series or a mapping, got {type(observations).__name__}"
        )
    if not series.index.is_unique:
        duplicated = series.index[series.index.duplicated()].unique().tolist()
        raise InvalidInputError(f"Observation labels must be unique, duplicated: {duplicated}")
    return series


def _check_probability(probability):
    p = np.asarray(probability, dtype=float)
    if not np.all(np.isfinite(p)) or np.any(p <= 0) or np.any(p >= 1):
        raise InvalidInputError(f"Probability must lie strictly between 0 and 1, got {probability}")
    return p


def pinball_loss(quantile, probability, observed):
    """
    Quantile score of one estimate against one observation.

    Parameters
    ----------
    quantile : float or array-like
        Quantile estimate q
    probability : float or array-like
        Probability level p in (0, 1)
    observed : float or array-like
        Realised value y

    Returns
    -------
    float, or np.ndarray when any argument is an array
    """
    p = _check_probability(probability)
    q = np.asarray(quantile, dtype=float)
    y = np.asarray(observed, dtype=float)

    loss = np.where(y < q, 2 * (1 - p) * (q - y), 2 * p * (y - q))
    if loss.ndim == 0:
        return float(loss)
    return loss


def _observed_pairs(table: QuantileTable, observations, probability: float):
    """Quantile estimates and observations at horizons where both exist"""
    estimates = table.column(probability)
    obs = as_observations(observations).reindex(estimates.index)
    mask = obs.notna() & estimates.notna()
    return estimates[mask], obs[mask]


def average_quantile_score(table: QuantileTable, observations, probability: float) -> float:
    """
    Mean pinball loss at one probability over every observed horizon.

    Raises NoDataError when no horizon has both an estimate and an observation.
    """
    _check_probability(probability)
    estimates, obs = _observed_pairs(table, observations, probability)
    if estimates.empty:
        raise NoDataError(
            f"No horizon of '{table.model_id}' has both a quantile estimate and an observation"
        )
    losses = pinball_loss(estimates.to_numpy(), probability, obs.to_numpy())
    return float(np.mean(losses))


def _resolve_grid(table: QuantileTable, grid):
    grid = probability_grid() if grid is None else validate_probabilities(grid)
    missing = [p for p in grid if not table.has_probability(p)]
    if missing:
        raise InvalidInputError(
            f"Quantile table for '{table.model_id}' lacks {len(missing)} grid probabilities "
            f"(first: {missing[0]}); build it with the same grid used for scoring"
        )
    return grid


def crps(table: QuantileTable, observations, probability_grid=None) -> float:
    """
    Continuous Ranked Probability Score approximated on a probability grid.

    Parameters
    ----------
    table : QuantileTable
        Must contain every probability of the grid
    observations : pd.Series or mapping
        Realised values by horizon label
    probability_grid : sequence of float, optional
        Probabilities averaged over; defaults to 0.01..0.99 step 0.01

    Returns
    -------
    float
    """
    grid = _resolve_grid(table, probability_grid)

    # ascending order keeps the summation reproducible
    scores = [average_quantile_score(table, observations, p) for p in grid]
    return float(np.mean(scores))


def crps_per_horizon(table: QuantileTable, observations, probability_grid=None) -> pd.Series:
    """Grid CRPS for each observed horizon separately"""
    grid = _resolve_grid(table, probability_grid)
    obs = as_observations(observations).reindex(table.horizons)
    observed = obs.notna()
    if not observed.any():
        raise NoDataError(f"No observed horizon for '{table.model_id}'")

    y = obs[observed]
    per_level = np.column_stack([
        np.atleast_1d(pinball_loss(table.column(p)[observed].to_numpy(), p, y.to_numpy()))
        for p in grid
    ])
    return pd.Series(per_level.mean(axis=1), index=y.index, name='crps')


def sample_crps(trajectories: TrajectorySet, observations) -> float:
    """
    Exact empirical CRPS computed from raw runs.

    Uses CRPS = E|X - y| - 0.5 * E|X - X'| with the sorted-sample identity
    for the second term. Averaged over observed horizons. Grid-free, so it
    is a useful cross-check of ``crps``.
    """
    obs = as_observations(observations).reindex(trajectories.index)
    observed = obs.notna().to_numpy()
    if not observed.any():
        raise NoDataError(f"No observed horizon for '{trajectories.model_id}'")

    n = trajectories.n_runs
    weights = 2 * np.arange(1, n + 1) - n - 1
    scores = []
    for position in np.flatnonzero(observed):
        samples = trajectories.values[:, position]
        y = obs.iloc[position]
        term1 = np.mean(np.abs(samples - y))
        term2 = 2 * np.sum(weights * np.sort(samples)) / (n ** 2)
        scores.append(term1 - 0.5 * term2)
    return float(np.mean(scores))


def score_records(tables, observations, probabilities) -> pd.DataFrame:
    """
    Long-format quantile scores for several models.

    Parameters
    ----------
    tables : iterable of QuantileTable
    observations : pd.Series or mapping
    probabilities : sequence of float

    Returns
    -------
    pd.DataFrame with columns model, horizon, probability, quantile_score
    """
    probs = validate_probabilities(probabilities)
    rows = []
    skipped = []
    for table in tables:
        table_rows = []
        for p in probs:
            estimates, obs = _observed_pairs(table, observations, p)
            losses = pinball_loss(estimates.to_numpy(), p, obs.to_numpy())
            for horizon, loss in zip(estimates.index, np.atleast_1d(losses)):
                table_rows.append({'model': table.model_id, 'horizon': horizon,
                                   'probability': float(p), 'quantile_score': float(loss)})
        if table_rows:
            rows.extend(table_rows)
        else:
            skipped.append(table.model_id)

    if not rows:
        raise NoDataError("No model has a horizon with both a quantile estimate and an observation")
    if skipped:
        logger.warning(f"No observed horizons for models {skipped}; left out of score records")

    return pd.DataFrame(rows, columns=['model', 'horizon', 'probability', 'quantile_score'])


def interval_coverage(table: QuantileTable, observations, lower: float, upper: float) -> float:
    """Fraction of observed horizons falling inside [q_lower, q_upper]"""
    if not lower < upper:
        raise InvalidInputError(f"lower ({lower}) must be below upper ({upper})")
    lo, obs = _observed_pairs(table, observations, lower)
    hi, _ = _observed_pairs(table, observations, upper)
    if obs.empty:
        raise NoDataError(f"No observed horizon for '{table.model_id}'")
    hi = hi.reindex(lo.index)
    inside = (obs >= lo) & (obs <= hi)
    return float(inside.mean())


def winkler_score(table: QuantileTable, observations, coverage: float = 0.8) -> float:
    """
    Mean interval (Winkler) score of the central prediction interval.

    The interval runs from the (1 - coverage)/2 to the (1 + coverage)/2
    quantile; both must be in the table. Observations outside the interval
    add 2/alpha times the distance to the nearest bound, alpha = 1 - coverage.
    """
    if not 0 < coverage < 1:
        raise InvalidInputError(f"coverage must lie strictly between 0 and 1, got {coverage}")
    alpha = 1 - coverage
    lower_p = round(alpha / 2, 10)
    upper_p = round(1 - alpha / 2, 10)

    lo, obs = _observed_pairs(table, observations, lower_p)
    if obs.empty:
        raise NoDataError(f"No observed horizon for '{table.model_id}'")
    hi = table.column(upper_p).reindex(lo.index)

    width = hi - lo
    penalty = (2 / alpha) * ((lo - obs).clip(lower=0) + (obs - hi).clip(lower=0))
    return float(np.mean(width + penalty))


def point_errors(table: QuantileTable, observations) -> dict:
    """MAE and RMSE of the median forecast over observed horizons"""
    median, obs = _observed_pairs(table, observations, 0.5)
    if obs.empty:
        raise NoDataError(f"No observed horizon for '{table.model_id}'")
    return {
        'mae': float(mean_absolute_error(obs.to_numpy(), median.to_numpy())),
        'rmse': float(np.sqrt(mean_squared_error(obs.to_numpy(), median.to_numpy()))),
    }
