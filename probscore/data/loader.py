"""
Reading and writing trajectory sets and observations.

File layout
-----------
Trajectory files (CSV or parquet) hold one row per run and one column per
horizon label. Observation files hold a label column (the first column) and a
value column. Labels read from CSV headers are strings, so observation labels
are read as strings too and the two line up without conversion.
"""

import logging
import pandas as pd
from pathlib import Path
from typing import Dict, Optional, Union

from .trajectories import TrajectorySet
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.csv', '.parquet')


def _read_table(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    if path.suffix == '.parquet':
        return pd.read_parquet(path)
    if path.suffix == '.csv':
        return pd.read_csv(path)
    raise InvalidInputError(f"Unsupported file type '{path.suffix}', expected one of {SUPPORTED_SUFFIXES}")


def load_trajectory_set(path: Union[str, Path], model_id: Optional[str] = None) -> TrajectorySet:
    """Load one model's simulated runs; model_id defaults to the file stem"""
    path = Path(path)
    frame = _read_table(path)
    if 'run' in frame.columns:
        frame = frame.set_index('run')
    frame.columns = frame.columns.astype(str)

    trajectories = TrajectorySet.from_frame(frame, model_id or path.stem)
    logger.info(f"Loaded {trajectories.n_runs} runs x {trajectories.n_horizons} horizons from {path}")
    return trajectories


def save_trajectory_set(trajectories: TrajectorySet, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = trajectories.to_frame()
    frame.columns = frame.columns.astype(str)
    if path.suffix == '.parquet':
        frame.to_parquet(path)
    elif path.suffix == '.csv':
        frame.to_csv(path)
    else:
        raise InvalidInputError(f"Unsupported file type '{path.suffix}', expected one of {SUPPORTED_SUFFIXES}")

    logger.info(f"Saved '{trajectories.model_id}' trajectories to {path}")
    return path


def load_trajectory_sets(directory: Union[str, Path]) -> Dict[str, TrajectorySet]:
    """Load every trajectory file in a directory, keyed by model id in sorted order"""
    directory = Path(directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"Trajectory directory not found: {directory}")

    files = sorted(p for p in directory.iterdir() if p.suffix in SUPPORTED_SUFFIXES)
    if not files:
        raise InvalidInputError(f"No trajectory files ({', '.join(SUPPORTED_SUFFIXES)}) in {directory}")

    sets = {}
    for file in files:
        if file.stem in sets:
            raise InvalidInputError(f"Duplicate model id '{file.stem}' in {directory}")
        sets[file.stem] = load_trajectory_set(file)
    return sets


def load_observations(path: Union[str, Path], column: str = 'value') -> pd.Series:
    """
    Load realised values as a Series indexed by horizon label.

    The first column is the label; `column` names the value column.
    """
    path = Path(path)
    frame = _read_table(path)
    if column not in frame.columns:
        raise InvalidInputError(f"Column '{column}' not found in {path}. Available columns: {frame.columns.tolist()}")

    label_column = frame.columns[0]
    if label_column == column:
        raise InvalidInputError(f"{path} needs a label column before the value column '{column}'")

    series = pd.Series(frame[column].to_numpy(dtype=float), index=frame[label_column].astype(str), name=column)
    series.index.name = 'horizon'
    if not series.index.is_unique:
        duplicated = series.index[series.index.duplicated()].unique().tolist()
        raise InvalidInputError(f"{path} repeats horizon labels: {duplicated}")
    logger.info(f"Loaded {int(series.notna().sum())} observed values from {path}")
    return series
