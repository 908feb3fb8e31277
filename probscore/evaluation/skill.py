"""
CRPS skill scores relative to a baseline model.

    skill = 100 * (1 - CRPS_candidate / CRPS_baseline)

Positive values mean the candidate improves on the baseline. Swapping the
roles is not a sign flip: if s = skill(a, b) then
skill(b, a) = -s / (1 - s / 100).
"""

import logging
import math
import pandas as pd
from typing import Mapping

from ..errors import InvalidInputError, ZeroBaselineError

logger = logging.getLogger(__name__)


def _check_crps(value: float, role: str) -> float:
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"{role} CRPS must be a finite non-negative number, got {value}")
    return value


def skill_score(candidate_crps: float, baseline_crps: float) -> float:
    """
    Percentage improvement of the candidate's CRPS over the baseline's.

    Raises ZeroBaselineError when the baseline CRPS is zero.
    """
    candidate = _check_crps(candidate_crps, 'Candidate')
    baseline = _check_crps(baseline_crps, 'Baseline')
    if baseline == 0:
        raise ZeroBaselineError("Skill score is undefined against a baseline CRPS of zero")
    return 100 * (1 - candidate / baseline)


def swapped_skill_score(skill: float) -> float:
    """Skill score obtained when candidate and baseline exchange roles"""
    skill = float(skill)
    if skill == 100:
        # candidate CRPS was zero, so it cannot act as a baseline
        raise ZeroBaselineError("A perfect candidate (skill 100) has zero CRPS and cannot be a baseline")
    return -skill / (1 - skill / 100)


def skill_score_table(crps_by_model: Mapping[str, float], baseline: str) -> pd.Series:
    """
    Skill score of every model against one baseline.

    Parameters
    ----------
    crps_by_model : mapping of model name to CRPS
    baseline : str
        Name of the baseline model; must be a key of crps_by_model

    Returns
    -------
    pd.Series named 'skill_score', indexed by model, baseline included at 0
    """
    if baseline not in crps_by_model:
        raise InvalidInputError(f"Baseline '{baseline}' not among models {list(crps_by_model)}")

    baseline_crps = crps_by_model[baseline]
    scores = {model: skill_score(value, baseline_crps) for model, value in crps_by_model.items()}
    logger.info(f"Skill scores against '{baseline}' (CRPS {float(baseline_crps):.4f}) for {len(scores)} models")

    series = pd.Series(scores, name='skill_score', dtype=float)
    series.index.name = 'model'
    return series
