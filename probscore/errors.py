"""
Exception hierarchy for forecast scoring.

All errors derive from ForecastScoringError, which is itself a ValueError so
that callers catching bad-argument errors keep working.
"""


class ForecastScoringError(ValueError):
    """Base class for every error raised by probscore"""


class InvalidInputError(ForecastScoringError):
    """Malformed probability, empty trajectory set or otherwise unusable argument"""


class NoDataError(ForecastScoringError):
    """No horizon has both a quantile estimate and an observation"""


class MismatchedHorizonError(ForecastScoringError):
    """Trajectory sets or quantile tables with incompatible horizons"""


class ZeroBaselineError(ForecastScoringError, ZeroDivisionError):
    """Skill score requested against a baseline CRPS of zero"""
