"""
probscore: scoring and ensembling of simulated probabilistic forecasts

This package turns simulated future sample paths from fitted forecasting
models into quantile forecasts, scores them against realised values, and
compares models through CRPS skill scores.

Main Components
---------------
- data: Trajectory sets, the generative model interface and file IO
- evaluation: Quantile tables, scoring rules, skill scores and summary tables
- utils: Ensemble methods for pooling trajectories from several models

Conventions
-----------
- Quantiles use linear interpolation at position (n-1)*p across runs
- Quantile score: 2*(1-p)*(q-y) if y < q else 2*p*(y-q)
- CRPS: mean quantile score over p = 0.01, 0.02, ..., 0.99
- Skill score: 100 * (1 - CRPS_candidate / CRPS_baseline)

Usage Example
-------------
>>> from probscore.data.simulation import DistributionSimulator, simulate
>>> from probscore.evaluation.quantiles import build_quantile_table, probability_grid
>>> from probscore.evaluation.metrics import crps
>>> model = DistributionSimulator.from_params('normal', 'normal', {'loc': [0.0] * 12, 'scale': [1.0] * 12})
>>> table = build_quantile_table(simulate(model, horizon=12, n_runs=5000, seed=1), probability_grid())
>>> crps(table, {1: 0.3, 2: -0.1})
"""

__version__ = "1.0.0"
