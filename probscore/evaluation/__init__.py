"""
Evaluation of quantile forecasts built from simulated trajectories.

Modules
-------
quantiles.py
    QuantileTable and build_quantile_table; the probability grid used for CRPS
metrics.py
    Scoring rules:
    - Quantile score (pinball loss)
    - Average quantile score per probability
    - CRPS on a probability grid, per horizon, and exact from samples
    - Interval coverage and Winkler score
    - MAE / RMSE of the median forecast
skill.py
    CRPS skill scores against a baseline model
tables.py
    Score tables, fan chart frames and LaTeX rendering for reporting layers

Usage Example
-------------
>>> from probscore.evaluation.tables import build_score_table
>>> scores = build_score_table([naive_table, ets_table], observations, baseline='naive')
"""
