"""
Utility functions for forecasting workflows.

Modules
-------
ensemble.py
    Ensemble methods for combining multiple forecasts:
    - Pooled trajectories (optionally weighted by run count)
    - Quantile averaging
"""
