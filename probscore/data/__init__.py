"""
Trajectory data and generative model interface.

Modules
-------
trajectories.py
    TrajectorySet, the immutable runs x horizons matrix of simulated values
simulation.py
    TrajectorySimulator protocol, ``simulate`` and reference simulators
    (per-horizon scipy distributions, bootstrapped random walk)
loader.py
    CSV/parquet IO for trajectory sets and observations
"""
