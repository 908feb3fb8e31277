"""
Tests for run_evaluation.py - Command-line scoring run.
"""

import sys

import numpy as np
import pandas as pd
import pytest

import run_evaluation
from probscore.data.loader import save_trajectory_set
from probscore.data.trajectories import TrajectorySet


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'config.yml'
    path.write_text(
        f"output:\n  dir: {tmp_path / 'results'}\n"
        "simulation:\n  horizon: 6\n  n_runs: 300\n  seed: 1\n"
    )
    return path


def run(monkeypatch, *argv):
    monkeypatch.setattr(sys, 'argv', ['run_evaluation.py', *argv])
    return run_evaluation.main()


class TestRunEvaluation:
    def test_demo(self, monkeypatch, tmp_path, config_file):
        output = tmp_path / 'scores.csv'
        assert run(monkeypatch, '--simulate-demo', '--config', str(config_file),
                   '--ensemble', 'drift', 'gaussian_drift', '--output', str(output)) == 0

        scores = pd.read_csv(output, index_col='model')
        assert set(scores.index) == {'naive', 'drift', 'gaussian_drift', 'ensemble'}
        assert scores.loc['naive', 'skill_score'] == 0.0
        assert {'crps', 'coverage', 'winkler'} <= set(scores.columns)

    def test_files_to_latex(self, monkeypatch, tmp_path, config_file, rng):
        trajectories = tmp_path / 'trajectories'
        save_trajectory_set(TrajectorySet('naive', rng.normal(0, 2, size=(200, 3))), trajectories / 'naive.csv')
        save_trajectory_set(TrajectorySet('ets', rng.normal(0, 1, size=(200, 3))), trajectories / 'ets.csv')
        pd.DataFrame({'horizon': [1, 2, 3], 'value': [0.2, -0.4, np.nan]}).to_csv(
            tmp_path / 'actuals.csv', index=False)

        output = tmp_path / 'scores.tex'
        assert run(monkeypatch, '--trajectories', str(trajectories), '--observations', str(tmp_path / 'actuals.csv'),
                   '--baseline', 'naive', '--config', str(config_file), '--output', str(output)) == 0

        latex = output.read_text()
        assert 'ets &' in latex and 'naive &' in latex

    def test_unknown_baseline_exits(self, monkeypatch, tmp_path, config_file):
        with pytest.raises(SystemExit) as excinfo:
            run(monkeypatch, '--simulate-demo', '--config', str(config_file), '--baseline', 'missing',
                '--output', str(tmp_path / 'scores.csv'))
        assert excinfo.value.code == 1

    def test_requires_inputs(self, monkeypatch):
        with pytest.raises(SystemExit):
            run(monkeypatch)
