"""
Tests for probscore/config.py - YAML configuration.
"""

import pytest

from probscore.config import DEFAULT_CONFIG_PATH, grid_from_config, load_config
from probscore.errors import InvalidInputError


class TestLoadConfig:
    def test_default_file(self):
        assert DEFAULT_CONFIG_PATH.exists()
        config = load_config()

        assert config['evaluation']['interpolation'] == 'linear'
        assert config['evaluation']['baseline'] == 'naive'
        assert len(grid_from_config(config)) == 99

    def test_override_merges_with_defaults(self, tmp_path):
        path = tmp_path / 'custom.yml'
        path.write_text("evaluation:\n  baseline: snaive\n  grid:\n    step: 0.05\n    start: 0.05\n    stop: 0.95\n")
        config = load_config(path)

        assert config['evaluation']['baseline'] == 'snaive'
        assert config['evaluation']['interpolation'] == 'linear'
        assert config['simulation']['n_runs'] == 1000
        assert len(grid_from_config(config)) == 19

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / 'empty.yml'
        path.write_text('')
        assert load_config(path)['logging']['level'] == 'INFO'

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'absent.yml')

    def test_non_mapping(self, tmp_path):
        path = tmp_path / 'list.yml'
        path.write_text('- 1\n- 2\n')
        with pytest.raises(InvalidInputError):
            load_config(path)

    def test_defaults_not_mutated(self, tmp_path):
        path = tmp_path / 'custom.yml'
        path.write_text("simulation:\n  n_runs: 5\n")
        load_config(path)

        assert load_config()['simulation']['n_runs'] == 1000
