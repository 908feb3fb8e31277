#!/usr/bin/env python
"""
run_evaluation.py - Score simulated forecasts and report CRPS skill scores

Reads one trajectory file per model (rows = runs, columns = horizon labels)
and an observation file, optionally pools selected models into an ensemble,
then writes a score table (CRPS, quantile scores, MAE/RMSE, coverage,
Winkler score, skill score against a baseline).

Usage:
    python run_evaluation.py --trajectories results/trajectories --observations data/actuals.csv --baseline naive
    python run_evaluation.py --trajectories results/trajectories --observations data/actuals.csv \
        --baseline naive --ensemble ets arima --weights 0.5 0.5 --output results/scores.tex
    python run_evaluation.py --simulate-demo --output results/demo_scores.csv
"""
import os
import sys
import logging
import argparse
import numpy as np
import pandas as pd
from datetime import datetime
from tqdm import tqdm

from probscore.config import load_config, grid_from_config
from probscore.data.loader import load_trajectory_sets, load_observations
from probscore.data.simulation import RandomWalkSimulator, simulate_all
from probscore.errors import ForecastScoringError
from probscore.evaluation.metrics import interval_coverage, winkler_score
from probscore.evaluation.quantiles import build_quantile_table
from probscore.evaluation.tables import build_score_table, score_table_to_latex
from probscore.utils.ensemble import combine


def setup_logging(log_dir, level='INFO'):
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f"evaluation_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log")

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    return logging.getLogger("evaluation")


def demo_inputs(config, logger):
    """Synthetic monthly series with trend and seasonality, scored on a held-out tail"""
    sim_config = config['simulation']
    horizon = int(sim_config['horizon'])
    rng = np.random.default_rng(sim_config['seed'])

    n_months = 240
    t = np.arange(n_months)
    values = 300 + 1.5 * t + 40 * np.sin(2 * np.pi * t / 12) + rng.normal(0, 15, n_months)
    series = pd.Series(values, index=pd.period_range('2000-01', periods=n_months, freq='M'))

    history, actuals = series.iloc[:-horizon], series.iloc[-horizon:]
    logger.info(f"Demo series: {len(history)} training months, {len(actuals)} held out")

    models = [
        RandomWalkSimulator('naive', history),
        RandomWalkSimulator('drift', history, drift=True),
        RandomWalkSimulator('gaussian_drift', history, drift=True, bootstrap=False),
    ]
    sets = simulate_all(models, horizon, int(sim_config['n_runs']), seed=sim_config['seed'])
    return {ts.model_id: ts for ts in sets}, actuals


def main():
    """Score trajectory sets against observations and write the summary table"""
    parser = argparse.ArgumentParser(
        description="Quantile/CRPS evaluation of simulated forecasts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Score every model in a directory against observations
  python run_evaluation.py --trajectories results/trajectories --observations data/actuals.csv --baseline naive

  # Add a weighted ensemble of two models
  python run_evaluation.py --trajectories results/trajectories --observations data/actuals.csv \\
      --ensemble ets arima --weights 0.7 0.3

  # Self-contained demonstration with synthetic data
  python run_evaluation.py --simulate-demo
        """
    )

    parser.add_argument("--trajectories", type=str,
                        help="Directory with one trajectory file (.csv/.parquet) per model")
    parser.add_argument("--observations", type=str,
                        help="CSV/parquet file with horizon labels and observed values")
    parser.add_argument("--value-column", type=str, default="value",
                        help="Observed value column (default: value)")
    parser.add_argument("--baseline", type=str, default=None,
                        help="Baseline model for skill scores (default: from config)")
    parser.add_argument("--ensemble", nargs='+', default=None,
                        help="Models to pool into an 'ensemble' model")
    parser.add_argument("--weights", nargs='+', type=float, default=None,
                        help="Ensemble weights, one per --ensemble model")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to YAML configuration (default: config/default_config.yml)")
    parser.add_argument("--output", type=str, default=None,
                        help="Output file (.csv or .tex); default results/scores.csv")
    parser.add_argument("--simulate-demo", action="store_true",
                        help="Generate synthetic trajectories instead of reading files")

    args = parser.parse_args()

    if not args.simulate_demo and not (args.trajectories and args.observations):
        parser.error("--trajectories and --observations are required unless --simulate-demo is given")
    if args.weights is not None and (args.ensemble is None or len(args.weights) != len(args.ensemble)):
        parser.error("--weights needs exactly one value per --ensemble model")

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ForecastScoringError) as e:
        parser.error(str(e))

    output_dir = config['output']['dir']
    logger = setup_logging(os.path.join(output_dir, 'logs'), config['logging']['level'])

    eval_config = config['evaluation']
    baseline = args.baseline or eval_config['baseline']
    output = args.output or os.path.join(output_dir, 'scores.csv')

    try:
        if args.simulate_demo:
            trajectory_sets, observations = demo_inputs(config, logger)
        else:
            trajectory_sets = load_trajectory_sets(args.trajectories)
            observations = load_observations(args.observations, column=args.value_column)

        ensemble_models = args.ensemble
        ensemble_weights = args.weights
        config_weights = config['ensemble']['weights']
        if ensemble_models is None and config_weights:
            ensemble_models = list(config_weights)
            ensemble_weights = [float(config_weights[m]) for m in ensemble_models]

        if ensemble_models:
            missing = [m for m in ensemble_models if m not in trajectory_sets]
            if missing:
                logger.error(f"Ensemble members not found: {missing}. Available: {sorted(trajectory_sets)}")
                sys.exit(1)
            trajectory_sets['ensemble'] = combine(
                [trajectory_sets[m] for m in ensemble_models],
                weights=ensemble_weights,
                n_runs=config['ensemble']['n_runs'],
            )

        if baseline not in trajectory_sets:
            logger.error(f"Baseline '{baseline}' not found. Available: {sorted(trajectory_sets)}")
            sys.exit(1)

        grid = grid_from_config(config)
        coverage = float(eval_config['interval_coverage'])
        bounds = [round((1 - coverage) / 2, 10), round((1 + coverage) / 2, 10)]
        levels = np.union1d(np.round(grid, 10),
                            np.round(list(eval_config['quantiles']) + bounds, 10))

        tables = []
        for model_id, trajectories in tqdm(trajectory_sets.items(), desc="Models"):
            tables.append(build_quantile_table(trajectories, levels, method=eval_config['interpolation']))

        scores = build_score_table(tables, observations, baseline,
                                   probabilities=eval_config['quantiles'], grid=grid)
        scores['coverage'] = pd.Series(
            {t.model_id: interval_coverage(t, observations, bounds[0], bounds[1]) for t in tables})
        scores['winkler'] = pd.Series(
            {t.model_id: winkler_score(t, observations, coverage=coverage) for t in tables})

        os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
        if output.endswith('.tex'):
            with open(output, 'w') as f:
                f.write(score_table_to_latex(scores, caption=f"Forecast accuracy against {baseline}"))
        else:
            scores.to_csv(output, float_format='%.4f')

        logger.info(f"Scores saved to {output}")
        for model_id, row in scores.iterrows():
            logger.info(f"{model_id:20s} | CRPS: {row['crps']:8.4f} | Skill: {row['skill_score']:7.2f}%")

    except (ForecastScoringError, FileNotFoundError) as e:
        logger.error(f"Evaluation failed: {e}")
        sys.exit(1)

    return 0


if __name__ == "__main__":
    sys.exit(main())
