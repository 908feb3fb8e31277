"""
Summary tables handed to reporting and plotting layers.

Everything returned here is a fresh pandas object or a string; nothing keeps a
reference back into quantile tables or trajectory sets.
"""

import logging
import pandas as pd

from .metrics import crps, average_quantile_score, point_errors
from .quantiles import DECILES, QuantileTable
from .skill import skill_score_table
from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


def _qs_column(probability: float) -> str:
    return f"qs_{round(probability * 100, 8):g}"


_LATEX_SPECIALS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def _latex_escape(text: str) -> str:
    return "".join(_LATEX_SPECIALS.get(char, char) for char in text)


def build_score_table(tables, observations, baseline: str, probabilities=DECILES, grid=None) -> pd.DataFrame:
    """
    Accuracy summary per model: CRPS, quantile scores, median errors and skill.

    Parameters
    ----------
    tables : iterable of QuantileTable
        One table per model, each containing the CRPS grid and `probabilities`
    observations : pd.Series or mapping
        Realised values by horizon label
    baseline : str
        Model id used as skill score reference
    probabilities : sequence of float
        Levels reported as individual quantile score columns
    grid : sequence of float, optional
        CRPS probability grid (default 0.01..0.99)

    Returns
    -------
    pd.DataFrame indexed by model and sorted by CRPS
    """
    tables = list(tables)
    if not tables:
        raise InvalidInputError("At least one quantile table is required")

    ids = [t.model_id for t in tables]
    if len(set(ids)) != len(ids):
        raise InvalidInputError(f"Model ids must be unique, got {ids}")

    columns = [_qs_column(p) for p in probabilities]
    if len(set(columns)) != len(columns):
        raise InvalidInputError(f"Quantile score levels must map to distinct columns, got {list(probabilities)}")

    rows = {}
    for table in tables:
        row = {'crps': crps(table, observations, grid)}
        for column, p in zip(columns, probabilities):
            row[column] = average_quantile_score(table, observations, p)
        if table.has_probability(0.5):
            row.update(point_errors(table, observations))
        rows[table.model_id] = row

    logger.info(f"Scored {len(rows)} models against '{baseline}'")

    frame = pd.DataFrame.from_dict(rows, orient='index')
    frame.index.name = 'model'
    frame['skill_score'] = skill_score_table(frame['crps'].to_dict(), baseline)
    return frame.sort_values('crps', kind='stable')


def fan_chart_frame(table: QuantileTable) -> pd.DataFrame:
    """Long-format quantiles (horizon, probability, quantile) for fan charts"""
    frame = table.to_frame()
    frame.index.name = 'horizon'
    long = frame.reset_index().melt(id_vars='horizon', var_name='probability', value_name='quantile')
    long['probability'] = long['probability'].astype(float)
    long.insert(0, 'model', table.model_id)
    return long


def score_table_to_latex(frame: pd.DataFrame, caption: str = 'Forecast accuracy', label: str = 'tab:scores') -> str:
    """Render a score table as a booktabs LaTeX table"""
    headers = {
        'crps': 'CRPS',
        'mae': 'MAE',
        'rmse': 'RMSE',
        'skill_score': 'Skill (\\%)',
    }
    columns = list(frame.columns)
    header_cells = []
    for col in columns:
        if col.startswith('qs_'):
            header_cells.append(f"QS {col[3:]}\\%")
        else:
            header_cells.append(headers.get(col, col))

    latex = "\\begin{table}[htbp]\n"
    latex += "\\centering\n"
    latex += f"\\caption{{{caption}}}\n"
    latex += f"\\label{{{label}}}\n"
    latex += "\\begin{tabular}{l" + "c" * len(columns) + "}\n"
    latex += "\\toprule\n"
    latex += "Model & " + " & ".join(header_cells) + " \\\\\n"
    latex += "\\midrule\n"

    for model, row in frame.iterrows():
        cells = []
        for col in columns:
            value = row[col]
            cells.append('--' if pd.isna(value) else f"{value:.3f}")
        name = _latex_escape(str(model))
        latex += f"{name} & " + " & ".join(cells) + " \\\\\n"

    latex += "\\bottomrule\n"
    latex += "\\end{tabular}\n"
    latex += "\\end{table}"

    return latex
