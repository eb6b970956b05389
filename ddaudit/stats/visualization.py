"""
Visualization of per-player error rates.

Creates:
- Forest plot of declaring vs defending error rate per player (95% CI bars)
"""

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from typing import List, Optional

from .aggregator import FIELD_NAME


def set_plot_style():
    """Set consistent plot style."""
    plt.style.use('seaborn-v0_8-whitegrid')
    plt.rcParams['figure.dpi'] = 150
    plt.rcParams['savefig.dpi'] = 150
    plt.rcParams['font.size'] = 10


def _ci_array(values: pd.Series) -> np.ndarray:
    return np.array([np.nan if v is None else float(v) for v in values])


def plot_error_rates(table: pd.DataFrame,
                     save_path: Optional[str] = None,
                     highlight: Optional[List[str]] = None,
                     title: str = 'DD error rate by role') -> plt.Figure:
    """
    Plot declaring and defending error rates per player.

    Args:
        table: output of AnomalyDetector.player_table
        save_path: path to save figure
        highlight: player names to draw in bold (e.g. the subjects)
        title: plot title

    Returns:
        matplotlib Figure
    """
    set_plot_style()
    highlight = set(highlight or [])

    n = len(table)
    y = np.arange(n)[::-1]
    fig, ax = plt.subplots(figsize=(9, max(3, 0.45 * n + 1.5)))

    # CI is None (NaN) for roles below the play threshold: draw point without bar
    for col, ci_col, color, offset, label in [
        ('Decl_Err_Pct', 'Decl_CI', 'steelblue', 0.15, 'Declaring'),
        ('Def_Err_Pct', 'Def_CI', 'darkorange', -0.15, 'Defending'),
    ]:
        ci = _ci_array(table[ci_col])
        ax.errorbar(table[col].to_numpy(dtype=float), y + offset,
                    xerr=np.nan_to_num(ci), fmt='o', color=color,
                    ecolor=color, elinewidth=1.5, capsize=3, label=label)

    ax.set_yticks(y)
    ax.set_yticklabels(table['Player'])
    for tick in ax.get_yticklabels():
        name = tick.get_text()
        if name in highlight:
            tick.set_fontweight('bold')
        if name == FIELD_NAME:
            tick.set_fontstyle('italic')

    if FIELD_NAME in set(table['Player']):
        field_row = table[table['Player'] == FIELD_NAME].iloc[0]
        ax.axvline(field_row['Decl_Err_Pct'], color='steelblue', linestyle=':', linewidth=1)
        ax.axvline(field_row['Def_Err_Pct'], color='darkorange', linestyle=':', linewidth=1)

    ax.set_xlabel('Error rate (% of plays with DD cost > 0)', fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.legend(loc='lower right')

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path, bbox_inches='tight')
        print(f"[OK] Saved: {save_path}")

    return fig
