"""
End-to-end DD audit run.

Steps:
1. Load config (configs/default_config.yaml + dotlist overrides)
2. Set up the run directory and metadata
3. Per-card DD cost analysis of every board   -> dd_analysis.csv
4. Per-player aggregation                        -> player_stats.csv
5. Subject vs field comparison                   -> report.json
6. Error-rate forest plot                        -> error_rates.png

To resume an interrupted run, point it at the same directory:
    run_dd_audit(overrides=["run.run_id=<id>", "run.overwrite=true"])
"""
import json
import os
from typing import Dict, List, Optional

import matplotlib.pyplot as plt
import pandas as pd

from .analysis.batch import BatchConfig, analyze_table
from .meta_logger import setup_run
from .solver.backends import SolverLike
from .stats.aggregator import StatsAggregator
from .stats.anomaly import AnomalyDetector, DetectorConfig
from .stats.visualization import plot_error_rates
from .utils import load_config


def _solver_name(solver: SolverLike) -> str:
    if isinstance(solver, str):
        return solver
    return getattr(solver, 'name', type(solver).__name__)


def run_dd_audit(config_path: Optional[str] = None, overrides: Optional[List[str]] = None,
                 solver: Optional[SolverLike] = None, verbose: bool = True) -> Dict:
    """
    Run the full audit on the input table named by `run.input`.

    Args:
        config_path: YAML config (defaults to configs/default_config.yaml)
        overrides: dotlist overrides, e.g. ["analysis.threads=1"]
        solver: solver backend overriding `analysis.solver`
        verbose: print progress

    Returns:
        Dict with run_id, output_dir, the output file paths and the report
    """
    cfg = load_config(config_path, overrides)
    batch_config = BatchConfig.from_config(cfg)
    if solver is not None:
        batch_config.solver = solver
    detector_config = DetectorConfig.from_config(cfg)

    input_path = cfg.run.get('input')
    if not input_path:
        raise ValueError("run.input must name the input CSV")

    run_id, output_dir = setup_run(cfg, solver_name=_solver_name(batch_config.solver))
    paths = {
        'dd_analysis': os.path.join(output_dir, 'dd_analysis.csv'),
        'player_stats': os.path.join(output_dir, 'player_stats.csv'),
        'report': os.path.join(output_dir, 'report.json'),
        'plot': os.path.join(output_dir, 'error_rates.png'),
    }

    if verbose:
        print(f"[INFO] Run {run_id}: {input_path} (mode={batch_config.mode}, "
              f"solver={_solver_name(batch_config.solver)})")

    df = pd.read_csv(input_path, dtype=str, keep_default_na=False)
    analyzed = analyze_table(df, paths['dd_analysis'], batch_config, verbose=verbose)

    aggregator = StatsAggregator().add_table(analyzed, batch_config.columns, verbose=verbose)

    detector = AnomalyDetector.from_config(detector_config)
    table = detector.player_table(aggregator, detector_config.top_n, detector_config.n_subjects)
    table.to_csv(paths['player_stats'], index=False)

    report = detector.compare(aggregator, detector_config.n_subjects)
    with open(paths['report'], 'w') as f:
        json.dump(report.to_dict(), f, indent=2)

    fig = plot_error_rates(table, save_path=paths['plot'], highlight=report.subjects)
    plt.close(fig)

    if verbose:
        for test in report.tests:
            if test.z is None:
                print(f"[INFO] {test.subject} vs {test.baseline}: {test.classification}")
            else:
                print(f"[INFO] {test.subject} vs {test.baseline}: z={test.z:.2f}, "
                      f"p {test.p_label} -> {test.classification}")
        print(f"[OK] Results saved to {output_dir}")

    return {'run_id': run_id, 'output_dir': output_dir, 'paths': paths, 'report': report}
