"""
Batch double-dummy analysis over a results table.

Every row of the input table is one board: a reference id, the recorded
cardplay, contract and declarer, the deal (PBN column or one hand column per
seat) and the four player names. Boards are independent, so they are farmed
out to a process pool in chunks of `checkpoint_interval`; after each chunk
the output table is rewritten atomically, so an interrupted run can resume.

Output column (default 'DD_Analysis') per row:
- "T1:0,0,0,0|T2:0,1,0,0|..."  cost string for an analyzed board
- "ERROR: <message>"            the board could not be analyzed
- ""                            no cardplay recorded, nothing to do

Key functions:
- analyze_table: run (or resume) the batch on a DataFrame
- extract_task: pull one board's fields out of a row
- load_existing_results: ref -> previous result, for resume
"""
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd
from tqdm import tqdm

from ..errors import DdAnalysisError, DealParseError
from ..model.cardplay import parse_cardplay
from ..model.cards import Seat
from ..model.constants import ERROR_PREFIX, SEAT_ORDER
from ..model.contract import Contract
from ..model.deal import Deal
from ..solver.backends import SolverLike
from ..solver.evaluator import PositionEvaluator
from .attribution import AnalysisMode, CostAttributor


def _default_hand_columns() -> Dict[str, List[str]]:
    return {
        'N': ['North', 'N_Hand'],
        'E': ['East', 'E_Hand'],
        'S': ['South', 'S_Hand'],
        'W': ['West', 'W_Hand'],
    }


def _default_name_columns() -> Dict[str, str]:
    return {seat: seat for seat in SEAT_ORDER}


@dataclass
class ColumnConfig:
    """Input/output column names."""
    ref: str = 'Ref #'
    cardplay: str = 'Cardplay'
    contract: str = 'Con'
    declarer: str = 'Dec'
    deal: str = 'Deal'                   # PBN deal, used when present
    hands: Dict[str, List[str]] = field(default_factory=_default_hand_columns)
    names: Dict[str, str] = field(default_factory=_default_name_columns)
    output: str = 'DD_Analysis'


@dataclass
class BatchConfig:
    """Configuration for a batch run."""

    threads: Optional[int] = None        # None = all cores, 1 = run inline
    checkpoint_interval: int = 100
    resume: bool = True
    mode: str = AnalysisMode.MID_TRICK.value
    solver: SolverLike = "endplay"
    columns: ColumnConfig = field(default_factory=ColumnConfig)

    def __post_init__(self):
        self.mode = AnalysisMode.parse(self.mode).value
        if self.checkpoint_interval < 1:
            raise ValueError(f"checkpoint_interval must be >= 1, got {self.checkpoint_interval}")
        if self.threads is not None and self.threads < 1:
            raise ValueError(f"threads must be >= 1, got {self.threads}")

    @classmethod
    def from_config(cls, cfg) -> "BatchConfig":
        """Build from the `analysis` and `columns` sections of a loaded config."""
        analysis = cfg.get('analysis', {})
        columns = dict(cfg.get('columns', {}) or {})
        if 'hands' in columns:
            columns['hands'] = {k: list(v) for k, v in columns['hands'].items()}
        if 'names' in columns:
            columns['names'] = dict(columns['names'])
        return cls(
            threads=analysis.get('threads'),
            checkpoint_interval=analysis.get('checkpoint_interval', 100),
            resume=analysis.get('resume', True),
            mode=analysis.get('mode', AnalysisMode.MID_TRICK.value),
            solver=analysis.get('solver', 'endplay'),
            columns=ColumnConfig(**columns),
        )


@dataclass(frozen=True)
class BoardTask:
    """Everything a worker needs to analyze one board (picklable)."""
    row: int
    ref: str
    deal_pbn: str
    contract: str
    declarer: str
    cardplay: str
    names: Tuple[str, str, str, str]


def _cell(row: pd.Series, column: str) -> str:
    if column not in row.index:
        return ''
    value = row[column]
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ''
    return str(value).strip()


def _deal_from_row(row: pd.Series, columns: ColumnConfig) -> str:
    pbn = _cell(row, columns.deal)
    if pbn:
        return pbn

    holdings = {}
    for seat in SEAT_ORDER:
        # Columns such as 'North' may hold player names; only dotted values are hands
        for column in columns.hands.get(seat, []):
            value = _cell(row, column)
            if '.' in value:
                holdings[seat] = value
                break
    if len(holdings) != 4:
        raise DealParseError(
            f"No deal: need column {columns.deal!r} or hand columns for all seats "
            f"(found {sorted(holdings)})"
        )
    return "N:" + ' '.join(holdings[s] for s in SEAT_ORDER)


def extract_task(row_idx: int, row: pd.Series, columns: ColumnConfig) -> Optional[BoardTask]:
    """
    Extract one board from a table row.

    Returns:
        BoardTask, or None when the row has no cardplay to analyze

    Raises:
        DealParseError: no usable deal columns
    """
    cardplay = _cell(row, columns.cardplay)
    if not cardplay or cardplay.startswith(ERROR_PREFIX):
        return None

    return BoardTask(
        row=row_idx,
        ref=_cell(row, columns.ref),
        deal_pbn=_deal_from_row(row, columns),
        contract=_cell(row, columns.contract),
        declarer=_cell(row, columns.declarer),
        cardplay=cardplay,
        names=tuple(_cell(row, columns.names.get(s, s)) for s in SEAT_ORDER),
    )


def analyze_task(task: BoardTask, mode: str, solver: SolverLike) -> str:
    """Worker entry point: cost string or "ERROR: ..." sentinel, never raises."""
    try:
        deal = Deal.from_pbn(task.deal_pbn)
        contract = Contract.parse(task.contract, task.declarer)
        tricks = parse_cardplay(task.cardplay)
        attributor = CostAttributor(PositionEvaluator(solver), mode)
        names = {Seat(i): name for i, name in enumerate(task.names)}
        return attributor.analyze(deal, contract, tricks, names).to_cost_string()
    except Exception as e:  # any failure is recorded for this board only
        return f"{ERROR_PREFIX} {e}"


def load_existing_results(path: Union[str, Path], columns: Optional[ColumnConfig] = None) -> Dict[str, str]:
    """ref -> stored output, for every row of a previous output file with a value."""
    columns = columns or ColumnConfig()
    path = Path(path)
    if not path.exists():
        return {}
    prev = pd.read_csv(path, dtype=str, keep_default_na=False)
    if columns.ref not in prev.columns or columns.output not in prev.columns:
        return {}
    return {
        ref: value
        for ref, value in zip(prev[columns.ref], prev[columns.output])
        if value
    }


def _write_atomic(frame: pd.DataFrame, path: Path) -> None:
    tmp = path.with_name(path.name + '.tmp')
    frame.to_csv(tmp, index=False)
    os.replace(tmp, path)


def analyze_table(df: pd.DataFrame, output_path: Optional[Union[str, Path]] = None,
                  config: Optional[BatchConfig] = None, verbose: bool = True) -> pd.DataFrame:
    """
    Run double-dummy cost analysis over every board of a table.

    Args:
        df: input table (one board per row)
        output_path: CSV to checkpoint into and resume from (optional)
        config: BatchConfig (defaults used if None)
        verbose: print progress

    Returns:
        Copy of df with the output column filled in
    """
    config = config or BatchConfig()
    columns = config.columns
    missing = [c for c in (columns.ref, columns.cardplay, columns.contract, columns.declarer)
               if c not in df.columns]
    if missing:
        raise ValueError(f"Required column(s) not found: {missing}")

    output_path = Path(output_path) if output_path is not None else None
    existing: Dict[str, str] = {}
    if config.resume and output_path is not None:
        existing = load_existing_results(output_path, columns)

    results: Dict[int, str] = {}
    tasks: List[BoardTask] = []
    reused = 0
    for idx, row in df.iterrows():
        prev = existing.get(_cell(row, columns.ref), '')
        if prev and not prev.startswith(ERROR_PREFIX):
            results[idx] = prev
            reused += 1
            continue
        try:
            task = extract_task(idx, row, columns)
        except DdAnalysisError as e:
            results[idx] = f"{ERROR_PREFIX} {e}"
            continue
        if task is not None:
            tasks.append(task)

    out = df.copy()

    def _snapshot() -> pd.DataFrame:
        out[columns.output] = [results.get(idx, '') for idx in out.index]
        return out

    if verbose:
        print(f"[INFO] {len(df)} rows, {len(tasks)} need DD analysis ({reused} reused from previous run)")

    n_errors = 0
    chunk = config.checkpoint_interval
    pool = ProcessPoolExecutor(max_workers=config.threads) if config.threads != 1 and tasks else None
    try:
        with tqdm(total=len(tasks), desc='DD analysis', disable=not verbose) as pbar:
            for start in range(0, len(tasks), chunk):
                batch = tasks[start:start + chunk]
                modes = [config.mode] * len(batch)
                solvers = [config.solver] * len(batch)
                if pool is None:
                    outputs = map(analyze_task, batch, modes, solvers)
                else:
                    outputs = pool.map(analyze_task, batch, modes, solvers)

                for task, result in zip(batch, outputs):
                    results[task.row] = result
                    if result.startswith(ERROR_PREFIX):
                        n_errors += 1
                        if verbose:
                            tqdm.write(f"[WARN] Row {task.row} (ref {task.ref}): {result}")
                    pbar.update(1)

                if output_path is not None:
                    _write_atomic(_snapshot(), output_path)
    finally:
        if pool is not None:
            pool.shutdown()

    out = _snapshot()
    if output_path is not None:
        _write_atomic(out, output_path)
        if verbose:
            print(f"[OK] Saved DD analysis to {output_path}")
    if verbose:
        print(f"[OK] Analyzed {len(tasks)} boards ({n_errors} errors)")
    return out
