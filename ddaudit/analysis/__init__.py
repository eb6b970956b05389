"""
Cardplay analysis.

Key components:
- sequencer: CardplaySequencer (card-by-card replay against a working deal)
- attribution: CostAttributor, BoardAnalysis, DdCostRecord, cost strings
- batch: analyze_table (parallel, checkpointed, resumable table analysis)
"""
from .sequencer import CardplaySequencer, PlayEvent
from .attribution import (
    AnalysisMode,
    BoardAnalysis,
    CostAttributor,
    DdCostRecord,
    analyze_board,
    format_costs,
    parse_costs,
    records_from_costs,
)
from .batch import BatchConfig, BoardTask, ColumnConfig, analyze_table, extract_task, load_existing_results

__all__ = [
    'CardplaySequencer',
    'PlayEvent',
    'AnalysisMode',
    'BoardAnalysis',
    'CostAttributor',
    'DdCostRecord',
    'analyze_board',
    'format_costs',
    'parse_costs',
    'records_from_costs',
    'BatchConfig',
    'BoardTask',
    'ColumnConfig',
    'analyze_table',
    'extract_task',
    'load_existing_results',
]
