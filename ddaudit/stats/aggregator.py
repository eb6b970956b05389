"""
Per-player aggregation of double-dummy costs.

Every card's cost is charged to one player in one role:
- declaring: the declarer (dummy's cards included)
- defending: the defender who played the card

Independently, each of the four seated players is credited one declaring or
defending deal per board. Player names are case-insensitive.

Key functions:
- StatsAggregator.add_board: fold a BoardAnalysis
- StatsAggregator.add_table: fold a saved batch output table (no solver needed)
- StatsAggregator.field: merged baseline of everyone but the excluded players
"""
from dataclasses import asdict, dataclass, fields
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from ..analysis.attribution import BoardAnalysis, DdCostRecord, parse_costs, records_from_costs
from ..analysis.batch import BoardTask, ColumnConfig, extract_task
from ..errors import DdAnalysisError
from ..model.cardplay import parse_cardplay
from ..model.cards import Seat
from ..model.constants import ERROR_PREFIX
from ..model.contract import Contract
from ..model.deal import Deal

ROLES = ('declaring', 'defending')
FIELD_NAME = 'FIELD'


@dataclass
class PlayerStats:
    """Running counters for one player."""
    name: str
    declaring_plays: int = 0
    declaring_errors: int = 0
    declaring_total_cost: int = 0
    declaring_deals: int = 0
    defending_plays: int = 0
    defending_errors: int = 0
    defending_total_cost: int = 0
    defending_deals: int = 0

    @staticmethod
    def _role(role: str) -> str:
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role!r} (expected one of {ROLES})")
        return role

    def plays(self, role: str) -> int:
        return getattr(self, f"{self._role(role)}_plays")

    def errors(self, role: str) -> int:
        return getattr(self, f"{self._role(role)}_errors")

    def total_cost(self, role: str) -> int:
        return getattr(self, f"{self._role(role)}_total_cost")

    def deals(self, role: str) -> int:
        return getattr(self, f"{self._role(role)}_deals")

    def error_rate(self, role: str) -> float:
        """Fraction of plays with cost > 0 (0.0 with no plays)."""
        plays = self.plays(role)
        return self.errors(role) / plays if plays else 0.0

    def avg_cost(self, role: str) -> float:
        plays = self.plays(role)
        return self.total_cost(role) / plays if plays else 0.0

    @property
    def total_deals(self) -> int:
        return self.declaring_deals + self.defending_deals

    def record_play(self, declaring: bool, cost: int) -> None:
        role = ROLES[0] if declaring else ROLES[1]
        setattr(self, f"{role}_plays", self.plays(role) + 1)
        setattr(self, f"{role}_total_cost", self.total_cost(role) + cost)
        if cost > 0:
            setattr(self, f"{role}_errors", self.errors(role) + 1)

    def merge(self, other: "PlayerStats") -> "PlayerStats":
        """Add every counter of `other` into this block (in place)."""
        for f in fields(self):
            if f.name != 'name':
                setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
        return self

    def copy(self, name: Optional[str] = None) -> "PlayerStats":
        data = asdict(self)
        if name is not None:
            data['name'] = name
        return PlayerStats(**data)

    def to_dict(self) -> Dict:
        return asdict(self)


class StatsAggregator:
    """
    Case-insensitive player -> PlayerStats map, filled board by board.

    Attributes:
        players: lowercased name -> PlayerStats
        processed: boards folded in
        skipped: boards excluded (no analysis, error sentinel, bad row)
    """

    def __init__(self):
        self.players: Dict[str, PlayerStats] = {}
        self.processed = 0
        self.skipped = 0

    @staticmethod
    def key(name: str) -> str:
        return (name or '').strip().lower()

    def _stats(self, name: str) -> Optional[PlayerStats]:
        key = self.key(name)
        if not key:
            return None
        if key not in self.players:
            self.players[key] = PlayerStats(key)
        return self.players[key]

    def __len__(self) -> int:
        return len(self.players)

    def __contains__(self, name: str) -> bool:
        return self.key(name) in self.players

    def __getitem__(self, name: str) -> PlayerStats:
        return self.players[self.key(name)]

    def add_records(self, records: Iterable[DdCostRecord], contract: Contract,
                    seat_names: Mapping[Seat, str]) -> None:
        """Fold one board's cost records and credit the four seated players a deal."""
        for rec in records:
            stats = self._stats(rec.player)
            if stats is not None:
                stats.record_play(rec.declaring_side, rec.cost)

        for seat in Seat:
            stats = self._stats(seat_names.get(seat, ''))
            if stats is None:
                continue
            if contract.is_declaring_side(seat):
                stats.declaring_deals += 1
            else:
                stats.defending_deals += 1
        self.processed += 1

    def add_board(self, analysis: Optional[BoardAnalysis]) -> None:
        if analysis is None:
            self.skipped += 1
            return
        self.add_records(analysis.records, analysis.contract, analysis.seat_names)

    def add_result(self, deal: Deal, contract: Contract, cardplay: str, cost_string: str,
                   names: Mapping[Seat, str]) -> bool:
        """
        Fold a stored cost string for one board.

        Returns:
            False (board counted as skipped) if the result is absent or errored
        """
        if not cost_string or cost_string.startswith(ERROR_PREFIX):
            self.skipped += 1
            return False
        tricks = parse_cardplay(cardplay)
        records = records_from_costs(deal, contract, tricks, parse_costs(cost_string), names)
        self.add_records(records, contract, names)
        return True

    def add_task(self, task: BoardTask, cost_string: str) -> bool:
        names = {Seat(i): name for i, name in enumerate(task.names)}
        return self.add_result(
            Deal.from_pbn(task.deal_pbn),
            Contract.parse(task.contract, task.declarer),
            task.cardplay, cost_string, names,
        )

    def add_table(self, df: pd.DataFrame, columns: Optional[ColumnConfig] = None,
                  verbose: bool = False) -> "StatsAggregator":
        """
        Fold every row of a batch output table.

        Rows without an analysis, with an error sentinel, or whose stored
        costs do not replay against the row's deal are counted as skipped.
        """
        columns = columns or ColumnConfig()
        if columns.output not in df.columns:
            raise ValueError(f"Column {columns.output!r} not found - run the DD analysis first")

        for idx, row in df.iterrows():
            value = row[columns.output]
            cost_string = '' if pd.isna(value) else str(value).strip()
            try:
                task = extract_task(idx, row, columns)
                if task is None:
                    self.skipped += 1
                    continue
                self.add_task(task, cost_string)
            except (DdAnalysisError, ValueError) as e:
                self.skipped += 1
                if verbose:
                    print(f"[WARN] Row {idx}: skipped ({e})")

        if verbose:
            print(f"[OK] Processed {self.processed} deals ({self.skipped} skipped), "
                  f"{len(self.players)} unique players")
        return self

    def merge(self, other: "StatsAggregator") -> "StatsAggregator":
        for key, stats in other.players.items():
            if key in self.players:
                self.players[key].merge(stats)
            else:
                self.players[key] = stats.copy()
        self.processed += other.processed
        self.skipped += other.skipped
        return self

    def most_frequent(self, n: Optional[int] = None) -> List[PlayerStats]:
        """Players ordered by total deals (most first), ties by name."""
        ranked = sorted(self.players.values(), key=lambda s: (-s.total_deals, s.name))
        return ranked if n is None else ranked[:n]

    def field(self, exclude: Sequence[str] = (), name: str = FIELD_NAME) -> PlayerStats:
        """Merged stats of every player not in `exclude`."""
        excluded = {self.key(n) for n in exclude}
        baseline = PlayerStats(name)
        for key, stats in self.players.items():
            if key not in excluded:
                baseline.merge(stats)
        return baseline

    def to_frame(self) -> pd.DataFrame:
        """Raw counters, one row per player, most frequent first."""
        rows = [s.to_dict() for s in self.most_frequent()]
        return pd.DataFrame(rows, columns=[f.name for f in fields(PlayerStats)])
