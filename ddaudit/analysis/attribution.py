"""
Double-dummy cost attribution.

For every card played, compare the declaring side's double-dummy total
(tricks banked + tricks still available) before and after the card:

- declaring side (declarer or dummy): cost = max(0, before - after),
  charged to declarer
- defender: cost = max(0, after - before), charged to the acting defender

Key functions:
- CostAttributor.analyze: run one board, returns a BoardAnalysis
- analyze_board: convenience wrapper taking raw strings
- format_costs / parse_costs: compact "T1:0,0,1,0|T2:..." cost strings
- records_from_costs: rebuild records from a stored cost string (no solver)
"""
import re
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..model.cardplay import parse_cardplay
from ..model.cards import Card, Seat
from ..model.constants import CARDS_PER_TRICK, ERROR_PREFIX
from ..model.contract import Contract
from ..model.deal import Deal
from ..solver.backends import SolverLike
from ..solver.caches import BoardCaches
from ..solver.evaluator import PositionEvaluator
from .sequencer import CardplaySequencer, PlayEvent

_TRICK_COSTS_RE = re.compile(r'^T(\d+):([\d,\s]*)$')


class AnalysisMode(str, Enum):
    """Granularity of the double-dummy evaluation."""
    MID_TRICK = 'mid_trick'              # one solve per card (canonical)
    TRICK_BOUNDARY = 'trick_boundary'    # one solve per trick, heuristic blame

    @classmethod
    def parse(cls, value: Union[str, "AnalysisMode"]) -> "AnalysisMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower().replace('-', '_'))
        except ValueError:
            raise ValueError(
                f"Unknown analysis mode: {value!r} (expected one of {[m.value for m in cls]})"
            ) from None


@dataclass(frozen=True)
class DdCostRecord:
    """Cost of one card, attributed to the responsible player."""
    player: str
    seat: Seat              # seat that physically played the card
    trick_num: int
    position: int
    card: Card
    cost: int
    declaring_side: bool

    @property
    def is_error(self) -> bool:
        return self.cost > 0


@dataclass
class BoardAnalysis:
    contract: Contract
    mode: AnalysisMode
    initial_dd: int                 # declarer-space DD value before the lead
    final_tricks: int               # tricks actually won by the declaring side
    records: List[DdCostRecord] = field(default_factory=list)
    seat_names: Dict[Seat, str] = field(default_factory=dict)
    complete: bool = True           # every card of the deal was played
    cache_stats: Dict[str, float] = field(default_factory=dict)

    @property
    def declarer(self) -> Seat:
        return self.contract.declarer

    def cost_groups(self) -> List[List[int]]:
        """Costs grouped per trick, in play order."""
        groups: List[List[int]] = []
        for rec in self.records:
            if rec.trick_num > len(groups):
                groups.append([])
            groups[-1].append(rec.cost)
        return groups

    def to_cost_string(self) -> str:
        return format_costs(self.cost_groups())

    @property
    def declaring_cost(self) -> int:
        return sum(r.cost for r in self.records if r.declaring_side)

    @property
    def defending_cost(self) -> int:
        return sum(r.cost for r in self.records if not r.declaring_side)

    def errors_by_player(self) -> Dict[str, int]:
        counts: Dict[str, int] = defaultdict(int)
        for rec in self.records:
            counts[rec.player] += int(rec.is_error)
        return dict(counts)

    def cost_by_player(self) -> Dict[str, int]:
        totals: Dict[str, int] = defaultdict(int)
        for rec in self.records:
            totals[rec.player] += rec.cost
        return dict(totals)

    def reconciles(self) -> bool:
        """
        initial_dd - declaring costs + defending costs == final_tricks.

        Holds exactly in MID_TRICK mode for a fully played board; partial
        boards and TRICK_BOUNDARY mode are not checked (always True).
        """
        if not self.complete or self.mode is not AnalysisMode.MID_TRICK:
            return True
        return self.initial_dd - self.declaring_cost + self.defending_cost == self.final_tricks


def format_costs(groups: Sequence[Sequence[int]]) -> str:
    """[[0, 0, 1, 0], [0, 0]] -> "T1:0,0,1,0|T2:0,0" """
    return '|'.join(
        f"T{i + 1}:" + ','.join(str(int(c)) for c in costs)
        for i, costs in enumerate(groups)
    )


def parse_costs(text: str) -> List[List[int]]:
    """
    Inverse of format_costs.

    Raises:
        ValueError: error sentinel, malformed group or out-of-order trick numbers
    """
    text = (text or '').strip()
    if text.startswith(ERROR_PREFIX):
        raise ValueError(f"Board was not analyzed: {text}")
    if not text:
        return []

    groups = []
    for i, part in enumerate(text.split('|')):
        match = _TRICK_COSTS_RE.match(part.strip())
        if match is None or int(match.group(1)) != i + 1:
            raise ValueError(f"Malformed cost group {part!r}")
        costs = [int(c) for c in match.group(2).split(',') if c.strip()]
        if not 1 <= len(costs) <= CARDS_PER_TRICK:
            raise ValueError(f"Cost group {part!r} must hold 1-4 costs")
        groups.append(costs)
    return groups


def _seat_names(names: Optional[Mapping[Seat, str]]) -> Dict[Seat, str]:
    if names is None:
        return {seat: seat.name for seat in Seat}
    return {seat: (names.get(seat) or '') for seat in Seat}


def _record(event: PlayEvent, contract: Contract, names: Dict[Seat, str], cost: int) -> DdCostRecord:
    declaring = contract.is_declaring_side(event.seat)
    responsible = contract.declarer if declaring else event.seat
    return DdCostRecord(
        player=names[responsible],
        seat=event.seat,
        trick_num=event.trick_num,
        position=event.position,
        card=event.card,
        cost=cost,
        declaring_side=declaring,
    )


class CostAttributor:
    """
    Per-card cost attribution for one solver backend.

    Example:
        >>> attributor = CostAttributor(PositionEvaluator("endplay"))
        >>> result = attributor.analyze(deal, contract, parse_cardplay(play))
        >>> result.to_cost_string()
        'T1:0,0,0,0|T2:0,1,0,0|...'
    """

    def __init__(self, evaluator: PositionEvaluator,
                 mode: Union[str, AnalysisMode] = AnalysisMode.MID_TRICK):
        self.evaluator = evaluator
        self.mode = AnalysisMode.parse(mode)

    def _value(self, seq: CardplaySequencer, caches: BoardCaches) -> int:
        """Declaring side's DD total (banked + available) at the current position."""
        hands = seq.hands
        if hands.is_empty():
            return seq.declarer_tricks

        remaining = self.evaluator.remaining_tricks(hands)
        if seq.at_trick_boundary:
            ns = self.evaluator.evaluate_full(hands, seq.trump, seq.leader, caches)
        else:
            ns = self.evaluator.evaluate_partial(hands, seq.trump, seq.partial, caches)
        available = self.evaluator.to_declarer(ns, remaining, seq.contract.declarer_is_ns)
        return seq.declarer_tricks + available

    def analyze(self, deal: Deal, contract: Contract, tricks: List[List[Card]],
                names: Optional[Mapping[Seat, str]] = None) -> BoardAnalysis:
        """
        Attribute costs for every card of a recorded board.

        Args:
            deal: source deal
            contract: contract with declarer
            tricks: parsed cardplay (see parse_cardplay)
            names: seat -> player name; seat letters are used when omitted

        Returns:
            BoardAnalysis with one DdCostRecord per card played

        Raises:
            InvalidPlayError: a card not held by the seat to act
            SolverUnavailable: the solver could not evaluate a position
        """
        seq = CardplaySequencer(deal, contract)
        caches = BoardCaches()
        seat_names = _seat_names(names)

        initial = self._value(seq, caches)
        if self.mode is AnalysisMode.MID_TRICK:
            records = self._mid_trick(seq, caches, tricks, initial, seat_names)
        else:
            records = self._trick_boundary(seq, caches, tricks, initial, seat_names)

        return BoardAnalysis(
            contract=contract,
            mode=self.mode,
            initial_dd=initial,
            final_tricks=seq.declarer_tricks,
            records=records,
            seat_names=seat_names,
            complete=seq.hands.is_empty(),
            cache_stats=caches.stats(),
        )

    def _mid_trick(self, seq, caches, tricks, initial, names) -> List[DdCostRecord]:
        records = []
        before = initial
        for trick in tricks:
            for card in trick:
                event = seq.play(card)
                after = self._value(seq, caches)
                if seq.contract.is_declaring_side(event.seat):
                    cost = max(0, before - after)
                else:
                    cost = max(0, after - before)
                records.append(_record(event, seq.contract, names, cost))
                before = after
        return records

    def _trick_boundary(self, seq, caches, tricks, initial, names) -> List[DdCostRecord]:
        contract = seq.contract
        records = []
        before = initial
        for trick in tricks:
            events = [seq.play(card) for card in trick]
            costs = [0] * len(events)

            if len(events) == CARDS_PER_TRICK:
                after = self._value(seq, caches)
                delta = after - before
                declaring = [contract.is_declaring_side(e.seat) for e in events]
                if delta < 0:
                    costs[declaring.index(True)] = -delta
                elif delta > 0:
                    costs[0 if not declaring[0] else declaring.index(False)] = delta
                before = after

            records.extend(_record(e, contract, names, c) for e, c in zip(events, costs))
        return records


def analyze_board(deal: Union[str, Deal], contract: str, declarer: str, cardplay: str,
                  names: Optional[Mapping[Seat, str]] = None,
                  solver: SolverLike = "endplay",
                  mode: Union[str, AnalysisMode] = AnalysisMode.MID_TRICK) -> BoardAnalysis:
    """
    Parse raw board fields and analyze them.

    Args:
        deal: PBN deal string or a Deal
        contract: contract string ("4S", "3NTX", ...)
        declarer: declarer seat ("S", "South", ...)
        cardplay: recorded play, tricks separated by '|'
        names: seat -> player name
        solver: solver name, class or instance
        mode: AnalysisMode or its value
    """
    if not isinstance(deal, Deal):
        deal = Deal.from_pbn(deal)
    parsed_contract = Contract.parse(contract, declarer)
    tricks = parse_cardplay(cardplay)
    attributor = CostAttributor(PositionEvaluator(solver), mode)
    return attributor.analyze(deal, parsed_contract, tricks, names)


def records_from_costs(deal: Deal, contract: Contract, tricks: List[List[Card]],
                       cost_groups: Sequence[Sequence[int]],
                       names: Optional[Mapping[Seat, str]] = None) -> List[DdCostRecord]:
    """
    Rebuild DdCostRecords from stored per-trick costs.

    The cardplay is replayed through the sequencer to recover who played each
    card, so no solver is needed.

    Raises:
        ValueError: cost groups do not line up with the cardplay
        InvalidPlayError: the cardplay does not fit the deal
    """
    if len(cost_groups) != len(tricks) or any(
            len(c) != len(t) for c, t in zip(cost_groups, tricks)):
        raise ValueError(
            f"Cost groups {[len(c) for c in cost_groups]} do not match "
            f"cardplay {[len(t) for t in tricks]}"
        )

    seq = CardplaySequencer(deal, contract)
    seat_names = _seat_names(names)
    records = []
    for trick, costs in zip(tricks, cost_groups):
        for card, cost in zip(trick, costs):
            event = seq.play(card)
            records.append(_record(event, contract, seat_names, int(cost)))
    return records
