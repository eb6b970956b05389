"""
Double-dummy solver boundary.

The search itself is external. A backend only has to answer two questions:
- solve(hands, trump, leader): NS tricks from a position at a trick boundary
- solve_mid_trick(hands, trump, partial): NS tricks with 1-3 cards already on
  the table (counting the trick in progress)

EndplaySolver wraps the DDS library through endplay (the binding the bridge
notebooks in this ecosystem use for calc_dd_table / solve_board). Any other
search engine can be dropped in by subclassing DoubleDummySolver and
registering it.
"""
from typing import Callable, Dict, Optional, Type, Union

from ..errors import SolverConstructionError, SolverError, SolverUnavailable
from ..model.cards import Card, Seat
from ..model.constants import RANK_CHARS
from ..model.deal import Hands
from ..model.trick import PartialTrick


class DoubleDummySolver:
    """Interface for double-dummy backends. Values are always NS tricks."""

    name = "base"

    def solve(self, hands: Hands, trump: Optional[str], leader: Seat) -> int:
        raise NotImplementedError

    def solve_mid_trick(self, hands: Hands, trump: Optional[str],
                        partial: PartialTrick) -> int:
        raise NotImplementedError


class EndplaySolver(DoubleDummySolver):
    """DDS via endplay.dds.solve_board."""

    name = "endplay"

    def __init__(self):
        try:
            from endplay.dds import solve_board
            from endplay.types import Card as EpCard, Deal as EpDeal, Denom, Player, Rank
        except ImportError as e:
            raise SolverUnavailable(
                "endplay is not installed. Install via: pip install endplay"
            ) from e

        self._solve_board = solve_board
        self._EpCard = EpCard
        self._EpDeal = EpDeal
        self._Rank = Rank
        self._players = {
            Seat.N: Player.north, Seat.E: Player.east,
            Seat.S: Player.south, Seat.W: Player.west,
        }
        self._denoms = {
            'S': Denom.spades, 'H': Denom.hearts,
            'D': Denom.diamonds, 'C': Denom.clubs, None: Denom.nt,
        }

    def _card(self, card: Card):
        return self._EpCard(suit=self._denoms[card.suit],
                            rank=self._Rank[f"R{RANK_CHARS[card.rank]}"])

    def _deal(self, hands: Hands, trump: Optional[str], first: Seat):
        return self._EpDeal(hands.to_pbn(Seat.N),
                            first=self._players[first],
                            trump=self._denoms[trump])

    def _ns_tricks(self, deal, remaining: int, to_move: Seat) -> int:
        # solve_board scores each legal card for the side to move
        try:
            best = max(tricks for _, tricks in self._solve_board(deal))
        except (RuntimeError, ValueError) as e:
            raise SolverError(f"DDS failed: {e}") from e
        return best if to_move.is_ns else remaining - best

    def solve(self, hands: Hands, trump: Optional[str], leader: Seat) -> int:
        deal = self._deal(hands, trump, leader)
        return self._ns_tricks(deal, hands.max_size(), leader)

    def solve_mid_trick(self, hands: Hands, trump: Optional[str],
                        partial: PartialTrick) -> int:
        if not partial or partial.is_complete:
            raise SolverConstructionError(f"No mid-trick position for {partial!r}")

        # Rebuild the trick-start position, then replay the cards on the table
        start = hands.copy()
        for seat, card in partial.plays:
            start.add(seat, card)
        if len(set(start.sizes())) != 1:
            raise SolverConstructionError(f"Inconsistent hand sizes {hands.sizes()} for {partial!r}")

        deal = self._deal(start, trump, partial.leader)
        try:
            for _, card in partial.plays:
                deal.play(self._card(card))
        except (RuntimeError, ValueError) as e:
            raise SolverConstructionError(f"Could not replay {partial!r}: {e}") from e
        return self._ns_tricks(deal, hands.max_size(), partial.next_seat)


SOLVERS: Dict[str, Type[DoubleDummySolver]] = {
    EndplaySolver.name: EndplaySolver,
}

SolverLike = Union[str, Type[DoubleDummySolver], Callable[[], DoubleDummySolver], DoubleDummySolver]


def register_solver(name: str, solver_cls: Type[DoubleDummySolver]) -> None:
    SOLVERS[name] = solver_cls


def get_solver(solver: SolverLike = "endplay") -> DoubleDummySolver:
    """
    Resolve a solver name, class or instance into a backend instance.

    Args:
        solver: registered name, a DoubleDummySolver subclass / factory, or an
              instance (returned as is)
    """
    if isinstance(solver, DoubleDummySolver):
        return solver
    if isinstance(solver, str):
        if solver not in SOLVERS:
            raise ValueError(f"Unknown solver: {solver!r} (available: {sorted(SOLVERS)})")
        return SOLVERS[solver]()
    return solver()
