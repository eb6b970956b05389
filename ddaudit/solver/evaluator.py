"""
Position evaluation through an external double-dummy solver.

Key functions:
- PositionEvaluator.evaluate_full: NS tricks from a trick boundary
- PositionEvaluator.evaluate_partial: NS tricks with a trick in progress
- PositionEvaluator.to_declarer: translate NS tricks into declarer space
"""
from typing import Optional

from ..errors import SolverConstructionError, SolverError, SolverUnavailable
from ..model.cards import Seat
from ..model.deal import Hands
from ..model.trick import PartialTrick
from .backends import DoubleDummySolver, SolverLike, get_solver
from .caches import BoardCaches


class PositionEvaluator:
    """
    Answers "how many tricks can NS take from here" for one solver backend.

    The evaluator is stateless apart from the solver; callers own the
    BoardCaches and pass the same instance for every query on a board.
    """

    def __init__(self, solver: SolverLike = "endplay"):
        self.solver: DoubleDummySolver = get_solver(solver)

    @staticmethod
    def remaining_tricks(hands: Hands) -> int:
        """Tricks still to be played (largest remaining hand)."""
        return hands.max_size()

    @staticmethod
    def to_declarer(ns_tricks: int, remaining: int, declarer_is_ns: bool) -> int:
        return ns_tricks if declarer_is_ns else remaining - ns_tricks

    def evaluate_full(self, hands: Hands, trump: Optional[str], leader: Seat,
                      caches: BoardCaches) -> int:
        """
        NS tricks from a position where `leader` is on lead to a fresh trick.

        Returns 0 when no cards remain.

        Raises:
            SolverUnavailable: the backend failed on this position
        """
        if hands.is_empty():
            return 0

        key = (hands.key(), trump, int(leader))
        cached = caches.full.get(key)
        if cached is not None:
            return cached

        try:
            ns = self.solver.solve(hands, trump, leader)
        except SolverError as e:
            raise SolverUnavailable(f"Solver failed with {leader.name} on lead: {e}") from e
        caches.full.store(key, ns)
        return ns

    def evaluate_partial(self, hands: Hands, trump: Optional[str],
                         partial: PartialTrick, caches: BoardCaches) -> int:
        """
        NS tricks with 1-3 cards of the current trick already played.

        The count includes the trick in progress. If the mid-trick position
        cannot be built, falls back to a full evaluation from the partial
        trick's leader, and to 0 when there is no leader to fall back to.

        Raises:
            SolverUnavailable: both the mid-trick solve and the fallback failed
        """
        key = (hands.key(), trump, partial.key())
        cached = caches.mid_trick.get(key)
        if cached is not None:
            return cached

        try:
            ns = self.solver.solve_mid_trick(hands, trump, partial)
        except SolverConstructionError:
            if partial.leader is None:
                return 0
            return self.evaluate_full(hands, trump, partial.leader, caches)
        except SolverError as e:
            raise SolverUnavailable(f"Mid-trick solve failed for {partial!r}: {e}") from e
        caches.mid_trick.store(key, ns)
        return ns
