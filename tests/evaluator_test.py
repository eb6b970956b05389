"""
Position Evaluator and Cache Tests
"""
import pytest

from ddaudit.errors import SolverConstructionError, SolverError, SolverUnavailable
from ddaudit.model import Card, PartialTrick, Seat
from ddaudit.solver import (
    BoardCaches,
    DoubleDummySolver,
    PositionEvaluator,
    TranspositionCache,
    get_solver,
)

from conftest import MinimaxSolver


class FallbackProbe(DoubleDummySolver):
    """Mid-trick construction always fails; records full solves."""

    name = "probe"

    def __init__(self, value=2):
        self.value = value
        self.leaders = []

    def solve(self, hands, trump, leader):
        self.leaders.append(leader)
        return self.value

    def solve_mid_trick(self, hands, trump, partial):
        raise SolverConstructionError("no mid-trick support")


class BrokenSolver(DoubleDummySolver):
    name = "broken"

    def solve(self, hands, trump, leader):
        raise SolverError("search failed")

    def solve_mid_trick(self, hands, trump, partial):
        raise SolverError("search failed")


def test_transposition_cache_counters():
    cache = TranspositionCache()
    assert cache.get(('k',)) is None
    cache.store(('k',), 3)
    assert cache.get(('k',)) == 3
    assert (cache.hits, cache.misses, len(cache)) == (1, 1, 1)
    assert cache.hit_rate == 0.5
    assert ('k',) in cache


def test_evaluate_full(blocked_deal, solver):
    evaluator = PositionEvaluator(solver)
    caches = BoardCaches()
    hands = blocked_deal.working_copy()

    assert evaluator.evaluate_full(hands, None, Seat.W, caches) == 4
    # East on lead cashes a diamond over South's D2
    assert evaluator.evaluate_full(hands, None, Seat.E, caches) == 3


def test_evaluate_full_uses_cache(blocked_deal, solver):
    evaluator = PositionEvaluator(solver)
    caches = BoardCaches()
    hands = blocked_deal.working_copy()

    first = evaluator.evaluate_full(hands, None, Seat.W, caches)
    second = evaluator.evaluate_full(hands, None, Seat.W, caches)
    assert first == second
    assert solver.calls == 1
    stats = caches.stats()
    assert stats['full_hits'] == 1
    assert stats['full_misses'] == 1
    assert stats['full_entries'] == 1


def test_evaluate_full_empty_hands_is_zero(blocked_deal):
    evaluator = PositionEvaluator(BrokenSolver())
    hands = blocked_deal.working_copy()
    for seat in Seat:
        for card in list(hands[seat]):
            hands.remove(seat, card)
    assert evaluator.evaluate_full(hands, None, Seat.N, BoardCaches()) == 0


def test_evaluate_partial_counts_trick_in_progress(blocked_deal, solver):
    evaluator = PositionEvaluator(solver)
    caches = BoardCaches()
    hands = blocked_deal.working_copy()

    # After the H3 lead North must follow with the H2 and South wins the HA
    hands.remove(Seat.W, Card('H', 3))
    partial = PartialTrick([(Seat.W, Card('H', 3))])
    assert evaluator.evaluate_partial(hands, None, partial, caches) == 4
    assert evaluator.remaining_tricks(hands) == 4
    assert caches.mid_trick.misses == 1

    evaluator.evaluate_partial(hands, None, partial, caches)
    assert caches.mid_trick.hits == 1


def test_evaluate_partial_falls_back_to_leader(blocked_deal):
    probe = FallbackProbe(value=2)
    evaluator = PositionEvaluator(probe)
    hands = blocked_deal.working_copy()
    hands.remove(Seat.W, Card('H', 3))
    partial = PartialTrick([(Seat.W, Card('H', 3))])

    assert evaluator.evaluate_partial(hands, None, partial, BoardCaches()) == 2
    assert probe.leaders == [Seat.W]


def test_evaluate_partial_without_leader_is_zero(blocked_deal, solver):
    evaluator = PositionEvaluator(solver)
    hands = blocked_deal.working_copy()
    assert evaluator.evaluate_partial(hands, None, PartialTrick(), BoardCaches()) == 0


def test_solver_failures_become_unavailable(blocked_deal):
    evaluator = PositionEvaluator(BrokenSolver())
    hands = blocked_deal.working_copy()
    with pytest.raises(SolverUnavailable):
        evaluator.evaluate_full(hands, None, Seat.W, BoardCaches())

    hands.remove(Seat.W, Card('H', 3))
    partial = PartialTrick([(Seat.W, Card('H', 3))])
    with pytest.raises(SolverUnavailable):
        evaluator.evaluate_partial(hands, None, partial, BoardCaches())


def test_fallback_failure_becomes_unavailable(blocked_deal):
    class NoMidTrickBroken(BrokenSolver):
        def solve_mid_trick(self, hands, trump, partial):
            raise SolverConstructionError("no mid-trick support")

    evaluator = PositionEvaluator(NoMidTrickBroken())
    hands = blocked_deal.working_copy()
    hands.remove(Seat.W, Card('H', 3))
    partial = PartialTrick([(Seat.W, Card('H', 3))])
    with pytest.raises(SolverUnavailable):
        evaluator.evaluate_partial(hands, None, partial, BoardCaches())


def test_to_declarer():
    assert PositionEvaluator.to_declarer(3, 4, True) == 3
    assert PositionEvaluator.to_declarer(3, 4, False) == 1


def test_get_solver_resolution():
    instance = MinimaxSolver()
    assert get_solver(instance) is instance
    assert isinstance(get_solver(MinimaxSolver), MinimaxSolver)
    with pytest.raises(ValueError):
        get_solver("no-such-solver")
