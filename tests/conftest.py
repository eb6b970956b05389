"""
Shared fixtures: small endings and a brute-force double-dummy solver.

MinimaxSolver searches every legal line (following suit) with a
transposition table, which is fast enough for the 3-4 card endings used
throughout the tests.
"""
import os
import sys

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from ddaudit.errors import SolverConstructionError  # noqa: E402
from ddaudit.model import Contract, Deal, PartialTrick, Seat  # noqa: E402
from ddaudit.solver import DoubleDummySolver  # noqa: E402


class MinimaxSolver(DoubleDummySolver):
    """Exhaustive NS-tricks search. Counts the trick in progress."""

    name = "minimax"

    def __init__(self):
        self.calls = 0

    def solve(self, hands, trump, leader):
        self.calls += 1
        return self._search(hands.copy(), trump, PartialTrick(), leader, {})

    def solve_mid_trick(self, hands, trump, partial):
        if not partial or partial.is_complete:
            raise SolverConstructionError(f"No mid-trick position for {partial!r}")
        self.calls += 1
        return self._search(hands.copy(), trump, partial.copy(), partial.next_seat, {})

    def _search(self, hands, trump, partial, to_move, memo):
        if partial.is_complete:
            winner = partial.winner(trump)
            won = 1 if winner.is_ns else 0
            if hands.is_empty():
                return won
            return won + self._search(hands, trump, PartialTrick(), winner, memo)

        key = (hands.key(), partial.key(), int(to_move))
        if key in memo:
            return memo[key]

        held = sorted(hands[to_move], key=lambda c: c.index)
        if partial and any(c.suit == partial.led_suit for c in held):
            held = [c for c in held if c.suit == partial.led_suit]

        values = []
        for card in held:
            hands.remove(to_move, card)
            partial.add(to_move, card)
            values.append(self._search(hands, trump, partial, to_move.next(), memo))
            partial.plays.pop()
            hands.add(to_move, card)

        best = max(values) if to_move.is_ns else min(values)
        memo[key] = best
        return best


class ScriptedSolver(DoubleDummySolver):
    """Returns a fixed NS value per number of cards left (trick boundaries only)."""

    name = "scripted"

    def __init__(self, values):
        self.values = values

    def solve(self, hands, trump, leader):
        return self.values[hands.total()]

    def solve_mid_trick(self, hands, trump, partial):
        raise SolverConstructionError("scripted solver has no mid-trick values")


# N: SA SK S3 H2   E: H5 H4 D4 D3   S: SQ S2 HA D2   W: SJ ST S9 H3
BLOCKED_SPADES_PBN = "N:AK3.2.. .54.43. Q2.A.2. JT9.3.."
OPTIMAL_LINE = "H3 H2 H5 HA|SQ S9 S3 D3|S2 ST SA D4|SK H4 D2 SJ"
# Leading the S2 first blocks the spades: one trick lost
BLOCKING_LINE = "H3 H2 H5 HA|S2 S9 SA D3|SK D4 SQ ST|S3 H4 D2 SJ"
# East declaring: South leads the blocking S2, East later discards the D4
EW_DECLARER_LINE = "S2 S9 SA D3|SK D4 SQ ST|H2 H5 HA H3|D2 SJ S3 H4"

# N: SQ H7 D5   E: SA H4 D2   S: S3 H5 DA   W: S2 H6 D6
THREE_CARD_PBN = "N:Q.7.5. A.4.2. 3.5.A. 2.6.6."
TWO_TRICKS = "D2 DA D6 D5|S3 S2 SQ SA"

NAMES = {Seat.N: 'Alice', Seat.E: 'Carol', Seat.S: 'Bob', Seat.W: 'Dave'}


@pytest.fixture
def solver():
    return MinimaxSolver()


@pytest.fixture
def blocked_deal():
    return Deal.from_pbn(BLOCKED_SPADES_PBN)


@pytest.fixture
def nt_by_south():
    return Contract.parse("1NT", "S")


@pytest.fixture
def names():
    return dict(NAMES)
