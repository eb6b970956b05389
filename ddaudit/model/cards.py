"""
Seats, partnerships and cards.

Key types:
- Seat: N/E/S/W as an IntEnum (clockwise, so ``seat.next()`` is LHO)
- Card: (suit letter, rank 2..14) named tuple
- parse_card: strict 2-character token parser ("SA", "D2", "CT")
"""
from enum import IntEnum
from typing import NamedTuple

from ..errors import CardParseError
from .constants import (
    RANK_CHARS,
    RANK_VALUES,
    SEAT_ORDER,
    SUIT_INDICES,
)


class Seat(IntEnum):
    N = 0
    E = 1
    S = 2
    W = 3

    @classmethod
    def parse(cls, text: str) -> "Seat":
        """Parse 'N', 'north', 'S ' etc. Raises ValueError on anything else."""
        letter = str(text).strip().upper()[:1]
        if letter not in SEAT_ORDER:
            raise ValueError(f"Invalid seat: {text!r}")
        return cls(SEAT_ORDER.index(letter))

    def next(self) -> "Seat":
        return Seat((self + 1) % 4)

    def partner(self) -> "Seat":
        return Seat((self + 2) % 4)

    @property
    def is_ns(self) -> bool:
        return self in (Seat.N, Seat.S)

    @property
    def partnership(self) -> str:
        return 'NS' if self.is_ns else 'EW'

    def same_side(self, other: "Seat") -> bool:
        return self.is_ns == other.is_ns

    def __str__(self) -> str:
        return self.name


class Card(NamedTuple):
    suit: str
    rank: int

    @property
    def index(self) -> int:
        return SUIT_INDICES[self.suit] * 13 + (self.rank - 2)

    def __str__(self) -> str:
        return f"{self.suit}{RANK_CHARS[self.rank]}"


def parse_card(token: str) -> Card:
    """
    Parse a recorded-play card token.

    The token must be exactly a suit letter followed by a rank symbol
    (case-insensitive): "SA", "h7", "DT". "10" is not accepted as a rank.

    Raises:
        CardParseError: for anything else
    """
    text = token.strip().upper()
    if len(text) != 2:
        raise CardParseError(f"Invalid card: {token!r}")
    suit, rank = text[0], text[1]
    if suit not in SUIT_INDICES:
        raise CardParseError(f"Invalid suit in card {token!r}")
    if rank not in RANK_VALUES:
        raise CardParseError(f"Invalid rank in card {token!r}")
    return Card(suit, RANK_VALUES[rank])
