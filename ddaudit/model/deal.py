"""
Deal (immutable source snapshot) and Hands (mutable working copy).

A Deal is parsed once per board from PBN notation ("N:AKQ.xx.xx.xx ...") or
from four per-seat "S.H.D.C" holdings. Hands is the working copy that the
cardplay replay mutates; it only ever loses cards, so at any point
working cards are a subset of the source deal.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Tuple, Union

from ..errors import DealParseError
from .cards import Card, Seat
from .constants import MAX_TRICKS, RANK_CHARS, RANK_VALUES, SUIT_ORDER


def parse_holding(text: str) -> FrozenSet[Card]:
    """
    Parse one hand in "S.H.D.C" order, e.g. "AK3.QJ2.-.T98765".

    A void may be written as "-" or left empty; "10" is accepted for the ten.
    """
    parts = text.strip().upper().replace('10', 'T').split('.')
    if len(parts) != 4:
        raise DealParseError(f"Hand must have 4 suits separated by '.': {text!r}")

    cards = set()
    for suit, ranks in zip(SUIT_ORDER, parts):
        for ch in ranks.strip():
            if ch == '-':
                continue
            if ch not in RANK_VALUES:
                raise DealParseError(f"Invalid rank {ch!r} in hand {text!r}")
            card = Card(suit, RANK_VALUES[ch])
            if card in cards:
                raise DealParseError(f"Duplicate card {card} in hand {text!r}")
            cards.add(card)
    return frozenset(cards)


def format_holding(cards: Iterable[Card]) -> str:
    """Inverse of parse_holding (ranks high to low, empty suit for a void)."""
    by_suit: Dict[str, List[int]] = {s: [] for s in SUIT_ORDER}
    for card in cards:
        by_suit[card.suit].append(card.rank)
    return '.'.join(
        ''.join(RANK_CHARS[r] for r in sorted(by_suit[s], reverse=True))
        for s in SUIT_ORDER
    )


class Hands:
    """Mutable per-seat card sets, indexed by Seat."""

    def __init__(self, holdings: Sequence[Iterable[Card]]):
        if len(holdings) != 4:
            raise ValueError(f"Expected 4 hands, got {len(holdings)}")
        self._cards = [set(h) for h in holdings]

    def __getitem__(self, seat: Seat) -> FrozenSet[Card]:
        return frozenset(self._cards[seat])

    def holds(self, seat: Seat, card: Card) -> bool:
        return card in self._cards[seat]

    def remove(self, seat: Seat, card: Card) -> None:
        self._cards[seat].remove(card)

    def add(self, seat: Seat, card: Card) -> None:
        self._cards[seat].add(card)

    def size(self, seat: Seat) -> int:
        return len(self._cards[seat])

    def sizes(self) -> List[int]:
        return [len(h) for h in self._cards]

    def total(self) -> int:
        return sum(self.sizes())

    def max_size(self) -> int:
        return max(self.sizes())

    def is_empty(self) -> bool:
        return self.total() == 0

    def key(self) -> Tuple[int, int, int, int]:
        """Compact distribution key: one 52-bit mask per seat."""
        return tuple(sum(1 << c.index for c in h) for h in self._cards)

    def copy(self) -> "Hands":
        return Hands(self._cards)

    def to_pbn(self, first: Seat = Seat.N) -> str:
        seats = [Seat((first + i) % 4) for i in range(4)]
        return f"{first.name}:" + ' '.join(format_holding(self._cards[s]) for s in seats)

    def __repr__(self) -> str:
        return f"Hands({self.to_pbn()!r})"


@dataclass(frozen=True)
class Deal:
    """Immutable source deal: four frozen hands indexed by Seat."""
    hands: Tuple[FrozenSet[Card], FrozenSet[Card], FrozenSet[Card], FrozenSet[Card]]

    def __post_init__(self):
        sizes = [len(h) for h in self.hands]
        if len(set(sizes)) != 1 or not 1 <= sizes[0] <= MAX_TRICKS:
            raise DealParseError(f"Hands must hold the same number of cards (1-13), got {sizes}")
        seen = set()
        for hand in self.hands:
            dup = seen & hand
            if dup:
                raise DealParseError(f"Card(s) dealt to more than one seat: {sorted(map(str, dup))}")
            seen |= hand

    @classmethod
    def from_pbn(cls, pbn: str) -> "Deal":
        """
        Parse PBN deal notation.

        Args:
            pbn: "N:<hand> <hand> <hand> <hand>", hands clockwise from the
                 named seat. Without a "X:" prefix the first hand is North.
        """
        text = pbn.strip()
        first = Seat.N
        if len(text) > 1 and text[1] == ':':
            try:
                first = Seat.parse(text[0])
            except ValueError:
                raise DealParseError(f"Invalid first seat in deal {pbn!r}") from None
            text = text[2:]

        parts = text.split()
        if len(parts) != 4:
            raise DealParseError(f"Deal must have 4 hands: {pbn!r}")

        hands: List[FrozenSet[Card]] = [frozenset()] * 4
        for i, part in enumerate(parts):
            hands[(first + i) % 4] = parse_holding(part)
        return cls(tuple(hands))

    @classmethod
    def from_holdings(cls, holdings: Mapping[Union[Seat, str], str]) -> "Deal":
        """Build a deal from {seat: "S.H.D.C"} for all four seats."""
        by_seat = {}
        for seat, text in holdings.items():
            try:
                key = seat if isinstance(seat, Seat) else Seat.parse(seat)
            except ValueError:
                raise DealParseError(f"Invalid seat {seat!r}") from None
            by_seat[key] = parse_holding(text)
        if len(by_seat) != 4:
            raise DealParseError(f"Need holdings for all 4 seats, got {sorted(s.name for s in by_seat)}")
        return cls(tuple(by_seat[s] for s in Seat))

    @property
    def hand_size(self) -> int:
        return len(self.hands[0])

    def holder_of(self, card: Card) -> Seat:
        for seat in Seat:
            if card in self.hands[seat]:
                return seat
        raise KeyError(str(card))

    def working_copy(self) -> Hands:
        return Hands(self.hands)

    def to_pbn(self, first: Seat = Seat.N) -> str:
        return self.working_copy().to_pbn(first)
