"""
Tricks in progress and trick-winner determination.
"""
from typing import List, Optional, Tuple

from .cards import Card, Seat
from .constants import CARDS_PER_TRICK


def trick_winner(plays: List[Tuple[Seat, Card]], trump: Optional[str]) -> Seat:
    """
    Seat winning a trick.

    Highest card of the led suit wins, a trump beats any non-trump, otherwise
    the card currently winning stands.

    Args:
        plays: (seat, card) pairs in play order, leader first
        trump: trump suit letter, or None for no-trump
    """
    win_seat, win_card = plays[0]
    for seat, card in plays[1:]:
        if card.suit == win_card.suit:
            beats = card.rank > win_card.rank
        else:
            beats = trump is not None and card.suit == trump
        if beats:
            win_seat, win_card = seat, card
    return win_seat


class PartialTrick:
    """Cards played so far in the current trick (0-4)."""

    def __init__(self, plays: Optional[List[Tuple[Seat, Card]]] = None):
        self.plays: List[Tuple[Seat, Card]] = list(plays or [])

    def add(self, seat: Seat, card: Card) -> None:
        if self.is_complete:
            raise ValueError("Trick already has 4 cards")
        self.plays.append((seat, card))

    @property
    def leader(self) -> Optional[Seat]:
        return self.plays[0][0] if self.plays else None

    @property
    def next_seat(self) -> Optional[Seat]:
        """Seat to act next, if a leader is known."""
        if not self.plays:
            return None
        return Seat((self.plays[0][0] + len(self.plays)) % 4)

    @property
    def led_suit(self) -> Optional[str]:
        return self.plays[0][1].suit if self.plays else None

    @property
    def is_complete(self) -> bool:
        return len(self.plays) == CARDS_PER_TRICK

    def winner(self, trump: Optional[str]) -> Seat:
        return trick_winner(self.plays, trump)

    def key(self) -> Tuple[Tuple[int, int], ...]:
        return tuple((int(s), c.index) for s, c in self.plays)

    def copy(self) -> "PartialTrick":
        return PartialTrick(self.plays)

    def __len__(self) -> int:
        return len(self.plays)

    def __bool__(self) -> bool:
        return bool(self.plays)

    def __repr__(self) -> str:
        return "PartialTrick(" + ' '.join(f"{s.name}:{c}" for s, c in self.plays) + ")"
