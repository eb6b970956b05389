"""
Recorded cardplay parsing.

Format: tricks separated by '|', cards within a trick separated by spaces
(commas or dashes are tolerated), each card a 2-character token:

    "D2 DA D6 D5|S3 S2 SQ SA|H4"

Only the final trick may be incomplete.
"""
import re
from typing import List

from ..errors import CardParseError
from .cards import Card, parse_card
from .constants import CARDS_PER_TRICK

_CARD_SEP = re.compile(r'[\s,\-]+')


def parse_cardplay(cardplay: str) -> List[List[Card]]:
    """
    Parse a recorded-play string into tricks.

    Returns:
        List of tricks, each a list of 1-4 cards in play order

    Raises:
        CardParseError: bad token, a trick with more than 4 cards, or an
            incomplete trick that is not the last one
    """
    tricks = []
    for trick_str in cardplay.split('|'):
        tokens = [t for t in _CARD_SEP.split(trick_str.strip()) if t]
        if not tokens:
            continue
        trick = [parse_card(t) for t in tokens]
        if len(trick) > CARDS_PER_TRICK:
            raise CardParseError(f"Trick {len(tricks) + 1} has {len(trick)} cards: {trick_str!r}")
        tricks.append(trick)

    for i, trick in enumerate(tricks[:-1]):
        if len(trick) != CARDS_PER_TRICK:
            raise CardParseError(f"Trick {i + 1} is incomplete but is not the last trick")
    return tricks


def format_cardplay(tricks: List[List[Card]]) -> str:
    return '|'.join(' '.join(str(c) for c in trick) for trick in tricks)
