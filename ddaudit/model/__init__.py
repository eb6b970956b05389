"""
Bridge data model for cardplay analysis.

Key components:
- cards: Seat, Card, parse_card
- deal: Deal (immutable source), Hands (mutable working copy)
- contract: Contract (level, strain, doubling, declarer)
- cardplay: parse_cardplay for trick-delimited recorded play
- trick: PartialTrick, trick_winner
"""
from .cards import Card, Seat, parse_card
from .deal import Deal, Hands, parse_holding, format_holding
from .contract import Contract
from .cardplay import parse_cardplay, format_cardplay
from .trick import PartialTrick, trick_winner

__all__ = [
    'Card',
    'Seat',
    'parse_card',
    'Deal',
    'Hands',
    'parse_holding',
    'format_holding',
    'Contract',
    'parse_cardplay',
    'format_cardplay',
    'PartialTrick',
    'trick_winner',
]
