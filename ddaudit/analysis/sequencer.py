"""
Card-by-card replay of recorded play.

The sequencer owns the per-board working state: remaining hands, the trick in
progress, whose turn it is and how many tricks the declaring side has banked.
Everything that evaluates positions (CostAttributor) or rebuilds records from
stored costs (records_from_costs) drives play through this one class.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..errors import InvalidPlayError
from ..model.cards import Card, Seat
from ..model.contract import Contract
from ..model.deal import Deal, Hands
from ..model.trick import PartialTrick


@dataclass(frozen=True)
class PlayEvent:
    """One card as it was played."""
    trick_num: int          # 1-based
    position: int           # 0-3 within the trick
    seat: Seat
    card: Card
    winner: Optional[Seat] = None     # set when this card completed the trick
    declarer_won: bool = False


class CardplaySequencer:
    """
    Replays a board against a working copy of the deal.

    Attributes:
        hands: working copy, loses one card per play
        leader: seat on lead to the current trick
        partial: cards of the current trick (empty at a trick boundary)
        declarer_tricks: tricks won so far by the declaring side
        trick_num: 1-based number of the current trick
    """

    def __init__(self, deal: Deal, contract: Contract):
        self.deal = deal
        self.contract = contract
        self.trump = contract.trump
        self.hands: Hands = deal.working_copy()
        self.leader: Seat = contract.opening_leader
        self.partial = PartialTrick()
        self.declarer_tricks = 0
        self.trick_num = 1

    @property
    def to_act(self) -> Seat:
        if not self.partial:
            return self.leader
        return self.partial.next_seat

    @property
    def at_trick_boundary(self) -> bool:
        return not self.partial

    def play(self, card: Card) -> PlayEvent:
        """
        Play the next card for the seat to act.

        Raises:
            InvalidPlayError: the seat to act does not hold the card
        """
        seat = self.to_act
        if not self.hands.holds(seat, card):
            raise InvalidPlayError(
                f"Trick {self.trick_num}: {seat.name} does not hold {card}"
            )

        position = len(self.partial)
        self.hands.remove(seat, card)
        self.partial.add(seat, card)

        if not self.partial.is_complete:
            return PlayEvent(self.trick_num, position, seat, card)

        winner = self.partial.winner(self.trump)
        declarer_won = self.contract.is_declaring_side(winner)
        if declarer_won:
            self.declarer_tricks += 1
        event = PlayEvent(self.trick_num, position, seat, card, winner, declarer_won)

        self.leader = winner
        self.partial = PartialTrick()
        self.trick_num += 1
        return event

    def replay(self, tricks: Iterable[List[Card]]) -> List[PlayEvent]:
        """Play every card of a parsed cardplay; returns the events in order."""
        return [self.play(card) for trick in tricks for card in trick]
