"""
Contract parsing.

Accepted contract strings (case-insensitive, spaces ignored):
    "4S", "3NT", "3N", "1N", "4HX", "6CXX", "2D*"

The doubling marker may be X / XX (or * / ** as some result files write it).
The declarer is a separate field whose first letter is N, E, S or W.
"""
import re
from dataclasses import dataclass
from typing import Optional

from ..errors import ContractParseError
from .cards import Seat
from .constants import DOUBLE_MARKERS, NOTRUMP, UNDOUBLED

_CONTRACT_RE = re.compile(r'^([1-7])(NT|N|S|H|D|C)(XX|X|\*\*|\*)?$')


@dataclass(frozen=True)
class Contract:
    level: int
    strain: str          # 'S', 'H', 'D', 'C' or 'N' (no-trump)
    declarer: Seat
    doubled: int = UNDOUBLED

    @classmethod
    def parse(cls, contract: str, declarer: str) -> "Contract":
        """
        Parse a contract string and declarer seat.

        Raises:
            ContractParseError: unrecognized level/strain or declarer
        """
        text = re.sub(r'\s+', '', str(contract)).upper()
        match = _CONTRACT_RE.match(text)
        if match is None:
            raise ContractParseError(f"Could not parse contract: {contract!r}")
        level, strain, marker = match.groups()
        marker = (marker or '').replace('*', 'X')

        try:
            seat = Seat.parse(declarer)
        except ValueError:
            raise ContractParseError(f"Invalid declarer: {declarer!r}") from None

        return cls(
            level=int(level),
            strain=NOTRUMP if strain in ('N', 'NT') else strain,
            declarer=seat,
            doubled=DOUBLE_MARKERS[marker],
        )

    @property
    def trump(self) -> Optional[str]:
        """Trump suit letter, or None in no-trump."""
        return None if self.strain == NOTRUMP else self.strain

    @property
    def dummy(self) -> Seat:
        return self.declarer.partner()

    @property
    def opening_leader(self) -> Seat:
        return self.declarer.next()

    @property
    def declarer_is_ns(self) -> bool:
        return self.declarer.is_ns

    def is_declaring_side(self, seat: Seat) -> bool:
        return seat.same_side(self.declarer)

    def __str__(self) -> str:
        strain = 'NT' if self.strain == NOTRUMP else self.strain
        return f"{self.level}{strain}{'X' * self.doubled}"
