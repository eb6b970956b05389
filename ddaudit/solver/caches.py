"""
Per-board transposition caches.

Keys are built from the remaining-card distribution and the seat to move
(plus the cards already on the table for mid-trick positions). Card
identities differ from board to board, so a cache is only valid for the
board it was created for: make a fresh BoardCaches per board.
"""
from dataclasses import dataclass, field
from typing import Dict, Hashable, Optional


class TranspositionCache:
    """Position key -> NS tricks, with hit/miss counters."""

    def __init__(self):
        self._table: Dict[Hashable, int] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[int]:
        value = self._table.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def store(self, key: Hashable, ns_tricks: int) -> None:
        self._table[key] = ns_tricks

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._table

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


@dataclass
class BoardCaches:
    """The two cache handles owned by one board's analysis."""
    full: TranspositionCache = field(default_factory=TranspositionCache)
    mid_trick: TranspositionCache = field(default_factory=TranspositionCache)

    def stats(self) -> Dict[str, float]:
        return {
            'full_entries': len(self.full),
            'full_hits': self.full.hits,
            'full_misses': self.full.misses,
            'mid_trick_entries': len(self.mid_trick),
            'mid_trick_hits': self.mid_trick.hits,
            'mid_trick_misses': self.mid_trick.misses,
        }
