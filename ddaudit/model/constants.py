"""
Card and Seat Constants

Notation used throughout the package:
- Suits are single letters in PBN order: S, H, D, C
- Ranks are integers 2..14 (14 = Ace); symbols 2-9, T, J, Q, K, A
- Seats are N, E, S, W (clockwise), indices 0-3
- A card token in recorded play is suit letter + rank symbol, e.g. "SA", "D2"

Card index (used for compact cache keys):
- index = suit_idx * 13 + (rank - 2)
- suit_idx: 0=S, 1=H, 2=D, 3=C
"""

# Suit order (PBN: S-H-D-C)
SUIT_ORDER = ['S', 'H', 'D', 'C']
SUIT_INDICES = {s: i for i, s in enumerate(SUIT_ORDER)}

# Rank symbols, low to high
RANK_SYMBOLS = ['2', '3', '4', '5', '6', '7', '8', '9', 'T', 'J', 'Q', 'K', 'A']
RANK_VALUES = {sym: i + 2 for i, sym in enumerate(RANK_SYMBOLS)}
RANK_CHARS = {v: k for k, v in RANK_VALUES.items()}

# Seats, clockwise
SEAT_ORDER = ['N', 'E', 'S', 'W']
CARDS_PER_TRICK = 4
MAX_TRICKS = 13

# No-trump strain letter
NOTRUMP = 'N'

# Doubling state (same encoding as double_status: 0=undoubled, 1=doubled, 2=redoubled)
UNDOUBLED = 0
DOUBLED = 1
REDOUBLED = 2
DOUBLE_MARKERS = {'': UNDOUBLED, 'X': DOUBLED, 'XX': REDOUBLED}

# Sentinel prefix for boards whose analysis failed
ERROR_PREFIX = "ERROR:"
