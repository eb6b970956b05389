"""
Error types raised while analyzing a single board.

Every error below is board-scoped: the batch runner catches it at the board
boundary, records an ``ERROR:`` sentinel for that board and moves on.
"""


class DdAnalysisError(Exception):
    """Base class for board-level analysis failures."""


class DealParseError(DdAnalysisError, ValueError):
    """Deal notation could not be parsed into four consistent hands."""


class CardParseError(DdAnalysisError, ValueError):
    """A cardplay token is not a suit letter + rank symbol, or tricks are malformed."""


class ContractParseError(DdAnalysisError, ValueError):
    """Unrecognized contract strain or declarer seat."""


class InvalidPlayError(DdAnalysisError):
    """A recorded card is not held by the seat whose turn it is."""


class SolverError(DdAnalysisError):
    """The double-dummy backend failed on a position."""


class SolverConstructionError(SolverError):
    """A mid-trick solver instance cannot be built for this position."""


class SolverUnavailable(SolverError):
    """No usable solver: backend missing, or mid-trick and fallback both failed."""
