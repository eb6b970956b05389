"""
Double-dummy evaluation layer.

Key components:
- backends: DoubleDummySolver interface, EndplaySolver (DDS), solver registry
- caches: per-board transposition caches
- evaluator: PositionEvaluator (full and mid-trick positions)
"""
from .backends import DoubleDummySolver, EndplaySolver, SOLVERS, get_solver, register_solver
from .caches import BoardCaches, TranspositionCache
from .evaluator import PositionEvaluator

__all__ = [
    'DoubleDummySolver',
    'EndplaySolver',
    'SOLVERS',
    'get_solver',
    'register_solver',
    'BoardCaches',
    'TranspositionCache',
    'PositionEvaluator',
]
