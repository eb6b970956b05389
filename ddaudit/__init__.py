# Bridge Double-Dummy Cardplay Audit - Core Source Code
"""
This package contains the core analysis modules:
- model: cards, seats, deals, contracts and recorded cardplay
- solver: double-dummy solver boundary, position evaluation, per-board caches
- analysis: card-by-card replay, DD cost attribution, batch runner
- stats: per-player aggregation, confidence intervals, anomaly z-test
- pipeline: end-to-end run (CSV in, player stats + report out)
- meta_logger: Run metadata logging
- utils: Common utilities
"""

__version__ = "0.1.0"
