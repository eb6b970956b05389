"""
Per-player statistics and anomaly detection.

Key components:
- aggregator: PlayerStats, StatsAggregator (case-insensitive, mergeable)
- anomaly: AnomalyDetector, z_test_vs_baseline, ci95, ComparisonReport
- visualization: plot_error_rates
"""
from .aggregator import FIELD_NAME, PlayerStats, StatsAggregator
from .anomaly import (
    MIN_PLAYS,
    Z_CRITICAL,
    AnomalyDetector,
    ComparisonReport,
    DetectorConfig,
    PartnerComparison,
    ZTestResult,
    ci95,
    diff_standard_error,
    error_rate_se,
    z_test_vs_baseline,
)

__all__ = [
    'FIELD_NAME',
    'PlayerStats',
    'StatsAggregator',
    'MIN_PLAYS',
    'Z_CRITICAL',
    'AnomalyDetector',
    'ComparisonReport',
    'DetectorConfig',
    'PartnerComparison',
    'ZTestResult',
    'ci95',
    'diff_standard_error',
    'error_rate_se',
    'z_test_vs_baseline',
]
