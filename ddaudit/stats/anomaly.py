"""
Statistical comparison of defending vs declaring error rates.

Defenders see fewer cards than declarer, so an honest player's defending
error rate is expected to exceed their declaring rate. For each subject we
test whether the subject's (defending - declaring) gap is significantly
smaller than the same gap for the field:

    se(role)  = sqrt(p (1 - p) / n)
    diff_se   = sqrt(se_decl^2 + se_def^2)
    z         = (diff_subject - diff_field) / sqrt(diff_se_subject^2 + diff_se_field^2)
    p         = Phi(z)                      (one-tailed, lower tail)

Roles with fewer than MIN_PLAYS plays have no CI and no z-score. The result
is a statistical flag, not a finding of wrongdoing.

Key functions:
- ci95: 95% CI half-width in percentage points (None below threshold)
- z_test_vs_baseline: subject vs field gap test
- AnomalyDetector.compare: comparison report for the most frequent players
- AnomalyDetector.player_table: per-player aggregate rows plus a FIELD row
"""
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from .aggregator import FIELD_NAME, PlayerStats, StatsAggregator

MIN_PLAYS = 30
Z_CRITICAL = 1.96

INSUFFICIENT = 'insufficient data'
ANOMALOUS = 'anomalous'
NORMAL = 'normal'
INCONCLUSIVE = 'inconclusive'


def error_rate_se(errors: int, plays: int, min_plays: int = MIN_PLAYS) -> Optional[float]:
    """Standard error of an error proportion, None below min_plays."""
    if plays < min_plays:
        return None
    p = errors / plays
    return float(np.sqrt(p * (1 - p) / plays))


def ci95(errors: int, plays: int, min_plays: int = MIN_PLAYS,
         z_critical: float = Z_CRITICAL) -> Optional[float]:
    """95% CI half-width of the error rate, in percentage points."""
    se = error_rate_se(errors, plays, min_plays)
    return None if se is None else z_critical * se * 100


def def_minus_decl(player: PlayerStats) -> float:
    """Defending minus declaring error rate (fraction)."""
    return player.error_rate('defending') - player.error_rate('declaring')


def diff_standard_error(player: PlayerStats, min_plays: int = MIN_PLAYS) -> Optional[float]:
    """SE of def_minus_decl; None unless both roles reach min_plays."""
    se_decl = error_rate_se(player.declaring_errors, player.declaring_plays, min_plays)
    se_def = error_rate_se(player.defending_errors, player.defending_plays, min_plays)
    if se_decl is None or se_def is None:
        return None
    return float(np.sqrt(se_decl ** 2 + se_def ** 2))


def p_value_label(p: float) -> str:
    if p < 0.001:
        return '<0.001 (highly significant)'
    if p < 0.01:
        return 'significant at 1%'
    if p < 0.05:
        return 'significant at 5%'
    return 'not statistically significant'


def classify(z: Optional[float], z_critical: float = Z_CRITICAL) -> str:
    if z is None:
        return INSUFFICIENT
    if z < -z_critical:
        return ANOMALOUS
    if z > z_critical:
        return NORMAL
    return INCONCLUSIVE


@dataclass
class ZTestResult:
    """Subject vs baseline gap test. Gaps are in percentage points."""
    subject: str
    baseline: str
    subject_diff: float
    baseline_diff: float
    z: Optional[float] = None
    p_value: Optional[float] = None
    classification: str = INSUFFICIENT
    p_label: Optional[str] = None

    @property
    def flagged(self) -> bool:
        return self.classification == ANOMALOUS


def z_test_vs_baseline(subject: PlayerStats, baseline: PlayerStats,
                       min_plays: int = MIN_PLAYS, z_critical: float = Z_CRITICAL) -> ZTestResult:
    """
    One-tailed test that the subject's def-decl gap is below the baseline's.

    Returns:
        ZTestResult; z, p_value and p_label stay None with "insufficient data"
        when either player lacks min_plays in a role or the combined SE is 0
    """
    result = ZTestResult(
        subject=subject.name,
        baseline=baseline.name,
        subject_diff=def_minus_decl(subject) * 100,
        baseline_diff=def_minus_decl(baseline) * 100,
    )
    se_subject = diff_standard_error(subject, min_plays)
    se_baseline = diff_standard_error(baseline, min_plays)
    if se_subject is None or se_baseline is None:
        return result

    se_combined = np.sqrt(se_subject ** 2 + se_baseline ** 2)
    if se_combined == 0:
        return result

    z = (def_minus_decl(subject) - def_minus_decl(baseline)) / se_combined
    result.z = float(z)
    result.p_value = float(sp_stats.norm.cdf(z))
    result.p_label = p_value_label(result.p_value)
    result.classification = classify(result.z, z_critical)
    return result


@dataclass
class PartnerComparison:
    """
    Skill gap between two subjects in each role (percentage points, a - b).

    convergence = |declaring_gap| - |defending_gap|: a gap that shrinks on
    defense ("narrows") means the pair performs more alike when defending.
    """
    player_a: str
    player_b: str
    declaring_gap: float
    defending_gap: float
    convergence: float
    verdict: str

    @classmethod
    def from_players(cls, a: PlayerStats, b: PlayerStats) -> "PartnerComparison":
        decl_gap = (a.error_rate('declaring') - b.error_rate('declaring')) * 100
        def_gap = (a.error_rate('defending') - b.error_rate('defending')) * 100
        convergence = abs(decl_gap) - abs(def_gap)
        if convergence > 1.0:
            verdict = 'narrows'
        elif convergence < -1.0:
            verdict = 'widens'
        else:
            verdict = 'similar'
        return cls(a.name, b.name, decl_gap, def_gap, convergence, verdict)


@dataclass
class ComparisonReport:
    subjects: List[str]
    baseline: Dict
    tests: List[ZTestResult] = field(default_factory=list)
    partner: Optional[PartnerComparison] = None
    processed: int = 0
    skipped: int = 0

    @property
    def flagged(self) -> List[str]:
        return [t.subject for t in self.tests if t.flagged]

    def to_dict(self) -> Dict:
        """JSON-serializable form."""
        data = asdict(self)
        data['flagged'] = self.flagged
        return data


@dataclass
class DetectorConfig:
    """Configuration for the anomaly detector."""
    min_plays: int = MIN_PLAYS
    z_critical: float = Z_CRITICAL
    n_subjects: int = 2
    top_n: Optional[int] = 20

    @classmethod
    def from_config(cls, cfg) -> "DetectorConfig":
        section = cfg.get('stats', {})
        return cls(
            min_plays=section.get('min_plays', MIN_PLAYS),
            z_critical=section.get('z_critical', Z_CRITICAL),
            n_subjects=section.get('n_subjects', 2),
            top_n=section.get('top_n', 20),
        )


class AnomalyDetector:
    """
    Compares the most frequent players (the subjects) against the field.

    Example:
        >>> detector = AnomalyDetector()
        >>> report = detector.compare(aggregator)
        >>> report.flagged
        ['alice']
    """

    def __init__(self, min_plays: int = MIN_PLAYS, z_critical: float = Z_CRITICAL):
        self.min_plays = min_plays
        self.z_critical = z_critical

    @classmethod
    def from_config(cls, config: DetectorConfig) -> "AnomalyDetector":
        return cls(min_plays=config.min_plays, z_critical=config.z_critical)

    def compare(self, aggregator: StatsAggregator, n_subjects: int = 2) -> ComparisonReport:
        """
        Test each of the `n_subjects` most frequent players against the field
        made of everyone else.
        """
        subjects = aggregator.most_frequent(n_subjects)
        baseline = aggregator.field([s.name for s in subjects])

        report = ComparisonReport(
            subjects=[s.name for s in subjects],
            baseline=baseline.to_dict(),
            processed=aggregator.processed,
            skipped=aggregator.skipped,
        )
        for subject in subjects:
            report.tests.append(
                z_test_vs_baseline(subject, baseline, self.min_plays, self.z_critical)
            )
        if len(subjects) >= 2:
            report.partner = PartnerComparison.from_players(subjects[0], subjects[1])
        return report

    def player_row(self, player: PlayerStats) -> Dict:
        decl_rate = player.error_rate('declaring') * 100
        def_rate = player.error_rate('defending') * 100
        return {
            'Player': player.name,
            'Total_Deals': player.total_deals,
            'Decl_Deals': player.declaring_deals,
            'Def_Deals': player.defending_deals,
            'Decl_Plays': player.declaring_plays,
            'Decl_Errors': player.declaring_errors,
            'Decl_Err_Pct': decl_rate,
            'Decl_Avg_Cost': player.avg_cost('declaring'),
            'Decl_CI': ci95(player.declaring_errors, player.declaring_plays,
                            self.min_plays, self.z_critical),
            'Def_Plays': player.defending_plays,
            'Def_Errors': player.defending_errors,
            'Def_Err_Pct': def_rate,
            'Def_Avg_Cost': player.avg_cost('defending'),
            'Def_CI': ci95(player.defending_errors, player.defending_plays,
                           self.min_plays, self.z_critical),
            'Diff_Pct': decl_rate - def_rate,
        }

    def player_table(self, aggregator: StatsAggregator, top_n: Optional[int] = None,
                     n_subjects: int = 2) -> pd.DataFrame:
        """
        Aggregate rows for the `top_n` most frequent players plus a FIELD row
        (everyone except the `n_subjects` most frequent players).

        CI columns hold None where a role has fewer than min_plays plays.
        """
        players = aggregator.most_frequent(top_n)
        subjects = [s.name for s in aggregator.most_frequent(n_subjects)]
        rows = [self.player_row(p) for p in players]
        rows.append(self.player_row(aggregator.field(subjects, name=FIELD_NAME)))

        table = pd.DataFrame(rows)
        for col in ('Decl_CI', 'Def_CI'):
            table[col] = pd.Series([r[col] for r in rows], dtype=object)
        return table
