"""
Aggregation and Anomaly Detection Tests
"""
import json
import math

import pandas as pd
import pytest

from ddaudit.analysis import BatchConfig, CostAttributor, analyze_table
from ddaudit.model import Seat, parse_cardplay
from ddaudit.solver import PositionEvaluator
from ddaudit.stats import (
    FIELD_NAME,
    AnomalyDetector,
    PlayerStats,
    StatsAggregator,
    ci95,
    diff_standard_error,
    z_test_vs_baseline,
)
from ddaudit.stats.anomaly import PartnerComparison, classify, p_value_label

from conftest import BLOCKED_SPADES_PBN, BLOCKING_LINE, OPTIMAL_LINE, MinimaxSolver


def _stats(name, decl=(0, 0), defe=(0, 0), decl_deals=0, def_deals=0):
    """decl / defe are (errors, plays)."""
    return PlayerStats(
        name,
        declaring_plays=decl[1], declaring_errors=decl[0], declaring_total_cost=decl[0],
        declaring_deals=decl_deals,
        defending_plays=defe[1], defending_errors=defe[0], defending_total_cost=defe[0],
        defending_deals=def_deals,
    )


# ---------------------------------------------------------------------------
# StatsAggregator
# ---------------------------------------------------------------------------

def test_add_board_roles_and_deals(blocked_deal, nt_by_south, solver, names):
    attributor = CostAttributor(PositionEvaluator(solver))
    result = attributor.analyze(blocked_deal, nt_by_south, parse_cardplay(BLOCKING_LINE), names)

    agg = StatsAggregator()
    agg.add_board(result)

    bob = agg['BOB']
    assert (bob.declaring_plays, bob.declaring_errors, bob.declaring_total_cost) == (8, 1, 1)
    assert (bob.declaring_deals, bob.defending_deals) == (1, 0)
    alice = agg['alice']
    assert alice.declaring_plays == 0
    assert alice.declaring_deals == 1
    carol = agg['Carol']
    assert (carol.defending_plays, carol.defending_errors, carol.defending_deals) == (4, 0, 1)
    assert agg.processed == 1
    assert len(agg) == 4


def test_names_are_case_insensitive_and_blank_names_skipped(blocked_deal, nt_by_south, solver):
    attributor = CostAttributor(PositionEvaluator(solver))
    tricks = parse_cardplay(OPTIMAL_LINE)
    agg = StatsAggregator()
    agg.add_board(attributor.analyze(blocked_deal, nt_by_south, tricks,
                                     {Seat.N: 'Alice', Seat.E: 'Carol', Seat.S: 'Bob', Seat.W: ''}))
    agg.add_board(attributor.analyze(blocked_deal, nt_by_south, tricks,
                                     {Seat.N: 'ALICE', Seat.E: 'carol', Seat.S: 'bob', Seat.W: ''}))
    assert sorted(agg.players) == ['alice', 'bob', 'carol']
    assert agg['bob'].declaring_deals == 2
    assert agg['bob'].declaring_plays == 16
    assert '' not in agg


def test_skipped_boards(blocked_deal, nt_by_south, names):
    agg = StatsAggregator()
    agg.add_board(None)
    assert not agg.add_result(blocked_deal, nt_by_south, OPTIMAL_LINE, "ERROR: bad card", names)
    assert not agg.add_result(blocked_deal, nt_by_south, OPTIMAL_LINE, "", names)
    assert agg.skipped == 3
    assert agg.processed == 0


def test_add_table_matches_add_board(blocked_deal, nt_by_south, solver, names):
    rows = []
    for ref, line in [('1', OPTIMAL_LINE), ('2', BLOCKING_LINE), ('3', "H3 H2 ZZ")]:
        rows.append({
            'Ref #': ref, 'Cardplay': line, 'Con': '1NT', 'Dec': 'S', 'Deal': BLOCKED_SPADES_PBN,
            'N': names[Seat.N], 'E': names[Seat.E], 'S': names[Seat.S], 'W': names[Seat.W],
        })
    out = analyze_table(pd.DataFrame(rows), config=BatchConfig(threads=1, solver=solver), verbose=False)

    from_table = StatsAggregator().add_table(out)

    attributor = CostAttributor(PositionEvaluator(solver))
    direct = StatsAggregator()
    for line in (OPTIMAL_LINE, BLOCKING_LINE):
        direct.add_board(attributor.analyze(blocked_deal, nt_by_south, parse_cardplay(line), names))

    assert from_table.to_frame().equals(direct.to_frame())
    assert from_table.processed == 2
    assert from_table.skipped == 1


def test_add_table_requires_output_column():
    with pytest.raises(ValueError):
        StatsAggregator().add_table(pd.DataFrame({'Ref #': ['1']}))


def test_player_stats_merge_is_additive():
    a = _stats('a', decl=(3, 40), defe=(5, 50), decl_deals=4, def_deals=6)
    b = _stats('b', decl=(1, 10), defe=(2, 20), decl_deals=1, def_deals=2)
    b_plays = b.declaring_plays

    merged = b.copy().merge(a)
    assert merged.declaring_plays == a.declaring_plays + b_plays
    assert merged.defending_errors == 7
    assert merged.total_deals == 13
    assert merged.name == 'b'

    # Order does not matter
    assert a.copy().merge(b).to_dict() == {**merged.to_dict(), 'name': 'a'}


def test_aggregator_merge():
    left, right = StatsAggregator(), StatsAggregator()
    left.players['x'] = _stats('x', decl=(1, 10))
    right.players['x'] = _stats('x', decl=(2, 20))
    right.players['y'] = _stats('y', defe=(1, 5))
    left.processed, right.processed = 3, 4

    left.merge(right)
    assert left['x'].declaring_plays == 30
    assert left['y'].defending_plays == 5
    assert left.processed == 7
    # Merged copies are independent
    left['y'].defending_plays += 1
    assert right['y'].defending_plays == 5


def test_field_and_most_frequent():
    agg = StatsAggregator()
    agg.players['a'] = _stats('a', decl=(1, 10), decl_deals=5, def_deals=5)
    agg.players['b'] = _stats('b', decl=(1, 10), decl_deals=2, def_deals=7)
    agg.players['c'] = _stats('c', decl=(2, 30), decl_deals=1, def_deals=1)
    agg.players['d'] = _stats('d', decl=(3, 40), decl_deals=1, def_deals=2)

    assert [p.name for p in agg.most_frequent(2)] == ['a', 'b']
    field = agg.field(['A', 'b'])
    assert field.name == FIELD_NAME
    assert field.declaring_plays == 70
    assert field.declaring_errors == 5


# ---------------------------------------------------------------------------
# AnomalyDetector
# ---------------------------------------------------------------------------

def test_ci_requires_min_plays():
    assert ci95(3, 29) is None
    assert ci95(10, 100) == pytest.approx(1.96 * math.sqrt(0.09 / 100) * 100)
    assert diff_standard_error(_stats('p', decl=(3, 29), defe=(10, 100))) is None


def test_z_test_flags_low_defensive_gap():
    subject = _stats('subject', decl=(10, 100), defe=(10, 100))
    field = _stats('FIELD', decl=(100, 1000), defe=(300, 1000))

    result = z_test_vs_baseline(subject, field)
    assert result.z == pytest.approx(-4.364, abs=1e-3)
    assert result.p_value < 0.001
    assert result.p_label == '<0.001 (highly significant)'
    assert result.classification == 'anomalous'
    assert result.flagged
    assert result.subject_diff == pytest.approx(0.0)
    assert result.baseline_diff == pytest.approx(20.0)


def test_z_test_normal_pattern():
    subject = _stats('subject', decl=(10, 1000), defe=(300, 1000))
    field = _stats('FIELD', decl=(100, 1000), defe=(150, 1000))
    result = z_test_vs_baseline(subject, field)
    assert result.z > 1.96
    assert result.classification == 'normal'
    assert not result.flagged


def test_z_test_insufficient_data():
    subject = _stats('subject', decl=(1, 20), defe=(10, 100))
    field = _stats('FIELD', decl=(100, 1000), defe=(300, 1000))
    result = z_test_vs_baseline(subject, field)
    assert result.z is None
    assert result.p_value is None
    assert result.classification == 'insufficient data'

    # Zero error everywhere: zero standard error
    result = z_test_vs_baseline(_stats('s', decl=(0, 50), defe=(0, 50)),
                                _stats('f', decl=(0, 500), defe=(0, 500)))
    assert result.z is None
    assert result.classification == 'insufficient data'


def test_classification_and_labels():
    assert classify(-2.0) == 'anomalous'
    assert classify(2.0) == 'normal'
    assert classify(0.5) == 'inconclusive'
    assert classify(None) == 'insufficient data'
    assert p_value_label(0.0005) == '<0.001 (highly significant)'
    assert p_value_label(0.005) == 'significant at 1%'
    assert p_value_label(0.03) == 'significant at 5%'
    assert p_value_label(0.2) == 'not statistically significant'


@pytest.mark.parametrize("a_rates,b_rates,verdict", [
    ((10, 20), (20, 22), 'narrows'),
    ((10, 20), (12, 30), 'widens'),
    ((10, 20), (15, 25), 'similar'),
])
def test_partner_comparison(a_rates, b_rates, verdict):
    a = _stats('a', decl=(a_rates[0], 100), defe=(a_rates[1], 100))
    b = _stats('b', decl=(b_rates[0], 100), defe=(b_rates[1], 100))
    comparison = PartnerComparison.from_players(a, b)
    assert comparison.verdict == verdict
    assert comparison.convergence == pytest.approx(
        abs(comparison.declaring_gap) - abs(comparison.defending_gap))


def _population():
    agg = StatsAggregator()
    agg.players['alice'] = _stats('alice', decl=(10, 100), defe=(10, 100), decl_deals=20, def_deals=30)
    agg.players['bob'] = _stats('bob', decl=(12, 100), defe=(11, 100), decl_deals=20, def_deals=28)
    for i in range(5):
        name = f'p{i}'
        agg.players[name] = _stats(name, decl=(20, 200), defe=(60, 200), decl_deals=4, def_deals=6)
    agg.players['rare'] = _stats('rare', decl=(1, 5), defe=(0, 8), decl_deals=1, def_deals=1)
    agg.processed, agg.skipped = 60, 2
    return agg


def test_compare_report():
    report = AnomalyDetector().compare(_population(), n_subjects=2)

    assert report.subjects == ['alice', 'bob']
    assert report.baseline['declaring_plays'] == 1005
    assert [t.subject for t in report.tests] == ['alice', 'bob']
    assert report.flagged == ['alice', 'bob']
    assert report.partner.player_a == 'alice'
    assert report.skipped == 2

    data = report.to_dict()
    assert json.loads(json.dumps(data))['flagged'] == ['alice', 'bob']


def test_player_table():
    table = AnomalyDetector().player_table(_population(), top_n=3)

    assert list(table['Player']) == ['alice', 'bob', 'p0', FIELD_NAME]
    alice = table.iloc[0]
    assert alice['Decl_Err_Pct'] == pytest.approx(10.0)
    assert alice['Diff_Pct'] == pytest.approx(0.0)
    assert alice['Decl_CI'] == pytest.approx(1.96 * math.sqrt(0.09 / 100) * 100)
    assert table.iloc[-1]['Decl_Plays'] == 1005

    rare_table = AnomalyDetector().player_table(_population())
    rare = rare_table[rare_table['Player'] == 'rare'].iloc[0]
    assert rare['Decl_CI'] is None
    assert rare['Def_CI'] is None
