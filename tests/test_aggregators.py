"""Tests for summary table aggregation."""

import pandas as pd
import pytest

from shooting_report.data import BOROUGHS, DataAggregator, borough_series


def _incident(ts: str, borough: str, murder: bool = False) -> dict:
    occurred = pd.Timestamp(ts)
    return {
        'occurred_at': occurred,
        'occur_date': occurred.normalize(),
        'year': occurred.year,
        'month': occurred.month,
        'year_month': occurred.strftime('%Y-%m'),
        'hour': occurred.hour,
        'borough': borough,
        'is_murder': murder,
    }


@pytest.fixture
def sparse_incidents():
    """Two boroughs, nothing in February 2020, nothing in 2021"""
    return pd.DataFrame([
        _incident('2020-01-03 01:00', 'Bronx', murder=True),
        _incident('2020-01-20 01:30', 'Bronx'),
        _incident('2020-03-11 22:00', 'Queens'),
        _incident('2022-01-05 13:00', 'Queens', murder=True),
        _incident('2022-01-09 05:00', 'Bronx'),
    ])


def test_every_table_sums_to_clean_count(clean_incidents, tables):
    total = len(clean_incidents)

    for name, table in tables.items():
        assert table['incidents'].sum() == total, name


def test_murders_sum_to_flagged_incidents(clean_incidents, tables):
    murders = int(clean_incidents['is_murder'].sum())

    assert tables['monthly']['murders'].sum() == murders
    assert tables['yearly']['murders'].sum() == murders
    assert tables['borough_totals']['murders'].sum() == murders


def test_monthly_is_zero_filled(sparse_incidents):
    df_monthly = DataAggregator().aggregate_monthly(sparse_incidents)

    assert len(df_monthly) == 25
    assert df_monthly['date'].is_monotonic_increasing
    feb = df_monthly[df_monthly['year_month'] == '2020-02']
    assert feb['incidents'].iloc[0] == 0
    assert feb['murders'].iloc[0] == 0
    assert df_monthly.loc[df_monthly['year_month'] == '2020-01', 'incidents'].iloc[0] == 2


def test_monthly_by_borough_has_every_combination(sparse_incidents):
    df = DataAggregator().aggregate_monthly_by_borough(sparse_incidents)

    assert len(df) == 25 * 2
    assert df.groupby('borough').size().tolist() == [25, 25]
    assert df[(df['borough'] == 'Queens') & (df['date'] == '2020-01-01')]['incidents'].iloc[0] == 0


def test_yearly_fills_missing_years_and_computes_change(sparse_incidents):
    df = DataAggregator().aggregate_yearly(sparse_incidents)

    assert df['year'].tolist() == [2020, 2021, 2022]
    assert df['incidents'].tolist() == [3, 0, 2]
    assert pd.isna(df['pct_change'].iloc[0])
    assert df['pct_change'].iloc[1] == pytest.approx(-100.0)


def test_hourly_by_borough_covers_all_hours(sparse_incidents):
    df = DataAggregator().aggregate_hourly_by_borough(sparse_incidents)

    assert len(df) == 24 * 2
    bronx = df[df['borough'] == 'Bronx'].set_index('hour')['incidents']
    assert bronx[1] == 2
    assert bronx[2] == 0


def test_month_of_year_pools_years(sparse_incidents):
    df = DataAggregator().aggregate_month_of_year_by_borough(sparse_incidents)

    assert len(df) == 12 * 2
    queens_jan = df[(df['borough'] == 'Queens') & (df['month'] == 1)]
    assert queens_jan['incidents'].iloc[0] == 1
    assert queens_jan['month_name'].iloc[0] == 'Jan'


def test_borough_totals_shares(sparse_incidents):
    df = DataAggregator().aggregate_borough_totals(sparse_incidents)

    assert df['borough'].tolist() == ['Bronx', 'Queens']
    assert df['share_pct'].sum() == pytest.approx(100.0)
    assert df['murder_rate_pct'].tolist() == pytest.approx([100 / 3, 50.0])


def test_build_all_table_names(tables):
    assert set(tables) == {
        'monthly', 'monthly_by_borough', 'yearly', 'yearly_by_borough',
        'hourly_by_borough', 'month_of_year_by_borough', 'borough_totals',
    }
    assert sorted(tables['borough_totals']['borough']) == BOROUGHS


def test_empty_input_raises():
    with pytest.raises(ValueError):
        DataAggregator().aggregate_monthly(pd.DataFrame(columns=['occurred_at', 'borough']))


def test_borough_series(tables):
    series = borough_series(tables['monthly_by_borough'], 'Brooklyn')

    assert list(series.columns) == ['date', 'incidents']
    assert len(series) == len(tables['monthly'])
    assert series['date'].is_monotonic_increasing
