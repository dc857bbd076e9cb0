"""Tests for incident cleaning."""

import pandas as pd
import pytest

from shooting_report.data import BOROUGHS, IncidentDataCleaner

from conftest import INVALID_ROWS, make_config


def test_clean_drops_bad_dates_and_unknown_boroughs(config, raw_incidents):
    df = IncidentDataCleaner(config).clean(raw_incidents)

    assert len(df) == len(raw_incidents) - INVALID_ROWS
    assert set(df['borough']) <= set(BOROUGHS)
    assert df['occurred_at'].notna().all()
    assert df['occurred_at'].is_monotonic_increasing


def test_clean_output_columns(clean_incidents):
    for col in ['occurred_at', 'occur_date', 'year', 'month', 'year_month', 'hour', 'weekday',
                'borough', 'is_murder', 'incident_key']:
        assert col in clean_incidents.columns

    assert 'BORO' not in clean_incidents.columns
    assert 'STATISTICAL_MURDER_FLAG' not in clean_incidents.columns
    assert clean_incidents['is_murder'].dtype == bool
    assert clean_incidents['hour'].between(0, 23).all()


def test_occurrence_combines_date_and_time(config):
    df_raw = pd.DataFrame({
        'OCCUR_DATE': ['03/14/2021', '12/31/2020'],
        'OCCUR_TIME': ['21:45:00', '00:05:00'],
        'BORO': ['MANHATTAN', 'bronx'],
    })

    df = IncidentDataCleaner(config).clean(df_raw)

    assert df['occurred_at'].tolist() == [
        pd.Timestamp('2020-12-31 00:05:00'),
        pd.Timestamp('2021-03-14 21:45:00'),
    ]
    assert df['year_month'].tolist() == ['2020-12', '2021-03']
    assert df['hour'].tolist() == [0, 21]


def test_missing_time_falls_back_to_midnight(config):
    df_raw = pd.DataFrame({
        'OCCUR_DATE': ['07/04/2022', '07/05/2022'],
        'OCCUR_TIME': [None, 'garbage'],
        'BORO': ['QUEENS', 'QUEENS'],
    })

    df = IncidentDataCleaner(config).clean(df_raw)

    assert len(df) == 2
    assert (df['hour'] == 0).all()


def test_short_time_format_is_accepted(config):
    df_raw = pd.DataFrame({'OCCUR_DATE': ['01/02/2020'], 'OCCUR_TIME': ['18:30'], 'BORO': ['BROOKLYN']})

    df = IncidentDataCleaner(config).clean(df_raw)

    assert df['hour'].iloc[0] == 18


def test_borough_normalization(config):
    df_raw = pd.DataFrame({
        'OCCUR_DATE': ['01/01/2020'] * 4,
        'OCCUR_TIME': ['12:00:00'] * 4,
        'BORO': ['  STATEN  ISLAND ', 'brooklyn', 'Queens', None],
    })

    df = IncidentDataCleaner(config).clean(df_raw)

    assert sorted(df['borough']) == ['Brooklyn', 'Queens', 'Staten Island']


def test_murder_flag_parsing(config):
    df_raw = pd.DataFrame({
        'OCCUR_DATE': ['01/01/2020'] * 5,
        'OCCUR_TIME': ['12:00:00'] * 5,
        'BORO': ['BRONX'] * 5,
        'STATISTICAL_MURDER_FLAG': ['true', 'FALSE', 'Y', 'N', 'maybe'],
    })

    df = IncidentDataCleaner(config).clean(df_raw)

    assert df['is_murder'].tolist() == [True, False, True, False, False]


def test_missing_murder_flag_column_is_tolerated(config):
    df_raw = pd.DataFrame({'OCCUR_DATE': ['01/01/2020'], 'OCCUR_TIME': ['12:00:00'], 'BORO': ['BRONX']})

    df = IncidentDataCleaner(config).clean(df_raw)

    assert 'is_murder' not in df.columns


def test_missing_date_column_raises(config):
    df_raw = pd.DataFrame({'OCCUR_TIME': ['12:00:00'], 'BORO': ['BRONX']})

    with pytest.raises(ValueError, match='OCCUR_DATE'):
        IncidentDataCleaner(config).clean(df_raw)


def test_missing_borough_column_raises(config):
    df_raw = pd.DataFrame({'OCCUR_DATE': ['01/01/2020'], 'OCCUR_TIME': ['12:00:00']})

    with pytest.raises(ValueError, match='BORO'):
        IncidentDataCleaner(config).clean(df_raw)


def test_date_filter(tmp_path, raw_incidents):
    config = make_config(tmp_path, {'filtering': {'start_date': '2020-01-01', 'end_date': '2020-12-31'}})

    df = IncidentDataCleaner(config).clean(raw_incidents)

    assert len(df) > 0
    assert (df['year'] == 2020).all()
