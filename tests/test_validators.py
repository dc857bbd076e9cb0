"""Tests for data quality checks."""

import pandas as pd

from shooting_report.data import DataValidator, IncidentDataCleaner


def test_schema_pass_and_fail(raw_incidents):
    validator = DataValidator()

    assert validator.validate_schema(raw_incidents, ['OCCUR_DATE', 'BORO'])['status'] == 'pass'

    report = validator.validate_schema(raw_incidents.drop(columns=['BORO']), ['OCCUR_DATE', 'BORO'])
    assert report['status'] == 'fail'
    assert report['missing_columns'] == ['BORO']


def test_completeness_flags_sparse_columns():
    df = pd.DataFrame({
        'OCCUR_DATE': ['01/01/2020'] * 10,
        'OCCUR_TIME': ['10:00:00'] * 8 + [None, None],
    })

    report = DataValidator({'completeness_threshold': 90}).validate_completeness(df, ['OCCUR_DATE', 'OCCUR_TIME', 'ABSENT'])

    assert report['status'] == 'warning'
    assert report['low_completeness_columns'] == ['OCCUR_TIME']
    assert report['completeness']['OCCUR_TIME']['null'] == 2
    assert 'ABSENT' not in report['completeness']


def test_boroughs_report_unknown_values(raw_incidents):
    report = DataValidator().validate_boroughs(raw_incidents, 'BORO')

    assert report['status'] == 'warning'
    assert report['unknown_count'] == 1
    assert 'New Jersey' in report['unknown_values']
    assert report['missing_boroughs'] == []


def test_boroughs_match_cleaner_normalization(config):
    df = pd.DataFrame({
        'OCCUR_DATE': ['01/05/2022', '01/06/2022', '01/07/2022'],
        'OCCUR_TIME': ['10:00:00', '11:00:00', '12:00:00'],
        'BORO': ['STATEN  ISLAND', ' bronx ', 'Queens'],
    })

    report = DataValidator().validate_boroughs(df, 'BORO')
    df_clean = IncidentDataCleaner(config).clean(df)

    assert report['unknown_count'] == 0
    assert report['distribution']['Staten Island'] == 1
    assert len(df_clean) == 3


def test_date_range_counts_unparseable(raw_incidents):
    report = DataValidator().validate_date_range(raw_incidents, 'OCCUR_DATE')

    assert report['unparseable_dates'] == 1
    assert report['min_date'].startswith('2019-01')
    assert report['max_date'].startswith('2022-12')


def test_aggregates_must_sum_to_clean_count(clean_incidents, tables):
    validator = DataValidator()

    assert validator.validate_aggregates(clean_incidents, tables)['status'] == 'pass'

    broken = dict(tables)
    broken['monthly'] = tables['monthly'].iloc[1:]
    report = validator.validate_aggregates(clean_incidents, broken)

    assert report['status'] == 'fail'
    assert report['mismatched_tables'] == ['monthly']


def test_generate_report_overall_status(raw_incidents):
    validator = DataValidator()
    validator.validate_schema(raw_incidents, ['OCCUR_DATE'])
    assert validator.generate_report()['overall_status'] == 'pass'

    validator.validate_boroughs(raw_incidents, 'BORO')
    report = validator.generate_report()
    assert report['overall_status'] == 'warning'
    assert set(report['checks']) == {'schema', 'boroughs'}
