"""
Pytest fixtures for the shooting incident report tests.

Builds a synthetic incident CSV in the NYC Open Data layout and a
configuration that keeps every path under the test's tmp directory.
"""

import logging

import numpy as np
import pandas as pd
import pytest
import yaml

from shooting_report.utils.config import ConfigLoader
from shooting_report.utils.logging_config import LOGGER_NAME


RAW_BOROUGHS = ['BRONX', 'BROOKLYN', 'MANHATTAN', 'QUEENS', 'STATEN ISLAND']
RAW_BOROUGH_WEIGHTS = [0.28, 0.40, 0.13, 0.15, 0.04]

# Rows the cleaner must drop: two bad dates, one unknown borough
INVALID_ROWS = 3


def make_raw_incidents(n_months: int = 48, start: str = '2019-01-01', seed: int = 7) -> pd.DataFrame:
    """Synthetic raw incidents with a yearly cycle and a downward trend"""
    rng = np.random.default_rng(seed)
    rows = []
    key = 200000000

    for i, month in enumerate(pd.date_range(start, periods=n_months, freq='MS')):
        expected = 60 + 20 * np.sin(2 * np.pi * (month.month - 4) / 12) - 0.3 * i
        n = max(int(rng.poisson(expected)), 1)

        days = rng.integers(1, month.days_in_month + 1, n)
        hours = rng.integers(0, 24, n)
        minutes = rng.integers(0, 60, n)
        boroughs = rng.choice(RAW_BOROUGHS, size=n, p=RAW_BOROUGH_WEIGHTS)
        murders = rng.random(n) < 0.2

        for day, hour, minute, borough, murder in zip(days, hours, minutes, boroughs, murders):
            key += 1
            rows.append({
                'INCIDENT_KEY': str(key),
                'OCCUR_DATE': f'{month.month:02d}/{day:02d}/{month.year}',
                'OCCUR_TIME': f'{hour:02d}:{minute:02d}:00',
                'BORO': borough,
                'PRECINCT': str(rng.integers(1, 123)),
                'STATISTICAL_MURDER_FLAG': 'true' if murder else 'false',
                'VIC_AGE_GROUP': '25-44',
            })

    rows.extend([
        {'INCIDENT_KEY': '1', 'OCCUR_DATE': None, 'OCCUR_TIME': '10:00:00', 'BORO': 'BRONX',
         'PRECINCT': '40', 'STATISTICAL_MURDER_FLAG': 'false', 'VIC_AGE_GROUP': '18-24'},
        {'INCIDENT_KEY': '2', 'OCCUR_DATE': 'not a date', 'OCCUR_TIME': '11:00:00', 'BORO': 'QUEENS',
         'PRECINCT': '105', 'STATISTICAL_MURDER_FLAG': 'true', 'VIC_AGE_GROUP': '18-24'},
        {'INCIDENT_KEY': '3', 'OCCUR_DATE': f'06/15/{start[:4]}', 'OCCUR_TIME': '12:00:00', 'BORO': 'NEW JERSEY',
         'PRECINCT': '0', 'STATISTICAL_MURDER_FLAG': 'false', 'VIC_AGE_GROUP': 'UNKNOWN'},
    ])

    return pd.DataFrame(rows)


def make_config(tmp_path, overrides: dict = None) -> ConfigLoader:
    """Write a test configuration with tmp paths and fast forecast settings"""
    settings = {
        'data': {
            'source_url': 'https://example.test/incidents.csv',
            'raw_path': str(tmp_path / 'data' / 'raw'),
            'raw_file': 'nypd_shooting_incidents.csv',
            'intermediate_path': str(tmp_path / 'data' / 'intermediate'),
            'output_path': str(tmp_path / 'data' / 'output'),
            'timeout': 5,
            'max_retries': 0,
            'show_progress': False,
        },
        'columns': {
            'date': 'OCCUR_DATE',
            'time': 'OCCUR_TIME',
            'borough': 'BORO',
            'incident_key': 'INCIDENT_KEY',
            'murder_flag': 'STATISTICAL_MURDER_FLAG',
        },
        'filtering': {'start_date': None, 'end_date': None},
        'regression': {'formula': 'incidents ~ t + C(month)'},
        'evaluation': {
            'holdout_months': 6,
            'models': ['sarimax', 'seasonal_naive', 'moving_average', 'linear_trend'],
        },
        'forecast': {
            'model': 'sarimax',
            'horizon_months': 6,
            'alpha': 0.05,
            'by_borough': True,
            'sarimax': {'order': [1, 0, 0], 'seasonal_order': [0, 0, 0, 0]},
            'moving_average': {'window': 3},
        },
        'results': {'path': str(tmp_path / 'results'), 'report_file': 'report.html'},
        'logging': {'level': 'WARNING', 'file': str(tmp_path / 'logs' / 'shooting_report.log')},
    }

    for section, values in (overrides or {}).items():
        settings.setdefault(section, {}).update(values)

    config_path = tmp_path / 'config.yaml'
    config_path.write_text(yaml.safe_dump(settings))

    return ConfigLoader(str(config_path))


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers added by setup_logging so streams from one test don't leak"""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers = []


@pytest.fixture
def raw_incidents():
    return make_raw_incidents()


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def cached_csv(config, raw_incidents):
    """Raw CSV placed where the loader caches downloads"""
    path = config.get_path('data.raw_path') / config.get('data.raw_file')
    path.parent.mkdir(parents=True, exist_ok=True)
    raw_incidents.to_csv(path, index=False)
    return path


@pytest.fixture
def clean_incidents(config, raw_incidents):
    from shooting_report.data import IncidentDataCleaner
    return IncidentDataCleaner(config).clean(raw_incidents)


@pytest.fixture
def tables(clean_incidents):
    from shooting_report.data import DataAggregator
    return DataAggregator().build_all(clean_incidents)
