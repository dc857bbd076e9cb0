"""Tests for configuration loading and logging setup."""

import logging

import pytest
import yaml

from shooting_report.utils.config import ConfigLoader
from shooting_report.utils.logging_config import LOGGER_NAME, get_logger, setup_logging


def test_get_supports_dot_notation(config):
    assert config.get('forecast.horizon_months') == 6
    assert config.get('forecast.sarimax.order') == [1, 0, 0]
    assert config.get('data.missing_key', 'fallback') == 'fallback'


def test_explicit_null_falls_back_to_default(config):
    assert config.get('filtering.start_date', '2020-01-01') == '2020-01-01'


def test_get_path_keeps_absolute_paths(config, tmp_path):
    assert config.get_path('data.raw_path') == tmp_path / 'data' / 'raw'


def test_relative_paths_resolve_against_config_directory(config, tmp_path):
    assert config.get_path('data.not_configured', 'some/dir') == tmp_path.resolve() / 'some' / 'dir'


def test_relative_paths_resolve_against_project_of_config_dir(tmp_path):
    config_dir = tmp_path / 'project' / 'config'
    config_dir.mkdir(parents=True)
    (config_dir / 'config.yaml').write_text(yaml.safe_dump({'data': {'raw_path': 'data/raw'}}))

    config = ConfigLoader(str(config_dir / 'config.yaml'))

    assert config.project_root == (tmp_path / 'project').resolve()
    assert config.get_path('data.raw_path') == (tmp_path / 'project' / 'data' / 'raw').resolve()


def test_get_path_without_default_raises(config):
    with pytest.raises(ValueError):
        config.get_path('data.not_configured')


def test_set_overrides_nested_value(config):
    config.set('forecast.horizon_months', 24)
    config.set('new_section.value', 'x')

    assert config.get('forecast.horizon_months') == 24
    assert config.get('new_section.value') == 'x'


def test_missing_config_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(str(tmp_path / 'nope.yaml'))


def test_default_config_ships_with_project():
    config = ConfigLoader()

    assert '833y-fsy8' in config.get('data.source_url')
    assert config.get('columns.borough') == 'BORO'
    assert config.get('forecast.horizon_months') == 12


def test_module_loggers_propagate_to_package_logger(tmp_path):
    log_file = tmp_path / 'logs' / 'run.log'
    setup_logging(log_level='WARNING', log_file=str(log_file), log_to_console=False)

    get_logger('shooting_report.data.loaders').info("written to file only")

    package_logger = logging.getLogger(LOGGER_NAME)
    for handler in package_logger.handlers:
        handler.flush()

    assert "written to file only" in log_file.read_text()
