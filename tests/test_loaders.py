"""Tests for downloading and loading the incident CSV."""

from unittest.mock import MagicMock

import pytest
import requests

from shooting_report.data import IncidentDataLoader


CSV_BYTES = (
    b'\xef\xbb\xbfINCIDENT_KEY,OCCUR_DATE,OCCUR_TIME,BORO,STATISTICAL_MURDER_FLAG\n'
    b'1001,01/05/2020,23:15:00,BRONX,false\n'
    b'1002,01/06/2020,02:40:00,QUEENS,true\n'
)


def _mock_session(chunks=None, error=None):
    response = MagicMock()
    response.headers = {'Content-Length': str(len(CSV_BYTES))}
    response.iter_content.return_value = chunks if chunks is not None else [CSV_BYTES[:40], CSV_BYTES[40:]]
    if error is not None:
        response.raise_for_status.side_effect = error

    session = MagicMock()
    session.get.return_value.__enter__.return_value = response
    return session


def test_download_writes_cache_file(config):
    session = _mock_session()
    loader = IncidentDataLoader(config, session=session)

    path = loader.download()

    assert path == loader.cache_file
    assert path.read_bytes() == CSV_BYTES
    assert not path.with_name(path.name + '.part').exists()
    session.get.assert_called_once()
    assert session.get.call_args.kwargs['stream'] is True


def test_download_skipped_when_cached(config, cached_csv):
    session = _mock_session()
    loader = IncidentDataLoader(config, session=session)

    path = loader.download()

    assert path == cached_csv
    session.get.assert_not_called()


def test_refresh_downloads_again(config, cached_csv):
    session = _mock_session()
    loader = IncidentDataLoader(config, session=session)

    loader.download(refresh=True)

    session.get.assert_called_once()
    assert cached_csv.read_bytes() == CSV_BYTES


def test_http_error_propagates_and_leaves_no_partial_file(config):
    session = _mock_session(error=requests.HTTPError('503 Server Error'))
    loader = IncidentDataLoader(config, session=session)

    with pytest.raises(requests.HTTPError):
        loader.download()

    assert not loader.cache_file.exists()
    assert not loader.cache_file.with_name(loader.cache_file.name + '.part').exists()


def test_interrupted_stream_removes_partial_file(config):
    session = _mock_session()
    response = session.get.return_value.__enter__.return_value
    response.iter_content.side_effect = requests.ConnectionError('connection reset')
    loader = IncidentDataLoader(config, session=session)

    with pytest.raises(requests.ConnectionError):
        loader.download()

    assert not loader.data_path.joinpath(loader.file_name + '.part').exists()


def test_load_reads_text_columns_and_strips_bom(config):
    loader = IncidentDataLoader(config, session=_mock_session())

    df = loader.load()

    assert list(df.columns) == ['INCIDENT_KEY', 'OCCUR_DATE', 'OCCUR_TIME', 'BORO', 'STATISTICAL_MURDER_FLAG']
    assert df['INCIDENT_KEY'].tolist() == ['1001', '1002']
    assert len(df) == 2


def test_load_file_missing_raises(config, tmp_path):
    loader = IncidentDataLoader(config, session=_mock_session())

    with pytest.raises(FileNotFoundError):
        loader.load_file(tmp_path / 'missing.csv')


def test_default_session_retries_server_errors(config):
    loader = IncidentDataLoader(config)

    adapter = loader.session.get_adapter('https://data.cityofnewyork.us/')
    assert 503 in adapter.max_retries.status_forcelist
    assert 'nypd-shooting-report' in loader.session.headers['User-Agent']
