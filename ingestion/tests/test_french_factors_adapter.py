"""
Tests for the French data library adapter - mocked requests, no live downloads.
"""

import io
import zipfile
from unittest.mock import MagicMock, patch

import pytest
import requests

from ingestion.providers.french_factors_adapter import (
    FIVE_FACTORS_DAILY,
    MOMENTUM_DAILY,
    FrenchFactorsError,
    fetch_five_factors_csv,
    fetch_french_csv,
    fetch_momentum_csv,
)


def _zipped(text, name='data.CSV'):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        archive.writestr(name, text)
    return buffer.getvalue()


def _response(content):
    response = MagicMock()
    response.content = content
    response.raise_for_status.return_value = None
    return response


class TestFetchFrenchCsv:
    """Tests for fetch_french_csv."""

    @patch('ingestion.providers.french_factors_adapter.requests.get')
    def test_returns_first_file_text(self, mock_get, monkeypatch):
        monkeypatch.setenv('FRENCH_DATA_BASE_URL', 'https://example.test/ftp/')
        monkeypatch.setenv('REQUESTS_TIMEOUT_S', '5')
        mock_get.return_value = _response(_zipped(',Mom\n20240102, 1.25\n'))

        text = fetch_french_csv('file.zip')

        assert text == ',Mom\n20240102, 1.25\n'
        args, kwargs = mock_get.call_args
        assert args[0] == 'https://example.test/ftp/file.zip'
        assert kwargs['timeout'] == 5

    @patch('ingestion.providers.french_factors_adapter.requests.get')
    def test_http_error(self, mock_get):
        response = _response(b'')
        response.raise_for_status.side_effect = requests.HTTPError('404 Not Found')
        mock_get.return_value = response

        with pytest.raises(FrenchFactorsError, match="404"):
            fetch_french_csv('missing.zip')

    @patch('ingestion.providers.french_factors_adapter.requests.get')
    def test_connection_error(self, mock_get):
        mock_get.side_effect = requests.ConnectionError('offline')

        with pytest.raises(FrenchFactorsError, match="offline"):
            fetch_french_csv('file.zip')

    @patch('ingestion.providers.french_factors_adapter.requests.get')
    def test_not_a_zip(self, mock_get):
        mock_get.return_value = _response(b'<html>moved</html>')

        with pytest.raises(FrenchFactorsError, match="Invalid zip"):
            fetch_french_csv('file.zip')

    @patch('ingestion.providers.french_factors_adapter.requests.get')
    def test_empty_archive(self, mock_get):
        buffer = io.BytesIO()
        zipfile.ZipFile(buffer, 'w').close()
        mock_get.return_value = _response(buffer.getvalue())

        with pytest.raises(FrenchFactorsError, match="Empty archive"):
            fetch_french_csv('file.zip')


class TestNamedFiles:
    """The named fetchers request the daily files."""

    @patch('ingestion.providers.french_factors_adapter.fetch_french_csv', return_value='text')
    def test_five_factors(self, mock_fetch):
        assert fetch_five_factors_csv() == 'text'
        mock_fetch.assert_called_once_with(FIVE_FACTORS_DAILY)

    @patch('ingestion.providers.french_factors_adapter.fetch_french_csv', return_value='text')
    def test_momentum(self, mock_fetch):
        assert fetch_momentum_csv() == 'text'
        mock_fetch.assert_called_once_with(MOMENTUM_DAILY)
