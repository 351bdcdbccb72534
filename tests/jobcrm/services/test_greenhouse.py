"""Tests for jobcrm.services.greenhouse — board API client."""
from datetime import datetime, timezone

import pytest
import requests
from unittest.mock import MagicMock, patch

from jobcrm.errors import SchemaMismatchError, UpstreamError
from jobcrm.pipeline.projection import as_utc
from jobcrm.services.greenhouse import GreenhouseJob, board_jobs_url, fetch_board_jobs


@pytest.fixture
def breaker():
    """Pass-through breaker so tests exercise the HTTP handling only."""
    cb = MagicMock()
    cb.call.side_effect = lambda func, *args, **kwargs: func(*args, **kwargs)
    with patch('jobcrm.services.circuit_breaker.get_breaker', return_value=cb):
        yield cb


def _response(payload, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f'{status} Client Error')
    return resp


class TestGreenhouseJob:

    def test_keywords_departments_then_offices(self, greenhouse_payload):
        job = GreenhouseJob.model_validate(greenhouse_payload['jobs'][0])
        assert job.keywords == ['Engineering', 'NYC']
        assert job.external_id == '4012345'

    def test_nullable_collections(self, greenhouse_payload):
        job = GreenhouseJob.model_validate(greenhouse_payload['jobs'][1])
        assert job.location is None
        assert job.keywords == ['Remote']

    def test_rejects_non_url(self, greenhouse_payload):
        bad = {**greenhouse_payload['jobs'][0], 'absolute_url': 'not a url'}
        with pytest.raises(ValueError):
            GreenhouseJob.model_validate(bad)

    def test_updated_at_parsed_to_utc(self, greenhouse_payload):
        job = GreenhouseJob.model_validate(greenhouse_payload['jobs'][0])
        assert as_utc(job.updated_at) == datetime(2026, 2, 20, 19, 3, 11, tzinfo=timezone.utc)

    def test_rejects_unparseable_updated_at(self, greenhouse_payload):
        bad = {**greenhouse_payload['jobs'][0], 'updated_at': 'yesterday'}
        with pytest.raises(ValueError):
            GreenhouseJob.model_validate(bad)


class TestFetchBoardJobs:

    @patch('jobcrm.services.greenhouse.requests.get')
    def test_fetches_and_validates(self, mock_get, breaker, greenhouse_payload):
        mock_get.return_value = _response(greenhouse_payload)

        jobs = fetch_board_jobs('acme-robotics')

        assert [j.title for j in jobs] == ['Staff Data Engineer', 'Product Designer']
        mock_get.assert_called_once()
        assert mock_get.call_args.args[0] == board_jobs_url('acme-robotics')
        assert mock_get.call_args.args[0].endswith('/boards/acme-robotics/jobs')
        assert mock_get.call_args.kwargs['timeout'] == 30

    @patch('jobcrm.services.greenhouse.requests.get')
    def test_http_error(self, mock_get, breaker):
        mock_get.return_value = _response({}, status=404)
        with pytest.raises(UpstreamError) as exc:
            fetch_board_jobs('missing-board')
        assert exc.value.service == 'greenhouse'

    @patch('jobcrm.services.greenhouse.requests.get')
    def test_timeout(self, mock_get, breaker):
        mock_get.side_effect = requests.Timeout('timed out')
        with pytest.raises(UpstreamError):
            fetch_board_jobs('acme')

    @patch('jobcrm.services.greenhouse.requests.get')
    def test_shape_mismatch(self, mock_get, breaker):
        mock_get.return_value = _response({'jobs': [{'id': 'abc', 'title': 'PM'}]})
        with pytest.raises(SchemaMismatchError):
            fetch_board_jobs('acme')

    @patch('jobcrm.services.greenhouse.requests.get')
    def test_bad_timestamp_is_schema_mismatch(self, mock_get, breaker, greenhouse_payload):
        job = {**greenhouse_payload['jobs'][0], 'updated_at': 'yesterday'}
        mock_get.return_value = _response({'jobs': [job]})
        with pytest.raises(SchemaMismatchError):
            fetch_board_jobs('acme')

    @patch('jobcrm.services.greenhouse.requests.get')
    def test_routes_through_greenhouse_breaker(self, mock_get, greenhouse_payload):
        cb = MagicMock()
        cb.call.return_value = greenhouse_payload
        with patch('jobcrm.services.circuit_breaker.get_breaker', return_value=cb) as mock_get_breaker:
            fetch_board_jobs('acme')
        mock_get_breaker.assert_called_once_with('greenhouse')
        mock_get.assert_not_called()
