"""Tests for jobcrm.services.ingestion — board → postings/leads upserts."""
from datetime import datetime, timezone

import pytest
from unittest.mock import patch

from jobcrm.errors import ConfigurationError, UpstreamError
from jobcrm.models.job_match import JobMatch
from jobcrm.models.job_posting import JobPosting
from jobcrm.models.job_source import JobSource
from jobcrm.pipeline.projection import as_utc
from jobcrm.services.greenhouse import GreenhouseJob
from jobcrm.services.ingestion import company_from_board, ingest_board


@pytest.fixture
def jobs(greenhouse_payload):
    return [GreenhouseJob.model_validate(j) for j in greenhouse_payload['jobs']]


class TestCompanyFromBoard:

    def test_title_cases_slug(self):
        assert company_from_board('acme-robotics') == 'Acme Robotics'
        assert company_from_board('northwind_labs') == 'Northwind Labs'
        assert company_from_board('stripe') == 'Stripe'


class TestIngestBoard:

    def test_creates_source_postings_and_global_leads(self, session_factory, db_session, jobs):
        result = ingest_board(session_factory, 'acme-robotics', jobs=jobs)

        assert result == {
            'board': 'acme-robotics',
            'total': 2,
            'processed': 2,
            'postings_created': 2,
            'postings_updated': 0,
            'leads_created': 2,
        }
        [source] = db_session.query(JobSource).all()
        assert source.name == 'Greenhouse:acme-robotics'
        assert source.url.endswith('/acme-robotics')

        engineer = db_session.query(JobPosting).filter_by(external_id='4012345').one()
        assert engineer.company == 'Acme Robotics'
        assert engineer.location == 'New York, NY'
        assert engineer.keywords == ['Engineering', 'NYC']
        assert engineer.source_id == source.id
        assert as_utc(engineer.updated_at) == datetime(2026, 2, 20, 19, 3, 11, tzinfo=timezone.utc)

        designer = db_session.query(JobPosting).filter_by(external_id='4012399').one()
        assert designer.location == 'Remote'

        matches = db_session.query(JobMatch).all()
        assert {m.user_id for m in matches} == {None}
        assert {m.status for m in matches} == {'Prospecting'}

    def test_second_run_is_idempotent(self, session_factory, db_session, jobs):
        ingest_board(session_factory, 'acme-robotics', jobs=jobs)
        result = ingest_board(session_factory, 'acme-robotics', jobs=jobs)

        assert result['postings_created'] == 0
        assert result['postings_updated'] == 2
        assert result['leads_created'] == 0
        assert db_session.query(JobSource).count() == 1
        assert db_session.query(JobPosting).count() == 2
        assert db_session.query(JobMatch).count() == 2

    def test_updates_changed_posting(self, session_factory, db_session, greenhouse_payload):
        first = [GreenhouseJob.model_validate(greenhouse_payload['jobs'][0])]
        ingest_board(session_factory, 'acme', jobs=first)

        renamed = {**greenhouse_payload['jobs'][0], 'title': 'Principal Data Engineer'}
        ingest_board(session_factory, 'acme', jobs=[GreenhouseJob.model_validate(renamed)])

        [posting] = db_session.query(JobPosting).all()
        assert posting.role == 'Principal Data Engineer'

    def test_limit(self, session_factory, jobs):
        result = ingest_board(session_factory, 'acme', limit=1, jobs=jobs)
        assert result['total'] == 2
        assert result['processed'] == 1

    def test_owner_gets_own_lead(self, session_factory, db_session, make_user, jobs):
        owner = make_user('automation@example.com')
        ingest_board(session_factory, 'acme', jobs=jobs)
        result = ingest_board(session_factory, 'acme', owner_id=owner.id, jobs=jobs)

        assert result['leads_created'] == 2
        assert db_session.query(JobMatch).filter_by(user_id=owner.id).count() == 2
        assert db_session.query(JobMatch).count() == 4

    @patch('jobcrm.services.ingestion.fetch_board_jobs')
    def test_fetches_when_jobs_not_given(self, mock_fetch, session_factory, jobs):
        mock_fetch.return_value = jobs
        result = ingest_board(session_factory, 'acme')
        mock_fetch.assert_called_once_with('acme')
        assert result['processed'] == 2

    @patch('jobcrm.services.ingestion.fetch_board_jobs')
    def test_fetch_failure_writes_nothing(self, mock_fetch, session_factory, db_session):
        mock_fetch.side_effect = UpstreamError('board down', service='greenhouse')
        with pytest.raises(UpstreamError):
            ingest_board(session_factory, 'acme')
        assert db_session.query(JobSource).count() == 0

    def test_requires_persistence(self, jobs):
        with pytest.raises(ConfigurationError):
            ingest_board(None, 'acme', jobs=jobs)
