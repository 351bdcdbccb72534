"""Tests for scripts/ingest_greenhouse.py and scripts/seed_demo_data.py."""
import importlib.util
import os

import pytest
from unittest.mock import patch

from jobcrm.errors import SchemaMismatchError, UpstreamError
from jobcrm.models.job_match import JobMatch
from jobcrm.models.task import Task
from jobcrm.pipeline.projection import project_lead

SCRIPTS = os.path.join(os.path.dirname(__file__), '..', '..', 'scripts')


def _load(name):
    spec = importlib.util.spec_from_file_location(name, os.path.join(SCRIPTS, f'{name}.py'))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def ingest_cli():
    return _load('ingest_greenhouse')


@pytest.fixture
def seed_script():
    return _load('seed_demo_data')


class TestIngestCli:

    def test_parse_args(self, ingest_cli):
        args = ingest_cli.parse_args(['acme', '--limit', '10', '--owner', 'u-1'])
        assert (args.board, args.limit, args.owner) == ('acme', 10, 'u-1')

    @pytest.mark.parametrize('argv', [[], ['a'], ['acme', '--limit', '0']])
    def test_rejects_bad_args(self, ingest_cli, argv):
        with pytest.raises(SystemExit):
            ingest_cli.parse_args(argv)

    def test_main_success(self, ingest_cli, capsys):
        result = {'board': 'acme', 'total': 2, 'processed': 2,
                  'postings_created': 2, 'postings_updated': 0, 'leads_created': 2}
        with patch.object(ingest_cli, 'ingest_board', return_value=result) as mock_ingest, \
                patch.object(ingest_cli, 'configure_logging'):
            assert ingest_cli.main(['acme', '--limit', '2']) == 0
        assert mock_ingest.call_args.kwargs['limit'] == 2
        assert 'Completed for acme' in capsys.readouterr().out

    @pytest.mark.parametrize('error', [
        UpstreamError('down', service='greenhouse'),
        SchemaMismatchError('Unexpected Greenhouse payload for acme', service='greenhouse'),
    ])
    def test_main_failure_exit_code(self, ingest_cli, error):
        with patch.object(ingest_cli, 'ingest_board', side_effect=error), \
                patch.object(ingest_cli, 'configure_logging'):
            assert ingest_cli.main(['acme']) == 1


class TestSeedDemo:

    def test_seeds_leads_across_stages(self, seed_script, db_session, make_user, now):
        user = make_user('demo@example.com')
        matches = seed_script.seed_demo(db_session, user, now=now)
        db_session.commit()

        leads = [project_lead(m, now) for m in matches]
        assert [lead.stage for lead in leads] == ['Interviewing', 'Applied', 'Prospecting']
        assert all(lead.user_id == user.id for lead in leads)
        assert db_session.query(Task).count() == 3
        assert leads[0].follow_up_date == leads[0].tasks[0].due_date

    def test_clear_removes_user_leads(self, seed_script, db_session, make_user, now):
        user = make_user('demo@example.com')
        seed_script.seed_demo(db_session, user, now=now)
        seed_script.clear_user_leads(db_session, user)
        assert db_session.query(JobMatch).count() == 0
        assert db_session.query(Task).count() == 0
