"""Shared test fixtures."""
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from jobcrm.database import Base


NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed clock instant used by pipeline tests."""
    return NOW


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine('sqlite:///:memory:')
    import jobcrm.models.user
    import jobcrm.models.job_source
    import jobcrm.models.job_posting
    import jobcrm.models.job_match
    import jobcrm.models.task
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine, expire_on_commit=False)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_session):
    """Route all get_session() / session factory calls to the test session.

    We disable close() so that code calling session.close() in its finally
    blocks doesn't invalidate the shared test session.
    """
    _real_close = db_session.close
    db_session.close = lambda: None
    with patch('jobcrm.database.get_session', return_value=db_session), \
            patch('jobcrm.database.get_session_factory', return_value=lambda: db_session):
        yield db_session
    db_session.close = _real_close


@pytest.fixture
def session_factory(db_session):
    """Callable handing out the shared test session."""
    return lambda: db_session


@pytest.fixture
def mock_redis():
    """Mock Redis client. Returns a MagicMock with common Redis methods."""
    mock = MagicMock()
    mock.get.return_value = None
    mock.hgetall.return_value = {}
    mock.incr.return_value = 1
    with patch('jobcrm.extensions.redis_client', mock):
        yield mock


@pytest.fixture
def app(mock_redis):
    """Flask test app."""
    from jobcrm import create_app
    app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


# ── Record factories ─────────────────────────────────────────────────────────

@pytest.fixture
def make_user(db_session):
    """Factory fixture — persists a User."""
    from jobcrm.models.user import User

    def _make(email='casey@example.com', **overrides):
        user = User(email=email, display_name=overrides.pop('display_name', email.split('@')[0]), **overrides)
        db_session.add(user)
        db_session.flush()
        return user
    return _make


@pytest.fixture
def make_lead(db_session):
    """Factory fixture — persists a JobPosting + JobMatch (+ optional tasks)."""
    from jobcrm.models.job_match import JobMatch
    from jobcrm.models.job_posting import JobPosting
    from jobcrm.models.task import Task

    def _make(company='Atlas Robotics', role='Senior AI Product Manager', user_id=None,
              tasks=(), posting_overrides=None, **overrides):
        posting = JobPosting(
            company=company,
            role=role,
            location='Remote - US',
            url='https://example.com/jobs/atlas',
            keywords=['AI', 'Product'],
            owner_id=user_id,
            **(posting_overrides or {}),
        )
        db_session.add(posting)
        db_session.flush()

        defaults = dict(
            posting_id=posting.id,
            user_id=user_id,
            status='Prospecting',
            priority='Medium',
            fit_score=80,
            tags=['AI'],
            notes=[],
            last_touchpoint=NOW - timedelta(days=1),
            follow_up_at=None,
        )
        defaults.update(overrides)
        match = JobMatch(**defaults)
        match.tasks = [Task(**t) for t in tasks]
        db_session.add(match)
        db_session.commit()
        return match
    return _make


@pytest.fixture
def greenhouse_payload():
    """Board API response with two jobs."""
    return {
        'jobs': [
            {
                'id': 4012345,
                'title': 'Staff Data Engineer',
                'absolute_url': 'https://boards.greenhouse.io/acme-robotics/jobs/4012345',
                'updated_at': '2026-02-20T14:03:11-05:00',
                'location': {'name': 'New York, NY'},
                'departments': [{'name': 'Engineering'}],
                'offices': [{'name': 'NYC'}],
                'metadata': [{'name': 'Level', 'value': 'Staff'}],
            },
            {
                'id': 4012399,
                'title': 'Product Designer',
                'absolute_url': 'https://boards.greenhouse.io/acme-robotics/jobs/4012399',
                'updated_at': '2026-02-21T09:00:00Z',
                'location': None,
                'departments': None,
                'offices': [{'name': 'Remote'}],
            },
        ],
    }


@pytest.fixture
def signed_in(db_session, make_user):
    """(user, headers) for a user holding a live bearer session."""
    from jobcrm.services.auth import issue_session
    user = make_user()
    token = issue_session(db_session, user)
    db_session.commit()
    return user, {'Authorization': f'Bearer {token}'}
