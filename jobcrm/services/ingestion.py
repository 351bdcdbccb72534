"""
Job-board ingestion — pulls a Greenhouse board into job_sources /
job_postings / job_matches.

Re-running for the same board never duplicates anything: the source is keyed
by name, postings by the board's job id, and each posting gets at most one
match per owner (owner None = global lead).
"""
import logging
import re
from typing import Dict, List, Optional

from jobcrm.config import DEFAULT_LOCATION, GREENHOUSE_BOARD_URL
from jobcrm.errors import ConfigurationError
from jobcrm.models.job_match import JobMatch
from jobcrm.models.job_posting import JobPosting
from jobcrm.models.job_source import JobSource
from jobcrm.pipeline.projection import as_utc
from jobcrm.pipeline.stages import PROSPECTING
from jobcrm.services.greenhouse import GreenhouseJob, fetch_board_jobs

logger = logging.getLogger('services.ingestion')


def source_name(board_token: str) -> str:
    return f'Greenhouse:{board_token}'


def company_from_board(board_token: str) -> str:
    """'acme-robotics' → 'Acme Robotics'."""
    words = [w for w in re.split(r'[-_\s]+', board_token.strip()) if w]
    return ' '.join(w[:1].upper() + w[1:] for w in words) or board_token


def upsert_source(session, board_token: str) -> JobSource:
    name = source_name(board_token)
    url = f'{GREENHOUSE_BOARD_URL}/{board_token}'
    source = session.query(JobSource).filter(JobSource.name == name).first()
    if source is None:
        source = JobSource(name=name, url=url)
        session.add(source)
    else:
        source.url = url
    session.flush()
    return source


def upsert_posting(session, source: JobSource, job: GreenhouseJob, company: str,
                   owner_id: Optional[str] = None):
    """Insert or update the posting for `job`. Returns (posting, created)."""
    posting = session.query(JobPosting).filter(JobPosting.external_id == job.external_id).first()
    created = posting is None
    if created:
        posting = JobPosting(external_id=job.external_id, owner_id=owner_id)
        session.add(posting)

    posting.source_id = source.id
    posting.company = company
    posting.role = job.title
    posting.location = job.location.name if job.location else DEFAULT_LOCATION
    posting.url = job.absolute_url
    posting.keywords = job.keywords
    posting.updated_at = as_utc(job.updated_at)
    session.flush()
    return posting, created


def ensure_match(session, posting: JobPosting, owner_id: Optional[str] = None) -> bool:
    """Create the posting's lead for `owner_id` if missing. Returns True if created."""
    query = session.query(JobMatch.id).filter(JobMatch.posting_id == posting.id)
    if owner_id is None:
        query = query.filter(JobMatch.user_id.is_(None))
    else:
        query = query.filter(JobMatch.user_id == owner_id)
    if query.first() is not None:
        return False

    session.add(JobMatch(posting_id=posting.id, user_id=owner_id, status=PROSPECTING))
    session.flush()
    return True


def ingest_board(session_factory, board_token: str, limit: Optional[int] = None,
                 owner_id: Optional[str] = None, jobs: Optional[List[GreenhouseJob]] = None) -> Dict:
    """
    Ingest one Greenhouse board in a single transaction.

    Args:
        session_factory: callable returning a SQLAlchemy session
        board_token:     Greenhouse board slug
        limit:           process only the first N jobs
        owner_id:        owner stamped on new postings/leads (None = global)
        jobs:            pre-fetched jobs; fetched from the board API when None

    Returns:
        {'board', 'total', 'processed', 'postings_created', 'postings_updated', 'leads_created'}
    """
    if session_factory is None:
        raise ConfigurationError('Persistence not configured')

    if jobs is None:
        jobs = fetch_board_jobs(board_token)
    selected = jobs[:limit] if limit else jobs
    company = company_from_board(board_token)

    stats = {
        'board': board_token,
        'total': len(jobs),
        'processed': 0,
        'postings_created': 0,
        'postings_updated': 0,
        'leads_created': 0,
    }

    session = session_factory()
    try:
        source = upsert_source(session, board_token)
        for job in selected:
            posting, created = upsert_posting(session, source, job, company, owner_id)
            stats['postings_created' if created else 'postings_updated'] += 1
            if ensure_match(session, posting, owner_id):
                stats['leads_created'] += 1
            stats['processed'] += 1
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Ingestion failed for board %s", board_token, extra={'board': board_token})
        raise
    finally:
        session.close()

    logger.info(
        "Ingested board %s: %d/%d processed, %d new posting(s), %d updated, %d new lead(s)",
        board_token, stats['processed'], stats['total'], stats['postings_created'],
        stats['postings_updated'], stats['leads_created'],
        extra={'board': board_token, 'operation': 'ingest'},
    )
    return stats
