"""
Persistence helpers — the CRUD surface the pipeline engine relies on.

Every helper takes an open session and leaves commit/rollback to the caller.
Nothing is swallowed: lookups of unknown ids raise NotFoundError and driver
errors propagate unchanged.

Global leads (user_id NULL, created by ingestion) are shared read-only. A
user's first write to one claims it: the user gets a private copy for the same
posting, and from then on sees that copy in place of the global lead.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import aliased, selectinload

from jobcrm.errors import NotFoundError
from jobcrm.models.job_match import JobMatch
from jobcrm.models.job_posting import JobPosting
from jobcrm.models.task import Task

logger = logging.getLogger('services.db')


def _visible_to(query, user_id):
    """Restrict to one user's leads plus the global leads they have not claimed."""
    if user_id is None:
        return query
    own = aliased(JobMatch)
    claimed = exists().where(own.posting_id == JobMatch.posting_id, own.user_id == user_id)
    return query.filter(or_(
        JobMatch.user_id == user_id,
        and_(JobMatch.user_id.is_(None), ~claimed),
    ))


def fetch_matches(session, user_id: Optional[str] = None) -> List[JobMatch]:
    """All leads with posting + tasks, most recently touched first."""
    query = session.query(JobMatch).options(selectinload(JobMatch.tasks))
    query = _visible_to(query, user_id)
    return query.order_by(
        JobMatch.last_touchpoint.is_(None),
        JobMatch.last_touchpoint.desc(),
    ).all()


def get_match(session, lead_id: str, user_id: Optional[str] = None) -> JobMatch:
    query = _visible_to(session.query(JobMatch), user_id).filter(JobMatch.id == lead_id)
    match = query.populate_existing().first()
    if match is None:
        raise NotFoundError(f'Lead {lead_id} not found')
    return match


def get_task(session, task_id: str, user_id: Optional[str] = None) -> Task:
    query = session.query(Task).join(JobMatch, Task.match_id == JobMatch.id)
    task = _visible_to(query, user_id).filter(Task.id == task_id).first()
    if task is None:
        raise NotFoundError(f'Task {task_id} not found')
    return task


def insert_tasks(session, match: JobMatch, drafts: Iterable) -> List[Task]:
    """Attach TaskDrafts to a match as new `tasks` rows."""
    rows = []
    for draft in drafts:
        task = Task(
            match_id=match.id,
            title=draft.title,
            category=draft.category,
            due_at=draft.due_at,
            status=draft.status,
            auto_generated=draft.auto_generated,
        )
        match.tasks.append(task)
        rows.append(task)
    if rows:
        session.flush()
        logger.debug("Inserted %d task(s) for lead %s", len(rows), match.id)
    return rows


def insert_posting_with_match(session, owner_id: str, *, company, role, location,
                              link=None, priority='Medium', tags=(), notes=(), now=None) -> JobMatch:
    """Create a manual posting owned by `owner_id` plus its lead."""
    posting = JobPosting(
        owner_id=owner_id,
        company=company,
        role=role,
        location=location,
        url=link,
        keywords=list(tags),
    )
    session.add(posting)
    session.flush()

    match = JobMatch(
        posting_id=posting.id,
        user_id=owner_id,
        status='Prospecting',
        priority=priority,
        tags=list(tags),
        notes=list(notes),
        last_touchpoint=now,
    )
    match.posting = posting
    session.add(match)
    session.flush()
    return match


def _copy_for(match: JobMatch, user_id: str) -> JobMatch:
    own = JobMatch(
        posting_id=match.posting_id,
        user_id=user_id,
        status=match.status,
        priority=match.priority,
        fit_score=match.fit_score,
        tags=list(match.tags or []),
        notes=list(match.notes or []),
        last_touchpoint=match.last_touchpoint,
        follow_up_at=match.follow_up_at,
    )
    own.tasks = [
        Task(
            title=t.title,
            category=t.category,
            due_at=t.due_at,
            status=t.status,
            auto_generated=t.auto_generated,
        )
        for t in match.tasks
    ]
    return own


def claim_match(session, lead_id: str, user_id: Optional[str] = None) -> JobMatch:
    """
    The row a write to `lead_id` should land on.

    Own leads come back as-is. A global lead is copied into a new lead owned
    by `user_id` (tasks included) unless the user already holds one for the
    same posting, in which case that copy is returned. Other users' leads
    raise NotFoundError. With no user, every lead is writable in place.
    """
    match = session.query(JobMatch).filter(JobMatch.id == lead_id).populate_existing().first()
    if match is None or (user_id is not None and match.user_id not in (None, user_id)):
        raise NotFoundError(f'Lead {lead_id} not found')
    if user_id is None or match.user_id is not None:
        return match

    own = session.query(JobMatch).filter(
        JobMatch.posting_id == match.posting_id,
        JobMatch.user_id == user_id,
    ).first()
    if own is None:
        own = _copy_for(match, user_id)
        session.add(own)
        session.flush()
        logger.info("User %s claimed global lead %s as %s", user_id, match.id, own.id)
    return own


def claim_task(session, task_id: str, user_id: Optional[str] = None) -> Task:
    """The task a write to `task_id` should land on; claims its lead if global."""
    task = get_task(session, task_id, user_id)
    match = task.match
    if user_id is None or match.user_id is not None:
        return task
    own = claim_match(session, match.id, user_id)
    # The copy was built from match.tasks in its current order
    return own.tasks[list(match.tasks).index(task)]
