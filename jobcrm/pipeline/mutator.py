"""
Pipeline mutator — applies user actions to leads and tasks.

Each operation is one request/response cycle against the store: validate,
open a session, write the lead fields together with any generated tasks,
commit, invalidate the projection cache. Nothing is changed in memory before
the commit succeeds, so a failed write leaves the previous snapshot intact.

Concurrent writes to the same lead are last-write-wins; there is no version
column.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from jobcrm.config import TASK_STATUSES, TASK_CATEGORIES, PRIORITIES, DEFAULT_LOCATION
from jobcrm.errors import AuthorizationError, ConfigurationError, ValidationError
from jobcrm.pipeline.projection import (
    Lead,
    PipelineSnapshot,
    ProjectionCache,
    project_lead,
    project_snapshot,
    utcnow,
)
from jobcrm.pipeline.stages import stage_index
from jobcrm.pipeline.task_generator import (
    MANUAL_FOLLOW_UP_DELAY,
    TaskDraft,
    follow_up_for_stage,
    follow_up_task,
    generated_tasks_for_stage,
)
from jobcrm.services import db

logger = logging.getLogger('pipeline.mutator')

MANUAL_NOTE = 'Added manually'


class NewLead(BaseModel):
    """Payload for a manually added lead."""
    company: str = Field(min_length=1)
    role: str = Field(min_length=1)
    location: str = DEFAULT_LOCATION
    link: Optional[str] = None
    priority: str = 'Medium'
    tags: List[str] = Field(default_factory=list)

    @field_validator('company', 'role', 'location')
    @classmethod
    def _strip(cls, value):
        return value.strip()

    @field_validator('priority')
    @classmethod
    def _known_priority(cls, value):
        value = value[:1].upper() + value[1:].lower()
        if value not in PRIORITIES:
            raise ValueError(f"must be one of {', '.join(PRIORITIES)}")
        return value


class PipelineMutator:
    """
    Write side of the pipeline engine.

    Args:
        session_factory: callable returning a SQLAlchemy session, or None when
                         persistence is disabled (every operation then raises
                         ConfigurationError).
        user_id:         scope reads to this user's leads plus global leads.
                         Writes to a global lead land on the user's own copy
                         of it, and the returned Lead carries the copy's id.
                         None = unscoped (scripts, workers).
        clock:           returns the current UTC instant.
        cache:           ProjectionCache invalidated after every write.
    """

    def __init__(self, session_factory, user_id: Optional[str] = None,
                 clock: Callable[[], datetime] = utcnow, cache: Optional[ProjectionCache] = None):
        self.session_factory = session_factory
        self.user_id = user_id
        self.clock = clock
        self.cache = cache if cache is not None else ProjectionCache()

    def _session(self):
        if self.session_factory is None:
            raise ConfigurationError('Persistence not configured')
        return self.session_factory()

    # ── Read side ────────────────────────────────────────────────────────

    def snapshot(self) -> PipelineSnapshot:
        """Current snapshot, re-fetched if a write invalidated it."""
        return self.cache.get(self._load_snapshot)

    def list_leads(self):
        return list(self.snapshot().leads)

    def _load_snapshot(self) -> PipelineSnapshot:
        session = self._session()
        try:
            matches = db.fetch_matches(session, user_id=self.user_id)
            return project_snapshot(matches, now=self.clock())
        finally:
            session.close()

    def _reload(self, session, lead_id, now) -> Lead:
        session.expire_all()
        return project_lead(db.get_match(session, lead_id, self.user_id), now)

    # ── Stage transitions ────────────────────────────────────────────────

    def change_stage(self, lead_id: str, target_stage: str) -> Lead:
        """
        Move a lead to `target_stage`.

        Stamps last_touchpoint, sets follow_up_at (Interviewing +2d, Offer +1d,
        otherwise cleared) and inserts the stage's auto-generated tasks in the
        same transaction.
        """
        stage_index(target_stage)
        now = self.clock()

        session = self._session()
        try:
            match = db.claim_match(session, lead_id, self.user_id)
            match.status = target_stage
            match.last_touchpoint = now
            match.follow_up_at = follow_up_for_stage(target_stage, now)

            drafts = generated_tasks_for_stage(target_stage, match.id, now)
            db.insert_tasks(session, match, drafts)

            session.commit()
            self.cache.invalidate()
            logger.info("Lead %s → %s (%d task(s) generated)", match.id, target_stage, len(drafts))
            return self._reload(session, match.id, now)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Tasks ────────────────────────────────────────────────────────────

    def change_task_status(self, task_id: str, status: str):
        """Persist a task's new status. No effect on the parent lead."""
        if status not in TASK_STATUSES:
            raise ValidationError(
                f'Unknown task status: {status}',
                fields={'status': [f"must be one of {', '.join(TASK_STATUSES)}"]},
            )

        session = self._session()
        try:
            task = db.claim_task(session, task_id, self.user_id)
            task.status = status
            session.commit()
            self.cache.invalidate()
            logger.info("Task %s → %s", task.id, status)
            return project_lead(db.get_match(session, task.match_id, self.user_id), self.clock())
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def schedule_follow_up(self, lead_id: str, lead: Optional[Lead] = None) -> Lead:
        """Set follow-up to now+2d and create a matching Follow-up task."""
        now = self.clock()
        due = now + MANUAL_FOLLOW_UP_DELAY

        session = self._session()
        try:
            match = db.claim_match(session, lead_id, self.user_id)
            company = lead.company if lead else match.posting.company
            role = lead.role if lead else match.posting.role

            match.follow_up_at = due
            db.insert_tasks(session, match, [follow_up_task(match.id, company, role, due)])

            session.commit()
            self.cache.invalidate()
            logger.info("Follow-up scheduled for lead %s at %s", match.id, due.isoformat())
            return self._reload(session, match.id, now)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def add_task(self, lead_id: str, title: str, category: str = 'Follow-up',
                 due_at: Optional[datetime] = None) -> Lead:
        """Explicit user-created task (not auto-generated)."""
        errors = {}
        if not title or not title.strip():
            errors['title'] = ['is required']
        if category not in TASK_CATEGORIES:
            errors['category'] = [f"must be one of {', '.join(TASK_CATEGORIES)}"]
        if errors:
            raise ValidationError('Invalid task', fields=errors)

        now = self.clock()
        session = self._session()
        try:
            match = db.claim_match(session, lead_id, self.user_id)
            draft = TaskDraft(
                lead_id=match.id,
                title=title.strip(),
                category=category,
                due_at=due_at or now + timedelta(days=1),
                status='pending',
                auto_generated=False,
            )
            db.insert_tasks(session, match, [draft])
            session.commit()
            self.cache.invalidate()
            return self._reload(session, match.id, now)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── Notes ────────────────────────────────────────────────────────────

    def add_note(self, lead_id: str, note: str) -> Lead:
        if not note or not note.strip():
            raise ValidationError('Invalid note', fields={'note': ['is required']})

        now = self.clock()
        session = self._session()
        try:
            match = db.claim_match(session, lead_id, self.user_id)
            # Reassign so the JSON column is flagged dirty
            match.notes = list(match.notes or []) + [note.strip()]
            match.last_touchpoint = now
            session.commit()
            self.cache.invalidate()
            return self._reload(session, match.id, now)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ── New leads ────────────────────────────────────────────────────────

    def add_lead(self, payload, user) -> Lead:
        """Create a posting + lead owned by the signed-in `user`."""
        if user is None:
            raise AuthorizationError('You must be signed in to add a job')

        try:
            data = payload if isinstance(payload, NewLead) else NewLead.model_validate(payload or {})
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, 'Invalid lead') from e

        now = self.clock()
        session = self._session()
        try:
            match = db.insert_posting_with_match(
                session,
                user.id,
                company=data.company,
                role=data.role,
                location=data.location or DEFAULT_LOCATION,
                link=data.link,
                priority=data.priority,
                tags=data.tags,
                notes=[MANUAL_NOTE],
                now=now,
            )
            session.commit()
            self.cache.invalidate()
            logger.info("Lead %s added by user %s (%s — %s)", match.id, user.id, data.company, data.role)
            return self._reload(session, match.id, now)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
