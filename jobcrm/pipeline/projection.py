"""
Lead projection — maps persisted match/posting/task rows into the Lead/Task
view model the pipeline engine and the API work with.

The persisted status/category fields are loosely typed free text. Each one is
mapped onto its closed vocabulary by an ordered list of (substring, value)
rules with a fixed default: case-insensitive, first match wins, total.

Snapshots are immutable and rebuilt wholesale after every mutation; there is
no incremental update path.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from jobcrm.config import (
    PRIORITIES,
    DEFAULT_AUTOMATION_SCORE,
    DEFAULT_LOCATION,
    DEFAULT_PRIORITY,
)
from jobcrm.pipeline.stages import STAGE_ORDER, stage_progress

# ── Free-text → enum rules ───────────────────────────────────────────────────

STAGE_RULES: Tuple[Tuple[str, str], ...] = (
    ('apply', 'Applied'),
    ('interview', 'Interviewing'),
    ('offer', 'Offer'),
    ('hire', 'Hired'),
    ('arch', 'Archived'),
)
DEFAULT_STAGE = 'Prospecting'

CATEGORY_RULES: Tuple[Tuple[str, str], ...] = (
    ('outreach', 'Outreach'),
    ('follow', 'Follow-up'),
    ('prep', 'Preparation'),
)
DEFAULT_CATEGORY = 'Research'

STATUS_RULES: Tuple[Tuple[str, str], ...] = (
    ('complete', 'completed'),
    ('schedule', 'scheduled'),
)
DEFAULT_TASK_STATUS = 'pending'


def match_rules(raw: Optional[str], rules: Sequence[Tuple[str, str]], default: str) -> str:
    normalized = (raw or '').lower()
    for needle, value in rules:
        if needle in normalized:
            return value
    return default


_CANONICAL_STAGES = {stage.lower(): stage for stage in STAGE_ORDER}


def derive_stage(raw_status: Optional[str]) -> str:
    # Canonical names map to themselves: "applied" does not contain "apply"
    canonical = _CANONICAL_STAGES.get((raw_status or '').strip().lower())
    if canonical:
        return canonical
    return match_rules(raw_status, STAGE_RULES, DEFAULT_STAGE)


def derive_task_category(raw_category: Optional[str]) -> str:
    return match_rules(raw_category, CATEGORY_RULES, DEFAULT_CATEGORY)


def derive_task_status(raw_status: Optional[str]) -> str:
    return match_rules(raw_status, STATUS_RULES, DEFAULT_TASK_STATUS)


def normalize_priority(raw: Optional[str]) -> str:
    """'HIGH' / 'high' → 'High'. Anything outside High/Medium/Low → Medium."""
    if not raw:
        return DEFAULT_PRIORITY
    value = raw[:1].upper() + raw[1:].lower()
    return value if value in PRIORITIES else DEFAULT_PRIORITY


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if dt is None:
        return None
    if isinstance(dt, str):
        dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── View model ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TaskView:
    id: str
    lead_id: str
    title: str
    category: str
    due_date: datetime
    status: str
    auto_generated: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'lead_id': self.lead_id,
            'title': self.title,
            'category': self.category,
            'due_date': self.due_date.isoformat(),
            'status': self.status,
            'auto_generated': self.auto_generated,
        }


@dataclass(frozen=True)
class Lead:
    id: str
    posting_id: str
    user_id: Optional[str]
    company: str
    role: str
    location: str
    remote: Optional[bool]
    job_type: Optional[str]
    seniority: Optional[str]
    description: Optional[str]
    link: str
    keywords: Tuple[str, ...]
    stage: str
    priority: str
    automation_score: int
    tags: Tuple[str, ...]
    notes: Tuple[str, ...]
    last_touchpoint: datetime
    follow_up_date: Optional[datetime]
    tasks: Tuple[TaskView, ...] = ()

    def to_dict(self, include_tasks=True) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'posting_id': self.posting_id,
            'user_id': self.user_id,
            'company': self.company,
            'role': self.role,
            'location': self.location,
            'remote': self.remote,
            'job_type': self.job_type,
            'seniority': self.seniority,
            'description': self.description,
            'link': self.link,
            'keywords': list(self.keywords),
            'stage': self.stage,
            'progress': stage_progress(self.stage),
            'priority': self.priority,
            'automation_score': self.automation_score,
            'tags': list(self.tags),
            'notes': list(self.notes),
            'last_touchpoint': self.last_touchpoint.isoformat(),
            'follow_up_date': self.follow_up_date.isoformat() if self.follow_up_date else None,
        }
        if include_tasks:
            data['tasks'] = [t.to_dict() for t in self.tasks]
        return data


@dataclass(frozen=True)
class PipelineSnapshot:
    """Immutable read of every lead (with its tasks) at one instant."""
    leads: Tuple[Lead, ...] = ()
    fetched_at: Optional[datetime] = None
    _by_id: Dict[str, Lead] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        self._by_id.update({lead.id: lead for lead in self.leads})

    @property
    def tasks(self) -> Tuple[TaskView, ...]:
        return tuple(task for lead in self.leads for task in lead.tasks)

    def lead(self, lead_id: str) -> Optional[Lead]:
        return self._by_id.get(lead_id)


# ── Row → view mapping ───────────────────────────────────────────────────────

def _field(row, name, default=None):
    """Read a column from an ORM row or a plain dict."""
    if row is None:
        return default
    if isinstance(row, dict):
        value = row.get(name, default)
    else:
        value = getattr(row, name, default)
    return default if value is None else value


def _clamp_score(raw) -> int:
    if raw is None:
        return DEFAULT_AUTOMATION_SCORE
    return max(0, min(100, int(raw)))


def project_task(row, lead_id: str, now: datetime) -> TaskView:
    return TaskView(
        id=_field(row, 'id'),
        lead_id=lead_id,
        title=_field(row, 'title', ''),
        category=derive_task_category(_field(row, 'category')),
        due_date=as_utc(_field(row, 'due_at')) or now,
        status=derive_task_status(_field(row, 'status')),
        auto_generated=bool(_field(row, 'auto_generated', False)),
    )


def project_lead(match, now: Optional[datetime] = None) -> Lead:
    """Map one job_matches row (with its posting + tasks) onto a Lead."""
    now = now or utcnow()
    posting = _field(match, 'posting') or _field(match, 'job_postings') or {}
    lead_id = _field(match, 'id')
    tasks = tuple(project_task(t, lead_id, now) for t in (_field(match, 'tasks') or []))

    return Lead(
        id=lead_id,
        posting_id=_field(posting, 'id') or _field(match, 'posting_id'),
        user_id=_field(match, 'user_id'),
        company=_field(posting, 'company', ''),
        role=_field(posting, 'role', ''),
        location=_field(posting, 'location') or DEFAULT_LOCATION,
        remote=_field(posting, 'remote'),
        job_type=_field(posting, 'job_type'),
        seniority=_field(posting, 'seniority'),
        description=_field(posting, 'description'),
        link=_field(posting, 'url', ''),
        keywords=tuple(_field(posting, 'keywords', [])),
        stage=derive_stage(_field(match, 'status')),
        priority=normalize_priority(_field(match, 'priority')),
        automation_score=_clamp_score(_field(match, 'fit_score')),
        tags=tuple(_field(match, 'tags', [])),
        notes=tuple(_field(match, 'notes', [])),
        last_touchpoint=as_utc(_field(match, 'last_touchpoint')) or now,
        follow_up_date=as_utc(_field(match, 'follow_up_at')),
        tasks=tasks,
    )


def project_snapshot(matches: Iterable, now: Optional[datetime] = None) -> PipelineSnapshot:
    now = now or utcnow()
    return PipelineSnapshot(
        leads=tuple(project_lead(m, now) for m in matches),
        fetched_at=now,
    )


# ── Filtering (pipeline sidebar / job filters) ───────────────────────────────

def filter_leads(
    leads: Iterable[Lead],
    search: str = '',
    stage: str = '',
    company: str = '',
    location: str = '',
    priority: str = '',
    min_score: Optional[int] = None,
) -> List[Lead]:
    search = (search or '').strip().lower()
    company = (company or '').strip().lower()
    location = (location or '').strip().lower()
    priority = (priority or '').strip().lower()

    result = []
    for lead in leads:
        if search and not any(search in v.lower() for v in (lead.company, lead.role, lead.location)):
            continue
        if stage and stage != 'all' and lead.stage != stage:
            continue
        if company and company not in lead.company.lower():
            continue
        if location and location not in lead.location.lower():
            continue
        if priority and lead.priority.lower() != priority:
            continue
        if min_score is not None and lead.automation_score < min_score:
            continue
        result.append(lead)
    return result


# ── Snapshot holder ──────────────────────────────────────────────────────────

class ProjectionCache:
    """
    Holds the current PipelineSnapshot.

    get() loads lazily through the supplied loader; invalidate() drops the
    snapshot so the next read re-fetches everything.
    """

    def __init__(self):
        self._snapshot: Optional[PipelineSnapshot] = None

    @property
    def is_valid(self) -> bool:
        return self._snapshot is not None

    def get(self, loader: Callable[[], PipelineSnapshot]) -> PipelineSnapshot:
        if self._snapshot is None:
            self._snapshot = loader()
        return self._snapshot

    def invalidate(self):
        self._snapshot = None
