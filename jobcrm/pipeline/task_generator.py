"""
Task generator — follow-up work created as a side effect of stage transitions.

Pure functions of (target stage, now). There is no awareness of the lead's
history: moving into Interviewing twice yields two prep tasks.
"""
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import List, Optional

from jobcrm.pipeline.stages import INTERVIEWING, OFFER

INTERVIEW_PREP_TITLE = 'Automate interview prep kit (stories + metrics)'
NEGOTIATION_BRIEF_TITLE = 'Generate negotiation brief & market calibration'

FOLLOW_UP_DELAY = {
    INTERVIEWING: timedelta(days=2),
    OFFER: timedelta(days=1),
}

MANUAL_FOLLOW_UP_DELAY = timedelta(days=2)


@dataclass(frozen=True)
class TaskDraft:
    """A task about to be inserted; becomes a `tasks` row."""
    lead_id: str
    title: str
    category: str
    due_at: datetime
    status: str
    auto_generated: bool = True

    def to_dict(self):
        return asdict(self)


def follow_up_for_stage(stage: str, now: datetime) -> Optional[datetime]:
    """Follow-up timestamp stamped on a lead entering `stage`, or None."""
    delay = FOLLOW_UP_DELAY.get(stage)
    return now + delay if delay else None


def generated_tasks_for_stage(stage: str, lead_id: str, now: datetime) -> List[TaskDraft]:
    if stage == INTERVIEWING:
        return [TaskDraft(
            lead_id=lead_id,
            title=INTERVIEW_PREP_TITLE,
            category='Preparation',
            due_at=now + timedelta(hours=12),
            status='scheduled',
        )]

    if stage == OFFER:
        return [TaskDraft(
            lead_id=lead_id,
            title=NEGOTIATION_BRIEF_TITLE,
            category='Research',
            due_at=now + timedelta(hours=6),
            status='pending',
        )]

    return []


def follow_up_task(lead_id: str, company: str, role: str, due_at: datetime) -> TaskDraft:
    """The task created by an explicit "schedule follow-up" action."""
    return TaskDraft(
        lead_id=lead_id,
        title=f'Follow up with {company} about {role}',
        category='Follow-up',
        due_at=due_at,
        status='scheduled',
    )
