"""
Dashboard metrics — derived from a full scan of the current snapshot.

Nothing here is stored; every figure is recomputed whenever the snapshot is
refreshed.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from jobcrm.pipeline.projection import Lead, TaskView, utcnow
from jobcrm.pipeline.stages import STAGE_ORDER, CLOSED_STAGES

MOMENTUM_CAP = 100
MOMENTUM_PER_ACTIVE_LEAD = 12
MOMENTUM_PER_FOLLOW_UP = 4


@dataclass(frozen=True)
class PipelineMetrics:
    stage_counts: Dict[str, int] = field(default_factory=dict)
    total_leads: int = 0
    active_leads: int = 0
    automation_average: int = 0
    upcoming_follow_ups: int = 0
    momentum_score: int = 0

    def to_dict(self):
        return {
            'stage_counts': dict(self.stage_counts),
            'total_leads': self.total_leads,
            'active_leads': self.active_leads,
            'automation_average': self.automation_average,
            'upcoming_follow_ups': self.upcoming_follow_ups,
            'momentum_score': self.momentum_score,
        }


def count_stages(leads: Iterable[Lead]) -> Dict[str, int]:
    """Lead count per stage; all six stages always present."""
    counts = {stage: 0 for stage in STAGE_ORDER}
    for lead in leads:
        counts[lead.stage] += 1
    return counts


def automation_average(leads: Sequence[Lead]) -> int:
    """Mean automation score, rounded half-up. 0 for an empty pipeline."""
    if not leads:
        return 0
    mean = sum(lead.automation_score for lead in leads) / len(leads)
    return int(math.floor(mean + 0.5))


def momentum_score(active_leads: int, upcoming_follow_ups: int) -> int:
    return min(
        MOMENTUM_CAP,
        active_leads * MOMENTUM_PER_ACTIVE_LEAD + upcoming_follow_ups * MOMENTUM_PER_FOLLOW_UP,
    )


def compute_metrics(leads: Iterable[Lead], tasks: Iterable[TaskView] = (),
                    now: Optional[datetime] = None) -> PipelineMetrics:
    now = now or utcnow()
    leads = list(leads)

    stage_counts = count_stages(leads)
    active = sum(1 for lead in leads if lead.stage not in CLOSED_STAGES)
    upcoming = sum(1 for lead in leads if lead.follow_up_date is not None and lead.follow_up_date > now)

    return PipelineMetrics(
        stage_counts=stage_counts,
        total_leads=len(leads),
        active_leads=active,
        automation_average=automation_average(leads),
        upcoming_follow_ups=upcoming,
        momentum_score=momentum_score(active, upcoming),
    )


def next_follow_ups(tasks: Iterable[TaskView], limit: int = 5) -> List[TaskView]:
    """Open tasks ordered by due date, soonest first."""
    open_tasks = [t for t in tasks if t.status != 'completed']
    open_tasks.sort(key=lambda t: t.due_date)
    return open_tasks[:limit]
