"""
Stage vocabulary — the fixed, ordered set of pipeline stages.

Order drives progress indicators only; it is not a workflow guard. Any stage
may move to any other stage.
"""
from typing import Dict, List

from jobcrm.config import PIPELINE_STAGES
from jobcrm.errors import ValidationError

STAGE_ORDER = tuple(PIPELINE_STAGES)

PROSPECTING, APPLIED, INTERVIEWING, OFFER, HIRED, ARCHIVED = STAGE_ORDER

# Terminal stages don't count towards active pipeline volume
CLOSED_STAGES = frozenset({HIRED, ARCHIVED})
ACTIVE_STAGES = tuple(s for s in STAGE_ORDER if s not in CLOSED_STAGES)

# Display metadata consumed by the UI
STAGE_STYLES: Dict[str, str] = {
    PROSPECTING:  'sky',
    APPLIED:      'indigo',
    INTERVIEWING: 'amber',
    OFFER:        'emerald',
    HIRED:        'lime',
    ARCHIVED:     'slate',
}

STAGE_DOTS: Dict[str, str] = {
    PROSPECTING:  'bg-sky-400',
    APPLIED:      'bg-indigo-400',
    INTERVIEWING: 'bg-amber-400',
    OFFER:        'bg-emerald-400',
    HIRED:        'bg-lime-400',
    ARCHIVED:     'bg-slate-400',
}


def is_stage(value) -> bool:
    return value in STAGE_ORDER


def stage_index(stage: str) -> int:
    """Position of a stage in pipeline order."""
    if not is_stage(stage):
        raise ValidationError(
            f'Unknown stage: {stage}',
            fields={'stage': [f"must be one of {', '.join(STAGE_ORDER)}"]},
        )
    return STAGE_ORDER.index(stage)


def is_before(a: str, b: str) -> bool:
    """True when stage `a` comes strictly before stage `b`."""
    return stage_index(a) < stage_index(b)


def stage_progress(current: str) -> List[Dict[str, str]]:
    """Per-stage progress state for a lead sitting in `current`."""
    steps = []
    for stage in STAGE_ORDER:
        if stage == current:
            state = 'current'
        elif is_before(stage, current):
            state = 'complete'
        else:
            state = 'upcoming'
        steps.append({'stage': stage, 'state': state})
    return steps


def describe_stages() -> List[Dict[str, object]]:
    """JSON-friendly stage list for GET /api/stages."""
    return [
        {
            'stage': stage,
            'position': i,
            'style': STAGE_STYLES[stage],
            'dot': STAGE_DOTS[stage],
            'active': stage not in CLOSED_STAGES,
        }
        for i, stage in enumerate(STAGE_ORDER)
    ]
