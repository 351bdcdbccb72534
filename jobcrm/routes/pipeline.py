"""
Pipeline routes — lead board reads, stage moves, tasks, notes, new leads.

Every route requires a signed-in user; reads and writes are scoped to that
user's leads plus global (ingested, unassigned) leads.
"""
import logging

from flask import Blueprint, g, jsonify, request

from jobcrm import database
from jobcrm.errors import ValidationError
from jobcrm.pipeline.metrics import compute_metrics, next_follow_ups
from jobcrm.pipeline.mutator import PipelineMutator
from jobcrm.pipeline.projection import as_utc, filter_leads, utcnow
from jobcrm.pipeline.stages import describe_stages
from jobcrm.services.auth import require_user

logger = logging.getLogger('routes.pipeline')

bp = Blueprint('pipeline', __name__)


def _mutator():
    return PipelineMutator(database.get_session_factory(), user_id=g.user.id)


def _body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _required(data, key):
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'Missing {key}', fields={key: ['is required']})
    return value


# ── Reads ────────────────────────────────────────────────────────────────────

@bp.route('/api/stages')
@require_user
def list_stages():
    return jsonify({'stages': describe_stages()})


@bp.route('/api/leads')
@require_user
def list_leads():
    """Leads, optionally filtered by search/stage/company/location/priority/min_score."""
    leads = filter_leads(
        _mutator().list_leads(),
        search=request.args.get('search', ''),
        stage=request.args.get('stage', ''),
        company=request.args.get('company', ''),
        location=request.args.get('location', ''),
        priority=request.args.get('priority', ''),
        min_score=request.args.get('min_score', type=int),
    )
    return jsonify({'leads': [lead.to_dict() for lead in leads], 'count': len(leads)})


@bp.route('/api/pipeline')
@require_user
def pipeline_overview():
    """Full board: leads, aggregate metrics and the next open follow-ups."""
    now = utcnow()
    snapshot = _mutator().snapshot()
    metrics = compute_metrics(snapshot.leads, snapshot.tasks, now=now)
    return jsonify({
        'leads': [lead.to_dict() for lead in snapshot.leads],
        'metrics': metrics.to_dict(),
        'next_follow_ups': [t.to_dict() for t in next_follow_ups(snapshot.tasks)],
        'fetched_at': snapshot.fetched_at.isoformat() if snapshot.fetched_at else None,
    })


# ── Writes ───────────────────────────────────────────────────────────────────

@bp.route('/api/leads', methods=['POST'])
@require_user
def create_lead():
    lead = _mutator().add_lead(_body(), g.user)
    return jsonify(lead.to_dict()), 201


@bp.route('/api/leads/<lead_id>/stage', methods=['POST'])
@require_user
def change_stage(lead_id):
    stage = _required(_body(), 'stage')
    lead = _mutator().change_stage(lead_id, stage)
    return jsonify(lead.to_dict())


@bp.route('/api/leads/<lead_id>/follow-up', methods=['POST'])
@require_user
def schedule_follow_up(lead_id):
    lead = _mutator().schedule_follow_up(lead_id)
    return jsonify(lead.to_dict())


@bp.route('/api/leads/<lead_id>/notes', methods=['POST'])
@require_user
def add_note(lead_id):
    note = _required(_body(), 'note')
    lead = _mutator().add_note(lead_id, note)
    return jsonify(lead.to_dict())


@bp.route('/api/leads/<lead_id>/tasks', methods=['POST'])
@require_user
def add_task(lead_id):
    data = _body()
    due_at = None
    if data.get('due_at'):
        try:
            due_at = as_utc(str(data['due_at']))
        except ValueError:
            raise ValidationError('Invalid due_at', fields={'due_at': ['must be an ISO-8601 timestamp']})
    lead = _mutator().add_task(
        lead_id,
        data.get('title') or '',
        category=data.get('category') or 'Follow-up',
        due_at=due_at,
    )
    return jsonify(lead.to_dict()), 201


@bp.route('/api/tasks/<task_id>', methods=['PATCH'])
@require_user
def update_task(task_id):
    status = _required(_body(), 'status')
    lead = _mutator().change_task_status(task_id, status)
    return jsonify(lead.to_dict())
