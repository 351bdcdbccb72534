"""
Assistant routes — LLM-backed fit score, outreach, resume tailoring and
interview prep. Callable by signed-in users or workers holding the API key.
"""
import logging

from flask import Blueprint, g, jsonify, request
from pydantic import ValidationError as PydanticValidationError

from jobcrm.errors import ConfigurationError, UpstreamError, ValidationError
from jobcrm.services import llm
from jobcrm.services.auth import require_worker

logger = logging.getLogger('routes.assistant')

bp = Blueprint('assistant', __name__)


def _run(request_model, operation, failure_message):
    """Validate the body, run one assistant operation, render its JSON."""
    try:
        req = request_model.model_validate(request.get_json(silent=True) or {})
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, 'Invalid request') from e

    request_id = g.get('request_id')
    try:
        result = operation(req, request_id=request_id)
    except (UpstreamError, ConfigurationError) as e:
        logger.error("%s (%s): %s", failure_message, request_id, e.message,
                     extra={'request_id': request_id, 'endpoint': request.path, 'status_code': 500})
        return jsonify({'error': failure_message}), 500
    return jsonify(result.model_dump())


@bp.route('/api/fit-score', methods=['POST'])
@require_worker
def fit_score():
    return _run(llm.FitScoreRequest, llm.score_fit, 'Failed to generate fit score')


@bp.route('/api/outreach', methods=['POST'])
@require_worker
def outreach():
    return _run(llm.OutreachRequest, llm.draft_outreach, 'Failed to generate outreach')


@bp.route('/api/resume-tailor', methods=['POST'])
@require_worker
def resume_tailor():
    return _run(llm.ResumeTailorRequest, llm.tailor_resume, 'Failed to tailor resume')


@bp.route('/api/interview-prep', methods=['POST'])
@require_worker
def interview_prep():
    return _run(llm.InterviewPrepRequest, llm.prepare_interview, 'Failed to generate interview prep')
