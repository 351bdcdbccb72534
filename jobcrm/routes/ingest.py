"""
Ingest routes — worker trigger for job-board ingestion.
"""
import logging
from typing import Optional

from flask import Blueprint, jsonify, request
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from jobcrm import database
from jobcrm.config import AUTOMATION_USER_ID
from jobcrm.errors import UpstreamError, ValidationError
from jobcrm.services.auth import require_worker
from jobcrm.services.ingestion import ingest_board

logger = logging.getLogger('routes.ingest')

bp = Blueprint('ingest', __name__)


class GreenhouseTrigger(BaseModel):
    board: str = Field(min_length=2)
    limit: Optional[int] = Field(default=None, gt=0, strict=True)


@bp.route('/trigger/greenhouse', methods=['POST'])
@require_worker
def trigger_greenhouse():
    try:
        payload = GreenhouseTrigger.model_validate(request.get_json(silent=True) or {})
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e, 'Invalid request') from e

    try:
        result = ingest_board(
            database.get_session_factory(),
            payload.board,
            limit=payload.limit,
            owner_id=AUTOMATION_USER_ID,
        )
    except UpstreamError as e:
        logger.error("Greenhouse ingest failed for %s: %s", payload.board, e.message,
                     extra={'board': payload.board, 'endpoint': request.path, 'status_code': 500})
        return jsonify({'error': 'Failed to ingest board'}), 500

    return jsonify({'status': 'ok', **result})
