"""
Health routes — liveness probe + circuit breaker states.
"""
import logging
import time
from datetime import datetime, timezone

from flask import Blueprint, jsonify

from jobcrm.services.auth import require_worker
from jobcrm.services.circuit_breaker import get_all_breakers

logger = logging.getLogger('routes.health')

bp = Blueprint('health', __name__)

_STARTED = time.monotonic()


@bp.route('/health')
def health_check():
    """Liveness probe for the load balancer."""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - _STARTED, 3),
    }), 200


@bp.route('/api/health')
def api_health():
    """Circuit breaker state for every outbound service."""
    services = {name: cb.get_health() for name, cb in get_all_breakers().items()}
    return jsonify({'services': services})


@bp.route('/api/health/<service>/reset', methods=['POST'])
@require_worker
def reset_circuit(service):
    cb = get_all_breakers().get(service)
    if cb is None:
        return jsonify({'error': f'Unknown service: {service}'}), 404
    if not cb.reset():
        return jsonify({'error': 'Circuit state store unavailable'}), 503
    logger.info("Circuit '%s' reset via API", service)
    return jsonify({'ok': True, 'service': service})
