"""
Auth routes — sign in with an email, sign out, who-am-I.
"""
import logging

from flask import Blueprint, g, jsonify, request

from jobcrm import database
from jobcrm.services import auth
from jobcrm.services.auth import require_user

logger = logging.getLogger('routes.auth')

bp = Blueprint('auth', __name__)


def _user_dict(user):
    return {'id': user.id, 'email': user.email, 'display_name': user.display_name}


@bp.route('/api/auth/session', methods=['POST'])
def create_session():
    """Issue a bearer token; the user is created on first sign-in."""
    data = request.get_json(silent=True) or {}
    session = database.get_session()
    try:
        user = auth.find_or_create_user(session, data.get('email'), data.get('display_name'))
        token = auth.issue_session(session, user)
        session.commit()
        logger.info("Session issued for user %s", user.id)
        return jsonify({'token': token, 'user': _user_dict(user)}), 201
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@bp.route('/api/auth/session', methods=['DELETE'])
@require_user
def delete_session():
    session = database.get_session()
    try:
        auth.revoke_session(session, auth.bearer_token(request.headers))
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    return jsonify({'ok': True})


@bp.route('/api/auth/me')
@require_user
def me():
    return jsonify({'user': _user_dict(g.user)})
