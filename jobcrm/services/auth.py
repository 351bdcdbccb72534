"""
Auth — opaque bearer sessions for users, shared API key for workers.

Users sign in with an email and receive a random token stored in
`auth_sessions`. Workers (cron, ingestion triggers) present X-API-Key equal to
API_SECRET_KEY, or a valid user session.
"""
import hmac
import logging
import secrets
from datetime import timedelta
from functools import wraps

from flask import g, request

from jobcrm import database
from jobcrm.config import API_SECRET_KEY, SESSION_TTL_HOURS
from jobcrm.errors import AuthorizationError, ConfigurationError, ValidationError
from jobcrm.models.user import AuthSession, User
from jobcrm.pipeline.projection import as_utc, utcnow

logger = logging.getLogger('services.auth')


def normalize_email(email):
    email = (email or '').strip().lower()
    local, _, domain = email.partition('@')
    if not local or not domain:
        raise ValidationError('Invalid email', fields={'email': ['must be a valid email address']})
    return email


def find_or_create_user(session, email, display_name=None):
    email = normalize_email(email)
    user = session.query(User).filter(User.email == email).first()
    if user is None:
        user = User(email=email, display_name=display_name or email.split('@')[0])
        session.add(user)
        session.flush()
        logger.info("Created user %s", user.id)
    return user


def issue_session(session, user, now=None):
    """Open a new session for `user`. Returns the opaque token."""
    now = now or utcnow()
    token = secrets.token_urlsafe(32)
    session.add(AuthSession(
        token=token,
        user_id=user.id,
        created_at=now,
        expires_at=now + timedelta(hours=SESSION_TTL_HOURS),
    ))
    session.flush()
    return token


def resolve_user(session, token, now=None):
    """User for a live (unexpired, unrevoked) session token, or None."""
    if not token:
        return None
    auth = session.get(AuthSession, token)
    if auth is None or auth.revoked_at is not None:
        return None
    if as_utc(auth.expires_at) <= (now or utcnow()):
        return None
    return session.get(User, auth.user_id)


def revoke_session(session, token, now=None):
    auth = session.get(AuthSession, token) if token else None
    if auth is None or auth.revoked_at is not None:
        return False
    auth.revoked_at = now or utcnow()
    return True


def bearer_token(headers):
    """Token from `Authorization: Bearer <token>`, or None."""
    scheme, _, token = (headers.get('Authorization') or '').partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def worker_key_valid(headers):
    provided = headers.get('X-API-Key')
    if not provided or not API_SECRET_KEY:
        return False
    return hmac.compare_digest(provided.encode(), API_SECRET_KEY.encode())


def current_user():
    """Resolve the bearer session on the current request. Cached on `g`."""
    if 'user' in g:
        return g.user
    token = bearer_token(request.headers)
    user = None
    if token:
        session = database.get_session()
        try:
            user = resolve_user(session, token)
        finally:
            session.close()
    g.user = user
    return user


def require_user(view):
    """Reject with 401 unless a valid bearer session is present."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_user() is None:
            raise AuthorizationError()
        return view(*args, **kwargs)
    return wrapper


def require_worker(view):
    """Accept the worker API key or a signed-in user."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if worker_key_valid(request.headers):
            g.user = None
            return view(*args, **kwargs)
        try:
            user = current_user()
        except ConfigurationError:
            # No store to resolve sessions against; only the API key can pass
            user = None
        if user is None:
            logger.warning("Rejected worker request to %s", request.path,
                           extra={'endpoint': request.path, 'status_code': 401})
            raise AuthorizationError('Unauthorized')
        return view(*args, **kwargs)
    return wrapper
