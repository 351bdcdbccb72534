"""
Circuit breaker with Redis-backed state, guarding the outbound integrations
(OpenAI, Greenhouse job boards).

States:
  - CLOSED    → calls pass through
  - OPEN      → too many consecutive failures; calls raise CircuitOpenError
  - HALF_OPEN → reset_timeout elapsed; the next call is a probe

The breaker never retries. A failed call is recorded and re-raised, so the
request that hit it still fails. If Redis itself is unreachable the breaker
fails open (CLOSED).
"""
import logging
import time
from functools import wraps

from redis.exceptions import RedisError

from jobcrm.errors import CircuitOpenError

logger = logging.getLogger('services.circuit_breaker')

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'

# name → (failure_threshold, reset_timeout seconds)
SERVICE_LIMITS = {
    'openai': (5, 60),
    'greenhouse': (3, 300),
}


class CircuitBreaker:
    """
    Usage:
        cb = CircuitBreaker('greenhouse', redis_client, failure_threshold=3, reset_timeout=300)
        jobs = cb.call(requests.get, url, timeout=30)
    """

    PREFIX = 'cb'

    def __init__(self, name, redis_client, failure_threshold=3, reset_timeout=300):
        self.name = name
        self.redis = redis_client
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout

    def _key(self, suffix):
        return f'{self.PREFIX}:{self.name}:{suffix}'

    # ── State ─────────────────────────────────────────────────────────

    @property
    def state(self):
        try:
            s = self.redis.get(self._key('state'))
            if s is None:
                return CLOSED
            if s == OPEN and self._seconds_since_failure() > self.reset_timeout:
                self.redis.set(self._key('state'), HALF_OPEN)
                return HALF_OPEN
            return s
        except RedisError:
            return CLOSED

    @property
    def failure_count(self):
        try:
            return int(self.redis.get(self._key('failures')) or 0)
        except RedisError:
            return 0

    def _seconds_since_failure(self):
        last = self.redis.get(self._key('last_failure'))
        if not last:
            return float('inf')
        return time.time() - float(last)

    # ── Calls ─────────────────────────────────────────────────────────

    def call(self, func, *args, **kwargs):
        if self.state == OPEN:
            try:
                retry_after = max(0.0, self.reset_timeout - self._seconds_since_failure())
            except RedisError:
                retry_after = None
            raise CircuitOpenError(self.name, retry_after=retry_after)

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            self._on_failure(e)
            raise
        self._on_success()
        return result

    def protect(self, func):
        """Decorator form."""
        @wraps(func)
        def wrapper(*args, **kwargs):
            return self.call(func, *args, **kwargs)
        return wrapper

    def _on_success(self):
        try:
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.hincrby(self._key('health'), 'success', 1)
            pipe.hset(self._key('health'), 'last_success', str(time.time()))
            pipe.execute()
        except RedisError:
            logger.debug("Circuit '%s': Redis unavailable recording success", self.name)

    def _on_failure(self, error):
        try:
            count = self.redis.incr(self._key('failures'))
            self.redis.set(self._key('last_failure'), str(time.time()))
            pipe = self.redis.pipeline()
            pipe.hincrby(self._key('health'), 'failure', 1)
            pipe.hset(self._key('health'), 'last_failure', str(time.time()))
            pipe.hset(self._key('health'), 'last_error', str(error)[:200])
            pipe.execute()
            if count >= self.failure_threshold:
                self.redis.set(self._key('state'), OPEN)
        except RedisError:
            logger.debug("Circuit '%s': Redis unavailable recording failure", self.name)
            return

        if count >= self.failure_threshold:
            logger.warning("Circuit '%s' OPENED after %d failures: %s", self.name, count, error)
        else:
            logger.info("Circuit '%s' failure %d/%d: %s", self.name, count, self.failure_threshold, error)

    def reset(self):
        """Manually close the circuit. Returns False if Redis was unreachable."""
        try:
            pipe = self.redis.pipeline()
            pipe.set(self._key('state'), CLOSED)
            pipe.set(self._key('failures'), 0)
            pipe.delete(self._key('last_failure'))
            pipe.execute()
        except RedisError:
            logger.warning("Circuit '%s': Redis unavailable, reset not recorded", self.name)
            return False
        logger.info("Circuit '%s' manually reset to CLOSED", self.name)
        return True

    # ── Health ────────────────────────────────────────────────────────

    def get_health(self):
        health = {
            'name': self.name,
            'state': 'unknown',
            'failure_count': 0,
            'failure_threshold': self.failure_threshold,
            'reset_timeout': self.reset_timeout,
            'total_success': 0,
            'total_failure': 0,
            'last_success': None,
            'last_failure': None,
            'last_error': '',
        }
        try:
            data = self.redis.hgetall(self._key('health'))
        except RedisError:
            return health

        health.update(
            state=self.state,
            failure_count=self.failure_count,
            total_success=int(data.get('success', 0)),
            total_failure=int(data.get('failure', 0)),
            last_success=float(data['last_success']) if data.get('last_success') else None,
            last_failure=float(data['last_failure']) if data.get('last_failure') else None,
            last_error=data.get('last_error', ''),
        )
        return health


# ── Registry ──────────────────────────────────────────────────────────────

_registry = {}


def get_breaker(name, redis_client=None):
    """Get or create the named breaker (one per service)."""
    if name not in _registry:
        if redis_client is None:
            from jobcrm.extensions import redis_client
        threshold, timeout = SERVICE_LIMITS.get(name, (3, 300))
        _registry[name] = CircuitBreaker(name, redis_client, failure_threshold=threshold, reset_timeout=timeout)
    return _registry[name]


def get_all_breakers():
    return dict(_registry)


def init_breakers(redis_client):
    """Register a breaker for every outbound service."""
    breakers = {
        name: CircuitBreaker(name, redis_client, failure_threshold=threshold, reset_timeout=timeout)
        for name, (threshold, timeout) in SERVICE_LIMITS.items()
    }
    _registry.update(breakers)
    return breakers
