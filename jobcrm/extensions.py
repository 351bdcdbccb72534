"""
Shared client instances — Redis (circuit breaker state) and OpenAI.

Constructing them never touches the network, so importing this module is safe
even when env vars are missing (tests, CLI).
"""
import logging

import redis

from jobcrm.config import REDIS_URL, OPENAI_API_KEY

logger = logging.getLogger('jobcrm.extensions')

# ── Redis ─────────────────────────────────────────────────────────────────────
redis_client = redis.from_url(REDIS_URL, decode_responses=True)

# ── OpenAI ────────────────────────────────────────────────────────────────────
openai_client = None
if OPENAI_API_KEY:
    try:
        from openai import OpenAI
        openai_client = OpenAI(api_key=OPENAI_API_KEY)
        logger.info("OpenAI client initialized successfully")
    except Exception as e:
        logger.error("Error initializing OpenAI client: %s", e)
else:
    logger.warning("OPENAI_API_KEY not set — assistant endpoints will be unavailable")
