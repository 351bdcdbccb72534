"""
Centralized configuration — env vars, pipeline vocabularies, defaults.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Flask ────────────────────────────────────────────────────────────────────
SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')

# ── Redis (circuit breaker state) ────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── Database ─────────────────────────────────────────────────────────────────
# Empty string disables persistence entirely (anonymous / read-only demo mode).
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── OpenAI ───────────────────────────────────────────────────────────────────
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

# ── Auth ─────────────────────────────────────────────────────────────────────
API_SECRET_KEY = os.getenv('API_SECRET_KEY')
SESSION_TTL_HOURS = int(os.getenv('SESSION_TTL_HOURS', '168'))

# ── Ingestion ────────────────────────────────────────────────────────────────
# Unset → ingested leads are global (no owning user).
AUTOMATION_USER_ID = os.getenv('AUTOMATION_USER_ID') or None
GREENHOUSE_API_URL = os.getenv('GREENHOUSE_API_URL', 'https://boards-api.greenhouse.io/v1')
GREENHOUSE_BOARD_URL = os.getenv('GREENHOUSE_BOARD_URL', 'https://boards.greenhouse.io')
GREENHOUSE_TIMEOUT = int(os.getenv('GREENHOUSE_TIMEOUT', '30'))

# ── Pipeline vocabularies ────────────────────────────────────────────────────
PIPELINE_STAGES = [
    'Prospecting',
    'Applied',
    'Interviewing',
    'Offer',
    'Hired',
    'Archived',
]

TASK_CATEGORIES = ['Research', 'Outreach', 'Follow-up', 'Preparation']

TASK_STATUSES = ['pending', 'scheduled', 'completed']

PRIORITIES = ['High', 'Medium', 'Low']

# ── Projection defaults ──────────────────────────────────────────────────────
DEFAULT_AUTOMATION_SCORE = 70
DEFAULT_LOCATION = 'Remote'
DEFAULT_PRIORITY = 'Medium'
