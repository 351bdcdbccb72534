"""
Greenhouse job-board API client.
"""
import logging
from datetime import datetime
from typing import List, Optional

import requests
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from jobcrm.config import GREENHOUSE_API_URL, GREENHOUSE_TIMEOUT
from jobcrm.errors import CircuitOpenError, SchemaMismatchError, UpstreamError

logger = logging.getLogger('services.greenhouse')


class NamedRef(BaseModel):
    name: str


class MetadataField(BaseModel):
    name: str
    value: Optional[object] = None


class GreenhouseJob(BaseModel):
    id: int
    title: str
    absolute_url: str
    updated_at: datetime
    location: Optional[NamedRef] = None
    departments: Optional[List[NamedRef]] = None
    offices: Optional[List[NamedRef]] = None
    metadata: Optional[List[MetadataField]] = None

    @field_validator('absolute_url')
    @classmethod
    def _http_url(cls, value):
        if not value.startswith(('http://', 'https://')):
            raise ValueError('must be an http(s) URL')
        return value

    @property
    def external_id(self) -> str:
        return str(self.id)

    @property
    def keywords(self) -> List[str]:
        """Department names followed by office names."""
        return [d.name for d in self.departments or []] + [o.name for o in self.offices or []]


class BoardJobs(BaseModel):
    jobs: List[GreenhouseJob] = Field(default_factory=list)


def board_jobs_url(board_token: str) -> str:
    return f'{GREENHOUSE_API_URL}/boards/{board_token}/jobs'


def _get_json(url):
    resp = requests.get(url, timeout=GREENHOUSE_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def fetch_board_jobs(board_token: str) -> List[GreenhouseJob]:
    """
    Fetch every published job on a board.

    Raises UpstreamError on HTTP failure / timeout (or an open circuit) and
    SchemaMismatchError when the payload does not match the board API shape.
    """
    from jobcrm.services.circuit_breaker import get_breaker
    url = board_jobs_url(board_token)
    cb = get_breaker('greenhouse')

    try:
        payload = cb.call(_get_json, url)
    except CircuitOpenError:
        raise
    except (requests.RequestException, ValueError) as e:
        logger.error("Greenhouse fetch failed for board %s: %s", board_token, e,
                     extra={'board': board_token, 'operation': 'greenhouse_fetch'})
        raise UpstreamError(f'Failed to fetch Greenhouse board {board_token}: {e}', service='greenhouse') from e

    try:
        jobs = BoardJobs.model_validate(payload).jobs
    except PydanticValidationError as e:
        logger.error("Greenhouse payload for board %s failed validation: %s", board_token, e,
                     extra={'board': board_token, 'operation': 'greenhouse_fetch'})
        raise SchemaMismatchError(f'Unexpected Greenhouse payload for {board_token}', service='greenhouse') from e

    logger.info("Fetched %d job(s) from Greenhouse board %s", len(jobs), board_token,
                extra={'board': board_token, 'operation': 'greenhouse_fetch'})
    return jobs
