"""
OpenAI helpers — career-assistant completions (fit score, outreach, resume
tailoring, interview prep) behind a JSON-validated contract.

Every completion is logged with the request correlation id, latency and token
counts. Malformed JSON or a schema violation is a hard failure
(SchemaMismatchError); there is no partial-result fallback and no retry.
"""
import json
import logging
import time
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from jobcrm.config import OPENAI_MODEL
from jobcrm.errors import (
    CircuitOpenError,
    ConfigurationError,
    SchemaMismatchError,
    UpstreamError,
)
from jobcrm.extensions import openai_client as client

logger = logging.getLogger('services.llm')


# ── Response schemas ─────────────────────────────────────────────────────────

class FitScoreResponse(BaseModel):
    fit_score: float = Field(ge=0, le=100)
    summary: str
    top_skills: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)
    recommended_actions: List[str] = Field(default_factory=list)


class OutreachResponse(BaseModel):
    subject: str
    preview: str = ''
    body: str


class ResumeBullet(BaseModel):
    headline: str
    detail: str


class ResumeTailorResponse(BaseModel):
    summary: str
    keywords: List[str] = Field(default_factory=list)
    bullets: List[ResumeBullet] = Field(default_factory=list)


class StarStory(BaseModel):
    prompt: str
    outline: str


class InterviewPrepResponse(BaseModel):
    warmups: List[str] = Field(default_factory=list)
    questions: List[str] = Field(default_factory=list)
    star_stories: List[StarStory] = Field(default_factory=list)


SCHEMAS: Dict[str, Type[BaseModel]] = {
    'fit-score': FitScoreResponse,
    'outreach': OutreachResponse,
    'resume-tailor': ResumeTailorResponse,
    'interview-prep': InterviewPrepResponse,
}


# ── Request payloads ─────────────────────────────────────────────────────────
# Accept the camelCase keys the web client sends as well as snake_case.

class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class FitScoreRequest(_Request):
    job_description: str = Field(min_length=16, alias='jobDescription')
    resume_highlights: str = Field(min_length=16, alias='resumeHighlights')


class OutreachRequest(_Request):
    company: str = Field(min_length=1)
    role: str = Field(min_length=1)
    tone: Optional[str] = Field(default=None, max_length=80)
    call_to_action: Optional[str] = Field(default=None, max_length=120, alias='callToAction')
    persona: Optional[str] = Field(default=None, max_length=200)


class ResumeTailorRequest(_Request):
    job_description: str = Field(min_length=16, alias='jobDescription')
    resume: str = Field(min_length=16)
    focus_areas: Optional[str] = Field(default=None, max_length=160, alias='focusAreas')


class InterviewPrepRequest(_Request):
    company: str = Field(min_length=1)
    role: str = Field(min_length=1)
    job_description: str = Field(min_length=16, alias='jobDescription')
    experience_highlights: Optional[str] = Field(default=None, max_length=1000, alias='experienceHighlights')


# ── Prompts ──────────────────────────────────────────────────────────────────

def build_fit_score_prompt(req: FitScoreRequest) -> str:
    return (
        "You are an executive career copilot. Compare the job description and candidate highlights "
        "below and respond with JSON containing: fit_score (0-100), summary (string), top_skills "
        "(array of strings), gaps (array of strings), risks (array of strings), recommended_actions "
        "(array of strings).\n"
        f"Job description: {req.job_description}\n"
        f"Candidate highlights: {req.resume_highlights}"
    )


def build_outreach_prompt(req: OutreachRequest) -> str:
    return (
        "You help craft personalised outreach messages. Return JSON with fields: subject, preview, body. "
        f"Tone: {req.tone or 'warm, professional'}. "
        f"Call to action: {req.call_to_action or 'request a short intro call'}. "
        f"Persona/context: {req.persona or 'product leader who cares about metrics and collaboration'}. "
        f"Role: {req.role} at {req.company}. Body should be <= 170 words."
    )


def build_resume_prompt(req: ResumeTailorRequest) -> str:
    return (
        "You tailor resumes into impact bullets. Produce JSON with fields: summary (string), bullets "
        "(array of objects {headline, detail}), keywords (array of strings). "
        f"Focus areas: {req.focus_areas or 'product impact, metrics, leadership'}.\n"
        f"Job description: {req.job_description}\n"
        f"Resume source: {req.resume}"
    )


def build_interview_prompt(req: InterviewPrepRequest) -> str:
    highlights = req.experience_highlights or 'seasoned operator with cross-functional leadership experience'
    return (
        "You create interview prep kits. Respond with JSON containing: warmups (array of strings), "
        "questions (array of strings), star_stories (array of objects {prompt, outline}). "
        f"Company: {req.company}. Role: {req.role}. Job description: {req.job_description}. "
        f"Candidate highlights: {highlights}."
    )


# ── Completion ───────────────────────────────────────────────────────────────

def _chat_completion(**kwargs):
    """Route chat completion through the OpenAI circuit breaker."""
    from jobcrm.services.circuit_breaker import get_breaker
    cb = get_breaker('openai')
    return cb.call(client.chat.completions.create, **kwargs)


def _elapsed_ms(start):
    return int((time.monotonic() - start) * 1000)


def generate_json_response(prompt: str, schema_name: str, model: Optional[str] = None,
                           request_id: Optional[str] = None) -> BaseModel:
    """
    Run one JSON-mode completion and validate it against SCHEMAS[schema_name].

    Raises:
        ConfigurationError:  no OpenAI client configured
        UpstreamError:       provider error / timeout / open circuit
        SchemaMismatchError: empty content, malformed JSON or schema violation
    """
    schema = SCHEMAS[schema_name]
    model = model or OPENAI_MODEL

    if client is None:
        raise ConfigurationError('OpenAI client not configured')

    logger.info(
        "OpenAI request %s schema=%s model=%s prompt_chars=%d",
        request_id, schema_name, model, len(prompt),
        extra={'request_id': request_id, 'operation': 'openai_request', 'model': model},
    )

    start = time.monotonic()
    try:
        response = _chat_completion(
            model=model,
            messages=[{'role': 'user', 'content': prompt}],
            response_format={'type': 'json_object'},
        )
    except CircuitOpenError:
        logger.error("OpenAI circuit open %s", request_id,
                     extra={'request_id': request_id, 'operation': 'openai_error', 'model': model})
        raise
    except Exception as e:
        latency = _elapsed_ms(start)
        logger.error(
            "OpenAI error %s after %dms: %s", request_id, latency, e,
            extra={'request_id': request_id, 'operation': 'openai_error', 'model': model, 'latency_ms': latency},
        )
        raise UpstreamError(f'OpenAI request failed: {e}', service='openai') from e

    latency = _elapsed_ms(start)
    usage = getattr(response, 'usage', None)
    prompt_tokens = getattr(usage, 'prompt_tokens', 0) or 0
    completion_tokens = getattr(usage, 'completion_tokens', 0) or 0
    total_tokens = getattr(usage, 'total_tokens', 0) or 0
    logger.info(
        "OpenAI response %s latency=%dms tokens=%d/%d/%d",
        request_id, latency, prompt_tokens, completion_tokens, total_tokens,
        extra={
            'request_id': request_id,
            'operation': 'openai_response',
            'model': model,
            'latency_ms': latency,
            'prompt_tokens': prompt_tokens,
            'completion_tokens': completion_tokens,
            'total_tokens': total_tokens,
        },
    )

    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise SchemaMismatchError('No content in OpenAI response', service='openai')

    try:
        return schema.model_validate(json.loads(content))
    except json.JSONDecodeError as e:
        logger.error("OpenAI returned malformed JSON %s: %s", request_id, e,
                     extra={'request_id': request_id, 'operation': 'openai_error'})
        raise SchemaMismatchError(f'Malformed JSON from OpenAI: {e}', service='openai') from e
    except PydanticValidationError as e:
        logger.error("OpenAI response %s failed %s schema: %s", request_id, schema_name, e,
                     extra={'request_id': request_id, 'operation': 'openai_error'})
        raise SchemaMismatchError(f'Response did not match {schema_name} schema', service='openai') from e


# ── Assistant operations ─────────────────────────────────────────────────────

def score_fit(req: FitScoreRequest, request_id=None) -> FitScoreResponse:
    return generate_json_response(build_fit_score_prompt(req), 'fit-score', request_id=request_id)


def draft_outreach(req: OutreachRequest, request_id=None) -> OutreachResponse:
    return generate_json_response(build_outreach_prompt(req), 'outreach', request_id=request_id)


def tailor_resume(req: ResumeTailorRequest, request_id=None) -> ResumeTailorResponse:
    return generate_json_response(build_resume_prompt(req), 'resume-tailor', request_id=request_id)


def prepare_interview(req: InterviewPrepRequest, request_id=None) -> InterviewPrepResponse:
    return generate_json_response(build_interview_prompt(req), 'interview-prep', request_id=request_id)
