"""
Error taxonomy shared by the pipeline engine, services and routes.

Every error carries the HTTP status the API layer answers with. Validation and
authorization errors are raised before any persistence call; not-found,
configuration and upstream errors propagate to the caller unchanged.
"""


class JobCrmError(Exception):
    """Base class for all application errors."""
    status_code = 500

    def __init__(self, message=''):
        self.message = message or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class ValidationError(JobCrmError):
    """Malformed input payload. `fields` maps field name → list of messages."""
    status_code = 400

    def __init__(self, message='Invalid request', fields=None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self):
        data = {'error': self.message}
        if self.fields:
            data['fields'] = self.fields
        return data

    @classmethod
    def from_pydantic(cls, exc, message='Invalid request'):
        """Flatten a pydantic ValidationError into {field: [messages]}."""
        fields = {}
        for err in exc.errors():
            loc = '.'.join(str(part) for part in err.get('loc', ())) or '__root__'
            fields.setdefault(loc, []).append(err.get('msg', 'invalid'))
        return cls(message, fields=fields)


class AuthorizationError(JobCrmError):
    status_code = 401

    def __init__(self, message='Authentication required'):
        super().__init__(message)


class NotFoundError(JobCrmError):
    status_code = 404


class ConfigurationError(JobCrmError):
    """A collaborator (database, LLM client) is not configured."""
    status_code = 503


class UpstreamError(JobCrmError):
    """An external API (LLM provider, job board) failed or timed out."""
    status_code = 500

    def __init__(self, message='', service=''):
        super().__init__(message)
        self.service = service


class SchemaMismatchError(UpstreamError):
    """Upstream response did not parse against the expected JSON shape."""


class CircuitOpenError(UpstreamError):
    """Raised when calling through an open circuit breaker."""

    def __init__(self, name, retry_after=None):
        self.name = name
        self.retry_after = retry_after
        super().__init__(f"Circuit breaker '{name}' is OPEN — service unavailable", service=name)
