"""Errors raised by the backing-track workflow.

Each error carries the HTTP status the route layer answers with.
"""


class MelodyHubError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MelodyHubError):
    status_code = 400


class AuthorizationError(MelodyHubError):
    status_code = 403


class NotFoundError(MelodyHubError):
    status_code = 404


class ConfigurationError(MelodyHubError):
    """A required credential or setting is missing."""


class UpstreamError(MelodyHubError):
    """The generation service answered with an error or could not be reached."""


class GenerationFailedError(MelodyHubError):
    """The generation service reported the job as failed."""


class GenerationTimeoutError(MelodyHubError):
    """Polling ran out of attempts before the job finished."""


class CacheUnavailableError(MelodyHubError):
    pass
