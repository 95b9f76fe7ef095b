"""Error taxonomy for the quiz lifecycle.

Services raise these exceptions; ``main.py`` registers a single handler that
turns them into JSON responses carrying ``status_code``.
"""

from typing import Any, Optional


class QuizError(Exception):
    """Base class for request-scoped quiz failures."""

    status_code = 500
    default_detail = "Quiz operation failed"

    def __init__(self, detail: Optional[str] = None, **extra: Any):
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.detail, **self.extra}


class Unauthorized(QuizError):
    status_code = 401
    default_detail = "Unauthorized"


class Forbidden(QuizError):
    status_code = 403
    default_detail = "Forbidden"


class AttemptLimitReached(Forbidden):
    """A prior submission exists and the quiz allows a single attempt."""

    default_detail = "You have already submitted this quiz"

    def __init__(self, detail: Optional[str] = None, submission: Optional[dict] = None):
        super().__init__(detail, already_submitted=True, submission=submission)


class NotFound(QuizError):
    status_code = 404
    default_detail = "Not found"


class ValidationFailed(QuizError):
    status_code = 400
    default_detail = "Validation failed"


class ConcurrentAttemptConflict(QuizError):
    """Another submission claimed the same attempt number first."""

    status_code = 409
    default_detail = "Another submission for this attempt was recorded concurrently; please retry"
