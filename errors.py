from typing import Optional


class RelayError(Exception):
    """Base for every error the chat endpoint turns into a JSON response."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(RelayError):
    status_code = 400


class ContentPolicyError(RelayError):
    status_code = 403


class RateLimitError(RelayError):
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class QuotaExceededError(RelayError):
    status_code = 429

    def __init__(self, limit: int, used: int):
        super().__init__("Daily message limit reached. Come back tomorrow.")
        self.limit = limit
        self.used = used

    def to_dict(self) -> dict:
        return {"error": self.message, "limit": self.limit, "used": self.used}


class UpstreamError(RelayError):
    """The completion API failed; the caller only ever sees a generic message."""

    status_code = 500

    def __init__(self, detail: str, upstream_status: Optional[int] = None):
        super().__init__("An error occurred while processing your request")
        self.detail = detail
        self.upstream_status = upstream_status
