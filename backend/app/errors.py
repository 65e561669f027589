class QuantPrepError(Exception):
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class QuotaExceededError(QuantPrepError):
    status_code = 403

    def __init__(self, limit: int = 3):
        super().__init__("Free plan limit reached. Upgrade to Pro for unlimited sessions.")
        self.limit = limit


class UserNotFoundError(QuantPrepError):
    status_code = 404


class SessionNotFoundError(QuantPrepError):
    status_code = 404


class SessionClosedError(QuantPrepError):
    """Raised when writing to a session that already has ended_at set, or is full."""
    status_code = 409


class WebhookSignatureError(QuantPrepError):
    status_code = 400


class UpstreamUnavailableError(QuantPrepError):
    status_code = 503
