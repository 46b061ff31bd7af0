"""Track source exceptions for error handling."""

from typing import Optional


class TrackSourceError(Exception):
    """Base exception for track source operations."""

    pass


class AuthExpired(TrackSourceError):
    """Raised when the bearer credential is missing, invalid or expired."""

    pass


class RateLimited(TrackSourceError):
    """Raised when the remote service rate limits the request."""

    def __init__(self, retry_after: Optional[float] = None, message: str = None):
        self.retry_after = retry_after
        hint = f"{retry_after:g} seconds" if retry_after is not None else "a few seconds"
        super().__init__(message or f"Rate limited: try again in {hint}")


class SourceUnavailable(TrackSourceError):
    """Raised on transport failures and unexpected service responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class StaleResult(Exception):
    """Raised internally when a superseded fetch resolves after a newer request."""

    def __init__(self, sequence: int, latest: int):
        self.sequence = sequence
        self.latest = latest
        super().__init__(f"Fetch #{sequence} superseded by #{latest}")
