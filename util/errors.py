# util/errors.py
from fastapi import HTTPException, status
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)

    @classmethod
    def of(cls, error: ErrorMessage) -> "AppError":
        return cls(error.value.message, error.value.http_status)


class FetchExhausted(Exception):
    """Raised once every retry attempt against a remote target has failed."""

    def __init__(self, target: str, attempts: int) -> None:
        super().__init__(f"Failed to fetch {target} after {attempts} attempts")
        self.target = target
        self.attempts = attempts


class RepositoryListingError(Exception):
    """Remote directory listing returned something other than an entry list."""


class TraversalLimitExceeded(RepositoryListingError):
    """Repository tree is deeper or larger than the configured guard allows."""
