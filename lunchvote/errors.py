from enum import Enum


class ErrorType(Enum):
    APP_ERROR = "APP_ERROR"
    DATA_NOT_FOUND = "DATA_NOT_FOUND"
    DATA_ERROR = "DATA_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VOTE_CLOSED = "VOTE_CLOSED"


class LunchVoteError(Exception):
    type = ErrorType.APP_ERROR

    def __init__(self, *details: str) -> None:
        super().__init__(*details)
        self.details = list(details)


class ValidationError(LunchVoteError):
    """Request data is malformed. Raised before anything touches storage."""

    type = ErrorType.VALIDATION_ERROR


class NotFoundError(LunchVoteError):
    type = ErrorType.DATA_NOT_FOUND


class DataConflictError(LunchVoteError):
    """A unique constraint was violated in storage."""

    type = ErrorType.DATA_ERROR


class VoteClosedError(LunchVoteError):
    type = ErrorType.VOTE_CLOSED
