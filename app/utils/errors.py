"""Custom exception hierarchy for the elections API."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        **details: Any,
    ) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error in the API standard shape."""
        payload: dict[str, Any] = {"success": False, "error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ForbiddenError(AppError):
    """Raised when the user lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission") -> None:
        super().__init__(message=reason, code="FORBIDDEN", status_code=403)


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT", **details: Any) -> None:
        super().__init__(message=reason, code=code, status_code=409, **details)


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str, code: str = "INVALID_INPUT") -> None:
        super().__init__(message=reason, code=code, status_code=422)


class StoreError(AppError):
    """Raised when the database rejects or fails a request."""

    def __init__(self, reason: str = "Database request failed", pg_code: str = "") -> None:
        self.pg_code = pg_code
        super().__init__(message=reason, code="STORE_ERROR", status_code=503)

    @property
    def is_unique_violation(self) -> bool:
        """Return True when the failure came from a unique constraint."""
        return self.pg_code == "23505" or "duplicate key value" in self.message.lower()


class ElectionNotActiveError(ConflictError):
    """Raised when an election is not accepting votes or round changes."""

    def __init__(self, reason: str = "Election is not active") -> None:
        super().__init__(reason, code="ELECTION_NOT_ACTIVE")


class AlreadyActiveError(ConflictError):
    """Raised when starting an election that is already running."""

    def __init__(self) -> None:
        super().__init__("Election is already active for this position", code="ALREADY_ACTIVE")


class SeatsFilledError(ConflictError):
    """Raised when every seat of the position already has a winner."""

    def __init__(self, seat_count: int) -> None:
        super().__init__(
            "All seats already filled",
            code="SEATS_FILLED",
            seat_count=seat_count,
            remaining_seats=0,
        )


class NoCandidatesError(ConflictError):
    """Raised when there is nobody left to vote for."""

    def __init__(self, reason: str = "No applications found for this position") -> None:
        super().__init__(reason, code="NO_CANDIDATES")


class ElectionClosedError(ConflictError):
    """Raised when the next round is requested for an election that ended without a majority."""

    def __init__(self) -> None:
        super().__init__(
            "Election ended without a majority; start the election again to open a new round",
            code="ELECTION_CLOSED",
        )


class DuplicateVoteError(ConflictError):
    """Raised when a voter already has a ballot in the current round."""

    def __init__(self, round_number: int) -> None:
        super().__init__(
            "You have already voted in this round",
            code="DUPLICATE_VOTE",
            round_number=round_number,
        )


class InvalidCandidateError(InvalidInputError):
    """Raised when the chosen application does not stand for the election's position."""

    def __init__(self) -> None:
        super().__init__("Invalid application for this position", code="INVALID_CANDIDATE")


class CandidateAlreadyWonError(ConflictError):
    """Raised when a ballot names a candidate who already won a seat."""

    def __init__(self) -> None:
        super().__init__(
            "This candidate has already won a seat in this election",
            code="CANDIDATE_ALREADY_WON",
        )


class StaleRoundError(ConflictError):
    """Raised when the election moved on between reading and writing."""

    def __init__(self, reason: str = "Election changed while the request was processed") -> None:
        super().__init__(reason, code="STALE_ROUND")
